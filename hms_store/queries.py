"""Read-side helpers over collections that are already loaded.

The store layer never joins collections; lookups between them are linear
scans done here, and a dangling reference resolves to "Unknown".
"""
from datetime import date, datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel

from hms_store.models import Appointment, AppointmentStatus, Doctor, Patient

UNKNOWN = "Unknown"


def full_name(record) -> str:
    return f"{record.first_name} {record.last_name}"


def display_name(records: Sequence, record_id: str, prefix: str = "") -> str:
    """
    Name of the record with record_id.

    Args:
        records: Patients or doctors
        record_id: Id to look up
        prefix: Prepended to a found name (e.g. "Dr. ")

    Returns:
        "<prefix>First Last", or "Unknown" if no record has that id
    """
    record = next((r for r in records if r.id == record_id), None)
    if record is None:
        return UNKNOWN
    return f"{prefix}{full_name(record)}"


def search_patients(patients: Sequence[Patient], term: str) -> List[Patient]:
    """Patients whose name or email contains term (any case), or whose phone contains it."""
    needle = term.lower()
    return [
        p for p in patients
        if needle in full_name(p).lower()
        or needle in p.email.lower()
        or term in p.phone
    ]


def search_doctors(doctors: Sequence[Doctor], term: str) -> List[Doctor]:
    """Doctors matching term on name, email, specialization or phone."""
    needle = term.lower()
    return [
        d for d in doctors
        if needle in full_name(d).lower()
        or needle in d.email.lower()
        or needle in d.specialization.lower()
        or term in d.phone
    ]


class AppointmentView(BaseModel):
    """An appointment with the names it references resolved."""
    appointment: Appointment
    patient_name: str
    doctor_name: str


def filter_appointments(
    appointments: Sequence[Appointment],
    patients: Sequence[Patient],
    doctors: Sequence[Doctor],
    term: str = "",
    status: Optional[AppointmentStatus] = None
) -> List[AppointmentView]:
    """
    Resolve names, filter by search term and status, newest first.

    The term matches patient name, doctor name or appointment type.
    """
    views = [
        AppointmentView(
            appointment=a,
            patient_name=display_name(patients, a.patient_id),
            doctor_name=display_name(doctors, a.doctor_id, prefix="Dr. "),
        )
        for a in appointments
    ]

    if term:
        needle = term.lower()
        views = [
            v for v in views
            if needle in v.patient_name.lower()
            or needle in v.doctor_name.lower()
            or needle in v.appointment.type.value
        ]

    if status is not None:
        views = [v for v in views if v.appointment.status == status]

    views.sort(key=lambda v: (v.appointment.date, v.appointment.time), reverse=True)
    return views


def is_upcoming(appointment: Appointment, now: Optional[datetime] = None) -> bool:
    """
    True if the appointment's date/time is after now.

    Appointment times are wall-clock local times. Aware values on either
    side are converted to local time before comparing.
    """
    try:
        starts_at = datetime.fromisoformat(f"{appointment.date}T{appointment.time}")
    except ValueError:
        return False
    return _local_wall_clock(starts_at) > _local_wall_clock(now or datetime.now())


def _local_wall_clock(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


class DashboardStats(BaseModel):
    total_patients: int
    total_doctors: int
    total_appointments: int
    today_appointments: int


def dashboard_stats(
    patients: Sequence[Patient],
    doctors: Sequence[Doctor],
    appointments: Sequence[Appointment],
    today: Optional[date] = None
) -> DashboardStats:
    """Collection totals plus the number of appointments dated today."""
    day = (today or date.today()).isoformat()
    return DashboardStats(
        total_patients=len(patients),
        total_doctors=len(doctors),
        total_appointments=len(appointments),
        today_appointments=sum(1 for a in appointments if a.date == day),
    )
