"""Pydantic models for stored hospital records.

Every entity comes in three shapes:
- the stored record (id + timestamps)
- a create payload (what callers supply to ``create``)
- a patch payload (all fields optional, used by ``update``)

Attributes are snake_case in Python and camelCase on the wire, matching the
JSON arrays already held in local storage and in remote blobs.
"""
import uuid
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class AppointmentType(str, Enum):
    CONSULTATION = "consultation"
    FOLLOWUP = "followup"
    EMERGENCY = "emergency"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Terminal states only accept themselves
ALLOWED_STATUS_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.COMPLETED: {AppointmentStatus.COMPLETED},
    AppointmentStatus.CANCELLED: {AppointmentStatus.CANCELLED},
}


class InvalidStatusTransition(ValueError):
    """Raised when an appointment update would leave a terminal status."""
    pass


def generate_id() -> str:
    """Random 128-bit record id."""
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    """Current UTC time as ``2025-01-01T10:00:00.000Z``."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WireModel(BaseModel):
    """Base for everything serialized to storage."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class StoredRecord(WireModel):
    """A record owned by a collection, keyed by ``id``.

    Keys the model does not declare are kept and written back as-is.
    """
    model_config = ConfigDict(extra="allow")

    id: str
    created_at: str

    def check_patch(self, changes: Dict[str, Any]) -> None:
        """Hook for entities that restrict which changes are legal."""
        return None


class TimestampedRecord(StoredRecord):
    """A mutable record; ``updated_at`` is restamped on every update."""
    updated_at: str


# Patients

class PatientCreate(WireModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    date_of_birth: str
    gender: Gender
    address: str = ""
    emergency_contact: str = ""
    emergency_phone: str = ""
    blood_group: str = ""
    allergies: str = ""
    medical_history: str = ""


class Patient(PatientCreate, TimestampedRecord):
    pass


class PatientPatch(WireModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None


# Doctors

class DoctorCreate(WireModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    specialization: str
    qualification: str
    experience: int = Field(..., description="Years of experience")
    consultation_fee: float
    availability: List[str] = Field(default_factory=list, description="Weekday names")


class Doctor(DoctorCreate, TimestampedRecord):
    pass


class DoctorPatch(WireModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    qualification: Optional[str] = None
    experience: Optional[int] = None
    consultation_fee: Optional[float] = None
    availability: Optional[List[str]] = None


# Appointments

class AppointmentCreate(WireModel):
    """New appointments carry no status; they always start scheduled."""
    patient_id: str
    doctor_id: str
    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    time: str = Field(..., description="Time of day, HH:MM")
    type: AppointmentType
    notes: str = ""


class Appointment(AppointmentCreate, TimestampedRecord):
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    def check_patch(self, changes: Dict[str, Any]) -> None:
        new_status = changes.get("status")
        if new_status is None:
            return
        if new_status not in ALLOWED_STATUS_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"Appointment {self.id} cannot move from "
                f"{self.status.value} to {AppointmentStatus(new_status).value}"
            )


class AppointmentPatch(WireModel):
    patient_id: Optional[str] = None
    doctor_id: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


# Medical records (immutable once created)

class Vitals(WireModel):
    model_config = ConfigDict(extra="allow")

    blood_pressure: str = ""
    heart_rate: str = ""
    temperature: str = ""
    weight: str = ""
    height: str = ""


class MedicalRecordCreate(WireModel):
    patient_id: str
    doctor_id: str
    appointment_id: str
    diagnosis: str
    prescription: str = ""
    notes: str = ""
    vitals: Vitals = Field(default_factory=Vitals)


class MedicalRecord(MedicalRecordCreate, StoredRecord):
    pass


# Admin credentials and sessions

class AdminAuthCreate(WireModel):
    username: str
    password_hash: str


class AdminAuth(AdminAuthCreate, StoredRecord):
    pass


class AdminSession(WireModel):
    """Session cached locally after a successful login."""
    id: str
    username: str
    token: str
    expires_at: str
    created_at: str


R = TypeVar("R", bound=StoredRecord)


def build_record(model: type[R], payload: WireModel, now: str, record_id: Optional[str] = None) -> R:
    """
    Stamp a create payload into a stored record.

    Args:
        model: Record class to build
        payload: Create payload (validated)
        now: Timestamp for created_at (and updated_at where present)
        record_id: Fixed id for seeded records (default: a fresh random id)

    Returns:
        New record
    """
    values = payload.model_dump()
    values["id"] = record_id or generate_id()
    values["created_at"] = now
    if "updated_at" in model.model_fields:
        values["updated_at"] = now
    return model.model_validate(values)


def merge_patch(base: R, patch: WireModel, now: str) -> R:
    """
    Apply a patch on top of a record without mutating either.

    Fields explicitly set (and not None) on the patch win over the base;
    ``updated_at`` is always set to ``now``.

    Raises:
        InvalidStatusTransition: If the record rejects the change
    """
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    base.check_patch(changes)
    merged = base.model_dump()
    merged.update(changes)
    merged["updated_at"] = now
    return type(base).model_validate(merged)
