"""Demo data for a fresh local store."""
from datetime import date, timedelta
from typing import Optional

from hms_store.local_store import LocalStore
from hms_store.logging_config import get_logger
from hms_store.models import (
    AppointmentCreate,
    AppointmentPatch,
    AppointmentStatus,
    AppointmentType,
    DoctorCreate,
    Gender,
    PatientCreate,
)

logger = get_logger(__name__)

SAMPLE_PATIENTS = [
    PatientCreate(
        first_name="John", last_name="Doe", email="john.doe@email.com", phone="+1-555-0123",
        date_of_birth="1985-03-15", gender=Gender.MALE, address="123 Main St, Anytown, ST 12345",
        emergency_contact="Jane Doe", emergency_phone="+1-555-0124", blood_group="A+",
        allergies="Penicillin", medical_history="Hypertension, controlled with medication",
    ),
    PatientCreate(
        first_name="Sarah", last_name="Johnson", email="sarah.johnson@email.com", phone="+1-555-0125",
        date_of_birth="1990-07-22", gender=Gender.FEMALE, address="456 Oak Ave, Anytown, ST 12345",
        emergency_contact="Mike Johnson", emergency_phone="+1-555-0126", blood_group="B+",
        allergies="None known", medical_history="No significant medical history",
    ),
    PatientCreate(
        first_name="Michael", last_name="Chen", email="michael.chen@email.com", phone="+1-555-0127",
        date_of_birth="1978-11-08", gender=Gender.MALE, address="789 Pine St, Anytown, ST 12345",
        emergency_contact="Lisa Chen", emergency_phone="+1-555-0128", blood_group="O-",
        allergies="Shellfish", medical_history="Type 2 Diabetes, well-controlled",
    ),
    PatientCreate(
        first_name="Emma", last_name="Williams", email="emma.williams@email.com", phone="+1-555-0129",
        date_of_birth="1995-05-14", gender=Gender.FEMALE, address="321 Elm St, Anytown, ST 12345",
        emergency_contact="Robert Williams", emergency_phone="+1-555-0130", blood_group="AB+",
        allergies="Latex", medical_history="Asthma, uses inhaler as needed",
    ),
]

SAMPLE_DOCTORS = [
    DoctorCreate(
        first_name="Emily", last_name="Carter", email="dr.carter@hospital.com", phone="+1-555-0201",
        specialization="General Medicine", qualification="MD, MBBS", experience=8,
        consultation_fee=150, availability=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
    ),
    DoctorCreate(
        first_name="David", last_name="Rodriguez", email="dr.rodriguez@hospital.com", phone="+1-555-0202",
        specialization="Cardiology", qualification="MD, Cardiology Fellowship", experience=12,
        consultation_fee=250, availability=["Monday", "Wednesday", "Friday"],
    ),
    DoctorCreate(
        first_name="Jennifer", last_name="Thompson", email="dr.thompson@hospital.com", phone="+1-555-0203",
        specialization="Pediatrics", qualification="MD, Pediatrics Residency", experience=6,
        consultation_fee=180, availability=["Tuesday", "Thursday", "Saturday"],
    ),
    DoctorCreate(
        first_name="Robert", last_name="Anderson", email="dr.anderson@hospital.com", phone="+1-555-0204",
        specialization="Orthopedics", qualification="MD, MS Orthopedics", experience=15,
        consultation_fee=300, availability=["Monday", "Tuesday", "Thursday", "Friday"],
    ),
]


def seed_sample_data(store: LocalStore, today: Optional[date] = None) -> bool:
    """
    Fill an empty store with demo patients, doctors and appointments.

    Args:
        store: Local store to seed
        today: Reference day for appointment dates (defaults to date.today())

    Returns:
        True if data was created, False if patients already existed
    """
    if store.patients.get_all():
        return False

    today = today or date.today()
    tomorrow = (today + timedelta(days=1)).isoformat()
    next_week = (today + timedelta(days=7)).isoformat()

    patients = [store.patients.create(p) for p in SAMPLE_PATIENTS]
    doctors = [store.doctors.create(d) for d in SAMPLE_DOCTORS]

    # (patient, doctor, date, time, type, notes)
    bookings = [
        (0, 0, tomorrow, "10:00", AppointmentType.CONSULTATION, "Regular checkup for hypertension management"),
        (1, 2, next_week, "14:30", AppointmentType.CONSULTATION, "Annual health screening"),
        (2, 1, today.isoformat(), "09:00", AppointmentType.FOLLOWUP, "Diabetes follow-up appointment"),
        (3, 0, tomorrow, "15:00", AppointmentType.CONSULTATION, "Asthma medication review"),
    ]
    appointments = [
        store.appointments.create(AppointmentCreate(
            patient_id=patients[p].id,
            doctor_id=doctors[d].id,
            date=day,
            time=time,
            type=kind,
            notes=notes,
        ))
        for p, d, day, time, kind, notes in bookings
    ]

    # Today's follow-up already happened
    store.appointments.update(appointments[2].id, AppointmentPatch(status=AppointmentStatus.COMPLETED))

    logger.info(
        "sample_data_seeded",
        patients=len(patients),
        doctors=len(doctors),
        appointments=len(appointments)
    )
    return True
