"""Tests for record models, stamping and patch merging."""
import pytest
from pydantic import ValidationError

from hms_store.models import (
    Appointment,
    AppointmentCreate,
    AppointmentPatch,
    AppointmentStatus,
    InvalidStatusTransition,
    MedicalRecord,
    MedicalRecordCreate,
    Patient,
    PatientCreate,
    PatientPatch,
    build_record,
    generate_id,
    merge_patch,
    utc_now_iso,
)


def test_generate_id_is_unique_under_rapid_calls():
    """Ids come from a random generator, not the clock."""
    ids = {generate_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_utc_now_iso_format():
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2025-01-01T10:00:00.000Z")


def test_build_record_stamps_id_and_timestamps(patient_payload):
    payload = PatientCreate.model_validate(patient_payload)

    patient = build_record(Patient, payload, "2025-01-01T10:00:00.000Z")

    assert patient.id
    assert patient.created_at == patient.updated_at == "2025-01-01T10:00:00.000Z"
    assert patient.first_name == "John"


def test_build_record_without_updated_at():
    """Medical records only carry created_at."""
    payload = MedicalRecordCreate(
        patient_id="p1", doctor_id="d1", appointment_id="a1", diagnosis="Flu"
    )

    record = build_record(MedicalRecord, payload, "2025-01-01T10:00:00.000Z")

    assert "updatedAt" not in record.to_wire()
    assert record.vitals.heart_rate == ""


def test_wire_format_uses_camel_case(patient_payload):
    patient = build_record(Patient, PatientCreate.model_validate(patient_payload), utc_now_iso())

    wire = patient.to_wire()

    assert wire["firstName"] == "John"
    assert wire["dateOfBirth"] == "1985-03-15"
    assert wire["gender"] == "male"
    assert "first_name" not in wire


def test_create_payload_requires_fields():
    """Missing required fields are rejected."""
    with pytest.raises(ValidationError):
        PatientCreate.model_validate({"firstName": "John"})


def test_appointment_create_ignores_status():
    """New appointments always start scheduled."""
    payload = AppointmentCreate.model_validate({
        "patientId": "p1", "doctorId": "d1", "date": "2025-03-10",
        "time": "10:00", "type": "consultation", "status": "completed",
    })

    appointment = build_record(Appointment, payload, utc_now_iso())

    assert appointment.status == AppointmentStatus.SCHEDULED


class TestMergePatch:
    """Test patch precedence and timestamp handling."""

    @pytest.fixture
    def patient(self, patient_payload):
        return build_record(Patient, PatientCreate.model_validate(patient_payload), "2025-01-01T10:00:00.000Z")

    def test_patch_overrides_only_set_fields(self, patient):
        merged = merge_patch(patient, PatientPatch(phone="+1-555-9999"), "2025-01-02T10:00:00.000Z")

        assert merged.phone == "+1-555-9999"
        assert merged.updated_at == "2025-01-02T10:00:00.000Z"
        unchanged = {k: v for k, v in merged.model_dump().items() if k not in ("phone", "updated_at")}
        expected = {k: v for k, v in patient.model_dump().items() if k not in ("phone", "updated_at")}
        assert unchanged == expected

    def test_merge_does_not_mutate_base(self, patient):
        merge_patch(patient, PatientPatch(phone="+1-555-9999"), "2025-01-02T10:00:00.000Z")

        assert patient.phone == "+1-555-0123"

    def test_updated_at_not_client_overridable(self, patient):
        patch = PatientPatch.model_validate({"updatedAt": "1999-01-01T00:00:00.000Z", "id": "hijack"})

        merged = merge_patch(patient, patch, "2025-01-02T10:00:00.000Z")

        assert merged.updated_at == "2025-01-02T10:00:00.000Z"
        assert merged.id == patient.id

    def test_none_values_leave_field_unchanged(self, patient):
        merged = merge_patch(patient, PatientPatch(email=None), "2025-01-02T10:00:00.000Z")

        assert merged.email == patient.email

    def test_created_at_not_after_updated_at(self, patient):
        merged = merge_patch(patient, PatientPatch(allergies="None"), utc_now_iso())

        assert merged.created_at <= merged.updated_at


class TestStatusTransitions:
    """Appointment status only moves forward out of scheduled."""

    @pytest.fixture
    def appointment(self):
        payload = AppointmentCreate(
            patient_id="p1", doctor_id="d1", date="2025-03-10", time="10:00", type="consultation"
        )
        return build_record(Appointment, payload, utc_now_iso())

    @pytest.mark.parametrize("status", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED])
    def test_scheduled_can_finish(self, appointment, status):
        merged = merge_patch(appointment, AppointmentPatch(status=status), utc_now_iso())
        assert merged.status == status

    @pytest.mark.parametrize("terminal", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED])
    def test_terminal_cannot_reopen(self, appointment, terminal):
        finished = merge_patch(appointment, AppointmentPatch(status=terminal), utc_now_iso())

        with pytest.raises(InvalidStatusTransition):
            merge_patch(finished, AppointmentPatch(status=AppointmentStatus.SCHEDULED), utc_now_iso())

    def test_completed_cannot_become_cancelled(self, appointment):
        finished = merge_patch(appointment, AppointmentPatch(status="completed"), utc_now_iso())

        with pytest.raises(InvalidStatusTransition):
            merge_patch(finished, AppointmentPatch(status="cancelled"), utc_now_iso())

    def test_terminal_record_can_still_edit_notes(self, appointment):
        finished = merge_patch(appointment, AppointmentPatch(status="completed"), utc_now_iso())

        merged = merge_patch(finished, AppointmentPatch(notes="Follow up in 6 months"), utc_now_iso())

        assert merged.notes == "Follow up in 6 months"
        assert merged.status == AppointmentStatus.COMPLETED
