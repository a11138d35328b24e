"""Synchronous collections persisted in the local key/value store.

Every operation reloads the full collection from its key. Storage and parse
errors are logged and treated as an empty collection; nothing here raises to
the caller except payload validation and illegal status transitions.
"""
from typing import Any, List, Optional, Type

from hms_store.auth import LocalAdminAuthenticator, SessionManager
from hms_store.config import SESSION_KEY, STORAGE_KEYS, StoreSettings
from hms_store.contract import CollectionBase, DoctorLookupMixin, Payload, PatientLookupMixin
from hms_store.logging_config import get_logger
from hms_store.models import (
    AdminAuth,
    AdminAuthCreate,
    Appointment,
    AppointmentCreate,
    AppointmentPatch,
    Doctor,
    DoctorCreate,
    DoctorPatch,
    MedicalRecord,
    MedicalRecordCreate,
    Patient,
    PatientCreate,
    PatientPatch,
    R,
    WireModel,
)
from hms_store.storage import KeyValueStorage

logger = get_logger(__name__)


class LocalCollection(CollectionBase[R]):
    """Read/create/delete over one JSON array in local storage."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str,
        model: Type[R],
        create_model: Type[WireModel],
        patch_model: Optional[Type[WireModel]] = None
    ):
        super().__init__(key, model, create_model, patch_model)
        self.storage = storage
        self.key = key

    def _load(self) -> List[Any]:
        return self._parse(self.storage.read_json(self.key, default=[]))

    def _save(self, entries: List[Any]) -> bool:
        return self.storage.write_json(self.key, self._dump(entries))

    def get_all(self) -> List[R]:
        return self._records(self._load())

    def get_by_id(self, record_id: str) -> Optional[R]:
        return self._find(self._records(self._load()), record_id)

    def get_by_field(self, field: str, value: Any) -> List[R]:
        return self._filter(self._records(self._load()), field, value)

    def create(self, payload: Payload, record_id: Optional[str] = None) -> R:
        """
        Append a new record and persist the collection.

        The record is returned even if the write was lost; the failure is
        only logged.

        Args:
            payload: Create payload (dict or create model)
            record_id: Fixed id instead of a random one

        Raises:
            ValueError: If record_id is already taken
        """
        entries = self._load()
        record = self._new(entries, payload, record_id)
        entries.append(record)
        if not self._save(entries):
            logger.error("create_not_persisted", collection=self.name, record_id=record.id)
        return record

    def delete(self, record_id: str) -> bool:
        entries = self._load()
        remaining = self._without(entries, record_id)
        if len(remaining) == len(entries):
            return False
        if not self._save(remaining):
            logger.error("delete_not_persisted", collection=self.name, record_id=record_id)
        return True


class LocalMutableCollection(LocalCollection[R]):
    """Local collection whose records can be patched."""

    def update(self, record_id: str, patch: Payload) -> Optional[R]:
        """
        Merge patch into the record with record_id.

        Returns:
            Merged record, or None if record_id is not present

        Raises:
            InvalidStatusTransition: If an appointment would leave a terminal status
        """
        entries = self._load()
        applied = self._apply(entries, record_id, patch)
        if applied is None:
            return None

        index, merged = applied
        entries[index] = merged
        if not self._save(entries):
            logger.error("update_not_persisted", collection=self.name, record_id=record_id)
        return merged


class LocalAppointmentCollection(PatientLookupMixin, DoctorLookupMixin, LocalMutableCollection[Appointment]):
    pass


class LocalMedicalRecordCollection(PatientLookupMixin, LocalCollection[MedicalRecord]):
    """Medical records are immutable: create, read and delete only."""
    pass


class LocalStore:
    """
    All collections backed by one local key/value store.

    Usage:
        store = LocalStore(StoreSettings(storage_url="sqlite:///hms.db"))
        patient = store.patients.create({...})
    """

    def __init__(self, settings: StoreSettings, storage: Optional[KeyValueStorage] = None):
        self.settings = settings
        self.storage = storage or KeyValueStorage(settings.storage_url)

        self.patients = LocalMutableCollection(
            self.storage, STORAGE_KEYS["patients"], Patient, PatientCreate, PatientPatch
        )
        self.doctors = LocalMutableCollection(
            self.storage, STORAGE_KEYS["doctors"], Doctor, DoctorCreate, DoctorPatch
        )
        self.appointments = LocalAppointmentCollection(
            self.storage, STORAGE_KEYS["appointments"], Appointment, AppointmentCreate, AppointmentPatch
        )
        self.medical_records = LocalMedicalRecordCollection(
            self.storage, STORAGE_KEYS["medical_records"], MedicalRecord, MedicalRecordCreate
        )
        self.admin_auth = LocalCollection(
            self.storage, STORAGE_KEYS["admin_auth"], AdminAuth, AdminAuthCreate
        )

        self.sessions = SessionManager(self.storage, SESSION_KEY, ttl_hours=settings.session_ttl_hours)
        self.auth = LocalAdminAuthenticator(self.admin_auth, self.sessions, settings)

    def close(self):
        """Release database connections."""
        self.storage.engine.dispose()
