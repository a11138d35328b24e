"""Async collections persisted as remote JSON blob documents.

Same contract as the local collections, except every method is a coroutine
and a rejected write is reported to the caller: ``create``/``update`` return
None and ``delete`` returns False.
"""
import asyncio
from typing import Any, List, Optional, Type

from hms_store.auth import RemoteAdminAuthenticator, SessionManager
from hms_store.blob_client import BlobClient
from hms_store.blob_registry import BlobRegistry
from hms_store.config import SESSION_KEY, StoreSettings
from hms_store.contract import CollectionBase, DoctorLookupMixin, Payload, PatientLookupMixin
from hms_store.http_client import create_http_session
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


class RemoteCollection(CollectionBase[R]):
    """Read/create/delete over one remote blob document."""

    def __init__(
        self,
        client: BlobClient,
        registry: BlobRegistry,
        collection: str,
        model: Type[R],
        create_model: Type[WireModel],
        patch_model: Optional[Type[WireModel]] = None
    ):
        super().__init__(collection, model, create_model, patch_model)
        self.client = client
        self.registry = registry

    @property
    def blob_id(self) -> str:
        return self.registry.get(self.name)

    async def _load(self) -> List[Any]:
        return self._parse(await self.client.fetch(self.blob_id))

    async def _save(self, entries: List[Any]) -> bool:
        return await self.client.replace(self.blob_id, self._dump(entries))

    async def get_all(self) -> List[R]:
        return self._records(await self._load())

    async def get_by_id(self, record_id: str) -> Optional[R]:
        return self._find(self._records(await self._load()), record_id)

    async def get_by_field(self, field: str, value: Any) -> List[R]:
        return self._filter(self._records(await self._load()), field, value)

    async def create(self, payload: Payload, record_id: Optional[str] = None) -> Optional[R]:
        """
        Append a new record and write the document back.

        Args:
            payload: Create payload (dict or create model)
            record_id: Fixed id instead of a random one

        Returns:
            The new record, or None if the write was rejected

        Raises:
            ValueError: If record_id is already taken
        """
        entries = await self._load()
        record = self._new(entries, payload, record_id)
        entries.append(record)
        if not await self._save(entries):
            logger.error("create_not_persisted", collection=self.name, record_id=record.id)
            return None
        return record

    async def delete(self, record_id: str) -> bool:
        entries = await self._load()
        remaining = self._without(entries, record_id)
        if len(remaining) == len(entries):
            return False
        return await self._save(remaining)


class RemoteMutableCollection(RemoteCollection[R]):
    """Remote collection whose records can be patched."""

    async def update(self, record_id: str, patch: Payload) -> Optional[R]:
        """
        Merge patch into the record with record_id.

        Returns:
            Merged record, or None if not found or the write was rejected

        Raises:
            InvalidStatusTransition: If an appointment would leave a terminal status
        """
        entries = await self._load()
        applied = self._apply(entries, record_id, patch)
        if applied is None:
            return None

        index, merged = applied
        entries[index] = merged
        if not await self._save(entries):
            logger.error("update_not_persisted", collection=self.name, record_id=record_id)
            return None
        return merged


class RemoteAppointmentCollection(PatientLookupMixin, DoctorLookupMixin, RemoteMutableCollection[Appointment]):
    pass


class RemoteMedicalRecordCollection(PatientLookupMixin, RemoteCollection[MedicalRecord]):
    """Medical records are immutable: create, read and delete only."""
    pass


class RemoteStore:
    """
    All collections backed by remote blob documents.

    Blob ids and the admin session are cached in local storage.

    Usage:
        store = RemoteStore(StoreSettings(backend="remote"))
        store.start()  # fire-and-forget bootstrap, needs a running loop
        patients = await store.patients.get_all()
    """

    def __init__(
        self,
        settings: StoreSettings,
        storage: Optional[KeyValueStorage] = None,
        client: Optional[BlobClient] = None
    ):
        self.settings = settings
        self.storage = storage or KeyValueStorage(settings.storage_url)
        self.client = client or BlobClient(
            settings.blob_api_base,
            session=create_http_session(
                max_retries=settings.max_retries,
                timeout=settings.request_timeout
            )
        )
        self.registry = BlobRegistry(self.storage, self.client)
        self._bootstrap_task: Optional[asyncio.Task] = None

        self.patients = RemoteMutableCollection(
            self.client, self.registry, "patients", Patient, PatientCreate, PatientPatch
        )
        self.doctors = RemoteMutableCollection(
            self.client, self.registry, "doctors", Doctor, DoctorCreate, DoctorPatch
        )
        self.appointments = RemoteAppointmentCollection(
            self.client, self.registry, "appointments", Appointment, AppointmentCreate, AppointmentPatch
        )
        self.medical_records = RemoteMedicalRecordCollection(
            self.client, self.registry, "medical_records", MedicalRecord, MedicalRecordCreate
        )
        self.admin_auth = RemoteCollection(
            self.client, self.registry, "admin_auth", AdminAuth, AdminAuthCreate
        )

        self.sessions = SessionManager(self.storage, SESSION_KEY, ttl_hours=settings.session_ttl_hours)
        self.auth = RemoteAdminAuthenticator(self.admin_auth, self.sessions, settings)

    def start(self) -> asyncio.Task:
        """
        Schedule blob bootstrap without waiting for it.

        Reads issued before the task finishes see an empty collection.

        Returns:
            The bootstrap task (await it to wait for completion)
        """
        if self._bootstrap_task is None:
            self._bootstrap_task = asyncio.get_running_loop().create_task(self.registry.bootstrap())
        return self._bootstrap_task

    def close(self):
        """Close HTTP connections and release database connections."""
        self.client.close()
        self.storage.engine.dispose()
