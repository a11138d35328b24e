"""Backend-independent pieces of the collection contract.

Both the local and the remote collections load a whole JSON array, change it
in memory and write the whole array back. Entries that fail validation ride
along untouched. Everything here is pure: parsing, lookup, stamping new
records and merging patches.
"""
from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, Union

from pydantic import ValidationError

from hms_store.logging_config import get_logger
from hms_store.models import R, StoredRecord, WireModel, build_record, merge_patch, utc_now_iso

logger = get_logger(__name__)

Payload = Union[WireModel, Mapping[str, Any]]


class CollectionBase(Generic[R]):
    """Shared helpers for one entity collection."""

    def __init__(
        self,
        name: str,
        model: Type[R],
        create_model: Type[WireModel],
        patch_model: Optional[Type[WireModel]] = None
    ):
        self.name = name
        self.model = model
        self.create_model = create_model
        self.patch_model = patch_model

    def __repr__(self):
        return f"<{type(self).__name__}(name={self.name})>"

    def _parse(self, raw: Any) -> List[Any]:
        """
        Decode a stored JSON array into entries.

        Items that validate become records. Items that do not are kept as the
        raw JSON value so a later write-back stores them unchanged; readers
        never see them (use ``_records``).
        """
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("collection_not_a_list", collection=self.name, kind=type(raw).__name__)
            return []

        entries = []
        for item in raw:
            try:
                entries.append(self.model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "record_unreadable",
                    collection=self.name,
                    record_id=_entry_id(item),
                    errors=e.error_count()
                )
                entries.append(item)
        return entries

    @staticmethod
    def _records(entries: List[Any]) -> List[R]:
        return [entry for entry in entries if isinstance(entry, StoredRecord)]

    @staticmethod
    def _dump(entries: List[Any]) -> List[Any]:
        return [entry.to_wire() if isinstance(entry, StoredRecord) else entry for entry in entries]

    @staticmethod
    def _find(records: List[R], record_id: str) -> Optional[R]:
        return next((record for record in records if record.id == record_id), None)

    @staticmethod
    def _filter(records: List[R], field: str, value: Any) -> List[R]:
        return [record for record in records if getattr(record, field, None) == value]

    def _coerce(self, payload: Payload, model: Type[WireModel]) -> WireModel:
        if isinstance(payload, model):
            return payload
        if isinstance(payload, WireModel):
            payload = payload.model_dump(exclude_unset=True)
        return model.model_validate(payload)

    def _new(self, entries: List[Any], payload: Payload, record_id: Optional[str] = None) -> R:
        """
        Validate a create payload and stamp id/timestamps.

        Raises:
            ValueError: If record_id is given and already taken in entries
        """
        if record_id is not None and any(_entry_id(entry) == record_id for entry in entries):
            raise ValueError(f"{self.name} already holds a record with id {record_id}")
        return build_record(
            self.model, self._coerce(payload, self.create_model), utc_now_iso(), record_id=record_id
        )

    def _apply(self, entries: List[Any], record_id: str, patch: Payload) -> Optional[Tuple[int, R]]:
        """
        Merge a patch into the matching record.

        Returns:
            (index into entries, merged record), or None when record_id is not present
        """
        index = next(
            (i for i, entry in enumerate(entries)
             if isinstance(entry, StoredRecord) and entry.id == record_id),
            None
        )
        if index is None:
            return None
        merged = merge_patch(entries[index], self._coerce(patch, self.patch_model), utc_now_iso())
        return index, merged

    @staticmethod
    def _without(entries: List[Any], record_id: str) -> List[Any]:
        return [entry for entry in entries if _entry_id(entry) != record_id]


def _entry_id(entry: Any) -> Optional[str]:
    if isinstance(entry, StoredRecord):
        return entry.id
    if isinstance(entry, dict):
        return entry.get("id")
    return None


class PatientLookupMixin:
    """Adds ``get_by_patient_id`` on top of ``get_by_field``."""

    def get_by_patient_id(self, patient_id: str):
        return self.get_by_field("patient_id", patient_id)


class DoctorLookupMixin:
    """Adds ``get_by_doctor_id`` on top of ``get_by_field``."""

    def get_by_doctor_id(self, doctor_id: str):
        return self.get_by_field("doctor_id", doctor_id)
