"""Persistent key/value storage on the local device.

Pattern: Thin wrapper around SQLAlchemy exposing whole-value get/put by key.
There is no partial-update primitive; callers read and write entire values.
"""
import json
from typing import Any, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hms_store.database_models import Base, StorageEntry
from hms_store.logging_config import get_logger

logger = get_logger(__name__)


class KeyValueStorage:
    """
    String-valued key/value store backed by a single SQLite table.

    Responsibilities:
    - Raw get/set/remove of string values
    - JSON helpers that never raise on unreadable data
    """

    def __init__(self, database_url: str):
        """
        Initialize storage with database connection.

        Args:
            database_url: SQLAlchemy connection string
        """
        engine_kwargs = {"pool_pre_ping": True}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection so every thread sees the same in-memory DB
            engine_kwargs = {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }

        self.engine = create_engine(database_url, **engine_kwargs)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string for key, or None if absent."""
        with self.SessionLocal() as db:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        with self.SessionLocal() as db:
            entry = db.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                db.add(StorageEntry(key=key, value=value))
            db.commit()

    def remove_item(self, key: str) -> None:
        """Delete key if present."""
        with self.SessionLocal() as db:
            entry = db.get(StorageEntry, key)
            if entry:
                db.delete(entry)
                db.commit()

    def keys(self) -> List[str]:
        """All stored keys."""
        with self.SessionLocal() as db:
            return [row.key for row in db.query(StorageEntry.key).all()]

    def clear(self) -> None:
        """Delete every key."""
        with self.SessionLocal() as db:
            db.query(StorageEntry).delete()
            db.commit()

    def read_json(self, key: str, default: Any = None) -> Any:
        """
        Read and decode a JSON value.

        Returns default when the key is absent, the database is unavailable,
        or the stored text is not valid JSON.
        """
        try:
            raw = self.get_item(key)
        except SQLAlchemyError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            return default

        if raw is None:
            return default

        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("storage_value_unparseable", key=key, error=str(e))
            return default

    def write_json(self, key: str, value: Any) -> bool:
        """
        Encode and store a JSON value.

        Returns:
            True if the value was written, False if storage rejected it
        """
        try:
            self.set_item(key, json.dumps(value))
            return True
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            return False
