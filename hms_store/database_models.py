"""SQLAlchemy models for the local key/value store."""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class StorageEntry(Base):
    """One key holding one serialized value (a JSON array or object)."""
    __tablename__ = "storage_entries"

    key = Column(String(255), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<StorageEntry(key={self.key}, size={len(self.value or '')})>"
