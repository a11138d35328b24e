"""Store configuration.

One explicitly constructed settings object is passed to every store; nothing
in the package reads configuration at import time.
"""
import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


DEFAULT_BLOB_API_BASE = "https://jsonblob.com/api/jsonBlob"

# Local key/value keys for each collection's JSON array
STORAGE_KEYS = {
    "patients": "hms_patients",
    "doctors": "hms_doctors",
    "appointments": "hms_appointments",
    "medical_records": "hms_medical_records",
    "admin_auth": "hms_admin_auth",
}

SESSION_KEY = "admin_session"

# Every collection that gets its own remote blob document
BLOB_COLLECTIONS = ("patients", "doctors", "appointments", "medical_records", "admin_auth")


def blob_id_key(collection: str) -> str:
    """Local key under which a collection's remote blob id is cached."""
    return f"{collection}_blob_id"


class Backend(str, Enum):
    """Which persistence backend the store facade uses."""
    LOCAL = "local"
    REMOTE = "remote"


class StoreSettings(BaseModel):
    """Settings for the local and remote stores."""
    backend: Backend = Field(default=Backend.LOCAL, description="local or remote")
    storage_url: str = Field(
        default="sqlite:///hms_storage.db",
        description="SQLAlchemy URL of the local key/value store"
    )
    blob_api_base: str = Field(default=DEFAULT_BLOB_API_BASE, description="JSON blob service endpoint")
    request_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds before a blob request is abandoned (None waits forever)"
    )
    max_retries: int = Field(default=0, ge=0, le=10, description="Retries on connection errors")
    session_ttl_hours: int = Field(default=24, gt=0, description="Admin session lifetime")
    admin_username: str = Field(default="AdminRith", min_length=1)
    admin_password: str = Field(default="5569", min_length=1)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "StoreSettings":
        """
        Build settings from HMS_* environment variables.

        Args:
            env_file: Optional .env path (defaults to python-dotenv's lookup)

        Returns:
            StoreSettings with unset variables left at their defaults
        """
        load_dotenv(env_file)

        values = {}
        for field_name in cls.model_fields:
            raw = os.getenv(f"HMS_{field_name.upper()}")
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()

        return cls(**values)
