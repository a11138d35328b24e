"""Test settings loading."""
import os

import pytest
from pydantic import ValidationError

from hms_store.config import (
    BLOB_COLLECTIONS,
    DEFAULT_BLOB_API_BASE,
    Backend,
    StoreSettings,
    blob_id_key,
)
from hms_store.local_store import LocalStore
from hms_store.remote_store import RemoteStore
from hms_store.store import open_store


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No HMS_* variables before or after the test."""
    names = [f"HMS_{name.upper()}" for name in StoreSettings.model_fields]
    for name in names:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    # load_dotenv writes straight to os.environ
    for name in names:
        os.environ.pop(name, None)


def test_defaults(clean_env):
    settings = StoreSettings.from_env()

    assert settings.backend == Backend.LOCAL
    assert settings.blob_api_base == DEFAULT_BLOB_API_BASE
    assert settings.request_timeout is None
    assert settings.max_retries == 0
    assert settings.session_ttl_hours == 24
    assert settings.admin_username == "AdminRith"


def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("HMS_BACKEND", "remote")
    monkeypatch.setenv("HMS_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("HMS_SESSION_TTL_HOURS", "8")

    settings = StoreSettings.from_env()

    assert settings.backend == Backend.REMOTE
    assert settings.request_timeout == 2.5
    assert settings.session_ttl_hours == 8


def test_env_file(clean_env):
    env_file = clean_env / "hms.env"
    env_file.write_text("HMS_ADMIN_USERNAME=ops\nHMS_MAX_RETRIES=2\n")

    settings = StoreSettings.from_env(str(env_file))

    assert settings.admin_username == "ops"
    assert settings.max_retries == 2


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        StoreSettings(backend="cloud")
    with pytest.raises(ValidationError):
        StoreSettings(session_ttl_hours=0)


def test_blob_id_keys():
    assert [blob_id_key(c) for c in BLOB_COLLECTIONS] == [
        "patients_blob_id",
        "doctors_blob_id",
        "appointments_blob_id",
        "medical_records_blob_id",
        "admin_auth_blob_id",
    ]


def test_open_store_picks_backend():
    local = open_store(StoreSettings(storage_url="sqlite:///:memory:"))
    remote = open_store(StoreSettings(storage_url="sqlite:///:memory:", backend="remote"))

    assert isinstance(local, LocalStore)
    assert isinstance(remote, RemoteStore)

    local.close()
    remote.close()
