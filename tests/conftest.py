"""Shared test fixtures."""
import copy
from unittest.mock import Mock, patch

import pytest
import requests

from hms_store.config import Backend, StoreSettings
from hms_store.local_store import LocalStore
from hms_store.remote_store import RemoteStore
from hms_store.storage import KeyValueStorage

API_BASE = "https://blobs.test/api/jsonBlob"


class FakeBlobService:
    """In-memory stand-in for the JSON blob service, called as Session.request."""

    def __init__(self):
        self.documents = {}
        self.calls = []
        self.unreachable = False
        self.reject_writes = False
        self._counter = 0

    def _response(self, status_code, body=None, headers=None):
        response = Mock()
        response.status_code = status_code
        response.headers = headers or {}
        response.json.return_value = copy.deepcopy(body)
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
        else:
            response.raise_for_status.return_value = None
        return response

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url))
        if self.unreachable:
            raise requests.exceptions.ConnectionError("Connection failed")

        blob_id = url.rstrip("/").rsplit("/", 1)[-1]

        if method == "POST":
            self._counter += 1
            new_id = f"blob-{self._counter}"
            self.documents[new_id] = copy.deepcopy(kwargs.get("json"))
            return self._response(201, headers={"Location": f"{API_BASE}/{new_id}"})

        if blob_id not in self.documents:
            return self._response(404)

        if method == "GET":
            return self._response(200, self.documents[blob_id])

        if method == "PUT":
            if self.reject_writes:
                return self._response(503)
            self.documents[blob_id] = copy.deepcopy(kwargs.get("json"))
            return self._response(200, self.documents[blob_id])

        return self._response(405)

    def calls_for(self, method):
        return [url for m, url in self.calls if m == method]


@pytest.fixture
def settings() -> StoreSettings:
    """Settings with an in-memory database."""
    return StoreSettings(storage_url="sqlite:///:memory:", blob_api_base=API_BASE)


@pytest.fixture
def storage(settings) -> KeyValueStorage:
    return KeyValueStorage(settings.storage_url)


@pytest.fixture
def local_store(settings, storage):
    store = LocalStore(settings, storage=storage)
    yield store
    store.close()


@pytest.fixture
def blob_service():
    """Route every requests call to a FakeBlobService."""
    service = FakeBlobService()
    with patch("requests.Session.request", side_effect=service):
        yield service


@pytest.fixture
def remote_store(settings, storage, blob_service):
    store = RemoteStore(settings.model_copy(update={"backend": Backend.REMOTE}), storage=storage)
    yield store
    store.close()


@pytest.fixture
def patient_payload():
    return {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@email.com",
        "phone": "+1-555-0123",
        "dateOfBirth": "1985-03-15",
        "gender": "male",
        "address": "123 Main St",
        "bloodGroup": "A+",
        "allergies": "Penicillin",
    }


@pytest.fixture
def doctor_payload():
    return {
        "firstName": "Emily",
        "lastName": "Carter",
        "email": "dr.carter@hospital.com",
        "phone": "+1-555-0201",
        "specialization": "General Medicine",
        "qualification": "MD, MBBS",
        "experience": 8,
        "consultationFee": 150,
        "availability": ["Monday"],
    }


@pytest.fixture
def appointment_payload():
    def _create(patient_id: str, doctor_id: str, **overrides):
        payload = {
            "patientId": patient_id,
            "doctorId": doctor_id,
            "date": "2025-03-10",
            "time": "10:00",
            "type": "consultation",
            "notes": "Regular checkup",
        }
        payload.update(overrides)
        return payload
    return _create
