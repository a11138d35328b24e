"""Local and remote persistence for the hospital administration console."""
from hms_store.config import Backend, StoreSettings
from hms_store.local_store import LocalStore
from hms_store.models import InvalidStatusTransition
from hms_store.remote_store import RemoteStore
from hms_store.store import open_store

__all__ = [
    "Backend",
    "InvalidStatusTransition",
    "LocalStore",
    "RemoteStore",
    "StoreSettings",
    "open_store",
]
