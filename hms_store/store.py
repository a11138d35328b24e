"""Pick a store implementation from settings."""
from typing import Optional, Union

from hms_store.config import Backend, StoreSettings
from hms_store.local_store import LocalStore
from hms_store.logging_config import get_logger, setup_structured_logging
from hms_store.remote_store import RemoteStore

logger = get_logger(__name__)


def open_store(settings: Optional[StoreSettings] = None) -> Union[LocalStore, RemoteStore]:
    """
    Build the store named by settings.backend.

    Args:
        settings: Explicit settings (defaults to StoreSettings.from_env())

    Returns:
        LocalStore or RemoteStore. A RemoteStore still needs start() to be
        called from a running event loop to bootstrap its documents.
    """
    settings = settings or StoreSettings.from_env()
    setup_structured_logging(settings.log_level)

    if settings.backend == Backend.REMOTE:
        store = RemoteStore(settings)
    else:
        store = LocalStore(settings)

    logger.info("store_opened", backend=settings.backend.value)
    return store
