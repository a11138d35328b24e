"""Blob id cache and startup bootstrap.

Each collection lives in its own remote document. The document ids are
cached in local storage under ``<collection>_blob_id`` so every later session
reuses the same documents.
"""
import asyncio
from typing import Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from hms_store.blob_client import BlobClient
from hms_store.config import BLOB_COLLECTIONS, blob_id_key
from hms_store.logging_config import get_logger
from hms_store.storage import KeyValueStorage

logger = get_logger(__name__)


class BlobRegistry:
    """
    Maps collection names to remote document ids.

    An empty id means the document has not been created yet; reads against
    it return an empty collection and writes fail.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        client: BlobClient,
        collections: Iterable[str] = BLOB_COLLECTIONS
    ):
        self.storage = storage
        self.client = client
        self._ids: Dict[str, str] = {}

        for collection in collections:
            try:
                self._ids[collection] = storage.get_item(blob_id_key(collection)) or ""
            except SQLAlchemyError as e:
                logger.error("blob_id_read_failed", collection=collection, error=str(e))
                self._ids[collection] = ""

    def get(self, collection: str) -> str:
        """Cached blob id for collection ('' if not bootstrapped)."""
        return self._ids.get(collection, "")

    def missing(self) -> List[str]:
        """Collections that still need a remote document."""
        return [name for name, blob_id in self._ids.items() if not blob_id]

    async def bootstrap(self) -> Dict[str, str]:
        """
        Create an empty-array document for every collection without an id.

        Failures are logged per collection; the remaining collections are
        still attempted. Blob ids are cached from a worker thread.

        Returns:
            Mapping of collection name to newly created blob id
        """
        created = {}
        for collection in self.missing():
            blob_id = await self.client.create_document([])
            if not blob_id:
                logger.error("blob_bootstrap_failed", collection=collection)
                continue

            self._ids[collection] = blob_id
            created[collection] = blob_id
            try:
                await asyncio.to_thread(self.storage.set_item, blob_id_key(collection), blob_id)
            except SQLAlchemyError as e:
                logger.error("blob_id_write_failed", collection=collection, error=str(e))
                continue

            logger.info("blob_bootstrapped", collection=collection, blob_id=blob_id)

        return created
