"""Async client for the JSON blob hosting service.

Protocol:
- POST {api_base}           create a document, id returned in Location
- GET  {api_base}/{blob_id} read the whole document
- PUT  {api_base}/{blob_id} replace the whole document

The blocking requests calls run in a worker thread so awaiting callers never
block the event loop. Network and decode failures are logged and reported as
an empty document, a missing id, or False.
"""
import asyncio
from typing import Any, List, Optional

import requests

from hms_store.http_client import create_http_session
from hms_store.logging_config import get_logger

logger = get_logger(__name__)


def blob_id_from_location(location: Optional[str]) -> Optional[str]:
    """Last path segment of a Location header, or None."""
    if not location:
        return None
    blob_id = location.rstrip("/").split("/")[-1]
    return blob_id or None


class BlobClient:
    """Whole-document access to blob documents."""

    def __init__(self, api_base: str, session: Optional[requests.Session] = None):
        """
        Args:
            api_base: Service endpoint, e.g. https://jsonblob.com/api/jsonBlob
            session: Preconfigured session (defaults to create_http_session())
        """
        self.api_base = api_base.rstrip("/")
        self.session = session or create_http_session()

    def _url(self, blob_id: str) -> str:
        return f"{self.api_base}/{blob_id}"

    async def create_document(self, data: Any) -> Optional[str]:
        """
        Create a new document holding data.

        Returns:
            New blob id, or None if the service did not provide one
        """
        try:
            response = await asyncio.to_thread(self.session.post, self.api_base, json=data)
        except requests.RequestException as e:
            logger.error("blob_create_failed", error=str(e))
            return None

        blob_id = blob_id_from_location(response.headers.get("Location"))
        if blob_id is None:
            logger.warning("blob_create_missing_location", status=response.status_code)
        return blob_id

    async def fetch(self, blob_id: str) -> List[Any]:
        """
        Read a document expected to hold a JSON array.

        Returns:
            The array, or [] if blob_id is empty or the read failed
        """
        if not blob_id:
            return []

        try:
            response = await asyncio.to_thread(self.session.get, self._url(blob_id))
            data = response.json()
        except requests.RequestException as e:
            logger.error("blob_fetch_failed", blob_id=blob_id, error=str(e))
            return []
        except ValueError as e:
            logger.error("blob_fetch_unparseable", blob_id=blob_id, error=str(e))
            return []

        if not isinstance(data, list):
            logger.warning("blob_not_a_list", blob_id=blob_id, kind=type(data).__name__)
            return []
        return data

    async def replace(self, blob_id: str, data: List[Any]) -> bool:
        """
        Overwrite a document with data.

        Returns:
            True if the service accepted the write
        """
        if not blob_id:
            return False

        try:
            await asyncio.to_thread(self.session.put, self._url(blob_id), json=data)
        except requests.RequestException as e:
            logger.error("blob_replace_failed", blob_id=blob_id, error=str(e))
            return False
        return True

    def close(self):
        self.session.close()
