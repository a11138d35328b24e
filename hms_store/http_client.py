"""HTTP session for the JSON blob service.

Pattern: requests.Session with connection pooling and an optional tenacity
retry wrapper. The blob store recovers from failures by treating them as an
empty collection, so by default nothing is retried and no timeout is set;
both are opt-in through StoreSettings.
"""
import logging
from typing import Callable, Optional

import requests
from requests.adapters import HTTPAdapter
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def _with_retry(send: Callable, max_retries: int, timeout: Optional[float]) -> Callable:
    """Wrap a session method with connection-level retries and raise_for_status."""

    @retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout
        )),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def send_with_retry(*args, **kwargs):
        kwargs.setdefault('timeout', timeout)
        response = send(*args, **kwargs)
        response.raise_for_status()
        return response

    return send_with_retry


def create_http_session(
    max_retries: int = 0,
    backoff_factor: float = 1.0,
    timeout: Optional[float] = None
) -> requests.Session:
    """
    Create HTTP session for blob requests.

    Args:
        max_retries: Retry attempts on connection errors and timeouts, and
            separately on 429/5xx responses to GET/PUT (default: 0)
        backoff_factor: Backoff multiplier for status retries
        timeout: Request timeout in seconds (default: None, wait forever)

    Returns:
        requests.Session whose get/post/put raise on non-2xx responses
    """
    session = requests.Session()
    session.headers.update(JSON_HEADERS)

    # Connection and read failures are retried by the tenacity wrapper only;
    # the adapter retries GET/PUT on retryable status codes.
    retry_strategy = Retry(
        total=max_retries,
        connect=0,
        read=0,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET", "PUT"],
        raise_on_status=False,
    )

    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=5,
        pool_maxsize=5,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.get = _with_retry(session.get, max_retries, timeout)
    session.post = _with_retry(session.post, max_retries, timeout)
    session.put = _with_retry(session.put, max_retries, timeout)

    return session
