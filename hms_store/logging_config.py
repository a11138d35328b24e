"""JSON event logging for the store layer.

Every module logs through ``get_logger(__name__)`` with an event name and
keyword fields (``collection``, ``record_id``, ``blob_id``...). Records go to
the standard library root logger so host applications and pytest's caplog
see them.
"""
import logging
import sys
from typing import IO, Optional

import structlog

STORE_PROCESSORS = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(sort_keys=True),
]


def setup_structured_logging(log_level: str = "INFO", stream: Optional[IO[str]] = None):
    """
    Render store events as one JSON object per line.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream when no root handler exists yet (default: stdout)
    """
    structlog.configure(
        processors=STORE_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=stream or sys.stdout)
    logging.getLogger().setLevel(log_level.upper())


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
