import logging
import sys
import uuid
from typing import Optional

from flask import g, has_request_context


def get_request_id() -> Optional[str]:
    """Return the id of the current request, creating it on first use."""
    if not has_request_context():
        return None
    rid = g.get("request_id")
    if rid is None:
        rid = uuid.uuid4().hex[:12]
        g.request_id = rid
    return rid


class RequestIDFilter(logging.Filter):
    """Injects request_id into log records ("-" outside a request)."""
    def filter(self, record):
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(level: str = "INFO"):
    """Configures the root logger with a standard format including request_id."""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers to avoid duplication
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | [%(request_id)s] | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
    )
    handler.setFormatter(formatter)
    handler.addFilter(RequestIDFilter())

    logger.addHandler(handler)

    # The discovery client logs every request at INFO
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)
