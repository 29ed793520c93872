"""
Row store package.

build_row_store() returns None when the spreadsheet is not configured; the
service layer then runs in fallback mode against FALLBACK_STORE.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from .base import RowStore
from .memory import InMemoryRowStore

logger = logging.getLogger(__name__)

# Process-wide fallback store. Not persistent, not shared across instances.
FALLBACK_STORE = InMemoryRowStore()


def build_row_store(config: Mapping[str, Any]) -> RowStore | None:
    """Create the Google Sheets store from app config, or None for fallback mode."""
    sheet_id = config.get("GOOGLE_SHEET_ID")
    raw_key = config.get("GOOGLE_SERVICE_ACCOUNT_KEY")

    if not sheet_id or not raw_key:
        logger.warning(
            "Google Sheets API not configured. Check GOOGLE_SHEET_ID and "
            "GOOGLE_SERVICE_ACCOUNT_KEY environment variables. Using in-process fallback store."
        )
        return None

    try:
        info = json.loads(raw_key)
    except ValueError:
        logger.error("GOOGLE_SERVICE_ACCOUNT_KEY is not valid JSON. Using in-process fallback store.")
        return None

    # Google client stack is only loaded when a sheet is configured
    from .sheets import GoogleSheetsRowStore

    try:
        return GoogleSheetsRowStore.from_service_account_info(sheet_id, info)
    except (ValueError, KeyError) as exc:
        logger.error("Failed to initialize Google Sheets API: %s. Using in-process fallback store.", exc)
        return None


__all__ = ["FALLBACK_STORE", "InMemoryRowStore", "RowStore", "build_row_store"]
