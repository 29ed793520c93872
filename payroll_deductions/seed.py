"""
payroll_deductions/seed.py

Table bootstrap and built-in fallback data.

Rules:
- Safe to run multiple times (idempotent).
- A missing table is created and its header row written.
- Only submission tables ("<COMPANY> REQUEST") get their header row checked on
  every access; a stale or incomplete header is overwritten in place.

NOTE:
- The fallback lists and users below are what the app serves when no
  spreadsheet is configured. They are not written to any real sheet.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .errors import DeductionsError, PermissionDeniedError, TargetMissingError, message_for
from .models import (
    CONTRACTOR_LIST_HEADERS,
    CONTRACTORS_TABLE,
    DATA_HEADERS,
    ROLE_ADMIN,
    ROLE_USER,
    SUBMISSION_HEADERS,
    USER_HEADERS,
    USERS_TABLE,
    Company,
)
from .store.a1 import table_range
from .store.base import RowStore

logger = logging.getLogger(__name__)


FALLBACK_CONTRACTORS = [
    "شركة البناء الحديثة",
    "مقاولات الخليج",
    "هندسة المستقبل",
    "مجموعة التعمير",
]

FALLBACK_CONTRACTS = [
    "عقد مشروع A",
    "عقد مشروع B",
    "عقد صيانة",
]

FALLBACK_WORK_ITEMS = [
    "بند 1",
    "بند 2",
    "بند 3",
]

# email, password, role
FALLBACK_USERS = [
    ("admin@test.com", "123", ROLE_ADMIN),
    ("user@test.com", "123", ROLE_USER),
]


def default_tables() -> list[tuple[str, list[str]]]:
    """Every table the app reads or writes, with its header row."""
    tables = [
        (USERS_TABLE, USER_HEADERS),
        (CONTRACTORS_TABLE, CONTRACTOR_LIST_HEADERS),
    ]
    for company in Company:
        tables.append((company.data_table, DATA_HEADERS))
        tables.append((company.requests_table, SUBMISSION_HEADERS))
    return tables


def is_submissions_table(name: str) -> bool:
    return name.endswith("REQUEST")


def _headers_outdated(current: Sequence[str], required: Sequence[str]) -> bool:
    return len(current) < len(required) or not all(h in current for h in required)


def ensure_table(store: RowStore, name: str, headers: Sequence[str]) -> None:
    """
    Make sure ``name`` exists with a header row.

    Raises DeductionsError(TABLE_INIT_FAILED) when the store refuses; permission
    and target errors keep their own kind so the user sees the right fix.
    """
    try:
        if name not in store.list_tables():
            logger.info('Table "%s" not found. Creating it with headers...', name)
            store.add_table(name)
            store.update_range(table_range(name, "A1"), [list(headers)])
            return

        if is_submissions_table(name):
            rows = store.read_range(table_range(name, "1:1"))
            current = [str(c) for c in rows[0]] if rows else []
            if _headers_outdated(current, headers):
                logger.info('Headers in "%s" are outdated or incomplete. Updating...', name)
                store.update_range(table_range(name, "A1"), [list(headers)])
    except DeductionsError as exc:
        logger.error('Error ensuring table "%s" and headers exist: %s', name, exc)
        if isinstance(exc, (PermissionDeniedError, TargetMissingError)):
            raise
        raise DeductionsError(
            f"{message_for('TABLE_INIT_FAILED')} ({name})", code="TABLE_INIT_FAILED"
        ) from exc


def bootstrap_tables(store: RowStore) -> list[str]:
    """Create or repair every table. Returns the table names checked."""
    names = []
    for name, headers in default_tables():
        ensure_table(store, name, headers)
        names.append(name)
    return names
