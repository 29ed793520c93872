"""
payroll_deductions/audit.py

Decision audit cells for submission rows.

The only audit trail kept is four cells per row, columns O..R of a
"<COMPANY> REQUEST" table:
    status | decision date | decision time | deciding admin

IMPORTANT:
- All matched rows of one report receive the same four values, written in a
  single batch call by the caller.
"""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime
from typing import Iterable

from .mapper import DATE_FORMAT, TIME_FORMAT
from .models import SubmissionRow
from .store.a1 import column_letter, table_range

# Zero-based column of the status cell (O); the audit block is 4 cells wide.
STATUS_COLUMN = [f.name for f in fields(SubmissionRow)].index("status")
AUDIT_WIDTH = 4


def decision_cells(status: str, admin_email: str, now: datetime) -> list[str]:
    """[status, decision date, decision time, admin] for one row."""
    return [status, now.strftime(DATE_FORMAT), now.strftime(TIME_FORMAT), admin_email]


def decision_range(table: str, row_number: int) -> str:
    """A1 range of the audit block on a 1-based sheet row, e.g. 'DMC REQUEST'!O5:R5."""
    first = column_letter(STATUS_COLUMN)
    last = column_letter(STATUS_COLUMN + AUDIT_WIDTH - 1)
    return table_range(table, f"{first}{row_number}:{last}{row_number}")


def decision_updates(
    table: str, row_numbers: Iterable[int], cells: list[str]
) -> list[tuple[str, list[list[str]]]]:
    """Batch payload writing the same audit cells to every listed row."""
    return [(decision_range(table, n), [list(cells)]) for n in row_numbers]
