"""
A1 range notation helpers.

Supported forms (table names may be quoted):
    'DMC REQUEST'!A2:Z     open-ended rows
    Users!A2:C
    'DMC REQUEST'!1:1      whole row
    'DMC REQUEST'!O5:R5    bounded block
    Contractors!A1         single cell (used as an anchor for writes/appends)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"^([A-Za-z]*)(\d*)$")


def column_index(letters: str) -> int:
    """Zero-based column index for column letters ("A" -> 0, "AA" -> 26)."""
    index = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise ValueError(f"Invalid column letters: {letters!r}")
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index - 1


def column_letter(index: int) -> str:
    """Column letters for a zero-based index (0 -> "A", 26 -> "AA")."""
    if index < 0:
        raise ValueError("Column index must be >= 0")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def quote_table(name: str) -> str:
    return "'" + name.replace("'", "''") + "'"


def table_range(table: str, cells: str) -> str:
    """Build "'<table>'!<cells>"."""
    return f"{quote_table(table)}!{cells}"


@dataclass(frozen=True)
class RangeRef:
    """
    A parsed range. Rows are 1-based like the sheet; columns are 0-based.
    None means "unbounded" in that direction.
    """

    table: str
    start_col: int | None
    start_row: int | None
    end_col: int | None
    end_row: int | None
    single_cell: bool = False


def _split_cell(ref: str) -> tuple[int | None, int | None]:
    match = _CELL_RE.match(ref.strip())
    if not match or not (match.group(1) or match.group(2)):
        raise ValueError(f"Invalid cell reference: {ref!r}")
    letters, digits = match.groups()
    col = column_index(letters) if letters else None
    row = int(digits) if digits else None
    return col, row


def parse_range(a1: str) -> RangeRef:
    if "!" not in a1:
        raise ValueError(f"Range must name a table: {a1!r}")
    table_part, _, cells = a1.rpartition("!")

    table = table_part.strip()
    if len(table) >= 2 and table[0] == "'" and table[-1] == "'":
        table = table[1:-1].replace("''", "'")

    if ":" in cells:
        start, end = cells.split(":", 1)
        start_col, start_row = _split_cell(start)
        end_col, end_row = _split_cell(end)
        return RangeRef(table, start_col, start_row, end_col, end_row)

    col, row = _split_cell(cells)
    return RangeRef(table, col, row, col, row, single_cell=True)
