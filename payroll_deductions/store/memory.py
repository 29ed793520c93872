"""
In-process row store.

Used as the fallback store when no spreadsheet is configured, and by the test
suite. State lives in this object only: it is lost when the server process
exits and is not shared between processes or workers.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..errors import NotFoundError
from ..models import cell_text
from .a1 import RangeRef, parse_range
from .base import Cells, RowStore


def _trim(row: list[str]) -> list[str]:
    end = len(row)
    while end and row[end - 1] == "":
        end -= 1
    return row[:end]


class InMemoryRowStore(RowStore):
    """Tables are lists of rows of text cells (row 1 is index 0)."""

    def __init__(self, tables: dict[str, Cells] | None = None):
        self._tables: dict[str, list[list[str]]] = {}
        for name, rows in (tables or {}).items():
            self._tables[name] = [[cell_text(c) for c in row] for row in rows]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _table(self, name: str) -> list[list[str]]:
        try:
            return self._tables[name]
        except KeyError:
            raise NotFoundError(f"Table not found: {name}") from None

    def _write(self, ref: RangeRef, values: Cells) -> None:
        table = self._table(ref.table)
        first_row = (ref.start_row or 1) - 1
        first_col = ref.start_col or 0

        for offset, source in enumerate(values):
            row_idx = first_row + offset
            while len(table) <= row_idx:
                table.append([])
            row = table[row_idx]
            needed = first_col + len(source)
            if len(row) < needed:
                row.extend([""] * (needed - len(row)))
            for col_offset, value in enumerate(source):
                row[first_col + col_offset] = cell_text(value)

    # ------------------------------------------------------------------
    # RowStore
    # ------------------------------------------------------------------
    def list_tables(self) -> list[str]:
        return list(self._tables)

    def add_table(self, name: str) -> None:
        self._tables.setdefault(name, [])

    def read_range(self, a1_range: str) -> list[list[Any]]:
        ref = parse_range(a1_range)
        table = self._table(ref.table)

        first_row = (ref.start_row or 1) - 1
        last_row = ref.end_row if ref.end_row is not None else len(table)
        first_col = ref.start_col or 0
        last_col = ref.end_col

        result = []
        for row in table[first_row:last_row]:
            stop = None if last_col is None else last_col + 1
            result.append(_trim(list(row[first_col:stop])))

        while result and not result[-1]:
            result.pop()
        return result

    def update_range(self, a1_range: str, values: Cells) -> None:
        self._write(parse_range(a1_range), values)

    def append_rows(self, a1_range: str, values: Cells) -> None:
        ref = parse_range(a1_range)
        table = self._table(ref.table)

        last_used = len(table)
        while last_used and not _trim(table[last_used - 1]):
            last_used -= 1

        anchor = RangeRef(ref.table, ref.start_col or 0, last_used + 1, None, None)
        self._write(anchor, values)

    def batch_update(self, data: Sequence[tuple[str, Cells]]) -> None:
        refs = [(parse_range(a1_range), values) for a1_range, values in data]
        for ref, _ in refs:
            self._table(ref.table)
        for ref, values in refs:
            self._write(ref, values)

    def rows(self, name: str) -> list[list[str]]:
        """Copy of a table's raw rows (header included)."""
        return [list(row) for row in self._table(name)]
