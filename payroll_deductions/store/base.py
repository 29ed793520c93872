"""
Row store interface.

A spreadsheet-like, schema-less table store: named tables addressed by A1
ranges, with read, write, append and batch-write operations. Implementations
raise ``RowStoreError`` subclasses from ``payroll_deductions.errors``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

Cells = Sequence[Sequence[Any]]


class RowStore(ABC):
    """Abstract tabular row store."""

    @abstractmethod
    def list_tables(self) -> list[str]:
        """Names of all tables."""

    @abstractmethod
    def add_table(self, name: str) -> None:
        """Create an empty table."""

    @abstractmethod
    def read_range(self, a1_range: str) -> list[list[Any]]:
        """
        Read a range. Trailing empty rows and trailing empty cells of each row
        are dropped, as the Sheets API does.
        """

    @abstractmethod
    def update_range(self, a1_range: str, values: Cells) -> None:
        """Overwrite cells starting at the range's top-left corner."""

    @abstractmethod
    def append_rows(self, a1_range: str, values: Cells) -> None:
        """Append rows after the last non-empty row of the range's table."""

    @abstractmethod
    def batch_update(self, data: Sequence[tuple[str, Cells]]) -> None:
        """Apply several (range, values) writes in a single call."""
