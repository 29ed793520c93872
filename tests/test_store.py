import pytest

from payroll_deductions.errors import NotFoundError
from payroll_deductions.store import build_row_store
from payroll_deductions.store.a1 import (
    column_index,
    column_letter,
    parse_range,
    table_range,
)
from payroll_deductions.store.memory import InMemoryRowStore


def test_column_letters():
    assert column_index("A") == 0
    assert column_index("r") == 17
    assert column_index("AA") == 26
    assert column_letter(0) == "A"
    assert column_letter(14) == "O"
    assert column_letter(26) == "AA"
    with pytest.raises(ValueError):
        column_letter(-1)


def test_table_range_quotes_names():
    assert table_range("DMC REQUEST", "A2:Z") == "'DMC REQUEST'!A2:Z"
    assert table_range("O'Neil", "A1") == "'O''Neil'!A1"


def test_parse_range_forms():
    ref = parse_range("'DMC REQUEST'!A2:Z")
    assert (ref.table, ref.start_col, ref.start_row, ref.end_col, ref.end_row) == ("DMC REQUEST", 0, 2, 25, None)

    row = parse_range("'DMC REQUEST'!1:1")
    assert (row.start_col, row.start_row, row.end_col, row.end_row) == (None, 1, None, 1)

    cell = parse_range("Users!A1")
    assert cell.single_cell and cell.table == "Users"

    with pytest.raises(ValueError):
        parse_range("A1:B2")


def test_read_range_trims_like_sheets():
    store = InMemoryRowStore({"T": [["h1", "h2"], ["a", "", ""], ["", ""], []]})
    assert store.read_range("'T'!A1:Z") == [["h1", "h2"], ["a"]]
    assert store.read_range("'T'!B1:B") == [["h2"]]


def test_missing_table_raises_not_found():
    store = InMemoryRowStore()
    with pytest.raises(NotFoundError):
        store.read_range("'Nope'!A1:Z")


def test_append_after_last_used_row():
    store = InMemoryRowStore({"T": [["h"], ["1"], [""]]})
    store.append_rows("'T'!A1", [["2", 3.0], ["4", 5.5]])
    assert store.rows("T") == [["h"], ["1"], ["2", "3"], ["4", "5.5"]]


def test_update_range_writes_block():
    store = InMemoryRowStore({"T": [["a", "b"]]})
    store.update_range("'T'!C3", [["x", "y"]])
    assert store.rows("T") == [["a", "b"], [], ["", "", "x", "y"]]


def test_batch_update_checks_every_table_first():
    store = InMemoryRowStore({"T": [["a"]]})
    with pytest.raises(NotFoundError):
        store.batch_update([("'T'!A1", [["changed"]]), ("'Missing'!A1", [["x"]])])
    assert store.rows("T") == [["a"]]


def test_add_table_is_idempotent():
    store = InMemoryRowStore({"T": [["a"]]})
    store.add_table("T")
    store.add_table("U")
    assert store.list_tables() == ["T", "U"]
    assert store.rows("T") == [["a"]]


def test_build_row_store_fallback_without_settings():
    assert build_row_store({}) is None
    assert build_row_store({"GOOGLE_SHEET_ID": "abc"}) is None


def test_build_row_store_fallback_on_invalid_key():
    assert build_row_store({"GOOGLE_SHEET_ID": "abc", "GOOGLE_SERVICE_ACCOUNT_KEY": "{not json"}) is None
