"""Unit tests for worksheet access and cell coercion."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

import pytest

from sheetmap import CellValueError, convert_value, get_cell_value, get_last_row_num, get_row
from sheetmap.cells import RowCursor, SheetRow


class Status(Enum):
    OPEN = "open"
    CLOSED = "closed"


def test_get_row_is_one_based_and_bounded(make_sheet) -> None:
    sheet = make_sheet([["a", "b"], ["c"]])

    assert get_row(sheet, 1).values[:2] == ("a", "b")
    assert get_row(sheet, 2).index == 2
    assert get_row(sheet, 0) is None
    assert get_row(sheet, 3) is None


def test_last_row_num_is_zero_based(make_sheet) -> None:
    assert get_last_row_num(make_sheet([["a"], ["b"], ["c"]])) == 2
    assert get_last_row_num(make_sheet([])) == -1


def test_row_length_ignores_trailing_empty_cells() -> None:
    assert SheetRow(index=1, values=("a", None, "c", None, None)).length == 3
    assert SheetRow(index=1, values=(None, None)).length == 0


def test_row_cursor_only_moves_forward(make_sheet) -> None:
    sheet = make_sheet([["r1"], ["r2"], ["r3"], ["r4"]])
    cursor = RowCursor(sheet)

    assert cursor.get_row(2).value(1) == "r2"
    assert cursor.get_row(2).value(1) == "r2"
    assert cursor.get_row(4).value(1) == "r4"
    assert cursor.get_row(3) is None
    assert cursor.get_row(9) is None


def test_get_cell_value_reads_from_sheet_or_row(make_sheet) -> None:
    sheet = make_sheet([["x", "42"]])

    assert get_cell_value(sheet, int, 1, 2) == 42
    assert get_cell_value(get_row(sheet, 1), str, 1, 1) == "x"
    assert get_cell_value(sheet, int, 5, 5) is None
    assert get_cell_value(None, int, 5, 5, zero_if_null=True) == 0


@pytest.mark.parametrize(
    ("target", "zero"),
    [(int, 0), (float, 0.0), (str, ""), (bool, False), (Decimal, Decimal("0")), (date, None)],
)
def test_zero_if_null_uses_type_zero(target, zero) -> None:
    assert convert_value(None, target, zero_if_null=True) == zero
    assert convert_value("   ", Optional[target], zero_if_null=True) == zero
    assert convert_value(None, target) is None


def test_numeric_conversions() -> None:
    assert convert_value("30", int) == 30
    assert convert_value(30.0, int) == 30
    assert convert_value("1e3", int) == 1000
    assert convert_value(" 2.5 ", float) == 2.5
    assert convert_value(0.1, Decimal) == Decimal("0.1")
    with pytest.raises(CellValueError):
        convert_value(2.5, int)


def test_text_conversion_renders_whole_floats_without_fraction() -> None:
    assert convert_value(30.0, str) == "30"
    assert convert_value(2.25, str) == "2.25"
    assert convert_value(True, str) == "true"
    assert convert_value(datetime(2024, 5, 10, 8, 30), str) == "2024-05-10 08:30:00"


def test_boolean_temporal_and_enum_conversions() -> None:
    assert convert_value("Yes", bool) is True
    assert convert_value(0, bool) is False
    assert convert_value(datetime(2024, 5, 10, 8, 30), date) == date(2024, 5, 10)
    assert convert_value("2024-05-10", datetime) == datetime(2024, 5, 10)
    assert convert_value(45422, date) == date(2024, 5, 10)
    assert convert_value("open", Status) is Status.OPEN
    assert convert_value("CLOSED", Status) is Status.CLOSED


def test_conversion_error_carries_coordinates() -> None:
    with pytest.raises(CellValueError) as excinfo:
        convert_value("maybe", bool, row=3, column=4)

    assert (excinfo.value.row, excinfo.value.column) == (3, 4)
    assert excinfo.value.value == "maybe"
