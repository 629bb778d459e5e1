"""Worksheet access and cell value coercion."""

# Module responsibilities:
# - Read rows from an openpyxl worksheet by 1-based index, randomly or by forward scan.
# - Convert raw cell values into the Python types declared on record members.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Union

from openpyxl.utils.datetime import from_excel
from openpyxl.worksheet.worksheet import Worksheet

from .errors import CellValueError
from .metadata import unwrap_optional

# Read-only worksheets expose the same max_row / iter_rows surface.
SheetType = Worksheet

_TRUE_TEXT = {"true", "t", "yes", "y", "1"}
_FALSE_TEXT = {"false", "f", "no", "n", "0"}

ZERO_VALUES: Dict[Any, Any] = {
    str: "",
    int: 0,
    float: 0.0,
    Decimal: Decimal("0"),
    bool: False,
}


@dataclass(frozen=True)
class SheetRow:
    """Values of one worksheet row; ``index`` is 1-based."""

    index: int
    values: Tuple[Any, ...]

    def value(self, column: int) -> Any:
        if column < 1 or column > len(self.values):
            return None
        return self.values[column - 1]

    @property
    def length(self) -> int:
        """Column number of the last non-empty cell, 0 for an empty row."""

        for idx in range(len(self.values), 0, -1):
            if self.values[idx - 1] is not None:
                return idx
        return 0


def get_last_row_num(sheet: SheetType) -> int:
    """0-based index of the last row, ``-1`` for a sheet without cells."""

    max_row = sheet.max_row or 0
    if max_row <= 1:
        first = get_row(sheet, 1) if max_row == 1 else None
        if first is None or first.length == 0:
            return -1
    return max_row - 1


def get_row(sheet: SheetType, index: int) -> Optional[SheetRow]:
    """Random access to the 1-based row ``index``; ``None`` outside the sheet."""

    max_row = sheet.max_row or 0
    if index < 1 or index > max_row:
        return None
    values = next(sheet.iter_rows(min_row=index, max_row=index, values_only=True), ())
    return SheetRow(index=index, values=tuple(values))


def iter_sheet_rows(sheet: SheetType) -> Iterator[SheetRow]:
    for index, values in enumerate(sheet.iter_rows(min_row=1, values_only=True), start=1):
        yield SheetRow(index=index, values=tuple(values))


class RowCursor:
    """Forward-only row reader; never rewinds."""

    def __init__(self, sheet: SheetType) -> None:
        self._rows = iter_sheet_rows(sheet)
        self._current: Optional[SheetRow] = None

    def get_row(self, index: int) -> Optional[SheetRow]:
        """Advance to the 1-based row ``index`` if it is still ahead."""

        current = self._current
        if current is not None and current.index >= index:
            return current if current.index == index else None
        for row in self._rows:
            self._current = row
            if row.index >= index:
                break
        current = self._current
        if current is not None and current.index == index:
            return current
        return None


def get_cell_value(
    source: Union[SheetType, SheetRow, None],
    target: Any,
    row: int,
    column: int,
    zero_if_null: bool = False,
) -> Any:
    """Read the cell at ``(row, column)`` and convert it to ``target``.

    Args:
        source: A worksheet (random access) or an already fetched row.
        target: Requested Python type; ``Optional[X]`` is treated as ``X``.
        row: 1-based row number.
        column: 1-based column number.
        zero_if_null: Return the type's zero value for empty cells.

    Raises:
        CellValueError: When the raw value cannot be converted.
    """

    if isinstance(source, SheetRow) or source is None:
        sheet_row = source
    else:
        sheet_row = get_row(source, row)
    raw = sheet_row.value(column) if sheet_row is not None else None
    return convert_value(raw, target, zero_if_null=zero_if_null, row=row, column=column)


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def _to_text(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    if isinstance(raw, datetime):
        return raw.isoformat(sep=" ")
    if isinstance(raw, (date, time)):
        return raw.isoformat()
    return str(raw)


def _integral(value: Union[float, Decimal]) -> int:
    whole = value == value.to_integral_value() if isinstance(value, Decimal) else value.is_integer()
    if not whole:
        raise ValueError(f"{value} is not integral")
    return int(value)


def _to_int(raw: Any) -> int:
    if isinstance(raw, (bool, int)):
        return int(raw)
    if isinstance(raw, (float, Decimal)):
        return _integral(raw)
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            return _integral(Decimal(text))
    raise TypeError(f"unsupported cell value {type(raw).__name__}")


def _to_float(raw: Any) -> float:
    if isinstance(raw, str):
        return float(raw.strip())
    if isinstance(raw, (datetime, date, time)):
        raise TypeError("temporal value")
    return float(raw)


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, (bool, datetime, date, time)):
        raise TypeError(f"unsupported cell value {type(raw).__name__}")
    if isinstance(raw, str):
        return Decimal(raw.strip())
    return Decimal(str(raw))


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float, Decimal)):
        return raw != 0
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    raise TypeError(f"unsupported cell value {type(raw).__name__}")


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime.combine(raw, time())
    if isinstance(raw, str):
        return datetime.fromisoformat(raw.strip())
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        converted = from_excel(raw)
        if isinstance(converted, datetime):
            return converted
    raise TypeError(f"unsupported cell value {type(raw).__name__}")


def _to_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        return date.fromisoformat(raw.strip())
    return _to_datetime(raw).date()


def _to_time(raw: Any) -> time:
    if isinstance(raw, datetime):
        return raw.time()
    if isinstance(raw, time):
        return raw
    if isinstance(raw, str):
        return time.fromisoformat(raw.strip())
    raise TypeError(f"unsupported cell value {type(raw).__name__}")


_CONVERTERS: Dict[Any, Callable[[Any], Any]] = {
    str: _to_text,
    int: _to_int,
    float: _to_float,
    Decimal: _to_decimal,
    bool: _to_bool,
    datetime: _to_datetime,
    date: _to_date,
    time: _to_time,
}


def _to_enum(raw: Any, target: type) -> Enum:
    try:
        return target(raw)
    except ValueError:
        return target[str(raw).strip()]


def convert_value(
    raw: Any,
    target: Any,
    *,
    zero_if_null: bool = False,
    row: int = 0,
    column: int = 0,
) -> Any:
    """Convert a raw openpyxl value to ``target``.

    Empty cells (``None`` or whitespace-only text) become ``None`` or, with
    ``zero_if_null``, the zero value of ``target`` (``0``, ``0.0``, ``""``,
    ``False``, ``Decimal("0")``; ``None`` for other types).
    """

    target = unwrap_optional(target)
    if _is_blank(raw):
        return ZERO_VALUES.get(target) if zero_if_null else None
    if target is Any or target is object:
        return raw

    try:
        converter = _CONVERTERS.get(target)
        if converter is not None:
            return converter(raw)
        if isinstance(target, type) and issubclass(target, Enum):
            return _to_enum(raw, target)
        if isinstance(target, type) and isinstance(raw, target):
            return raw
    except (ValueError, TypeError, KeyError, InvalidOperation, OverflowError) as exc:
        raise CellValueError(raw, target, row, column) from exc
    raise CellValueError(raw, target, row, column)
