"""Recursive mapping of worksheet cells onto record instances."""

# Module responsibilities:
# - Compute iteration bounds for a record type, inferring open ends from the sheet.
# - Build one record per iteration step, coercing, validating and assigning each cell.
# - Recurse into nested record and list-of-record members.
# - Collect invalid entries across calls and expose a result object for best-effort runs.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import pandas as pd

from .cells import RowCursor, SheetRow, SheetType, get_cell_value, get_last_row_num, get_row
from .errors import (
    CellValueError,
    ErrorCollector,
    ErrorHandler,
    FieldAssignmentError,
    InstantiationError,
    LayoutConfigError,
    MappingError,
    raise_error,
)
from .metadata import (
    MemberSpec,
    field_layouts,
    is_sequence_member,
    nested_element_type,
    nested_members,
    sorted_field_layouts,
    type_layout,
)
from .schema import InvalidEntry, Orientation, TypeLayout
from .utils.log import get_logger
from .validation import validate_cell

T = TypeVar("T")


@dataclass(slots=True)
class MappingResult:
    """Records produced by one best-effort mapping call."""

    records: List[Any]
    errors: List[MappingError] = field(default_factory=list)
    invalid_entries: List[InvalidEntry] = field(default_factory=list)
    record_type: Optional[type] = None

    @property
    def ok(self) -> bool:
        return not self.errors and not self.invalid_entries

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten cell-mapped members into a DataFrame, one row per record.

        Nested members are left out and records that failed to instantiate are
        skipped.
        """

        record_type = self.record_type
        if record_type is None:
            record_type = next((type(r) for r in self.records if r is not None), None)
        if record_type is None:
            return pd.DataFrame()
        columns = [member.name for member in sorted_field_layouts(record_type).values()]
        rows = [
            {name: getattr(record, name, None) for name in columns}
            for record in self.records
            if record is not None
        ]
        return pd.DataFrame(rows, columns=columns)


class SheetMapper:
    """Map worksheets onto record types declared with layout metadata.

    Invalid entries from SOFT and HARD validation accumulate on the mapper
    until :meth:`clear` is called. A mapper is not safe to share between
    threads.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger("mapper")
        self._invalid_entries: List[InvalidEntry] = []

    @property
    def invalid_entries(self) -> List[InvalidEntry]:
        return list(self._invalid_entries)

    def clear(self) -> None:
        self._invalid_entries.clear()

    def create(
        self,
        sheet: SheetType,
        record_type: Type[T],
        error_handler: ErrorHandler = raise_error,
    ) -> List[Optional[T]]:
        """Map ``sheet`` onto a list of ``record_type`` instances.

        Args:
            sheet: Worksheet to read; rows are fetched by random access.
            record_type: Record class carrying a sheet layout.
            error_handler: Receives recoverable :class:`MappingError` values.
                The default re-raises them.

        Returns:
            One entry per iteration step in ``[start, end]``. An entry is
            ``None`` when the record could not be instantiated.

        Raises:
            InvalidRowError: When a HARD validated cell fails its pattern.
        """

        return self._create(sheet, record_type, error_handler, forward=False)

    def create_with_iterator(
        self,
        sheet: SheetType,
        record_type: Type[T],
        error_handler: ErrorHandler = raise_error,
    ) -> List[Optional[T]]:
        """Same contract as :meth:`create`, reading rows by forward scan."""

        return self._create(sheet, record_type, error_handler, forward=True)

    def collect(self, sheet: SheetType, record_type: Type[T], *, forward: bool = False) -> MappingResult:
        """Map best-effort, keeping recoverable errors instead of raising them.

        HARD validation failures still raise.
        """

        collector = ErrorCollector(logger=self.logger)
        mark = len(self._invalid_entries)
        records = self._create(sheet, record_type, collector, forward=forward)
        return MappingResult(
            records=records,
            errors=list(collector.errors),
            invalid_entries=self._invalid_entries[mark:],
            record_type=record_type,
        )

    def compute_effective_end(self, sheet: SheetType, record_type: type) -> int:
        """Return the last iteration index ``create`` would visit.

        Raises:
            LayoutConfigError: When ``record_type`` has no sheet layout.
        """

        layout = type_layout(record_type, raise_error)
        if layout is None:
            raise LayoutConfigError(record_type)
        return self._effective_end(sheet, record_type, layout)

    def _effective_end(self, sheet: SheetType, record_type: type, layout: TypeLayout) -> int:
        if layout.end > 0:
            return layout.end
        if layout.orientation is Orientation.ROW:
            return get_last_row_num(sheet) + 1

        # Half-open scan: the row at the largest position is not measured.
        positions = list(field_layouts(record_type))
        max_cells = 0
        if positions:
            for index in range(min(positions), max(positions)):
                row = get_row(sheet, index)
                cells = row.length if row is not None else 0
                if max_cells < cells:
                    max_cells = cells
        self.logger.debug(
            "Column end inferred",
            extra={"record": record_type.__name__, "end": max_cells},
        )
        return max_cells

    def _create(
        self,
        sheet: SheetType,
        record_type: type,
        error_handler: ErrorHandler,
        *,
        forward: bool,
    ) -> List[Any]:
        records: List[Any] = []
        layout = type_layout(record_type, error_handler)
        if layout is None or not layout.is_mappable:
            return records
        end = self._effective_end(sheet, record_type, layout)

        cell_members = sorted_field_layouts(record_type)
        nested = nested_members(record_type)
        for location in range(layout.start, end + 1):
            instance = self._new_instance(record_type, location, error_handler)
            if instance is not None:
                self._populate(instance, sheet, layout, cell_members, location, error_handler, forward)
                for member in nested:
                    self._populate_nested(instance, sheet, member, location, error_handler, forward)
            records.append(instance)

        self.logger.info(
            "Records mapped",
            extra={
                "record": record_type.__name__,
                "start": layout.start,
                "end": end,
                "count": len(records),
                "forward": forward,
            },
        )
        return records

    def _new_instance(self, record_type: type, location: int, error_handler: ErrorHandler) -> Any:
        try:
            return record_type()
        except Exception as exc:
            error = InstantiationError(record_type, location)
            error.__cause__ = exc
            error_handler(error)
            return None

    def _populate(
        self,
        instance: Any,
        sheet: SheetType,
        layout: TypeLayout,
        cell_members: Dict[int, MemberSpec],
        location: int,
        error_handler: ErrorHandler,
        forward: bool,
    ) -> None:
        cursor = RowCursor(sheet) if forward else None
        row: Optional[SheetRow] = None
        for position, member in cell_members.items():
            if layout.orientation is Orientation.ROW:
                row_no, col_no = location, position
            else:
                row_no, col_no = position, location

            if row is None or row.index != row_no:
                row = cursor.get_row(row_no) if cursor is not None else get_row(sheet, row_no)
            source: Union[SheetRow, SheetType, None] = row

            failure: Optional[CellValueError] = None
            value: Any = None
            try:
                value = get_cell_value(source, member.target_type, row_no, col_no, layout.zero_if_null)
            except CellValueError as exc:
                failure = exc
            text = get_cell_value(source, str, row_no, col_no, layout.zero_if_null)
            validate_cell(member, text, position, location, self._invalid_entries)

            if failure is not None:
                self._report_assignment(instance, member, location, failure, error_handler)
                continue
            self._assign(instance, member, value, location, error_handler)

    def _populate_nested(
        self,
        instance: Any,
        sheet: SheetType,
        member: MemberSpec,
        location: int,
        error_handler: ErrorHandler,
        forward: bool,
    ) -> None:
        element = nested_element_type(member)
        child_type = element if element is not None else member.target_type
        values = self._create(sheet, child_type, error_handler, forward=forward)
        if is_sequence_member(member):
            self._assign(instance, member, values, location, error_handler)
        elif values:
            self._assign(instance, member, values[0], location, error_handler)

    def _assign(
        self,
        instance: Any,
        member: MemberSpec,
        value: Any,
        location: int,
        error_handler: ErrorHandler,
    ) -> None:
        try:
            setattr(instance, member.name, value)
        except (AttributeError, TypeError, ValueError) as exc:
            self._report_assignment(instance, member, location, exc, error_handler)

    @staticmethod
    def _report_assignment(
        instance: Any,
        member: MemberSpec,
        location: int,
        cause: BaseException,
        error_handler: ErrorHandler,
    ) -> None:
        error = FieldAssignmentError(type(instance), member.name, location)
        error.__cause__ = cause
        error_handler(error)
