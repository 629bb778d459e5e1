"""`sheetmap` maps worksheet rows or columns onto declared record types."""

# Module responsibilities:
# - Re-export the declaration helpers, the mapper and the error types so consumers have a stable API surface.
# - Provide the package version.

from __future__ import annotations

from .cells import convert_value, get_cell_value, get_last_row_num, get_row
from .config import LayoutConfig, apply_layout_config, load_layout_config
from .errors import (
    CellValueError,
    ConfigError,
    ErrorCollector,
    FieldAssignmentError,
    InstantiationError,
    InvalidRowError,
    LayoutConfigError,
    MappingError,
    SheetMapError,
    log_error,
    raise_error,
)
from .mapper import MappingResult, SheetMapper
from .metadata import (
    cell_field,
    field_layouts,
    nested_element_type,
    register_record,
    sheet_record,
    sorted_field_layouts,
    type_layout,
    unregister_record,
)
from .schema import FieldLayout, InvalidEntry, Orientation, TypeLayout, ValidationMode

__all__ = [
    "SheetMapper",
    "MappingResult",
    "sheet_record",
    "cell_field",
    "register_record",
    "unregister_record",
    "type_layout",
    "field_layouts",
    "sorted_field_layouts",
    "nested_element_type",
    "Orientation",
    "ValidationMode",
    "TypeLayout",
    "FieldLayout",
    "InvalidEntry",
    "LayoutConfig",
    "load_layout_config",
    "apply_layout_config",
    "get_row",
    "get_last_row_num",
    "get_cell_value",
    "convert_value",
    "SheetMapError",
    "MappingError",
    "ConfigError",
    "LayoutConfigError",
    "InstantiationError",
    "CellValueError",
    "FieldAssignmentError",
    "InvalidRowError",
    "ErrorCollector",
    "raise_error",
    "log_error",
]

__version__ = "0.1.0"
