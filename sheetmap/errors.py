"""Custom exceptions and error handlers used across sheetmap."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional


class SheetMapError(Exception):
    """Base error for the package."""


class ConfigError(SheetMapError):
    """Layout configuration file is missing or malformed."""


class MappingError(SheetMapError):
    """Recoverable mapping failure handed to an error handler."""


class LayoutConfigError(MappingError):
    """Record type carries no sheet layout."""

    def __init__(self, record_type: type) -> None:
        super().__init__(
            f"Invalid record configuration - sheet layout missing - {record_type.__name__}"
        )
        self.record_type = record_type


class InstantiationError(MappingError):
    """Record type could not be constructed without arguments."""

    def __init__(self, record_type: type, location: int) -> None:
        super().__init__(
            f"Exception occurred while instantiating {record_type.__qualname__} at location {location}"
        )
        self.record_type = record_type
        self.location = location


class CellValueError(MappingError):
    """Raw cell value cannot be converted to the requested type."""

    def __init__(self, value: object, target: object, row: int, column: int) -> None:
        super().__init__(
            f"Cannot convert {value!r} at [{row}, {column}] to {getattr(target, '__name__', target)}"
        )
        self.value = value
        self.target = target
        self.row = row
        self.column = column


class FieldAssignmentError(MappingError):
    """Converted value could not be assigned to a record member."""

    def __init__(self, record_type: type, member: str, location: int) -> None:
        super().__init__(
            f"Exception occurred while setting {record_type.__name__}.{member} at location {location}"
        )
        self.record_type = record_type
        self.member = member
        self.location = location


class InvalidRowError(SheetMapError):
    """HARD validation failure; aborts the mapping call and bypasses error handlers."""

    def __init__(self, position: int, location: int, value: str) -> None:
        super().__init__(
            f"Invalid cell value {value!r} at [{location}, {position}] in the sheet. "
            "This exception can be suppressed by setting validation_mode to ValidationMode.SOFT"
        )
        self.position = position
        self.location = location
        self.value = value


ErrorHandler = Callable[[MappingError], None]


def raise_error(error: MappingError) -> None:
    """Default handler: every mapping error is fatal."""

    raise error


def log_error(logger: logging.Logger, level: int = logging.WARNING) -> ErrorHandler:
    """Build a handler that logs mapping errors and lets mapping continue."""

    def _handler(error: MappingError) -> None:
        logger.log(
            level,
            "Mapping error suppressed: %s",
            error,
            exc_info=error if error.__cause__ is not None else None,
            extra={"error_type": type(error).__name__},
        )

    return _handler


@dataclass(slots=True)
class ErrorCollector:
    """Handler that keeps every mapping error for later inspection."""

    errors: List[MappingError] = field(default_factory=list)
    logger: Optional[logging.Logger] = None

    def __call__(self, error: MappingError) -> None:
        self.errors.append(error)
        if self.logger is not None:
            self.logger.info("Mapping error collected: %s", error)
