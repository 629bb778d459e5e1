"""Shared schemas describing sheet layouts and mapping outcomes."""

# Module responsibilities:
# - Provide strongly typed containers for type-level and field-level layout metadata.
# - Define the invalid entry record produced by cell validation.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Orientation(str, Enum):
    """Whether one record spans a sheet row or a sheet column."""

    ROW = "row"
    COLUMN = "column"


class ValidationMode(str, Enum):
    """SOFT records failures and continues; HARD aborts the mapping call."""

    SOFT = "soft"
    HARD = "hard"


@dataclass(frozen=True)
class TypeLayout:
    """Iteration layout of a record type.

    ``start`` and ``end`` are 1-based inclusive bounds over the iteration axis
    (rows for ``ROW``, columns for ``COLUMN``). ``end <= 0`` asks the mapper to
    infer the bound from the sheet.
    """

    orientation: Orientation = Orientation.ROW
    start: int = 1
    end: int = 0
    zero_if_null: bool = False

    @property
    def is_mappable(self) -> bool:
        return self.start > 0 and self.end >= 0


@dataclass(frozen=True)
class FieldLayout:
    """Cell position and validation rule of one record member."""

    position: int
    validate: bool = False
    regex: str = ".*"
    validation_mode: ValidationMode = ValidationMode.SOFT


@dataclass(frozen=True)
class InvalidEntry:
    """Cell whose text failed its validation pattern."""

    position: int
    location: int
    raw_value: str
