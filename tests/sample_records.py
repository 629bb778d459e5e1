"""Record types imported by the CLI tests as ``sample_records:<Class>``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sheetmap import ValidationMode, cell_field, sheet_record


@sheet_record(start=2, zero_if_null=True)
@dataclass
class Person:
    name: Optional[str] = cell_field(1)
    age: Optional[int] = cell_field(2, validate=True, regex="[0-9]+")


@sheet_record(start=2)
@dataclass
class StrictPerson:
    name: Optional[str] = cell_field(1)
    age: Optional[int] = cell_field(
        2, validate=True, regex="[0-9]+", validation_mode=ValidationMode.HARD
    )


def _contact_record(column: int) -> type:
    @sheet_record(start=2, end=2)
    @dataclass
    class Contact:
        phone: Optional[str] = cell_field(column)

    return Contact


HomeContact = _contact_record(1)
WorkContact = _contact_record(2)


@sheet_record(start=1, end=1)
@dataclass
class Household:
    home: Optional[HomeContact] = None
    work: Optional[WorkContact] = None
