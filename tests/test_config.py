"""Unit tests for YAML layout overrides."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest

from sheetmap import (
    ConfigError,
    FieldLayout,
    Orientation,
    SheetMapper,
    TypeLayout,
    ValidationMode,
    apply_layout_config,
    cell_field,
    load_layout_config,
    sheet_record,
    sorted_field_layouts,
    type_layout,
)


@sheet_record(start=1, end=0)
@dataclass
class Staff:
    name: Optional[str] = cell_field(1)
    age: Optional[int] = cell_field(2)
    team: Optional[str] = None


def _write(path: Path, payload: str) -> Path:
    path.write_text(payload, encoding="utf-8")
    return path


def test_layout_override_moves_bounds_and_fields(tmp_path: Path, make_sheet) -> None:
    layout_path = _write(
        tmp_path / "layout.yaml",
        "sheet: Staff\n"
        "records:\n"
        "  Staff:\n"
        "    start: 2\n"
        "    zero_if_null: true\n"
        "    fields:\n"
        "      age: {position: 3, validate: true, regex: '[0-9]+'}\n"
        "      team: {position: 2}\n",
    )

    config = load_layout_config(layout_path)
    apply_layout_config(config, [Staff])

    assert config.sheet == "Staff"
    assert type_layout(Staff) == TypeLayout(orientation=Orientation.ROW, start=2, end=0, zero_if_null=True)
    assert sorted_field_layouts(Staff)[3].layout == FieldLayout(
        position=3, validate=True, regex="[0-9]+", validation_mode=ValidationMode.SOFT
    )

    sheet = make_sheet([["Name", "Team", "Age"], ["Ann", "ops", 41], ["Bo", "dev", None]])
    records = SheetMapper().create(sheet, Staff)

    assert records == [Staff(name="Ann", age=41, team="ops"), Staff(name="Bo", age=0, team="dev")]


def test_unknown_record_is_rejected(tmp_path: Path) -> None:
    config = load_layout_config(_write(tmp_path / "layout.yaml", "records:\n  Ghost:\n    start: 1\n"))

    with pytest.raises(ConfigError):
        apply_layout_config(config, {"Staff": Staff})


def test_unknown_member_is_rejected(tmp_path: Path) -> None:
    config = load_layout_config(
        _write(tmp_path / "layout.yaml", "records:\n  Staff:\n    fields:\n      salary: {position: 4}\n")
    )

    with pytest.raises(ConfigError):
        apply_layout_config(config, [Staff])


def test_new_cell_member_needs_position(tmp_path: Path) -> None:
    config = load_layout_config(
        _write(tmp_path / "layout.yaml", "records:\n  Staff:\n    fields:\n      team: {validate: true}\n")
    )

    with pytest.raises(ConfigError):
        apply_layout_config(config, [Staff])


@pytest.mark.parametrize(
    "payload",
    [
        "- just\n- a list\n",
        "records:\n  Staff:\n    orientation: diagonal\n",
        "records:\n  Staff:\n    fields:\n      age: {position: 0}\n",
        "unexpected: 1\n",
    ],
)
def test_malformed_layout_file_raises_config_error(tmp_path: Path, payload: str) -> None:
    with pytest.raises(ConfigError):
        load_layout_config(_write(tmp_path / "layout.yaml", payload))


def test_missing_layout_file_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_layout_config(tmp_path / "absent.yaml")
