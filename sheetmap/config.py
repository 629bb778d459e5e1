"""YAML layout overrides for record types.

A layout file adjusts bounds, orientation and field positions of already
declared records without touching code, e.g. when a workbook template moves its
data block::

    sheet: Staff
    records:
      Person:
        start: 2
        zero_if_null: true
        fields:
          age: {position: 3, validate: true, regex: "[0-9]+"}
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError
from .metadata import declared_layout, members, register_record
from .schema import FieldLayout, Orientation, TypeLayout, ValidationMode
from .utils.log import get_logger

logger = get_logger("config")


class FieldOverride(BaseModel):
    """Per-field override; unset keys keep the declared value."""

    model_config = ConfigDict(extra="forbid")

    position: Optional[int] = Field(default=None, gt=0)
    validate_: Optional[bool] = Field(default=None, alias="validate")
    regex: Optional[str] = None
    validation_mode: Optional[ValidationMode] = None


class RecordOverride(BaseModel):
    """Per-record override; unset keys keep the declared value."""

    model_config = ConfigDict(extra="forbid")

    orientation: Optional[Orientation] = None
    start: Optional[int] = None
    end: Optional[int] = None
    zero_if_null: Optional[bool] = None
    fields: Dict[str, FieldOverride] = Field(default_factory=dict)


class LayoutConfig(BaseModel):
    """Complete layout file model."""

    model_config = ConfigDict(extra="forbid")

    sheet: Optional[str] = None
    records: Dict[str, RecordOverride] = Field(default_factory=dict)


def load_layout_config(path: Union[str, Path]) -> LayoutConfig:
    """Load and validate a layout override file.

    Raises:
        ConfigError: When the file is missing, is not a mapping, or fails
            schema validation.
    """

    layout_path = Path(path)
    if not layout_path.exists():
        raise ConfigError(f"Layout file not found: {layout_path}")
    with layout_path.open("r", encoding="utf-8") as fh:
        payload = yaml.safe_load(fh) or {}
    if not isinstance(payload, dict):
        raise ConfigError("Invalid layout YAML structure (expected mapping)")
    try:
        config = LayoutConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid layout file {layout_path}: {exc}") from exc
    logger.info(
        "Layout file loaded",
        extra={"path": str(layout_path), "records": sorted(config.records)},
    )
    return config


def _merge_type_layout(record_type: type, override: RecordOverride) -> TypeLayout:
    base = declared_layout(record_type) or TypeLayout()
    changes = {
        key: value
        for key, value in override.model_dump(exclude={"fields"}).items()
        if value is not None
    }
    return dataclasses.replace(base, **changes)


def _merge_field_layouts(record_type: type, override: RecordOverride) -> Dict[str, FieldLayout]:
    declared = {member.name: member.layout for member in members(record_type)}
    merged: Dict[str, FieldLayout] = {}
    for name, field_override in override.fields.items():
        if name not in declared:
            raise ConfigError(f"{record_type.__name__} has no member named {name!r}")
        base = declared[name]
        changes = {
            key.rstrip("_"): value
            for key, value in field_override.model_dump().items()
            if value is not None
        }
        if base is None:
            if "position" not in changes:
                raise ConfigError(f"{record_type.__name__}.{name} needs a position")
            merged[name] = FieldLayout(**changes)
        else:
            merged[name] = dataclasses.replace(base, **changes)
    return merged


def apply_layout_config(
    config: LayoutConfig,
    records: Union[Mapping[str, type], Iterable[type]],
) -> None:
    """Register the overrides of ``config`` for the given record types.

    Args:
        config: Parsed layout file.
        records: Record types, keyed by the name used in the file or given as
            an iterable (keyed by class name).

    Raises:
        ConfigError: When the file names an unknown record or member.
    """

    by_name = dict(records) if isinstance(records, Mapping) else {r.__name__: r for r in records}
    for name, override in config.records.items():
        record_type = by_name.get(name)
        if record_type is None:
            raise ConfigError(f"Layout file references unknown record {name!r}")
        layout = _merge_type_layout(record_type, override)
        fields = _merge_field_layouts(record_type, override) if override.fields else None
        register_record(record_type, layout, fields)
