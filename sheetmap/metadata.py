"""Declarative layout metadata for record types.

Record types are dataclasses decorated with :func:`sheet_record`; members that
live in a cell are declared with :func:`cell_field`. Layouts can also be
registered explicitly with :func:`register_record`, which takes precedence over
the decorator and lets YAML configuration override a layout at runtime.
"""

from __future__ import annotations

import dataclasses
import re
import types
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union, get_args, get_origin, get_type_hints

from .errors import ConfigError, ErrorHandler, LayoutConfigError, raise_error
from .schema import FieldLayout, Orientation, TypeLayout, ValidationMode
from .utils.log import get_logger

logger = get_logger("metadata")

LAYOUT_ATTR = "__sheet_layout__"
FIELD_META_KEY = "sheet_cell"

_TYPE_REGISTRY: Dict[type, TypeLayout] = {}
_FIELD_REGISTRY: Dict[type, Dict[str, FieldLayout]] = {}

_SEQUENCE_ORIGINS = (list, Sequence, MutableSequence)


@dataclass(frozen=True)
class MemberSpec:
    """One attribute of a record type with its resolved annotation."""

    name: str
    annotation: Any
    layout: Optional[FieldLayout] = None

    @property
    def target_type(self) -> Any:
        """Annotation with ``Optional`` stripped; the cell coercion target."""

        return unwrap_optional(self.annotation)


def unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def sheet_record(
    cls: Optional[type] = None,
    *,
    orientation: Orientation = Orientation.ROW,
    start: int = 1,
    end: int = 0,
    zero_if_null: bool = False,
):
    """Attach a :class:`TypeLayout` to a record class.

    Usable bare (``@sheet_record``) or with arguments. Apply it above
    ``@dataclass`` so the layout lands on the finished class.
    """

    layout = TypeLayout(
        orientation=Orientation(orientation), start=start, end=end, zero_if_null=zero_if_null
    )

    def _wrap(target: type) -> type:
        setattr(target, LAYOUT_ATTR, layout)
        return target

    if cls is None:
        return _wrap
    return _wrap(cls)


def cell_field(
    position: int,
    *,
    validate: bool = False,
    regex: str = ".*",
    validation_mode: ValidationMode = ValidationMode.SOFT,
    default: Any = None,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """Create a dataclass field bound to a cell position.

    Args:
        position: 1-based index on the axis orthogonal to iteration (the column
            for ``ROW`` records, the row for ``COLUMN`` records).
        validate: Whether the cell text must fully match ``regex``.
        regex: Validation pattern, matched against the whole cell text.
        validation_mode: ``SOFT`` records failures, ``HARD`` aborts mapping.
        default: Value kept when the cell is not assigned.
        default_factory: Factory for mutable defaults (overrides ``default``).

    Raises:
        ConfigError: When ``regex`` does not compile.
    """

    layout = _field_layout(position, validate, regex, validation_mode)
    metadata = {FIELD_META_KEY: layout}
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def _field_layout(
    position: int, validate: bool, regex: str, validation_mode: ValidationMode | str
) -> FieldLayout:
    try:
        re.compile(regex)
    except re.error as exc:
        raise ConfigError(f"Invalid validation pattern {regex!r}: {exc}") from exc
    return FieldLayout(
        position=int(position),
        validate=validate,
        regex=regex,
        validation_mode=ValidationMode(validation_mode),
    )


def register_record(
    record_type: type,
    layout: Optional[TypeLayout] = None,
    fields: Optional[Mapping[str, FieldLayout]] = None,
) -> None:
    """Register layout metadata for ``record_type`` explicitly.

    Registered metadata wins over :func:`sheet_record` and :func:`cell_field`.
    Plain (non-dataclass) classes take their members from the annotations.
    """

    if layout is not None:
        _TYPE_REGISTRY[record_type] = layout
    if fields is not None:
        for field_layout in fields.values():
            _field_layout(
                field_layout.position,
                field_layout.validate,
                field_layout.regex,
                field_layout.validation_mode,
            )
        _FIELD_REGISTRY[record_type] = dict(fields)
    logger.debug(
        "Record layout registered",
        extra={"record": record_type.__qualname__, "fields": sorted(fields or {})},
    )


def unregister_record(record_type: type) -> None:
    _TYPE_REGISTRY.pop(record_type, None)
    _FIELD_REGISTRY.pop(record_type, None)


def declared_layout(record_type: Any) -> Optional[TypeLayout]:
    """Return the registered or decorated layout without reporting errors."""

    if not isinstance(record_type, type):
        return None
    registered = _TYPE_REGISTRY.get(record_type)
    if registered is not None:
        return registered
    return getattr(record_type, LAYOUT_ATTR, None)


def is_record_type(candidate: Any) -> bool:
    return declared_layout(candidate) is not None


def type_layout(record_type: type, error_handler: ErrorHandler = raise_error) -> Optional[TypeLayout]:
    """Resolve the :class:`TypeLayout` of ``record_type``.

    A missing layout is reported to ``error_handler`` as a
    :class:`LayoutConfigError` and ``None`` is returned.
    """

    layout = declared_layout(record_type)
    if layout is None:
        error_handler(LayoutConfigError(record_type))
    return layout


def _resolve_hints(record_type: type) -> Dict[str, Any]:
    try:
        return get_type_hints(record_type)
    except (NameError, TypeError) as exc:
        logger.warning(
            "Unresolvable annotations, using raw values",
            extra={"record": record_type.__qualname__, "error": str(exc)},
        )
        hints: Dict[str, Any] = {}
        for klass in reversed(record_type.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def members(record_type: type) -> List[MemberSpec]:
    """List the attributes of ``record_type`` in declaration order."""

    hints = _resolve_hints(record_type)
    registered = _FIELD_REGISTRY.get(record_type, {})
    if dataclasses.is_dataclass(record_type):
        declared = [(f.name, f.metadata.get(FIELD_META_KEY)) for f in dataclasses.fields(record_type)]
    else:
        declared = [(name, None) for name in hints]

    specs: List[MemberSpec] = []
    for name, layout in declared:
        specs.append(
            MemberSpec(
                name=name,
                annotation=hints.get(name, Any),
                layout=registered.get(name, layout),
            )
        )
    return specs


def nested_element_type(member: MemberSpec) -> Optional[type]:
    """Element type of a sequence member, ``None`` for anything else."""

    target = member.target_type
    if get_origin(target) in _SEQUENCE_ORIGINS:
        args = get_args(target)
        if args:
            return args[0]
    return None


def is_sequence_member(member: MemberSpec) -> bool:
    return get_origin(member.target_type) in _SEQUENCE_ORIGINS


def nested_members(record_type: type) -> List[MemberSpec]:
    """Members populated by recursive mapping: records and lists of records."""

    nested: List[MemberSpec] = []
    for member in members(record_type):
        element = nested_element_type(member)
        if is_record_type(element if element is not None else member.target_type):
            nested.append(member)
    return nested


def field_layouts(record_type: type) -> Dict[int, MemberSpec]:
    """Map cell positions to members, in declaration order.

    A later member sharing a position silently replaces the earlier one.
    Nested record members are never read from a cell.
    """

    nested = {member.name for member in nested_members(record_type)}
    result: Dict[int, MemberSpec] = {}
    for member in members(record_type):
        if member.layout is None or member.name in nested:
            continue
        result[member.layout.position] = member
    return result


def sorted_field_layouts(record_type: type) -> Dict[int, MemberSpec]:
    """Position-ordered variant of :func:`field_layouts`."""

    return dict(sorted(field_layouts(record_type).items()))
