"""Validation layer for mapped cell text."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Optional, Pattern

from .errors import InvalidRowError
from .metadata import MemberSpec
from .schema import InvalidEntry, ValidationMode


@lru_cache(maxsize=256)
def _compile(regex: str) -> Pattern[str]:
    return re.compile(regex)


def validate_cell(
    member: MemberSpec,
    text_value: Optional[str],
    position: int,
    location: int,
    invalid_entries: List[InvalidEntry],
) -> None:
    """Check ``text_value`` against the member's pattern.

    The whole text must match. Every mismatch is appended to
    ``invalid_entries``; in ``HARD`` mode an :class:`InvalidRowError` is raised
    afterwards. Missing text is validated as the empty string.
    """

    layout = member.layout
    if layout is None or not layout.validate:
        return

    text = text_value if text_value is not None else ""
    if _compile(layout.regex).fullmatch(text) is not None:
        return

    invalid_entries.append(InvalidEntry(position=position, location=location, raw_value=text))
    if layout.validation_mode is ValidationMode.HARD:
        raise InvalidRowError(position, location, text)
