from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List

import pytest
from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for entry in (ROOT, TESTS_DIR):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

# Keep test runs from writing into the user's home log directory.
os.environ.setdefault("SHEETMAP_LOG_DIR", tempfile.mkdtemp(prefix="sheetmap-logs-"))

from sheetmap import metadata


@pytest.fixture(autouse=True)
def _restore_registry() -> None:
    """Drop layouts registered by a test so overrides never leak."""

    types_before = dict(metadata._TYPE_REGISTRY)
    fields_before = dict(metadata._FIELD_REGISTRY)
    yield
    metadata._TYPE_REGISTRY.clear()
    metadata._TYPE_REGISTRY.update(types_before)
    metadata._FIELD_REGISTRY.clear()
    metadata._FIELD_REGISTRY.update(fields_before)


@pytest.fixture()
def make_sheet() -> Callable[[Iterable[List[object]]], Worksheet]:
    """Build an in-memory worksheet whose first row is row 1."""

    def _build(rows: Iterable[List[object]]) -> Worksheet:
        wb = Workbook()
        ws = wb.active
        ws.title = "Data"
        for row in rows:
            ws.append(list(row))
        return ws

    return _build
