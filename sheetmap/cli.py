"""Typer based command line entry points for sheetmap."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Dict, Optional

import typer
from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook

from .config import apply_layout_config, load_layout_config
from .errors import ConfigError, InvalidRowError, MappingError, log_error
from .mapper import MappingResult, SheetMapper
from .metadata import is_record_type, nested_element_type, nested_members
from .utils.log import get_logger

app = typer.Typer(help="Map worksheet rows or columns onto declared record types.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set package logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure logging before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    logging.getLogger("sheetmap").setLevel(level_value)


def _import_record(path: str) -> type:
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise typer.BadParameter("record must be given as 'module:Class'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import module {module_name}: {exc}") from exc
    record_type = getattr(module, attr, None)
    if not isinstance(record_type, type) or not is_record_type(record_type):
        raise typer.BadParameter(f"{path} is not a record type with a sheet layout")
    return record_type


def _record_graph(record_type: type) -> Dict[str, type]:
    """Record types reachable from ``record_type`` through nested members, by name.

    Raises:
        ConfigError: When two distinct record types share a class name, since a
            layout file could not tell them apart.
    """

    found: Dict[str, type] = {}
    pending = [record_type]
    while pending:
        current = pending.pop()
        known = found.get(current.__name__)
        if known is current:
            continue
        if known is not None:
            raise ConfigError(
                f"Record name '{current.__name__}' is ambiguous: "
                f"{known.__module__}.{known.__qualname__} and {current.__module__}.{current.__qualname__}"
            )
        found[current.__name__] = current
        for member in nested_members(current):
            element = nested_element_type(member)
            pending.append(element if element is not None else member.target_type)
    return found


def _open_sheet(workbook: Workbook, sheet: Optional[str]):
    if sheet is None:
        return workbook.active
    if sheet not in workbook.sheetnames:
        raise typer.BadParameter(f"Sheet '{sheet}' not found. Available: {', '.join(workbook.sheetnames)}")
    return workbook[sheet]


def _write_output(result: MappingResult, output: Optional[Path]) -> None:
    frame = result.to_dataframe()
    if output is None:
        typer.echo(frame.to_string(index=False) if not frame.empty else "(no records)")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    suffix = output.suffix.lower()
    if suffix == ".csv":
        frame.to_csv(output, index=False)
    elif suffix == ".json":
        frame.to_json(output, orient="records", force_ascii=False, indent=2, date_format="iso")
    else:
        raise typer.BadParameter(f"Unsupported output format: {output.suffix or '(none)'}")
    typer.echo(f"Wrote {len(frame)} record(s) to {output}")


@app.command("map")
def map_command(
    workbook_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Workbook (.xlsx) to read"),
    record: str = typer.Argument(..., help="Record type as 'module:Class'"),
    sheet: Optional[str] = typer.Option(None, "--sheet", "-s", help="Worksheet name (default: layout file or active sheet)"),
    layout: Optional[Path] = typer.Option(None, "--layout", "-l", exists=True, dir_okay=False, help="YAML layout override file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write records to .csv or .json"),
    forward: bool = typer.Option(False, "--forward", help="Read rows by forward scan instead of random access"),
    strict: bool = typer.Option(False, "--strict", help="Abort on the first mapping error"),
) -> None:
    """Map WORKBOOK_PATH onto RECORD instances and print or export them."""

    logger = get_logger("cli")
    record_type = _import_record(record)

    if layout is not None:
        try:
            config = load_layout_config(layout)
            apply_layout_config(config, _record_graph(record_type))
        except ConfigError as exc:
            typer.secho(f"Invalid layout file: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc
        sheet = sheet or config.sheet

    workbook = load_workbook(workbook_path, data_only=True)
    mapper = SheetMapper()
    try:
        worksheet = _open_sheet(workbook, sheet)
        if strict:
            create = mapper.create_with_iterator if forward else mapper.create
            records = create(worksheet, record_type)
            result = MappingResult(
                records=records, invalid_entries=mapper.invalid_entries, record_type=record_type
            )
        else:
            result = mapper.collect(worksheet, record_type, forward=forward)
    except (MappingError, InvalidRowError) as exc:
        typer.secho(f"Mapping failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    finally:
        workbook.close()

    _write_output(result, output)

    handler = log_error(logger)
    for error in result.errors:
        handler(error)
        typer.secho(f"error: {error}", fg=typer.colors.YELLOW, err=True)
    for entry in result.invalid_entries:
        typer.secho(
            f"invalid: location={entry.location} position={entry.position} value={entry.raw_value!r}",
            fg=typer.colors.YELLOW,
            err=True,
        )
    logger.info(
        "CLI mapping completed",
        extra={"records": len(result.records), "errors": len(result.errors)},
    )
    if result.errors:
        raise typer.Exit(code=1)


@app.command("bounds")
def bounds_command(
    workbook_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Workbook (.xlsx) to read"),
    record: str = typer.Argument(..., help="Record type as 'module:Class'"),
    sheet: Optional[str] = typer.Option(None, "--sheet", "-s", help="Worksheet name (default: active sheet)"),
) -> None:
    """Print the effective iteration end of RECORD on the sheet."""

    record_type = _import_record(record)
    workbook = load_workbook(workbook_path, data_only=True)
    try:
        end = SheetMapper().compute_effective_end(_open_sheet(workbook, sheet), record_type)
    finally:
        workbook.close()
    typer.echo(str(end))


if __name__ == "__main__":
    app()
