"""Logging setup shared by every sheetmap module.

Mapping runs log one INFO summary per record type and DEBUG details such as
inferred column ends. The rotating file keeps everything from DEBUG up so a
failed import can be traced afterwards, while the console only shows WARNING
and above; suppressed mapping errors reach the terminal, per-call summaries do
not. Set ``SHEETMAP_LOG_DIR`` to move the log file, e.g. into a temporary
directory for tests.
"""

# Module responsibilities:
# - Attach the file and console handlers to the "sheetmap" logger on first use.
# - Hand out child loggers ("sheetmap.mapper", "sheetmap.cli", ...) to callers.

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = "SHEETMAP_LOG_DIR"
DEFAULT_LOG_BASE = Path.home() / ".sheetmap" / "logs"
LOG_FILE_NAME = "sheetmap.log"
_LOG_CONFIGURED = False


def _resolve_log_dir(log_dir: Optional[Path] = None) -> Path:
    """Pick the explicit directory, then ``SHEETMAP_LOG_DIR``, then the home default."""
    if log_dir is not None:
        target = log_dir
    elif os.environ.get(LOG_DIR_ENV):
        target = Path(os.environ[LOG_DIR_ENV])
    else:
        target = DEFAULT_LOG_BASE
    target.mkdir(parents=True, exist_ok=True)
    return target


def _configure_logging(log_dir: Optional[Path] = None) -> None:
    """Install the DEBUG file handler and the WARNING console handler once."""
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Workbook imports are small; a few MB of history is plenty.
    file_handler = logging.handlers.RotatingFileHandler(
        _resolve_log_dir(log_dir) / LOG_FILE_NAME,
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)

    package_logger = logging.getLogger("sheetmap")
    package_logger.setLevel(logging.INFO)
    package_logger.addHandler(file_handler)
    package_logger.addHandler(console_handler)
    package_logger.propagate = False

    _LOG_CONFIGURED = True


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return the ``sheetmap.<name>`` logger, configuring the package on first call.

    Args:
        name: Component name, e.g. ``"mapper"`` or ``"config"``.
        log_dir: Directory for ``sheetmap.log``; only honoured on the first call.

    Returns:
        Child of the ``sheetmap`` logger. Its effective level is INFO unless the
        CLI ``--log-level`` option changed it.
    """

    _configure_logging(log_dir)
    return logging.getLogger(f"sheetmap.{name}")
