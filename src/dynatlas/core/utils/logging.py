"""
Console and file logging for the dynatlas CLI and library.

Library modules only call `get_logger(__name__)`; handlers are installed by
`setup_logging()`, which the CLI calls once per run. Records go to stderr at
the requested level and to a rotating `dynatlas.log` at DEBUG, by default in
<user_config_dir("dynatlas")>/logs beside user_config.json.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

from platformdirs import user_config_dir

# Must match user_config.py.
_APP_NAME = "dynatlas"
_LOG_FILENAME = "dynatlas.log"
_RECORD_FMT = "[%(levelname)s] %(name)s:%(funcName)s:%(lineno)d: %(message)s"

_LOG_FILE_PATH: Optional[Path] = None


def setup_logging(
    level: Union[str, int] = "INFO",
    log_dir: Optional[Path] = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> None:
    """Install a stderr handler and a rotating file handler on the root logger.

    Handlers left by an earlier call are closed and replaced, so a scan can be
    rerun with a different level or log folder.

    Args:
        level: Console level, as a name ("DEBUG", "WARNING") or a logging constant.
        log_dir: Folder for dynatlas.log. Defaults to <user_config_dir>/logs.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated files kept.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=_RECORD_FMT))
    root.addHandler(console)

    root.addHandler(_file_handler(Path(log_dir or _default_log_dir()), max_bytes, backup_count))


def _default_log_dir() -> Path:
    return Path(user_config_dir(_APP_NAME)) / "logs"


def _file_handler(log_dir: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    global _LOG_FILE_PATH
    log_dir.mkdir(parents=True, exist_ok=True)
    _LOG_FILE_PATH = log_dir / _LOG_FILENAME

    handler = logging.handlers.RotatingFileHandler(
        filename=_LOG_FILE_PATH,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=f"%(asctime)s {_RECORD_FMT}", datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for `name`, falling back to the package logger "dynatlas"."""
    if name is None:
        name = "dynatlas"
    return logging.getLogger(name)


def get_log_file_path() -> Optional[Path]:
    """Path of the current log file, or None before setup_logging() ran."""
    return _LOG_FILE_PATH
