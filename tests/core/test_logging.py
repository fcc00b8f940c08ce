"""Tests for logging setup."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from dynatlas.core.utils.logging import get_log_file_path, get_logger, setup_logging


def test_get_logger_default_name() -> None:
    assert get_logger().name == "dynatlas"
    assert get_logger("dynatlas.core").name == "dynatlas.core"


def test_setup_logging_writes_file(tmp_path: Path, restore_root_logging: None) -> None:
    setup_logging("info", log_dir=tmp_path)
    log_path = get_log_file_path()
    assert log_path == tmp_path / "dynatlas.log"

    root = logging.getLogger()
    rotating = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(rotating) == 1

    get_logger("dynatlas.test").debug("debug goes to file only")
    rotating[0].flush()
    assert "debug goes to file only" in log_path.read_text(encoding="utf-8")


def test_setup_logging_reconfigures(tmp_path: Path, restore_root_logging: None) -> None:
    setup_logging("DEBUG", log_dir=tmp_path)
    setup_logging("WARNING", log_dir=tmp_path)
    root = logging.getLogger()
    rotating = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(rotating) == 1
