"""Tests for the dynatlas command line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from dynatlas.cli import main
from dynatlas.core.lookup_table import LookupTable
from dynatlas.core.user_config import UserConfig

from conftest import PREFIX, TIME_FILE


@pytest.fixture
def cfg(tmp_path: Path) -> UserConfig:
    cfg = UserConfig.load(config_path=tmp_path / "cfg" / "user_config.json")
    cfg.set_naming_convention(time_file_name=TIME_FILE, name_prefix=PREFIX, file_extension=".tif")
    return cfg


def _run(argv: list[str], cfg: UserConfig, log_dir: Path) -> int:
    return main([*argv[:1], "--log-dir", str(log_dir), *argv[1:]], config=cfg)


def test_build_and_save(
    atlas_root: Path, cfg: UserConfig, tmp_path: Path, capsys: pytest.CaptureFixture[str], restore_root_logging: None
) -> None:
    assert _run([str(atlas_root), "build", "--save"], cfg, tmp_path / "logs") == 0
    out = capsys.readouterr().out
    assert "2 labels, 5 samples" in out
    assert LookupTable.snapshot_path(atlas_root).exists()
    assert cfg.get_recent_roots() == [str(atlas_root.resolve(strict=False))]
    assert cfg.path.exists()


def test_queries_from_snapshot(
    atlas_root: Path, cfg: UserConfig, tmp_path: Path, capsys: pytest.CaptureFixture[str], restore_root_logging: None
) -> None:
    LookupTable(atlas_root, TIME_FILE, PREFIX, ".tif").save()
    log_dir = tmp_path / "logs"

    assert _run([str(atlas_root), "--snapshot", "time", "40.3", "--eps", "0.05"], cfg, log_dir) == 0
    assert "201905011000" in capsys.readouterr().out

    assert _run([str(atlas_root), "--snapshot", "embryo", "201904011200"], cfg, log_dir) == 0
    out = capsys.readouterr().out
    assert "Eve" in out and "Runt" in out

    assert _run([str(atlas_root), "--snapshot", "label-time", "Eve", "100"], cfg, log_dir) == 0
    assert "No matches" in capsys.readouterr().out

    assert _run([str(atlas_root), "--snapshot", "labels"], cfg, log_dir) == 0
    assert "dynamic" in capsys.readouterr().out

    assert _run([str(atlas_root), "--snapshot", "dynamic", "Runt"], cfg, log_dir) == 0
    assert "tiffpages" in capsys.readouterr().out


def test_unknown_label_exits_nonzero(
    atlas_root: Path, cfg: UserConfig, tmp_path: Path, restore_root_logging: None
) -> None:
    assert _run([str(atlas_root), "label", "Pax"], cfg, tmp_path / "logs") == 1
    assert not cfg.path.exists()


def test_missing_root_exits_nonzero(cfg: UserConfig, tmp_path: Path, restore_root_logging: None) -> None:
    assert _run([str(tmp_path / "missing"), "build"], cfg, tmp_path / "logs") == 1
