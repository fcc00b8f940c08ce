"""Pytest configuration and fixtures for dynatlas tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Iterator

import numpy as np
import pytest
import scipy.io
import tifffile

from dynatlas.core.records import LabelRecord

PREFIX = "MAX_Cyl1_2_000000_c*_rot_scaled_view1"
TIME_FILE = "timematch_Runt_chisq.mat"


@pytest.fixture
def eve_map() -> dict[str, LabelRecord]:
    """Single dynamic Eve embryo with two pages at t=39.8 and t=40.1."""
    return {
        "Eve": LabelRecord.from_columns(
            times=[[39.8, 40.1]],
            uncs=[[0.3, 0.3]],
            folders=["/d/e1"],
            names=["e1.tif"],
            embryoIDs=["E1"],
            nTimePoints=[2],
        )
    }


@pytest.fixture
def mixed_map() -> dict[str, LabelRecord]:
    """Two labels, static and dynamic samples, embryo E2 stained for both."""
    return {
        "Runt": LabelRecord.from_columns(
            times=[[38.0, 40.2, 42.0], 40.4],
            uncs=[[0.5, 0.6, 0.7], 1.5],
            folders=["/d/Runt/E2", "/d/Runt/E3"],
            names=["r2.tif", "r3.tif"],
            embryoIDs=["E2", "E3"],
            nTimePoints=[3, 1],
        ),
        "Eve": LabelRecord.from_columns(
            times=[41.0, 39.9, [30.0, 31.0]],
            uncs=[1.0, 2.0, [0.1, 0.2]],
            folders=["/d/Eve/E1", "/d/Eve/E2", "/d/Eve/E4"],
            names=["e1.tif", "e2.tif", "e4.tif"],
            embryoIDs=["E1", "E2", "E4"],
            nTimePoints=[1, 1, 2],
        ),
    }


def write_stack(path: Path, n_pages: int) -> None:
    """Write an n-page uint8 TIFF stack."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tifffile.imwrite(str(path), np.zeros((n_pages, 8, 8), dtype=np.uint8), photometric="minisblack")


def write_time_mat(path: Path, times: list[float] | float, uncs: list[float] | float) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    scipy.io.savemat(str(path), {"time": np.atleast_1d(times), "unc": np.atleast_1d(uncs)})


@pytest.fixture
def make_embryo() -> Callable[..., Path]:
    """Factory writing one embryo folder: channel stacks plus a .mat time-match file."""

    def _make(
        label_dir: Path,
        embryo_id: str,
        times: list[float] | float,
        uncs: list[float] | float,
        channels: int = 1,
        n_pages: int | None = None,
    ) -> Path:
        folder = label_dir / embryo_id
        if n_pages is None:
            n_pages = len(times) if isinstance(times, list) else 1
        for channel in range(1, channels + 1):
            write_stack(folder / f"{PREFIX.replace('*', str(channel))}.tif", n_pages)
        write_time_mat(folder / TIME_FILE, times, uncs)
        return folder

    return _make


@pytest.fixture
def atlas_root(tmp_path: Path, make_embryo: Callable[..., Path]) -> Path:
    """Atlas tree with a two-label directory (Eve_Runt) and a single-label one (Runt).

    WT/
      Eve_Runt/201904011200/  c1 -> Eve, c2 -> Runt, dynamic (3 pages)
      Eve_Runt/201904021300/  static t=45
      Runt/201905011000/      static t=40.3
    """
    root = tmp_path / "WT"
    make_embryo(root / "Eve_Runt", "201904011200", [39.0, 40.0, 41.0], [0.2, 0.2, 0.2], channels=2)
    make_embryo(root / "Eve_Runt", "201904021300", 45.0, 1.0, channels=2)
    make_embryo(root / "Runt", "201905011000", 40.3, 0.5, channels=1)
    return root


@pytest.fixture
def write_json() -> Callable[[Path, object], Path]:
    def _write(path: Path, payload: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Restore root logger handlers after a test that calls setup_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)
