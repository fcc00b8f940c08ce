"""
Readers for per-embryo time-match files.

Each embryo folder holds one time-match file (default
`timematch_Runt_chisq.mat`) giving the developmental timestamp(s) matched to
that embryo and their uncertainty. Supported layouts, chosen by suffix:

- .mat  : MATLAB file, read with scipy.io.loadmat
- .csv  : table with a time column and an optional uncertainty column
- .json : object with time and optional uncertainty keys

One timestamp gives a FixedTime, several give a TimeSeries (one per page).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd
import scipy.io

from dynatlas.core.errors import TimeMatchFormatError
from dynatlas.core.records import TimeData, make_time_data
from dynatlas.core.utils.logging import get_logger

logger = get_logger(__name__)

TIME_KEYS = ("time", "times", "timestamp")
UNC_KEYS = ("unc", "uncs", "uncertainty", "sigma")


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Optional[Any]:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_floats(values: Any, what: str, source: str) -> np.ndarray:
    try:
        return np.asarray(values, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise TimeMatchFormatError(f"Non-numeric {what} values in {source}: {e}") from e


def _read_mat(path: Path) -> dict[str, Any]:
    raw = scipy.io.loadmat(str(path), squeeze_me=True)
    return {k: v for k, v in raw.items() if not k.startswith("__")}


def _read_csv(path: Path) -> dict[str, Any]:
    df = pd.read_csv(path)
    df.columns = [str(c).strip() for c in df.columns]
    wanted = TIME_KEYS + UNC_KEYS
    return {col: df[col].to_numpy(dtype=float) for col in df.columns if col in wanted}


def _read_json(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        parsed = json.load(f)
    if not isinstance(parsed, dict):
        raise TimeMatchFormatError(f"Expected a JSON object in {path}")
    return parsed


_READERS = {
    ".mat": _read_mat,
    ".csv": _read_csv,
    ".json": _read_json,
}


def time_data_from_mapping(data: Mapping[str, Any], source: str = "<mapping>") -> TimeData:
    """Interpret a loaded mapping of time/uncertainty arrays.

    Raises:
        TimeMatchFormatError: If no time values are present, or values are not numeric.
        MisalignedRecordError: If uncertainties cannot be matched to times.
    """
    times = _first_present(data, TIME_KEYS)
    if times is None:
        raise TimeMatchFormatError(f"No time values ({', '.join(TIME_KEYS)}) in {source}")

    time_arr = _as_floats(times, "time", source)
    if time_arr.size == 0:
        raise TimeMatchFormatError(f"Empty time values in {source}")

    uncs = _first_present(data, UNC_KEYS)
    if uncs is None:
        logger.debug("No uncertainty in %s, using 0.0", source)
        uncs = 0.0
    else:
        uncs = _as_floats(uncs, "uncertainty", source)

    if time_arr.size == 1:
        return make_time_data(float(time_arr[0]), uncs)
    return make_time_data(time_arr, uncs)


def read_time_match(path: str | Path) -> TimeData:
    """Read a time-match file into a FixedTime or TimeSeries.

    Raises:
        FileNotFoundError: If `path` does not exist.
        TimeMatchFormatError: If the suffix is unsupported or no time values are found.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Time-match file not found: {path}")

    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise TimeMatchFormatError(
            f"Unsupported time-match file type {path.suffix!r} ({path}); "
            f"expected one of {sorted(_READERS)}"
        )

    try:
        data = reader(path)
    except TimeMatchFormatError:
        raise
    except Exception as e:
        raise TimeMatchFormatError(f"Failed to read time-match file {path}: {e}") from e

    return time_data_from_mapping(data, source=str(path))
