"""
Per-label sample records held by the lookup table.

A stain label (e.g. "Eve", "Runt") maps to a LabelRecord: an ordered tuple of
Sample values, one per embryo stained with that label. Each sample carries its
time data as a tagged variant:

- FixedTime: a static (fixed) embryo with a single timestamp.
- TimeSeries: a live-imaged embryo with one timestamp per TIFF page.

The legacy six-column view (times, uncs, folders, names, embryoIDs,
nTimePoints) is still available through `LabelRecord.from_columns()` and
`LabelRecord.columns()`; it is the shape used by the JSON snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple, Union

import numpy as np

from dynatlas.core.errors import MisalignedRecordError

# Column names of the legacy parallel-sequence layout.
COLUMN_NAMES: Tuple[str, ...] = (
    "times",
    "uncs",
    "folders",
    "names",
    "embryoIDs",
    "nTimePoints",
)


@dataclass(frozen=True)
class FixedTime:
    """Single timestamp of a static sample (always TIFF page 1)."""

    timestamp: float
    uncertainty: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", float(self.timestamp))
        object.__setattr__(self, "uncertainty", float(self.uncertainty))

    @property
    def value(self) -> float:
        return self.timestamp

    @property
    def unc_value(self) -> float:
        return self.uncertainty

    def pages(self) -> Iterator[Tuple[int, float, float]]:
        """Yield (page, timestamp, uncertainty); page is 1-based."""
        yield 1, self.timestamp, self.uncertainty


@dataclass(frozen=True)
class TimeSeries:
    """Per-page timestamps of a dynamic (live-imaged) sample."""

    timestamps: Tuple[float, ...]
    uncertainties: Tuple[float, ...]

    def __post_init__(self) -> None:
        timestamps = tuple(float(t) for t in self.timestamps)
        uncertainties = tuple(float(u) for u in self.uncertainties)
        if len(timestamps) != len(uncertainties):
            raise MisalignedRecordError(
                f"TimeSeries has {len(timestamps)} timestamps but "
                f"{len(uncertainties)} uncertainties"
            )
        object.__setattr__(self, "timestamps", timestamps)
        object.__setattr__(self, "uncertainties", uncertainties)

    @property
    def value(self) -> Tuple[float, ...]:
        return self.timestamps

    @property
    def unc_value(self) -> Tuple[float, ...]:
        return self.uncertainties

    def pages(self) -> Iterator[Tuple[int, float, float]]:
        """Yield (page, timestamp, uncertainty) for every page, 1-based."""
        for page, (tstamp, unc) in enumerate(zip(self.timestamps, self.uncertainties), start=1):
            yield page, tstamp, unc


TimeData = Union[FixedTime, TimeSeries]


def _is_scalar(value: Any) -> bool:
    return np.ndim(value) == 0


def make_time_data(times: Any, uncs: Any = 0.0) -> TimeData:
    """Build the time variant from raw values.

    A scalar time gives FixedTime; any sequence (even of length one) gives a
    TimeSeries. A scalar or length-one uncertainty is broadcast across pages.

    Raises:
        MisalignedRecordError: If the uncertainty cannot be matched to the times.
    """
    if uncs is None:
        uncs = 0.0

    if _is_scalar(times):
        if _is_scalar(uncs):
            return FixedTime(float(times), float(uncs))
        unc_arr = np.asarray(uncs, dtype=float).ravel()
        if unc_arr.size != 1:
            raise MisalignedRecordError(
                f"Fixed time {times!r} has {unc_arr.size} uncertainty values"
            )
        return FixedTime(float(times), float(unc_arr[0]))

    time_arr = np.asarray(times, dtype=float).ravel()
    if _is_scalar(uncs):
        unc_arr = np.full(time_arr.shape, float(uncs))
    else:
        unc_arr = np.asarray(uncs, dtype=float).ravel()
        if unc_arr.size == 1 and time_arr.size != 1:
            unc_arr = np.full(time_arr.shape, float(unc_arr[0]))
    return TimeSeries(tuple(time_arr.tolist()), tuple(unc_arr.tolist()))


@dataclass(frozen=True)
class Sample:
    """One embryo's data under a given label."""

    time: TimeData
    folder: str
    name: str
    embryo_id: str
    n_time_points: int = 1

    @property
    def is_dynamic(self) -> bool:
        return isinstance(self.time, TimeSeries)

    @property
    def time_value(self) -> Union[float, Tuple[float, ...]]:
        """Time as stored: a float for static samples, a tuple for dynamic ones."""
        return self.time.value

    @property
    def unc_value(self) -> Union[float, Tuple[float, ...]]:
        return self.time.unc_value

    def pages(self) -> Iterator[Tuple[int, float, float]]:
        return self.time.pages()


@dataclass(frozen=True)
class LabelRecord:
    """Every sample stained with one label, in scan order."""

    samples: Tuple[Sample, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "samples", tuple(self.samples))

    @classmethod
    def from_columns(
        cls,
        times: Sequence[Any],
        uncs: Sequence[Any],
        folders: Sequence[str],
        names: Sequence[str],
        embryoIDs: Sequence[str],
        nTimePoints: Sequence[int],
    ) -> "LabelRecord":
        """Build a record from six index-aligned sequences.

        Raises:
            MisalignedRecordError: If the sequences differ in length.
        """
        columns = {
            "times": times,
            "uncs": uncs,
            "folders": folders,
            "names": names,
            "embryoIDs": embryoIDs,
            "nTimePoints": nTimePoints,
        }
        lengths = {key: len(value) for key, value in columns.items()}
        if len(set(lengths.values())) > 1:
            detail = ", ".join(f"{k}={n}" for k, n in lengths.items())
            raise MisalignedRecordError(f"Label record columns differ in length: {detail}")

        samples = [
            Sample(
                time=make_time_data(t, u),
                folder=str(folder),
                name=str(name),
                embryo_id=str(embryo_id),
                n_time_points=int(n_pages),
            )
            for t, u, folder, name, embryo_id, n_pages in zip(
                times, uncs, folders, names, embryoIDs, nTimePoints
            )
        ]
        return cls(samples=tuple(samples))

    def columns(self) -> Dict[str, List[Any]]:
        """Return the record as six parallel lists keyed by COLUMN_NAMES.

        Static samples give a float time/unc, dynamic samples give a list.
        """
        return {
            "times": [_plain(s.time_value) for s in self.samples],
            "uncs": [_plain(s.unc_value) for s in self.samples],
            "folders": self.folders,
            "names": self.names,
            "embryoIDs": self.embryo_ids,
            "nTimePoints": self.n_time_points,
        }

    @property
    def times(self) -> List[Union[float, Tuple[float, ...]]]:
        return [s.time_value for s in self.samples]

    @property
    def uncs(self) -> List[Union[float, Tuple[float, ...]]]:
        return [s.unc_value for s in self.samples]

    @property
    def folders(self) -> List[str]:
        return [s.folder for s in self.samples]

    @property
    def names(self) -> List[str]:
        return [s.name for s in self.samples]

    @property
    def embryo_ids(self) -> List[str]:
        return [s.embryo_id for s in self.samples]

    @property
    def n_time_points(self) -> List[int]:
        return [s.n_time_points for s in self.samples]

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)


def _plain(value: Union[float, Tuple[float, ...]]) -> Union[float, List[float]]:
    return list(value) if isinstance(value, tuple) else value
