"""Lookup table core: data model, builders, snapshot, and queries."""

from .enums import TimeMode
from .errors import (
    LabelNotFoundError,
    LookupTableError,
    MisalignedRecordError,
    MissingArgumentError,
    SnapshotFormatError,
    TimeMatchFormatError,
)
from .lookup_table import LookupTable
from .records import FixedTime, LabelRecord, Sample, TimeSeries
from .results import QueryResult

__all__ = [
    "LookupTable",
    "LabelRecord",
    "Sample",
    "FixedTime",
    "TimeSeries",
    "QueryResult",
    "TimeMode",
    "LookupTableError",
    "MissingArgumentError",
    "LabelNotFoundError",
    "MisalignedRecordError",
    "TimeMatchFormatError",
    "SnapshotFormatError",
]
