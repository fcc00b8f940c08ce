"""
Lookup table over embryo staining data, keyed by stain label.

Example:
    ```python
    table = LookupTable("/data/WT")        # scan a genotype directory
    table.find_time(40)                    # every page within 0.5 of t=40
    table.find_time(40, 3)
    table.find_label("Eve")                # LabelRecord for Eve
    table.find_label_time("Eve", 40, 3)
    table.find_embryo("201904011200")
    table.save()                           # <root>/lookuptable_containersMap.json

    table = LookupTable.load("/data/WT")   # reload without rescanning
    ```

The map is read-only once built; `rebuild()` replaces it wholesale.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from dynatlas.core.builder import (
    DEFAULT_FILE_EXTENSION,
    DEFAULT_NAME_PREFIX,
    DEFAULT_TIME_FILE_NAME,
    build_lookup_map,
    build_struct_wrt_time,
)
from dynatlas.core.enums import TimeMode
from dynatlas.core.errors import LabelNotFoundError, MissingArgumentError
from dynatlas.core.records import LabelRecord
from dynatlas.core.results import QueryResult
from dynatlas.core.snapshot import Snapshot, load_snapshot, save_snapshot
from dynatlas.core.snapshot import snapshot_path as _snapshot_path
from dynatlas.core.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EPSILON = 0.5


def _require(value: Any, argument: str, operation: str) -> None:
    if value is None or (isinstance(value, (str, Path)) and str(value) == ""):
        raise MissingArgumentError(argument, operation)


class LookupTable:
    """Look up embryo samples by stain label, time, or embryo ID.

    Attributes:
        root_directory: Genotype directory the map was built from (and saved to).
        time_file_name: Time-match file name inside each embryo folder.
        name_prefix: Image file name without extension; '*' is the channel index.
        file_extension: Image file extension.
    """

    def __init__(
        self,
        root_directory: str | Path,
        time_file_name: str = DEFAULT_TIME_FILE_NAME,
        name_prefix: str = DEFAULT_NAME_PREFIX,
        file_extension: str = DEFAULT_FILE_EXTENSION,
        *,
        label_map: Optional[Mapping[str, Any]] = None,
    ):
        """Build the lookup map, or adopt an already-built one.

        Args:
            root_directory: Genotype directory to scan (required).
            time_file_name: Time-match file name inside each embryo folder.
            name_prefix: Image file name without extension; '*' is the channel index.
            file_extension: Image file extension.
            label_map: Pre-built label -> LabelRecord map. Values may also be dicts of the
                six columns (times, uncs, folders, names, embryoIDs, nTimePoints).
                When given, no scan happens.

        Raises:
            MissingArgumentError: If `root_directory` is not supplied.
            FileNotFoundError: If scanning and `root_directory` does not exist.
            TypeError: If a `label_map` value is neither a LabelRecord nor a column dict.
            MisalignedRecordError: If a column dict has columns of different lengths.
        """
        _require(root_directory, "a directory to use (root_directory)", "LookupTable")
        self.root_directory = Path(root_directory).expanduser()
        self.time_file_name = time_file_name
        self.name_prefix = name_prefix
        self.file_extension = file_extension

        if label_map is None:
            label_map = build_lookup_map(
                self.root_directory,
                time_file_name=time_file_name,
                name_prefix=name_prefix,
                file_extension=file_extension,
            )
        self._set_map(label_map)

    def _set_map(self, label_map: Mapping[str, Any]) -> None:
        records: Dict[str, LabelRecord] = {}
        for label in sorted(label_map):
            value = label_map[label]
            if isinstance(value, Mapping):
                value = LabelRecord.from_columns(**value)
            elif not isinstance(value, LabelRecord):
                raise TypeError(
                    f"label_map[{label!r}] must be a LabelRecord or a column dict, got {type(value).__name__}"
                )
            records[label] = value
        self._map: Mapping[str, LabelRecord] = MappingProxyType(records)

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @classmethod
    def load(cls, root_directory: str | Path) -> "LookupTable":
        """Load a table from the snapshot saved in `root_directory`.

        Raises:
            MissingArgumentError: If `root_directory` is not supplied.
            FileNotFoundError: If no snapshot exists there.
            SnapshotFormatError: If the snapshot is not a valid document.
        """
        _require(root_directory, "a directory to load from (root_directory)", "load")
        snapshot = load_snapshot(root_directory)
        return cls(
            root_directory,
            time_file_name=snapshot.time_file_name or DEFAULT_TIME_FILE_NAME,
            name_prefix=snapshot.name_prefix or DEFAULT_NAME_PREFIX,
            file_extension=snapshot.file_extension or DEFAULT_FILE_EXTENSION,
            label_map=snapshot.label_map,
        )

    @staticmethod
    def snapshot_path(root_directory: str | Path) -> Path:
        return _snapshot_path(root_directory)

    def save(self) -> Path:
        """Write the map to <root_directory>/lookuptable_containersMap.json (overwrites)."""
        snapshot = Snapshot(
            label_map=dict(self._map),
            time_file_name=self.time_file_name,
            name_prefix=self.name_prefix,
            file_extension=self.file_extension,
        )
        return save_snapshot(snapshot, self.root_directory)

    def rebuild(self) -> None:
        """Rescan the root directory and replace the map."""
        label_map = build_lookup_map(
            self.root_directory,
            time_file_name=self.time_file_name,
            name_prefix=self.name_prefix,
            file_extension=self.file_extension,
        )
        self._set_map(label_map)

    # -----------------------------
    # Introspection
    # -----------------------------
    @property
    def label_map(self) -> Mapping[str, LabelRecord]:
        """Read-only label -> LabelRecord mapping."""
        return self._map

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self._map)

    @property
    def n_samples(self) -> int:
        return sum(len(record) for record in self._map.values())

    def embryo_ids(self) -> list[str]:
        """Sorted unique embryo IDs across all labels."""
        return sorted({sample.embryo_id for record in self._map.values() for sample in record})

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, label: object) -> bool:
        return label in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __repr__(self) -> str:
        return f"LookupTable(root_directory={str(self.root_directory)!r}, labels={list(self._map)}, n_samples={self.n_samples})"

    # -----------------------------
    # Queries
    # -----------------------------
    def find_time(self, target_time: float, epsilon: float = DEFAULT_EPSILON) -> QueryResult:
        """Find every stained page with a timestamp near `target_time`.

        A page matches when abs(timestamp - target_time) < epsilon. Dynamic
        samples can match on several pages, each reported with its own page.

        Args:
            target_time: Timestamp to search for.
            epsilon: Allowed difference from `target_time` (exclusive).

        Returns:
            QueryResult with labels, folders, names, embryo_ids, times, uncs,
            tiffpages and n_time_points, one entry per matching page.
        """
        _require(target_time, "target_time (a time to search for)", "find_time")
        result = QueryResult()
        for label, record in self._map.items():
            self._collect_time_matches(result, label, record, target_time, epsilon)
        logger.debug("find_time(%s, %s): %d matches", target_time, epsilon, len(result))
        return result

    def find_label(self, label: str) -> LabelRecord:
        """Return the LabelRecord stored under `label`.

        Raises:
            LabelNotFoundError: If `label` is not in the map.
        """
        _require(label, "label (a channel to search for)", "find_label")
        try:
            return self._map[label]
        except KeyError:
            raise LabelNotFoundError(label, self._map.keys()) from None

    def find_static_label(self, label: str) -> QueryResult:
        """Fixed (static) samples of `label`, ordered by time."""
        _require(label, "label (a channel to search for)", "find_static_label")
        return build_struct_wrt_time(self._map, TimeMode.STATIC, label)

    def find_dynamic_label(self, label: str) -> QueryResult:
        """Live-imaged (dynamic) samples of `label`, one entry per page, ordered by time."""
        _require(label, "label (a channel to search for)", "find_dynamic_label")
        return build_struct_wrt_time(self._map, TimeMode.DYNAMIC, label)

    def find_label_time(
        self,
        label: str,
        target_time: float,
        epsilon: float = DEFAULT_EPSILON,
    ) -> QueryResult:
        """Find pages of `label` with a timestamp near `target_time`.

        Same predicate as find_time() restricted to one label. An absent
        label simply yields an empty result.
        """
        _require(label, "both label and target_time", "find_label_time")
        _require(target_time, "both label and target_time", "find_label_time")
        result = QueryResult()
        record = self._map.get(label)
        if record is not None:
            self._collect_time_matches(result, label, record, target_time, epsilon)
        logger.debug("find_label_time(%s, %s, %s): %d matches", label, target_time, epsilon, len(result))
        return result

    def find_embryo(self, embryo_id: str) -> QueryResult:
        """Find every (label, sample) pair recorded for `embryo_id`.

        Times and uncertainties are the unflattened per-sample values: a float
        for static samples, a tuple for dynamic ones.
        """
        _require(embryo_id, "embryo_id (an embryo to search for)", "find_embryo")
        result = QueryResult()
        for label, record in self._map.items():
            for sample in record:
                if sample.embryo_id == embryo_id:
                    result.add_sample(label, sample)
        logger.debug("find_embryo(%s): %d matches", embryo_id, len(result))
        return result

    @staticmethod
    def _collect_time_matches(
        result: QueryResult,
        label: str,
        record: LabelRecord,
        target_time: float,
        epsilon: float,
    ) -> None:
        for sample in record:
            for page, tstamp, unc in sample.pages():
                if abs(tstamp - target_time) < epsilon:
                    result.add_page(label, sample, page, tstamp, unc)

    def summary(self) -> Dict[str, Dict[str, int]]:
        """Per-label counts of static and dynamic samples."""
        out: Dict[str, Dict[str, int]] = {}
        for label, record in self._map.items():
            n_dynamic = sum(1 for sample in record if sample.is_dynamic)
            out[label] = {"static": len(record) - n_dynamic, "dynamic": n_dynamic}
        return out
