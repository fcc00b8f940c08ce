"""
JSON snapshot of a lookup map.

The snapshot lives at <root>/lookuptable_containersMap.json and stores the
naming convention used to build the map plus every label record in its
six-column layout. Static samples serialize their time/unc as numbers and
dynamic samples as lists, so the FixedTime/TimeSeries variant survives a
save/load round-trip.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from dynatlas.core.errors import SnapshotFormatError
from dynatlas.core.records import COLUMN_NAMES, LabelRecord
from dynatlas.core.utils.logging import get_logger

logger = get_logger(__name__)

SNAPSHOT_FILENAME = "lookuptable_containersMap.json"
SNAPSHOT_FORMAT = "dynatlas_lookup_map"
# Increment on any breaking change to the on-disk layout.
SNAPSHOT_SCHEMA_VERSION = 1


@dataclass
class Snapshot:
    """In-memory form of a snapshot document."""

    label_map: Dict[str, LabelRecord] = field(default_factory=dict)
    time_file_name: str = ""
    name_prefix: str = ""
    file_extension: str = ""

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "format": SNAPSHOT_FORMAT,
            "schema_version": SNAPSHOT_SCHEMA_VERSION,
            "time_file_name": self.time_file_name,
            "name_prefix": self.name_prefix,
            "file_extension": self.file_extension,
            "labels": {label: self.label_map[label].columns() for label in sorted(self.label_map)},
        }

    @classmethod
    def from_json_dict(cls, d: Mapping[str, Any]) -> "Snapshot":
        """Validate and decode a snapshot document.

        Raises:
            SnapshotFormatError: On a foreign format, schema mismatch, or missing columns.
            MisalignedRecordError: If a label's columns differ in length.
        """
        fmt = d.get("format")
        if fmt != SNAPSHOT_FORMAT:
            raise SnapshotFormatError(f"Unexpected snapshot format: {fmt!r} (expected {SNAPSHOT_FORMAT!r})")
        version = d.get("schema_version")
        if version != SNAPSHOT_SCHEMA_VERSION:
            raise SnapshotFormatError(
                f"Unsupported snapshot schema_version: {version!r} (expected {SNAPSHOT_SCHEMA_VERSION})"
            )

        labels_raw = d.get("labels")
        if not isinstance(labels_raw, dict):
            raise SnapshotFormatError("Snapshot 'labels' must be an object")

        label_map: Dict[str, LabelRecord] = {}
        for label, columns in labels_raw.items():
            if not isinstance(columns, dict):
                raise SnapshotFormatError(f"Snapshot entry for label {label!r} must be an object")
            missing = [name for name in COLUMN_NAMES if name not in columns]
            if missing:
                raise SnapshotFormatError(f"Snapshot entry for label {label!r} is missing {missing}")
            label_map[str(label)] = LabelRecord.from_columns(**{name: columns[name] for name in COLUMN_NAMES})

        return cls(
            label_map=label_map,
            time_file_name=str(d.get("time_file_name", "")),
            name_prefix=str(d.get("name_prefix", "")),
            file_extension=str(d.get("file_extension", "")),
        )


def snapshot_path(root_directory: str | Path) -> Path:
    """Fixed snapshot location inside `root_directory`."""
    return Path(root_directory).expanduser() / SNAPSHOT_FILENAME


def save_snapshot(snapshot: Snapshot, root_directory: str | Path) -> Path:
    """Write `snapshot` to the root directory, replacing any existing file."""
    path = snapshot_path(root_directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot.to_json_dict(), indent=2), encoding="utf-8")
    logger.info("Saved lookup map snapshot (%d labels) to %s", len(snapshot.label_map), path)
    return path


def load_snapshot(root_directory: str | Path) -> Snapshot:
    """Read the snapshot stored in `root_directory`.

    Raises:
        FileNotFoundError: If no snapshot exists.
        SnapshotFormatError: If the file is not a valid snapshot document.
    """
    path = snapshot_path(root_directory)
    if not path.is_file():
        raise FileNotFoundError(f"Lookup map snapshot not found: {path}")

    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Snapshot {path} is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise SnapshotFormatError(f"Snapshot {path} must contain a JSON object")

    snapshot = Snapshot.from_json_dict(parsed)
    logger.info("Loaded lookup map snapshot (%d labels) from %s", len(snapshot.label_map), path)
    return snapshot
