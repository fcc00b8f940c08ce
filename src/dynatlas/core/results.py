"""Flat, index-aligned query results returned by every LookupTable find-method."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

import pandas as pd

from dynatlas.core.records import Sample


@dataclass
class QueryResult:
    """Parallel lists, one entry per match.

    Per-page queries (find_time, find_label_time, find_static_label,
    find_dynamic_label) fill `tiffpages` and store the matched page's
    timestamp/uncertainty. find_embryo stores whole per-sample time values
    and leaves `tiffpages` empty.
    """

    labels: List[str] = field(default_factory=list)
    folders: List[str] = field(default_factory=list)
    names: List[str] = field(default_factory=list)
    embryo_ids: List[str] = field(default_factory=list)
    times: List[Any] = field(default_factory=list)
    uncs: List[Any] = field(default_factory=list)
    tiffpages: List[int] = field(default_factory=list)
    n_time_points: List[int] = field(default_factory=list)

    def add_page(self, label: str, sample: Sample, page: int, tstamp: float, unc: float) -> None:
        """Append one matched page of `sample`."""
        self.labels.append(label)
        self.folders.append(sample.folder)
        self.names.append(sample.name)
        self.embryo_ids.append(sample.embryo_id)
        self.times.append(tstamp)
        self.uncs.append(unc)
        self.tiffpages.append(page)
        self.n_time_points.append(sample.n_time_points)

    def add_sample(self, label: str, sample: Sample) -> None:
        """Append a whole sample with its unflattened time and uncertainty."""
        self.labels.append(label)
        self.folders.append(sample.folder)
        self.names.append(sample.name)
        self.embryo_ids.append(sample.embryo_id)
        self.times.append(sample.time_value)
        self.uncs.append(sample.unc_value)
        self.n_time_points.append(sample.n_time_points)

    def __len__(self) -> int:
        return len(self.embryo_ids)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def _populated_fields(self) -> List[str]:
        return [f.name for f in fields(self) if len(getattr(self, f.name)) == len(self)]

    def rows(self) -> List[Dict[str, Any]]:
        """One dict per entry; fields left empty for this query are omitted."""
        names = self._populated_fields()
        return [{name: getattr(self, name)[i] for name in names} for i in range(len(self))]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the result as a DataFrame, one row per entry."""
        names = self._populated_fields()
        if self.is_empty:
            return pd.DataFrame(columns=[f.name for f in fields(self)])
        return pd.DataFrame({name: getattr(self, name) for name in names})

    def as_batches(self) -> Dict[str, List[List[Any]]]:
        """Return the legacy nested layout: each field wrapped in a one-element list.

        An empty result gives empty lists, matching the old behaviour where
        nothing was appended when no sample matched.
        """
        out: Dict[str, List[List[Any]]] = {}
        for f in fields(self):
            values: List[Any] = getattr(self, f.name)
            out[f.name] = [list(values)] if not self.is_empty else []
        return out
