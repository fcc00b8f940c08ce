"""
Build the label -> LabelRecord map from an atlas directory tree.

Expected layout under the root (genotype) directory:

    <root>/
      <LabelDir>/              e.g. "Runt" or "Eve_Runt" (labels joined by "_")
        <embryo folder>/       folder name is the embryo ID, e.g. "201904011200"
          <name_prefix><ext>   '*' in the prefix is replaced by the channel index
          <time_file_name>     time-match file, see time_match.py

Channel i (1-based) of a label directory belongs to the i-th label of its name,
so "Eve_Runt/<embryo>/MAX_..._c2_....tif" is the Runt stain of that embryo.

This module also provides `build_struct_wrt_time`, the time-ordered view used by
LookupTable.find_static_label() / find_dynamic_label().
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Tuple

import tifffile

from dynatlas.core.enums import TimeMode
from dynatlas.core.errors import LabelNotFoundError, TimeMatchFormatError
from dynatlas.core.records import FixedTime, LabelRecord, Sample, TimeSeries
from dynatlas.core.results import QueryResult
from dynatlas.core.time_match import read_time_match
from dynatlas.core.utils.logging import get_logger

logger = get_logger(__name__)

# Naming-convention defaults of the pullback export pipeline.
DEFAULT_TIME_FILE_NAME = "timematch_Runt_chisq.mat"
DEFAULT_NAME_PREFIX = "MAX_Cyl1_2_000000_c*_rot_scaled_view1"
DEFAULT_FILE_EXTENSION = ".tif"

LABEL_SEPARATOR = "_"


def split_label_dir(name: str) -> List[str]:
    """Return the stain labels encoded in a label directory name."""
    return [part for part in name.split(LABEL_SEPARATOR) if part]


def image_name_for_channel(name_prefix: str, file_extension: str, channel: int) -> str:
    """Image file name of 1-based `channel` under the given naming convention."""
    if file_extension and not file_extension.startswith("."):
        file_extension = f".{file_extension}"
    return f"{name_prefix.replace('*', str(channel))}{file_extension}"


def count_tiff_pages(path: str | Path) -> int:
    """Number of pages in a TIFF stack (time points of a pullback)."""
    with tifffile.TiffFile(str(path)) as tif:
        return len(tif.pages)


def _iter_subdirs(folder: Path) -> List[Path]:
    return sorted(p for p in folder.iterdir() if p.is_dir() and not p.name.startswith("."))


def build_lookup_map(
    root_directory: str | Path,
    time_file_name: str = DEFAULT_TIME_FILE_NAME,
    name_prefix: str = DEFAULT_NAME_PREFIX,
    file_extension: str = DEFAULT_FILE_EXTENSION,
) -> Dict[str, LabelRecord]:
    """Scan `root_directory` and return a map of label -> LabelRecord.

    Embryos whose image or time-match file is missing or unreadable are skipped
    with a warning. Labels without any usable sample are left out.

    Args:
        root_directory: Genotype directory holding one folder per label set.
        time_file_name: File name of the time-match file inside each embryo folder.
        name_prefix: Image file name without extension; '*' is the channel index.
        file_extension: Image file extension (e.g. ".tif").

    Returns:
        Dict mapping label to LabelRecord, in sorted label order.

    Raises:
        FileNotFoundError: If `root_directory` does not exist or is not a directory.
    """
    root = Path(root_directory).expanduser()
    if not root.is_dir():
        raise FileNotFoundError(f"Atlas root directory not found: {root}")

    samples_by_label: Dict[str, List[Sample]] = {}
    n_skipped = 0

    for label_dir in _iter_subdirs(root):
        labels = split_label_dir(label_dir.name)
        if not labels:
            continue
        embryo_dirs = _iter_subdirs(label_dir)
        logger.debug("Scanning %s: labels=%s, %d embryo folders", label_dir, labels, len(embryo_dirs))

        for embryo_dir in embryo_dirs:
            time_path = embryo_dir / time_file_name
            if not time_path.is_file():
                logger.warning("Skipping %s: no time-match file %s", embryo_dir, time_file_name)
                n_skipped += len(labels)
                continue
            try:
                time_data = read_time_match(time_path)
            except TimeMatchFormatError as e:
                logger.warning("Skipping %s: %s", embryo_dir, e)
                n_skipped += len(labels)
                continue

            for channel, label in enumerate(labels, start=1):
                image_name = image_name_for_channel(name_prefix, file_extension, channel)
                image_path = embryo_dir / image_name
                if not image_path.is_file():
                    logger.warning("Skipping %s for label %s: missing %s", embryo_dir, label, image_name)
                    n_skipped += 1
                    continue
                try:
                    n_pages = count_tiff_pages(image_path)
                except (tifffile.TiffFileError, OSError) as e:
                    logger.warning("Skipping %s for label %s: unreadable %s (%s)", embryo_dir, label, image_name, e)
                    n_skipped += 1
                    continue

                sample = Sample(
                    time=time_data,
                    folder=str(embryo_dir),
                    name=image_name,
                    embryo_id=embryo_dir.name,
                    n_time_points=n_pages,
                )
                samples_by_label.setdefault(label, []).append(sample)

    label_map = {label: LabelRecord(samples=tuple(samples_by_label[label])) for label in sorted(samples_by_label)}
    n_samples = sum(len(record) for record in label_map.values())
    logger.info(
        "Built lookup map from %s: %d labels, %d samples (%d skipped)",
        root,
        len(label_map),
        n_samples,
        n_skipped,
    )
    return label_map


def build_struct_wrt_time(
    label_map: Mapping[str, LabelRecord],
    mode: TimeMode | str,
    label: str,
) -> QueryResult:
    """Collect static or dynamic samples of `label`, ordered by time.

    STATIC keeps FixedTime samples (one entry each, page 1). DYNAMIC keeps
    TimeSeries samples and emits one entry per page. Ties keep scan order.

    Raises:
        ValueError: If `mode` is not a TimeMode value.
        LabelNotFoundError: If `label` is not in `label_map`.
    """
    mode = TimeMode(mode)
    if label not in label_map:
        raise LabelNotFoundError(label, sorted(label_map))

    wanted = FixedTime if mode is TimeMode.STATIC else TimeSeries
    entries: List[Tuple[float, Sample, int, float]] = []
    for sample in label_map[label]:
        if not isinstance(sample.time, wanted):
            continue
        for page, tstamp, unc in sample.pages():
            entries.append((tstamp, sample, page, unc))

    entries.sort(key=lambda entry: entry[0])

    result = QueryResult()
    for tstamp, sample, page, unc in entries:
        result.add_page(label, sample, page, tstamp, unc)

    logger.debug("build_struct_wrt_time(%s, %s): %d entries", mode.value, label, len(result))
    return result
