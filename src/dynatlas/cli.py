"""Command line entry point: build, save, and query a lookup table.

Run:
    dynatlas /path/to/WT build --save
    dynatlas /path/to/WT --snapshot time 40 --eps 3
    dynatlas /path/to/WT --snapshot label-time Eve 40
    dynatlas /path/to/WT --snapshot embryo 201904011200
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from dynatlas.core.errors import LookupTableError
from dynatlas.core.lookup_table import LookupTable
from dynatlas.core.results import QueryResult
from dynatlas.core.user_config import UserConfig
from dynatlas.core.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _build_parser(cfg: UserConfig) -> argparse.ArgumentParser:
    time_file_name, name_prefix, file_extension = cfg.get_naming_convention()
    eps = cfg.get_default_epsilon()

    parser = argparse.ArgumentParser(prog="dynatlas", description=__doc__.splitlines()[0])
    parser.add_argument("root", type=Path, help="Atlas root (genotype) directory")
    parser.add_argument(
        "--snapshot",
        action="store_true",
        help="Load the saved lookup map snapshot instead of scanning the directory",
    )
    parser.add_argument("--time-file", default=time_file_name, help="Time-match file name in each embryo folder")
    parser.add_argument("--prefix", default=name_prefix, help="Image name prefix, '*' is the channel index")
    parser.add_argument("--ext", default=file_extension, help="Image file extension")
    parser.add_argument("--log-level", default="WARNING", help="Console log level")
    parser.add_argument("--log-dir", type=Path, default=None, help="Folder for the log file")

    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build", help="Scan the root directory and report label counts")
    p_build.add_argument("--save", action="store_true", help="Write the lookup map snapshot")

    sub.add_parser("labels", help="List labels with static/dynamic sample counts")

    p_time = sub.add_parser("time", help="Samples near a timestamp, across all labels")
    p_time.add_argument("target_time", type=float)
    p_time.add_argument("--eps", type=float, default=eps)

    p_label = sub.add_parser("label", help="Every sample stained with a label")
    p_label.add_argument("label")

    p_label_time = sub.add_parser("label-time", help="Samples of a label near a timestamp")
    p_label_time.add_argument("label")
    p_label_time.add_argument("target_time", type=float)
    p_label_time.add_argument("--eps", type=float, default=eps)

    p_embryo = sub.add_parser("embryo", help="Every label recorded for an embryo")
    p_embryo.add_argument("embryo_id")

    p_static = sub.add_parser("static", help="Static samples of a label, ordered by time")
    p_static.add_argument("label")

    p_dynamic = sub.add_parser("dynamic", help="Dynamic samples of a label, one row per page")
    p_dynamic.add_argument("label")

    return parser


def _open_table(args: argparse.Namespace) -> LookupTable:
    if args.snapshot:
        return LookupTable.load(args.root)
    return LookupTable(
        args.root,
        time_file_name=args.time_file,
        name_prefix=args.prefix,
        file_extension=args.ext,
    )


def _print_result(result: QueryResult) -> None:
    if result.is_empty:
        print("No matches")
        return
    print(result.to_dataframe().to_string(index=False))


def _run(table: LookupTable, args: argparse.Namespace) -> None:
    command = args.command
    if command == "build":
        print(f"{len(table)} labels, {table.n_samples} samples")
        if args.save:
            print(f"Saved {table.save()}")
    elif command == "labels":
        df = pd.DataFrame.from_dict(table.summary(), orient="index")
        print(df.to_string() if not df.empty else "No labels")
    elif command == "time":
        _print_result(table.find_time(args.target_time, args.eps))
    elif command == "label":
        record = table.find_label(args.label)
        print(pd.DataFrame(record.columns()).to_string(index=False))
    elif command == "label-time":
        _print_result(table.find_label_time(args.label, args.target_time, args.eps))
    elif command == "embryo":
        _print_result(table.find_embryo(args.embryo_id))
    elif command == "static":
        _print_result(table.find_static_label(args.label))
    elif command == "dynamic":
        _print_result(table.find_dynamic_label(args.label))


def main(argv: Optional[Sequence[str]] = None, *, config: Optional[UserConfig] = None) -> int:
    cfg = config if config is not None else UserConfig.load()
    args = _build_parser(cfg).parse_args(argv)
    setup_logging(args.log_level, log_dir=args.log_dir)

    try:
        table = _open_table(args)
        _run(table, args)
    except (LookupTableError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1

    cfg.push_recent_root(args.root)
    cfg.save()
    return 0


if __name__ == "__main__":
    sys.exit(main())
