#!/usr/bin/env python3
"""Command line entry point: ``convert``, ``preview`` and ``window`` sub-commands."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import polars as pl

from .config import ConverterSettings, SheetConfig, load_settings, load_sheet_configs
from .pipeline import ConversionReport, convert_files
from .window import export_window
from .workbook import SourceWorkbook

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2

PREVIEW_COLUMNS = ["Sheet Name", "CSV Name", "Transpose", "Comment Read", "Range", "Output Directory"]


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def config_table(configs: Sequence[SheetConfig]) -> pl.DataFrame:
    """Tabular view of the configuration entries, one row per sheet."""

    return pl.DataFrame(
        {
            "Sheet Name": [c.sheet_name for c in configs],
            "CSV Name": [c.output_file_name for c in configs],
            "Transpose": [_yes_no(c.should_transpose) for c in configs],
            "Comment Read": [_yes_no(c.comment_read) for c in configs],
            "Range": [c.range or "NA" for c in configs],
            "Output Directory": [c.output_directory for c in configs],
        },
        schema={name: pl.Utf8 for name in PREVIEW_COLUMNS},
    )


def _settings_from_args(args: argparse.Namespace) -> ConverterSettings:
    settings = load_settings(getattr(args, "settings", None))
    overrides = {}
    if getattr(args, "output_root", None):
        overrides["output_root"] = args.output_root
    if getattr(args, "start_column", None) is not None:
        overrides["start_column"] = args.start_column
    if getattr(args, "lowercase", False):
        overrides["lowercase_output"] = True
    if getattr(args, "atomic", False):
        overrides["atomic_writes"] = True
    return settings.merged(overrides)


def _print_report(report: ConversionReport) -> int:
    print(report.summary())
    return EXIT_OK if report.ok else EXIT_FAILURES


def cmd_convert(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    LOGGER.info("Writing CSV files under %s", settings.output_root)
    report = convert_files(args.config, args.source, settings)
    return _print_report(report)


def cmd_preview(args: argparse.Namespace) -> int:
    configs, errors = load_sheet_configs(args.config)
    with pl.Config(tbl_rows=-1, fmt_str_lengths=200):
        print(config_table(configs))
    for error in errors:
        print(f"! {error}")
    return EXIT_OK if not errors else EXIT_FAILURES


def cmd_window(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    workbook = SourceWorkbook.open(args.source)
    report = export_window(
        workbook,
        args.output,
        args.start,
        args.end,
        transpose_grid=args.transpose,
        rotate_degrees=args.rotate,
        csv_options=settings.csv_options,
    )
    return _print_report(report)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert workbook sheets to CSV files driven by a configuration sheet.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    subparsers = parser.add_subparsers(dest="command")

    convert = subparsers.add_parser("convert", help="Convert every configured sheet to CSV.")
    convert.add_argument("--config", type=Path, required=True, help="Configuration sheet (.xlsx, .csv or .yaml).")
    convert.add_argument("--source", type=Path, required=True, help="Source workbook (.xlsx/.xlsm).")
    convert.add_argument("--output-root", type=Path, help="Base directory for CSV output (default: ./output).")
    convert.add_argument("--settings", type=Path, help="Optional YAML settings file.")
    convert.add_argument("--start-column", type=int, help="First source column to export (default: 1).")
    convert.add_argument("--lowercase", action="store_true", help="Lower-case every CSV field.")
    convert.add_argument("--atomic", action="store_true", help="Write through a temporary file and rename.")
    convert.set_defaults(func=cmd_convert)

    preview = subparsers.add_parser("preview", help="Print the configuration entries as a table.")
    preview.add_argument("--config", type=Path, required=True, help="Configuration sheet (.xlsx, .csv or .yaml).")
    preview.set_defaults(func=cmd_preview)

    window = subparsers.add_parser("window", help="Export the same cell window from every sheet.")
    window.add_argument("--source", type=Path, required=True, help="Source workbook (.xlsx/.xlsm).")
    window.add_argument("--output", type=Path, required=True, help="Directory for the CSV files.")
    window.add_argument("--start", default="A1", help="Top-left cell (default: A1).")
    window.add_argument("--end", help="Bottom-right cell (default: end of each sheet).")
    window.add_argument("--settings", type=Path, help="Optional YAML settings file.")
    window.add_argument("--lowercase", action="store_true", help="Lower-case every CSV field.")
    shape = window.add_mutually_exclusive_group()
    shape.add_argument("--transpose", action="store_true", help="Swap rows and columns.")
    shape.add_argument("--rotate", type=int, default=0, help="Rotate clockwise by a multiple of 90 degrees.")
    window.set_defaults(func=cmd_window)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_OK

    configure_logging(args.verbose)
    try:
        return args.func(args)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
