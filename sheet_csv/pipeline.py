"""
Configuration-driven conversion of workbook sheets to CSV files.

For each ``SheetConfig``: locate the sheet, resolve the row range, extract the
filtered grid, transpose when configured, standardize the header row, strip
``*`` markers and write ``<output_root>/<output_directory>/<csv name>.csv``.

Entries run strictly one after another. A failing entry is logged and
recorded in the returned ``ConversionReport``; the batch always finishes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import ConverterSettings, SheetConfig, load_sheet_configs
from .csv_writer import write_csv
from .errors import ConverterError, MalformedConfigRow
from .extract import ExtractOptions, extract_grid
from .grid import Grid, strip_markers, transpose
from .headers import standardize_headers
from .ranges import resolve_range
from .workbook import SheetData, SourceWorkbook

LOGGER = logging.getLogger(__name__)


@dataclass
class EntryResult:
    sheet_name: str
    ok: bool
    output_path: Optional[Path] = None
    rows_written: int = 0
    error_kind: str = ""
    message: str = ""


@dataclass
class ConversionReport:
    entries: List[EntryResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for entry in self.entries if entry.ok)

    @property
    def failed(self) -> int:
        return sum(1 for entry in self.entries if not entry.ok)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> List[EntryResult]:
        return [entry for entry in self.entries if not entry.ok]

    def record_failure(self, sheet_name: str, error: Exception, output_path: Optional[Path] = None) -> EntryResult:
        entry = EntryResult(
            sheet_name=sheet_name,
            ok=False,
            output_path=output_path,
            error_kind=getattr(error, "kind", type(error).__name__),
            message=str(error),
        )
        self.entries.append(entry)
        return entry

    def summary(self) -> str:
        lines = [f"Converted {self.succeeded} of {len(self.entries)} sheet(s); {self.failed} failed."]
        for entry in self.failures():
            label = entry.sheet_name or "<unnamed>"
            lines.append(f"  - {label}: [{entry.error_kind}] {entry.message}")
        return "\n".join(lines)


def extract_options_for(
    config: SheetConfig,
    settings: ConverterSettings,
    max_row: Optional[int] = None,
) -> ExtractOptions:
    start_row = settings.transpose_start_row if config.should_transpose else settings.start_row
    return ExtractOptions.build(
        start_row=start_row,
        start_column=settings.start_column,
        comment_read=config.comment_read,
        row_indices=resolve_range(config.range, max_row),
        text_policy=settings.text_policy,
    )


def build_sheet_grid(sheet: SheetData, config: SheetConfig, settings: ConverterSettings) -> Grid:
    """Run the in-memory stages for one sheet and return the grid to serialize."""

    options = extract_options_for(config, settings, sheet.last_row_index)
    LOGGER.info("Sheet: %s - Should Transpose: %s", sheet.name, config.should_transpose)

    grid = extract_grid(sheet, options)
    if config.should_transpose:
        grid = transpose(grid)
    grid = standardize_headers(grid)
    return strip_markers(grid)


def convert_sheet(workbook: SourceWorkbook, config: SheetConfig, settings: ConverterSettings) -> EntryResult:
    """Convert a single entry; raises ``ConverterError`` subclasses on failure."""

    sheet = workbook.get_sheet(config.sheet_name)
    grid = build_sheet_grid(sheet, config, settings)
    output_path = write_csv(config.output_path(settings.output_root), grid, settings.csv_options)
    return EntryResult(sheet_name=config.sheet_name, ok=True, output_path=output_path, rows_written=len(grid))


def run_conversion(
    workbook: SourceWorkbook,
    configs: Iterable[SheetConfig],
    settings: Optional[ConverterSettings] = None,
    config_errors: Sequence[MalformedConfigRow] = (),
) -> ConversionReport:
    settings = settings or ConverterSettings()
    report = ConversionReport()

    for error in config_errors:
        report.record_failure(error.sheet_name or f"row {error.row_number}", error)

    for config in configs:
        output_path = config.output_path(settings.output_root)
        try:
            report.entries.append(convert_sheet(workbook, config, settings))
        except ConverterError as exc:
            LOGGER.error("Error processing sheet: %s. %s", config.sheet_name, exc)
            report.record_failure(config.sheet_name, exc, output_path)
        except Exception as exc:
            LOGGER.exception("Unexpected error processing sheet: %s", config.sheet_name)
            report.record_failure(config.sheet_name, exc, output_path)

    if report.ok:
        LOGGER.info("Conversion completed successfully: %d sheet(s).", report.succeeded)
    else:
        LOGGER.warning("Conversion finished with %d failure(s) out of %d.", report.failed, len(report.entries))
    return report


def convert_files(
    config_path: Path | str,
    source_path: Path | str,
    settings: Optional[ConverterSettings] = None,
) -> ConversionReport:
    """Load the configuration and the source workbook, then convert every entry."""

    configs, config_errors = load_sheet_configs(config_path)
    workbook = SourceWorkbook.open(source_path)
    return run_conversion(workbook, configs, settings, config_errors)
