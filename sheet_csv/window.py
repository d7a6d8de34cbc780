"""
Fixed-window export: the same cell rectangle from every sheet of a workbook,
optionally transposed or rotated.

Text is exported as-is (``RAW_TEXT_POLICY``); embedded line breaks survive
because the CSV writer quotes them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .cells import RAW_TEXT_POLICY, TextPolicy, normalize_cell
from .csv_writer import CsvOptions, write_csv
from .errors import ConverterError
from .grid import Grid, pad_grid, rotate, transpose
from .pipeline import ConversionReport, EntryResult
from .ranges import parse_cell_reference
from .workbook import SheetData, SourceWorkbook

LOGGER = logging.getLogger(__name__)


def extract_window(
    sheet: SheetData,
    start_ref: str = "A1",
    end_ref: Optional[str] = None,
    policy: TextPolicy = RAW_TEXT_POLICY,
) -> Grid:
    """
    Cells between ``start_ref`` and ``end_ref`` (inclusive) as a grid.

    Without ``end_ref`` the window runs to the sheet's last row and to each
    row's last populated cell. Absent rows inside the window become empty rows.
    """

    first_row, first_col = parse_cell_reference(start_ref)
    if end_ref:
        last_row, last_col = parse_cell_reference(end_ref)
        last_row = min(last_row, sheet.last_row_index)
    else:
        last_row, last_col = sheet.last_row_index, None

    data: Grid = []
    for index in range(first_row, last_row + 1):
        row = sheet.row(index) or []
        stop = len(row) if last_col is None else last_col + 1
        data.append([normalize_cell(row[col] if col < len(row) else None, policy) for col in range(first_col, stop)])

    if last_col is not None:
        return pad_grid(data)
    return data


def window_file_name(sheet_name: str, transpose_grid: bool = False, rotate_degrees: int = 0) -> str:
    if rotate_degrees:
        return f"{sheet_name}_rotated_{rotate_degrees}.csv"
    if transpose_grid:
        return f"{sheet_name}_transposed.csv"
    return f"{sheet_name}.csv"


def export_window(
    workbook: SourceWorkbook,
    output_dir: Path | str,
    start_ref: str = "A1",
    end_ref: Optional[str] = None,
    *,
    transpose_grid: bool = False,
    rotate_degrees: int = 0,
    csv_options: CsvOptions = CsvOptions(),
) -> ConversionReport:
    """Write one CSV per sheet into ``output_dir``; per-sheet failures are isolated."""

    if transpose_grid and rotate_degrees:
        raise ValueError("Choose either transpose or rotate, not both.")
    if rotate_degrees % 90 != 0:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {rotate_degrees}")
    parse_cell_reference(start_ref)
    if end_ref:
        parse_cell_reference(end_ref)

    output_dir = Path(output_dir)
    report = ConversionReport()
    for sheet in workbook:
        target = output_dir / window_file_name(sheet.name, transpose_grid, rotate_degrees)
        try:
            grid = extract_window(sheet, start_ref, end_ref)
            if transpose_grid:
                grid = transpose(grid)
            elif rotate_degrees:
                grid = rotate(grid, rotate_degrees)
            path = write_csv(target, grid, csv_options)
        except ConverterError as exc:
            LOGGER.error("Error exporting sheet: %s. %s", sheet.name, exc)
            report.record_failure(sheet.name, exc, target)
            continue
        except Exception as exc:
            LOGGER.exception("Unexpected error exporting sheet: %s", sheet.name)
            report.record_failure(sheet.name, exc, target)
            continue
        report.entries.append(EntryResult(sheet_name=sheet.name, ok=True, output_path=path, rows_written=len(grid)))

    LOGGER.info(
        "Extracted %s to %s from %d sheet(s).",
        start_ref,
        end_ref or "end of sheet",
        len(report.entries),
    )
    return report


__all__ = ["export_window", "extract_window", "window_file_name"]
