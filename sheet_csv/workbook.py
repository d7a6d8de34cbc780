"""
Read-only view of a source workbook as grids of typed cells.

The whole workbook is read and closed up front; conversions only ever see
``SheetData`` objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import openpyxl

from .cells import CellValue, classify_cell
from .errors import ConfigError, SheetNotFound

LOGGER = logging.getLogger(__name__)

Row = Optional[List[CellValue]]


def _trim_row(cells: Sequence[CellValue]) -> Row:
    """Drop trailing empty cells; a row with nothing left is absent (None)."""

    end = len(cells)
    while end and cells[end - 1].is_empty:
        end -= 1
    if end == 0:
        return None
    return list(cells[:end])


@dataclass
class SheetData:
    name: str
    rows: List[Row] = field(default_factory=list)

    @classmethod
    def from_values(cls, name: str, rows: Iterable[Optional[Iterable[Any]]]) -> "SheetData":
        """Build a sheet from plain Python values (None rows stay absent)."""

        built: List[Row] = []
        for values in rows:
            if values is None:
                built.append(None)
                continue
            built.append(_trim_row([classify_cell(v) for v in values]))
        return cls(name=name, rows=built)

    @property
    def last_row_index(self) -> int:
        """Index of the last row, -1 for an empty sheet."""

        return len(self.rows) - 1

    def row(self, index: int) -> Row:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None

    @property
    def header_row(self) -> Row:
        return self.row(0)


class SourceWorkbook:
    """Sheets by exact name, in workbook order."""

    def __init__(self, sheets: Iterable[SheetData], source: Optional[Path] = None):
        self._sheets: Dict[str, SheetData] = {}
        for sheet in sheets:
            self._sheets[sheet.name] = sheet
        self.source = source

    @classmethod
    def from_mapping(cls, sheets: Mapping[str, Iterable[Optional[Iterable[Any]]]]) -> "SourceWorkbook":
        return cls(SheetData.from_values(name, rows) for name, rows in sheets.items())

    @classmethod
    def open(cls, path: Path | str) -> "SourceWorkbook":
        """Load every sheet of an .xlsx/.xlsm file, keeping formula text."""

        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Workbook not found: {path}")

        LOGGER.debug("Reading workbook %s", path)
        try:
            # read_only keeps memory flat for large exports; data_only=False keeps formulas.
            wb = openpyxl.load_workbook(path, read_only=True, data_only=False)
        except Exception as exc:
            raise ConfigError(f"Failed to open workbook {path}: {exc}") from exc

        sheets: List[SheetData] = []
        try:
            for ws in wb.worksheets:
                rows: List[Row] = []
                for raw_row in ws.iter_rows():
                    cells = [classify_cell(cell.value, getattr(cell, "data_type", None)) for cell in raw_row]
                    rows.append(_trim_row(cells))
                while rows and rows[-1] is None:
                    rows.pop()
                sheets.append(SheetData(name=ws.title, rows=rows))
        finally:
            wb.close()

        LOGGER.info("Loaded %d sheet(s) from %s", len(sheets), path)
        return cls(sheets, source=path)

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheets)

    def get_sheet(self, name: str) -> SheetData:
        try:
            return self._sheets[name]
        except KeyError:
            raise SheetNotFound(name, self.sheet_names) from None

    def first_sheet(self) -> SheetData:
        if not self._sheets:
            raise ConfigError("Workbook contains no sheets")
        return next(iter(self._sheets.values()))

    def __iter__(self):
        return iter(self._sheets.values())

    def __len__(self) -> int:
        return len(self._sheets)
