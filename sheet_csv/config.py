"""
Conversion configuration: one ``SheetConfig`` per configuration row, plus the
run-wide ``ConverterSettings``.

Configuration sheets have a header row followed by rows in a fixed column
order::

    id | sheetName | csvName | isTranspose | isCommentRead | range | excludeFromTranspose | outputDirectory

They may be stored as .xlsx/.xlsm (first sheet), .csv, or YAML::

    sheets:
      - sheet_name: Employees
        csv_name: employees
        transpose: false
        comment_read: false
        range: "2-40"
        exclude_from_transpose: [Summary]
        output_directory: hr
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

import pandas as pd
import yaml
from dotenv import load_dotenv

from .cells import EXTRACTION_TEXT_POLICY, CellKind, CellValue, TextPolicy, classify_cell, normalize_cell
from .csv_writer import CsvOptions
from .errors import ConfigError, MalformedConfigRow
from .workbook import SourceWorkbook

load_dotenv()

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "SHEET_CSV_"
CSV_SUFFIX = ".csv"

# Positions in a configuration row.
COL_ID = 0
COL_SHEET_NAME = 1
COL_CSV_NAME = 2
COL_TRANSPOSE = 3
COL_COMMENT_READ = 4
COL_RANGE = 5
COL_EXCLUDE_FROM_TRANSPOSE = 6
COL_OUTPUT_DIRECTORY = 7

YAML_KEYS = (
    "id",
    "sheet_name",
    "csv_name",
    "transpose",
    "comment_read",
    "range",
    "exclude_from_transpose",
    "output_directory",
)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
YAML_SUFFIXES = {".yaml", ".yml"}

LINE_TERMINATORS = {"lf": "\n", "crlf": "\r\n", "cr": "\r", "native": os.linesep}


@dataclass(frozen=True)
class ConfigRow:
    row_number: int
    cells: Tuple[CellValue, ...]

    def cell(self, index: int) -> CellValue:
        if index < len(self.cells):
            return self.cells[index]
        return CellValue.empty()

    def text(self, index: int) -> str:
        return normalize_cell(self.cell(index), EXTRACTION_TEXT_POLICY)

    def flag(self, index: int) -> bool:
        cell = self.cell(index)
        if cell.kind is CellKind.BOOLEAN:
            return bool(cell.value)
        if cell.kind is CellKind.TEXT:
            return str(cell.value).strip().lower() == "true"
        return False

    def text_list(self, index: int) -> List[str]:
        cell = self.cell(index)
        if cell.kind is not CellKind.TEXT:
            return []
        return [item.strip() for item in str(cell.value).split(",") if item.strip()]

    @property
    def is_blank(self) -> bool:
        return all(cell.is_empty for cell in self.cells)

    @property
    def label(self) -> str:
        """Short identification for log lines: the csvName, else the id."""

        csv_name = self.text(COL_CSV_NAME)
        if csv_name:
            return f"csvName {csv_name!r}"
        entry_id = self.text(COL_ID)
        return f"id {entry_id}" if entry_id else ""


@dataclass(frozen=True)
class SheetConfig:
    sheet_name: str
    csv_name: str = ""
    transpose: bool = False
    comment_read: bool = False
    range: str = ""
    exclude_from_transpose: FrozenSet[str] = field(default_factory=frozenset)
    output_directory: str = ""

    @classmethod
    def from_row(cls, row: ConfigRow) -> "SheetConfig":
        sheet_name = row.text(COL_SHEET_NAME)
        if not sheet_name:
            raise MalformedConfigRow(row.row_number, "missing sheetName", label=row.label)
        return cls(
            sheet_name=sheet_name,
            csv_name=row.text(COL_CSV_NAME),
            transpose=row.flag(COL_TRANSPOSE),
            comment_read=row.flag(COL_COMMENT_READ),
            range=row.text(COL_RANGE),
            exclude_from_transpose=frozenset(row.text_list(COL_EXCLUDE_FROM_TRANSPOSE)),
            output_directory=row.text(COL_OUTPUT_DIRECTORY),
        )

    @property
    def should_transpose(self) -> bool:
        return self.transpose and self.sheet_name not in self.exclude_from_transpose

    @property
    def output_file_name(self) -> str:
        name = self.csv_name or self.sheet_name
        if not name.lower().endswith(CSV_SUFFIX):
            name += CSV_SUFFIX
        return name

    def output_path(self, output_root: Path | str) -> Path:
        return Path(output_root) / self.output_directory / self.output_file_name


def _rows_from_excel(path: Path) -> List[ConfigRow]:
    sheet = SourceWorkbook.open(path).first_sheet()
    rows: List[ConfigRow] = []
    for index, cells in enumerate(sheet.rows):
        if index == 0 or cells is None:
            continue
        rows.append(ConfigRow(row_number=index + 1, cells=tuple(cells)))
    return rows


def _rows_from_csv(path: Path) -> List[ConfigRow]:
    try:
        df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, skip_blank_lines=False)
    except pd.errors.EmptyDataError:
        return []
    except (OSError, pd.errors.ParserError) as exc:
        raise ConfigError(f"Failed to read configuration CSV {path}: {exc}") from exc

    rows: List[ConfigRow] = []
    for index, values in enumerate(df.itertuples(index=False, name=None)):
        if index == 0:
            continue
        rows.append(ConfigRow(row_number=index + 1, cells=tuple(classify_cell(v) for v in values)))
    return rows


def _yaml_cell(value: Any) -> CellValue:
    if isinstance(value, (list, tuple, set)):
        value = ",".join(str(v) for v in value)
    return classify_cell(value)


def _rows_from_yaml(path: Path) -> List[ConfigRow]:
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML config at {path}") from exc

    entries = parsed.get("sheets", []) if isinstance(parsed, dict) else parsed
    if not isinstance(entries, list):
        raise ConfigError("'sheets' must be a list of sheet entries.")

    rows: List[ConfigRow] = []
    for number, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            LOGGER.warning("Skipping non-mapping sheet entry #%d in %s: %r", number, path, entry)
            continue
        cells = tuple(_yaml_cell(entry.get(key)) for key in YAML_KEYS)
        rows.append(ConfigRow(row_number=number, cells=cells))
    return rows


def read_config_rows(path: Path | str) -> List[ConfigRow]:
    """Read raw configuration rows (header skipped, blank rows dropped)."""

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        rows = _rows_from_excel(path)
    elif suffix == CSV_SUFFIX:
        rows = _rows_from_csv(path)
    elif suffix in YAML_SUFFIXES:
        rows = _rows_from_yaml(path)
    else:
        raise ConfigError(f"Unsupported configuration format: {path.suffix or path.name}")
    return [row for row in rows if not row.is_blank]


def build_sheet_configs(rows: Iterable[ConfigRow]) -> Tuple[List[SheetConfig], List[MalformedConfigRow]]:
    configs: List[SheetConfig] = []
    errors: List[MalformedConfigRow] = []
    for row in rows:
        try:
            configs.append(SheetConfig.from_row(row))
        except MalformedConfigRow as exc:
            LOGGER.error("%s", exc)
            errors.append(exc)
    return configs, errors


def load_sheet_configs(path: Path | str) -> Tuple[List[SheetConfig], List[MalformedConfigRow]]:
    """Load every configuration entry; malformed rows are returned separately."""

    configs, errors = build_sheet_configs(read_config_rows(path))
    LOGGER.info("Loaded %d sheet configuration(s) from %s (%d malformed)", len(configs), path, len(errors))
    return configs, errors


########################
# RUN SETTINGS
########################


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(value: Any, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _parse_line_terminator(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value)
    return LINE_TERMINATORS.get(text.strip().lower(), text)


@dataclass
class ConverterSettings:
    output_root: Path = Path("output")
    start_row: int = 0
    transpose_start_row: int = 0
    start_column: int = 1
    collapse_newlines: bool = True
    strip_text: bool = True
    lowercase_output: bool = False
    line_terminator: str = os.linesep
    atomic_writes: bool = False

    def __post_init__(self) -> None:
        for name in ("start_row", "transpose_start_row", "start_column"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative, got {getattr(self, name)}")

    @property
    def text_policy(self) -> TextPolicy:
        return TextPolicy(collapse_newlines=self.collapse_newlines, strip=self.strip_text)

    @property
    def csv_options(self) -> CsvOptions:
        return CsvOptions(
            lowercase=self.lowercase_output,
            line_terminator=self.line_terminator,
            atomic=self.atomic_writes,
        )

    def merged(self, values: Dict[str, Any], base_dir: Optional[Path] = None) -> "ConverterSettings":
        """Return a copy with recognised keys from ``values`` applied."""

        current = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, raw in values.items():
            if key not in current or raw is None:
                continue
            if key == "output_root":
                root = Path(str(raw)).expanduser()
                if base_dir is not None and not root.is_absolute():
                    root = (base_dir / root).resolve()
                current[key] = root
            elif key == "line_terminator":
                current[key] = _parse_line_terminator(raw, self.line_terminator)
            elif isinstance(current[key], bool):
                current[key] = _parse_bool(raw, current[key])
            elif isinstance(current[key], int):
                current[key] = _parse_int(raw, current[key])
        return ConverterSettings(**current)


def _settings_from_env() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for f in fields(ConverterSettings):
        raw = os.getenv(ENV_PREFIX + f.name.upper())
        if raw is not None:
            values[f.name] = raw
    return values


def load_settings(path: Optional[Path | str] = None, *, use_env: bool = True) -> ConverterSettings:
    """
    Build run settings: defaults, then the YAML file (``settings:`` block or
    top level), then ``SHEET_CSV_*`` environment variables.

    Relative ``output_root`` values in YAML resolve from the file's directory.
    """

    settings = ConverterSettings()
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Settings file not found: {path}")
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse YAML settings at {path}") from exc
        if not isinstance(parsed, dict):
            raise ConfigError("Settings file must contain a mapping.")
        block = parsed.get("settings", parsed)
        if not isinstance(block, dict):
            raise ConfigError("'settings' must be a mapping.")
        settings = settings.merged(block, base_dir=path.parent)

    if use_env:
        settings = settings.merged(_settings_from_env())
    return settings


__all__ = [
    "ConfigRow",
    "ConverterSettings",
    "SheetConfig",
    "build_sheet_configs",
    "load_settings",
    "load_sheet_configs",
    "read_config_rows",
]
