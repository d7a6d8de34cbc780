"""
Configuration-driven conversion of workbook sheets to CSV files, shared by the
command line tool and the window export.
"""

from .cells import (  # noqa: F401
    EXTRACTION_TEXT_POLICY,
    RAW_TEXT_POLICY,
    CellKind,
    CellValue,
    TextPolicy,
    classify_cell,
    normalize_cell,
)
from .config import (  # noqa: F401
    ConverterSettings,
    SheetConfig,
    load_settings,
    load_sheet_configs,
)
from .csv_writer import CsvOptions, escape_field, to_csv_text, write_csv  # noqa: F401
from .errors import (  # noqa: F401
    ConfigError,
    ConverterError,
    CsvWriteFailed,
    DirectoryCreationFailed,
    InvalidRangeToken,
    MalformedConfigRow,
    SheetNotFound,
)
from .extract import ExtractOptions, extract_grid  # noqa: F401
from .grid import pad_grid, rotate, strip_markers, transpose  # noqa: F401
from .headers import standardize_header, standardize_headers  # noqa: F401
from .pipeline import ConversionReport, EntryResult, convert_files, convert_sheet, run_conversion  # noqa: F401
from .ranges import is_unrestricted, resolve_range  # noqa: F401
from .window import export_window, extract_window  # noqa: F401
from .workbook import SheetData, SourceWorkbook  # noqa: F401

__all__ = [
    "EXTRACTION_TEXT_POLICY",
    "RAW_TEXT_POLICY",
    "CellKind",
    "CellValue",
    "TextPolicy",
    "classify_cell",
    "normalize_cell",
    "ConverterSettings",
    "SheetConfig",
    "load_settings",
    "load_sheet_configs",
    "CsvOptions",
    "escape_field",
    "to_csv_text",
    "write_csv",
    "ConfigError",
    "ConverterError",
    "CsvWriteFailed",
    "DirectoryCreationFailed",
    "InvalidRangeToken",
    "MalformedConfigRow",
    "SheetNotFound",
    "ExtractOptions",
    "extract_grid",
    "pad_grid",
    "rotate",
    "strip_markers",
    "transpose",
    "standardize_header",
    "standardize_headers",
    "ConversionReport",
    "EntryResult",
    "convert_files",
    "convert_sheet",
    "run_conversion",
    "is_unrestricted",
    "resolve_range",
    "export_window",
    "extract_window",
    "SheetData",
    "SourceWorkbook",
]
