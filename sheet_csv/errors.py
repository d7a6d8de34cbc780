from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConverterError(ValueError):
    """Base class for failures that abort a single conversion entry."""

    kind = "ConverterError"


class ConfigError(ConverterError):
    """Raised when run settings or a configuration file cannot be used at all."""

    kind = "ConfigError"


class SheetNotFound(ConverterError):
    kind = "SheetNotFound"

    def __init__(self, sheet_name: str, available: Optional[list] = None):
        self.sheet_name = sheet_name
        self.available = list(available or [])
        message = f"Sheet not found: {sheet_name!r}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class InvalidRangeToken(ConverterError):
    kind = "InvalidRangeToken"

    def __init__(self, token: str, range_spec: str = ""):
        self.token = token
        self.range_spec = range_spec
        message = f"Invalid range token {token!r}"
        if range_spec:
            message += f" in range {range_spec!r}"
        super().__init__(message)


class DirectoryCreationFailed(ConverterError):
    kind = "DirectoryCreationFailed"

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        message = f"Failed to create output directory: {self.path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class CsvWriteFailed(ConverterError):
    kind = "CsvWriteFailed"

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        message = f"Error writing CSV file: {self.path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class MalformedConfigRow(ConverterError):
    kind = "MalformedConfigRow"

    def __init__(self, row_number: int, reason: str, sheet_name: str = "", label: str = ""):
        self.row_number = row_number
        self.reason = reason
        self.sheet_name = sheet_name
        self.label = label
        where = f"row {row_number}"
        if label:
            where += f" ({label})"
        super().__init__(f"Malformed configuration {where}: {reason}")
