"""
Typed cell values and their canonical string form.

Workbook cells arrive as openpyxl values plus a ``data_type`` code. They are
folded into a closed set of kinds once, at read time, so every later stage only
deals with ``CellValue`` and a ``TextPolicy``.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula


class CellKind(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    DATE = "date"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    EMPTY = "empty"


@dataclass(frozen=True)
class CellValue:
    kind: CellKind
    value: Any = None

    @classmethod
    def empty(cls) -> "CellValue":
        return cls(CellKind.EMPTY, None)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY


@dataclass(frozen=True)
class TextPolicy:
    """How text cells are rendered.

    collapse_newlines: each ``\\r\\n``, ``\\n`` or ``\\r`` becomes a single space.
    strip: leading/trailing whitespace removed.
    """

    collapse_newlines: bool = True
    strip: bool = True


EXTRACTION_TEXT_POLICY = TextPolicy(collapse_newlines=True, strip=True)
RAW_TEXT_POLICY = TextPolicy(collapse_newlines=False, strip=False)

_DATE_TYPES = (dt.datetime, dt.date, dt.time, dt.timedelta)


def classify_cell(value: Any, data_type: Optional[str] = None) -> CellValue:
    """Fold an openpyxl cell value (and its data_type code) into a CellValue."""

    if value is None:
        return CellValue.empty()
    if data_type == "e":
        return CellValue.empty()
    if isinstance(value, bool):
        return CellValue(CellKind.BOOLEAN, value)
    if isinstance(value, ArrayFormula):
        return CellValue(CellKind.FORMULA, value.text or "")
    if isinstance(value, DataTableFormula):
        return CellValue(CellKind.FORMULA, "TABLE()")
    if data_type == "f":
        return CellValue(CellKind.FORMULA, str(value))
    if isinstance(value, _DATE_TYPES):
        return CellValue(CellKind.DATE, value)
    if isinstance(value, (int, float)):
        return CellValue(CellKind.NUMERIC, value)
    if isinstance(value, str):
        if value == "":
            return CellValue.empty()
        return CellValue(CellKind.TEXT, value)
    return CellValue.empty()


def _render_text(text: str, policy: TextPolicy) -> str:
    if policy.collapse_newlines:
        text = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    if policy.strip:
        text = text.strip()
    return text


def _render_date(value: Any) -> str:
    if isinstance(value, dt.datetime):
        if value.time() == dt.time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, dt.time):
        return value.isoformat(timespec="seconds")
    return str(value)


def _render_formula(text: str) -> str:
    return text[1:] if text.startswith("=") else text


def normalize_cell(cell: Optional[CellValue], policy: TextPolicy = EXTRACTION_TEXT_POLICY) -> str:
    """Return the canonical string form of a cell; absent cells become ``""``."""

    if cell is None:
        return ""
    kind = cell.kind
    if kind is CellKind.TEXT:
        return _render_text(str(cell.value), policy)
    if kind is CellKind.NUMERIC:
        return str(cell.value)
    if kind is CellKind.DATE:
        return _render_date(cell.value)
    if kind is CellKind.BOOLEAN:
        return "true" if cell.value else "false"
    if kind is CellKind.FORMULA:
        return _render_formula(str(cell.value))
    return ""
