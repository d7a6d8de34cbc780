"""
Row range mini-language.

A range spec is a comma-separated list of tokens:

- ``"3-7"``  inclusive 1-based row span
- ``"12"``   single 1-based row
- ``"B10"``  spreadsheet cell reference; only its row is used

Blank, missing or ``NA`` (any case) means "no restriction".
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

from openpyxl.utils.cell import column_index_from_string, coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException

from .errors import InvalidRangeToken

LOGGER = logging.getLogger(__name__)

NO_RESTRICTION_TOKEN = "NA"

_SPAN_RE = re.compile(r"^(\d+)\s*-\s*(\d+)$")
_ROW_RE = re.compile(r"^\d+$")
_CELL_RE = re.compile(r"^[A-Za-z]+\d+$")


def is_unrestricted(range_spec: Optional[str]) -> bool:
    if range_spec is None:
        return True
    text = str(range_spec).strip()
    return not text or text.upper() == NO_RESTRICTION_TOKEN


def parse_cell_reference(ref: str) -> Tuple[int, int]:
    """Return zero-based (row, column) for a reference such as ``B10``."""

    token = str(ref).strip()
    if not _CELL_RE.match(token):
        raise InvalidRangeToken(token)
    try:
        column_letters, row = coordinate_from_string(token.upper())
        column = column_index_from_string(column_letters)
    except (CellCoordinatesException, ValueError) as exc:
        raise InvalidRangeToken(token) from exc
    if row < 1:
        raise InvalidRangeToken(token)
    return row - 1, column - 1


def parse_range_token(token: str, range_spec: str = "", max_row: Optional[int] = None) -> List[int]:
    """
    Expand one token into zero-based row indices.

    With ``max_row`` a span stops at that row index; a span starting past it
    keeps only its first row, which selects nothing but still restricts.
    """

    text = token.strip()
    span = _SPAN_RE.match(text)
    if span:
        start, end = int(span.group(1)), int(span.group(2))
        if start < 1 or end < start:
            raise InvalidRangeToken(text, range_spec)
        if max_row is not None:
            end = min(end, max(start, max_row + 1))
        return list(range(start - 1, end))
    if _ROW_RE.match(text):
        row = int(text)
        if row < 1:
            raise InvalidRangeToken(text, range_spec)
        return [row - 1]
    if _CELL_RE.match(text):
        try:
            row_index, _ = parse_cell_reference(text)
        except InvalidRangeToken as exc:
            raise InvalidRangeToken(text, range_spec) from exc
        return [row_index]
    raise InvalidRangeToken(text, range_spec)


def _uniq_sorted(values: Iterable[int]) -> List[int]:
    return sorted(set(values))


def resolve_range(range_spec: Optional[str], max_row: Optional[int] = None) -> List[int]:
    """
    Resolve a range spec into sorted, unique zero-based row indices.

    An empty result means no restriction. Invalid tokens are logged and
    skipped; the rest of the spec is still honoured. ``max_row`` bounds span
    expansion to the rows a sheet actually has.
    """

    if is_unrestricted(range_spec):
        return []

    spec = str(range_spec)
    indices: List[int] = []
    for token in spec.split(","):
        try:
            indices.extend(parse_range_token(token, spec, max_row))
        except InvalidRangeToken as exc:
            LOGGER.warning("Skipping %s", exc)
    return _uniq_sorted(indices)
