from __future__ import annotations

import re
from typing import Optional, Sequence

from .grid import Grid

# Whole-token replacements applied after lower-casing.
HEADER_ALIASES = {"username": "user_name"}

_WHITESPACE_RE = re.compile(r"\s+")


def standardize_header(text: Optional[str]) -> Optional[str]:
    """
    Canonical header token: ``*`` removed, trailing ``_`` removed, lower-cased,
    whitespace runs joined with ``_``.

    >>> standardize_header("First Name")
    'first_name'
    >>> standardize_header("User_Name__")
    'user_name'
    """
    if not text:
        return text

    cleaned = text.replace("*", "").rstrip("_")
    lowered = cleaned.lower()
    alias = HEADER_ALIASES.get(lowered.strip())
    if alias is not None:
        return alias
    return _WHITESPACE_RE.sub("_", lowered)


def standardize_headers(grid: Sequence[Sequence[str]]) -> Grid:
    """Standardize row 0 only; the remaining rows are copied unchanged."""

    if not grid:
        return []
    header = [standardize_header(cell) or "" for cell in grid[0]]
    return [header] + [list(row) for row in grid[1:]]
