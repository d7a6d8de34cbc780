"""
Row/column selection while pulling a grid of strings out of a sheet.

Two comment conventions are honoured unless ``comment_read`` is set:

- a row whose first cell starts with ``#`` is dropped;
- a header cell named exactly ``Comment`` or ``Comments`` marks the first
  column that is dropped, together with every column to its right.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .cells import EXTRACTION_TEXT_POLICY, CellValue, TextPolicy, normalize_cell
from .errors import ConfigError
from .grid import Grid
from .workbook import SheetData

LOGGER = logging.getLogger(__name__)

COMMENT_HEADERS = ("Comment", "Comments")
COMMENT_ROW_PREFIX = "#"


@dataclass(frozen=True)
class ExtractOptions:
    start_row: int = 0
    # Column 0 usually carries a row label/id in the source layout.
    start_column: int = 1
    comment_read: bool = False
    row_indices: FrozenSet[int] = field(default_factory=frozenset)
    text_policy: TextPolicy = EXTRACTION_TEXT_POLICY

    def __post_init__(self) -> None:
        if self.start_row < 0 or self.start_column < 0:
            raise ConfigError(
                f"Start row and column must not be negative (start_row={self.start_row}, start_column={self.start_column})"
            )

    @classmethod
    def build(cls, *, row_indices: Iterable[int] = (), **kwargs) -> "ExtractOptions":
        return cls(row_indices=frozenset(row_indices), **kwargs)


def find_comment_column(
    header_row: Optional[Sequence[CellValue]],
    policy: TextPolicy = EXTRACTION_TEXT_POLICY,
) -> Optional[int]:
    if not header_row:
        return None
    for index, cell in enumerate(header_row):
        if normalize_cell(cell, policy) in COMMENT_HEADERS:
            return index
    return None


def is_comment_row(row: Optional[Sequence[CellValue]], policy: TextPolicy = EXTRACTION_TEXT_POLICY) -> bool:
    if not row:
        return False
    return normalize_cell(row[0], policy).startswith(COMMENT_ROW_PREFIX)


def extract_grid(sheet: SheetData, options: ExtractOptions = ExtractOptions()) -> Grid:
    """Extract the selected rows and columns of ``sheet`` as a ragged grid."""

    policy = options.text_policy
    comment_column = None
    if not options.comment_read:
        comment_column = find_comment_column(sheet.header_row, policy)
        if comment_column is not None:
            LOGGER.debug("Sheet '%s': dropping columns from index %d (comment column)", sheet.name, comment_column)

    selected = options.row_indices
    data: Grid = []
    skipped_comments = 0
    for index in range(options.start_row, sheet.last_row_index + 1):
        if selected and index not in selected:
            continue
        row = sheet.row(index)
        if row is None:
            continue
        if not options.comment_read and is_comment_row(row, policy):
            skipped_comments += 1
            continue

        end = len(row) if comment_column is None else min(len(row), comment_column)
        values: List[str] = [normalize_cell(row[col], policy) for col in range(options.start_column, end)]
        data.append(values)

    if skipped_comments:
        LOGGER.debug("Sheet '%s': skipped %d comment row(s)", sheet.name, skipped_comments)
    return data
