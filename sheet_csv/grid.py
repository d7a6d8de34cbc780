from __future__ import annotations

from typing import List, Sequence

Grid = List[List[str]]


def pad_grid(grid: Sequence[Sequence[str]], fill: str = "") -> Grid:
    """Return a rectangular copy, short rows padded with ``fill``."""

    width = max((len(row) for row in grid), default=0)
    return [list(row) + [fill] * (width - len(row)) for row in grid]


def transpose(grid: Sequence[Sequence[str]]) -> Grid:
    """
    Swap rows and columns.

    Output row ``i`` holds column ``i`` of every input row, in order, with
    ``""`` where an input row is too short. Width is taken from the longest
    row so ragged input loses nothing.
    """

    if not grid or not grid[0]:
        return []
    width = max(len(row) for row in grid)
    return [[row[col] if col < len(row) else "" for row in grid] for col in range(width)]


def rotate(grid: Sequence[Sequence[str]], degrees: int) -> Grid:
    """Rotate clockwise by a multiple of 90 degrees (negative turns counter-clockwise)."""

    if degrees % 90 != 0:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
    turns = (degrees // 90) % 4
    rect = pad_grid(grid)
    if not rect or not rect[0]:
        return []
    if turns == 0:
        return rect
    if turns == 2:
        return [list(reversed(row)) for row in reversed(rect)]
    if turns == 1:
        return [list(reversed(col)) for col in transpose(rect)]
    return list(reversed(transpose(rect)))


def strip_markers(grid: Sequence[Sequence[str]], marker: str = "*") -> Grid:
    """Remove every occurrence of ``marker`` from every cell."""

    return [[cell.replace(marker, "") for cell in row] for row in grid]
