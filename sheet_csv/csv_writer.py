from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .errors import CsvWriteFailed, DirectoryCreationFailed

LOGGER = logging.getLogger(__name__)

_NEEDS_QUOTING = (",", '"', "\n", "\r")


@dataclass(frozen=True)
class CsvOptions:
    # The legacy converter lower-cased every field; keep that opt-in.
    lowercase: bool = False
    line_terminator: str = os.linesep
    atomic: bool = False


def escape_field(value: str, lowercase: bool = False) -> str:
    """Quote a field containing a comma, quote or line break; double inner quotes."""

    text = "" if value is None else str(value)
    if lowercase:
        text = text.lower()
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_row(row: Sequence[str], lowercase: bool = False) -> str:
    return ",".join(escape_field(cell, lowercase) for cell in row)


def to_csv_text(grid: Sequence[Sequence[str]], options: CsvOptions = CsvOptions()) -> str:
    """Serialize every row, each terminated by ``options.line_terminator``."""

    return "".join(format_row(row, options.lowercase) + options.line_terminator for row in grid)


def ensure_parent_dir(path: Path) -> None:
    parent = path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except (OSError, ValueError) as exc:
        raise DirectoryCreationFailed(parent, str(exc)) from exc
    if not parent.is_dir():
        raise DirectoryCreationFailed(parent, "not a directory")


def write_csv(path: Path | str, grid: Sequence[Sequence[str]], options: CsvOptions = CsvOptions()) -> Path:
    """
    Write ``grid`` as UTF-8 CSV to ``path``, creating the parent directory.

    With ``options.atomic`` the file is written next to the target and moved
    into place on success; otherwise a failed write may leave a partial file.
    """

    path = Path(path)
    ensure_parent_dir(path)
    text = to_csv_text(grid, options)

    try:
        if options.atomic:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except (OSError, ValueError):
                if os.path.exists(tmp_name):
                    os.remove(tmp_name)
                raise
        else:
            with path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(text)
    except (OSError, ValueError) as exc:
        raise CsvWriteFailed(path, str(exc)) from exc

    LOGGER.info("Wrote %d row(s) to %s", len(grid), path)
    return path
