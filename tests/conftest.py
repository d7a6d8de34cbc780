from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import openpyxl
import pytest

CONFIG_HEADER = [
    "id",
    "sheetName",
    "csvName",
    "isTranspose",
    "isCommentRead",
    "range",
    "excludeFromTranspose",
    "outputDirectory",
]


def write_workbook(path: Path, sheets: Dict[str, Sequence[Optional[Sequence[Any]]]]) -> Path:
    """Write an .xlsx with one sheet per entry; None rows are left empty."""

    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for r_idx, row in enumerate(rows, start=1):
            if row is None:
                continue
            for c_idx, value in enumerate(row, start=1):
                if value is not None:
                    ws.cell(row=r_idx, column=c_idx, value=value)
    wb.save(path)
    return path


def write_config(path: Path, rows: List[Sequence[Any]]) -> Path:
    return write_workbook(path, {"Config": [CONFIG_HEADER, *rows]})


@pytest.fixture
def employees_workbook(tmp_path) -> Path:
    return write_workbook(
        tmp_path / "source.xlsx",
        {
            "Employees": [
                ["id", "Name", "Comment"],
                [1, "Alice", "joined in May"],
                ["#2", "Hidden", "draft row"],
                [3, "Bob", "contractor"],
            ],
            "Matrix": [
                ["id", "Metric", "Q1", "Q2"],
                ["r1", "Revenue*", 10, 20],
                ["r2", "Cost", 5, 7],
            ],
        },
    )
