import pytest

from sheet_csv.cells import RAW_TEXT_POLICY
from sheet_csv.errors import ConfigError
from sheet_csv.extract import ExtractOptions, extract_grid, find_comment_column, is_comment_row
from sheet_csv.workbook import SheetData


def _sheet():
    return SheetData.from_values(
        "People",
        [
            ["id", "Name", "Team", "Comments", "Extra"],
            [1, "Alice", "Core", "note", "x"],
            ["#2", "Hidden", "Ops", "skip me", "y"],
            None,
            [4, "Bob"],
            [5, "  Carol\nAnn  ", "QA", "", "z"],
        ],
    )


def test_comment_column_and_everything_after_it_is_dropped():
    grid = extract_grid(_sheet(), ExtractOptions())
    assert grid == [
        ["Name", "Team"],
        ["Alice", "Core"],
        ["Bob"],
        ["Carol Ann", "QA"],
    ]


def test_comment_read_keeps_comment_rows_and_columns():
    grid = extract_grid(_sheet(), ExtractOptions(comment_read=True))
    assert grid[0] == ["Name", "Team", "Comments", "Extra"]
    assert ["Hidden", "Ops", "skip me", "y"] in grid
    assert len(grid) == 5


def test_start_column_is_configurable():
    grid = extract_grid(_sheet(), ExtractOptions(start_column=0))
    assert grid[0] == ["id", "Name", "Team"]
    assert grid[1] == ["1", "Alice", "Core"]


def test_row_indices_restrict_rows():
    options = ExtractOptions.build(row_indices=[0, 4, 40])
    assert extract_grid(_sheet(), options) == [["Name", "Team"], ["Bob"]]


def test_start_row_skips_leading_rows():
    grid = extract_grid(_sheet(), ExtractOptions(start_row=1))
    assert grid[0] == ["Alice", "Core"]


def test_text_policy_is_applied_to_cells():
    grid = extract_grid(_sheet(), ExtractOptions(text_policy=RAW_TEXT_POLICY))
    assert grid[-1] == ["  Carol\nAnn  ", "QA"]


def test_missing_header_row_disables_comment_column():
    sheet = SheetData.from_values("NoHeader", [None, [1, "a", "Comment", "b"]])
    assert find_comment_column(sheet.header_row) is None
    assert extract_grid(sheet, ExtractOptions()) == [["a", "Comment", "b"]]


def test_comment_header_match_is_exact():
    header = SheetData.from_values("h", [["id", "comment", "Comment "]]).header_row
    assert find_comment_column(header, RAW_TEXT_POLICY) is None


def test_is_comment_row_checks_first_cell_only():
    sheet = SheetData.from_values("c", [["#x", "a"], ["a", "#x"], None])
    assert is_comment_row(sheet.row(0))
    assert not is_comment_row(sheet.row(1))
    assert not is_comment_row(sheet.row(2))


@pytest.mark.parametrize("kwargs", [{"start_column": -1}, {"start_row": -2}])
def test_negative_offsets_are_rejected(kwargs):
    with pytest.raises(ConfigError):
        ExtractOptions(**kwargs)
