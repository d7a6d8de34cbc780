import os
from pathlib import Path

import pandas as pd
import pytest

from sheet_csv.cells import classify_cell
from sheet_csv.config import (
    ConfigRow,
    ConverterSettings,
    SheetConfig,
    load_settings,
    load_sheet_configs,
    read_config_rows,
)
from sheet_csv.errors import ConfigError, MalformedConfigRow

from conftest import CONFIG_HEADER, write_config


def _row(*values, number=2):
    return ConfigRow(row_number=number, cells=tuple(classify_cell(v) for v in values))


def test_sheet_config_from_row_parses_every_column():
    row = _row(1, "Employees", "staff", True, " TRUE ", "2-5", "Summary, Totals ,", "hr/2024")
    config = SheetConfig.from_row(row)

    assert config.sheet_name == "Employees"
    assert config.csv_name == "staff"
    assert config.transpose is True
    assert config.comment_read is True
    assert config.range == "2-5"
    assert config.exclude_from_transpose == frozenset({"Summary", "Totals"})
    assert config.output_directory == "hr/2024"
    assert config.output_file_name == "staff.csv"
    assert config.output_path(Path("/out")) == Path("/out/hr/2024/staff.csv")


def test_sheet_config_defaults_for_short_rows():
    config = SheetConfig.from_row(_row(None, "Sheet1"))
    assert config.transpose is False
    assert config.comment_read is False
    assert config.range == ""
    assert config.exclude_from_transpose == frozenset()
    assert config.output_file_name == "Sheet1.csv"
    assert config.output_path("root") == Path("root/Sheet1.csv")


@pytest.mark.parametrize("value", ["yes", "1", 1, None, "false"])
def test_boolean_columns_only_accept_true(value):
    config = SheetConfig.from_row(_row(None, "S", "", value, value))
    assert config.transpose is False
    assert config.comment_read is False


def test_missing_sheet_name_is_malformed():
    with pytest.raises(MalformedConfigRow) as excinfo:
        SheetConfig.from_row(_row(7, "", "out.csv", number=4))
    assert excinfo.value.row_number == 4


def test_should_transpose_respects_exclusions():
    assert SheetConfig("A", transpose=True).should_transpose
    assert not SheetConfig("A", transpose=True, exclude_from_transpose=frozenset({"A"})).should_transpose
    assert not SheetConfig("A", transpose=False).should_transpose


def test_csv_name_with_extension_is_kept():
    assert SheetConfig("A", csv_name="report.CSV").output_file_name == "report.CSV"


def test_load_sheet_configs_from_xlsx(tmp_path):
    path = write_config(
        tmp_path / "config.xlsx",
        [
            [1, "Employees", "employees", False, "false", "NA", None, "hr"],
            None,
            [2, None, "orphan.csv", True, None, None, None, None],
            [3, "Matrix", None, "True", True, "1-3", "Matrix", "finance"],
        ],
    )

    configs, errors = load_sheet_configs(path)

    assert [c.sheet_name for c in configs] == ["Employees", "Matrix"]
    assert configs[1].transpose is True
    assert configs[1].should_transpose is False
    assert configs[1].comment_read is True
    assert len(errors) == 1
    assert errors[0].row_number == 4


def test_load_sheet_configs_from_pandas_written_xlsx(tmp_path):
    """Configuration sheets written by pandas/xlsxwriter load the same way."""

    df = pd.DataFrame(
        [[1, "Employees", "employees.csv", False, "TRUE", "NA", "", "hr"]],
        columns=CONFIG_HEADER,
    )
    path = Path(tmp_path) / "config_pd.xlsx"
    with pd.ExcelWriter(path, engine="xlsxwriter") as writer:
        df.to_excel(writer, sheet_name="Config", index=False)

    configs, errors = load_sheet_configs(path)

    assert errors == []
    assert configs == [
        SheetConfig(
            sheet_name="Employees",
            csv_name="employees.csv",
            transpose=False,
            comment_read=True,
            range="NA",
            exclude_from_transpose=frozenset(),
            output_directory="hr",
        )
    ]


def test_load_sheet_configs_from_csv(tmp_path):
    path = tmp_path / "config.csv"
    path.write_text(
        ",".join(CONFIG_HEADER) + "\n"
        '1,Employees,staff,true,false,"2-4,7",,hr\n'
        ",,,,,,,\n"
        '2,Matrix,,TRUE,,,"Matrix,Other",\n',
        encoding="utf-8",
    )

    configs, errors = load_sheet_configs(path)

    assert errors == []
    assert configs[0].range == "2-4,7"
    assert configs[0].transpose is True
    assert configs[1].exclude_from_transpose == frozenset({"Matrix", "Other"})
    assert configs[1].output_directory == ""


def test_load_sheet_configs_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """
sheets:
  - sheet_name: Employees
    csv_name: staff
    transpose: true
    comment_read: "TRUE"
    range: 3
    exclude_from_transpose: [Employees]
    output_directory: hr
  - csv_name: nameless
""",
        encoding="utf-8",
    )

    configs, errors = load_sheet_configs(path)

    assert len(configs) == 1
    assert configs[0].range == "3"
    assert configs[0].comment_read is True
    assert configs[0].should_transpose is False
    assert [e.row_number for e in errors] == [2]


def test_read_config_rows_rejects_unknown_format(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(ConfigError):
        read_config_rows(path)
    with pytest.raises(ConfigError):
        read_config_rows(tmp_path / "missing.xlsx")


def test_load_settings_defaults(monkeypatch):
    for key in list(os.environ):
        if key.startswith("SHEET_CSV_"):
            monkeypatch.delenv(key)
    settings = load_settings()
    assert settings == ConverterSettings()
    assert settings.start_column == 1
    assert settings.lowercase_output is False
    assert settings.text_policy.collapse_newlines is True


def test_load_settings_yaml_and_env(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        """
settings:
  output_root: exports
  start_column: 0
  lowercase_output: true
  line_terminator: lf
  unknown_key: ignored
""",
        encoding="utf-8",
    )
    monkeypatch.setenv("SHEET_CSV_ATOMIC_WRITES", "yes")
    monkeypatch.setenv("SHEET_CSV_START_COLUMN", "2")

    settings = load_settings(path)

    assert settings.output_root == (tmp_path / "exports").resolve()
    assert settings.start_column == 2
    assert settings.lowercase_output is True
    assert settings.line_terminator == "\n"
    assert settings.atomic_writes is True
    options = settings.csv_options
    assert options.lowercase is True and options.atomic is True


def test_load_settings_bad_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("settings: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_malformed_row_names_its_csv_name_or_id():
    with pytest.raises(MalformedConfigRow) as by_name:
        SheetConfig.from_row(_row(7, "", "out.csv", number=4))
    assert str(by_name.value) == "Malformed configuration row 4 (csvName 'out.csv'): missing sheetName"

    with pytest.raises(MalformedConfigRow) as by_id:
        SheetConfig.from_row(_row(7, None, number=9))
    assert by_id.value.label == "id 7"


@pytest.mark.parametrize("name", ["start_row", "transpose_start_row", "start_column"])
def test_negative_offsets_are_rejected(name):
    with pytest.raises(ConfigError):
        ConverterSettings(**{name: -1})


def test_negative_offset_from_env_is_rejected(monkeypatch):
    monkeypatch.setenv("SHEET_CSV_START_COLUMN", "-1")
    with pytest.raises(ConfigError):
        load_settings()
