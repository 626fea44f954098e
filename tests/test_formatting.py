"""Tests for console formatting of query results."""

from acs_explorer.acs.formatting import (
    format_describe_table_pretty, format_describe_table_raw, format_est_years,
    format_etl_config, format_table_name, format_table_records, format_table_versions,
)
from acs_explorer.acs.models import (
    Estimate, TableCode, TablePrefix, TableRecord, TableVersion, VariableType,
)

from conftest import make_var


def _records():
    return [
        make_var("001", 2016, "Estimate!!Total:"),
        make_var("001", 2016, "Estimate!!Total:", var_type=VariableType.MARGIN_OF_ERROR),
        make_var("002", 2016, "Estimate!!Total:!!Male:"),
        make_var("003", 2016, "Estimate!!Total:!!Male:!!Worked full-time"),
        make_var("001", 2015, "Total"),
        make_var("001", 2016, "Total", estimate=Estimate.ONE_YEAR),
    ]


def test_format_table_name():
    record = TableRecord(TableCode(TablePrefix.B, "20005", "E"), "Earnings")
    assert format_table_name(record) == "B20005E | Earnings\n"


def test_format_table_records_sorted_with_header():
    out = format_table_records([
        TableRecord(TableCode(TablePrefix.C, "24126"), "Occupation"),
        TableRecord(TableCode(TablePrefix.B, "24126"), "Detailed Occupation"),
    ])
    lines = out.splitlines()
    assert lines[0].startswith("code")
    assert lines[2:] == ["B24126 | Detailed Occupation", "C24126 | Occupation"]


def test_format_describe_table_raw():
    out = format_describe_table_raw(2016, _records(), Estimate.FIVE_YEAR)
    assert out.splitlines() == [
        "B20005_001E Estimate!!Total:",
        "B20005_001M Estimate!!Total:",
        "B20005_002E Estimate!!Total:!!Male:",
        "B20005_003E Estimate!!Total:!!Male:!!Worked full-time",
    ]


def test_format_describe_table_pretty_indents_by_depth():
    out = format_describe_table_pretty(2016, _records(), Estimate.FIVE_YEAR)
    rows = [line for line in out.splitlines() if line[:3].isdigit()]
    assert rows == [
        "001  |     Total",
        "002  |         Male",
        "003  |             Worked full-time",
    ]


def test_format_etl_config_skips_headers():
    out = format_etl_config(2016, _records(), Estimate.FIVE_YEAR)
    assert 'id: "B20005"' in out
    assert '003E: "Estimate_Total_Male_WorkedFull-time"' in out
    assert "001E" not in out
    assert "002E" not in out


def test_format_etl_config_single_column_keeps_header():
    out = format_etl_config(2016, [make_var("001", 2016, "Estimate!!Total:")], Estimate.FIVE_YEAR)
    assert '001E: "Estimate_Total"' in out


def test_format_etl_config_no_records():
    assert format_etl_config(2030, _records(), Estimate.FIVE_YEAR) == ""


def test_format_est_years():
    out = format_est_years({Estimate.FIVE_YEAR: [2016, 2015], Estimate.ONE_YEAR: [2016]})
    assert out == "ACS 1-year estimate: [2016]\nACS 5-year estimate: [2015, 2016]\n"


def test_format_table_versions():
    versions = [
        TableVersion(records=[], min_year=2009, max_year=2011),
        TableVersion(records=_records()[:2], min_year=2012, max_year=2016, years=[2012, 2016]),
    ]
    assert format_table_versions(versions) == (
        "2009-2011: not published\n"
        "2012-2016: 2 variables, years [2012, 2016]\n"
    )
