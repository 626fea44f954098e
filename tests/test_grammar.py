"""Tests for ACS identifier parsing and formatting."""

import pytest

from acs_explorer.acs.grammar import (
    TableQuery, format_table_code, format_variable_code, is_annotation_key,
    parse_table_code, parse_table_query, parse_table_record, parse_variable_code,
)
from acs_explorer.acs.models import (
    TableCode, TablePrefix, TableRecord, VariableCode, VariableType,
)
from acs_explorer.errors import ParseError

from conftest import OCCUPATION_LABEL


def test_parse_variable_code_with_suffix_before_underscore():
    expected = VariableCode(
        table_code=TableCode(prefix=TablePrefix.B, table_id="20005", suffix="E"),
        column_id="045",
        var_type=VariableType.MARGIN_OF_ERROR,
    )
    assert parse_variable_code("B20005E_045M") == expected
    assert parse_variable_code(b"B20005E_045M") == expected


def test_parse_variable_code_without_suffix():
    code = parse_variable_code("C24126_001E")
    assert code.table_code == TableCode(prefix=TablePrefix.C, table_id="24126", suffix=None)
    assert code.column_id == "001"
    assert code.var_type == VariableType.VALUE


def test_parse_table_record():
    record = parse_table_record(f"B24126.  {OCCUPATION_LABEL}")
    assert record == TableRecord(
        code=TableCode(prefix=TablePrefix.B, table_id="24126", suffix=None),
        label=OCCUPATION_LABEL,
    )


def test_parse_table_record_keeps_label_verbatim():
    record = parse_table_record("B01001A.\tSex by Age (White Alone):")
    assert record.code.suffix == "A"
    assert record.label == "Sex by Age (White Alone):"


def test_suffix_is_upper_cased():
    assert parse_table_code("B01001a").suffix == "A"


@pytest.mark.parametrize(
    "text, token, raw",
    [
        ("X01001_001E", "prefix", b"X"),
        ("", "prefix", b""),
        ("B_001E", "table_id", b"_"),
        ("B01001-001E", "separator", b"-"),
        ("B01001_E", "column_id", b"E"),
        ("B01001_001X", "var_type", b"X"),
        ("B01001_001", "var_type", b""),
        ("B01001_001EA", "trailing", b"A"),
    ],
)
def test_parse_variable_code_errors_name_the_failing_token(text, token, raw):
    with pytest.raises(ParseError) as exc_info:
        parse_variable_code(text)
    assert exc_info.value.token == token
    assert exc_info.value.raw == raw


def test_parse_table_record_errors():
    with pytest.raises(ParseError) as exc_info:
        parse_table_record("B24126 Detailed Occupation")
    assert exc_info.value.token == "separator"

    with pytest.raises(ParseError) as exc_info:
        parse_table_record("B24126.Detailed Occupation")
    assert exc_info.value.token == "whitespace"

    with pytest.raises(ParseError) as exc_info:
        parse_table_record(b"B24126.  \xff\xfe")
    assert exc_info.value.token == "label"


def test_unknown_prefix_is_never_defaulted():
    with pytest.raises(ParseError) as exc_info:
        parse_table_code("D01001")
    assert exc_info.value.token == "prefix"


@pytest.mark.parametrize(
    "text",
    ["B01001", "C24126", "B01001A", "B20005E", "B992701", "C27001I"],
)
def test_table_code_round_trip(text):
    code = parse_table_code(text)
    assert format_table_code(code) == text
    assert parse_table_code(format_table_code(code)) == code


@pytest.mark.parametrize(
    "code",
    [
        VariableCode(TableCode(TablePrefix.B, "20005", "E"), "045", VariableType.MARGIN_OF_ERROR),
        VariableCode(TableCode(TablePrefix.C, "24126", None), "001", VariableType.VALUE),
        VariableCode(TableCode(TablePrefix.B, "01001", "AB"), "049", VariableType.VALUE),
    ],
)
def test_variable_code_round_trip(code):
    assert parse_variable_code(format_variable_code(code)) == code
    assert str(code) == format_variable_code(code)


def test_empty_suffix_is_no_suffix():
    code = TableCode(TablePrefix.B, "01001", "")
    assert code.suffix is None
    assert code == TableCode(TablePrefix.B, "01001")
    assert parse_table_code(format_table_code(code)) == code


def test_is_annotation_key():
    assert is_annotation_key("B01001_001EA")
    assert is_annotation_key("B01001_001MA")
    assert not is_annotation_key("B01001_001E")
    assert not is_annotation_key("B01001_001M")
    assert not is_annotation_key("NAME")


def test_parse_table_query_optional_parts():
    assert parse_table_query("20005") == TableQuery(table_id="20005")
    assert parse_table_query(" b20005 ") == TableQuery(table_id="20005", prefix=TablePrefix.B)
    assert parse_table_query("C24126a") == TableQuery(table_id="24126", prefix=TablePrefix.C, suffix="A")


def test_parse_table_query_rejects_garbage():
    with pytest.raises(ParseError):
        parse_table_query("B20005 income")
    with pytest.raises(ParseError):
        parse_table_query("Bxyz")


def test_table_query_to_table_code_requires_prefix():
    assert parse_table_query("B20005").to_table_code() == TableCode(TablePrefix.B, "20005", None)
    with pytest.raises(ParseError):
        parse_table_query("20005").to_table_code()
