"""
Tests for the mapping CSV loader.

Tests verify:
    - Column handling and type conversion
    - Storage sentinels in question_id
    - Errors for broken files, warnings for recoverable rows
"""

import pytest
from surveydoc.mapping_csv import MappingParseError, parse_mappings_csv, parse_mappings_file
from surveydoc.model import (
    AnswerSource,
    CalculatedSource,
    DataType,
    GroupFieldSource,
    ManualSource,
)

HEADER = "variable_name,question_id,data_type,transform_rule,required,default_value,formula\n"


class TestCSVParsing:
    """Test parsing valid mapping CSVs."""

    def test_basic_rows(self):
        content = HEADER + (
            "companyName,companyName1,text,uppercase,yes,,\n"
            "directorNames,__directors.name,list,list_or,no,,\n"
            "vesting,__manual__,text,none,,4 years,\n"
            'capital,__calculated__,currency,comma_dollar_cents,true,,"{authorizedShares} * {parValue}"\n'
        )
        mappings = parse_mappings_csv(content)

        assert [m.variable_name for m in mappings] == ["companyName", "directorNames", "vesting", "capital"]
        assert mappings[0].source == AnswerSource("companyName1")
        assert mappings[0].required is True
        assert mappings[0].transform_rule == "uppercase"
        assert mappings[1].source == GroupFieldSource("directors", "name")
        assert mappings[1].data_type == DataType.LIST
        assert mappings[2].source == ManualSource()
        assert mappings[2].default_value == "4 years"
        assert mappings[3].source == CalculatedSource("{authorizedShares} * {parValue}")
        assert mappings[3].required is True

    def test_optional_columns_may_be_absent(self):
        mappings = parse_mappings_csv("variable_name,question_id,data_type,transform_rule\nx,q,NUMBER,\n")
        assert mappings[0].data_type == DataType.NUMBER
        assert mappings[0].transform_rule == "none"
        assert mappings[0].default_value is None

    def test_blank_rows_skipped(self):
        mappings = parse_mappings_csv(HEADER + "a,q,text,none,,,\n,,,,,,\nb,r,text,none,,,\n")
        assert [m.variable_name for m in mappings] == ["a", "b"]


class TestCSVFileHandling:
    """Test reading from disk."""

    def test_parse_file(self, tmp_path):
        path = tmp_path / "mappings.csv"
        path.write_text(HEADER + "signDate,__manual__,date,YYYY년 MM월 DD일,,,\n", encoding="utf-8")
        mappings = parse_mappings_file(path)
        assert mappings[0].transform_rule == "YYYY년 MM월 DD일"


class TestCSVErrors:
    """Test error handling."""

    def test_empty(self):
        with pytest.raises(MappingParseError):
            parse_mappings_csv("")

    def test_missing_columns(self):
        with pytest.raises(MappingParseError, match="Missing required columns"):
            parse_mappings_csv("variable_name,question_id\nx,y\n")

    def test_duplicates(self):
        with pytest.raises(MappingParseError, match="Duplicate"):
            parse_mappings_csv(HEADER + "a,q,text,none,,,\na,r,text,none,,,\n")

    def test_unknown_data_type(self):
        with pytest.raises(MappingParseError, match="Unknown data type"):
            parse_mappings_csv(HEADER + "a,q,money,none,,,\n")

    def test_missing_question_id(self):
        with pytest.raises(MappingParseError):
            parse_mappings_csv(HEADER + "a,,text,none,,,\n")

    def test_invalid_formula_warns(self):
        with pytest.warns(UserWarning, match="Invalid formula"):
            mappings = parse_mappings_csv(HEADER + "a,__calculated__,number,none,,,{x} +\n")
        assert mappings[0].source == CalculatedSource("{x} +")

    def test_missing_formula_warns(self):
        with pytest.warns(UserWarning, match="no formula"):
            parse_mappings_csv(HEADER + "a,__calculated__,number,none,,,\n")

    def test_formula_on_answer_row_warns(self):
        with pytest.warns(UserWarning, match="Formula ignored"):
            parse_mappings_csv(HEADER + "a,q,number,none,,,1 + 1\n")
