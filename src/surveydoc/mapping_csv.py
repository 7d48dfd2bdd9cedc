"""
CSV loader for variable mappings.

Lets administrators maintain a template's variable mappings in a
spreadsheet.

CSV Format:
    variable_name, question_id, data_type, transform_rule, required, default_value, formula

Column Notes:
    - question_id accepts the storage sentinels (__manual__, __calculated__,
      __founders.name, __foundersCount, __founder.1.cash)
    - required accepts true/yes/y/1 (anything else is false)
    - formula is only read for __calculated__ rows
"""

import csv
import warnings
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import List, Optional, Union

from surveydoc.formula import FormulaError, parse_formula, substitute_references
from surveydoc.model import CalculatedSource, DataType, VariableMapping
from surveydoc.serialization import source_from_question_id

REQUIRED_COLUMNS = ["variable_name", "question_id", "data_type", "transform_rule"]
TRUE_VALUES = {"true", "yes", "y", "1"}


class MappingParseError(Exception):
    """Raised when a mapping CSV cannot be loaded."""
    pass


@dataclass
class MappingRow:
    """Parsed CSV row."""
    variable_name: str
    question_id: str
    data_type: str
    transform_rule: str
    required: bool = False
    default_value: Optional[str] = None
    formula: Optional[str] = None


def _cell(row: dict, column: str) -> str:
    return (row.get(column) or "").strip()


def _parse_rows(csv_content: str) -> List[MappingRow]:
    """Parse CSV content into structured rows (blank rows skipped)."""
    reader = csv.DictReader(StringIO(csv_content))

    if reader.fieldnames is None:
        raise MappingParseError("CSV is empty")

    missing = [col for col in REQUIRED_COLUMNS if col not in reader.fieldnames]
    if missing:
        raise MappingParseError(f"Missing required columns: {missing}")

    rows = []
    for row_num, row in enumerate(reader, start=2):  # header is line 1
        if not any(_cell(row, column) for column in reader.fieldnames):
            continue

        variable_name = _cell(row, "variable_name")
        question_id = _cell(row, "question_id")
        if not variable_name or not question_id:
            raise MappingParseError(f"Row {row_num}: variable_name and question_id are required")

        rows.append(MappingRow(
            variable_name=variable_name,
            question_id=question_id,
            data_type=_cell(row, "data_type") or "text",
            transform_rule=_cell(row, "transform_rule") or "none",
            required=_cell(row, "required").lower() in TRUE_VALUES,
            default_value=_cell(row, "default_value") or None,
            formula=_cell(row, "formula") or None,
        ))

    return rows


def _check_formula(variable_name: str, formula: Optional[str]) -> None:
    if not formula:
        warnings.warn(f"Calculated variable {variable_name} has no formula", UserWarning)
        return
    try:
        parse_formula(substitute_references(formula, {}))
    except FormulaError as e:
        warnings.warn(f"Invalid formula for {variable_name}: {str(e)}", UserWarning)


def parse_mappings_csv(csv_content: str) -> List[VariableMapping]:
    """
    Parse CSV content into variable mappings.

    Args:
        csv_content: CSV as string

    Returns:
        VariableMapping list in row order

    Raises:
        MappingParseError: On missing columns, unknown data types or
            duplicate variable names
    """
    rows = _parse_rows(csv_content)

    names = [row.variable_name for row in rows]
    if len(names) != len(set(names)):
        duplicates = {name for name in names if names.count(name) > 1}
        raise MappingParseError(f"Duplicate variable names: {duplicates}")

    mappings = []
    for row in rows:
        try:
            data_type = DataType(row.data_type.lower())
        except ValueError:
            raise MappingParseError(f"Unknown data type for {row.variable_name}: {row.data_type}")

        source = source_from_question_id(row.question_id, row.formula)
        if isinstance(source, CalculatedSource):
            _check_formula(row.variable_name, row.formula)
        elif row.formula:
            warnings.warn(f"Formula ignored for non-calculated variable {row.variable_name}", UserWarning)

        mappings.append(VariableMapping(
            variable_name=row.variable_name,
            source=source,
            data_type=data_type,
            transform_rule=row.transform_rule,
            required=row.required,
            default_value=row.default_value,
        ))

    return mappings


def parse_mappings_file(path: Union[str, Path]) -> List[VariableMapping]:
    """Parse a mapping CSV file (UTF-8)."""
    return parse_mappings_csv(Path(path).read_text(encoding="utf-8"))
