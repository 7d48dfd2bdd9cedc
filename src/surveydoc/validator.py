"""
Variable map validation.

Checks a resolved variable map against the mappings that were supposed to
produce it. Validation only reports; it never raises and never modifies
the map.
"""

from typing import Any, Mapping, Sequence

from surveydoc.model import ValidationResult, VariableMapping


def validate_variables(
    variables: Mapping[str, Any],
    mappings: Sequence[VariableMapping],
) -> ValidationResult:
    """
    Report declared variables that are absent or blank.

    Args:
        variables: Output of transform_survey_to_variables
        mappings: Mappings the map was built from

    Returns:
        ValidationResult where
            missing_variables: names with no key in the map at all
            empty_required: required names present but blank after strip
        The two lists are disjoint.
    """
    missing_variables = []
    empty_required = []

    for mapping in mappings:
        name = mapping.variable_name
        if name not in variables:
            missing_variables.append(name)
            continue

        value = variables[name]
        if mapping.required and isinstance(value, str) and not value.strip():
            empty_required.append(name)

    return ValidationResult(
        is_valid=not missing_variables and not empty_required,
        missing_variables=missing_variables,
        empty_required=empty_required,
    )
