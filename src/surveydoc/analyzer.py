"""
Template Analyzer: diagnostics for template configurations.

This module provides lightweight analysis of Template lists:
    - Mapping inventory (by source kind)
    - Duplicate variable names per template
    - Formula syntax and complexity
    - Formula references no mapping produces
    - Manual-entry variables administrators must fill in

IMPORTANT: This is read-only. It does NOT modify templates.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from surveydoc.expressions import BinaryExpression, Expression, UnaryExpression
from surveydoc.formula import FormulaError, formula_references, parse_formula, substitute_references
from surveydoc.model import CalculatedSource, ManualSource, Template

# Keys the transformer always produces (or produces from admin answers)
WELL_KNOWN_VARIABLES = frozenset({
    "currentDate", "currentDateShort", "currentDateISO", "currentTime",
    "documentNumber", "currentYear", "currentDateKR",
    "COIDate", "COIDateShort", "COIDateISO", "COIDateKR",
    "SIGNDate", "SIGNDateShort", "SIGNDateISO", "SIGNDateKR",
    "authorizedShares", "authorizedSharesRaw", "authorizedSharesEnglish",
    "parValue", "parValueDollar",
    "fairMarketValue", "fairMarketValueDollar", "FMV",
})

# Names produced by repeated-group expansion (Founder1Cash, foundersCashList, ...)
_GROUP_DERIVED_RE = re.compile(r"^[A-Za-z]+\d+[A-Z]\w*$|(Count|Formatted|OrList|List)$")

MAX_FORMULA_DEPTH = 5


def _expression_depth(expr: Expression) -> int:
    if isinstance(expr, BinaryExpression):
        return 1 + max(_expression_depth(expr.left), _expression_depth(expr.right))
    if isinstance(expr, UnaryExpression):
        return 1 + _expression_depth(expr.operand)
    return 0


def is_known_variable(name: str, produced: Iterable[str] = ()) -> bool:
    """True if the transformer can produce name without an explicit mapping."""
    return name in WELL_KNOWN_VARIABLES or name in set(produced) or bool(_GROUP_DERIVED_RE.search(name))


@dataclass
class ManualVariable:
    """A variable administrators type in, aggregated across templates."""
    variable_name: str
    data_type: str
    transform_rule: str
    required: bool
    default_value: str
    used_in_templates: List[str] = field(default_factory=list)


def collect_manual_variables(
    templates: List[Template],
    template_ids: Optional[Iterable[str]] = None,
) -> List[ManualVariable]:
    """
    Manual and calculated variables of the selected templates, grouped by name.

    A variable is required if any template requires it; data type, rule and
    default come from its first occurrence.
    """
    selected = set(template_ids) if template_ids is not None else None
    grouped: Dict[str, ManualVariable] = {}

    for template in templates:
        if selected is not None and template.id not in selected:
            continue
        for mapping in template.variables:
            if not isinstance(mapping.source, (ManualSource, CalculatedSource)):
                continue
            entry = grouped.get(mapping.variable_name)
            if entry is None:
                entry = ManualVariable(
                    variable_name=mapping.variable_name,
                    data_type=mapping.data_type.value,
                    transform_rule=mapping.transform_rule or "none",
                    required=mapping.required,
                    default_value=mapping.default_value or "",
                )
                grouped[mapping.variable_name] = entry
            entry.required = entry.required or mapping.required
            entry.used_in_templates.append(template.label)

    return list(grouped.values())


@dataclass
class ConfigurationReport:
    """Analysis report for a set of templates."""

    total_templates: int = 0
    active_templates: int = 0
    total_mappings: int = 0
    mappings_by_source: Dict[str, int] = field(default_factory=dict)

    duplicate_variables: Dict[str, List[str]] = field(default_factory=dict)
    missing_formulas: List[str] = field(default_factory=list)
    formula_errors: Dict[str, str] = field(default_factory=dict)
    unresolved_references: Dict[str, Set[str]] = field(default_factory=dict)
    max_formula_depth: int = 0

    templates_without_rules: List[str] = field(default_factory=list)
    manual_variables: List[ManualVariable] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_templates(templates: List[Template]) -> ConfigurationReport:
    """
    Analyze a template configuration.

    Checks for:
    - Duplicate variable names within a template
    - Calculated mappings without a formula or with a malformed one
    - Formula references that nothing in the template produces
    - Templates with no selection rules

    Returns a ConfigurationReport with counts and warnings.
    """
    report = ConfigurationReport(total_templates=len(templates))
    report.active_templates = sum(1 for t in templates if t.is_active)

    for template in templates:
        names = [m.variable_name for m in template.variables]
        report.total_mappings += len(names)

        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            report.duplicate_variables[template.id] = duplicates

        if not template.rules:
            report.templates_without_rules.append(template.id)

        for mapping in template.variables:
            kind = type(mapping.source).__name__
            report.mappings_by_source[kind] = report.mappings_by_source.get(kind, 0) + 1

            if not isinstance(mapping.source, CalculatedSource):
                continue

            key = f"{template.id}.{mapping.variable_name}"
            formula = mapping.source.formula
            if not formula or not formula.strip():
                report.missing_formulas.append(key)
                continue

            try:
                ast = parse_formula(substitute_references(formula, {}))
            except FormulaError as e:
                report.formula_errors[key] = str(e)
                continue
            report.max_formula_depth = max(report.max_formula_depth, _expression_depth(ast))

            unresolved = {
                ref for ref in formula_references(formula)
                if not is_known_variable(ref, names)
            }
            if unresolved:
                report.unresolved_references[key] = unresolved

    report.manual_variables = collect_manual_variables(templates)

    # =========================================================================
    # WARNING FLAGS
    # =========================================================================

    for template_id, duplicates in report.duplicate_variables.items():
        report.add_warning(f"Duplicate variables in {template_id}: {', '.join(duplicates)}")

    if report.missing_formulas:
        report.add_warning(f"Calculated variables without formula: {', '.join(report.missing_formulas)}")

    for key, error in report.formula_errors.items():
        report.add_warning(f"Invalid formula for {key}: {error}")

    for key, refs in report.unresolved_references.items():
        report.add_warning(f"Unresolved formula references in {key}: {', '.join(sorted(refs))}")

    if report.templates_without_rules:
        report.add_warning(
            f"Templates without selection rules: {', '.join(report.templates_without_rules)}"
        )

    if report.max_formula_depth > MAX_FORMULA_DEPTH:
        report.add_warning(f"High formula complexity: max depth {report.max_formula_depth}")

    return report
