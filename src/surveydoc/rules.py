"""
Template selection rules.

Evaluates declarative rule conditions against raw survey answers (plus
computed aggregates such as group counts) and classifies templates into
required / suggested / optional buckets.

Classification per active template:
    always_include rule     -> required
    manual_only rule        -> optional
    no applicable rules     -> optional
    score >= 1.0            -> required
    score > 0.5             -> suggested
    otherwise               -> optional

Rules never mutate their inputs and never raise for missing answers.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from surveydoc.formatters import number_to_string, parse_number
from surveydoc.lists import capitalize_first
from surveydoc.model import (
    ConditionDetail,
    ConditionOperator,
    ConditionSource,
    LogicalOperator,
    RuleCondition,
    RuleEvaluationResult,
    SurveyResponse,
    Template,
    TemplateEvaluationDetails,
    TemplateSelection,
    ValueSource,
    find_response,
)

ComputedValue = Union[str, int]
ComputedVariables = Mapping[str, ComputedValue]

REQUIRED_SCORE = 1.0
SUGGESTED_SCORE = 0.5


@dataclass(frozen=True)
class ComputedVariable:
    """A computed aggregate offered to rule authors."""

    id: str
    label: str
    group: str


COMPUTED_VARIABLES = (
    ComputedVariable("directorsCount", "Directors Count", "directors"),
    ComputedVariable("foundersCount", "Founders Count", "founders"),
    ComputedVariable("hasMultipleDirectors", "Has Multiple Directors", "directors"),
    ComputedVariable("hasSingleDirectors", "Has Single Director", "directors"),
    ComputedVariable("hasMultipleFounders", "Has Multiple Founders", "founders"),
    ComputedVariable("hasSingleFounders", "Has Single Founder", "founders"),
)


def compute_variables_from_responses(responses: Sequence[SurveyResponse]) -> Dict[str, ComputedValue]:
    """
    Extract aggregates from every repeated-group answer.

    For group "directors" with 3 records:
        {"directorsCount": 3, "hasMultipleDirectors": "true", "hasSingleDirectors": ""}
    """
    computed: Dict[str, ComputedValue] = {}
    for response in responses:
        if not response.is_repeated_group:
            continue
        group = response.question_id
        count = len(response.value)
        capitalized = capitalize_first(group)
        computed[f"{group}Count"] = count
        computed[f"hasMultiple{capitalized}"] = "true" if count >= 2 else ""
        computed[f"hasSingle{capitalized}"] = "true" if count == 1 else ""
    return computed


def _as_text(value: Any) -> str:
    if isinstance(value, list):
        return ",".join(_as_text(item) for item in value)
    if isinstance(value, float):
        return number_to_string(value)
    return str(value)


def _actual_value(
    condition: RuleCondition,
    responses: Sequence[SurveyResponse],
    computed_variables: Optional[ComputedVariables],
) -> Any:
    if condition.source == ConditionSource.COMPUTED:
        if computed_variables is None:
            computed_variables = compute_variables_from_responses(responses)
        return computed_variables.get(condition.question_id)
    response = find_response(list(responses), condition.question_id)
    return response.value if response is not None else None


def _numbers(left: str, right: str):
    return parse_number(left), parse_number(right)


def _compare(operator: ConditionOperator, actual: str, expected: str) -> bool:
    if operator in (ConditionOperator.EQUALS, ConditionOperator.NOT_EQUALS):
        left, right = _numbers(actual, expected)
        if left is not None and right is not None:
            equal = left == right
        else:
            equal = actual.lower() == expected.lower()
        return equal if operator == ConditionOperator.EQUALS else not equal

    if operator == ConditionOperator.CONTAINS:
        return expected.lower() in actual.lower()

    if operator == ConditionOperator.NOT_CONTAINS:
        return expected.lower() not in actual.lower()

    if operator == ConditionOperator.IN:
        allowed = [item.strip().lower() for item in expected.split(",")]
        return actual.lower() in allowed

    left, right = _numbers(actual, expected)
    if left is None or right is None:
        return False
    if operator == ConditionOperator.GREATER_THAN:
        return left > right
    if operator == ConditionOperator.GREATER_EQUAL:
        return left >= right
    if operator == ConditionOperator.LESS_THAN:
        return left < right
    if operator == ConditionOperator.LESS_EQUAL:
        return left <= right
    return False


def evaluate_condition(
    condition: RuleCondition,
    responses: Sequence[SurveyResponse],
    computed_variables: Optional[ComputedVariables] = None,
) -> bool:
    """
    Evaluate a single rule condition.

    Args:
        condition: Condition to evaluate
        responses: Survey answers
        computed_variables: Aggregates from compute_variables_from_responses
            (derived from responses when None)

    Returns:
        True if the condition holds. A missing left-hand value (or a
        missing referenced answer on the right) satisfies only '!='.
    """
    actual = _actual_value(condition, responses, computed_variables)
    if actual is None:
        return condition.operator == ConditionOperator.NOT_EQUALS

    if condition.value_source == ValueSource.QUESTION and condition.value_question_id:
        reference = find_response(list(responses), condition.value_question_id)
        if reference is None or reference.value is None:
            return condition.operator == ConditionOperator.NOT_EQUALS
        expected = _as_text(reference.value)
    else:
        expected = condition.value or ""

    return _compare(condition.operator, _as_text(actual), expected)


def _rule_matches(rule, responses, computed_variables) -> bool:
    results = (evaluate_condition(c, responses, computed_variables) for c in rule.conditions)
    if rule.logical_operator == LogicalOperator.OR:
        return any(results)
    return all(results)


def evaluate_rules(
    template: Template,
    responses: Sequence[SurveyResponse],
    computed_variables: Optional[ComputedVariables] = None,
) -> RuleEvaluationResult:
    """
    Score a template against the answers.

    Returns:
        RuleEvaluationResult whose score is the fraction of rules with
        conditions that matched (0.0 when there are none)
    """
    rules = template.rules or []

    if not rules:
        return RuleEvaluationResult(template_id=template.id)

    if any(rule.always_include for rule in rules):
        return RuleEvaluationResult(
            template_id=template.id,
            score=1.0,
            matched_rules=len(rules),
            total_rules=len(rules),
            always_include=True,
        )

    if any(rule.manual_only for rule in rules):
        return RuleEvaluationResult(
            template_id=template.id,
            total_rules=len(rules),
            manual_only=True,
        )

    applicable = [rule for rule in sorted(rules, key=lambda r: r.priority) if rule.conditions]
    matched = sum(1 for rule in applicable if _rule_matches(rule, responses, computed_variables))
    total = len(applicable)

    return RuleEvaluationResult(
        template_id=template.id,
        score=matched / total if total else 0.0,
        matched_rules=matched,
        total_rules=total,
    )


def _label_sort_key(template: Template):
    # Case-insensitive first, lowercase ahead of uppercase on ties (locale order)
    return template.label.casefold(), template.label.swapcase()


def select_templates(
    responses: Sequence[SurveyResponse],
    templates: Sequence[Template],
    computed_variables: Optional[ComputedVariables] = None,
) -> TemplateSelection:
    """
    Classify every active template as required, suggested or optional.

    Each bucket is sorted by label (display name, else name).
    """
    if computed_variables is None:
        computed_variables = compute_variables_from_responses(responses)

    selection = TemplateSelection()

    for template in templates:
        if not template.is_active:
            continue

        evaluation = evaluate_rules(template, responses, computed_variables)

        if evaluation.always_include:
            selection.required.append(template)
        elif evaluation.manual_only or evaluation.total_rules == 0:
            selection.optional.append(template)
        elif evaluation.score >= REQUIRED_SCORE:
            selection.required.append(template)
        elif evaluation.score > SUGGESTED_SCORE:
            selection.suggested.append(template)
        else:
            selection.optional.append(template)

    for bucket in (selection.required, selection.suggested, selection.optional):
        bucket.sort(key=_label_sort_key)

    return selection


def get_template_evaluation_details(
    template: Template,
    responses: Sequence[SurveyResponse],
    computed_variables: Optional[ComputedVariables] = None,
) -> TemplateEvaluationDetails:
    """Template evaluation plus the outcome of every individual condition."""
    if computed_variables is None:
        computed_variables = compute_variables_from_responses(responses)

    details = TemplateEvaluationDetails(
        evaluation=evaluate_rules(template, responses, computed_variables)
    )

    for rule_index, rule in enumerate(template.rules or []):
        for condition in rule.conditions:
            actual = _actual_value(condition, responses, computed_variables)
            details.condition_details.append(
                ConditionDetail(
                    rule_index=rule_index,
                    condition=condition,
                    is_met=evaluate_condition(condition, responses, computed_variables),
                    actual_value="" if actual is None else _as_text(actual),
                )
            )

    return details
