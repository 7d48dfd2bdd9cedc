"""
Tests for rule evaluation and template selection.

These tests verify:
    - Every condition operator, numeric and case-insensitive comparison
    - Computed and question-referencing conditions
    - Rule scoring with AND/OR, always-include and manual-only
    - Bucket classification boundaries and label ordering
"""

import pytest
from surveydoc.model import (
    ConditionOperator as Op,
    ConditionSource,
    LogicalOperator,
    RuleCondition,
    SelectionRule,
    SurveyResponse,
    Template,
    ValueSource,
)
from surveydoc.rules import (
    COMPUTED_VARIABLES,
    compute_variables_from_responses,
    evaluate_condition,
    evaluate_rules,
    get_template_evaluation_details,
    select_templates,
)

RESPONSES = [
    SurveyResponse("state", "Delaware"),
    SurveyResponse("officeState", "California"),
    SurveyResponse("hasVesting", "Yes"),
    SurveyResponse("employees", "12"),
    SurveyResponse("shares", "2.0"),
    SurveyResponse("industries", ["Robotics", "AI"]),
    SurveyResponse("directors", [{"name": "A"}, {"name": "B"}]),
    SurveyResponse("founders", [{"name": "A"}]),
]


def cond(question_id, operator, value="", **kwargs):
    return RuleCondition(question_id, operator, value, **kwargs)


def rule(*conditions, **kwargs):
    return SelectionRule(conditions=list(conditions), **kwargs)


def template(template_id, *rules, display_name="", is_active=True):
    return Template(
        id=template_id,
        name=template_id,
        display_name=display_name,
        rules=list(rules),
        is_active=is_active,
    )


MATCH = cond("state", Op.EQUALS, "Delaware")
MISS = cond("state", Op.EQUALS, "Nevada")


class TestComputedVariables:
    """Test aggregate extraction from repeated groups."""

    def test_counts_and_flags(self):
        computed = compute_variables_from_responses(RESPONSES)
        assert computed["directorsCount"] == 2
        assert computed["hasMultipleDirectors"] == "true"
        assert computed["hasSingleDirectors"] == ""
        assert computed["foundersCount"] == 1
        assert computed["hasSingleFounders"] == "true"

    def test_ignores_scalar_and_string_lists(self):
        computed = compute_variables_from_responses(RESPONSES)
        assert "industriesCount" not in computed
        assert "stateCount" not in computed

    def test_catalogue_names_known_aggregates(self):
        ids = {c.id for c in COMPUTED_VARIABLES}
        assert {"directorsCount", "foundersCount", "hasMultipleFounders"} <= ids


class TestEvaluateCondition:
    """Test single condition evaluation."""

    @pytest.mark.parametrize("condition,expected", [
        (cond("state", Op.EQUALS, "delaware"), True),
        (cond("shares", Op.EQUALS, "2"), True),
        (cond("employees", Op.EQUALS, "12.0"), True),
        (cond("state", Op.NOT_EQUALS, "Nevada"), True),
        (cond("shares", Op.NOT_EQUALS, "2"), False),
        (cond("state", Op.CONTAINS, "LAW"), True),
        (cond("state", Op.NOT_CONTAINS, "law"), False),
        (cond("industries", Op.CONTAINS, "ai"), True),
        (cond("officeState", Op.IN, "New York, california"), True),
        (cond("officeState", Op.IN, "Texas,Nevada"), False),
        (cond("employees", Op.GREATER_THAN, "10"), True),
        (cond("employees", Op.GREATER_EQUAL, "12"), True),
        (cond("employees", Op.LESS_THAN, "12"), False),
        (cond("employees", Op.LESS_EQUAL, "12"), True),
        (cond("state", Op.GREATER_THAN, "1"), False),
        (cond("employees", Op.GREATER_THAN, "many"), False),
    ])
    def test_operators(self, condition, expected):
        assert evaluate_condition(condition, RESPONSES) is expected

    def test_list_answers_join_with_commas(self):
        assert evaluate_condition(cond("industries", Op.EQUALS, "robotics,ai"), RESPONSES)

    @pytest.mark.parametrize("operator", [Op.EQUALS, Op.CONTAINS, Op.NOT_CONTAINS, Op.IN, Op.GREATER_THAN])
    def test_missing_answer_is_false(self, operator):
        assert not evaluate_condition(cond("unknown", operator, "x"), RESPONSES)

    def test_missing_answer_not_equals_is_true(self):
        assert evaluate_condition(cond("unknown", Op.NOT_EQUALS, "x"), RESPONSES)

    def test_compare_against_other_question(self):
        condition = cond(
            "officeState", Op.NOT_EQUALS,
            value_source=ValueSource.QUESTION, value_question_id="state",
        )
        assert evaluate_condition(condition, RESPONSES)

    def test_unanswered_referenced_question(self):
        equals = cond("state", Op.EQUALS, value_source=ValueSource.QUESTION, value_question_id="nope")
        not_equals = cond("state", Op.NOT_EQUALS, value_source=ValueSource.QUESTION, value_question_id="nope")
        assert not evaluate_condition(equals, RESPONSES)
        assert evaluate_condition(not_equals, RESPONSES)

    def test_computed_source(self):
        condition = cond("directorsCount", Op.GREATER_EQUAL, "2", source=ConditionSource.COMPUTED)
        computed = compute_variables_from_responses(RESPONSES)
        assert evaluate_condition(condition, RESPONSES, computed)

    def test_computed_source_derived_when_not_supplied(self):
        condition = cond("hasMultipleDirectors", Op.EQUALS, "true", source=ConditionSource.COMPUTED)
        assert evaluate_condition(condition, RESPONSES)

    def test_computed_source_ignores_answers(self):
        condition = cond("state", Op.EQUALS, "Delaware", source=ConditionSource.COMPUTED)
        assert not evaluate_condition(condition, RESPONSES, {})


class TestEvaluateRules:
    """Test template scoring."""

    def test_no_rules(self):
        result = evaluate_rules(template("t"), RESPONSES)
        assert (result.score, result.matched_rules, result.total_rules) == (0.0, 0, 0)

    def test_always_include_short_circuits(self):
        result = evaluate_rules(template("t", rule(MISS), rule(always_include=True)), RESPONSES)
        assert result.always_include
        assert result.score == 1.0
        assert result.matched_rules == result.total_rules == 2

    def test_manual_only_short_circuits(self):
        result = evaluate_rules(template("t", rule(MATCH), rule(manual_only=True)), RESPONSES)
        assert result.manual_only
        assert result.score == 0.0
        assert result.total_rules == 2

    def test_and_requires_all(self):
        assert evaluate_rules(template("t", rule(MATCH, MISS)), RESPONSES).score == 0.0

    def test_or_requires_any(self):
        result = evaluate_rules(template("t", rule(MATCH, MISS, logical_operator=LogicalOperator.OR)), RESPONSES)
        assert result.score == 1.0

    def test_score_is_fraction_of_matched_rules(self):
        result = evaluate_rules(template("t", rule(MATCH), rule(MISS), rule(MATCH), rule(MISS)), RESPONSES)
        assert result.matched_rules == 2
        assert result.total_rules == 4
        assert result.score == 0.5

    def test_rules_without_conditions_are_not_counted(self):
        result = evaluate_rules(template("t", rule(MATCH), rule()), RESPONSES)
        assert result.total_rules == 1
        assert result.score == 1.0

    def test_score_bounds(self):
        for rules in ([rule(MATCH)], [rule(MISS)], [rule(MATCH), rule(MISS), rule(MISS)]):
            score = evaluate_rules(template("t", *rules), RESPONSES).score
            assert 0.0 <= score <= 1.0


class TestSelectTemplates:
    """Test bucket classification."""

    def test_buckets(self):
        templates = [
            template("always", rule(always_include=True)),
            template("full", rule(MATCH)),
            template("two_thirds", rule(MATCH), rule(MATCH), rule(MISS)),
            template("half", rule(MATCH), rule(MISS)),
            template("none", rule(MISS)),
            template("manual", rule(MATCH), rule(manual_only=True)),
            template("no_rules"),
            template("inactive", rule(always_include=True), is_active=False),
        ]
        selection = select_templates(RESPONSES, templates)

        assert [t.id for t in selection.required] == ["always", "full"]
        assert [t.id for t in selection.suggested] == ["two_thirds"]
        assert [t.id for t in selection.optional] == ["half", "manual", "no_rules", "none"]

    def test_exactly_half_is_optional(self):
        selection = select_templates(RESPONSES, [template("half", rule(MATCH), rule(MISS))])
        assert [t.id for t in selection.optional] == ["half"]
        assert selection.suggested == []

    def test_inactive_templates_never_selected(self):
        selection = select_templates(RESPONSES, [template("off", rule(always_include=True), is_active=False)])
        assert selection.required == selection.suggested == selection.optional == []

    def test_sorted_by_label_ignoring_case(self):
        templates = [
            template("z", rule(MATCH), display_name="beta"),
            template("y", rule(MATCH), display_name="Zeta"),
            template("x", rule(MATCH), display_name="Alpha"),
        ]
        selection = select_templates(RESPONSES, templates)
        assert [t.label for t in selection.required] == ["Alpha", "beta", "Zeta"]

    def test_sorted_like_document_names(self):
        labels = ["IRS Form SS-4", "Incorporation Certificate", "bylaws", "Consent"]
        templates = [template(label, rule(always_include=True)) for label in labels]
        selection = select_templates(RESPONSES, templates)
        assert [t.label for t in selection.required] == [
            "bylaws", "Consent", "Incorporation Certificate", "IRS Form SS-4",
        ]

    def test_lowercase_first_on_case_only_ties(self):
        templates = [template("Minutes", rule(MATCH)), template("minutes", rule(MATCH))]
        selection = select_templates(RESPONSES, templates)
        assert [t.label for t in selection.required] == ["minutes", "Minutes"]

    def test_computed_conditions(self):
        multiple_directors = template(
            "minutes",
            rule(cond("hasMultipleDirectors", Op.EQUALS, "true", source=ConditionSource.COMPUTED)),
        )
        selection = select_templates(RESPONSES, [multiple_directors])
        assert [t.id for t in selection.required] == ["minutes"]


class TestEvaluationDetails:
    """Test per-condition diagnostics."""

    def test_details(self):
        tmpl = template(
            "t",
            rule(MATCH, cond("industries", Op.CONTAINS, "banking")),
            rule(cond("directorsCount", Op.GREATER_THAN, "1", source=ConditionSource.COMPUTED)),
        )
        details = get_template_evaluation_details(tmpl, RESPONSES)

        assert details.evaluation.total_rules == 2
        assert details.evaluation.matched_rules == 1
        assert [(d.rule_index, d.is_met, d.actual_value) for d in details.condition_details] == [
            (0, True, "Delaware"),
            (0, False, "Robotics,AI"),
            (1, True, "2"),
        ]

    def test_missing_actual_value_is_empty(self):
        details = get_template_evaluation_details(template("t", rule(cond("nope", Op.EQUALS, "x"))), RESPONSES)
        assert details.condition_details[0].actual_value == ""
        assert details.condition_details[0].is_met is False
