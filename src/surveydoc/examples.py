"""
Example configuration for a Delaware C-corp formation.

Builds a survey snapshot (two founders, two directors, admin values) and a
small template library exercising every mapping source and rule feature:
always-include, computed conditions, question-referencing conditions,
OR rules, manual-only and inactive templates, and a per-founder template.
"""
from dataclasses import dataclass, field
from typing import List

from surveydoc.model import (
    AnswerSource,
    CalculatedSource,
    ConditionOperator,
    ConditionSource,
    DataType,
    GroupCountSource,
    GroupFieldSource,
    IndividualItemSource,
    LogicalOperator,
    ManualSource,
    RuleCondition,
    SelectionRule,
    SurveyResponse,
    Template,
    ValueSource,
    VariableMapping,
)


@dataclass
class FormationSetup:
    responses: List[SurveyResponse] = field(default_factory=list)
    templates: List[Template] = field(default_factory=list)


def build_example_responses() -> List[SurveyResponse]:
    return [
        SurveyResponse("companyName1", "Acme Robotics"),
        SurveyResponse("state", "Delaware"),
        SurveyResponse("officeState", "California"),
        SurveyResponse("hasVesting", "yes"),
        SurveyResponse("contactEmail", " Founder@Acme.IO "),
        SurveyResponse("contactPhone", "4155550123"),
        SurveyResponse("industries", ["Robotics", "Machine Learning"]),
        SurveyResponse("founders", [
            {"name": "Alice Kim", "email": "alice@acme.io", "address": "1 Main St, Palo Alto", "cash": "50000"},
            {"name": "Bob Lee", "email": "bob@acme.io", "address": "2 Oak Ave, Oakland", "cash": "25,000"},
        ]),
        SurveyResponse("directors", [
            {"name": "Alice Kim", "email": "alice@acme.io", "address": "1 Main St, Palo Alto"},
            {"name": "Carol Park", "email": "carol@acme.io", "address": "9 Pine Rd, Seattle"},
        ]),
        SurveyResponse("__COIDate", "2026-03-02"),
        SurveyResponse("__authorizedShares", "10,000,000"),
        SurveyResponse("__parValue", "0.0001"),
        SurveyResponse("__fairMarketValue", "0.01"),
    ]


def _company_name() -> VariableMapping:
    return VariableMapping("companyName", AnswerSource("companyName1"), required=True)


def build_example_templates() -> List[Template]:
    certificate = Template(
        id="coi",
        name="certificate_of_incorporation",
        display_name="Certificate of Incorporation",
        category="formation",
        rules=[SelectionRule(always_include=True)],
        variables=[
            _company_name(),
            VariableMapping("stateOfIncorporation", AnswerSource("state"), default_value="Delaware"),
            VariableMapping(
                "authorizedSharesWords",
                CalculatedSource("{authorizedShares}"),
                data_type=DataType.NUMBER,
                transform_rule="number_english",
            ),
            VariableMapping(
                "totalParValue",
                CalculatedSource("{authorizedShares} * {parValue}"),
                data_type=DataType.CURRENCY,
                transform_rule="comma_dollar_cents",
            ),
            VariableMapping("contactEmail", AnswerSource("contactEmail"), data_type=DataType.EMAIL),
            VariableMapping("contactPhone", AnswerSource("contactPhone"), data_type=DataType.PHONE, transform_rule="dashed"),
            VariableMapping("industries", AnswerSource("industries"), data_type=DataType.LIST, transform_rule="list_and"),
        ],
    )

    board_consent = Template(
        id="board_consent",
        name="initial_board_consent",
        display_name="Initial Board Consent",
        category="governance",
        rules=[SelectionRule(conditions=[
            RuleCondition("directorsCount", ConditionOperator.GREATER_EQUAL, "1", source=ConditionSource.COMPUTED),
        ])],
        variables=[
            _company_name(),
            VariableMapping("directorNames", GroupFieldSource("directors", "name"), transform_rule="list_and"),
            VariableMapping("directorCount", GroupCountSource("directors")),
            VariableMapping("firstDirector", IndividualItemSource("director", 1, "name"), required=True),
        ],
    )

    board_minutes = Template(
        id="board_minutes",
        name="board_meeting_minutes",
        display_name="Board Meeting Minutes",
        category="governance",
        rules=[SelectionRule(conditions=[
            RuleCondition("hasMultipleDirectors", ConditionOperator.EQUALS, "true", source=ConditionSource.COMPUTED),
        ])],
        variables=[_company_name()],
    )

    stock_purchase = Template(
        id="spa",
        name="stock_purchase_agreement",
        display_name="Stock Purchase Agreement",
        category="equity",
        repeat_for="founders",
        rules=[SelectionRule(conditions=[
            RuleCondition("foundersCount", ConditionOperator.GREATER_EQUAL, "1", source=ConditionSource.COMPUTED),
        ])],
        variables=[
            _company_name(),
            VariableMapping("founderNames", GroupFieldSource("founders", "name"), transform_rule="list_and"),
            VariableMapping("founderCashList", GroupFieldSource("founders", "cash"), transform_rule="list_comma"),
            VariableMapping("founderOneCash", IndividualItemSource("founder", 1, "cash"), data_type=DataType.CURRENCY),
        ],
    )

    vesting_election = Template(
        id="83b",
        name="83b_election",
        display_name="83(b) Election",
        category="equity",
        rules=[SelectionRule(conditions=[
            RuleCondition("hasVesting", ConditionOperator.EQUALS, "Yes"),
        ])],
        variables=[
            _company_name(),
            VariableMapping("vestingSchedule", ManualSource(), default_value="4 years, 1 year cliff"),
            VariableMapping("vestingStartDate", ManualSource(), data_type=DataType.DATE, required=True),
        ],
    )

    foreign_qualification = Template(
        id="foreign_qual",
        name="foreign_qualification",
        display_name="Foreign Qualification",
        category="compliance",
        rules=[
            SelectionRule(
                conditions=[
                    RuleCondition("officeState", ConditionOperator.IN, "California, New York"),
                    RuleCondition(
                        "officeState",
                        ConditionOperator.NOT_EQUALS,
                        value_source=ValueSource.QUESTION,
                        value_question_id="state",
                    ),
                ],
                logical_operator=LogicalOperator.OR,
                priority=1,
            ),
            SelectionRule(
                conditions=[RuleCondition("industries", ConditionOperator.CONTAINS, "banking")],
                priority=2,
            ),
        ],
        variables=[_company_name(), VariableMapping("officeState", AnswerSource("officeState"))],
    )

    ip_assignment = Template(
        id="ip_assignment",
        name="ip_assignment",
        display_name="IP Assignment",
        category="equity",
        rules=[SelectionRule(manual_only=True)],
        variables=[_company_name()],
    )

    bylaws = Template(
        id="bylaws_legacy",
        name="bylaws_legacy",
        display_name="Bylaws (legacy)",
        category="governance",
        is_active=False,
        rules=[SelectionRule(always_include=True)],
    )

    return [
        certificate,
        board_consent,
        board_minutes,
        stock_purchase,
        vesting_election,
        foreign_qualification,
        ip_assignment,
        bylaws,
    ]


def build_example_formation_setup() -> FormationSetup:
    return FormationSetup(
        responses=build_example_responses(),
        templates=build_example_templates(),
    )
