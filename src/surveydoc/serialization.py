"""
Serialization helpers for surveydoc configuration and answers.

Provides lossless JSON/YAML round-trip via an intermediate dict
representation that uses the storage key names (camelCase).

Mapping sources are stored the way storage has always kept them, as a
'questionId' string with sentinel forms:

    "__manual__"          ManualSource
    "__calculated__"      CalculatedSource (formula in 'formula')
    "__founder.1.cash"    IndividualItemSource
    "__founders.name"     GroupFieldSource
    "__foundersCount"     GroupCountSource
    anything else         AnswerSource
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

import yaml

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
    MappingSource,
    RuleCondition,
    SelectionRule,
    SurveyResponse,
    Template,
    ValueSource,
    VariableMapping,
)

MANUAL_SENTINEL = "__manual__"
CALCULATED_SENTINEL = "__calculated__"

_INDIVIDUAL_RE = re.compile(r"^__(\w+?)\.(\d+)\.(\w+)$")
_GROUP_FIELD_RE = re.compile(r"^__(\w+)\.(\w+)$")
_GROUP_COUNT_RE = re.compile(r"^__(\w+)Count$")


def source_from_question_id(question_id: str, formula: Optional[str] = None) -> MappingSource:
    if question_id == MANUAL_SENTINEL:
        return ManualSource()
    if question_id == CALCULATED_SENTINEL:
        return CalculatedSource(formula or "")

    match = _INDIVIDUAL_RE.match(question_id)
    if match:
        return IndividualItemSource(match.group(1), int(match.group(2)), match.group(3))

    match = _GROUP_FIELD_RE.match(question_id)
    if match:
        return GroupFieldSource(match.group(1), match.group(2))

    match = _GROUP_COUNT_RE.match(question_id)
    if match:
        return GroupCountSource(match.group(1))

    return AnswerSource(question_id)


def source_to_question_id(source: MappingSource) -> str:
    if isinstance(source, ManualSource):
        return MANUAL_SENTINEL
    if isinstance(source, CalculatedSource):
        return CALCULATED_SENTINEL
    if isinstance(source, IndividualItemSource):
        return f"__{source.singular}.{source.index}.{source.field}"
    if isinstance(source, GroupFieldSource):
        return f"__{source.group}.{source.field}"
    if isinstance(source, GroupCountSource):
        return f"__{source.group}Count"
    if isinstance(source, AnswerSource):
        return source.question_id
    raise TypeError(f"Unsupported mapping source type: {type(source)}")


def mapping_to_dict(m: VariableMapping) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "variableName": m.variable_name,
        "questionId": source_to_question_id(m.source),
        "dataType": m.data_type.value,
        "transformRule": m.transform_rule,
        "required": m.required,
    }
    if m.default_value is not None:
        d["defaultValue"] = m.default_value
    if m.formula is not None:
        d["formula"] = m.formula
    if m.id is not None:
        d["id"] = m.id
    return d


def mapping_from_dict(d: Dict[str, Any]) -> VariableMapping:
    return VariableMapping(
        variable_name=d["variableName"],
        source=source_from_question_id(d["questionId"], d.get("formula")),
        data_type=DataType(d.get("dataType") or "text"),
        transform_rule=d.get("transformRule") or "none",
        required=bool(d.get("required", False)),
        default_value=d.get("defaultValue"),
        id=d.get("id"),
    )


def condition_to_dict(c: RuleCondition) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "questionId": c.question_id,
        "operator": c.operator.value,
        "value": c.value,
        "valueType": c.value_source.value,
        "sourceType": c.source.value,
    }
    if c.value_question_id is not None:
        d["valueQuestionId"] = c.value_question_id
    return d


def condition_from_dict(d: Dict[str, Any]) -> RuleCondition:
    return RuleCondition(
        question_id=d["questionId"],
        operator=ConditionOperator(d["operator"]),
        value=str(d.get("value", "")),
        value_source=ValueSource(d.get("valueType") or "literal"),
        value_question_id=d.get("valueQuestionId"),
        source=ConditionSource(d.get("sourceType") or "question"),
    )


def rule_to_dict(r: SelectionRule) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "conditions": [condition_to_dict(c) for c in r.conditions],
        "logicalOperator": r.logical_operator.value,
        "priority": r.priority,
        "isAlwaysInclude": r.always_include,
        "isManualOnly": r.manual_only,
    }
    if r.id is not None:
        d["id"] = r.id
    return d


def rule_from_dict(d: Dict[str, Any]) -> SelectionRule:
    return SelectionRule(
        conditions=[condition_from_dict(c) for c in d.get("conditions") or []],
        logical_operator=LogicalOperator(d.get("logicalOperator") or "AND"),
        priority=int(d.get("priority", 0)),
        always_include=bool(d.get("isAlwaysInclude", False)),
        manual_only=bool(d.get("isManualOnly", False)),
        id=d.get("id"),
    )


def template_to_dict(t: Template) -> Dict[str, Any]:
    return {
        "id": t.id,
        "name": t.name,
        "displayName": t.display_name,
        "category": t.category,
        "rules": [rule_to_dict(r) for r in t.rules],
        "variables": [mapping_to_dict(m) for m in t.variables],
        "isActive": t.is_active,
        "repeatFor": t.repeat_for,
    }


def template_from_dict(d: Dict[str, Any]) -> Template:
    return Template(
        id=d["id"],
        name=d.get("name", ""),
        display_name=d.get("displayName", ""),
        category=d.get("category", ""),
        rules=[rule_from_dict(r) for r in d.get("rules") or []],
        variables=[mapping_from_dict(m) for m in d.get("variables") or []],
        is_active=bool(d.get("isActive", True)),
        repeat_for=d.get("repeatFor") or None,
    )


def response_to_dict(r: SurveyResponse) -> Dict[str, Any]:
    d: Dict[str, Any] = {"questionId": r.question_id, "value": r.value}
    if r.price is not None:
        d["price"] = r.price
    return d


def response_from_dict(d: Dict[str, Any]) -> SurveyResponse:
    return SurveyResponse(question_id=d["questionId"], value=d.get("value"), price=d.get("price"))


def templates_to_dict(templates: List[Template]) -> Dict[str, Any]:
    return {"templates": [template_to_dict(t) for t in templates]}


def templates_from_dict(d: Dict[str, Any]) -> List[Template]:
    return [template_from_dict(t) for t in d.get("templates") or []]


def templates_to_json(templates: List[Template]) -> str:
    return json.dumps(templates_to_dict(templates), sort_keys=True, ensure_ascii=False)


def templates_from_json(s: str) -> List[Template]:
    return templates_from_dict(json.loads(s))


def templates_to_yaml(templates: List[Template]) -> str:
    return yaml.safe_dump(templates_to_dict(templates), allow_unicode=True)


def templates_from_yaml(s: str) -> List[Template]:
    return templates_from_dict(yaml.safe_load(s) or {})


def responses_to_json(responses: List[SurveyResponse]) -> str:
    return json.dumps([response_to_dict(r) for r in responses], sort_keys=True, ensure_ascii=False)


def responses_from_json(s: str) -> List[SurveyResponse]:
    return [response_from_dict(d) for d in json.loads(s)]


def responses_to_yaml(responses: List[SurveyResponse]) -> str:
    return yaml.safe_dump([response_to_dict(r) for r in responses], allow_unicode=True)


def responses_from_yaml(s: str) -> List[SurveyResponse]:
    return [response_from_dict(d) for d in yaml.safe_load(s) or []]
