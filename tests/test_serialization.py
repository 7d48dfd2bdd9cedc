"""
Tests for serialization and deserialization of surveydoc objects.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `surveydoc.serialization`, and stable
storage sentinels for mapping sources.
"""

import pytest
from surveydoc.examples import build_example_responses, build_example_templates
from surveydoc.model import (
    AnswerSource,
    CalculatedSource,
    GroupCountSource,
    GroupFieldSource,
    IndividualItemSource,
    ManualSource,
)
from surveydoc.serialization import (
    condition_from_dict,
    mapping_from_dict,
    mapping_to_dict,
    responses_from_json,
    responses_from_yaml,
    responses_to_json,
    responses_to_yaml,
    source_from_question_id,
    source_to_question_id,
    template_to_dict,
    templates_from_json,
    templates_from_yaml,
    templates_to_json,
    templates_to_yaml,
)


def test_json_roundtrip():
    templates = build_example_templates()
    assert templates_from_json(templates_to_json(templates)) == templates


def test_yaml_roundtrip():
    templates = build_example_templates()
    assert templates_from_yaml(templates_to_yaml(templates)) == templates


def test_responses_roundtrip():
    responses = build_example_responses()
    assert responses_from_json(responses_to_json(responses)) == responses
    assert responses_from_yaml(responses_to_yaml(responses)) == responses


@pytest.mark.parametrize("question_id,source", [
    ("__manual__", ManualSource()),
    ("__calculated__", CalculatedSource("{a} * 2")),
    ("__founders.name", GroupFieldSource("founders", "name")),
    ("__directorsCount", GroupCountSource("directors")),
    ("__founder.1.cash", IndividualItemSource("founder", 1, "cash")),
    ("companyName1", AnswerSource("companyName1")),
    ("__COIDate", AnswerSource("__COIDate")),
])
def test_sentinels(question_id, source):
    assert source_from_question_id(question_id, "{a} * 2") == source
    assert source_to_question_id(source) == question_id


def test_storage_key_names():
    data = template_to_dict(build_example_templates()[0])
    assert data["displayName"] == "Certificate of Incorporation"
    assert data["rules"][0]["isAlwaysInclude"] is True
    calculated = next(v for v in data["variables"] if v["questionId"] == "__calculated__")
    assert calculated["formula"] == "{authorizedShares}"
    assert calculated["dataType"] == "number"


def test_mapping_defaults():
    mapping = mapping_from_dict({"variableName": "x", "questionId": "q"})
    assert mapping.data_type.value == "text"
    assert mapping.transform_rule == "none"
    assert mapping.required is False
    assert mapping_to_dict(mapping) == {
        "variableName": "x",
        "questionId": "q",
        "dataType": "text",
        "transformRule": "none",
        "required": False,
    }


def test_condition_defaults():
    condition = condition_from_dict({"questionId": "state", "operator": "==", "value": "DE"})
    assert condition.value_source.value == "literal"
    assert condition.source.value == "question"


def test_unknown_enum_values_raise():
    with pytest.raises(ValueError):
        condition_from_dict({"questionId": "x", "operator": "~=", "value": "1"})
    with pytest.raises(ValueError):
        mapping_from_dict({"variableName": "x", "questionId": "q", "dataType": "money"})
