"""
Tests for the example formation configuration.
"""

from datetime import datetime

from surveydoc.context import RenderContext
from surveydoc.examples import build_example_formation_setup
from surveydoc.rules import select_templates
from surveydoc.transformer import TransformOptions, transform_survey_to_variables


def test_example_setup_structure():
    setup = build_example_formation_setup()
    ids = {t.id for t in setup.templates}
    assert {"coi", "board_consent", "spa", "83b", "ip_assignment"} <= ids
    assert any(r.question_id == "founders" for r in setup.responses)
    assert len({t.id for t in setup.templates}) == len(setup.templates)


def test_example_selection():
    setup = build_example_formation_setup()
    selection = select_templates(setup.responses, setup.templates)

    assert [t.label for t in selection.required] == [
        "83(b) Election",
        "Board Meeting Minutes",
        "Certificate of Incorporation",
        "Initial Board Consent",
        "Stock Purchase Agreement",
    ]
    assert selection.suggested == []
    assert [t.label for t in selection.optional] == ["Foreign Qualification", "IP Assignment"]


def test_example_variables():
    setup = build_example_formation_setup()
    mappings = [m for t in setup.templates for m in t.variables]
    options = TransformOptions("FR-1", context=RenderContext.fixed(datetime(2026, 3, 2)))
    variables = transform_survey_to_variables(setup.responses, mappings, options)

    assert variables["companyName"] == "Acme Robotics"
    assert variables["COIDate"] == "March 2, 2026"
    assert variables["authorizedSharesWords"] == "Ten Million"
    assert variables["totalParValue"] == "$1,000.00"
    assert variables["contactPhone"] == "415-555-0123"
    assert variables["industries"] == "Robotics and Machine Learning"
    assert variables["directorCount"] == "2"
    assert variables["founderCashList"] == "50,000, 25,000"
    assert variables["founderOneCash"] == "50,000"
    assert variables["Founder1Share"] == "5,000,000"
    assert variables["Founder2Share"] == "2,500,000"
