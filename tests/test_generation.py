"""
Tests for document-set generation.

A fake renderer stands in for the DOCX renderer and records the variables
each document was rendered with.
"""

from datetime import date, datetime

import pytest
from surveydoc.context import RenderContext
from surveydoc.examples import build_example_formation_setup
from surveydoc.generation import (
    build_responses,
    generate_documents,
    generate_filename,
    generate_zip_filename,
    resolve_company_name,
)
from surveydoc.model import SurveyResponse, find_response
from surveydoc.transformer import TransformOptions

MOMENT = datetime(2026, 3, 2, 10, 0)


class FakeRenderer:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.rendered = []

    def render(self, template, variables):
        if template.id in self.fail_for:
            raise RuntimeError(f"corrupt template {template.id}")
        self.rendered.append((template.id, dict(variables)))
        return f"{template.id}:{variables.get('companyName', '')}".encode("utf-8")


@pytest.fixture
def setup():
    return build_example_formation_setup()


@pytest.fixture
def options():
    return TransformOptions(document_number="FR-1", context=RenderContext.fixed(MOMENT))


def templates_by_id(setup, *ids):
    by_id = {t.id: t for t in setup.templates}
    return [by_id[i] for i in ids]


class TestBuildResponses:
    """Test flattening of stored survey records."""

    def test_merges_sections(self):
        record = {
            "answers": [{"questionId": "companyName1", "value": "Acme"}],
            "founders": [{"name": "Alice"}],
            "directors": [],
            "customerInfo": {"name": "Alice Kim", "email": "alice@acme.io", "company": "Acme Inc"},
            "adminDates": {"COIDate": "2026-03-02"},
            "adminValues": {"authorizedShares": "10,000,000", "parValue": ""},
        }
        responses = build_responses(record)
        ids = [r.question_id for r in responses]

        assert ids == [
            "companyName1",
            "founders",
            "__customerName",
            "__customerEmail",
            "__customerCompany",
            "__COIDate",
            "__authorizedShares",
        ]
        assert find_response(responses, "founders").value == [{"name": "Alice"}]

    def test_last_write_wins(self):
        record = {
            "answers": [
                {"questionId": "founders", "value": [{"name": "Old"}]},
                {"questionId": "__COIDate", "value": "2025-01-01"},
            ],
            "founders": [{"name": "New"}],
            "adminDates": {"COIDate": "2026-03-02"},
        }
        responses = build_responses(record)
        assert find_response(responses, "founders").value == [{"name": "New"}]
        assert find_response(responses, "__COIDate").value == "2026-03-02"
        assert len(responses) == 2

    def test_invalid_answers_are_ignored(self, caplog):
        assert build_responses({"answers": "oops"}) == []
        assert "not a list" in caplog.text

    def test_empty_record(self):
        assert build_responses({}) == []


class TestFilenames:
    """Test generated filenames."""

    def test_company_document(self):
        assert generate_filename("Bylaws", "Acme Inc", today=date(2026, 3, 2)) == "Bylaws_Acme Inc_20260302.docx"

    def test_person_document(self):
        name = generate_filename("SPA", "Acme", "Alice Kim", today=date(2026, 3, 2))
        assert name == "SPA_Alice Kim_20260302.docx"

    def test_unsafe_characters_replaced(self):
        name = generate_filename('Board: Consent', 'Acme/"Co"', today=date(2026, 3, 2))
        assert name == "Board_ Consent_Acme__Co__20260302.docx"

    def test_zip_filename(self):
        assert generate_zip_filename("Acme", today=date(2026, 3, 2)) == "Acme_Legal_Documents_20260302.zip"

    def test_company_name_resolution(self):
        assert resolve_company_name([SurveyResponse("companyName1", ["Acme", "Other"])]) == "Acme"
        assert resolve_company_name([], {"customerInfo": {"company": "Acme Inc"}}) == "Acme Inc"
        assert resolve_company_name([]) == "Company"


class TestGenerateDocuments:
    """Test the transform -> override -> validate -> render loop."""

    def test_single_documents(self, setup, options):
        renderer = FakeRenderer()
        report = generate_documents(setup.responses, templates_by_id(setup, "coi", "board_consent"), renderer, options=options)

        assert [d.status for d in report.documents] == ["success", "success"]
        assert report.company_name == "Acme Robotics"
        assert report.documents[0].filename == "Certificate of Incorporation_Acme Robotics_20260302.docx"
        assert report.documents[0].content == b"coi:Acme Robotics"
        assert report.documents[0].missing_variables is None

    def test_each_template_uses_its_own_mappings(self, setup, options):
        renderer = FakeRenderer()
        generate_documents(setup.responses, templates_by_id(setup, "coi", "board_consent"), renderer, options=options)
        coi_vars, consent_vars = (variables for _, variables in renderer.rendered)
        assert coi_vars["authorizedSharesWords"] == "Ten Million"
        assert coi_vars["contactEmail"] == "founder@acme.io"
        assert "directorNames" not in coi_vars
        assert consent_vars["directorNames"] == "Alice Kim and Carol Park"

    def test_per_person_documents(self, setup, options):
        renderer = FakeRenderer()
        report = generate_documents(
            setup.responses,
            templates_by_id(setup, "spa"),
            renderer,
            repeat_selections={"spa": [1, 0, 7]},
            options=options,
        )

        assert [d.template_id for d in report.documents] == ["spa_1", "spa_0"]
        assert report.documents[0].template_name == "Stock Purchase Agreement - Bob Lee"
        assert report.documents[0].filename == "Stock Purchase Agreement_Bob Lee_20260302.docx"
        assert renderer.rendered[0][1]["FounderName"] == "Bob Lee"
        assert renderer.rendered[0][1]["Founder2Cash"] == "25,000"

    def test_repeat_template_without_selection_renders_once(self, setup, options):
        report = generate_documents(setup.responses, templates_by_id(setup, "spa"), FakeRenderer(), options=options)
        assert [d.template_id for d in report.documents] == ["spa"]

    def test_overrides_replace_values(self, setup, options):
        renderer = FakeRenderer()
        generate_documents(
            setup.responses,
            templates_by_id(setup, "coi"),
            renderer,
            overrides={"companyName": "Acme Robotics, Inc."},
            options=options,
        )
        assert renderer.rendered[0][1]["companyName"] == "Acme Robotics, Inc."

    def test_missing_variables_reported(self, setup, options, caplog):
        report = generate_documents(setup.responses, templates_by_id(setup, "83b"), FakeRenderer(), options=options)
        assert report.documents[0].status == "success"
        assert report.documents[0].missing_variables == ["vestingStartDate"]
        assert "missing/empty variables" in caplog.text

    def test_override_fills_missing_variable(self, setup, options):
        report = generate_documents(
            setup.responses,
            templates_by_id(setup, "83b"),
            FakeRenderer(),
            overrides={"vestingStartDate": "2026-03-02"},
            options=options,
        )
        assert report.documents[0].missing_variables is None

    def test_renderer_failure_is_isolated(self, setup, options):
        renderer = FakeRenderer(fail_for={"coi"})
        report = generate_documents(setup.responses, templates_by_id(setup, "coi", "board_consent"), renderer, options=options)

        failed, succeeded = report.documents
        assert failed.status == "error"
        assert failed.filename == ""
        assert "corrupt template coi" in failed.error
        assert succeeded.status == "success"
        assert report.failed == [failed]
        assert report.successful == [succeeded]
