"""
Document-set generation.

Drives the engine for a batch of selected templates:

    survey record -> responses
    for each template:
        transform -> apply overrides -> validate -> render
        (once, or once per selected person for repeat_for templates)

Rendering itself (DOCX) is delegated to a DocumentRenderer supplied by the
caller. A renderer failure is reported for that document only; the other
templates still render.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from surveydoc.model import SurveyResponse, Template, find_response
from surveydoc.persons import create_person_variables, get_repeat_group_data
from surveydoc.serialization import response_from_dict
from surveydoc.transformer import TransformOptions, transform_survey_to_variables
from surveydoc.validator import validate_variables

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*]')

DEFAULT_COMPANY_NAME = "Company"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

# Survey record section -> {record key: response key}
CUSTOMER_INFO_KEYS = {
    "name": "__customerName",
    "email": "__customerEmail",
    "phone": "__customerPhone",
    "company": "__customerCompany",
}
ADMIN_DATE_KEYS = {
    "COIDate": "__COIDate",
    "SIGNDate": "__SIGNDate",
}
ADMIN_VALUE_KEYS = {
    "authorizedShares": "__authorizedShares",
    "parValue": "__parValue",
    "fairMarketValue": "__fairMarketValue",
}
GROUP_KEYS = ("founders", "directors")


class DocumentRenderer(Protocol):
    """Fills a template with variables and returns the document bytes."""

    def render(self, template: Template, variables: Mapping[str, Any]) -> bytes:
        ...


@dataclass
class DocumentResult:
    """
    Outcome of rendering one document.

    Properties:
        template_id: Template ID, suffixed with _<index> for per-person documents
        template_name: Template label, suffixed with ' - <person>' for per-person documents
        filename: Generated filename ('' on error)
        status: 'success' or 'error'
        content: Rendered bytes (success only)
        error: Error message (error only)
        missing_variables: Missing and empty-required variables, if any
    """

    template_id: str
    template_name: str
    filename: str
    status: str
    content: Optional[bytes] = None
    error: Optional[str] = None
    missing_variables: Optional[List[str]] = None


@dataclass
class GenerationReport:
    """Results of one generate_documents call."""

    company_name: str
    documents: List[DocumentResult] = field(default_factory=list)

    @property
    def successful(self) -> List[DocumentResult]:
        return [d for d in self.documents if d.status == STATUS_SUCCESS]

    @property
    def failed(self) -> List[DocumentResult]:
        return [d for d in self.documents if d.status == STATUS_ERROR]


def build_responses(survey_record: Mapping[str, Any]) -> List[SurveyResponse]:
    """
    Flatten a stored survey record into responses.

    Merges, in order (later entries replace earlier ones with the same key):
        answers, founders, directors, customerInfo, adminDates, adminValues

    Args:
        survey_record: Stored survey as a dict (camelCase keys)

    Returns:
        One response per question ID
    """
    merged: Dict[str, SurveyResponse] = {}

    answers = survey_record.get("answers") or []
    if not isinstance(answers, list):
        logger.warning("Survey record answers is not a list; ignoring it")
        answers = []
    for answer in answers:
        response = answer if isinstance(answer, SurveyResponse) else response_from_dict(answer)
        merged[response.question_id] = response

    for group in GROUP_KEYS:
        records = survey_record.get(group)
        if isinstance(records, list) and records:
            merged[group] = SurveyResponse(group, records)

    sections = (
        ("customerInfo", CUSTOMER_INFO_KEYS),
        ("adminDates", ADMIN_DATE_KEYS),
        ("adminValues", ADMIN_VALUE_KEYS),
    )
    for section_name, keys in sections:
        section = survey_record.get(section_name) or {}
        for record_key, question_id in keys.items():
            value = section.get(record_key)
            if value:
                merged[question_id] = SurveyResponse(question_id, value)

    return list(merged.values())


def resolve_company_name(
    responses: Sequence[SurveyResponse],
    survey_record: Optional[Mapping[str, Any]] = None,
) -> str:
    """Company name for filenames: customer info, then companyName(1), then 'Company'."""
    if survey_record:
        company = (survey_record.get("customerInfo") or {}).get("company")
        if company:
            return company

    for question_id in ("companyName", "companyName1"):
        response = find_response(list(responses), question_id)
        if response is None:
            continue
        value = response.value
        if isinstance(value, list):
            value = value[0] if value else ""
        if value:
            return str(value)

    return DEFAULT_COMPANY_NAME


def _safe(name: str) -> str:
    return _UNSAFE_FILENAME_RE.sub("_", name).strip()


def generate_filename(
    template_name: str,
    company_name: str,
    person_name: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """
    '{template}_{company}_{YYYYMMDD}.docx', or with the person name in
    place of the company for per-person documents.
    """
    today = today or date.today()
    subject = person_name if person_name else (company_name or "Document")
    return f"{_safe(template_name)}_{_safe(subject)}_{today:%Y%m%d}.docx"


def generate_zip_filename(company_name: str, today: Optional[date] = None) -> str:
    """'{company}_Legal_Documents_{YYYYMMDD}.zip'"""
    today = today or date.today()
    return f"{_safe(company_name or 'Documents')}_Legal_Documents_{today:%Y%m%d}.zip"


def _render(
    renderer: DocumentRenderer,
    template: Template,
    variables: Mapping[str, Any],
    template_id: str,
    template_name: str,
    filename: str,
    missing: Optional[List[str]],
) -> DocumentResult:
    try:
        content = renderer.render(template, variables)
    except Exception as e:
        logger.error("Error generating document %s: %s", template_name, e)
        return DocumentResult(
            template_id=template_id,
            template_name=template_name,
            filename="",
            status=STATUS_ERROR,
            error=str(e) or "Document generation failed",
        )
    return DocumentResult(
        template_id=template_id,
        template_name=template_name,
        filename=filename,
        status=STATUS_SUCCESS,
        content=content,
        missing_variables=missing,
    )


def generate_documents(
    responses: Sequence[SurveyResponse],
    templates: Sequence[Template],
    renderer: DocumentRenderer,
    overrides: Optional[Mapping[str, str]] = None,
    repeat_selections: Optional[Mapping[str, Sequence[int]]] = None,
    options: Optional[TransformOptions] = None,
    company_name: Optional[str] = None,
) -> GenerationReport:
    """
    Render every template against the responses.

    Args:
        responses: Survey answers (see build_responses)
        templates: Templates to render, in output order
        renderer: Document renderer
        overrides: Variables typed in by an administrator; replace
            transformed values
        repeat_selections: Template ID -> 0-based indices of the people to
            render a repeat_for template for. Without a selection the
            template renders once.
        options: Transform options (document number, clock)
        company_name: Name used in filenames (resolved from responses if None)

    Returns:
        GenerationReport with one DocumentResult per rendered document
    """
    options = options or TransformOptions()
    overrides = overrides or {}
    repeat_selections = repeat_selections or {}
    today = options.context.now().date()

    report = GenerationReport(company_name=company_name or resolve_company_name(responses))

    for template in templates:
        variables = transform_survey_to_variables(responses, template.variables, options)
        variables.update(overrides)

        validation = validate_variables(variables, template.variables)
        missing = None
        if not validation.is_valid:
            missing = validation.problems
            logger.warning(
                "Template %s has missing/empty variables: missing=%s empty_required=%s",
                template.id,
                validation.missing_variables,
                validation.empty_required,
            )

        selected = repeat_selections.get(template.id) or []
        if not template.repeat_for or not selected:
            report.documents.append(
                _render(
                    renderer,
                    template,
                    variables,
                    template.id,
                    template.label,
                    generate_filename(template.label, report.company_name, today=today),
                    missing,
                )
            )
            continue

        people = get_repeat_group_data(responses, template.repeat_for)
        for person_index in selected:
            if not 0 <= person_index < len(people):
                logger.warning("Person at index %d not found for template %s", person_index, template.id)
                continue
            person = people[person_index]
            person_variables = create_person_variables(variables, person, person_index, template.repeat_for)
            report.documents.append(
                _render(
                    renderer,
                    template,
                    person_variables,
                    f"{template.id}_{person_index}",
                    f"{template.label} - {person['name']}",
                    generate_filename(template.label, report.company_name, person["name"], today=today),
                    missing,
                )
            )

    return report
