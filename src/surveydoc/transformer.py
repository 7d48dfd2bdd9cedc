"""
Survey -> document variable transformation.

Turns survey responses plus a template's variable mappings into the flat
variable map a document renderer fills placeholders from.

The work is split into named stages that run strictly in order. Each
stage sees a read-only view of everything produced before it and returns
only the variables it adds:

    1. context_variables       current date/time, year, document number
    2. admin_dates             COIDate* / SIGNDate* (default: today)
    3. repeated_groups         founders, directors, ... expansion
    4. admin_values            authorized shares, par value, FMV
    5. direct_mappings         answers, manual defaults, group references
    6. calculated_mappings     formulas over everything above
    7. derived_share_fallback  FounderNShare = FounderNCash / FMV

Nothing here raises for missing or malformed answers; failures degrade
to empty strings.
"""

import logging
from collections import ChainMap
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from surveydoc.context import RenderContext, generate_document_number
from surveydoc.formatters import (
    apply_transform_rule,
    format_date,
    format_number_with_comma,
    number_to_english,
    number_to_string,
    parse_number,
)
from surveydoc.formula import evaluate_formula
from surveydoc.lists import (
    capitalize_first,
    format_list,
    format_list_and,
    format_list_comma,
    format_list_or,
    generate_array_helper_variables,
)
from surveydoc.model import (
    AnswerSource,
    CalculatedSource,
    GroupCountSource,
    GroupFieldSource,
    IndividualItemSource,
    ManualSource,
    SurveyResponse,
    VariableMapping,
    find_response,
)

logger = logging.getLogger(__name__)

# Answer keys supplied by administrators rather than the customer
COI_DATE_KEY = "__COIDate"
SIGN_DATE_KEY = "__SIGNDate"
AUTHORIZED_SHARES_KEY = "__authorizedShares"
PAR_VALUE_KEY = "__parValue"
FAIR_MARKET_VALUE_KEY = "__fairMarketValue"

# Variable name suffix -> date format, for every rendered date family
DATE_VARIANTS: Tuple[Tuple[str, str], ...] = (
    ("", "MMMM D, YYYY"),
    ("Short", "MM/DD/YYYY"),
    ("ISO", "YYYY-MM-DD"),
    ("KR", "YYYY년 MM월 DD일"),
)

# Repeated-group fields rendered with thousands separators
NUMERIC_GROUP_FIELDS = ("cash",)

# Positions covered by the FounderNShare fallback
SHARE_FALLBACK_POSITIONS = range(1, 10)


@dataclass
class TransformOptions:
    """
    Per-run options.

    Properties:
        document_number: Fixed document number (generated when None)
        document_prefix: Prefix of generated document numbers
        context: Clock and random source
    """

    document_number: Optional[str] = None
    document_prefix: str = "FR"
    context: RenderContext = field(default_factory=RenderContext)


@dataclass(frozen=True)
class TransformInput:
    """Immutable input shared by every stage of one run."""

    responses: Tuple[SurveyResponse, ...]
    mappings: Tuple[VariableMapping, ...]
    options: TransformOptions

    def find(self, question_id: str) -> Optional[SurveyResponse]:
        return find_response(list(self.responses), question_id)


StageFunction = Callable[[TransformInput, Mapping[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class PipelineStage:
    """A named transformation step."""

    name: str
    run: StageFunction


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _first_scalar(value: Any) -> Optional[str]:
    """Scalar view of an admin answer (first element of a list answer)."""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and value:
        return str(value[0])
    return None


def _date_family(name: str, value: Any) -> Dict[str, str]:
    return {name + suffix: format_date(value, fmt) for suffix, fmt in DATE_VARIANTS}


# =============================================================================
# STAGES
# =============================================================================


def context_variables(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """Current date/time renderings and the document number."""
    options = inputs.options
    context = options.context
    now = context.now()
    return {
        "currentDate": format_date(now, "MMMM D, YYYY"),
        "currentDateShort": format_date(now, "MM/DD/YYYY"),
        "currentDateISO": format_date(now, "YYYY-MM-DD"),
        "currentTime": context.current_time("h:mm A"),
        "documentNumber": options.document_number
        or generate_document_number(options.document_prefix, context=context),
        "currentYear": str(now.year),
        "currentDateKR": format_date(now, "YYYY년 MM월 DD일"),
    }


def admin_dates(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """Certificate and signature dates, defaulting to today."""
    today = inputs.options.context.now()
    produced: Dict[str, Any] = {}
    for name, key in (("COIDate", COI_DATE_KEY), ("SIGNDate", SIGN_DATE_KEY)):
        response = inputs.find(key)
        if response is not None and response.value:
            value = _first_scalar(response.value) or today
        else:
            value = today
        produced.update(_date_family(name, value))
    return produced


def _group_field_value(record: Mapping[str, Any], field_name: str, numeric: bool) -> str:
    value = record.get(field_name)
    value = "" if value is None else str(value)
    if numeric and value:
        number = parse_number(value.replace(",", ""))
        if number is not None:
            return format_number_with_comma(number)
    return value


def expand_repeated_group(group: str, records: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Expand one repeated group into derived variables.

    For group="founders" with field "cash":
        foundersCount, hasMultipleFounders, hasSingleFounders
        foundersCashFormatted / foundersCashList / foundersCashOrList
        founder1Cash, Founder1Cash, founders1Cash, ...
        founders -> loop records with index / isFirst / isLast
    """
    produced: Dict[str, Any] = {}
    count = len(records)
    capitalized = capitalize_first(group)
    produced[f"{group}Count"] = str(count)
    produced[f"hasMultiple{capitalized}"] = "true" if count >= 2 else ""
    produced[f"hasSingle{capitalized}"] = "true" if count == 1 else ""

    singular = group[:-1]
    singular_capitalized = capitalize_first(singular)

    for field_name in (records[0] if records else {}):
        numeric = field_name.lower() in NUMERIC_GROUP_FIELDS
        values = [_group_field_value(record, field_name, numeric) for record in records]
        field_capitalized = capitalize_first(field_name)

        produced[f"{group}{field_capitalized}Formatted"] = format_list_and(values)
        produced[f"{group}{field_capitalized}List"] = format_list_comma(values)
        produced[f"{group}{field_capitalized}OrList"] = format_list_or(values)

        for index, value in enumerate(values, start=1):
            produced[f"{singular}{index}{field_capitalized}"] = value
            produced[f"{singular_capitalized}{index}{field_capitalized}"] = value
            produced[f"{group}{index}{field_capitalized}"] = value

    loop: List[Dict[str, Any]] = []
    for index, record in enumerate(records):
        item: Dict[str, Any] = {
            key: _group_field_value(record, key, key.lower() in NUMERIC_GROUP_FIELDS)
            for key in record
        }
        item.update({"index": index + 1, "isFirst": index == 0, "isLast": index == count - 1})
        loop.append(item)
    produced[group] = loop
    return produced


def repeated_groups(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """Expand every answer shaped as a list of records."""
    produced: Dict[str, Any] = {}
    for response in inputs.responses:
        if response.is_repeated_group:
            logger.debug("Expanding repeated group %s (%d items)", response.question_id, len(response.value))
            produced.update(expand_repeated_group(response.question_id, response.value))
    return produced


def admin_values(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """Authorized shares, par value and fair market value."""
    produced: Dict[str, Any] = {}

    response = inputs.find(AUTHORIZED_SHARES_KEY)
    if response is not None and response.value:
        raw = _first_scalar(response.value) or "0"
        number = parse_number(raw.replace(",", ""))
        if number is None:
            produced["authorizedShares"] = raw
            produced["authorizedSharesRaw"] = raw
            produced["authorizedSharesEnglish"] = ""
        else:
            produced["authorizedShares"] = format_number_with_comma(number)
            produced["authorizedSharesRaw"] = number_to_string(number)
            produced["authorizedSharesEnglish"] = number_to_english(number)

    response = inputs.find(PAR_VALUE_KEY)
    if response is not None and response.value:
        par_value = _first_scalar(response.value) or "0"
        produced["parValue"] = par_value
        produced["parValueDollar"] = "$" + par_value

    response = inputs.find(FAIR_MARKET_VALUE_KEY)
    if response is not None and response.value:
        fmv = _first_scalar(response.value) or "0"
        produced["fairMarketValue"] = fmv
        produced["fairMarketValueDollar"] = "$" + fmv
        produced["FMV"] = "$" + fmv

    return produced


def _group_field_variable(source: GroupFieldSource, rule: str) -> str:
    field_capitalized = capitalize_first(source.field)
    if rule == "list_or":
        return f"{source.group}{field_capitalized}OrList"
    if rule == "list_comma":
        return f"{source.group}{field_capitalized}List"
    return f"{source.group}{field_capitalized}Formatted"


def _resolve_answer(mapping: VariableMapping, response: Optional[SurveyResponse]) -> Dict[str, Any]:
    name = mapping.variable_name
    raw = response.value if response is not None else None

    if _is_blank(raw):
        return {name: mapping.default_value or ""}

    if isinstance(raw, list):
        if raw and isinstance(raw[0], dict):
            # Already expanded by the repeated_groups stage
            return {}
        items = [str(item) for item in raw]
        produced = generate_array_helper_variables(name, items)
        produced[name] = format_list(items, mapping.transform_rule)
        return produced

    return {name: apply_transform_rule(str(raw), mapping.data_type, mapping.transform_rule)}


def direct_mappings(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """Resolve every mapping that is not calculated."""
    produced: Dict[str, Any] = {}
    view = ChainMap(produced, variables)

    for mapping in inputs.mappings:
        source = mapping.source
        name = mapping.variable_name

        if isinstance(source, CalculatedSource):
            continue

        if isinstance(source, ManualSource):
            if mapping.default_value:
                produced[name] = mapping.default_value

        elif isinstance(source, GroupFieldSource):
            value = view.get(_group_field_variable(source, mapping.transform_rule))
            produced[name] = value if value else (mapping.default_value or "")

        elif isinstance(source, GroupCountSource):
            value = view.get(f"{source.group}Count")
            produced[name] = value if value else (mapping.default_value or "0")

        elif isinstance(source, IndividualItemSource):
            field_capitalized = capitalize_first(source.field)
            candidates = (
                f"{capitalize_first(source.singular)}{source.index}{field_capitalized}",
                f"{source.singular}{source.index}{field_capitalized}",
            )
            value = next((view[key] for key in candidates if view.get(key)), None)
            produced[name] = value if value else (mapping.default_value or "")

        elif isinstance(source, AnswerSource):
            produced.update(_resolve_answer(mapping, inputs.find(source.question_id)))

    return produced


def calculated_mappings(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """Evaluate calculated mappings in declaration order."""
    produced: Dict[str, Any] = {}
    view = ChainMap(produced, variables)

    for mapping in inputs.mappings:
        if not isinstance(mapping.source, CalculatedSource):
            continue
        if not mapping.source.formula or not mapping.source.formula.strip():
            logger.warning("Calculated variable %s has no formula", mapping.variable_name)
            continue

        value = evaluate_formula(mapping.source.formula, view)
        logger.debug("Calculated %s = %r", mapping.variable_name, value)
        if value:
            produced[mapping.variable_name] = apply_transform_rule(
                value, mapping.data_type, mapping.transform_rule
            )
        elif mapping.default_value:
            produced[mapping.variable_name] = mapping.default_value

    return produced


def _amount(value: Any) -> Optional[float]:
    if not isinstance(value, str):
        return None
    return parse_number(value.replace("$", "").replace(",", ""))


def derived_share_fallback(inputs: TransformInput, variables: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Fill FounderNShare = FounderNCash / FMV where no mapping produced it.

    Kept for templates that expect share counts without declaring a
    calculated mapping.
    """
    produced: Dict[str, Any] = {}
    fmv = _amount(variables.get("FMV"))
    if not variables.get("FMV") or fmv is None or fmv == 0:
        return produced

    for position in SHARE_FALLBACK_POSITIONS:
        share_key = f"Founder{position}Share"
        cash_value = variables.get(f"Founder{position}Cash")
        if variables.get(share_key) or not cash_value:
            continue
        cash = _amount(cash_value)
        if cash is None or (position > 1 and cash <= 0):
            continue
        produced[share_key] = format_number_with_comma(cash / fmv)
        logger.debug("Fallback %s = %s", share_key, produced[share_key])

    return produced


STAGES: Tuple[PipelineStage, ...] = (
    PipelineStage("context_variables", context_variables),
    PipelineStage("admin_dates", admin_dates),
    PipelineStage("repeated_groups", repeated_groups),
    PipelineStage("admin_values", admin_values),
    PipelineStage("direct_mappings", direct_mappings),
    PipelineStage("calculated_mappings", calculated_mappings),
    PipelineStage("derived_share_fallback", derived_share_fallback),
)


def run_pipeline(inputs: TransformInput, stages: Sequence[PipelineStage] = STAGES) -> Dict[str, Any]:
    """
    Run stages in order, threading a read-only variable view through them.

    Returns:
        Fresh dict with every variable produced
    """
    variables: Mapping[str, Any] = MappingProxyType({})
    for stage in stages:
        produced = stage.run(inputs, variables)
        logger.debug("Stage %s produced %d variables", stage.name, len(produced))
        variables = MappingProxyType({**variables, **produced})
    return dict(variables)


def transform_survey_to_variables(
    responses: Sequence[SurveyResponse],
    mappings: Sequence[VariableMapping],
    options: Optional[TransformOptions] = None,
) -> Dict[str, Any]:
    """
    Convert survey responses into template variables.

    Args:
        responses: Survey answers (never mutated)
        mappings: Variable mappings of the template being filled
        options: Document number and clock/random source

    Returns:
        Variable name -> string, plus list-valued loop entries for
        repeated groups and multi-select answers
    """
    inputs = TransformInput(
        responses=tuple(responses),
        mappings=tuple(mappings),
        options=options or TransformOptions(),
    )
    return run_pipeline(inputs)
