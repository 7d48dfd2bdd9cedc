"""
Core Data Model

Defines the data structures exchanged with the engine:
    - Survey responses (answers as supplied by storage)
    - Variable mappings (how one template placeholder is populated)
    - Selection rules and conditions (when a template is needed)
    - Templates (root configuration container)
    - Result objects produced by selection and validation

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about storage, HTTP or DOCX
        - Are plain data (no evaluation logic)
        - Are fully serializable (see surveydoc.serialization)
        - Are never mutated by the engine
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


# A repeated-group answer: one record per person/entity.
RecordList = List[Dict[str, str]]
ResponseValue = Union[str, List[str], RecordList]


@dataclass(frozen=True)
class SurveyResponse:
    """
    A single answer to a survey question.

    Properties:
        question_id:
            Answer key (e.g., "companyName1", "founders", "__COIDate")

        value:
            - str: scalar answer
            - List[str]: multi-select answer
            - List[Dict[str, str]]: repeated group (e.g., one record per director)

        price:
            Optional price attached by the survey form (informational only)

    IMPORTANT:
        Responses are an immutable snapshot for one transformation run.
    """

    question_id: str
    value: ResponseValue
    price: Optional[float] = None

    @property
    def is_repeated_group(self) -> bool:
        """True when the value is a non-empty list of records."""
        return (
            isinstance(self.value, list)
            and len(self.value) > 0
            and isinstance(self.value[0], dict)
        )


def find_response(responses: List[SurveyResponse], question_id: str) -> Optional[SurveyResponse]:
    """
    Return the first response answering question_id, or None.

    Args:
        responses: Response snapshot
        question_id: Answer key

    Returns:
        SurveyResponse or None if not answered
    """
    for response in responses:
        if response.question_id == question_id:
            return response
    return None


class DataType(str, Enum):
    """
    Declared data type of a mapped variable.

    The data type selects the formatter family; the transform rule
    selects the concrete rendering inside that family.
    """

    TEXT = "text"
    LIST = "list"
    DATE = "date"
    NUMBER = "number"
    CURRENCY = "currency"
    EMAIL = "email"
    PHONE = "phone"


# =============================================================================
# MAPPING SOURCES
# =============================================================================


@dataclass(frozen=True)
class AnswerSource:
    """Value comes from the survey answer with this question ID."""

    question_id: str


@dataclass(frozen=True)
class ManualSource:
    """
    Value is typed in later by a human.

    The engine only emits the mapping's default value, if any.
    """


@dataclass(frozen=True)
class CalculatedSource:
    """
    Value is derived from a formula over other resolved variables.

    Example:
        CalculatedSource("{Founder1Cash} / {FMV}")
    """

    formula: str


@dataclass(frozen=True)
class GroupFieldSource:
    """
    Value is one field projected across every record of a repeated group.

    Example:
        GroupFieldSource(group="founders", field="name")
        -> "Alice, Bob, and Carol"
    """

    group: str
    field: str


@dataclass(frozen=True)
class GroupCountSource:
    """Value is the number of records in a repeated group."""

    group: str


@dataclass(frozen=True)
class IndividualItemSource:
    """
    Value is one field of one record of a repeated group (1-indexed).

    Example:
        IndividualItemSource(singular="founder", index=1, field="cash")
        -> value of Founder1Cash
    """

    singular: str
    index: int
    field: str


MappingSource = Union[
    AnswerSource,
    ManualSource,
    CalculatedSource,
    GroupFieldSource,
    GroupCountSource,
    IndividualItemSource,
]


@dataclass
class VariableMapping:
    """
    Declares how one named template placeholder is populated.

    Properties:
        variable_name:
            Output key (unique within one transformation run)

        source:
            Where the value comes from (see MappingSource variants)

        data_type:
            DataType selecting the formatter family

        transform_rule:
            Format directive, meaning depends on data_type
            Examples: "comma", "number_korean", "YYYY년 MM월 DD일", "list_or"

        required:
            Whether an empty value is reported by the validator

        default_value:
            Fallback when the source yields nothing

        id:
            Storage identifier (opaque, optional)
    """

    variable_name: str
    source: MappingSource
    data_type: DataType = DataType.TEXT
    transform_rule: str = "none"
    required: bool = False
    default_value: Optional[str] = None
    id: Optional[str] = None

    @property
    def formula(self) -> Optional[str]:
        """Formula of a calculated mapping, else None."""
        if isinstance(self.source, CalculatedSource):
            return self.source.formula
        return None


# =============================================================================
# SELECTION RULES
# =============================================================================


class ConditionOperator(str, Enum):
    """Comparison operators available to rule conditions."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    LESS_EQUAL = "<="


class ConditionSource(str, Enum):
    """Where the left-hand (actual) value of a condition comes from."""

    QUESTION = "question"
    COMPUTED = "computed"


class ValueSource(str, Enum):
    """Where the right-hand (comparison) value of a condition comes from."""

    LITERAL = "literal"
    QUESTION = "question"


class LogicalOperator(str, Enum):
    """How the conditions of one rule combine."""

    AND = "AND"
    OR = "OR"


@dataclass
class RuleCondition:
    """
    A single comparison inside a selection rule.

    Properties:
        question_id:
            Answer key (source=QUESTION) or computed variable name
            (source=COMPUTED, e.g. "directorsCount")

        operator:
            ConditionOperator

        value:
            Literal comparison value (value_source=LITERAL)
            For IN, a comma-separated allow-list

        value_source:
            LITERAL compares against value,
            QUESTION compares against the answer to value_question_id

        value_question_id:
            Referenced answer key when value_source=QUESTION

        source:
            QUESTION reads a survey answer, COMPUTED reads an aggregate

    Example:
        directorsCount >= 2

        RuleCondition(
            question_id="directorsCount",
            operator=ConditionOperator.GREATER_EQUAL,
            value="2",
            source=ConditionSource.COMPUTED,
        )
    """

    question_id: str
    operator: ConditionOperator
    value: str = ""
    value_source: ValueSource = ValueSource.LITERAL
    value_question_id: Optional[str] = None
    source: ConditionSource = ConditionSource.QUESTION


@dataclass
class SelectionRule:
    """
    An ordered set of conditions attached to a template.

    Properties:
        conditions: Conditions combined by logical_operator
        logical_operator: AND (default) or OR
        priority: Lower is evaluated first
        always_include: Template is always required
        manual_only: Template is never auto-selected
        id: Storage identifier (opaque, optional)
    """

    conditions: List[RuleCondition] = field(default_factory=list)
    logical_operator: LogicalOperator = LogicalOperator.AND
    priority: int = 0
    always_include: bool = False
    manual_only: bool = False
    id: Optional[str] = None


@dataclass
class Template:
    """
    A document template with its selection rules and variable mappings.

    Properties:
        id: Template identifier
        name: Internal name
        display_name: Name shown to administrators (sort key)
        category: Free-form grouping
        rules: Selection rules
        variables: Variable mappings used to fill the template
        is_active: Inactive templates are never selected
        repeat_for: Repeated group to generate one document per person for
            (e.g., "founders"), or None

    INVARIANTS:
        - Variable names are unique within a template
        - Rules are read-only during evaluation
    """

    id: str
    name: str
    display_name: str = ""
    category: str = ""
    rules: List[SelectionRule] = field(default_factory=list)
    variables: List[VariableMapping] = field(default_factory=list)
    is_active: bool = True
    repeat_for: Optional[str] = None

    @property
    def label(self) -> str:
        """Display name, falling back to the internal name."""
        return self.display_name or self.name

    def get_variable(self, variable_name: str) -> Optional[VariableMapping]:
        """
        Retrieve a variable mapping by name.

        Args:
            variable_name: Output key

        Returns:
            VariableMapping or None if not declared
        """
        for mapping in self.variables:
            if mapping.variable_name == variable_name:
                return mapping
        return None


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class RuleEvaluationResult:
    """Outcome of evaluating all rules of one template."""

    template_id: str
    score: float = 0.0
    matched_rules: int = 0
    total_rules: int = 0
    always_include: bool = False
    manual_only: bool = False


@dataclass
class TemplateSelection:
    """Templates classified for a survey, each bucket sorted by label."""

    required: List[Template] = field(default_factory=list)
    suggested: List[Template] = field(default_factory=list)
    optional: List[Template] = field(default_factory=list)


@dataclass
class ConditionDetail:
    """Per-condition evaluation detail for administrators."""

    rule_index: int
    condition: RuleCondition
    is_met: bool
    actual_value: str


@dataclass
class TemplateEvaluationDetails:
    """Evaluation of a template plus the detail of each condition."""

    evaluation: RuleEvaluationResult
    condition_details: List[ConditionDetail] = field(default_factory=list)


@dataclass
class ValidationResult:
    """
    Gaps found in a resolved variable map.

    Properties:
        is_valid: True only when both lists are empty
        missing_variables: Declared variables absent from the map
        empty_required: Required variables present but blank
    """

    is_valid: bool
    missing_variables: List[str] = field(default_factory=list)
    empty_required: List[str] = field(default_factory=list)

    @property
    def problems(self) -> List[str]:
        """Missing then empty-required variable names."""
        return self.missing_variables + self.empty_required
