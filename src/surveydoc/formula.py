"""
Formula evaluation for calculated variables.

A formula references other resolved variables by name:

    "{authorizedShares} * {parValue}"
    "{Founder1Cash} / {FMV}"

Evaluation happens in three steps:
    1. Substitute every {name} with its numeric value ($ and , stripped,
       unresolved or empty references become 0)
    2. Reject anything outside digits, whitespace and + - * / ( ) .
    3. Tokenize -> recursive-descent parse -> interpret the AST

No dynamic code execution is involved at any point.
"""

import logging
import re
from decimal import Decimal
from typing import Any, List, Mapping, Tuple

from surveydoc.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    NumberLiteral,
    UnaryExpression,
    UnaryOperator,
)
from surveydoc.formatters import number_to_string, parse_number

logger = logging.getLogger(__name__)

_REFERENCE_RE = re.compile(r"\{([^}]+)\}")
_ALLOWED_RE = re.compile(r"^[\d\s+\-*/().]+$")
_TOKEN_RE = re.compile(r"\s*(\d+\.?\d*|\.\d+|[+\-*/()])")


class FormulaError(Exception):
    """Raised when a formula cannot be parsed or evaluated."""
    pass


def formula_references(formula: str) -> List[str]:
    """Names referenced as {name} in a formula, in order of first use."""
    names: List[str] = []
    for name in _REFERENCE_RE.findall(formula or ""):
        if name not in names:
            names.append(name)
    return names


def _plain_number(value: float) -> str:
    text = number_to_string(value)
    if "e" in text or "E" in text:
        text = format(Decimal(repr(value)), "f")
    return text


def _reference_value(value: Any) -> float:
    if not isinstance(value, str) or value == "":
        return 0.0
    number = parse_number(value.replace("$", "").replace(",", ""))
    return 0.0 if number is None else number


def substitute_references(formula: str, variables: Mapping[str, Any]) -> str:
    """Replace every {name} in formula with its numeric value."""
    return _REFERENCE_RE.sub(
        lambda m: _plain_number(_reference_value(variables.get(m.group(1)))),
        formula,
    )


# =============================================================================
# PARSER
# =============================================================================


def _tokenize(expr_str: str) -> List[str]:
    """Tokenize an arithmetic expression."""
    tokens = []
    pos = 0
    text = expr_str.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if not match:
            raise FormulaError(f"Unexpected character at {pos}: {text[pos:]!r}")
        tokens.append(match.group(1))
        pos = match.end()
    if not tokens:
        raise FormulaError(f"No valid tokens in expression: {expr_str!r}")
    return tokens


def _parse_additive(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse + and - (lowest precedence)."""
    left, pos = _parse_multiplicative(tokens, pos)

    while pos < len(tokens) and tokens[pos] in ("+", "-"):
        operator = BinaryOperator(tokens[pos])
        right, pos = _parse_multiplicative(tokens, pos + 1)
        left = BinaryExpression(operator, left, right)

    return left, pos


def _parse_multiplicative(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse * and /."""
    left, pos = _parse_unary(tokens, pos)

    while pos < len(tokens) and tokens[pos] in ("*", "/"):
        operator = BinaryOperator(tokens[pos])
        right, pos = _parse_unary(tokens, pos + 1)
        left = BinaryExpression(operator, left, right)

    return left, pos


def _parse_unary(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse a signed operand (-3, +2, --1)."""
    if pos < len(tokens) and tokens[pos] in ("+", "-"):
        operator = UnaryOperator(tokens[pos])
        operand, pos = _parse_unary(tokens, pos + 1)
        return UnaryExpression(operator, operand), pos

    return _parse_primary(tokens, pos)


def _parse_primary(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse a number or a parenthesized expression."""
    if pos >= len(tokens):
        raise FormulaError("Unexpected end of expression")

    token = tokens[pos]

    if token == "(":
        expr, pos = _parse_additive(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ")":
            raise FormulaError("Missing closing parenthesis")
        return expr, pos + 1

    if token[0].isdigit() or token[0] == ".":
        return NumberLiteral(float(token)), pos + 1

    raise FormulaError(f"Unexpected token: {token}")


def parse_formula(expr_str: str) -> Expression:
    """
    Parse a substituted arithmetic expression into an AST.

    Args:
        expr_str: Expression containing only numbers and + - * / ( )

    Returns:
        Expression AST

    Raises:
        FormulaError: If syntax is invalid
    """
    tokens = _tokenize(expr_str)
    ast, remaining = _parse_additive(tokens, 0)
    if remaining < len(tokens):
        raise FormulaError(f"Unexpected tokens after parsing: {tokens[remaining:]}")
    return ast


# =============================================================================
# INTERPRETER
# =============================================================================


def evaluate_expression(expr: Expression) -> float:
    """
    Evaluate a formula AST.

    Raises:
        FormulaError: On division by zero or an unknown node
    """
    if isinstance(expr, NumberLiteral):
        return expr.value

    if isinstance(expr, UnaryExpression):
        operand = evaluate_expression(expr.operand)
        return -operand if expr.operator == UnaryOperator.NEGATE else operand

    if isinstance(expr, BinaryExpression):
        left = evaluate_expression(expr.left)
        right = evaluate_expression(expr.right)
        if expr.operator == BinaryOperator.ADD:
            return left + right
        if expr.operator == BinaryOperator.SUBTRACT:
            return left - right
        if expr.operator == BinaryOperator.MULTIPLY:
            return left * right
        if right == 0:
            raise FormulaError("Division by zero")
        return left / right

    raise FormulaError(f"Unsupported Expression type: {type(expr)}")


def evaluate_formula(formula: str, variables: Mapping[str, Any]) -> str:
    """
    Evaluate a formula against the variables resolved so far.

    Args:
        formula: Formula with {name} references
        variables: Variable map built so far

    Returns:
        Result as a string ("50", "0.5"), or "" on any failure
    """
    if not formula or not formula.strip():
        logger.warning("Empty formula")
        return ""

    expression = substitute_references(formula, variables)
    if not _ALLOWED_RE.match(expression):
        logger.warning("Invalid expression (contains disallowed chars): %s", expression)
        return ""

    try:
        result = evaluate_expression(parse_formula(expression))
    except (FormulaError, RecursionError) as e:
        logger.warning("Could not evaluate formula %r: %s", formula, e)
        return ""

    if result != result or result in (float("inf"), float("-inf")):
        logger.warning("Formula %r produced a non-finite result", formula)
        return ""

    return number_to_string(result)
