"""
Expression System for calculated variables

Formulas such as "{Founder1Cash} / {FMV}" are parsed into Abstract
Syntax Trees (ASTs) before they are evaluated, never executed as code.

This ensures:
    - No dynamic code execution
    - Correct precedence and nested parentheses
    - Negative numbers handled structurally
    - Trees that can be inspected by the analyzer

ARCHITECTURAL RULE:
    This module is structure only.
    Parsing and evaluation live in surveydoc.formula.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum


class Expression(ABC):
    """
    Base class for all formula AST nodes.

    DO NOT:
        - Add evaluation logic here (belongs in surveydoc.formula)
        - Add string representations

    This class is structure only.
    """
    pass


class BinaryOperator(Enum):
    """
    Arithmetic operators supported in formulas.

    Keep this minimal. Formulas only ever combine amounts and counts.
    """

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class UnaryOperator(Enum):
    """Unary operators (sign)."""

    NEGATE = "-"
    PLUS = "+"


@dataclass(frozen=True)
class NumberLiteral(Expression):
    """
    A numeric constant.

    Substituted variable values become NumberLiterals too:
        "{cash} / 2" with cash = "1,000" parses as 1000 / 2
    """

    value: float


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Represents a binary arithmetic expression.

    Example:
        (10 + 5) * 2

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.MULTIPLY,
            left=BinaryExpression(
                operator=BinaryOperator.ADD,
                left=NumberLiteral(10),
                right=NumberLiteral(5)
            ),
            right=NumberLiteral(2)
        )

    IMPORTANT:
        This object is immutable (frozen=True).
        It does NOT evaluate itself.
    """

    operator: BinaryOperator
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """
    Represents a signed operand.

    Example:
        5 * -3

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.MULTIPLY,
            left=NumberLiteral(5),
            right=UnaryExpression(UnaryOperator.NEGATE, NumberLiteral(3))
        )
    """

    operator: UnaryOperator
    operand: Expression
