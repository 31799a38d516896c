"""Embedded expression language.

The default ``Evaluator`` runs the JavaScript-flavored snippets that appear
in component fences, directive heads and ``{…}`` interpolations. Any object
implementing ``ExpressionEvaluator`` can replace it through
``Environment(evaluator=...)``.
"""

from plenti.expressions.evaluator import Evaluator, ExpressionEvaluator
from plenti.expressions.parser import ExpressionParser, parse_expression
from plenti.expressions.statements import declared_names, run_statements
from plenti.expressions.values import (
    Value,
    format_value,
    is_strictly_true,
    is_truthy,
    stringify,
    to_value,
)

__all__ = [
    "Evaluator",
    "ExpressionEvaluator",
    "ExpressionParser",
    "Value",
    "declared_names",
    "format_value",
    "is_strictly_true",
    "is_truthy",
    "parse_expression",
    "run_statements",
    "stringify",
    "to_value",
]
