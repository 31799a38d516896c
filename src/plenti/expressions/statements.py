"""Statement runner for fence code.

A fence is a short run of declarations and assignments:

    import Card from "./card.svelte";      (removed before this point)
    let title = "Pets";
    let count = animals.length, empty = count === 0
    title += "!"

Statements are separated by ``;`` or by a newline that ends a complete
statement (a value-ending token followed by the start of a new one).
Each statement is handled on its own so a fault in one leaves the others
intact; the target of a failed statement is bound to ``None``.

Supported forms:
    let/const/var NAME [= expr] [, NAME [= expr]]*
    let/const/var {a, b} = expr      let/const/var [a, b] = expr
    NAME (= | += | -= | *= | /= | %= | **= | ??= | ||= | &&=) expr
    NAME++ / NAME--
    expr

Anything else (function declarations, loops) is skipped with a debug log.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from plenti._types import VALUE_END, Token, TokenType
from plenti.environment.exceptions import EvaluationFault
from plenti.expressions.lexer import tokenize

logger = logging.getLogger(__name__)

EvaluateFn = Callable[[str, Mapping[str, Any]], Any]

DECLARATION_KEYWORDS = frozenset({"let", "const", "var"})

_COMPOUND_ASSIGN = {
    "=": None,
    "+=": "+",
    "-=": "-",
    "*=": "*",
    "/=": "/",
    "%=": "%",
    "**=": "**",
    "??=": "??",
    "||=": "||",
    "&&=": "&&",
}

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())

# Statements that start with one of these are left alone.
_UNSUPPORTED_KEYWORDS = frozenset(
    {"function", "class", "if", "for", "while", "do", "switch", "try", "return", "export", "async"}
)

_STATEMENT_START = frozenset({TokenType.NAME, TokenType.NUMBER, TokenType.STRING, TokenType.TEMPLATE})


def split_statements(code: str) -> list[list[Token]]:
    """Split ``code`` into statements, each a list of significant tokens.

    Raises:
        ExpressionSyntaxError: The code cannot be tokenized.
    """
    statements: list[list[Token]] = []
    current: list[Token] = []
    depth = 0
    newline_pending = False
    for token in tokenize(code, keep_trivia=True):
        if token.type is TokenType.EOF:
            break
        if token.is_trivia:
            if depth == 0 and "\n" in token.value:
                newline_pending = True
            continue
        if token.is_punct(";") and depth == 0:
            if current:
                statements.append(current)
            current = []
            newline_pending = False
            continue
        if newline_pending and current and _ends_statement(current[-1]) and token.type in _STATEMENT_START:
            statements.append(current)
            current = []
        newline_pending = False
        if token.type is TokenType.PUNCT:
            if token.value in _OPENERS:
                depth += 1
            elif token.value in _CLOSERS:
                depth = max(depth - 1, 0)
        current.append(token)
    if current:
        statements.append(current)
    return statements


def _ends_statement(token: Token) -> bool:
    if token.type in VALUE_END:
        return True
    return token.is_punct(")", "]", "}", "++", "--")


def split_top_level(tokens: list[Token], separator: str = ",") -> Iterator[list[Token]]:
    """Yield runs of ``tokens`` separated by ``separator`` at bracket depth 0."""
    depth = 0
    current: list[Token] = []
    for token in tokens:
        if token.type is TokenType.PUNCT:
            if token.value in _OPENERS:
                depth += 1
            elif token.value in _CLOSERS:
                depth -= 1
            elif token.value == separator and depth == 0:
                yield current
                current = []
                continue
        current.append(token)
    yield current


def _source(code: str, tokens: list[Token]) -> str:
    return code[tokens[0].pos : tokens[-1].end] if tokens else ""


def pattern_names(tokens: list[Token]) -> list[str]:
    """Names bound by a declarator target: ``x``, ``{a, b: c}`` or ``[a, , b]``."""
    if not tokens:
        return []
    if tokens[0].type is TokenType.NAME:
        return [tokens[0].value]
    names: list[str] = []
    is_object = tokens[0].is_punct("{")
    for part in split_top_level(tokens[1:-1]):
        part = [t for t in part if not t.is_punct("...")]
        if not part:
            continue
        if is_object:
            # ``key: target`` binds ``target``; defaults come after ``=``.
            colon = next((i for i, t in enumerate(part) if t.is_punct(":")), None)
            target = part[colon + 1 :] if colon is not None else part
        else:
            target = part
        eq = next((i for i, t in enumerate(target) if t.is_punct("=")), None)
        names.extend(pattern_names(target[:eq] if eq is not None else target))
    return names


def _destructure(tokens: list[Token], value: Any, scope: dict[str, Any]) -> None:
    if not tokens:
        return
    if tokens[0].type is TokenType.NAME:
        scope[tokens[0].value] = value
        return
    is_object = tokens[0].is_punct("{")
    for index, part in enumerate(split_top_level(tokens[1:-1])):
        rest = bool(part) and part[0].is_punct("...")
        part = part[1:] if rest else part
        if not part:
            continue
        if is_object:
            colon = next((i for i, t in enumerate(part) if t.is_punct(":")), None)
            key = part[0].value if part[0].type is TokenType.NAME else part[0].value[1:-1]
            target = part[colon + 1 :] if colon is not None else part
            if rest:
                item = {k: v for k, v in value.items() if k not in _object_keys(tokens)} if isinstance(value, dict) else {}
            else:
                item = value.get(key) if isinstance(value, dict) else None
        else:
            target = part
            if rest:
                item = value[index:] if isinstance(value, list) else []
            else:
                item = value[index] if isinstance(value, list) and index < len(value) else None
        eq = next((i for i, t in enumerate(target) if t.is_punct("=")), None)
        _destructure(target[:eq] if eq is not None else target, item, scope)


def _object_keys(tokens: list[Token]) -> set[str]:
    return {part[0].value for part in split_top_level(tokens[1:-1]) if part and part[0].type is TokenType.NAME}


def run_statements(code: str, evaluate: EvaluateFn, scope: dict[str, Any]) -> dict[str, Any]:
    """Run the statements in ``code`` against ``scope`` and return it.

    ``scope`` is updated in place. ``evaluate`` is the single-expression
    evaluator; its faults are logged and contained per statement.
    """
    try:
        statements = split_statements(code)
    except EvaluationFault as exc:
        logger.debug("Fence code could not be tokenized: %s", exc)
        return scope
    for tokens in statements:
        _run_statement(code, tokens, evaluate, scope)
    return scope


def _run_statement(code: str, tokens: list[Token], evaluate: EvaluateFn, scope: dict[str, Any]) -> None:
    head = tokens[0]
    if head.type is TokenType.NAME and head.value in DECLARATION_KEYWORDS:
        for declarator in split_top_level(tokens[1:]):
            _run_declarator(code, declarator, evaluate, scope)
        return
    if head.type is TokenType.NAME and head.value in _UNSUPPORTED_KEYWORDS:
        logger.debug("Skipping unsupported statement: %s", _source(code, tokens)[:60])
        return
    if head.type is TokenType.NAME and len(tokens) == 2 and tokens[1].is_punct("++", "--"):
        op = "+" if tokens[1].value == "++" else "-"
        _assign(head.value, f"({head.value}) {op} 1", code, tokens, evaluate, scope)
        return
    if head.type is TokenType.NAME and len(tokens) > 2 and tokens[1].type is TokenType.PUNCT:
        op = tokens[1].value
        if op in _COMPOUND_ASSIGN:
            rhs = _source(code, tokens[2:])
            binop = _COMPOUND_ASSIGN[op]
            expr = rhs if binop is None else f"({head.value}) {binop} ({rhs})"
            _assign(head.value, expr, code, tokens, evaluate, scope)
            return
    try:
        evaluate(_source(code, tokens), scope)
    except EvaluationFault as exc:
        logger.debug("Fence statement failed: %s", exc)


def _run_declarator(code: str, tokens: list[Token], evaluate: EvaluateFn, scope: dict[str, Any]) -> None:
    if not tokens:
        return
    target_tokens = next(split_top_level(tokens, "="))
    eq = len(target_tokens)
    if eq >= len(tokens):
        for name in pattern_names(target_tokens):
            scope[name] = None
        return
    rhs = _source(code, tokens[eq + 1 :])
    try:
        value = evaluate(rhs, scope)
    except EvaluationFault as exc:
        logger.debug("Fence declaration of %s failed: %s", _source(code, target_tokens), exc)
        value = None
    _destructure(target_tokens, value, scope)


def _assign(
    name: str,
    expr: str,
    code: str,
    tokens: list[Token],
    evaluate: EvaluateFn,
    scope: dict[str, Any],
) -> None:
    try:
        scope[name] = evaluate(expr, scope)
    except EvaluationFault as exc:
        logger.debug("Fence assignment %r failed: %s", _source(code, tokens), exc)
        scope[name] = None


def declared_names(code: str) -> list[str]:
    """Names declared by top-level ``let``/``const``/``var`` statements, in order.

    Returns an empty list when ``code`` cannot be tokenized.
    """
    try:
        statements = split_statements(code)
    except EvaluationFault:
        return []
    names: list[str] = []
    for tokens in statements:
        head = tokens[0]
        if head.type is not TokenType.NAME or head.value not in DECLARATION_KEYWORDS:
            continue
        for declarator in split_top_level(tokens[1:]):
            for name in pattern_names(next(split_top_level(declarator, "="))):
                if name not in names:
                    names.append(name)
    return names
