"""Fence processing: imports, props and bindings.

The fence holds a component's imports, its prop declarations and any local
variables derived from them::

    import Card from "../components/card.svelte";
    prop title = "Untitled";
    prop tags;
    let count = tags.length;

Processing turns it into:

- the code that actually runs, with imports removed and props rewritten to
  ``let`` declarations (supplied props inlined as literals);
- the *fence logic*, a single-line copy without imports and props that the
  client can re-run when props change;
- the import table used to resolve static component tags;
- the binding map for the markup.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from plenti._types import VALUE_END, Token, TokenType
from plenti.environment.exceptions import ExpressionSyntaxError
from plenti.environment.loaders import join_path
from plenti.expressions.lexer import tokenize
from plenti.expressions.statements import declared_names
from plenti.expressions.values import Value, format_value

if TYPE_CHECKING:
    from plenti.expressions.evaluator import ExpressionEvaluator

logger = logging.getLogger(__name__)

IMPORT_RE = re.compile(r"""import\s+([A-Za-z_$][\w$]*)\s+from\s*(["'])([^"']+)\2\s*;?""")
PROP_RE = re.compile(r"\bprop\s+([A-Za-z_$][\w$]*)(?:\s*=\s*(.*?))?;")
# Group 1 matches a quoted literal, kept as is; only line comments are dropped.
_COMMENT_RE = re.compile(r"""("(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'|`(?:[^`\\]|\\.)*`)|//[^\n]*""")
_LINE_BREAK_RE = re.compile(r"\s*\n\s*")
# A line break before one of these continues the statement.
_CONTINUATION_KEYWORDS = frozenset({"else", "catch", "finally", "while", "in", "of", "instanceof"})
# A line break after one of these does not end the statement.
_OPEN_KEYWORDS = frozenset(
    {"else", "do", "typeof", "new", "delete", "void", "in", "of", "instanceof", "let", "const", "var", "case", "extends"}
)


@dataclass(frozen=True, slots=True)
class Import:
    """``import NAME from "PATH";`` with PATH resolved to a loader name."""

    name: str
    path: str


@dataclass(frozen=True, slots=True)
class FenceResult:
    code: str
    fence_logic: str
    imports: tuple[Import, ...] = ()
    bindings: dict[str, Value] = field(default_factory=dict)
    prop_names: tuple[str, ...] = ()

    def resolve(self, name: str) -> Import | None:
        """Find the import bound to ``name`` (the last one wins)."""
        for imp in reversed(self.imports):
            if imp.name == name:
                return imp
        return None


def extract_imports(fence: str, template_name: str | None = None) -> tuple[str, tuple[Import, ...]]:
    """Strip import statements from ``fence`` and resolve their paths."""
    imports = tuple(
        Import(name=match.group(1), path=join_path(template_name, match.group(3)))
        for match in IMPORT_RE.finditer(fence)
    )
    return IMPORT_RE.sub("", fence), imports


def apply_props(fence: str, props: Mapping[str, Value]) -> tuple[str, tuple[str, ...]]:
    """Rewrite ``prop`` declarations into ``let`` declarations.

    Supplied props are inlined with ``format_value``; the rest keep their
    default expression (or none) for the evaluator to resolve.
    """
    names: list[str] = []

    def replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        names.append(name)
        if name in props:
            return f"let {name} = {format_value(props[name])};"
        if default is not None:
            return f"let {name} = {default};"
        return f"let {name};"

    return PROP_RE.sub(replace, fence), tuple(names)


def make_attr_str(code: str) -> str:
    """Flatten code for embedding in a client-side attribute.

    Line comments are removed and the lines are joined onto one. A line
    break that ends a statement (JavaScript's automatic semicolon
    insertion) becomes ``"; "``, any other becomes a space, so the client
    can still run the result. Single quotes are escaped and double quotes
    become single quotes.

    Example:
        >>> make_attr_str('let a = 1\\nlet b = "x" // note\\n')
        "let a = 1; let b = 'x'"
    """
    code = code.replace("\r", "")
    try:
        flat = _join_lines(tokenize(code, keep_trivia=True))
    except ExpressionSyntaxError:
        flat = _LINE_BREAK_RE.sub(" ", _COMMENT_RE.sub(lambda match: match.group(1) or "", code).strip())
    return flat.replace("'", "\\'").replace('"', "'")


def _join_lines(tokens: list[Token]) -> str:
    out: list[str] = []
    previous: Token | None = None
    line_break = False
    for token in tokens:
        if token.type is TokenType.EOF or (token.type is TokenType.COMMENT and token.value.startswith("//")):
            continue
        if token.type is TokenType.WHITESPACE:
            if "\n" in token.value:
                line_break = True
            elif out:
                out.append(token.value)
            continue
        if line_break and previous is not None:
            while out and out[-1].isspace():
                out.pop()
            out.append("; " if _ends_statement(previous, token) else " ")
        line_break = False
        out.append(token.value)
        if token.type is not TokenType.COMMENT:
            previous = token
    return "".join(out).strip()


def _ends_statement(previous: Token, following: Token) -> bool:
    if following.type is TokenType.PUNCT or following.value in _CONTINUATION_KEYWORDS:
        return False
    if previous.type is TokenType.NAME:
        return previous.value not in _OPEN_KEYWORDS
    return previous.type in VALUE_END or previous.is_punct(")", "]", "}", "++", "--")


def process_fence(
    fence: str | None,
    props: Mapping[str, Value],
    *,
    name: str | None = None,
    evaluator: ExpressionEvaluator,
) -> FenceResult:
    """Run a component fence and build its bindings.

    Evaluation faults never propagate: a failing statement leaves its
    variable bound to ``None``.
    """
    if not fence:
        return FenceResult(code="", fence_logic="", bindings=dict(props))

    without_imports, imports = extract_imports(fence, name)
    code, prop_names = apply_props(without_imports, props)
    fence_logic = make_attr_str(PROP_RE.sub("", without_imports))

    names = declared_names(code)
    collected = evaluator.run_and_collect(names, code)
    logger.debug("Fence of %s bound %s", name or "<template>", ", ".join(names) or "nothing")

    bindings: dict[str, Value] = dict(props)
    bindings.update(collected)
    return FenceResult(
        code=code,
        fence_logic=fence_logic,
        imports=imports,
        bindings=bindings,
        prop_names=prop_names,
    )
