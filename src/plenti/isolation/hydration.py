"""Client hydration attributes.

Rendered pages carry enough state for a small client runtime (Alpine.js
style ``x-data``/``x-init`` attributes) to recompute component props in
the browser:

- the page's ``<html>`` element gets ``x-data`` holding the page bindings;
- each top-level element of a component rendered with props gets
  ``x-data`` declaring the component's fence logic and props, and
  ``x-init`` recomputing every prop from the caller's data whenever it
  changes.

Caller-side identifiers in prop expressions are read through
``Alpine.$data($el.parentElement)``, the nearest enclosing data scope.
"""

from __future__ import annotations

from collections.abc import Mapping

from plenti._types import TokenType
from plenti.environment.exceptions import EvaluationFault
from plenti.expressions.evaluator import GLOBALS
from plenti.expressions.lexer import tokenize
from plenti.expressions.values import Value, format_value
from plenti.parser.fence import make_attr_str

PARENT_DATA = "Alpine.$data($el.parentElement)"

_NOT_IDENTIFIERS = frozenset(
    {
        "true", "false", "null", "undefined", "typeof", "instanceof", "in", "of",
        "new", "this", "void", "delete", "let", "const", "var", "return",
    }
)


def page_data(bindings: Mapping[str, Value]) -> str:
    """``x-data`` value for the page's ``<html>`` element."""
    return make_attr_str(format_value(dict(bindings)))


def route_to_parent(expr: str) -> str:
    """Prefix free identifiers in ``expr`` with the parent data accessor.

    Member names, object keys, literals and built-ins are left alone.
    Expressions that cannot be tokenized are returned unchanged.

    Example:
        >>> route_to_parent("post.title + suffix")
        'Alpine.$data($el.parentElement).post.title + Alpine.$data($el.parentElement).suffix'
    """
    try:
        tokens = tokenize(expr, keep_trivia=True)
    except EvaluationFault:
        return expr
    significant = [i for i, t in enumerate(tokens) if not t.is_trivia]
    out: list[str] = []
    for position, index in enumerate(significant):
        token = tokens[index]
        # Carry the trivia preceding this token.
        start = significant[position - 1] + 1 if position else 0
        out.extend(t.value for t in tokens[start:index])
        if token.type is not TokenType.NAME or token.value in _NOT_IDENTIFIERS or token.value in GLOBALS:
            out.append(token.value)
            continue
        previous = tokens[significant[position - 1]] if position else None
        following = tokens[significant[position + 1]] if position + 1 < len(significant) else None
        if previous is not None and previous.is_punct(".", "?."):
            out.append(token.value)
        elif following is not None and following.is_punct(":") and (previous is None or previous.is_punct("{", ",")):
            out.append(token.value)
        elif following is not None and following.is_punct("=>"):
            out.append(token.value)
        else:
            out.append(f"{PARENT_DATA}.{token.value}")
    return "".join(out)


def component_attrs(props: Mapping[str, str], fence_logic: str) -> tuple[str, str]:
    """Build ``(x_data, x_init)`` for a component called with ``props``.

    ``props`` maps prop names to the caller's raw expressions.
    """
    names = sorted(props)
    params = ", ".join(names)
    args = ", ".join(make_attr_str(route_to_parent(props[name])) for name in names)
    x_data = "{_fence: `" + fence_logic + "`, " + "".join(f"{name}: undefined, " for name in names) + "}"
    entries = []
    for name in names:
        getter = f"new Function('{params}', `${{_fence}}; return {name};`)({args})"
        entries.append(f"{name} = {getter}")
        entries.append(f"$watch('{PARENT_DATA}', () => {name} = {getter})")
    return x_data, ",".join(entries)
