"""Script isolation.

Each rendered instance gets its own copy of the component script. To keep
instances from clobbering each other's globals, every top-level ``let`` or
``const`` name is renamed with a per-instance suffix::

    let count = 0;            let count_plenti_Ab3xY9 = 0;
    count += 1;         ->    count_plenti_Ab3xY9 += 1;

References inside template literal substitutions are renamed too. Member
names (``obj.count``) and object keys (``{count: 1}``) are not references
and stay as they are; shorthand properties (``{count}``) are expanded to
``{count: count_plenti_Ab3xY9}`` so the key survives.

String selectors passed to ``querySelector``/``querySelectorAll`` are
rewritten with the stylesheet rules, so ``document.querySelector("p")``
finds this instance's ``<p>``. A ``getElementsByClassName`` class list
gets the scope class of the first name it matches appended
(``"note"`` becomes ``"note plenti-Ab3xY9"``). ``getElementsByTagName``
takes no selector, so it cannot be narrowed and is left as written.

The rewrite works on the token stream with whitespace and comments kept,
so everything it does not touch is reproduced byte for byte. A script that
cannot be tokenized is returned unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from plenti._types import VALUE_END, Token, TokenType
from plenti.environment.exceptions import EvaluationFault
from plenti.expressions.lexer import split_template, tokenize
from plenti.expressions.statements import pattern_names
from plenti.isolation.css import ScopeLookup, scope_selector

if TYPE_CHECKING:
    from plenti.isolation.classes import ScopeClassGenerator
    from plenti.isolation.scoping import ScopedElement

logger = logging.getLogger(__name__)

_SCOPED_DECLARATIONS = frozenset({"let", "const"})
_QUERY_METHODS = frozenset({"querySelector", "querySelectorAll", "getElementsByClassName"})

# A ``{`` after one of these opens a block, after any other punctuator an object.
_BLOCK_AFTER = frozenset({")", "]", "}", ";", "{", "=>"})


def _opens_object(previous: Token | None) -> bool:
    if previous is None:
        return False
    if previous.type is TokenType.NAME:
        return previous.value in ("return", "let", "const", "var")
    return previous.type is TokenType.PUNCT and previous.value not in _BLOCK_AFTER


class ScriptRewriter:
    """Rename top-level declarations and scope query selectors.

    Args:
        elements: Scoped elements of the instance the script belongs to.
        generator: Source of the rename suffix tokens.
    """

    __slots__ = ("_elements", "_generator")

    def __init__(self, elements: Sequence[ScopedElement], generator: ScopeClassGenerator) -> None:
        self._elements = elements
        self._generator = generator

    def rewrite(self, script: str) -> str:
        tokens = tokenize(script, keep_trivia=True)
        renames = {}
        for name in self.declared_names(tokens):
            if self._generator.name_marker not in name and name not in renames:
                renames[name] = f"{name}{self._generator.name_marker}{self._generator.new_token()}"
        return self._apply(tokens, renames)

    def declared_names(self, tokens: list[Token]) -> list[str]:
        """Names declared by ``let``/``const`` outside any bracket."""
        significant = [t for t in tokens if not t.is_trivia]
        names: list[str] = []
        depth = 0
        index = 0
        while index < len(significant):
            token = significant[index]
            if token.is_punct("(", "[", "{"):
                depth += 1
            elif token.is_punct(")", "]", "}"):
                depth = max(depth - 1, 0)
            elif (
                depth == 0
                and token.type is TokenType.NAME
                and token.value in _SCOPED_DECLARATIONS
                and not (index and significant[index - 1].is_punct(".", "?."))
            ):
                index = self._read_declarators(tokens, significant, index + 1, names)
                continue
            index += 1
        return names

    def _read_declarators(
        self, tokens: list[Token], significant: list[Token], index: int, names: list[str]
    ) -> int:
        while index < len(significant):
            token = significant[index]
            if token.type is TokenType.NAME:
                names.append(token.value)
                index += 1
            elif token.is_punct("{", "["):
                end = self._balanced_end(significant, index)
                names.extend(pattern_names(significant[index:end]))
                index = end
            else:
                return index
            if index < len(significant) and significant[index].is_punct("="):
                index = self._skip_initializer(tokens, significant, index + 1)
            if index < len(significant) and significant[index].is_punct(","):
                index += 1
                continue
            return index
        return index

    @staticmethod
    def _balanced_end(significant: list[Token], start: int) -> int:
        depth = 0
        for index in range(start, len(significant)):
            token = significant[index]
            if token.is_punct("(", "[", "{"):
                depth += 1
            elif token.is_punct(")", "]", "}"):
                depth -= 1
                if depth == 0:
                    return index + 1
        return len(significant)

    @staticmethod
    def _skip_initializer(tokens: list[Token], significant: list[Token], index: int) -> int:
        """Advance past an initializer to its ``,``, ``;`` or line end."""
        depth = 0
        previous: Token | None = None
        while index < len(significant):
            token = significant[index]
            if token.type is TokenType.EOF:
                return index
            if depth == 0:
                if token.is_punct(",", ";"):
                    return index
                if previous is not None and _newline_between(tokens, previous, token) and (
                    (previous.type in VALUE_END or previous.is_punct(")", "]", "}"))
                    and token.type is not TokenType.PUNCT
                ):
                    return index
            if token.is_punct("(", "[", "{"):
                depth += 1
            elif token.is_punct(")", "]", "}"):
                if depth == 0:
                    return index
                depth -= 1
            previous = token
            index += 1
        return index

    def _apply(self, tokens: list[Token], renames: Mapping[str, str]) -> str:
        significant = [i for i, t in enumerate(tokens) if not t.is_trivia]
        out: list[str] = []
        # What each open bracket holds: "object", "block" or "group".
        stack: list[str] = []
        replaced: dict[int, str] = {}
        for position, index in enumerate(significant):
            token = tokens[index]
            previous = tokens[significant[position - 1]] if position else None
            following = tokens[significant[position + 1]] if position + 1 < len(significant) else None

            if token.is_punct("{"):
                stack.append("object" if _opens_object(previous) else "block")
            elif token.is_punct("(", "["):
                stack.append("group")
            elif token.is_punct(")", "]", "}"):
                if stack:
                    stack.pop()
            elif token.type is TokenType.TEMPLATE and "${" in token.value:
                replaced[index] = self._rewrite_template(token.value, renames)
            elif token.type is TokenType.NAME:
                if token.value in _QUERY_METHODS and previous is not None and previous.is_punct(".", "?."):
                    self._scope_query(tokens, significant, position, replaced)
                elif token.value in renames:
                    replaced[index] = self._rename(token, previous, following, stack, renames)

        for index, token in enumerate(tokens):
            out.append(replaced.get(index, token.value))
        return "".join(out)

    @staticmethod
    def _rename(
        token: Token,
        previous: Token | None,
        following: Token | None,
        stack: list[str],
        renames: Mapping[str, str],
    ) -> str:
        name = token.value
        if previous is not None and previous.is_punct(".", "?."):
            return name
        in_object = bool(stack) and stack[-1] == "object" and previous is not None and previous.is_punct("{", ",")
        if in_object and following is not None:
            if following.is_punct(":", "("):
                return name
            if following.is_punct(",", "}", "="):
                return f"{name}: {renames[name]}"
        return renames[name]

    def _rewrite_template(self, raw: str, renames: Mapping[str, str]) -> str:
        pieces = list(raw)
        for is_expression, text, offset in reversed(split_template(raw)):
            if is_expression:
                pieces[offset : offset + len(text)] = self._apply(tokenize(text, keep_trivia=True), renames)
        return "".join(pieces)

    def _scope_query(
        self, tokens: list[Token], significant: list[int], position: int, replaced: dict[int, str]
    ) -> None:
        if position + 2 >= len(significant):
            return
        paren, argument = tokens[significant[position + 1]], tokens[significant[position + 2]]
        if not paren.is_punct("(") or argument.type is not TokenType.STRING:
            return
        quote, body = argument.value[0], argument.value[1:-1]
        if self._generator.class_prefix in body:
            return
        if tokens[significant[position]].value == "getElementsByClassName":
            scoped = self._scope_class_list(body)
        else:
            scoped = scope_selector(body, self._elements, prefix=self._generator.prefix)
        replaced[significant[position + 2]] = f"{quote}{scoped}{quote}"

    def _scope_class_list(self, body: str) -> str:
        lookup = ScopeLookup(self._elements)
        for name in body.split():
            scope = lookup.class_(name)
            if scope:
                return f"{body} {scope}"
        return body


def _newline_between(tokens: list[Token], first: Token, second: Token) -> bool:
    return any("\n" in t.value for t in tokens if first.end <= t.pos < second.pos)


def scope_js(
    script: str,
    elements: Sequence[ScopedElement],
    *,
    generator: ScopeClassGenerator,
) -> str:
    """Isolate ``script`` for one rendered instance.

    Example:
        >>> from plenti.isolation.classes import ScopeClassGenerator
        >>> out = scope_js("let n = 1; n++;", [], generator=ScopeClassGenerator(seed=1))
        >>> out.count("n_plenti_")
        2
    """
    if not script.strip():
        return script
    try:
        return ScriptRewriter(elements, generator).rewrite(script)
    except EvaluationFault as exc:
        logger.warning("Script left unscoped, it could not be tokenized: %s", exc)
        return script
