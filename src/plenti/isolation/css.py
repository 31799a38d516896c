"""CSS tokenizer and scope-class rewrite.

The tokenizer is deliberately shallow: it knows enough about CSS to tell
selectors from declarations and to keep strings, comments, ``url(...)``
and attribute selectors intact. Every token keeps its exact source text
so the stylesheet is rebuilt byte for byte apart from the inserted
classes.

Rewrite rules, given the scoped elements of one component instance:

- In a selector, a type selector (``p``), class selector (``.lead``) or
  id selector (``#title``) that matches a known element gets the
  element's scope class appended: ``p`` becomes ``p.plenti-Ab3xY9``.
  When one instance holds several ``p`` elements with different scope
  classes (bare and classed ones), the type selector lists all of them:
  ``p:is(.plenti-Ab3xY9,.plenti-Zq81Lm)``.
- Pseudo-class names (``:hover``) and attribute selectors (``[type=x]``)
  are left alone, as are at-rule preludes (``@media screen``).
- Inside declaration blocks the property name is left alone but value
  identifiers are looked up as well. A value like ``red`` is rewritten
  when an element's tag, class or id is literally ``red``; the tokenizer
  cannot tell such a value from a selector. This is a known limitation.
- A token already followed by a generated class is skipped, so running
  the rewrite twice changes nothing.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from plenti.isolation.scoping import ScopedElement
from plenti.utils.constants import DEFAULT_SCOPE_PREFIX


class CssTokenType(Enum):
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    STRING = "string"
    URL = "url"
    AT_KEYWORD = "at-keyword"
    IDENT = "ident"
    HASH = "hash"
    NUMBER = "number"
    DELIM = "delim"
    COLON = ":"
    SEMICOLON = ";"
    COMMA = ","
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"


@dataclass(frozen=True, slots=True)
class CssToken:
    type: CssTokenType
    value: str
    pos: int


_TOKEN_RE = re.compile(
    r"""
    (?P<whitespace>\s+)
  | (?P<comment>/\*.*?(?:\*/|\Z))
  | (?P<string>"(?:[^"\\\n]|\\.)*"?|'(?:[^'\\\n]|\\.)*'?)
  | (?P<url>url\(\s*[^"'()\s]*\s*\))
  | (?P<at_keyword>@-?[A-Za-z_][\w-]*)
  | (?P<number>[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?(?:%|[A-Za-z_-][\w-]*)?)
  | (?P<ident>(?:--|-?[A-Za-z_\u00a0-\uffff]|\\.)(?:[\w\u00a0-\uffff-]|\\.)*)
  | (?P<hash>\#(?:[\w\u00a0-\uffff-]|\\.)+)
  | (?P<punct>[:;,{}()\[\]])
  | (?P<delim>.)
    """,
    re.VERBOSE | re.DOTALL | re.IGNORECASE,
)

_PUNCT_TYPES = {
    ":": CssTokenType.COLON,
    ";": CssTokenType.SEMICOLON,
    ",": CssTokenType.COMMA,
    "{": CssTokenType.LBRACE,
    "}": CssTokenType.RBRACE,
    "(": CssTokenType.LPAREN,
    ")": CssTokenType.RPAREN,
    "[": CssTokenType.LBRACKET,
    "]": CssTokenType.RBRACKET,
}

# At-rules whose block holds rules rather than declarations.
_NESTING_AT_RULES = frozenset({"@media", "@supports", "@container", "@layer", "@document", "@scope"})

_TRIVIA = frozenset({CssTokenType.WHITESPACE, CssTokenType.COMMENT})


def tokenize_css(text: str) -> list[CssToken]:
    """Split ``text`` into tokens whose values concatenate back to ``text``."""
    tokens: list[CssToken] = []
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        value = match.group()
        if kind == "punct":
            token_type = _PUNCT_TYPES[value]
        else:
            token_type = CssTokenType[kind.upper()]
        tokens.append(CssToken(token_type, value, match.start()))
    return tokens


class ScopeLookup:
    """Find the scope classes for a tag, class or id among scoped elements.

    One instance can hold several scope classes for the same tag (bare
    ``<p>`` and ``<p class="note">`` are different elements), so a type
    selector maps to all of them in document order.
    """

    __slots__ = ("_by_class", "_by_id", "_by_tag")

    def __init__(self, elements: Sequence[ScopedElement]) -> None:
        self._by_tag: dict[str, list[str]] = {}
        self._by_class: dict[str, str] = {}
        self._by_id: dict[str, str] = {}
        for element in elements:
            classes = self._by_tag.setdefault(element.tag, [])
            if element.scope_class not in classes:
                classes.append(element.scope_class)
            if element.id:
                self._by_id.setdefault(element.id, element.scope_class)
            for name in element.classes:
                self._by_class.setdefault(name, element.scope_class)

    def __bool__(self) -> bool:
        return bool(self._by_tag)

    def tag(self, name: str) -> tuple[str, ...]:
        return tuple(self._by_tag.get(name, ()))

    def class_(self, name: str) -> str | None:
        return self._by_class.get(name)

    def id(self, name: str) -> str | None:
        return self._by_id.get(name)

    def any(self, name: str) -> str | None:
        tagged = self._by_tag.get(name)
        return (tagged[0] if tagged else None) or self.class_(name) or self.id(name)


def scope_suffix(classes: Sequence[str]) -> str:
    """Selector text appended after a token to target ``classes``.

    Example:
        >>> scope_suffix(["plenti-A"])
        '.plenti-A'
        >>> scope_suffix(["plenti-A", "plenti-B"])
        ':is(.plenti-A,.plenti-B)'
    """
    if len(classes) == 1:
        return f".{classes[0]}"
    return ":is(" + ",".join(f".{name}" for name in classes) + ")"


class _Rewriter:
    """Single pass over a token list, inserting scope classes."""

    __slots__ = ("_lookup", "_marker", "_out", "_tokens")

    def __init__(self, tokens: list[CssToken], lookup: ScopeLookup, prefix: str) -> None:
        self._tokens = tokens
        self._lookup = lookup
        self._marker = f"{prefix}-"
        self._out: list[str] = []

    def run(self) -> str:
        # Each entry says what the enclosing block holds: "rules" or "declarations".
        blocks: list[str] = []
        prelude: list[int] = []
        in_value = False
        for index, token in enumerate(self._tokens):
            holds = blocks[-1] if blocks else "rules"
            if holds == "rules":
                if token.type is CssTokenType.LBRACE:
                    blocks.append(self._block_kind(prelude))
                    self._flush_prelude(prelude)
                    prelude = []
                    self._out.append(token.value)
                elif token.type is CssTokenType.RBRACE:
                    self._flush_prelude(prelude, rewrite=False)
                    prelude = []
                    if blocks:
                        blocks.pop()
                    self._out.append(token.value)
                elif token.type is CssTokenType.SEMICOLON and self._is_at_rule(prelude):
                    # ``@import url(x);`` and friends have no block.
                    self._flush_prelude(prelude, rewrite=False)
                    prelude = []
                    self._out.append(token.value)
                else:
                    prelude.append(index)
                continue
            # Declaration block (also keyframe and font-face bodies).
            if token.type is CssTokenType.LBRACE:
                blocks.append("declarations")
                in_value = False
                self._out.append(token.value)
            elif token.type is CssTokenType.RBRACE:
                blocks.pop()
                in_value = False
                self._out.append(token.value)
            elif token.type is CssTokenType.SEMICOLON:
                in_value = False
                self._out.append(token.value)
            elif token.type is CssTokenType.COLON and not in_value:
                in_value = True
                self._out.append(token.value)
            elif in_value:
                self._emit_value_token(index)
            else:
                self._out.append(token.value)
        self._flush_prelude(prelude)
        return "".join(self._out)

    def run_selector(self) -> str:
        """Treat the whole token list as one selector prelude."""
        self._flush_prelude(list(range(len(self._tokens))))
        return "".join(self._out)

    def _significant(self, indices: list[int]) -> list[int]:
        return [i for i in indices if self._tokens[i].type not in _TRIVIA]

    def _is_at_rule(self, prelude: list[int]) -> bool:
        first = self._significant(prelude)
        return bool(first) and self._tokens[first[0]].type is CssTokenType.AT_KEYWORD

    def _block_kind(self, prelude: list[int]) -> str:
        first = self._significant(prelude)
        if not first:
            return "declarations"
        token = self._tokens[first[0]]
        if token.type is CssTokenType.AT_KEYWORD:
            name = token.value.lower()
            if name in _NESTING_AT_RULES:
                return "rules"
            if name.endswith("keyframes"):
                return "keyframes"
            return "declarations"
        return "declarations"

    def _flush_prelude(self, prelude: list[int], *, rewrite: bool = True) -> None:
        if not prelude:
            return
        if not rewrite or self._is_at_rule(prelude):
            self._out.extend(self._tokens[i].value for i in prelude)
            return
        bracket_depth = 0
        for index in prelude:
            token = self._tokens[index]
            if token.type is CssTokenType.LBRACKET:
                bracket_depth += 1
            elif token.type is CssTokenType.RBRACKET:
                bracket_depth = max(bracket_depth - 1, 0)
            if bracket_depth:
                self._out.append(token.value)
                continue
            self._emit_selector_token(index)

    def _previous(self, index: int) -> CssToken | None:
        return self._tokens[index - 1] if index > 0 else None

    def _emit_selector_token(self, index: int) -> None:
        token = self._tokens[index]
        previous = self._previous(index)
        scopes: Sequence[str] = ()
        if token.type is CssTokenType.IDENT:
            if previous is not None and previous.type is CssTokenType.COLON:
                pass
            elif previous is not None and previous.type is CssTokenType.DELIM and previous.value == ".":
                if not token.value.startswith(self._marker):
                    scopes = _single(self._lookup.class_(token.value))
            else:
                scopes = self._lookup.tag(token.value)
        elif token.type is CssTokenType.HASH:
            scopes = _single(self._lookup.id(token.value[1:]))
        self._out.append(token.value)
        if scopes and not self._followed_by_scope(index):
            self._out.append(scope_suffix(scopes))

    def _emit_value_token(self, index: int) -> None:
        token = self._tokens[index]
        previous = self._previous(index)
        scope: str | None = None
        if token.type is CssTokenType.IDENT:
            if previous is not None and previous.type is CssTokenType.DELIM and previous.value == ".":
                scope = None if token.value.startswith(self._marker) else self._lookup.class_(token.value)
            elif not token.value.startswith(self._marker):
                scope = self._lookup.any(token.value)
        elif token.type is CssTokenType.HASH:
            scope = self._lookup.id(token.value[1:])
        self._out.append(token.value)
        if scope and not self._followed_by_scope(index):
            self._out.append(f".{scope}")

    def _followed_by_scope(self, index: int) -> bool:
        """True when ``.plenti-X`` or ``:is(.plenti-X,...)`` follows the token."""
        ahead = self._tokens[index + 1 : index + 6]
        if len(ahead) >= 2 and self._is_scope_class(ahead[0], ahead[1]):
            return True
        return (
            len(ahead) == 5
            and ahead[0].type is CssTokenType.COLON
            and ahead[1].type is CssTokenType.IDENT
            and ahead[1].value.lower() == "is"
            and ahead[2].type is CssTokenType.LPAREN
            and self._is_scope_class(ahead[3], ahead[4])
        )

    def _is_scope_class(self, dot: CssToken, ident: CssToken) -> bool:
        return (
            dot.type is CssTokenType.DELIM
            and dot.value == "."
            and ident.type is CssTokenType.IDENT
            and ident.value.startswith(self._marker)
        )


def _single(scope: str | None) -> tuple[str, ...]:
    return (scope,) if scope else ()


def scope_css(
    style: str,
    elements: Sequence[ScopedElement],
    *,
    prefix: str = DEFAULT_SCOPE_PREFIX,
) -> str:
    """Append scope classes to the selectors of ``style``.

    Example:
        >>> p = ScopedElement(tag="p", id="", classes=(), scope_class="plenti-AB12CD")
        >>> scope_css("p { color: red; }", [p])
        'p.plenti-AB12CD { color: red; }'
    """
    lookup = ScopeLookup(elements)
    if not style or not lookup:
        return style
    return _Rewriter(tokenize_css(style), lookup, prefix).run()


def scope_selector(
    selector: str,
    elements: Sequence[ScopedElement],
    *,
    prefix: str = DEFAULT_SCOPE_PREFIX,
) -> str:
    """Rewrite a bare selector list such as ``"ul > li.item"``."""
    lookup = ScopeLookup(elements)
    if not selector or not lookup:
        return selector
    return _Rewriter(tokenize_css(selector), lookup, prefix).run_selector()
