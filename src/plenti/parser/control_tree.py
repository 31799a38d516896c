"""Control-tree builder: component markup to directive AST.

A single left-to-right scan with an explicit stack of open frames. Input is
never parsed recursively; only the output tree nests. At each position the
scanner tries, in order:

    {if EXPR}            open an If frame
    {for let X of EXPR}  open a For frame
    {else if EXPR}       switch the open If to a new branch
    {else}               switch the open If to its final branch
    {/if}                close the open If (and its open branch)
    {/for}               close the open For
    <Name ... />         static component reference
    <='path' ... />      dynamic component reference

and otherwise consumes plain text up to the next ``{`` or ``<``.

Directive heads end at the first ``}`` outside quotes and nested braces,
so ``{if user.tags.includes("}")}`` is one directive.

Any imbalance is a ``StructuralParseError`` carrying the offset, line and
column of the offending directive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from plenti.environment.exceptions import EvaluationFault, StructuralParseError, locate
from plenti.expressions.lexer import skip_balanced
from plenti.expressions.values import format_value
from plenti.nodes import Directive, DynamicComponent, ElseIf, For, If, StaticComponent, Text

FOR_HEAD_RE = re.compile(r"^(?:let|const|var)\s+([A-Za-z_$][\w$]*)\s+(of|in)\s+(.+)$", re.DOTALL)
_COMPONENT_NAME_RE = re.compile(r"[A-Z][\w$.]*")
_PROP_NAME_RE = re.compile(r"[A-Za-z_$:@][\w$:.@-]*")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")

_BRANCH_KINDS = frozenset({"elif", "else"})


@dataclass(slots=True)
class _Frame:
    """An open directive while its body is being collected."""

    kind: str
    offset: int
    head: str = ""
    target: str = ""
    iter_kind: str = "of"
    body: list[Directive] = field(default_factory=list)
    elifs: list[ElseIf] = field(default_factory=list)
    else_: tuple[Directive, ...] | None = None


class ControlTreeBuilder:
    """Build the directive tree for one markup segment.

    Args:
        markup: Markup segment (fence, script and style already removed).
        name: Template name for error messages.
    """

    __slots__ = ("_markup", "_name", "_pending", "_pending_start", "_pos", "_root", "_stack")

    def __init__(self, markup: str, name: str | None = None) -> None:
        self._markup = markup
        self._name = name
        self._pos = 0
        self._stack: list[_Frame] = []
        self._root: list[Directive] = []
        self._pending: list[str] = []
        self._pending_start = 0

    def build(self) -> tuple[Directive, ...]:
        markup = self._markup
        length = len(markup)
        while self._pos < length:
            if not self._try_directive():
                self._consume_text()
        self._flush_text()
        if self._stack:
            frame = self._stack[-1]
            if frame.kind in _BRANCH_KINDS:
                frame = self._stack[-2]
            raise self._error(
                f"Unclosed {{{frame.kind}}} directive",
                frame.offset,
                suggestion=f"Add {{/{frame.kind}}} to close it.",
            )
        return tuple(self._root)

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------

    def _try_directive(self) -> bool:
        markup = self._markup
        pos = self._pos
        char = markup[pos]
        if char == "{":
            if markup.startswith("{if ", pos):
                self._open_if(pos)
            elif markup.startswith("{for ", pos):
                self._open_for(pos)
            elif markup.startswith("{else if ", pos):
                self._open_branch(pos, "elif")
            elif markup.startswith("{else}", pos):
                self._open_branch(pos, "else")
            elif markup.startswith("{/if}", pos):
                self._close_if(pos)
            elif markup.startswith("{/for}", pos):
                self._close_for(pos)
            else:
                return False
            return True
        if char == "<":
            nxt = markup[pos + 1 : pos + 2]
            if nxt.isupper() and nxt.isascii():
                self._static_component(pos)
                return True
            if nxt == "=" and markup[pos + 2 : pos + 3] in ("'", '"', "`"):
                self._dynamic_component(pos)
                return True
        return False

    def _consume_text(self) -> None:
        markup = self._markup
        start = self._pos
        end = start + 1
        while end < len(markup) and markup[end] not in "{<":
            end += 1
        if not self._pending:
            self._pending_start = start
        self._pending.append(markup[start:end])
        self._pos = end

    def _flush_text(self) -> None:
        if self._pending:
            content = "".join(self._pending)
            self._pending = []
            self._append(Text(**self._loc(self._pending_start), content=content))

    def _append(self, node: Directive) -> None:
        (self._stack[-1].body if self._stack else self._root).append(node)

    # ------------------------------------------------------------------
    # Directives
    # ------------------------------------------------------------------

    def _read_head(self, offset: int, prefix: str) -> str:
        """Return the head text after ``prefix`` and move past the closing ``}``."""
        try:
            close = skip_balanced(self._markup, offset + 1)
        except EvaluationFault:
            raise self._error(
                f"Directive '{prefix.strip()}' is missing its closing '}}'", offset
            ) from None
        self._pos = close
        return self._markup[offset + len(prefix) : close - 1].strip()

    def _open_if(self, offset: int) -> None:
        self._flush_text()
        condition = self._read_head(offset, "{if ")
        if not condition:
            raise self._error("{if} requires a condition", offset)
        self._stack.append(_Frame("if", offset, head=condition))

    def _open_for(self, offset: int) -> None:
        self._flush_text()
        head = self._read_head(offset, "{for ")
        match = FOR_HEAD_RE.match(head)
        if match is None:
            raise self._error(
                f"Malformed {{for}} head: {head!r}",
                offset,
                suggestion="Use {for let item of items}.",
            )
        target, iter_kind, collection = match.groups()
        self._stack.append(_Frame("for", offset, head=collection.strip(), target=target, iter_kind=iter_kind))

    def _open_branch(self, offset: int, kind: str) -> None:
        self._flush_text()
        label = "{else if}" if kind == "elif" else "{else}"
        if kind == "elif":
            condition = self._read_head(offset, "{else if ")
            if not condition:
                raise self._error("{else if} requires a condition", offset)
        else:
            condition = ""
            self._pos = offset + len("{else}")
        if self._stack and self._stack[-1].kind == "else":
            raise self._error(f"{label} cannot follow {{else}}", offset)
        if self._stack and self._stack[-1].kind == "elif":
            self._close_branch()
        if not self._stack or self._stack[-1].kind != "if":
            inside = "a {for}" if self._stack else "nothing"
            raise self._error(f"{label} outside of an open {{if}} (inside {inside})", offset)
        self._stack.append(_Frame(kind, offset, head=condition))

    def _close_branch(self) -> None:
        branch = self._stack.pop()
        owner = self._stack[-1]
        if branch.kind == "elif":
            owner.elifs.append(
                ElseIf(**self._loc(branch.offset), condition=branch.head, body=tuple(branch.body))
            )
        else:
            owner.else_ = tuple(branch.body)

    def _close_if(self, offset: int) -> None:
        self._flush_text()
        self._pos = offset + len("{/if}")
        if self._stack and self._stack[-1].kind in _BRANCH_KINDS:
            self._close_branch()
        self._expect_open("if", offset)
        frame = self._stack.pop()
        self._append(
            If(
                **self._loc(frame.offset),
                condition=frame.head,
                body=tuple(frame.body),
                elif_=tuple(frame.elifs),
                else_=frame.else_ or (),
            )
        )

    def _close_for(self, offset: int) -> None:
        self._flush_text()
        self._pos = offset + len("{/for}")
        self._expect_open("for", offset)
        frame = self._stack.pop()
        self._append(
            For(
                **self._loc(frame.offset),
                target=frame.target,
                iter=frame.head,
                body=tuple(frame.body),
                kind=frame.iter_kind,
            )
        )

    def _expect_open(self, kind: str, offset: int) -> None:
        if not self._stack:
            raise self._error(f"{{/{kind}}} without a matching {{{kind}}}", offset)
        current = self._stack[-1]
        if current.kind != kind:
            raise self._error(
                f"{{/{kind}}} closes an open {{{current.kind}}}",
                offset,
                suggestion=f"Close the {{{current.kind}}} opened at line {locate(self._markup, current.offset)[1]} first.",
            )

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _static_component(self, offset: int) -> None:
        self._flush_text()
        match = _COMPONENT_NAME_RE.match(self._markup, offset + 1)
        assert match is not None
        props = self._read_props(match.end(), offset)
        self._append(StaticComponent(**self._loc(offset), name=match.group(), props=props))

    def _dynamic_component(self, offset: int) -> None:
        self._flush_text()
        markup = self._markup
        quote = markup[offset + 2]
        pos = offset + 3
        while pos < len(markup) and markup[pos] != quote:
            if markup[pos] == "{":
                pos = self._skip_braces(pos, offset)
            else:
                pos += 1
        if pos >= len(markup):
            raise self._error("Unterminated dynamic component path", offset)
        path = markup[offset + 3 : pos]
        props = self._read_props(pos + 1, offset)
        self._append(DynamicComponent(**self._loc(offset), path=path, props=props))

    def _read_props(self, pos: int, offset: int) -> dict[str, str]:
        """Parse a component prop list up to and including ``/>``."""
        markup = self._markup
        props: dict[str, str] = {}
        while True:
            while pos < len(markup) and markup[pos].isspace():
                pos += 1
            if pos >= len(markup):
                raise self._error("Unterminated component tag", offset, suggestion="Close it with '/>'.")
            if markup.startswith("/>", pos):
                self._pos = pos + 2
                return props
            char = markup[pos]
            if char == ">":
                raise self._error(
                    "Component tags must be self-closing", offset, suggestion="Close it with '/>'."
                )
            if char == "{":
                end = self._skip_braces(pos, offset)
                name = markup[pos + 1 : end - 1].strip()
                if not _IDENTIFIER_RE.match(name):
                    raise self._error(f"Invalid shorthand prop {{{name}}}", pos)
                props[name] = name
                pos = end
                continue
            match = _PROP_NAME_RE.match(markup, pos)
            if match is None:
                raise self._error(f"Unexpected {char!r} in component tag", pos)
            name = match.group()
            pos = match.end()
            if not markup.startswith("=", pos):
                props[name] = "true"
                continue
            pos += 1
            value_start = markup[pos : pos + 1]
            if value_start == "{":
                end = self._skip_braces(pos, offset)
                expr = markup[pos + 1 : end - 1].strip()
                if not expr:
                    raise self._error(f"Prop '{name}' has an empty expression", pos)
                props[name] = expr
                pos = end
            elif value_start in ("'", '"'):
                close = markup.find(value_start, pos + 1)
                if close == -1:
                    raise self._error(f"Unterminated value for prop '{name}'", pos)
                props[name] = format_value(markup[pos + 1 : close])
                pos = close + 1
            else:
                raise self._error(f"Prop '{name}' needs a {{expression}} or quoted value", pos)

    def _skip_braces(self, pos: int, offset: int) -> int:
        try:
            return skip_balanced(self._markup, pos + 1)
        except EvaluationFault:
            raise self._error("Unbalanced '{' in component tag", offset) from None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _loc(self, offset: int) -> dict[str, int]:
        _, lineno, col_offset = locate(self._markup, offset)
        return {"lineno": lineno, "col_offset": col_offset, "offset": offset}

    def _error(self, message: str, offset: int, *, suggestion: str | None = None) -> StructuralParseError:
        return StructuralParseError(
            message,
            offset=offset,
            name=self._name,
            source=self._markup,
            suggestion=suggestion,
        )


def build_control_tree(markup: str, name: str | None = None) -> tuple[Directive, ...]:
    """Parse ``markup`` into a tuple of top-level directives.

    Raises:
        StructuralParseError: Unbalanced, misplaced or malformed directives.
    """
    return ControlTreeBuilder(markup, name).build()
