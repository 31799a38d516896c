"""Per-instance HTML scoping.

Walks the rendered markup of one component instance and gives every
element a scope class, recording what it saw so the component's CSS and
JS can be rewritten to target exactly these elements.

Element identity follows a fixed precedence. An element that already
carries a generated class belongs to a nested component instance and is
left untouched together with its subtree. Otherwise the element's
identity is its ``id`` when it has one, else its class list, else its
bare tag:

- an ``id`` reuses the scope class of an earlier element with that id;
- a class list reuses the scope class of an earlier element sharing a
  class;
- a bare tag reuses the scope class of an earlier bare element with the
  same tag.

Anything else gets a freshly generated class. Repeated structures (the
``<li>`` of a loop, for instance) therefore share one class while
unrelated elements stay apart.

The walk also converts ``{expr}`` interpolations into live client
bindings (``x-text`` for text, ``:attr`` for attributes) while writing a
best-effort literal value into the static markup.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from plenti.environment.exceptions import EvaluationFault
from plenti.expressions.lexer import skip_balanced
from plenti.expressions.values import Value, stringify
from plenti.isolation import hydration
from plenti.isolation.html import ROOT, HtmlTree, NodeKind, parse_html
from plenti.utils.constants import RAW_TEXT_ELEMENTS, RESERVED_ATTRS

if TYPE_CHECKING:
    from plenti.expressions.evaluator import ExpressionEvaluator
    from plenti.isolation.classes import ScopeClassGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScopedElement:
    """Fingerprint of one element and the scope class it received."""

    tag: str
    id: str
    classes: tuple[str, ...]
    scope_class: str


@dataclass(frozen=True, slots=True)
class ScopeStackEntry:
    """Everything one rendered instance contributes to page assets."""

    scoped_elements: tuple[ScopedElement, ...]
    style: str = ""
    script: str = ""
    template_name: str | None = field(default=None, compare=False)


def has_interpolation(text: str) -> bool:
    return "{" in text and "}" in text


def to_template_literal(text: str) -> str:
    """``Hi {name}`` to the client expression ```Hi ${name}```."""
    return "`" + text.replace("{", "${").replace('"', "'") + "`"


def interpolate(text: str, bindings: Mapping[str, Value], evaluator: ExpressionEvaluator) -> str:
    """Replace each ``{expr}`` in ``text`` with its display value.

    Expressions that fail render as an empty string. An unbalanced ``{``
    leaves the rest of the text as is.
    """
    out: list[str] = []
    pos = 0
    while True:
        start = text.find("{", pos)
        if start == -1:
            break
        try:
            end = skip_balanced(text, start + 1)
        except EvaluationFault:
            break
        out.append(text[pos:start])
        code = text[start + 1 : end - 1]
        try:
            out.append(stringify(evaluator.evaluate(code, bindings)))
        except EvaluationFault as exc:
            logger.debug("Interpolation {%s} failed: %s", code, exc)
        pos = end
    out.append(text[pos:])
    return "".join(out)


class HtmlScoper:
    """Scope the elements of one parsed instance.

    Args:
        tree: Parsed markup, edited in place.
        bindings: The instance's bindings, used for literal fallbacks.
        generator: Source of new scope classes.
        evaluator: Evaluates ``{expr}`` fallbacks.
    """

    __slots__ = ("_bindings", "_elements", "_evaluator", "_generator", "_tree")

    def __init__(
        self,
        tree: HtmlTree,
        bindings: Mapping[str, Value],
        generator: ScopeClassGenerator,
        evaluator: ExpressionEvaluator,
    ) -> None:
        self._tree = tree
        self._bindings = bindings
        self._generator = generator
        self._evaluator = evaluator
        self._elements: list[ScopedElement] = []

    def run(self) -> tuple[ScopedElement, ...]:
        tree = self._tree
        stack = list(reversed(tree.children(ROOT)))
        while stack:
            node_id = stack.pop()
            node = tree[node_id]
            if node.kind is NodeKind.TEXT:
                self._scope_text(node_id)
                continue
            if node.kind is not NodeKind.ELEMENT or not self._scope_element(node_id):
                continue
            if node.tag not in RAW_TEXT_ELEMENTS:
                stack.extend(reversed(node.children))
        return tuple(self._elements)

    def _scope_element(self, node_id: int) -> bool:
        """Assign the element's scope class; False for nested instances."""
        tree = self._tree
        classes = (tree.get_attr(node_id, "class") or "").split()
        if any(self._generator.is_scope_class(name) for name in classes):
            return False
        self._interpolate_attrs(node_id)

        tag = tree[node_id].tag
        element_id = tree.get_attr(node_id, "id") or ""
        class_attr = tree.get_attr(node_id, "class")
        classes = (class_attr or "").split()
        scope_class = self._resolve(tag, element_id, classes) or self._generator.new_class()
        tree.set_attr(node_id, "class", f"{class_attr} {scope_class}" if class_attr else scope_class)
        self._elements.append(
            ScopedElement(tag=tag, id=element_id, classes=tuple(classes), scope_class=scope_class)
        )
        return True

    def _resolve(self, tag: str, element_id: str, classes: list[str]) -> str | None:
        if element_id:
            for seen in self._elements:
                if seen.id == element_id:
                    return seen.scope_class
        if classes:
            wanted = set(classes)
            for seen in self._elements:
                if wanted.intersection(seen.classes):
                    return seen.scope_class
        if element_id or classes:
            return None
        for seen in self._elements:
            if seen.tag == tag and not seen.id and not seen.classes:
                return seen.scope_class
        return None

    def _interpolate_attrs(self, node_id: int) -> None:
        tree = self._tree
        node = tree[node_id]
        for pair in list(node.attrs):
            name, value = pair
            if value is None or not has_interpolation(value):
                continue
            if name in RESERVED_ATTRS or name.startswith(":"):
                continue
            if not tree.has_attr(node_id, f":{name}"):
                node.attrs.append([f":{name}", to_template_literal(value)])
            pair[1] = interpolate(value, self._bindings, self._evaluator)

    def _scope_text(self, node_id: int) -> None:
        tree = self._tree
        node = tree[node_id]
        if not has_interpolation(node.data):
            return
        parent = node.parent
        if parent != ROOT and not tree.has_attr(parent, "x-text"):
            tree.set_attr(parent, "x-text", to_template_literal(node.data))
        node.data = interpolate(node.data, self._bindings, self._evaluator)


def scope_html(
    markup: str,
    bindings: Mapping[str, Value],
    *,
    generator: ScopeClassGenerator,
    evaluator: ExpressionEvaluator,
    page_data: Mapping[str, Value] | None = None,
) -> tuple[str, tuple[ScopedElement, ...]]:
    """Scope a full page.

    When ``page_data`` is non-empty the ``<html>`` element receives it as
    ``x-data``.
    """
    tree = parse_html(markup)
    elements = HtmlScoper(tree, bindings, generator, evaluator).run()
    if page_data:
        for node_id in tree.walk():
            node = tree[node_id]
            if node.kind is NodeKind.ELEMENT and node.tag == "html" and not tree.has_attr(node_id, "x-data"):
                node.attrs.append(["x-data", hydration.page_data(page_data)])
    return tree.serialize(), elements


def scope_fragment(
    markup: str,
    bindings: Mapping[str, Value],
    *,
    generator: ScopeClassGenerator,
    evaluator: ExpressionEvaluator,
    props: Mapping[str, str] | None = None,
    fence_logic: str = "",
) -> tuple[str, tuple[ScopedElement, ...]]:
    """Scope the markup of one component instance.

    ``props`` are the caller's raw prop expressions; when given, each
    top-level element receives ``x-data``/``x-init`` hydration attributes.
    """
    tree = parse_html(markup)
    elements = HtmlScoper(tree, bindings, generator, evaluator).run()
    if props:
        x_data, x_init = hydration.component_attrs(props, fence_logic)
        for node_id in tree.children(ROOT):
            node = tree[node_id]
            if node.kind is NodeKind.ELEMENT and not tree.has_attr(node_id, "x-data"):
                node.attrs.append(["x-data", x_data])
                node.attrs.append(["x-init", x_init])
    return tree.serialize(), elements
