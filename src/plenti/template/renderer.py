"""Control-tree evaluation.

``ComponentRenderer`` walks a component's directive tree with one binding
map per call frame and returns the rendered markup together with the
scope stack: one ``ScopeStackEntry`` per nested component instance, in
depth-first post-order. The stack is an immutable tuple threaded through
return values, never shared mutable state.

Failure policy:

- structural problems (unknown components, missing sources, runaway
  recursion) raise and abort the render;
- expression faults are logged at DEBUG and degrade the directive: a
  failing condition is false, a failing collection iterates zero times,
  a failing prop is ``None``.

Directive dispatch is a dict from node type to handler, looked up once
per node.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING

from plenti.environment.exceptions import EvaluationFault, ResolutionError, TemplateNotFoundError
from plenti.environment.loaders import join_path
from plenti.expressions.values import Value, is_strictly_true
from plenti.isolation.scoping import ScopeStackEntry, interpolate, scope_fragment
from plenti.nodes import Directive, DynamicComponent, For, If, StaticComponent, Text
from plenti.parser.fence import FenceResult, process_fence
from plenti.render_context import child_render_context, get_render_context

if TYPE_CHECKING:
    from plenti.environment import Environment
    from plenti.template.core import Component

logger = logging.getLogger(__name__)

Stack = tuple[ScopeStackEntry, ...]


class ComponentRenderer:
    """Render components of one Environment.

    Args:
        env: Supplies the loader, evaluator, scope class generator and
            hydration setting.
    """

    __slots__ = ("_dispatch", "_env")

    def __init__(self, env: Environment) -> None:
        self._env = env
        self._dispatch: dict[type, Callable[..., tuple[str, Stack]]] = {
            Text: self._render_text,
            If: self._render_if,
            For: self._render_for,
            StaticComponent: self._render_static,
            DynamicComponent: self._render_dynamic,
        }

    def render_body(
        self,
        component: Component,
        props: Mapping[str, Value],
        stack: Stack = (),
    ) -> tuple[str, FenceResult, Stack]:
        """Run the fence of ``component`` and render its directive tree.

        The returned markup is not scoped yet; the caller scopes it as a
        page or as a fragment.
        """
        fence = process_fence(
            component.segments.fence,
            props,
            name=component.name,
            evaluator=self._env.evaluator,
        )
        markup, stack = self.render_nodes(component.tree, component, fence, fence.bindings, stack)
        return markup, fence, stack

    def render_nodes(
        self,
        nodes: Sequence[Directive],
        component: Component,
        fence: FenceResult,
        bindings: Mapping[str, Value],
        stack: Stack,
    ) -> tuple[str, Stack]:
        buf: list[str] = []
        for node in nodes:
            text, stack = self._dispatch[type(node)](node, component, fence, bindings, stack)
            buf.append(text)
        return "".join(buf), stack

    # Directive handlers

    def _render_text(self, node: Text, component, fence, bindings, stack) -> tuple[str, Stack]:
        return node.content, stack

    def _render_if(self, node: If, component, fence, bindings, stack) -> tuple[str, Stack]:
        branches = [(node.condition, node.body)]
        branches.extend((branch.condition, branch.body) for branch in node.elif_)
        for condition, body in branches:
            if is_strictly_true(self._evaluate(condition, bindings, component)):
                return self.render_nodes(body, component, fence, bindings, stack)
        return self.render_nodes(node.else_, component, fence, bindings, stack)

    def _render_for(self, node: For, component, fence, bindings, stack) -> tuple[str, Stack]:
        collection = self._evaluate(node.iter, bindings, component)
        if not isinstance(collection, list):
            logger.debug(
                "{for} in %s: %r is %s, not a list; no iterations",
                component.name, node.iter, type(collection).__name__,
            )
            return "", stack
        items: list[Value] = collection if node.kind == "of" else [str(i) for i in range(len(collection))]
        buf: list[str] = []
        for item in items:
            scope = dict(bindings)
            scope[node.target] = item
            text, stack = self.render_nodes(node.body, component, fence, scope, stack)
            buf.append(text)
        return "".join(buf), stack

    def _render_static(self, node: StaticComponent, component, fence, bindings, stack) -> tuple[str, Stack]:
        imported = fence.resolve(node.name)
        if imported is None:
            ctx = get_render_context()
            raise ResolutionError(
                f"Component '{node.name}' is not imported",
                component=node.name,
                template_name=component.name,
                component_stack=ctx.component_stack if ctx else (),
            )
        return self._render_child(imported.path, node.props, component, bindings, stack)

    def _render_dynamic(self, node: DynamicComponent, component, fence, bindings, stack) -> tuple[str, Stack]:
        path = join_path(component.name, interpolate(node.path, bindings, self._env.evaluator))
        return self._render_child(path, node.props, component, bindings, stack)

    # Helpers

    def _render_child(
        self,
        path: str,
        raw_props: Mapping[str, str],
        caller: Component,
        bindings: Mapping[str, Value],
        stack: Stack,
    ) -> tuple[str, Stack]:
        props = {name: self._evaluate(expr, bindings, caller) for name, expr in raw_props.items()}
        env = self._env
        try:
            child = env.get_component(path)
        except TemplateNotFoundError as exc:
            ctx = get_render_context()
            raise ResolutionError(
                f"Component '{path}' could not be loaded: {exc}",
                component=path,
                template_name=caller.name,
                component_stack=ctx.component_stack if ctx else (),
            ) from exc

        with child_render_context(path, child.source):
            markup, child_fence, stack = self.render_body(child, props, stack)

        markup, elements = scope_fragment(
            markup,
            child_fence.bindings,
            generator=env.generator,
            evaluator=env.evaluator,
            props=raw_props if env.hydrate else None,
            fence_logic=child_fence.fence_logic,
        )
        entry = ScopeStackEntry(elements, child.style, child.script, template_name=path)
        return markup, (*stack, entry)

    def _evaluate(self, code: str, bindings: Mapping[str, Value], component: Component) -> Value:
        try:
            return self._env.evaluator.evaluate(code, bindings)
        except EvaluationFault as exc:
            logger.debug("Expression %r in %s failed: %s", code, component.name, exc)
            return None
