"""plenti RenderContext: per-render state kept out of component bindings.

Component bindings only hold user values (props, fence variables, loop
items). Bookkeeping the renderer needs while it recurses through nested
components lives here instead, in a ContextVar:

    - the chain of component names from the page down to the current one
    - the current nesting depth and its limit (runaway recursion guard)

Thread-safe and async-safe via ContextVar: concurrent renders on one
Environment each see their own RenderContext.

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass

from plenti.utils.constants import DEFAULT_MAX_COMPONENT_DEPTH


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Per-render state isolated from component bindings.

    Each nested component gets a fresh instance from ``child_context()``;
    instances are never mutated, so a sibling render can never observe
    another's stack.

    Attributes:
        template_name: Component currently being rendered
        source: Its source text (for error snippets)
        depth: Number of component boundaries crossed from the page
        max_depth: Deepest nesting allowed before aborting
        component_stack: Component names from the page to the current one
    """

    template_name: str | None = None
    source: str | None = None
    depth: int = 0
    max_depth: int = DEFAULT_MAX_COMPONENT_DEPTH
    component_stack: tuple[str, ...] = ()

    def check_depth(self, component: str) -> None:
        """Raise if entering ``component`` would exceed ``max_depth``.

        Raises:
            TemplateRuntimeError: If depth >= max_depth
        """
        if self.depth >= self.max_depth:
            from plenti.environment.exceptions import ErrorCode, TemplateRuntimeError

            raise TemplateRuntimeError(
                f"Maximum component depth exceeded ({self.max_depth}) "
                f"when rendering '{component}'",
                template_name=self.template_name,
                component_stack=(*self.component_stack, component),
                suggestion="Check for components that render themselves: A → B → A",
                code=ErrorCode.COMPONENT_DEPTH,
            )

    def child_context(self, template_name: str, source: str | None = None) -> RenderContext:
        """Create the context for a nested component one level deeper."""
        return RenderContext(
            template_name=template_name,
            source=source,
            depth=self.depth + 1,
            max_depth=self.max_depth,
            component_stack=(*self.component_stack, template_name),
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "plenti_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Get current render context, raise if not in render.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@contextmanager
def render_context(
    template_name: str | None = None,
    source: str | None = None,
    max_depth: int = DEFAULT_MAX_COMPONENT_DEPTH,
) -> Iterator[RenderContext]:
    """Context manager for render-scoped state.

    Creates a root RenderContext for a page render and restores the
    previous context on exit.

    Example:
        with render_context(template_name="pages/index.svelte") as ctx:
            markup, stack = renderer.render(...)
    """
    ctx = RenderContext(
        template_name=template_name,
        source=source,
        max_depth=max_depth,
        component_stack=(template_name,) if template_name else (),
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


@contextmanager
def child_render_context(template_name: str, source: str | None = None) -> Iterator[RenderContext]:
    """Enter a nested component, checking the depth limit first.

    Raises:
        TemplateRuntimeError: The nesting limit is reached.
    """
    parent = get_render_context_required()
    parent.check_depth(template_name)
    ctx = parent.child_context(template_name, source)
    token = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
