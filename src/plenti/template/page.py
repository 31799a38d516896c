"""Rendered page result."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from plenti.isolation.scoping import ScopeStackEntry


@dataclass(frozen=True, slots=True)
class RenderedPage:
    """Output of one page render.

    Unpacks as ``(markup, script, style, fence_logic)``::

        markup, script, style, fence_logic = env.render("pages/index.svelte")

    Attributes:
        markup: Scoped page HTML
        script: Isolated scripts of every rendered instance, page last
        style: Isolated stylesheets of every rendered instance, page last
        fence_logic: The page fence reduced to one attribute-safe line
        scope_stack: One entry per rendered instance, depth-first post-order
    """

    markup: str
    script: str
    style: str
    fence_logic: str
    scope_stack: tuple[ScopeStackEntry, ...] = field(default=(), repr=False, compare=False)

    def __iter__(self) -> Iterator[str]:
        yield self.markup
        yield self.script
        yield self.style
        yield self.fence_logic

    def __str__(self) -> str:
        return self.markup
