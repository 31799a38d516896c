"""plenti Environment: configuration, component cache and page rendering.

The Environment is the entry point. It owns the collaborators a render
needs and hands them to the renderer:

    ```
    Environment
    ├── loader: Loader                  # component name -> source
    ├── evaluator: ExpressionEvaluator  # fence, conditions, loops, props
    ├── generator: ScopeClassGenerator  # scope classes, seedable
    ├── _cache: dict[str, Component]    # parsed components by name
    └── _renderer: ComponentRenderer
    ```

Configuration is fixed at construction and exposed read-only. Parsed
components are cached by name; the fence runs on every render because its
bindings depend on the props.

Thread-Safety:
Concurrent renders on one Environment are safe. The component cache is
guarded by a lock, the class generator has its own, and per-render state
lives in a ContextVar (see ``plenti.render_context``).
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Mapping
from typing import Any

from plenti.environment.exceptions import TemplateNotFoundError
from plenti.environment.loaders import Loader
from plenti.expressions.evaluator import Evaluator, ExpressionEvaluator
from plenti.expressions.values import to_value
from plenti.isolation.classes import ScopeClassGenerator
from plenti.isolation.scoping import ScopeStackEntry, scope_html
from plenti.render_context import render_context
from plenti.template.assembler import assemble
from plenti.template.core import Component
from plenti.template.page import RenderedPage
from plenti.template.renderer import ComponentRenderer
from plenti.utils.constants import DEFAULT_MAX_COMPONENT_DEPTH, DEFAULT_SCOPE_PREFIX

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration and render entry point.

    Args:
        loader: Component source loader. Without one only ``from_string``
            and ``render_string`` work, and component imports fail.
        evaluator: Expression evaluator (defaults to the built-in one).
        seed: Seed for the scope class generator, for reproducible output.
        rng: A ``random.Random`` to draw scope classes from (wins over ``seed``).
        scope_prefix: Prefix of generated classes (``plenti-Ab3xY9``).
        hydrate: Emit ``x-data``/``x-init`` client hydration attributes.
        max_component_depth: Deepest component nesting before the render
            aborts with ``TemplateRuntimeError``.

    Example:
        >>> from plenti import DictLoader, Environment
        >>> env = Environment(loader=DictLoader({"index.html": "<h1>Hi</h1>"}), seed=3)
        >>> page = env.render("index.html")
        >>> page.markup.startswith('<h1 class="plenti-')
        True
    """

    __slots__ = (
        "_cache",
        "_evaluator",
        "_generator",
        "_hydrate",
        "_lock",
        "_loader",
        "_max_component_depth",
        "_renderer",
        "__weakref__",
    )

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        evaluator: ExpressionEvaluator | None = None,
        seed: int | str | None = None,
        rng: random.Random | None = None,
        scope_prefix: str = DEFAULT_SCOPE_PREFIX,
        hydrate: bool = True,
        max_component_depth: int = DEFAULT_MAX_COMPONENT_DEPTH,
    ):
        if max_component_depth < 1:
            raise ValueError(f"max_component_depth must be at least 1, got {max_component_depth}")
        if not scope_prefix or not scope_prefix.replace("-", "").replace("_", "").isalnum():
            raise ValueError(f"scope_prefix must be a non-empty CSS identifier, got {scope_prefix!r}")
        self._loader = loader
        self._evaluator: ExpressionEvaluator = evaluator if evaluator is not None else Evaluator()
        self._generator = ScopeClassGenerator(scope_prefix, seed=seed, rng=rng)
        self._hydrate = hydrate
        self._max_component_depth = max_component_depth
        self._cache: dict[str, Component] = {}
        self._lock = threading.Lock()
        self._renderer = ComponentRenderer(self)

    # Read-only configuration

    @property
    def loader(self) -> Loader | None:
        return self._loader

    @property
    def evaluator(self) -> ExpressionEvaluator:
        return self._evaluator

    @property
    def generator(self) -> ScopeClassGenerator:
        return self._generator

    @property
    def scope_prefix(self) -> str:
        return self._generator.prefix

    @property
    def hydrate(self) -> bool:
        return self._hydrate

    @property
    def max_component_depth(self) -> int:
        return self._max_component_depth

    # Components

    def get_component(self, name: str) -> Component:
        """Load and parse a component by loader name, cached.

        Raises:
            TemplateNotFoundError: No loader, or the loader has no such name.
            TemplateSyntaxError: The source does not parse.
        """
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached
        if self._loader is None:
            raise TemplateNotFoundError(f"Component '{name}' not found: no loader configured")
        source, filename = self._loader.get_source(name)
        component = Component(self, source, name, filename)
        with self._lock:
            # Another thread may have parsed it meanwhile; keep the first.
            return self._cache.setdefault(name, component)

    def from_string(self, source: str, name: str | None = None) -> Component:
        """Parse a component from a string (not cached)."""
        return Component(self, source, name)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # Rendering

    def render(self, path: str, props: Mapping[str, Any] | None = None, **kwargs: Any) -> RenderedPage:
        """Render the component at ``path`` as a page.

        Returns a ``RenderedPage`` that unpacks as
        ``(markup, script, style, fence_logic)``.

        Raises:
            TemplateNotFoundError: ``path`` itself cannot be loaded.
            TemplateSyntaxError: A component source does not parse.
            ResolutionError: A nested component cannot be resolved.
            TemplateRuntimeError: Component nesting exceeds the limit.
        """
        return self.render_component(self.get_component(path), {**(props or {}), **kwargs})

    def render_string(
        self,
        source: str,
        props: Mapping[str, Any] | None = None,
        name: str | None = None,
    ) -> RenderedPage:
        """Render component ``source`` as a page without a loader lookup."""
        return self.render_component(self.from_string(source, name), props or {})

    def render_component(self, component: Component, props: Mapping[str, Any]) -> RenderedPage:
        """Render an already parsed component as a page.

        Raises:
            TypeError: A prop is not a template value.
        """
        values = to_value(props)
        with render_context(component.name, component.source, self._max_component_depth):
            markup, fence, stack = self._renderer.render_body(component, values)
            markup, elements = scope_html(
                markup,
                fence.bindings,
                generator=self._generator,
                evaluator=self._evaluator,
                page_data=fence.bindings if self._hydrate else None,
            )
        stack = (*stack, ScopeStackEntry(elements, component.style, component.script, template_name=component.name))
        style, script = assemble(stack, generator=self._generator)
        logger.debug("Rendered %s: %d instance(s)", component.name or "<string>", len(stack))
        return RenderedPage(markup, script, style, fence.fence_logic, scope_stack=stack)

    def __repr__(self) -> str:
        return f"<Environment loader={self._loader!r} scope_prefix={self.scope_prefix!r}>"
