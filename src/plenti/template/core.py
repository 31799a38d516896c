"""plenti Component: a parsed component ready for rendering.

Parsing a component source is independent of the props it is rendered
with, so it happens once per source and the result is cached by the
Environment:

    ```
    Component
    ├── _env_ref: WeakRef[Environment]   # Prevents circular refs
    ├── segments: Segments               # fence / markup / script / style
    ├── tree: tuple[Directive, ...]      # control tree of the markup
    └── name, filename, source           # for error messages
    ```

The fence is not evaluated here: its bindings depend on the props of each
render.

Thread-Safety:
Components are immutable after construction. Rendering creates only
local state, so one Component can be rendered concurrently.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any

from plenti.parser import build_control_tree, split_template

if TYPE_CHECKING:
    from plenti.environment import Environment
    from plenti.nodes import Directive
    from plenti.parser import Segments
    from plenti.template.page import RenderedPage


class Component:
    """Parsed component source.

    Attributes:
        name: Loader name (``None`` for ad-hoc strings)
        filename: Source file path, when loaded from disk
        source: Original source text
        segments: The source split into fence, markup, script and style
        tree: Control tree of the markup

    Raises:
        FormatConstraintError: More than one fence, script or style block.
        StructuralParseError: Unbalanced or malformed directives.

    Example:
        >>> from plenti import Environment
        >>> env = Environment(seed=1)
        >>> card = env.from_string("<p>{title}</p>")
        >>> ">Hi</p>" in card.render(title="Hi").markup
        True
    """

    __slots__ = ("_env_ref", "_filename", "_name", "_segments", "_source", "_tree")

    def __init__(
        self,
        env: Environment,
        source: str,
        name: str | None = None,
        filename: str | None = None,
    ):
        # Use weakref to prevent circular reference: Component <-> Environment
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._name = name
        self._filename = filename
        self._source = source
        self._segments = split_template(source, name)
        self._tree = build_control_tree(self._segments.markup, name)

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str:
        return self._source

    @property
    def segments(self) -> Segments:
        return self._segments

    @property
    def tree(self) -> tuple[Directive, ...]:
        return self._tree

    @property
    def style(self) -> str:
        return self._segments.style or ""

    @property
    def script(self) -> str:
        return self._segments.script or ""

    def render(self, *args: Any, **kwargs: Any) -> RenderedPage:
        """Render this component as a page.

        Accepts a props mapping, keyword props, or both (keywords win).
        """
        env = self._env_ref()
        if env is None:
            raise RuntimeError(f"Environment has been garbage collected while rendering '{self._name}'")
        props: dict[str, Any] = {}
        if args:
            if len(args) > 1 or not hasattr(args[0], "items"):
                raise TypeError("render() takes at most one positional props mapping")
            props.update(args[0])
        props.update(kwargs)
        return env.render_component(self, props)

    def __repr__(self) -> str:
        return f"<Component {self._name or '<string>'!r}>"
