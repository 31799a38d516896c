"""Leaf directives: literal text and component references."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from plenti.nodes.base import Directive


@dataclass(frozen=True, slots=True)
class Text(Directive):
    """Literal markup run; ``{…}`` interpolations are kept verbatim."""

    content: str


@dataclass(frozen=True, slots=True)
class StaticComponent(Directive):
    """Imported component: <Card title={post.title} {author} />

    ``props`` maps each prop name to its raw expression source, evaluated
    later in the caller's bindings. The ``{name}`` shorthand stores
    ``name`` as its own expression.
    """

    name: str
    props: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DynamicComponent(Directive):
    """Path-addressed component: <='./cards/{kind}.svelte' {item} />

    ``path`` may contain ``{expr}`` segments interpolated in the caller's
    bindings.
    """

    path: str
    props: Mapping[str, str] = field(default_factory=dict)
