"""Base node classes for plenti ASTs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all AST nodes.

    All nodes track their source location for error reporting.
    Nodes are immutable so a parsed tree can be shared between renders.

    """

    lineno: int
    col_offset: int


@dataclass(frozen=True, slots=True)
class Directive(Node):
    """Base class for markup directives.

    ``offset`` is the character offset of the directive inside the markup
    segment it was parsed from.
    """

    offset: int
