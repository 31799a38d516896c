"""Control flow directives: ``{if}``, ``{else if}``, ``{else}``, ``{for}``."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from plenti.nodes.base import Directive


@dataclass(frozen=True, slots=True)
class ElseIf(Directive):
    """Alternate branch: {else if cond}..."""

    condition: str
    body: Sequence[Directive]


@dataclass(frozen=True, slots=True)
class If(Directive):
    """Conditional: {if cond}...{else if cond}...{else}...{/if}

    ``elif_`` keeps the branches in source order; ``else_`` is empty when
    the chain has no ``{else}``.
    """

    condition: str
    body: Sequence[Directive]
    elif_: Sequence[ElseIf] = ()
    else_: Sequence[Directive] = ()


@dataclass(frozen=True, slots=True)
class For(Directive):
    """Loop: {for let item of items}...{/for}

    ``target`` is the loop variable name and ``iter`` the raw collection
    expression. ``kind`` records ``of`` or ``in``.
    """

    target: str
    iter: str
    body: Sequence[Directive]
    kind: str = "of"
