"""Expression nodes for the embedded expression language."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from plenti.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for expressions."""


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """Literal: ``42``, ``"text"``, ``true``, ``null``"""

    value: str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class Name(Expr):
    """Identifier lookup: ``animals``"""

    name: str


@dataclass(frozen=True, slots=True)
class List(Expr):
    """Array literal: ``[a, b, ...rest]``"""

    items: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Dict(Expr):
    """Object literal: ``{a: 1, "b": 2, c}``"""

    keys: Sequence[Expr]
    values: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Spread(Expr):
    """Spread element inside an array or object literal: ``...items``"""

    value: Expr


@dataclass(frozen=True, slots=True)
class Getattr(Expr):
    """Member access: ``obj.attr``"""

    obj: Expr
    attr: str


@dataclass(frozen=True, slots=True)
class OptionalGetattr(Expr):
    """Optional member access: ``obj?.attr``"""

    obj: Expr
    attr: str


@dataclass(frozen=True, slots=True)
class Getitem(Expr):
    """Computed member access: ``obj[key]``"""

    obj: Expr
    key: Expr


@dataclass(frozen=True, slots=True)
class FuncCall(Expr):
    """Call: ``func(args)``"""

    func: Expr
    args: Sequence[Expr] = ()


@dataclass(frozen=True, slots=True)
class BinOp(Expr):
    """Arithmetic: ``a + b``, ``a ** b``"""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class UnaryOp(Expr):
    """Prefix operator: ``!a``, ``-a``, ``typeof a``"""

    op: str
    operand: Expr


@dataclass(frozen=True, slots=True)
class Compare(Expr):
    """Comparison: ``a >= b``, ``a === b``, ``k in obj``"""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class BoolOp(Expr):
    """Short-circuit operator: ``a && b``, ``a || b``, ``a ?? b``"""

    op: str
    values: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class CondExpr(Expr):
    """Ternary: ``test ? if_true : if_false``"""

    test: Expr
    if_true: Expr
    if_false: Expr


@dataclass(frozen=True, slots=True)
class Concat(Expr):
    """Template literal: ``\\`Hi ${name}\\``` as alternating text/expr nodes."""

    nodes: Sequence[Expr]


@dataclass(frozen=True, slots=True)
class Arrow(Expr):
    """Single-expression arrow function: ``(a, i) => a.length > i``"""

    params: Sequence[str]
    body: Expr
