"""plenti AST node definitions.

Two families share the immutable ``Node`` base:

- Directive nodes produced by the control-tree builder from component
  markup (``Text``, ``If``, ``ElseIf``, ``For``, ``StaticComponent``,
  ``DynamicComponent``).
- Expression nodes produced by the expression parser for embedded code.

"""

from plenti.nodes.base import Directive, Node
from plenti.nodes.control_flow import ElseIf, For, If
from plenti.nodes.expressions import (
    Arrow,
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    OptionalGetattr,
    Spread,
    UnaryOp,
)
from plenti.nodes.structure import DynamicComponent, StaticComponent, Text

__all__ = [
    "Arrow",
    "BinOp",
    "BoolOp",
    "Compare",
    "Concat",
    "CondExpr",
    "Const",
    "Dict",
    "Directive",
    "DynamicComponent",
    "ElseIf",
    "Expr",
    "For",
    "FuncCall",
    "Getattr",
    "Getitem",
    "If",
    "List",
    "Name",
    "Node",
    "OptionalGetattr",
    "Spread",
    "StaticComponent",
    "Text",
    "UnaryOp",
]
