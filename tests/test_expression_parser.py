"""Tests for the expression parser."""

import pytest

from plenti.environment.exceptions import ExpressionSyntaxError
from plenti.nodes import (
    Arrow,
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    OptionalGetattr,
    UnaryOp,
)
from plenti.expressions import parse_expression


class TestPrecedence:
    """Operator binding."""

    def test_multiplication_binds_tighter(self):
        expr = parse_expression("1 + 2 * 3")
        assert isinstance(expr, BinOp) and expr.op == "+"
        assert isinstance(expr.right, BinOp) and expr.right.op == "*"

    def test_exponent_is_right_associative(self):
        expr = parse_expression("2 ** 3 ** 2")
        assert isinstance(expr.right, BinOp) and expr.right.op == "**"

    def test_comparison_below_arithmetic(self):
        expr = parse_expression("age + 1 >= 18")
        assert isinstance(expr, Compare) and expr.op == ">="
        assert isinstance(expr.left, BinOp)

    def test_and_binds_tighter_than_or(self):
        expr = parse_expression("a || b && c")
        assert isinstance(expr, BoolOp) and expr.op == "||"
        assert isinstance(expr.values[1], BoolOp) and expr.values[1].op == "&&"

    def test_ternary(self):
        expr = parse_expression("ok ? 'a' : 'b'")
        assert isinstance(expr, CondExpr)
        assert expr.if_true.value == "a"

    def test_unary_and_typeof(self):
        assert isinstance(parse_expression("!done"), UnaryOp)
        assert parse_expression("typeof x").op == "typeof"


class TestPrimaries:
    """Literals, members, calls and arrows."""

    @pytest.mark.parametrize(
        ("source", "value"),
        [("42", 42), ("2.5", 2.5), ("0x10", 16), ("'hi'", "hi"), ("true", True), ("null", None), ("undefined", None)],
    )
    def test_constants(self, source, value):
        expr = parse_expression(source)
        assert isinstance(expr, Const) and expr.value == value

    def test_member_chain(self):
        expr = parse_expression("post.tags[0]?.name")
        assert isinstance(expr, OptionalGetattr) and expr.attr == "name"
        assert isinstance(expr.obj, Getitem)
        assert isinstance(expr.obj.obj, Getattr) and isinstance(expr.obj.obj.obj, Name)

    def test_call_with_arrow(self):
        expr = parse_expression("items.map((x, i) => x * i)")
        assert isinstance(expr, FuncCall)
        assert isinstance(expr.args[0], Arrow) and expr.args[0].params == ("x", "i")

    def test_single_param_arrow(self):
        expr = parse_expression("x => x + 1")
        assert isinstance(expr, Arrow) and expr.params == ("x",)

    def test_collections(self):
        assert isinstance(parse_expression("[1, ...rest]"), List)
        obj = parse_expression("{a: 1, 'b-c': 2, d}")
        assert isinstance(obj, Dict)
        assert [k.value for k in obj.keys] == ["a", "b-c", "d"]
        assert isinstance(obj.values[2], Name)

    def test_template_literal(self):
        expr = parse_expression("`Hi ${name}!`")
        assert isinstance(expr, Concat)
        assert [type(n) for n in expr.nodes] == [Const, Name, Const]

    def test_parenthesized_group_is_not_arrow(self):
        assert isinstance(parse_expression("(a + b) * 2"), BinOp)


class TestErrors:
    """Syntax errors carry the expression and position."""

    @pytest.mark.parametrize("source", ["", "1 +", "a b", "(a", "x => { return x }", "{a 1}"])
    def test_rejected(self, source):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(source)

    def test_position_reported(self):
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse_expression("a b")
        assert exc_info.value.expression == "a b"
        assert exc_info.value.position == 2
