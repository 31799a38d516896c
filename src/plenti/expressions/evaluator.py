"""Default expression evaluator.

Evaluates the JavaScript-flavored expressions found in fences, directive
heads, component props and ``{…}`` interpolations against a binding map.
It implements the narrow ``Evaluator`` protocol the renderer depends on:

    evaluate(code, bindings) -> Value
    run_and_collect(names, code, bindings=None) -> dict[str, Value]

This is not a JavaScript engine. It covers literals, member access, the
usual operators with JavaScript coercion rules, ternaries, template
literals, single-expression arrow functions, and a small library of string,
array and ``Math`` helpers. Anything else raises ``EvaluationFault``, which
the renderer turns into an empty/false/no-iteration result.

Example:
    >>> ev = Evaluator()
    >>> ev.evaluate("age >= 18 ? 'Adult' : 'Minor'", {"age": 17})
    'Minor'
    >>> ev.evaluate("`${animals.length} pets`", {"animals": ["cat", "dog"]})
    '2 pets'

"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping, Sequence
from functools import cmp_to_key
from typing import Any, Protocol

from plenti.environment.exceptions import EvaluationFault
from plenti.expressions.parser import parse_expression
from plenti.expressions.statements import run_statements
from plenti.expressions.values import (
    Value,
    format_value,
    is_truthy,
    is_value,
    normalize_number,
    stringify,
    to_number,
    type_name,
)
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


class ExpressionEvaluator(Protocol):
    """Capability the renderer needs to run embedded code."""

    def evaluate(self, code: str, bindings: Mapping[str, Value]) -> Value: ...

    def run_and_collect(
        self,
        names: Sequence[str],
        code: str,
        bindings: Mapping[str, Value] | None = None,
    ) -> dict[str, Value]: ...


class _Function:
    """Callable produced by an arrow expression, closed over its scope."""

    __slots__ = ("_body", "_interp", "_params", "_scope")

    def __init__(self, node: Arrow, scope: Mapping[str, Any], interp: _Interpreter) -> None:
        self._params = node.params
        self._body = node.body
        self._scope = scope
        self._interp = interp

    def __call__(self, *args: Any) -> Any:
        scope = dict(self._scope)
        for index, param in enumerate(self._params):
            scope[param] = args[index] if index < len(args) else None
        return self._interp.eval(self._body, scope)


class _Interpreter:
    """Tree-walking interpreter over ``plenti.nodes.expressions``."""

    __slots__ = ("_dispatch", "_source")

    def __init__(self, source: str) -> None:
        self._source = source
        self._dispatch: dict[type, Callable[[Any, Mapping[str, Any]], Any]] = {
            Const: self._eval_const,
            Name: self._eval_name,
            List: self._eval_list,
            Dict: self._eval_dict,
            Getattr: self._eval_getattr,
            OptionalGetattr: self._eval_optional_getattr,
            Getitem: self._eval_getitem,
            FuncCall: self._eval_call,
            BinOp: self._eval_binop,
            UnaryOp: self._eval_unaryop,
            Compare: self._eval_compare,
            BoolOp: self._eval_boolop,
            CondExpr: self._eval_condexpr,
            Concat: self._eval_concat,
            Arrow: self._eval_arrow,
        }

    def fault(self, message: str, node: Expr | None = None, **values: Any) -> EvaluationFault:
        return EvaluationFault(
            message,
            expression=self._source,
            position=node.col_offset if node is not None else None,
            values=values,
        )

    def eval(self, node: Expr, scope: Mapping[str, Any]) -> Any:
        handler = self._dispatch.get(type(node))
        if handler is None:
            raise self.fault(f"unsupported expression {type(node).__name__}", node)
        return handler(node, scope)

    def _eval_const(self, node: Const, scope: Mapping[str, Any]) -> Any:
        return node.value

    def _eval_name(self, node: Name, scope: Mapping[str, Any]) -> Any:
        if node.name in scope:
            return scope[node.name]
        if node.name in GLOBALS:
            return GLOBALS[node.name]
        raise self.fault(f"{node.name} is not defined", node)

    def _eval_list(self, node: List, scope: Mapping[str, Any]) -> list[Any]:
        items: list[Any] = []
        for item in node.items:
            if isinstance(item, Spread):
                spread = self.eval(item.value, scope)
                if not isinstance(spread, (list, str)):
                    raise self.fault("spread of a non-iterable value", item, value=spread)
                items.extend(spread)
            else:
                items.append(self.eval(item, scope))
        return items

    def _eval_dict(self, node: Dict, scope: Mapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key_node, value_node in zip(node.keys, node.values, strict=True):
            if isinstance(key_node, Spread):
                spread = self.eval(key_node.value, scope)
                if isinstance(spread, dict):
                    result.update(spread)
                elif spread is not None:
                    raise self.fault("spread of a non-object value", key_node, value=spread)
                continue
            result[stringify(self.eval(key_node, scope))] = self.eval(value_node, scope)
        return result

    def _member(self, obj: Any, attr: str, node: Expr) -> Any:
        if obj is None:
            raise self.fault(f"Cannot read properties of null (reading '{attr}')", node)
        if isinstance(obj, dict):
            return obj.get(attr)
        if isinstance(obj, _Namespace):
            return obj.members.get(attr)
        if isinstance(obj, (str, list)):
            if attr == "length":
                return len(obj)
            if attr.isdigit():
                index = int(attr)
                return obj[index] if index < len(obj) else None
            methods = STRING_METHODS if isinstance(obj, str) else LIST_METHODS
            method = methods.get(attr)
            if method is not None:
                return _BoundMethod(obj, method)
            return None
        return None

    def _eval_getattr(self, node: Getattr, scope: Mapping[str, Any]) -> Any:
        return self._member(self.eval(node.obj, scope), node.attr, node)

    def _eval_optional_getattr(self, node: OptionalGetattr, scope: Mapping[str, Any]) -> Any:
        obj = self.eval(node.obj, scope)
        if obj is None:
            return None
        return self._member(obj, node.attr, node)

    def _eval_getitem(self, node: Getitem, scope: Mapping[str, Any]) -> Any:
        obj = self.eval(node.obj, scope)
        key = self.eval(node.key, scope)
        if isinstance(obj, (list, str)) and isinstance(key, (int, float)) and not isinstance(key, bool):
            if isinstance(key, float) and not key.is_integer():
                return None
            index = int(key)
            return obj[index] if 0 <= index < len(obj) else None
        return self._member(obj, stringify(key), node)

    def _eval_call(self, node: FuncCall, scope: Mapping[str, Any]) -> Any:
        func = self.eval(node.func, scope)
        if not callable(func):
            raise self.fault(f"{_describe(node.func)} is not a function", node)
        args: list[Any] = []
        for arg in node.args:
            if isinstance(arg, Spread):
                spread = self.eval(arg.value, scope)
                if not isinstance(spread, list):
                    raise self.fault("spread of a non-array value", arg, value=spread)
                args.extend(spread)
            else:
                args.append(self.eval(arg, scope))
        try:
            return func(*args)
        except EvaluationFault:
            raise
        except (TypeError, ValueError, IndexError, KeyError, OverflowError, RecursionError) as exc:
            raise self.fault(f"{_describe(node.func)}() failed: {exc}", node) from exc

    def _eval_binop(self, node: BinOp, scope: Mapping[str, Any]) -> Any:
        left = self.eval(node.left, scope)
        right = self.eval(node.right, scope)
        op = node.op
        if op == "+":
            if _is_numeric(left) and _is_numeric(right):
                return normalize_number(to_number(left) + to_number(right))
            return stringify_for_concat(left) + stringify_for_concat(right)
        a, b = to_number(left), to_number(right)
        try:
            if op == "-":
                return normalize_number(a - b)
            if op == "*":
                return normalize_number(a * b)
            if op == "/":
                if b == 0:
                    if a == 0 or math.isnan(a):
                        return math.nan
                    return math.inf if a > 0 else -math.inf
                return normalize_number(a / b)
            if op == "%":
                if b == 0:
                    return math.nan
                return normalize_number(math.fmod(a, b))
            if op == "**":
                return normalize_number(a**b)
        except OverflowError:
            return math.inf
        raise self.fault(f"unsupported operator {op!r}", node)

    def _eval_unaryop(self, node: UnaryOp, scope: Mapping[str, Any]) -> Any:
        if node.op == "typeof":
            try:
                return type_name(self.eval(node.operand, scope))
            except EvaluationFault:
                return "undefined"
        operand = self.eval(node.operand, scope)
        if node.op == "!":
            return not is_truthy(operand)
        if node.op == "-":
            return normalize_number(-to_number(operand))
        return to_number(operand)

    def _eval_compare(self, node: Compare, scope: Mapping[str, Any]) -> bool:
        left = self.eval(node.left, scope)
        right = self.eval(node.right, scope)
        op = node.op
        if op == "===":
            return strict_equals(left, right)
        if op == "!==":
            return not strict_equals(left, right)
        if op == "==":
            return loose_equals(left, right)
        if op == "!=":
            return not loose_equals(left, right)
        if op == "in":
            if isinstance(right, dict):
                return stringify(left) in right
            if isinstance(right, list):
                index = to_number(left)
                return isinstance(index, int) and 0 <= index < len(right)
            raise self.fault("'in' requires an object on the right", node, value=right)
        if isinstance(left, str) and isinstance(right, str):
            a: Any = left
            b: Any = right
        else:
            a, b = to_number(left), to_number(right)
            if math.isnan(a) or math.isnan(b):
                return False
        if op == "<":
            return a < b
        if op == "<=":
            return a <= b
        if op == ">":
            return a > b
        return a >= b

    def _eval_boolop(self, node: BoolOp, scope: Mapping[str, Any]) -> Any:
        left = self.eval(node.values[0], scope)
        if node.op == "&&":
            return self.eval(node.values[1], scope) if is_truthy(left) else left
        if node.op == "||":
            return left if is_truthy(left) else self.eval(node.values[1], scope)
        return self.eval(node.values[1], scope) if left is None else left

    def _eval_condexpr(self, node: CondExpr, scope: Mapping[str, Any]) -> Any:
        branch = node.if_true if is_truthy(self.eval(node.test, scope)) else node.if_false
        return self.eval(branch, scope)

    def _eval_concat(self, node: Concat, scope: Mapping[str, Any]) -> str:
        return "".join(stringify_for_concat(self.eval(part, scope)) for part in node.nodes)

    def _eval_arrow(self, node: Arrow, scope: Mapping[str, Any]) -> _Function:
        return _Function(node, scope, self)


class Evaluator:
    """Default implementation of the ``ExpressionEvaluator`` protocol.

    Thread-safe: parsing is cached in a process-wide LRU and evaluation only
    touches per-call state.
    """

    __slots__ = ()

    def evaluate(self, code: str, bindings: Mapping[str, Value]) -> Value:
        """Evaluate ``code`` against ``bindings``.

        Raises:
            EvaluationFault: The code does not parse, references an unknown
                name, fails at runtime, or yields something that is not a
                Value (a function, for instance).
        """
        expr = parse_expression(code)
        interp = _Interpreter(code)
        try:
            result = interp.eval(expr, bindings)
        except RecursionError as exc:
            raise interp.fault("expression nests too deeply") from exc
        if not is_value(result):
            raise interp.fault(f"expression produced a {type_name(result)}, not a value")
        return result

    def run_and_collect(
        self,
        names: Sequence[str],
        code: str,
        bindings: Mapping[str, Value] | None = None,
    ) -> dict[str, Value]:
        """Run fence statements and return the values of ``names``.

        Statements run in order; one that fails binds its target to ``None``
        and execution continues with the next statement.
        """
        scope = run_statements(code, self.evaluate, dict(bindings or {}))
        return {name: scope.get(name) for name in names}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _is_numeric(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float))


def stringify_for_concat(value: Any) -> str:
    """String conversion used by ``+`` and template literals.

    Unlike display stringification ``null`` stays visible, as in JavaScript.
    """
    if value is None:
        return "null"
    if isinstance(value, list):
        return ",".join("" if item is None else stringify_for_concat(item) for item in value)
    return stringify(value)


def strict_equals(left: Any, right: Any) -> bool:
    """``===``: same type category and equal value; booleans never equal numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def loose_equals(left: Any, right: Any) -> bool:
    """``==``: strict equality plus number/string/boolean coercion."""
    if left is None or right is None:
        return left is None and right is None
    if strict_equals(left, right):
        return True
    scalar = (bool, int, float, str)
    if isinstance(left, scalar) and isinstance(right, scalar):
        if isinstance(left, str) and isinstance(right, str):
            return False
        return to_number(left) == to_number(right)
    return False


def _describe(node: Expr) -> str:
    if isinstance(node, Name):
        return node.name
    if isinstance(node, (Getattr, OptionalGetattr)):
        return f"{_describe(node.obj)}.{node.attr}"
    return "expression"


# ---------------------------------------------------------------------------
# Built-in library
# ---------------------------------------------------------------------------


class _Namespace:
    """Read-only member namespace such as ``Math`` or ``JSON``."""

    __slots__ = ("members",)

    def __init__(self, members: dict[str, Any]) -> None:
        self.members = members


class _BoundMethod:
    __slots__ = ("_func", "_target")

    def __init__(self, target: Any, func: Callable[..., Any]) -> None:
        self._target = target
        self._func = func

    def __call__(self, *args: Any) -> Any:
        return self._func(self._target, *args)


def _index(value: Any, length: int, default: int) -> int:
    if value is None:
        return default
    index = int(to_number(value))
    return max(length + index, 0) if index < 0 else min(index, length)


def _slice(target: Any, start: Any = None, end: Any = None) -> Any:
    length = len(target)
    return target[_index(start, length, 0) : _index(end, length, length)]


def _split(target: str, sep: Any = None, limit: Any = None) -> list[str]:
    if sep is None:
        parts = [target]
    elif sep == "":
        parts = list(target)
    else:
        parts = target.split(stringify(sep))
    return parts if limit is None else parts[: int(to_number(limit))]


def _replace(target: str, search: Any, replacement: Any, count: int = 1) -> str:
    return target.replace(stringify(search), stringify(replacement), count)


def _call(func: Any, *args: Any) -> Any:
    if not callable(func):
        raise TypeError(f"{type_name(func)} is not a function")
    return func(*args)


def _join(target: list[Any], sep: Any = ",") -> str:
    return stringify(sep).join("" if item is None else stringify_for_concat(item) for item in target)


def _sorted(target: list[Any], compare: Any = None) -> list[Any]:
    if compare is None:
        return sorted(target, key=lambda item: (item is None, stringify_for_concat(item)))
    return sorted(target, key=cmp_to_key(lambda a, b: int(to_number(_call(compare, a, b)))))


def _reduce(target: list[Any], func: Any, *initial: Any) -> Any:
    items = list(target)
    if initial:
        acc = initial[0]
    elif items:
        acc = items.pop(0)
    else:
        raise TypeError("reduce of empty array with no initial value")
    for index, item in enumerate(items):
        acc = _call(func, acc, item, index)
    return acc


STRING_METHODS: dict[str, Callable[..., Any]] = {
    "toUpperCase": lambda s: s.upper(),
    "toLowerCase": lambda s: s.lower(),
    "trim": lambda s: s.strip(),
    "trimStart": lambda s: s.lstrip(),
    "trimEnd": lambda s: s.rstrip(),
    "includes": lambda s, sub, start=0: stringify(sub) in s[int(to_number(start)) :],
    "startsWith": lambda s, sub: s.startswith(stringify(sub)),
    "endsWith": lambda s, sub: s.endswith(stringify(sub)),
    "indexOf": lambda s, sub: s.find(stringify(sub)),
    "slice": _slice,
    "substring": _slice,
    "split": _split,
    "replace": _replace,
    "replaceAll": lambda s, search, repl: _replace(s, search, repl, -1),
    "repeat": lambda s, count: s * int(to_number(count)),
    "padStart": lambda s, width, fill=" ": s.rjust(int(to_number(width)), stringify(fill)[:1] or " "),
    "padEnd": lambda s, width, fill=" ": s.ljust(int(to_number(width)), stringify(fill)[:1] or " "),
    "charAt": lambda s, index=0: s[int(to_number(index))] if 0 <= int(to_number(index)) < len(s) else "",
    "concat": lambda s, *parts: s + "".join(stringify_for_concat(p) for p in parts),
    "toString": lambda s: s,
}

LIST_METHODS: dict[str, Callable[..., Any]] = {
    "includes": lambda items, value: any(strict_equals(item, value) for item in items),
    "indexOf": lambda items, value: next(
        (index for index, item in enumerate(items) if strict_equals(item, value)), -1
    ),
    "join": _join,
    "slice": _slice,
    "concat": lambda items, *more: items + [x for part in more for x in (part if isinstance(part, list) else [part])],
    "reverse": lambda items: list(reversed(items)),
    "sort": _sorted,
    "map": lambda items, func: [_call(func, item, index) for index, item in enumerate(items)],
    "filter": lambda items, func: [
        item for index, item in enumerate(items) if is_truthy(_call(func, item, index))
    ],
    "find": lambda items, func: next(
        (item for index, item in enumerate(items) if is_truthy(_call(func, item, index))), None
    ),
    "some": lambda items, func: any(is_truthy(_call(func, item, i)) for i, item in enumerate(items)),
    "every": lambda items, func: all(is_truthy(_call(func, item, i)) for i, item in enumerate(items)),
    "reduce": _reduce,
    "flat": lambda items: [x for item in items for x in (item if isinstance(item, list) else [item])],
    "at": lambda items, index: items[int(to_number(index))] if -len(items) <= int(to_number(index)) < len(items) else None,
    "toString": lambda items: _join(items),
}


def _json_stringify(value: Any, *_: Any) -> str | None:
    if value is None:
        return "null"
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _parse_int(value: Any, radix: Any = 10) -> int | float:
    text = stringify(value).strip()
    base = int(to_number(radix)) or 10
    digits = ""
    for index, char in enumerate(text):
        if index == 0 and char in "+-":
            digits += char
            continue
        try:
            int(char, base)
        except ValueError:
            break
        digits += char
    try:
        return int(digits, base)
    except ValueError:
        return math.nan


def _parse_float(value: Any) -> int | float:
    number = to_number(stringify(value).strip().split(" ")[0])
    return normalize_number(number)


def _round(value: Any) -> int | float:
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return math.floor(number + 0.5)


GLOBALS: dict[str, Any] = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "String": lambda value="": stringify_for_concat(value) if value is not None else "null",
    "Number": lambda value=0: normalize_number(to_number(value)),
    "Boolean": lambda value=None: is_truthy(value),
    "parseInt": _parse_int,
    "parseFloat": _parse_float,
    "isNaN": lambda value: math.isnan(to_number(value)),
    "Array": _Namespace({"isArray": lambda value: isinstance(value, list)}),
    "Object": _Namespace(
        {
            "keys": lambda value: list(value) if isinstance(value, dict) else [],
            "values": lambda value: list(value.values()) if isinstance(value, dict) else [],
            "entries": lambda value: [[k, v] for k, v in value.items()] if isinstance(value, dict) else [],
        }
    ),
    "JSON": _Namespace({"stringify": _json_stringify, "parse": lambda text: json.loads(stringify(text))}),
    "Math": _Namespace(
        {
            "PI": math.pi,
            "E": math.e,
            "floor": lambda x: normalize_number(math.floor(to_number(x))),
            "ceil": lambda x: normalize_number(math.ceil(to_number(x))),
            "round": _round,
            "trunc": lambda x: math.trunc(to_number(x)),
            "abs": lambda x: abs(to_number(x)),
            "sqrt": lambda x: normalize_number(math.sqrt(to_number(x))),
            "pow": lambda x, y: normalize_number(to_number(x) ** to_number(y)),
            "min": lambda *xs: min((to_number(x) for x in xs), default=math.inf),
            "max": lambda *xs: max((to_number(x) for x in xs), default=-math.inf),
        }
    ),
}


__all__ = [
    "GLOBALS",
    "Evaluator",
    "ExpressionEvaluator",
    "format_value",
    "loose_equals",
    "strict_equals",
    "stringify_for_concat",
]
