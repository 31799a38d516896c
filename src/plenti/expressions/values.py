"""The closed value model shared by props, bindings and expressions.

A ``Value`` is one of ``str``, ``int``, ``float``, ``bool``, ``list`` of
values, ``dict`` of string keys to values, or ``None``. Everything that
crosses a component boundary (props, fence bindings, loop items) is
normalized into this union by ``to_value()``.

Two renderings exist:

- ``format_value()`` produces source text (quoted strings, bare literals,
  sorted map keys). It is used to inline prop values into fence code and
  into client-side attributes, so its output must stay deterministic.
- ``stringify()`` produces display text following JavaScript ``String()``
  rules. It is used for literal fallbacks of ``{…}`` interpolations.

"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any, TypeAlias

Value: TypeAlias = "str | int | float | bool | list[Value] | dict[str, Value] | None"

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def to_value(obj: Any) -> Value:
    """Normalize a host object into the closed value union.

    Tuples become lists and mapping keys become strings. Anything outside
    the union raises ``TypeError``.

    Example:
        >>> to_value(("cat", "dog"))
        ['cat', 'dog']
        >>> to_value({1: True})
        {'1': True}
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [to_value(item) for item in obj]
    if isinstance(obj, Mapping):
        return {str(key): to_value(val) for key, val in obj.items()}
    raise TypeError(f"Cannot use {type(obj).__name__} as a template value: {obj!r}")


def is_value(obj: Any) -> bool:
    """Return True when ``obj`` is already inside the value union."""
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return True
    if isinstance(obj, list):
        return all(is_value(item) for item in obj)
    if isinstance(obj, dict):
        return all(isinstance(key, str) and is_value(val) for key, val in obj.items())
    return False


def format_number(number: int | float) -> str:
    """Format a number the way JavaScript prints it.

    Integral floats print without a fractional part; non-finite floats use
    the JavaScript names.
    """
    if isinstance(number, int):
        return str(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)


def format_value(value: Value) -> str:
    """Format a value as source text.

    Strings are double-quoted with JSON escaping, numbers and booleans are
    bare literals, ``None`` is ``null``, lists and maps are formatted
    recursively and map keys are sorted for deterministic output.

    Example:
        >>> format_value({"b": [1, 2.5], "a": "x"})
        '{a: "x", b: [1, 2.5]}'
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        pairs = []
        for key in sorted(value, key=str):
            label = key if _IDENTIFIER.match(key) else json.dumps(key, ensure_ascii=False)
            pairs.append(f"{label}: {format_value(value[key])}")
        return "{" + ", ".join(pairs) + "}"
    raise TypeError(f"Cannot format {type(value).__name__} as a template value")


def stringify(value: Value) -> str:
    """Render a value as display text (JavaScript ``String()`` rules).

    ``None`` renders as an empty string so unresolved interpolations leave
    no trace in the static markup.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def is_truthy(value: Any) -> bool:
    """JavaScript truthiness: empty lists and maps are truthy, NaN is not."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def is_strictly_true(value: Any) -> bool:
    """Only an actual boolean ``True`` counts; ``1`` and ``"yes"`` do not."""
    return value is True


def type_name(value: Any) -> str:
    """JavaScript ``typeof`` for a value."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


def to_number(value: Any) -> int | float:
    """Coerce a value to a number (JavaScript ``Number()`` rules)."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text, 0) if text.lower().startswith(("0x", "0o", "0b")) else int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(value[0])
    return math.nan


def normalize_number(number: int | float) -> int | float:
    """Collapse integral floats back to ``int`` so ``4 / 2`` yields ``2``."""
    if isinstance(number, float) and number.is_integer() and abs(number) < 2**53:
        return int(number)
    return number
