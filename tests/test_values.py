"""Tests for the template value union helpers."""

import math

import pytest
from hypothesis import given

from plenti.expressions.values import (
    format_value,
    is_strictly_true,
    is_truthy,
    stringify,
    to_number,
    to_value,
)

from .strategies import template_values


class TestToValue:
    """Normalizing host objects into the value union."""

    def test_scalars_pass_through(self):
        for value in (None, True, 3, 2.5, "x"):
            assert to_value(value) is value

    def test_tuples_become_lists(self):
        assert to_value(("cat", ("dog",))) == ["cat", ["dog"]]

    def test_mapping_keys_become_strings(self):
        assert to_value({1: {2: "b"}}) == {"1": {"2": "b"}}

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError, match="set"):
            to_value({"tags": {"a", "b"}})


class TestFormatValue:
    """The total, type-directed formatter."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "null"),
            (True, "true"),
            (False, "false"),
            (17, "17"),
            (2.0, "2"),
            (2.5, "2.5"),
            (math.inf, "Infinity"),
            ("Sam", '"Sam"'),
            ('say "hi"\n', '"say \\"hi\\"\\n"'),
            (["cat", 1], '["cat", 1]'),
            ({}, "{}"),
        ],
    )
    def test_literals(self, value, expected):
        assert format_value(value) == expected

    def test_map_keys_sorted(self):
        assert format_value({"b": 1, "a": [True, None]}) == "{a: [true, null], b: 1}"

    def test_non_identifier_keys_quoted(self):
        assert format_value({"data-id": 1}) == '{"data-id": 1}'

    @given(value=template_values)
    def test_total_and_deterministic(self, value):
        assert format_value(value) == format_value(to_value(value))

    @given(value=template_values)
    def test_round_trips_through_evaluator(self, value):
        from plenti import Evaluator

        assert Evaluator().evaluate(format_value(value), {}) == value


class TestStringify:
    """Display text used for literal interpolation fallbacks."""

    def test_none_is_empty(self):
        assert stringify(None) == ""

    def test_integral_float_has_no_fraction(self):
        assert stringify(4.0) == "4"

    def test_lists_join_with_commas(self):
        assert stringify(["a", 1, [2, 3]]) == "a,1,2,3"

    def test_maps(self):
        assert stringify({"a": 1}) == "[object Object]"


class TestTruthiness:
    """Strict and JavaScript truthiness."""

    def test_only_true_is_strictly_true(self):
        assert is_strictly_true(True)
        for value in (1, "yes", [1], {"a": 1}, None, False):
            assert not is_strictly_true(value)

    def test_javascript_truthiness(self):
        assert is_truthy([]) and is_truthy({}) and is_truthy("0")
        for value in (None, False, 0, 0.0, "", math.nan):
            assert not is_truthy(value)

    def test_to_number(self):
        assert to_number("42") == 42
        assert to_number(" 1.5 ") == 1.5
        assert to_number(True) == 1
        assert math.isnan(to_number("abc"))
