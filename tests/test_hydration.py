"""Tests for client hydration attributes."""

import pytest

from plenti.isolation.hydration import PARENT_DATA, component_attrs, page_data, route_to_parent


class TestPageData:
    def test_bindings_as_object_literal(self):
        assert page_data({"title": "Home", "tags": ["a"]}) == "{tags: ['a'], title: 'Home'}"

    def test_urls_survive(self):
        assert page_data({"url": "http://x.dev/a"}) == "{url: 'http://x.dev/a'}"


class TestRouteToParent:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("who", f"{PARENT_DATA}.who"),
            ("post.title", f"{PARENT_DATA}.post.title"),
            ("a?.b", f"{PARENT_DATA}.a?.b"),
            ("{key: val}", f"{{key: {PARENT_DATA}.val}}"),
            ("Math.max(n, 1)", f"Math.max({PARENT_DATA}.n, 1)"),
            ('"literal"', '"literal"'),
            ("true && null", "true && null"),
            ("'open", "'open"),
        ],
    )
    def test_route(self, expr, expected):
        assert route_to_parent(expr) == expected


class TestComponentAttrs:
    def test_attrs(self):
        x_data, x_init = component_attrs({"b": "y", "a": '"x"'}, "let z = 1;")
        assert x_data == "{_fence: `let z = 1;`, a: undefined, b: undefined, }"
        getter_a = f"new Function('a, b', `${{_fence}}; return a;`)('x', {PARENT_DATA}.y)"
        assert x_init.startswith(f"a = {getter_a},$watch('{PARENT_DATA}', () => a = {getter_a}),b = ")
        assert x_init.count("$watch(") == 2

    def test_no_quotes_break_the_attribute(self):
        _, x_init = component_attrs({"t": 'name + " (draft)"'}, "")
        assert '"' not in x_init
