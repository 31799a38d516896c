"""Tests for script isolation."""

import logging
import re

from plenti.isolation.classes import ScopeClassGenerator
from plenti.isolation.js import scope_js
from plenti.isolation.scoping import ScopedElement

P = ScopedElement(tag="p", id="", classes=(), scope_class="plenti-AB12CD")
TOKEN = r"[A-Za-z0-9]{6}"


def _suffix(out: str, name: str) -> str:
    match = re.search(rf"\b{name}_plenti_({TOKEN})", out)
    assert match, out
    return match.group(1)


class TestRenames:
    def test_declarations_and_references(self, generator):
        out = scope_js("let count = 0;\ncount += 1;", [], generator=generator)
        token = _suffix(out, "count")
        assert out == f"let count_plenti_{token} = 0;\ncount_plenti_{token} += 1;"

    def test_each_name_gets_its_own_token(self, generator):
        out = scope_js("let a = 1, b = 2; const c = a + b;", [], generator=generator)
        assert len({_suffix(out, "a"), _suffix(out, "b"), _suffix(out, "c")}) == 3

    def test_members_and_keys_kept(self, generator):
        out = scope_js("let count = 0; obj.count = count; let o = {count: count};", [], generator=generator)
        token = _suffix(out, "count")
        assert "obj.count = " in out
        assert f"{{count: count_plenti_{token}}}" in out

    def test_shorthand_expanded(self, generator):
        out = scope_js("let n = 1; let o = {n};", [], generator=generator)
        assert f"{{n: n_plenti_{_suffix(out, 'n')}}}" in out

    def test_method_key_kept(self, generator):
        out = scope_js("const api = {load() { return 1; }}; let load = 2;", [], generator=generator)
        assert "{load() {" in out

    def test_destructuring(self, generator):
        out = scope_js("const {a, b: c} = obj; a + c;", [], generator=generator)
        assert "b: c_plenti_" in out
        assert f"a: a_plenti_{_suffix(out, 'a')}" in out

    def test_template_substitutions(self, generator):
        out = scope_js("let n = 1; let s = `${n} items`;", [], generator=generator)
        assert f"`${{n_plenti_{_suffix(out, 'n')}}} items`" in out

    def test_asi_declarations(self, generator):
        out = scope_js("let a = 1\nlet b = a", [], generator=generator)
        assert _suffix(out, "a") and _suffix(out, "b")

    def test_nested_and_var_left_alone(self, generator):
        script = "var g = 1;\nfunction f() { let inner = 1; return inner; }"
        assert scope_js(script, [], generator=generator) == script

    def test_already_renamed_left_alone(self, generator):
        script = "let n_plenti_abcdef = 1;"
        assert scope_js(script, [], generator=generator) == script

    def test_instances_differ(self):
        generator = ScopeClassGenerator(seed=3)
        first = scope_js("let n = 1;", [], generator=generator)
        second = scope_js("let n = 1;", [], generator=generator)
        assert first != second


class TestQuerySelectors:
    def test_selector_scoped(self, generator):
        out = scope_js('let el = document.querySelector("p");', [P], generator=generator)
        assert 'document.querySelector("p.plenti-AB12CD")' in out

    def test_query_all_single_quotes(self, generator):
        out = scope_js("document.querySelectorAll('div > p')", [P], generator=generator)
        assert out == "document.querySelectorAll('div > p.plenti-AB12CD')"

    def test_already_scoped_selector(self, generator):
        script = 'document.querySelector("p.plenti-AB12CD")'
        assert scope_js(script, [P], generator=generator) == script

    def test_non_literal_argument(self, generator):
        script = "document.querySelector(sel)"
        assert scope_js(script, [P], generator=generator) == script

    def test_selector_reaches_classed_elements(self, generator):
        note = ScopedElement(tag="p", id="", classes=("note",), scope_class="plenti-NOTE01")
        out = scope_js('document.querySelectorAll("p")', [P, note], generator=generator)
        assert out == 'document.querySelectorAll("p:is(.plenti-AB12CD,.plenti-NOTE01)")'

    def test_class_name_lookup(self, generator):
        note = ScopedElement(tag="p", id="", classes=("note",), scope_class="plenti-NOTE01")
        out = scope_js('document.getElementsByClassName("big note")', [P, note], generator=generator)
        assert out == 'document.getElementsByClassName("big note plenti-NOTE01")'
        assert scope_js(out, [P, note], generator=generator) == out

    def test_tag_name_lookup_left_alone(self, generator):
        script = 'document.getElementsByTagName("p")'
        assert scope_js(script, [P], generator=generator) == script


class TestFailures:
    def test_untokenizable_script_unchanged(self, generator, caplog):
        script = "let s = 'open"
        with caplog.at_level(logging.WARNING, logger="plenti.isolation.js"):
            assert scope_js(script, [P], generator=generator) == script
        assert "could not be tokenized" in caplog.text

    def test_blank_script(self, generator):
        assert scope_js("  \n", [P], generator=generator) == "  \n"
