"""Tests for CSS tokenizing and scope-class rewriting."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from plenti.isolation.css import scope_css, scope_selector, tokenize_css
from plenti.isolation.scoping import ScopedElement

H1 = ScopedElement(tag="h1", id="title", classes=(), scope_class="plenti-AAAAAA")
P = ScopedElement(tag="p", id="", classes=("lead",), scope_class="plenti-BBBBBB")
SPAN = ScopedElement(tag="span", id="", classes=("red",), scope_class="plenti-CCCCCC")
ELEMENTS = [H1, P, SPAN]


class TestScopeCss:
    def test_type_selector(self):
        p = ScopedElement(tag="p", id="", classes=(), scope_class="plenti-AB12CD")
        assert scope_css("p { color: red; }", [p]) == "p.plenti-AB12CD { color: red; }"

    @pytest.mark.parametrize(
        ("style", "expected"),
        [
            ("#title { margin: 0; }", "#title.plenti-AAAAAA { margin: 0; }"),
            (".lead { margin: 0; }", ".lead.plenti-BBBBBB { margin: 0; }"),
            ("p { margin: 0; }", "p.plenti-BBBBBB { margin: 0; }"),
            ("h1:hover { margin: 0; }", "h1.plenti-AAAAAA:hover { margin: 0; }"),
            ("p::before { content: \"p\"; }", "p.plenti-BBBBBB::before { content: \"p\"; }"),
            ("p[data-x=lead] { margin: 0; }", "p.plenti-BBBBBB[data-x=lead] { margin: 0; }"),
            ("h1 > p, .lead { margin: 0; }", "h1.plenti-AAAAAA > p.plenti-BBBBBB, .lead.plenti-BBBBBB { margin: 0; }"),
            ("nav a { margin: 0; }", "nav a { margin: 0; }"),
            ("/* p */ p { margin: 0; }", "/* p */ p.plenti-BBBBBB { margin: 0; }"),
        ],
    )
    def test_selectors(self, style, expected):
        assert scope_css(style, ELEMENTS) == expected

    def test_nesting_at_rules(self):
        style = "@media (max-width: 600px) { p { margin: 0; } }"
        assert scope_css(style, ELEMENTS) == "@media (max-width: 600px) { p.plenti-BBBBBB { margin: 0; } }"

    def test_keyframes_untouched(self):
        style = "@keyframes lead { from { opacity: 0; } to { opacity: 1; } }"
        assert scope_css(style, ELEMENTS) == style

    def test_statement_at_rule(self):
        style = '@import url("p.css");\np { margin: 0; }'
        assert scope_css(style, ELEMENTS) == '@import url("p.css");\np.plenti-BBBBBB { margin: 0; }'

    def test_value_matching_a_class_is_rewritten(self):
        # Known limitation: a value spelled like a known class is treated as one.
        style = "span { color: red; }"
        assert scope_css(style, ELEMENTS) == "span.plenti-CCCCCC { color: red.plenti-CCCCCC; }"

    def test_no_elements(self):
        assert scope_css("p { margin: 0; }", []) == "p { margin: 0; }"

    @pytest.mark.parametrize(
        "style",
        [
            "p { margin: 0; }",
            "h1 > p, .lead, #title:hover { margin: 0; }",
            "span { color: red; }",
            "@media print { .lead { display: none; } }",
        ],
    )
    def test_idempotent(self, style):
        once = scope_css(style, ELEMENTS)
        assert scope_css(once, ELEMENTS) == once


class TestScopeSelector:
    def test_selector_list(self):
        assert scope_selector("h1 + .lead", ELEMENTS) == "h1.plenti-AAAAAA + .lead.plenti-BBBBBB"

    def test_already_scoped(self):
        assert scope_selector("p.plenti-BBBBBB", ELEMENTS) == "p.plenti-BBBBBB"


BARE_P = ScopedElement(tag="p", id="", classes=(), scope_class="plenti-DDDDDD")
MIXED = [BARE_P, P]


class TestSharedTags:
    def test_type_selector_reaches_every_scope_class(self):
        assert scope_css("p { color: red; }", MIXED) == "p:is(.plenti-DDDDDD,.plenti-BBBBBB) { color: red; }"

    def test_class_selector_stays_narrow(self):
        assert scope_css(".lead { color: red; }", MIXED) == ".lead.plenti-BBBBBB { color: red; }"

    def test_pseudo_after_type_selector(self):
        out = scope_css("p:hover { color: red; }", MIXED)
        assert out == "p:is(.plenti-DDDDDD,.plenti-BBBBBB):hover { color: red; }"

    def test_idempotent(self):
        once = scope_css("div > p, p.lead { margin: 0; }", MIXED)
        assert scope_css(once, MIXED) == once

    def test_selector_string(self):
        assert scope_selector("ul p", MIXED) == "ul p:is(.plenti-DDDDDD,.plenti-BBBBBB)"


class TestTokenizer:
    def test_token_kinds(self):
        kinds = [t.type.value for t in tokenize_css('a.b #c{d:"e"}') if t.type.value != "whitespace"]
        assert kinds == ["ident", "delim", "ident", "hash", "{", "ident", ":", "string", "}"]

    @given(st.text(max_size=80))
    def test_lossless(self, text):
        assert "".join(t.value for t in tokenize_css(text)) == text
