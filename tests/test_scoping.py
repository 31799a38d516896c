"""Tests for per-instance HTML scoping."""

import pytest

from plenti.isolation.css import scope_css
from plenti.isolation.scoping import interpolate, scope_fragment, scope_html, to_template_literal

from .conftest import scope_classes


@pytest.fixture
def scope(generator, evaluator):
    def run(markup, bindings=None, **kwargs):
        return scope_html(markup, bindings or {}, generator=generator, evaluator=evaluator, **kwargs)

    return run


class TestIdentity:
    def test_repeated_bare_tags_share_class(self, scope):
        markup, elements = scope("<li>a</li><li>b</li>")
        first, second = scope_classes(markup)
        assert first == second
        assert len(elements) == 2

    def test_id_wins(self, scope):
        markup, _ = scope('<h2 id="t">a</h2><h2 id="t">b</h2><h2>c</h2>')
        a, b, c = scope_classes(markup)
        assert a == b
        assert c != a

    def test_class_overlap(self, scope):
        markup, _ = scope('<p class="a b">x</p><p class="b c">y</p><p class="d">z</p>')
        first, second, third = scope_classes(markup)
        assert first == second
        assert third != first
        assert markup.startswith(f'<p class="a b {first}">')

    def test_classed_and_bare_share_type_selector(self, scope):
        markup, elements = scope('<li class="x">1</li><li>2</li>')
        classed, bare = scope_classes(markup)
        assert classed != bare
        assert scope_css("li { margin: 0; }", elements) == f"li:is(.{classed},.{bare}) {{ margin: 0; }}"

    def test_nested_instance_is_skipped(self, scope):
        markup, elements = scope('<div><span class="plenti-ZZZZZZ">in<b>deep</b></span></div>')
        assert [e.tag for e in elements] == ["div"]
        assert "<b>deep</b>" in markup
        assert '<span class="plenti-ZZZZZZ">' in markup

    def test_fingerprint(self, scope):
        _, (element,) = scope('<a id="home" class="nav big">x</a>')
        assert (element.tag, element.id, element.classes) == ("a", "home", ("nav", "big"))
        assert element.scope_class.startswith("plenti-")

    def test_raw_text_elements_not_entered(self, scope):
        markup, elements = scope("<script>let a = {b: 1};</script>")
        assert "let a = {b: 1};</script>" in markup
        assert "x-text" not in markup
        assert [e.tag for e in elements] == ["script"]


class TestInterpolation:
    def test_text_binding_on_parent(self, scope):
        markup, _ = scope("<p>Hi {name}</p>", {"name": "Sam"})
        (cls,) = scope_classes(markup)
        assert markup == f'<p class="{cls}" x-text="`Hi ${{name}}`">Hi Sam</p>'

    def test_existing_x_text_kept(self, scope):
        markup, _ = scope('<p x-text="label">{name}</p>', {"name": "Sam"})
        assert 'x-text="label"' in markup
        assert markup.count("x-text") == 1

    def test_root_text_only_gets_literal(self, scope):
        markup, _ = scope("Hi {name}", {"name": "Sam"})
        assert markup == "Hi Sam"

    def test_attribute_binding(self, scope):
        markup, _ = scope('<a href="/p/{slug}">x</a>', {"slug": "hi"})
        (cls,) = scope_classes(markup)
        assert markup == f'<a href="/p/hi" :href="`/p/${{slug}}`" class="{cls}">x</a>'

    def test_reserved_attributes_untouched(self, scope):
        markup, _ = scope('<p x-data="{open: false}" :title="{t}">x</p>')
        assert 'x-data="{open: false}"' in markup
        assert ':title="{t}"' in markup
        assert "::" not in markup

    def test_failed_expression_is_empty(self, scope):
        markup, _ = scope("<p>[{missing.x}]</p>")
        assert "[]</p>" in markup

    def test_interpolate(self, evaluator):
        assert interpolate("a {x} b {y + 1}", {"x": "1", "y": 1}, evaluator) == "a 1 b 2"
        assert interpolate("open {x", {"x": 1}, evaluator) == "open {x"
        assert interpolate("{nope}", {}, evaluator) == ""

    def test_to_template_literal(self):
        assert to_template_literal('Hi "{n}"') == "`Hi '${n}'`"


class TestHydrationAttributes:
    def test_page_data_on_html(self, scope):
        markup, _ = scope("<html><body></body></html>", page_data={"title": "T"})
        assert "x-data=\"{title: 'T'}\"" in markup

    def test_no_page_data(self, scope):
        markup, _ = scope("<html></html>", page_data={})
        assert "x-data" not in markup

    def test_fragment_top_level_elements(self, generator, evaluator):
        markup, _ = scope_fragment(
            "<h2>a</h2> text <p><b>b</b></p>",
            {},
            generator=generator,
            evaluator=evaluator,
            props={"title": "post.title"},
            fence_logic="let x = 1;",
        )
        assert markup.count("x-data=") == 2
        assert markup.count("x-init=") == 2
        b_tag = markup[markup.index("<b ") : markup.index(">b<")]
        assert "plenti-" in b_tag
        assert "x-data" not in b_tag

    def test_fragment_without_props(self, generator, evaluator):
        markup, _ = scope_fragment("<h2>a</h2>", {}, generator=generator, evaluator=evaluator)
        assert "x-data" not in markup
