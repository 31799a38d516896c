"""Tests for the control-tree builder."""

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from plenti.environment.exceptions import StructuralParseError
from plenti.nodes import DynamicComponent, For, If, StaticComponent, Text
from plenti.parser import build_control_tree

from .strategies import balanced_markup


def _count(nodes, node_type):
    total = 0
    for node in nodes:
        if isinstance(node, node_type):
            total += 1
        if isinstance(node, If):
            total += _count(node.body, node_type) + _count(node.else_, node_type)
            for branch in node.elif_:
                total += _count(branch.body, node_type)
        elif isinstance(node, For):
            total += _count(node.body, node_type)
    return total


class TestDirectives:
    def test_plain_text(self):
        (node,) = build_control_tree("<p>Hello {name}</p>")
        assert node == Text(lineno=1, col_offset=0, offset=0, content="<p>Hello {name}</p>")

    def test_if_chain(self):
        a, node, c = build_control_tree("a{if x > 1}one{else if x}two{else if y}three{else}four{/if}c")
        assert a.content == "a" and c.content == "c"
        assert isinstance(node, If)
        assert node.condition == "x > 1"
        assert [b.condition for b in node.elif_] == ["x", "y"]
        assert node.body[0].content == "one"
        assert node.elif_[1].body[0].content == "three"
        assert node.else_[0].content == "four"

    def test_if_without_else(self):
        (node,) = build_control_tree("{if ok}yes{/if}")
        assert node.elif_ == ()
        assert node.else_ == ()

    def test_for_of_and_in(self):
        (loop,) = build_control_tree("{for let item of items}<li>{item}</li>{/for}")
        assert (loop.target, loop.iter, loop.kind) == ("item", "items", "of")
        (loop,) = build_control_tree("{for const i in items}{i}{/for}")
        assert (loop.target, loop.kind) == ("i", "in")

    def test_head_braces_and_quotes(self):
        (node,) = build_control_tree('{if tags.includes("}")}x{/if}')
        assert node.condition == 'tags.includes("}")'

    def test_nested(self):
        (loop,) = build_control_tree("{for let a of rows}{if a}<b>{a}</b>{/if}{/for}")
        assert isinstance(loop.body[0], If)

    def test_locations(self):
        nodes = build_control_tree("<ul>\n  {if ok}x{/if}\n</ul>")
        node = nodes[1]
        assert (node.lineno, node.col_offset, node.offset) == (2, 2, 7)


class TestComponents:
    def test_static_props(self):
        (node,) = build_control_tree('<Card title={post.title} {author} featured label="Hi" />')
        assert isinstance(node, StaticComponent)
        assert node.name == "Card"
        assert node.props == {
            "title": "post.title",
            "author": "author",
            "featured": "true",
            "label": '"Hi"',
        }

    def test_static_no_props(self):
        (node,) = build_control_tree("<Nav/>")
        assert node.name == "Nav"
        assert node.props == {}

    def test_dynamic(self):
        (node,) = build_control_tree("<='./cards/{item.kind}.svelte' {item} />")
        assert isinstance(node, DynamicComponent)
        assert node.path == "./cards/{item.kind}.svelte"
        assert node.props == {"item": "item"}

    def test_lowercase_tags_are_text(self):
        nodes = build_control_tree("<div><span>x</span></div>")
        assert len(nodes) == 1 and isinstance(nodes[0], Text)

    def test_component_between_text(self):
        nodes = build_control_tree("<ul><Item /></ul>")
        assert [type(n) for n in nodes] == [Text, StaticComponent, Text]


class TestStructuralErrors:
    @pytest.mark.parametrize(
        ("markup", "message"),
        [
            ("{/if}", "{/if} without a matching {if}"),
            ("{/for}", "{/for} without a matching {for}"),
            ("{if a}x", "Unclosed {if}"),
            ("{for let x of y}x", "Unclosed {for}"),
            ("{if a}{else}x", "Unclosed {if}"),
            ("{else}", "{else} outside of an open {if}"),
            ("{for let x of y}{else}{/for}", "{else} outside of an open {if} (inside a {for})"),
            ("{if a}{else}{else}{/if}", "{else} cannot follow {else}"),
            ("{if a}{else}{else if b}{/if}", "{else if} cannot follow {else}"),
            ("{if a}{for let x of y}{/if}{/for}", "{/if} closes an open {for}"),
            ("{for x of y}{/for}", "Malformed {for} head"),
            ("{if }{/if}", "{if} requires a condition"),
            ("{if a", "missing its closing"),
            ("<Card title={x}", "Unterminated component tag"),
            ("<Card>", "Component tags must be self-closing"),
            ("<Card title=x />", "needs a {expression} or quoted value"),
            ("<Card {a.b} />", "Invalid shorthand prop"),
            ("<='./x.svelte />", "Unterminated dynamic component path"),
        ],
    )
    def test_error(self, markup, message):
        with pytest.raises(StructuralParseError) as exc_info:
            build_control_tree(markup, "pages/bad.svelte")
        assert message in str(exc_info.value)
        assert exc_info.value.name == "pages/bad.svelte"

    def test_error_points_at_directive(self):
        markup = "<p>\n  ok\n</p>\n{/for}"
        with pytest.raises(StructuralParseError) as exc_info:
            build_control_tree(markup)
        err = exc_info.value
        assert err.offset == markup.index("{/for}")
        assert (err.lineno, err.col_offset) == (4, 0)

    def test_unclosed_points_at_opener(self):
        with pytest.raises(StructuralParseError) as exc_info:
            build_control_tree("a\n{if x}\nb")
        assert exc_info.value.lineno == 2


class TestBalanceProperties:
    @given(balanced_markup)
    def test_balanced_markup_builds(self, markup):
        nodes = build_control_tree(markup)
        assert _count(nodes, If) == markup.count("{if ")
        assert _count(nodes, For) == markup.count("{for ")

    @given(balanced_markup, st.data())
    def test_dropping_a_closer_fails(self, markup, data):
        closers = [i for i in range(len(markup)) if markup.startswith(("{/if}", "{/for}"), i)]
        assume(closers)
        index = data.draw(st.sampled_from(closers))
        width = 5 if markup.startswith("{/if}", index) else 6
        with pytest.raises(StructuralParseError):
            build_control_tree(markup[:index] + markup[index + width :])
