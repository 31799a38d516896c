"""Tests for per-render context state."""

import pytest

from plenti.environment.exceptions import TemplateRuntimeError
from plenti.render_context import (
    child_render_context,
    get_render_context,
    get_render_context_required,
    render_context,
)


class TestRenderContext:
    def test_outside_render(self):
        assert get_render_context() is None
        with pytest.raises(RuntimeError, match="Not in a render context"):
            get_render_context_required()

    def test_root_context(self):
        with render_context("pages/index.svelte", "<p></p>", max_depth=4) as ctx:
            assert get_render_context() is ctx
            assert ctx.depth == 0
            assert ctx.component_stack == ("pages/index.svelte",)
        assert get_render_context() is None

    def test_child_context_restores_parent(self):
        with render_context("page") as root:
            with child_render_context("card") as child:
                assert child.depth == 1
                assert child.component_stack == ("page", "card")
                assert get_render_context() is child
            assert get_render_context() is root

    def test_depth_limit(self):
        with render_context("page", max_depth=1):
            with child_render_context("a"):
                with pytest.raises(TemplateRuntimeError) as exc_info:
                    with child_render_context("b"):
                        pass
        assert exc_info.value.component_stack == ["page", "a", "b"]
        assert exc_info.value.template_name == "a"

    def test_child_requires_root(self):
        with pytest.raises(RuntimeError):
            with child_render_context("card"):
                pass
