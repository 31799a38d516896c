"""Tests for fence processing."""

import pytest

from plenti.parser.fence import Import, apply_props, extract_imports, make_attr_str, process_fence

FENCE = """import Card from "../components/card.svelte";
prop title = "Untitled";
prop tags;
let count = tags.length;
"""


def _process(fence, props=None, name="pages/index.svelte", *, evaluator):
    return process_fence(fence, props or {}, name=name, evaluator=evaluator)


class TestImports:
    def test_paths_resolve_against_component(self):
        code, imports = extract_imports(FENCE, "pages/index.svelte")
        assert imports == (Import("Card", "components/card.svelte"),)
        assert "import" not in code

    def test_single_quotes_and_root_paths(self):
        _, imports = extract_imports("import Nav from '/layout/nav.svelte'", "pages/a/b.svelte")
        assert imports == (Import("Nav", "layout/nav.svelte"),)

    def test_last_import_wins(self, evaluator):
        fence = 'import A from "./one.svelte";\nimport A from "./two.svelte";\n'
        result = _process(fence, evaluator=evaluator)
        assert result.resolve("A").path == "pages/two.svelte"
        assert result.resolve("B") is None


class TestProps:
    def test_supplied_props_are_inlined(self):
        code, names = apply_props('prop title = "Untitled";\nprop tags;', {"tags": ["a", "b"]})
        assert names == ("title", "tags")
        assert code == 'let title = "Untitled";\nlet tags = ["a", "b"];'

    def test_supplied_prop_overrides_default(self, evaluator):
        result = _process(FENCE, {"title": "Home", "tags": ["x"]}, evaluator=evaluator)
        assert result.bindings["title"] == "Home"
        assert result.bindings["count"] == 1

    def test_defaults_and_missing_props(self, evaluator):
        result = _process(FENCE, evaluator=evaluator)
        assert result.bindings == {"title": "Untitled", "tags": None, "count": None}
        assert result.prop_names == ("title", "tags")

    def test_undeclared_props_are_still_bound(self, evaluator):
        result = _process("let a = 1;\n", {"extra": True}, evaluator=evaluator)
        assert result.bindings == {"extra": True, "a": 1}


class TestFenceLogic:
    def test_excludes_imports_and_props(self, evaluator):
        result = _process(FENCE, {"tags": []}, evaluator=evaluator)
        assert result.fence_logic == "let count = tags.length;"

    def test_make_attr_str(self):
        code = 'let a = "it\'s"; // note\nlet b = 2;\n'
        assert make_attr_str(code) == "let a = 'it\\'s'; let b = 2;"

    def test_newline_terminated_statements_stay_apart(self):
        code = "let a = 1\r\nlet b = a +\n  1\n\n  let c = [a,\n b]\n"
        assert make_attr_str(code) == "let a = 1; let b = a + 1; let c = [a, b]"

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("if (a) {\n  b = 1\n}\nelse {\n  b = 2\n}", "if (a) { b = 1 } else { b = 2 }"),
            ("let xs = items\n  .map(f)\nlet n = xs.length", "let xs = items .map(f); let n = xs.length"),
            ("let s = 'open", "let s = \\'open"),
        ],
    )
    def test_line_joins(self, code, expected):
        assert make_attr_str(code) == expected

    def test_empty_fence(self, evaluator):
        result = _process(None, {"name": "Sam"}, evaluator=evaluator)
        assert result.code == ""
        assert result.fence_logic == ""
        assert result.imports == ()
        assert result.bindings == {"name": "Sam"}

    def test_fault_leaves_other_bindings(self, evaluator):
        result = _process("let a = boom();\nlet b = 'ok';\n", evaluator=evaluator)
        assert result.bindings == {"a": None, "b": "ok"}
