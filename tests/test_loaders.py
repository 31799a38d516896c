"""Tests for component loaders and path resolution."""

import pytest

from plenti.environment.exceptions import TemplateNotFoundError
from plenti.environment.loaders import ChoiceLoader, DictLoader, FileSystemLoader, FunctionLoader, join_path


class TestJoinPath:
    @pytest.mark.parametrize(
        ("current", "target", "expected"),
        [
            ("pages/index.svelte", "../components/card.svelte", "components/card.svelte"),
            ("pages/index.svelte", "./nav.svelte", "pages/nav.svelte"),
            ("pages/blog/post.svelte", "/layout/nav.svelte", "layout/nav.svelte"),
            ("index.svelte", "../../x.svelte", "x.svelte"),
            (None, "./card.svelte", "card.svelte"),
            ("a/b.svelte", "c/../d.svelte", "a/d.svelte"),
        ],
    )
    def test_join(self, current, target, expected):
        assert join_path(current, target) == expected


class TestFileSystemLoader:
    def test_load(self, tmp_path):
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "index.svelte").write_text("<h1>Hi</h1>")
        source, filename = FileSystemLoader(tmp_path).get_source("pages/index.svelte")
        assert source == "<h1>Hi</h1>"
        assert filename == str(tmp_path / "pages" / "index.svelte")

    def test_search_order(self, tmp_path):
        site, theme = tmp_path / "site", tmp_path / "theme"
        site.mkdir()
        theme.mkdir()
        (site / "nav.svelte").write_text("site")
        (theme / "nav.svelte").write_text("theme")
        (theme / "footer.svelte").write_text("footer")
        loader = FileSystemLoader([site, str(theme)])
        assert loader.roots == (site, theme)
        assert loader.get_source("nav.svelte")[0] == "site"
        assert loader.get_source("footer.svelte")[0] == "footer"
        assert loader.list_components() == ["footer.svelte", "nav.svelte"]

    def test_missing(self, tmp_path):
        with pytest.raises(TemplateNotFoundError, match="'nope.svelte' not found"):
            FileSystemLoader(tmp_path).get_source("nope.svelte")


class TestDictLoader:
    def test_load(self):
        assert DictLoader({"a.svelte": "A"}).get_source("a.svelte") == ("A", None)

    def test_suggestion(self):
        with pytest.raises(TemplateNotFoundError, match="Did you mean 'card.svelte'"):
            DictLoader({"card.svelte": ""}).get_source("cards.svelte")

    def test_lists_available(self):
        with pytest.raises(TemplateNotFoundError, match="Available: a.svelte"):
            DictLoader({"a.svelte": ""}).get_source("zzzzzzzzzzzz.html")


class TestChoiceLoader:
    def test_first_match_wins(self):
        loader = ChoiceLoader([DictLoader({"nav.svelte": "site"}), DictLoader({"nav.svelte": "theme", "f.svelte": "F"})])
        assert loader.get_source("nav.svelte")[0] == "site"
        assert loader.get_source("f.svelte")[0] == "F"
        assert loader.list_components() == ["f.svelte", "nav.svelte"]

    def test_none_match(self):
        with pytest.raises(TemplateNotFoundError, match="any of 2 loaders"):
            ChoiceLoader([DictLoader({}), DictLoader({})]).get_source("x.svelte")


class TestFunctionLoader:
    def test_return_forms(self):
        sources = {"a.svelte": "A", "b.svelte": ("B", "db://b")}
        loader = FunctionLoader(sources.get)
        assert loader.get_source("a.svelte") == ("A", "<function>")
        assert loader.get_source("b.svelte") == ("B", "db://b")
        with pytest.raises(TemplateNotFoundError):
            loader.get_source("c.svelte")
