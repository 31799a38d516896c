"""Tests for the components example."""

import re


class TestComponentsApp:
    """Verify nested components render and isolate end-to-end."""

    def test_one_card_per_feature(self, example_app) -> None:
        assert example_app.output.count('<li class="card ') == 3
        assert "ISOLATION" in example_app.output
        assert "DIRECTIVES" in example_app.output
        assert "HYDRATION" in example_app.output

    def test_card_props_are_rendered(self, example_app) -> None:
        assert "Scoped CSS per instance" in example_app.output
        assert "Props recomputed in the browser" in example_app.output

    def test_dynamic_badges_resolved(self, example_app) -> None:
        assert example_app.output.count("badge-new") == 1
        assert "new!" in example_app.output

    def test_else_branch_skipped(self, example_app) -> None:
        assert "Plenty to read." in example_app.output
        assert "Short list." not in example_app.output

    def test_cards_have_distinct_scope_classes(self, example_app) -> None:
        classes = re.findall(r'<li class="card (plenti-\w{6})', example_app.output)
        assert len(set(classes)) == 3

    def test_card_style_emitted_per_instance(self, example_app) -> None:
        assert example_app.style.count(".card.plenti-") == 3
        assert "h1.plenti-" in example_app.style

    def test_page_script_scoped(self, example_app) -> None:
        assert "let heading_plenti_" in example_app.script
        assert 'querySelector("h1.plenti-' in example_app.script

    def test_markup_style_and_script_agree(self, example_app) -> None:
        match = re.search(r'<h1 class="(plenti-\w{6})"', example_app.output)
        assert match is not None
        h1 = match.group(1)
        assert f"h1.{h1} {{ font-size: 2rem; }}" in example_app.style
        assert f'document.querySelector("h1.{h1}")' in example_app.script

    def test_page_data_on_html(self, example_app) -> None:
        assert "<html" in example_app.output
        assert "x-data=" in example_app.output
