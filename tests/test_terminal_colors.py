"""Tests for terminal color utilities."""

from plenti.environment import terminal


class TestColorDetection:
    """Test terminal color detection logic."""

    def test_no_color_disables(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        assert not terminal._should_use_colors()

    def test_force_color_wins(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert terminal._should_use_colors()

    def test_colorize_returns_plain_when_disabled(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        result = terminal.colorize("Error", "bright_red", "bold")
        assert result == "Error"
        assert "\033[" not in result

    def test_colorize_adds_codes_when_enabled(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        result = terminal.colorize("Error", "bright_red", "bold")
        assert "\033[91m" in result
        assert "\033[1m" in result
        assert result.endswith("\033[0m")

    def test_strip_colors_removes_ansi_codes(self):
        assert terminal.strip_colors("\033[91m\033[1mError\033[0m") == "Error"


class TestSemanticHelpers:
    """Semantic helpers pick a fixed color each."""

    def test_helpers(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        assert "\033[36m" in terminal.location("pages/index.svelte:4")
        assert "\033[32m" in terminal.hint("Hint:")
        assert "\033[2m" in terminal.dim_text("|")

    def test_format_error_header(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        result = terminal.format_error_header("P-PAR-001", "Unclosed {if} directive")
        assert terminal.strip_colors(result) == "P-PAR-001: Unclosed {if} directive"
        assert terminal.format_error_header(None, "plain") == "plain"

    def test_format_source_line(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert terminal.format_source_line(7, "{/if}", is_error=True) == ">  7 | {/if}"
        assert terminal.format_source_line(12, "<p>") == "  12 | <p>"
