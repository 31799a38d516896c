"""Pytest configuration and fixtures for plenti tests."""

import re

import pytest

from plenti import DictLoader, Environment, Evaluator, ScopeClassGenerator

SCOPE_CLASS_RE = re.compile(r"plenti-[A-Za-z0-9]{6}")


@pytest.fixture
def env():
    """Create a seeded Environment without a loader."""
    return Environment(seed=1234)


@pytest.fixture
def evaluator():
    """Create the default expression evaluator."""
    return Evaluator()


@pytest.fixture
def generator():
    """Create a seeded scope class generator."""
    return ScopeClassGenerator(seed=42)


@pytest.fixture
def env_with_loader():
    """Create a seeded Environment with a small component tree."""
    loader = DictLoader(
        {
            "pages/index.svelte": (
                "---\n"
                'import Greeting from "../components/greeting.svelte";\n'
                'prop who = "world";\n'
                "---\n"
                "<main><Greeting name={who} /></main>"
            ),
            "pages/twins.svelte": (
                "---\n"
                'import Greeting from "../components/greeting.svelte";\n'
                "---\n"
                '<div><Greeting name="Ann" /><Greeting name="Bob" /></div>'
            ),
            "components/greeting.svelte": (
                "---\n"
                'prop name = "stranger";\n'
                "let shout = name.toUpperCase();\n"
                "---\n"
                "<p>Hello {shout}</p>\n"
                "<script>let clicks = 0;</script>\n"
                "<style>p { color: teal; }</style>"
            ),
            "components/self.svelte": (
                "---\n"
                'import Self from "./self.svelte";\n'
                "---\n"
                "<div><Self /></div>"
            ),
        }
    )
    return Environment(loader=loader, seed=1234)


def scope_classes(markup: str) -> list[str]:
    """All generated scope classes in ``markup``, in document order."""
    return SCOPE_CLASS_RE.findall(markup)


def assert_contains(result: str, *expected_parts: str) -> None:
    """Assert ``result`` contains all expected parts.

    Args:
        result: Rendered output.
        expected_parts: Strings that should all be present.
    """
    for part in expected_parts:
        assert part in result, (
            f"Output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {result!r}"
        )
