"""Shared pytest configuration for plenti examples.

Provides the ``example_app`` fixture that executes the ``app.py`` next to
the requesting test. Every call runs app.py again in a fresh module, so
no test sees another test's Environment or scope classes.
"""

import importlib.util
from pathlib import Path

import pytest


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """Run the sibling app.py and return it as a module."""
    app_path = Path(request.path).parent / "app.py"
    spec = importlib.util.spec_from_file_location(f"plenti_example_{app_path.parent.name}", app_path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
