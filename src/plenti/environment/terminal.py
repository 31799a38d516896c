"""Terminal color helpers for diagnostics.

ANSI colors with TTY detection. Honors ``NO_COLOR`` (https://no-color.org/)
and ``FORCE_COLOR``.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "bright_red": "\033[91m",
}

ColorName = Literal["reset", "bold", "dim", "yellow", "cyan", "green", "bright_red"]

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    """Check if the terminal supports colors and the user allows them."""
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap text in ANSI codes when colors are enabled."""
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_COLORS.get(color, "") for color in colors)
    if not prefix:
        return text
    return f"{prefix}{text}{_COLORS['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI color codes from text.

    Example:
        >>> strip_colors("\033[91mError\033[0m")
        'Error'
    """
    return _ANSI_ESCAPE.sub("", text)


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    return colorize(text, "bright_red")


def hint(text: str) -> str:
    return colorize(text, "green")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def format_error_header(code: str | None, message: str) -> str:
    """Format an error header with an optional code prefix.

    Example:
        >>> format_error_header("P-PAR-001", "closing {/if} without an open {if}")
        'P-PAR-001: closing {/if} without an open {if}'
    """
    if code:
        return f"{error_code(code)}: {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Format a numbered source line, marking the error line with ``>``."""
    marker = ">" if is_error else " "
    num_colored = line_number(f"{marker}{lineno:>3}")
    content_colored = error_line(content) if is_error else dim_text(content)
    return f"{num_colored} | {content_colored}"
