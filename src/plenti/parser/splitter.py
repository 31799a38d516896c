"""Split a component source into its four segments.

A component file looks like::

    ---
    prop name = "Sam";
    import Card from "./card.svelte";
    ---
    <p>Hi {name}</p>
    <script>...</script>
    <style>...</style>

The fence is the text between a pair of ``---`` marker lines. Script and
style blocks are recognized only as bare ``<script>``/``<style>`` tags;
``<script src="...">`` and friends stay in the markup untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from plenti.environment.exceptions import FormatConstraintError

FENCE_RE = re.compile(r"^---[ \t]*\n(.*?)^---[ \t]*$\n?", re.MULTILINE | re.DOTALL)
SCRIPT_RE = re.compile(r"<script>(.*?)</script>", re.DOTALL)
STYLE_RE = re.compile(r"<style>(.*?)</style>", re.DOTALL)

_BLOCKS = (("fence", FENCE_RE), ("script", SCRIPT_RE), ("style", STYLE_RE))


@dataclass(frozen=True, slots=True)
class Segments:
    """The four parts of a component source.

    ``fence``, ``script`` and ``style`` are ``None`` when the block is
    absent, which keeps "empty block" and "no block" apart for
    ``to_source()``.
    """

    fence: str | None
    markup: str
    script: str | None
    style: str | None

    def to_source(self) -> str:
        """Rebuild an equivalent component source."""
        parts = []
        if self.fence is not None:
            parts.append(f"---\n{self.fence}---\n")
        parts.append(self.markup)
        if self.script is not None:
            parts.append(f"<script>{self.script}</script>")
        if self.style is not None:
            parts.append(f"<style>{self.style}</style>")
        return "".join(parts)


def split_template(source: str, name: str | None = None) -> Segments:
    """Separate ``source`` into fence, markup, script and style.

    Raises:
        FormatConstraintError: A fence, script or style block occurs more
            than once. The error points at the second occurrence.
    """
    found: dict[str, re.Match[str]] = {}
    for kind, pattern in _BLOCKS:
        matches = list(pattern.finditer(source))
        if len(matches) > 1:
            raise FormatConstraintError(
                f"Only one {kind} block is allowed per component, found {len(matches)}",
                offset=matches[1].start(),
                name=name,
                source=source,
                suggestion=f"Merge the {kind} blocks into one.",
            )
        if matches:
            found[kind] = matches[0]

    # Remove regions back to front so earlier offsets stay valid.
    markup = source
    for match in sorted(found.values(), key=lambda m: m.start(), reverse=True):
        markup = markup[: match.start()] + markup[match.end() :]

    def body(kind: str) -> str | None:
        match = found.get(kind)
        return match.group(1) if match else None

    return Segments(fence=body("fence"), markup=markup, script=body("script"), style=body("style"))
