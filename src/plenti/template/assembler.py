"""Page asset assembly.

Every rendered instance leaves a ``ScopeStackEntry`` holding its scoped
elements and its raw style and script. The assembler isolates each entry's
assets against that entry's elements and concatenates the results in
stack order, so children come before their parents and the page comes
last.
"""

from __future__ import annotations

from collections.abc import Sequence

from plenti.isolation.classes import ScopeClassGenerator
from plenti.isolation.css import scope_css
from plenti.isolation.js import scope_js
from plenti.isolation.scoping import ScopeStackEntry


def assemble(
    stack: Sequence[ScopeStackEntry],
    *,
    generator: ScopeClassGenerator,
) -> tuple[str, str]:
    """Return the page's ``(style, script)``.

    Entries without a style or script contribute nothing; the others are
    separated by a newline so consecutive scripts never run together.
    """
    styles: list[str] = []
    scripts: list[str] = []
    for entry in stack:
        if entry.style.strip():
            styles.append(scope_css(entry.style, entry.scoped_elements, prefix=generator.prefix))
        if entry.script.strip():
            scripts.append(scope_js(entry.script, entry.scoped_elements, generator=generator))
    return "\n".join(styles), "\n".join(scripts)
