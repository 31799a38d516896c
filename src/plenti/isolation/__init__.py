"""Style and script isolation.

One rendered component instance is isolated in three steps:

1. ``scope_html``/``scope_fragment`` walk its markup, give every element a
   scope class and record a ``ScopedElement`` per element;
2. ``scope_css`` appends the matching scope classes to its stylesheet's
   selectors;
3. ``scope_js`` renames its script's top-level declarations and rewrites
   ``querySelector`` selectors.

The scope classes come from a shared ``ScopeClassGenerator`` so no two
instances on a page ever share one.
"""

from plenti.isolation.classes import ScopeClassGenerator
from plenti.isolation.css import scope_css, scope_selector, tokenize_css
from plenti.isolation.html import HtmlTree, parse_html
from plenti.isolation.js import scope_js
from plenti.isolation.scoping import ScopedElement, ScopeStackEntry, scope_fragment, scope_html

__all__ = [
    "HtmlTree",
    "ScopeClassGenerator",
    "ScopeStackEntry",
    "ScopedElement",
    "parse_html",
    "scope_css",
    "scope_fragment",
    "scope_html",
    "scope_js",
    "scope_selector",
    "tokenize_css",
]
