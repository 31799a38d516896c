"""Shared constants for plenti."""

from __future__ import annotations

# Generated scope classes look like ``plenti-Ab3xY9``.
DEFAULT_SCOPE_PREFIX = "plenti"
SCOPE_TOKEN_LENGTH = 6
SCOPE_TOKEN_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# Deep enough for any real component hierarchy while catching a component
# that renders itself early.
DEFAULT_MAX_COMPONENT_DEPTH = 50

# Attributes that already carry client-side bindings and are never
# interpolated again. Any ``:``-prefixed attribute is reserved as well.
RESERVED_ATTRS: frozenset[str] = frozenset({"x-text", "x-data", "x-init"})

# Elements without an end tag.
VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Elements whose content is raw text: never parsed as markup, escaped or
# interpolated.
RAW_TEXT_ELEMENTS: frozenset[str] = frozenset({"script", "style"})
