"""Component loaders.

A loader maps a component name to its source. Names are POSIX-style paths
relative to the loader root (``"pages/index.svelte"``,
``"components/card.svelte"``); fence imports and dynamic component paths
are turned into such names by `join_path()` before they reach a loader.

Every loader implements ``get_source(name) -> (source, filename)`` and
raises ``TemplateNotFoundError`` when it has no such component. Loaders
that can enumerate their components also provide ``list_components()``,
which feeds "Did you mean" suggestions and `ChoiceLoader` merging.

Built-in loaders:
- `FileSystemLoader`: component directories on disk, searched in order
- `DictLoader`: names mapped to source strings (tests, generated pages)
- `ChoiceLoader`: a site layer in front of a theme layer
- `FunctionLoader`: any callable, e.g. a database lookup

A custom loader only needs ``get_source``:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.fetch_component(name)
            if row is None:
                raise TemplateNotFoundError(f"Component '{name}' not found")
            return row.source, f"db://{name}"
    ```

Thread-Safety:
The Environment calls ``get_source`` from whichever thread is rendering.
The built-in loaders keep no mutable state; wrapped callables and child
loaders must be safe on their own.

"""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Iterable
from difflib import get_close_matches
from pathlib import Path
from typing import Protocol

from plenti.environment.exceptions import TemplateNotFoundError

COMPONENT_SUFFIXES = (".svelte", ".html")


class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str | None]: ...


def join_path(current: str | None, target: str) -> str:
    """Resolve ``target`` against the component named ``current``.

    Relative targets resolve against the directory of ``current``; a
    leading ``/`` makes the target relative to the loader root.

    Example:
        >>> join_path("pages/index.svelte", "../components/card.svelte")
        'components/card.svelte'
        >>> join_path("pages/blog/post.svelte", "/layout/nav.svelte")
        'layout/nav.svelte'
    """
    if target.startswith("/") or not current:
        joined = target.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(current), target)
    normalized = posixpath.normpath(joined) if joined else ""
    # Never climb above the loader root.
    while normalized.startswith("../"):
        normalized = normalized[3:]
    return "" if normalized in (".", "..") else normalized


def not_found(name: str, known: Iterable[str] = (), where: str = "") -> TemplateNotFoundError:
    """Build the error for a missing component, suggesting near names."""
    known = sorted(known)
    msg = f"Component '{name}' not found"
    if where:
        msg += f" in {where}"
    close = get_close_matches(name, known, n=1, cutoff=0.6)
    if close:
        msg += f". Did you mean '{close[0]}'?"
    elif known:
        shown = ", ".join(known[:10])
        msg += f". Available: {shown}" + (f" ... ({len(known)} total)" if len(known) > 10 else "")
    return TemplateNotFoundError(msg)


class FileSystemLoader:
    """Read components from one or more directories.

    Earlier directories shadow later ones, so a site can override single
    components of a theme:

        ```python
        loader = FileSystemLoader(["site/layout/", "theme/layout/"])
        ```

    Names are normalized with `join_path()` first; a name can never reach
    outside its directory.

    Example:
            >>> loader = FileSystemLoader("layout/")
            >>> source, filename = loader.get_source("pages/index.svelte")
            >>> filename
            'layout/pages/index.svelte'
    """

    __slots__ = ("_encoding", "_roots")

    def __init__(self, paths: str | Path | list[str | Path], encoding: str = "utf-8"):
        roots = [paths] if isinstance(paths, (str, Path)) else paths
        self._roots = tuple(Path(root) for root in roots)
        self._encoding = encoding

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots

    def get_source(self, name: str) -> tuple[str, str]:
        parts = join_path(None, name).split("/")
        for root in self._roots:
            candidate = root.joinpath(*parts)
            if candidate.is_file():
                return candidate.read_text(self._encoding), str(candidate)
        raise not_found(name, self.list_components(), ", ".join(map(str, self._roots)))

    def list_components(self) -> list[str]:
        """Names of every ``.svelte``/``.html`` file under the roots."""
        found: set[str] = set()
        for root in self._roots:
            if not root.is_dir():
                continue
            found.update(
                path.relative_to(root).as_posix()
                for path in root.rglob("*")
                if path.suffix in COMPONENT_SUFFIXES and path.is_file()
            )
        return sorted(found)


class DictLoader:
    """Serve components from a ``{name: source}`` mapping.

    Components have no file behind them, so the filename is ``None`` and
    diagnostics fall back to ``<template>``.

    Example:
            >>> loader = DictLoader({
            ...     "pages/index.svelte": '<main><="/card.svelte" /></main>',
            ...     "card.svelte": "<p>Card</p>",
            ... })
            >>> loader.get_source("card.svelte")
            ('<p>Card</p>', None)
    """

    __slots__ = ("_sources",)

    def __init__(self, mapping: dict[str, str]):
        self._sources = mapping

    def get_source(self, name: str) -> tuple[str, None]:
        try:
            return self._sources[name], None
        except KeyError:
            raise not_found(name, self._sources) from None

    def list_components(self) -> list[str]:
        return sorted(self._sources)


class ChoiceLoader:
    """Ask several loaders in turn; the first one that has the name wins.

    Example:
            >>> site = DictLoader({"nav.svelte": "<nav>Site</nav>"})
            >>> theme = DictLoader({"nav.svelte": "<nav>Theme</nav>", "footer.svelte": "<footer/>"})
            >>> ChoiceLoader([site, theme]).get_source("nav.svelte")[0]
            '<nav>Site</nav>'
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: list[Loader]):
        self._loaders = tuple(loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                pass
        raise TemplateNotFoundError(f"Component '{name}' not found in any of {len(self._loaders)} loaders")

    def list_components(self) -> list[str]:
        names: set[str] = set()
        for loader in self._loaders:
            lister = getattr(loader, "list_components", None)
            if lister is not None:
                names.update(lister())
        return sorted(names)


class FunctionLoader:
    """Adapt a callable into a loader.

    The callable returns the source as a ``str`` (filename becomes
    ``"<function>"``), a ``(source, filename)`` pair, or ``None`` when it
    has no such component.

    Example:
            >>> FunctionLoader({"hi.svelte": "<p>Hi</p>"}.get).get_source("hi.svelte")
            ('<p>Hi</p>', '<function>')
    """

    __slots__ = ("_load",)

    def __init__(self, load_func: Callable[[str], str | tuple[str, str | None] | None]):
        self._load = load_func

    def get_source(self, name: str) -> tuple[str, str | None]:
        loaded = self._load(name)
        if loaded is None:
            raise TemplateNotFoundError(f"Component '{name}' not found")
        if isinstance(loaded, str):
            return loaded, "<function>"
        source, filename = loaded
        return source, filename
