"""Scope class generation.

Scope classes look like ``plenti-Ab3xY9``: a prefix plus six characters
drawn from ``[a-zA-Z0-9]``. Script renames reuse the same tokens as a
``_plenti_Ab3xY9`` suffix.

The generator is seedable for reproducible output, never issues the same
token twice, and is safe to share between threads rendering concurrently.

Tokens come from a random affine permutation of the token space
(``index -> (a * index + b) mod 62**6``, with ``a`` coprime to the
modulus), so the n-th token is distinct from every earlier one without
remembering them. A long-lived generator keeps one counter, whatever the
number of renders.
"""

from __future__ import annotations

import math
import random
import threading

from plenti.utils.constants import DEFAULT_SCOPE_PREFIX, SCOPE_TOKEN_ALPHABET, SCOPE_TOKEN_LENGTH

_BASE = len(SCOPE_TOKEN_ALPHABET)
_SPACE = _BASE**SCOPE_TOKEN_LENGTH


class ScopeClassGenerator:
    """Collision-free random token source.

    Args:
        prefix: Class prefix; classes are ``f"{prefix}-{token}"``.
        seed: Seed for a private ``random.Random``.
        rng: An existing ``random.Random`` to draw from (wins over ``seed``).

    Example:
        >>> gen = ScopeClassGenerator(seed=7)
        >>> cls = gen.new_class()
        >>> gen.is_scope_class(cls)
        True
    """

    __slots__ = ("_issued", "_lock", "_multiplier", "_offset", "_prefix")

    def __init__(
        self,
        prefix: str = DEFAULT_SCOPE_PREFIX,
        *,
        seed: int | str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        rng = rng if rng is not None else random.Random(seed)
        multiplier = rng.randrange(1, _SPACE)
        while math.gcd(multiplier, _SPACE) != 1:
            multiplier = rng.randrange(1, _SPACE)
        self._prefix = prefix
        self._multiplier = multiplier
        self._offset = rng.randrange(_SPACE)
        self._issued = 0
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def class_prefix(self) -> str:
        """Leading text shared by every generated class (``"plenti-"``)."""
        return f"{self._prefix}-"

    @property
    def name_marker(self) -> str:
        """Infix marking an already-renamed script identifier (``"_plenti_"``)."""
        return f"_{self._prefix}_"

    @property
    def issued(self) -> int:
        """Number of tokens handed out so far."""
        return self._issued

    def new_token(self) -> str:
        """Return a token never returned before by this generator.

        Tokens repeat only after all ``62**6`` of them have been issued.
        """
        with self._lock:
            index = self._issued
            self._issued += 1
        value = (self._multiplier * index + self._offset) % _SPACE
        digits = []
        for _ in range(SCOPE_TOKEN_LENGTH):
            value, digit = divmod(value, _BASE)
            digits.append(SCOPE_TOKEN_ALPHABET[digit])
        return "".join(digits)

    def new_class(self) -> str:
        return f"{self._prefix}-{self.new_token()}"

    def is_scope_class(self, name: str) -> bool:
        return name.startswith(self.class_prefix)
