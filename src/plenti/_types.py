"""Token types shared by the expression and script lexers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Token categories produced by ``plenti.expressions.lexer.tokenize``."""

    NAME = "name"
    NUMBER = "number"
    STRING = "string"
    TEMPLATE = "template"
    REGEX = "regex"
    PUNCT = "punct"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    EOF = "eof"


# Trivia tokens carry no meaning for parsing but are kept when the caller
# needs to rebuild the exact source text.
TRIVIA = frozenset({TokenType.WHITESPACE, TokenType.COMMENT})

# Tokens after which a ``/`` starts a division rather than a regex literal.
VALUE_END = frozenset({TokenType.NAME, TokenType.NUMBER, TokenType.STRING, TokenType.TEMPLATE, TokenType.REGEX})


@dataclass(frozen=True, slots=True)
class Token:
    """A lexed token with its 0-based character offset into the source."""

    type: TokenType
    value: str
    pos: int

    @property
    def end(self) -> int:
        return self.pos + len(self.value)

    @property
    def is_trivia(self) -> bool:
        return self.type in TRIVIA

    def is_punct(self, *values: str) -> bool:
        return self.type is TokenType.PUNCT and self.value in values

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.pos})"
