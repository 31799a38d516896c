"""Lexer for the JavaScript-flavored expression language.

The same tokenizer serves two callers:

- the expression parser, which only looks at significant tokens;
- the script isolation pass, which keeps whitespace and comments so it can
  rebuild the script text byte for byte around the tokens it rewrites.

Regex literals are told apart from division by looking at the previous
significant token, the usual heuristic for hand-written JS lexers.

Example:
    >>> [t.value for t in tokenize("a >= 18 && b")]
    ['a', '>=', '18', '&&', 'b', '']
"""

from __future__ import annotations

import re

from plenti._types import VALUE_END, Token, TokenType
from plenti.environment.exceptions import ExpressionSyntaxError

_NAME = re.compile(r"[A-Za-z_$\u00c0-\uffff][A-Za-z0-9_$\u00c0-\uffff]*")
_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+"
    r"|(?:[0-9][0-9_]*\.?[0-9_]*|\.[0-9][0-9_]*)(?:[eE][+-]?[0-9]+)?n?"
)
_WHITESPACE = re.compile(r"\s+")
_DIGITS = frozenset("0123456789")

# Longest first so ``===`` wins over ``==`` and ``=``.
_PUNCTUATORS = (
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--", "+=", "-=",
    "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>",
    "{", "}", "(", ")", "[", "]", ";", ",", "<", ">", "+", "-", "*", "/", "%",
    "&", "|", "^", "!", "~", "?", ":", "=", ".", "@", "#",
)

# Keywords after which ``/`` starts a regex even though they lex as names.
_REGEX_AFTER_KEYWORDS = frozenset(
    {"return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw", "case", "do", "else"}
)


class Lexer:
    """Tokenizer for expression and script source.

    Args:
        source: Text to tokenize.
        keep_trivia: Emit WHITESPACE and COMMENT tokens.

    Raises:
        ExpressionSyntaxError: Unterminated string, template, comment or
            regex literal, or a character that starts no token.
    """

    __slots__ = ("_keep_trivia", "_last", "_pos", "_source", "_tokens")

    def __init__(self, source: str, *, keep_trivia: bool = False) -> None:
        self._source = source
        self._keep_trivia = keep_trivia
        self._pos = 0
        self._tokens: list[Token] = []
        self._last: Token | None = None

    def tokenize(self) -> list[Token]:
        source = self._source
        length = len(source)
        while self._pos < length:
            char = source[self._pos]
            if char.isspace():
                match = _WHITESPACE.match(source, self._pos)
                assert match is not None
                self._emit(TokenType.WHITESPACE, match.group())
            elif source.startswith("//", self._pos):
                end = source.find("\n", self._pos)
                self._emit(TokenType.COMMENT, source[self._pos : length if end == -1 else end])
            elif source.startswith("/*", self._pos):
                end = source.find("*/", self._pos + 2)
                if end == -1:
                    raise self._error("unterminated comment")
                self._emit(TokenType.COMMENT, source[self._pos : end + 2])
            elif char in "\"'":
                self._emit(TokenType.STRING, source[self._pos : self._scan_string(self._pos)])
            elif char == "`":
                self._emit(TokenType.TEMPLATE, source[self._pos : scan_template(source, self._pos)])
            elif char in _DIGITS or (char == "." and source[self._pos + 1 : self._pos + 2] in _DIGITS):
                match = _NUMBER.match(source, self._pos)
                assert match is not None
                self._emit(TokenType.NUMBER, match.group())
            elif char == "/" and self._regex_allowed():
                self._emit(TokenType.REGEX, source[self._pos : self._scan_regex(self._pos)])
            else:
                match = _NAME.match(source, self._pos)
                if match:
                    self._emit(TokenType.NAME, match.group())
                    continue
                for punct in _PUNCTUATORS:
                    if source.startswith(punct, self._pos):
                        self._emit(TokenType.PUNCT, punct)
                        break
                else:
                    raise self._error(f"unexpected character {char!r}")
        self._tokens.append(Token(TokenType.EOF, "", length))
        return self._tokens

    def _emit(self, type_: TokenType, value: str) -> None:
        token = Token(type_, value, self._pos)
        self._pos += len(value)
        if token.is_trivia:
            if self._keep_trivia:
                self._tokens.append(token)
            return
        self._tokens.append(token)
        self._last = token

    def _regex_allowed(self) -> bool:
        last = self._last
        if last is None:
            return True
        if last.type is TokenType.NAME:
            return last.value in _REGEX_AFTER_KEYWORDS
        if last.type in VALUE_END:
            return False
        return last.value not in (")", "]", "}")

    def _scan_string(self, start: int) -> int:
        source = self._source
        quote = source[start]
        pos = start + 1
        while pos < len(source):
            char = source[pos]
            if char == "\\":
                pos += 2
                continue
            if char == quote:
                return pos + 1
            if char == "\n":
                break
            pos += 1
        raise self._error("unterminated string literal", start)

    def _scan_regex(self, start: int) -> int:
        source = self._source
        pos = start + 1
        in_class = False
        while pos < len(source):
            char = source[pos]
            if char == "\\":
                pos += 2
                continue
            if char == "\n":
                break
            if char == "[":
                in_class = True
            elif char == "]":
                in_class = False
            elif char == "/" and not in_class:
                pos += 1
                while pos < len(source) and (source[pos].isalnum() or source[pos] == "_"):
                    pos += 1
                return pos
            pos += 1
        raise self._error("unterminated regular expression", start)

    def _error(self, message: str, pos: int | None = None) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, expression=self._source, position=self._pos if pos is None else pos)


def tokenize(source: str, *, keep_trivia: bool = False) -> list[Token]:
    """Tokenize ``source``; the last token is always EOF."""
    return Lexer(source, keep_trivia=keep_trivia).tokenize()


def scan_template(source: str, start: int) -> int:
    """Return the index just past the template literal starting at ``start``.

    Handles ``${…}`` substitutions containing strings, nested braces and
    nested template literals.
    """
    pos = start + 1
    while pos < len(source):
        char = source[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "`":
            return pos + 1
        if char == "$" and source.startswith("${", pos):
            pos = skip_balanced(source, pos + 2)
            continue
        pos += 1
    raise ExpressionSyntaxError("unterminated template literal", expression=source, position=start)


def skip_balanced(source: str, pos: int, *, open_char: str = "{", close_char: str = "}") -> int:
    """Return the index just past the ``close_char`` balancing an open one.

    ``pos`` points just after the opening character. Quoted strings and
    template literals are skipped so delimiters inside them do not count.
    """
    depth = 1
    while pos < len(source):
        char = source[pos]
        if char in "\"'":
            end = _skip_quoted(source, pos)
            if end == -1:
                break
            pos = end
            continue
        if char == "`":
            pos = scan_template(source, pos)
            continue
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    raise ExpressionSyntaxError(f"missing closing {close_char!r}", expression=source, position=pos)


def _skip_quoted(source: str, start: int) -> int:
    quote = source[start]
    pos = start + 1
    while pos < len(source):
        if source[pos] == "\\":
            pos += 2
            continue
        if source[pos] == quote:
            return pos + 1
        pos += 1
    return -1


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\n|.)", re.DOTALL)


def decode_string(raw: str) -> str:
    """Decode the body of a string or template chunk (quotes already removed)."""

    def replace(match: re.Match[str]) -> str:
        seq = match.group(1)
        if seq.startswith("u{"):
            return chr(int(seq[2:-1], 16))
        if seq[0] in "ux" and len(seq) > 1:
            return chr(int(seq[1:], 16))
        if seq == "\n":
            return ""
        return _ESCAPES.get(seq, seq)

    return _ESCAPE_RE.sub(replace, raw)


def split_template(raw: str) -> list[tuple[bool, str, int]]:
    """Split a template literal into chunks.

    Returns ``(is_expression, text, offset)`` triples; literal chunks are
    decoded, expression chunks are raw source with the offset of their
    first character inside ``raw``.

    Example:
        >>> split_template("`Hi ${name}!`")
        [(False, 'Hi ', 1), (True, 'name', 6), (False, '!', 11)]
    """
    chunks: list[tuple[bool, str, int]] = []
    pos = 1
    literal_start = 1
    end = len(raw) - 1
    while pos < end:
        char = raw[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "$" and raw.startswith("${", pos):
            if pos > literal_start:
                chunks.append((False, decode_string(raw[literal_start:pos]), literal_start))
            close = skip_balanced(raw, pos + 2)
            chunks.append((True, raw[pos + 2 : close - 1], pos + 2))
            pos = literal_start = close
            continue
        pos += 1
    if end > literal_start:
        chunks.append((False, decode_string(raw[literal_start:end]), literal_start))
    return chunks
