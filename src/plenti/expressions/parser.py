"""Recursive-descent parser for embedded expressions.

Grammar (lowest to highest precedence):
    conditional  := or ('?' conditional ':' conditional)?
    or           := and (('||' | '??') and)*
    and          := equality ('&&' equality)*
    equality     := relational (('==' | '!=' | '===' | '!==') relational)*
    relational   := additive (('<' | '<=' | '>' | '>=' | 'in') additive)*
    additive     := multiplicative (('+' | '-') multiplicative)*
    multiplicative := exponent (('*' | '/' | '%') exponent)*
    exponent     := unary ('**' exponent)?
    unary        := ('!' | '-' | '+' | 'typeof') unary | postfix
    postfix      := primary ('.' NAME | '?.' NAME | '[' conditional ']' | '(' args ')')*
    primary      := literal | NAME | array | object | template | '(' conditional ')' | arrow

Parsed expressions are cached by source text; nodes are immutable so the
cache can be shared across threads.
"""

from __future__ import annotations

from functools import lru_cache

from plenti._types import Token, TokenType
from plenti.environment.exceptions import ExpressionSyntaxError
from plenti.expressions.lexer import decode_string, split_template, tokenize
from plenti.nodes.expressions import (
    Arrow,
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    OptionalGetattr,
    Spread,
    UnaryOp,
)

_KEYWORD_CONSTS = {"true": True, "false": False, "null": None, "undefined": None}

_EQUALITY = frozenset({"==", "!=", "===", "!=="})
_RELATIONAL = frozenset({"<", "<=", ">", ">="})
_ADDITIVE = frozenset({"+", "-"})
_MULTIPLICATIVE = frozenset({"*", "/", "%"})
_UNARY = frozenset({"!", "-", "+"})


class ExpressionParser:
    """Parse a single expression into an ``Expr`` tree.

    Args:
        source: Expression source text.
        base_offset: Added to token offsets so nested template-literal
            expressions report positions relative to the outer source.
    """

    __slots__ = ("_base", "_index", "_source", "_tokens")

    def __init__(self, source: str, *, base_offset: int = 0) -> None:
        self._source = source
        self._base = base_offset
        self._tokens = tokenize(source)
        self._index = 0

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _peek(self, distance: int = 1) -> Token:
        index = min(self._index + distance, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.type is not TokenType.EOF:
            self._index += 1
        return token

    def _match(self, *values: str) -> bool:
        return self._current.is_punct(*values)

    def _expect(self, value: str) -> Token:
        if not self._match(value):
            raise self._error(f"expected {value!r}")
        return self._advance()

    def _error(self, message: str, token: Token | None = None) -> ExpressionSyntaxError:
        token = token or self._current
        found = "end of expression" if token.type is TokenType.EOF else repr(token.value)
        return ExpressionSyntaxError(
            f"{message}, found {found}",
            expression=self._source,
            position=token.pos,
        )

    def _loc(self, token: Token) -> dict[str, int]:
        return {"lineno": 1, "col_offset": self._base + token.pos}

    def parse(self) -> Expr:
        if self._current.type is TokenType.EOF:
            raise self._error("empty expression")
        expr = self._parse_conditional()
        if self._current.type is not TokenType.EOF:
            raise self._error("unexpected trailing input")
        return expr

    def _parse_conditional(self) -> Expr:
        if self._arrow_ahead():
            return self._parse_arrow()
        start = self._current
        test = self._parse_or()
        if self._match("?"):
            self._advance()
            if_true = self._parse_conditional()
            self._expect(":")
            if_false = self._parse_conditional()
            return CondExpr(**self._loc(start), test=test, if_true=if_true, if_false=if_false)
        return test

    def _parse_or(self) -> Expr:
        start = self._current
        expr = self._parse_and()
        while self._match("||", "??"):
            op = self._advance().value
            right = self._parse_and()
            expr = BoolOp(**self._loc(start), op=op, values=(expr, right))
        return expr

    def _parse_and(self) -> Expr:
        start = self._current
        expr = self._parse_equality()
        while self._match("&&"):
            self._advance()
            right = self._parse_equality()
            expr = BoolOp(**self._loc(start), op="&&", values=(expr, right))
        return expr

    def _parse_equality(self) -> Expr:
        start = self._current
        expr = self._parse_relational()
        while self._current.type is TokenType.PUNCT and self._current.value in _EQUALITY:
            op = self._advance().value
            expr = Compare(**self._loc(start), op=op, left=expr, right=self._parse_relational())
        return expr

    def _parse_relational(self) -> Expr:
        start = self._current
        expr = self._parse_additive()
        while True:
            token = self._current
            if token.type is TokenType.PUNCT and token.value in _RELATIONAL:
                op = self._advance().value
            elif token.type is TokenType.NAME and token.value == "in":
                op = self._advance().value
            else:
                return expr
            expr = Compare(**self._loc(start), op=op, left=expr, right=self._parse_additive())

    def _parse_additive(self) -> Expr:
        start = self._current
        expr = self._parse_multiplicative()
        while self._current.type is TokenType.PUNCT and self._current.value in _ADDITIVE:
            op = self._advance().value
            expr = BinOp(**self._loc(start), op=op, left=expr, right=self._parse_multiplicative())
        return expr

    def _parse_multiplicative(self) -> Expr:
        start = self._current
        expr = self._parse_exponent()
        while self._current.type is TokenType.PUNCT and self._current.value in _MULTIPLICATIVE:
            op = self._advance().value
            expr = BinOp(**self._loc(start), op=op, left=expr, right=self._parse_exponent())
        return expr

    def _parse_exponent(self) -> Expr:
        start = self._current
        base = self._parse_unary()
        if self._match("**"):
            self._advance()
            return BinOp(**self._loc(start), op="**", left=base, right=self._parse_exponent())
        return base

    def _parse_unary(self) -> Expr:
        token = self._current
        if token.type is TokenType.PUNCT and token.value in _UNARY:
            self._advance()
            return UnaryOp(**self._loc(token), op=token.value, operand=self._parse_unary())
        if token.type is TokenType.NAME and token.value == "typeof":
            self._advance()
            return UnaryOp(**self._loc(token), op="typeof", operand=self._parse_unary())
        return self._parse_postfix()

    def _parse_postfix(self) -> Expr:
        start = self._current
        expr = self._parse_primary()
        while True:
            if self._match("."):
                self._advance()
                expr = Getattr(**self._loc(start), obj=expr, attr=self._expect_name())
            elif self._match("?."):
                self._advance()
                expr = OptionalGetattr(**self._loc(start), obj=expr, attr=self._expect_name())
            elif self._match("["):
                self._advance()
                key = self._parse_conditional()
                self._expect("]")
                expr = Getitem(**self._loc(start), obj=expr, key=key)
            elif self._match("("):
                self._advance()
                args = self._parse_sequence(")")
                expr = FuncCall(**self._loc(start), func=expr, args=args)
            else:
                return expr

    def _expect_name(self) -> str:
        if self._current.type is not TokenType.NAME:
            raise self._error("expected property name")
        return self._advance().value

    def _parse_sequence(self, closer: str) -> tuple[Expr, ...]:
        items: list[Expr] = []
        while not self._match(closer):
            if self._match("..."):
                token = self._advance()
                items.append(Spread(**self._loc(token), value=self._parse_conditional()))
            else:
                items.append(self._parse_conditional())
            if not self._match(closer):
                self._expect(",")
        self._expect(closer)
        return tuple(items)

    def _parse_primary(self) -> Expr:
        token = self._current
        loc = self._loc(token)
        if token.type is TokenType.NUMBER:
            self._advance()
            return Const(**loc, value=_parse_number(token, self._source))
        if token.type is TokenType.STRING:
            self._advance()
            return Const(**loc, value=decode_string(token.value[1:-1]))
        if token.type is TokenType.TEMPLATE:
            self._advance()
            return self._parse_template(token)
        if token.type is TokenType.NAME:
            self._advance()
            if token.value in _KEYWORD_CONSTS:
                return Const(**loc, value=_KEYWORD_CONSTS[token.value])
            return Name(**loc, name=token.value)
        if token.is_punct("("):
            self._advance()
            expr = self._parse_conditional()
            self._expect(")")
            return expr
        if token.is_punct("["):
            self._advance()
            return List(**loc, items=self._parse_sequence("]"))
        if token.is_punct("{"):
            self._advance()
            return self._parse_object(token)
        raise self._error("unexpected token")

    def _parse_object(self, start: Token) -> Dict:
        keys: list[Expr] = []
        values: list[Expr] = []
        while not self._match("}"):
            token = self._current
            if self._match("..."):
                self._advance()
                keys.append(Spread(**self._loc(token), value=self._parse_conditional()))
                values.append(Const(**self._loc(token), value=None))
            elif self._match("["):
                self._advance()
                keys.append(self._parse_conditional())
                self._expect("]")
                self._expect(":")
                values.append(self._parse_conditional())
            elif token.type in (TokenType.NAME, TokenType.STRING, TokenType.NUMBER):
                self._advance()
                if token.type is TokenType.STRING:
                    key = decode_string(token.value[1:-1])
                elif token.type is TokenType.NUMBER:
                    key = str(_parse_number(token, self._source))
                else:
                    key = token.value
                keys.append(Const(**self._loc(token), value=key))
                if self._match(":"):
                    self._advance()
                    values.append(self._parse_conditional())
                elif token.type is TokenType.NAME:
                    values.append(Name(**self._loc(token), name=token.value))
                else:
                    raise self._error("expected ':' after object key")
            else:
                raise self._error("expected object key")
            if not self._match("}"):
                self._expect(",")
        self._expect("}")
        return Dict(**self._loc(start), keys=tuple(keys), values=tuple(values))

    def _parse_template(self, token: Token) -> Concat:
        nodes: list[Expr] = []
        for is_expr, text, offset in split_template(token.value):
            if is_expr:
                nodes.append(ExpressionParser(text, base_offset=self._base + token.pos + offset).parse())
            else:
                nodes.append(Const(lineno=1, col_offset=self._base + token.pos + offset, value=text))
        return Concat(**self._loc(token), nodes=tuple(nodes))

    def _arrow_ahead(self) -> bool:
        token = self._current
        if token.type is TokenType.NAME:
            return self._peek().is_punct("=>")
        if not token.is_punct("("):
            return False
        distance = 1
        expect_name = True
        while True:
            ahead = self._peek(distance)
            if ahead.is_punct(")"):
                return self._peek(distance + 1).is_punct("=>")
            if expect_name and ahead.type is not TokenType.NAME:
                return False
            if not expect_name and not ahead.is_punct(","):
                return False
            expect_name = not expect_name
            distance += 1

    def _parse_arrow(self) -> Arrow:
        start = self._current
        params: list[str] = []
        if start.type is TokenType.NAME:
            params.append(self._advance().value)
        else:
            self._advance()
            while not self._match(")"):
                params.append(self._expect_name())
                if not self._match(")"):
                    self._expect(",")
            self._advance()
        self._expect("=>")
        if self._match("{"):
            raise self._error("arrow function bodies must be a single expression")
        return Arrow(**self._loc(start), params=tuple(params), body=self._parse_conditional())


def _parse_number(token: Token, source: str) -> int | float:
    text = token.value.replace("_", "")
    if text.endswith("n"):
        text = text[:-1]
    try:
        if text[:2].lower() in ("0x", "0o", "0b"):
            return int(text, 0)
        if any(char in text for char in ".eE"):
            value = float(text)
            return int(value) if value.is_integer() and "e" not in text.lower() and abs(value) < 2**53 else value
        return int(text)
    except ValueError:
        raise ExpressionSyntaxError(
            f"invalid number literal {token.value!r}", expression=source, position=token.pos
        ) from None


@lru_cache(maxsize=1024)
def parse_expression(source: str) -> Expr:
    """Parse ``source`` into an expression tree (cached)."""
    return ExpressionParser(source.strip()).parse()
