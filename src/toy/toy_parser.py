"""
Toy Language Parser

Parses a Toy token stream into a `Program` abstract syntax tree.

The parser is a Pratt (precedence-climbing) parser. It keeps the current token and
one token of lookahead, pulls tokens forward-only from any object exposing
`next_token()`, and dispatches through two rule tables:

- prefix rules, keyed by the kind of the token that starts an expression
  (literals, identifiers, grouping, unary `!`/`-`/`+`, `if`, `fn`, `[`, `{`)
- infix rules, keyed by the kind of the token that continues an expression,
  each paired with a binding strength in `precedences`

Precedence, lowest to highest:
    LOWEST < OR (`||`) < AND (`&&`) < EQUALS (`==` `!=`) < LESSGREATER (`<` `>`)
    < SUM (`+` `-`) < PRODUCT (`*` `/`) < PREFIX (`!x` `-x`) < CALL (`f(x)` `a[i]`)

Parser Behavior
---------------
- Never stops at the first problem: each diagnostic is appended to `errors`, the
  offending statement is dropped, and parsing resumes at the next statement boundary.
- Recovery counts braces, so it never resumes inside a half-parsed block and never
  consumes the `}` that closes the block it is recovering in.
- Statement terminators (`;`) are optional and consumed when present.

Entry Points
------------
- `Parser(source).parse_program()`: Parse a complete program from source text, a
  lexer, or any iterable of tokens.
- `parse(source)`: Convenience wrapper returning `(program, errors)`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Protocol, Union

from toy.toy_ast import (
    ArrayLiteral,
    BlockStatement,
    BooleanLiteral,
    CallExpression,
    Expression,
    ExpressionStatement,
    FunctionLiteral,
    HashLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntegerLiteral,
    LetStatement,
    PrefixExpression,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
)
from toy.toy_lexer import CharacterStream, Lexer, Token

logger = logging.getLogger(__name__)

LOWEST = 1
OR = 2
AND = 3
EQUALS = 4
LESSGREATER = 5
SUM = 6
PRODUCT = 7
PREFIX = 8
CALL = 9

precedences: dict[str, int] = {
    "OR": OR,
    "AND": AND,
    "EQ": EQUALS,
    "NE": EQUALS,
    "LT": LESSGREATER,
    "GT": LESSGREATER,
    "PLUS": SUM,
    "SUB": SUM,
    "MULT": PRODUCT,
    "DIV": PRODUCT,
    "LPAREN": CALL,
    "LBRACK": CALL,
}

INT64_MAX = 2**63 - 1

PrefixParseFn = Callable[[], Union[Expression, None]]
InfixParseFn = Callable[[Expression], Union[Expression, None]]


class TokenSource(Protocol):
    def next_token(self) -> Token: ...  # pragma: no cover


class TokenStream:
    """Adapts an iterable of tokens to the `next_token()` protocol.

    Once the iterable is exhausted an `EOF` token is produced forever.
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        self._last = Token("EOF", "EOF")

    def next_token(self) -> Token:
        tok = next(self._tokens, None)
        if tok is None:
            return Token("EOF", "EOF", self._last.line, self._last.col)
        self._last = tok
        return tok


class Parser:
    """
    Toy Parser Class

    Attributes
    ----------
    source : TokenSource
        Forward-only token supplier.
    cur_token : Token
        The token under examination.
    peek_token : Token
        One token of lookahead.
    errors : list[str]
        Diagnostics collected so far, in source order.
    brace_depth : int
        Number of `{` opened and not yet closed up to and including `cur_token`.
    prefix_parse_fns : dict[str, PrefixParseFn]
        Prefix rules keyed by token kind.
    infix_parse_fns : dict[str, InfixParseFn]
        Infix rules keyed by token kind.
    """

    def __init__(self, source: str | TokenSource | Iterable[Token]) -> None:
        if isinstance(source, str):
            source = Lexer(CharacterStream(source))
        elif not hasattr(source, "next_token"):
            source = TokenStream(source)  # type: ignore[arg-type]
        self.source: TokenSource = source  # type: ignore[assignment]
        self.errors: list[str] = []
        self.brace_depth = 0

        self.cur_token = Token("EOF", "EOF")
        self.peek_token = Token("EOF", "EOF")
        self.next_token()
        self.next_token()

        self.prefix_parse_fns: dict[str, PrefixParseFn] = {
            "IDENT": self.parse_identifier,
            "NUMBER": self.parse_integer_literal,
            "STRING": self.parse_string_literal,
            "TRUE": self.parse_boolean,
            "FALSE": self.parse_boolean,
            "NOT": self.parse_prefix_expression,
            "SUB": self.parse_prefix_expression,
            "PLUS": self.parse_prefix_expression,
            "LPAREN": self.parse_grouped_expression,
            "IF": self.parse_if_expression,
            "FUNC": self.parse_function_literal,
            "LBRACK": self.parse_array_literal,
            "LBRACE": self.parse_hash_literal,
        }

        self.infix_parse_fns: dict[str, InfixParseFn] = {
            kind: self.parse_infix_expression
            for kind in ("OR", "AND", "EQ", "NE", "LT", "GT", "PLUS", "SUB", "MULT", "DIV")
        }
        self.infix_parse_fns["LPAREN"] = self.parse_call_expression
        self.infix_parse_fns["LBRACK"] = self.parse_index_expression

    # Token cursor

    def next_token(self) -> None:
        self.cur_token = self.peek_token
        self.peek_token = self.source.next_token()
        if self.cur_token.type == "LBRACE":
            self.brace_depth += 1
        elif self.cur_token.type == "RBRACE" and self.brace_depth > 0:
            self.brace_depth -= 1

    def cur_token_is(self, kind: str) -> bool:
        return self.cur_token.type == kind

    def peek_token_is(self, kind: str) -> bool:
        return self.peek_token.type == kind

    def expect_peek(self, kind: str) -> bool:
        """Advances if the lookahead is `kind`, otherwise records a diagnostic."""
        if self.peek_token_is(kind):
            self.next_token()
            return True
        self.peek_error(kind)
        return False

    def peek_precedence(self) -> int:
        return precedences.get(self.peek_token.type, LOWEST)

    def cur_precedence(self) -> int:
        return precedences.get(self.cur_token.type, LOWEST)

    # Diagnostics

    def add_error(self, msg: str) -> None:
        logger.debug("parse error: %s", msg)
        self.errors.append(msg)

    def peek_error(self, kind: str) -> None:
        tok = self.peek_token
        self.add_error(
            f'expected next token type "{kind}", actual "{tok.type}" '
            f"(line {tok.line}, col {tok.col})"
        )

    def no_prefix_parse_fn_error(self, tok: Token) -> None:
        self.add_error(
            f'no prefix parse function for "{tok.type}" found '
            f"(line {tok.line}, col {tok.col})"
        )

    def synchronize(self, depth: int = 0) -> None:
        """Skips the rest of a failed statement begun at brace nesting `depth`.

        Stops on a `;` at that nesting, on the `}` closing the enclosing block, or at
        `EOF`. Braces opened by the failed statement itself are skipped whole.
        """
        while not self.cur_token_is("EOF") and self.brace_depth >= depth:
            if self.cur_token_is("SEMICOLON") and self.brace_depth == depth:
                return
            self.next_token()

    # Statements

    def parse_program(self) -> Program:
        """Parse a full program; statements with diagnostics are left out."""
        program = Program()
        while not self.cur_token_is("EOF"):
            stmt = self.parse_recovering_statement()
            if stmt is not None:
                program.statements.append(stmt)
            self.next_token()
        return program

    def parse_recovering_statement(self, depth: int = 0) -> Statement | None:
        before = len(self.errors)
        stmt = self.parse_statement()
        if stmt is None:
            self.synchronize(depth)
            return None
        if len(self.errors) > before:
            return None
        return stmt

    def parse_statement(self) -> Statement | None:
        if self.cur_token_is("LET"):
            return self.parse_let_statement()
        if self.cur_token_is("RETURN"):
            return self.parse_return_statement()
        return self.parse_expression_statement()

    def parse_let_statement(self) -> LetStatement | None:
        tok = self.cur_token
        if not self.expect_peek("IDENT"):
            return None
        name = Identifier(self.cur_token, self.cur_token.value)
        if not self.expect_peek("ASSIGN"):
            return None
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        if self.peek_token_is("SEMICOLON"):
            self.next_token()
        return LetStatement(tok, name, value)

    def parse_return_statement(self) -> ReturnStatement | None:
        tok = self.cur_token
        value: Expression | None = None
        if not (
            self.peek_token_is("SEMICOLON")
            or self.peek_token_is("RBRACE")
            or self.peek_token_is("EOF")
        ):
            self.next_token()
            value = self.parse_expression(LOWEST)
            if value is None:
                return None
        if self.peek_token_is("SEMICOLON"):
            self.next_token()
        return ReturnStatement(tok, value)

    def parse_expression_statement(self) -> ExpressionStatement | None:
        tok = self.cur_token
        expr = self.parse_expression(LOWEST)
        if expr is None:
            return None
        if self.peek_token_is("SEMICOLON"):
            self.next_token()
        return ExpressionStatement(tok, expr)

    def parse_block_statement(self) -> BlockStatement | None:
        tok = self.cur_token
        block = BlockStatement(tok)
        depth = self.brace_depth
        self.next_token()
        # The block ends once cur_token is the `}` that brings the depth below its own.
        while self.brace_depth >= depth:
            if self.cur_token_is("EOF"):
                self.add_error(
                    f'expected next token type "RBRACE", actual "EOF" '
                    f"(line {self.cur_token.line}, col {self.cur_token.col})"
                )
                return None
            stmt = self.parse_recovering_statement(depth)
            if stmt is not None:
                block.statements.append(stmt)
            if self.brace_depth >= depth:
                self.next_token()
        return block

    # Expressions

    def parse_expression(self, precedence: int) -> Expression | None:
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token)
            return None
        left = prefix()
        if left is None:
            return None

        while not self.peek_token_is("SEMICOLON") and precedence < self.peek_precedence():
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
            if left is None:
                return None
        return left

    def parse_identifier(self) -> Expression | None:
        return Identifier(self.cur_token, self.cur_token.value)

    def parse_integer_literal(self) -> Expression | None:
        tok = self.cur_token
        try:
            value = int(tok.value, 10)
        except ValueError:
            value = INT64_MAX + 1
        if value > INT64_MAX:
            self.add_error(f'could not parse "{tok.value}" as integer')
            return None
        return IntegerLiteral(tok, value)

    def parse_string_literal(self) -> Expression | None:
        return StringLiteral(self.cur_token, self.cur_token.value)

    def parse_boolean(self) -> Expression | None:
        return BooleanLiteral(self.cur_token, self.cur_token_is("TRUE"))

    def parse_prefix_expression(self) -> Expression | None:
        tok = self.cur_token
        self.next_token()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(tok, tok.value, right)

    def parse_infix_expression(self, left: Expression) -> Expression | None:
        tok = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(tok, left, tok.value, right)

    def parse_grouped_expression(self) -> Expression | None:
        self.next_token()
        expr = self.parse_expression(LOWEST)
        if expr is None or not self.expect_peek("RPAREN"):
            return None
        return expr

    def parse_if_expression(self) -> Expression | None:
        tok = self.cur_token
        if not self.expect_peek("LPAREN"):
            return None
        self.next_token()
        condition = self.parse_expression(LOWEST)
        if condition is None:
            return None
        if not self.expect_peek("RPAREN") or not self.expect_peek("LBRACE"):
            return None
        consequence = self.parse_block_statement()
        if consequence is None:
            return None

        alternative = None
        if self.peek_token_is("ELSE"):
            self.next_token()
            if not self.expect_peek("LBRACE"):
                return None
            alternative = self.parse_block_statement()
            if alternative is None:
                return None
        return IfExpression(tok, condition, consequence, alternative)

    def parse_function_literal(self) -> Expression | None:
        tok = self.cur_token
        if not self.expect_peek("LPAREN"):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None or not self.expect_peek("LBRACE"):
            return None
        body = self.parse_block_statement()
        if body is None:
            return None
        return FunctionLiteral(tok, parameters, body)

    def parse_function_parameters(self) -> list[Identifier] | None:
        identifiers: list[Identifier] = []
        if self.peek_token_is("RPAREN"):
            self.next_token()
            return identifiers

        if not self.expect_peek("IDENT"):
            return None
        identifiers.append(Identifier(self.cur_token, self.cur_token.value))
        while self.peek_token_is("COMMA"):
            self.next_token()
            if not self.expect_peek("IDENT"):
                return None
            identifiers.append(Identifier(self.cur_token, self.cur_token.value))

        if not self.expect_peek("RPAREN"):
            return None
        return identifiers

    def parse_expression_list(self, end: str) -> list[Expression] | None:
        """Parses comma-separated expressions up to the closing `end` token."""
        items: list[Expression] = []
        if self.peek_token_is(end):
            self.next_token()
            return items

        self.next_token()
        item = self.parse_expression(LOWEST)
        if item is None:
            return None
        items.append(item)
        while self.peek_token_is("COMMA"):
            self.next_token()
            self.next_token()
            item = self.parse_expression(LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self.expect_peek(end):
            return None
        return items

    def parse_call_expression(self, function: Expression) -> Expression | None:
        tok = self.cur_token
        arguments = self.parse_expression_list("RPAREN")
        if arguments is None:
            return None
        return CallExpression(tok, function, arguments)

    def parse_index_expression(self, left: Expression) -> Expression | None:
        tok = self.cur_token
        self.next_token()
        index = self.parse_expression(LOWEST)
        if index is None or not self.expect_peek("RBRACK"):
            return None
        return IndexExpression(tok, left, index)

    def parse_array_literal(self) -> Expression | None:
        tok = self.cur_token
        elements = self.parse_expression_list("RBRACK")
        if elements is None:
            return None
        return ArrayLiteral(tok, elements)

    def parse_hash_literal(self) -> Expression | None:
        tok = self.cur_token
        pairs: list[tuple[Expression, Expression]] = []
        if self.peek_token_is("RBRACE"):
            self.next_token()
            return HashLiteral(tok, pairs)

        while True:
            self.next_token()
            key = self.parse_expression(LOWEST)
            if key is None or not self.expect_peek("COLON"):
                return None
            self.next_token()
            value = self.parse_expression(LOWEST)
            if value is None:
                return None
            pairs.append((key, value))
            if not self.peek_token_is("COMMA"):
                break
            self.next_token()

        if not self.expect_peek("RBRACE"):
            return None
        return HashLiteral(tok, pairs)


def parse(source: str | TokenSource | Iterable[Token]) -> tuple[Program, list[str]]:
    """Parse source text, a lexer, or a token iterable into `(program, errors)`."""
    parser = Parser(source)
    program = parser.parse_program()
    return program, parser.errors


__all__ = ["Parser", "TokenStream", "parse", "precedences"]
