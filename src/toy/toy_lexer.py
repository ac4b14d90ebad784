"""
Lexical analyzer for the Toy scripting language.

Turns raw source text into the forward-only token stream the parser pulls from.

Classes:
    CharacterStream: Character cursor over a source string, tracking line and column.
    Token: One lexeme with its kind and starting position.
    Lexer: Produces tokens from a CharacterStream on demand.

Features:
    - Skips whitespace and `#` comments running to end of line
    - Longest-match operators (`==` before `=`, `&&`, `||`, `!=`)
    - Identifiers, keywords, decimal integers, and strings in either quote
      style with `\\n \\t \\" \\' \\\\` escapes
    - Identifiers configured as keyword aliases come back with the keyword kind

Malformed input never raises: unknown characters and unterminated strings come
back as `ERROR` tokens so the parser can report them as diagnostics.

Example:
    >>> tokenize("let x = 5;")[:2]
    [Token(LET, let), Token(IDENT, x)]
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from toy.toy_constants import token_hashmap

if TYPE_CHECKING:
    from toy.toy_uimap import UserInterfaceMapper

ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

QUOTES = ('"', "'")

# Every operator and punctuation lexeme is one or two characters long.
MAX_OPERATOR_LEN = 2


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class CharacterStream:
    """
    Character cursor over `source`.

    `line` and `column` always describe the next unread character, both counted
    from 1.
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Character `offset` places ahead, or "" past either end of the source."""
        index = self.position + offset
        return self.source[index] if 0 <= index < len(self.source) else ""

    def next(self) -> str:
        """Consume one character.

        Raises:
            EOFError: When the source is already exhausted.
        """
        if self.end_of_file():
            raise EOFError(
                f"read past end of source (line {self.line}, col {self.column})"
            )
        ch = self.source[self.position]
        self.position += 1
        if ch == "\n":
            self.line, self.column = self.line + 1, 1
        else:
            self.column += 1
        return ch

    def take_while(self, pred: Callable[[str], bool]) -> str:
        """Consume the longest run of characters satisfying `pred`."""
        start = self.position
        while not self.end_of_file() and pred(self.peek()):
            self.next()
        return self.source[start : self.position]

    def location(self) -> tuple[int, int]:
        return self.line, self.column


class Token:
    """A lexeme tagged with its kind.

    Attributes:
        type (str): Token kind, e.g. 'IDENT', 'NUMBER', 'LBRACE' or 'EOF'.
        value (str): Literal text; for strings, the decoded contents.
        line (int): 1-based line of the first character.
        col (int): 1-based column of the first character.
    """

    __slots__ = ("type", "value", "line", "col")

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def _key(self) -> tuple[str, str, int, int]:
        return (self.type, self.value, self.line, self.col)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Token) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"


class Lexer:
    """Lexical analyzer for the Toy language.

    Tokens are produced lazily by `next_token()`. After the source runs out every
    call returns an `EOF` token positioned just past the last character.

    Attributes:
        stream (CharacterStream): Characters still to be read.
        aliases (UserInterfaceMapper | None): Optional keyword alias table.
    """

    def __init__(
        self, stream: CharacterStream, aliases: UserInterfaceMapper | None = None
    ) -> None:
        self.stream = stream
        self.aliases = aliases

    def __iter__(self) -> Iterator[Token]:
        """Yields tokens up to and including the first `EOF`."""
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == "EOF":
                break

    def skip_whitespace(self) -> None:
        """Skips blanks, newlines and `#` comments."""
        stream = self.stream
        while True:
            stream.take_while(str.isspace)
            if stream.peek() != "#":
                return
            stream.take_while(lambda ch: ch != "\n")

    def match_operator(self, line: int, col: int) -> Token | None:
        """Consumes the longest operator or punctuation lexeme at the cursor."""
        for size in range(MAX_OPERATOR_LEN, 0, -1):
            lexeme = "".join(self.stream.peek(i) for i in range(size))
            if len(lexeme) == size and lexeme in token_hashmap:
                for _ in lexeme:
                    self.stream.next()
                return Token(token_hashmap[lexeme], lexeme, line, col)
        return None

    def read_word(self, line: int, col: int) -> Token:
        word = self.stream.take_while(_is_word_char)
        kind = token_hashmap.get(word)
        if kind is not None:
            return Token(kind, word, line, col)
        if self.aliases is not None:
            aliased = self.aliases.get_token(word, line, col)
            if aliased is not None:
                return aliased
        return Token("IDENT", word, line, col)

    def read_string(self, line: int, col: int) -> Token:
        """Reads a quoted string, decoding escapes.

        Without a closing quote the result is an `ERROR` token holding the raw text.
        """
        quote = self.stream.next()
        start = self.stream.position - 1
        chars: list[str] = []
        while not self.stream.end_of_file():
            ch = self.stream.next()
            if ch == quote:
                return Token("STRING", "".join(chars), line, col)
            if ch == "\\" and not self.stream.end_of_file():
                ch = self.stream.next()
                chars.append(ESCAPES.get(ch, ch))
            else:
                chars.append(ch)
        return Token("ERROR", self.stream.source[start:], line, col)

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream."""
        self.skip_whitespace()
        line, col = self.stream.location()
        ch = self.stream.peek()

        if not ch:
            return Token("EOF", "EOF", line, col)
        if ch.isalpha() or ch == "_":
            return self.read_word(line, col)
        if ch.isdigit():
            return Token("NUMBER", self.stream.take_while(str.isdigit), line, col)
        if ch in QUOTES:
            return self.read_string(line, col)

        return self.match_operator(line, col) or Token(
            "ERROR", self.stream.next(), line, col
        )


def tokenize(source: str, aliases: UserInterfaceMapper | None = None) -> list[Token]:
    """Lexes `source` completely; the returned list ends with the `EOF` token."""
    return list(Lexer(CharacterStream(source), aliases))


__all__ = ["CharacterStream", "Lexer", "Token", "token_hashmap", "tokenize"]
