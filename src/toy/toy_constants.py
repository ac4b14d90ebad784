"""
Token vocabulary shared by the Toy lexer, parser and keyword alias mapper.

Exports:
    token_hashmap: Maps every reserved word and operator lexeme to its token kind.
    KEYWORD_TOKENS: Token kinds that may be targeted by a keyword alias.
"""

token_hashmap: dict[str, str] = {
    # Keywords
    "let": "LET",
    "return": "RETURN",
    "if": "IF",
    "else": "ELSE",
    "fn": "FUNC",
    "true": "TRUE",
    "false": "FALSE",
    # Operators
    "=": "ASSIGN",
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "!": "NOT",
    "<": "LT",
    ">": "GT",
    "==": "EQ",
    "!=": "NE",
    "&&": "AND",
    "||": "OR",
    # Punctuation
    ",": "COMMA",
    ":": "COLON",
    ";": "SEMICOLON",
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
}

KEYWORD_TOKENS: list[str] = [
    "LET",
    "RETURN",
    "IF",
    "ELSE",
    "FUNC",
    "TRUE",
    "FALSE",
]

__all__ = ["KEYWORD_TOKENS", "token_hashmap"]
