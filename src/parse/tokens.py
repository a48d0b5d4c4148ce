from dataclasses import dataclass, field
from enum import Enum


class TokenKind(Enum):
    ILLEGAL = "ILLEGAL"  # unrecognized character
    EOF = "EOF"

    IDENT = "IDENT"  # alphabetic identifier
    INT = "INT"  # integer literal
    DOUBLE = "DOUBLE"  # floating point literal
    STRING = "STRING"  # quoted string literal

    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    BANG = "!"
    ASTERISK = "*"
    SLASH = "/"
    PERCENT = "%"
    LT = "<"
    GT = ">"
    LT_EQ = "<="
    GT_EQ = ">="
    EQ = "=="
    NOT_EQ = "!="
    AND = "&&"
    OR = "||"
    DOT_DOT = ".."

    COMMA = ","
    COLON = ":"
    SEMICOLON = ";"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"

    FUNCTION = "FUNCTION"  # fn
    LET = "LET"  # let
    TRUE = "TRUE"  # true
    FALSE = "FALSE"  # false
    IF = "IF"  # if
    ELSE = "ELSE"  # else
    WHILE = "WHILE"  # while
    RETURN = "RETURN"  # return

    def __str__(self):
        return self.value

    __repr__ = __str__


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    literal: str
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    def __str__(self):
        return f"<{self.kind}: {repr(self.literal)} at {self.line}:{self.col}>"

    __repr__ = __str__


KEYWORDS = {
    "else": TokenKind.ELSE,
    "false": TokenKind.FALSE,
    "fn": TokenKind.FUNCTION,
    "if": TokenKind.IF,
    "let": TokenKind.LET,
    "return": TokenKind.RETURN,
    "true": TokenKind.TRUE,
    "while": TokenKind.WHILE,
}

# single characters that always form a token on their own
SYNTAX = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.ASTERISK,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
}

# characters that may start a two-character operator, mapped to
# (second character, two-character kind, single-character fallback)
COMPOUND = {
    "=": ("=", TokenKind.EQ, TokenKind.ASSIGN),
    "!": ("=", TokenKind.NOT_EQ, TokenKind.BANG),
    "<": ("=", TokenKind.LT_EQ, TokenKind.LT),
    ">": ("=", TokenKind.GT_EQ, TokenKind.GT),
    "&": ("&", TokenKind.AND, TokenKind.ILLEGAL),
    "|": ("|", TokenKind.OR, TokenKind.ILLEGAL),
    ".": (".", TokenKind.DOT_DOT, TokenKind.ILLEGAL),
}


def lookup_ident(word: str) -> TokenKind:
    return KEYWORDS.get(word, TokenKind.IDENT)
