from typing import Callable, Iterator

from common.errors import InternalError

from parse.tokens import COMPOUND, SYNTAX, Token, TokenKind, lookup_ident

ESCAPES = {"\\": "\\", '"': '"', "t": "\t", "n": "\n", "r": "\r"}


class Lexer:
    """Turns source text into tokens on demand.

    The lexer never fails: characters it does not understand come back as
    ILLEGAL tokens and are reported by the parser. Once the input is exhausted
    every further call to next_token returns EOF. To restart, build a new lexer.
    """

    def __init__(self, src: str):
        self._src = src
        self._line = 1
        self._col = 1
        self._pos = 0

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind == TokenKind.EOF:
                return

    def lex(self) -> list[Token]:
        return list(self)

    def next_token(self) -> Token:
        self._accept_run(is_whitespace)
        line, col = self._line, self._col
        if self._is_done():
            return Token(TokenKind.EOF, "", line, col)

        c = self._peek()
        if is_letter(c):
            word = self._accept_run(is_letter)
            return Token(lookup_ident(word), word, line, col)
        elif is_digit(c):
            return self._lex_number(line, col)
        elif c == '"':
            return self._lex_string(line, col)

        self._ignore()
        if c in SYNTAX:
            return Token(SYNTAX[c], c, line, col)
        elif c in COMPOUND:
            second, kind, fallback = COMPOUND[c]
            if self._peek() == second:
                self._ignore()
                return Token(kind, c + second, line, col)
            return Token(fallback, c, line, col)
        else:
            return Token(TokenKind.ILLEGAL, c, line, col)

    def _lex_number(self, line: int, col: int):
        whole = self._accept_run(is_digit)
        # `1.5` continues the literal, `1..5` leaves the dots for the range operator
        if self._peek() == "." and is_digit(self._peek(1)):
            self._ignore()
            frac = self._accept_run(is_digit)
            return Token(TokenKind.DOUBLE, f"{whole}.{frac}", line, col)
        return Token(TokenKind.INT, whole, line, col)

    def _lex_string(self, line: int, col: int):
        self._ignore()  # ignore opening quote
        chars: list[str] = []
        while not self._is_done():
            c = self._next()
            if c == '"':
                break
            elif c == "\\" and not self._is_done():
                escaped = self._next()
                chars.append(ESCAPES.get(escaped, "\\" + escaped))
            else:
                chars.append(c)
        return Token(TokenKind.STRING, "".join(chars), line, col)

    def _accept_run(self, pred: Callable[[str], bool]):
        chars: list[str] = []
        while not self._is_done():
            c = self._peek()
            if pred(c):
                self._next()
                chars.append(c)
            else:
                break
        return "".join(chars)

    def _peek(self, offset: int = 0):
        pos = self._pos + offset
        return self._src[pos] if pos < len(self._src) else ""

    def _next(self):
        if self._is_done():
            raise InternalError("lexer", "next called on finished lexer")
        c = self._src[self._pos]
        self._pos += 1
        if c == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return c

    _ignore = _next  # alias for clarity

    def _is_done(self):
        return self._pos >= len(self._src)


def tokenize(src: str) -> list[Token]:
    return Lexer(src).lex()


def is_whitespace(c: str):
    return c in (" ", "\t", "\r", "\n")


def is_letter(c: str):
    return "a" <= c <= "z" or "A" <= c <= "Z" or c == "_"


def is_digit(c: str):
    return c != "" and "0" <= c <= "9"
