import logging
from enum import IntEnum, auto
from typing import Callable, Optional

from parse import nodes
from parse.lexer import Lexer
from parse.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

I64_MAX = 2**63 - 1
I64_DIGITS = len(str(I64_MAX))


class Precedence(IntEnum):
    LOWEST = auto()
    EQUALS = auto()  # == !=
    RANGE = auto()  # ..
    LESS_GREATER = auto()  # < > <= >=
    BOOLEAN = auto()  # && ||
    SUM = auto()  # + -
    PRODUCT = auto()  # * /
    MODULO = auto()  # %
    PREFIX = auto()  # -x !x
    CALL = auto()  # f(x)
    INDEX = auto()  # xs[i]


PRECEDENCES = {
    TokenKind.EQ: Precedence.EQUALS,
    TokenKind.NOT_EQ: Precedence.EQUALS,
    TokenKind.DOT_DOT: Precedence.RANGE,
    TokenKind.LT: Precedence.LESS_GREATER,
    TokenKind.GT: Precedence.LESS_GREATER,
    TokenKind.LT_EQ: Precedence.LESS_GREATER,
    TokenKind.GT_EQ: Precedence.LESS_GREATER,
    TokenKind.AND: Precedence.BOOLEAN,
    TokenKind.OR: Precedence.BOOLEAN,
    TokenKind.PLUS: Precedence.SUM,
    TokenKind.MINUS: Precedence.SUM,
    TokenKind.ASTERISK: Precedence.PRODUCT,
    TokenKind.SLASH: Precedence.PRODUCT,
    TokenKind.PERCENT: Precedence.MODULO,
    TokenKind.LPAREN: Precedence.CALL,
    TokenKind.LBRACKET: Precedence.INDEX,
}

PrefixParseFn = Callable[[], Optional[nodes.ExprNode]]
InfixParseFn = Callable[[nodes.ExprNode], Optional[nodes.ExprNode]]


class Parser:
    """Pratt parser over a Lexer.

    Errors never stop the parse; they are collected in ``errors`` and the
    production that failed yields None. A program with any errors must not be
    evaluated.
    """

    def __init__(self):
        self.errors: list[str] = []
        self._lexer = Lexer("")
        self._cur_tok = Token(TokenKind.EOF, "")
        self._peek_tok = Token(TokenKind.EOF, "")

        self._prefix_fns: dict[TokenKind, PrefixParseFn] = {
            TokenKind.IDENT: self._parse_identifier,
            TokenKind.INT: self._parse_int_lit_expr,
            TokenKind.DOUBLE: self._parse_double_lit_expr,
            TokenKind.STRING: self._parse_str_lit_expr,
            TokenKind.TRUE: self._parse_bool_lit_expr,
            TokenKind.FALSE: self._parse_bool_lit_expr,
            TokenKind.BANG: self._parse_prefix_expr,
            TokenKind.MINUS: self._parse_prefix_expr,
            TokenKind.LPAREN: self._parse_grouped_expr,
            TokenKind.IF: self._parse_if_expr,
            TokenKind.WHILE: self._parse_while_expr,
            TokenKind.FUNCTION: self._parse_fn_lit_expr,
            TokenKind.LBRACKET: self._parse_array_lit_expr,
            TokenKind.LBRACE: self._parse_hash_lit_expr,
        }
        self._infix_fns: dict[TokenKind, InfixParseFn] = {
            kind: self._parse_infix_expr
            for kind in PRECEDENCES
            if kind not in (TokenKind.LPAREN, TokenKind.LBRACKET)
        }
        self._infix_fns[TokenKind.LPAREN] = self._parse_call_expr
        self._infix_fns[TokenKind.LBRACKET] = self._parse_index_expr

    # Program = { Stmt }
    def parse(self, lexer: Lexer) -> nodes.Program:
        self._lexer = lexer
        self._reset()

        stmts: list[nodes.StmtNode] = []
        while not self._cur_is(TokenKind.EOF):
            stmt = self._parse_stmt()
            if stmt is not None:
                stmts.append(stmt)
            self._next()

        logger.debug(
            "parsed %d statements with %d errors", len(stmts), len(self.errors)
        )
        return nodes.Program(stmts)

    def _reset(self):
        self.errors = []
        self._cur_tok = Token(TokenKind.EOF, "")
        self._peek_tok = Token(TokenKind.EOF, "")
        # fill both the current and the lookahead token
        self._next()
        self._next()

    # Stmt = LetStmt | ReturnStmt | ExprStmt
    def _parse_stmt(self) -> Optional[nodes.StmtNode]:
        if self._cur_is(TokenKind.LET):
            return self._parse_let_stmt()
        elif self._cur_is(TokenKind.RETURN):
            return self._parse_return_stmt()
        else:
            return self._parse_expr_stmt()

    # LetStmt = "let" identifier "=" Expr [ ";" ]
    def _parse_let_stmt(self):
        tok = self._cur_tok
        if not self._expect_peek(TokenKind.IDENT):
            return None
        name = self._parse_identifier()
        if not self._expect_peek(TokenKind.ASSIGN):
            return None

        self._next()
        val = self._parse_expr(Precedence.LOWEST)
        self._skip_semicolon()
        return nodes.LetStmt(tok.line, tok.col, name, val)

    # ReturnStmt = "return" [ Expr ] [ ";" ]
    def _parse_return_stmt(self):
        tok = self._cur_tok
        if self._peek_is(TokenKind.SEMICOLON, TokenKind.RBRACE, TokenKind.EOF):
            self._skip_semicolon()
            return nodes.ReturnStmt(tok.line, tok.col, None)

        self._next()
        return_val = self._parse_expr(Precedence.LOWEST)
        self._skip_semicolon()
        return nodes.ReturnStmt(tok.line, tok.col, return_val)

    # ExprStmt = Expr [ ";" ]
    def _parse_expr_stmt(self):
        tok = self._cur_tok
        expr = self._parse_expr(Precedence.LOWEST)
        self._skip_semicolon()
        return nodes.ExprStmt(tok.line, tok.col, expr)

    # Block = "{" { Stmt } "}"
    def _parse_block(self):
        tok = self._cur_tok
        stmts: list[nodes.StmtNode] = []
        self._next()
        while not self._cur_is(TokenKind.RBRACE, TokenKind.EOF):
            stmt = self._parse_stmt()
            if stmt is not None:
                stmts.append(stmt)
            self._next()
        return nodes.BlockStmt(tok.line, tok.col, stmts)

    def _parse_expr(self, precedence: Precedence) -> Optional[nodes.ExprNode]:
        prefix = self._prefix_fns.get(self._cur_tok.kind)
        if prefix is None:
            self.errors.append(
                f"no prefix parse function for {self._cur_tok.kind} found"
            )
            return None

        left = prefix()
        while (
            left is not None
            and not self._peek_is(TokenKind.SEMICOLON)
            and precedence < self._peek_precedence()
        ):
            infix = self._infix_fns.get(self._peek_tok.kind)
            if infix is None:
                return left
            self._next()
            left = infix(left)
        return left

    def _parse_identifier(self):
        tok = self._cur_tok
        return nodes.Identifier(tok.line, tok.col, tok.literal)

    def _parse_int_lit_expr(self):
        tok = self._cur_tok
        digits = tok.literal.lstrip("0")
        # checked by length first, int() rejects very long digit strings
        val = int(digits or "0") if len(digits) <= I64_DIGITS else None
        if val is None or val > I64_MAX:
            self.errors.append(f"could not parse {tok.literal} as integer")
            return None
        return nodes.IntLitExpr(tok.line, tok.col, val)

    def _parse_double_lit_expr(self):
        tok = self._cur_tok
        return nodes.DoubleLitExpr(tok.line, tok.col, float(tok.literal))

    def _parse_str_lit_expr(self):
        tok = self._cur_tok
        return nodes.StrLitExpr(tok.line, tok.col, tok.literal)

    def _parse_bool_lit_expr(self):
        tok = self._cur_tok
        return nodes.BoolLitExpr(tok.line, tok.col, tok.kind == TokenKind.TRUE)

    # PrefixExpr = ( "!" | "-" ) Expr
    def _parse_prefix_expr(self):
        tok = self._cur_tok
        self._next()
        operand = self._parse_expr(Precedence.PREFIX)
        if operand is None:
            return None
        return nodes.PrefixExpr(tok.line, tok.col, tok.literal, operand)

    # InfixExpr = Expr op Expr
    # RangeExpr = Expr ".." Expr
    def _parse_infix_expr(self, left: nodes.ExprNode):
        tok = self._cur_tok
        precedence = self._cur_precedence()
        self._next()
        right = self._parse_expr(precedence)
        if right is None:
            return None
        if tok.kind == TokenKind.DOT_DOT:
            return nodes.RangeLitExpr(left.line, left.col, left, right)
        return nodes.InfixExpr(left.line, left.col, tok.literal, left, right)

    # GroupedExpr = "(" Expr ")"
    def _parse_grouped_expr(self):
        self._next()
        expr = self._parse_expr(Precedence.LOWEST)
        if not self._expect_peek(TokenKind.RPAREN):
            return None
        return expr

    # IfExpr = "if" "(" Expr ")" Block [ "else" Block ]
    def _parse_if_expr(self):
        tok = self._cur_tok
        cond = self._parse_paren_cond()
        if cond is None or not self._expect_peek(TokenKind.LBRACE):
            return None
        consequence = self._parse_block()

        alternative = None
        if self._peek_is(TokenKind.ELSE):
            self._next()
            if not self._expect_peek(TokenKind.LBRACE):
                return None
            alternative = self._parse_block()

        return nodes.IfExpr(tok.line, tok.col, cond, consequence, alternative)

    # WhileExpr = "while" "(" Expr ")" Block
    def _parse_while_expr(self):
        tok = self._cur_tok
        cond = self._parse_paren_cond()
        if cond is None or not self._expect_peek(TokenKind.LBRACE):
            return None
        return nodes.WhileExpr(tok.line, tok.col, cond, self._parse_block())

    def _parse_paren_cond(self):
        if not self._expect_peek(TokenKind.LPAREN):
            return None
        self._next()
        cond = self._parse_expr(Precedence.LOWEST)
        if not self._expect_peek(TokenKind.RPAREN):
            return None
        return cond

    # FnLitExpr = "fn" "(" [ ParamList ] ")" Block
    def _parse_fn_lit_expr(self):
        tok = self._cur_tok
        if not self._expect_peek(TokenKind.LPAREN):
            return None
        params = self._parse_fn_params()
        if params is None or not self._expect_peek(TokenKind.LBRACE):
            return None
        return nodes.FnLitExpr(tok.line, tok.col, params, self._parse_block())

    # ParamList = { identifier "," } identifier
    def _parse_fn_params(self) -> Optional[list[nodes.Identifier]]:
        params: list[nodes.Identifier] = []
        if self._peek_is(TokenKind.RPAREN):
            self._next()
            return params

        if not self._expect_peek(TokenKind.IDENT):
            return None
        params.append(self._parse_identifier())
        while self._peek_is(TokenKind.COMMA):
            self._next()
            if not self._expect_peek(TokenKind.IDENT):
                return None
            params.append(self._parse_identifier())

        if not self._expect_peek(TokenKind.RPAREN):
            return None
        return params

    # CallExpr = Expr "(" [ ExprList ] ")"
    def _parse_call_expr(self, callee: nodes.ExprNode):
        args = self._parse_expr_list(TokenKind.RPAREN)
        if args is None:
            return None
        return nodes.CallExpr(callee.line, callee.col, callee, args)

    # IndexExpr = Expr "[" Expr "]"
    def _parse_index_expr(self, collection: nodes.ExprNode):
        self._next()
        index = self._parse_expr(Precedence.LOWEST)
        if index is None or not self._expect_peek(TokenKind.RBRACKET):
            return None
        return nodes.IndexExpr(collection.line, collection.col, collection, index)

    # ArrayLitExpr = "[" [ ExprList ] "]"
    def _parse_array_lit_expr(self):
        tok = self._cur_tok
        elements = self._parse_expr_list(TokenKind.RBRACKET)
        if elements is None:
            return None
        return nodes.ArrayLitExpr(tok.line, tok.col, elements)

    # HashLitExpr  = "{" [ { KeyValuePair "," } KeyValuePair ] "}"
    # KeyValuePair = Expr ":" Expr
    def _parse_hash_lit_expr(self):
        tok = self._cur_tok
        pairs: list[tuple[nodes.ExprNode, nodes.ExprNode]] = []
        while not self._peek_is(TokenKind.RBRACE):
            self._next()
            key = self._parse_expr(Precedence.LOWEST)
            if key is None or not self._expect_peek(TokenKind.COLON):
                return None
            self._next()
            val = self._parse_expr(Precedence.LOWEST)
            if val is None:
                return None
            pairs.append((key, val))
            if not self._peek_is(TokenKind.RBRACE) and not self._expect_peek(
                TokenKind.COMMA
            ):
                return None

        self._next()  # closing brace
        return nodes.HashLitExpr(tok.line, tok.col, pairs)

    # ExprList = { Expr "," } Expr
    def _parse_expr_list(self, end: TokenKind) -> Optional[list[nodes.ExprNode]]:
        exprs: list[Optional[nodes.ExprNode]] = []
        if self._peek_is(end):
            self._next()
            return []

        self._next()
        exprs.append(self._parse_expr(Precedence.LOWEST))
        while self._peek_is(TokenKind.COMMA):
            self._next()
            self._next()
            exprs.append(self._parse_expr(Precedence.LOWEST))

        if not self._expect_peek(end) or any(e is None for e in exprs):
            return None
        return exprs

    def _expect_peek(self, kind: TokenKind):
        if self._peek_is(kind):
            self._next()
            return True
        self.errors.append(
            f"expected next token to be {kind}, got {self._peek_tok.kind} instead"
        )
        return False

    def _skip_semicolon(self):
        if self._peek_is(TokenKind.SEMICOLON):
            self._next()

    def _cur_is(self, *args: TokenKind):
        return self._cur_tok.kind in args

    def _peek_is(self, *args: TokenKind):
        return self._peek_tok.kind in args

    def _peek_precedence(self):
        return PRECEDENCES.get(self._peek_tok.kind, Precedence.LOWEST)

    def _cur_precedence(self):
        return PRECEDENCES.get(self._cur_tok.kind, Precedence.LOWEST)

    def _next(self):
        self._cur_tok = self._peek_tok
        self._peek_tok = self._lexer.next_token()

