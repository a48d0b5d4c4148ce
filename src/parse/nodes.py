from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Node:
    line: int
    col: int


@dataclass(frozen=True)
class StmtNode(Node):
    pass


@dataclass(frozen=True)
class ExprNode(Node):
    pass


@dataclass(frozen=True)
class Program:
    stmts: list[StmtNode] = field(default_factory=lambda: [])

    def __str__(self):
        return "".join(map(str, self.stmts))

    __repr__ = __str__


@dataclass(frozen=True)
class Identifier(ExprNode):
    name: str

    def __str__(self):
        return self.name

    __repr__ = __str__


@dataclass(frozen=True)
class BlockStmt(StmtNode):
    stmts: list[StmtNode] = field(default_factory=lambda: [])

    def __str__(self):
        return "".join(map(str, self.stmts))

    __repr__ = __str__


@dataclass(frozen=True)
class LetStmt(StmtNode):
    name: Identifier
    val: Optional[ExprNode]

    def __str__(self):
        return f"let {self.name} = {self.val};"

    __repr__ = __str__


@dataclass(frozen=True)
class ReturnStmt(StmtNode):
    return_val: Optional[ExprNode] = None

    def __str__(self):
        return f"return {self.return_val};" if self.return_val else "return;"

    __repr__ = __str__


@dataclass(frozen=True)
class ExprStmt(StmtNode):
    expr: Optional[ExprNode]

    def __str__(self):
        return "" if self.expr is None else str(self.expr)

    __repr__ = __str__


@dataclass(frozen=True)
class SimpleLitExpr(ExprNode):
    pass


@dataclass(frozen=True)
class BoolLitExpr(SimpleLitExpr):
    val: bool

    def __str__(self):
        return "true" if self.val else "false"

    __repr__ = __str__


@dataclass(frozen=True)
class DoubleLitExpr(SimpleLitExpr):
    val: float

    def __str__(self):
        return repr(self.val)

    __repr__ = __str__


@dataclass(frozen=True)
class IntLitExpr(SimpleLitExpr):
    val: int

    def __str__(self):
        return repr(self.val)

    __repr__ = __str__


@dataclass(frozen=True)
class StrLitExpr(SimpleLitExpr):
    val: str

    def __str__(self):
        return self.val

    __repr__ = __str__


@dataclass(frozen=True)
class ArrayLitExpr(ExprNode):
    elements: list[ExprNode]

    def __str__(self):
        return f"[{', '.join(map(str, self.elements))}]"

    __repr__ = __str__


@dataclass(frozen=True)
class HashLitExpr(ExprNode):
    pairs: list[Tuple[ExprNode, ExprNode]]

    def __str__(self):
        entry_list = ", ".join(f"{k}:{v}" for k, v in self.pairs)
        return f"{{{entry_list}}}"

    __repr__ = __str__


@dataclass(frozen=True)
class RangeLitExpr(ExprNode):
    lo: ExprNode
    hi: ExprNode

    def __str__(self):
        return f"({self.lo}..{self.hi})"

    __repr__ = __str__


@dataclass(frozen=True)
class PrefixExpr(ExprNode):
    op: str
    operand: ExprNode

    def __str__(self):
        return f"({self.op}{self.operand})"

    __repr__ = __str__


@dataclass(frozen=True)
class InfixExpr(ExprNode):
    op: str
    left: ExprNode
    right: ExprNode

    def __str__(self):
        return f"({self.left} {self.op} {self.right})"

    __repr__ = __str__


@dataclass(frozen=True)
class IfExpr(ExprNode):
    cond: ExprNode
    consequence: BlockStmt
    alternative: Optional[BlockStmt] = None

    def __str__(self):
        parts = [f"if{self.cond} {self.consequence}"]
        if self.alternative is not None:
            parts.append(f" else {self.alternative}")
        return "".join(parts)

    __repr__ = __str__


@dataclass(frozen=True)
class WhileExpr(ExprNode):
    cond: ExprNode
    body: BlockStmt

    def __str__(self):
        return f"while{self.cond} {self.body}"

    __repr__ = __str__


@dataclass(frozen=True)
class FnLitExpr(ExprNode):
    params: list[Identifier]
    body: BlockStmt

    def __str__(self):
        params = ", ".join(map(str, self.params))
        return f"fn({params}) {self.body}"

    __repr__ = __str__


@dataclass(frozen=True)
class CallExpr(ExprNode):
    callee: ExprNode
    args: list[ExprNode]

    def __str__(self):
        args = ", ".join(map(str, self.args))
        return f"{self.callee}({args})"

    __repr__ = __str__


@dataclass(frozen=True)
class IndexExpr(ExprNode):
    collection: ExprNode
    index: ExprNode

    def __str__(self):
        return f"({self.collection}[{self.index}])"

    __repr__ = __str__
