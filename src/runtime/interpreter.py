import math
import operator
from typing import Union

from common.errors import InternalError
from parse import nodes

from runtime import errors
from runtime.builtins import BUILTINS, BuiltinCollection
from runtime.environment import Environment
from runtime.objects import (
    FALSE,
    NULL,
    TRUE,
    Array,
    Builtin,
    Double,
    Error,
    Function,
    Hash,
    Hashable,
    HashPair,
    Integer,
    Object,
    Range,
    ReturnSignal,
    String,
    is_truthy,
    to_boolean,
)

Node = Union[nodes.Program, nodes.StmtNode, nodes.ExprNode]

COMPARISONS = {
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}

MAX_STRING_LENGTH = 2**28


def wrap_i64(n: int) -> int:
    return (n + 2**63) % 2**64 - 2**63


def trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


class Interpreter:
    """Evaluates an AST against an Environment.

    User-level failures are returned as Error values and checked after every
    sub-evaluation; a `return` travels as a ReturnSignal until the enclosing
    call (or the top of the program) unwraps it. InternalError is reserved for
    node types this interpreter does not know.
    """

    def __init__(self, builtins: BuiltinCollection = BUILTINS):
        self._builtins = builtins

    def evaluate(self, node: Node, env: Environment) -> Object:
        if isinstance(node, nodes.Program):
            return self._visit_program(node, env)
        elif isinstance(node, nodes.StmtNode):
            return self._visit_stmt(node, env)
        else:
            return self._evaluate_expr(node, env)

    def _visit_program(self, program: nodes.Program, env: Environment):
        result: Object = NULL
        for stmt in program.stmts:
            result = self._visit_stmt(stmt, env)
            if isinstance(result, ReturnSignal):
                return result.val
            elif isinstance(result, Error):
                return result
        return result

    def _visit_stmt(self, stmt: nodes.StmtNode, env: Environment) -> Object:
        if isinstance(stmt, nodes.ExprStmt):
            return self._evaluate_expr(stmt.expr, env)
        elif isinstance(stmt, nodes.LetStmt):
            return self._visit_let_stmt(stmt, env)
        elif isinstance(stmt, nodes.ReturnStmt):
            return self._visit_return_stmt(stmt, env)
        elif isinstance(stmt, nodes.BlockStmt):
            return self._visit_block_stmt(stmt, env)
        else:
            raise InternalError(
                "interpreter", f"unhandled statement node type: {type(stmt).__name__}"
            )

    def _visit_block_stmt(self, block: nodes.BlockStmt, env: Environment):
        result: Object = NULL
        for stmt in block.stmts:
            result = self._visit_stmt(stmt, env)
            # returns and errors leave the block unchanged
            if isinstance(result, (ReturnSignal, Error)):
                return result
        return result

    def _visit_let_stmt(self, decl: nodes.LetStmt, env: Environment):
        val = self._evaluate_expr(decl.val, env)
        if isinstance(val, Error):
            return val
        return env.bind(decl.name.name, val)

    def _visit_return_stmt(self, return_stmt: nodes.ReturnStmt, env: Environment):
        if return_stmt.return_val is None:
            return ReturnSignal(NULL)
        val = self._evaluate_expr(return_stmt.return_val, env)
        if isinstance(val, Error):
            return val
        return ReturnSignal(val)

    def _evaluate_expr(self, expr: nodes.ExprNode, env: Environment) -> Object:
        if isinstance(expr, nodes.Identifier):
            return self._evaluate_identifier(expr, env)
        elif isinstance(expr, nodes.IntLitExpr):
            return Integer(expr.val)
        elif isinstance(expr, nodes.DoubleLitExpr):
            return Double(expr.val)
        elif isinstance(expr, nodes.StrLitExpr):
            return String(expr.val)
        elif isinstance(expr, nodes.BoolLitExpr):
            return to_boolean(expr.val)
        elif isinstance(expr, nodes.PrefixExpr):
            return self._evaluate_prefix_expr(expr, env)
        elif isinstance(expr, nodes.InfixExpr):
            return self._evaluate_infix_expr(expr, env)
        elif isinstance(expr, nodes.RangeLitExpr):
            return self._evaluate_range_lit_expr(expr, env)
        elif isinstance(expr, nodes.IfExpr):
            return self._evaluate_if_expr(expr, env)
        elif isinstance(expr, nodes.WhileExpr):
            return self._evaluate_while_expr(expr, env)
        elif isinstance(expr, nodes.FnLitExpr):
            return Function(expr.params, expr.body, env)
        elif isinstance(expr, nodes.CallExpr):
            return self._evaluate_call_expr(expr, env)
        elif isinstance(expr, nodes.ArrayLitExpr):
            return self._evaluate_array_lit_expr(expr, env)
        elif isinstance(expr, nodes.HashLitExpr):
            return self._evaluate_hash_lit_expr(expr, env)
        elif isinstance(expr, nodes.IndexExpr):
            return self._evaluate_index_expr(expr, env)
        else:
            raise InternalError(
                "interpreter", f"unhandled expr node type: {type(expr).__name__}"
            )

    def _evaluate_identifier(self, ident: nodes.Identifier, env: Environment):
        val = env.lookup(ident.name)
        if val is not None:
            return val
        builtin = self._builtins.get(ident.name)
        if builtin is not None:
            return builtin
        return errors.identifier_not_found(ident.name)

    def _evaluate_prefix_expr(self, expr: nodes.PrefixExpr, env: Environment):
        operand = self._evaluate_expr(expr.operand, env)
        if isinstance(operand, Error):
            return operand

        if expr.op == "!":
            return to_boolean(not is_truthy(operand))
        elif expr.op == "-" and isinstance(operand, Integer):
            return Integer(wrap_i64(-operand.val))
        elif expr.op == "-" and isinstance(operand, Double):
            return Double(-operand.val)
        return errors.unknown_prefix_operator(expr.op, operand)

    def _evaluate_infix_expr(self, expr: nodes.InfixExpr, env: Environment):
        left = self._evaluate_expr(expr.left, env)
        if isinstance(left, Error):
            return left

        # && and || only look at the right operand when they have to
        if expr.op == "&&" and not is_truthy(left):
            return FALSE
        elif expr.op == "||" and is_truthy(left):
            return TRUE

        right = self._evaluate_expr(expr.right, env)
        if isinstance(right, Error):
            return right

        if expr.op in ("&&", "||"):
            return to_boolean(is_truthy(right))
        return apply_infix_op(expr.op, left, right)

    def _evaluate_range_lit_expr(self, expr: nodes.RangeLitExpr, env: Environment):
        lo = self._evaluate_expr(expr.lo, env)
        if isinstance(lo, Error):
            return lo
        hi = self._evaluate_expr(expr.hi, env)
        if isinstance(hi, Error):
            return hi

        if isinstance(lo, Integer) and isinstance(hi, Integer):
            return Range(lo.val, hi.val)
        return errors.invalid_infix_operands(lo, "..", hi)

    def _evaluate_if_expr(self, expr: nodes.IfExpr, env: Environment):
        cond = self._evaluate_expr(expr.cond, env)
        if isinstance(cond, Error):
            return cond

        if is_truthy(cond):
            return self._visit_block_stmt(expr.consequence, env)
        elif expr.alternative is not None:
            return self._visit_block_stmt(expr.alternative, env)
        return NULL

    def _evaluate_while_expr(self, loop: nodes.WhileExpr, env: Environment):
        while True:
            cond = self._evaluate_expr(loop.cond, env)
            if isinstance(cond, Error):
                return cond
            if not is_truthy(cond):
                return NULL

            result = self._visit_block_stmt(loop.body, env)
            if isinstance(result, (ReturnSignal, Error)):
                return result

    def _evaluate_call_expr(self, call: nodes.CallExpr, env: Environment):
        fn = self._evaluate_expr(call.callee, env)
        if isinstance(fn, Error):
            return fn
        args = self._evaluate_exprs(call.args, env)
        if isinstance(args, Error):
            return args
        return self.apply_fn(fn, args)

    def apply_fn(self, fn: Object, args: list[Object]) -> Object:
        if isinstance(fn, Function):
            call_env = fn.env.new_child()
            # extra arguments are ignored, missing ones stay unbound
            for param, arg in zip(fn.params, args):
                call_env.bind(param.name, arg)
            result = self._visit_block_stmt(fn.body, call_env)
            return result.val if isinstance(result, ReturnSignal) else result
        elif isinstance(fn, Builtin):
            return fn.fn(args)
        return errors.not_a_function(fn)

    def _evaluate_exprs(
        self, exprs: list[nodes.ExprNode], env: Environment
    ) -> Union[list[Object], Error]:
        vals: list[Object] = []
        for expr in exprs:
            val = self._evaluate_expr(expr, env)
            if isinstance(val, Error):
                return val
            vals.append(val)
        return vals

    def _evaluate_array_lit_expr(self, lit: nodes.ArrayLitExpr, env: Environment):
        elements = self._evaluate_exprs(lit.elements, env)
        if isinstance(elements, Error):
            return elements
        return Array(elements)

    def _evaluate_hash_lit_expr(self, lit: nodes.HashLitExpr, env: Environment):
        pairs = {}
        for key_expr, val_expr in lit.pairs:
            key = self._evaluate_expr(key_expr, env)
            if isinstance(key, Error):
                return key
            if not isinstance(key, Hashable):
                return errors.unusable_as_hash_key(key)

            val = self._evaluate_expr(val_expr, env)
            if isinstance(val, Error):
                return val
            pairs[key.hash_key()] = HashPair(key, val)
        return Hash(pairs)

    def _evaluate_index_expr(self, access: nodes.IndexExpr, env: Environment):
        collection = self._evaluate_expr(access.collection, env)
        if isinstance(collection, Error):
            return collection
        index = self._evaluate_expr(access.index, env)
        if isinstance(index, Error):
            return index

        if isinstance(collection, Array) and isinstance(index, Integer):
            return index_array(collection, index.val)
        elif isinstance(collection, Array) and isinstance(index, Range):
            return slice_array(collection, index)
        elif isinstance(collection, Hash):
            if not isinstance(index, Hashable):
                return errors.unusable_as_hash_key(index)
            pair = collection.pairs.get(index.hash_key())
            return NULL if pair is None else pair.val
        return errors.index_not_supported(collection)


def index_array(arr: Array, i: int) -> Object:
    n = len(arr.elements)
    if i < 0:
        i += n
    if 0 <= i < n:
        return arr.elements[i]
    return NULL


def slice_array(arr: Array, bounds: Range) -> Object:
    if 0 <= bounds.lo <= bounds.hi < len(arr.elements):
        return Array(arr.elements[bounds.lo : bounds.hi + 1])
    return NULL


def apply_infix_op(op: str, left: Object, right: Object) -> Object:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return _integer_infix_op(op, left, right)
    elif isinstance(left, (Integer, Double)) and isinstance(right, (Integer, Double)):
        return _double_infix_op(op, left, right)
    elif isinstance(left, String) and isinstance(right, Integer) and op in ("+", "*"):
        if op == "+":
            return String(left.val + str(right.val))
        if len(left.val) * right.val > MAX_STRING_LENGTH:
            return errors.string_too_long()
        return String(left.val * right.val)
    elif isinstance(left, String) and isinstance(right, String):
        return _string_infix_op(op, left, right)
    elif isinstance(left, Array) and isinstance(right, Array) and op in ("+", "-"):
        return _array_infix_op(op, left, right)
    elif isinstance(left, Hash) and isinstance(right, Hash) and op in ("+", "-"):
        return _hash_infix_op(op, left, right)
    elif op == "==":
        return to_boolean(left == right)
    elif op == "!=":
        return to_boolean(left != right)
    return errors.invalid_infix_operands(left, op, right)


def _integer_infix_op(op: str, left: Integer, right: Integer) -> Object:
    a, b = left.val, right.val
    if op == "+":
        return Integer(wrap_i64(a + b))
    elif op == "-":
        return Integer(wrap_i64(a - b))
    elif op == "*":
        return Integer(wrap_i64(a * b))
    elif op in ("/", "%"):
        if b == 0:
            return errors.division_by_zero()
        q = trunc_div(a, b)
        return Integer(wrap_i64(q if op == "/" else a - b * q))
    elif op in COMPARISONS:
        return to_boolean(COMPARISONS[op](a, b))
    return errors.unknown_infix_operator(left, op, right)


def _double_infix_op(op: str, left: Object, right: Object) -> Object:
    a, b = float(left.val), float(right.val)
    if op == "+":
        return Double(a + b)
    elif op == "-":
        return Double(a - b)
    elif op == "*":
        return Double(a * b)
    elif op in ("/", "%"):
        if b == 0:
            return errors.division_by_zero()
        if op == "/":
            return Double(a / b)
        # fmod raises on an infinite dividend instead of returning nan
        return Double(math.nan if math.isinf(a) else math.fmod(a, b))
    elif op in COMPARISONS:
        return to_boolean(COMPARISONS[op](a, b))
    return errors.invalid_infix_operands(left, op, right)


def _string_infix_op(op: str, left: String, right: String) -> Object:
    if op == "+":
        return String(left.val + right.val)
    elif op in COMPARISONS:
        return to_boolean(COMPARISONS[op](left.val, right.val))
    return errors.unknown_infix_operator(left, op, right)


def _array_infix_op(op: str, left: Array, right: Array) -> Object:
    if op == "+":
        return Array([*left.elements, *right.elements])
    remaining = list(left.elements)
    for element in right.elements:
        if element in remaining:
            remaining.remove(element)
    return Array(remaining)


def _hash_infix_op(op: str, left: Hash, right: Hash) -> Object:
    if op == "+":
        return Hash({**left.pairs, **right.pairs})
    return Hash({k: v for k, v in left.pairs.items() if k not in right.pairs})

