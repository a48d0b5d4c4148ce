import logging
from typing import Optional

from parse.errors import ParseError
from parse.lexer import Lexer
from parse.nodes import Program
from parse.parser import Parser
from runtime.builtins import BUILTINS, BuiltinCollection
from runtime.environment import Environment
from runtime.interpreter import Interpreter
from runtime.objects import Object

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def parse(src: str) -> Program:
    parser = Parser()
    program = parser.parse(Lexer(src))
    if parser.errors:
        logger.debug("rejecting program with %d parse errors", len(parser.errors))
        raise ParseError(parser.errors)
    return program


def run(
    program: Program,
    env: Optional[Environment] = None,
    builtins: BuiltinCollection = BUILTINS,
) -> Object:
    if env is None:
        env = Environment.new_root()
    result = Interpreter(builtins).evaluate(program, env)
    logger.debug(
        "program of %d statements produced %s", len(program.stmts), result.type
    )
    return result


def evaluate(
    src: str,
    env: Optional[Environment] = None,
    builtins: BuiltinCollection = BUILTINS,
) -> Object:
    return run(parse(src), env, builtins)
