import logging
import sys
from typing import Optional, TextIO

from parse.lexer import Lexer
from parse.parser import Parser
from runtime.builtins import BUILTINS, BuiltinCollection
from runtime.environment import Environment
from runtime.interpreter import Interpreter

logger = logging.getLogger(__name__)

PROMPT = ">> "
CONTINUATION_PROMPT = "... "

MONKEY_FACE = r"""            __,__
   .--.  .-"     "-.  .--.
  / .. \/  .-. .-.  \/ .. \
 | |  '|  /   Y   \  |'  | |
 | \   \  \ 0 | 0 /  /   / |
  \ '- ,\.-“““““““-./, -' /
   ''-' /_   ^ ^   _\ '-''
       |  \._   _./  |
       \   \ '~' /   /
        '._ '-=-' _.'
           '-----'
"""


def needs_more_input(src: str):
    opened = sum(src.count(c) for c in "([{")
    closed = sum(src.count(c) for c in ")]}")
    return opened > closed


class Repl:
    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        builtins: BuiltinCollection = BUILTINS,
    ):
        self.env = Environment.new_root()
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._interpreter = Interpreter(builtins)

    def run(self):
        logger.debug("repl session started")
        buffer: list[str] = []
        try:
            while True:
                self._write(CONTINUATION_PROMPT if buffer else PROMPT)
                line = self._stdin.readline()
                if not line:
                    break

                buffer.append(line)
                src = "".join(buffer)
                if needs_more_input(src):
                    continue
                buffer.clear()
                if src.strip():
                    self.eval_source(src)
        except KeyboardInterrupt:
            pass
        self._write("\n")
        logger.debug("repl session ended")

    def eval_source(self, src: str):
        parser = Parser()
        try:
            program = parser.parse(Lexer(src))
            if parser.errors:
                self._print_parse_errors(parser.errors)
                return
            result = self._interpreter.evaluate(program, self.env)
        except RecursionError:
            self._write("ERROR: maximum recursion depth exceeded\n")
            return
        self._write(f"{result.inspect()}\n")

    def _print_parse_errors(self, errors: list[str]):
        self._write(MONKEY_FACE)
        self._write("Woops! We ran into some monkey business here!\n")
        self._write(" parser errors:\n")
        for error in errors:
            self._write(f"\t{error}\n")

    def _write(self, text: str):
        self._stdout.write(text)
        self._stdout.flush()
