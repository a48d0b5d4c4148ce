import logging
from argparse import ArgumentParser
from os.path import isfile
from sys import exit
from typing import Optional, Sequence

import monkey
from parse.errors import ParseError
from parse.lexer import Lexer
from repl import Repl
from runtime.objects import Error

arg_parser = ArgumentParser(description="Evaluate Monkey source code")
arg_parser.add_argument(
    "path", nargs="?", help="path to the code to evaluate; omit to start a repl"
)
arg_parser.add_argument(
    "-t", "--tokens", action="store_true", help="whether or not to show the tokens"
)
arg_parser.add_argument(
    "-a", "--ast", action="store_true", help="whether or not to show the ast"
)
arg_parser.add_argument(
    "-v", "--verbose", action="store_true", help="enable debug logging"
)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = arg_parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    input_path: Optional[str] = args.path
    if input_path is None:
        print("This is the Monkey programming language!")
        print("Feel free to type in commands\n")
        Repl().run()
        return 0

    if not isfile(input_path):
        print("the path specified does not exist")
        return 1

    with open(input_path) as f:
        src = f.read()

    if args.tokens:
        for tok in Lexer(src):
            print(tok)
        print()

    try:
        program = monkey.parse(src)
        if args.ast:
            for stmt in program.stmts:
                print(stmt)
            print()
        result = monkey.run(program)
    except ParseError as e:
        for msg in e.errors:
            print(f"syntax error: {msg}")
        return 1
    except RecursionError:
        print("runtime error: maximum recursion depth exceeded")
        return 1

    if isinstance(result, Error):
        print(f"runtime error: {result.message}")
        return 1
    return 0


if __name__ == "__main__":
    exit(main())
