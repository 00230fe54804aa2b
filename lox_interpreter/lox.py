import sys
from typing import List, Optional

from .lexer import Lexer
from .parser import Parser
from .resolver import Resolver
from .interpreter import Interpreter
from .ast_printer import AstPrinter
from .errors import report, NESTING_TOO_DEEP

# Each Lox call costs a handful of Python frames.
RECURSION_LIMIT = 10000

EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

USAGE = "Usage: lox [--ast] [script]"


class Lox:
    """
    A session: one interpreter whose globals persist across run() calls.
    """
    def __init__(self, print_ast: bool = False):
        self.interpreter = Interpreter()
        self.print_ast = print_ast
        self.had_error = False
        self.had_runtime_error = False

    def run(self, source: str):
        """Scans, parses, resolves and (if all of that went cleanly) executes source."""
        lexer = Lexer(source)
        tokens = lexer.scan_tokens()
        parser = Parser(tokens)
        try:
            statements = parser.parse()
        except RecursionError:
            report(parser.tokens[parser.current].line, "", NESTING_TOO_DEEP)
            self.had_error = True
            return

        if lexer.had_error or parser.had_error:
            self.had_error = True
            return

        if self.print_ast:
            try:
                print(AstPrinter().print_program(statements))
            except RecursionError:
                report(tokens[0].line, "", NESTING_TOO_DEEP)
                self.had_error = True
            return

        resolver = Resolver()
        locals = resolver.resolve(statements)
        if resolver.had_error:
            self.had_error = True
            return

        if self.interpreter.interpret(statements, locals) is not None:
            self.had_runtime_error = True

    def run_file(self, path: str):
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
        self.run(source)

    def run_prompt(self):
        print("Lox REPL (Ctrl+D to exit)")
        while True:
            try:
                line = input("> ")
            except (KeyboardInterrupt, EOFError):
                print("\nExiting.")
                break
            if not line: continue
            self.run(line)
            self.had_error = False
            self.had_runtime_error = False


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    print_ast = "--ast" in args
    args = [arg for arg in args if arg != "--ast"]

    if len(args) > 1 or any(arg.startswith("-") for arg in args):
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    lox = Lox(print_ast=print_ast)
    if not args:
        lox.run_prompt()
        return 0

    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
    try:
        lox.run_file(args[0])
    except OSError as error:
        print(f"Could not read '{args[0]}': {error.strerror}", file=sys.stderr)
        return EXIT_NO_INPUT
    if lox.had_error: return EXIT_STATIC_ERROR
    if lox.had_runtime_error: return EXIT_RUNTIME_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
