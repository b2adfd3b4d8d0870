from __future__ import annotations
import logging
import sys
from typing import List, Optional, TextIO

from lexer import LoxLexer
from parser import Parser
from resolver import Resolver
from interpreter import Interpreter, inspect, STACK_OVERFLOW
from errors import ErrorReporter, LoxRuntimeError
from ast_nodes import ExprStmt, Stmt

logger = logging.getLogger(__name__)

EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_RUNTIME_ERROR = 70


class Lox:
    """Scan, parse, resolve and run source text against one interpreter.

    Static errors (lexical, syntax, resolution) stop the pipeline before
    anything executes. A runtime error stops the program where it happened.
    """

    def __init__(self, reporter: Optional[ErrorReporter] = None, output: Optional[TextIO] = None):
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.output = output
        self.lexer = LoxLexer(self.reporter)
        self.interpreter = Interpreter(self.reporter, output)

    def parse(self, source: str) -> List[Optional[Stmt]]:
        tokens = self.lexer.tokenize(source)
        return Parser(tokens, self.reporter).parse_program()

    def check(self, source: str) -> List[Optional[Stmt]]:
        statements = self.parse(source)
        if not self.reporter.had_error:
            Resolver(self.interpreter, self.reporter).resolve(statements)
        return statements

    def run(self, source: str):
        statements = self.check(source)
        if self.reporter.had_error:
            logger.debug("static errors, skipping execution")
            return
        self.interpreter.interpret(statements)

    def run_file(self, path: str) -> int:
        with open(path, "r", encoding="utf-8") as f:
            self.run(f.read())
        if self.reporter.had_error:
            return EXIT_STATIC_ERROR
        if self.reporter.had_runtime_error:
            return EXIT_RUNTIME_ERROR
        return 0

    def run_line(self, line: str):
        """Run one interactive line; a bare expression has its value echoed."""
        statements = self.check(line)
        if self.reporter.had_error:
            return

        if len(statements) == 1 and isinstance(statements[0], ExprStmt):
            try:
                value = self.interpreter.evaluate(statements[0].expression)
            except LoxRuntimeError as e:
                self.reporter.runtime_error(e)
                return
            except RecursionError:
                self.reporter.runtime_error(LoxRuntimeError(None, STACK_OVERFLOW))
                return
            print(inspect(value), file=self.output or sys.stdout)
            return

        self.interpreter.interpret(statements)

    def run_prompt(self, stream: Optional[TextIO] = None):
        stream = stream or sys.stdin
        while True:
            print("> ", end="", flush=True, file=self.output or sys.stdout)
            line = stream.readline()
            if not line:
                break
            self.run_line(line)
            self.reporter.reset()
