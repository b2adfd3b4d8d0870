from __future__ import annotations
import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO

from lexer import Token


class ParseError(Exception):
    """Unwinds the parser to the nearest declaration so it can resynchronize."""

    def __init__(self, message: str, token: Token):
        super().__init__(f"ParseError at line {token.line} - {message}")
        self.message = message
        self.token = token


class LoxRuntimeError(Exception):
    """A user-code failure; aborts the running program."""

    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message


class InternalError(Exception):
    """An interpreter invariant was broken. Never recovered from."""

    def __init__(self, token: Optional[Token], message: str):
        super().__init__(message)
        self.token = token
        self.message = message


@dataclass
class Diagnostic:
    line: int
    where: str
    message: str

    def __str__(self):
        return f"[line {self.line}] Error{self.where}: {self.message}"


def where_of(token: Token) -> str:
    if token.type == "EOF":
        return " at end"
    return f" at '{token.lexeme}'"


class ErrorReporter:
    """Receives every diagnostic produced by the pipeline.

    ``report(line, where, message)`` is the single sink; the other methods
    shape their arguments for it. ``where`` is empty for lexer errors,
    ``" at end"`` at end of input and ``" at '<lexeme>'"`` otherwise.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
        self.had_error = False
        self.had_runtime_error = False

    def reset(self):
        self.had_error = False
        self.had_runtime_error = False

    def report(self, line: int, where: str, message: str):
        self.had_error = True
        self._emit(Diagnostic(line, where, message))

    def error(self, line: int, message: str):
        self.report(line, "", message)

    def token_error(self, token: Token, message: str):
        self.report(token.line, where_of(token), message)

    def runtime_error(self, error):
        self.had_runtime_error = True
        line = error.token.line if error.token is not None else 0
        self._emit(Diagnostic(line, "", error.message))

    def _emit(self, diagnostic: Diagnostic):
        print(str(diagnostic), file=self.stream or sys.stderr)


class CollectingReporter(ErrorReporter):
    """Keeps diagnostics in memory instead of printing them."""

    def __init__(self):
        super().__init__()
        self.diagnostics: List[Diagnostic] = []

    def _emit(self, diagnostic: Diagnostic):
        self.diagnostics.append(diagnostic)

    @property
    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]
