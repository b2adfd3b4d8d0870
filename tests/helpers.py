import io

from errors import CollectingReporter
from interpreter import Interpreter
from lexer import LoxLexer
from lox import Lox
from parser import Parser
from resolver import Resolver


def run_source(src: str):
    reporter = CollectingReporter()
    out = io.StringIO()
    Lox(reporter, out).run(src)
    return out.getvalue().splitlines(), reporter


def output_of(src: str):
    lines, reporter = run_source(src)
    assert reporter.diagnostics == [], reporter.diagnostics
    return lines


def errors_of(src: str):
    return run_source(src)[1].messages


def parse_source(src: str):
    reporter = CollectingReporter()
    statements = Parser(LoxLexer(reporter).tokenize(src), reporter).parse_program()
    return statements, reporter


def parse_expr(src: str):
    return Parser(LoxLexer().tokenize(src)).parse_expression_only()


def resolve_source(src: str):
    reporter = CollectingReporter()
    statements, parse_reporter = parse_source(src)
    assert parse_reporter.diagnostics == [], parse_reporter.diagnostics
    interpreter = Interpreter(reporter)
    Resolver(interpreter, reporter).resolve(statements)
    return statements, interpreter, reporter
