import pytest

from ast_nodes import (Block, ClassDef, ExprStmt, FunctionDef, FunctionExpr, IfStmt,
                       LoopControl, PrintStmt, Variable, WhileStmt, Literal, VarDecl)
from ast_printer import AstPrinter, RpnPrinter
from helpers import parse_expr, parse_source


@pytest.mark.parametrize("src, expected", [
    ("1 + 2 * 3", "(+ 1 (* 2 3))"),
    ("(1 + 2) * 3", "(* (group (+ 1 2)) 3)"),
    ("-a == !b", "(== (- a) (! b))"),
    ("a or b and c", "(or a (and b c))"),
    ("1 < 2 == 3 >= 4", "(== (< 1 2) (>= 3 4))"),
    ("a = b = 1", "(= a (= b 1))"),
    ("x.y.z = 3", "(= (. (. x y) z) 3)"),
    ("f(1, 2)(3)", "(call (call f 1 2) 3)"),
    ("2.5 - nil", "(- 2.5 nil)"),
    ('"hi" + true', "(+ hi true)"),
    ("super.m", "(super m)"),
])
def test_expressions_print_fully_parenthesized(src, expected):
    assert AstPrinter().print(parse_expr(src)) == expected


def test_reverse_polish_printer():
    assert RpnPrinter().print(parse_expr("(1 + 2) * (4 - 3)")) == "1 2 + 4 3 - *"


def test_invalid_assignment_target():
    statements, reporter = parse_source("1 = 2;")
    assert statements == [None]
    assert reporter.messages == ["Invalid assignment target."]
    assert reporter.diagnostics[0].where == " at '='"


def test_error_at_end_of_input():
    _, reporter = parse_source("print 1")
    assert reporter.messages == ["Expect ';' after value."]
    assert reporter.diagnostics[0].where == " at end"


def test_synchronize_collects_several_errors():
    statements, reporter = parse_source("var = 1; print 2; var ;")
    assert statements[0] is None
    assert isinstance(statements[1], PrintStmt)
    assert statements[2] is None
    assert reporter.messages == ["Expect variable name.", "Expect variable name."]
    assert [d.where for d in reporter.diagnostics] == [" at '='", " at ';'"]


def test_for_loop_desugars_into_while_with_increment():
    statements, reporter = parse_source(
        "for (var i = 0; i < 3; i = i + 1) { if (i == 1) continue; print i; }")
    assert reporter.diagnostics == []

    outer = statements[0]
    assert isinstance(outer, Block)
    init, loop = outer.statements
    assert isinstance(init, VarDecl)
    assert isinstance(loop, WhileStmt)

    body, trailing_incr = loop.body.statements
    assert isinstance(trailing_incr, ExprStmt)

    if_stmt, print_stmt = body.statements
    assert isinstance(print_stmt, PrintStmt)
    injected, cont = if_stmt.then_branch.statements
    assert isinstance(cont, LoopControl) and not cont.is_break
    assert isinstance(injected, ExprStmt)
    # a separate node per site, so each gets its own scope distance
    assert injected is not trailing_incr
    assert injected.expression is not trailing_incr.expression


def test_break_does_not_get_the_increment():
    statements, _ = parse_source("for (;; i = i + 1) { break; }")
    loop = statements[0]
    assert isinstance(loop, WhileStmt)
    assert isinstance(loop.condition, Literal) and loop.condition.value is True
    body = loop.body.statements[0]
    assert isinstance(body.statements[0], LoopControl)
    assert body.statements[0].is_break


def test_increment_injected_into_both_if_branches():
    statements, _ = parse_source("for (;; i = i + 1) if (a) continue; else continue;")
    if_stmt = statements[0].body.statements[0]
    assert isinstance(if_stmt, IfStmt)
    for branch in (if_stmt.then_branch, if_stmt.else_branch):
        assert isinstance(branch, Block)
        assert isinstance(branch.statements[0], ExprStmt)
        assert isinstance(branch.statements[1], LoopControl)


def test_nested_loop_continue_is_left_alone():
    statements, _ = parse_source("for (;; i = i + 1) while (a) continue;")
    inner = statements[0].body.statements[0]
    assert isinstance(inner, WhileStmt)
    assert isinstance(inner.body, LoopControl)


def test_class_with_superclass_mixins_getters_and_statics():
    statements, reporter = parse_source(
        "class C < A <= M, N { area { return 1; } init(x) {} class make() { return C(1); } }")
    assert reporter.diagnostics == []
    cls = statements[0]
    assert isinstance(cls, ClassDef)
    assert cls.superclass.name.lexeme == "A"
    assert [m.name.lexeme for m in cls.mixins] == ["M", "N"]
    assert [(m.name.lexeme, m.getter) for m in cls.methods] == [("area", True), ("init", False)]
    assert [s.name.lexeme for s in cls.statics] == ["make"]


def test_plain_function_needs_parameter_list():
    _, reporter = parse_source("fun f { }")
    assert reporter.messages == ["Expect '(' after function name."]


def test_anonymous_function_statement_needs_semicolon():
    statements, reporter = parse_source("fun (a) { print a; };")
    assert reporter.diagnostics == []
    assert isinstance(statements[0], ExprStmt)
    assert isinstance(statements[0].expression, FunctionExpr)

    _, reporter = parse_source("fun (a) { print a; }")
    assert reporter.messages == ["Expect ';' after expression."]


def test_function_declaration():
    statements, _ = parse_source("fun add(a, b) { return a + b; }")
    fn = statements[0]
    assert isinstance(fn, FunctionDef)
    assert [p.lexeme for p in fn.params] == ["a", "b"]
    assert not fn.getter


def test_too_many_arguments():
    args = ", ".join(["1"] * 256)
    _, reporter = parse_source(f"f({args});")
    assert reporter.messages == ["Can't have more than 255 arguments."]


def test_nodes_compare_by_identity():
    statements, _ = parse_source("a; a;")
    first, second = statements[0].expression, statements[1].expression
    assert isinstance(first, Variable)
    assert first != second
    assert len({first: 1, second: 2}) == 2


def test_print_program():
    statements, _ = parse_source("var a = 1; print a;")
    assert AstPrinter().print_program(statements) == "(var a 1)\n(print a)"
