import io

from errors import CollectingReporter
from lox import Lox, EXIT_RUNTIME_ERROR, EXIT_STATIC_ERROR, EXIT_USAGE
from main import main


def make_lox():
    reporter = CollectingReporter()
    out = io.StringIO()
    return Lox(reporter, out), reporter, out


def test_repl_echoes_expression_values():
    lox, reporter, out = make_lox()
    lox.run_line('"hi";')
    lox.run_line("1 + 1;")
    lox.run_line("nil;")
    assert out.getvalue().splitlines() == ['"hi"', "2", "nil"]
    assert reporter.diagnostics == []


def test_repl_keeps_globals_between_lines():
    lox, reporter, out = make_lox()
    lox.run_line("var a = 1;")
    lox.run_line("fun inc() { a = a + 1; }")
    lox.run_line("inc();")
    lox.run_line("print a;")
    lox.run_line("var b = a;")
    lox.run_line("b;")
    assert out.getvalue().splitlines() == ["nil", "2", "2"]
    assert reporter.diagnostics == []


def test_repl_reports_runtime_errors():
    lox, reporter, out = make_lox()
    lox.run_line("nope;")
    assert out.getvalue() == ""
    assert reporter.messages == ["Undefined variable 'nope' referenced."]


def test_repl_survives_stack_overflow():
    lox, reporter, out = make_lox()
    lox.run_line("fun f() { return f(); }")
    lox.run_line("f();")
    assert reporter.messages == ["Stack overflow."]
    reporter.reset()
    lox.run_line("1 + 1;")
    assert out.getvalue().splitlines() == ["2"]
    assert lox.interpreter.environment is lox.interpreter.globals


def test_prompt_recovers_after_errors():
    lox, reporter, out = make_lox()
    lox.run_prompt(io.StringIO("var a = ;\nprint 3;\n"))
    assert out.getvalue() == "> > 3\n> "
    assert reporter.messages == ["Expect expression."]
    assert not reporter.had_error


def test_check_does_not_resolve_after_syntax_errors():
    lox, reporter, _ = make_lox()
    lox.check("print ; { var unused = 1; }")
    assert reporter.messages == ["Expect expression."]


def test_run_file_exit_codes(tmp_path):
    good = tmp_path / "good.lox"
    good.write_text("print 1;")
    static = tmp_path / "static.lox"
    static.write_text("print ;")
    runtime = tmp_path / "runtime.lox"
    runtime.write_text("print 1 / 0;")

    assert make_lox()[0].run_file(str(good)) == 0
    assert make_lox()[0].run_file(str(static)) == EXIT_STATIC_ERROR
    assert make_lox()[0].run_file(str(runtime)) == EXIT_RUNTIME_ERROR


def test_main_runs_a_file(tmp_path, capsys):
    script = tmp_path / "hello.lox"
    script.write_text('print "hello";')
    assert main([str(script)]) == 0
    assert capsys.readouterr().out == "hello\n"


def test_main_check(tmp_path, capsys):
    script = tmp_path / "ok.lox"
    script.write_text("var a = 1; print a;")
    assert main(["check", str(script)]) == 0
    assert "OK" in capsys.readouterr().out

    bad = tmp_path / "bad.lox"
    bad.write_text("{ var a = 1; }")
    assert main(["check", str(bad)]) == EXIT_STATIC_ERROR
    assert "Unused variable 'a'." in capsys.readouterr().err


def test_main_lex_and_parse(tmp_path, capsys):
    script = tmp_path / "expr.lox"
    script.write_text("print 1 + 2 * 3;")

    assert main(["lex", str(script)]) == 0
    assert "PRINT" in capsys.readouterr().out

    assert main(["parse", str(script)]) == 0
    assert capsys.readouterr().out == "(print (+ 1 (* 2 3)))\n"


def test_main_usage_errors(capsys):
    assert main(["run"]) == EXIT_USAGE
    assert main(["run", "a", "b"]) == EXIT_USAGE
    assert "Usage" in capsys.readouterr().out
