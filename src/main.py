import logging
import sys
from lexer import LoxLexer, print_tokens
from ast_printer import AstPrinter
from lox import Lox, EXIT_USAGE, EXIT_STATIC_ERROR

MODES = ("run", "lex", "parse", "check")


def read_input(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def usage():
    print("Usage:")
    print("  lox                 start the interactive prompt")
    print("  lox <file>          run a script")
    print("  lox run <file>      run a script")
    print("  lox lex <file>      print the token table")
    print("  lox parse <file>    print the syntax tree")
    print("  lox check <file>    report static errors without running")
    print("  add --debug to any command for debug logging")

def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)

    if "--debug" in args:
        args.remove("--debug")
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if not args:
        Lox().run_prompt()
        return 0

    mode = args[0].lower()
    if mode not in MODES:
        # bare file name
        args = ["run"] + args
        mode = "run"

    if len(args) != 2:
        usage()
        return EXIT_USAGE

    lox = Lox()

    if mode == "run":
        return lox.run_file(args[1])

    data = read_input(args[1])

    if mode == "lex":
        print_tokens(LoxLexer(lox.reporter).tokenize(data))
        return EXIT_STATIC_ERROR if lox.reporter.had_error else 0

    if mode == "parse":
        statements = lox.parse(data)
        print(AstPrinter().print_program(statements))
        return EXIT_STATIC_ERROR if lox.reporter.had_error else 0

    # check
    lox.check(data)
    if lox.reporter.had_error:
        return EXIT_STATIC_ERROR
    print("OK: no syntax/resolution errors found.")
    return 0

if __name__ == "__main__":
    sys.exit(main())
