from errors import CollectingReporter
from lexer import LoxLexer, print_tokens, scan


def types_of(src):
    return [t.type for t in scan(src)]


def test_empty_source_is_just_eof():
    tokens = scan("")
    assert [t.type for t in tokens] == ["EOF"]
    assert tokens[0].line == 1


def test_two_char_operators_win_over_prefixes():
    assert types_of("!= == <= >= < > = !") == [
        "NOT_EQ", "EQ_EQ", "LESS_EQ", "GREATER_EQ",
        "LESS_THAN", "GREATER_THAN", "EQ", "NOT", "EOF",
    ]


def test_punctuation():
    assert types_of("(){},.-+;*/") == [
        "LPAREN", "RPAREN", "LCURLYEBR", "RCURLYEBR", "COMMA", "DOT",
        "MINUS", "PLUS", "SEMI_COLON", "MULT", "DIV", "EOF",
    ]


def test_keywords_checked_after_whole_identifier():
    tokens = scan("class classy _x1 break continue this")
    assert [t.type for t in tokens] == ["CLASS", "ID", "ID", "BREAK", "CONTINUE", "THIS", "EOF"]
    assert tokens[1].lexeme == "classy"


def test_numbers_are_doubles():
    tokens = scan("12 3.5")
    assert tokens[0].literal == 12.0
    assert isinstance(tokens[0].literal, float)
    assert tokens[1].literal == 3.5


def test_trailing_dot_is_not_part_of_number():
    assert types_of("1.") == ["NUMBER", "DOT", "EOF"]


def test_strings_have_no_escapes():
    tokens = scan(r'"a\nb"')
    assert tokens[0].type == "STRING"
    assert tokens[0].literal == r"a\nb"
    assert tokens[0].lexeme == r'"a\nb"'


def test_multiline_string_counts_lines():
    tokens = scan('"one\ntwo" x')
    assert tokens[0].literal == "one\ntwo"
    assert tokens[1].line == 2


def test_line_and_nested_block_comments():
    tokens = scan("/* a /* b */ c */ x // y\nz")
    assert [(t.type, t.lexeme, t.line) for t in tokens[:2]] == [("ID", "x", 1), ("ID", "z", 2)]


def test_block_comment_tracks_newlines():
    tokens = scan("/*\n\n*/ x")
    assert tokens[0].line == 3


def test_unexpected_character_is_reported_and_skipped():
    reporter = CollectingReporter()
    tokens = LoxLexer(reporter).tokenize("a @ b")
    assert [t.lexeme for t in tokens] == ["a", "b", ""]
    assert len(reporter.diagnostics) == 1
    diag = reporter.diagnostics[0]
    assert (diag.line, diag.where, diag.message) == (1, "", "Unexpected character '@'.")
    assert reporter.had_error


def test_unterminated_string_reported_at_scanner_line():
    reporter = CollectingReporter()
    tokens = LoxLexer(reporter).tokenize('"abc\n\ndef')
    assert [t.type for t in tokens] == ["EOF"]
    assert reporter.diagnostics[0].line == 3
    assert reporter.messages == ["Unterminated string."]


def test_lexer_reuse_resets_line_numbers():
    lexer = LoxLexer()
    lexer.tokenize("a\nb\nc")
    assert lexer.tokenize("d")[0].line == 1


def test_print_tokens_table(capsys):
    print_tokens(scan('var x = "hi";'))
    out = capsys.readouterr().out
    assert "VAR" in out
    assert "STRING" in out
    assert "hi" in out
