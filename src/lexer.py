from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import ply.lex as lex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    type: str
    lexeme: str
    literal: Any
    line: int

    def __str__(self):
        return f"{self.type} {self.lexeme} {self.literal}"


class LoxLexer:

    tokens = (
        # Keywords
        'AND', 'CLASS', 'ELSE', 'FALSE', 'FOR', 'FUN', 'IF', 'NIL', 'OR',
        'PRINT', 'RETURN', 'SUPER', 'THIS', 'TRUE', 'VAR', 'WHILE',
        'BREAK', 'CONTINUE',

        # Identifiers and values
        'ID', 'NUMBER', 'STRING',

        # Two-character operators
        'EQ_EQ', 'NOT_EQ', 'LESS_EQ', 'GREATER_EQ',

        # Single-character operators
        'PLUS', 'MINUS', 'MULT', 'DIV',
        'EQ', 'LESS_THAN', 'GREATER_THAN', 'NOT',

        # Parentheses and braces
        'LPAREN', 'RPAREN',
        'LCURLYEBR', 'RCURLYEBR',

        # Punctuation
        'SEMI_COLON', 'COMMA', 'DOT',
    )

    reserved = {
        'and': 'AND',
        'class': 'CLASS',
        'else': 'ELSE',
        'false': 'FALSE',
        'for': 'FOR',
        'fun': 'FUN',
        'if': 'IF',
        'nil': 'NIL',
        'or': 'OR',
        'print': 'PRINT',
        'return': 'RETURN',
        'super': 'SUPER',
        'this': 'THIS',
        'true': 'TRUE',
        'var': 'VAR',
        'while': 'WHILE',
        'break': 'BREAK',
        'continue': 'CONTINUE',
    }

    # Ignored characters
    t_ignore = ' \t\r'

    # ply sorts string rules by regex length, so two-character operators win
    t_EQ_EQ = r'=='
    t_NOT_EQ = r'!='
    t_LESS_EQ = r'<='
    t_GREATER_EQ = r'>='

    # Single-character operators
    t_PLUS = r'\+'
    t_MINUS = r'-'
    t_MULT = r'\*'
    t_DIV = r'/'
    t_EQ = r'='
    t_LESS_THAN = r'<'
    t_GREATER_THAN = r'>'
    t_NOT = r'!'

    # Parentheses and braces
    t_LPAREN = r'\('
    t_RPAREN = r'\)'
    t_LCURLYEBR = r'\{'
    t_RCURLYEBR = r'\}'

    # Punctuation
    t_SEMI_COLON = r';'
    t_COMMA = r','
    t_DOT = r'\.'

    def __init__(self, reporter=None):
        self.lexer = None
        self.reporter = reporter

    # Comments
    def t_LINE_COMMENT(self, t):
        r'//[^\n]*'
        pass

    def t_BLOCK_COMMENT(self, t):
        r'/\*'
        depth = 1
        data = t.lexer.lexdata

        while depth > 0:

            if t.lexer.lexpos >= len(data):
                # unterminated comment swallows the rest of the input
                break

            next_chars = data[t.lexer.lexpos:t.lexer.lexpos+2]
            if next_chars == '/*':
                depth += 1
                t.lexer.lexpos += 2

            elif next_chars == '*/':
                depth -= 1
                t.lexer.lexpos += 2

            else:
                if data[t.lexer.lexpos] == '\n':
                    t.lexer.lineno += 1
                t.lexer.lexpos += 1
        pass

    # Strings have no escapes; a missing close quote runs to end of input
    def t_STRING(self, t):
        r'"[^"]*"?'
        t.lexer.lineno += t.value.count('\n')
        if len(t.value) < 2 or not t.value.endswith('"'):
            self._error(t.lexer.lineno, "Unterminated string.")
            return None
        t.lineno = t.lexer.lineno
        return t

    def t_NUMBER(self, t):
        r'\d+(?:\.\d+)?'
        return t

    # Identifiers
    def t_ID(self, t):
        r'[a-zA-Z_][a-zA-Z_0-9]*'
        t.type = self.reserved.get(t.value, 'ID')
        return t

    # line number tracking
    def t_newline(self, t):
        r'\n+'
        t.lexer.lineno += len(t.value)

    # Error handling
    def t_error(self, t):
        self._error(t.lineno, f"Unexpected character '{t.value[0]}'.")
        t.lexer.skip(1)

    def _error(self, line: int, message: str):
        if self.reporter is not None:
            self.reporter.error(line, message)
        else:
            logger.warning("[line %d] Error: %s", line, message)

    def build(self, **kwargs):
        """Build the lexer"""
        self.lexer = lex.lex(module=self, **kwargs)
        return self.lexer

    def tokenize(self, data: str) -> List[Token]:
        if not self.lexer:
            self.build()

        self.lexer.input(data)
        self.lexer.lineno = 1
        tokens: List[Token] = []

        while True:
            tok = self.lexer.token()
            if not tok:
                break
            tokens.append(self._make_token(tok))

        tokens.append(Token('EOF', '', None, self.lexer.lineno))
        logger.debug("scanned %d tokens", len(tokens))
        return tokens

    @staticmethod
    def _make_token(tok) -> Token:
        literal: Optional[Any] = None
        if tok.type == 'NUMBER':
            literal = float(tok.value)
        elif tok.type == 'STRING':
            literal = tok.value[1:-1]
        return Token(tok.type, tok.value, literal, tok.lineno)


def scan(source: str, reporter=None) -> List[Token]:
    return LoxLexer(reporter).tokenize(source)


def print_tokens(tokens: List[Token]):
    if not tokens:
        print("No tokens found!")
        return

    print(f"{'Line':<6}| {'Token':<14}| {'Lexeme':<30}| Literal")
    print("-" * 78)

    for tok in tokens:
        lexeme = tok.lexeme
        # Limit length for display
        if len(lexeme) > 30:
            lexeme = lexeme[:27] + "..."
        # Display escape characters
        lexeme = repr(lexeme)[1:-1] if '\n' in lexeme or '\t' in lexeme else lexeme
        literal = "" if tok.literal is None else tok.literal

        print(f"{tok.line:<6}| {tok.type:<14}| {lexeme:<30}| {literal}")
