from __future__ import annotations
import copy
import logging
from typing import List, Optional
from ast_nodes import *
from errors import ParseError

logger = logging.getLogger(__name__)

MAX_ARGS = 255

# Keywords that start a declaration or statement; parsing resumes before them
SYNC_KEYWORDS = ("CLASS", "FUN", "VAR", "FOR", "IF", "WHILE", "PRINT", "RETURN")


class TokenStream:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.i = 0

    def peek(self, k: int = 0) -> Token:
        j = min(self.i + k, len(self.tokens) - 1)
        return self.tokens[j]

    def previous(self) -> Token:
        return self.tokens[self.i - 1]

    def at_end(self) -> bool:
        return self.peek().type == "EOF"

    def advance(self) -> Token:
        if not self.at_end():
            self.i += 1
        return self.previous()

    def check(self, ttype: str) -> bool:
        if self.at_end():
            return False
        return self.peek().type == ttype

    def match(self, *types: str) -> Optional[Token]:
        for ttype in types:
            if self.check(ttype):
                return self.advance()
        return None


class Parser:
    def __init__(self, tokens: List[Token], reporter=None):
        self.ts = TokenStream(tokens)
        self.reporter = reporter

    # program -> declaration* EOF
    def parse_program(self) -> List[Optional[Stmt]]:
        statements: List[Optional[Stmt]] = []
        while not self.ts.at_end():
            statements.append(self.parse_declaration())
        logger.debug("parsed %d statements", len(statements))
        return statements

    def parse_expression_only(self) -> Optional[Expr]:
        """Parse a lone expression; used by the printers and the tests."""
        try:
            return self.parse_expr()
        except ParseError:
            return None

    # ---------------- errors ----------------
    def error(self, token: Token, message: str) -> ParseError:
        if self.reporter is not None:
            self.reporter.token_error(token, message)
        return ParseError(message, token)

    def expect(self, ttype: str, message: str) -> Token:
        if self.ts.check(ttype):
            return self.ts.advance()
        raise self.error(self.ts.peek(), message)

    def synchronize(self):
        self.ts.advance()
        while not self.ts.at_end():
            if self.ts.previous().type == "SEMI_COLON":
                return
            if self.ts.peek().type in SYNC_KEYWORDS:
                return
            self.ts.advance()

    # ---------------- DECLARATIONS ----------------
    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.ts.match("CLASS"):
                return self.parse_class()
            if self.ts.match("FUN"):
                return self.parse_function("function")
            if self.ts.match("VAR"):
                return self.parse_vardecl()
            return self.parse_stmt()
        except ParseError:
            self.synchronize()
            return None

    # classDecl -> "class" IDENT ("<" IDENT)? ("<=" IDENT ("," IDENT)*)?
    #              "{" (("class")? function)* "}"
    def parse_class(self) -> ClassDef:
        name = self.expect("ID", "Expect class name.")

        superclass = None
        if self.ts.match("LESS_THAN"):
            superclass = Variable(name=self.expect("ID", "Expect superclass name."))

        mixins: List[Variable] = []
        if self.ts.match("LESS_EQ"):
            while True:
                mixins.append(Variable(name=self.expect("ID", "Expect mixin name.")))
                if self.ts.match("COMMA") is None:
                    break

        self.expect("LCURLYEBR", "Expect '{' before class body.")

        methods: List[FunctionDef] = []
        statics: List[FunctionDef] = []
        while not self.ts.check("RCURLYEBR") and not self.ts.at_end():
            if self.ts.match("CLASS"):
                statics.append(self.parse_function("static method"))
            else:
                methods.append(self.parse_function("method"))

        self.expect("RCURLYEBR", "Expect '}' after class body.")
        return ClassDef(name=name, superclass=superclass, mixins=mixins,
                        methods=methods, statics=statics)

    # function -> IDENT ( "(" params? ")" )? block
    def parse_function(self, kind: str) -> Stmt:
        if kind == "function" and not self.ts.check("ID"):
            # anonymous function in statement position
            expr = self.parse_anonymous_function(self.ts.previous())
            self.expect("SEMI_COLON", "Expect ';' after expression.")
            return ExprStmt(expression=expr)

        name = self.expect("ID", f"Expect {kind} name.")

        params: List[Token] = []
        has_params = self.ts.match("LPAREN") is not None
        if has_params:
            params = self.parse_param_list_opt()
            self.expect("RPAREN", "Expect ')' after parameters.")
        elif kind == "function":
            # only methods may omit the list (getters)
            raise self.error(self.ts.peek(), f"Expect '(' after {kind} name.")

        self.expect("LCURLYEBR", f"Expect '{{' before {kind} body.")
        body = self.parse_block_body()
        return FunctionDef(name=name, params=params, body=body, getter=not has_params)

    def parse_param_list_opt(self) -> List[Token]:
        params: List[Token] = []
        if self.ts.check("RPAREN"):
            return params
        while True:
            if len(params) >= MAX_ARGS:
                raise self.error(self.ts.peek(), f"Can't have more than {MAX_ARGS} parameters.")
            params.append(self.expect("ID", "Expect parameter name."))
            if self.ts.match("COMMA") is None:
                break
        return params

    # varDecl -> "var" IDENT ("=" expression)? ";"
    def parse_vardecl(self) -> VarDecl:
        name = self.expect("ID", "Expect variable name.")
        init = None
        if self.ts.match("EQ"):
            init = self.parse_expr()
        self.expect("SEMI_COLON", "Expect ';' after variable declaration.")
        return VarDecl(name=name, initializer=init)

    # ---------------- STATEMENTS ----------------
    def parse_stmt(self) -> Stmt:
        if self.ts.match("IF"):
            return self.parse_if()
        if self.ts.match("PRINT"):
            value = self.parse_expr()
            self.expect("SEMI_COLON", "Expect ';' after value.")
            return PrintStmt(expression=value)
        if self.ts.match("WHILE"):
            return self.parse_while()
        if self.ts.match("FOR"):
            return self.parse_for()
        if self.ts.match("RETURN"):
            return self.parse_return()
        if self.ts.match("LCURLYEBR"):
            return Block(statements=self.parse_block_body())
        if self.ts.match("BREAK", "CONTINUE"):
            keyword = self.ts.previous()
            self.expect("SEMI_COLON", f"Expect ';' after '{keyword.lexeme}'.")
            return LoopControl(keyword=keyword)

        expr = self.parse_expr()
        self.expect("SEMI_COLON", "Expect ';' after expression.")
        return ExprStmt(expression=expr)

    # block -> "{" declaration* "}"   (opening brace already consumed)
    def parse_block_body(self) -> List[Optional[Stmt]]:
        statements: List[Optional[Stmt]] = []
        while not self.ts.check("RCURLYEBR") and not self.ts.at_end():
            statements.append(self.parse_declaration())
        self.expect("RCURLYEBR", "Expect '}' after block.")
        return statements

    def parse_return(self) -> Return:
        keyword = self.ts.previous()
        value = None
        if not self.ts.check("SEMI_COLON"):
            value = self.parse_expr()
        self.expect("SEMI_COLON", "Expect ';' after return value.")
        return Return(keyword=keyword, value=value)

    def parse_if(self) -> IfStmt:
        self.expect("LPAREN", "Expect '(' after 'if'.")
        cond = self.parse_expr()
        self.expect("RPAREN", "Expect ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch = None
        if self.ts.match("ELSE"):
            else_branch = self.parse_stmt()
        return IfStmt(condition=cond, then_branch=then_branch, else_branch=else_branch)

    def parse_while(self) -> WhileStmt:
        self.expect("LPAREN", "Expect '(' after 'while'.")
        cond = self.parse_expr()
        self.expect("RPAREN", "Expect ')' after while condition.")
        return WhileStmt(condition=cond, body=self.parse_stmt())

    # forStmt -> "for" "(" (varDecl | exprStmt | ";") expression? ";" expression? ")" statement
    def parse_for(self) -> Stmt:
        self.expect("LPAREN", "Expect '(' after 'for'.")

        if self.ts.match("SEMI_COLON"):
            init = None
        elif self.ts.match("VAR"):
            init = self.parse_vardecl()
        else:
            expr = self.parse_expr()
            self.expect("SEMI_COLON", "Expect ';' after expression.")
            init = ExprStmt(expression=expr)

        cond = None
        if not self.ts.check("SEMI_COLON"):
            cond = self.parse_expr()
        self.expect("SEMI_COLON", "Expect ';' after loop condition.")

        increment = None
        if not self.ts.check("RPAREN"):
            increment = self.parse_expr()
        self.expect("RPAREN", "Expect ')' after for clauses.")

        body = self.parse_stmt()

        if increment is not None:
            incr = ExprStmt(expression=increment)
            body = Block(statements=[self.inject_increment(body, incr), incr])

        if cond is None:
            cond = Literal(value=True)
        body = WhileStmt(condition=cond, body=body)

        if init is not None:
            body = Block(statements=[init, body])
        return body

    def inject_increment(self, stmt: Optional[Stmt], incr: ExprStmt) -> Optional[Stmt]:
        """Run the increment before every ``continue`` reachable in this loop body.

        Nested loops and functions are left alone; ``break`` skips the
        increment. Each injection gets its own copy of the increment so
        every site resolves independently.
        """
        if isinstance(stmt, Block):
            return Block(statements=[self.inject_increment(s, incr) for s in stmt.statements])
        if isinstance(stmt, LoopControl):
            if stmt.is_break:
                return stmt
            return Block(statements=[copy.deepcopy(incr), stmt])
        if isinstance(stmt, IfStmt):
            else_branch = stmt.else_branch
            if else_branch is not None:
                else_branch = self.inject_increment(else_branch, incr)
            return IfStmt(condition=stmt.condition,
                          then_branch=self.inject_increment(stmt.then_branch, incr),
                          else_branch=else_branch)
        return stmt

    # ---------------- EXPRESSIONS (precedence) ----------------
    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    # assignment -> (call ".")? IDENT "=" assignment | or
    def parse_assignment(self) -> Expr:
        expr = self.parse_or()
        if self.ts.match("EQ"):
            equals = self.ts.previous()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(name=expr.name, value=value)
            if isinstance(expr, Get):
                return Set(obj=expr.obj, name=expr.name, value=value)
            raise self.error(equals, "Invalid assignment target.")
        return expr

    def parse_or(self) -> Expr:
        expr = self.parse_and()
        while self.ts.match("OR"):
            op_tok = self.ts.previous()
            rhs = self.parse_and()
            expr = Logical(left=expr, operator=op_tok, right=rhs)
        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_equality()
        while self.ts.match("AND"):
            op_tok = self.ts.previous()
            rhs = self.parse_equality()
            expr = Logical(left=expr, operator=op_tok, right=rhs)
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_comparison()
        while self.ts.match("EQ_EQ", "NOT_EQ"):
            op_tok = self.ts.previous()
            rhs = self.parse_comparison()
            expr = Binary(left=expr, operator=op_tok, right=rhs)
        return expr

    def parse_comparison(self) -> Expr:
        expr = self.parse_term()
        while self.ts.match("LESS_THAN", "GREATER_THAN", "LESS_EQ", "GREATER_EQ"):
            op_tok = self.ts.previous()
            rhs = self.parse_term()
            expr = Binary(left=expr, operator=op_tok, right=rhs)
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while self.ts.match("PLUS", "MINUS"):
            op_tok = self.ts.previous()
            rhs = self.parse_factor()
            expr = Binary(left=expr, operator=op_tok, right=rhs)
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while self.ts.match("MULT", "DIV"):
            op_tok = self.ts.previous()
            rhs = self.parse_unary()
            expr = Binary(left=expr, operator=op_tok, right=rhs)
        return expr

    def parse_unary(self) -> Expr:
        if self.ts.match("NOT", "MINUS"):
            op_tok = self.ts.previous()
            return Unary(operator=op_tok, right=self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.ts.match("LPAREN"):
                args = self.parse_arg_list_opt()
                paren = self.expect("RPAREN", "Expect ')' after arguments.")
                expr = Call(callee=expr, paren=paren, arguments=args)
            elif self.ts.match("DOT"):
                name = self.expect("ID", "Expect property name after '.'.")
                expr = Get(obj=expr, name=name)
            else:
                break
        return expr

    def parse_arg_list_opt(self) -> List[Expr]:
        args: List[Expr] = []
        if self.ts.check("RPAREN"):
            return args
        while True:
            if len(args) >= MAX_ARGS:
                raise self.error(self.ts.peek(), f"Can't have more than {MAX_ARGS} arguments.")
            args.append(self.parse_expr())
            if self.ts.match("COMMA") is None:
                break
        return args

    def parse_primary(self) -> Expr:
        if self.ts.match("FALSE"):
            return Literal(value=False)
        if self.ts.match("TRUE"):
            return Literal(value=True)
        if self.ts.match("NIL"):
            return Literal(value=None)

        if self.ts.match("NUMBER", "STRING"):
            return Literal(value=self.ts.previous().literal)

        if self.ts.match("LPAREN"):
            expr = self.parse_expr()
            self.expect("RPAREN", "Expect ')' after expression.")
            return Grouping(expression=expr)

        if self.ts.match("SUPER"):
            keyword = self.ts.previous()
            self.expect("DOT", "Expect '.' after 'super'.")
            method = self.expect("ID", "Expect superclass method name.")
            return Super(keyword=keyword, method=method)

        if self.ts.match("THIS"):
            return This(keyword=self.ts.previous())

        if self.ts.match("ID"):
            return Variable(name=self.ts.previous())

        if self.ts.match("FUN"):
            return self.parse_anonymous_function(self.ts.previous())

        raise self.error(self.ts.peek(), "Expect expression.")

    # anonFn -> "fun" "(" params? ")" block
    def parse_anonymous_function(self, keyword: Token) -> FunctionExpr:
        self.expect("LPAREN", "Expect '(' after 'fun'.")
        params = self.parse_param_list_opt()
        self.expect("RPAREN", "Expect ')' after parameters.")
        self.expect("LCURLYEBR", "Expect '{' before function body.")
        body = self.parse_block_body()
        return FunctionExpr(keyword=keyword, params=params, body=body)


def parse(tokens: List[Token], reporter=None) -> List[Optional[Stmt]]:
    return Parser(tokens, reporter).parse_program()
