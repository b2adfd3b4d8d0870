from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Set as SetType, Union
from ast_nodes import *
from symbols import (Scope, VarSymbol, VariableStatus, FunctionType, ClassType,
                     THIS_NAME, SUPER_NAME)

logger = logging.getLogger(__name__)


@dataclass
class ResolveError:
    message: str
    token: Token

    @property
    def line(self) -> int:
        return self.token.line


class Resolver:
    """Static pass between parsing and execution.

    Records, for every local variable access, how many scopes separate the
    access from its binding (``interpreter.resolve(expr, depth)``) and
    reports scoping mistakes. Names bound in no enclosing scope are globals
    and get no entry. Every rule violation is reported and resolution
    carries on, so one pass reports all of them.
    """

    def __init__(self, interpreter, reporter=None):
        self.interpreter = interpreter
        self.reporter = reporter
        self.errors: List[ResolveError] = []
        self.scopes: List[Scope] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

        # top-level bookkeeping, only used to catch `var x = x;` on globals
        self.pending_globals: SetType[str] = set()
        self.defined_globals: SetType[str] = set()

    def error(self, msg: str, token: Token):
        self.errors.append(ResolveError(msg, token))
        if self.reporter is not None:
            self.reporter.token_error(token, msg)

    def resolve(self, statements: List[Optional[Stmt]]) -> List[ResolveError]:
        for st in statements:
            self._resolve_stmt(st)
        logger.debug("resolved %d statements, %d errors", len(statements), len(self.errors))
        return self.errors

    # ---------- scopes ----------
    def _begin_scope(self):
        self.scopes.append(Scope())

    def _end_scope(self):
        scope = self.scopes.pop()
        for sym in scope.unused():
            self.error(f"Unused variable '{sym.name}'.", sym.token)

    def _declare(self, name: Token):
        if not self.scopes:
            self.pending_globals.add(name.lexeme)
            return
        scope = self.scopes[-1]
        if not scope.declare(VarSymbol(name.lexeme, VariableStatus.DECLARED, name)):
            self.error("Already a variable with this name in this scope.", name)

    def _define(self, name: Token):
        if not self.scopes:
            self.pending_globals.discard(name.lexeme)
            self.defined_globals.add(name.lexeme)
            return
        self.scopes[-1].define(name.lexeme)

    def _declare_synthetic(self, name: str):
        self.scopes[-1].declare(VarSymbol(name, VariableStatus.USED))

    def _is_known_global(self, name: str) -> bool:
        return name in self.defined_globals or self.interpreter.globals.contains(name)

    def _resolve_local(self, expr: Expr, name: Token, read: bool, skip: int = 0) -> bool:
        last = len(self.scopes) - 1
        for i in range(last - skip, -1, -1):
            scope = self.scopes[i]
            if name.lexeme in scope:
                self.interpreter.resolve(expr, last - i)
                if read:
                    scope.use(name.lexeme)
                return True
        return False

    # ---------- statements ----------
    def _resolve_stmt(self, st: Optional[Stmt]):
        if st is None:
            # failed to parse; already reported
            return
        if isinstance(st, Block):
            self._begin_scope()
            for inner in st.statements:
                self._resolve_stmt(inner)
            self._end_scope()
        elif isinstance(st, VarDecl):
            self._declare(st.name)
            if st.initializer is not None:
                self._resolve_expr(st.initializer)
            self._define(st.name)
        elif isinstance(st, FunctionDef):
            self._declare(st.name)
            self._define(st.name)
            if self.scopes:
                self.scopes[-1].use(st.name.lexeme)
            self._resolve_function(st, FunctionType.FUNCTION)
        elif isinstance(st, ClassDef):
            self._resolve_class(st)
        elif isinstance(st, (ExprStmt, PrintStmt)):
            self._resolve_expr(st.expression)
        elif isinstance(st, IfStmt):
            self._resolve_expr(st.condition)
            self._resolve_stmt(st.then_branch)
            if st.else_branch is not None:
                self._resolve_stmt(st.else_branch)
        elif isinstance(st, WhileStmt):
            self._resolve_expr(st.condition)
            self._resolve_stmt(st.body)
        elif isinstance(st, Return):
            self._resolve_return(st)
        elif isinstance(st, LoopControl):
            # checked at runtime
            pass

    def _resolve_return(self, st: Return):
        if self.current_function == FunctionType.NONE:
            self.error("Can't return from top-level code.", st.keyword)
        if st.value is not None:
            if self.current_function == FunctionType.INITIALIZER:
                self.error("Can't return a value from an initializer.", st.keyword)
            self._resolve_expr(st.value)

    def _resolve_class(self, st: ClassDef):
        enclosing = self.current_class
        self.current_class = ClassType.CLASS

        self._declare(st.name)
        self._define(st.name)

        if st.superclass is not None:
            if st.superclass.name.lexeme == st.name.lexeme:
                self.error("A class can't inherit from itself.", st.superclass.name)
            self.current_class = ClassType.SUBCLASS
            self._resolve_expr(st.superclass)

        for mixin in st.mixins:
            if mixin.name.lexeme == st.name.lexeme:
                self.error("A class can't mixin itself.", mixin.name)
            self._resolve_expr(mixin)

        if st.superclass is not None:
            self._begin_scope()
            self._declare_synthetic(SUPER_NAME)

        self._begin_scope()
        self._declare_synthetic(THIS_NAME)

        for method in st.methods:
            declaration = FunctionType.METHOD
            if method.name.lexeme == "init":
                if method.getter:
                    self.error("The initializer cannot be defined as a getter.", method.name)
                declaration = FunctionType.INITIALIZER
            self._resolve_function(method, declaration)

        for static in st.statics:
            self._resolve_function(static, FunctionType.METHOD)

        self._end_scope()
        if st.superclass is not None:
            self._end_scope()

        self.current_class = enclosing

    def _resolve_function(self, fn: Union[FunctionDef, FunctionExpr], ftype: FunctionType):
        if isinstance(fn, FunctionDef) and fn.getter and self.current_class == ClassType.NONE:
            self.error("Getters can only be defined inside a class.", fn.name)

        enclosing = self.current_function
        self.current_function = ftype

        self._begin_scope()
        for param in fn.params:
            self._declare(param)
            self._define(param)
            self.scopes[-1].use(param.lexeme)
        for st in fn.body:
            self._resolve_stmt(st)
        self._end_scope()

        self.current_function = enclosing

    # ---------- expressions ----------
    def _resolve_expr(self, e: Expr):
        if isinstance(e, Variable):
            self._resolve_variable(e)
        elif isinstance(e, Assign):
            self._resolve_expr(e.value)
            self._resolve_local(e, e.name, read=False)
        elif isinstance(e, (Binary, Logical)):
            self._resolve_expr(e.left)
            self._resolve_expr(e.right)
        elif isinstance(e, Unary):
            self._resolve_expr(e.right)
        elif isinstance(e, Grouping):
            self._resolve_expr(e.expression)
        elif isinstance(e, Call):
            self._resolve_expr(e.callee)
            for arg in e.arguments:
                self._resolve_expr(arg)
        elif isinstance(e, Get):
            self._resolve_expr(e.obj)
        elif isinstance(e, Set):
            self._resolve_expr(e.value)
            self._resolve_expr(e.obj)
        elif isinstance(e, This):
            if self.current_class == ClassType.NONE:
                self.error("Can't use 'this' outside of a class.", e.keyword)
                return
            self._resolve_local(e, e.keyword, read=True)
        elif isinstance(e, Super):
            if self.current_class == ClassType.NONE:
                self.error("Can't use 'super' outside of a class.", e.keyword)
                return
            if self.current_class != ClassType.SUBCLASS:
                self.error("Can't use 'super' in a class with no superclass.", e.keyword)
            self._resolve_local(e, e.keyword, read=True)
        elif isinstance(e, FunctionExpr):
            self._resolve_function(e, FunctionType.FUNCTION)
        elif isinstance(e, Literal):
            pass

    def _resolve_variable(self, e: Variable):
        name = e.name.lexeme

        if not self.scopes:
            if name in self.pending_globals and not self._is_known_global(name):
                self.error("Can't read local variable in its own initializer.", e.name)
            return

        if self.scopes[-1].status(name) == VariableStatus.DECLARED:
            # `var x = x;` reads an enclosing x when there is one
            if self._resolve_local(e, e.name, read=True, skip=1):
                return
            if not self._is_known_global(name):
                self.error("Can't read local variable in its own initializer.", e.name)
            return

        self._resolve_local(e, e.name, read=True)
