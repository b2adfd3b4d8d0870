from __future__ import annotations
import logging
import sys
import time
from typing import Any, Dict, List, Optional, TextIO
from ast_nodes import *
from errors import LoxRuntimeError, InternalError
from runtime import (Environment, Completion, CompletionKind, NORMAL, LoxCallable,
                     LoxFunction, FunctionKind, NativeFunction, LoxInstance, LoxClass,
                     make_class, loop_escape_error)
from symbols import THIS_NAME, SUPER_NAME

logger = logging.getLogger(__name__)

# every Lox call nests about eight Python frames
RECURSION_LIMIT = 10000
STACK_OVERFLOW = "Stack overflow."


# ---------- value helpers ----------
def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # True == 1.0 in Python; not in Lox
    if type(a) is not type(b):
        return False
    return a == b


def stringify(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        text = repr(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text
    return str(value)


def inspect(value: Any) -> str:
    """Like stringify, but quotes strings; used for interactive echo."""
    if isinstance(value, str):
        return f'"{value}"'
    return stringify(value)


def _clock(interpreter, arguments):
    return time.time()


class Interpreter:
    def __init__(self, reporter=None, output: Optional[TextIO] = None):
        self.reporter = reporter
        self.output = output
        self.globals = Environment()
        self.environment = self.globals
        # expression node -> number of scopes to its binding
        self.locals: Dict[Expr, int] = {}

        self.globals.define("clock", NativeFunction("clock", 0, _clock))

        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)

    def resolve(self, expr: Expr, depth: int):
        self.locals[expr] = depth

    def interpret(self, statements: List[Optional[Stmt]]):
        try:
            try:
                for st in statements:
                    completion = self.execute(st)
                    if not completion.is_normal:
                        self._check_top_level(completion)
            except RecursionError:
                # overflow outside any call, e.g. deeply nested expressions
                raise LoxRuntimeError(None, STACK_OVERFLOW) from None
        except LoxRuntimeError as e:
            logger.debug("runtime error halted the program: %s", e.message)
            if self.reporter is not None:
                self.reporter.runtime_error(e)
            else:
                raise
        except InternalError as e:
            if self.reporter is not None:
                self.reporter.runtime_error(e)
            raise

    def _check_top_level(self, completion: Completion):
        if completion.kind in (CompletionKind.BREAK, CompletionKind.CONTINUE):
            raise loop_escape_error(completion)
        # a stray top-level return is rejected by the resolver

    # ---------- statements ----------
    def execute(self, st: Optional[Stmt]) -> Completion:
        if st is None:
            return NORMAL

        if isinstance(st, ExprStmt):
            self.evaluate(st.expression)
            return NORMAL

        if isinstance(st, PrintStmt):
            value = self.evaluate(st.expression)
            print(stringify(value), file=self.output or sys.stdout)
            return NORMAL

        if isinstance(st, VarDecl):
            if st.initializer is not None:
                self.environment.define(st.name.lexeme, self.evaluate(st.initializer))
            else:
                self.environment.declare(st.name.lexeme)
            return NORMAL

        if isinstance(st, Block):
            return self.execute_block(st.statements, Environment(self.environment))

        if isinstance(st, IfStmt):
            if is_truthy(self.evaluate(st.condition)):
                return self.execute(st.then_branch)
            return self.execute(st.else_branch)

        if isinstance(st, WhileStmt):
            return self._execute_while(st)

        if isinstance(st, Return):
            value = None
            if st.value is not None:
                value = self.evaluate(st.value)
            return Completion(CompletionKind.RETURN, value, st.keyword)

        if isinstance(st, LoopControl):
            kind = CompletionKind.BREAK if st.is_break else CompletionKind.CONTINUE
            return Completion(kind, token=st.keyword)

        if isinstance(st, FunctionDef):
            function = LoxFunction(st, self.environment, FunctionKind.PLAIN)
            self.environment.define(st.name.lexeme, function)
            return NORMAL

        if isinstance(st, ClassDef):
            self._execute_class(st)
            return NORMAL

        raise InternalError(None, f"Unknown statement {type(st).__name__}")

    def execute_block(self, statements: List[Optional[Stmt]], environment: Environment) -> Completion:
        previous = self.environment
        self.environment = environment
        try:
            for st in statements:
                completion = self.execute(st)
                if not completion.is_normal:
                    return completion
            return NORMAL
        finally:
            self.environment = previous

    def _execute_while(self, st: WhileStmt) -> Completion:
        while is_truthy(self.evaluate(st.condition)):
            completion = self.execute(st.body)
            if completion.kind == CompletionKind.BREAK:
                break
            if completion.kind == CompletionKind.RETURN:
                return completion
            # CONTINUE falls through to the next condition check
        return NORMAL

    def _execute_class(self, st: ClassDef):
        superclass = None
        if st.superclass is not None:
            superclass = self.evaluate(st.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(st.superclass.name, "Superclass must be a class.")

        mixins: List[LoxClass] = []
        for mixin_expr in st.mixins:
            mixin = self.evaluate(mixin_expr)
            if not isinstance(mixin, LoxClass):
                raise LoxRuntimeError(mixin_expr.name, "Mixin must be a class.")
            mixins.append(mixin)

        self.environment.declare(st.name.lexeme)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define(SUPER_NAME, superclass)

        try:
            methods: Dict[str, LoxFunction] = {}
            for method in st.methods:
                kind = FunctionKind.PLAIN
                if method.getter:
                    kind = FunctionKind.GETTER
                elif method.name.lexeme == "init":
                    kind = FunctionKind.INITIALIZER
                methods[method.name.lexeme] = LoxFunction(method, self.environment, kind)

            statics: Dict[str, LoxFunction] = {}
            for static in st.statics:
                kind = FunctionKind.GETTER if static.getter else FunctionKind.PLAIN
                statics[static.name.lexeme] = LoxFunction(static, self.environment, kind)
        finally:
            if superclass is not None:
                self.environment = self.environment.enclosing

        klass = make_class(st.name.lexeme, superclass, mixins, methods, statics)
        self.environment.define(st.name.lexeme, klass)

    # ---------- expressions ----------
    def evaluate(self, e: Expr) -> Any:
        if isinstance(e, Literal):
            return e.value

        if isinstance(e, Grouping):
            return self.evaluate(e.expression)

        if isinstance(e, Variable):
            return self._look_up_variable(e.name, e)

        if isinstance(e, Assign):
            value = self.evaluate(e.value)
            distance = self.locals.get(e)
            if distance is not None:
                self.environment.assign_at(distance, e.name.lexeme, value)
            else:
                self.globals.assign(e.name, value)
            return value

        if isinstance(e, Unary):
            return self._eval_unary(e)

        if isinstance(e, Binary):
            return self._eval_binary(e)

        if isinstance(e, Logical):
            left = self.evaluate(e.left)
            if e.operator.type == "OR":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(e.right)

        if isinstance(e, Call):
            return self._eval_call(e)

        if isinstance(e, Get):
            obj = self.evaluate(e.obj)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(e.name, "Only instances have properties.")
            return self._invoke_getter(obj.get(e.name))

        if isinstance(e, Set):
            obj = self.evaluate(e.obj)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(e.name, "Only instances have fields.")
            value = self.evaluate(e.value)
            obj.set(e.name, value)
            return value

        if isinstance(e, This):
            return self._look_up_variable(e.keyword, e)

        if isinstance(e, Super):
            return self._eval_super(e)

        if isinstance(e, FunctionExpr):
            return LoxFunction(e, self.environment, FunctionKind.PLAIN)

        raise InternalError(None, f"Unknown expression {type(e).__name__}")

    def _look_up_variable(self, name: Token, e: Expr) -> Any:
        distance = self.locals.get(e)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme, name)
        return self.globals.get(name)

    def _invoke_getter(self, value: Any) -> Any:
        if isinstance(value, LoxFunction) and value.kind == FunctionKind.GETTER:
            return value.call(self, [])
        return value

    def _eval_super(self, e: Super) -> Any:
        distance = self.locals.get(e)
        if distance is None:
            raise InternalError(e.keyword, "'super' was not resolved.")
        superclass = self.environment.get_at(distance, SUPER_NAME, e.keyword)
        # "this" is always bound one scope inside "super"
        instance = self.environment.get_at(distance - 1, THIS_NAME, e.keyword)

        method = superclass.find_method(e.method.lexeme)
        if method is None:
            raise LoxRuntimeError(e.method, f"Undefined property '{e.method.lexeme}'.")
        # getters are only invoked on instance property access
        return method.bind(instance)

    def _eval_unary(self, e: Unary) -> Any:
        right = self.evaluate(e.right)
        if e.operator.type == "MINUS":
            self._check_number_operand(e.operator, right)
            return -right
        if e.operator.type == "NOT":
            return not is_truthy(right)
        return None

    def _eval_binary(self, e: Binary) -> Any:
        left = self.evaluate(e.left)
        right = self.evaluate(e.right)
        op = e.operator

        if op.type == "PLUS":
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str):
                return left + stringify(right)
            raise LoxRuntimeError(op, "Operands must be two numbers or two strings.")

        if op.type == "EQ_EQ":
            return is_equal(left, right)
        if op.type == "NOT_EQ":
            return not is_equal(left, right)

        self._check_number_operands(op, left, right)
        if op.type == "MINUS":
            return left - right
        if op.type == "MULT":
            return left * right
        if op.type == "DIV":
            if right == 0:
                raise LoxRuntimeError(op, "Cannot divide by zero.")
            return left / right
        if op.type == "GREATER_THAN":
            return left > right
        if op.type == "GREATER_EQ":
            return left >= right
        if op.type == "LESS_THAN":
            return left < right
        if op.type == "LESS_EQ":
            return left <= right
        return None

    def _eval_call(self, e: Call) -> Any:
        callee = self.evaluate(e.callee)
        arguments = [self.evaluate(arg) for arg in e.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(e.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(e.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(e.paren, STACK_OVERFLOW) from None

    @staticmethod
    def _check_number_operand(op: Token, operand: Any):
        if isinstance(operand, float):
            return
        raise LoxRuntimeError(op, "Operand must be a number.")

    @staticmethod
    def _check_number_operands(op: Token, left: Any, right: Any):
        if isinstance(left, float) and isinstance(right, float):
            return
        raise LoxRuntimeError(op, "Operands must be numbers.")
