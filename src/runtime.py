from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Union, TYPE_CHECKING

from lexer import Token
from ast_nodes import FunctionDef, FunctionExpr
from errors import LoxRuntimeError, InternalError
from symbols import THIS_NAME

if TYPE_CHECKING:
    from interpreter import Interpreter


# ---------- Environments ----------
@dataclass(eq=False)
class Environment:
    """One scope frame.

    A name is either absent, declared but uninitialized, or bound to a value.
    Frames are shared by every closure that captured them.
    """
    enclosing: Optional["Environment"] = None
    values: Dict[str, Any] = field(default_factory=dict)
    uninitialized: Set[str] = field(default_factory=set)

    def define(self, name: str, value: Any):
        self.uninitialized.discard(name)
        self.values[name] = value

    def declare(self, name: str):
        self.values.pop(name, None)
        self.uninitialized.add(name)

    def contains(self, name: str) -> bool:
        return name in self.values or name in self.uninitialized

    def get(self, name: Token) -> Any:
        cur = self
        while cur:
            if name.lexeme in cur.values:
                return cur.values[name.lexeme]
            if name.lexeme in cur.uninitialized:
                raise LoxRuntimeError(name, f"Variable '{name.lexeme}' was used before initialized.")
            cur = cur.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}' referenced.")

    def assign(self, name: Token, value: Any):
        cur = self
        while cur:
            if cur.contains(name.lexeme):
                cur.define(name.lexeme, value)
                return
            cur = cur.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}' assigned to.")

    def ancestor(self, distance: int) -> "Environment":
        env = self
        for _ in range(distance):
            env = env.enclosing
            if env is None:
                raise InternalError(None, f"No scope {distance} levels up.")
        return env

    def get_at(self, distance: int, name: str, token: Optional[Token] = None) -> Any:
        env = self.ancestor(distance)
        if name in env.values:
            return env.values[name]
        if name in env.uninitialized:
            raise LoxRuntimeError(token, f"Variable '{name}' was used before initialized.")
        raise InternalError(token, f"Resolved variable '{name}' is missing from its scope.")

    def assign_at(self, distance: int, name: str, value: Any):
        self.ancestor(distance).define(name, value)


# ---------- Control flow ----------
class CompletionKind(Enum):
    NORMAL = "normal"
    RETURN = "return"
    BREAK = "break"
    CONTINUE = "continue"


@dataclass(frozen=True)
class Completion:
    """How a statement finished. Non-normal kinds unwind to their boundary."""
    kind: CompletionKind
    value: Any = None
    token: Optional[Token] = None

    @property
    def is_normal(self) -> bool:
        return self.kind is CompletionKind.NORMAL


NORMAL = Completion(CompletionKind.NORMAL)


def loop_escape_error(completion: Completion) -> LoxRuntimeError:
    return LoxRuntimeError(completion.token,
                           f"'{completion.token.lexeme}' encountered outside of loop body.")


# ---------- Callables ----------
class LoxCallable:
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        raise NotImplementedError


class FunctionKind(Enum):
    PLAIN = "plain"
    INITIALIZER = "initializer"
    GETTER = "getter"


class LoxFunction(LoxCallable):
    def __init__(self, declaration: Union[FunctionDef, FunctionExpr], closure: Environment,
                 kind: FunctionKind = FunctionKind.PLAIN):
        self.declaration = declaration
        self.closure = closure
        self.kind = kind

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.declaration, FunctionDef):
            return self.declaration.name.lexeme
        return None

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: "LoxInstance") -> "LoxFunction":
        env = Environment(self.closure)
        env.define(THIS_NAME, instance)
        return LoxFunction(self.declaration, env, self.kind)

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)

        completion = interpreter.execute_block(self.declaration.body, env)
        if completion.kind in (CompletionKind.BREAK, CompletionKind.CONTINUE):
            raise loop_escape_error(completion)

        if self.kind == FunctionKind.INITIALIZER:
            return self.closure.get_at(0, THIS_NAME)
        if completion.kind == CompletionKind.RETURN:
            return completion.value
        return None

    def __str__(self):
        if self.name is None:
            return "<anonymous fn>"
        return f"<fn {self.name}>"


class NativeFunction(LoxCallable):
    def __init__(self, name: str, arity: int, body: Callable[["Interpreter", List[Any]], Any]):
        self.name = name
        self._arity = arity
        self.body = body

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        return self.body(interpreter, arguments)

    def __str__(self):
        return "<native fn>"


# ---------- Classes and instances ----------
class LoxInstance:
    def __init__(self, klass: Optional["LoxClass"]):
        # None only for metaclasses
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        if self.klass is None:
            raise InternalError(name, f"Metaclass property '{name.lexeme}' looked up on a metaclass.")

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"


class LoxClass(LoxInstance, LoxCallable):
    """A class value. It is itself an instance of its metaclass, which holds
    the static methods, so ``Klass.method`` goes through ``LoxInstance.get``.
    """

    def __init__(self, name: str, superclass: Optional["LoxClass"],
                 mixins: List["LoxClass"], methods: Dict[str, LoxFunction],
                 metaclass: Optional["LoxClass"] = None):
        super().__init__(metaclass)
        self.name = name
        self.superclass = superclass
        self.mixins = mixins
        self.methods = methods

    @property
    def metaclass(self) -> Optional["LoxClass"]:
        return self.klass

    def find_method(self, name: str) -> Optional[LoxFunction]:
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            method = self.superclass.find_method(name)
            if method is not None:
                return method
        for mixin in self.mixins:
            method = mixin.find_method(name)
            if method is not None:
                return method
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name


def make_class(name: str, superclass: Optional[LoxClass], mixins: List[LoxClass],
               methods: Dict[str, LoxFunction], statics: Dict[str, LoxFunction]) -> LoxClass:
    """Build a class together with its metaclass.

    The metaclass inherits from the superclass's metaclass and mixes in the
    mixins' metaclasses, so statics resolve in the same order as methods.
    """
    meta_super = superclass.metaclass if superclass is not None else None
    meta_mixins = [m.metaclass for m in mixins if m.metaclass is not None]
    metaclass = LoxClass(f"{name} metaclass", meta_super, meta_mixins, statics)
    return LoxClass(name, superclass, mixins, methods, metaclass)
