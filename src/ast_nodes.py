from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Any

from lexer import Token

# Nodes are frozen and compared by identity (eq=False): the resolver keys
# scope distances on the node object itself.


class Node: ...

# ---------- Expressions ----------
class Expr(Node): ...

@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr = None
    operator: Token = None
    right: Expr = None

@dataclass(frozen=True, eq=False)
class Logical(Expr):
    left: Expr = None
    operator: Token = None
    right: Expr = None

@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token = None
    right: Expr = None

@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr = None

@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: Any = None

@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token = None

@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token = None
    value: Expr = None

@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr = None
    paren: Token = None
    arguments: List[Expr] = field(default_factory=list)

@dataclass(frozen=True, eq=False)
class Get(Expr):
    obj: Expr = None
    name: Token = None

@dataclass(frozen=True, eq=False)
class Set(Expr):
    obj: Expr = None
    name: Token = None
    value: Expr = None

@dataclass(frozen=True, eq=False)
class Super(Expr):
    keyword: Token = None
    method: Token = None

@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token = None

@dataclass(frozen=True, eq=False)
class FunctionExpr(Expr):
    keyword: Token = None
    params: List[Token] = field(default_factory=list)
    body: List["Stmt"] = field(default_factory=list)

# ---------- Statements ----------
class Stmt(Node): ...

@dataclass(frozen=True, eq=False)
class ExprStmt(Stmt):
    expression: Expr = None

@dataclass(frozen=True, eq=False)
class PrintStmt(Stmt):
    expression: Expr = None

@dataclass(frozen=True, eq=False)
class VarDecl(Stmt):
    name: Token = None
    initializer: Optional[Expr] = None

@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Optional[Stmt]] = field(default_factory=list)

@dataclass(frozen=True, eq=False)
class IfStmt(Stmt):
    condition: Expr = None
    then_branch: Stmt = None
    else_branch: Optional[Stmt] = None

@dataclass(frozen=True, eq=False)
class WhileStmt(Stmt):
    condition: Expr = None
    body: Stmt = None

@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token = None
    value: Optional[Expr] = None

@dataclass(frozen=True, eq=False)
class LoopControl(Stmt):
    keyword: Token = None

    @property
    def is_break(self) -> bool:
        return self.keyword.type == "BREAK"

@dataclass(frozen=True, eq=False)
class FunctionDef(Stmt):
    name: Token = None
    params: List[Token] = field(default_factory=list)
    body: List[Optional[Stmt]] = field(default_factory=list)
    getter: bool = False

@dataclass(frozen=True, eq=False)
class ClassDef(Stmt):
    name: Token = None
    superclass: Optional[Variable] = None
    mixins: List[Variable] = field(default_factory=list)
    methods: List[FunctionDef] = field(default_factory=list)
    statics: List[FunctionDef] = field(default_factory=list)
