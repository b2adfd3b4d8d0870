from __future__ import annotations
from typing import List, Optional
from ast_nodes import *
from interpreter import stringify


class AstPrinter:
    """Fully parenthesized, prefix rendering of an expression: (+ 1 (* 2 3))."""

    def print(self, e: Optional[Expr]) -> str:
        if e is None:
            return ""
        return self._expr(e)

    def print_program(self, statements: List[Optional[Stmt]]) -> str:
        return "\n".join(self._stmt(st) for st in statements)

    def _paren(self, name: str, *exprs: Expr) -> str:
        parts = [name] + [self._expr(e) for e in exprs]
        return "(" + " ".join(parts) + ")"

    def _expr(self, e: Expr) -> str:
        if isinstance(e, (Binary, Logical)):
            return self._paren(e.operator.lexeme, e.left, e.right)
        if isinstance(e, Unary):
            return self._paren(e.operator.lexeme, e.right)
        if isinstance(e, Grouping):
            return self._paren("group", e.expression)
        if isinstance(e, Literal):
            if isinstance(e.value, str):
                return e.value
            return stringify(e.value)
        if isinstance(e, Variable):
            return e.name.lexeme
        if isinstance(e, Assign):
            return f"(= {e.name.lexeme} {self._expr(e.value)})"
        if isinstance(e, Call):
            return self._paren("call", e.callee, *e.arguments)
        if isinstance(e, Get):
            return f"(. {self._expr(e.obj)} {e.name.lexeme})"
        if isinstance(e, Set):
            return f"(= (. {self._expr(e.obj)} {e.name.lexeme}) {self._expr(e.value)})"
        if isinstance(e, This):
            return "this"
        if isinstance(e, Super):
            return f"(super {e.method.lexeme})"
        if isinstance(e, FunctionExpr):
            params = " ".join(p.lexeme for p in e.params)
            return f"(fun ({params}) {self._body(e.body)})"
        return f"[{type(e).__name__}]"

    def _body(self, statements: List[Optional[Stmt]]) -> str:
        return "{" + " ".join(self._stmt(st) for st in statements) + "}"

    def _stmt(self, st: Optional[Stmt]) -> str:
        if st is None:
            return "(error)"
        if isinstance(st, ExprStmt):
            return f"(; {self._expr(st.expression)})"
        if isinstance(st, PrintStmt):
            return self._paren("print", st.expression)
        if isinstance(st, VarDecl):
            if st.initializer is None:
                return f"(var {st.name.lexeme})"
            return f"(var {st.name.lexeme} {self._expr(st.initializer)})"
        if isinstance(st, Block):
            return "(block " + self._body(st.statements) + ")"
        if isinstance(st, IfStmt):
            text = f"(if {self._expr(st.condition)} {self._stmt(st.then_branch)}"
            if st.else_branch is not None:
                text += f" {self._stmt(st.else_branch)}"
            return text + ")"
        if isinstance(st, WhileStmt):
            return f"(while {self._expr(st.condition)} {self._stmt(st.body)})"
        if isinstance(st, Return):
            if st.value is None:
                return "(return)"
            return self._paren("return", st.value)
        if isinstance(st, LoopControl):
            return f"({st.keyword.lexeme})"
        if isinstance(st, FunctionDef):
            params = " ".join(p.lexeme for p in st.params)
            head = "getter" if st.getter else "fun"
            return f"({head} {st.name.lexeme} ({params}) {self._body(st.body)})"
        if isinstance(st, ClassDef):
            parts = [f"class {st.name.lexeme}"]
            if st.superclass is not None:
                parts.append(f"< {st.superclass.name.lexeme}")
            if st.mixins:
                parts.append("<= " + " ".join(m.name.lexeme for m in st.mixins))
            parts += [self._stmt(m) for m in st.methods]
            parts += ["(static " + self._stmt(m) + ")" for m in st.statics]
            return "(" + " ".join(parts) + ")"
        return f"[{type(st).__name__}]"


class RpnPrinter:
    """Reverse-polish rendering of arithmetic expressions: 1 2 3 * +."""

    def print(self, e: Expr) -> str:
        if isinstance(e, (Binary, Logical)):
            return f"{self.print(e.left)} {self.print(e.right)} {e.operator.lexeme}"
        if isinstance(e, Unary):
            return f"{self.print(e.right)} {e.operator.lexeme}"
        if isinstance(e, Grouping):
            return self.print(e.expression)
        if isinstance(e, Literal):
            if isinstance(e.value, str):
                return e.value
            return stringify(e.value)
        if isinstance(e, Variable):
            return e.name.lexeme
        if isinstance(e, Assign):
            return f"{e.name.lexeme} {self.print(e.value)} ="
        return AstPrinter().print(e)
