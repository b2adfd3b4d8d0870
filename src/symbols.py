from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, List

from lexer import Token

THIS_NAME = "this"
SUPER_NAME = "super"


class VariableStatus(Enum):
    DECLARED = "declared"
    DEFINED = "defined"
    USED = "used"


class FunctionType(Enum):
    NONE = "none"
    FUNCTION = "function"
    METHOD = "method"
    INITIALIZER = "initializer"


class ClassType(Enum):
    NONE = "none"
    CLASS = "class"
    SUBCLASS = "subclass"


@dataclass
class VarSymbol:
    name: str
    status: VariableStatus = VariableStatus.DECLARED
    # None for synthetic bindings (this/super)
    token: Optional[Token] = None


@dataclass
class Scope:
    vars: Dict[str, VarSymbol] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.vars

    def declare(self, sym: VarSymbol) -> bool:
        is_new = sym.name not in self.vars
        self.vars[sym.name] = sym
        return is_new

    def status(self, name: str) -> Optional[VariableStatus]:
        sym = self.vars.get(name)
        return sym.status if sym else None

    def define(self, name: str):
        # a closure in the initializer may already have marked it used
        sym = self.vars[name]
        if sym.status == VariableStatus.DECLARED:
            sym.status = VariableStatus.DEFINED

    def use(self, name: str):
        self.vars[name].status = VariableStatus.USED

    def unused(self) -> List[VarSymbol]:
        return [s for s in self.vars.values()
                if s.token is not None and s.status != VariableStatus.USED]
