"""
Function IR and its debug display.
"""

from .nodes import (
    Expr, ExprVisitor, Block, Call, LocalGet, LocalSet, LocalTee, GlobalGet,
    GlobalSet, Const, Binop, Unop, Select, Unreachable, Br, BrIf, IfElse,
    BrTable, Drop, Return, MemorySize, MemoryGrow, Load, Store,
)
from .function import (
    Function, FunctionType, ImportedFunction, LocalFunction, UninitializedFunction,
    Module, Local, Global, Memory,
)
from .builder import FunctionBuilder, BlockBuilder
from .display import DisplayExpr, Layout, display, display_ir, display_module, fmt_id
from .display_kinds import ExprDisplay
from .loader import ModuleLoader, load_module
