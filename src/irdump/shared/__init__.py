"""
Shared components: arenas, value/operator types and errors.
"""

from .arena import (
    Arena, Id, ExprId, BlockId, LocalId, GlobalId, MemoryId, FunctionId, TypeId,
)
from .errors import IrdumpError, ArenaMismatchError, LoadError
from .types import (
    ValType, Value, BinaryOp, UnaryOp, BlockKind, LoadKind, StoreKind, MemArg,
)
