"""
Function Builder

Rust Pattern: walrus::FunctionBuilder

Builds a LocalFunction bottom-up: operands are created first and referenced
by id from the expression that consumes them. Blocks are the exception:
they are allocated before their children so branches inside them can name
their target, then filled through a BlockBuilder.
"""

from typing import Iterable, Sequence

from ..shared.arena import Arena, BlockId, ExprId, FunctionId, GlobalId, LocalId, MemoryId, TypeId
from ..shared.types import BinaryOp, BlockKind, LoadKind, MemArg, StoreKind, UnaryOp, ValType, Value
from .function import LocalFunction
from .nodes import (
    Binop, Block, Br, BrIf, BrTable, Call, Const, Drop, Expr, GlobalGet, GlobalSet,
    IfElse, Load, LocalGet, LocalSet, LocalTee, MemoryGrow, MemorySize, Return,
    Select, Store, Unop, Unreachable,
)


class BlockBuilder:
    """Appends children to one block of a FunctionBuilder."""

    def __init__(self, builder: "FunctionBuilder", id: BlockId):
        self.builder = builder
        self.id = id

    def expr(self, expr: ExprId) -> "BlockBuilder":
        self.builder.exprs[self.id].exprs.append(expr)
        return self

    def extend(self, exprs: Iterable[ExprId]) -> "BlockBuilder":
        for expr in exprs:
            self.expr(expr)
        return self


class FunctionBuilder:
    """
    Incremental constructor for one local function body.

    The entry block is allocated in __init__, so it always has index 0.
    """

    def __init__(self, ty: TypeId, args: Sequence[LocalId] = (),
                 params: Sequence[ValType] = (), results: Sequence[ValType] = ()):
        self.ty = ty
        self.args = list(args)
        self.exprs: Arena[Expr] = Arena()
        self.entry = self.block(BlockKind.FUNCTION_ENTRY, params, results)

    def _alloc(self, expr: Expr) -> ExprId:
        return self.exprs.alloc(expr)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def block(self, kind: BlockKind = BlockKind.BLOCK,
              params: Sequence[ValType] = (), results: Sequence[ValType] = ()) -> BlockBuilder:
        return BlockBuilder(self, self._alloc(Block(kind, params, results)))

    def loop_(self, params: Sequence[ValType] = (), results: Sequence[ValType] = ()) -> BlockBuilder:
        return self.block(BlockKind.LOOP, params, results)

    def if_else(self, condition: ExprId, consequent: BlockId, alternative: BlockId) -> ExprId:
        return self._alloc(IfElse(condition, consequent, alternative))

    # ------------------------------------------------------------------
    # Plain expressions
    # ------------------------------------------------------------------

    def call(self, func: FunctionId, args: Sequence[ExprId] = ()) -> ExprId:
        return self._alloc(Call(func, args))

    def local_get(self, local: LocalId) -> ExprId:
        return self._alloc(LocalGet(local))

    def local_set(self, local: LocalId, value: ExprId) -> ExprId:
        return self._alloc(LocalSet(local, value))

    def local_tee(self, local: LocalId, value: ExprId) -> ExprId:
        return self._alloc(LocalTee(local, value))

    def global_get(self, global_: GlobalId) -> ExprId:
        return self._alloc(GlobalGet(global_))

    def global_set(self, global_: GlobalId, value: ExprId) -> ExprId:
        return self._alloc(GlobalSet(global_, value))

    def const(self, value: Value) -> ExprId:
        return self._alloc(Const(value))

    def i32_const(self, raw: int) -> ExprId:
        return self.const(Value.of(ValType.I32, raw))

    def binop(self, op: BinaryOp, lhs: ExprId, rhs: ExprId) -> ExprId:
        return self._alloc(Binop(op, lhs, rhs))

    def unop(self, op: UnaryOp, expr: ExprId) -> ExprId:
        return self._alloc(Unop(op, expr))

    def select(self, condition: ExprId, consequent: ExprId, alternative: ExprId) -> ExprId:
        return self._alloc(Select(condition, consequent, alternative))

    def unreachable(self) -> ExprId:
        return self._alloc(Unreachable())

    def br(self, block: BlockId, args: Sequence[ExprId] = ()) -> ExprId:
        return self._alloc(Br(block, args))

    def br_if(self, condition: ExprId, block: BlockId, args: Sequence[ExprId] = ()) -> ExprId:
        return self._alloc(BrIf(condition, block, args))

    def br_table(self, which: ExprId, blocks: Sequence[BlockId], default: BlockId,
                 args: Sequence[ExprId] = ()) -> ExprId:
        return self._alloc(BrTable(which, blocks, default, args))

    def drop(self, expr: ExprId) -> ExprId:
        return self._alloc(Drop(expr))

    def return_(self, values: Sequence[ExprId] = ()) -> ExprId:
        return self._alloc(Return(values))

    def memory_size(self, memory: MemoryId) -> ExprId:
        return self._alloc(MemorySize(memory))

    def memory_grow(self, memory: MemoryId, pages: ExprId) -> ExprId:
        return self._alloc(MemoryGrow(memory, pages))

    def load(self, memory: MemoryId, kind: LoadKind, arg: MemArg, address: ExprId) -> ExprId:
        return self._alloc(Load(memory, kind, arg, address))

    def store(self, memory: MemoryId, kind: StoreKind, arg: MemArg,
              address: ExprId, value: ExprId) -> ExprId:
        return self._alloc(Store(memory, kind, arg, address, value))

    # ------------------------------------------------------------------

    def finish(self, entry_exprs: Sequence[ExprId] = ()) -> LocalFunction:
        """Append `entry_exprs` to the entry block and hand over the arena."""
        self.entry.extend(entry_exprs)
        return LocalFunction(self.ty, self.args, self.exprs, self.entry.id)
