"""
Per-kind expression rendering for the debug display.

Each visit method prints what goes between one node's parentheses: its
mnemonic, then its operands in field order. Expression operands recurse
through DisplayExpr.expr_id(); references to locals, globals, functions,
memories and branch targets go through DisplayExpr.id(); immediates are
written as text with a single leading space. Parentheses, indentation and
line breaks belong to DisplayExpr and are never written here.
"""

from typing import TYPE_CHECKING, Sequence

from ..shared.arena import ExprId
from .nodes import (
    Binop, Block, Br, BrIf, BrTable, Call, Const, Drop, ExprVisitor, GlobalGet,
    GlobalSet, IfElse, Load, LocalGet, LocalSet, LocalTee, MemoryGrow, MemorySize,
    Return, Select, Store, Unop, Unreachable,
)

if TYPE_CHECKING:
    from ..shared.types import MemArg
    from .display import DisplayExpr


class ExprDisplay(ExprVisitor[None]):
    """Default renderer: one mnemonic per kind, operands in field order."""

    def __init__(self, d: "DisplayExpr"):
        self.d = d

    def _exprs(self, ids: Sequence[ExprId]) -> None:
        for id in ids:
            self.d.expr_id(id)

    def _memarg(self, arg: "MemArg") -> None:
        self.d.text(f" offset={arg.offset} align={arg.align}")

    def visit_block(self, node: Block) -> None:
        self.d.text(node.kind.value)
        self._exprs(node.exprs)

    def visit_call(self, node: Call) -> None:
        self.d.text("call")
        self.d.id(node.func)
        self._exprs(node.args)

    def visit_local_get(self, node: LocalGet) -> None:
        self.d.text("local.get")
        self.d.id(node.local)

    def visit_local_set(self, node: LocalSet) -> None:
        self.d.text("local.set")
        self.d.id(node.local)
        self.d.expr_id(node.value)

    def visit_local_tee(self, node: LocalTee) -> None:
        self.d.text("local.tee")
        self.d.id(node.local)
        self.d.expr_id(node.value)

    def visit_global_get(self, node: GlobalGet) -> None:
        self.d.text("global.get")
        self.d.id(node.global_)

    def visit_global_set(self, node: GlobalSet) -> None:
        self.d.text("global.set")
        self.d.id(node.global_)
        self.d.expr_id(node.value)

    def visit_const(self, node: Const) -> None:
        self.d.text(f"{node.value.ty.value}.const {node.value}")

    def visit_binop(self, node: Binop) -> None:
        self.d.text(node.op.value)
        self.d.expr_id(node.lhs)
        self.d.expr_id(node.rhs)

    def visit_unop(self, node: Unop) -> None:
        self.d.text(node.op.value)
        self.d.expr_id(node.expr)

    def visit_select(self, node: Select) -> None:
        self.d.text("select")
        self.d.expr_id(node.condition)
        self.d.expr_id(node.consequent)
        self.d.expr_id(node.alternative)

    def visit_unreachable(self, node: Unreachable) -> None:
        self.d.text("unreachable")

    def visit_br(self, node: Br) -> None:
        self.d.text("br")
        self.d.id(node.block)
        self._exprs(node.args)

    def visit_br_if(self, node: BrIf) -> None:
        self.d.text("br_if")
        self.d.id(node.block)
        self.d.expr_id(node.condition)
        self._exprs(node.args)

    def visit_if_else(self, node: IfElse) -> None:
        self.d.text("if_else")
        self.d.expr_id(node.condition)
        self.d.expr_id(node.consequent)
        self.d.expr_id(node.alternative)

    def visit_br_table(self, node: BrTable) -> None:
        self.d.text("br_table")
        for block in node.blocks:
            self.d.id(block)
        self.d.text(" default")
        self.d.id(node.default)
        self.d.expr_id(node.which)
        self._exprs(node.args)

    def visit_drop(self, node: Drop) -> None:
        self.d.text("drop")
        self.d.expr_id(node.expr)

    def visit_return(self, node: Return) -> None:
        self.d.text("return")
        self._exprs(node.values)

    def visit_memory_size(self, node: MemorySize) -> None:
        self.d.text("memory.size")
        self.d.id(node.memory)

    def visit_memory_grow(self, node: MemoryGrow) -> None:
        self.d.text("memory.grow")
        self.d.id(node.memory)
        self.d.expr_id(node.pages)

    def visit_load(self, node: Load) -> None:
        self.d.text(node.kind.value)
        self.d.id(node.memory)
        self._memarg(node.arg)
        self.d.expr_id(node.address)

    def visit_store(self, node: Store) -> None:
        self.d.text(node.kind.value)
        self.d.id(node.memory)
        self._memarg(node.arg)
        self.d.expr_id(node.address)
        self.d.expr_id(node.value)
