"""
Tests for FunctionBuilder id allocation and block filling.
"""

import pytest

from irdump.ir.builder import FunctionBuilder
from irdump.ir.function import LocalFunction
from irdump.ir.nodes import Binop, Block, Br, Const
from irdump.shared.types import BinaryOp, BlockKind, ValType


class TestFunctionBuilder:
    def test_entry_block_is_index_zero(self, func_type):
        b = FunctionBuilder(func_type, results=[ValType.I32])
        assert b.entry.id.index == 0
        entry = b.exprs[b.entry.id]
        assert entry.kind is BlockKind.FUNCTION_ENTRY
        assert entry.results == (ValType.I32,)

    def test_operands_allocated_before_consumer(self, func_type):
        b = FunctionBuilder(func_type)
        lhs, rhs = b.i32_const(1), b.i32_const(2)
        add = b.binop(BinaryOp.I32_ADD, lhs, rhs)
        assert [lhs.index, rhs.index, add.index] == [1, 2, 3]
        assert b.exprs[add] == Binop(BinaryOp.I32_ADD, lhs, rhs)
        assert isinstance(b.exprs[lhs], Const)

    def test_block_allocated_before_children(self, func_type):
        b = FunctionBuilder(func_type)
        block = b.block()
        br = b.br(block.id)
        block.expr(br)
        assert block.id.index < br.index
        assert b.exprs[block.id].exprs == [br]
        assert b.exprs[br] == Br(block.id)

    def test_loop_kind(self, func_type):
        b = FunctionBuilder(func_type)
        assert b.exprs[b.loop_().id].kind is BlockKind.LOOP

    def test_finish_appends_to_entry(self, func_type):
        b = FunctionBuilder(func_type)
        x = b.unreachable()
        func = b.finish([x])
        assert isinstance(func, LocalFunction)
        assert func.entry_block() == b.entry.id
        assert func.block(func.entry_block()).exprs == [x]
        assert func.size() == 2

    def test_block_lookup_rejects_non_block(self, func_type):
        b = FunctionBuilder(func_type)
        x = b.unreachable()
        func = b.finish([x])
        with pytest.raises(TypeError):
            func.block(x)

    def test_extend(self, func_type):
        b = FunctionBuilder(func_type)
        block = b.block()
        ids = [b.i32_const(n) for n in range(3)]
        block.extend(ids)
        assert isinstance(b.exprs[block.id], Block)
        assert b.exprs[block.id].exprs == ids
