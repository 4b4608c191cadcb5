"""
Tests for the default per-kind renderer (ExprDisplay).

Each test builds a function whose entry block holds the expression under
test and compares the rows between the entry line and its closer.
"""

import pytest

from irdump.ir.builder import FunctionBuilder
from irdump.ir.function import Global, ImportedFunction, Memory
from irdump.shared.types import BinaryOp, BlockKind, LoadKind, MemArg, StoreKind, UnaryOp, ValType, Value
from tests.test_utils import closer, dump_rows


def body(builder, *entry):
    """Rows of the entry block's children."""
    rows = dump_rows(builder.finish(entry))
    return rows[2:-2]


@pytest.fixture
def b(func_type):
    return FunctionBuilder(func_type)


class TestLeaves:
    def test_i32_const(self, b):
        assert body(b, b.i32_const(5)) == ["(;  1;)     (i32.const 5)"]

    def test_i32_const_wraps(self, b):
        assert body(b, b.i32_const(2 ** 32 - 1)) == ["(;  1;)     (i32.const -1)"]

    def test_i64_const(self, b):
        assert body(b, b.const(Value.of(ValType.I64, -9))) == ["(;  1;)     (i64.const -9)"]

    def test_f32_const_uses_single_precision_repr(self, b):
        assert body(b, b.const(Value.of(ValType.F32, 0.1))) == ["(;  1;)     (f32.const 0.1)"]

    def test_f64_const(self, b):
        assert body(b, b.const(Value.of(ValType.F64, 1.5))) == ["(;  1;)     (f64.const 1.5)"]

    def test_local_get_prints_local_index(self, b, module):
        module.add_local(ValType.I32)
        second = module.add_local(ValType.I32)
        assert body(b, b.local_get(second)) == ["(;  1;)     (local.get 1)"]

    def test_global_get(self, b, module):
        g = module.globals.alloc(Global(ValType.I32))
        assert body(b, b.global_get(g)) == ["(;  1;)     (global.get 0)"]

    def test_unreachable(self, b):
        assert body(b, b.unreachable()) == ["(;  1;)     (unreachable)"]

    def test_call_without_args(self, b, module, func_type):
        for _ in range(4):
            f = module.add_function(ImportedFunction("env", "f", func_type))
        assert body(b, b.call(f)) == ["(;  1;)     (call 3)"]

    def test_return_without_values(self, b):
        assert body(b, b.return_()) == ["(;  1;)     (return)"]

    def test_memory_size(self, b, module):
        m = module.memories.alloc(Memory())
        assert body(b, b.memory_size(m)) == ["(;  1;)     (memory.size 0)"]

    def test_empty_block(self, b):
        assert body(b, b.block().id) == ["(;  1;)     (block)"]


class TestOperands:
    def test_binop(self, b):
        lhs, rhs = b.i32_const(1), b.i32_const(2)
        assert body(b, b.binop(BinaryOp.I32_SUB, lhs, rhs)) == [
            "(;  3;)     (i32.sub",
            "(;  1;)       (i32.const 1)",
            "(;  2;)       (i32.const 2)",
            closer(2),
        ]

    def test_unop(self, b):
        x = b.const(Value.of(ValType.F64, 4.0))
        assert body(b, b.unop(UnaryOp.F64_SQRT, x)) == [
            "(;  2;)     (f64.sqrt",
            "(;  1;)       (f64.const 4.0)",
            closer(2),
        ]

    def test_local_tee(self, b, module):
        local = module.add_local(ValType.I32)
        value = b.i32_const(3)
        assert body(b, b.local_tee(local, value)) == [
            "(;  2;)     (local.tee 0",
            "(;  1;)       (i32.const 3)",
            closer(2),
        ]

    def test_global_set(self, b, module):
        module.globals.alloc(Global(ValType.I32))
        g = module.globals.alloc(Global(ValType.I32))
        value = b.i32_const(0)
        assert body(b, b.global_set(g, value)) == [
            "(;  2;)     (global.set 1",
            "(;  1;)       (i32.const 0)",
            closer(2),
        ]

    def test_call_with_args(self, b, module, func_type):
        f = module.add_function(ImportedFunction("env", "f", func_type))
        a, c = b.i32_const(1), b.i32_const(2)
        assert body(b, b.call(f, [a, c])) == [
            "(;  3;)     (call 0",
            "(;  1;)       (i32.const 1)",
            "(;  2;)       (i32.const 2)",
            closer(2),
        ]

    def test_select(self, b):
        c, x, y = b.i32_const(1), b.i32_const(10), b.i32_const(20)
        assert body(b, b.select(c, x, y)) == [
            "(;  4;)     (select",
            "(;  1;)       (i32.const 1)",
            "(;  2;)       (i32.const 10)",
            "(;  3;)       (i32.const 20)",
            closer(2),
        ]

    def test_drop(self, b):
        x = b.i32_const(1)
        assert body(b, b.drop(x)) == [
            "(;  2;)     (drop",
            "(;  1;)       (i32.const 1)",
            closer(2),
        ]

    def test_return_values(self, b):
        x, y = b.i32_const(1), b.i32_const(2)
        assert body(b, b.return_([x, y])) == [
            "(;  3;)     (return",
            "(;  1;)       (i32.const 1)",
            "(;  2;)       (i32.const 2)",
            closer(2),
        ]

    def test_memory_grow(self, b, module):
        m = module.memories.alloc(Memory())
        pages = b.i32_const(1)
        assert body(b, b.memory_grow(m, pages)) == [
            "(;  2;)     (memory.grow 0",
            "(;  1;)       (i32.const 1)",
            closer(2),
        ]

    def test_load_prints_memarg(self, b, module):
        m = module.memories.alloc(Memory())
        address = b.i32_const(16)
        assert body(b, b.load(m, LoadKind.I64_8_U, MemArg(align=1, offset=8), address)) == [
            "(;  2;)     (i64.load8_u 0 offset=8 align=1",
            "(;  1;)       (i32.const 16)",
            closer(2),
        ]

    def test_store(self, b, module):
        m = module.memories.alloc(Memory())
        address, value = b.i32_const(0), b.const(Value.of(ValType.F32, 2.5))
        assert body(b, b.store(m, StoreKind.F32, MemArg(align=4), address, value)) == [
            "(;  3;)     (f32.store 0 offset=0 align=4",
            "(;  1;)       (i32.const 0)",
            "(;  2;)       (f32.const 2.5)",
            closer(2),
        ]


class TestControlFlow:
    def test_block_and_br(self, b):
        block = b.block()
        block.expr(b.br(block.id))
        assert body(b, block.id) == [
            "(;  1;)     (block",
            "(;  2;)       (br 1)",
            closer(2),
        ]

    def test_loop_and_br_if_with_args(self, b):
        loop = b.loop_()
        arg = b.i32_const(7)
        cond = b.i32_const(1)
        loop.expr(b.br_if(cond, loop.id, [arg]))
        assert body(b, loop.id) == [
            "(;  1;)     (loop",
            "(;  4;)       (br_if 1",
            "(;  3;)         (i32.const 1)",
            "(;  2;)         (i32.const 7)",
            closer(3),
            closer(2),
        ]

    def test_if_else(self, b):
        cond = b.i32_const(1)
        then = b.block(BlockKind.IF_ELSE)
        then.expr(b.unreachable())
        other = b.block(BlockKind.IF_ELSE)
        assert body(b, b.if_else(cond, then.id, other.id)) == [
            "(;  5;)     (if_else",
            "(;  1;)       (i32.const 1)",
            "(;  2;)       (if_else_block",
            "(;  3;)         (unreachable)",
            closer(3),
            "(;  4;)       (if_else_block)",
            closer(2),
        ]

    def test_br_table(self, b):
        outer = b.block()
        inner = b.block()
        which = b.i32_const(0)
        inner.expr(b.br_table(which, [inner.id, outer.id], outer.id))
        outer.expr(inner.id)
        assert body(b, outer.id) == [
            "(;  1;)     (block",
            "(;  2;)       (block",
            "(;  4;)         (br_table 2 1 default 1",
            "(;  3;)           (i32.const 0)",
            closer(4),
            closer(3),
            closer(2),
        ]
