"""
Tests for the s-expression module loader.
"""

import pytest

from irdump.ir.function import ImportedFunction, LocalFunction
from irdump.ir.loader import load_module
from irdump.ir.nodes import (
    Binop, Block, Br, BrIf, BrTable, Call, Const, IfElse, Load, LocalGet, LocalSet,
    MemoryGrow, Select, Store, Unreachable,
)
from irdump.shared.errors import LoadError
from irdump.shared.types import BinaryOp, BlockKind, LoadKind, MemArg, StoreKind, ValType, Value


def body(module, index=0):
    """The LocalFunction at function index `index`."""
    func = module.funcs[module.funcs.id_at(index)].kind
    assert isinstance(func, LocalFunction)
    return func


def entry_exprs(func):
    return [func.exprs[id] for id in func.block(func.entry_block()).exprs]


class TestModuleFields:
    def test_import_and_func_ids_follow_declaration_order(self):
        module = load_module("""
            (module
              (import "env" "log" (param i32))
              (func $f (result i32) (i32.const 1))
              (import "env" "abort"))
        """)
        kinds = [type(f.kind) for _, f in module.funcs]
        assert kinds == [ImportedFunction, LocalFunction, ImportedFunction]
        assert module.funcs[module.funcs.id_at(1)].name == "$f"
        imported = module.funcs[module.funcs.id_at(0)].kind
        assert (imported.module, imported.name) == ("env", "log")

    def test_types_are_interned(self):
        module = load_module("""
            (module
              (type (param i32) (result i32))
              (func (param i32) (result i32) (local.get 0)))
        """)
        assert len(module.types) == 1
        assert module.types[module.types.id_at(0)].params == (ValType.I32,)

    def test_params_and_locals_become_module_locals(self):
        module = load_module("""
            (module
              (func (param i32) (local i64 f32) (unreachable))
              (func (param $x f64) (local.get $x)))
        """)
        assert [l.ty for _, l in module.locals] == [ValType.I32, ValType.I64, ValType.F32, ValType.F64]
        second = body(module, 1)
        assert second.args == [module.locals.id_at(3)]
        assert entry_exprs(second) == [LocalGet(module.locals.id_at(3))]

    def test_globals_and_memories(self):
        module = load_module("""
            (module (global $g (mut i32)) (global f64) (memory 1 2))
        """)
        assert [g.mutable for _, g in module.globals] == [True, False]
        memory = module.memories[module.memories.id_at(0)]
        assert (memory.initial, memory.maximum) == (1, 2)


class TestInstructions:
    def test_folded_operands_are_allocated_first(self):
        module = load_module("(module (func (i32.add (i32.const 1) (i32.const 2))))")
        func = body(module)
        ids = func.block(func.entry_block()).exprs
        assert [id.index for id in ids] == [3]
        add = func.exprs[ids[0]]
        assert add.op is BinaryOp.I32_ADD
        assert func.exprs[add.lhs] == Const(Value.of(ValType.I32, 1))

    def test_bare_symbol_instruction(self):
        module = load_module("(module (func unreachable))")
        assert entry_exprs(body(module)) == [Unreachable()]

    def test_local_set_by_name(self):
        module = load_module("(module (func (local $a i32) (local.set $a (i32.const 9))))")
        func = body(module)
        [set_] = entry_exprs(func)
        assert isinstance(set_, LocalSet)
        assert set_.local == module.locals.id_at(0)

    def test_call_refers_forward(self):
        module = load_module("""
            (module
              (func $a (call $b (i32.const 1)))
              (func $b (param i32) (unreachable)))
        """)
        [call] = entry_exprs(body(module, 0))
        assert isinstance(call, Call)
        assert call.func == module.funcs.id_at(1)

    def test_branch_depths_resolve_to_blocks(self):
        module = load_module("""
            (module
              (func
                (block $out
                  (loop
                    (br 1)
                    (br $out)
                    (br 0)
                    (br 2)))))
        """)
        func = body(module)
        [outer] = entry_exprs(func)
        assert isinstance(outer, Block)
        outer_id = func.block(func.entry_block()).exprs[0]
        loop_id = outer.exprs[0]
        targets = [func.exprs[id].block for id in func.block(loop_id).exprs]
        assert targets == [outer_id, outer_id, loop_id, func.entry_block()]

    def test_br_if_condition_is_last(self):
        module = load_module("(module (func (block (br_if 0 (i32.const 5) (i32.const 1)))))")
        func = body(module)
        [block] = entry_exprs(func)
        br_if = func.exprs[block.exprs[0]]
        assert isinstance(br_if, BrIf)
        assert func.exprs[br_if.condition] == Const(Value.of(ValType.I32, 1))
        assert [func.exprs[a] for a in br_if.args] == [Const(Value.of(ValType.I32, 5))]

    def test_br_table_last_label_is_default(self):
        module = load_module("(module (func (block (block (br_table 0 1 2 (i32.const 0))))))")
        func = body(module)
        [outer] = entry_exprs(func)
        inner = func.exprs[outer.exprs[0]]
        table = func.exprs[inner.exprs[0]]
        assert isinstance(table, BrTable)
        assert table.blocks == (outer.exprs[0], func.block(func.entry_block()).exprs[0])
        assert table.default == func.entry_block()

    def test_if_builds_two_arm_blocks(self):
        module = load_module("(module (func (if (i32.const 1) (then (unreachable)))))")
        func = body(module)
        [if_else] = entry_exprs(func)
        assert isinstance(if_else, IfElse)
        then, other = func.block(if_else.consequent), func.block(if_else.alternative)
        assert then.kind is other.kind is BlockKind.IF_ELSE
        assert [func.exprs[id] for id in then.exprs] == [Unreachable()]
        assert other.exprs == []

    def test_br_inside_if_targets_its_arm(self):
        module = load_module("(module (func (if (i32.const 1) (then (br 0)) (else (br 0)))))")
        func = body(module)
        [if_else] = entry_exprs(func)
        for arm in (if_else.consequent, if_else.alternative):
            [br] = [func.exprs[id] for id in func.block(arm).exprs]
            assert br == Br(arm)

    def test_select_operand_order(self):
        module = load_module("(module (func (select (i32.const 1) (i32.const 2) (i32.const 0))))")
        func = body(module)
        [select] = entry_exprs(func)
        assert isinstance(select, Select)
        assert func.exprs[select.condition] == Const(Value.of(ValType.I32, 0))
        assert func.exprs[select.consequent] == Const(Value.of(ValType.I32, 1))

    def test_memory_instructions(self):
        module = load_module("""
            (module
              (memory 1)
              (func
                (i64.store32 offset=8 align=2 (i32.const 0) (i64.const 1))
                (drop (f32.load (i32.const 4)))
                (drop (memory.grow 0 (i32.const 1)))))
        """)
        func = body(module)
        store, drop_load, drop_grow = entry_exprs(func)
        assert isinstance(store, Store)
        assert store.kind is StoreKind.I64_32
        assert store.arg == MemArg(align=2, offset=8)
        load = func.exprs[drop_load.expr]
        assert isinstance(load, Load)
        assert load.kind is LoadKind.F32
        assert load.arg == MemArg(align=4, offset=0)
        assert isinstance(func.exprs[drop_grow.expr], MemoryGrow)

    def test_float_and_hex_immediates(self):
        module = load_module("(module (func (f64.const 2.5) (i32.const 0x10)))")
        assert entry_exprs(body(module)) == [
            Const(Value.of(ValType.F64, 2.5)),
            Const(Value.of(ValType.I32, 16)),
        ]


class TestLoadErrors:
    @pytest.mark.parametrize("text, message", [
        ("(func)", "expected a (module ...) form"),
        ("(module (table))", "unknown module field"),
        ("(module (func (i32.frobnicate)))", "unknown instruction i32.frobnicate"),
        ("(module (func (i32.add (i32.const 1))))", "i32.add takes 2 operand(s), got 1"),
        ("(module (func (local.get 0)))", "local index 0 out of range"),
        ("(module (func (br 1)))", "branch depth 1 out of range"),
        ("(module (func (br $nope)))", "unknown label $nope"),
        ("(module (func (call 3)))", "function index 3 out of range"),
        ("(module (func (global.get $g)))", "unknown global $g"),
        ("(module (func (i32.load (i32.const 0))))", "memory instruction without a declared memory"),
        ("(module (func (i32.const 1.5)))", "bad i32.const immediate"),
        ("(module (func (if (then))))", "if needs a condition"),
        ("(module (import env log))", "import needs quoted module and field names"),
        ("(module (global (mut)))", "mut takes one type"),
        ("(module (global (mut i32 i64)))", "mut takes one type"),
        ("(module (func (param i128)))", "unknown value type i128\n"),
    ])
    def test_malformed_input(self, text, message):
        with pytest.raises(LoadError) as exc:
            load_module(text)
        assert message in str(exc.value)

    def test_unbalanced_parens(self):
        with pytest.raises(LoadError, match="malformed s-expression"):
            load_module("(module (func")

    @pytest.mark.parametrize("text, count", [("(module) (module)", 2), ("", 0)])
    def test_requires_exactly_one_module_form(self, text, count):
        with pytest.raises(LoadError) as exc:
            load_module(text)
        assert exc.value.message == f"expected exactly one (module ...) form, got {count}"

    def test_error_names_file_and_form(self):
        with pytest.raises(LoadError) as exc:
            load_module("(module (func (local.get 4)))", "bad.wat")
        assert exc.value.file == "bad.wat"
        assert "local.get" in exc.value.form
        assert str(exc.value).startswith("bad.wat: ")
