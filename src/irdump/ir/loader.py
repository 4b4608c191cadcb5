"""
Module Loader
=============

Builds a Module from a folded, WebAssembly-text-like s-expression so IR
fixtures can be written by hand:

    (module
      (memory 1)
      (import "env" "log" (param i32))
      (func $add (param i32 i32) (result i32)
        (i32.add (local.get 0) (local.get 1))))

Only the folded form is accepted: every instruction is a parenthesized form
whose operands are its nested forms. Local indices are function-relative
(params first, then declared locals) and are mapped to module-wide LocalIds.
Branch labels are relative depths or $names resolved to the enclosing
block's id.

This reads module descriptions, not debug dumps: the display output does
not parse back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import sexpdata

from ..shared.arena import BlockId, ExprId, FunctionId, Id, LocalId
from ..shared.errors import LoadError
from ..shared.types import BinaryOp, BlockKind, LoadKind, MemArg, StoreKind, UnaryOp, ValType, Value
from .builder import FunctionBuilder
from .function import Global, ImportedFunction, Memory, Module, UninitializedFunction

logger = logging.getLogger(__name__)

_BINOPS = {op.value: op for op in BinaryOp}
_UNOPS = {op.value: op for op in UnaryOp}
_LOADS = {kind.value: kind for kind in LoadKind}
_STORES = {kind.value: kind for kind in StoreKind}
_CONSTS = {f"{ty.value}.const": ty for ty in ValType}


def _sym_val(x: Any) -> Optional[str]:
    """Symbol name, or None when x is not a symbol."""
    # Check Symbol before str (sexpdata.Symbol subclasses str)
    if isinstance(x, sexpdata.Symbol):
        return x.value()
    return None


def _is_name(x: Any) -> bool:
    name = _sym_val(x)
    return name is not None and name.startswith("$")


def _head(form: Any) -> Optional[str]:
    if isinstance(form, list) and form:
        return _sym_val(form[0])
    return None


def _dumps(form: Any) -> str:
    return sexpdata.dumps(form)


@dataclass
class _FuncScope:
    """Per-function name resolution state while its body is built."""
    builder: FunctionBuilder
    locals: List[LocalId]
    local_names: Dict[str, int] = field(default_factory=dict)
    labels: List[Tuple[Optional[str], BlockId]] = field(default_factory=list)


class ModuleLoader:
    """
    Two passes over the module fields: the first allocates every function id
    (bodies as UninitializedFunction placeholders) so calls can refer
    forward; the second builds the bodies.
    """

    def __init__(self, file: Optional[str] = None):
        self.file = file
        self.module = Module()
        self._func_names: Dict[str, FunctionId] = {}
        self._global_names: Dict[str, Id] = {}
        self._memory_names: Dict[str, Id] = {}

    def error(self, message: str, form: Any = None) -> LoadError:
        return LoadError(message, _dumps(form) if form is not None else None, self.file)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def load(self, text: str) -> Module:
        try:
            forms = sexpdata.parse(text)
        except Exception as e:
            raise LoadError(f"malformed s-expression: {e or type(e).__name__}", None, self.file) from e
        if len(forms) != 1:
            raise LoadError(f"expected exactly one (module ...) form, got {len(forms)}", None, self.file)
        sexpr = forms[0]
        if _head(sexpr) != "module":
            raise self.error("expected a (module ...) form", sexpr)

        fields = sexpr[1:]
        pending = []
        for form in fields:
            head = _head(form)
            method = getattr(self, f"_load_{head}", None) if head else None
            if method is None:
                raise self.error(f"unknown module field {head if head is not None else repr(form)}", form)
            result = method(form)
            if head == "func":
                pending.append((result, form))

        for func_id, form in pending:
            self._build_func(func_id, form)
        return self.module

    # ------------------------------------------------------------------
    # Module fields
    # ------------------------------------------------------------------

    def _signature(self, items: Sequence[Any]) -> Tuple[List[Tuple[Optional[str], ValType]], List[ValType], int]:
        """Leading (param ...) and (result ...) forms; returns params, results and how many forms were used."""
        params: List[Tuple[Optional[str], ValType]] = []
        results: List[ValType] = []
        used = 0
        for item in items:
            head = _head(item)
            if head == "param":
                rest = item[1:]
                if rest and _is_name(rest[0]):
                    if len(rest) != 2:
                        raise self.error("named param takes exactly one type", item)
                    params.append((_sym_val(rest[0]), self._valtype(rest[1])))
                else:
                    params.extend((None, self._valtype(t)) for t in rest)
            elif head == "result":
                results.extend(self._valtype(t) for t in item[1:])
            else:
                break
            used += 1
        return params, results, used

    def _valtype(self, x: Any) -> ValType:
        name = _sym_val(x)
        try:
            return ValType(name)
        except ValueError:
            raise self.error(f"unknown value type {name if name is not None else repr(x)}", x) from None

    def _load_type(self, form: list) -> Id:
        params, results, used = self._signature(form[1:])
        if used != len(form) - 1:
            raise self.error("type takes only (param ...) and (result ...)", form)
        return self.module.add_type([t for _, t in params], results)

    def _load_global(self, form: list) -> Id:
        rest = form[1:]
        name = None
        if rest and _is_name(rest[0]):
            name, rest = _sym_val(rest[0]), rest[1:]
        if len(rest) != 1:
            raise self.error("global takes one type", form)
        if _head(rest[0]) == "mut":
            if len(rest[0]) != 2:
                raise self.error("mut takes one type", rest[0])
            g = Global(self._valtype(rest[0][1]), mutable=True)
        else:
            g = Global(self._valtype(rest[0]), mutable=False)
        id = self.module.globals.alloc(g)
        if name:
            self._global_names[name] = id
        return id

    def _load_memory(self, form: list) -> Id:
        rest = form[1:]
        name = None
        if rest and _is_name(rest[0]):
            name, rest = _sym_val(rest[0]), rest[1:]
        limits = [self._int(x, form) for x in rest]
        if len(limits) > 2:
            raise self.error("memory takes at most initial and maximum pages", form)
        id = self.module.memories.alloc(Memory(*limits))
        if name:
            self._memory_names[name] = id
        return id

    def _load_import(self, form: list) -> FunctionId:
        rest = form[1:]
        if len(rest) < 2 or not all(isinstance(x, str) and _sym_val(x) is None for x in rest[:2]):
            raise self.error("import needs quoted module and field names", form)
        module_name, field_name = rest[0], rest[1]
        rest = rest[2:]
        name = None
        if rest and _is_name(rest[0]):
            name, rest = _sym_val(rest[0]), rest[1:]
        params, results, used = self._signature(rest)
        if used != len(rest):
            raise self.error("imported function has no body", form)
        ty = self.module.add_type([t for _, t in params], results)
        id = self.module.add_function(ImportedFunction(module_name, field_name, ty), name)
        if name:
            self._func_names[name] = id
        return id

    def _load_func(self, form: list) -> FunctionId:
        rest = form[1:]
        name = _sym_val(rest[0]) if rest and _is_name(rest[0]) else None
        params, results, _ = self._signature(rest[1:] if name else rest)
        ty = self.module.add_type([t for _, t in params], results)
        id = self.module.add_function(UninitializedFunction(ty), name)
        if name:
            self._func_names[name] = id
        return id

    def _build_func(self, id: FunctionId, form: list) -> None:
        func = self.module.funcs[id]
        rest = form[1:]
        if func.name:
            rest = rest[1:]
        params, results, used = self._signature(rest)
        rest = rest[used:]

        declared: List[Tuple[Optional[str], ValType]] = []
        while rest and _head(rest[0]) == "local":
            item = rest[0][1:]
            if item and _is_name(item[0]):
                if len(item) != 2:
                    raise self.error("named local takes exactly one type", rest[0])
                declared.append((_sym_val(item[0]), self._valtype(item[1])))
            else:
                declared.extend((None, self._valtype(t)) for t in item)
            rest = rest[1:]

        args = [self.module.add_local(t) for _, t in params]
        extra = [self.module.add_local(t) for _, t in declared]
        builder = FunctionBuilder(func.ty, args, [t for _, t in params], results)
        scope = _FuncScope(builder, args + extra)
        for i, (name, _) in enumerate(params + declared):
            if name:
                scope.local_names[name] = i

        scope.labels.append((None, builder.entry.id))
        body = [self._instr(instr, scope) for instr in rest]
        scope.labels.pop()

        func.kind = builder.finish(body)
        logger.debug(f"Loaded function {id.index} ({func.name or 'anonymous'}): "
                     f"{func.kind.size()} expressions")

    # ------------------------------------------------------------------
    # Operand helpers
    # ------------------------------------------------------------------

    def _int(self, x: Any, form: Any) -> int:
        if isinstance(x, bool):
            raise self.error(f"expected an integer, got {x!r}", form)
        if isinstance(x, int):
            return x
        name = _sym_val(x)
        if name is not None:
            try:
                return int(name, 0)
            except ValueError:
                pass
        raise self.error(f"expected an integer, got {_dumps(x)}", form)

    def _ref(self, x: Any, names: Dict[str, Id], arena: Any, what: str, form: Any) -> Id:
        if _is_name(x):
            name = _sym_val(x)
            if name not in names:
                raise self.error(f"unknown {what} {name}", form)
            return names[name]
        index = self._int(x, form)
        if not 0 <= index < len(arena):
            raise self.error(f"{what} index {index} out of range", form)
        return arena.id_at(index)

    def _local(self, x: Any, scope: _FuncScope, form: Any) -> LocalId:
        if _is_name(x):
            name = _sym_val(x)
            if name not in scope.local_names:
                raise self.error(f"unknown local {name}", form)
            return scope.locals[scope.local_names[name]]
        index = self._int(x, form)
        if not 0 <= index < len(scope.locals):
            raise self.error(f"local index {index} out of range", form)
        return scope.locals[index]

    def _label(self, x: Any, scope: _FuncScope, form: Any) -> BlockId:
        if _is_name(x):
            name = _sym_val(x)
            for label, block in reversed(scope.labels):
                if label == name:
                    return block
            raise self.error(f"unknown label {name}", form)
        depth = self._int(x, form)
        if not 0 <= depth < len(scope.labels):
            raise self.error(f"branch depth {depth} out of range", form)
        return scope.labels[-1 - depth][1]

    def _memory(self, operands: list, form: Any) -> Tuple[Id, list]:
        """Optional leading memory reference; defaults to memory 0."""
        if operands and not isinstance(operands[0], list) and not _memarg_key(operands[0]):
            return self._ref(operands[0], self._memory_names, self.module.memories, "memory", form), operands[1:]
        if len(self.module.memories) == 0:
            raise self.error("memory instruction without a declared memory", form)
        return self.module.memories.id_at(0), operands

    def _memarg(self, operands: list, natural: int, form: Any) -> Tuple[MemArg, list]:
        values = {"offset": 0, "align": natural}
        while operands and _memarg_key(operands[0]):
            key, _, raw = _sym_val(operands[0]).partition("=")
            try:
                values[key] = int(raw, 0)
            except ValueError:
                raise self.error(f"bad {key} value {raw!r}", form) from None
            operands = operands[1:]
        return MemArg(values["align"], values["offset"]), operands

    def _arity(self, form: list, operands: list, n: int) -> None:
        if len(operands) != n:
            raise self.error(f"{_head(form)} takes {n} operand(s), got {len(operands)}", form)

    # ------------------------------------------------------------------
    # Instructions
    # ------------------------------------------------------------------

    def _instr(self, form: Any, scope: _FuncScope) -> ExprId:
        if _sym_val(form) is not None:
            form = [form]
        op = _head(form)
        if op is None:
            raise self.error("expected an instruction", form)
        b = scope.builder
        operands = form[1:]

        if op in ("block", "loop"):
            return self._block(BlockKind.BLOCK if op == "block" else BlockKind.LOOP, form, scope)
        if op == "if":
            return self._if(form, scope)
        if op in _CONSTS:
            self._arity(form, operands, 1)
            raw = operands[0]
            if _sym_val(raw) is not None:
                try:
                    raw = float(_sym_val(raw)) if _CONSTS[op] in (ValType.F32, ValType.F64) else int(_sym_val(raw), 0)
                except ValueError:
                    raise self.error(f"bad {op} immediate", form) from None
            try:
                return b.const(Value.of(_CONSTS[op], raw))
            except (TypeError, ValueError) as e:
                raise self.error(f"bad {op} immediate: {e}", form) from e
        if op in _BINOPS:
            self._arity(form, operands, 2)
            lhs = self._instr(operands[0], scope)
            rhs = self._instr(operands[1], scope)
            return b.binop(_BINOPS[op], lhs, rhs)
        if op in _UNOPS:
            self._arity(form, operands, 1)
            return b.unop(_UNOPS[op], self._instr(operands[0], scope))
        if op in _LOADS:
            kind = _LOADS[op]
            memory, operands = self._memory(operands, form)
            arg, operands = self._memarg(operands, kind.width, form)
            self._arity(form, operands, 1)
            return b.load(memory, kind, arg, self._instr(operands[0], scope))
        if op in _STORES:
            kind = _STORES[op]
            memory, operands = self._memory(operands, form)
            arg, operands = self._memarg(operands, kind.width, form)
            self._arity(form, operands, 2)
            address = self._instr(operands[0], scope)
            value = self._instr(operands[1], scope)
            return b.store(memory, kind, arg, address, value)

        method = getattr(self, f"_instr_{op.replace('.', '_')}", None)
        if method is None:
            raise self.error(f"unknown instruction {op}", form)
        return method(form, operands, scope)

    def _block(self, kind: BlockKind, form: list, scope: _FuncScope) -> BlockId:
        rest = form[1:]
        label = None
        if rest and _is_name(rest[0]):
            label, rest = _sym_val(rest[0]), rest[1:]
        params, results, used = self._signature(rest)
        block = scope.builder.block(kind, [t for _, t in params], results)
        scope.labels.append((label, block.id))
        block.extend(self._instr(instr, scope) for instr in rest[used:])
        scope.labels.pop()
        return block.id

    def _if(self, form: list, scope: _FuncScope) -> ExprId:
        rest = form[1:]
        label = None
        if rest and _is_name(rest[0]):
            label, rest = _sym_val(rest[0]), rest[1:]
        params, results, used = self._signature(rest)
        rest = rest[used:]
        if not rest or _head(rest[0]) in ("then", "else"):
            raise self.error("if needs a condition before (then ...)", form)
        condition = self._instr(rest[0], scope)
        arms = rest[1:]
        if not arms or _head(arms[0]) != "then" or len(arms) > 2 or (len(arms) == 2 and _head(arms[1]) != "else"):
            raise self.error("if takes (then ...) and an optional (else ...)", form)

        ids = []
        for arm in (arms + [[sexpdata.Symbol("else")]])[:2]:
            block = scope.builder.block(BlockKind.IF_ELSE, [t for _, t in params], results)
            scope.labels.append((label, block.id))
            block.extend(self._instr(instr, scope) for instr in arm[1:])
            scope.labels.pop()
            ids.append(block.id)
        return scope.builder.if_else(condition, ids[0], ids[1])

    def _instr_call(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        if not operands:
            raise self.error("call needs a function", form)
        func = self._ref(operands[0], self._func_names, self.module.funcs, "function", form)
        args = [self._instr(x, scope) for x in operands[1:]]
        return scope.builder.call(func, args)

    def _instr_local_get(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 1)
        return scope.builder.local_get(self._local(operands[0], scope, form))

    def _instr_local_set(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 2)
        local = self._local(operands[0], scope, form)
        return scope.builder.local_set(local, self._instr(operands[1], scope))

    def _instr_local_tee(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 2)
        local = self._local(operands[0], scope, form)
        return scope.builder.local_tee(local, self._instr(operands[1], scope))

    def _instr_global_get(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 1)
        g = self._ref(operands[0], self._global_names, self.module.globals, "global", form)
        return scope.builder.global_get(g)

    def _instr_global_set(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 2)
        g = self._ref(operands[0], self._global_names, self.module.globals, "global", form)
        return scope.builder.global_set(g, self._instr(operands[1], scope))

    def _instr_select(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 3)
        consequent, alternative, condition = (self._instr(x, scope) for x in operands)
        return scope.builder.select(condition, consequent, alternative)

    def _instr_unreachable(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 0)
        return scope.builder.unreachable()

    def _instr_drop(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        self._arity(form, operands, 1)
        return scope.builder.drop(self._instr(operands[0], scope))

    def _instr_return(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        return scope.builder.return_([self._instr(x, scope) for x in operands])

    def _instr_br(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        if not operands:
            raise self.error("br needs a label", form)
        block = self._label(operands[0], scope, form)
        return scope.builder.br(block, [self._instr(x, scope) for x in operands[1:]])

    def _instr_br_if(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        if len(operands) < 2:
            raise self.error("br_if needs a label and a condition", form)
        block = self._label(operands[0], scope, form)
        # wasm order: branch args first, condition last
        args = [self._instr(x, scope) for x in operands[1:-1]]
        condition = self._instr(operands[-1], scope)
        return scope.builder.br_if(condition, block, args)

    def _instr_br_table(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        labels = []
        while operands and not isinstance(operands[0], list):
            labels.append(self._label(operands[0], scope, form))
            operands = operands[1:]
        if not labels or not operands:
            raise self.error("br_table needs at least one label and an index", form)
        args = [self._instr(x, scope) for x in operands[:-1]]
        which = self._instr(operands[-1], scope)
        return scope.builder.br_table(which, labels[:-1], labels[-1], args)

    def _instr_memory_size(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        memory, operands = self._memory(operands, form)
        self._arity(form, operands, 0)
        return scope.builder.memory_size(memory)

    def _instr_memory_grow(self, form: list, operands: list, scope: _FuncScope) -> ExprId:
        memory, operands = self._memory(operands, form)
        self._arity(form, operands, 1)
        return scope.builder.memory_grow(memory, self._instr(operands[0], scope))


def _memarg_key(x: Any) -> bool:
    name = _sym_val(x)
    return name is not None and (name.startswith("offset=") or name.startswith("align="))


def load_module(text: str, file: Optional[str] = None) -> Module:
    """Build a Module from its s-expression description."""
    return ModuleLoader(file).load(text)
