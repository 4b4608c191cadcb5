"""
Expression Nodes

Rust Pattern: walrus::ir::Expr

Every expression lives in its function's expression arena and refers to its
operands by ExprId, never by object reference. The set of kinds is closed;
dispatch goes through ExprVisitor (one visit_* method per kind).
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Sequence, Tuple, TypeVar

from ..shared.arena import BlockId, ExprId, FunctionId, GlobalId, LocalId, MemoryId
from ..shared.types import BinaryOp, BlockKind, LoadKind, MemArg, StoreKind, UnaryOp, ValType, Value

T = TypeVar('T')


class Expr:
    """
    Base class for all expression kinds.

    Regular class with __slots__; equality compares kind and field values.
    """
    __slots__ = ()

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        raise NotImplementedError(f"accept() not implemented for {self.__class__.__name__}")

    def _fields(self) -> Tuple[Any, ...]:
        values = []
        for cls in reversed(self.__class__.__mro__):
            for slot in cls.__dict__.get('__slots__', ()):
                values.append(getattr(self, slot))
        return tuple(values)

    def __eq__(self, other):
        if type(other) is not type(self):
            return False
        return self._fields() == other._fields()

    def __hash__(self):
        return hash((type(self).__name__,) + self._fields())

    def __repr__(self):
        slots = [s for cls in reversed(self.__class__.__mro__)
                 for s in cls.__dict__.get('__slots__', ())]
        args = ", ".join(f"{s}={getattr(self, s)!r}" for s in slots)
        return f"{type(self).__name__}({args})"


class Block(Expr):
    """
    A sequence of expressions and a control frame.

    Blocks are allocated before their children so branches can name them;
    `exprs` is filled in afterwards.
    """
    __slots__ = ('kind', 'params', 'results', 'exprs')

    def __init__(self, kind: BlockKind, params: Sequence[ValType] = (),
                 results: Sequence[ValType] = (), exprs: Sequence[ExprId] = ()):
        self.kind = kind
        self.params = tuple(params)
        self.results = tuple(results)
        self.exprs = list(exprs)

    def _fields(self) -> Tuple[Any, ...]:
        return (self.kind, self.params, self.results, tuple(self.exprs))

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_block(self)


class Call(Expr):
    __slots__ = ('func', 'args')

    def __init__(self, func: FunctionId, args: Sequence[ExprId] = ()):
        self.func = func
        self.args = tuple(args)

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_call(self)


class LocalGet(Expr):
    __slots__ = ('local',)

    def __init__(self, local: LocalId):
        self.local = local

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_local_get(self)


class LocalSet(Expr):
    __slots__ = ('local', 'value')

    def __init__(self, local: LocalId, value: ExprId):
        self.local = local
        self.value = value

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_local_set(self)


class LocalTee(Expr):
    """Set a local and yield the value"""
    __slots__ = ('local', 'value')

    def __init__(self, local: LocalId, value: ExprId):
        self.local = local
        self.value = value

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_local_tee(self)


class GlobalGet(Expr):
    __slots__ = ('global_',)

    def __init__(self, global_: GlobalId):
        self.global_ = global_

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_global_get(self)


class GlobalSet(Expr):
    __slots__ = ('global_', 'value')

    def __init__(self, global_: GlobalId, value: ExprId):
        self.global_ = global_
        self.value = value

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_global_set(self)


class Const(Expr):
    __slots__ = ('value',)

    def __init__(self, value: Value):
        self.value = value

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_const(self)


class Binop(Expr):
    __slots__ = ('op', 'lhs', 'rhs')

    def __init__(self, op: BinaryOp, lhs: ExprId, rhs: ExprId):
        self.op = op
        self.lhs = lhs
        self.rhs = rhs

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_binop(self)


class Unop(Expr):
    __slots__ = ('op', 'expr')

    def __init__(self, op: UnaryOp, expr: ExprId):
        self.op = op
        self.expr = expr

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_unop(self)


class Select(Expr):
    __slots__ = ('condition', 'consequent', 'alternative')

    def __init__(self, condition: ExprId, consequent: ExprId, alternative: ExprId):
        self.condition = condition
        self.consequent = consequent
        self.alternative = alternative

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_select(self)


class Unreachable(Expr):
    __slots__ = ()

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_unreachable(self)


class Br(Expr):
    __slots__ = ('block', 'args')

    def __init__(self, block: BlockId, args: Sequence[ExprId] = ()):
        self.block = block
        self.args = tuple(args)

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_br(self)


class BrIf(Expr):
    __slots__ = ('condition', 'block', 'args')

    def __init__(self, condition: ExprId, block: BlockId, args: Sequence[ExprId] = ()):
        self.condition = condition
        self.block = block
        self.args = tuple(args)

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_br_if(self)


class IfElse(Expr):
    """Both arms are blocks of kind IF_ELSE"""
    __slots__ = ('condition', 'consequent', 'alternative')

    def __init__(self, condition: ExprId, consequent: BlockId, alternative: BlockId):
        self.condition = condition
        self.consequent = consequent
        self.alternative = alternative

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_if_else(self)


class BrTable(Expr):
    __slots__ = ('which', 'blocks', 'default', 'args')

    def __init__(self, which: ExprId, blocks: Sequence[BlockId], default: BlockId,
                 args: Sequence[ExprId] = ()):
        self.which = which
        self.blocks = tuple(blocks)
        self.default = default
        self.args = tuple(args)

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_br_table(self)


class Drop(Expr):
    __slots__ = ('expr',)

    def __init__(self, expr: ExprId):
        self.expr = expr

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_drop(self)


class Return(Expr):
    __slots__ = ('values',)

    def __init__(self, values: Sequence[ExprId] = ()):
        self.values = tuple(values)

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_return(self)


class MemorySize(Expr):
    __slots__ = ('memory',)

    def __init__(self, memory: MemoryId):
        self.memory = memory

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_memory_size(self)


class MemoryGrow(Expr):
    __slots__ = ('memory', 'pages')

    def __init__(self, memory: MemoryId, pages: ExprId):
        self.memory = memory
        self.pages = pages

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_memory_grow(self)


class Load(Expr):
    __slots__ = ('memory', 'kind', 'arg', 'address')

    def __init__(self, memory: MemoryId, kind: LoadKind, arg: MemArg, address: ExprId):
        self.memory = memory
        self.kind = kind
        self.arg = arg
        self.address = address

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_load(self)


class Store(Expr):
    __slots__ = ('memory', 'kind', 'arg', 'address', 'value')

    def __init__(self, memory: MemoryId, kind: StoreKind, arg: MemArg,
                 address: ExprId, value: ExprId):
        self.memory = memory
        self.kind = kind
        self.arg = arg
        self.address = address
        self.value = value

    def accept(self, visitor: 'ExprVisitor[T]') -> T:
        return visitor.visit_store(self)


class ExprVisitor(ABC, Generic[T]):
    """
    Visitor over expression kinds (no isinstance needed).

    Rust Pattern: walrus::ir::Visitor
    """

    @abstractmethod
    def visit_block(self, node: Block) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_call(self, node: Call) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_local_get(self, node: LocalGet) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_local_set(self, node: LocalSet) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_local_tee(self, node: LocalTee) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_global_get(self, node: GlobalGet) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_global_set(self, node: GlobalSet) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_const(self, node: Const) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_binop(self, node: Binop) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_unop(self, node: Unop) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_select(self, node: Select) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_unreachable(self, node: Unreachable) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_br(self, node: Br) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_br_if(self, node: BrIf) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_if_else(self, node: IfElse) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_br_table(self, node: BrTable) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_drop(self, node: Drop) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_return(self, node: Return) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_memory_size(self, node: MemorySize) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_memory_grow(self, node: MemoryGrow) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_load(self, node: Load) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_store(self, node: Store) -> T:
        raise NotImplementedError
