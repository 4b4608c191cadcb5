"""
Functions and Modules

Rust Pattern: walrus::module::functions::{Function, FunctionKind}

A Function is a tagged variant over its kind: imported (no body), local
(owns an expression arena and an entry block) or uninitialized (a
construction-time placeholder that must be replaced before anything reads it).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..shared.arena import Arena, BlockId, FunctionId, LocalId, TypeId
from ..shared.types import ValType
from .nodes import Block, Expr


@dataclass(frozen=True)
class FunctionType:
    params: Tuple[ValType, ...] = ()
    results: Tuple[ValType, ...] = ()


@dataclass(frozen=True)
class Local:
    ty: ValType


@dataclass(frozen=True)
class Global:
    ty: ValType
    mutable: bool = True


@dataclass(frozen=True)
class Memory:
    initial: int = 1
    maximum: Optional[int] = None


class ImportedFunction:
    """Imported function; opaque to the printer."""
    __slots__ = ('module', 'name', 'ty')

    def __init__(self, module: str, name: str, ty: TypeId):
        self.module = module
        self.name = name
        self.ty = ty


class LocalFunction:
    """
    Function defined in this module.

    Owns `exprs`, the arena every expression of the body lives in. `entry` is
    the root block of the body; `args` are the locals bound to the parameters.
    """
    __slots__ = ('ty', 'args', 'exprs', 'entry')

    def __init__(self, ty: TypeId, args: List[LocalId], exprs: Arena[Expr], entry: BlockId):
        self.ty = ty
        self.args = list(args)
        self.exprs = exprs
        self.entry = entry

    def entry_block(self) -> BlockId:
        return self.entry

    def block(self, id: BlockId) -> Block:
        node = self.exprs[id]
        if not isinstance(node, Block):
            raise TypeError(f"expression {id.index} is {type(node).__name__}, not Block")
        return node

    def size(self) -> int:
        """Number of expressions in the body arena."""
        return len(self.exprs)


class UninitializedFunction:
    """Placeholder for a function whose kind is not yet known."""
    __slots__ = ('ty',)

    def __init__(self, ty: TypeId):
        self.ty = ty


FunctionKind = Union[ImportedFunction, LocalFunction, UninitializedFunction]


class Function:
    __slots__ = ('id', 'kind', 'name')

    def __init__(self, id: FunctionId, kind: FunctionKind, name: Optional[str] = None):
        self.id = id
        self.kind = kind
        self.name = name

    @property
    def ty(self) -> TypeId:
        return self.kind.ty

    def __repr__(self):
        return f"Function(id={self.id.index}, kind={type(self.kind).__name__}, name={self.name!r})"


@dataclass
class Module:
    """
    Arenas of every entity kind a function body can reference.

    Locals are module-wide (walrus layout), so a LocalId is valid in any
    function of the module.
    """
    types: Arena[FunctionType] = field(default_factory=Arena)
    funcs: Arena[Function] = field(default_factory=Arena)
    globals: Arena[Global] = field(default_factory=Arena)
    locals: Arena[Local] = field(default_factory=Arena)
    memories: Arena[Memory] = field(default_factory=Arena)

    def add_type(self, params=(), results=()) -> TypeId:
        """Intern a function type; equal signatures share one id."""
        wanted = FunctionType(tuple(params), tuple(results))
        for id, ty in self.types:
            if ty == wanted:
                return id
        return self.types.alloc(wanted)

    def add_local(self, ty: ValType) -> LocalId:
        return self.locals.alloc(Local(ty))

    def add_function(self, kind: FunctionKind, name: Optional[str] = None) -> FunctionId:
        id = self.funcs.next_id()
        return self.funcs.alloc(Function(id, kind, name))
