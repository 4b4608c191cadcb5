"""
Arena Storage

Rust Pattern: id_arena::Arena, id_arena::Id

Design:
- Id = (arena_id, index). index is dense and zero-based within its arena;
  arena_id keeps ids of different arenas from ever comparing equal.
- Arenas are append-only. Slots can be replaced (blocks are patched once
  their children exist) but never removed, so an index stays valid for the
  life of the arena.
"""

import itertools
from dataclasses import dataclass
from typing import Any, Generic, Iterator, List, Tuple, TypeVar

from typing_extensions import TypeAlias

from .errors import ArenaMismatchError

T = TypeVar('T')

_arena_ids = itertools.count()


@dataclass(frozen=True)
class Id:
    """
    Arena index (Rust pattern: id_arena::Id<T>).

    Non-owning lookup key; meaningless outside its owning arena.
    """
    arena_id: int
    index: int

    def __str__(self) -> str:
        return str(self.index)


ExprId: TypeAlias = Id
BlockId: TypeAlias = Id
LocalId: TypeAlias = Id
GlobalId: TypeAlias = Id
MemoryId: TypeAlias = Id
FunctionId: TypeAlias = Id
TypeId: TypeAlias = Id


class Arena(Generic[T]):
    """Append-only pool of same-typed entities addressed by `Id`."""

    def __init__(self):
        self.arena_id = next(_arena_ids)
        self._items: List[T] = []

    def next_id(self) -> Id:
        """Id the next call to alloc() will return."""
        return Id(self.arena_id, len(self._items))

    def id_at(self, index: int) -> Id:
        """Id of an existing slot, by raw index."""
        if not 0 <= index < len(self._items):
            raise IndexError(f"id {index} out of range for arena of {len(self._items)}")
        return Id(self.arena_id, index)

    def alloc(self, value: T) -> Id:
        idx = len(self._items)
        self._items.append(value)
        return Id(self.arena_id, idx)

    def _check(self, id: Id) -> int:
        if not isinstance(id, Id):
            raise TypeError(f"arena key must be Id, got {type(id).__name__}: {id!r}")
        if id.arena_id != self.arena_id:
            raise ArenaMismatchError(
                f"id {id.index} belongs to arena {id.arena_id}, not arena {self.arena_id}"
            )
        if id.index >= len(self._items):
            raise IndexError(f"id {id.index} out of range for arena of {len(self._items)}")
        return id.index

    def __getitem__(self, id: Id) -> T:
        return self._items[self._check(id)]

    def __setitem__(self, id: Id, value: T) -> None:
        self._items[self._check(id)] = value

    def __contains__(self, id: Any) -> bool:
        return (
            isinstance(id, Id)
            and id.arena_id == self.arena_id
            and id.index < len(self._items)
        )

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Tuple[Id, T]]:
        for idx, item in enumerate(self._items):
            yield Id(self.arena_id, idx), item
