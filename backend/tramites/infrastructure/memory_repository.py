"""In-Memory Repository — dict-indexed entity store with per-id locking.

Invariants:
    - O(1) get by id; query() is a scan over the index
    - get/query return deep copies; only save() changes stored state
    - save() never suspends, so a save is never observed half-done
    - next_id() is monotonically increasing, starting at 1

Design Decisions:
    - One instance per entity type, created at process start and passed to services
      (no module-level demo data, no implicit reset)
"""

import copy
import itertools
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Generic, Hashable, TypeVar

from tramites.infrastructure.keyed_locks import KeyedLocks

T = TypeVar("T")


def _entity_id(entity) -> Hashable:
    return entity.id


class InMemoryRepository(Generic[T]):
    """Repository[T] backed by a dict."""

    def __init__(self, key: Callable[[T], Hashable] = _entity_id):
        self._key = key
        self._items: dict[Hashable, T] = {}
        self._ids = itertools.count(1)
        self._locks = KeyedLocks()

    async def get(self, entity_id: Hashable) -> T | None:
        item = self._items.get(entity_id)
        return copy.deepcopy(item) if item is not None else None

    async def save(self, entity: T) -> None:
        self._items[self._key(entity)] = copy.deepcopy(entity)

    async def query(self, predicate: Callable[[T], bool]) -> list[T]:
        return [copy.deepcopy(e) for e in self._items.values() if predicate(e)]

    async def next_id(self) -> int:
        return next(self._ids)

    def lock(self, entity_id: Hashable) -> AbstractAsyncContextManager[None]:
        return self._locks.hold(entity_id)

    def __len__(self) -> int:
        return len(self._items)
