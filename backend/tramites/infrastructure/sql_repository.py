"""SQL Repository — Repository[T] over async SQLAlchemy, one ORM model per entity type.

Invariants:
    - Each call runs in its own session; save() is a single merge + commit
    - get/query map rows to fresh entity instances (never shared)
    - next_id() never hands out the same id twice within a process, even before
      the entity is saved
    - lock(id) is process-local (KeyedLocks); run a single writer process per database

Design Decisions:
    - query(predicate) filters in Python: the predicate is a domain callable,
      not SQL; per-citizen result sets are small
"""

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Generic, Hashable, TypeVar

from sqlalchemy import func, select

from tramites.infrastructure.database import DatabaseSessionManager
from tramites.infrastructure.keyed_locks import KeyedLocks

T = TypeVar("T")


class SqlRepository(Generic[T]):
    """Repository[T] persisted through an ORM model."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        model: type,
        to_row: Callable[[T], dict[str, Any]],
        from_row: Callable[[Any], T],
        id_column: str = "id",
    ):
        self._db = db
        self._model = model
        self._to_row = to_row
        self._from_row = from_row
        self._id_column = getattr(model, id_column)
        self._locks = KeyedLocks()
        self._id_lock = asyncio.Lock()
        self._last_issued = 0

    async def get(self, entity_id: Hashable) -> T | None:
        async with self._db.session() as db:
            row = await db.get(self._model, entity_id)
            return self._from_row(row) if row is not None else None

    async def save(self, entity: T) -> None:
        async with self._db.session() as db:
            await db.merge(self._model(**self._to_row(entity)))
            await db.commit()

    async def query(self, predicate: Callable[[T], bool]) -> list[T]:
        async with self._db.session() as db:
            result = await db.execute(select(self._model))
            entities = [self._from_row(row) for row in result.scalars().all()]
        return [e for e in entities if predicate(e)]

    async def next_id(self) -> int:
        async with self._id_lock:
            async with self._db.session() as db:
                result = await db.execute(select(func.max(self._id_column)))
                stored_max = result.scalar() or 0
            self._last_issued = max(stored_max, self._last_issued) + 1
            return self._last_issued

    def lock(self, entity_id: Hashable) -> AbstractAsyncContextManager[None]:
        return self._locks.hold(entity_id)
