"""Lazy, restartable record listings."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class Listing(Generic[T]):
    """Async iterable over the rows of a query, fetched in batches.

    Nothing is read until iteration starts, and every ``async for`` runs
    the query again from the first batch, so a listing can be iterated more
    than once and always reflects current state. The query must have a
    total ordering for batch boundaries to be stable.
    """

    def __init__(self, db: AsyncSession, query: Select[Any], batch_size: int = 200):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.db = db
        self.query = query
        self.batch_size = batch_size

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        offset = 0
        while True:
            result = await self.db.execute(self.query.offset(offset).limit(self.batch_size))
            rows = result.scalars().unique().all()
            for row in rows:
                yield row
            if len(rows) < self.batch_size:
                return
            offset += self.batch_size

    async def all(self) -> list[T]:
        return [row async for row in self]
