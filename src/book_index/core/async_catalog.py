"""Awaitable calling convention over BookCatalog.

Operations are serialised by an asyncio.Lock and run to completion without
suspending; each call returns the result together with the batch of events
it produced, so the caller never has to drain a channel later.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from .catalog import BookCatalog

if TYPE_CHECKING:
    from ..components.graph import ExchangeCycle
    from ..components.request_queue import QueueItem
    from .config import IndexConfig
    from .types import Book, BookId, OperationBatch, OperationKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationOutcome(Generic[T]):
    """Result of one awaited operation plus the events it emitted."""

    result: T
    batch: OperationBatch


class AsyncBookCatalog:
    """BookCatalog exposed as coroutines.

    Args:
        catalog: Catalog to wrap (built from config when omitted)
        config: Index configuration used when building a catalog

    Public API mirrors BookCatalog; every coroutine returns an
    OperationOutcome.
    """

    def __init__(self, catalog: BookCatalog | None = None, config: IndexConfig | None = None):
        self._catalog = catalog if catalog is not None else BookCatalog(config)
        self._lock = asyncio.Lock()

    @property
    def catalog(self) -> BookCatalog:
        return self._catalog

    async def _run(self, operation: Callable[..., T], *args: Any) -> OperationOutcome[T]:
        async with self._lock:
            result = operation(*args)
            batch = self._catalog.last_batch
            assert batch is not None
            return OperationOutcome(result=result, batch=batch)

    async def add_book(self, book: Book) -> OperationOutcome[OperationKind]:
        return await self._run(self._catalog.add_book, book)

    async def delete_book(self, book_id: BookId) -> OperationOutcome[bool]:
        return await self._run(self._catalog.delete_book, book_id)

    async def get_book(self, book_id: BookId) -> OperationOutcome[Book | None]:
        return await self._run(self._catalog.get_book, book_id)

    async def search_books(self, prefix: str) -> OperationOutcome[list[Book]]:
        return await self._run(self._catalog.search_books, prefix)

    async def search_titles(self, prefix: str) -> OperationOutcome[list[str]]:
        return await self._run(self._catalog.search_titles, prefix)

    async def top_rated(self, k: int) -> OperationOutcome[list[Book]]:
        return await self._run(self._catalog.top_rated, k)

    async def request_book(
        self, student_id: str, book_id: BookId, priority: int | None = None
    ) -> OperationOutcome[QueueItem]:
        return await self._run(self._catalog.request_book, student_id, book_id, priority)

    async def next_request(self) -> OperationOutcome[QueueItem | None]:
        return await self._run(self._catalog.next_request)

    async def find_exchanges(self, student_id: str) -> OperationOutcome[list[ExchangeCycle]]:
        return await self._run(self._catalog.find_exchanges, student_id)

    async def register_student(self, student_id: str, name: str) -> OperationOutcome[None]:
        return await self._run(self._catalog.register_student, student_id, name)

    async def register_book_node(self, book: Book) -> OperationOutcome[None]:
        return await self._run(self._catalog.register_book_node, book)

    async def record_swap(self, from_student: str, to_student: str) -> OperationOutcome[None]:
        return await self._run(self._catalog.record_swap, from_student, to_student)

    async def reject_request(self, request_id: str) -> OperationOutcome[bool]:
        return await self._run(self._catalog.reject_request, request_id)
