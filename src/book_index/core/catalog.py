"""Book catalog - main public API.

Orchestrates the hash index, AVL tree, trie, exchange graph and request
queue, and publishes one tagged event batch per logical operation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from ..components.avl_tree import AVLTree
from ..components.graph import ExchangeGraph
from ..components.hash_table import HashTable
from ..components.request_queue import PriorityRequestQueue, RequestQueue
from ..components.trie import Trie
from .channel import EventChannel
from .config import IndexConfig
from .types import OperationBatch, OperationDescriptor, OperationKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..components.graph import ExchangeCycle
    from ..components.request_queue import QueueItem
    from ..interfaces.collaborators import BookRepository, Notifier
    from ..interfaces.index import KeyIndex, PrefixIndex, RankedIndex
    from .types import Book, BookId

logger = logging.getLogger(__name__)

BatchListener = Callable[[OperationBatch], None]


class BookCatalog:
    """In-memory book catalog with instrumented indexes.

    Args:
        config: Index configuration (defaults to IndexConfig())
        hash_index, ranked_index, prefix_index, graph, queue: Optional
            pre-built structures; defaults are built from config
        repository: Optional persistence collaborator
        notifier: Optional notification collaborator

    Public API:
        - add_book(book): Insert or update a book in every index
        - delete_book(id): Remove a book from every index
        - get_book(id): Exact lookup
        - search_titles(prefix) / search_books(prefix): Prefix search
        - top_rated(k): Ranked top-k
        - register_student / register_book_node / record_swap: Graph setup
        - request_book / reject_request / next_request: Request queue
        - find_exchanges(student_id): Exchange cycle search
        - load() / clear(): Silent bulk load from the repository, reset
        - add_listener(listener): Receive an OperationBatch per operation

    Invariants:
        - Every book mutation is applied to hash, tree and trie together
        - Listeners see each operation's events exactly once, in order
    """

    def __init__(
        self,
        config: IndexConfig | None = None,
        *,
        hash_index: KeyIndex | None = None,
        ranked_index: RankedIndex | None = None,
        prefix_index: PrefixIndex | None = None,
        graph: ExchangeGraph | None = None,
        queue: RequestQueue | None = None,
        repository: BookRepository | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config if config is not None else IndexConfig()
        maxlen = self.config.channel_maxlen

        self.hash_index: KeyIndex = hash_index if hash_index is not None else HashTable(
            self.config.initial_capacity,
            self.config.load_factor_threshold,
            channel=EventChannel(maxlen),
        )
        self.ranked_index: RankedIndex = (
            ranked_index if ranked_index is not None else AVLTree(channel=EventChannel(maxlen))
        )
        self.prefix_index: PrefixIndex = prefix_index if prefix_index is not None else Trie(
            self.config.min_word_length, channel=EventChannel(maxlen)
        )
        self.graph = graph if graph is not None else ExchangeGraph(
            self.config.max_cycle_depth, channel=EventChannel(maxlen)
        )
        self.queue = queue if queue is not None else PriorityRequestQueue(
            channel=EventChannel(maxlen)
        )
        self._repository = repository
        self._notifier = notifier
        self._listeners: list[BatchListener] = []
        self._last_batch: OperationBatch | None = None

        logger.info("Initialized book catalog")

    # -------------------------------
    # Listeners
    # -------------------------------
    def add_listener(self, listener: BatchListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: BatchListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def last_batch(self) -> OperationBatch | None:
        """Batch published by the most recent operation."""
        return self._last_batch

    def _book_channels(self) -> list[EventChannel]:
        return [self.hash_index.events, self.ranked_index.events, self.prefix_index.events]

    def _all_channels(self) -> list[EventChannel]:
        return [*self._book_channels(), self.graph.events, self.queue.events]

    def _publish(
        self,
        kind: OperationKind,
        channels: Sequence[EventChannel],
        subject_id: str | None = None,
        subject_label: str | None = None,
    ) -> OperationBatch:
        """Drain channels in order into one batch and hand it to listeners."""
        events = []
        for channel in channels:
            events.extend(channel.drain())

        structures = tuple(dict.fromkeys(event.structure for event in events))
        descriptor = OperationDescriptor(
            kind=kind,
            subject_id=subject_id,
            subject_label=subject_label,
            event_count=len(events),
            structures=structures,
        )
        batch = OperationBatch(descriptor=descriptor, events=tuple(events))
        self._last_batch = batch

        logger.debug(f"{kind.value} {subject_id or ''} produced {len(events)} events")
        for listener in list(self._listeners):
            listener(batch)
        return batch

    # -------------------------------
    # Books
    # -------------------------------
    def add_book(self, book: Book) -> OperationKind:
        """Insert or update a book in hash, tree and trie."""
        previous = self.hash_index.get(book.id)
        kind = OperationKind.ADD if previous is None else OperationKind.UPDATE

        self.hash_index.insert(book)
        self.ranked_index.insert(book)
        if previous is not None:
            self.prefix_index.unindex_book(previous)
        self.prefix_index.index_book(book)

        try:
            if self._repository is not None:
                self._repository.save(book)
        finally:
            # Indexes are already mutated; their events go out either way
            self._publish(kind, self._book_channels(), book.id, book.title)
        return kind

    def delete_book(self, book_id: BookId) -> bool:
        """Remove a book from hash, tree and trie."""
        previous = self.hash_index.get(book_id)

        removed = self.hash_index.delete(book_id)
        self.ranked_index.delete(book_id)
        if previous is not None:
            self.prefix_index.unindex_book(previous)

        label = previous.title if previous is not None else None
        try:
            if removed and self._repository is not None:
                self._repository.delete(book_id)
        finally:
            self._publish(OperationKind.DELETE, self._book_channels(), book_id, label)
        return removed

    def get_book(self, book_id: BookId) -> Book | None:
        result = self.hash_index.lookup(book_id)
        label = result.title if result is not None else None
        self._publish(OperationKind.SEARCH, [self.hash_index.events], book_id, label)
        return result

    def search_titles(self, prefix: str) -> list[str]:
        """Indexed words (titles, authors, significant words) starting with prefix."""
        words = self.prefix_index.search(prefix)
        self._publish(OperationKind.SEARCH, [self.prefix_index.events], None, prefix)
        return words

    def search_books(self, prefix: str) -> list[Book]:
        """Books with a title, author or word starting with prefix."""
        ids = self.prefix_index.search_ids(prefix)
        books = [book for book in (self.hash_index.get(i) for i in ids) if book is not None]
        self._publish(OperationKind.SEARCH, [self.prefix_index.events], None, prefix)
        return books

    def top_rated(self, k: int) -> list[Book]:
        books = self.ranked_index.top_rated(k)
        self._publish(OperationKind.TOP_K, [self.ranked_index.events], None, f"Top {k} Books")
        return books

    def books(self) -> list[Book]:
        """Every book in ranked order."""
        return self.ranked_index.to_list()

    # -------------------------------
    # Exchange graph and requests
    # -------------------------------
    def register_student(self, student_id: str, name: str) -> None:
        self.graph.add_node(student_id, "student", name)
        self._publish(OperationKind.ADD, [self.graph.events], student_id, name)

    def register_book_node(self, book: Book) -> None:
        """Add a book to the graph, with an ownership edge when it has an owner."""
        self.graph.add_node(book.id, "book", book.title)
        if book.owner_id is not None:
            self.graph.add_edge(book.owner_id, book.id, "owns")
        self._publish(OperationKind.ADD, [self.graph.events], book.id, book.title)

    def record_swap(self, from_student: str, to_student: str) -> None:
        self.graph.add_edge(from_student, to_student, "swap")
        self._publish(OperationKind.ADD, [self.graph.events], from_student, to_student)

    def request_book(
        self, student_id: str, book_id: BookId, priority: int | None = None
    ) -> QueueItem:
        """Record that student wants book and queue the request."""
        self.graph.add_edge(student_id, book_id, "wants")
        item = self.queue.enqueue({"student_id": student_id, "book_id": book_id}, priority)
        self._publish(OperationKind.ENQUEUE, [self.graph.events, self.queue.events], item.id, book_id)

        if self._notifier is not None:
            self._notifier.notify(
                "request_created",
                {"request_id": item.id, "student_id": student_id, "book_id": book_id},
            )
        return item

    def reject_request(self, request_id: str) -> bool:
        """Drop a queued request and its ``wants`` edge."""
        item = next((i for i in self.queue.items() if i.id == request_id), None)
        removed = self.queue.remove(request_id)
        if item is not None:
            self.graph.remove_edge(item.payload["student_id"], item.payload["book_id"], "wants")

        self._publish(OperationKind.DELETE, [self.queue.events, self.graph.events], request_id)

        if item is not None and self._notifier is not None:
            self._notifier.notify("request_rejected", {"request_id": request_id, **item.payload})
        return removed

    def next_request(self) -> QueueItem | None:
        item = self.queue.dequeue()
        self._publish(
            OperationKind.DEQUEUE, [self.queue.events], item.id if item is not None else None
        )
        return item

    def find_exchanges(self, student_id: str) -> list[ExchangeCycle]:
        cycles = self.graph.find_cycles(student_id)
        self._publish(OperationKind.MATCH, [self.graph.events], student_id, f"{len(cycles)} matches")
        return cycles

    # -------------------------------
    # Bulk load
    # -------------------------------
    def load(self) -> int:
        """Replace the catalog contents with the repository's, without publishing events.

        Books go into hash, tree and trie; students, books, open requests
        and swaps rebuild the exchange graph. Returns the number of books.
        """
        if self._repository is None:
            return 0

        self.clear()
        books = list(self._repository.load_all())
        for book in books:
            self.hash_index.insert(book)
            self.ranked_index.insert(book)
            self.prefix_index.index_book(book)

        self.graph.build_from(
            self._repository.load_students(),
            books,
            self._repository.load_requests(),
            self._repository.load_swaps(),
        )

        for channel in self._all_channels():
            channel.discard()

        logger.info(f"Loaded {len(books)} books from repository")
        return len(books)

    def clear(self) -> None:
        """Empty every structure and drop any undrained events."""
        self.hash_index.clear()
        self.ranked_index.clear()
        self.prefix_index.clear()
        self.graph.clear()
        self.queue.clear()
        for channel in self._all_channels():
            channel.discard()
        logger.info("Cleared book catalog")

    def stats(self) -> dict[str, int]:
        return {
            "books": len(self.hash_index),
            "ranked": len(self.ranked_index),
            "graph_nodes": len(self.graph.nodes()),
            "graph_edges": len(self.graph.edges()),
            "queued_requests": len(self.queue),
        }
