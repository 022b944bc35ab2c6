"""Bipartite student/book graph with breadth-first exchange-cycle search.

Edges are directed and typed: a student ``owns`` or ``wants`` a book, and a
``swap`` edge links two students after a completed exchange. Adjacency
sets are SortedSets keyed by source so traversal order is deterministic.
The graph keeps no back-pointers; the owner of a book is found by
scanning the edge list.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sortedcontainers import SortedSet

from ..core.channel import EventChannel
from ..core.events import (
    BfsExplore,
    BfsStart,
    BfsVisit,
    CycleFound,
    EdgeKind,
    GraphAddEdge,
    GraphAddNode,
    GraphRemoveEdge,
    NodeKind,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..core.types import Book

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GraphNode:
    id: str
    kind: NodeKind
    label: str


@dataclass(frozen=True, slots=True)
class GraphEdge:
    source: str
    target: str
    kind: EdgeKind


@dataclass(frozen=True)
class ExchangeCycle:
    """A closed loop of swaps, starting and ending at the same student.

    ``path`` lists student ids (first == last); ``books[i]`` is the book
    ``path[i]`` wants from ``path[i + 1]``.
    """

    path: tuple[str, ...]
    books: tuple[str, ...]
    description: str


class ExchangeGraph:
    """Adjacency-list graph of students and books.

    Args:
        max_cycle_depth: Default BFS depth cap for find_cycles()
        channel: Event channel to report steps on (a private one by default)
    """

    def __init__(self, max_cycle_depth: int = 4, channel: EventChannel | None = None):
        self._nodes: dict[str, GraphNode] = {}
        self._adjacency: dict[str, SortedSet] = {}
        self._edges: list[GraphEdge] = []
        self._max_cycle_depth = max_cycle_depth
        self.events = channel if channel is not None else EventChannel()

    def add_node(self, node_id: str, kind: NodeKind, label: str) -> None:
        """Add or relabel a node."""
        self._nodes[node_id] = GraphNode(id=node_id, kind=kind, label=label)
        self._adjacency.setdefault(node_id, SortedSet())
        self.events.emit(GraphAddNode(node_id=node_id, node_kind=kind, label=label))

    def add_edge(self, source: str, target: str, kind: EdgeKind) -> None:
        """Add a directed, typed edge."""
        self._adjacency.setdefault(source, SortedSet()).add(target)
        self._edges.append(GraphEdge(source=source, target=target, kind=kind))
        self.events.emit(GraphAddEdge(source=source, target=target, edge_kind=kind))

    def remove_edge(self, source: str, target: str, kind: EdgeKind) -> bool:
        """Remove one edge. Returns True if it existed."""
        edge = GraphEdge(source=source, target=target, kind=kind)
        if edge not in self._edges:
            return False

        self._edges.remove(edge)
        if not any(e.source == source and e.target == target for e in self._edges):
            self._adjacency[source].discard(target)
        self.events.emit(GraphRemoveEdge(source=source, target=target, edge_kind=kind))
        return True

    def clear(self) -> None:
        self._nodes.clear()
        self._adjacency.clear()
        self._edges.clear()

    def build_from(
        self,
        students: Iterable[tuple[str, str]],
        books: Iterable[Book],
        requests: Iterable[tuple[str, str]],
        swaps: Iterable[tuple[str, str]],
    ) -> None:
        """Replace the graph with persisted data.

        Args:
            students: (student_id, name) pairs
            books: Books; an owned book gets an ``owns`` edge
            requests: (student_id, book_id) pairs, one ``wants`` edge each
            swaps: (from_student, to_student) pairs of completed exchanges
        """
        self.clear()
        books = list(books)

        for student_id, name in students:
            self.add_node(student_id, "student", name)
        for book in books:
            self.add_node(book.id, "book", book.title)
        for book in books:
            if book.owner_id is not None:
                self.add_edge(book.owner_id, book.id, "owns")
        for student_id, book_id in requests:
            self.add_edge(student_id, book_id, "wants")
        for from_student, to_student in swaps:
            self.add_edge(from_student, to_student, "swap")

        logger.info(f"Built exchange graph: {len(self._nodes)} nodes, {len(self._edges)} edges")

    def owners_of(self, book_id: str) -> list[str]:
        """Students owning book_id, found by full edge scan."""
        return sorted({e.source for e in self._edges if e.target == book_id and e.kind == "owns"})

    def _edge_kinds(self, source: str, target: str) -> set[EdgeKind]:
        return {e.kind for e in self._edges if e.source == source and e.target == target}

    def _exchange_hops(self, student_id: str) -> list[tuple[str, str]]:
        """(owner, book) pairs reachable from a student through a wanted book."""
        hops: list[tuple[str, str]] = []
        for target in self._adjacency.get(student_id, ()):
            if "wants" not in self._edge_kinds(student_id, target):
                continue
            for owner in self.owners_of(target):
                hops.append((owner, target))
        return hops

    def find_cycles(self, start_id: str, max_depth: int | None = None) -> list[ExchangeCycle]:
        """Breadth-first search for exchange cycles through start_id.

        Each frontier entry carries the path walked so far. A node is marked
        visited when first enqueued. Reaching start_id again with a path of
        more than two nodes is a match.
        """
        depth = self._max_cycle_depth if max_depth is None else max_depth
        self.events.emit(BfsStart(start_id=start_id, max_depth=depth))

        cycles: list[ExchangeCycle] = []
        visited = {start_id}
        frontier: deque[tuple[str, tuple[str, ...], tuple[str, ...], int]] = deque(
            [(start_id, (start_id,), (), 0)]
        )

        while frontier:
            node, path, books, level = frontier.popleft()
            self.events.emit(BfsVisit(node_id=node, level=level))

            for neighbor, book in self._exchange_hops(node):
                self.events.emit(BfsExplore(source=node, target=neighbor, via=book))
                new_path = path + (neighbor,)
                new_books = books + (book,)

                if neighbor == start_id:
                    if len(new_path) > 2:
                        cycle = ExchangeCycle(
                            path=new_path,
                            books=new_books,
                            description=self._describe(new_path, new_books),
                        )
                        cycles.append(cycle)
                        self.events.emit(CycleFound(path=new_path, description=cycle.description))
                    continue

                if neighbor in visited:
                    continue
                visited.add(neighbor)
                if level < depth:
                    frontier.append((neighbor, new_path, new_books, level + 1))

        logger.debug(f"Found {len(cycles)} exchange cycles from {start_id}")
        return cycles

    def _label(self, node_id: str) -> str:
        node = self._nodes.get(node_id)
        return node.label if node is not None else node_id

    def _describe(self, path: tuple[str, ...], books: tuple[str, ...]) -> str:
        steps = [
            f"{self._label(path[i])} wants '{self._label(books[i])}' from {self._label(path[i + 1])}"
            for i in range(len(books))
        ]
        route = " → ".join(self._label(p) for p in path)
        return f"Found exchange path: {route} ({'; '.join(steps)})"

    # -------------------------------
    # Introspection
    # -------------------------------
    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    def edges(self) -> list[GraphEdge]:
        return list(self._edges)

    def neighbors(self, node_id: str) -> list[str]:
        return list(self._adjacency.get(node_id, ()))

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes
