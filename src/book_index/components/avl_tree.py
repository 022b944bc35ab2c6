"""Height-balanced binary search tree over book ratings.

Nodes live in an arena (a list addressed by index); ``left`` and ``right``
hold arena indices or None, so a rotation is just index reassignment.
Ordering key is (rating descending, id ascending): higher ratings, and for
equal ratings lower ids, sit on the right, so a reverse in-order walk
yields records in ranked order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from ..core.channel import EventChannel
from ..core.events import (
    RotationCase,
    TreeDelete,
    TreeInsert,
    TreeMetrics,
    TreeRank,
    TreeReplace,
    TreeRotate,
    TreeSuccessor,
    TreeVisit,
)

if TYPE_CHECKING:
    from ..core.types import Book, BookId

logger = logging.getLogger(__name__)


class _Node:
    __slots__ = ("record", "left", "right", "height", "size")

    def __init__(self, record: Book) -> None:
        self.record = record
        self.left: int | None = None
        self.right: int | None = None
        self.height = 1
        self.size = 1

    def __repr__(self) -> str:
        return f"_Node({self.record.id!r}, h={self.height}, n={self.size})"


def compare(a: Book, b: Book) -> int:
    """Tree order of two records: -1 if a sits left of b, 1 if right, 0 if equal."""
    if a.rating != b.rating:
        return -1 if a.rating < b.rating else 1
    if a.id == b.id:
        return 0
    return -1 if a.id > b.id else 1


class AVLTree:
    """AVL tree ranking books by (rating desc, id asc).

    Args:
        channel: Event channel to report steps on (a private one by default)

    Public API:
        - insert(record): Insert or replace a record
        - delete(id): Remove the record with this id
        - top_rated(k): First k records in ranked order (early exit)
        - find(id): Locate a record by descending its key path

    Invariants:
        - |height(left) - height(right)| <= 1 at every node
        - size(n) == 1 + size(left) + size(right) at every node
        - Each id is stored in at most one node
    """

    def __init__(self, channel: EventChannel | None = None):
        self._nodes: list[_Node | None] = []
        self._free: list[int] = []
        self._root: int | None = None
        self._by_id: dict[BookId, Book] = {}
        self.events = channel if channel is not None else EventChannel()

    # -------------------------------
    # Arena
    # -------------------------------
    def _allocate(self, record: Book) -> int:
        node = _Node(record)
        if self._free:
            index = self._free.pop()
            self._nodes[index] = node
            return index
        self._nodes.append(node)
        return len(self._nodes) - 1

    def _release(self, index: int) -> None:
        self._nodes[index] = None
        self._free.append(index)

    def _node(self, index: int) -> _Node:
        node = self._nodes[index]
        assert node is not None, f"dangling arena index {index}"
        return node

    # -------------------------------
    # Metrics
    # -------------------------------
    def _height(self, index: int | None) -> int:
        return 0 if index is None else self._node(index).height

    def _size(self, index: int | None) -> int:
        return 0 if index is None else self._node(index).size

    def _balance(self, index: int | None) -> int:
        if index is None:
            return 0
        node = self._node(index)
        return self._height(node.left) - self._height(node.right)

    def _update(self, index: int) -> None:
        node = self._node(index)
        node.height = 1 + max(self._height(node.left), self._height(node.right))
        node.size = 1 + self._size(node.left) + self._size(node.right)

    def _emit_metrics(self, index: int) -> None:
        node = self._node(index)
        self.events.emit(
            TreeMetrics(
                node_id=node.record.id,
                height=node.height,
                balance=self._balance(index),
                size=node.size,
            )
        )

    # -------------------------------
    # Rotations
    # -------------------------------
    def _rotate_right(self, y: int, case: RotationCase) -> int:
        y_node = self._node(y)
        x = y_node.left
        assert x is not None
        x_node = self._node(x)
        self.events.emit(
            TreeRotate(case=case, direction="right", pivot_id=y_node.record.id,
                       new_root_id=x_node.record.id)
        )

        y_node.left = x_node.right
        x_node.right = y

        self._update(y)
        self._update(x)
        self._emit_metrics(y)
        self._emit_metrics(x)
        return x

    def _rotate_left(self, x: int, case: RotationCase) -> int:
        x_node = self._node(x)
        y = x_node.right
        assert y is not None
        y_node = self._node(y)
        self.events.emit(
            TreeRotate(case=case, direction="left", pivot_id=x_node.record.id,
                       new_root_id=y_node.record.id)
        )

        x_node.right = y_node.left
        y_node.left = x

        self._update(x)
        self._update(y)
        self._emit_metrics(x)
        self._emit_metrics(y)
        return y

    def _rebalance(self, index: int) -> int:
        """Recompute metrics at index and restore balance. Returns the subtree root."""
        self._update(index)
        self._emit_metrics(index)

        node = self._node(index)
        balance = self._balance(index)

        if balance > 1:
            if self._balance(node.left) >= 0:
                return self._rotate_right(index, "LL")
            assert node.left is not None
            node.left = self._rotate_left(node.left, "LR")
            return self._rotate_right(index, "LR")

        if balance < -1:
            if self._balance(node.right) <= 0:
                return self._rotate_left(index, "RR")
            assert node.right is not None
            node.right = self._rotate_right(node.right, "RL")
            return self._rotate_left(index, "RL")

        return index

    # -------------------------------
    # Insert
    # -------------------------------
    def insert(self, record: Book) -> None:
        """Insert a record, replacing any record stored under the same id."""
        existing = self._by_id.get(record.id)
        if existing is not None and compare(existing, record) != 0:
            # Rating changed: the old position is no longer valid
            self._root = self._delete(self._root, existing)

        self._root = self._insert(self._root, record, None, None)
        self._by_id[record.id] = record

    def _insert(
        self,
        index: int | None,
        record: Book,
        parent_id: BookId | None,
        side: Literal["left", "right"] | None,
    ) -> int:
        if index is None:
            self.events.emit(
                TreeInsert(node_id=record.id, rating=record.rating, parent_id=parent_id, side=side)
            )
            return self._allocate(record)

        node = self._node(index)
        self.events.emit(TreeVisit(node_id=node.record.id, rating=node.record.rating, purpose="insert"))

        cmp = compare(record, node.record)
        if cmp < 0:
            node.left = self._insert(node.left, record, node.record.id, "left")
        elif cmp > 0:
            node.right = self._insert(node.right, record, node.record.id, "right")
        else:
            node.record = record
            self.events.emit(TreeReplace(node_id=record.id, rating=record.rating))
            return index

        return self._rebalance(index)

    # -------------------------------
    # Delete
    # -------------------------------
    def delete(self, key: BookId) -> bool:
        """Remove the record with this id. Returns True if one was removed."""
        record = self._by_id.get(key)
        if record is None:
            return False

        self._root = self._delete(self._root, record)
        del self._by_id[key]
        return True

    def _delete(self, index: int | None, target: Book) -> int | None:
        if index is None:
            return None

        node = self._node(index)
        self.events.emit(TreeVisit(node_id=node.record.id, rating=node.record.rating, purpose="delete"))

        cmp = compare(target, node.record)
        if cmp < 0:
            node.left = self._delete(node.left, target)
        elif cmp > 0:
            node.right = self._delete(node.right, target)
        else:
            self.events.emit(TreeDelete(node_id=node.record.id, rating=node.record.rating))

            if node.left is None or node.right is None:
                child = node.left if node.left is not None else node.right
                self._release(index)
                return child

            successor = self._node(self._min_index(node.right)).record
            self.events.emit(TreeSuccessor(node_id=node.record.id, successor_id=successor.id))
            node.record = successor
            node.right = self._delete(node.right, successor)

        return self._rebalance(index)

    def _min_index(self, index: int) -> int:
        current = index
        while (left := self._node(current).left) is not None:
            current = left
        return current

    # -------------------------------
    # Queries
    # -------------------------------
    def top_rated(self, k: int) -> list[Book]:
        """Return the k best-ranked records.

        Reverse in-order walk (right, node, left) with an explicit stack,
        stopping as soon as k records are collected.
        """
        result: list[Book] = []
        if k <= 0:
            return result

        stack: list[int] = []
        current = self._root
        while (stack or current is not None) and len(result) < k:
            while current is not None:
                node = self._node(current)
                self.events.emit(
                    TreeVisit(node_id=node.record.id, rating=node.record.rating, purpose="top-k")
                )
                stack.append(current)
                current = node.right

            node = self._node(stack.pop())
            result.append(node.record)
            self.events.emit(TreeRank(node_id=node.record.id, rank=len(result)))
            current = node.left

        return result

    def clear(self) -> None:
        self._nodes.clear()
        self._free.clear()
        self._root = None
        self._by_id.clear()

    def find(self, key: BookId) -> Book | None:
        """Locate a record by id, reporting the key path walked."""
        target = self._by_id.get(key)
        if target is None:
            return None

        current = self._root
        while current is not None:
            node = self._node(current)
            self.events.emit(TreeVisit(node_id=node.record.id, rating=node.record.rating, purpose="search"))
            cmp = compare(target, node.record)
            if cmp == 0:
                return node.record
            current = node.left if cmp < 0 else node.right
        return None

    def to_list(self) -> list[Book]:
        """All records in ranked order, without reporting events."""
        values: list[Book] = []

        def _reverse_inorder(index: int | None) -> None:
            if index is not None:
                node = self._node(index)
                _reverse_inorder(node.right)
                values.append(node.record)
                _reverse_inorder(node.left)

        _reverse_inorder(self._root)
        return values

    # -------------------------------
    # Introspection
    # -------------------------------
    @property
    def height(self) -> int:
        return self._height(self._root)

    @property
    def root_id(self) -> BookId | None:
        return None if self._root is None else self._node(self._root).record.id

    @property
    def node_count(self) -> int:
        """Occupied arena slots."""
        return len(self._nodes) - len(self._free)

    def check_invariants(self) -> list[BookId]:
        """Return ids of nodes violating balance or size bookkeeping."""
        violations: list[BookId] = []

        def _check(index: int | None) -> tuple[int, int]:
            if index is None:
                return 0, 0
            node = self._node(index)
            left_h, left_n = _check(node.left)
            right_h, right_n = _check(node.right)
            height = 1 + max(left_h, right_h)
            size = 1 + left_n + right_n
            if abs(left_h - right_h) > 1 or node.height != height or node.size != size:
                violations.append(node.record.id)
            return height, size

        _check(self._root)
        return violations

    def structure(self) -> dict[str, Any] | None:
        """Nested snapshot of the tree for presentation."""

        def _snapshot(index: int | None) -> dict[str, Any] | None:
            if index is None:
                return None
            node = self._node(index)
            return {
                "id": node.record.id,
                "rating": node.record.rating,
                "height": node.height,
                "size": node.size,
                "balance": self._balance(index),
                "left": _snapshot(node.left),
                "right": _snapshot(node.right),
            }

        return _snapshot(self._root)

    def __contains__(self, key: BookId) -> bool:
        return key in self._by_id

    def __len__(self) -> int:
        return self._size(self._root)
