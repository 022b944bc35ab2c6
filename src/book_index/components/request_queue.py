"""Request queues: plain FIFO and priority-ordered insertion.

The priority variant is an insertion-sorted list rather than a heap, so the
queue order is always visible and ties keep their enqueue order.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from ..core.channel import EventChannel
from ..core.events import (
    QueueDequeue,
    QueueEmptyCheck,
    QueueEnqueue,
    QueueHighlight,
    QueuePeek,
    QueueRemove,
    QueueSizeCheck,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueItem:
    """A queued request. Only its position changes while queued."""

    id: str
    payload: Any
    enqueue_time: float
    priority: int | None = None


class RequestQueue:
    """FIFO queue of requests.

    Args:
        channel: Event channel to report steps on (a private one by default)
    """

    def __init__(self, channel: EventChannel | None = None):
        self._items: list[QueueItem] = []
        self.events = channel if channel is not None else EventChannel()

    def _insert_position(self, priority: int | None) -> int:
        return len(self._items)

    def enqueue(self, payload: Any, priority: int | None = None) -> QueueItem:
        """Queue payload and return the created item."""
        item = QueueItem(
            id=uuid.uuid4().hex,
            payload=payload,
            enqueue_time=time.time(),
            priority=priority,
        )
        position = self._insert_position(priority)
        self._items.insert(position, item)

        self.events.emit(QueueEnqueue(item_id=item.id, priority=priority, position=position))
        self.events.emit(QueueHighlight(end="rear", reason="New item added to rear"))
        return item

    def dequeue(self) -> QueueItem | None:
        """Remove and return the front item, or None when empty."""
        if not self._items:
            self.events.emit(QueueEmptyCheck(empty=True))
            return None

        item = self._items.pop(0)
        self.events.emit(QueueDequeue(item_id=item.id))
        self.events.emit(QueueHighlight(end="front", reason="Item removed from front"))
        return item

    def peek(self) -> QueueItem | None:
        """Return the front item without removing it."""
        if not self._items:
            self.events.emit(QueueEmptyCheck(empty=True))
            return None

        item = self._items[0]
        self.events.emit(QueuePeek(item_id=item.id))
        self.events.emit(QueueHighlight(end="front", reason="Peeking at front item"))
        return item

    def is_empty(self) -> bool:
        empty = not self._items
        self.events.emit(QueueEmptyCheck(empty=empty))
        return empty

    def size(self) -> int:
        size = len(self._items)
        self.events.emit(QueueSizeCheck(size=size))
        return size

    def remove(self, item_id: str) -> bool:
        """Remove the first item with this id, wherever it is queued."""
        for position, item in enumerate(self._items):
            if item.id == item_id:
                del self._items[position]
                self.events.emit(QueueRemove(item_id=item_id, position=position, removed=True))
                return True

        self.events.emit(QueueRemove(item_id=item_id, position=None, removed=False))
        return False

    def items(self) -> list[QueueItem]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class PriorityRequestQueue(RequestQueue):
    """Queue ordered by descending priority, FIFO among equal priorities."""

    def _insert_position(self, priority: int | None) -> int:
        value = priority or 0
        for position, item in enumerate(self._items):
            if (item.priority or 0) < value:
                return position
        return len(self._items)

    def enqueue(self, payload: Any, priority: int | None = 0) -> QueueItem:
        return super().enqueue(payload, 0 if priority is None else priority)
