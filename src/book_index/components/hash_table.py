"""Hash index with separate chaining.

Exact-key lookup over book ids. Every probe, chain comparison and
re-bucketing step is reported on the table's event channel.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.channel import EventChannel
from ..core.events import (
    HashChainCompare,
    HashDelete,
    HashInsert,
    HashProbe,
    HashRehash,
    HashResizeComplete,
    HashResizeStart,
    HashUpdate,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..core.types import Book, BookId

logger = logging.getLogger(__name__)

_INT32_RANGE = 1 << 32
_INT32_MIN = 1 << 31


def rolling_hash(key: str) -> int:
    """Polynomial hash (base 31) folded into a signed 32-bit integer."""
    h = 0
    for ch in key:
        h = ((h * 31 + ord(ch)) + _INT32_MIN) % _INT32_RANGE - _INT32_MIN
    return h


class HashTable:
    """Separate-chaining hash table keyed by book id.

    Args:
        initial_capacity: Number of buckets to start with
        load_factor_threshold: Maximum size/capacity ratio after an insert
        channel: Event channel to report steps on (a private one by default)

    Invariants:
        - Each key appears in at most one chain slot
        - size / capacity <= load_factor_threshold after every insert
        - Capacity only ever doubles
    """

    def __init__(
        self,
        initial_capacity: int = 8,
        load_factor_threshold: float = 0.75,
        channel: EventChannel | None = None,
    ):
        self._initial_capacity = initial_capacity
        self._capacity = initial_capacity
        self._threshold = load_factor_threshold
        self._buckets: list[list[Book]] = [[] for _ in range(initial_capacity)]
        self._size = 0
        self.events = channel if channel is not None else EventChannel()

    def _bucket_of(self, key: BookId) -> int:
        return abs(rolling_hash(key)) % self._capacity

    def _scan(self, key: BookId) -> tuple[int, int | None]:
        """Probe the key's bucket and walk its chain, reporting each step."""
        bucket = self._bucket_of(key)
        self.events.emit(HashProbe(bucket=bucket, key=key))

        for index, record in enumerate(self._buckets[bucket]):
            match = record.id == key
            self.events.emit(HashChainCompare(bucket=bucket, index=index, key=key, match=match))
            if match:
                return bucket, index
        return bucket, None

    def insert(self, record: Book) -> None:
        """Insert a record, or overwrite the record stored under its id.

        When the new key needs a resize, the resize and rehash events come
        before the insert event, which names the bucket in the grown table.
        """
        bucket, index = self._scan(record.id)

        if index is not None:
            # Overwrite never changes the load factor, so no resize check
            self._buckets[bucket][index] = record
            self.events.emit(HashUpdate(bucket=bucket, key=record.id))
            return

        if (self._size + 1) / self._capacity > self._threshold:
            self._resize()
            bucket = self._bucket_of(record.id)

        self._buckets[bucket].append(record)
        self._size += 1
        self.events.emit(HashInsert(bucket=bucket, key=record.id))

    def lookup(self, key: BookId) -> Book | None:
        """Return the record stored under key, or None."""
        bucket, index = self._scan(key)
        if index is None:
            return None
        return self._buckets[bucket][index]

    def delete(self, key: BookId) -> bool:
        """Remove the record stored under key. Returns True if one was removed."""
        bucket, index = self._scan(key)
        if index is None:
            return False

        del self._buckets[bucket][index]
        self._size -= 1
        self.events.emit(HashDelete(bucket=bucket, index=index, key=key))
        return True

    def get(self, key: BookId) -> Book | None:
        """Lookup without reporting any events."""
        for record in self._buckets[self._bucket_of(key)]:
            if record.id == key:
                return record
        return None

    def _resize(self) -> None:
        """Double the capacity and move every entry into a fresh bucket array."""
        old_buckets = self._buckets
        old_capacity = self._capacity
        new_capacity = old_capacity * 2

        self.events.emit(HashResizeStart(old_capacity=old_capacity, new_capacity=new_capacity))

        self._capacity = new_capacity
        self._buckets = [[] for _ in range(new_capacity)]
        for old_bucket, chain in enumerate(old_buckets):
            for record in chain:
                new_bucket = self._bucket_of(record.id)
                self.events.emit(
                    HashRehash(key=record.id, old_bucket=old_bucket, new_bucket=new_bucket)
                )
                self._buckets[new_bucket].append(record)

        self.events.emit(HashResizeComplete(capacity=new_capacity))
        logger.info(f"Resized hash table from {old_capacity} to {new_capacity} buckets")

    def clear(self) -> None:
        """Drop every record and shrink back to the initial capacity."""
        self._capacity = self._initial_capacity
        self._buckets = [[] for _ in range(self._capacity)]
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def load_factor(self) -> float:
        return self._size / self._capacity

    def buckets(self) -> list[list[BookId]]:
        """Snapshot of the bucket layout as lists of keys."""
        return [[record.id for record in chain] for chain in self._buckets]

    def records(self) -> Iterator[Book]:
        """Iterate stored records in bucket order."""
        for chain in self._buckets:
            yield from chain

    def metrics(self) -> dict[str, float]:
        return {
            "size": self._size,
            "capacity": self._capacity,
            "load_factor": self.load_factor,
            "longest_chain": max((len(chain) for chain in self._buckets), default=0),
        }

    def __contains__(self, key: BookId) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return self._size
