"""Protocol definitions for the book indexes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..core.channel import EventChannel
    from ..core.types import Book, BookId


class KeyIndex(Protocol):
    """Exact-key index over book ids."""

    events: EventChannel

    def insert(self, record: Book) -> None:
        """Insert record, overwriting any record with the same id."""
        ...

    def lookup(self, key: BookId) -> Book | None:
        """Return the record stored under key, reporting each step."""
        ...

    def delete(self, key: BookId) -> bool:
        """Remove the record stored under key."""
        ...

    def get(self, key: BookId) -> Book | None:
        """Return the record stored under key without reporting events."""
        ...

    def clear(self) -> None:
        """Remove every record."""
        ...

    def __len__(self) -> int:
        """Return the number of stored records."""
        ...


class RankedIndex(Protocol):
    """Index ordered by (rating desc, id asc)."""

    events: EventChannel

    def insert(self, record: Book) -> None:
        """Insert record, moving it if its rating changed."""
        ...

    def delete(self, key: BookId) -> bool:
        """Remove the record with this id."""
        ...

    def top_rated(self, k: int) -> list[Book]:
        """Return the first k records in ranked order."""
        ...

    def to_list(self) -> list[Book]:
        """Return all records in ranked order."""
        ...

    def clear(self) -> None:
        """Remove every record."""
        ...

    def __len__(self) -> int:
        """Return the number of stored records."""
        ...


class PrefixIndex(Protocol):
    """Multi-key prefix index resolving free text to ids."""

    events: EventChannel

    def index_book(self, book: Book) -> None:
        """Insert every search key of book."""
        ...

    def unindex_book(self, book: Book) -> None:
        """Remove book's id from every search key."""
        ...

    def search(self, prefix: str) -> list[str]:
        """Return indexed words starting with prefix."""
        ...

    def search_ids(self, prefix: str) -> list[BookId]:
        """Return ids indexed under words starting with prefix."""
        ...

    def clear(self) -> None:
        """Drop every indexed word."""
        ...
