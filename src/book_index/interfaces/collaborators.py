"""Protocols for the collaborators living outside the index core.

Persistence and outbound notifications belong to the surrounding
application; the catalog only calls through these contracts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ..core.types import Book, BookId


class BookRepository(Protocol):
    """Durable store of book listings."""

    def load_all(self) -> Iterable[Book]:
        """Return every stored book."""
        ...

    def load_students(self) -> Iterable[tuple[str, str]]:
        """Return every student as a (student_id, name) pair."""
        ...

    def load_requests(self) -> Iterable[tuple[str, BookId]]:
        """Return open requests as (student_id, book_id) pairs."""
        ...

    def load_swaps(self) -> Iterable[tuple[str, str]]:
        """Return completed exchanges as (from_student, to_student) pairs."""
        ...

    def save(self, book: Book) -> None:
        """Insert or replace a book."""
        ...

    def delete(self, book_id: BookId) -> None:
        """Remove a book if present."""
        ...


class Notifier(Protocol):
    """Outbound notification channel (e.g. email)."""

    def notify(self, event: str, payload: Mapping[str, Any]) -> None:
        """Deliver a notification about a request lifecycle event."""
        ...
