"""Common type definitions for the book index.

Defines the indexed record and the descriptors attached to event batches.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .events import StepEvent

BookId = str


@dataclass(frozen=True, slots=True)
class Book:
    """A book listing as seen by the indexes.

    Frozen so that every index holds an independent value; an update is a
    new Book with the same id.
    """

    id: BookId
    title: str
    rating: float
    author: str | None = None
    subject: str | None = None
    year: int | None = None
    owner_id: str | None = None


class OperationKind(Enum):
    """Logical operation a batch of events belongs to."""

    ADD = "ADD"
    SEARCH = "SEARCH"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TOP_K = "TOP_K"
    MATCH = "MATCH"
    ENQUEUE = "ENQUEUE"
    DEQUEUE = "DEQUEUE"


@dataclass(frozen=True)
class OperationDescriptor:
    """Tag describing one completed logical operation."""

    kind: OperationKind
    subject_id: str | None = None
    subject_label: str | None = None
    event_count: int = 0
    structures: tuple[str, ...] = ()
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class OperationBatch:
    """Events of one logical operation, in emission order."""

    descriptor: OperationDescriptor
    events: tuple[StepEvent, ...]

    def __len__(self) -> int:
        return len(self.events)
