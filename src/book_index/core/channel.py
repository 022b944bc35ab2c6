"""Event channel shared between a structure and whoever drains it.

A structure pushes step events; the caller drains them synchronously right
after the operation returns. The channel does not know where one operation
ends and the next begins, so a caller that drains late gets the events of
several operations concatenated.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .events import StepEvent

logger = logging.getLogger(__name__)


class EventChannel:
    """Append-only buffer of step events.

    Args:
        maxlen: Optional bound; when full the oldest events are dropped

    Invariants:
        - Events are kept in emission order
        - drain() hands over every buffered event exactly once
    """

    def __init__(self, maxlen: int | None = None):
        self._buffer: deque[StepEvent] = deque(maxlen=maxlen)
        self._maxlen = maxlen
        self._dropped = 0

    def emit(self, event: StepEvent) -> None:
        """Append an event to the buffer."""
        if self._maxlen is not None and len(self._buffer) == self._maxlen:
            if self._dropped == 0:
                logger.warning(f"Event channel full ({self._maxlen}), dropping oldest events")
            self._dropped += 1
        self._buffer.append(event)

    def drain(self) -> list[StepEvent]:
        """Return all buffered events and empty the buffer."""
        events = list(self._buffer)
        self._buffer.clear()
        self._dropped = 0
        return events

    def discard(self) -> None:
        """Drop everything buffered so far."""
        self._buffer.clear()
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Number of events lost to the bound since the last drain."""
        return self._dropped

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[StepEvent]:
        return iter(list(self._buffer))
