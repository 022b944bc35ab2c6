"""Playback engine replaying a captured event sequence at a chosen speed.

A presentation-facing state machine: it holds a sequence of step events and
a cursor, and notifies subscribers on every change. It never touches the
indexes. Timed playback runs on a threading.Timer; every cancellation bumps
a generation counter so a timer that already fired cannot advance the
cursor afterwards.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ..core.errors import PlaybackError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..core.events import StepEvent
    from ..core.types import OperationBatch, OperationDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot handed to subscribers."""

    events: tuple[StepEvent, ...]
    current_index: int
    is_playing: bool
    speed: float
    operation: OperationDescriptor | None = None


PlaybackListener = Callable[[PlaybackState], None]


class PlaybackEngine:
    """Cursor over a sequence of step events with timed auto-advance.

    Args:
        base_interval: Seconds per step at speed 1.0
        history_limit: Number of recent operations remembered

    Public API:
        - set_events(events, operation) / load(batch): Replace the sequence
        - play(), pause(), restart(): Timed playback control
        - step_forward(), step_backward(), jump_to(i): Cursor moves
        - set_speed(speed): Change the tick rate
        - subscribe(listener): Receive a PlaybackState on every change

    Invariants:
        - 0 <= current_index <= max(0, len(events) - 1)
        - No tick advances the cursor after pause(), restart() or set_events()
    """

    def __init__(self, base_interval: float = 1.5, history_limit: int = 20):
        self._base_interval = base_interval
        self._lock = threading.RLock()
        self._events: tuple[StepEvent, ...] = ()
        self._index = 0
        self._playing = False
        self._speed = 1.0
        self._operation: OperationDescriptor | None = None
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._listeners: list[PlaybackListener] = []
        self._history: deque[OperationDescriptor] = deque(maxlen=history_limit)

    # -------------------------------
    # Sequence
    # -------------------------------
    def set_events(
        self, events: Sequence[StepEvent], operation: OperationDescriptor | None = None
    ) -> None:
        """Replace the sequence and reset the cursor to 0."""
        with self._lock:
            self._cancel_timer()
            self._playing = False
            self._events = tuple(events)
            self._index = 0
            self._operation = operation
            if operation is not None and self._events:
                self._history.appendleft(operation)
            self._notify()

    def load(self, batch: OperationBatch) -> None:
        self.set_events(batch.events, batch.descriptor)

    # -------------------------------
    # Timed playback
    # -------------------------------
    def play(self) -> None:
        """Start advancing one step per tick, rewinding first if at the end."""
        with self._lock:
            if not self._events:
                return
            if self._index >= len(self._events) - 1:
                self._index = 0
            self._cancel_timer()
            self._playing = True
            self._notify()
            self._schedule_next()

    def pause(self) -> None:
        with self._lock:
            self._playing = False
            self._cancel_timer()
            self._notify()

    def restart(self) -> None:
        with self._lock:
            self._index = 0
            self._playing = False
            self._cancel_timer()
            self._notify()

    def set_speed(self, speed: float) -> None:
        if speed <= 0:
            raise PlaybackError(f"Playback speed must be positive, got {speed}")
        with self._lock:
            self._speed = speed
            self._notify()

    def _schedule_next(self) -> None:
        """Arm a timer for the next tick (must hold lock)."""
        if not self._playing:
            return
        delay = self._base_interval / self._speed
        timer = threading.Timer(delay, self._tick, args=(self._generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        """Invalidate any armed timer (must hold lock)."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._playing:
                return
            self._timer = None
            if self._index < len(self._events) - 1:
                self._index += 1
                self._notify()
                self._schedule_next()
            else:
                self._playing = False
                self._notify()

    # -------------------------------
    # Cursor
    # -------------------------------
    def step_forward(self) -> None:
        with self._lock:
            if self._index < len(self._events) - 1:
                self._index += 1
                self._notify()

    def step_backward(self) -> None:
        with self._lock:
            if self._index > 0:
                self._index -= 1
                self._notify()

    def jump_to(self, index: int) -> None:
        """Move the cursor; out-of-range indexes are ignored."""
        with self._lock:
            if 0 <= index < len(self._events):
                self._index = index
                self._notify()

    # -------------------------------
    # Subscription
    # -------------------------------
    def subscribe(self, listener: PlaybackListener) -> Callable[[], None]:
        """Register listener; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    # -------------------------------
    # Introspection
    # -------------------------------
    @property
    def state(self) -> PlaybackState:
        with self._lock:
            return PlaybackState(
                events=self._events,
                current_index=self._index,
                is_playing=self._playing,
                speed=self._speed,
                operation=self._operation,
            )

    @property
    def current_event(self) -> StepEvent | None:
        with self._lock:
            if not self._events:
                return None
            return self._events[self._index]

    def events_up_to_current(self) -> list[StepEvent]:
        with self._lock:
            return list(self._events[: self._index + 1])

    @property
    def progress(self) -> float:
        """Percentage of the sequence shown so far."""
        with self._lock:
            if not self._events:
                return 0.0
            return (self._index + 1) / len(self._events) * 100

    @property
    def history(self) -> list[OperationDescriptor]:
        """Recent operations, most recent first."""
        with self._lock:
            return list(self._history)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    def wait_until_stopped(self, timeout: float | None = None) -> bool:
        """Block until playback stops. Returns False on timeout."""
        deadline = time.time() + timeout if timeout is not None else None

        while True:
            with self._lock:
                if not self._playing:
                    return True

            if deadline is not None and time.time() >= deadline:
                logger.warning("Timeout waiting for playback to stop")
                return False

            time.sleep(0.01)  # 10ms poll interval

    def close(self) -> None:
        """Cancel any pending tick."""
        with self._lock:
            self._playing = False
            self._cancel_timer()
