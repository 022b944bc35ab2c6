"""Unit tests for the playback engine."""

import time

import pytest

from book_index.components.playback import PlaybackEngine
from book_index.core.errors import PlaybackError
from book_index.core.events import HashInsert, HashProbe
from book_index.core.types import OperationBatch, OperationDescriptor, OperationKind


def make_events(n):
    return [HashProbe(bucket=i, key=f"k{i}") for i in range(n)]


def make_batch(events, subject_id="b1"):
    descriptor = OperationDescriptor(
        kind=OperationKind.ADD,
        subject_id=subject_id,
        subject_label=f"Title {subject_id}",
        event_count=len(events),
        structures=("hash_table",),
        timestamp=time.time(),
    )
    return OperationBatch(descriptor=descriptor, events=tuple(events))


@pytest.fixture
def engine():
    """Create a fast-ticking playback engine."""
    engine = PlaybackEngine(base_interval=0.01)
    yield engine
    engine.close()


def test_set_events_resets_cursor(engine):
    """Test set_events replaces the sequence and rewinds to the start."""
    engine.set_events(make_events(3))
    engine.jump_to(2)

    engine.set_events(make_events(5))

    state = engine.state
    assert len(state.events) == 5
    assert state.current_index == 0
    assert state.is_playing is False


def test_play_runs_to_the_end(engine):
    """Test timed playback advances through every event then stops."""
    engine.set_events(make_events(4))
    engine.play()

    assert engine.wait_until_stopped(timeout=5.0)
    assert engine.state.current_index == 3
    assert engine.progress == 100.0


def test_play_at_end_rewinds(engine):
    """Test play() from the last event starts over."""
    engine.set_events(make_events(3))
    engine.jump_to(2)
    seen = []
    engine.subscribe(lambda state: seen.append(state.current_index))

    engine.play()
    engine.wait_until_stopped(timeout=5.0)

    assert seen[0] == 0
    assert engine.state.current_index == 2


def test_play_with_no_events_is_a_noop(engine):
    """Test play() does nothing on an empty sequence."""
    engine.play()

    assert engine.state.is_playing is False
    assert engine.current_event is None
    assert engine.progress == 0.0


def test_pause_stops_ticks():
    """Test no tick advances the cursor after pause()."""
    engine = PlaybackEngine(base_interval=0.05)
    engine.set_events(make_events(100))
    engine.play()
    time.sleep(0.12)
    engine.pause()
    paused_at = engine.state.current_index

    time.sleep(0.2)

    assert engine.state.is_playing is False
    assert engine.state.current_index == paused_at
    assert paused_at < 99


def test_set_events_cancels_running_playback():
    """Test a new sequence stops playback of the previous one."""
    engine = PlaybackEngine(base_interval=0.05)
    engine.set_events(make_events(100))
    engine.play()
    time.sleep(0.08)

    engine.set_events(make_events(10))
    time.sleep(0.2)

    assert engine.state.is_playing is False
    assert engine.state.current_index == 0


def test_restart(engine):
    """Test restart() rewinds and stops."""
    engine.set_events(make_events(5))
    engine.jump_to(3)

    engine.restart()

    assert engine.state.current_index == 0
    assert engine.state.is_playing is False


def test_stepping_is_bounded(engine):
    """Test step and jump never move the cursor out of range."""
    events = make_events(3)
    engine.set_events(events)

    engine.step_backward()
    assert engine.state.current_index == 0

    engine.step_forward()
    engine.step_forward()
    engine.step_forward()
    assert engine.state.current_index == 2
    assert engine.current_event == events[2]

    engine.jump_to(10)
    engine.jump_to(-1)
    assert engine.state.current_index == 2

    engine.jump_to(1)
    assert engine.events_up_to_current() == events[:2]


def test_set_speed(engine):
    """Test speed must be positive."""
    engine.set_speed(2.0)
    assert engine.state.speed == 2.0

    with pytest.raises(PlaybackError):
        engine.set_speed(0)
    with pytest.raises(PlaybackError):
        engine.set_speed(-1.0)
    assert engine.state.speed == 2.0


def test_subscribe_and_unsubscribe(engine):
    """Test listeners receive a state on every change until unsubscribed."""
    states = []
    unsubscribe = engine.subscribe(states.append)

    engine.set_events(make_events(3))
    engine.step_forward()
    assert [s.current_index for s in states] == [0, 1]

    unsubscribe()
    engine.step_forward()
    assert len(states) == 2


def test_load_batch_records_history(engine):
    """Test loading batches records their descriptors, most recent first."""
    first = make_batch([HashInsert(bucket=0, key="b1")], "b1")
    second = make_batch([HashInsert(bucket=1, key="b2")], "b2")

    engine.load(first)
    engine.load(second)

    assert engine.state.operation == second.descriptor
    assert [d.subject_id for d in engine.history] == ["b2", "b1"]

    engine.clear_history()
    assert engine.history == []


def test_empty_batches_are_not_remembered(engine):
    """Test an operation with no events does not enter the history."""
    engine.load(make_batch([]))

    assert engine.history == []


def test_history_is_bounded():
    """Test only the most recent operations are kept."""
    engine = PlaybackEngine(base_interval=0.01, history_limit=3)
    for i in range(5):
        engine.load(make_batch(make_events(1), f"b{i}"))

    assert [d.subject_id for d in engine.history] == ["b4", "b3", "b2"]


def test_wait_with_zero_timeout_returns_immediately():
    """Test a zero timeout does not block while playback is running."""
    engine = PlaybackEngine(base_interval=0.05)
    engine.set_events(make_events(100))
    engine.play()

    started = time.time()
    assert engine.wait_until_stopped(timeout=0) is False
    assert time.time() - started < 1.0
    engine.close()
