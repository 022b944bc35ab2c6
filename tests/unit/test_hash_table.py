"""Unit tests for the chained hash table."""

import random

import pytest

from book_index.components.hash_table import HashTable, rolling_hash
from book_index.core.events import (
    HashChainCompare,
    HashDelete,
    HashInsert,
    HashProbe,
    HashRehash,
    HashResizeComplete,
    HashResizeStart,
    HashUpdate,
)
from book_index.core.types import Book


def make_book(book_id, rating=5.0):
    return Book(id=book_id, title=f"Title {book_id}", rating=rating)


@pytest.fixture
def table():
    """Create an empty hash table with the default capacity of 8."""
    return HashTable()


def test_rolling_hash_matches_polynomial_base_31():
    """Test the hash is the base-31 polynomial folded to signed 32 bits."""
    assert rolling_hash("") == 0
    assert rolling_hash("hello") == 99162322
    # Colliding pair for base 31
    assert rolling_hash("Aa") == rolling_hash("BB") == 2112
    # Overflow wraps to the most negative 32-bit value
    assert rolling_hash("polygenelubricants") == -(2**31)


def test_insert_and_lookup(table):
    """Test basic insert and lookup."""
    table.insert(make_book("b1"))
    table.insert(make_book("b2"))

    assert table.lookup("b1") == make_book("b1")
    assert table.lookup("b2") == make_book("b2")
    assert table.lookup("missing") is None
    assert len(table) == 2


def test_lookup_emits_probe_then_compares(table):
    """Test lookup reports the probed bucket and each chain comparison."""
    table.insert(make_book("Aa"))
    table.insert(make_book("BB"))
    table.events.drain()

    result = table.lookup("BB")

    assert result is not None
    assert table.events.drain() == [
        HashProbe(bucket=0, key="BB"),
        HashChainCompare(bucket=0, index=0, key="BB", match=False),
        HashChainCompare(bucket=0, index=1, key="BB", match=True),
    ]


def test_collisions_are_chained(table):
    """Test colliding keys share a bucket in insertion order."""
    table.insert(make_book("Aa"))
    table.events.drain()
    table.insert(make_book("BB"))

    assert table.events.drain() == [
        HashProbe(bucket=0, key="BB"),
        HashChainCompare(bucket=0, index=0, key="BB", match=False),
        HashInsert(bucket=0, key="BB"),
    ]
    assert table.buckets()[0] == ["Aa", "BB"]


def test_update_overwrites_in_place(table):
    """Test inserting an existing key overwrites without growing."""
    table.insert(make_book("b1", rating=3.0))
    table.events.drain()

    table.insert(make_book("b1", rating=9.0))

    events = table.events.drain()
    assert isinstance(events[-1], HashUpdate)
    assert table.lookup("b1").rating == 9.0
    assert len(table) == 1


def test_update_never_resizes(table):
    """Test overwrites skip the load factor check even at the threshold."""
    for i in range(6):
        table.insert(make_book(f"k{i}"))
    table.events.drain()

    for i in range(6):
        table.insert(make_book(f"k{i}", rating=1.0))

    assert table.capacity == 8
    assert not any(isinstance(e, HashResizeStart) for e in table.events.drain())


def test_seventh_key_doubles_capacity_with_six_rehashes(table):
    """Test 6/8 stays put while the 7th key resizes to 16 with 6 rehash events."""
    for i in range(1, 7):
        table.insert(make_book(f"k{i}"))

    events = table.events.drain()
    assert table.capacity == 8
    assert not any(isinstance(e, HashResizeStart) for e in events)
    assert table.load_factor == 0.75

    table.insert(make_book("k7"))
    events = table.events.drain()

    assert table.capacity == 16
    assert len(table) == 7
    assert sum(isinstance(e, HashRehash) for e in events) == 6
    assert sum(isinstance(e, HashResizeStart) for e in events) == 1
    start = next(e for e in events if isinstance(e, HashResizeStart))
    assert (start.old_capacity, start.new_capacity) == (8, 16)

    # The new key lands after the resize completes
    kinds = [type(e) for e in events]
    assert kinds.index(HashResizeComplete) < kinds.index(HashInsert)
    assert events[-1] == HashInsert(bucket=abs(rolling_hash("k7")) % 16, key="k7")


def test_rehash_events_report_old_and_new_buckets(table):
    """Test every rehash event matches where the key lives afterwards."""
    for i in range(7):
        table.insert(make_book(f"key-{i}"))

    buckets = table.buckets()
    for event in table.events.drain():
        if isinstance(event, HashRehash):
            assert event.key in buckets[event.new_bucket]
            assert event.new_bucket == abs(rolling_hash(event.key)) % 16
            assert event.old_bucket == abs(rolling_hash(event.key)) % 8


def test_load_factor_never_exceeds_threshold():
    """Test size/capacity <= 0.75 after every insert of a random sequence."""
    rng = random.Random(42)
    table = HashTable()

    for _ in range(500):
        table.insert(make_book(f"book-{rng.randint(0, 300)}"))
        assert len(table) / table.capacity <= 0.75

    assert table.capacity >= 16


def test_custom_capacity_and_threshold():
    """Test initial capacity and threshold are configurable."""
    table = HashTable(initial_capacity=2, load_factor_threshold=1.0)

    table.insert(make_book("a"))
    table.insert(make_book("b"))
    assert table.capacity == 2

    table.insert(make_book("c"))
    assert table.capacity == 4


def test_delete(table):
    """Test delete removes the slot and reports its position."""
    table.insert(make_book("Aa"))
    table.insert(make_book("BB"))
    table.events.drain()

    assert table.delete("Aa") is True
    events = table.events.drain()
    assert events[-1] == HashDelete(bucket=0, index=0, key="Aa")
    assert table.lookup("Aa") is None
    assert table.buckets()[0] == ["BB"]
    assert len(table) == 1


def test_delete_missing_returns_false(table):
    """Test deleting an absent key is a normal False result."""
    assert table.delete("nope") is False
    assert table.events.drain() == [HashProbe(bucket=abs(rolling_hash("nope")) % 8, key="nope")]


def test_get_is_silent(table):
    """Test get() and membership do not report events."""
    table.insert(make_book("b1"))
    table.events.drain()

    assert table.get("b1") == make_book("b1")
    assert "b1" in table
    assert "b2" not in table
    assert len(table.events) == 0


def test_metrics(table):
    """Test metrics summary."""
    table.insert(make_book("Aa"))
    table.insert(make_book("BB"))

    metrics = table.metrics()
    assert metrics["size"] == 2
    assert metrics["capacity"] == 8
    assert metrics["load_factor"] == 0.25
    assert metrics["longest_chain"] == 2
    assert sorted(r.id for r in table.records()) == ["Aa", "BB"]


def test_clear_resets_to_initial_capacity():
    """Test clear() drops every record and undoes growth."""
    table = HashTable(initial_capacity=4)
    for i in range(10):
        table.insert(make_book(f"k{i}"))

    table.clear()

    assert len(table) == 0
    assert table.capacity == 4
    assert table.lookup("k1") is None
    table.insert(make_book("k1"))
    assert table.get("k1") == make_book("k1")
