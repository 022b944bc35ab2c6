"""Unit tests for the prefix trie."""

import itertools
import random

import pytest

from book_index.components.trie import Trie
from book_index.core.events import (
    TrieCreateNode,
    TrieInsertStart,
    TrieMarkEnd,
    TrieSearchComplete,
    TrieSearchStart,
    TrieSearchStep,
    TrieTraverseNode,
    TrieUnmarkEnd,
)
from book_index.core.types import Book


@pytest.fixture
def trie():
    """Create an empty trie."""
    return Trie()


def test_insert_creates_then_traverses(trie):
    """Test new characters create nodes and shared prefixes are traversed."""
    trie.insert("cat", "b1")
    assert trie.events.drain() == [
        TrieInsertStart(word="cat", key="b1"),
        TrieCreateNode(char="c", path="c"),
        TrieCreateNode(char="a", path="ca"),
        TrieCreateNode(char="t", path="cat"),
        TrieMarkEnd(path="cat", key="b1"),
    ]

    trie.insert("car", "b2")
    assert trie.events.drain() == [
        TrieInsertStart(word="car", key="b2"),
        TrieTraverseNode(char="c", path="c"),
        TrieTraverseNode(char="a", path="ca"),
        TrieCreateNode(char="r", path="car"),
        TrieMarkEnd(path="car", key="b2"),
    ]
    assert trie.node_count == 5


def test_insert_normalizes_words(trie):
    """Test words are trimmed and lower-cased."""
    trie.insert("  The Hobbit ", "b1")

    assert trie.words() == ["the hobbit"]
    assert trie.search("THE") == ["the hobbit"]


def test_empty_word_is_ignored(trie):
    """Test blank words leave the trie and the channel untouched."""
    trie.insert("   ", "b1")

    assert trie.words() == []
    assert len(trie.events) == 0


def test_ids_are_stored_once(trie):
    """Test inserting the same word and id twice keeps one id."""
    trie.insert("dune", "b1")
    trie.insert("dune", "b1")
    trie.insert("dune", "b2")

    assert trie.search_ids("dune") == ["b1", "b2"]
    assert trie.structure()["children"][0]["char"] == "d"


def test_search_returns_words_under_prefix(trie):
    """Test search collects every complete word below the prefix."""
    for word in ["car", "cart", "care", "cat", "dog"]:
        trie.insert(word, word)

    assert trie.search("car") == ["car", "care", "cart"]
    assert trie.search("ca") == ["car", "care", "cart", "cat"]
    assert trie.search("d") == ["dog"]


def test_search_missing_prefix_stops_early(trie):
    """Test a missing character ends the search with no matches."""
    trie.insert("cat", "b1")
    trie.events.drain()

    assert trie.search("cow") == []
    assert trie.events.drain() == [
        TrieSearchStart(prefix="cow"),
        TrieSearchStep(char="c", path="c", found=True),
        TrieSearchStep(char="o", path="co", found=False),
        TrieSearchComplete(prefix="cow", matches=()),
    ]


def test_search_complete_carries_matches(trie):
    """Test the final search event lists the matches."""
    trie.insert("cat", "b1")
    trie.insert("cap", "b2")
    trie.events.drain()

    trie.search("ca")
    events = trie.events.drain()

    assert events[-1] == TrieSearchComplete(prefix="ca", matches=("cap", "cat"))


def test_empty_prefix(trie):
    """Test the empty prefix: nothing on an empty trie, everything otherwise."""
    assert trie.search("") == []

    trie.insert("b", "1")
    trie.insert("a", "2")
    assert trie.search("") == ["a", "b"]


def test_search_ids_unions_ids(trie):
    """Test search_ids aggregates ids below the prefix without duplicates."""
    trie.insert("tolkien", "b1")
    trie.insert("tolstoy", "b2")
    trie.insert("tolkien", "b3")
    trie.insert("tol", "b1")

    # Ids come back in depth-first word order
    assert trie.search_ids("tol") == ["b1", "b3", "b2"]
    assert trie.search_ids("tolk") == ["b1", "b3"]
    assert trie.search_ids("x") == []


def test_index_book_uses_title_author_and_words(trie):
    """Test multi-key indexing of title, author and words longer than two."""
    book = Book(id="b1", title="The Hobbit", rating=9.0, author="J. R. R. Tolkien")

    assert trie.keys_for(book) == ["The Hobbit", "The", "Hobbit", "J. R. R. Tolkien", "Tolkien"]

    trie.index_book(book)
    for prefix in ["the", "hob", "tolk", "j. r"]:
        assert trie.search_ids(prefix) == ["b1"]
    assert trie.search_ids("r.") == []


def test_remove_unmarks_terminal_but_keeps_nodes(trie):
    """Test remove() drops the id and unmarks an emptied terminal."""
    trie.insert("dune", "b1")
    trie.insert("dune", "b2")
    nodes = trie.node_count
    trie.events.drain()

    assert trie.remove("dune", "b1") is True
    assert trie.events.drain() == [TrieUnmarkEnd(path="dune", key="b1", terminal=True)]
    assert trie.search_ids("dune") == ["b2"]

    assert trie.remove("dune", "b2") is True
    assert trie.search("dune") == []
    assert trie.node_count == nodes

    assert trie.remove("dune", "b2") is False
    assert trie.remove("nothing", "b2") is False


def test_unindex_book(trie):
    """Test unindex_book reverses index_book for that id only."""
    hobbit = Book(id="b1", title="The Hobbit", rating=9.0, author="Tolkien")
    silmarillion = Book(id="b2", title="The Silmarillion", rating=8.0, author="Tolkien")
    trie.index_book(hobbit)
    trie.index_book(silmarillion)

    trie.unindex_book(hobbit)

    assert trie.search_ids("the") == ["b2"]
    assert trie.search_ids("hob") == []
    assert trie.search_ids("tolkien") == ["b2"]


@pytest.mark.parametrize("seed", [3, 11, 58])
def test_search_matches_brute_force(seed):
    """Test search(p) returns exactly the inserted words with prefix p."""
    rng = random.Random(seed)
    trie = Trie()
    words = set()
    for i in range(60):
        word = "".join(rng.choice("abc") for _ in range(rng.randint(1, 5)))
        words.add(word)
        trie.insert(word, f"id{i}")

    prefixes = [""] + ["".join(p) for n in (1, 2, 3) for p in itertools.product("abcd", repeat=n)]
    for prefix in prefixes:
        expected = sorted(w for w in words if w.startswith(prefix))
        assert sorted(trie.search(prefix)) == expected


def test_clear(trie):
    """Test clear() drops every word and node."""
    trie.insert("dune", "b1")
    trie.insert("emma", "b2")

    trie.clear()

    assert trie.words() == []
    assert trie.node_count == 1
    assert trie.search_ids("d") == []
