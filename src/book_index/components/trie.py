"""Prefix trie used as a multi-key inverted index over titles and authors.

Children are kept in a SortedDict so that word enumeration, and therefore
the emitted event sequence, is deterministic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sortedcontainers import SortedDict

from ..core.channel import EventChannel
from ..core.events import (
    TrieCreateNode,
    TrieInsertStart,
    TrieMarkEnd,
    TrieSearchComplete,
    TrieSearchStart,
    TrieSearchStep,
    TrieTraverseNode,
    TrieUnmarkEnd,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..core.types import Book, BookId

logger = logging.getLogger(__name__)


def normalize(word: str) -> str:
    return word.strip().lower()


class _TrieNode:
    __slots__ = ("children", "terminal", "keys")

    def __init__(self) -> None:
        self.children: SortedDict = SortedDict()
        self.terminal = False
        self.keys: list[BookId] = []


class Trie:
    """Character trie mapping normalized words to the ids that contain them.

    Args:
        min_word_length: Shortest individual word indexed by index_book()
        channel: Event channel to report steps on (a private one by default)

    Invariants:
        - Nodes are created on first use and never removed
        - A node is terminal iff it holds at least one id
        - An id is stored at most once per terminal node
    """

    def __init__(self, min_word_length: int = 3, channel: EventChannel | None = None):
        self._root = _TrieNode()
        self._node_count = 1
        self._min_word_length = min_word_length
        self.events = channel if channel is not None else EventChannel()

    def insert(self, word: str, key: BookId) -> None:
        """Index key under word. Empty words are ignored."""
        normalized = normalize(word)
        if not normalized:
            return

        self.events.emit(TrieInsertStart(word=normalized, key=key))

        current = self._root
        path = ""
        for char in normalized:
            path += char
            child = current.children.get(char)
            if child is None:
                child = _TrieNode()
                current.children[char] = child
                self._node_count += 1
                self.events.emit(TrieCreateNode(char=char, path=path))
            else:
                self.events.emit(TrieTraverseNode(char=char, path=path))
            current = child

        current.terminal = True
        if key not in current.keys:
            current.keys.append(key)
        self.events.emit(TrieMarkEnd(path=path, key=key))

    def remove(self, word: str, key: BookId) -> bool:
        """Drop key from word's terminal node. Returns True if it was there."""
        normalized = normalize(word)
        node = self._walk(normalized)
        if node is None or key not in node.keys:
            return False

        node.keys.remove(key)
        node.terminal = bool(node.keys)
        self.events.emit(TrieUnmarkEnd(path=normalized, key=key, terminal=node.terminal))
        return True

    def _walk(self, normalized: str) -> _TrieNode | None:
        current = self._root
        for char in normalized:
            current = current.children.get(char)
            if current is None:
                return None
        return current

    def _descend(self, prefix: str) -> _TrieNode | None:
        """Walk the prefix, reporting one search step per character."""
        self.events.emit(TrieSearchStart(prefix=prefix))

        current = self._root
        path = ""
        for char in prefix:
            path += char
            child = current.children.get(char)
            if child is None:
                self.events.emit(TrieSearchStep(char=char, path=path, found=False))
                self.events.emit(TrieSearchComplete(prefix=prefix, matches=()))
                return None
            self.events.emit(TrieSearchStep(char=char, path=path, found=True))
            current = child
        return current

    def search(self, prefix: str) -> list[str]:
        """Return every indexed word starting with prefix."""
        normalized = normalize(prefix)
        node = self._descend(normalized)
        if node is None:
            return []

        matches = [word for word, _node in self._terminals(node, normalized)]
        self.events.emit(TrieSearchComplete(prefix=normalized, matches=tuple(matches)))
        return matches

    def search_ids(self, prefix: str) -> list[BookId]:
        """Return the ids indexed under any word starting with prefix."""
        normalized = normalize(prefix)
        node = self._descend(normalized)
        if node is None:
            return []

        seen: dict[BookId, None] = {}
        for _word, terminal in self._terminals(node, normalized):
            for key in terminal.keys:
                seen.setdefault(key)
        ids = list(seen)
        self.events.emit(TrieSearchComplete(prefix=normalized, matches=tuple(ids)))
        return ids

    def _terminals(self, node: _TrieNode, prefix: str) -> Iterator[tuple[str, _TrieNode]]:
        """Depth-first enumeration of terminal nodes below node."""
        if node.terminal:
            yield prefix, node
        for char, child in node.children.items():
            yield from self._terminals(child, prefix + char)

    # -------------------------------
    # Multi-key indexing
    # -------------------------------
    def keys_for(self, book: Book) -> list[str]:
        """Title, author and their significant words, in indexing order."""
        keys: list[str] = []
        for text in (book.title, book.author):
            if not text:
                continue
            keys.append(text)
            keys.extend(word for word in text.split() if len(word) >= self._min_word_length)
        return keys

    def index_book(self, book: Book) -> None:
        for word in self.keys_for(book):
            self.insert(word, book.id)

    def unindex_book(self, book: Book) -> None:
        for word in self.keys_for(book):
            self.remove(word, book.id)

    def clear(self) -> None:
        """Drop every node except the root."""
        self._root = _TrieNode()
        self._node_count = 1

    # -------------------------------
    # Introspection
    # -------------------------------
    def words(self) -> list[str]:
        """All indexed words, without reporting events."""
        return [word for word, _node in self._terminals(self._root, "")]

    @property
    def node_count(self) -> int:
        return self._node_count

    def structure(self) -> dict[str, Any]:
        """Nested snapshot of the trie for presentation."""

        def _snapshot(node: _TrieNode, path: str) -> dict[str, Any]:
            return {
                "path": path,
                "terminal": node.terminal,
                "keys": list(node.keys),
                "children": [
                    {"char": char, **_snapshot(child, path + char)}
                    for char, child in node.children.items()
                ],
            }

        return _snapshot(self._root, "")
