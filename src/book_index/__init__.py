"""Book index - instrumented in-memory indexes for a book exchange."""

from .core.config import IndexConfig
from .core.errors import BookIndexError, ConfigError, PlaybackError
from .core.types import Book, OperationBatch, OperationDescriptor, OperationKind
from .core.channel import EventChannel
from .core.catalog import BookCatalog
from .core.async_catalog import AsyncBookCatalog, OperationOutcome
from .components.avl_tree import AVLTree
from .components.graph import ExchangeCycle, ExchangeGraph
from .components.hash_table import HashTable
from .components.playback import PlaybackEngine, PlaybackState
from .components.request_queue import PriorityRequestQueue, QueueItem, RequestQueue
from .components.trie import Trie

__all__ = [
    "AVLTree",
    "AsyncBookCatalog",
    "Book",
    "BookCatalog",
    "BookIndexError",
    "ConfigError",
    "EventChannel",
    "ExchangeCycle",
    "ExchangeGraph",
    "HashTable",
    "IndexConfig",
    "OperationBatch",
    "OperationDescriptor",
    "OperationKind",
    "OperationOutcome",
    "PlaybackEngine",
    "PlaybackError",
    "PlaybackState",
    "PriorityRequestQueue",
    "QueueItem",
    "RequestQueue",
    "Trie",
]
