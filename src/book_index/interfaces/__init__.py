"""Protocol definitions for indexes and external collaborators."""

from .collaborators import BookRepository, Notifier
from .index import KeyIndex, PrefixIndex, RankedIndex

__all__ = ["BookRepository", "Notifier", "KeyIndex", "PrefixIndex", "RankedIndex"]
