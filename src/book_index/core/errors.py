"""Exception hierarchy for the book index.

Absence (missing key, unknown prefix, empty queue) is never an error; these
exceptions only cover caller misuse detectable up front.
"""

from __future__ import annotations


class BookIndexError(Exception):
    """Base exception for all book index errors."""
    pass


class ConfigError(BookIndexError):
    """Raised when an IndexConfig holds invalid values."""
    pass


class PlaybackError(BookIndexError):
    """Raised when the playback engine is driven with invalid controls."""
    pass
