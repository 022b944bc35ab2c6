"""Configuration for the book index.

Defines all tunable parameters for the indexes and the playback engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigError


@dataclass
class IndexConfig:
    """Configuration parameters for the in-memory book index.

    Attributes:
        initial_capacity: Number of buckets a new hash table starts with
        load_factor_threshold: size/capacity ratio the hash table may not exceed
        max_cycle_depth: BFS depth cap when searching for exchange cycles
        min_word_length: Shortest title/author word indexed on its own
        playback_base_interval: Seconds per playback step at speed 1
        playback_history_limit: Operations remembered by the playback engine
        channel_maxlen: Bound on buffered events per structure (None = unbounded)
    """

    initial_capacity: int = 8
    load_factor_threshold: float = 0.75
    max_cycle_depth: int = 4
    min_word_length: int = 3
    playback_base_interval: float = 1.5  # seconds
    playback_history_limit: int = 20
    channel_maxlen: int | None = None

    def __post_init__(self) -> None:
        if self.initial_capacity < 1:
            raise ConfigError(f"initial_capacity must be >= 1, got {self.initial_capacity}")
        if not 0 < self.load_factor_threshold <= 1:
            raise ConfigError(
                f"load_factor_threshold must be in (0, 1], got {self.load_factor_threshold}"
            )
        if self.max_cycle_depth < 0:
            raise ConfigError(f"max_cycle_depth must be >= 0, got {self.max_cycle_depth}")
        if self.min_word_length < 1:
            raise ConfigError(f"min_word_length must be >= 1, got {self.min_word_length}")
        if self.playback_base_interval <= 0:
            raise ConfigError(
                f"playback_base_interval must be > 0, got {self.playback_base_interval}"
            )
        if self.playback_history_limit < 0:
            raise ConfigError(
                f"playback_history_limit must be >= 0, got {self.playback_history_limit}"
            )
        if self.channel_maxlen is not None and self.channel_maxlen < 1:
            raise ConfigError(f"channel_maxlen must be >= 1, got {self.channel_maxlen}")
