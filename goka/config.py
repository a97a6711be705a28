"""Client configuration and the global default used by builders."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, IntEnum
from typing import Optional

from goka.copartition import COPARTITIONING_STRATEGY, CopartitioningStrategy

OFFSET_NEWEST = -1
OFFSET_OLDEST = -2

V0_8_2_0 = (0, 8, 2, 0)
V2_0_0_0 = (2, 0, 0, 0)
V2_4_0_0 = (2, 4, 0, 0)

DEFAULT_CHANNEL_BUFFER_SIZE = 256
DEFAULT_MAX_PROCESSING_TIME = timedelta(seconds=1)
DEFAULT_FLUSH_FREQUENCY = timedelta(milliseconds=100)
DEFAULT_FLUSH_BYTES = 64 * 1024
DEFAULT_PRODUCER_MAX_RETRIES = 10


class RequiredAcks(IntEnum):
    """Acknowledgements a producer waits for."""

    NO_RESPONSE = 0
    WAIT_FOR_LOCAL = 1
    WAIT_FOR_ALL = -1


class Compression(Enum):
    """Compression codec of produced messages."""

    NONE = "none"
    GZIP = "gzip"
    SNAPPY = "snappy"
    LZ4 = "lz4"
    ZSTD = "zstd"


@dataclass
class Config:
    """Kafka client settings used by consumers and producers."""

    client_id: str = "goka"
    version: tuple[int, ...] = V2_0_0_0
    channel_buffer_size: int = DEFAULT_CHANNEL_BUFFER_SIZE

    consumer_return_errors: bool = True
    consumer_max_processing_time: timedelta = DEFAULT_MAX_PROCESSING_TIME
    # initial offset for streams; tables are always consumed from the oldest offset
    consumer_offsets_initial: int = OFFSET_NEWEST
    consumer_rebalance_strategy: CopartitioningStrategy = field(
        default_factory=lambda: COPARTITIONING_STRATEGY
    )

    producer_required_acks: RequiredAcks = RequiredAcks.WAIT_FOR_LOCAL
    producer_compression: Compression = Compression.SNAPPY
    producer_flush_frequency: timedelta = DEFAULT_FLUSH_FREQUENCY
    producer_flush_bytes: int = DEFAULT_FLUSH_BYTES
    producer_return_successes: bool = True
    producer_return_errors: bool = True
    producer_retry_max: int = DEFAULT_PRODUCER_MAX_RETRIES


def default_config() -> Config:
    """Return a new config holding the default settings."""
    return Config()


class _GlobalConfig:
    def __init__(self) -> None:
        self.config = default_config()


_global = _GlobalConfig()


def replace_global_config(config: Optional[Config]) -> None:
    """Register ``config`` as the config used when no other is given."""
    if config is None:
        raise ValueError("nil config registered as global config")
    _global.config = copy.copy(config)


def global_config() -> Config:
    """Return a copy of the current global config."""
    return copy.copy(_global.config)