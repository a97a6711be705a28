from datetime import timedelta

import pytest

from goka.config import (
    DEFAULT_FLUSH_BYTES,
    DEFAULT_FLUSH_FREQUENCY,
    DEFAULT_MAX_PROCESSING_TIME,
    DEFAULT_PRODUCER_MAX_RETRIES,
    OFFSET_NEWEST,
    V0_8_2_0,
    V2_0_0_0,
    Compression,
    RequiredAcks,
    default_config,
    global_config,
    replace_global_config,
)
from goka.copartition import COPARTITIONING_STRATEGY


@pytest.fixture
def restore_global():
    saved = global_config()
    yield
    replace_global_config(saved)


def test_default_config():
    cfg = default_config()
    assert cfg.version == V2_0_0_0
    assert cfg.consumer_return_errors is True
    assert cfg.consumer_max_processing_time == DEFAULT_MAX_PROCESSING_TIME
    assert cfg.consumer_offsets_initial == OFFSET_NEWEST
    assert cfg.consumer_rebalance_strategy == COPARTITIONING_STRATEGY
    assert cfg.producer_required_acks == RequiredAcks.WAIT_FOR_LOCAL
    assert cfg.producer_compression == Compression.SNAPPY
    assert cfg.producer_flush_frequency == DEFAULT_FLUSH_FREQUENCY
    assert cfg.producer_flush_bytes == DEFAULT_FLUSH_BYTES
    assert cfg.producer_return_successes is True
    assert cfg.producer_return_errors is True
    assert cfg.producer_retry_max == DEFAULT_PRODUCER_MAX_RETRIES


def test_default_config_values():
    cfg = default_config()
    assert cfg.consumer_max_processing_time == timedelta(seconds=1)
    assert cfg.producer_flush_frequency == timedelta(milliseconds=100)
    assert cfg.producer_flush_bytes == 64 * 1024
    assert cfg.producer_retry_max == 10


def test_replace_global_config(restore_global):
    custom = default_config()
    custom.version = V0_8_2_0
    replace_global_config(custom)
    assert global_config().version == custom.version


def test_replace_global_config_none_raises(restore_global):
    with pytest.raises(ValueError):
        replace_global_config(None)


def test_global_config_is_a_copy(restore_global):
    cfg = global_config()
    cfg.client_id = "changed"
    assert global_config().client_id != "changed"
    assert global_config().client_id == default_config().client_id