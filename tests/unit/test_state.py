"""
Unit tests for MonitorState and the populated-block index.
"""

import random

import pytest

from ledger_monitor.config import MonitorConfig
from ledger_monitor.core.models import Block, Transaction
from ledger_monitor.monitor.state import MonitorState, PopulatedBlockIndex


def test_index_set_and_get():
    index = PopulatedBlockIndex()
    assert index.set(5) is True
    assert index.set(5) is False
    assert index.get(5)
    assert 5 in index
    assert not index.get(4)


def test_index_sparse_high_heights():
    index = PopulatedBlockIndex()
    index.set(1_000_000)
    index.set(3)
    assert list(index) == [3, 1_000_000]
    assert len(index) == 2


def test_index_iterates_only_set_bits():
    index = PopulatedBlockIndex()
    for height in (4_000_000, 0, 17, 2_999_999):
        index.set(height)
    assert list(index) == [0, 17, 2_999_999, 4_000_000]
    assert repr(index) == "PopulatedBlockIndex([0, 17, 2999999, 4000000])"


def test_index_rejects_negative_heights():
    index = PopulatedBlockIndex()
    with pytest.raises(ValueError):
        index.set(-1)
    assert index.get(-1) is False


def test_fresh_state_defaults(clock):
    state = MonitorState(clock=clock)
    assert state.cache_generation == ""
    assert state.last_known_height == 0
    assert list(state.populated_blocks) == [0]
    assert state.recent_update_timestamps == [0.0]
    assert not state.cached_blocks
    assert not state.cached_transactions


def test_genesis_bit_set_for_every_generation(clock):
    state = MonitorState("some-generation", clock=clock)
    assert state.populated_blocks.get(0)


# ------------------------------------------------------------------
# Refresh interval
# ------------------------------------------------------------------


def test_interval_without_gaps_is_minimum(clock):
    state = MonitorState(clock=clock)
    state.recent_update_timestamps.clear()
    assert state.current_refresh_interval() == 1000


def test_interval_of_new_state_is_minimum(clock):
    state = MonitorState(clock=clock)
    assert state.current_refresh_interval() == 1000


def test_interval_is_third_of_mean_gap(clock):
    state = MonitorState(clock=clock)
    for _ in range(3):
        clock.advance(30_000)
        state.record_update()
    # gaps: 0 (now), 30s, 30s, 30s -> mean 22.5s -> 7.5s
    assert state.current_refresh_interval() == 7500


def test_interval_clamped_to_maximum(clock):
    state = MonitorState(clock=clock)
    clock.advance(1_000_000)
    assert state.current_refresh_interval() == 30_000


def test_interval_rounds_to_whole_ms(clock):
    state = MonitorState(clock=clock)
    clock.advance(10_001)
    assert state.current_refresh_interval() == 3334


def test_interval_always_within_bounds(clock):
    rng = random.Random(7)
    for _ in range(200):
        state = MonitorState(clock=clock)
        for _ in range(rng.randint(0, 15)):
            clock.advance(rng.uniform(0, 200_000))
            state.record_update()
        clock.advance(rng.uniform(0, 200_000))
        assert 1000 <= state.current_refresh_interval() <= 30_000


def test_update_window_bounded_newest_first(clock):
    state = MonitorState(clock=clock)
    for _ in range(15):
        clock.advance(1000)
        state.record_update()
    assert len(state.recent_update_timestamps) == 10
    assert state.recent_update_timestamps[0] == 15_000
    assert state.recent_update_timestamps == sorted(state.recent_update_timestamps, reverse=True)


# ------------------------------------------------------------------
# Caches
# ------------------------------------------------------------------


def test_block_near_head_not_cached():
    state = MonitorState()
    state.last_known_height = 10
    assert state.cache_block(Block(hash="b9", index=9)) is False
    assert state.cache_block(Block(hash="b10", index=10)) is False
    assert state.cache_block(Block(hash="b8", index=8)) is True
    assert [b.index for b in state.cached_blocks] == [8]


def test_find_block_by_height_or_hash():
    state = MonitorState()
    state.last_known_height = 100
    block = Block(hash="0xabc", index=42)
    state.cache_block(block)
    assert state.find_block(42) is block
    assert state.find_block("0xabc") is block
    assert state.find_block(43) is None


def test_block_cache_evicts_oldest():
    state = MonitorState()
    state.last_known_height = 5000
    for i in range(1025):
        state.cache_block(Block(hash=f"b{i}", index=i))
    assert len(state.cached_blocks) == 1024
    assert state.find_block(0) is None
    assert state.find_block(1) is not None
    assert state.find_block(1024) is not None


def test_transaction_cache_evicts_oldest():
    state = MonitorState(config=MonitorConfig(transaction_cache_size=3))
    for i in range(4):
        state.cache_transaction(Transaction(hash=f"tx{i}"))
    assert [tx.hash for tx in state.cached_transactions] == ["tx1", "tx2", "tx3"]


def test_transaction_cached_once():
    state = MonitorState()
    state.cache_transaction(Transaction(hash="tx"))
    state.cache_transaction(Transaction(hash="tx"))
    assert len(state.cached_transactions) == 1
