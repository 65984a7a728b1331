"""
MonitorState: the generation-scoped snapshot a LedgerMonitor works on.

A state instance is never reset field by field. When the node reports a new
generation id the monitor swaps in a fresh instance, so every cache and the
populated-block index are dropped together.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Iterator

from ledger_monitor.config import MonitorConfig
from ledger_monitor.core.models import Block, Transaction


def now_ms() -> float:
    """Wall clock in milliseconds."""
    return time.time() * 1000


class PopulatedBlockIndex:
    """
    Bit index over block heights. Bit H set means height H holds at least one
    transaction. Backed by a single int, so memory grows with the highest
    height set (one bit per height), not with the number of populated blocks.
    """

    def __init__(self) -> None:
        self._bits = 0

    def set(self, height: int) -> bool:
        """Set the bit for `height`. Returns True if it was previously unset."""
        if height < 0:
            raise ValueError(f"Height must be non-negative, got {height}")
        mask = 1 << height
        if self._bits & mask:
            return False
        self._bits |= mask
        return True

    def get(self, height: int) -> bool:
        if height < 0:
            return False
        return bool((self._bits >> height) & 1)

    def __contains__(self, height: int) -> bool:
        return self.get(height)

    def __len__(self) -> int:
        return self._bits.bit_count()

    def __iter__(self) -> Iterator[int]:
        bits = self._bits
        while bits:
            lowest = bits & -bits
            yield lowest.bit_length() - 1
            bits ^= lowest

    def __repr__(self) -> str:
        return f"PopulatedBlockIndex({list(self)!r})"


class MonitorState:
    """
    Cached blocks and transactions, the populated-block index, recent update
    timestamps and the last known height for one chain generation.
    """

    def __init__(
        self,
        cache_generation: str = "",
        config: MonitorConfig | None = None,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self.cache_generation = cache_generation
        self.config = config or MonitorConfig()
        self._clock = clock
        self.recent_update_timestamps: list[float] = [clock()]
        self.cached_blocks: deque[Block] = deque(maxlen=self.config.block_cache_size)
        self.cached_transactions: deque[Transaction] = deque(maxlen=self.config.transaction_cache_size)
        self.last_known_height = 0
        self.populated_blocks = PopulatedBlockIndex()
        # Genesis counts as populated even though it has no transactions
        self.populated_blocks.set(0)

    def current_refresh_interval(self) -> int:
        """
        Poll interval in ms: a third of the mean time between recent updates,
        clamped to the configured bounds.
        """
        cfg = self.config
        differences_sum = 0.0
        differences_count = 0
        previous = self._clock()
        for timestamp in self.recent_update_timestamps:
            differences_sum += previous - timestamp
            differences_count += 1
            previous = timestamp
        if differences_count == 0:
            return cfg.min_refresh_interval_ms
        computed = round(cfg.refresh_damping * (differences_sum / differences_count))
        return min(cfg.max_refresh_interval_ms, max(computed, cfg.min_refresh_interval_ms))

    def record_update(self, timestamp: float | None = None) -> None:
        """Push an update instant to the front of the window."""
        self.recent_update_timestamps.insert(0, self._clock() if timestamp is None else timestamp)
        del self.recent_update_timestamps[self.config.speed_detection_window:]

    # ------------------------------------------------------------------
    # Caches
    # ------------------------------------------------------------------

    def find_block(self, id_or_height: int | str) -> Block | None:
        for block in self.cached_blocks:
            if block.index == id_or_height or block.hash == id_or_height:
                return block
        return None

    def cache_block(self, block: Block) -> bool:
        """
        Cache a block unless it is the head or the block just before it,
        which may still be replaced. Returns True if the block was cached.
        """
        if block.index >= self.last_known_height - 1:
            return False
        if self.find_block(block.hash) is None:
            self.cached_blocks.append(block)
        return True

    def find_transaction(self, tx_hash: str) -> Transaction | None:
        for tx in self.cached_transactions:
            if tx.hash == tx_hash:
                return tx
        return None

    def cache_transaction(self, tx: Transaction) -> None:
        if self.find_transaction(tx.hash) is None:
            self.cached_transactions.append(tx)
