"""
Monitor configuration.

All cadence, cache and retry constants live here so that a host can tune them
without touching the monitor itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# Native asset contracts queried by balance lookups
NEO_SCRIPT_HASH = "0x0a46e2e37c9987f570b4af253fb77e7eef0f72b6"
GAS_SCRIPT_HASH = "0xa6a6c15dcdc9b997dac448b6926522d22efeedfb"

ENV_PREFIX = "LEDGER_MONITOR_"


@dataclass
class MonitorConfig:
    """
    Tunables for a LedgerMonitor.

    Args:
        block_cache_size:        Max blocks kept in memory (oldest evicted first)
        transaction_cache_size:  Max transactions kept in memory
        blocks_per_query:        Max populated-block entries requested per scan call
        max_retries:             Attempts per on-demand lookup
        retry_delay_ms:          Pause between lookup attempts
        min_refresh_interval_ms: Fastest allowed poll cadence (also the starting cadence)
        max_refresh_interval_ms: Slowest allowed poll cadence
        speed_detection_window:  Number of update timestamps used to estimate block speed
        refresh_damping:         Fraction of the mean block time used as poll interval
        request_timeout:         Per-request HTTP timeout in seconds, None for no timeout
    """
    block_cache_size: int = 1024
    transaction_cache_size: int = 1024
    blocks_per_query: int = 100
    max_retries: int = 3
    retry_delay_ms: int = 500
    min_refresh_interval_ms: int = 1000
    max_refresh_interval_ms: int = 30_000
    speed_detection_window: int = 10
    refresh_damping: float = 1.0 / 3.0
    request_timeout: float | None = None
    neo_script_hash: str = NEO_SCRIPT_HASH
    gas_script_hash: str = GAS_SCRIPT_HASH

    @classmethod
    def from_env(cls) -> MonitorConfig:
        """Build a config from LEDGER_MONITOR_* environment variables, falling back to defaults."""
        defaults = cls()

        def _int(name: str, default: int) -> int:
            value = os.getenv(ENV_PREFIX + name)
            return int(value) if value else default

        timeout = os.getenv(ENV_PREFIX + "REQUEST_TIMEOUT")
        return cls(
            block_cache_size=_int("BLOCK_CACHE_SIZE", defaults.block_cache_size),
            transaction_cache_size=_int("TRANSACTION_CACHE_SIZE", defaults.transaction_cache_size),
            blocks_per_query=_int("BLOCKS_PER_QUERY", defaults.blocks_per_query),
            max_retries=_int("MAX_RETRIES", defaults.max_retries),
            retry_delay_ms=_int("RETRY_DELAY_MS", defaults.retry_delay_ms),
            min_refresh_interval_ms=_int("MIN_REFRESH_INTERVAL_MS", defaults.min_refresh_interval_ms),
            max_refresh_interval_ms=_int("MAX_REFRESH_INTERVAL_MS", defaults.max_refresh_interval_ms),
            speed_detection_window=_int("SPEED_DETECTION_WINDOW", defaults.speed_detection_window),
            request_timeout=float(timeout) if timeout else None,
            neo_script_hash=os.getenv(ENV_PREFIX + "NEO_SCRIPT_HASH", defaults.neo_script_hash),
            gas_script_hash=os.getenv(ENV_PREFIX + "GAS_SCRIPT_HASH", defaults.gas_script_hash),
        )
