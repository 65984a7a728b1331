"""
LedgerMonitor: keeps a local, generation-scoped view of a ledger node.

The monitor polls the node on a self-rescheduling timer. Each cycle reads the
chain height, optionally scans for newly populated blocks, and notifies
subscribers when anything observable changed. The poll interval follows the
observed block rate (see MonitorState.current_refresh_interval).

Usage:
    monitor = LedgerMonitor("http://localhost:50012")
    monitor.on_change(lambda height: print("height", height))
    block = monitor.get_block(12)
    monitor.dispose()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from ledger_monitor.config import MonitorConfig
from ledger_monitor.core.address import AddressError, address_to_script_hash
from ledger_monitor.core.models import AddressInfo, Block, Transaction
from ledger_monitor.core.node import LedgerNode, LedgerNodeError, MethodNotFoundError
from ledger_monitor.monitor.events import ChangeStream, Listener, Subscription
from ledger_monitor.monitor.state import MonitorState, now_ms

logger = logging.getLogger("ledger_monitor.monitor")

T = TypeVar("T")

# Errors a lookup may retry; anything else is a bug and propagates
RETRYABLE_ERRORS = (LedgerNodeError, httpx.HTTPError)


class LedgerMonitor:
    """
    Background monitor for one ledger node.

    Construction starts the poll cycle immediately unless `autostart` is
    False (then call refresh() to run cycles by hand). All lookups return
    None on failure instead of raising.

    Args:
        node_url:   URL of the node's JSON-RPC endpoint
        config:     tunables, MonitorConfig() by default
        node:       client to use instead of a new LedgerNode
        on_release: called on pooled disposal (set by MonitorPool)
        autostart:  schedule the first cycle right away
        clock:      millisecond wall clock
        sleep:      blocking sleep in seconds, used between lookup retries
    """

    def __init__(
        self,
        node_url: str,
        config: MonitorConfig | None = None,
        node: LedgerNode | None = None,
        on_release: Callable[[], None] | None = None,
        autostart: bool = True,
        clock: Callable[[], float] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.node_url = node_url
        self.config = config or MonitorConfig()
        self._node = node or LedgerNode(node_url, timeout=self.config.request_timeout)
        self._on_release = on_release
        self._clock = clock
        self._sleep = sleep

        self._lock = threading.RLock()
        self._cycle_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._disposed = False
        self._node_closed = False

        self._populated_blocks_success = False
        self._try_populated_blocks = True
        self._state = MonitorState(config=self.config, clock=clock)
        self._changes = ChangeStream()

        if autostart:
            self._schedule(0)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> MonitorState:
        """The current generation's state. Replaced, never reset, on a chain reset."""
        with self._lock:
            return self._state

    @property
    def height(self) -> int:
        with self._lock:
            return self._state.last_known_height

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_change(self, listener: Listener) -> Subscription:
        """Subscribe to change notifications; the listener receives the latest height."""
        return self._changes.subscribe(listener)

    def is_block_populated(self, height: int) -> bool:
        """
        Whether `height` holds transactions. Without a working populated-block
        scan nothing can be ruled out, so every height reads as populated.
        """
        if not self._populated_blocks_success:
            return True
        with self._lock:
            return self._state.populated_blocks.get(height)

    def is_filter_available(self) -> bool:
        """Whether the node's populated-block scan has succeeded at least once."""
        return self._populated_blocks_success

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_block(self, id_or_height: int | str, retry: bool = True) -> Block | None:
        """Return a block by height or hash, from cache when possible."""
        with self._lock:
            cached = self._state.find_block(id_or_height)
        if cached is not None:
            return cached

        def fetch() -> Block:
            block = self._node.get_block(id_or_height, True)
            with self._lock:
                self._state.cache_block(block)
            return block

        return self._with_retry(f"block {id_or_height}", fetch, retry)

    def get_transaction(self, tx_hash: str, retry: bool = True) -> Transaction | None:
        """Return a transaction by hash, from cache when possible."""
        with self._lock:
            cached = self._state.find_transaction(tx_hash)
        if cached is not None:
            return cached

        def fetch() -> Transaction:
            tx = self._node.get_transaction(tx_hash, True)
            with self._lock:
                self._state.cache_transaction(tx)
            return tx

        return self._with_retry(f"tx {tx_hash}", fetch, retry)

    def get_address(self, address: str, retry: bool = True) -> AddressInfo | None:
        """Return the NEO and GAS balances of an address. Never cached."""
        try:
            script_hash = address_to_script_hash(address)
        except AddressError as e:
            logger.warning(f"Not retrieving address {address}: {e}")
            return None

        def fetch() -> AddressInfo:
            return AddressInfo(
                address=address,
                neo_balance=self._get_balance(script_hash, self.config.neo_script_hash),
                gas_balance=self._get_balance(script_hash, self.config.gas_script_hash),
            )

        return self._with_retry(f"address {address}", fetch, retry)

    def _get_balance(self, script_hash: str, asset_script_hash: str) -> int:
        result = self._node.invoke_function(
            asset_script_hash,
            "balanceOf",
            [{"type": "Hash160", "value": script_hash}],
        )
        try:
            return result.first_integer()
        except ValueError as e:
            raise LedgerNodeError(f"Unreadable balance from {asset_script_hash}: {e}") from e

    def _with_retry(self, description: str, fetch: Callable[[], T], retry: bool) -> T | None:
        if self._disposed:
            logger.debug(f"Monitor for {self.node_url} is disposed; not retrieving {description}")
            return None
        attempts = self.config.max_retries if retry else 1
        for attempt in range(attempts):
            logger.debug(f"Retrieving {description} (attempt {attempt})")
            try:
                return fetch()
            except RETRYABLE_ERRORS as e:
                logger.warning(f"Error retrieving {description}: {e or 'Unknown error'}")
                if attempt + 1 < attempts:
                    self._sleep(self.config.retry_delay_ms / 1000)
        return None

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    def refresh(self) -> int | None:
        """
        Run one poll cycle now and return the interval (ms) until the next
        one. Errors are logged, never raised. Returns None once disposed.
        """
        with self._cycle_lock:
            if self._disposed:
                return None
            try:
                self._update_state()
            except Exception as e:
                logger.error(f"Unexpected error monitoring {self.node_url}: {e}")
            finally:
                if self._disposed:
                    self._close_node()
            with self._lock:
                return self._state.current_refresh_interval()

    def _refresh_loop(self) -> None:
        interval = self.refresh()
        if interval is None:
            return
        logger.debug(f"Monitoring {self.node_url} Interval: {interval}ms")
        self._schedule(interval / 1000)

    def _schedule(self, delay: float) -> None:
        with self._lock:
            if self._disposed:
                return
            timer = threading.Timer(delay, self._refresh_loop)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _update_state(self) -> None:
        height = self._node.get_height()
        with self._lock:
            fire_change = height != self._state.last_known_height

        if self._try_populated_blocks:
            try:
                fire_change = self._scan_populated_blocks(height) or fire_change
            except MethodNotFoundError:
                logger.info(f"{self.node_url} does not report populated blocks; scan disabled")
                self._try_populated_blocks = False

        with self._lock:
            self._state.last_known_height = height

        if fire_change:
            self._changes.fire(height)
            with self._lock:
                self._state.record_update()

    def _scan_populated_blocks(self, height: int) -> bool:
        """Walk back from `height` in batches until the last known height is covered."""
        changed = False
        start = height
        while True:
            with self._lock:
                last_known = self._state.last_known_height
            count = max(1, min(start - last_known, self.config.blocks_per_query))
            logger.debug(f"Scanning {count} populated blocks ending at {start}")
            result = self._node.get_populated_blocks(count, start)

            with self._lock:
                if not self._populated_blocks_success:
                    self._populated_blocks_success = True
                    changed = True
                if result.generation_id != self._state.cache_generation:
                    logger.info(f"Clearing cache (generation {result.generation_id!r})")
                    self._state = MonitorState(result.generation_id, self.config, self._clock)
                    changed = True
                for block_height in result.heights:
                    if self._state.populated_blocks.set(block_height):
                        changed = True
                last_known = self._state.last_known_height

            if not result.heights:
                break
            lowest = min(result.heights)
            if lowest >= start:
                break
            start = lowest
            if start <= last_known:
                break
        return changed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self, from_pool: bool = False) -> None:
        """
        Stop the monitor. A pooled disposal (`from_pool=True`) only gives back
        one unit of interest to the owning pool; the pool stops the monitor
        once nobody is left.
        """
        if from_pool:
            if self._on_release is not None:
                self._on_release()
            return

        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self._changes.close()
        logger.info(f"Stopped monitoring {self.node_url}")
        # An in-flight cycle closes the node itself once its call returns
        if self._cycle_lock.acquire(blocking=False):
            try:
                self._close_node()
            finally:
                self._cycle_lock.release()

    def _close_node(self) -> None:
        if not self._node_closed:
            self._node_closed = True
            self._node.close()

    def __enter__(self) -> LedgerMonitor:
        return self

    def __exit__(self, *_: Any) -> None:
        self.dispose()
