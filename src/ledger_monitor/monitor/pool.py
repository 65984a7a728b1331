"""
MonitorPool: shares one LedgerMonitor per node URL between consumers.

Each acquire() hands out a MonitorLease. Disposing a lease detaches its
listeners and gives back one unit of interest; the monitor itself is stopped
when the last lease for its URL is released.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from ledger_monitor.config import MonitorConfig
from ledger_monitor.monitor.events import Listener, Subscription
from ledger_monitor.monitor.monitor import LedgerMonitor

logger = logging.getLogger("ledger_monitor.pool")

MonitorFactory = Callable[..., LedgerMonitor]


class MonitorLease:
    """One consumer's share of a pooled monitor."""

    def __init__(self, monitor: LedgerMonitor) -> None:
        self.monitor = monitor
        self._subscriptions: list[Subscription] = []
        self._disposed = False

    def on_change(self, listener: Listener) -> Subscription:
        """Subscribe through this lease; the subscription ends with the lease."""
        subscription = self.monitor.on_change(listener)
        self._subscriptions.append(subscription)
        return subscription

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()
        self.monitor.dispose(from_pool=True)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __enter__(self) -> MonitorLease:
        return self

    def __exit__(self, *_) -> None:
        self.dispose()


@dataclass
class _PoolEntry:
    monitor: LedgerMonitor | None = None
    refs: int = 0


class MonitorPool:
    """
    Reference-counted monitors keyed by node URL.

    Usage:
        pool = MonitorPool()
        lease = pool.acquire("http://localhost:50012")
        lease.on_change(print)
        ...
        lease.dispose()
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        monitor_factory: MonitorFactory = LedgerMonitor,
    ) -> None:
        self.config = config or MonitorConfig()
        self._factory = monitor_factory
        self._entries: dict[str, _PoolEntry] = {}
        self._lock = threading.Lock()

    def acquire(self, node_url: str) -> MonitorLease:
        """Join the monitor for `node_url`, creating it on first use."""
        key = node_url.rstrip("/")
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _PoolEntry()
                entry.monitor = self._factory(
                    key,
                    config=self.config,
                    on_release=partial(self._release, key, entry),
                )
                self._entries[key] = entry
                logger.info(f"Started monitor for {key}")
            entry.refs += 1
            return MonitorLease(entry.monitor)

    def _release(self, key: str, entry: _PoolEntry) -> None:
        with self._lock:
            if self._entries.get(key) is not entry or entry.refs == 0:
                return
            entry.refs -= 1
            if entry.refs > 0:
                return
            del self._entries[key]
        logger.info(f"Last lease for {key} released")
        entry.monitor.dispose()

    def ref_count(self, node_url: str) -> int:
        with self._lock:
            entry = self._entries.get(node_url.rstrip("/"))
            return entry.refs if entry else 0

    def close(self) -> None:
        """Stop every monitor regardless of outstanding leases."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.monitor.dispose()

    def __contains__(self, node_url: str) -> bool:
        with self._lock:
            return node_url.rstrip("/") in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
