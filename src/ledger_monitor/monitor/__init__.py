"""
ledger_monitor.monitor — polling, caching and change notification.

Provides:
- LedgerMonitor: adaptive poll cycle plus cached, retrying lookups
- MonitorState: generation-scoped caches and populated-block index
- MonitorPool / MonitorLease: shared monitors keyed by node URL
"""

from ledger_monitor.monitor.events import ChangeStream, Subscription
from ledger_monitor.monitor.monitor import LedgerMonitor
from ledger_monitor.monitor.pool import MonitorLease, MonitorPool
from ledger_monitor.monitor.state import MonitorState, PopulatedBlockIndex

__all__ = [
    "ChangeStream",
    "LedgerMonitor",
    "MonitorLease",
    "MonitorPool",
    "MonitorState",
    "PopulatedBlockIndex",
    "Subscription",
]
