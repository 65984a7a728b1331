"""
ledger-monitor: background monitor and cached query layer for ledger nodes.

Usage:
    from ledger_monitor import LedgerMonitor, MonitorPool
    from ledger_monitor.core import LedgerNode
"""

from ledger_monitor.config import MonitorConfig
from ledger_monitor.core.models import AddressInfo, Block, Transaction
from ledger_monitor.core.node import LedgerNode
from ledger_monitor.monitor.monitor import LedgerMonitor
from ledger_monitor.monitor.pool import MonitorLease, MonitorPool

__version__ = "0.1.0"
__all__ = [
    "AddressInfo",
    "Block",
    "LedgerMonitor",
    "LedgerNode",
    "MonitorConfig",
    "MonitorLease",
    "MonitorPool",
    "Transaction",
]
