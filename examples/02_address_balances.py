#!/usr/bin/env python3
"""
Example 02: Address balances.

Validates addresses and prints their NEO and GAS balances.

Usage:
    python examples/02_address_balances.py http://localhost:50012 NVg7LjGcUSrgxgjX3zEgqaksfMaiS8Z6e1
"""

import sys

from ledger_monitor import LedgerMonitor
from ledger_monitor.core.address import address_to_script_hash, is_valid_address

if len(sys.argv) < 3:
    print(__doc__)
    sys.exit(1)

node_url, addresses = sys.argv[1], sys.argv[2:]

with LedgerMonitor(node_url, autostart=False) as monitor:
    for addr in addresses:
        print(f"Address: {addr}")
        if not is_valid_address(addr):
            print("  Valid:    False")
            continue
        print(f"  Script hash: 0x{address_to_script_hash(addr)}")
        info = monitor.get_address(addr)
        if info is None:
            print("  Balances: (node unavailable)")
        else:
            print(f"  NEO:      {info.neo_balance}")
            print(f"  GAS:      {info.gas_balance / 10**8:.8f}")
        print()
