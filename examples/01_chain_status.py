#!/usr/bin/env python3
"""
Example 01: Chain status.

Runs one poll cycle against a node and prints its height, whether it can
report populated blocks, and the most recent populated blocks.

Usage:
    python examples/01_chain_status.py
    python examples/01_chain_status.py http://localhost:50012
"""

import sys

from ledger_monitor import LedgerMonitor

NODE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:50012"

with LedgerMonitor(NODE_URL, autostart=False) as monitor:
    monitor.refresh()
    state = monitor.state

    print("=" * 55)
    print("  LEDGER CHAIN STATUS")
    print("=" * 55)
    print(f"  Node:            {NODE_URL}")
    print(f"  Block count:     {monitor.height}")
    print(f"  Populated scan:  {'yes' if monitor.is_filter_available() else 'no'}")

    if monitor.is_filter_available():
        recent = sorted(state.populated_blocks, reverse=True)[:10]
        print(f"  Generation:      {state.cache_generation}")
        print("-" * 55)
        for height in recent:
            block = monitor.get_block(height)
            if block is None:
                print(f"  #{height:<8} (unavailable)")
            else:
                print(f"  #{height:<8} {block.hash[:20]}... | {len(block.transactions)} tx")
    print("=" * 55)
