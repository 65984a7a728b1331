"""
ledger-monitor CLI: watch a node and print every change notification.

    ledger-monitor http://localhost:50012 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import threading

from ledger_monitor.config import MonitorConfig
from ledger_monitor.monitor.monitor import LedgerMonitor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-monitor",
        description="Poll a ledger node and report height and populated-block changes.",
    )
    parser.add_argument("node_url", help="JSON-RPC endpoint of the node")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser


def describe_change(monitor: LedgerMonitor, height: int) -> str:
    line = f"height {height}"
    if monitor.is_filter_available():
        populated = len(monitor.state.populated_blocks)
        line += f" ({populated} populated blocks, generation {monitor.state.cache_generation!r})"
    return line


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    stop = threading.Event()
    monitor = LedgerMonitor(args.node_url, config=MonitorConfig.from_env())
    monitor.on_change(lambda height: print(describe_change(monitor, height), flush=True))
    try:
        stop.wait()
    except KeyboardInterrupt:
        pass
    finally:
        monitor.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
