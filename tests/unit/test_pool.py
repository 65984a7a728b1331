"""
Unit tests for MonitorPool reference counting.
"""

from ledger_monitor.monitor.monitor import LedgerMonitor
from ledger_monitor.monitor.pool import MonitorPool

from conftest import FakeNode


class RecordingFactory:
    def __init__(self):
        self.nodes = {}
        self.monitors = []

    def __call__(self, node_url, config=None, on_release=None):
        node = FakeNode(height=7, populated=None)
        self.nodes[node_url] = node
        monitor = LedgerMonitor(
            node_url, config=config, node=node, on_release=on_release, autostart=False
        )
        self.monitors.append(monitor)
        return monitor


def test_same_url_shares_monitor():
    factory = RecordingFactory()
    pool = MonitorPool(monitor_factory=factory)

    a = pool.acquire("http://node.test")
    b = pool.acquire("http://node.test/")

    assert a.monitor is b.monitor
    assert len(factory.monitors) == 1
    assert pool.ref_count("http://node.test") == 2


def test_different_urls_get_different_monitors():
    pool = MonitorPool(monitor_factory=RecordingFactory())
    a = pool.acquire("http://one.test")
    b = pool.acquire("http://two.test")
    assert a.monitor is not b.monitor
    assert len(pool) == 2


def test_monitor_stops_only_on_last_release():
    factory = RecordingFactory()
    pool = MonitorPool(monitor_factory=factory)
    a = pool.acquire("http://node.test")
    b = pool.acquire("http://node.test")
    monitor = a.monitor

    a.dispose()
    assert not monitor.disposed
    assert pool.ref_count("http://node.test") == 1

    b.dispose()
    assert monitor.disposed
    assert factory.nodes["http://node.test"].closed
    assert "http://node.test" not in pool


def test_lease_dispose_detaches_only_its_listeners():
    pool = MonitorPool(monitor_factory=RecordingFactory())
    a = pool.acquire("http://node.test")
    b = pool.acquire("http://node.test")
    seen_a, seen_b = [], []
    a.on_change(seen_a.append)
    b.on_change(seen_b.append)

    a.dispose()
    b.monitor.refresh()

    assert seen_a == []
    assert seen_b == [7]


def test_double_dispose_releases_once():
    pool = MonitorPool(monitor_factory=RecordingFactory())
    a = pool.acquire("http://node.test")
    b = pool.acquire("http://node.test")

    a.dispose()
    a.dispose()

    assert pool.ref_count("http://node.test") == 1
    assert not b.monitor.disposed


def test_reacquire_after_release_creates_new_monitor():
    factory = RecordingFactory()
    pool = MonitorPool(monitor_factory=factory)
    first = pool.acquire("http://node.test")
    first.dispose()

    second = pool.acquire("http://node.test")
    assert second.monitor is not first.monitor
    assert not second.monitor.disposed

    # a stale release from the old monitor must not touch the new entry
    first.monitor.dispose(from_pool=True)
    assert pool.ref_count("http://node.test") == 1


def test_close_stops_everything():
    factory = RecordingFactory()
    pool = MonitorPool(monitor_factory=factory)
    lease = pool.acquire("http://one.test")
    pool.acquire("http://two.test")

    pool.close()

    assert all(m.disposed for m in factory.monitors)
    assert len(pool) == 0
    lease.dispose()
    assert lease.disposed
