"""
Shared fakes for monitor tests. Nothing here touches the network.
"""

import pytest

from ledger_monitor.core.models import Block, InvokeResult, PopulatedBlocks, Transaction
from ledger_monitor.core.node import LedgerNodeError, MethodNotFoundError


class FakeNode:
    """In-memory stand-in for LedgerNode that records every call."""

    def __init__(self, height=0, populated=None, generation_id="gen-1"):
        self.height = height
        # None means the node lacks the populated-blocks extension
        self.populated = populated
        self.generation_id = generation_id
        self.calls = []
        self.failures = {}
        self.balances = {}
        self.closed = False

    def _maybe_fail(self, method):
        remaining = self.failures.get(method, 0)
        if remaining:
            self.failures[method] = remaining - 1
            raise LedgerNodeError(f"{method} unavailable")

    def get_height(self):
        self.calls.append(("get_height",))
        self._maybe_fail("get_height")
        return self.height

    def get_block(self, id_or_height, verbose=True):
        self.calls.append(("get_block", id_or_height))
        self._maybe_fail("get_block")
        index = id_or_height if isinstance(id_or_height, int) else int(id_or_height.split("-")[1])
        return Block(hash=f"block-{index}", index=index)

    def get_transaction(self, tx_hash, verbose=True):
        self.calls.append(("get_transaction", tx_hash))
        self._maybe_fail("get_transaction")
        return Transaction(hash=tx_hash)

    def get_populated_blocks(self, count, end_height):
        self.calls.append(("get_populated_blocks", count, end_height))
        if self.populated is None:
            raise MethodNotFoundError("expressgetpopulatedblocks: Method not found")
        self._maybe_fail("get_populated_blocks")
        heights = sorted((h for h in self.populated if h <= end_height), reverse=True)
        return PopulatedBlocks(heights=heights[:count], generation_id=self.generation_id)

    def invoke_function(self, contract, method, args=None):
        self.calls.append(("invoke_function", contract, method, args))
        self._maybe_fail("invoke_function")
        return self.balances.get(contract, InvokeResult())

    def close(self):
        self.closed = True

    def count(self, method):
        return sum(1 for call in self.calls if call[0] == method)


class FakeClock:
    """Millisecond clock the test advances by hand."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def clock():
    return FakeClock()
