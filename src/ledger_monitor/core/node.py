"""
LedgerNode: JSON-RPC 2.0 client for a ledger node.

Covers the read-only calls the monitor needs, plus the
`expressgetpopulatedblocks` extension offered by development nodes.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any

import httpx

from ledger_monitor.core.models import (
    Block,
    InvokeResult,
    PopulatedBlocks,
    Signer,
    StackItem,
    Transaction,
    Witness,
)

DEFAULT_NODE_URL = "http://127.0.0.1:50012"

# JSON-RPC error code for an unknown method
METHOD_NOT_FOUND_CODE = -32601


class LedgerNodeError(Exception):
    """Raised when the ledger node returns an error or an unreadable response."""
    pass


class MethodNotFoundError(LedgerNodeError):
    """Raised when the node does not implement the requested RPC method."""
    pass


class LedgerNode:
    """
    Synchronous JSON-RPC client for a ledger node.

    Usage:
        node = LedgerNode("http://localhost:50012")
        height = node.get_height()
        block = node.get_block(height - 1)
    """

    def __init__(
        self,
        node_url: str = DEFAULT_NODE_URL,
        timeout: float | None = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.node_url = node_url.rstrip("/")
        self._client = httpx.Client(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._ids = itertools.count()
        self._id_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Chain info
    # ------------------------------------------------------------------

    def get_height(self) -> int:
        """Return the current block count (height of the next block)."""
        return int(self.query("getblockcount"))

    def get_block(self, id_or_height: int | str, verbose: bool = True) -> Block:
        """Return a block by height or hash."""
        data = self.query("getblock", [id_or_height, verbose])
        return self._parse(self._parse_block, data)

    def get_transaction(self, tx_hash: str, verbose: bool = True) -> Transaction:
        """Return a transaction by hash."""
        data = self.query("getrawtransaction", [tx_hash, verbose])
        return self._parse(self._parse_transaction, data)

    def get_populated_blocks(self, count: int, end_height: int) -> PopulatedBlocks:
        """
        Return up to `count` heights that hold transactions, scanning backward
        from `end_height`, newest first.

        Raises:
            MethodNotFoundError: if the node lacks the extension
        """
        data = self.query("expressgetpopulatedblocks", [count, end_height])

        def parse(d: dict[str, Any]) -> PopulatedBlocks:
            return PopulatedBlocks(
                heights=[int(h) for h in d.get("blocks", [])],
                generation_id=str(d.get("cacheId", "")),
            )

        return self._parse(parse, data)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def invoke_function(
        self,
        contract: str,
        method: str,
        args: list[dict[str, Any]] | None = None,
    ) -> InvokeResult:
        """
        Run a read-only contract invocation.

        Args:
            contract: contract script hash (0x-prefixed hex)
            method: contract method name, e.g. "balanceOf"
            args: typed arguments, e.g. [{"type": "Hash160", "value": "..."}]
        """
        data = self.query("invokefunction", [contract, method, args or []])

        def parse(d: dict[str, Any]) -> InvokeResult:
            return InvokeResult(
                script=d.get("script", ""),
                state=d.get("state", ""),
                gas_consumed=int(d.get("gasconsumed") or 0),
                exception=d.get("exception"),
                stack=[StackItem(type=s["type"], value=s.get("value")) for s in d.get("stack") or []],
            )

        return self._parse(parse, data)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def query(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Send one JSON-RPC request and return its `result` member.

        Raises:
            MethodNotFoundError: if the node reports the method as unknown
            LedgerNodeError: for any other RPC or HTTP level error
            httpx.HTTPError: for transport failures
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or [],
        }
        response = self._client.post(self.node_url, json=payload)
        if response.status_code != 200:
            raise LedgerNodeError(
                f"RPC error {response.status_code} for {method}: {response.text}"
            )
        try:
            body = response.json()
        except ValueError:
            raise LedgerNodeError(f"Invalid JSON in response to {method}") from None
        if not isinstance(body, dict):
            raise LedgerNodeError(f"Unexpected response to {method}: {body!r}")

        error = body.get("error")
        if error:
            code = error.get("code")
            message = error.get("message", "Unknown error")
            if code == METHOD_NOT_FOUND_CODE or "Method not found" in message:
                raise MethodNotFoundError(f"{method}: {message}")
            raise LedgerNodeError(f"{method} failed ({code}): {message}")
        if "result" not in body:
            raise LedgerNodeError(f"Response to {method} has no result")
        return body["result"]

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(parser, data: Any) -> Any:
        try:
            return parser(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise LedgerNodeError(f"Unexpected response shape: {e}") from e

    @staticmethod
    def _parse_witnesses(items: list[dict[str, Any]] | None) -> list[Witness]:
        return [
            Witness(invocation=w.get("invocation", ""), verification=w.get("verification", ""))
            for w in items or []
        ]

    def _parse_transaction(self, data: dict[str, Any]) -> Transaction:
        signers = [
            Signer(
                account=s["account"],
                scopes=s.get("scopes", "CalledByEntry"),
                allowed_contracts=s.get("allowedcontracts", []),
                allowed_groups=s.get("allowedgroups", []),
            )
            for s in data.get("signers", [])
        ]
        return Transaction(
            hash=data["hash"],
            size=int(data.get("size", 0)),
            version=int(data.get("version", 0)),
            nonce=int(data.get("nonce", 0)),
            sender=data.get("sender"),
            system_fee=int(data.get("sysfee") or 0),
            network_fee=int(data.get("netfee") or 0),
            valid_until_block=int(data.get("validuntilblock", 0)),
            signers=signers,
            attributes=data.get("attributes", []),
            script=data.get("script", ""),
            witnesses=self._parse_witnesses(data.get("witnesses")),
            block_hash=data.get("blockhash"),
            confirmations=int(data.get("confirmations", 0)),
            block_time=data.get("blocktime"),
        )

    def _parse_block(self, data: dict[str, Any]) -> Block:
        return Block(
            hash=data["hash"],
            index=int(data["index"]),
            size=int(data.get("size", 0)),
            version=int(data.get("version", 0)),
            previous_block_hash=data.get("previousblockhash"),
            merkle_root=data.get("merkleroot", ""),
            time=int(data.get("time", 0)),
            nonce=str(data.get("nonce", "")),
            primary=int(data.get("primary", 0)),
            next_consensus=data.get("nextconsensus", ""),
            witnesses=self._parse_witnesses(data.get("witnesses")),
            transactions=[self._parse_transaction(tx) for tx in data.get("tx", [])],
            confirmations=int(data.get("confirmations", 0)),
            next_block_hash=data.get("nextblockhash"),
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> LedgerNode:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
