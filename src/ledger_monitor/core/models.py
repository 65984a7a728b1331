"""
Core data models for ledger node responses.
Block times are in milliseconds since the epoch, as reported by the node.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Signer(BaseModel):
    """A transaction signer and its witness scope."""
    account: str
    scopes: str = "CalledByEntry"
    allowed_contracts: list[str] = Field(default_factory=list)
    allowed_groups: list[str] = Field(default_factory=list)


class Witness(BaseModel):
    """Invocation/verification script pair (base64)."""
    invocation: str = ""
    verification: str = ""


class Transaction(BaseModel):
    """A transaction as returned by getrawtransaction (verbose)."""
    hash: str
    size: int = 0
    version: int = 0
    nonce: int = 0
    sender: str | None = None
    system_fee: int = 0
    network_fee: int = 0
    valid_until_block: int = 0
    signers: list[Signer] = Field(default_factory=list)
    attributes: list[dict[str, Any]] = Field(default_factory=list)
    script: str = ""
    witnesses: list[Witness] = Field(default_factory=list)
    block_hash: str | None = None
    confirmations: int = 0
    block_time: int | None = None


class Block(BaseModel):
    """A block as returned by getblock (verbose)."""
    hash: str
    index: int
    size: int = 0
    version: int = 0
    previous_block_hash: str | None = None
    merkle_root: str = ""
    time: int = 0
    nonce: str = ""
    primary: int = 0
    next_consensus: str = ""
    witnesses: list[Witness] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    confirmations: int = 0
    next_block_hash: str | None = None

    @property
    def is_populated(self) -> bool:
        """True if the block carries at least one transaction."""
        return bool(self.transactions)


class StackItem(BaseModel):
    """A single VM stack value from an invocation result."""
    type: str
    value: Any = None


class InvokeResult(BaseModel):
    """Result of a read-only contract invocation."""
    script: str = ""
    state: str = ""
    gas_consumed: int = 0
    exception: str | None = None
    stack: list[StackItem] = Field(default_factory=list)

    def first_integer(self) -> int:
        """Numeric value of the first stack item, 0 when the stack is empty or the value is missing."""
        if not self.stack:
            return 0
        return int(self.stack[0].value or "0")


class PopulatedBlocks(BaseModel):
    """Heights known to hold transactions, newest first, tagged with the chain's generation id."""
    heights: list[int] = Field(default_factory=list)
    generation_id: str = ""


class AddressInfo(BaseModel):
    """Native asset balances of an address."""
    address: str
    neo_balance: int = 0
    gas_balance: int = 0

    def to_summary(self) -> str:
        """Human-readable one-liner."""
        return f"{self.address}: NEO {self.neo_balance}, GAS {self.gas_balance}"
