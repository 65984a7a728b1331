"""core module init"""
from ledger_monitor.core.address import (
    AddressError,
    address_to_script_hash,
    is_valid_address,
    script_hash_to_address,
    validate_address,
)
from ledger_monitor.core.models import (
    AddressInfo,
    Block,
    InvokeResult,
    PopulatedBlocks,
    Signer,
    StackItem,
    Transaction,
    Witness,
)
from ledger_monitor.core.node import LedgerNode, LedgerNodeError, MethodNotFoundError

__all__ = [
    "AddressError",
    "AddressInfo",
    "Block",
    "InvokeResult",
    "LedgerNode",
    "LedgerNodeError",
    "MethodNotFoundError",
    "PopulatedBlocks",
    "Signer",
    "StackItem",
    "Transaction",
    "Witness",
    "address_to_script_hash",
    "is_valid_address",
    "script_hash_to_address",
    "validate_address",
]
