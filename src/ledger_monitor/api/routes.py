from fastapi import APIRouter, HTTPException, Request

from ledger_monitor.api.models import FeaturesResponse, HeightResponse, PopulatedResponse
from ledger_monitor.core.models import AddressInfo, Block, Transaction

router = APIRouter(tags=["Ledger"])


def get_monitor(request: Request):
    """Dependency to retrieve the LedgerMonitor from app state."""
    monitor = getattr(request.app.state, "monitor", None)
    if not monitor:
        raise HTTPException(status_code=500, detail="ledger monitor not initialized")
    return monitor


def _block_key(id_or_height: str) -> int | str:
    return int(id_or_height) if id_or_height.isdigit() else id_or_height


@router.get("/height", response_model=HeightResponse)
async def get_height(request: Request):
    monitor = get_monitor(request)
    return HeightResponse(height=monitor.height, node_url=monitor.node_url)


@router.get("/blocks/{id_or_height}", response_model=Block)
def get_block(request: Request, id_or_height: str):
    """Look up a block by height or hash."""
    block = get_monitor(request).get_block(_block_key(id_or_height))
    if block is None:
        raise HTTPException(status_code=404, detail=f"block {id_or_height} not available")
    return block


@router.get("/blocks/{height}/populated", response_model=PopulatedResponse)
async def is_block_populated(request: Request, height: int):
    if height < 0:
        raise ValueError(f"height must be non-negative, got {height}")
    populated = get_monitor(request).is_block_populated(height)
    return PopulatedResponse(height=height, populated=populated)


@router.get("/transactions/{tx_hash}", response_model=Transaction)
def get_transaction(request: Request, tx_hash: str):
    tx = get_monitor(request).get_transaction(tx_hash)
    if tx is None:
        raise HTTPException(status_code=404, detail=f"transaction {tx_hash} not available")
    return tx


@router.get("/addresses/{address}", response_model=AddressInfo)
def get_address(request: Request, address: str):
    """
    NEO and GAS balances of an address.
    Returns 404 when the address is invalid or the node could not be reached.
    """
    info = get_monitor(request).get_address(address)
    if info is None:
        raise HTTPException(status_code=404, detail=f"address {address} not available")
    return info


@router.get("/features", response_model=FeaturesResponse)
async def get_features(request: Request):
    return FeaturesResponse(populated_blocks=get_monitor(request).is_filter_available())
