"""Swap endpoints: quote, prepare, status and protocol fee.

Transactions are returned unsigned; the client signs and submits them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from swaprouter.api.dependencies import get_swap_service
from swaprouter.web.contracts.fees import ProtocolFeeResponse
from swaprouter.web.contracts.swaps import (
    ProvidersResponse,
    SwapPrepareRequest,
    SwapPrepareResponse,
    SwapQuoteRequest,
    SwapQuoteResponse,
    TransactionStatusResponse,
)
from swaprouter.web.services.swap_service import SwapService

router = APIRouter(prefix="/swap")


@router.post("/quote", response_model=SwapQuoteResponse)
async def get_swap_quote(
    request: SwapQuoteRequest,
    service: SwapService = Depends(get_swap_service),
) -> SwapQuoteResponse:
    """Quote with automatic provider selection and fallback."""
    return await service.get_quote(request)


@router.post("/prepare", response_model=SwapPrepareResponse)
async def prepare_swap(
    request: SwapPrepareRequest,
    service: SwapService = Depends(get_swap_service),
) -> SwapPrepareResponse:
    """Prepare unsigned transactions, optionally with a preferred provider."""
    return await service.prepare_swap(request)


@router.get("/status/{tx_hash}", response_model=TransactionStatusResponse)
async def get_transaction_status(
    tx_hash: str,
    chain_id: int = Query(..., description="Chain the transaction was sent on"),
    provider: str = Query(..., description="Provider that prepared the transaction"),
    service: SwapService = Depends(get_swap_service),
) -> TransactionStatusResponse:
    return await service.get_transaction_status(tx_hash, chain_id, provider)


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(service: SwapService = Depends(get_swap_service)) -> ProvidersResponse:
    return service.get_providers()


@router.get("/protocol-fee", response_model=ProtocolFeeResponse)
async def get_protocol_fee(
    provider: str = Query(..., description="Provider name (aliases accepted)"),
    amount: Optional[str] = Query(None, description="Amount in base units"),
    service: SwapService = Depends(get_swap_service),
) -> ProtocolFeeResponse:
    """Fee percentage for a provider, and the fee for an amount when given."""
    return await service.get_protocol_fee(provider, amount)
