"""Admin API endpoints (token-protected)."""

from fastapi import APIRouter, Depends

from swaprouter.api.dependencies import get_swap_service, require_admin_token
from swaprouter.web.contracts.fees import (
    ProtocolFeeListResponse,
    SetProtocolFeeRequest,
    SetProtocolFeeResponse,
)
from swaprouter.web.services.swap_service import SwapService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/protocol-fee", response_model=ProtocolFeeListResponse)
async def list_protocol_fees(
    _: bool = Depends(require_admin_token),
    service: SwapService = Depends(get_swap_service),
) -> ProtocolFeeListResponse:
    """Active fee configurations, with defaults for unconfigured providers."""
    return await service.list_protocol_fees()


@router.put("/protocol-fee/{provider}", response_model=SetProtocolFeeResponse)
async def set_protocol_fee(
    provider: str,
    request: SetProtocolFeeRequest,
    _: bool = Depends(require_admin_token),
    service: SwapService = Depends(get_swap_service),
) -> SetProtocolFeeResponse:
    """Create or update a provider's protocol fee."""
    return await service.set_protocol_fee(provider, request)
