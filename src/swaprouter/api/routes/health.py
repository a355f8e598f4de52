"""Health check endpoints."""

from fastapi import APIRouter, Depends

from swaprouter import __version__
from swaprouter.api.dependencies import get_swap_service
from swaprouter.config import get_settings
from swaprouter.web.services.swap_service import SwapService

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "swaprouter"}


@router.get("/health/detailed")
async def detailed_health(service: SwapService = Depends(get_swap_service)):
    """Detailed health check with configuration and provider info."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "swaprouter",
        "version": __version__,
        "providers": service.selector.get_available_providers(),
        "config": settings.get_safe_dict(),
    }
