"""Shared route dependencies."""

from fastapi import Header, Request

from swaprouter.config import get_settings
from swaprouter.errors import unauthorized_error
from swaprouter.web.services.swap_service import SwapService


def get_swap_service(request: Request) -> SwapService:
    """The application's swap service, built at startup."""
    return request.app.state.swap_service


async def require_admin_token(x_admin_token: str = Header(None)) -> bool:
    """Verify admin token from header.

    If ADMIN_TOKEN is not set, allows access (dev mode).
    """
    settings = get_settings()

    if not settings.admin_token:
        return True

    if x_admin_token != settings.admin_token:
        raise unauthorized_error("Invalid admin token")

    return True
