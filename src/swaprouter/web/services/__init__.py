"""Use-case services behind the HTTP API."""

from swaprouter.web.services.swap_service import SwapService

__all__ = ["SwapService"]
