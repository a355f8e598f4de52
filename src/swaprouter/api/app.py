"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from swaprouter import __version__
from swaprouter.api.errors import register_exception_handlers
from swaprouter.config import get_settings
from swaprouter.db.database import close_db, init_db
from swaprouter.fees.repository import SqlAlchemyProtocolFeeRepository
from swaprouter.fees.service import ProtocolFeeService
from swaprouter.routing.factory import create_selector
from swaprouter.tokens.registry import get_token_registry
from swaprouter.web.services.swap_service import SwapService

logger = logging.getLogger(__name__)


def build_swap_service() -> SwapService:
    """Wire the selector, registry and fee service from settings."""
    settings = get_settings()
    registry = get_token_registry()
    selector = create_selector(registry, settings)
    fee_service = ProtocolFeeService(
        SqlAlchemyProtocolFeeRepository(), aliases=settings.provider_aliases
    )
    return SwapService(selector, fee_service, dry_run=settings.dry_run)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    if getattr(app.state, "swap_service", None) is None:
        app.state.swap_service = build_swap_service()
    logger.info(f"Providers: {app.state.swap_service.selector.get_available_providers()}")
    yield
    # Shutdown
    await close_db()


def create_app(swap_service: Optional[SwapService] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        swap_service: Pre-built service; built from settings at startup when omitted
    """
    settings = get_settings()

    app = FastAPI(
        title="Swaprouter API",
        description="Swap routing and transaction preparation API",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.swap_service = swap_service

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register routes
    from swaprouter.api.routes import admin, health, swaps

    app.include_router(health.router, tags=["Health"])
    app.include_router(swaps.router, prefix="/api/v1", tags=["Swaps"])
    app.include_router(admin.router)

    return app
