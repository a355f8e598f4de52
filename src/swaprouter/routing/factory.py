"""Factory for creating swap providers, the router and the selector.

Creates real providers when API credentials are available and dry-run is
off, otherwise falls back to simulated providers.
"""

import logging
from typing import Optional

from swaprouter.config import Settings, get_settings
from swaprouter.routing.base import SwapProvider
from swaprouter.routing.multihop import MultiHopRouteBuilder
from swaprouter.routing.quote_cache import QuoteCache
from swaprouter.routing.router import RouterDomainService
from swaprouter.routing.selector import ProviderSelector
from swaprouter.tokens.registry import TokenRegistry, get_token_registry

logger = logging.getLogger(__name__)


def create_uniswap_provider(
    registry: TokenRegistry,
    settings: Optional[Settings] = None,
) -> SwapProvider:
    """Create the same-chain Uniswap provider.

    The Trading API requires an API key; without one (or in dry-run mode)
    a simulated provider is returned.
    """
    settings = settings or get_settings()

    if settings.uniswap_api_key and not settings.dry_run:
        from swaprouter.routing.uniswap import UNISWAP_SUPPORTED_CHAINS, UniswapTradingApiProvider

        rpc_urls = {
            chain_id: settings.get_rpc_url(chain_id)
            for chain_id in UNISWAP_SUPPORTED_CHAINS
            if settings.get_rpc_url(chain_id)
        }
        return UniswapTradingApiProvider(
            api_key=settings.uniswap_api_key,
            api_url=settings.uniswap_api_url,
            registry=registry,
            slippage=settings.default_slippage,
            max_retries=settings.uniswap_max_retries,
            rpc_urls=rpc_urls,
        )

    if not settings.dry_run:
        logger.warning("UNISWAP_API_KEY not set, using simulated Uniswap provider")

    from swaprouter.routing.dry_run import create_simulated_uniswap

    return create_simulated_uniswap(registry)


def create_thirdweb_provider(
    registry: TokenRegistry,
    settings: Optional[Settings] = None,
) -> SwapProvider:
    """Create the thirdweb Bridge provider (cross-chain and same-chain)."""
    settings = settings or get_settings()

    if settings.thirdweb_client_id and not settings.dry_run:
        from swaprouter.routing.thirdweb import ThirdwebBridgeProvider

        return ThirdwebBridgeProvider(
            client_id=settings.thirdweb_client_id,
            secret_key=settings.thirdweb_secret_key,
            api_url=settings.thirdweb_api_url,
            registry=registry,
        )

    if not settings.dry_run:
        logger.warning("THIRDWEB_CLIENT_ID not set, using simulated thirdweb provider")

    from swaprouter.routing.dry_run import create_simulated_thirdweb

    return create_simulated_thirdweb(registry)


def create_providers(
    registry: TokenRegistry,
    settings: Optional[Settings] = None,
) -> list[SwapProvider]:
    """Create all enabled providers, in registration order."""
    settings = settings or get_settings()
    providers: list[SwapProvider] = []

    if settings.uniswap_enabled:
        providers.append(create_uniswap_provider(registry, settings))
    if settings.thirdweb_enabled:
        providers.append(create_thirdweb_provider(registry, settings))

    return providers


def create_multihop_builder(
    providers: list[SwapProvider],
    settings: Optional[Settings] = None,
) -> Optional[MultiHopRouteBuilder]:
    """Create the multi-hop builder when a same-chain and a bridge provider exist."""
    settings = settings or get_settings()
    if not settings.multihop_enabled:
        return None

    by_name = {p.name: p for p in providers}
    same_chain = next(
        (
            by_name[name]
            for name in settings.same_chain_priority
            if name in by_name and name not in settings.cross_chain_priority
        ),
        None,
    )
    cross_chain = next(
        (by_name[name] for name in settings.cross_chain_priority if name in by_name),
        None,
    )

    if same_chain is None or cross_chain is None:
        logger.info("Multi-hop routing disabled: needs a same-chain and a cross-chain provider")
        return None

    return MultiHopRouteBuilder(
        same_chain_provider=same_chain,
        cross_chain_provider=cross_chain,
        bridge_tokens=settings.multihop_bridge_tokens,
    )


def create_router(
    registry: Optional[TokenRegistry] = None,
    settings: Optional[Settings] = None,
) -> RouterDomainService:
    """Create the router with every enabled provider.

    The provider set is fixed for the lifetime of the router.
    """
    settings = settings or get_settings()
    registry = registry or get_token_registry()

    providers = create_providers(registry, settings)
    router = RouterDomainService(
        providers,
        same_chain_priority=settings.same_chain_priority,
        cross_chain_priority=settings.cross_chain_priority,
        default_timeout=settings.default_provider_timeout,
        provider_timeouts=settings.provider_timeouts,
        multihop=create_multihop_builder(providers, settings),
    )

    mode = "DRY-RUN" if settings.dry_run else "LIVE"
    logger.info(f"Router created in {mode} mode with providers: {router.get_available_providers()}")
    return router


def create_selector(
    registry: Optional[TokenRegistry] = None,
    settings: Optional[Settings] = None,
) -> ProviderSelector:
    """Create the provider selector façade with its quote cache."""
    settings = settings or get_settings()
    router = create_router(registry, settings)
    cache = QuoteCache(ttl_seconds=settings.quote_cache_ttl_seconds)
    return ProviderSelector(router, quote_cache=cache, aliases=settings.provider_aliases)
