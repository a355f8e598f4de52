"""Swap routing: provider contract, router, multi-hop builder and selector.

Providers:
- Uniswap Trading API: same-chain DEX aggregation
- thirdweb Bridge: cross-chain (and same-chain) swaps
- Multi-hop: same-chain swap into a bridge token, then a bridge leg
- Simulated providers for dry-run mode
"""

from swaprouter.routing.base import (
    PreparedSwap,
    ProviderSelectionResult,
    RouteParams,
    SwapProvider,
    SwapQuote,
    SwapRequest,
    Transaction,
    TransactionStatus,
)
from swaprouter.routing.factory import (
    create_multihop_builder,
    create_providers,
    create_router,
    create_selector,
    create_thirdweb_provider,
    create_uniswap_provider,
)
from swaprouter.routing.multihop import MultiHopRoute, MultiHopRouteBuilder
from swaprouter.routing.router import RouterDomainService
from swaprouter.routing.selector import (
    PreparedSwapWithProvider,
    ProviderSelector,
    QuoteWithProvider,
)

__all__ = [
    # Domain types
    "RouteParams",
    "SwapRequest",
    "SwapQuote",
    "Transaction",
    "PreparedSwap",
    "TransactionStatus",
    "ProviderSelectionResult",
    # Contract
    "SwapProvider",
    # Routing
    "RouterDomainService",
    "MultiHopRoute",
    "MultiHopRouteBuilder",
    "ProviderSelector",
    "QuoteWithProvider",
    "PreparedSwapWithProvider",
    # Factory
    "create_uniswap_provider",
    "create_thirdweb_provider",
    "create_providers",
    "create_multihop_builder",
    "create_router",
    "create_selector",
]
