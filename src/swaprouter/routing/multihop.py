"""Two-leg route composition through a bridge token.

Example: UNI (Base) -> ETH (Arbitrum)
    Leg 1: UNI -> native on Base (same-chain provider)
    Leg 2: native on Base -> ETH on Arbitrum (cross-chain provider)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.base import (
    PreparedSwap,
    RouteParams,
    SwapProvider,
    SwapQuote,
    SwapRequest,
    TransactionStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_TOKENS = ["native", "WETH", "USDC", "USDT"]

# Exchange rate precision for integer ratio computation
RATE_SCALE = 10_000


@dataclass(frozen=True)
class MultiHopRoute:
    """A two-leg composition. Leg 2's request carries its amount from leg 1."""

    bridge_token: str
    leg1: RouteParams
    leg2: RouteParams

    def leg1_request(self, request: SwapRequest) -> SwapRequest:
        return SwapRequest(
            from_chain_id=self.leg1.from_chain_id,
            to_chain_id=self.leg1.to_chain_id,
            from_token=self.leg1.from_token,
            to_token=self.leg1.to_token,
            amount=request.amount,
            sender=request.sender,
            receiver=request.sender,
        )

    def leg2_request(self, request: SwapRequest, amount: int) -> SwapRequest:
        return SwapRequest(
            from_chain_id=self.leg2.from_chain_id,
            to_chain_id=self.leg2.to_chain_id,
            from_token=self.leg2.from_token,
            to_token=self.leg2.to_token,
            amount=amount,
            sender=request.sender,
            receiver=request.receiver,
        )


def scaled_exchange_rate(amount_in: int, amount_out: int) -> float:
    """Output per input, computed on integers with four decimal places."""
    if amount_in <= 0:
        return 0.0
    return (amount_out * RATE_SCALE // amount_in) / RATE_SCALE


class MultiHopRouteBuilder(SwapProvider):
    """Composite provider chaining a same-chain swap and a cross-chain bridge.

    Only used for cross-chain requests no single provider supports directly.
    """

    def __init__(
        self,
        same_chain_provider: SwapProvider,
        cross_chain_provider: SwapProvider,
        bridge_tokens: Optional[list[str]] = None,
    ):
        self.same_chain_provider = same_chain_provider
        self.cross_chain_provider = cross_chain_provider
        self.bridge_tokens = list(bridge_tokens or DEFAULT_BRIDGE_TOKENS)

    @property
    def name(self) -> str:
        return "multihop"

    async def _supports(self, provider: SwapProvider, params: RouteParams) -> bool:
        try:
            return bool(await provider.supports_route(params))
        except Exception as e:
            logger.warning(f"{provider.name} support check failed for {params}: {e}")
            return False

    async def find_route(self, params: RouteParams) -> MultiHopRoute:
        """Find the first bridge token giving a valid two-leg composition.

        Raises:
            SwapError: NO_ROUTE_FOUND listing every bridge token tried
        """
        for token in self.bridge_tokens:
            leg1 = RouteParams(
                from_chain_id=params.from_chain_id,
                to_chain_id=params.from_chain_id,
                from_token=params.from_token,
                to_token=token,
            )
            if not await self._supports(self.same_chain_provider, leg1):
                continue

            leg2 = RouteParams(
                from_chain_id=params.from_chain_id,
                to_chain_id=params.to_chain_id,
                from_token=token,
                to_token=params.to_token,
            )
            if await self._supports(self.cross_chain_provider, leg2):
                logger.info(
                    f"Multi-hop route via {token}: {params.from_token}@{params.from_chain_id} -> "
                    f"{token} -> {params.to_token}@{params.to_chain_id}"
                )
                return MultiHopRoute(bridge_token=token, leg1=leg1, leg2=leg2)

            # Bridge then swap on the destination chain would need three legs
            bridge_only = RouteParams(
                from_chain_id=params.from_chain_id,
                to_chain_id=params.to_chain_id,
                from_token=token,
                to_token=token,
            )
            destination_swap = RouteParams(
                from_chain_id=params.to_chain_id,
                to_chain_id=params.to_chain_id,
                from_token=token,
                to_token=params.to_token,
            )
            if await self._supports(self.cross_chain_provider, bridge_only) and await self._supports(
                self.same_chain_provider, destination_swap
            ):
                logger.info(f"Skipping three-leg route via {token}: not supported")

        raise SwapError(
            SwapErrorCode.NO_ROUTE_FOUND,
            f"No multi-hop route found for {params.from_token} ({params.from_chain_id}) -> "
            f"{params.to_token} ({params.to_chain_id}). "
            f"Tried bridge tokens: {', '.join(self.bridge_tokens)}",
            {
                "from_chain_id": params.from_chain_id,
                "to_chain_id": params.to_chain_id,
                "tried_bridge_tokens": list(self.bridge_tokens),
            },
        )

    async def supports_route(self, params: RouteParams) -> bool:
        if params.is_same_chain:
            return False
        if await self._supports(self.cross_chain_provider, params):
            return False
        try:
            await self.find_route(params)
        except SwapError:
            return False
        return True

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        logger.info(f"Getting multi-hop quote for {request.to_log_string()}")
        route = await self.find_route(request.route_params())

        quote1 = await self.same_chain_provider.get_quote(route.leg1_request(request))
        logger.debug(
            f"Leg 1 quote from {self.same_chain_provider.name}: "
            f"{quote1.estimated_receive_amount} {route.bridge_token}"
        )

        quote2 = await self.cross_chain_provider.get_quote(
            route.leg2_request(request, quote1.estimated_receive_amount)
        )
        logger.debug(
            f"Leg 2 quote from {self.cross_chain_provider.name}: "
            f"{quote2.estimated_receive_amount} {request.to_token}"
        )

        expiries = [q.expires_at for q in (quote1, quote2) if q.expires_at is not None]
        return SwapQuote(
            estimated_receive_amount=quote2.estimated_receive_amount,
            bridge_fee=quote1.bridge_fee + quote2.bridge_fee,
            gas_fee=quote1.gas_fee + quote2.gas_fee,
            exchange_rate=scaled_exchange_rate(request.amount, quote2.estimated_receive_amount),
            estimated_duration=quote1.estimated_duration + quote2.estimated_duration,
            expires_at=min(expiries) if expiries else None,
        )

    async def prepare_swap(self, request: SwapRequest) -> PreparedSwap:
        logger.info(f"Preparing multi-hop swap for {request.to_log_string()}")
        route = await self.find_route(request.route_params())
        leg1_request = route.leg1_request(request)

        prepared1 = await self.same_chain_provider.prepare_swap(leg1_request)

        # Prepared transactions and earlier quotes may disagree; re-quote leg 1
        quote1 = await self.same_chain_provider.get_quote(leg1_request)

        prepared2 = await self.cross_chain_provider.prepare_swap(
            route.leg2_request(request, quote1.estimated_receive_amount)
        )

        transactions = [*prepared1.transactions, *prepared2.transactions]
        logger.info(
            f"Multi-hop swap prepared via {route.bridge_token}: {len(transactions)} transaction(s) "
            f"({self.same_chain_provider.name} + {self.cross_chain_provider.name})"
        )

        expiries = [p.expires_at for p in (prepared1, prepared2) if p.expires_at is not None]
        return PreparedSwap(
            transactions=transactions,
            provider=self.name,
            estimated_duration=prepared1.estimated_duration + prepared2.estimated_duration,
            expires_at=min(expiries) if expiries else None,
            metadata={
                "bridge_token": route.bridge_token,
                "intermediate_amount": str(quote1.estimated_receive_amount),
                "legs": [
                    {
                        "provider": self.same_chain_provider.name,
                        "transactions": len(prepared1.transactions),
                        "metadata": prepared1.metadata,
                    },
                    {
                        "provider": self.cross_chain_provider.name,
                        "transactions": len(prepared2.transactions),
                        "metadata": prepared2.metadata,
                    },
                ],
            },
        )

    async def monitor_transaction(self, tx_hash: str, chain_id: int) -> TransactionStatus:
        try:
            return await self.same_chain_provider.monitor_transaction(tx_hash, chain_id)
        except SwapError as e:
            logger.debug(
                f"{self.same_chain_provider.name} could not check {tx_hash}: {e.message}; "
                f"trying {self.cross_chain_provider.name}"
            )
            return await self.cross_chain_provider.monitor_transaction(tx_hash, chain_id)
