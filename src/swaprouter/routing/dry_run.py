"""Simulated swap providers for dry-run mode.

Quotes are priced from a static USD table and token decimals from the
token registry. Prepared transactions are well-formed but target
placeholder contracts, so nothing here should ever be signed.
"""

import hashlib
import logging
import random
import time
from decimal import Decimal
from typing import Optional

from swaprouter.errors import SwapError, insufficient_liquidity_error, no_route_error
from swaprouter.routing.base import (
    PreparedSwap,
    RouteParams,
    SwapProvider,
    SwapQuote,
    SwapRequest,
    Transaction,
    TransactionStatus,
)
from swaprouter.tokens.registry import ResolvedToken, TokenRegistry

logger = logging.getLogger(__name__)


# Simulated market prices in USD, for demonstration only
SIMULATED_PRICES: dict[str, Decimal] = {
    # Native and wrapped native
    "ETH": Decimal("3900.00"),
    "WETH": Decimal("3900.00"),
    "BNB": Decimal("710.00"),
    "WBNB": Decimal("710.00"),
    "POL": Decimal("0.62"),
    "MATIC": Decimal("0.62"),
    "WPOL": Decimal("0.62"),
    "WMATIC": Decimal("0.62"),
    "AVAX": Decimal("52.00"),
    "WAVAX": Decimal("52.00"),
    # Stablecoins
    "USDC": Decimal("1.00"),
    "USDC.E": Decimal("1.00"),
    "USDT": Decimal("1.00"),
    "DAI": Decimal("1.00"),
    # DeFi and ecosystem tokens
    "WBTC": Decimal("100000.00"),
    "UNI": Decimal("17.50"),
    "LINK": Decimal("28.00"),
    "AAVE": Decimal("185.00"),
    "ARB": Decimal("1.10"),
    "OP": Decimal("2.40"),
}

# Placeholder contract addresses used as transaction targets
SIMULATED_ROUTER_ADDRESS = "0x000000000000000000000000000000000000dEaD"
SIMULATED_BRIDGE_ADDRESS = "0x000000000000000000000000000000000000bEEF"

APPROVE_SELECTOR = "0x095ea7b3"
MAX_UINT256 = 2**256 - 1

# 150k gas at 20 gwei
SIMULATED_GAS_LIMIT = 150_000
SIMULATED_GAS_PRICE = 20 * 10**9

QUOTE_TTL_SECONDS = 60


def _encode_approval(spender: str, amount: int) -> str:
    return (
        APPROVE_SELECTOR
        + spender.lower().removeprefix("0x").rjust(64, "0")
        + format(amount, "064x")
    )


def _simulated_calldata(request: SwapRequest, label: str) -> str:
    digest = hashlib.sha256(
        f"{label}:{request.to_log_string()}:{request.sender}:{request.receiver}".encode()
    ).hexdigest()
    return f"0x{digest}"


class SimulatedSwapProvider(SwapProvider):
    """Simulated provider backed by the token registry.

    A provider handles same-chain routes, cross-chain routes, or both. Token
    support follows the registry entries for `registry_key`, restricted to
    tokens with a simulated price.
    """

    def __init__(
        self,
        name: str,
        registry: TokenRegistry,
        registry_key: Optional[str] = None,
        same_chain: bool = True,
        cross_chain: bool = False,
        fee_percent: Decimal = Decimal("0.003"),
        estimated_duration: int = 30,
        add_random_variance: bool = False,
        slippage_tolerance: Decimal = Decimal("0.005"),
    ):
        self._name = name
        self.registry = registry
        self.registry_key = registry_key or name
        self.same_chain = same_chain
        self.cross_chain = cross_chain
        self.fee_percent = fee_percent
        self.estimated_duration = estimated_duration
        self.add_random_variance = add_random_variance
        self.slippage_tolerance = slippage_tolerance
        self._prices = SIMULATED_PRICES.copy()

    @property
    def name(self) -> str:
        return self._name

    def set_price(self, symbol: str, price: Decimal) -> None:
        """Set simulated price for a token symbol."""
        self._prices[symbol.upper()] = price

    def get_price(self, symbol: str) -> Optional[Decimal]:
        """Get simulated price for a token symbol."""
        return self._prices.get(symbol.upper())

    def _priced(self, chain_id: int, token: str) -> bool:
        try:
            resolved = self.registry.resolve(self.registry_key, chain_id, token)
        except SwapError:
            return False
        return self.get_price(resolved.metadata.symbol) is not None

    async def supports_route(self, params: RouteParams) -> bool:
        if params.is_same_chain and not self.same_chain:
            return False
        if not params.is_same_chain and not self.cross_chain:
            return False
        return self._priced(params.from_chain_id, params.from_token) and self._priced(
            params.to_chain_id, params.to_token
        )

    def _resolve_pair(self, request: SwapRequest) -> tuple[ResolvedToken, ResolvedToken]:
        if not self._priced(request.from_chain_id, request.from_token) or not self._priced(
            request.to_chain_id, request.to_token
        ):
            raise no_route_error(
                request.from_token,
                request.to_token,
                request.from_chain_id,
                request.to_chain_id,
                provider=self.name,
            )
        source = self.registry.resolve(self.registry_key, request.from_chain_id, request.from_token)
        target = self.registry.resolve(self.registry_key, request.to_chain_id, request.to_token)
        return source, target

    def _output_amounts(
        self, request: SwapRequest, source: ResolvedToken, target: ResolvedToken
    ) -> tuple[int, int]:
        """(amount received, fee) in base units of the output token."""
        from_price = self._prices[source.metadata.symbol.upper()]
        to_price = self._prices[target.metadata.symbol.upper()]

        amount_in = Decimal(request.amount) / (Decimal(10) ** source.metadata.decimals)
        gross = amount_in * from_price / to_price
        fee = gross * self.fee_percent

        slippage = Decimal("0")
        if self.add_random_variance:
            slippage = gross * Decimal(str(random.uniform(0, float(self.slippage_tolerance))))

        scale = Decimal(10) ** target.metadata.decimals
        received = int((gross - fee - slippage) * scale)
        return received, int(fee * scale)

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        """Generate a simulated quote."""
        source, target = self._resolve_pair(request)
        received, fee = self._output_amounts(request, source, target)
        if received <= 0:
            raise insufficient_liquidity_error(
                request.from_token,
                request.to_token,
                provider=self.name,
                amount=str(request.amount),
            )

        logger.debug(f"[dry-run] {self.name} quote {request.to_log_string()} -> {received}")
        return SwapQuote(
            estimated_receive_amount=received,
            bridge_fee=fee if not request.is_same_chain else 0,
            gas_fee=SIMULATED_GAS_LIMIT * SIMULATED_GAS_PRICE,
            exchange_rate=received / request.amount,
            estimated_duration=self.estimated_duration,
            expires_at=time.time() + QUOTE_TTL_SECONDS,
        )

    async def prepare_swap(self, request: SwapRequest) -> PreparedSwap:
        """Build a simulated approval and swap bundle on the origin chain."""
        source, _ = self._resolve_pair(request)
        quote = await self.get_quote(request)
        target = SIMULATED_ROUTER_ADDRESS if request.is_same_chain else SIMULATED_BRIDGE_ADDRESS

        transactions = []
        if not source.is_native:
            transactions.append(
                Transaction(
                    chain_id=request.from_chain_id,
                    to=source.identifier,
                    data=_encode_approval(target, MAX_UINT256),
                    gas_limit=60_000,
                    action="approval",
                    description=f"Approve {source.metadata.symbol}",
                )
            )
        transactions.append(
            Transaction(
                chain_id=request.from_chain_id,
                to=target,
                data=_simulated_calldata(request, self.name),
                value=str(request.amount) if source.is_native else "0",
                gas_limit=SIMULATED_GAS_LIMIT,
                max_fee_per_gas=SIMULATED_GAS_PRICE,
                max_priority_fee_per_gas=10**9,
                action="swap" if request.is_same_chain else "bridge",
                description=f"[dry-run] {request.to_log_string()}",
            )
        )

        logger.info(f"[dry-run] {self.name} prepared {len(transactions)} transaction(s)")
        return PreparedSwap(
            transactions=transactions,
            provider=self.name,
            estimated_duration=quote.estimated_duration,
            expires_at=quote.expires_at,
            metadata={
                "simulated": True,
                "estimated_receive_amount": str(quote.estimated_receive_amount),
            },
        )

    async def monitor_transaction(self, tx_hash: str, chain_id: int) -> TransactionStatus:
        """Simulated transactions settle immediately."""
        if not tx_hash.startswith("0x"):
            return TransactionStatus.FAILED
        return TransactionStatus.COMPLETED


def create_simulated_uniswap(registry: TokenRegistry) -> SimulatedSwapProvider:
    """Same-chain simulated DEX."""
    return SimulatedSwapProvider(
        "uniswap",
        registry,
        registry_key="uniswap",
        same_chain=True,
        cross_chain=False,
        fee_percent=Decimal("0.003"),
        estimated_duration=30,
    )


def create_simulated_thirdweb(registry: TokenRegistry) -> SimulatedSwapProvider:
    """Simulated bridge; also quotes same-chain swaps."""
    return SimulatedSwapProvider(
        "thirdweb",
        registry,
        registry_key="thirdweb",
        same_chain=True,
        cross_chain=True,
        fee_percent=Decimal("0.001"),
        estimated_duration=120,
    )
