"""Uniswap Trading API integration.

Same-chain swaps through the Uniswap routing API (V2/V3/V4 pools).
API docs: https://api-docs.uniswap.org/introduction
"""

import asyncio
import logging
import time
from typing import Optional

import httpx

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.base import (
    PreparedSwap,
    RouteParams,
    SwapProvider,
    SwapQuote,
    SwapRequest,
    Transaction,
    TransactionStatus,
    parse_int,
)
from swaprouter.routing.error_mapper import UNISWAP_ERROR_CODES, map_provider_error
from swaprouter.routing.sanitizer import ensure_executable
from swaprouter.tokens.registry import NATIVE_PLACEHOLDER_ADDRESS, TokenRegistry, is_native_like

logger = logging.getLogger(__name__)

UNISWAP_API_URL = "https://trade-api.gateway.uniswap.org/v1"

# Chains served by the Trading API
UNISWAP_SUPPORTED_CHAINS = frozenset({1, 10, 56, 137, 8453, 42161, 42220, 43114})

# Typical same-chain confirmation time
SAME_CHAIN_DURATION_SECONDS = 30


async def get_receipt_status(
    rpc_url: str,
    tx_hash: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TransactionStatus:
    """Read a transaction receipt over JSON-RPC.

    No receipt yet means the transaction is still pending.
    """
    async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
        response = await client.post(
            rpc_url,
            json={
                "jsonrpc": "2.0",
                "method": "eth_getTransactionReceipt",
                "params": [tx_hash],
                "id": 1,
            },
        )
        response.raise_for_status()
        data = response.json()

    if data.get("error"):
        raise SwapError(
            SwapErrorCode.RPC_ERROR,
            f"RPC error: {data['error'].get('message', data['error'])}",
            {"tx_hash": tx_hash, "rpc_error": data["error"]},
        )

    receipt = data.get("result")
    if not receipt:
        return TransactionStatus.PENDING
    return TransactionStatus.COMPLETED if receipt.get("status") == "0x1" else TransactionStatus.FAILED


class UniswapTradingApiProvider(SwapProvider):
    """Uniswap Trading API provider.

    Same-chain only. Token references are resolved through the token
    registry when one is given; native assets are sent as the API's
    native placeholder address.
    """

    registry_key = "uniswap"

    def __init__(
        self,
        api_key: str,
        api_url: str = UNISWAP_API_URL,
        registry: Optional[TokenRegistry] = None,
        slippage: float = 0.5,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        request_timeout: float = 30.0,
        rpc_urls: Optional[dict[int, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Uniswap provider.

        Args:
            api_key: Trading API key (sent as x-api-key)
            api_url: API base URL
            registry: Token registry used for symbol/address resolution
            slippage: Slippage tolerance in percent
            max_retries: Attempts for 5xx/429/network failures
            retry_delay: Base delay for exponential backoff in seconds
            request_timeout: HTTP timeout per request in seconds
            rpc_urls: JSON-RPC endpoints by chain id for status checks
            transport: Optional httpx transport (tests)
        """
        if not api_key:
            logger.warning("No Uniswap API key configured; requests will be rejected")
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.registry = registry
        self.slippage = slippage
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.request_timeout = request_timeout
        self.rpc_urls = rpc_urls or {}
        self._transport = transport

    @property
    def name(self) -> str:
        return "uniswap-trading-api"

    def _get_headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-api-key": self.api_key,
        }

    def _token_address(self, chain_id: int, token: str) -> str:
        """API address for a token reference."""
        if self.registry is not None:
            resolved = self.registry.resolve(self.registry_key, chain_id, token)
            return NATIVE_PLACEHOLDER_ADDRESS if resolved.is_native else resolved.identifier
        return NATIVE_PLACEHOLDER_ADDRESS if is_native_like(token) else token

    async def supports_route(self, params: RouteParams) -> bool:
        if not params.is_same_chain:
            return False
        if params.from_chain_id not in UNISWAP_SUPPORTED_CHAINS:
            return False
        if self.registry is None:
            return True
        return self.registry.is_token_supported(
            self.registry_key, params.from_chain_id, params.from_token
        ) and self.registry.is_token_supported(self.registry_key, params.to_chain_id, params.to_token)

    def _ensure_same_chain(self, request: SwapRequest) -> None:
        if not request.is_same_chain:
            raise SwapError(
                SwapErrorCode.INVALID_CHAIN,
                "Uniswap Trading API only supports same-chain swaps",
                {"from_chain_id": request.from_chain_id, "to_chain_id": request.to_chain_id},
            )

    async def _post(self, path: str, payload: dict, operation: str) -> dict:
        """POST with retries on 5xx, 429 and network failures."""
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.request_timeout, transport=self._transport
                ) as client:
                    response = await client.post(
                        f"{self.api_url}{path}", headers=self._get_headers(), json=payload
                    )
                    response.raise_for_status()
                    return response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status != 429 and status < 500:
                    raise map_provider_error(e, operation, self.name, UNISWAP_ERROR_CODES) from e
                last_error = e
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                last_error = e
            except ValueError as e:
                raise map_provider_error(e, operation, self.name) from e

            if attempt < self.max_retries:
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"Uniswap {path} attempt {attempt}/{self.max_retries} failed "
                    f"({last_error}), retrying in {delay:g}s"
                )
                await asyncio.sleep(delay)

        raise map_provider_error(last_error, operation, self.name, UNISWAP_ERROR_CODES) from last_error

    def _quote_payload(self, request: SwapRequest) -> dict:
        return {
            "type": "EXACT_INPUT",
            "amount": str(request.amount),
            "tokenInChainId": request.from_chain_id,
            "tokenOutChainId": request.to_chain_id,
            "tokenIn": self._token_address(request.from_chain_id, request.from_token),
            "tokenOut": self._token_address(request.to_chain_id, request.to_token),
            "swapper": request.sender,
            "slippageTolerance": self.slippage,
            "routingPreference": "CLASSIC",
        }

    @staticmethod
    def _output_amount(quote: dict) -> int:
        output = quote.get("output")
        if isinstance(output, dict):
            amount = parse_int(output.get("amount"))
        else:
            amount = parse_int(quote.get("amount"))
        if amount is None:
            raise SwapError(
                SwapErrorCode.PROVIDER_ERROR,
                "Uniswap quote response has no output amount",
                {"provider": "uniswap-trading-api"},
            )
        return amount

    def _map_quote(self, data: dict, request: SwapRequest) -> SwapQuote:
        try:
            quote = data.get("quote") or {}
            output_amount = self._output_amount(quote)
            gas_fee = parse_int(quote.get("gasFee")) or parse_int(data.get("gasFee")) or 0
            expires_at = data.get("expiresAt") or quote.get("expiresAt")
            expires_at = float(expires_at) if expires_at else None
        except (AttributeError, TypeError, ValueError) as e:
            raise map_provider_error(e, "parse_quote", self.name) from e

        return SwapQuote(
            estimated_receive_amount=output_amount,
            bridge_fee=0,
            gas_fee=gas_fee,
            exchange_rate=output_amount / request.amount,
            estimated_duration=SAME_CHAIN_DURATION_SECONDS,
            expires_at=expires_at,
        )

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        """Get swap quote from the Trading API."""
        self._ensure_same_chain(request)
        logger.info(f"Getting Uniswap quote for {request.to_log_string()}")

        data = await self._post("/quote", self._quote_payload(request), "get_quote")
        quote = self._map_quote(data, request)
        logger.info(
            f"Uniswap quote: {request.amount} -> {quote.estimated_receive_amount} "
            f"(routing: {data.get('routing', 'CLASSIC')})"
        )
        return quote

    def _map_transaction(self, tx: dict, chain_id: int, action: str, description: str) -> Transaction:
        try:
            to = tx["to"]
        except (KeyError, TypeError) as e:
            raise map_provider_error(e, f"parse_{action}_transaction", self.name) from e
        return Transaction(
            chain_id=parse_int(tx.get("chainId")) or chain_id,
            to=to,
            data=tx.get("data") or "0x",
            value=str(parse_int(tx.get("value")) or 0),
            gas_limit=parse_int(tx.get("gasLimit")),
            max_fee_per_gas=parse_int(tx.get("maxFeePerGas")),
            max_priority_fee_per_gas=parse_int(tx.get("maxPriorityFeePerGas")),
            action=action,
            description=description,
        )

    async def _approval_transaction(self, request: SwapRequest) -> Optional[Transaction]:
        """On-chain approval the swap needs first, if any."""
        token = self._token_address(request.from_chain_id, request.from_token)
        if token == NATIVE_PLACEHOLDER_ADDRESS:
            return None

        data = await self._post(
            "/check_approval",
            {
                "walletAddress": request.sender,
                "token": token,
                "amount": str(request.amount),
                "chainId": request.from_chain_id,
            },
            "check_approval",
        )
        approval = data.get("approval")
        if not approval:
            return None
        return self._map_transaction(
            approval, request.from_chain_id, "approval", f"Approve {request.from_token}"
        )

    async def prepare_swap(self, request: SwapRequest) -> PreparedSwap:
        """Prepare approval (if needed) and swap transactions."""
        self._ensure_same_chain(request)
        logger.info(f"Preparing Uniswap swap for {request.to_log_string()}")

        approval = await self._approval_transaction(request)

        quote_data = await self._post("/quote", self._quote_payload(request), "prepare_swap")
        if quote_data.get("permitData"):
            raise SwapError(
                SwapErrorCode.APPROVAL_REQUIRED,
                "A Permit2 signature is required before this swap can be prepared",
                {
                    "provider": self.name,
                    "token": request.from_token,
                    "chain_id": request.from_chain_id,
                    "permit_data": quote_data["permitData"],
                },
            )

        swap_data = await self._post("/swap", {"quote": quote_data.get("quote")}, "prepare_swap")
        swap_tx = swap_data.get("swap")
        if not swap_tx:
            raise SwapError(
                SwapErrorCode.PROVIDER_ERROR,
                "Uniswap swap response has no transaction",
                {"provider": self.name, "request_id": swap_data.get("requestId")},
                http_status=502,
            )

        transactions = [] if approval is None else [approval]
        transactions.append(
            self._map_transaction(
                swap_tx,
                request.from_chain_id,
                "swap",
                f"Swap {request.from_token} for {request.to_token}",
            )
        )
        sanitized = ensure_executable(transactions, request.from_chain_id, self.name)

        quote = self._map_quote(quote_data, request)
        logger.info(
            f"Uniswap swap prepared: {len(sanitized.executable)} transaction(s), "
            f"approval={'yes' if approval else 'no'}"
        )
        return PreparedSwap(
            transactions=sanitized.executable,
            provider=self.name,
            estimated_duration=SAME_CHAIN_DURATION_SECONDS,
            expires_at=quote.expires_at or time.time() + 60,
            metadata={
                "routing": quote_data.get("routing", "CLASSIC"),
                "estimated_receive_amount": str(quote.estimated_receive_amount),
                "needs_approval": approval is not None,
                "request_id": quote_data.get("requestId"),
            },
        )

    async def monitor_transaction(self, tx_hash: str, chain_id: int) -> TransactionStatus:
        """Check a swap transaction through the chain's RPC endpoint."""
        rpc_url = self.rpc_urls.get(chain_id)
        if not rpc_url:
            raise SwapError(
                SwapErrorCode.UNSUPPORTED_CHAIN,
                f"No RPC endpoint configured for chain {chain_id}",
                {"chain_id": chain_id, "provider": self.name},
            )
        try:
            return await get_receipt_status(rpc_url, tx_hash, self._transport)
        except SwapError:
            raise
        except httpx.HTTPError as e:
            raise SwapError(
                SwapErrorCode.RPC_ERROR,
                f"RPC request failed while checking {tx_hash}: {e}",
                {"tx_hash": tx_hash, "chain_id": chain_id},
            ) from e
