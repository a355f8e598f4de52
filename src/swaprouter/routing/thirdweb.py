"""thirdweb Bridge integration.

Cross-chain (and same-chain) swaps through the thirdweb Bridge "sell" API.
API docs: https://portal.thirdweb.com/bridge
"""

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
from swaprouter.routing.error_mapper import (
    THIRDWEB_ERROR_CODES,
    map_provider_error,
)
from swaprouter.routing.sanitizer import ensure_executable
from swaprouter.tokens.registry import NATIVE_PLACEHOLDER_ADDRESS, TokenRegistry, is_native_like

logger = logging.getLogger(__name__)

THIRDWEB_BRIDGE_URL = "https://bridge.thirdweb.com/v1"

DEFAULT_EXECUTION_TIME_MS = 60_000

STATUS_MAP = {
    "COMPLETED": TransactionStatus.COMPLETED,
    "SUCCESS": TransactionStatus.COMPLETED,
    "FAILED": TransactionStatus.FAILED,
    "ERROR": TransactionStatus.FAILED,
    "PENDING": TransactionStatus.PENDING,
    "NOT_FOUND": TransactionStatus.PENDING,
}


class ThirdwebBridgeProvider(SwapProvider):
    """thirdweb Bridge provider.

    Prepared bundles may contain steps for the destination chain; only
    transactions on the origin chain are returned, the rest are recorded
    in the metadata.
    """

    registry_key = "thirdweb"

    def __init__(
        self,
        client_id: str,
        secret_key: str = "",
        api_url: str = THIRDWEB_BRIDGE_URL,
        registry: Optional[TokenRegistry] = None,
        request_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self.registry = registry
        self.request_timeout = request_timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "thirdweb"

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json", "x-client-id": self.client_id}
        if self.secret_key:
            headers["x-secret-key"] = self.secret_key
        return headers

    def _token_address(self, chain_id: int, token: str) -> str:
        if self.registry is not None:
            resolved = self.registry.resolve(self.registry_key, chain_id, token)
            return NATIVE_PLACEHOLDER_ADDRESS if resolved.is_native else resolved.identifier
        return NATIVE_PLACEHOLDER_ADDRESS if is_native_like(token) else token

    async def supports_route(self, params: RouteParams) -> bool:
        if self.registry is None:
            return True
        if not self.registry.is_token_supported(
            self.registry_key, params.from_chain_id, params.from_token
        ):
            logger.debug(f"thirdweb: {params.from_token} not supported on chain {params.from_chain_id}")
            return False
        if not self.registry.is_token_supported(self.registry_key, params.to_chain_id, params.to_token):
            logger.debug(f"thirdweb: {params.to_token} not supported on chain {params.to_chain_id}")
            return False
        return True

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=self.request_timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method, f"{self.api_url}{path}", headers=self._get_headers(), **kwargs
                )
                response.raise_for_status()
                body = response.json()
        except Exception as e:
            raise map_provider_error(e, operation, self.name, THIRDWEB_ERROR_CODES) from e

        return body.get("data", body) if isinstance(body, dict) else {}

    def _sell_params(self, request: SwapRequest) -> dict:
        return {
            "originChainId": request.from_chain_id,
            "originTokenAddress": self._token_address(request.from_chain_id, request.from_token),
            "destinationChainId": request.to_chain_id,
            "destinationTokenAddress": self._token_address(request.to_chain_id, request.to_token),
            "amount": str(request.amount),
        }

    @staticmethod
    def _expiration(data: dict) -> Optional[float]:
        expiration = data.get("expiration") or data.get("expiresAt")
        value = parse_int(expiration)
        if value is None:
            return None
        # Milliseconds when larger than any plausible epoch-seconds value
        return value / 1000 if value > 10**11 else float(value)

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        """Get a bridge quote."""
        logger.info(f"Getting thirdweb quote for {request.to_log_string()}")
        data = await self._request("GET", "/sell/quote", "get_quote", params=self._sell_params(request))

        origin_amount = parse_int(data.get("originAmount")) or request.amount
        destination_amount = parse_int(data.get("destinationAmount"))
        if destination_amount is None:
            raise SwapError(
                SwapErrorCode.PROVIDER_ERROR,
                "thirdweb quote response has no destination amount",
                {"provider": self.name},
            )
        execution_ms = parse_int(data.get("estimatedExecutionTimeMs")) or DEFAULT_EXECUTION_TIME_MS

        return SwapQuote(
            estimated_receive_amount=destination_amount,
            bridge_fee=max(origin_amount - destination_amount, 0),
            gas_fee=parse_int(data.get("estimatedGasFee")) or 0,
            exchange_rate=destination_amount / origin_amount if origin_amount else 0.0,
            estimated_duration=execution_ms // 1000,
            expires_at=self._expiration(data),
        )

    def _map_transaction(self, tx: dict) -> Transaction:
        return Transaction(
            chain_id=parse_int(tx.get("chainId")) or 0,
            to=tx.get("to", ""),
            data=tx.get("data") or "0x",
            value=str(parse_int(tx.get("value")) or 0),
            gas_limit=parse_int(tx.get("gasLimit") or tx.get("gas")),
            max_fee_per_gas=parse_int(tx.get("maxFeePerGas")),
            max_priority_fee_per_gas=parse_int(tx.get("maxPriorityFeePerGas")),
            action=tx.get("action"),
            description=tx.get("description"),
        )

    async def prepare_swap(self, request: SwapRequest) -> PreparedSwap:
        """Prepare bridge transactions for the origin chain."""
        logger.info(f"Preparing thirdweb swap for {request.to_log_string()}")
        payload = {
            **self._sell_params(request),
            "sender": request.sender,
            "receiver": request.receiver or request.sender,
        }
        data = await self._request("POST", "/sell/prepare", "prepare_swap", json=payload)

        raw_transactions = list(data.get("transactions") or [])
        for step in data.get("steps") or []:
            raw_transactions.extend(step.get("transactions") or [])
        transactions = [self._map_transaction(tx) for tx in raw_transactions]

        sanitized = ensure_executable(transactions, request.from_chain_id, self.name)
        execution_ms = parse_int(data.get("estimatedExecutionTimeMs")) or DEFAULT_EXECUTION_TIME_MS

        return PreparedSwap(
            transactions=sanitized.executable,
            provider=self.name,
            estimated_duration=execution_ms // 1000,
            expires_at=self._expiration(data) or time.time() + 300,
            metadata={
                "bridge_quote_id": data.get("id") or data.get("intentId"),
                "estimated_receive_amount": data.get("destinationAmount"),
                "discarded_transactions": [tx.to_dict() for tx in sanitized.discarded],
            },
        )

    async def monitor_transaction(self, tx_hash: str, chain_id: int) -> TransactionStatus:
        """Get bridge status for an origin transaction."""
        data = await self._request(
            "GET",
            "/status",
            "monitor_transaction",
            params={"transactionHash": tx_hash, "chainId": chain_id},
        )
        status = str(data.get("status", "PENDING")).upper()
        return STATUS_MAP.get(status, TransactionStatus.PENDING)
