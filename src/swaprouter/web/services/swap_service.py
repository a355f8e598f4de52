"""Swap use cases for the HTTP API.

Combines the provider selector with the protocol fee calculator.

This service does NOT sign or broadcast transactions. It only:
- Fetches quotes from the selected provider
- Prepares unsigned transaction bundles
- Reports the status of transactions submitted by the client
"""

import logging
from typing import Optional

from swaprouter.errors import SwapError, SwapErrorCode, missing_params_error
from swaprouter.fees.service import ProtocolFeeService
from swaprouter.routing.base import SwapRequest
from swaprouter.routing.selector import ProviderSelector
from swaprouter.web.contracts.fees import (
    ProtocolFeeInfo,
    ProtocolFeeListResponse,
    ProtocolFeeResponse,
    SetProtocolFeeRequest,
    SetProtocolFeeResponse,
)
from swaprouter.web.contracts.swaps import (
    ProvidersResponse,
    SwapPrepareRequest,
    SwapPrepareResponse,
    SwapQuoteRequest,
    SwapQuoteResponse,
    TransactionStatusResponse,
    UnsignedTransaction,
)

logger = logging.getLogger(__name__)


def parse_amount(value: str, field: str = "amount") -> int:
    """Parse a positive base-unit amount.

    Raises:
        SwapError: INVALID_AMOUNT when the value is not a positive integer
    """
    text = str(value).strip()
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise SwapError(
            SwapErrorCode.INVALID_AMOUNT,
            f"Invalid {field}: expected a positive integer in base units, got {value!r}",
            {"field": field, "value": str(value)},
        )
    return int(text)


def build_swap_request(request: SwapQuoteRequest) -> SwapRequest:
    return SwapRequest(
        from_chain_id=request.from_chain_id,
        to_chain_id=request.to_chain_id,
        from_token=request.from_token,
        to_token=request.to_token,
        amount=parse_amount(request.amount),
        sender=request.sender,
        receiver=request.receiver or request.sender,
    )


class SwapService:
    """Quote, prepare, status and protocol fee use cases."""

    def __init__(
        self,
        selector: ProviderSelector,
        fee_service: ProtocolFeeService,
        dry_run: bool = False,
    ):
        self.selector = selector
        self.fee_service = fee_service
        self.dry_run = dry_run

    async def get_quote(self, request: SwapQuoteRequest) -> SwapQuoteResponse:
        """Best-provider quote plus the protocol fee on the input amount."""
        swap_request = build_swap_request(request)
        result = await self.selector.get_quote_with_best_provider(swap_request)
        quote = result.quote

        protocol_fee = await self.fee_service.calculate_fee(result.provider, swap_request.amount)
        fee_percent = await self.fee_service.get_fee_percentage(result.provider)

        logger.info(
            f"Quote via {result.provider}: {swap_request.to_log_string()} -> "
            f"{quote.estimated_receive_amount} (protocol fee {protocol_fee})"
        )
        return SwapQuoteResponse(
            provider=result.provider,
            from_chain_id=swap_request.from_chain_id,
            to_chain_id=swap_request.to_chain_id,
            from_token=swap_request.from_token,
            to_token=swap_request.to_token,
            amount=str(swap_request.amount),
            estimated_receive_amount=str(quote.estimated_receive_amount),
            bridge_fee=str(quote.bridge_fee),
            gas_fee=str(quote.gas_fee),
            total_fees=str(quote.total_fees),
            exchange_rate=quote.exchange_rate,
            estimated_duration=quote.estimated_duration,
            expires_at=quote.expires_at,
            protocol_fee=str(protocol_fee),
            protocol_fee_percent=fee_percent,
        )

    async def prepare_swap(self, request: SwapPrepareRequest) -> SwapPrepareResponse:
        """Unsigned transactions from the preferred or best provider."""
        swap_request = build_swap_request(request)
        result = await self.selector.prepare_swap_with_provider(swap_request, request.provider)
        prepared = result.prepared

        return SwapPrepareResponse(
            provider=result.provider,
            transactions=[UnsignedTransaction(**tx.to_dict()) for tx in prepared.transactions],
            estimated_duration=prepared.estimated_duration,
            expires_at=prepared.expires_at,
            metadata=prepared.metadata,
        )

    async def get_transaction_status(
        self,
        tx_hash: str,
        chain_id: int,
        provider: str,
    ) -> TransactionStatusResponse:
        if not tx_hash:
            raise missing_params_error(["tx_hash"])
        status = await self.selector.get_transaction_status(tx_hash, chain_id, provider)
        return TransactionStatusResponse(
            tx_hash=tx_hash, chain_id=chain_id, provider=provider, status=status.value
        )

    def get_providers(self) -> ProvidersResponse:
        return ProvidersResponse(
            providers=self.selector.get_available_providers(), dry_run=self.dry_run
        )

    async def get_protocol_fee(
        self,
        provider: str,
        amount: Optional[str] = None,
    ) -> ProtocolFeeResponse:
        percent = await self.fee_service.get_fee_percentage(provider)
        response = ProtocolFeeResponse(
            provider=self.fee_service.canonical_provider_name(provider),
            tax_in_percent=percent,
        )
        if amount is not None:
            value = parse_amount(amount)
            response.amount = str(value)
            response.fee = str(await self.fee_service.calculate_fee(provider, value))
        return response

    async def list_protocol_fees(self) -> ProtocolFeeListResponse:
        configs = await self.fee_service.list_fee_configs()
        return ProtocolFeeListResponse(fees=[ProtocolFeeInfo(**c.to_dict()) for c in configs])

    async def set_protocol_fee(
        self,
        provider: str,
        request: SetProtocolFeeRequest,
    ) -> SetProtocolFeeResponse:
        tax_in_eth = (
            parse_amount(request.tax_in_eth, "tax_in_eth") if request.tax_in_eth else None
        )
        config, created = await self.fee_service.set_fee_config(
            provider,
            request.tax_in_percent,
            tax_in_bips=request.tax_in_bips,
            tax_in_eth=tax_in_eth,
            is_active=request.is_active,
        )
        action = "created" if created else "updated"
        return SetProtocolFeeResponse(
            success=True,
            provider=config.provider,
            tax_in_percent=config.tax_in_percent,
            is_active=config.is_active,
            message=f"Protocol fee for {config.provider} {action} to {config.tax_in_percent}%",
        )
