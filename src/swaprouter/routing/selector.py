"""Provider selection façade used by the swap use cases."""

import logging
from dataclasses import dataclass
from typing import Optional

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.aliases import resolve_provider_candidates
from swaprouter.routing.base import PreparedSwap, SwapQuote, SwapRequest, TransactionStatus
from swaprouter.routing.deadline import call_with_deadline
from swaprouter.routing.error_mapper import map_provider_error, map_status_error
from swaprouter.routing.quote_cache import QuoteCache
from swaprouter.routing.router import ProviderAttempt, RouterDomainService, aggregate_code

logger = logging.getLogger(__name__)


@dataclass
class QuoteWithProvider:
    """Quote result including which provider was selected."""

    provider: str
    quote: SwapQuote


@dataclass
class PreparedSwapWithProvider:
    """Prepared swap result including which provider was used."""

    provider: str
    prepared: PreparedSwap


class ProviderSelector:
    """Entry point for quote, prepare and status operations.

    Delegates routing to RouterDomainService and reports the chosen
    provider by name. A preferred provider name is expanded through the
    provider alias table and its candidates are tried in order.
    """

    def __init__(
        self,
        router: RouterDomainService,
        quote_cache: Optional[QuoteCache] = None,
        aliases: Optional[dict[str, list[str]]] = None,
    ):
        self.router = router
        self.quote_cache = quote_cache
        self.aliases = aliases

    def get_available_providers(self) -> list[str]:
        return self.router.get_available_providers()

    def resolve_provider_candidates(self, name: str) -> list[str]:
        """Concrete provider names for a (possibly generic) name.

        Raises:
            SwapError: INVALID_REQUEST naming the provider and listing available ones
        """
        available = self.router.get_available_providers()
        candidates = resolve_provider_candidates(name, available, self.aliases)
        if not candidates:
            raise SwapError(
                SwapErrorCode.INVALID_REQUEST,
                f"Provider '{name}' not available. Available providers: {', '.join(available)}",
                {"requested_provider": name, "available_providers": available},
            )
        return candidates

    def is_provider_available(self, name: str) -> bool:
        try:
            self.resolve_provider_candidates(name)
        except SwapError:
            return False
        return True

    async def get_quote_with_best_provider(self, request: SwapRequest) -> QuoteWithProvider:
        """Quote with automatic provider selection and fallback."""
        if self.quote_cache is not None:
            cached = self.quote_cache.get(request)
            if cached is not None:
                logger.debug(f"Quote cache hit for {request.to_log_string()}")
                return cached

        selection = await self.router.select_best_provider(request)
        result = QuoteWithProvider(provider=selection.provider.name, quote=selection.quote)
        logger.info(f"Auto-selected provider: {result.provider}")

        if self.quote_cache is not None:
            self.quote_cache.set(request, result, expires_at=selection.quote.expires_at)
        return result

    async def prepare_swap_with_provider(
        self,
        request: SwapRequest,
        preferred_provider: Optional[str] = None,
    ) -> PreparedSwapWithProvider:
        """Prepare a swap with the preferred provider, or auto-select one.

        Raises:
            SwapError: INVALID_REQUEST for an unknown preferred provider, or
                the aggregate failure of every candidate (APPROVAL_REQUIRED
                when any of them needs the user to approve first)
        """
        if not preferred_provider:
            prepared = await self.router.prepare_with_best_provider(request)
            return PreparedSwapWithProvider(provider=prepared.provider, prepared=prepared)

        candidates = self.resolve_provider_candidates(preferred_provider)
        params = request.route_params()
        attempts: list[ProviderAttempt] = []

        for name in candidates:
            provider = self.router.get_provider_by_name(name)
            if name != preferred_provider:
                logger.info(f"Resolved preferred provider '{preferred_provider}' -> '{name}'")

            try:
                supported = await provider.supports_route(params)
            except Exception as e:
                logger.warning(f"Error checking {name} support: {e}")
                supported = False
            if not supported:
                attempts.append(
                    ProviderAttempt(name, SwapErrorCode.NO_ROUTE_FOUND, "route unsupported")
                )
                continue

            try:
                prepared = await call_with_deadline(
                    provider.prepare_swap(request),
                    self.router.get_timeout(name),
                    provider=name,
                    operation_name="prepare_swap",
                )
            except Exception as e:
                error = map_provider_error(e, "prepare_swap", name)
                logger.warning(f"{name} failed to prepare: {error.code.value}: {error.message}")
                attempts.append(ProviderAttempt(name, error.code, error.message))
                continue

            logger.info(f"Prepared swap with {name}")
            return PreparedSwapWithProvider(provider=provider.name, prepared=prepared)

        code = aggregate_code(attempts)
        reasons = " | ".join(f"{a.provider}: {a.message}" for a in attempts)
        raise SwapError(
            code,
            f"Provider '{preferred_provider}' could not prepare this swap route "
            f"({request.from_chain_id} -> {request.to_chain_id}). "
            f"Tried: {', '.join(candidates)}. Details: {reasons}",
            {
                "requested_provider": preferred_provider,
                "attempts": [a.to_dict() for a in attempts],
            },
        )

    async def get_transaction_status(
        self,
        tx_hash: str,
        chain_id: int,
        provider_name: str,
    ) -> TransactionStatus:
        """Status of a submitted transaction as seen by a provider."""
        name = self.resolve_provider_candidates(provider_name)[0]
        provider = self.router.get_provider_by_name(name)
        try:
            return await call_with_deadline(
                provider.monitor_transaction(tx_hash, chain_id),
                self.router.get_timeout(name),
                provider=name,
                operation_name="monitor_transaction",
            )
        except SwapError:
            raise
        except Exception as e:
            raise map_status_error(e, tx_hash, name) from e
