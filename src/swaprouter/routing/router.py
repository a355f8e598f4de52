"""Provider discovery, ordering and sequential fallback."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar, Union

from swaprouter.errors import SwapError, SwapErrorCode, no_route_error
from swaprouter.routing.base import (
    PreparedSwap,
    ProviderSelectionResult,
    RouteParams,
    SwapProvider,
    SwapRequest,
)
from swaprouter.routing.deadline import call_with_deadline
from swaprouter.routing.error_mapper import map_provider_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SAME_CHAIN_PRIORITY = ["uniswap-trading-api", "uniswap-smart-router", "uniswap", "thirdweb"]
DEFAULT_CROSS_CHAIN_PRIORITY = ["thirdweb"]


@dataclass
class ProviderAttempt:
    """A failed candidate attempt."""

    provider: str
    code: SwapErrorCode
    message: str

    def to_dict(self) -> dict:
        return {"provider": self.provider, "code": self.code.value, "message": self.message}


def aggregate_code(attempts: list[ProviderAttempt]) -> SwapErrorCode:
    """Error code reported once every candidate has failed.

    APPROVAL_REQUIRED wins so the user can act on it; otherwise the shared
    code of all attempts, or PROVIDER_ERROR when they differ.
    """
    codes = {a.code for a in attempts}
    if SwapErrorCode.APPROVAL_REQUIRED in codes:
        return SwapErrorCode.APPROVAL_REQUIRED
    if len(codes) == 1:
        return codes.pop()
    return SwapErrorCode.PROVIDER_ERROR


class RouterDomainService:
    """Selects a provider for a swap request.

    Discovery runs supports_route() on every registered provider
    concurrently. Supported providers are ordered by the priority list for
    the request's classification (same-chain or cross-chain), followed by
    the remaining supported providers in registration order. Candidates
    are then tried one at a time; the first success wins.
    """

    def __init__(
        self,
        providers: Union[list[SwapProvider], dict[str, SwapProvider]],
        same_chain_priority: Optional[list[str]] = None,
        cross_chain_priority: Optional[list[str]] = None,
        default_timeout: Optional[float] = None,
        provider_timeouts: Optional[dict[str, float]] = None,
        multihop: Optional[SwapProvider] = None,
    ):
        if isinstance(providers, dict):
            providers = list(providers.values())
        self._providers: dict[str, SwapProvider] = {p.name: p for p in providers}
        self.same_chain_priority = list(
            DEFAULT_SAME_CHAIN_PRIORITY if same_chain_priority is None else same_chain_priority
        )
        self.cross_chain_priority = list(
            DEFAULT_CROSS_CHAIN_PRIORITY if cross_chain_priority is None else cross_chain_priority
        )
        self.default_timeout = default_timeout
        self.provider_timeouts = dict(provider_timeouts or {})
        self.multihop = multihop

        logger.info(
            f"RouterDomainService initialized with {len(self._providers)} provider(s): "
            f"{list(self._providers)}"
            + (f" (multi-hop: {multihop.name})" if multihop else "")
        )

    # ---- registry ----

    def get_provider_by_name(self, name: str) -> Optional[SwapProvider]:
        provider = self._providers.get(name)
        if provider is None and self.multihop is not None and name == self.multihop.name:
            return self.multihop
        return provider

    def has_provider(self, name: str) -> bool:
        return self.get_provider_by_name(name) is not None

    def get_available_providers(self) -> list[str]:
        names = list(self._providers)
        if self.multihop is not None:
            names.append(self.multihop.name)
        return names

    def get_timeout(self, provider_name: str) -> Optional[float]:
        """Per-attempt timeout for a provider, None when disabled."""
        timeout = self.provider_timeouts.get(provider_name, self.default_timeout)
        return timeout if timeout and timeout > 0 else None

    # ---- discovery and ordering ----

    async def _check_support(self, provider: SwapProvider, params: RouteParams) -> bool:
        try:
            return bool(await provider.supports_route(params))
        except Exception as e:
            logger.warning(f"Error checking {provider.name} support: {type(e).__name__}: {e}")
            return False

    async def discover(self, params: RouteParams) -> list[SwapProvider]:
        """Providers supporting the route, in registration order."""
        providers = list(self._providers.values())
        results = await asyncio.gather(*(self._check_support(p, params) for p in providers))
        return [p for p, supported in zip(providers, results) if supported]

    def order_providers(self, supported: list[SwapProvider], same_chain: bool) -> list[SwapProvider]:
        """Order supported providers by the priority list for the classification."""
        priority = self.same_chain_priority if same_chain else self.cross_chain_priority
        by_name = {p.name: p for p in supported}

        ordered = [by_name[name] for name in priority if name in by_name]
        ordered.extend(p for p in supported if p not in ordered)
        return ordered

    async def rank_providers(self, request: SwapRequest) -> list[SwapProvider]:
        """Ordered direct-route candidates for a request."""
        supported = await self.discover(request.route_params())
        ranked = self.order_providers(supported, request.is_same_chain)
        logger.debug(
            f"Ranked providers for {request.to_log_string()}: {[p.name for p in ranked]}"
        )
        return ranked

    def _should_use_multihop(self, request: SwapRequest, candidates: list[SwapProvider]) -> bool:
        return not candidates and not request.is_same_chain and self.multihop is not None

    def _no_route(self, request: SwapRequest) -> SwapError:
        return no_route_error(
            request.from_token,
            request.to_token,
            request.from_chain_id,
            request.to_chain_id,
            available_providers=self.get_available_providers(),
        )

    # ---- selection ----

    async def select_best_provider(self, request: SwapRequest) -> ProviderSelectionResult:
        """Quote with the first candidate that succeeds.

        Raises:
            SwapError: NO_ROUTE_FOUND when nothing supports the route, or an
                aggregate error listing every candidate's failure
        """
        logger.info(f"Selecting provider for: {request.to_log_string()}")
        candidates = await self.rank_providers(request)

        if self._should_use_multihop(request, candidates):
            logger.info(f"No direct route for {request.to_log_string()}, trying multi-hop")
            quote = await self._call(self.multihop, "get_quote", self.multihop.get_quote(request))
            return ProviderSelectionResult(provider=self.multihop, quote=quote)

        if not candidates:
            raise self._no_route(request)

        provider, quote = await self._try_in_order(
            candidates, request, "get_quote", lambda p: p.get_quote(request)
        )
        return ProviderSelectionResult(provider=provider, quote=quote)

    async def select_best_provider_without_quote(self, request: SwapRequest) -> SwapProvider:
        """Top-priority supporting provider, without calling get_quote()."""
        candidates = await self.rank_providers(request)

        if self._should_use_multihop(request, candidates):
            if await self._check_support(self.multihop, request.route_params()):
                return self.multihop

        if not candidates:
            raise self._no_route(request)
        return candidates[0]

    async def prepare_with_best_provider(self, request: SwapRequest) -> PreparedSwap:
        """Prepare with the first candidate that succeeds, in the same order as quoting."""
        logger.info(f"Preparing swap with best provider: {request.to_log_string()}")
        candidates = await self.rank_providers(request)

        if self._should_use_multihop(request, candidates):
            logger.info(f"No direct route for {request.to_log_string()}, preparing multi-hop")
            return await self._call(
                self.multihop, "prepare_swap", self.multihop.prepare_swap(request)
            )

        if not candidates:
            raise self._no_route(request)

        _, prepared = await self._try_in_order(
            candidates, request, "prepare_swap", lambda p: p.prepare_swap(request)
        )
        return prepared

    # ---- attempts ----

    async def _call(self, provider: SwapProvider, operation: str, coro: Awaitable[T]) -> T:
        try:
            return await call_with_deadline(
                coro,
                self.get_timeout(provider.name),
                provider=provider.name,
                operation_name=operation,
            )
        except SwapError:
            raise
        except Exception as e:
            raise map_provider_error(e, operation, provider.name) from e

    async def _try_in_order(
        self,
        candidates: list[SwapProvider],
        request: SwapRequest,
        operation: str,
        call: Callable[[SwapProvider], Awaitable[T]],
    ) -> tuple[SwapProvider, T]:
        attempts: list[ProviderAttempt] = []
        errors: list[SwapError] = []

        for provider in candidates:
            logger.info(f"Attempting {provider.name}.{operation}")
            try:
                result = await self._call(provider, operation, call(provider))
            except SwapError as e:
                logger.warning(f"{provider.name}.{operation} failed: {e.code.value}: {e.message}")
                attempts.append(ProviderAttempt(provider.name, e.code, e.message))
                errors.append(e)
                continue

            if attempts:
                logger.info(
                    f"Fallback {provider.name} succeeded after "
                    f"{len(attempts)} failed attempt(s)"
                )
            else:
                logger.info(f"{provider.name}.{operation} succeeded")
            return provider, result

        raise self._aggregate_error(request, operation, attempts, errors)

    def _aggregate_error(
        self,
        request: SwapRequest,
        operation: str,
        attempts: list[ProviderAttempt],
        errors: list[SwapError],
    ) -> SwapError:
        code = aggregate_code(attempts)
        summary = "; ".join(f"{a.provider}: {a.message}" for a in attempts)

        details: dict = {
            "operation": operation,
            "from_chain_id": request.from_chain_id,
            "to_chain_id": request.to_chain_id,
            "attempts": [a.to_dict() for a in attempts],
        }
        retry_hints = [e.retry_after for e in errors if e.retry_after is not None]
        if retry_hints:
            details["retry_after"] = max(retry_hints)

        logger.error(f"All providers failed for {request.to_log_string()}: {summary}")
        return SwapError(code, f"All swap providers failed. Errors: {summary}", details)
