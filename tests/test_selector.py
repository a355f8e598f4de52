"""Tests for the provider selection façade."""

import httpx
import pytest
from conftest import FakeProvider, make_request

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.base import TransactionStatus
from swaprouter.routing.quote_cache import QuoteCache
from swaprouter.routing.router import RouterDomainService
from swaprouter.routing.selector import ProviderSelector

ALIASES = {"uniswap": ["uniswap-smart-router", "uniswap-trading-api"]}


def make_selector(*providers, quote_cache=None) -> ProviderSelector:
    router = RouterDomainService(
        list(providers),
        same_chain_priority=["uniswap-smart-router", "uniswap-trading-api", "thirdweb"],
        cross_chain_priority=["thirdweb"],
    )
    return ProviderSelector(router, quote_cache=quote_cache, aliases=ALIASES)


class TestProviderResolution:
    """Tests for preferred provider names."""

    def test_unknown_provider_lists_available(self):
        selector = make_selector(FakeProvider("uniswap-trading-api"), FakeProvider("thirdweb"))

        with pytest.raises(SwapError) as exc_info:
            selector.resolve_provider_candidates("invalid-provider-name")

        error = exc_info.value
        assert error.code == SwapErrorCode.INVALID_REQUEST
        assert "invalid-provider-name" in error.message
        assert "uniswap-trading-api" in error.message
        assert "thirdweb" in error.message
        assert error.details["available_providers"] == ["uniswap-trading-api", "thirdweb"]

    def test_generic_name_expands_to_registered_members(self):
        selector = make_selector(FakeProvider("uniswap-trading-api"), FakeProvider("thirdweb"))

        assert selector.resolve_provider_candidates("uniswap") == ["uniswap-trading-api"]
        assert selector.resolve_provider_candidates("  Thirdweb ") == ["thirdweb"]

    def test_is_provider_available(self):
        selector = make_selector(FakeProvider("thirdweb"))

        assert selector.is_provider_available("thirdweb")
        assert not selector.is_provider_available("uniswap")


class TestQuotes:
    """Tests for best-provider quoting."""

    @pytest.mark.asyncio
    async def test_reports_provider_name(self):
        selector = make_selector(FakeProvider("thirdweb"), FakeProvider("uniswap-trading-api"))

        result = await selector.get_quote_with_best_provider(make_request())

        assert result.provider == "uniswap-trading-api"

    @pytest.mark.asyncio
    async def test_cached_quote_is_reused(self):
        provider = FakeProvider("uniswap-trading-api")
        cache = QuoteCache(ttl_seconds=30)
        selector = make_selector(provider, quote_cache=cache)

        first = await selector.get_quote_with_best_provider(make_request())
        second = await selector.get_quote_with_best_provider(make_request())

        assert second is first
        assert len(provider.quote_calls) == 1
        assert cache.hits == 1

    @pytest.mark.asyncio
    async def test_expired_quote_is_not_served(self):
        provider = FakeProvider("uniswap-trading-api", expires_at=1.0)
        selector = make_selector(provider, quote_cache=QuoteCache(ttl_seconds=30))

        await selector.get_quote_with_best_provider(make_request())
        await selector.get_quote_with_best_provider(make_request())

        assert len(provider.quote_calls) == 2


class TestPrepare:
    """Tests for preparing with a preferred provider."""

    @pytest.mark.asyncio
    async def test_without_preference_uses_router(self):
        selector = make_selector(FakeProvider("thirdweb"), FakeProvider("uniswap-trading-api"))

        result = await selector.prepare_swap_with_provider(make_request())

        assert result.provider == "uniswap-trading-api"
        assert result.prepared.metadata == {"fake": "uniswap-trading-api"}

    @pytest.mark.asyncio
    async def test_generic_name_falls_through_alias_candidates(self):
        smart = FakeProvider(
            "uniswap-smart-router",
            prepare_error=SwapError(SwapErrorCode.PROVIDER_ERROR, "quoter reverted"),
        )
        trading = FakeProvider("uniswap-trading-api")
        selector = make_selector(smart, trading)

        result = await selector.prepare_swap_with_provider(make_request(), "uniswap")

        assert result.provider == "uniswap-trading-api"
        assert len(smart.prepare_calls) == 1

    @pytest.mark.asyncio
    async def test_preferred_provider_is_not_replaced_by_others(self):
        uniswap = FakeProvider("uniswap-trading-api", supports=False)
        thirdweb = FakeProvider("thirdweb")
        selector = make_selector(uniswap, thirdweb)

        with pytest.raises(SwapError) as exc_info:
            await selector.prepare_swap_with_provider(make_request(), "uniswap")

        error = exc_info.value
        assert error.code == SwapErrorCode.NO_ROUTE_FOUND
        assert error.details["requested_provider"] == "uniswap"
        assert thirdweb.prepare_calls == []

    @pytest.mark.asyncio
    async def test_approval_required_falls_through_to_next_candidate(self):
        smart = FakeProvider(
            "uniswap-smart-router",
            prepare_error=SwapError(SwapErrorCode.APPROVAL_REQUIRED, "sign permit"),
        )
        trading = FakeProvider("uniswap-trading-api")
        selector = make_selector(smart, trading)

        result = await selector.prepare_swap_with_provider(make_request(), "uniswap")

        assert result.provider == "uniswap-trading-api"
        assert len(smart.prepare_calls) == 1

    @pytest.mark.asyncio
    async def test_approval_required_reported_when_all_fail(self):
        smart = FakeProvider(
            "uniswap-smart-router",
            prepare_error=SwapError(SwapErrorCode.APPROVAL_REQUIRED, "sign permit"),
        )
        trading = FakeProvider(
            "uniswap-trading-api",
            prepare_error=SwapError(SwapErrorCode.TIMEOUT, "slow"),
        )
        selector = make_selector(smart, trading)

        with pytest.raises(SwapError) as exc_info:
            await selector.prepare_swap_with_provider(make_request(), "uniswap")

        error = exc_info.value
        assert error.code == SwapErrorCode.APPROVAL_REQUIRED
        assert [a["provider"] for a in error.details["attempts"]] == [
            "uniswap-smart-router",
            "uniswap-trading-api",
        ]

    @pytest.mark.asyncio
    async def test_unknown_preferred_provider(self):
        selector = make_selector(FakeProvider("thirdweb"))

        with pytest.raises(SwapError) as exc_info:
            await selector.prepare_swap_with_provider(make_request(), "invalid-provider-name")

        assert exc_info.value.code == SwapErrorCode.INVALID_REQUEST


class TestTransactionStatus:
    """Tests for status lookups."""

    @pytest.mark.asyncio
    async def test_status_via_alias(self):
        trading = FakeProvider("uniswap-trading-api", status=TransactionStatus.PENDING)
        selector = make_selector(trading)

        status = await selector.get_transaction_status("0xabc", 1, "uniswap")

        assert status == TransactionStatus.PENDING
        assert trading.status_calls == [("0xabc", 1)]

    @pytest.mark.asyncio
    async def test_network_failure_is_mapped(self):
        thirdweb = FakeProvider("thirdweb", status_error=httpx.ConnectError("connection refused"))
        selector = make_selector(thirdweb)

        with pytest.raises(SwapError) as exc_info:
            await selector.get_transaction_status("0xabc", 1, "thirdweb")

        assert exc_info.value.code == SwapErrorCode.TIMEOUT

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        selector = make_selector(FakeProvider("thirdweb"))

        with pytest.raises(SwapError) as exc_info:
            await selector.get_transaction_status("0xabc", 1, "nope")

        assert exc_info.value.code == SwapErrorCode.INVALID_REQUEST
