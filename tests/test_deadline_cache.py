"""Tests for deadlines, the quote cache and provider aliases."""

import asyncio
import time

import pytest
from conftest import make_request

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.aliases import canonical_provider_name, resolve_provider_candidates
from swaprouter.routing.deadline import call_with_deadline
from swaprouter.routing.quote_cache import QuoteCache

ALIASES = {"uniswap": ["uniswap-smart-router", "uniswap-trading-api"]}


class TestCallWithDeadline:
    """Tests for deadline-bounded calls."""

    @pytest.mark.asyncio
    async def test_returns_result_in_time(self):
        async def work():
            return 42

        assert await call_with_deadline(work(), 1.0) == 42

    @pytest.mark.asyncio
    async def test_timeout_raises_swap_error(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(SwapError) as exc_info:
            await call_with_deadline(slow(), 0.01, provider="thirdweb", operation_name="get_quote")

        error = exc_info.value
        assert error.code == SwapErrorCode.TIMEOUT
        assert error.details["provider"] == "thirdweb"
        assert "thirdweb.get_quote" in error.message
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_none_disables_deadline(self):
        async def work():
            await asyncio.sleep(0.01)
            return "done"

        assert await call_with_deadline(work(), None) == "done"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def broken():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await call_with_deadline(broken(), 1.0)


class TestQuoteCache:
    """Tests for the TTL quote cache."""

    def test_hit_and_miss(self):
        cache = QuoteCache(ttl_seconds=30)
        request = make_request()

        assert cache.get(request) is None
        cache.set(request, "quote")

        assert cache.get(request) == "quote"
        assert cache.hits == 1
        assert cache.misses == 1

    def test_key_ignores_address_case(self):
        cache = QuoteCache(ttl_seconds=30)
        cache.set(make_request(from_token="0xABC"), "quote")

        assert cache.get(make_request(from_token="0xabc")) == "quote"

    def test_different_amount_is_a_different_entry(self):
        cache = QuoteCache(ttl_seconds=30)
        cache.set(make_request(amount=1), "one")

        assert cache.get(make_request(amount=2)) is None

    def test_quote_expiry_bounds_entry(self):
        cache = QuoteCache(ttl_seconds=30)
        cache.set(make_request(), "stale", expires_at=time.time() - 1)

        assert cache.get(make_request()) is None
        assert len(cache) == 0

    def test_disabled_cache_stores_nothing(self):
        cache = QuoteCache(ttl_seconds=0)
        cache.set(make_request(), "quote")

        assert not cache.enabled
        assert cache.get(make_request()) is None
        assert len(cache) == 0

    def test_capacity_evicts_closest_to_expiry(self):
        cache = QuoteCache(ttl_seconds=30, max_entries=2)
        now = time.time()
        cache.set(make_request(amount=1), "a", expires_at=now + 5)
        cache.set(make_request(amount=2), "b", expires_at=now + 10)
        cache.set(make_request(amount=3), "c")

        assert len(cache) == 2
        assert cache.get(make_request(amount=1)) is None
        assert cache.get(make_request(amount=3)) == "c"

    def test_purge_expired(self):
        cache = QuoteCache(ttl_seconds=30)
        cache.set(make_request(amount=1), "old", expires_at=time.time() - 1)
        cache.set(make_request(amount=2), "fresh")

        assert cache.purge_expired() == 1
        assert len(cache) == 1


class TestAliases:
    """Tests for provider alias resolution."""

    def test_registered_name_comes_first(self):
        available = ["uniswap", "uniswap-trading-api"]
        assert resolve_provider_candidates("uniswap", available, ALIASES) == [
            "uniswap",
            "uniswap-trading-api",
        ]

    def test_unregistered_members_are_dropped(self):
        assert resolve_provider_candidates("uniswap", ["thirdweb"], ALIASES) == []

    def test_canonical_name(self):
        assert canonical_provider_name("uniswap-trading-api", ALIASES) == "uniswap"
        assert canonical_provider_name("Uniswap-Smart-Router", ALIASES) == "uniswap"
        assert canonical_provider_name("uniswap-v4", ALIASES) == "uniswap"
        assert canonical_provider_name("thirdweb", ALIASES) == "thirdweb"
