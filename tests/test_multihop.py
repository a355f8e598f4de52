"""Tests for two-leg route composition."""

import pytest
from conftest import RECEIVER, SENDER, FakeProvider, make_request, only_same_chain

from swaprouter.errors import SwapError, SwapErrorCode
from swaprouter.routing.base import RouteParams, TransactionStatus
from swaprouter.routing.multihop import MultiHopRouteBuilder, scaled_exchange_rate


def bridges_from(*tokens):
    """Cross-chain support only for routes starting at one of the tokens."""

    def check(params: RouteParams) -> bool:
        return not params.is_same_chain and params.from_token in tokens

    return check


def uni_request(**overrides):
    values = dict(
        from_chain_id=8453,
        to_chain_id=42161,
        from_token="UNI",
        to_token="ETH",
        amount=10**18,
    )
    values.update(overrides)
    return make_request(**values)


class TestFindRoute:
    """Tests for bridge token selection."""

    @pytest.mark.asyncio
    async def test_first_working_bridge_token(self):
        same = FakeProvider("uniswap", supports=only_same_chain)
        cross = FakeProvider("thirdweb", supports=bridges_from("WETH", "USDC"))
        builder = MultiHopRouteBuilder(same, cross, bridge_tokens=["native", "WETH", "USDC"])

        route = await builder.find_route(uni_request().route_params())

        assert route.bridge_token == "WETH"
        assert route.leg1 == RouteParams(8453, 8453, "UNI", "WETH")
        assert route.leg2 == RouteParams(8453, 42161, "WETH", "ETH")

    @pytest.mark.asyncio
    async def test_no_route_lists_tried_tokens(self):
        same = FakeProvider("uniswap", supports=only_same_chain)
        cross = FakeProvider("thirdweb", supports=False)
        builder = MultiHopRouteBuilder(same, cross, bridge_tokens=["native", "USDC"])

        with pytest.raises(SwapError) as exc_info:
            await builder.find_route(uni_request().route_params())

        error = exc_info.value
        assert error.code == SwapErrorCode.NO_ROUTE_FOUND
        assert "native" in error.message and "USDC" in error.message
        assert error.details["tried_bridge_tokens"] == ["native", "USDC"]

    @pytest.mark.asyncio
    async def test_three_leg_composition_is_not_used(self):
        """Bridge-then-swap on the destination chain is detected but not returned."""
        same = FakeProvider("uniswap", supports=only_same_chain)
        cross = FakeProvider(
            "thirdweb",
            supports=lambda p: not p.is_same_chain and p.from_token == p.to_token,
        )
        builder = MultiHopRouteBuilder(same, cross, bridge_tokens=["USDC"])

        with pytest.raises(SwapError) as exc_info:
            await builder.find_route(uni_request().route_params())

        assert exc_info.value.code == SwapErrorCode.NO_ROUTE_FOUND

    @pytest.mark.asyncio
    async def test_support_errors_are_treated_as_unsupported(self):
        same = FakeProvider("uniswap", support_error=RuntimeError("rpc down"))
        cross = FakeProvider("thirdweb", supports=bridges_from("native"))
        builder = MultiHopRouteBuilder(same, cross)

        assert await builder.supports_route(uni_request().route_params()) is False


class TestSupportsRoute:
    """Tests for when the composite offers itself."""

    @pytest.mark.asyncio
    async def test_same_chain_is_never_supported(self):
        builder = MultiHopRouteBuilder(FakeProvider("a"), FakeProvider("b"))
        assert await builder.supports_route(RouteParams(1, 1, "USDC", "WETH")) is False

    @pytest.mark.asyncio
    async def test_direct_cross_chain_route_is_not_composed(self):
        builder = MultiHopRouteBuilder(
            FakeProvider("uniswap", supports=only_same_chain),
            FakeProvider("thirdweb", supports=True),
        )
        assert await builder.supports_route(uni_request().route_params()) is False

    @pytest.mark.asyncio
    async def test_composable_route(self):
        builder = MultiHopRouteBuilder(
            FakeProvider("uniswap", supports=only_same_chain),
            FakeProvider("thirdweb", supports=bridges_from("native")),
        )
        assert await builder.supports_route(uni_request().route_params()) is True


class TestQuote:
    """Tests for the combined quote."""

    @pytest.mark.asyncio
    async def test_leg_two_uses_leg_one_output(self):
        same = FakeProvider(
            "uniswap",
            supports=only_same_chain,
            output_amount=400,
            gas_fee=10,
            duration=30,
            expires_at=2000.0,
        )
        cross = FakeProvider(
            "thirdweb",
            supports=bridges_from("native"),
            output_amount=380,
            bridge_fee=15,
            gas_fee=5,
            duration=120,
            expires_at=1500.0,
        )
        builder = MultiHopRouteBuilder(same, cross)

        quote = await builder.get_quote(uni_request(amount=1000))

        assert cross.quote_calls[0].amount == 400
        assert quote.estimated_receive_amount == 380
        assert quote.bridge_fee == 15
        assert quote.gas_fee == 15
        assert quote.estimated_duration == 150
        assert quote.expires_at == 1500.0
        assert quote.exchange_rate == 0.38

    def test_scaled_exchange_rate(self):
        assert scaled_exchange_rate(3, 1) == 0.3333
        assert scaled_exchange_rate(0, 5) == 0.0


class TestPrepare:
    """Tests for the combined transaction bundle."""

    @pytest.mark.asyncio
    async def test_bundle_is_leg_one_then_leg_two(self):
        same = FakeProvider("uniswap", supports=only_same_chain, output_amount=777, duration=30)
        cross = FakeProvider("thirdweb", supports=bridges_from("native"), duration=120)
        builder = MultiHopRouteBuilder(same, cross)

        prepared = await builder.prepare_swap(uni_request(amount=1000))

        assert prepared.provider == "multihop"
        assert [tx.chain_id for tx in prepared.transactions] == [8453, 8453]
        assert prepared.estimated_duration == 150
        assert prepared.metadata["bridge_token"] == "native"
        assert prepared.metadata["intermediate_amount"] == "777"
        assert [leg["provider"] for leg in prepared.metadata["legs"]] == ["uniswap", "thirdweb"]

    @pytest.mark.asyncio
    async def test_leg_requests(self):
        same = FakeProvider("uniswap", supports=only_same_chain, output_amount=777)
        cross = FakeProvider("thirdweb", supports=bridges_from("native"))
        builder = MultiHopRouteBuilder(same, cross)

        await builder.prepare_swap(uni_request(amount=1000))

        leg1 = same.prepare_calls[0]
        assert leg1.amount == 1000
        assert leg1.to_chain_id == 8453
        assert leg1.receiver == SENDER

        leg2 = cross.prepare_calls[0]
        assert leg2.amount == 777
        assert leg2.from_token == "native"
        assert leg2.sender == SENDER
        assert leg2.receiver == RECEIVER


class TestMonitor:
    """Tests for status lookups."""

    @pytest.mark.asyncio
    async def test_falls_back_to_cross_chain_provider(self):
        same = FakeProvider(
            "uniswap", status_error=SwapError(SwapErrorCode.PROVIDER_ERROR, "unknown tx")
        )
        cross = FakeProvider("thirdweb", status=TransactionStatus.PENDING)
        builder = MultiHopRouteBuilder(same, cross)

        status = await builder.monitor_transaction("0xabc", 8453)

        assert status == TransactionStatus.PENDING
        assert cross.status_calls == [("0xabc", 8453)]
