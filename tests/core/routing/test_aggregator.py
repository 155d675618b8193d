"""
Tests for route aggregation: registry, quote fan-out, scoring and selection.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from starkzap.core.bridge.models import BridgeQuote, BridgeRequest, PreparedBridge
from starkzap.core.errors import RouteProviderError, ValidationError
from starkzap.core.routing.aggregator import BridgeAggregator, RouteAggregator, SwapAggregator, score_route
from starkzap.core.swap.models import PreparedSwap, SwapQuote, SwapRequest
from starkzap.types.amount import Amount
from starkzap.types.chain import ChainId
from starkzap.types.token import ETH, STRK


FEE_CEILING = 1000
TIME_CEILING = 1000


@dataclass
class FakeBridge:
    id: str
    fee: int = 0
    time: Optional[int] = 60
    error: Optional[Exception] = None

    def supports_chain_pair(self, source, dest):
        return True

    async def get_quote(self, request):
        if self.error is not None:
            raise self.error
        return BridgeQuote(
            source_chain_id=request.source_chain_id,
            dest_chain_id=request.dest_chain_id,
            token=request.token,
            amount_base=request.amount.to_base(),
            dest_amount_base=request.amount.to_base() - self.fee,
            fee_base=self.fee,
            estimated_time_seconds=self.time,
            provider=self.id,
        )

    async def build_route(self, request):
        return PreparedBridge(quote=await self.get_quote(request), calls=[])


@dataclass
class FakeSwap:
    id: str
    amount_out: int

    def supports_chain(self, chain_id):
        return True

    async def get_quote(self, request):
        return SwapQuote(amount_in_base=request.amount_in.to_base(), amount_out_base=self.amount_out, provider=self.id)

    async def build_route(self, request):
        return PreparedSwap(quote=await self.get_quote(request))


def _bridge_request():
    return BridgeRequest(
        source_chain_id=ChainId.SN_MAIN,
        dest_chain_id=ChainId.ETH_MAIN,
        token=ETH,
        amount=Amount.from_base(10**6, ETH),
        recipient="0x1",
    )


def _aggregator(*providers):
    return BridgeAggregator(providers, fee_ceiling=FEE_CEILING, time_ceiling=TIME_CEILING)


# =============================================================================
# Scoring
# =============================================================================


class TestScoreRoute:
    def test_fee_priority_weights(self):
        assert score_route(100, 500, True, FEE_CEILING, TIME_CEILING) == pytest.approx(100 * 0.7 + 500 * 0.3)

    def test_time_priority_weights(self):
        assert score_route(100, 500, False, FEE_CEILING, TIME_CEILING) == pytest.approx(100 * 0.3 + 500 * 0.7)

    def test_unknown_time_scores_as_ceiling(self):
        assert score_route(0, None, True, FEE_CEILING, TIME_CEILING) == pytest.approx(1000 * 0.3)

    def test_defaults_come_from_settings(self, monkeypatch):
        monkeypatch.setattr("starkzap.core.routing.aggregator.settings.route_fee_ceiling_base", 10)
        monkeypatch.setattr("starkzap.core.routing.aggregator.settings.route_time_ceiling_seconds", 10)
        assert score_route(10, 10) == pytest.approx(1000)


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    def test_base_aggregator_needs_a_metric(self):
        with pytest.raises(TypeError):
            RouteAggregator()

    def test_register_and_lookup(self):
        fast, cheap = FakeBridge("fast"), FakeBridge("cheap")
        aggregator = _aggregator(fast)
        aggregator.register_provider(cheap, make_default=False)

        assert aggregator.list_providers() == ["fast", "cheap"]
        assert aggregator.get_provider("cheap") is cheap
        assert aggregator.get_default_provider() is fast

    def test_unknown_provider_raises(self):
        with pytest.raises(ValidationError, match="Unknown bridge provider"):
            _aggregator().get_provider("missing")

    def test_no_default_raises(self):
        aggregator = _aggregator()
        aggregator.register_provider(FakeBridge("a"), make_default=False)
        with pytest.raises(ValidationError):
            aggregator.get_default_provider()

    def test_unregister(self):
        aggregator = _aggregator(FakeBridge("a"), FakeBridge("b"))
        assert aggregator.unregister_provider("a")
        assert not aggregator.unregister_provider("a")
        assert aggregator.get_default_provider().id == "b"

    def test_registries_are_independent(self):
        first = _aggregator(FakeBridge("a"))
        second = _aggregator()
        assert second.list_providers() == []
        assert first.list_providers() == ["a"]


# =============================================================================
# Quotes and selection
# =============================================================================


class TestQuotes:
    @pytest.mark.asyncio
    async def test_failing_provider_is_recorded_not_raised(self):
        aggregator = _aggregator(
            FakeBridge("ok", fee=5),
            FakeBridge("broken", error=RouteProviderError("Orbiter quote failed (500)", provider="broken")),
        )

        outcomes = await aggregator.get_all_quotes(_bridge_request())

        assert len(outcomes) == 2
        assert outcomes[0].ok and outcomes[0].quote.fee_base == 5
        assert not outcomes[1].ok and "500" in outcomes[1].error

    @pytest.mark.asyncio
    async def test_quotes_are_fetched_concurrently(self):
        started = []

        class SlowBridge(FakeBridge):
            async def get_quote(self, request):
                started.append(self.id)
                await asyncio.sleep(0.01)
                assert len(started) == 2
                return await super().get_quote(request)

        outcomes = await _aggregator(SlowBridge("a"), SlowBridge("b")).get_all_quotes(_bridge_request())
        assert all(outcome.ok for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_fee_priority_picks_cheapest(self):
        aggregator = _aggregator(FakeBridge("cheap", fee=10, time=900), FakeBridge("fast", fee=400, time=10))

        best = await aggregator.get_best_quote(_bridge_request())

        assert best.provider_id == "cheap"
        assert len(best.all_quotes) == 2

    @pytest.mark.asyncio
    async def test_time_priority_picks_fastest(self):
        aggregator = _aggregator(FakeBridge("cheap", fee=10, time=900), FakeBridge("fast", fee=400, time=10))

        best = await aggregator.get_best_quote(_bridge_request(), prioritize_fees=False)

        assert best.provider_id == "fast"

    @pytest.mark.asyncio
    async def test_max_fee_zero_filters_everything(self):
        aggregator = _aggregator(FakeBridge("a", fee=1), FakeBridge("b", fee=2))
        assert await aggregator.get_best_quote(_bridge_request(), max_fee=0) is None

    @pytest.mark.asyncio
    async def test_max_time_keeps_unknown_times(self):
        aggregator = _aggregator(FakeBridge("slow", fee=0, time=5000), FakeBridge("unknown", fee=0, time=None))
        best = await aggregator.get_best_quote(_bridge_request(), max_time=100)
        assert best.provider_id == "unknown"

    @pytest.mark.asyncio
    async def test_provider_allow_list(self):
        aggregator = _aggregator(FakeBridge("cheap", fee=0), FakeBridge("pricey", fee=100))
        best = await aggregator.get_best_quote(_bridge_request(), providers=["pricey"])
        assert best.provider_id == "pricey"

    @pytest.mark.asyncio
    async def test_ties_break_on_fee_then_time(self):
        # equal scores: a is faster, b is cheaper
        aggregator = _aggregator(FakeBridge("a", fee=30, time=100), FakeBridge("b", fee=0, time=170))
        assert score_route(30, 100, True, FEE_CEILING, TIME_CEILING) == pytest.approx(
            score_route(0, 170, True, FEE_CEILING, TIME_CEILING)
        )
        best = await aggregator.get_best_quote(_bridge_request())
        assert best.provider_id == "b"

    @pytest.mark.asyncio
    async def test_bridge_builds_with_the_winner(self):
        winner = FakeBridge("winner", fee=1)
        winner.build_route = AsyncMock(wraps=winner.build_route)
        aggregator = _aggregator(winner, FakeBridge("loser", fee=500))

        routed = await aggregator.bridge(_bridge_request())

        assert routed.provider_id == "winner"
        winner.build_route.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bridge_returns_none_without_quotes(self):
        aggregator = _aggregator(FakeBridge("broken", error=RouteProviderError("down")))
        assert await aggregator.bridge(_bridge_request()) is None


class TestSwapAggregation:
    @pytest.mark.asyncio
    async def test_best_output_wins(self):
        aggregator = SwapAggregator([FakeSwap("avnu", 990), FakeSwap("ekubo", 1000)])
        request = SwapRequest(
            chain_id=ChainId.SN_MAIN, token_in=STRK, token_out=ETH, amount_in=Amount.from_base(1000, STRK)
        )

        routed = await aggregator.swap(request)

        assert routed.provider_id == "ekubo"
        assert routed.prepared.quote.amount_out_base == 1000

    @pytest.mark.asyncio
    async def test_shortfall_counts_as_fee(self):
        aggregator = SwapAggregator([FakeSwap("avnu", 990), FakeSwap("ekubo", 1000)])
        request = SwapRequest(
            chain_id=ChainId.SN_MAIN, token_in=STRK, token_out=ETH, amount_in=Amount.from_base(1000, STRK)
        )

        best = await aggregator.get_best_quote(request, max_fee=5)
        assert best.provider_id == "ekubo"
        # shortfall is measured among the allowed quotes only
        assert await aggregator.get_best_quote(request, max_fee=5, providers=["avnu"]) is not None
