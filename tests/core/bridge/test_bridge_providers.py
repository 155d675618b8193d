"""
Tests for the Starkgate, Orbiter and Layerswap bridge adapters.
"""

import json

import httpx
import pytest
import respx

from starkzap.core.bridge.models import BridgeInput, BridgeRequest
from starkzap.core.bridge.providers import (
    LayerswapBridgeProvider,
    OrbiterBridgeProvider,
    StarkgateBridgeProvider,
)
from starkzap.core.bridge.providers.orbiter import ORBITER_ROUTERS
from starkzap.core.bridge.providers.starkgate import STARKGATE_BRIDGES, BridgeDirection, get_direction
from starkzap.core.bridge.utils import fee_adjusted_quote, resolve_bridge_input
from starkzap.core.errors import RouteProviderError, ValidationError
from starkzap.core.routing.aggregator import BridgeAggregator
from starkzap.types.address import to_address
from starkzap.types.amount import Amount
from starkzap.types.calls import encode_short_string
from starkzap.types.chain import ChainId
from starkzap.types.token import ETH, STRK, USDC


STARKNET_RECIPIENT = "0x0000000000000000000000000000000000000000000000000000000000000abc"
L1_RECIPIENT = "0x50ac5CFcc81BB0872e85255D7079F8a529345D16"
ORBITER_BASE = "https://orbiter.test"
LAYERSWAP_BASE = "https://layerswap.test"


def _request(source=ChainId.SN_MAIN, dest=ChainId.ETH_MAIN, token=ETH, amount=10**18, recipient=L1_RECIPIENT):
    return BridgeRequest(
        source_chain_id=source,
        dest_chain_id=dest,
        token=token,
        amount=Amount.from_base(amount, token),
        recipient=recipient,
    )


# =============================================================================
# Shared helpers
# =============================================================================


class TestBridgeHelpers:
    def test_fee_adjusted_quote(self):
        quote = fee_adjusted_quote(_request(amount=100), 10, 60, "x")
        assert quote.dest_amount_base == 90
        assert quote.fee_base == 10

    def test_fee_larger_than_amount_raises(self):
        with pytest.raises(RouteProviderError, match="does not cover"):
            fee_adjusted_quote(_request(amount=5), 10, 60, "x")

    def test_resolve_input_fills_wallet_defaults(self):
        aggregator = BridgeAggregator([StarkgateBridgeProvider(relayer_url="")])
        bridge_input = BridgeInput(dest_chain_id=ChainId.SN_MAIN, token=STRK, amount=Amount.from_unit("1", STRK))

        provider, request = resolve_bridge_input(bridge_input, ChainId.SN_MAIN, STARKNET_RECIPIENT, aggregator)

        assert provider.id == "starkgate"
        assert request.source_chain_id is ChainId.SN_MAIN
        assert request.recipient == STARKNET_RECIPIENT

    def test_resolve_input_rejects_foreign_source(self):
        aggregator = BridgeAggregator([StarkgateBridgeProvider(relayer_url="")])
        bridge_input = BridgeInput(
            dest_chain_id=ChainId.SN_MAIN,
            token=ETH,
            amount=Amount.from_unit("1", ETH),
            source_chain_id=ChainId.ETH_MAIN,
        )
        with pytest.raises(ValidationError, match="does not match wallet chain"):
            resolve_bridge_input(bridge_input, ChainId.SN_MAIN, STARKNET_RECIPIENT, aggregator)

    def test_resolve_input_rejects_unsupported_pair(self):
        aggregator = BridgeAggregator([StarkgateBridgeProvider(relayer_url="")])
        bridge_input = BridgeInput(dest_chain_id=ChainId.ETH_SEPOLIA, token=ETH, amount=Amount.from_unit("1", ETH))
        with pytest.raises(ValidationError, match="does not support chain pair"):
            resolve_bridge_input(bridge_input, ChainId.SN_MAIN, STARKNET_RECIPIENT, aggregator)


# =============================================================================
# Starkgate
# =============================================================================


class TestStarkgate:
    def test_directions(self):
        assert get_direction(ChainId.SN_MAIN, ChainId.SN_MAIN) is BridgeDirection.L2_TO_L2
        assert get_direction(ChainId.ETH_MAIN, ChainId.SN_MAIN) is BridgeDirection.L1_TO_L2
        assert get_direction(ChainId.SN_MAIN, ChainId.ETH_MAIN) is BridgeDirection.L2_TO_L1
        with pytest.raises(RouteProviderError):
            get_direction(ChainId.ETH_MAIN, ChainId.ETH_MAIN)

    def test_supports_chain_pair(self):
        provider = StarkgateBridgeProvider(relayer_url="")
        assert provider.supports_chain_pair(ChainId.SN_MAIN, ChainId.ETH_MAIN)
        assert not provider.supports_chain_pair(ChainId.SN_MAIN, ChainId.ETH_SEPOLIA)
        assert not provider.supports_chain_pair(ChainId.ETH_MAIN, ChainId.ETH_MAIN)

    @pytest.mark.asyncio
    async def test_quotes_per_direction(self):
        provider = StarkgateBridgeProvider(relayer_url="")

        withdraw = await provider.get_quote(_request())
        deposit = await provider.get_quote(_request(source=ChainId.ETH_MAIN, dest=ChainId.SN_MAIN))

        assert (withdraw.fee_base, withdraw.estimated_time_seconds) == (0, 14_400)
        assert (deposit.fee_base, deposit.estimated_time_seconds) == (200_000_000_000_000, 600)

    @pytest.mark.asyncio
    async def test_unsupported_token(self):
        with pytest.raises(RouteProviderError, match="does not support token"):
            await StarkgateBridgeProvider(relayer_url="").get_quote(_request(token=USDC, amount=10))

    @pytest.mark.asyncio
    async def test_withdraw_call(self):
        provider = StarkgateBridgeProvider(relayer_url="")
        prepared = await provider.build_route(_request(amount=(1 << 128) + 3))

        (call,) = prepared.calls
        bridge = STARKGATE_BRIDGES[True]["ETH"]
        assert call.entrypoint == "initiate_token_withdraw"
        assert call.contract_address == to_address(bridge.l2_bridge)
        assert call.calldata == [int(bridge.l1_token, 16), int(L1_RECIPIENT, 16), 3, 1]

    @pytest.mark.asyncio
    async def test_withdraw_requires_l1_recipient(self):
        with pytest.raises(RouteProviderError, match="Starkgate: L1 recipient is not an Ethereum address"):
            await StarkgateBridgeProvider(relayer_url="").build_route(_request(recipient=STARKNET_RECIPIENT))

    @pytest.mark.asyncio
    async def test_same_chain_is_a_transfer(self):
        prepared = await StarkgateBridgeProvider(relayer_url="").build_route(
            _request(dest=ChainId.SN_MAIN, token=USDC, amount=5, recipient=STARKNET_RECIPIENT)
        )
        assert prepared.calls[0].entrypoint == "transfer"
        assert prepared.quote.fee_base == 0

    @pytest.mark.asyncio
    async def test_deposit_requires_relayer(self):
        request = _request(source=ChainId.ETH_MAIN, dest=ChainId.SN_MAIN, recipient=STARKNET_RECIPIENT)
        with pytest.raises(RouteProviderError, match="Starkgate: L1 to L2 deposits require a relayer"):
            await StarkgateBridgeProvider(relayer_url="").build_route(request)

        prepared = await StarkgateBridgeProvider(relayer_url="https://relayer.test").build_route(request)
        assert prepared.calls[0].entrypoint == "deposit"

    @pytest.mark.asyncio
    async def test_sepolia_has_no_strk_bridge_by_default(self):
        with pytest.raises(RouteProviderError):
            await StarkgateBridgeProvider(relayer_url="").get_quote(
                _request(source=ChainId.SN_SEPOLIA, dest=ChainId.ETH_SEPOLIA, token=STRK)
            )


# =============================================================================
# Orbiter
# =============================================================================


class TestOrbiter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_api_quote(self):
        route = respx.get(f"{ORBITER_BASE}/quote").mock(
            return_value=httpx.Response(
                200, json={"estimatedDestinationAmount": "990", "fee": "10", "estimatedTime": 60}
            )
        )
        provider = OrbiterBridgeProvider(api_base=ORBITER_BASE)

        quote = await provider.get_quote(_request(amount=1000))

        assert (quote.dest_amount_base, quote.fee_base, quote.estimated_time_seconds) == (990, 10, 60)
        assert route.calls.last.request.url.params["dstChain"] == "ETHEREUM"

    @pytest.mark.asyncio
    @respx.mock
    async def test_api_failure_falls_back_to_estimate(self):
        respx.get(f"{ORBITER_BASE}/quote").mock(return_value=httpx.Response(503))
        provider = OrbiterBridgeProvider(api_base=ORBITER_BASE)

        quote = await provider.get_quote(_request())

        assert quote.fee_base == 10**14
        assert quote.estimated_time_seconds == 180

    @pytest.mark.asyncio
    async def test_unsupported_token(self):
        with pytest.raises(RouteProviderError, match="Orbiter does not support token"):
            await OrbiterBridgeProvider(api_base=ORBITER_BASE).get_quote(_request(token=USDC, amount=10))

    @pytest.mark.asyncio
    @respx.mock
    async def test_build_route_targets_router(self):
        respx.get(f"{ORBITER_BASE}/quote").mock(return_value=httpx.Response(500))
        provider = OrbiterBridgeProvider(api_base=ORBITER_BASE)

        prepared = await provider.build_route(_request())

        (call,) = prepared.calls
        assert call.contract_address == to_address(ORBITER_ROUTERS[ChainId.SN_MAIN])
        assert call.entrypoint == "send_cross_chain_message"
        assert call.calldata[0] == encode_short_string("ETHEREUM")
        assert call.calldata[2] == int(ETH.address, 16)


# =============================================================================
# Layerswap
# =============================================================================


class TestLayerswap:
    @pytest.mark.asyncio
    @respx.mock
    async def test_cross_chain_quote_and_deposit(self):
        route = respx.post(f"{LAYERSWAP_BASE}/swaps").mock(
            return_value=httpx.Response(
                200,
                json={"data": {"to_amount": "900", "estimated_arrival_time": 120, "deposit_address": "0xdead"}},
            )
        )
        provider = LayerswapBridgeProvider(api_key="key", api_base=LAYERSWAP_BASE)

        prepared = await provider.build_route(_request(amount=1000))

        assert prepared.quote.fee_base == 100
        assert prepared.quote.estimated_time_seconds == 120
        assert prepared.calls[0].calldata[0] == 0xDEAD
        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer key"
        assert json.loads(request.content)["destination_network"] == "ETHEREUM_MAINNET"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_deposit_address(self):
        respx.post(f"{LAYERSWAP_BASE}/swaps").mock(return_value=httpx.Response(200, json={"to_amount": "900"}))
        provider = LayerswapBridgeProvider(api_key="", api_base=LAYERSWAP_BASE)

        with pytest.raises(RouteProviderError, match="deposit address"):
            await provider.build_route(_request(amount=1000))

    @pytest.mark.asyncio
    @respx.mock
    async def test_api_failure_falls_back_to_estimate(self):
        respx.post(f"{LAYERSWAP_BASE}/swaps").mock(side_effect=httpx.ConnectError("down"))
        provider = LayerswapBridgeProvider(api_key="", api_base=LAYERSWAP_BASE)

        quote = await provider.get_quote(_request())

        assert quote.fee_base == 5 * 10**14
        assert quote.estimated_time_seconds == 300

    @pytest.mark.asyncio
    async def test_same_chain_transfer_is_free(self):
        provider = LayerswapBridgeProvider(api_key="", api_base=LAYERSWAP_BASE)

        prepared = await provider.build_route(_request(dest=ChainId.SN_MAIN, recipient=STARKNET_RECIPIENT))

        assert prepared.quote.fee_base == 0
        assert prepared.calls[0].calldata[0] == int(STARKNET_RECIPIENT, 16)

    def test_supports_chain_pair(self):
        provider = LayerswapBridgeProvider(api_key="", api_base=LAYERSWAP_BASE)
        assert provider.supports_chain_pair(ChainId.SN_SEPOLIA, ChainId.ETH_SEPOLIA)
        assert not provider.supports_chain_pair(ChainId.ETH_MAIN, ChainId.SN_MAIN)
