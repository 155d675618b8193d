"""
Tests for the StarkZap entry point.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from starkzap import StarkZap
from starkzap.core.errors import ValidationError
from starkzap.core.routing.aggregator import BridgeAggregator, SwapAggregator
from starkzap.core.staking.presets import STAKING_CONTRACTS
from starkzap.core.wallet.browser import BrowserWallet
from starkzap.core.wallet.cartridge import CartridgeWallet
from starkzap.providers.paymaster import PaymasterProvider
from starkzap.types.address import to_address
from starkzap.types.chain import ChainId, ExplorerConfig, ExplorerProvider, SEPOLIA


ADDRESS = to_address("0x123")


@pytest.fixture(autouse=True)
def no_settings_overrides(monkeypatch):
    for field in ("paymaster_url", "rpc_url", "explorer_base_url"):
        monkeypatch.setattr(f"starkzap.sdk.settings.{field}", "")
    monkeypatch.setattr("starkzap.sdk.settings.explorer_provider", "voyager")


@pytest.fixture
def sdk(mock_rpc):
    paymaster = MagicMock()
    paymaster.close = AsyncMock()
    return StarkZap("sepolia", rpc=mock_rpc, paymaster=paymaster)


class TestConstruction:
    def test_network_presets(self):
        sdk = StarkZap("mainnet")

        assert sdk.chain_id is ChainId.SN_MAIN
        assert sdk.rpc_url == "https://api.cartridge.gg/x/starknet/mainnet"
        assert isinstance(sdk.paymaster, PaymasterProvider)
        assert sdk.paymaster.rpc_url == "https://starknet.paymaster.avnu.fi"
        assert sdk.explorer == ExplorerConfig(provider=ExplorerProvider.VOYAGER)

    def test_explicit_urls_override_preset(self):
        sdk = StarkZap(SEPOLIA, rpc_url="https://rpc.test", paymaster_url="https://pm.test")

        assert sdk.rpc.rpc_url == "https://rpc.test"
        assert sdk.paymaster.rpc_url == "https://pm.test"

    def test_devnet_has_no_paymaster(self):
        sdk = StarkZap("devnet")

        assert sdk.chain_id is ChainId.SN_SEPOLIA
        assert sdk.paymaster is None

    def test_unknown_network(self):
        with pytest.raises(ValidationError, match="Unknown network"):
            StarkZap("goerli")

    def test_aggregators_and_staking(self, sdk):
        assert isinstance(sdk.swap_aggregator(), SwapAggregator)
        assert sdk.swap_aggregator().list_providers() == ["avnu", "ekubo"]
        assert isinstance(sdk.bridge_aggregator(), BridgeAggregator)
        assert sdk.bridge_aggregator().list_providers() == ["starkgate", "orbiter", "layerswap"]
        assert sdk.staking_contract() == STAKING_CONTRACTS[ChainId.SN_SEPOLIA]


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_cartridge(self, sdk):
        session = MagicMock(address=ADDRESS)

        wallet = await sdk.connect_cartridge(session)

        assert isinstance(wallet, CartridgeWallet)
        assert wallet.chain_id is ChainId.SN_SEPOLIA
        assert wallet.staking_contract == STAKING_CONTRACTS[ChainId.SN_SEPOLIA]
        assert wallet.swap_providers.list_providers() == ["avnu", "ekubo"]

    @pytest.mark.asyncio
    async def test_connect_browser_wallet_with_custom_routing(self, sdk):
        extension = MagicMock(address=ADDRESS)
        routing = SwapAggregator()

        wallet = await sdk.connect_browser_wallet(extension, swap_providers=routing)

        assert isinstance(wallet, BrowserWallet)
        assert wallet.swap_providers is routing
        assert wallet.explorer is sdk.explorer

    @pytest.mark.asyncio
    async def test_connect_wallet_forwards_shared_clients(self, sdk, monkeypatch):
        create = AsyncMock(return_value=MagicMock(address=ADDRESS))
        monkeypatch.setattr("starkzap.sdk.Wallet.create", create)
        signer = MagicMock()

        await sdk.connect_wallet(signer, fee_mode="sponsored")

        args, kwargs = create.call_args
        assert args == (signer, sdk.rpc, ChainId.SN_SEPOLIA, sdk.rpc_url)
        assert kwargs["paymaster"] is sdk.paymaster
        assert kwargs["fee_mode"] == "sponsored"
        assert kwargs["account_address"] is None


@pytest.mark.asyncio
async def test_close_releases_clients(sdk, mock_rpc):
    async with sdk:
        pass

    mock_rpc.close.assert_awaited_once()
    sdk.paymaster.close.assert_awaited_once()
