"""
Tests for the extension-backed and Cartridge-backed wallet variants.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from starkzap.core.errors import ContractNotFoundError, NotDeployedError, RpcError, WalletError
from starkzap.core.execution.models import FeeMode
from starkzap.core.wallet.browser import BrowserWallet
from starkzap.core.wallet.cartridge import CartridgeWallet
from starkzap.providers.paymaster import PaymasterTimeBounds
from starkzap.types.address import to_address
from starkzap.types.calls import Call
from starkzap.types.chain import ChainId


ADDRESS = to_address("0x123")
CALLS = [Call("0x1", "a")]


@pytest.fixture
def extension():
    double = MagicMock()
    double.address = ADDRESS
    double.execute = AsyncMock(return_value="0xext")
    double.sign_message = AsyncMock(return_value=[1])
    double.estimate_invoke_fee = AsyncMock(return_value="estimate")
    double.simulate = AsyncMock(return_value={})
    double.disconnect = AsyncMock()
    return double


@pytest.fixture
def session():
    double = MagicMock()
    double.address = ADDRESS
    double.execute = AsyncMock(return_value="0xsession")
    double.execute_sponsored = AsyncMock(return_value="0xgasless")
    double.build_sponsored = AsyncMock(return_value={"typed_data": {}})
    double.sign_sponsored = AsyncMock(return_value={"signed": True})
    double.deploy = AsyncMock(return_value={"code": "SUCCESS", "transaction_hash": "0xdeployed"})
    double.sign_message = AsyncMock(return_value=[2])
    double.estimate_invoke_fee = AsyncMock(return_value="estimate")
    double.simulate = AsyncMock(return_value={})
    double.disconnect = AsyncMock()
    return double


# =============================================================================
# BrowserWallet
# =============================================================================


class TestBrowserWallet:
    def test_requires_connected_address(self, mock_rpc):
        with pytest.raises(WalletError, match="failed to connect"):
            BrowserWallet(MagicMock(address=""), mock_rpc, ChainId.SN_SEPOLIA)

    @pytest.mark.asyncio
    async def test_create_reads_chain_and_class_hash(self, extension, mock_rpc):
        wallet = await BrowserWallet.create(extension, mock_rpc)
        assert wallet.chain_id is ChainId.SN_SEPOLIA
        assert wallet.get_class_hash() == "0x1234"

    @pytest.mark.asyncio
    async def test_create_tolerates_undeployed_account(self, extension, undeployed_rpc):
        wallet = await BrowserWallet.create(extension, undeployed_rpc, ChainId.SN_SEPOLIA)
        assert wallet.get_class_hash() == "0x0"

    @pytest.mark.asyncio
    async def test_create_propagates_other_errors(self, extension, mock_rpc):
        mock_rpc.get_class_hash_at = AsyncMock(side_effect=RpcError("boom"))
        with pytest.raises(RpcError):
            await BrowserWallet.create(extension, mock_rpc, ChainId.SN_SEPOLIA)

    @pytest.mark.asyncio
    async def test_execute_through_extension(self, extension, mock_rpc):
        wallet = BrowserWallet(extension, mock_rpc, ChainId.SN_SEPOLIA)
        tx = await wallet.execute(CALLS)
        assert tx.hash == "0xext"

    @pytest.mark.asyncio
    async def test_execute_requires_deployment(self, extension, undeployed_rpc):
        wallet = BrowserWallet(extension, undeployed_rpc, ChainId.SN_SEPOLIA)
        with pytest.raises(NotDeployedError):
            await wallet.execute(CALLS)

    @pytest.mark.asyncio
    async def test_unsupported_operations(self, extension, mock_rpc):
        wallet = BrowserWallet(extension, mock_rpc, ChainId.SN_SEPOLIA)
        with pytest.raises(WalletError, match="sponsored"):
            await wallet.execute(CALLS, fee_mode=FeeMode.SPONSORED)
        with pytest.raises(WalletError, match="deployment"):
            await wallet.deploy()

    @pytest.mark.asyncio
    async def test_sponsored_preflight_fails_like_execute(self, extension, undeployed_rpc):
        wallet = BrowserWallet(extension, undeployed_rpc, ChainId.SN_SEPOLIA)

        result = await wallet.preflight(CALLS, fee_mode=FeeMode.SPONSORED)

        assert not result.ok
        assert "sponsored" in result.reason
        extension.simulate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delegates_and_disconnects(self, extension, mock_rpc):
        wallet = BrowserWallet(extension, mock_rpc, ChainId.SN_SEPOLIA)
        assert await wallet.sign_message({}) == [1]
        assert await wallet.estimate_fee(CALLS) == "estimate"
        assert (await wallet.preflight(CALLS)).ok
        await wallet.disconnect()
        extension.disconnect.assert_awaited_once()


# =============================================================================
# CartridgeWallet
# =============================================================================


class TestCartridgeWallet:
    def test_requires_session_address(self, mock_rpc):
        with pytest.raises(WalletError, match="Cartridge"):
            CartridgeWallet(MagicMock(address=None), mock_rpc, ChainId.SN_MAIN)

    @pytest.mark.asyncio
    async def test_user_pays_execute(self, session, mock_rpc):
        wallet = CartridgeWallet(session, mock_rpc, ChainId.SN_MAIN)
        assert (await wallet.execute(CALLS)).hash == "0xsession"

    @pytest.mark.asyncio
    async def test_sponsored_execute_uses_session_paymaster(self, session, mock_rpc):
        wallet = CartridgeWallet(
            session, mock_rpc, ChainId.SN_MAIN, time_bounds=PaymasterTimeBounds(execute_after=1)
        )

        tx = await wallet.execute(CALLS, fee_mode=FeeMode.SPONSORED)

        assert tx.hash == "0xgasless"
        parameters = session.execute_sponsored.await_args.args[1]
        assert parameters["fee_mode"] == {"mode": "sponsored"}
        assert parameters["time_bounds"] == {"execute_after": "0x1"}

    @pytest.mark.asyncio
    async def test_deploy(self, session, undeployed_rpc):
        wallet = CartridgeWallet(session, undeployed_rpc, ChainId.SN_MAIN)
        assert (await wallet.deploy()).hash == "0xdeployed"

    @pytest.mark.asyncio
    async def test_deploy_failure(self, session, mock_rpc):
        session.deploy = AsyncMock(return_value={"code": "CANCELED", "message": "User rejected"})
        wallet = CartridgeWallet(session, mock_rpc, ChainId.SN_MAIN)
        with pytest.raises(WalletError, match="User rejected"):
            await wallet.deploy()

    @pytest.mark.asyncio
    async def test_prepare_sponsored_builds_then_signs(self, session, mock_rpc):
        wallet = CartridgeWallet(session, mock_rpc, ChainId.SN_MAIN)

        assert await wallet.prepare_sponsored(CALLS) == {"signed": True}
        session.sign_sponsored.assert_awaited_once_with({"typed_data": {}})

    @pytest.mark.asyncio
    async def test_delegates_and_disconnects(self, session, mock_rpc):
        wallet = CartridgeWallet(session, mock_rpc, ChainId.SN_MAIN, fee_mode="sponsored")
        assert wallet.get_fee_mode() == FeeMode.SPONSORED
        assert await wallet.sign_message({}) == [2]
        assert (await wallet.preflight(CALLS)).ok
        await wallet.disconnect()
        session.disconnect.assert_awaited_once()
