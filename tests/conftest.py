"""Shared fixtures for the StarkZap test suite."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from starkzap.core.errors import ContractNotFoundError
from starkzap.types.chain import ChainId


WALLET_ADDRESS = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
OTHER_ADDRESS = "0x0000000000000000000000000000000000000000000000000000000000000abc"
POOL_ADDRESS = "0x0000000000000000000000000000000000000000000000000000000000000f00"
TX_HASH = "0x5ca1ab1e"


@pytest.fixture
def mock_rpc():
    """A ChainReader double whose account is deployed unless told otherwise."""
    rpc = MagicMock()
    rpc.get_chain_id = AsyncMock(return_value=ChainId.SN_SEPOLIA.to_hex())
    rpc.get_class_hash_at = AsyncMock(return_value="0x1234")
    rpc.call_contract = AsyncMock(return_value=[])
    rpc.get_transaction_receipt = AsyncMock(
        return_value={"finality_status": "ACCEPTED_ON_L2", "execution_status": "SUCCEEDED"}
    )
    rpc.get_transaction_status = AsyncMock(
        return_value={"finality_status": "ACCEPTED_ON_L2", "execution_status": "SUCCEEDED"}
    )
    rpc.close = AsyncMock()
    return rpc


@pytest.fixture
def undeployed_rpc(mock_rpc):
    mock_rpc.get_class_hash_at = AsyncMock(side_effect=ContractNotFoundError("Contract not found", code=20))
    return mock_rpc
