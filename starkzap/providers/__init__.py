from .account_client import StarknetAccountClient
from .base import ChainReader, Provider
from .paymaster import PaymasterProvider, PaymasterTimeBounds
from .starknet_rpc import StarknetRpcProvider

__all__ = [
    "Provider",
    "ChainReader",
    "StarknetRpcProvider",
    "PaymasterProvider",
    "PaymasterTimeBounds",
    "StarknetAccountClient",
]
