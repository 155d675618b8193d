from .address import address_to_int, same_address, to_address
from .amount import Amount, format_token_amount
from .calls import Call, join_u256, split_u256, to_felt, to_hex
from .chain import (
    DEVNET,
    MAINNET,
    NETWORKS,
    SEPOLIA,
    ChainId,
    ExplorerConfig,
    ExplorerProvider,
    NetworkPreset,
    get_network,
)
from .token import ETH, STRK, USDC, USDT, TOKEN_PRESETS, Token, get_token_by_address, get_token_by_symbol

__all__ = [
    "Amount",
    "format_token_amount",
    "Token",
    "ETH",
    "STRK",
    "USDC",
    "USDT",
    "TOKEN_PRESETS",
    "get_token_by_symbol",
    "get_token_by_address",
    "ChainId",
    "ExplorerConfig",
    "ExplorerProvider",
    "NetworkPreset",
    "MAINNET",
    "SEPOLIA",
    "DEVNET",
    "NETWORKS",
    "get_network",
    "Call",
    "split_u256",
    "join_u256",
    "to_felt",
    "to_hex",
    "to_address",
    "address_to_int",
    "same_address",
]
