"""Token metadata and well-known Starknet token presets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .address import to_address


@dataclass(frozen=True)
class Token:
    address: str
    decimals: int
    symbol: str
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", to_address(self.address))


ETH = Token(
    address="0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7",
    decimals=18,
    symbol="ETH",
    name="Ether",
)
STRK = Token(
    address="0x04718f5a0fc34cc1af16a1cdee98ffb20c31f5cd61d6ab07201858f4287c938d",
    decimals=18,
    symbol="STRK",
    name="Starknet Token",
)
USDC = Token(
    address="0x053c91253bc9682c04929ca02ed00b3e423f6710d2ee7e0d5ebb06f3ecf368a8",
    decimals=6,
    symbol="USDC",
    name="USD Coin",
)
USDT = Token(
    address="0x068f5c6a61780768455de69077e07e89787839bf8166decfbf92b645209c0fb8",
    decimals=6,
    symbol="USDT",
    name="Tether USD",
)

TOKEN_PRESETS: Dict[str, Token] = {token.symbol: token for token in (ETH, STRK, USDC, USDT)}


def get_token_by_symbol(symbol: str) -> Optional[Token]:
    return TOKEN_PRESETS.get(symbol.upper())


def get_token_by_address(address: str) -> Optional[Token]:
    normalized = to_address(address)
    for token in TOKEN_PRESETS.values():
        if token.address == normalized:
            return token
    return None
