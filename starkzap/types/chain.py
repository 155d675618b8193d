"""Chain identifiers, explorer settings and network presets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from ..core.errors import ValidationError


class ChainId(str, Enum):
    """Chains the SDK knows about.

    Only the ``SN_*`` members are Starknet chains a wallet can live on; the
    ``ETH_*`` members appear as bridge endpoints.
    """

    SN_MAIN = "SN_MAIN"
    SN_SEPOLIA = "SN_SEPOLIA"
    ETH_MAIN = "ETH_MAIN"
    ETH_SEPOLIA = "ETH_SEPOLIA"

    @classmethod
    def from_value(cls, value: Union["ChainId", str, int]) -> "ChainId":
        """Accept an enum member, a literal ("SN_MAIN") or a felt (hex or int)."""
        if isinstance(value, ChainId):
            return value
        if isinstance(value, int):
            return cls.from_felt(value)
        text = str(value).strip()
        if text.lower().startswith("0x"):
            return cls.from_felt(int(text, 16))
        try:
            return cls(text.upper())
        except ValueError as exc:
            raise ValidationError(f"Unknown chain id: {value!r}") from exc

    @classmethod
    def from_felt(cls, felt: int) -> "ChainId":
        length = max(1, (felt.bit_length() + 7) // 8)
        try:
            literal = felt.to_bytes(length, "big").decode("ascii")
        except UnicodeDecodeError as exc:
            raise ValidationError(f"Unknown chain id felt: {hex(felt)}") from exc
        return cls.from_value(literal)

    def to_felt(self) -> int:
        return int.from_bytes(self.value.encode("ascii"), "big")

    def to_hex(self) -> str:
        return hex(self.to_felt())

    @property
    def is_mainnet(self) -> bool:
        return self in (ChainId.SN_MAIN, ChainId.ETH_MAIN)

    @property
    def is_starknet(self) -> bool:
        return self.value.startswith("SN_")

    @property
    def is_ethereum(self) -> bool:
        return self.value.startswith("ETH_")


class ExplorerProvider(str, Enum):
    VOYAGER = "voyager"
    STARKSCAN = "starkscan"


@dataclass(frozen=True)
class ExplorerConfig:
    provider: ExplorerProvider = ExplorerProvider.VOYAGER
    base_url: Optional[str] = None


@dataclass(frozen=True)
class NetworkPreset:
    name: str
    chain_id: ChainId
    rpc_url: str
    explorer_url: Optional[str] = None
    paymaster_url: Optional[str] = None


MAINNET = NetworkPreset(
    name="Mainnet",
    chain_id=ChainId.SN_MAIN,
    rpc_url="https://api.cartridge.gg/x/starknet/mainnet",
    explorer_url="https://voyager.online",
    paymaster_url="https://starknet.paymaster.avnu.fi",
)
SEPOLIA = NetworkPreset(
    name="Sepolia",
    chain_id=ChainId.SN_SEPOLIA,
    rpc_url="https://api.cartridge.gg/x/starknet/sepolia",
    explorer_url="https://sepolia.voyager.online",
    paymaster_url="https://sepolia.paymaster.avnu.fi",
)
# Devnet reports the Sepolia chain id
DEVNET = NetworkPreset(
    name="Devnet",
    chain_id=ChainId.SN_SEPOLIA,
    rpc_url="http://localhost:5050",
)

NETWORKS: Dict[str, NetworkPreset] = {
    "mainnet": MAINNET,
    "sepolia": SEPOLIA,
    "devnet": DEVNET,
}


def get_network(name: Union[str, NetworkPreset]) -> NetworkPreset:
    if isinstance(name, NetworkPreset):
        return name
    preset = NETWORKS.get(name.lower())
    if preset is None:
        raise ValidationError(
            f"Unknown network {name!r}. Expected one of: {', '.join(sorted(NETWORKS))}"
        )
    return preset
