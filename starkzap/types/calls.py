"""Contract calls and felt encoding helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple, Union

from starknet_py.hash.selector import get_selector_from_name
from starknet_py.net.client_models import Call as StarknetPyCall

from ..core.errors import ValidationError
from .address import to_address


U128_MASK = (1 << 128) - 1
MAX_U256 = (1 << 256) - 1

Feltish = Union[int, str]


def to_felt(value: Feltish) -> int:
    """Coerce an int, decimal string or 0x-hex string into a felt int."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid felt: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid felt: {value!r}") from exc


def to_hex(value: Feltish) -> str:
    return hex(to_felt(value))


def split_u256(value: int) -> Tuple[int, int]:
    """Return ``(low, high)`` 128-bit limbs of a u256."""
    if value < 0 or value > MAX_U256:
        raise ValidationError(f"Value out of u256 range: {value}")
    return value & U128_MASK, value >> 128


def join_u256(low: Feltish, high: Feltish) -> int:
    return to_felt(low) + (to_felt(high) << 128)


def encode_short_string(text: str) -> int:
    if len(text) > 31:
        raise ValidationError(f"Short string too long: {text!r}")
    return int.from_bytes(text.encode("ascii"), "big")


def decode_short_string(value: Feltish) -> str:
    felt = to_felt(value)
    if felt == 0:
        return ""
    return felt.to_bytes((felt.bit_length() + 7) // 8, "big").decode("ascii", errors="replace")


@dataclass(frozen=True)
class Call:
    """One contract invocation inside a multicall."""

    contract_address: str
    entrypoint: str
    calldata: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "contract_address", to_address(self.contract_address))
        object.__setattr__(self, "calldata", [to_felt(item) for item in self.calldata])

    @property
    def selector(self) -> int:
        return get_selector_from_name(self.entrypoint)

    def to_rpc(self) -> Dict[str, Any]:
        """Paymaster / JSON-RPC shape: ``{to, selector, calldata}`` as hex strings."""
        return {
            "to": self.contract_address,
            "selector": hex(self.selector),
            "calldata": [hex(item) for item in self.calldata],
        }

    def to_starknet_py(self) -> StarknetPyCall:
        return StarknetPyCall(
            to_addr=int(self.contract_address, 16),
            selector=self.selector,
            calldata=list(self.calldata),
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Call":
        """Accept venue-style ``{contractAddress, entrypoint, calldata}`` dicts."""
        address = payload.get("contractAddress") or payload.get("contract_address") or payload.get("to")
        entrypoint = payload.get("entrypoint") or payload.get("entry_point")
        calldata = payload.get("calldata") or []
        if not address or not entrypoint or not isinstance(calldata, list):
            raise ValidationError(f"Malformed call: {payload!r}")
        return cls(contract_address=address, entrypoint=entrypoint, calldata=calldata)


def flatten_calls(groups: Sequence[Sequence[Call]]) -> List[Call]:
    flattened: List[Call] = []
    for group in groups:
        flattened.extend(group)
    return flattened
