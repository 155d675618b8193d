"""
Account class templates.

A template pairs a declared account class hash with the constructor calldata
(and optionally the salt) derived from the signer's public key. Together with
a zero deployer they fully determine the counterfactual address.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import ValidationError
from ...types.calls import split_u256, to_felt


@dataclass(frozen=True)
class AccountClassTemplate:
    name: str
    class_hash: str
    build_constructor_calldata: Callable[[str], List[int]]
    get_salt: Optional[Callable[[str], int]] = None


def _single_key_calldata(public_key: str) -> List[int]:
    return [to_felt(public_key)]


def _argent_calldata(public_key: str) -> List[int]:
    # owner: Signer::Starknet(pubkey), guardian: Option::None
    return [0, to_felt(public_key), 1]


def _parse_eth_public_key(public_key: str) -> Tuple[int, int]:
    try:
        parsed = json.loads(public_key)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            'OpenZeppelinEthPreset: public key must be JSON: {"x":"0x...","y":"0x..."}'
        ) from exc

    if not isinstance(parsed, dict) or not parsed.get("x") or not parsed.get("y"):
        raise ValidationError("OpenZeppelinEthPreset: missing x or y in public key JSON")
    return to_felt(parsed["x"]), to_felt(parsed["y"])


def _eth_calldata(public_key: str) -> List[int]:
    x, y = _parse_eth_public_key(public_key)
    x_low, x_high = split_u256(x)
    y_low, y_high = split_u256(y)
    return [x_low, x_high, y_low, y_high]


def _eth_salt(public_key: str) -> int:
    x, _ = _parse_eth_public_key(public_key)
    return x & ((1 << 251) - 1)


DevnetPreset = AccountClassTemplate(
    name="devnet",
    class_hash="0x5b4b537eaa2399e3aa99c4e2e0208ebd6c71bc1467938cd52c798c601e43564",
    build_constructor_calldata=_single_key_calldata,
)

OpenZeppelinPreset = AccountClassTemplate(
    name="openzeppelin",
    class_hash="0x01d1777db36cdd06dd62cfde77b1b6ae06412af95d57a13dc40ac77b8a702381",
    build_constructor_calldata=_single_key_calldata,
)

# secp256k1 owner; public key is {"x": ..., "y": ...} JSON
OpenZeppelinEthPreset = AccountClassTemplate(
    name="openzeppelin_eth",
    class_hash="0x000b5bcc16b8b0d86c24996e22206f6071bb8d7307837a02720f0ce2fa1b3d7c",
    build_constructor_calldata=_eth_calldata,
    get_salt=_eth_salt,
)

ArgentPreset = AccountClassTemplate(
    name="argent",
    class_hash="0x036078334509b514626504edc9fb252328d1a240e4e948bef8d0c08dff45927f",
    build_constructor_calldata=_argent_calldata,
)

BraavosPreset = AccountClassTemplate(
    name="braavos",
    class_hash="0x00816dd0297efc55dc1e7559020a3a825e81ef734b558f03c83325d4da7e6253",
    build_constructor_calldata=_single_key_calldata,
)

# sponsored Braavos deploys go through this factory, called from an OZ account
# holding the same key; the factory installs BRAAVOS_IMPL_CLASS_HASH
BRAAVOS_FACTORY_ADDRESS = "0x3d94f65ebc7552eb517ddb374250a9525b605f25f4e41ded6e7d7381ff1c2e8"
BRAAVOS_IMPL_CLASS_HASH = BraavosPreset.class_hash

ArgentXV050Preset = AccountClassTemplate(
    name="argentx_v050",
    class_hash="0x073414441639dcd11d1846f287650a00c60c416b9d3ba45d31c651672125b2c2",
    build_constructor_calldata=_argent_calldata,
)

ACCOUNT_PRESETS: Dict[str, AccountClassTemplate] = {
    preset.name: preset
    for preset in (
        DevnetPreset,
        OpenZeppelinPreset,
        OpenZeppelinEthPreset,
        ArgentPreset,
        BraavosPreset,
        ArgentXV050Preset,
    )
}


def get_account_preset(name: str) -> AccountClassTemplate:
    preset = ACCOUNT_PRESETS.get(name.lower())
    if preset is None:
        raise ValidationError(f"Unknown account preset: {name}")
    return preset
