"""
Counterfactual account identity.

The address of an account is known before it exists on chain: it is the
contract address the zero deployer would produce for the template's class
hash, salt and constructor calldata. Nothing here touches the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from starknet_py.hash.address import compute_address

from .presets import AccountClassTemplate, OpenZeppelinPreset
from .signer import Signer
from ...types.address import to_address
from ...types.calls import to_felt


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentData:
    """Everything needed to deploy the account (hex-encoded)."""

    address: str
    class_hash: str
    salt: str
    calldata: List[str] = field(default_factory=list)
    version: int = 1

    def to_rpc(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "class_hash": self.class_hash,
            "salt": self.salt,
            "calldata": list(self.calldata),
            "version": self.version,
        }


class AccountIdentity:
    """Signer + class template → public key, salt, calldata, address."""

    def __init__(self, signer: Signer, template: AccountClassTemplate = OpenZeppelinPreset):
        self.signer = signer
        self.template = template
        self._public_key: Optional[str] = None
        self._address: Optional[str] = None

    async def get_public_key(self) -> str:
        if self._public_key is None:
            self._public_key = await self.signer.get_public_key()
        return self._public_key

    async def get_salt(self) -> int:
        public_key = await self.get_public_key()
        if self.template.get_salt is not None:
            return self.template.get_salt(public_key)
        return to_felt(public_key)

    async def get_constructor_calldata(self) -> List[int]:
        return self.template.build_constructor_calldata(await self.get_public_key())

    async def get_address(self) -> str:
        if self._address is None:
            address = compute_address(
                class_hash=to_felt(self.template.class_hash),
                constructor_calldata=await self.get_constructor_calldata(),
                salt=await self.get_salt(),
                deployer_address=0,
            )
            self._address = to_address(address)
            logger.debug(f"Derived {self.template.name} account address {self._address}")
        return self._address

    async def get_deployment_data(self) -> DeploymentData:
        return DeploymentData(
            address=await self.get_address(),
            class_hash=hex(to_felt(self.template.class_hash)),
            salt=hex(await self.get_salt()),
            calldata=[hex(item) for item in await self.get_constructor_calldata()],
        )
