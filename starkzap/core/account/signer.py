"""Signers: the key material behind an account."""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

import httpx
from eth_keys import keys
from starknet_py.hash.utils import message_signature, private_to_stark_key
from starknet_py.utils.typed_data import TypedData

from ..errors import SignerError, ValidationError
from ...types.calls import split_u256, to_felt


logger = logging.getLogger(__name__)

RawSign = Callable[[str, str], Awaitable[str]]

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


@runtime_checkable
class Signer(Protocol):
    """Implement this for custom signers (hardware wallets, MPC, ...).

    Every invoke, deploy_account and typed-data signature the SDK produces
    goes through these methods.
    """

    async def get_public_key(self) -> str:
        ...

    async def sign_message(self, typed_data: Dict[str, Any], account_address: str) -> List[int]:
        ...

    async def sign_transaction_hash(self, tx_hash: int) -> List[int]:
        ...


def typed_data_hash(typed_data: Dict[str, Any], account_address: str) -> int:
    """SNIP-12 message hash of ``typed_data`` for ``account_address``."""
    return TypedData.from_dict(typed_data).message_hash(to_felt(account_address))


class StarkSigner:
    """Stark curve signer holding a private key.

    Usage:
        signer = StarkSigner("0xPRIVATE_KEY")
    """

    def __init__(self, private_key: Union[str, int]):
        self._private_key = to_felt(private_key)
        self._public_key = private_to_stark_key(self._private_key)

    async def get_public_key(self) -> str:
        return hex(self._public_key)

    async def sign_message(self, typed_data: Dict[str, Any], account_address: str) -> List[int]:
        return await self.sign_transaction_hash(typed_data_hash(typed_data, account_address))

    async def sign_transaction_hash(self, tx_hash: int) -> List[int]:
        return list(message_signature(tx_hash, self._private_key))

    def __repr__(self) -> str:
        return f"StarkSigner(public_key={hex(self._public_key)})"


class EthereumSigner:
    """secp256k1 signer for accounts that verify Ethereum keys (``OpenZeppelinEthPreset``).

    The public key is the ``{"x": "0x...", "y": "0x..."}`` JSON the preset
    expects. Signatures are ``[r_low, r_high, s_low, s_high, y_parity]`` with
    low-s normalisation.
    """

    def __init__(self, private_key: Union[str, int]):
        try:
            key = private_key if isinstance(private_key, int) else int(_strip_hex(private_key), 16)
        except ValueError as exc:
            raise ValidationError("Invalid secp256k1 private key: must be hexadecimal") from exc
        if not 0 < key < SECP256K1_ORDER:
            raise ValidationError("Invalid secp256k1 private key: out of range")
        self._key = keys.PrivateKey(key.to_bytes(32, "big"))

    async def get_public_key(self) -> str:
        point = self._key.public_key.to_bytes()
        x = int.from_bytes(point[:32], "big")
        y = int.from_bytes(point[32:], "big")
        return json.dumps({"x": hex(x), "y": hex(y)}, separators=(",", ":"))

    async def sign_message(self, typed_data: Dict[str, Any], account_address: str) -> List[int]:
        return await self.sign_transaction_hash(typed_data_hash(typed_data, account_address))

    async def sign_transaction_hash(self, tx_hash: int) -> List[int]:
        signature = self._key.sign_msg_hash(tx_hash.to_bytes(32, "big"))
        r_low, r_high = split_u256(signature.r)
        s_low, s_high = split_u256(signature.s)
        return [r_low, r_high, s_low, s_high, signature.v]

    def __repr__(self) -> str:
        return f"EthereumSigner(address={self._key.public_key.to_checksum_address()})"


class PrivySigner:
    """Signer whose key lives in Privy; hashes are signed remotely.

    Pass either ``server_url`` (a backend that accepts ``{"walletId", "hash"}``
    and answers ``{"signature"}``) or a ``raw_sign(wallet_id, hash)``
    coroutine. The returned signature is 64 bytes, ``r || s``.
    """

    timeout_s: int = 10

    def __init__(
        self,
        wallet_id: str,
        public_key: str,
        *,
        server_url: Optional[str] = None,
        raw_sign: Optional[RawSign] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not server_url and raw_sign is None:
            raise ValidationError("PrivySigner requires either server_url or raw_sign")
        self.wallet_id = wallet_id
        self.public_key = public_key
        self.server_url = server_url
        self._raw_sign = raw_sign or self._sign_via_server
        self._client = client

    async def get_public_key(self) -> str:
        return self.public_key

    async def sign_message(self, typed_data: Dict[str, Any], account_address: str) -> List[int]:
        return await self.sign_transaction_hash(typed_data_hash(typed_data, account_address))

    async def sign_transaction_hash(self, tx_hash: int) -> List[int]:
        signature = _strip_hex(await self._raw_sign(self.wallet_id, hex(tx_hash)))
        if len(signature) != 128:
            raise SignerError(f"Privy: expected a 64-byte signature, got {len(signature) // 2} bytes")
        return [int(signature[:64], 16), int(signature[64:], 16)]

    async def _sign_via_server(self, wallet_id: str, message_hash: str) -> str:
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)

        try:
            response = await self._client.post(
                self.server_url,
                json={"walletId": wallet_id, "hash": message_hash},
            )
        except httpx.HTTPError as exc:
            raise SignerError(f"Privy: signing request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.status_code >= 400:
            detail = (payload.get("details") or payload.get("error")) if isinstance(payload, dict) else None
            raise SignerError(f"Privy: {detail or f'signing failed (HTTP {response.status_code})'}")

        signature = payload.get("signature") if isinstance(payload, dict) else None
        if not signature:
            raise SignerError("Privy: signing response has no signature")
        logger.debug(f"Privy signed {message_hash} for wallet {wallet_id}")
        return signature

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def __repr__(self) -> str:
        return f"PrivySigner(wallet_id={self.wallet_id})"


def _strip_hex(value: str) -> str:
    text = value.strip()
    return text[2:] if text.lower().startswith("0x") else text
