"""
SNIP-29 Paymaster Provider.

Sponsored transactions are built by the paymaster (which returns typed data
for the account to sign) and then executed by it once the signature is
attached. Undeployed accounts use the ``deploy_and_invoke`` transaction type
so the paymaster deploys and invokes atomically.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .base import Provider
from ..config import settings
from ..core.errors import PaymasterError
from ..types.address import to_address
from ..types.calls import Call


logger = logging.getLogger(__name__)

DEFAULT_PAYMASTER_URLS: Dict[str, str] = {
    "SN_MAIN": "https://starknet.paymaster.avnu.fi",
    "SN_SEPOLIA": "https://sepolia.paymaster.avnu.fi",
}


@dataclass(frozen=True)
class PaymasterTimeBounds:
    """Validity window of a sponsored transaction (unix seconds)."""

    execute_after: Optional[int] = None
    execute_before: Optional[int] = None

    def to_rpc(self) -> Dict[str, str]:
        bounds: Dict[str, str] = {}
        if self.execute_after is not None:
            bounds["execute_after"] = hex(self.execute_after)
        if self.execute_before is not None:
            bounds["execute_before"] = hex(self.execute_before)
        return bounds


def sponsored_parameters(time_bounds: Optional[PaymasterTimeBounds] = None) -> Dict[str, Any]:
    parameters: Dict[str, Any] = {"version": "0x1", "fee_mode": {"mode": "sponsored"}}
    if time_bounds is not None:
        bounds = time_bounds.to_rpc()
        if bounds:
            parameters["time_bounds"] = bounds
    return parameters


def invoke_transaction(user_address: str, calls: Sequence[Call]) -> Dict[str, Any]:
    return {
        "type": "invoke",
        "invoke": {
            "user_address": to_address(user_address),
            "calls": [call.to_rpc() for call in calls],
        },
    }


def deploy_and_invoke_transaction(
    user_address: str,
    calls: Sequence[Call],
    deployment: Dict[str, Any],
) -> Dict[str, Any]:
    transaction: Dict[str, Any] = {"type": "deploy_and_invoke", "deployment": deployment}
    transaction["invoke"] = {
        "user_address": to_address(user_address),
        "calls": [call.to_rpc() for call in calls],
    }
    return transaction


def deploy_transaction(deployment: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "deploy", "deployment": deployment}


class PaymasterProvider(Provider):
    name = "paymaster"
    timeout_s = 20

    def __init__(
        self,
        rpc_url: str,
        *,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.api_key = settings.paymaster_api_key if api_key is None else api_key
        self._client = client
        self._ids = itertools.count(1)

    @classmethod
    def for_chain(cls, chain_id: str, *, rpc_url: Optional[str] = None, api_key: Optional[str] = None) -> "PaymasterProvider":
        url = rpc_url or settings.paymaster_url or DEFAULT_PAYMASTER_URLS.get(chain_id, "")
        return cls(url, api_key=api_key)

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Paymaster not configured"}

        try:
            available = await self.is_available()
            return {"status": "healthy" if available else "unavailable"}
        except Exception as exc:
            return {"status": "error", "reason": str(exc)}

    async def is_available(self) -> bool:
        return bool(await self._rpc_call("paymaster_isAvailable", []))

    async def build_transaction(
        self,
        transaction: Dict[str, Any],
        parameters: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Ask the paymaster to prepare ``transaction``.

        Returns the paymaster response; for invoke-bearing transactions it
        carries the ``typed_data`` the account must sign.
        """
        result = await self._rpc_call(
            "paymaster_buildTransaction",
            {"transaction": transaction, "parameters": parameters},
        )
        if not isinstance(result, dict):
            raise PaymasterError("Invalid paymaster build response")
        return result

    async def execute_transaction(
        self,
        transaction: Dict[str, Any],
        parameters: Dict[str, Any],
    ) -> str:
        result = await self._rpc_call(
            "paymaster_executeTransaction",
            {"transaction": transaction, "parameters": parameters},
        )
        tx_hash = result.get("transaction_hash") if isinstance(result, dict) else None
        if not tx_hash:
            raise PaymasterError("Paymaster did not return a transaction hash", data=result)
        logger.info(f"Paymaster executed transaction {tx_hash}")
        return tx_hash

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"content-type": "application/json"}
        if self.api_key:
            headers["x-paymaster-api-key"] = self.api_key
        return headers

    async def _rpc_call(self, method: str, params: Any) -> Any:
        if not self.rpc_url:
            raise PaymasterError("Paymaster provider is not configured")
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)

        try:
            response = await self._client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params},
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PaymasterError(f"{method} failed: {exc}") from exc

        payload = response.json()
        error = payload.get("error")
        if error:
            if isinstance(error, dict):
                raise PaymasterError(
                    error.get("message", str(error)),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise PaymasterError(str(error))
        return payload.get("result")


def signed_invoke(user_address: str, typed_data: Dict[str, Any], signature: List[int]) -> Dict[str, Any]:
    return {
        "user_address": to_address(user_address),
        "typed_data": typed_data,
        "signature": [hex(part) for part in signature],
    }
