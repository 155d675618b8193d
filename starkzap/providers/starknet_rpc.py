"""
Starknet JSON-RPC provider.

Covers the read side of the node API the SDK needs: chain id, class hash
lookups (deployment checks), view calls, and transaction receipt/status
polling. Writes go through ``StarknetAccountClient``.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx
from starknet_py.hash.selector import get_selector_from_name

from .base import ChainReader
from ..config import settings
from ..core.errors import ContractNotFoundError, RpcError, TransientRpcError
from ..types.address import to_address
from ..types.calls import to_felt


logger = logging.getLogger(__name__)

CONTRACT_NOT_FOUND = 20
ENTRYPOINT_NOT_FOUND = 21
TXN_HASH_NOT_FOUND = 29


class StarknetRpcProvider(ChainReader):
    name = "starknet_rpc"

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not rpc_url:
            raise ValueError("rpc_url is required")
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s or settings.rpc_timeout_seconds
        self._client = client
        self._ids = itertools.count(1)

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            chain_id = await self.get_chain_id()
            return {"status": "healthy", "chainId": chain_id}
        except Exception as exc:
            return {"status": "error", "reason": str(exc)}

    async def get_chain_id(self) -> str:
        return await self._rpc_call("starknet_chainId", [])

    async def get_class_hash_at(self, address: str, block_id: str = "latest") -> str:
        return await self._rpc_call(
            "starknet_getClassHashAt",
            {"block_id": block_id, "contract_address": to_address(address)},
        )

    async def call_contract(
        self,
        contract_address: str,
        entrypoint: str,
        calldata: Optional[List[int]] = None,
        block_id: str = "latest",
    ) -> List[int]:
        request = {
            "contract_address": to_address(contract_address),
            "entry_point_selector": hex(get_selector_from_name(entrypoint)),
            "calldata": [hex(to_felt(item)) for item in (calldata or [])],
        }
        result = await self._rpc_call("starknet_call", {"request": request, "block_id": block_id})
        return [to_felt(item) for item in (result or [])]

    async def get_transaction_receipt(self, tx_hash: str) -> Dict[str, Any]:
        return await self._rpc_call("starknet_getTransactionReceipt", {"transaction_hash": tx_hash})

    async def get_transaction_status(self, tx_hash: str) -> Dict[str, Any]:
        return await self._rpc_call("starknet_getTransactionStatus", {"transaction_hash": tx_hash})

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _rpc_call(self, method: str, params: Any) -> Any:
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)

        try:
            response = await self._client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params},
            )
            response.raise_for_status()
        except (httpx.TimeoutException, httpx.RequestError) as exc:
            raise TransientRpcError(f"{method} failed: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code >= 500 or exc.response.status_code == 429:
                raise TransientRpcError(
                    f"{method} failed with HTTP {exc.response.status_code}"
                ) from exc
            raise RpcError(f"{method} failed with HTTP {exc.response.status_code}") from exc

        payload = response.json()
        error = payload.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            data = error.get("data") if isinstance(error, dict) else None
            logger.debug(f"RPC {method} returned error {code}: {message}")
            if code == CONTRACT_NOT_FOUND:
                raise ContractNotFoundError(message, code=code, data=data)
            raise RpcError(f"{method}: {message}", code=code, data=data)
        return payload.get("result")
