"""
Layerswap deposit-address bridge.

Layerswap watches a deposit address and releases funds on the destination
chain, so a cross-chain route is a single transfer to that address.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..models import BridgeQuote, BridgeRequest, PreparedBridge
from ..utils import fee_adjusted_quote
from ...errors import RouteProviderError
from ...routing.http import request_json
from ....config import settings
from ....types.calls import Call, split_u256, to_felt
from ....types.chain import ChainId


logger = logging.getLogger(__name__)

LAYERSWAP_NETWORKS: Dict[ChainId, str] = {
    ChainId.SN_MAIN: "STARKNET_MAINNET",
    ChainId.SN_SEPOLIA: "STARKNET_SEPOLIA",
    ChainId.ETH_MAIN: "ETHEREUM_MAINNET",
    ChainId.ETH_SEPOLIA: "ETHEREUM_SEPOLIA",
}

LAYERSWAP_TOKENS: Dict[ChainId, List[str]] = {
    ChainId.SN_MAIN: ["ETH", "STRK"],
    ChainId.SN_SEPOLIA: ["ETH"],
}

FALLBACK_FEE_BASE = 500_000_000_000_000
FALLBACK_TIME_SECONDS = 300


class LayerswapSwapPayload(BaseModel):
    to_amount: Union[str, int]
    estimated_arrival_time: Optional[int] = None
    deposit_address: Optional[str] = None


def parse_swap_response(payload: Any) -> LayerswapSwapPayload:
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    try:
        return LayerswapSwapPayload.model_validate(payload)
    except PydanticValidationError as exc:
        raise RouteProviderError("Layerswap swap response is malformed", provider="layerswap") from exc


class LayerswapBridgeProvider:
    id = "layerswap"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout_s: Optional[int] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.layerswap_api_key
        self.api_base = (api_base or settings.layerswap_api_base).rstrip("/")
        self.timeout_s = timeout_s

    def supports_chain_pair(self, source_chain_id: ChainId, dest_chain_id: ChainId) -> bool:
        return (
            source_chain_id in LAYERSWAP_TOKENS
            and dest_chain_id in LAYERSWAP_NETWORKS
            and source_chain_id.is_mainnet == dest_chain_id.is_mainnet
        )

    async def get_quote(self, request: BridgeRequest) -> BridgeQuote:
        quote, _ = await self._quote_with_deposit(request)
        return quote

    async def build_route(self, request: BridgeRequest) -> PreparedBridge:
        quote, deposit_address = await self._quote_with_deposit(request)
        amount_base = request.amount.to_base()

        if request.source_chain_id == request.dest_chain_id:
            target = request.recipient
        elif deposit_address:
            target = deposit_address
        else:
            raise RouteProviderError(
                "Layerswap did not return a deposit address for this route", provider=self.id
            )

        calls = [Call(request.token.address, "transfer", [to_felt(target), *split_u256(amount_base)])]
        return PreparedBridge(calls=calls, quote=quote)

    async def _quote_with_deposit(self, request: BridgeRequest):
        self._assert_token_supported(request)
        if request.source_chain_id == request.dest_chain_id:
            return fee_adjusted_quote(request, 0, 0, self.id), None

        swap = await self._fetch_swap(request)
        if swap is None:
            return fee_adjusted_quote(request, FALLBACK_FEE_BASE, FALLBACK_TIME_SECONDS, self.id), None

        amount_base = request.amount.to_base()
        dest_amount_base = to_felt(swap.to_amount)
        quote = BridgeQuote(
            source_chain_id=request.source_chain_id,
            dest_chain_id=request.dest_chain_id,
            token=request.token,
            amount_base=amount_base,
            dest_amount_base=dest_amount_base,
            fee_base=amount_base - dest_amount_base,
            estimated_time_seconds=swap.estimated_arrival_time or FALLBACK_TIME_SECONDS,
            provider=self.id,
        )
        return quote, swap.deposit_address

    def _assert_token_supported(self, request: BridgeRequest) -> None:
        supported = LAYERSWAP_TOKENS.get(request.source_chain_id, [])
        if request.token.symbol.upper() not in supported:
            raise RouteProviderError(
                f"Layerswap does not support token: {request.token.symbol}. "
                f"Supported tokens: {', '.join(supported) or 'none'}",
                provider=self.id,
            )

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"authorization": f"Bearer {self.api_key}"}

    async def _fetch_swap(self, request: BridgeRequest) -> Optional[LayerswapSwapPayload]:
        body = {
            "source_network": LAYERSWAP_NETWORKS[request.source_chain_id],
            "destination_network": LAYERSWAP_NETWORKS[request.dest_chain_id],
            "source_token": request.token.symbol,
            "destination_token": request.token.symbol,
            "amount": str(request.amount.to_base()),
            "destination_address": request.recipient,
            "use_deposit_address": True,
        }
        try:
            payload = await request_json(
                self.id,
                "Layerswap quote",
                "POST",
                f"{self.api_base}/swaps",
                json=body,
                headers=self._headers(),
                timeout_s=self.timeout_s,
            )
            return parse_swap_response(payload)
        except RouteProviderError as exc:
            logger.warning(f"Layerswap API unavailable, using estimated fee: {exc}")
            return None
