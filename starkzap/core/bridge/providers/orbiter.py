"""
Orbiter Finance maker-based bridge.

Quotes come from the Orbiter quote API and fall back to a flat estimate
when the API is unreachable. Transfers go through the Orbiter router on
the Starknet source chain.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..models import BridgeQuote, BridgeRequest, PreparedBridge
from ..utils import fee_adjusted_quote
from ...errors import RouteProviderError
from ...routing.http import request_json
from ....config import settings
from ....types.calls import Call, encode_short_string, split_u256, to_felt
from ....types.chain import ChainId


logger = logging.getLogger(__name__)

ORBITER_ROUTERS: Dict[ChainId, str] = {
    ChainId.SN_MAIN: "0x058680be0cf3f29c7a33474a218e5fed1ad213051cb2e9eac501a26852d64ca2",
    ChainId.SN_SEPOLIA: "0x045cf46534ccc555f5f80816b4f842780ad4cedd82825460310ff2e5e9aa999a",
}

ORBITER_TOKENS: Dict[ChainId, List[str]] = {
    ChainId.SN_MAIN: ["ETH", "STRK"],
    ChainId.SN_SEPOLIA: ["ETH", "STRK"],
}

ORBITER_CHAIN_NAMES: Dict[ChainId, str] = {
    ChainId.SN_MAIN: "STARKNET",
    ChainId.SN_SEPOLIA: "STARKNET_SEPOLIA",
    ChainId.ETH_MAIN: "ETHEREUM",
    ChainId.ETH_SEPOLIA: "SEPOLIA",
}

FALLBACK_FEE_BASE = 100_000_000_000_000
FALLBACK_TIME_SECONDS = 180


class OrbiterQuotePayload(BaseModel):
    estimatedDestinationAmount: Optional[Union[str, int]] = None
    fee: Optional[Union[str, int]] = None
    estimatedTime: Optional[int] = None


class OrbiterBridgeProvider:
    id = "orbiter"

    def __init__(self, *, api_base: Optional[str] = None, timeout_s: Optional[int] = None) -> None:
        self.api_base = (api_base or settings.orbiter_api_base).rstrip("/")
        self.timeout_s = timeout_s

    def supports_chain_pair(self, source_chain_id: ChainId, dest_chain_id: ChainId) -> bool:
        return (
            source_chain_id in ORBITER_ROUTERS
            and dest_chain_id in ORBITER_CHAIN_NAMES
            and source_chain_id.is_mainnet == dest_chain_id.is_mainnet
        )

    async def get_quote(self, request: BridgeRequest) -> BridgeQuote:
        self._assert_token_supported(request)
        payload = await self._fetch_quote(request)
        if payload is None:
            return fee_adjusted_quote(request, FALLBACK_FEE_BASE, FALLBACK_TIME_SECONDS, self.id)

        fee_base = to_felt(payload.fee or 0)
        return BridgeQuote(
            source_chain_id=request.source_chain_id,
            dest_chain_id=request.dest_chain_id,
            token=request.token,
            amount_base=request.amount.to_base(),
            dest_amount_base=to_felt(payload.estimatedDestinationAmount or 0),
            fee_base=fee_base,
            estimated_time_seconds=payload.estimatedTime or FALLBACK_TIME_SECONDS,
            provider=self.id,
        )

    async def build_route(self, request: BridgeRequest) -> PreparedBridge:
        quote = await self.get_quote(request)
        router = self._get_router(request.source_chain_id)
        call = Call(
            router,
            "send_cross_chain_message",
            [
                encode_short_string(ORBITER_CHAIN_NAMES[request.dest_chain_id]),
                to_felt(request.recipient),
                to_felt(request.token.address),
                *split_u256(request.amount.to_base()),
            ],
        )
        return PreparedBridge(calls=[call], quote=quote)

    def _assert_token_supported(self, request: BridgeRequest) -> None:
        supported = ORBITER_TOKENS.get(request.source_chain_id)
        if supported is None:
            raise RouteProviderError(
                f"Unsupported chain for Orbiter: {request.source_chain_id.value}", provider=self.id
            )
        if request.token.symbol.upper() not in supported:
            raise RouteProviderError(
                f"Orbiter does not support token: {request.token.symbol}. "
                f"Supported tokens: {', '.join(supported)}",
                provider=self.id,
            )

    def _get_router(self, chain_id: ChainId) -> str:
        router = ORBITER_ROUTERS.get(chain_id)
        if router is None:
            raise RouteProviderError(f"Unsupported chain for Orbiter: {chain_id.value}", provider=self.id)
        return router

    async def _fetch_quote(self, request: BridgeRequest) -> Optional[OrbiterQuotePayload]:
        """Return the API quote, or ``None`` when the API cannot provide one."""
        params = {
            "srcChain": ORBITER_CHAIN_NAMES[request.source_chain_id],
            "dstChain": ORBITER_CHAIN_NAMES[request.dest_chain_id],
            "token": request.token.symbol,
            "amount": str(request.amount.to_base()),
        }
        try:
            payload = await request_json(
                self.id, "Orbiter quote", "GET", f"{self.api_base}/quote", params=params, timeout_s=self.timeout_s
            )
            return OrbiterQuotePayload.model_validate(payload)
        except (RouteProviderError, PydanticValidationError) as exc:
            logger.warning(f"Orbiter quote API unavailable, using estimated fee: {exc}")
            return None
