"""
AVNU swap aggregator.

Quotes come from ``GET /swap/v3/quotes``; the best (first) quote is turned
into calls with ``POST /swap/v3/build``. Sepolia falls back to the mainnet
API host when the Sepolia host has no route.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, StrictStr, ValidationError as PydanticValidationError

from ..models import PreparedSwap, SwapQuote, SwapRequest
from ..utils import BPS_DENOMINATOR, percent_to_bps, validate_slippage_bps
from ...errors import NoRoutesError, RouteProviderError, ValidationError
from ...routing.http import error_message_from_payload, request_json
from ....config import settings
from ....types.calls import Call, to_felt
from ....types.chain import ChainId


logger = logging.getLogger(__name__)

DEFAULT_AVNU_API_BASES: Dict[ChainId, List[str]] = {
    ChainId.SN_MAIN: ["https://starknet.api.avnu.fi"],
    ChainId.SN_SEPOLIA: ["https://sepolia.api.avnu.fi", "https://starknet.api.avnu.fi"],
}


class AvnuQuotePayload(BaseModel):
    quoteId: StrictStr
    sellAmount: StrictStr
    buyAmount: StrictStr
    priceImpact: Optional[float] = None


class AvnuBuildCall(BaseModel):
    contractAddress: StrictStr
    entrypoint: StrictStr
    calldata: List[Any]


class AvnuBuildPayload(BaseModel):
    calls: List[AvnuBuildCall]


def parse_quotes_response(payload: Any) -> List[AvnuQuotePayload]:
    if isinstance(payload, list):
        raw_quotes = payload
    elif isinstance(payload, dict) and isinstance(payload.get("content"), list):
        raw_quotes = payload["content"]
    elif isinstance(payload, dict) and isinstance(payload.get("quotes"), list):
        raw_quotes = payload["quotes"]
    else:
        raise RouteProviderError("AVNU quotes response is malformed", provider="avnu")

    try:
        return [AvnuQuotePayload.model_validate(item) for item in raw_quotes]
    except PydanticValidationError as exc:
        raise RouteProviderError("AVNU quote is missing required fields", provider="avnu") from exc


def parse_build_response(payload: Any) -> List[Call]:
    try:
        parsed = AvnuBuildPayload.model_validate(payload)
    except PydanticValidationError as exc:
        raise RouteProviderError("AVNU build response is malformed", provider="avnu") from exc

    if not parsed.calls:
        raise RouteProviderError("AVNU build returned no calls", provider="avnu")
    try:
        return [
            Call(contract_address=call.contractAddress, entrypoint=call.entrypoint, calldata=call.calldata)
            for call in parsed.calls
        ]
    except ValidationError as exc:
        raise RouteProviderError(f"AVNU build call is invalid: {exc}", provider="avnu") from exc


def _to_swap_quote(quote: AvnuQuotePayload, route_call_count: Optional[int] = None) -> SwapQuote:
    return SwapQuote(
        amount_in_base=to_felt(quote.sellAmount),
        amount_out_base=to_felt(quote.buyAmount),
        route_call_count=route_call_count,
        price_impact_bps=percent_to_bps(quote.priceImpact),
        provider="avnu",
    )


class AvnuSwapProvider:
    id = "avnu"

    def __init__(
        self,
        *,
        api_bases: Optional[Dict[ChainId, List[str]]] = None,
        quotes_page_size: Optional[int] = None,
        timeout_s: Optional[int] = None,
    ) -> None:
        if api_bases is None and settings.avnu_api_base:
            override = [settings.avnu_api_base.rstrip("/")]
            api_bases = {ChainId.SN_MAIN: override, ChainId.SN_SEPOLIA: override}
        self.api_bases = {**DEFAULT_AVNU_API_BASES, **(api_bases or {})}
        self.quotes_page_size = quotes_page_size or settings.avnu_quotes_page_size
        self.timeout_s = timeout_s

    def supports_chain(self, chain_id: ChainId) -> bool:
        return chain_id in (ChainId.SN_MAIN, ChainId.SN_SEPOLIA)

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        quote, _ = await self._fetch_quote(request)
        return _to_swap_quote(quote)

    async def build_route(self, request: SwapRequest) -> PreparedSwap:
        quote, api_base = await self._fetch_quote(request)

        body: Dict[str, Any] = {"quoteId": quote.quoteId, "includeApprove": True}
        if request.taker_address:
            body["takerAddress"] = request.taker_address
        if request.slippage_bps is not None:
            body["slippage"] = validate_slippage_bps(request.slippage_bps) / BPS_DENOMINATOR

        payload = await request_json(
            self.id, "AVNU build", "POST", f"{api_base}/swap/v3/build", json=body, timeout_s=self.timeout_s
        )
        calls = parse_build_response(payload)
        logger.info(f"AVNU built {len(calls)} calls for quote {quote.quoteId}")
        return PreparedSwap(calls=calls, quote=_to_swap_quote(quote, route_call_count=len(calls)))

    def _get_api_bases(self, chain_id: ChainId) -> List[str]:
        bases = self.api_bases.get(chain_id)
        if not bases:
            raise RouteProviderError(f"Unsupported chain for AVNU quote: {chain_id.value}", provider=self.id)
        return list(bases)

    async def _fetch_quote_from_base(self, api_base: str, request: SwapRequest) -> AvnuQuotePayload:
        params = {
            "sellTokenAddress": request.token_in.address,
            "buyTokenAddress": request.token_out.address,
            "sellAmount": hex(request.amount_in.to_base()),
            "size": str(self.quotes_page_size),
        }
        if request.taker_address:
            params["takerAddress"] = request.taker_address

        payload = await request_json(
            self.id, "AVNU quote", "GET", f"{api_base}/swap/v3/quotes", params=params, timeout_s=self.timeout_s
        )
        quotes = parse_quotes_response(payload)
        if not quotes:
            detail = error_message_from_payload(payload)
            raise NoRoutesError(
                f"AVNU quote returned no routes: {detail}" if detail else "AVNU quote returned no routes",
                provider=self.id,
            )
        return quotes[0]

    async def _fetch_quote(self, request: SwapRequest) -> Tuple[AvnuQuotePayload, str]:
        failures = []
        for api_base in self._get_api_bases(request.chain_id):
            try:
                return await self._fetch_quote_from_base(api_base, request), api_base
            except RouteProviderError as exc:
                logger.debug(f"AVNU quote from {api_base} failed: {exc}")
                failures.append(f"{api_base}: {exc}")

        raise NoRoutesError(
            "AVNU quote returned no routes for this pair/amount. Try a larger amount, "
            f"another token pair, or switch source. ({' | '.join(failures)})",
            provider=self.id,
        )
