"""
Ekubo swap provider.

Quotes come from the Ekubo quoter API; calls target the Ekubo router:

    transfer(router, amount_in)         fund the router
    swap | multihop_swap | multi_multihop_swap
    clear_minimum(token_out, min_out)   enforce slippage
    clear(token_in)                     refund unused input
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, StrictStr, ValidationError as PydanticValidationError

from ..models import PreparedSwap, SwapQuote, SwapRequest
from ..utils import BPS_DENOMINATOR, percent_to_bps, validate_slippage_bps
from ...errors import NoRoutesError, RouteProviderError, ValidationError
from ...routing.http import request_json
from ....config import settings
from ....types.address import to_address
from ....types.calls import Call, split_u256, to_felt
from ....types.chain import ChainId
from ....types.token import Token


logger = logging.getLogger(__name__)

EKUBO_QUOTER_CHAIN_IDS: Dict[ChainId, str] = {
    ChainId.SN_MAIN: "23448594291968334",
    ChainId.SN_SEPOLIA: "393402133025997798000961",
}

EKUBO_ROUTERS: Dict[ChainId, str] = {
    ChainId.SN_MAIN: "0x0199741822c2dc722f6f605204f35e56dbc23bceed54818168c4c49e4fb8737e",
    ChainId.SN_SEPOLIA: "0x0045f933adf0607292468ad1c1dedaa74d5ad166392590e72676a34d01d7b763",
}

MAX_U128 = 2**128 - 1
DEFAULT_SLIPPAGE_BPS = 100


class EkuboPoolKey(BaseModel):
    token0: StrictStr
    token1: StrictStr
    fee: StrictStr
    tick_spacing: Union[StrictStr, int]
    extension: StrictStr


class EkuboRouteStep(BaseModel):
    pool_key: EkuboPoolKey
    sqrt_ratio_limit: StrictStr
    skip_ahead: Union[StrictStr, int]


class EkuboQuoteSplit(BaseModel):
    amount_specified: StrictStr
    amount_calculated: StrictStr
    route: List[EkuboRouteStep]


class EkuboQuoteResponse(BaseModel):
    total_calculated: StrictStr
    price_impact: Optional[float] = None
    splits: List[EkuboQuoteSplit]


def parse_quote_response(payload: Any) -> EkuboQuoteResponse:
    if not isinstance(payload, dict):
        raise RouteProviderError("Ekubo quote response is malformed", provider="ekubo")
    if isinstance(payload.get("error"), str):
        raise RouteProviderError(f"Ekubo quote failed: {payload['error']}", provider="ekubo")
    try:
        return EkuboQuoteResponse.model_validate(payload)
    except PydanticValidationError as exc:
        raise RouteProviderError("Ekubo quote response is missing required fields", provider="ekubo") from exc


def _non_negative(value: Union[str, int], label: str) -> int:
    try:
        parsed = to_felt(value)
    except ValidationError as exc:
        raise RouteProviderError(f"Ekubo: invalid {label}: {value}", provider="ekubo") from exc
    if parsed < 0:
        raise RouteProviderError(f"Ekubo: {label} cannot be negative", provider="ekubo")
    return parsed


def _i129(value: int) -> List[int]:
    magnitude = abs(value)
    if magnitude > MAX_U128:
        raise RouteProviderError("Ekubo: value exceeds i129 magnitude range", provider="ekubo")
    return [magnitude, 1 if value < 0 else 0]


def _pool_key_calldata(pool_key: EkuboPoolKey) -> List[int]:
    return [
        to_felt(pool_key.token0),
        to_felt(pool_key.token1),
        _non_negative(pool_key.fee, "pool fee"),
        _non_negative(pool_key.tick_spacing, "pool tick spacing"),
        _non_negative(pool_key.extension, "pool extension"),
    ]


def _route_step_calldata(step: EkuboRouteStep) -> List[int]:
    return [
        *_pool_key_calldata(step.pool_key),
        *split_u256(_non_negative(step.sqrt_ratio_limit, "sqrt_ratio_limit")),
        _non_negative(step.skip_ahead, "skip_ahead"),
    ]


def _route_calldata(route: List[EkuboRouteStep]) -> List[int]:
    calldata = [len(route)]
    for step in route:
        calldata.extend(_route_step_calldata(step))
    return calldata


def assert_route_token_sequence(route: List[EkuboRouteStep], source_token: str) -> None:
    current = to_felt(source_token)
    for step in route:
        token0 = to_felt(step.pool_key.token0)
        token1 = to_felt(step.pool_key.token1)
        if current not in (token0, token1):
            raise RouteProviderError("Ekubo: quote route token sequence is invalid", provider="ekubo")
        current = token0 if current == token1 else token1


def build_swap_calls(
    quote: EkuboQuoteResponse,
    token_in: Token,
    token_out: Token,
    amount_in_base: int,
    router: str,
    slippage_bps: Optional[int] = None,
) -> List[Call]:
    slippage = validate_slippage_bps(DEFAULT_SLIPPAGE_BPS if slippage_bps is None else slippage_bps)
    if not quote.splits:
        raise NoRoutesError("Ekubo quote returned no routes", provider="ekubo")

    total_calculated = to_felt(quote.total_calculated)
    if total_calculated <= 0:
        raise NoRoutesError("Ekubo quote returned zero output", provider="ekubo")

    minimum_out = total_calculated * (BPS_DENOMINATOR - slippage) // BPS_DENOMINATOR
    if minimum_out <= 0:
        raise RouteProviderError("Calculated minimum output is zero", provider="ekubo")

    source_token = to_felt(token_in.address)
    first_split = quote.splits[0]
    if not first_split.route:
        raise RouteProviderError("Ekubo quote route is empty", provider="ekubo")

    if len(quote.splits) == 1 and len(first_split.route) == 1:
        step = first_split.route[0]
        swap_call = Call(
            router,
            "swap",
            [
                *_pool_key_calldata(step.pool_key),
                *split_u256(_non_negative(step.sqrt_ratio_limit, "single-route sqrt_ratio_limit")),
                _non_negative(step.skip_ahead, "single-route skip_ahead"),
                source_token,
                *_i129(amount_in_base),
            ],
        )
    elif len(quote.splits) == 1:
        assert_route_token_sequence(first_split.route, token_in.address)
        swap_call = Call(
            router,
            "multihop_swap",
            [
                *_route_calldata(first_split.route),
                source_token,
                *_i129(to_felt(first_split.amount_specified)),
            ],
        )
    else:
        splits_calldata = [len(quote.splits)]
        for split in quote.splits:
            if not split.route:
                raise RouteProviderError("Ekubo quote split route is empty", provider="ekubo")
            assert_route_token_sequence(split.route, token_in.address)
            splits_calldata.extend(
                [*_route_calldata(split.route), source_token, *_i129(to_felt(split.amount_specified))]
            )
        swap_call = Call(router, "multi_multihop_swap", splits_calldata)

    return [
        Call(token_in.address, "transfer", [to_felt(router), *split_u256(amount_in_base)]),
        swap_call,
        Call(router, "clear_minimum", [to_felt(token_out.address), *split_u256(minimum_out)]),
        Call(router, "clear", [source_token]),
    ]


class EkuboSwapProvider:
    id = "ekubo"

    def __init__(
        self,
        *,
        api_base: Optional[str] = None,
        routers: Optional[Dict[ChainId, str]] = None,
        timeout_s: Optional[int] = None,
    ) -> None:
        self.api_base = (api_base or settings.ekubo_api_base).rstrip("/")
        self.routers = {**EKUBO_ROUTERS, **(routers or {})}
        self.timeout_s = timeout_s

    def supports_chain(self, chain_id: ChainId) -> bool:
        return chain_id in EKUBO_QUOTER_CHAIN_IDS

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        quote = await self._fetch_quote(request)
        return self._to_swap_quote(quote, request.amount_in.to_base())

    async def build_route(self, request: SwapRequest) -> PreparedSwap:
        quote = await self._fetch_quote(request)
        amount_in_base = request.amount_in.to_base()
        calls = build_swap_calls(
            quote,
            token_in=request.token_in,
            token_out=request.token_out,
            amount_in_base=amount_in_base,
            router=to_address(self.routers[request.chain_id]),
            slippage_bps=request.slippage_bps,
        )
        logger.info(f"Ekubo built {len(calls)} calls across {len(quote.splits)} split(s)")
        return PreparedSwap(
            calls=calls,
            quote=self._to_swap_quote(quote, amount_in_base, route_call_count=len(calls)),
        )

    async def _fetch_quote(self, request: SwapRequest) -> EkuboQuoteResponse:
        quoter_chain_id = EKUBO_QUOTER_CHAIN_IDS.get(request.chain_id)
        if quoter_chain_id is None:
            raise RouteProviderError(
                f"Unsupported chain for Ekubo quote: {request.chain_id.value}", provider=self.id
            )

        url = (
            f"{self.api_base}/{quoter_chain_id}/{request.amount_in.to_base()}/"
            f"{request.token_in.address}/{request.token_out.address}"
        )
        payload = await request_json(self.id, "Ekubo quote", "GET", url, timeout_s=self.timeout_s)
        return parse_quote_response(payload)

    def _to_swap_quote(
        self,
        quote: EkuboQuoteResponse,
        amount_in_base: int,
        route_call_count: Optional[int] = None,
    ) -> SwapQuote:
        return SwapQuote(
            amount_in_base=amount_in_base,
            amount_out_base=to_felt(quote.total_calculated),
            route_call_count=route_call_count,
            price_impact_bps=percent_to_bps(quote.price_impact),
            provider=self.id,
        )
