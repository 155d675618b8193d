from __future__ import annotations

import math
from typing import Optional, Protocol, Union

from .interface import SwapProvider
from .models import SwapInput, SwapRequest
from ..errors import ValidationError
from ...types.chain import ChainId


BPS_DENOMINATOR = 10_000


class SwapSourceResolver(Protocol):
    def get_default_provider(self) -> SwapProvider:
        ...

    def get_provider(self, provider_id: str) -> SwapProvider:
        ...


def resolve_swap_source(
    source: Optional[Union[SwapProvider, str]],
    resolver: SwapSourceResolver,
) -> SwapProvider:
    """None → default provider, str → registered id, else the provider itself."""
    if source is None:
        return resolver.get_default_provider()
    if isinstance(source, str):
        return resolver.get_provider(source)
    return source


def hydrate_swap_request(swap_input: SwapInput, chain_id: ChainId, taker_address: str) -> SwapRequest:
    return SwapRequest(
        chain_id=swap_input.chain_id or chain_id,
        taker_address=swap_input.taker_address or taker_address,
        token_in=swap_input.token_in,
        token_out=swap_input.token_out,
        amount_in=swap_input.amount_in,
        slippage_bps=swap_input.slippage_bps,
    )


def assert_swap_context(provider: SwapProvider, request: SwapRequest, wallet_chain_id: ChainId) -> None:
    if request.chain_id != wallet_chain_id:
        raise ValidationError(
            f'Swap request chain "{request.chain_id.value}" does not match wallet chain '
            f'"{wallet_chain_id.value}"'
        )
    if not provider.supports_chain(request.chain_id):
        raise ValidationError(
            f'Swap provider "{provider.id}" does not support chain "{request.chain_id.value}"'
        )


def validate_slippage_bps(slippage_bps: int) -> int:
    if slippage_bps < 0 or slippage_bps >= BPS_DENOMINATOR:
        raise ValidationError("Invalid slippage bps")
    return slippage_bps


def percent_to_bps(value: Optional[float]) -> Optional[int]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return round(value * 100)
