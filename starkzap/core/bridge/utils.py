from __future__ import annotations

from typing import Optional, Protocol, Tuple, Union

from .interface import BridgeProvider
from .models import BridgeInput, BridgeQuote, BridgeRequest
from ..errors import RouteProviderError, ValidationError
from ...types.chain import ChainId


class BridgeSourceResolver(Protocol):
    def get_default_provider(self) -> BridgeProvider:
        ...

    def get_provider(self, provider_id: str) -> BridgeProvider:
        ...


def resolve_bridge_source(
    source: Optional[Union[BridgeProvider, str]],
    resolver: BridgeSourceResolver,
) -> BridgeProvider:
    if source is None:
        return resolver.get_default_provider()
    if isinstance(source, str):
        return resolver.get_provider(source)
    return source


def hydrate_bridge_request(
    bridge_input: BridgeInput,
    chain_id: ChainId,
    recipient: Optional[str] = None,
) -> BridgeRequest:
    return BridgeRequest(
        source_chain_id=bridge_input.source_chain_id or chain_id,
        dest_chain_id=bridge_input.dest_chain_id or chain_id,
        token=bridge_input.token,
        amount=bridge_input.amount,
        recipient=bridge_input.recipient or recipient or "",
        slippage_bps=bridge_input.slippage_bps,
    )


def assert_bridge_context(provider: BridgeProvider, request: BridgeRequest, wallet_chain_id: ChainId) -> None:
    source = request.source_chain_id.value
    dest = request.dest_chain_id.value
    if request.source_chain_id != wallet_chain_id:
        raise ValidationError(
            f'Bridge source chain "{source}" does not match wallet chain "{wallet_chain_id.value}"'
        )
    if not provider.supports_chain_pair(request.source_chain_id, request.dest_chain_id):
        raise ValidationError(
            f'Bridge provider "{provider.id}" does not support chain pair "{source}" -> "{dest}"'
        )


def resolve_bridge_input(
    bridge_input: BridgeInput,
    wallet_chain_id: ChainId,
    wallet_address: str,
    resolver: BridgeSourceResolver,
) -> Tuple[BridgeProvider, BridgeRequest]:
    """Pick the provider, fill wallet defaults and validate the pair."""
    provider = resolve_bridge_source(bridge_input.provider, resolver)
    request = hydrate_bridge_request(bridge_input, wallet_chain_id, recipient=wallet_address)
    if not request.recipient:
        raise ValidationError("Bridge recipient is required")
    assert_bridge_context(provider, request, wallet_chain_id)
    return provider, request


def fee_adjusted_quote(request: BridgeRequest, fee_base: int, estimated_time_seconds: int, provider: str) -> BridgeQuote:
    """Quote where the destination receives the input minus a flat fee."""
    amount_base = request.amount.to_base()
    if fee_base > amount_base:
        raise RouteProviderError(
            f"Bridge amount {amount_base} does not cover the {provider} fee {fee_base}",
            provider=provider,
        )
    return BridgeQuote(
        source_chain_id=request.source_chain_id,
        dest_chain_id=request.dest_chain_id,
        token=request.token,
        amount_base=amount_base,
        dest_amount_base=amount_base - fee_base,
        fee_base=fee_base,
        estimated_time_seconds=estimated_time_seconds,
        provider=provider,
    )
