"""
Starkgate, the canonical Ethereum <-> Starknet bridge.

Directions and their flat quotes:

    l2_to_l2   fee 0        ~5 min    plain ERC-20 transfer on Starknet
    l1_to_l2   fee 2e14     ~10 min   deposit prepared for a relayer
    l2_to_l1   fee 0        ~4 h      initiate_token_withdraw on the L2 bridge
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from eth_utils import is_address

from ..models import BridgeQuote, BridgeRequest, PreparedBridge
from ..utils import fee_adjusted_quote
from ...errors import RouteProviderError
from ....config import settings
from ....types.calls import Call, split_u256, to_felt
from ....types.chain import ChainId


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StarkgateTokenBridge:
    l1_bridge: str
    l2_bridge: str
    l1_token: str


# The L1 bridge for ETH tracks the native asset under this sentinel address.
L1_ETH_SENTINEL = "0x0000000000000000000000000000000000455448"

STARKGATE_BRIDGES: Dict[bool, Dict[str, StarkgateTokenBridge]] = {
    True: {
        "ETH": StarkgateTokenBridge(
            l1_bridge="0xae0Ee0A63A2cE6BaeEFFE56e7714FB4EFE48D419",
            l2_bridge="0x073314940630fd6dcda0d772d4c972c4e0a9946bef9dabf4ef84eda8ef542b82",
            l1_token=L1_ETH_SENTINEL,
        ),
        "STRK": StarkgateTokenBridge(
            l1_bridge="0xcE5485Cfb26914C5dcE00B9BAF0580364daFC7a4",
            l2_bridge="0x0594c1582459ea03f77deaf9eb7e3917d6994a03c13405ba42867f83d85f085d",
            l1_token="0xCa14007Eff0dB1f8135f4C25B34De49AB0d42766",
        ),
    },
    False: {
        "ETH": StarkgateTokenBridge(
            l1_bridge="0x8453FC6Cd1bCfE8D4dFC069C400B433054d47bDc",
            l2_bridge="0x04c5772d1914fe6ce891b64eb35bf3522aeae1315647314aac58b01137607f3f",
            l1_token=L1_ETH_SENTINEL,
        ),
    },
}

L1_TO_L2_FEE_BASE = 200_000_000_000_000


class BridgeDirection(str, Enum):
    L2_TO_L2 = "l2_to_l2"
    L1_TO_L2 = "l1_to_l2"
    L2_TO_L1 = "l2_to_l1"


DIRECTION_QUOTES = {
    BridgeDirection.L2_TO_L2: (0, 300),
    BridgeDirection.L1_TO_L2: (L1_TO_L2_FEE_BASE, 600),
    BridgeDirection.L2_TO_L1: (0, 14_400),
}


def get_direction(source_chain_id: ChainId, dest_chain_id: ChainId) -> BridgeDirection:
    if source_chain_id.is_ethereum and dest_chain_id.is_ethereum:
        raise RouteProviderError("Starkgate does not support L1 to L1 transfers", provider="starkgate")
    if source_chain_id.is_ethereum:
        return BridgeDirection.L1_TO_L2
    if dest_chain_id.is_ethereum:
        return BridgeDirection.L2_TO_L1
    return BridgeDirection.L2_TO_L2


class StarkgateBridgeProvider:
    id = "starkgate"

    def __init__(
        self,
        *,
        relayer_url: Optional[str] = None,
        bridges: Optional[Dict[bool, Dict[str, StarkgateTokenBridge]]] = None,
    ) -> None:
        self.relayer_url = relayer_url if relayer_url is not None else settings.starkgate_relayer_url
        self.bridges = {network: dict(tokens) for network, tokens in STARKGATE_BRIDGES.items()}
        for network, tokens in (bridges or {}).items():
            self.bridges.setdefault(network, {}).update(tokens)

    def supports_chain_pair(self, source_chain_id: ChainId, dest_chain_id: ChainId) -> bool:
        if source_chain_id.is_ethereum and dest_chain_id.is_ethereum:
            return False
        return source_chain_id.is_mainnet == dest_chain_id.is_mainnet

    async def get_quote(self, request: BridgeRequest) -> BridgeQuote:
        direction = get_direction(request.source_chain_id, request.dest_chain_id)
        if direction is not BridgeDirection.L2_TO_L2:
            self._get_bridge(request)
        fee_base, estimated_time = DIRECTION_QUOTES[direction]
        return fee_adjusted_quote(request, fee_base, estimated_time, self.id)

    async def build_route(self, request: BridgeRequest) -> PreparedBridge:
        direction = get_direction(request.source_chain_id, request.dest_chain_id)
        quote = await self.get_quote(request)

        if direction is BridgeDirection.L2_TO_L2:
            calls = self._transfer_calls(request)
        elif direction is BridgeDirection.L1_TO_L2:
            calls = self._deposit_calls(request)
        else:
            calls = self._withdraw_calls(request)

        logger.info(f"Starkgate {direction.value} route for {request.token.symbol}: {len(calls)} call(s)")
        return PreparedBridge(calls=calls, quote=quote)

    def _get_bridge(self, request: BridgeRequest) -> StarkgateTokenBridge:
        symbol = request.token.symbol.upper()
        tokens = self.bridges.get(request.source_chain_id.is_mainnet, {})
        bridge = tokens.get(symbol)
        if bridge is None:
            supported = ", ".join(sorted(tokens)) or "none"
            raise RouteProviderError(
                f"Starkgate does not support token: {request.token.symbol}. Supported tokens: {supported}",
                provider=self.id,
            )
        return bridge

    def _transfer_calls(self, request: BridgeRequest) -> List[Call]:
        return [
            Call(
                request.token.address,
                "transfer",
                [to_felt(request.recipient), *split_u256(request.amount.to_base())],
            )
        ]

    def _deposit_calls(self, request: BridgeRequest) -> List[Call]:
        if not self.relayer_url:
            raise RouteProviderError(
                "Starkgate: L1 to L2 deposits require a relayer. Set STARKZAP_STARKGATE_RELAYER_URL or pass "
                "relayer_url, or deposit from L1 through the Starkgate UI.",
                provider=self.id,
            )
        bridge = self._get_bridge(request)
        # Executed on L1 by the relayer, not by the Starknet account.
        return [
            Call(
                bridge.l1_bridge,
                "deposit",
                [to_felt(bridge.l1_token), *split_u256(request.amount.to_base()), to_felt(request.recipient)],
            )
        ]

    def _withdraw_calls(self, request: BridgeRequest) -> List[Call]:
        if not is_address(request.recipient):
            raise RouteProviderError(
                f"Starkgate: L1 recipient is not an Ethereum address: {request.recipient}", provider=self.id
            )
        bridge = self._get_bridge(request)
        return [
            Call(
                bridge.l2_bridge,
                "initiate_token_withdraw",
                [
                    to_felt(bridge.l1_token),
                    to_felt(request.recipient),
                    *split_u256(request.amount.to_base()),
                ],
            )
        ]
