"""
Bridge request and quote types.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ...types.amount import Amount
from ...types.calls import Call
from ...types.chain import ChainId
from ...types.token import Token


@dataclass
class BridgeRequest:
    source_chain_id: ChainId
    dest_chain_id: ChainId
    token: Token
    amount: Amount
    recipient: str
    slippage_bps: Optional[int] = None


@dataclass
class BridgeInput:
    """Bridge parameters before the wallet fills in source chain and recipient."""
    dest_chain_id: ChainId
    token: Token
    amount: Amount
    source_chain_id: Optional[ChainId] = None
    recipient: Optional[str] = None
    slippage_bps: Optional[int] = None
    provider: Any = None          # BridgeProvider instance or registered id


@dataclass
class BridgeQuote:
    source_chain_id: ChainId
    dest_chain_id: ChainId
    token: Token
    amount_base: int
    dest_amount_base: int
    fee_base: int
    dest_gas_estimate: Optional[int] = None
    estimated_time_seconds: Optional[int] = None
    provider: Optional[str] = None


@dataclass
class PreparedBridge:
    quote: BridgeQuote
    calls: List[Call] = field(default_factory=list)
