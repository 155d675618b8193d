"""
Swap request and quote types.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ...types.amount import Amount
from ...types.calls import Call
from ...types.chain import ChainId
from ...types.token import Token


@dataclass
class SwapRequest:
    """A fully specified exact-input swap."""
    chain_id: ChainId
    token_in: Token
    token_out: Token
    amount_in: Amount
    taker_address: Optional[str] = None
    slippage_bps: Optional[int] = None


@dataclass
class SwapInput:
    """Swap parameters before the wallet fills in chain and taker."""
    token_in: Token
    token_out: Token
    amount_in: Amount
    slippage_bps: Optional[int] = None
    chain_id: Optional[ChainId] = None
    taker_address: Optional[str] = None
    provider: Any = None          # SwapProvider instance or registered id


@dataclass
class SwapQuote:
    amount_in_base: int
    amount_out_base: int
    route_call_count: Optional[int] = None
    price_impact_bps: Optional[int] = None
    provider: Optional[str] = None


@dataclass
class PreparedSwap:
    """Calls ready for ``wallet.execute`` plus the quote they were built from."""
    quote: SwapQuote
    calls: List[Call] = field(default_factory=list)
