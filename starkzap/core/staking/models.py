from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ...types.amount import Amount


@dataclass
class PoolMember:
    """A wallet's position in a delegation pool."""
    staked: Amount
    rewards: Amount
    total: Amount
    unpooling: Amount
    unpool_time: Optional[datetime]
    commission_percent: float
    reward_address: str


@dataclass
class PoolInfo:
    pool_contract: str
    token_address: str
    amount: int


@dataclass
class StakerPoolInfo:
    commission: Optional[int]
    pools: List[PoolInfo]


@dataclass
class PoolParameters:
    staker_address: str
    staker_removed: bool
    staking_contract: str
    token_address: str
    commission: int
