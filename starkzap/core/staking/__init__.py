from .models import PoolInfo, PoolMember, PoolParameters, StakerPoolInfo
from .pool import StakingPool
from .presets import STAKING_CONTRACTS, get_staking_contract

__all__ = [
    "StakingPool",
    "PoolMember",
    "PoolInfo",
    "PoolParameters",
    "StakerPoolInfo",
    "STAKING_CONTRACTS",
    "get_staking_contract",
]
