"""
Delegation pool staking.

A ``StakingPool`` is bound to one pool contract, its staking contract and the
token it accepts. Reads go straight to the node through ``starknet_call`` and
are decoded from the raw felts; writes are either returned as ``Call`` lists
(``populate_*``) or executed on a wallet after the membership guards pass.

Usage:
    pool = await StakingPool.from_staker(staker, STRK, rpc, staking_contract)
    tx = await pool.enter(wallet, Amount.from_unit("100", STRK))
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from .models import PoolInfo, PoolMember, PoolParameters, StakerPoolInfo
from ..erc20 import Erc20
from ..errors import StakingError, ValidationError
from ...providers.base import ChainReader
from ...types.address import same_address, to_address
from ...types.amount import Amount
from ...types.calls import Call, decode_short_string
from ...types.token import Token, get_token_by_address

if TYPE_CHECKING:
    from ..execution.tx_handle import TxHandle
    from ..wallet.base import BaseWallet


logger = logging.getLogger(__name__)

OPTION_SOME = 0
OPTION_NONE = 1


def _decode_pool_member(felts: List[int]) -> Optional[dict]:
    if not felts or felts[0] == OPTION_NONE:
        return None

    (
        reward_address,
        amount,
        unclaimed_rewards,
        commission,
        unpool_amount,
        unpool_variant,
    ) = felts[1:7]
    unpool_seconds = felts[7] if unpool_variant == OPTION_SOME else None
    return {
        "reward_address": to_address(reward_address),
        "amount": amount,
        "unclaimed_rewards": unclaimed_rewards,
        "commission": commission,
        "unpool_amount": unpool_amount,
        "unpool_seconds": unpool_seconds,
    }


def _decode_pool_parameters(felts: List[int]) -> PoolParameters:
    staker_address, staker_removed, staking_contract, token_address, commission = felts[:5]
    return PoolParameters(
        staker_address=to_address(staker_address),
        staker_removed=bool(staker_removed),
        staking_contract=to_address(staking_contract),
        token_address=to_address(token_address),
        commission=commission,
    )


def _decode_staker_pool_info(felts: List[int]) -> StakerPoolInfo:
    cursor = 0
    commission: Optional[int] = None
    if felts[cursor] == OPTION_SOME:
        commission = felts[cursor + 1]
        cursor += 2
    else:
        cursor += 1

    pools_len = felts[cursor]
    cursor += 1
    pools = []
    for _ in range(pools_len):
        pool_contract, token_address, amount = felts[cursor : cursor + 3]
        pools.append(
            PoolInfo(
                pool_contract=to_address(pool_contract),
                token_address=to_address(token_address),
                amount=amount,
            )
        )
        cursor += 3
    return StakerPoolInfo(commission=commission, pools=pools)


async def _fetch_staker_pool_info(rpc: ChainReader, staking_contract: str, staker: str) -> StakerPoolInfo:
    felts = await rpc.call_contract(staking_contract, "staker_pool_info", [int(to_address(staker), 16)])
    return _decode_staker_pool_info(felts)


class StakingPool:
    def __init__(
        self,
        pool_address: str,
        staking_contract: str,
        token: Token,
        rpc: ChainReader,
    ):
        self.pool_address = to_address(pool_address)
        self.staking_contract = to_address(staking_contract)
        self.token = token
        self._rpc = rpc
        self._erc20 = Erc20(token, rpc)

    # -- construction ----------------------------------------------------

    @classmethod
    async def from_pool(
        cls,
        pool_address: str,
        token: Optional[Token],
        rpc: ChainReader,
        staking_contract: str,
    ) -> "StakingPool":
        """Bind to a pool contract, verifying it against its staking contract.

        ``token`` may be None, in which case the pool's token is looked up.
        """
        pool_address = to_address(pool_address)
        params = _decode_pool_parameters(
            await rpc.call_contract(pool_address, "contract_parameters_v1")
        )
        if not same_address(params.staking_contract, staking_contract):
            raise ValidationError("Staking contract address is wrong in the config.")

        info = await _fetch_staker_pool_info(rpc, params.staking_contract, params.staker_address)
        pool = next((p for p in info.pools if same_address(p.pool_contract, pool_address)), None)
        if pool is None:
            raise ValidationError(f"Could not verify pool address {pool_address}")
        if token is None:
            token = get_token_by_address(pool.token_address) or await _fetch_token_metadata(rpc, pool.token_address)
        elif not same_address(pool.token_address, token.address):
            raise ValidationError(f"Pool {pool_address} does not hold {token.symbol} tokens")

        return cls(pool_address, params.staking_contract, token, rpc)

    @classmethod
    async def from_staker(
        cls,
        staker_address: str,
        token: Token,
        rpc: ChainReader,
        staking_contract: str,
    ) -> "StakingPool":
        """Find the staker's pool for ``token``."""
        info = await _fetch_staker_pool_info(rpc, staking_contract, staker_address)
        pool = next((p for p in info.pools if same_address(p.token_address, token.address)), None)
        if pool is None:
            raise ValidationError(f"No pool exists by staker {staker_address} for {token.symbol}")
        return cls(pool.pool_contract, staking_contract, token, rpc)

    @staticmethod
    async def active_tokens(rpc: ChainReader, staking_contract: str) -> List[Token]:
        """Tokens the staking contract currently accepts."""
        felts = await rpc.call_contract(staking_contract, "get_active_tokens")
        addresses = [to_address(item) for item in felts[1 : 1 + felts[0]]] if felts else []

        tokens = []
        for address in addresses:
            token = get_token_by_address(address)
            if token is None:
                token = await _fetch_token_metadata(rpc, address)
            tokens.append(token)
        return tokens

    # -- reads -----------------------------------------------------------

    async def _member_info(self, address: str) -> Optional[dict]:
        felts = await self._rpc.call_contract(
            self.pool_address,
            "get_pool_member_info_v1",
            [int(to_address(address), 16)],
        )
        return _decode_pool_member(felts)

    async def is_member(self, wallet: "BaseWallet") -> bool:
        return await self._member_info(wallet.address) is not None

    async def get_position(self, wallet: "BaseWallet") -> Optional[PoolMember]:
        info = await self._member_info(wallet.address)
        if info is None:
            return None

        staked = Amount.from_base(info["amount"], self.token)
        rewards = Amount.from_base(info["unclaimed_rewards"], self.token)
        unpool_time = None
        if info["unpool_seconds"] is not None:
            unpool_time = datetime.fromtimestamp(info["unpool_seconds"], tz=timezone.utc)

        return PoolMember(
            staked=staked,
            rewards=rewards,
            total=staked.add(rewards),
            unpooling=Amount.from_base(info["unpool_amount"], self.token),
            unpool_time=unpool_time,
            # commission is stored in basis points
            commission_percent=info["commission"] / 100,
            reward_address=info["reward_address"],
        )

    async def get_commission(self) -> float:
        params = _decode_pool_parameters(
            await self._rpc.call_contract(self.pool_address, "contract_parameters_v1")
        )
        return params.commission / 100

    # -- call builders ---------------------------------------------------

    def populate_enter(self, address: str, amount: Amount) -> List[Call]:
        return [
            self._erc20.populate_approve(self.pool_address, amount),
            Call(self.pool_address, "enter_delegation_pool", [int(to_address(address), 16), amount.to_base()]),
        ]

    def populate_add(self, address: str, amount: Amount) -> List[Call]:
        return [
            self._erc20.populate_approve(self.pool_address, amount),
            Call(self.pool_address, "add_to_delegation_pool", [int(to_address(address), 16), amount.to_base()]),
        ]

    def populate_claim_rewards(self, address: str) -> Call:
        return Call(self.pool_address, "claim_rewards", [int(to_address(address), 16)])

    def populate_exit_intent(self, amount: Amount) -> Call:
        return Call(self.pool_address, "exit_delegation_pool_intent", [amount.to_base()])

    def populate_exit(self, address: str) -> Call:
        return Call(self.pool_address, "exit_delegation_pool_action", [int(to_address(address), 16)])

    # -- wallet actions --------------------------------------------------

    async def enter(self, wallet: "BaseWallet", amount: Amount, **execute_options) -> "TxHandle":
        if await self.is_member(wallet):
            raise StakingError(
                f"Wallet {wallet.address} is already a member in pool {self.pool_address}"
            )
        return await wallet.execute(self.populate_enter(wallet.address, amount), **execute_options)

    async def add(self, wallet: "BaseWallet", amount: Amount, **execute_options) -> "TxHandle":
        await self._assert_is_member(wallet)
        return await wallet.execute(self.populate_add(wallet.address, amount), **execute_options)

    async def claim_rewards(self, wallet: "BaseWallet", **execute_options) -> "TxHandle":
        member = await self._assert_is_member(wallet)
        if not same_address(member.reward_address, wallet.address):
            raise StakingError(f"Cannot claim rewards from address {wallet.address}")
        if member.rewards.is_zero():
            raise StakingError("No rewards to claim yet")
        return await wallet.execute([self.populate_claim_rewards(wallet.address)], **execute_options)

    async def exit_intent(self, wallet: "BaseWallet", amount: Amount, **execute_options) -> "TxHandle":
        member = await self._assert_is_member(wallet)
        if not member.unpooling.is_zero():
            raise StakingError("Wallet is already in process to exit pool.")
        if member.staked.lt(amount):
            raise StakingError(
                f"Staked amount {member.staked.to_formatted()} is lower than exiting intent amount."
            )
        return await wallet.execute([self.populate_exit_intent(amount)], **execute_options)

    async def exit(self, wallet: "BaseWallet", **execute_options) -> "TxHandle":
        member = await self._assert_is_member(wallet)
        if member.unpool_time is None:
            raise StakingError("Wallet has not requested to unstake from this pool.")
        if datetime.now(timezone.utc) < member.unpool_time:
            raise StakingError("Wallet cannot unstake yet.")
        return await wallet.execute([self.populate_exit(wallet.address)], **execute_options)

    async def _assert_is_member(self, wallet: "BaseWallet") -> PoolMember:
        member = await self.get_position(wallet)
        if member is None:
            raise StakingError(f"Wallet {wallet.address} is not a member in pool {self.pool_address}")
        return member

    def __repr__(self) -> str:
        return f"StakingPool({self.pool_address}, {self.token.symbol})"


async def _fetch_token_metadata(rpc: ChainReader, address: str) -> Token:
    symbol_felts, decimals_felts = await asyncio.gather(
        rpc.call_contract(address, "symbol"),
        rpc.call_contract(address, "decimals"),
    )
    symbol = decode_short_string(symbol_felts[0]) if symbol_felts else ""
    decimals = decimals_felts[0] if decimals_felts else 18
    logger.debug(f"Resolved token metadata for {address}: {symbol} ({decimals})")
    return Token(address=address, decimals=decimals, symbol=symbol)

