"""
Fluent multi-operation transaction builder.

Operations are recorded in declaration order. Literal calls are stored as
is; operations that need chain reads (staking membership, swap routes) are
stored as deferred resolvers and only run when the builder is flushed. All
resolvers run concurrently and their calls are folded back in declaration
order, so the final multicall is deterministic.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Sequence, Union

from .models import DeferredCalls, FeeMode, LiteralCalls, PendingOperation, PreflightResult
from ..errors import AlreadySentError, EmptyTransactionError
from ...providers.paymaster import PaymasterTimeBounds
from ...types.amount import Amount
from ...types.calls import Call
from ...types.fees import FeeEstimate
from ...types.token import Token

if TYPE_CHECKING:
    from .tx_handle import TxHandle
    from ..erc20 import Transfer
    from ..staking.pool import StakingPool
    from ..swap.models import SwapInput
    from ..wallet.base import BaseWallet


logger = logging.getLogger(__name__)


class TxBuilder:
    def __init__(self, wallet: "BaseWallet"):
        self.wallet = wallet
        self._pending: List[PendingOperation] = []
        self._sent = False
        self._sending = False

    @property
    def length(self) -> int:
        return len(self._pending)

    @property
    def is_empty(self) -> bool:
        return not self._pending

    @property
    def is_sent(self) -> bool:
        return self._sent

    # ---------------------------
    # Operations
    # ---------------------------
    def add(self, *calls: Call) -> "TxBuilder":
        self._pending.append(LiteralCalls(list(calls)))
        return self

    def approve(self, token: Token, spender: str, amount: Amount) -> "TxBuilder":
        call = self.wallet.erc20(token).populate_approve(spender, amount)
        self._pending.append(LiteralCalls([call]))
        return self

    def transfer(self, token: Token, transfers: Union["Transfer", Sequence["Transfer"]]) -> "TxBuilder":
        calls = self.wallet.erc20(token).populate_transfer(transfers)
        self._pending.append(LiteralCalls(calls))
        return self

    def stake(self, pool_address: str, amount: Amount) -> "TxBuilder":
        """Enter the pool, or add to the position if the wallet is already a member.

        Membership is checked when the builder is flushed, not now.
        """
        address = self.wallet.address

        async def build(pool: "StakingPool") -> List[Call]:
            if await pool.is_member(self.wallet):
                return pool.populate_add(address, amount)
            return pool.populate_enter(address, amount)

        return self._defer_pool(pool_address, build, "stake")

    def enter_pool(self, pool_address: str, amount: Amount) -> "TxBuilder":
        address = self.wallet.address
        return self._defer_pool(pool_address, lambda pool: _ready(pool.populate_enter(address, amount)), "enter_pool")

    def add_to_pool(self, pool_address: str, amount: Amount) -> "TxBuilder":
        address = self.wallet.address
        return self._defer_pool(pool_address, lambda pool: _ready(pool.populate_add(address, amount)), "add_to_pool")

    def claim_pool_rewards(self, pool_address: str) -> "TxBuilder":
        address = self.wallet.address
        return self._defer_pool(
            pool_address, lambda pool: _ready([pool.populate_claim_rewards(address)]), "claim_pool_rewards"
        )

    def exit_pool_intent(self, pool_address: str, amount: Amount) -> "TxBuilder":
        return self._defer_pool(
            pool_address, lambda pool: _ready([pool.populate_exit_intent(amount)]), "exit_pool_intent"
        )

    def exit_pool(self, pool_address: str) -> "TxBuilder":
        address = self.wallet.address
        return self._defer_pool(pool_address, lambda pool: _ready([pool.populate_exit(address)]), "exit_pool")

    def swap(self, swap_input: "SwapInput") -> "TxBuilder":
        async def resolve() -> List[Call]:
            prepared = await self.wallet.prepare_swap(swap_input)
            return list(prepared.calls)

        self._pending.append(DeferredCalls(resolve, label="swap"))
        return self

    def _defer_pool(
        self,
        pool_address: str,
        build: Callable[["StakingPool"], Awaitable[List[Call]]],
        label: str,
    ) -> "TxBuilder":
        async def resolve() -> List[Call]:
            pool = await self.wallet.staking(pool_address)
            return await build(pool)

        self._pending.append(DeferredCalls(resolve, label=label))
        return self

    # ---------------------------
    # Flush
    # ---------------------------
    async def calls(self) -> List[Call]:
        """Resolve every pending operation and flatten in declaration order."""
        resolved = await asyncio.gather(*(_resolve(op) for op in self._pending))
        return [call for group in resolved for call in group]

    async def estimate_fee(self) -> FeeEstimate:
        return await self.wallet.estimate_fee(await self.calls())

    async def preflight(self, fee_mode: Optional[FeeMode] = None) -> PreflightResult:
        return await self.wallet.preflight(await self.calls(), fee_mode=fee_mode)

    async def send(
        self,
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> "TxHandle":
        # claimed before the first await so overlapping sends cannot both submit
        if self._sent or self._sending:
            raise AlreadySentError()
        self._sending = True

        try:
            calls = await self.calls()
            if not calls:
                raise EmptyTransactionError()
            tx = await self.wallet.execute(calls, fee_mode=fee_mode, time_bounds=time_bounds)
        except BaseException:
            self._sending = False
            raise

        self._sent = True
        logger.info(f"Sent {len(calls)} calls from {len(self._pending)} operations as {tx.hash}")
        return tx


async def _ready(calls: List[Call]) -> List[Call]:
    return calls


async def _resolve(operation: PendingOperation) -> List[Call]:
    if isinstance(operation, LiteralCalls):
        return operation.calls
    return list(await operation.resolver())
