"""
Behaviour shared by every wallet variant.

Variants implement the account-specific primitives (``execute``,
``deploy``, ``is_deployed``...). Everything built on top of them, such as
ERC-20 transfers, staking, swaps and bridges, lives here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .models import DeployMode, ProgressCallback
from ..bridge.models import BridgeInput, BridgeQuote, PreparedBridge
from ..bridge.utils import resolve_bridge_input
from ..erc20 import Erc20, Transfer, erc20_for
from ..errors import ValidationError
from ..execution.models import FeeMode, PreflightResult
from ..execution.tx_builder import TxBuilder
from ..execution.tx_handle import TxHandle
from ..routing.aggregator import BridgeAggregator, SwapAggregator
from ..staking.models import PoolMember
from ..staking.pool import StakingPool
from ..swap.interface import SwapProvider
from ..swap.models import PreparedSwap, SwapInput, SwapQuote, SwapRequest
from ..swap.utils import assert_swap_context, hydrate_swap_request, resolve_swap_source
from ...providers.base import ChainReader
from ...providers.paymaster import PaymasterTimeBounds
from ...types.address import to_address
from ...types.amount import Amount
from ...types.calls import Call
from ...types.chain import ChainId, ExplorerConfig
from ...types.fees import FeeEstimate
from ...types.token import Token


logger = logging.getLogger(__name__)


class BaseWallet(ABC):
    def __init__(
        self,
        address: str,
        rpc: ChainReader,
        chain_id: ChainId,
        *,
        explorer: Optional[ExplorerConfig] = None,
        staking_contract: Optional[str] = None,
        swap_providers: Optional[SwapAggregator] = None,
        bridge_providers: Optional[BridgeAggregator] = None,
    ) -> None:
        self.address = to_address(address)
        self.rpc = rpc
        self.chain_id = chain_id
        self.explorer = explorer
        self.staking_contract = staking_contract
        self.swap_providers = swap_providers if swap_providers is not None else SwapAggregator()
        self.bridge_providers = bridge_providers if bridge_providers is not None else BridgeAggregator()
        self._erc20s: Dict[str, Erc20] = {}
        self._pools: Dict[str, StakingPool] = {}

    # ---------------------------
    # Account primitives
    # ---------------------------
    @abstractmethod
    async def is_deployed(self) -> bool:
        ...

    @abstractmethod
    async def ensure_ready(
        self,
        deploy: Union[DeployMode, str] = DeployMode.IF_NEEDED,
        fee_mode: Optional[FeeMode] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        ...

    @abstractmethod
    async def deploy(
        self,
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> TxHandle:
        ...

    @abstractmethod
    async def execute(
        self,
        calls: Sequence[Call],
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> TxHandle:
        ...

    @abstractmethod
    async def preflight(self, calls: Sequence[Call], fee_mode: Optional[FeeMode] = None) -> PreflightResult:
        ...

    @abstractmethod
    async def estimate_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        ...

    @abstractmethod
    async def sign_message(self, typed_data: Dict[str, Any]) -> List[int]:
        ...

    @abstractmethod
    def get_fee_mode(self) -> FeeMode:
        ...

    @abstractmethod
    def get_class_hash(self) -> str:
        ...

    def get_chain_id(self) -> ChainId:
        return self.chain_id

    async def disconnect(self) -> None:
        self._erc20s.clear()
        self._pools.clear()

    # ---------------------------
    # Transactions
    # ---------------------------
    def tx(self) -> TxBuilder:
        return TxBuilder(self)

    def erc20(self, token: Token) -> Erc20:
        return erc20_for(token, self.rpc, self._erc20s)

    async def transfer(
        self,
        token: Token,
        transfers: Union[Transfer, Sequence[Transfer]],
        **execute_options: Any,
    ) -> TxHandle:
        return await self.erc20(token).transfer(self, transfers, **execute_options)

    async def balance_of(self, token: Token) -> Amount:
        return await self.erc20(token).balance_of(self)

    # ---------------------------
    # Staking
    # ---------------------------
    def _require_staking_contract(self) -> str:
        if not self.staking_contract:
            raise ValidationError(f"No staking contract is configured for {self.chain_id.value}")
        return self.staking_contract

    async def staking(self, pool_address: str, token: Optional[Token] = None) -> StakingPool:
        """Pool handle for ``pool_address``, verified once and cached."""
        key = to_address(pool_address)
        pool = self._pools.get(key)
        if pool is None:
            pool = await StakingPool.from_pool(key, token, self.rpc, self._require_staking_contract())
            self._pools[key] = pool
        return pool

    async def staking_in_staker(self, staker_address: str, token: Token) -> StakingPool:
        pool = await StakingPool.from_staker(staker_address, token, self.rpc, self._require_staking_contract())
        self._pools[pool.pool_address] = pool
        return pool

    async def enter_pool(self, pool_address: str, amount: Amount, **execute_options: Any) -> TxHandle:
        pool = await self.staking(pool_address)
        return await pool.enter(self, amount, **execute_options)

    async def add_to_pool(self, pool_address: str, amount: Amount, **execute_options: Any) -> TxHandle:
        pool = await self.staking(pool_address)
        return await pool.add(self, amount, **execute_options)

    async def claim_pool_rewards(self, pool_address: str, **execute_options: Any) -> TxHandle:
        pool = await self.staking(pool_address)
        return await pool.claim_rewards(self, **execute_options)

    async def exit_pool_intent(
        self, pool_address: str, amount: Amount, **execute_options: Any
    ) -> TxHandle:
        pool = await self.staking(pool_address)
        return await pool.exit_intent(self, amount, **execute_options)

    async def exit_pool(self, pool_address: str, **execute_options: Any) -> TxHandle:
        pool = await self.staking(pool_address)
        return await pool.exit(self, **execute_options)

    async def is_pool_member(self, pool_address: str) -> bool:
        pool = await self.staking(pool_address)
        return await pool.is_member(self)

    async def get_pool_position(self, pool_address: str) -> Optional[PoolMember]:
        pool = await self.staking(pool_address)
        return await pool.get_position(self)

    async def get_pool_commission(self, pool_address: str) -> float:
        pool = await self.staking(pool_address)
        return await pool.get_commission()

    # ---------------------------
    # Swaps and bridges
    # ---------------------------
    def resolve_swap(self, swap_input: SwapInput) -> Tuple[SwapProvider, SwapRequest]:
        provider = resolve_swap_source(swap_input.provider, self.swap_providers)
        request = hydrate_swap_request(swap_input, self.chain_id, self.address)
        assert_swap_context(provider, request, self.chain_id)
        return provider, request

    async def get_quote(self, swap_input: SwapInput) -> SwapQuote:
        provider, request = self.resolve_swap(swap_input)
        return await provider.get_quote(request)

    async def prepare_swap(self, swap_input: SwapInput) -> PreparedSwap:
        provider, request = self.resolve_swap(swap_input)
        return await provider.build_route(request)

    async def swap(self, swap_input: SwapInput, **execute_options: Any) -> TxHandle:
        prepared = await self.prepare_swap(swap_input)
        logger.info(
            f"Swapping {swap_input.amount_in.to_base()} {swap_input.token_in.symbol} -> "
            f"{swap_input.token_out.symbol} via {prepared.quote.provider}"
        )
        return await self.execute(prepared.calls, **execute_options)

    async def get_bridge_quote(self, bridge_input: BridgeInput) -> BridgeQuote:
        provider, request = resolve_bridge_input(bridge_input, self.chain_id, self.address, self.bridge_providers)
        return await provider.get_quote(request)

    async def prepare_bridge(self, bridge_input: BridgeInput) -> PreparedBridge:
        provider, request = resolve_bridge_input(bridge_input, self.chain_id, self.address, self.bridge_providers)
        return await provider.build_route(request)

    async def bridge(self, bridge_input: BridgeInput, **execute_options: Any) -> TxHandle:
        prepared = await self.prepare_bridge(bridge_input)
        if not prepared.calls:
            raise ValidationError(f"Bridge provider {prepared.quote.provider} returned no Starknet calls")
        return await self.execute(prepared.calls, **execute_options)

    def _tx_handle(self, tx_hash: str) -> TxHandle:
        return TxHandle(tx_hash, self.rpc, self.chain_id, self.explorer)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address}, {self.chain_id.value})"
