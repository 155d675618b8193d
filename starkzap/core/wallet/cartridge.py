"""
Wallet backed by a Cartridge Controller session.

The controller keychain deploys the account and the session can route
transactions through its own paymaster, so sponsored execution needs no
local paymaster configuration.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from .base import BaseWallet
from .models import DeployMode, ProgressCallback
from .utils import DeploymentCache, cached_is_deployed, ensure_wallet_ready, preflight_transaction
from ..errors import WalletError
from ..execution.models import FeeMode, PreflightResult
from ..execution.tx_handle import TxHandle
from ...providers.base import ChainReader
from ...providers.paymaster import PaymasterTimeBounds, sponsored_parameters
from ...types.calls import Call
from ...types.chain import ChainId
from ...types.fees import FeeEstimate


logger = logging.getLogger(__name__)


@runtime_checkable
class ControllerSession(Protocol):
    """An authorised Cartridge Controller session."""

    address: str

    async def execute(self, calls: Sequence[Call]) -> str:
        ...

    async def execute_sponsored(self, calls: Sequence[Call], parameters: Dict[str, Any]) -> str:
        ...

    async def build_sponsored(self, calls: Sequence[Call], parameters: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def sign_sponsored(self, prepared: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def deploy(self) -> Dict[str, Any]:
        ...

    async def sign_message(self, typed_data: Dict[str, Any]) -> List[int]:
        ...

    async def estimate_invoke_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        ...

    async def simulate(self, calls: Sequence[Call]) -> Dict[str, Any]:
        ...


class CartridgeWallet(BaseWallet):
    def __init__(
        self,
        session: ControllerSession,
        rpc: ChainReader,
        chain_id: ChainId,
        *,
        class_hash: str = "0x0",
        fee_mode: Union[FeeMode, str] = FeeMode.USER_PAYS,
        time_bounds: Optional[PaymasterTimeBounds] = None,
        deployment_cache: Optional[DeploymentCache] = None,
        **base_options: Any,
    ) -> None:
        if not getattr(session, "address", None):
            raise WalletError("Cartridge connection cancelled or failed")
        super().__init__(session.address, rpc, chain_id, **base_options)
        self.session = session
        self.class_hash = class_hash
        self.default_fee_mode = FeeMode(fee_mode)
        self.default_time_bounds = time_bounds
        self._deployment = deployment_cache or DeploymentCache()

    async def is_deployed(self) -> bool:
        return await cached_is_deployed(self._deployment, self.rpc, self.address)

    async def ensure_ready(
        self,
        deploy: Union[DeployMode, str] = DeployMode.IF_NEEDED,
        fee_mode: Optional[FeeMode] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        await ensure_wallet_ready(self, deploy=deploy, fee_mode=fee_mode, on_progress=on_progress)

    async def deploy(
        self,
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> TxHandle:
        self._deployment.invalidate_negative()
        result = await self.session.deploy()
        if not result or result.get("code") != "SUCCESS":
            message = result.get("message") if isinstance(result, dict) else None
            raise WalletError(message or "Cartridge deployment failed")
        return self._tx_handle(result["transaction_hash"])

    async def execute(
        self,
        calls: Sequence[Call],
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> TxHandle:
        calls = list(calls)
        if FeeMode(fee_mode or self.default_fee_mode) == FeeMode.SPONSORED:
            parameters = sponsored_parameters(time_bounds or self.default_time_bounds)
            tx_hash = await self.session.execute_sponsored(calls, parameters)
        else:
            tx_hash = await self.session.execute(calls)
        self._deployment.invalidate_negative()
        return self._tx_handle(tx_hash)

    async def build_sponsored(
        self, calls: Sequence[Call], time_bounds: Optional[PaymasterTimeBounds] = None
    ) -> Dict[str, Any]:
        parameters = sponsored_parameters(time_bounds or self.default_time_bounds)
        return await self.session.build_sponsored(list(calls), parameters)

    async def sign_sponsored(self, prepared: Dict[str, Any]) -> Dict[str, Any]:
        return await self.session.sign_sponsored(prepared)

    async def prepare_sponsored(
        self, calls: Sequence[Call], time_bounds: Optional[PaymasterTimeBounds] = None
    ) -> Dict[str, Any]:
        """Build and sign a sponsored transaction without submitting it."""
        prepared = await self.build_sponsored(calls, time_bounds)
        return await self.sign_sponsored(prepared)

    async def preflight(self, calls: Sequence[Call], fee_mode: Optional[FeeMode] = None) -> PreflightResult:
        return await preflight_transaction(
            self.is_deployed,
            self.session.simulate,
            list(calls),
            FeeMode(fee_mode or self.default_fee_mode),
        )

    async def estimate_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        return await self.session.estimate_invoke_fee(list(calls))

    async def sign_message(self, typed_data: Dict[str, Any]) -> List[int]:
        return await self.session.sign_message(typed_data)

    def get_fee_mode(self) -> FeeMode:
        return self.default_fee_mode

    def get_class_hash(self) -> str:
        return self.class_hash

    async def disconnect(self) -> None:
        await super().disconnect()
        self._deployment.clear()
        disconnect = getattr(self.session, "disconnect", None)
        if disconnect is not None:
            await disconnect()
