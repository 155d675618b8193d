"""
Wallet backed by an injected browser-extension account (Argent X, Braavos).

The extension owns the key and decides how to pay, so this variant cannot
deploy programmatically or use the paymaster.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from .base import BaseWallet
from .models import DeployMode, ProgressCallback
from .utils import DeploymentCache, cached_is_deployed, ensure_wallet_ready, preflight_transaction
from ..errors import NotDeployedError, WalletError, is_contract_not_found
from ..execution.models import FeeMode, PreflightResult
from ..execution.tx_handle import TxHandle
from ...providers.base import ChainReader
from ...providers.paymaster import PaymasterTimeBounds
from ...types.calls import Call
from ...types.chain import ChainId
from ...types.fees import FeeEstimate


logger = logging.getLogger(__name__)

SPONSORED_UNSUPPORTED = (
    "BrowserWallet does not support sponsored transactions. Use a Cartridge session for gasless flows."
)


@runtime_checkable
class WalletExtension(Protocol):
    """The subset of an injected extension account the wallet relies on."""

    address: str

    async def execute(self, calls: Sequence[Call]) -> str:
        ...

    async def sign_message(self, typed_data: Dict[str, Any]) -> List[int]:
        ...

    async def estimate_invoke_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        ...

    async def simulate(self, calls: Sequence[Call]) -> Dict[str, Any]:
        ...


class BrowserWallet(BaseWallet):
    def __init__(
        self,
        extension: WalletExtension,
        rpc: ChainReader,
        chain_id: ChainId,
        class_hash: str = "0x0",
        *,
        fee_mode: Union[FeeMode, str] = FeeMode.USER_PAYS,
        deployment_cache: Optional[DeploymentCache] = None,
        **base_options: Any,
    ) -> None:
        if not getattr(extension, "address", None):
            raise WalletError(
                "BrowserWallet: failed to connect. Make sure the wallet is unlocked and a connection was approved."
            )
        super().__init__(extension.address, rpc, chain_id, **base_options)
        self.extension = extension
        self.class_hash = class_hash
        self.default_fee_mode = FeeMode(fee_mode)
        self._deployment = deployment_cache or DeploymentCache()

    @classmethod
    async def create(
        cls,
        extension: WalletExtension,
        rpc: ChainReader,
        chain_id: Optional[ChainId] = None,
        **options: Any,
    ) -> "BrowserWallet":
        if chain_id is None:
            chain_id = ChainId.from_value(await rpc.get_chain_id())

        class_hash = "0x0"
        try:
            class_hash = await rpc.get_class_hash_at(extension.address)
        except Exception as exc:
            # an undeployed account has no class yet
            if not is_contract_not_found(exc):
                raise
        return cls(extension, rpc, chain_id, class_hash, **options)

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
        raise WalletError(
            "BrowserWallet does not support programmatic deployment. "
            "The extension wallet deploys the account automatically on first transaction."
        )

    async def execute(
        self,
        calls: Sequence[Call],
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> TxHandle:
        if FeeMode(fee_mode or self.default_fee_mode) == FeeMode.SPONSORED:
            raise WalletError(SPONSORED_UNSUPPORTED)
        if not await self.is_deployed():
            raise NotDeployedError(address=self.address)

        tx_hash = await self.extension.execute(list(calls))
        self._deployment.invalidate_negative()
        logger.info(f"Extension submitted {tx_hash} for {self.address}")
        return self._tx_handle(tx_hash)

    async def preflight(self, calls: Sequence[Call], fee_mode: Optional[FeeMode] = None) -> PreflightResult:
        fee_mode = FeeMode(fee_mode or self.default_fee_mode)
        if fee_mode == FeeMode.SPONSORED:
            return PreflightResult(ok=False, reason=SPONSORED_UNSUPPORTED)
        return await preflight_transaction(self.is_deployed, self.extension.simulate, list(calls), fee_mode)

    async def estimate_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        return await self.extension.estimate_invoke_fee(list(calls))

    async def sign_message(self, typed_data: Dict[str, Any]) -> List[int]:
        return await self.extension.sign_message(typed_data)

    def get_fee_mode(self) -> FeeMode:
        return self.default_fee_mode

    def get_class_hash(self) -> str:
        return self.class_hash

    async def disconnect(self) -> None:
        await super().disconnect()
        self._deployment.clear()
        disconnect = getattr(self.extension, "disconnect", None)
        if disconnect is not None:
            await disconnect()
