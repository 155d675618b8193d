"""
Signer-backed wallet.

The account key is held locally. User-paid transactions are signed and
submitted through starknet-py; sponsored ones go through a SNIP-29
paymaster, which can also deploy the account in the same transaction.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from starknet_py.hash.hash_method import HashMethod

from .base import BaseWallet
from .models import DeployMode, ProgressCallback
from .utils import (
    DeploymentCache,
    cached_is_deployed,
    check_deployed,
    ensure_wallet_ready,
    preflight_transaction,
    submit_sponsored,
)
from ..account.identity import AccountIdentity
from ..account.presets import (
    BRAAVOS_FACTORY_ADDRESS,
    BRAAVOS_IMPL_CLASS_HASH,
    AccountClassTemplate,
    BraavosPreset,
    OpenZeppelinPreset,
)
from ..account.signer import Signer
from ..errors import NotDeployedError, WalletError, is_already_deployed_error
from ..execution.models import DEFAULT_SUCCESS_STATES, FeeMode, PreflightResult
from ..execution.tx_handle import TxHandle
from ...config import settings
from ...providers.account_client import StarknetAccountClient
from ...providers.base import ChainReader
from ...providers.paymaster import PaymasterProvider, PaymasterTimeBounds, deploy_transaction, sponsored_parameters
from ...types.calls import Call, to_felt
from ...types.chain import ChainId
from ...types.fees import FeeEstimate, ResourceBound, ResourceBounds


logger = logging.getLogger(__name__)

DEFAULT_DEPLOY_RESOURCE_BOUNDS = ResourceBounds(
    l1_gas=ResourceBound(max_amount=50_000, max_price_per_unit=50_000_000_000_000),
    l2_gas=ResourceBound(max_amount=1_100_000, max_price_per_unit=50_000_000_000_000),
    l1_data_gas=ResourceBound(max_amount=50_000, max_price_per_unit=50_000_000_000_000),
)


class Wallet(BaseWallet):
    def __init__(
        self,
        identity: AccountIdentity,
        address: str,
        rpc: ChainReader,
        chain_id: ChainId,
        account: StarknetAccountClient,
        *,
        paymaster: Optional[PaymasterProvider] = None,
        fee_mode: Union[FeeMode, str] = FeeMode.USER_PAYS,
        time_bounds: Optional[PaymasterTimeBounds] = None,
        deployment_cache: Optional[DeploymentCache] = None,
        **base_options: Any,
    ) -> None:
        super().__init__(address, rpc, chain_id, **base_options)
        self.identity = identity
        self.account = account
        self.paymaster = paymaster
        self.default_fee_mode = FeeMode(fee_mode)
        self.default_time_bounds = time_bounds
        self._deployment = deployment_cache or DeploymentCache()
        self._sponsored_deploy_lock = asyncio.Lock()

    @classmethod
    async def create(
        cls,
        signer: Signer,
        rpc: ChainReader,
        chain_id: ChainId,
        node_url: str,
        *,
        template: AccountClassTemplate = OpenZeppelinPreset,
        account_address: Optional[str] = None,
        **options: Any,
    ) -> "Wallet":
        """Derive (or accept) the account address and wire up the account client."""
        identity = AccountIdentity(signer, template)
        address = account_address or await identity.get_address()
        account = StarknetAccountClient(node_url, address, signer, chain_id)
        return cls(identity, address, rpc, chain_id, account, **options)

    # ---------------------------
    # Deployment
    # ---------------------------
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
        fee_mode = FeeMode(fee_mode or self.default_fee_mode)
        deployment = await self.identity.get_deployment_data()

        if fee_mode == FeeMode.SPONSORED:
            paymaster = self._require_paymaster()
            time_bounds = time_bounds or self.default_time_bounds
            if self._is_braavos():
                return self._tx_handle(await self._deploy_braavos_via_factory(paymaster, time_bounds))
            tx_hash = await paymaster.execute_transaction(
                deploy_transaction(deployment.to_rpc()),
                sponsored_parameters(time_bounds),
            )
            return self._tx_handle(tx_hash)

        try:
            estimate = await self.account.estimate_deploy_fee(deployment)
            resource_bounds = estimate.resource_bounds.scaled(settings.deploy_fee_multiplier)
        except Exception as exc:
            logger.warning(f"Deploy fee estimation failed for {self.address}, using default bounds: {exc}")
            resource_bounds = DEFAULT_DEPLOY_RESOURCE_BOUNDS

        tx_hash = await self.account.deploy_account(deployment, resource_bounds)
        return self._tx_handle(tx_hash)

    def _is_braavos(self) -> bool:
        return to_felt(self.identity.template.class_hash) == to_felt(BraavosPreset.class_hash)

    async def _deploy_braavos_via_factory(
        self,
        paymaster: PaymasterProvider,
        time_bounds: Optional[PaymasterTimeBounds],
    ) -> str:
        """Deploy through the Braavos factory, called from an OZ account with the same key.

        The bootstrap OZ account is deployed by the paymaster in the same
        transaction when it does not exist yet. The factory checks a signature
        over ``poseidon([impl_class_hash, 0 x 9, chain_id])``.
        """
        signer = self.identity.signer
        public_key = await self.identity.get_public_key()
        bootstrap = AccountIdentity(signer, OpenZeppelinPreset)
        bootstrap_address = await bootstrap.get_address()

        aux_data = [to_felt(BRAAVOS_IMPL_CLASS_HASH), *([0] * 9), self.chain_id.to_felt()]
        aux_signature = await signer.sign_transaction_hash(HashMethod.POSEIDON.hash_many(aux_data))
        if len(aux_signature) < 2:
            raise WalletError("Braavos: signer returned an invalid deployment signature")
        params = [*aux_data, to_felt(aux_signature[0]), to_felt(aux_signature[1])]
        factory_call = Call(
            BRAAVOS_FACTORY_ADDRESS, "deploy_braavos_account", [to_felt(public_key), len(params), *params]
        )

        deployment = None
        if not await check_deployed(self.rpc, bootstrap_address):
            deployment = (await bootstrap.get_deployment_data()).to_rpc()

        tx_hash = await submit_sponsored(
            paymaster,
            bootstrap_address,
            [factory_call],
            functools.partial(signer.sign_message, account_address=bootstrap_address),
            time_bounds=time_bounds,
            deployment=deployment,
        )
        logger.info(f"Braavos account {self.address} deploying via factory from {bootstrap_address} in {tx_hash}")
        return tx_hash

    def _require_paymaster(self) -> PaymasterProvider:
        if self.paymaster is None:
            raise WalletError("Sponsored transactions require a paymaster; none is configured")
        return self.paymaster

    # ---------------------------
    # Execution
    # ---------------------------
    async def execute(
        self,
        calls: Sequence[Call],
        fee_mode: Optional[FeeMode] = None,
        time_bounds: Optional[PaymasterTimeBounds] = None,
    ) -> TxHandle:
        fee_mode = FeeMode(fee_mode or self.default_fee_mode)
        time_bounds = time_bounds or self.default_time_bounds
        calls = list(calls)

        if fee_mode == FeeMode.SPONSORED:
            tx_hash = await self._execute_sponsored(calls, time_bounds)
        else:
            if not await self.is_deployed():
                raise NotDeployedError(address=self.address)
            tx_hash = await self.account.execute(calls)
            self._deployment.invalidate_negative()

        return self._tx_handle(tx_hash)

    async def _execute_sponsored(self, calls: List[Call], time_bounds: Optional[PaymasterTimeBounds]) -> str:
        paymaster = self._require_paymaster()
        if await self.is_deployed():
            return await self._sponsored_invoke(paymaster, calls, time_bounds)

        async with self._sponsored_deploy_lock:
            if await self.is_deployed():
                return await self._sponsored_invoke(paymaster, calls, time_bounds)

            if self._is_braavos():
                return await self._braavos_deploy_then_invoke(paymaster, calls, time_bounds)

            deployment = await self.identity.get_deployment_data()
            try:
                tx_hash = await submit_sponsored(
                    paymaster,
                    self.address,
                    calls,
                    self.account.sign_typed_data,
                    time_bounds=time_bounds,
                    deployment=deployment.to_rpc(),
                )
            except Exception as exc:
                if not is_already_deployed_error(exc):
                    raise
                logger.info(f"Account {self.address} was deployed concurrently, retrying as plain invoke")
                tx_hash = await self._sponsored_invoke(paymaster, calls, time_bounds)
            finally:
                self._deployment.invalidate_negative()
            return tx_hash

    async def _braavos_deploy_then_invoke(
        self,
        paymaster: PaymasterProvider,
        calls: List[Call],
        time_bounds: Optional[PaymasterTimeBounds],
    ) -> str:
        # the factory cannot run the account's own calls, so they follow once it exists
        deploy_hash = await self._deploy_braavos_via_factory(paymaster, time_bounds)
        await self._tx_handle(deploy_hash).wait(success_states=DEFAULT_SUCCESS_STATES)
        self._deployment.set(True)
        return await self._sponsored_invoke(paymaster, calls, time_bounds)

    async def _sponsored_invoke(
        self,
        paymaster: PaymasterProvider,
        calls: List[Call],
        time_bounds: Optional[PaymasterTimeBounds],
    ) -> str:
        return await submit_sponsored(
            paymaster, self.address, calls, self.account.sign_typed_data, time_bounds=time_bounds
        )

    async def preflight(self, calls: Sequence[Call], fee_mode: Optional[FeeMode] = None) -> PreflightResult:
        return await preflight_transaction(
            self.is_deployed,
            self.account.simulate,
            list(calls),
            FeeMode(fee_mode or self.default_fee_mode),
        )

    async def estimate_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        return await self.account.estimate_invoke_fee(list(calls))

    async def sign_message(self, typed_data: Dict[str, Any]) -> List[int]:
        return await self.account.sign_typed_data(typed_data)

    def get_fee_mode(self) -> FeeMode:
        return self.default_fee_mode

    def get_class_hash(self) -> str:
        return self.identity.template.class_hash

    async def disconnect(self) -> None:
        await super().disconnect()
        self._deployment.clear()
