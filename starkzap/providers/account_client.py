"""
Signing account adapter.

Builds starknet-py V3 transaction models, hashes them, and asks the SDK
``Signer`` for the signature, so custom signers (hardware, MPC, remote) sign
every invoke and deploy_account. The node is reached through a starknet-py
``FullNodeClient``; the wallets only deal in SDK types: ``Call`` lists in,
hex transaction hashes and ``FeeEstimate`` out.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, TypeVar

from starknet_py.constants import QUERY_VERSION_BASE
from starknet_py.net.client_models import ResourceBoundsMapping
from starknet_py.net.full_node_client import FullNodeClient
from starknet_py.net.models.transaction import AccountTransaction, DeployAccountV3, InvokeV3

from ..types.calls import Call, to_felt
from ..types.chain import ChainId
from ..types.fees import FeeEstimate, ResourceBound, ResourceBounds

if TYPE_CHECKING:
    from ..core.account.identity import DeploymentData
    from ..core.account.signer import Signer


logger = logging.getLogger(__name__)

T = TypeVar("T", bound=AccountTransaction)


def fee_estimate_from_starknet_py(estimate: Any) -> FeeEstimate:
    """Convert a starknet-py ``EstimatedFee`` into bounds covering it exactly."""
    return FeeEstimate(
        overall_fee=int(estimate.overall_fee),
        unit=str(getattr(estimate, "unit", "FRI")),
        resource_bounds=ResourceBounds(
            l1_gas=ResourceBound(int(estimate.l1_gas_consumed), int(estimate.l1_gas_price)),
            l2_gas=ResourceBound(int(estimate.l2_gas_consumed), int(estimate.l2_gas_price)),
            l1_data_gas=ResourceBound(
                int(estimate.l1_data_gas_consumed), int(estimate.l1_data_gas_price)
            ),
        ),
    )


def execute_calldata(calls: Sequence[Call]) -> List[int]:
    """``__execute__`` calldata of a Cairo 1 account: ``[n, (to, selector, len, *data)...]``."""
    calldata = [len(calls)]
    for call in calls:
        calldata += [to_felt(call.contract_address), call.selector, len(call.calldata), *call.calldata]
    return calldata


class StarknetAccountClient:
    """Fee estimation, simulation, signing and submission for one account."""

    def __init__(
        self,
        node_url: str,
        address: str,
        signer: "Signer",
        chain_id: ChainId,
        *,
        client: Optional[FullNodeClient] = None,
    ) -> None:
        self.address = address
        self.signer = signer
        self.chain_id = chain_id
        self._client = client or FullNodeClient(node_url=node_url)

    # ---------------------------
    # Invoke
    # ---------------------------
    async def execute(
        self,
        calls: Sequence[Call],
        resource_bounds: Optional[ResourceBounds] = None,
    ) -> str:
        tx = await self._invoke(calls)
        if resource_bounds is not None:
            bounds = resource_bounds.to_starknet_py()
        else:
            estimate = await self._client.estimate_fee(tx=await self._sign(_as_query(tx)), skip_validate=True)
            bounds = estimate.to_resource_bounds()

        signed = await self._sign(dataclasses.replace(tx, resource_bounds=bounds))
        response = await self._client.send_transaction(signed)
        tx_hash = hex(response.transaction_hash)
        logger.info(f"Submitted invoke {tx_hash} from {self.address} ({len(calls)} calls)")
        return tx_hash

    async def estimate_invoke_fee(self, calls: Sequence[Call]) -> FeeEstimate:
        tx = await self._sign(_as_query(await self._invoke(calls)))
        estimate = await self._client.estimate_fee(tx=tx, skip_validate=True)
        return fee_estimate_from_starknet_py(estimate)

    async def simulate(self, calls: Sequence[Call]) -> Dict[str, Any]:
        """Dry-run ``calls``; returns ``{"transaction_trace": {"execute_invocation": ...}}``."""
        tx = await self._sign(_as_query(await self._invoke(calls)))
        simulated = await self._client.simulate_transactions(
            transactions=[tx],
            skip_validate=True,
            skip_fee_charge=True,
        )
        trace = simulated[0].transaction_trace
        invocation = getattr(trace, "execute_invocation", None)
        return {
            "transaction_trace": {
                "execute_invocation": {
                    "revert_reason": getattr(invocation, "revert_reason", None),
                }
            }
        }

    # ---------------------------
    # Deploy
    # ---------------------------
    async def estimate_deploy_fee(self, deployment: "DeploymentData") -> FeeEstimate:
        tx = await self._sign(_as_query(_deploy_account(deployment, ResourceBoundsMapping.init_with_zeros())))
        estimate = await self._client.estimate_fee(tx=tx, skip_validate=True)
        return fee_estimate_from_starknet_py(estimate)

    async def deploy_account(
        self,
        deployment: "DeploymentData",
        resource_bounds: ResourceBounds,
    ) -> str:
        tx = await self._sign(_deploy_account(deployment, resource_bounds.to_starknet_py()))
        response = await self._client.deploy_account(tx)
        tx_hash = hex(response.transaction_hash)
        logger.info(f"Submitted deploy_account {tx_hash} for {deployment.address}")
        return tx_hash

    # ---------------------------
    # Signing
    # ---------------------------
    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> List[int]:
        return await self.signer.sign_message(typed_data, self.address)

    async def _sign(self, tx: T) -> T:
        tx_hash = tx.calculate_hash(self.chain_id.to_felt())
        signature = await self.signer.sign_transaction_hash(tx_hash)
        return dataclasses.replace(tx, signature=[to_felt(item) for item in signature])

    async def _invoke(self, calls: Sequence[Call]) -> InvokeV3:
        nonce = await self._client.get_contract_nonce(self.address)
        return InvokeV3(
            version=3,
            signature=[],
            nonce=nonce,
            resource_bounds=ResourceBoundsMapping.init_with_zeros(),
            tip=0,
            calldata=execute_calldata(calls),
            sender_address=to_felt(self.address),
        )


def _as_query(tx: T) -> T:
    return dataclasses.replace(tx, version=tx.version + QUERY_VERSION_BASE)


def _deploy_account(deployment: "DeploymentData", resource_bounds: ResourceBoundsMapping) -> DeployAccountV3:
    return DeployAccountV3(
        version=3,
        signature=[],
        nonce=0,
        resource_bounds=resource_bounds,
        tip=0,
        class_hash=to_felt(deployment.class_hash),
        contract_address_salt=to_felt(deployment.salt),
        constructor_calldata=[to_felt(item) for item in deployment.calldata],
    )
