"""
Lifecycle helpers shared by every wallet variant.

Each wallet owns a ``DeploymentCache`` and drives ``ensure_wallet_ready`` /
``preflight_transaction`` with its own callables, so the variants share the
deployment state machine without sharing a base implementation.
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .models import DeployMode, ProgressCallback, ProgressEvent, ProgressStep
from ..errors import NotDeployedError, PaymasterError, is_already_deployed_error, is_contract_not_found
from ..execution.models import DEFAULT_SUCCESS_STATES, FeeMode, PreflightResult
from ...config import settings
from ...providers.base import ChainReader
from ...providers.paymaster import (
    PaymasterProvider,
    PaymasterTimeBounds,
    deploy_and_invoke_transaction,
    invoke_transaction,
    signed_invoke,
    sponsored_parameters,
)
from ...types.calls import Call


logger = logging.getLogger(__name__)

TypedDataSigner = Callable[[Dict[str, Any]], Union[List[int], Awaitable[List[int]]]]


class DeploymentCache:
    """Remembers "deployed" forever and "not deployed" for a short TTL."""

    def __init__(self, negative_ttl_s: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.negative_ttl_s = settings.deployment_negative_ttl_seconds if negative_ttl_s is None else negative_ttl_s
        self._clock = clock
        self._deployed: Optional[bool] = None
        self._expires_at = 0.0

    def get(self) -> Optional[bool]:
        if self._deployed is True:
            return True
        if self._deployed is False and self._clock() < self._expires_at:
            return False
        return None

    def set(self, deployed: bool) -> None:
        self._deployed = deployed
        self._expires_at = float("inf") if deployed else self._clock() + self.negative_ttl_s

    def invalidate_negative(self) -> None:
        """Forget a cached "not deployed"; a cached "deployed" is kept."""
        if self._deployed is False:
            self.clear()

    def clear(self) -> None:
        self._deployed = None
        self._expires_at = 0.0


async def check_deployed(rpc: ChainReader, address: str) -> bool:
    """True when a class is deployed at ``address``. Only "contract not found" means False."""
    try:
        class_hash = await rpc.get_class_hash_at(address)
    except Exception as exc:
        if is_contract_not_found(exc):
            return False
        raise
    return bool(class_hash)


async def cached_is_deployed(cache: DeploymentCache, rpc: ChainReader, address: str) -> bool:
    cached = cache.get()
    if cached is not None:
        return cached
    deployed = await check_deployed(rpc, address)
    cache.set(deployed)
    return deployed


def _emit(on_progress: Optional[ProgressCallback], step: ProgressStep) -> None:
    if on_progress is not None:
        on_progress(ProgressEvent(step=step))


async def ensure_wallet_ready(
    wallet: Any,
    deploy: Union[DeployMode, str] = DeployMode.IF_NEEDED,
    fee_mode: Optional[FeeMode] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> None:
    """Drive CONNECTED → CHECK_DEPLOYED → [DEPLOYING] → READY.

    ``wallet`` needs ``is_deployed()`` and ``deploy(fee_mode=...)`` returning a
    TxHandle. Any failure emits FAILED and re-raises.
    """
    mode = DeployMode(deploy)
    try:
        _emit(on_progress, ProgressStep.CONNECTED)
        _emit(on_progress, ProgressStep.CHECK_DEPLOYED)
        deployed = await wallet.is_deployed()

        if deployed and mode is not DeployMode.ALWAYS:
            _emit(on_progress, ProgressStep.READY)
            return
        if not deployed and mode is DeployMode.NEVER:
            raise NotDeployedError(
                "Account not deployed and deploy mode is 'never'", address=wallet.address
            )

        _emit(on_progress, ProgressStep.DEPLOYING)
        tx = await wallet.deploy(fee_mode=fee_mode) if fee_mode is not None else await wallet.deploy()
        await tx.wait(success_states=DEFAULT_SUCCESS_STATES)
        logger.info(f"Account {wallet.address} deployed in {tx.hash}")
        _emit(on_progress, ProgressStep.READY)
    except Exception:
        _emit(on_progress, ProgressStep.FAILED)
        raise


def revert_reason_from_simulation(simulation: Any) -> Optional[str]:
    if not isinstance(simulation, dict):
        return None
    trace = simulation.get("transaction_trace")
    if not isinstance(trace, dict):
        return None
    invocation = trace.get("execute_invocation")
    if isinstance(invocation, dict) and invocation.get("revert_reason"):
        return invocation["revert_reason"]
    return None


async def preflight_transaction(
    is_deployed: Callable[[], Awaitable[bool]],
    simulate: Callable[[Sequence[Call]], Awaitable[Any]],
    calls: Sequence[Call],
    fee_mode: FeeMode,
) -> PreflightResult:
    """Dry-run ``calls``. Never raises; failures come back as ``ok=False``."""
    try:
        if not await is_deployed():
            if fee_mode == FeeMode.SPONSORED:
                # the paymaster deploys and invokes atomically
                return PreflightResult(ok=True)
            return PreflightResult(ok=False, reason="Account not deployed")

        reason = revert_reason_from_simulation(await simulate(calls))
        if reason:
            return PreflightResult(ok=False, reason=reason)
        return PreflightResult(ok=True)
    except Exception as exc:
        logger.debug(f"Preflight failed: {exc}")
        return PreflightResult(ok=False, reason=str(exc) or type(exc).__name__)


def sponsored_details(
    time_bounds: Optional[PaymasterTimeBounds] = None,
    deployment: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    details: Dict[str, Any] = {"parameters": sponsored_parameters(time_bounds)}
    if deployment is not None:
        details["deployment"] = deployment
    return details


async def submit_sponsored(
    paymaster: PaymasterProvider,
    user_address: str,
    calls: Sequence[Call],
    sign_typed_data: TypedDataSigner,
    time_bounds: Optional[PaymasterTimeBounds] = None,
    deployment: Optional[Dict[str, Any]] = None,
) -> str:
    """Build, sign and execute a paymaster transaction; returns the tx hash.

    With ``deployment`` the paymaster deploys the account in the same
    transaction before invoking ``calls``.
    """
    details = sponsored_details(time_bounds, deployment)
    if deployment is not None:
        transaction = deploy_and_invoke_transaction(user_address, calls, deployment)
    else:
        transaction = invoke_transaction(user_address, calls)

    built = await paymaster.build_transaction(transaction, details["parameters"])
    typed_data = built.get("typed_data")
    if typed_data is None:
        raise PaymasterError("Paymaster build response has no typed_data to sign", data=built)

    signature = sign_typed_data(typed_data)
    if inspect.isawaitable(signature):
        signature = await signature

    executable: Dict[str, Any] = {"type": transaction["type"], "invoke": signed_invoke(user_address, typed_data, signature)}
    if deployment is not None:
        executable["deployment"] = deployment
    return await paymaster.execute_transaction(executable, details["parameters"])


__all__ = [
    "DeploymentCache",
    "check_deployed",
    "cached_is_deployed",
    "ensure_wallet_ready",
    "preflight_transaction",
    "revert_reason_from_simulation",
    "sponsored_details",
    "submit_sponsored",
    "is_already_deployed_error",
]
