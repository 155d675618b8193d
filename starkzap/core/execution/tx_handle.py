"""
Submitted transaction handle.

Wraps a transaction hash with confirmation helpers:

    tx = await wallet.execute(calls)
    print(tx.explorer_url)
    await tx.wait()
    receipt = await tx.receipt()
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import quote

from .models import (
    DEFAULT_SUCCESS_STATES,
    ExecutionStatus,
    FinalityStatus,
    TxStatusUpdate,
    is_final_status,
)
from ..errors import TransactionRevertedError, ValidationError
from ...config import settings
from ...providers.base import ChainReader
from ...types.chain import ChainId, ExplorerConfig, ExplorerProvider


logger = logging.getLogger(__name__)

WatchCallback = Callable[[TxStatusUpdate], Any]
ErrorCallback = Callable[[BaseException], Any]


def build_explorer_url(tx_hash: str, chain_id: ChainId, config: Optional[ExplorerConfig] = None) -> str:
    encoded = quote(tx_hash, safe="")
    if config is not None and config.base_url:
        base_url = config.base_url
        if not base_url.startswith(("http://", "https://")):
            raise ValidationError(f"explorer.base_url must be an http(s) URL: {base_url}")
        return f"{base_url.rstrip('/')}/tx/{encoded}"

    subdomain = "" if chain_id.is_mainnet else "sepolia."
    provider = config.provider if config is not None else ExplorerProvider.VOYAGER
    if provider == ExplorerProvider.STARKSCAN:
        return f"https://{subdomain}starkscan.co/tx/{encoded}"
    return f"https://{subdomain}voyager.online/tx/{encoded}"


class TxHandle:
    """A submitted Starknet transaction."""

    def __init__(
        self,
        tx_hash: str,
        rpc: ChainReader,
        chain_id: ChainId,
        explorer: Optional[ExplorerConfig] = None,
    ):
        self.hash = tx_hash
        self.chain_id = chain_id
        self.explorer_url = build_explorer_url(tx_hash, chain_id, explorer)
        self._rpc = rpc
        self._cached_receipt: Optional[Dict[str, Any]] = None

    async def wait(
        self,
        success_states: Optional[Iterable[str]] = None,
        retry_interval: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Poll until the transaction reaches one of ``success_states``.

        Args:
            success_states: finality states that count as done
                (default ACCEPTED_ON_L2 / ACCEPTED_ON_L1)
            retry_interval: seconds between polls

        Returns:
            The last status payload from the node

        Raises:
            TransactionRevertedError: execution REVERTED or finality REJECTED
        """
        targets = {
            state.value if isinstance(state, FinalityStatus) else str(state)
            for state in (success_states or DEFAULT_SUCCESS_STATES)
        }
        interval = retry_interval or settings.tx_retry_interval_seconds

        while True:
            status = await self._rpc.get_transaction_status(self.hash)
            finality = status.get("finality_status")
            execution = status.get("execution_status")

            if execution == ExecutionStatus.REVERTED.value or finality == FinalityStatus.REJECTED.value:
                raise TransactionRevertedError(
                    self.hash,
                    execution or finality,
                    status.get("failure_reason"),
                )
            if finality in targets:
                return status

            await asyncio.sleep(interval)

    def watch(
        self,
        callback: WatchCallback,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Callable[[], None]:
        """Report each distinct status change until the transaction is final.

        Returns an unsubscribe callable that stops polling early. ``timeout``
        of 0 disables the deadline.
        """
        interval = settings.tx_watch_poll_interval_seconds if poll_interval is None else poll_interval
        deadline_s = settings.tx_watch_timeout_seconds if timeout is None else timeout
        if interval <= 0:
            raise ValidationError("tx.watch poll_interval must be a positive number")
        if deadline_s < 0:
            raise ValidationError("tx.watch timeout must be >= 0")

        task = asyncio.get_running_loop().create_task(
            self._poll_status(callback, interval, deadline_s, on_error)
        )

        def unsubscribe() -> None:
            if not task.done():
                task.cancel()

        return unsubscribe

    async def _poll_status(
        self,
        callback: WatchCallback,
        interval: float,
        timeout: float,
        on_error: Optional[ErrorCallback],
    ) -> None:
        started_at = time.monotonic()
        last_seen: Optional[TxStatusUpdate] = None

        while True:
            if timeout > 0 and time.monotonic() - started_at >= timeout:
                error = TimeoutError(f"Transaction watch timed out after {timeout}s for {self.hash}")
                logger.warning(str(error))
                if on_error:
                    on_error(error)
                return

            try:
                status = await self._rpc.get_transaction_status(self.hash)
                finality = status.get("finality_status")
                execution = status.get("execution_status")

                update = TxStatusUpdate(finality=finality, execution=execution)
                if finality and update != last_seen:
                    last_seen = update
                    callback(update)

                if is_final_status(finality, execution):
                    return
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(f"Polling status of {self.hash} failed: {exc}")
                if on_error:
                    on_error(exc)

            await asyncio.sleep(interval)

    async def receipt(self) -> Dict[str, Any]:
        """Fetch the receipt; cached once it is final."""
        if self._cached_receipt is not None:
            logger.debug(f"Receipt cache hit for {self.hash}")
            return self._cached_receipt

        receipt = await self._rpc.get_transaction_receipt(self.hash)
        if is_final_status(receipt.get("finality_status"), receipt.get("execution_status")):
            self._cached_receipt = receipt
        return receipt

    def __repr__(self) -> str:
        return f"TxHandle({self.hash})"
