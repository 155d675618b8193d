"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

from ..errors import PreflightFailure
from ...types.calls import Call


class FeeMode(str, Enum):
    """Who pays the transaction fee."""
    USER_PAYS = "user_pays"      # Account pays in STRK
    SPONSORED = "sponsored"      # Paymaster pays


class FinalityStatus(str, Enum):
    RECEIVED = "RECEIVED"
    PRE_CONFIRMED = "PRE_CONFIRMED"
    ACCEPTED_ON_L2 = "ACCEPTED_ON_L2"
    ACCEPTED_ON_L1 = "ACCEPTED_ON_L1"
    REJECTED = "REJECTED"


class ExecutionStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    REVERTED = "REVERTED"


DEFAULT_SUCCESS_STATES = (FinalityStatus.ACCEPTED_ON_L2, FinalityStatus.ACCEPTED_ON_L1)


def is_final_status(finality: Optional[str], execution: Optional[str]) -> bool:
    if execution == ExecutionStatus.REVERTED.value:
        return True
    return finality in (
        FinalityStatus.ACCEPTED_ON_L2.value,
        FinalityStatus.ACCEPTED_ON_L1.value,
        FinalityStatus.REJECTED.value,
    )


@dataclass(frozen=True)
class TxStatusUpdate:
    """One observed (finality, execution) status pair."""
    finality: str
    execution: Optional[str] = None


@dataclass
class PreflightResult:
    """Outcome of a dry-run simulation. Advisory only."""
    ok: bool
    reason: Optional[str] = None

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise PreflightFailure(self.reason or "unknown reason")


# Pending TxBuilder operations
@dataclass
class LiteralCalls:
    """Calls known at the time they were added."""
    calls: List[Call] = field(default_factory=list)


@dataclass
class DeferredCalls:
    """Calls produced by an async resolver when the builder is flushed."""
    resolver: Callable[[], Awaitable[List[Call]]]
    label: str = "deferred"


PendingOperation = Union[LiteralCalls, DeferredCalls]
