"""
Wallet lifecycle models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..execution.models import FeeMode, PreflightResult
from ...providers.paymaster import PaymasterTimeBounds


class DeployMode(str, Enum):
    NEVER = "never"
    IF_NEEDED = "if_needed"
    ALWAYS = "always"


class ProgressStep(str, Enum):
    CONNECTED = "CONNECTED"
    CHECK_DEPLOYED = "CHECK_DEPLOYED"
    DEPLOYING = "DEPLOYING"
    FAILED = "FAILED"
    READY = "READY"


@dataclass(frozen=True)
class ProgressEvent:
    step: ProgressStep


ProgressCallback = Callable[[ProgressEvent], None]


__all__ = [
    "DeployMode",
    "ProgressStep",
    "ProgressEvent",
    "ProgressCallback",
    "FeeMode",
    "PaymasterTimeBounds",
    "PreflightResult",
]
