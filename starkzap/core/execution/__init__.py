from .models import (
    DeferredCalls,
    ExecutionStatus,
    FeeMode,
    FinalityStatus,
    LiteralCalls,
    PreflightResult,
    TxStatusUpdate,
)
from .tx_builder import TxBuilder
from .tx_handle import TxHandle, build_explorer_url

__all__ = [
    "FeeMode",
    "FinalityStatus",
    "ExecutionStatus",
    "TxStatusUpdate",
    "PreflightResult",
    "LiteralCalls",
    "DeferredCalls",
    "TxBuilder",
    "TxHandle",
    "build_explorer_url",
]
