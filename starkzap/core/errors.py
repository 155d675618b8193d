"""
Error Classification

Every failure the SDK raises derives from ``StarkZapError`` and carries an
``ErrorCategory`` so callers can decide whether to retry, fix their input or
give up.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors for recovery decisions."""

    VALIDATION = "validation"       # Malformed caller input
    NOT_DEPLOYED = "not_deployed"   # Account contract missing on chain
    PREFLIGHT = "preflight"         # Simulation predicted a revert
    NETWORK = "network"             # Timeouts, dropped connections
    RPC = "rpc"                     # JSON-RPC error object
    TRANSACTION_REVERTED = "transaction_reverted"
    PROVIDER = "provider"           # Swap/bridge venue failure
    PAYMASTER = "paymaster"
    BUILDER_STATE = "builder_state" # TxBuilder misuse
    WALLET = "wallet"               # Unsupported wallet operation
    STAKING = "staking"             # Pool membership preconditions
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = False
    suggested_action: Optional[str] = None
    provider: Optional[str] = None
    chain_id: Optional[str] = None
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class StarkZapError(Exception):
    """Base class for all SDK errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = False

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(
            category=self.category,
            recoverable=self.recoverable,
        )


# Validation
class ValidationError(StarkZapError):
    """Caller input is malformed. Never retried."""

    category = ErrorCategory.VALIDATION


class InvalidFormat(ValidationError):
    """Amount input is not a non-negative decimal number."""


class PrecisionOverflow(ValidationError):
    """Amount input has more fractional digits than the token allows."""


class IncompatibleAmounts(ValidationError):
    """Two amounts with different decimals or symbols were combined."""


# Account lifecycle
class NotDeployedError(StarkZapError):
    """The account contract is not deployed yet.

    Recover with ``wallet.ensure_ready(deploy=DeployMode.IF_NEEDED)``.
    """

    category = ErrorCategory.NOT_DEPLOYED
    recoverable = True

    def __init__(self, message: Optional[str] = None, address: Optional[str] = None):
        super().__init__(
            message
            or 'Account is not deployed. Call wallet.ensure_ready(deploy="if_needed") '
            "before execute() in user_pays mode.",
            context=ErrorContext(
                category=ErrorCategory.NOT_DEPLOYED,
                recoverable=True,
                suggested_action="ensure_ready",
                details={"address": address} if address else {},
            ),
        )
        self.address = address


class PreflightFailure(StarkZapError):
    """A dry-run simulation predicted failure; nothing was submitted."""

    category = ErrorCategory.PREFLIGHT

    def __init__(self, reason: str):
        super().__init__(f"Preflight failed: {reason}")
        self.reason = reason


# RPC
class RpcError(StarkZapError):
    """JSON-RPC call returned an error object."""

    category = ErrorCategory.RPC

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class ContractNotFoundError(RpcError):
    """No contract is deployed at the requested address (RPC code 20)."""


class TransientRpcError(StarkZapError):
    """Timeout or connection failure talking to the node."""

    category = ErrorCategory.NETWORK
    recoverable = True


class TransactionRevertedError(StarkZapError):
    """Transaction reached a failure state on chain."""

    category = ErrorCategory.TRANSACTION_REVERTED

    def __init__(self, tx_hash: str, status: str, revert_reason: Optional[str] = None):
        message = f"Transaction {tx_hash} failed with status {status}"
        if revert_reason:
            message = f"{message}: {revert_reason}"
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.TRANSACTION_REVERTED,
                tx_hash=tx_hash,
                details={"status": status},
            ),
        )
        self.tx_hash = tx_hash
        self.status = status
        self.revert_reason = revert_reason


# Routing
class RouteProviderError(StarkZapError):
    """A single swap/bridge venue failed to quote or build a route."""

    category = ErrorCategory.PROVIDER

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(category=ErrorCategory.PROVIDER, provider=provider),
        )
        self.provider = provider


class NoRoutesError(RouteProviderError):
    """Venue answered but offered no route for the pair/amount."""


class PaymasterError(StarkZapError):
    """Paymaster provider error."""

    category = ErrorCategory.PAYMASTER

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


# TxBuilder
class BuilderStateError(StarkZapError):
    """TxBuilder used in an invalid state. Programmer error."""

    category = ErrorCategory.BUILDER_STATE


class AlreadySentError(BuilderStateError):
    def __init__(self) -> None:
        super().__init__("This transaction has already been sent.")


class EmptyTransactionError(BuilderStateError):
    def __init__(self) -> None:
        super().__init__("No calls to execute. Add at least one operation before calling send().")


class WalletError(StarkZapError):
    """Wallet variant cannot perform the requested operation."""

    category = ErrorCategory.WALLET


class SignerError(StarkZapError):
    """A signer could not produce a signature."""

    category = ErrorCategory.WALLET


def is_contract_not_found(error: BaseException) -> bool:
    if isinstance(error, ContractNotFoundError):
        return True
    if isinstance(error, RpcError) and error.code == 20:
        return True
    message = str(error).lower()
    return "contract not found" in message or "contract_not_found" in message


def is_already_deployed_error(error: BaseException) -> bool:
    message = str(error).lower()
    return (
        "already deployed" in message
        or "account already exists" in message
        or "contract already exists" in message
    )


class StakingError(StarkZapError):
    """Pool membership precondition not met (not a member, nothing to claim, ...)."""

    category = ErrorCategory.STAKING
