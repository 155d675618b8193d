"""StarkZap: Starknet wallets, transactions, staking and route aggregation."""

from .core.account import (
    AccountIdentity,
    ArgentPreset,
    ArgentXV050Preset,
    BraavosPreset,
    DevnetPreset,
    EthereumSigner,
    OpenZeppelinEthPreset,
    OpenZeppelinPreset,
    PrivySigner,
    StarkSigner,
)
from .core.erc20 import Erc20, Transfer
from .core.errors import (
    NotDeployedError,
    PreflightFailure,
    RouteProviderError,
    StarkZapError,
    TransactionRevertedError,
    ValidationError,
)
from .core.execution import FeeMode, TxBuilder, TxHandle
from .core.routing import BridgeAggregator, SwapAggregator
from .core.wallet import BrowserWallet, CartridgeWallet, DeployMode, Wallet
from .sdk import StarkZap
from .types import ETH, STRK, USDC, USDT, Amount, ChainId, Token

__version__ = "0.3.0"

__all__ = [
    "StarkZap",
    "Wallet",
    "BrowserWallet",
    "CartridgeWallet",
    "DeployMode",
    "FeeMode",
    "TxBuilder",
    "TxHandle",
    "Erc20",
    "Transfer",
    "SwapAggregator",
    "BridgeAggregator",
    "AccountIdentity",
    "StarkSigner",
    "EthereumSigner",
    "PrivySigner",
    "DevnetPreset",
    "OpenZeppelinPreset",
    "OpenZeppelinEthPreset",
    "ArgentPreset",
    "ArgentXV050Preset",
    "BraavosPreset",
    "Amount",
    "Token",
    "ChainId",
    "ETH",
    "STRK",
    "USDC",
    "USDT",
    "StarkZapError",
    "ValidationError",
    "NotDeployedError",
    "PreflightFailure",
    "TransactionRevertedError",
    "RouteProviderError",
]
