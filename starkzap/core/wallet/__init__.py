from .base import BaseWallet
from .browser import BrowserWallet, WalletExtension
from .cartridge import CartridgeWallet, ControllerSession
from .models import DeployMode, ProgressEvent, ProgressStep
from .utils import DeploymentCache, check_deployed, ensure_wallet_ready, preflight_transaction
from .wallet import Wallet

__all__ = [
    "BaseWallet",
    "Wallet",
    "BrowserWallet",
    "WalletExtension",
    "CartridgeWallet",
    "ControllerSession",
    "DeployMode",
    "ProgressStep",
    "ProgressEvent",
    "DeploymentCache",
    "check_deployed",
    "ensure_wallet_ready",
    "preflight_transaction",
]
