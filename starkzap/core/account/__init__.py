from .identity import AccountIdentity, DeploymentData
from .presets import (
    ACCOUNT_PRESETS,
    AccountClassTemplate,
    ArgentPreset,
    ArgentXV050Preset,
    BraavosPreset,
    DevnetPreset,
    OpenZeppelinEthPreset,
    OpenZeppelinPreset,
    get_account_preset,
)
from .signer import EthereumSigner, PrivySigner, Signer, StarkSigner

__all__ = [
    "AccountIdentity",
    "DeploymentData",
    "AccountClassTemplate",
    "ACCOUNT_PRESETS",
    "DevnetPreset",
    "OpenZeppelinPreset",
    "OpenZeppelinEthPreset",
    "ArgentPreset",
    "ArgentXV050Preset",
    "BraavosPreset",
    "get_account_preset",
    "Signer",
    "StarkSigner",
    "EthereumSigner",
    "PrivySigner",
]
