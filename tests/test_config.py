import logging

import structlog

from starkzap.config import Settings
from starkzap.logging_config import bind_wallet_context, clear_wallet_context, setup_logging


def test_prefixed_env(monkeypatch):
    """Settings load from STARKZAP_-prefixed variables."""

    monkeypatch.setenv("STARKZAP_NETWORK", "sepolia")
    monkeypatch.setenv("STARKZAP_DEPLOY_FEE_MULTIPLIER", "3")

    settings = Settings()

    assert settings.network == "sepolia"
    assert settings.deploy_fee_multiplier == 3


def test_rpc_url_falls_back_to_starknet_env(monkeypatch):
    """The un-prefixed STARKNET_RPC_URL is used when no prefixed URL is set."""

    monkeypatch.delenv("STARKZAP_RPC_URL", raising=False)
    monkeypatch.setenv("STARKNET_RPC_URL", "https://rpc.example")

    settings = Settings()

    assert settings.rpc_url == "https://rpc.example"
    assert settings.resolve_rpc_url("https://preset.example") == "https://rpc.example"


def test_prefixed_rpc_url_wins(monkeypatch):
    monkeypatch.setenv("STARKZAP_RPC_URL", "https://prefixed.example")
    monkeypatch.setenv("STARKNET_RPC_URL", "https://rpc.example")

    assert Settings().rpc_url == "https://prefixed.example"


def test_preset_used_without_override(monkeypatch):
    for name in ("STARKZAP_RPC_URL", "STARKNET_RPC_URL", "STARKNET_RPC"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.resolve_rpc_url("https://preset.example") == "https://preset.example"


def test_paymaster_key_alias(monkeypatch):
    """The AVNU paymaster key variable is accepted as an alias."""

    monkeypatch.delenv("STARKZAP_PAYMASTER_API_KEY", raising=False)
    monkeypatch.setenv("AVNU_PAYMASTER_API_KEY", "avnu-key")

    settings = Settings()

    assert settings.paymaster_api_key == "avnu-key"
    assert settings.has_paymaster_key


def test_setup_logging_installs_single_handler():
    setup_logging("debug")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging("warning")
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1


def test_wallet_context_binding():
    bind_wallet_context("0xabc", "SN_SEPOLIA")
    bound = structlog.contextvars.get_contextvars()
    assert bound["wallet"] == "0xabc"
    assert bound["chain_id"] == "SN_SEPOLIA"

    clear_wallet_context()
    assert "wallet" not in structlog.contextvars.get_contextvars()
