import os

from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        env_prefix="STARKZAP_",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the un-prefixed RPC variable most Starknet tooling exports."""

        super().model_post_init(__context)

        if not self.rpc_url:
            fallback = os.getenv("STARKNET_RPC_URL") or os.getenv("STARKNET_RPC")
            if fallback:
                object.__setattr__(self, "rpc_url", fallback)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Network
    network: str = Field(
        default="mainnet",
        description="Default network preset (mainnet, sepolia, devnet)",
    )
    rpc_url: str = Field(default="", description="Starknet JSON-RPC URL overriding the preset")
    rpc_timeout_seconds: int = Field(default=30, description="Timeout for JSON-RPC requests")
    http_timeout_seconds: int = Field(default=20, description="Timeout for swap/bridge venue APIs")

    # Paymaster (SNIP-29)
    paymaster_url: str = Field(
        default="",
        description="Paymaster JSON-RPC endpoint; empty uses the network default",
    )
    paymaster_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("starkzap_paymaster_api_key", "avnu_paymaster_api_key"),
        description="API key sent in the x-paymaster-api-key header",
    )

    # Explorer
    explorer_provider: str = Field(default="voyager", description="voyager or starkscan")
    explorer_base_url: str = Field(default="", description="Custom explorer base URL")

    # Transaction tracking
    tx_retry_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Poll interval used by TxHandle.wait",
    )
    tx_watch_poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Default poll interval used by TxHandle.watch",
    )
    tx_watch_timeout_seconds: float = Field(
        default=600.0,
        ge=0,
        description="Default timeout for TxHandle.watch (0 disables the timeout)",
    )

    # Account deployment
    deployment_negative_ttl_seconds: float = Field(
        default=3.0,
        ge=0,
        description="How long a 'not deployed' answer is trusted before re-checking",
    )
    deploy_fee_multiplier: int = Field(
        default=2,
        ge=1,
        description="Multiplier applied to every estimated deploy resource bound",
    )

    # Route scoring
    route_fee_ceiling_base: int = Field(
        default=10**16,
        gt=0,
        description="Fee (base units) that maps to a fee score of 1000",
    )
    route_time_ceiling_seconds: int = Field(
        default=86400,
        gt=0,
        description="Estimated time that maps to a time score of 1000; also used when time is unknown",
    )

    # Swap venues
    avnu_api_base: str = Field(default="", description="Override AVNU API base for every chain")
    avnu_quotes_page_size: int = Field(default=5, ge=1, description="AVNU quotes page size")
    ekubo_api_base: str = Field(
        default="https://prod-api-quoter.ekubo.org",
        description="Ekubo quoter API base",
    )

    # Bridge venues
    orbiter_api_base: str = Field(
        default="https://api.orbiter.finance",
        description="Orbiter quote API base",
    )
    layerswap_api_base: str = Field(
        default="https://api.layerswap.io",
        description="Layerswap API base",
    )
    layerswap_api_key: str = Field(default="", description="Layerswap bearer token")
    starkgate_relayer_url: str = Field(
        default="",
        description="Relayer endpoint enabling L1 to L2 Starkgate deposits",
    )

    @property
    def has_paymaster_key(self) -> bool:
        return bool(self.paymaster_api_key)

    def resolve_rpc_url(self, preset_url: Optional[str] = None) -> str:
        return self.rpc_url or preset_url or ""


# Global settings instance
settings = Settings()
