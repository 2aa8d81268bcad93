"""Application configuration using pydantic-settings.

Settings are process-wide defaults read from the environment. WalletConfig is
the per-manager configuration handed to chain adapters.
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ======================
    # Seed phrases / HD wallet
    # ======================
    seed_phrase_words: int = Field(
        default=12, description="Word count of generated BIP-39 seed phrases"
    )
    wallet_seed_phrase: Optional[str] = Field(
        default=None, description="BIP-39 seed phrase for the default signer"
    )
    network: str = Field(default="ETH", description="Default chain symbol (ETH, BSC, TRX, ...)")

    # ======================
    # Adapter pass-through
    # ======================
    rpc_url: str = Field(default="", description="Node RPC URL for chain adapters")
    request_timeout: float = Field(
        default=30.0, description="Network timeout in seconds, passed through to adapters"
    )

    # ======================
    # Safety Guards
    # ======================
    transfer_max_fee: Optional[int] = Field(
        default=None, ge=0, description="Maximum fee for transfers in base units (None = no cap)"
    )
    swap_max_fee: Optional[int] = Field(
        default=None, ge=0, description="Maximum fee for swaps in base units (None = no cap)"
    )

    # ======================
    # Dry run
    # ======================
    dry_run: bool = Field(default=True, description="Use simulated adapters (no real transactions)")
    dry_run_fee_rate_normal: int = Field(
        default=20_000_000_000, ge=0, description="Simulated normal fee rate (base units)"
    )
    dry_run_fee_rate_fast: int = Field(
        default=30_000_000_000, ge=0, description="Simulated fast fee rate (base units)"
    )
    dry_run_fiat_fee_bps: int = Field(
        default=150, ge=0, le=10_000, description="Simulated fiat provider fee in basis points"
    )
    dry_run_widget_url: str = Field(
        default="https://widget.dryrun.invalid", description="Simulated fiat widget base URL"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_wallet(self) -> bool:
        """Check if a default seed phrase is configured."""
        return bool(self.wallet_seed_phrase and len(self.wallet_seed_phrase.split()) >= 12)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "network": self.network,
            "rpc_url": self.rpc_url or "(not set)",
            "request_timeout": self.request_timeout,
            "wallet_configured": self.has_wallet,
            "wallet_seed_phrase": "***" if self.wallet_seed_phrase else "(not set)",
            "safety": {
                "transfer_max_fee": self.transfer_max_fee,
                "swap_max_fee": self.swap_max_fee,
            },
        }


class WalletConfig(BaseModel):
    """Per-manager wallet configuration.

    Chain adapters may read extra keys; they are kept as given.
    """

    model_config = ConfigDict(extra="allow")

    network: str = "ETH"
    transfer_max_fee: Optional[int] = Field(default=None, ge=0)
    request_timeout: Optional[float] = Field(default=None, gt=0)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "WalletConfig":
        settings = settings or get_settings()
        data = {
            "network": settings.network,
            "transfer_max_fee": settings.transfer_max_fee,
            "request_timeout": settings.request_timeout,
        }
        data.update(overrides)
        return cls(**data)


class SwapProtocolConfig(BaseModel):
    """Swap protocol configuration."""

    swap_max_fee: Optional[int] = Field(default=None, ge=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
