"""
Configuration Management
========================
Centralized settings management using Pydantic Settings.
All configuration is loaded from environment variables with validation.

Settings are constructed once at process start (see ``get_settings``) and
passed explicitly to the components that need them.
"""

from functools import lru_cache
from typing import List
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from enum import Enum


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ThresholdPreset(str, Enum):
    """Named confidence threshold sets for the regime overlay."""
    TUNED = "tuned"
    LEGACY = "legacy"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated on startup. Invalid configuration
    will prevent the application from starting.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = "tradesim"
    app_env: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # -------------------------------------------------------------------------
    # Backtest Parameters
    # -------------------------------------------------------------------------
    initial_capital: float = Field(
        default=10000.0,
        gt=0,
        description="Starting capital for a backtest run"
    )
    risk_per_trade: float = Field(
        default=0.01,
        gt=0,
        le=0.05,
        description="Fraction of capital risked per trade (1% = 0.01)"
    )
    max_notional_fraction: float = Field(
        default=0.30,
        gt=0,
        le=1.0,
        description="Cap on position notional as a fraction of capital"
    )
    time_exit_bars: int = Field(
        default=6,
        ge=1,
        description="Consecutive bars without signal confirmation before a time exit"
    )
    slippage_bps: float = Field(
        default=0.0,
        ge=0,
        le=500,
        description="Fixed slippage applied against each fill, in basis points"
    )
    output_dir: str = "./artifacts"

    # -------------------------------------------------------------------------
    # Regime Overlay
    # -------------------------------------------------------------------------
    regime_thresholds: ThresholdPreset = ThresholdPreset.TUNED
    regime_initial_equity: float = Field(default=10000.0, gt=0)
    rebalance_tolerance: float = Field(
        default=0.01,
        ge=0,
        le=1.0,
        description="Minimum weight drift before an asset is rebalanced"
    )

    # -------------------------------------------------------------------------
    # Confidence Index Feed
    # -------------------------------------------------------------------------
    cbbi_url: str = "https://colintalkscrypto.com/cbbi/data/latest.json"
    cbbi_timeout_seconds: float = Field(default=30.0, gt=0)
    cbbi_max_attempts: int = Field(default=3, ge=1, le=10)

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == Environment.PRODUCTION

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v

    def validate_trading_config(self) -> List[str]:
        """
        Validate backtest configuration and return list of warnings.
        Call this after loading settings to check for potential issues.
        """
        warnings = []

        if self.risk_per_trade > 0.02:
            warnings.append(
                f"Risk per trade ({self.risk_per_trade*100}%) exceeds recommended 2%"
            )

        if self.is_production and self.debug:
            warnings.append("Debug mode is enabled in production")

        if self.slippage_bps > 100:
            warnings.append(
                f"Slippage of {self.slippage_bps} bps will dominate most trade outcomes"
            )

        return warnings


class VaultSettings(BaseSettings):
    """
    Network and vault identifiers for the live regime rebalancer.

    Only the rebalance planner reads these. They are kept apart from
    ``Settings`` so a backtest never needs wallet material in its environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    rpc_url_arbitrum: str = Field(description="RPC provider for the Arbitrum network")
    wallet_private_key: SecretStr = Field(description="Vault manager wallet key")
    dhh_vault_id: str
    dhh_manager_id: str

    bull2x_token: str
    bull3x_token: str
    bear1x_token: str
    usdc_token: str

    slippage_bps: int = Field(default=50, ge=0, le=1000)

    @field_validator("rpc_url_arbitrum")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        """RPC endpoint must be an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("rpc_url_arbitrum must be an http(s) URL")
        return v

    @field_validator("wallet_private_key")
    @classmethod
    def validate_private_key(cls, v: SecretStr) -> SecretStr:
        """Reject obviously truncated keys."""
        if len(v.get_secret_value()) < 64:
            raise ValueError("wallet_private_key must be at least 64 characters")
        return v

    def token_addresses(self) -> dict[str, str]:
        """Token contract address per allocation bucket (spot has none)."""
        return {
            "bull2x": self.bull2x_token,
            "bull3x": self.bull3x_token,
            "bear1x": self.bear1x_token,
            "usdc": self.usdc_token,
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are only loaded once.
    """
    return Settings()
