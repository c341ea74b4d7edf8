"""
Core Module
===========
Core utilities, configuration, and shared components.
"""

from tradesim.core.config import Settings, VaultSettings, ThresholdPreset, get_settings
from tradesim.core.logging_config import (
    get_logger,
    setup_logging,
    Loggers,
    LogMessages,
)
from tradesim.core.exceptions import (
    TradingSystemError,
    ConfigurationError,
    DataError,
    MarketDataError,
    InsufficientDataError,
    ConfidenceFeedError,
    MalformedResponseError,
    RiskManagementError,
    InvalidWeightsError,
    RebalanceInProgressError,
)

__all__ = [
    # Configuration
    "Settings",
    "VaultSettings",
    "ThresholdPreset",
    "get_settings",
    # Logging
    "get_logger",
    "setup_logging",
    "Loggers",
    "LogMessages",
    # Exceptions
    "TradingSystemError",
    "ConfigurationError",
    "DataError",
    "MarketDataError",
    "InsufficientDataError",
    "ConfidenceFeedError",
    "MalformedResponseError",
    "RiskManagementError",
    "InvalidWeightsError",
    "RebalanceInProgressError",
]
