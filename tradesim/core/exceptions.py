"""
Custom Exceptions
=================
Centralized exception definitions for the backtesting system.
Using specific exceptions helps with error handling and debugging.
"""

from typing import Any, Optional


class TradingSystemError(Exception):
    """Base exception for all tradesim errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(TradingSystemError):
    """Raised when there's a configuration problem."""
    pass


# =============================================================================
# Data Errors
# =============================================================================

class DataError(TradingSystemError):
    """Base class for data-related errors."""
    pass


class MarketDataError(DataError):
    """Raised when input price data is malformed or missing columns."""
    pass


class InsufficientDataError(DataError):
    """Raised when there's not enough data for a run."""

    def __init__(self, message: str, available: int, required: int):
        super().__init__(
            message,
            {"available": available, "required": required}
        )


# =============================================================================
# External Feed Errors
# =============================================================================

class ConfidenceFeedError(TradingSystemError):
    """Raised when the confidence index cannot be retrieved."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            {"url": url, "status_code": status_code}
        )


class MalformedResponseError(ConfidenceFeedError):
    """Raised when the confidence index payload has an unexpected shape."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message, url=url)


# =============================================================================
# Risk Management Errors
# =============================================================================

class RiskManagementError(TradingSystemError):
    """Base class for risk management errors."""
    pass


class InvalidWeightsError(RiskManagementError):
    """Raised when a target weight table is negative or does not sum to one."""

    def __init__(self, regime: str, total: float):
        super().__init__(
            f"Invalid target weights for regime {regime}",
            {"regime": regime, "total": total}
        )


# =============================================================================
# Rebalance Errors
# =============================================================================

class RebalanceInProgressError(TradingSystemError):
    """Raised when a rebalance is requested while another one is running."""

    def __init__(self):
        super().__init__("A rebalance is already in progress")
