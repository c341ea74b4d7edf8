"""
Market Data Models

Immutable value types passed from the loaders to the simulators.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Bar:
    """One OHLC observation. ``time`` is an integer timestamp in a run-wide unit."""
    time: int
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class PricePoint:
    """Daily closing price keyed by ISO date (YYYY-MM-DD)."""
    date: str
    price: float


@dataclass(frozen=True)
class ConfidencePoint:
    """Daily confidence index reading keyed by ISO date (YYYY-MM-DD)."""
    date: str
    confidence: float
