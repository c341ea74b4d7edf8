"""
Data Module

Handles historical bar loading, daily price history and the confidence
index feed.
"""

from tradesim.data.models import Bar, PricePoint, ConfidencePoint
from tradesim.data.historical_loader import HistoricalDataLoader, load_bars
from tradesim.data.price_history import load_price_history
from tradesim.data.confidence_feed import (
    ConfidenceIndexClient,
    ConfidenceIndexResponse,
    latest_confidence,
    load_confidence_history,
)

__all__ = [
    'Bar',
    'PricePoint',
    'ConfidencePoint',
    'HistoricalDataLoader',
    'load_bars',
    'load_price_history',
    'ConfidenceIndexClient',
    'ConfidenceIndexResponse',
    'latest_confidence',
    'load_confidence_history',
]
