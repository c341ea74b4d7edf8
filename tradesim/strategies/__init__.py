"""
Strategies Module

Indicator calculations and entry signal evaluation.
"""

from tradesim.strategies.indicators import (
    IndicatorCalculator,
    IndicatorConfig,
    ema,
    rsi,
    atr,
    donchian_low,
    donchian_high,
)
from tradesim.strategies.base_strategy import BaseStrategy, Direction, SignalResult
from tradesim.strategies.breakdown import BreakdownConfig, BreakdownStrategy

__all__ = [
    'IndicatorCalculator',
    'IndicatorConfig',
    'ema',
    'rsi',
    'atr',
    'donchian_low',
    'donchian_high',
    'BaseStrategy',
    'Direction',
    'SignalResult',
    'BreakdownConfig',
    'BreakdownStrategy',
]
