"""
Indicator Calculator

Point-in-time technical indicators used by the breakdown strategy:
- EMA (Exponential Moving Average)
- RSI (Relative Strength Index)
- ATR (Average True Range)
- Donchian channel low

Every function returns a single value for the last point of the supplied
series and keeps no state between calls, so identical inputs always give
bit-identical outputs. Callers slice the window they want before calling.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class IndicatorConfig:
    """Periods for indicator calculations"""
    ema_short: int = 20
    ema_long: int = 50
    ema_trend: int = 200
    rsi_period: int = 14
    atr_period: int = 14
    donchian_period: int = 20


class IndicatorCalculator:
    """
    Calculate technical indicators for strategy analysis.

    All methods are static for easy testing and reusability.
    """

    @staticmethod
    def calculate_ema(series: Sequence[float], period: int) -> float:
        """
        Calculate Exponential Moving Average of the whole series.

        Seeded with the first element (not a simple average) and iterated
        left to right with smoothing factor k = 2 / (period + 1).

        Args:
            series: Price series (typically closes), already windowed
            period: EMA period

        Returns:
            EMA value at the last point

        Raises:
            ValueError: If the series is empty
        """
        if len(series) == 0:
            raise ValueError("EMA requires a non-empty series")

        k = 2.0 / (period + 1)
        ema = float(series[0])
        for value in series[1:]:
            ema = float(value) * k + ema * (1 - k)
        return ema

    @staticmethod
    def calculate_rsi(series: Sequence[float], period: int = 14) -> float:
        """
        Calculate Relative Strength Index over the last ``period + 1`` points.

        Average gain and average loss are the window sums divided by
        ``period`` (no running smoothing). Shorter series use whatever
        differences exist.

        Formula:
        1. RS = average gain / average loss
        2. RSI = 100 - (100 / (1 + RS))

        Args:
            series: Price series (typically close prices)
            period: RSI period (default: 14)

        Returns:
            RSI value (0-100); exactly 100 when average loss is zero
        """
        window = np.asarray(series[-(period + 1):], dtype=float)
        deltas = np.diff(window)
        if np.isnan(deltas).any():
            return float("nan")

        gains = deltas[deltas > 0].sum()
        losses = -deltas[deltas < 0].sum()

        avg_gain = gains / period
        avg_loss = losses / period

        if avg_loss == 0:
            return 100.0

        rs = avg_gain / avg_loss
        return float(100 - (100 / (1 + rs)))

    @staticmethod
    def calculate_atr(
        highs: Sequence[float],
        lows: Sequence[float],
        closes: Sequence[float],
        period: int = 14
    ) -> float:
        """
        Calculate Average True Range.

        True Range (from the second bar on) is the greatest of:
        1. Current high - Current low
        2. Abs(Current high - Previous close)
        3. Abs(Current low - Previous close)

        ATR is the sum of the most recent ``period`` true ranges divided by
        ``period`` (simple mean, no Wilder smoothing).

        Args:
            highs: High prices
            lows: Low prices
            closes: Close prices
            period: ATR period (default: 14)

        Returns:
            ATR value at the last bar
        """
        high = np.asarray(highs, dtype=float)[1:]
        low = np.asarray(lows, dtype=float)[1:]
        prev_close = np.asarray(closes, dtype=float)[:-1]

        true_range = np.maximum.reduce([
            high - low,
            np.abs(high - prev_close),
            np.abs(low - prev_close),
        ])

        return float(true_range[-period:].sum() / period)

    @staticmethod
    def calculate_donchian_low(lows: Sequence[float], period: int = 20) -> float:
        """
        Lowest low over the ``period`` bars before the last one.

        The most recent bar is excluded so a breakout is not cancelled by its
        own low. With fewer than ``period + 1`` points the whole history
        except the last point is used.

        Args:
            lows: Low prices
            period: Lookback window

        Returns:
            Donchian low; the single low for a one-point series, 0 for empty
        """
        if len(lows) == 0:
            return 0.0
        if len(lows) == 1:
            return float(lows[0])

        start = max(0, len(lows) - period - 1)
        return float(np.min(np.asarray(lows[start:len(lows) - 1], dtype=float)))

    @staticmethod
    def calculate_donchian_high(highs: Sequence[float], period: int = 20) -> float:
        """Highest high over the ``period`` bars before the last one (mirror of the low)."""
        if len(highs) == 0:
            return 0.0
        if len(highs) == 1:
            return float(highs[0])

        start = max(0, len(highs) - period - 1)
        return float(np.max(np.asarray(highs[start:len(highs) - 1], dtype=float)))


ema = IndicatorCalculator.calculate_ema
rsi = IndicatorCalculator.calculate_rsi
atr = IndicatorCalculator.calculate_atr
donchian_low = IndicatorCalculator.calculate_donchian_low
donchian_high = IndicatorCalculator.calculate_donchian_high
