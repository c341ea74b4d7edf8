"""
Donchian Breakdown Strategy

Short-bias entry signal confirmed by three independent filters:
- Trend: the 200-period EMA sits above the close (downtrend context)
- Momentum: 20 EMA below 50 EMA and RSI(14) under 45
- Breakout: close under the prior 20-bar Donchian low by at least 0.25 ATR

Entry fires only when all three hold. Stop and target are always placed at
2 ATR and 3 ATR from the close. The LONG direction mirrors every comparison.
"""

from dataclasses import dataclass, field
from typing import Sequence

from tradesim.core.logging_config import Loggers
from tradesim.data.models import Bar
from tradesim.strategies.base_strategy import BaseStrategy, Direction, SignalResult
from tradesim.strategies.indicators import IndicatorCalculator, IndicatorConfig

logger = Loggers.strategy()


@dataclass(frozen=True)
class BreakdownConfig:
    """Configuration for the breakdown strategy"""
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)

    # Momentum: short side requires RSI below this; long side above 100 - this
    rsi_threshold: float = 45.0

    # Breakout must clear the channel by this many ATRs
    breakout_atr_buffer: float = 0.25

    stop_atr_multiple: float = 2.0
    target_atr_multiple: float = 3.0

    @property
    def lookback(self) -> int:
        """Bars of history any single indicator reads."""
        ind = self.indicators
        return max(
            ind.ema_short,
            ind.ema_long,
            ind.ema_trend,
            ind.rsi_period + 1,
            ind.atr_period + 1,
            ind.donchian_period + 1,
        )


class BreakdownStrategy(BaseStrategy):
    """
    Evaluate the breakdown entry on the latest bar of a history.

    No warm-up gate: indicators run on whatever history exists, so callers
    wanting a minimum lookback must enforce it themselves.
    """

    def __init__(
        self,
        config: BreakdownConfig = BreakdownConfig(),
        direction: Direction = Direction.SHORT
    ):
        self.config = config
        self.direction = direction

    def evaluate(self, bars: Sequence[Bar]) -> SignalResult:
        """
        Evaluate the breakdown signal for the last bar.

        Args:
            bars: History up to and including the current bar (non-empty)

        Returns:
            SignalResult with entry decision and stop/target levels
        """
        ind = self.config.indicators
        # Only the tail is ever read; slicing keeps the per-bar cost bounded
        window = bars[-self.config.lookback:]

        closes = [b.close for b in window]
        highs = [b.high for b in window]
        lows = [b.low for b in window]
        close = closes[-1]

        ema_short = IndicatorCalculator.calculate_ema(closes[-ind.ema_short:], ind.ema_short)
        ema_long = IndicatorCalculator.calculate_ema(closes[-ind.ema_long:], ind.ema_long)
        ema_trend = IndicatorCalculator.calculate_ema(closes[-ind.ema_trend:], ind.ema_trend)
        rsi_value = IndicatorCalculator.calculate_rsi(closes, ind.rsi_period)
        atr_value = IndicatorCalculator.calculate_atr(highs, lows, closes, ind.atr_period)

        buffer = self.config.breakout_atr_buffer * atr_value
        stop_offset = self.config.stop_atr_multiple * atr_value
        target_offset = self.config.target_atr_multiple * atr_value

        if self.direction is Direction.SHORT:
            channel = IndicatorCalculator.calculate_donchian_low(lows, ind.donchian_period)
            trend_ok = ema_trend > close
            momentum_ok = ema_short < ema_long and rsi_value < self.config.rsi_threshold
            breakout_ok = close < channel - buffer
            stop_loss = close + stop_offset
            take_profit = close - target_offset
        else:
            channel = IndicatorCalculator.calculate_donchian_high(highs, ind.donchian_period)
            trend_ok = ema_trend < close
            momentum_ok = ema_short > ema_long and rsi_value > 100 - self.config.rsi_threshold
            breakout_ok = close > channel + buffer
            stop_loss = close - stop_offset
            take_profit = close + target_offset

        entry = trend_ok and momentum_ok and breakout_ok

        if entry:
            logger.debug(
                "Breakdown entry confirmed",
                direction=self.direction.value,
                time=bars[-1].time,
                close=close,
                channel=channel,
                atr=atr_value,
                rsi=rsi_value
            )

        return SignalResult(
            entry=entry,
            stop_loss=stop_loss,
            take_profit=take_profit,
            direction=self.direction,
            indicators={
                "ema_short": ema_short,
                "ema_long": ema_long,
                "ema_trend": ema_trend,
                "rsi": rsi_value,
                "atr": atr_value,
                "channel": channel,
            }
        )
