"""
Position Sizer

Calculates position sizes based on fixed percentage risk per trade,
capped by a maximum notional share of capital.
"""

import math
from dataclasses import dataclass

from tradesim.core.logging_config import Loggers
from tradesim.strategies.base_strategy import Direction

logger = Loggers.risk()


@dataclass(frozen=True)
class PositionSizeResult:
    """Result of position size calculation"""
    size: float
    risk_amount: float
    stop_distance: float
    risk_limited_size: float
    notional_limited_size: float

    @property
    def capped_by_notional(self) -> bool:
        """True when the notional cap, not the risk budget, set the size."""
        return self.notional_limited_size < self.risk_limited_size


class PositionSizer:
    """
    Calculate position sizes based on risk percentage.

    Formula:
    risk_amount = capital × risk_per_trade
    size = min(risk_amount / stop_distance, capital × max_notional_fraction / entry)

    The second term caps notional exposure regardless of how tight the stop is.
    """

    def __init__(self, risk_per_trade: float = 0.01, max_notional_fraction: float = 0.30):
        """
        Initialize position sizer.

        Args:
            risk_per_trade: Fraction of capital risked per trade
            max_notional_fraction: Cap on position notional as a fraction of capital
        """
        self.risk_per_trade = risk_per_trade
        self.max_notional_fraction = max_notional_fraction

    def calculate(
        self,
        capital: float,
        entry_price: float,
        stop_loss: float,
        direction: Direction = Direction.SHORT
    ) -> PositionSizeResult:
        """
        Calculate size with detailed result.

        ``stop_distance`` is measured from entry to stop in the adverse
        direction (stop above entry for shorts, below for longs). A stop on
        the wrong side, a zero distance or a non-positive entry gives size 0.

        Args:
            capital: Realized capital available
            entry_price: Entry price
            stop_loss: Stop loss price
            direction: Side of the trade

        Returns:
            PositionSizeResult with all details
        """
        stop_distance = (stop_loss - entry_price) * -direction.sign
        risk_amount = capital * self.risk_per_trade

        if not (stop_distance > 0 and entry_price > 0) or not math.isfinite(stop_distance):
            logger.warning(
                "Cannot size position",
                capital=capital,
                entry=entry_price,
                stop_loss=stop_loss
            )
            return PositionSizeResult(
                size=0.0,
                risk_amount=risk_amount,
                stop_distance=stop_distance,
                risk_limited_size=0.0,
                notional_limited_size=0.0
            )

        risk_limited = risk_amount / stop_distance
        notional_limited = capital * self.max_notional_fraction / entry_price
        size = min(risk_limited, notional_limited)

        logger.debug(
            "Position size calculated",
            capital=capital,
            entry=entry_price,
            stop_loss=stop_loss,
            risk_amount=risk_amount,
            stop_distance=stop_distance,
            size=size,
            capped_by_notional=notional_limited < risk_limited
        )

        return PositionSizeResult(
            size=size,
            risk_amount=risk_amount,
            stop_distance=stop_distance,
            risk_limited_size=risk_limited,
            notional_limited_size=notional_limited
        )

    def calculate_size(
        self,
        capital: float,
        entry_price: float,
        stop_loss: float,
        direction: Direction = Direction.SHORT
    ) -> float:
        """Size only; see ``calculate`` for the breakdown."""
        return self.calculate(capital, entry_price, stop_loss, direction).size

    def get_risk_stats(self, capital: float) -> dict:
        """
        Get risk statistics for given capital.

        Args:
            capital: Account capital

        Returns:
            Dictionary with risk statistics
        """
        risk_amount = capital * self.risk_per_trade

        return {
            "capital": capital,
            "risk_percent": self.risk_per_trade * 100,
            "risk_amount_per_trade": risk_amount,
            "max_notional": capital * self.max_notional_fraction,
            "capital_after_10_losses": capital * ((1 - self.risk_per_trade) ** 10)
        }
