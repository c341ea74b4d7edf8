"""
Exit Rules

Position-level exit predicates evaluated once per bar against the close:
- Stop loss hit
- Take profit hit
- Time exit after too many bars without fresh signal confirmation

Each predicate is a single deterministic comparison. The time exit does not
look at a clock; it compares a counter maintained by the simulator.
"""

from dataclasses import dataclass
from enum import Enum

from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.strategies.base_strategy import Direction

logger = Loggers.risk()

DEFAULT_TIME_EXIT_BARS = 6


class ExitReason(str, Enum):
    """Why a position was closed"""
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    TIME_EXIT = "time_exit"


@dataclass(frozen=True)
class Position:
    """
    The simulator's single open trade.

    Stop and target are absolute price levels fixed at entry and never
    revised. ``size`` is always positive; ``direction`` carries the side.
    """
    entry_price: float
    size: float
    stop_loss: float
    take_profit: float
    opened_at: int
    direction: Direction = Direction.SHORT

    def pnl_at(self, price: float) -> float:
        """Profit of the whole position if closed at ``price``."""
        if self.direction is Direction.SHORT:
            return self.size * (self.entry_price - price)
        return self.size * (price - self.entry_price)


def check_stop_loss(position: Position, current_price: float) -> bool:
    """True when price has moved through the stop against the position."""
    if position.direction is Direction.SHORT:
        hit = current_price >= position.stop_loss
    else:
        hit = current_price <= position.stop_loss

    if hit:
        logger.info(
            LogMessages.STOP_LOSS_TRIGGERED,
            price=current_price,
            stop_loss=position.stop_loss
        )
    return hit


def check_take_profit(position: Position, current_price: float) -> bool:
    """True when price has reached the target in the position's favour."""
    if position.direction is Direction.SHORT:
        hit = current_price <= position.take_profit
    else:
        hit = current_price >= position.take_profit

    if hit:
        logger.info(
            LogMessages.TAKE_PROFIT_REACHED,
            price=current_price,
            take_profit=position.take_profit
        )
    return hit


def check_time_exit(consecutive_invalid: int, threshold: int = DEFAULT_TIME_EXIT_BARS) -> bool:
    """True once the unconfirmed-bar counter reaches ``threshold``."""
    return consecutive_invalid >= threshold
