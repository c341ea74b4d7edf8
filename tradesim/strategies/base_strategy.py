"""
Base Strategy Interface

Abstract base class defining the interface for bar-driven strategies.
Ensures the simulator can drive any strategy the same way.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Sequence

from tradesim.data.models import Bar


class Direction(str, Enum):
    """Trade direction"""
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        """+1 for long, -1 for short; multiplies price moves into P&L."""
        return 1 if self is Direction.LONG else -1


@dataclass(frozen=True)
class SignalResult:
    """
    Entry decision for the latest bar plus the exit levels that go with it.

    ``stop_loss`` and ``take_profit`` are computed on every bar but only
    consumed when ``entry`` is true.
    """
    entry: bool
    stop_loss: float
    take_profit: float
    direction: Direction = Direction.SHORT

    # Indicator snapshot for logging and debugging
    indicators: Dict[str, float] = field(default_factory=dict)


class BaseStrategy(ABC):
    """
    Abstract base class for strategies evaluated bar by bar.

    ``evaluate`` receives only the bars up to and including the current one,
    never anything later.
    """

    direction: Direction = Direction.SHORT

    @abstractmethod
    def evaluate(self, bars: Sequence[Bar]) -> SignalResult:
        """
        Evaluate the latest bar of ``bars``.

        Args:
            bars: Non-empty history ending at the current bar

        Returns:
            SignalResult for the current bar
        """
        raise NotImplementedError
