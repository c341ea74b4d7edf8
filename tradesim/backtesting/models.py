"""
Backtest Records

Append-only records produced by the simulator: one trade per closed
position and one equity point per processed bar.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

from tradesim.risk.exit_rules import ExitReason


@dataclass(frozen=True)
class BacktestTrade:
    """A closed position. Created exactly once, at close."""
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    profit: float
    exit_reason: ExitReason
    size: float = 0.0

    def to_row(self) -> Dict[str, Any]:
        """Row for the trade-log table."""
        return {
            "entryTime": self.entry_time,
            "exitTime": self.exit_time,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "profit": self.profit,
        }


@dataclass(frozen=True)
class EquityPoint:
    """Account value at a bar close: realized capital plus open P&L."""
    time: int
    equity: float

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)
