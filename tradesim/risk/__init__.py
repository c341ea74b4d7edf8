"""
Risk Module

Exit predicates for an open position and risk-budget position sizing.
"""

from tradesim.risk.exit_rules import (
    DEFAULT_TIME_EXIT_BARS,
    ExitReason,
    Position,
    check_stop_loss,
    check_take_profit,
    check_time_exit,
)
from tradesim.risk.position_sizer import PositionSizer, PositionSizeResult

__all__ = [
    'DEFAULT_TIME_EXIT_BARS',
    'ExitReason',
    'Position',
    'check_stop_loss',
    'check_take_profit',
    'check_time_exit',
    'PositionSizer',
    'PositionSizeResult',
]
