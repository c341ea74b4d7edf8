"""
Backtesting Engine

Bar-by-bar backtesting engine for single-position strategies.

The engine is a deterministic state machine with two states, FLAT and
IN_POSITION. For each bar, strictly in input order, it:
- evaluates the strategy on the history up to and including that bar
- checks exits on the open position (stop, target, time)
- opens a position on a fresh entry signal when flat
- appends exactly one equity point

Capital changes only when a position closes. A position still open when
the bars run out is left open: it shows in the last equity point but not
in the trade log.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from tradesim.backtesting.models import BacktestTrade, EquityPoint
from tradesim.backtesting.report import BacktestSummary, summarize
from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.data.models import Bar
from tradesim.risk.exit_rules import (
    DEFAULT_TIME_EXIT_BARS,
    ExitReason,
    Position,
    check_stop_loss,
    check_take_profit,
    check_time_exit,
)
from tradesim.risk.position_sizer import PositionSizer
from tradesim.strategies.base_strategy import BaseStrategy, SignalResult
from tradesim.strategies.breakdown import BreakdownStrategy

logger = Loggers.backtest()


class EngineState(Enum):
    """Simulator state"""
    FLAT = "flat"
    IN_POSITION = "in_position"


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for backtesting"""
    initial_capital: float = 10000.0

    # Risk management: 1% of capital at risk, notional capped at 30%
    risk_per_trade: float = 0.01
    max_notional_fraction: float = 0.30

    # Consecutive bars without signal confirmation before a time exit
    time_exit_bars: int = DEFAULT_TIME_EXIT_BARS

    # Fixed adverse slippage per fill; 0 reproduces close-price fills
    slippage_bps: float = 0.0

    @classmethod
    def from_settings(cls, settings) -> "BacktestConfig":
        """Build from application ``Settings``."""
        return cls(
            initial_capital=settings.initial_capital,
            risk_per_trade=settings.risk_per_trade,
            max_notional_fraction=settings.max_notional_fraction,
            time_exit_bars=settings.time_exit_bars,
            slippage_bps=settings.slippage_bps,
        )


@dataclass
class BacktestResult:
    """Results from a backtest run"""
    initial_capital: float
    final_capital: float
    trades: List[BacktestTrade] = field(default_factory=list)
    equity_curve: List[EquityPoint] = field(default_factory=list)
    summary: Optional[BacktestSummary] = None

    # Left open at the end of the data, unrealized
    open_position: Optional[Position] = None
    signals_fired: int = 0


class BacktestEngine:
    """
    Single-position bar-by-bar simulator.

    Owns the position, the capital ledger, the trade log and the equity
    curve. None of these are shared across runs; call ``reset`` (or ``run``,
    which resets) to start over.
    """

    def __init__(
        self,
        config: BacktestConfig = BacktestConfig(),
        strategy: Optional[BaseStrategy] = None
    ):
        """
        Initialize backtesting engine.

        Args:
            config: Backtest configuration
            strategy: Entry signal source (default: short breakdown strategy)
        """
        self.config = config
        self.strategy = strategy or BreakdownStrategy()
        self.sizer = PositionSizer(
            risk_per_trade=config.risk_per_trade,
            max_notional_fraction=config.max_notional_fraction
        )
        self.reset()

    def reset(self):
        """Reset engine state for new backtest"""
        self.capital = self.config.initial_capital
        self.equity = self.config.initial_capital
        self.position: Optional[Position] = None
        self.consecutive_invalid = 0

        self.trades: List[BacktestTrade] = []
        self.equity_curve: List[EquityPoint] = []
        self.signals_fired = 0

        self._history: List[Bar] = []

    @property
    def state(self) -> EngineState:
        """FLAT or IN_POSITION, derived from the position itself."""
        return EngineState.FLAT if self.position is None else EngineState.IN_POSITION

    def process_bar(self, bar: Bar) -> EquityPoint:
        """
        Advance the state machine by one bar.

        Args:
            bar: Next bar; must not precede the previous one

        Returns:
            The equity point appended for this bar
        """
        self._history.append(bar)
        signal = self.strategy.evaluate(self._history)
        if signal.entry:
            self.signals_fired += 1

        price = bar.close

        if self.position is not None:
            if check_stop_loss(self.position, price):
                self._close_position(bar, ExitReason.STOP_LOSS)
            elif check_take_profit(self.position, price):
                self._close_position(bar, ExitReason.TAKE_PROFIT)
            else:
                self.consecutive_invalid += 0 if signal.entry else 1
                if check_time_exit(self.consecutive_invalid, self.config.time_exit_bars):
                    logger.info(
                        LogMessages.TIME_EXIT_TRIGGERED,
                        time=bar.time,
                        bars_unconfirmed=self.consecutive_invalid
                    )
                    self._close_position(bar, ExitReason.TIME_EXIT)
        elif signal.entry:
            self._open_position(bar, signal)

        unrealized = self.position.pnl_at(price) if self.position is not None else 0.0
        self.equity = self.capital + unrealized

        point = EquityPoint(time=bar.time, equity=self.equity)
        self.equity_curve.append(point)
        return point

    def run(self, bars: Iterable[Bar]) -> BacktestResult:
        """
        Reset, process every bar in order and return the results.

        Args:
            bars: Time-ordered bars

        Returns:
            BacktestResult for the whole sequence
        """
        self.reset()
        for bar in bars:
            self.process_bar(bar)
        return self.get_results()

    def _open_position(self, bar: Bar, signal: SignalResult):
        """Open a position at the bar close using the signal's levels"""
        entry_price = self._fill_price(bar.close, signal.direction.sign)
        sizing = self.sizer.calculate(
            self.capital,
            entry_price,
            signal.stop_loss,
            signal.direction
        )

        if sizing.size <= 0:
            logger.warning(
                LogMessages.TRADE_REJECTED,
                time=bar.time,
                reason="non-positive position size",
                entry=entry_price,
                stop_loss=signal.stop_loss
            )
            return

        self.position = Position(
            entry_price=entry_price,
            size=sizing.size,
            stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
            opened_at=bar.time,
            direction=signal.direction
        )
        self.consecutive_invalid = 0

        logger.info(
            LogMessages.TRADE_OPENED,
            time=bar.time,
            direction=signal.direction.value,
            entry=entry_price,
            sl=signal.stop_loss,
            tp=signal.take_profit,
            size=sizing.size,
            capped_by_notional=sizing.capped_by_notional
        )

    def _close_position(self, bar: Bar, reason: ExitReason):
        """Close the open position at the bar close and record the trade"""
        position = self.position
        exit_price = self._fill_price(bar.close, -position.direction.sign)
        profit = position.pnl_at(exit_price)

        self.capital += profit
        self.trades.append(
            BacktestTrade(
                entry_time=position.opened_at,
                exit_time=bar.time,
                entry_price=position.entry_price,
                exit_price=exit_price,
                profit=profit,
                size=position.size,
                exit_reason=reason
            )
        )
        self.position = None
        self.consecutive_invalid = 0

        logger.info(
            LogMessages.TRADE_CLOSED,
            time=bar.time,
            exit_reason=reason.value,
            exit=exit_price,
            profit=profit,
            capital=self.capital
        )

    def _fill_price(self, price: float, side: int) -> float:
        """Apply slippage against the trader: buys fill higher, sells lower"""
        if not self.config.slippage_bps:
            return price
        return price * (1 + side * self.config.slippage_bps / 10_000)

    def get_results(self) -> BacktestResult:
        """
        Snapshot the run so far.

        Returns:
            BacktestResult with trades, equity curve and summary
        """
        return BacktestResult(
            initial_capital=self.config.initial_capital,
            final_capital=self.capital,
            trades=list(self.trades),
            equity_curve=list(self.equity_curve),
            summary=summarize(
                self.trades,
                self.config.initial_capital,
                self.capital,
                self.equity_curve
            ),
            open_position=self.position,
            signals_fired=self.signals_fired
        )
