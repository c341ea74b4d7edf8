"""
Backtest Report

Summary statistics derived from a finished trade log, plus the writers for
the three run artifacts:
- trades.csv        (entryTime, exitTime, entryPrice, exitPrice, profit)
- equity_curve.csv  (time, equity)
- summary.json
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from tradesim.backtesting.models import BacktestTrade, EquityPoint
from tradesim.core.logging_config import Loggers

if TYPE_CHECKING:
    from tradesim.backtesting.engine import BacktestResult

logger = Loggers.backtest()

TRADES_FILE = "trades.csv"
EQUITY_FILE = "equity_curve.csv"
SUMMARY_FILE = "summary.json"


@dataclass(frozen=True)
class BacktestSummary:
    """Aggregate statistics for one run"""
    initial_capital: float
    final_capital: float
    pnl: float
    returns: float
    win_rate: float
    avg_win: float
    avg_loss: float
    trades: int
    winning_trades: int
    losing_trades: int
    max_drawdown: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form with the artifact's field names"""
        return {
            "initialCapital": self.initial_capital,
            "finalCapital": self.final_capital,
            "pnl": self.pnl,
            "returns": self.returns,
            "winRate": self.win_rate,
            "avgWin": self.avg_win,
            "avgLoss": self.avg_loss,
            "trades": self.trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
            "maxDrawdown": self.max_drawdown,
        }


def max_drawdown(values: Sequence[float], starting_peak: Optional[float] = None) -> float:
    """
    Largest peak-to-trough decline as a positive fraction of the peak.

    Args:
        values: Equity values in time order
        starting_peak: Peak to seed the running maximum with

    Returns:
        0.0 for an empty or never-declining series
    """
    equity = np.asarray(values, dtype=float)
    if equity.size == 0:
        return 0.0
    if starting_peak is not None:
        equity = np.concatenate(([starting_peak], equity))

    peaks = np.maximum.accumulate(equity)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - equity) / peaks, 0.0)
    return float(np.nanmax(drawdowns)) if not np.isnan(drawdowns).all() else 0.0


def summarize(
    trades: Sequence[BacktestTrade],
    initial_capital: float,
    final_capital: float,
    equity_curve: Optional[Sequence[EquityPoint]] = None
) -> BacktestSummary:
    """
    Aggregate a trade log.

    Everything except ``max_drawdown`` comes from the trade log and the two
    capital figures alone. Wins are trades with profit > 0; every other trade
    (including breakeven) counts as a loss.

    Args:
        trades: Closed trades in order
        initial_capital: Starting capital
        final_capital: Realized capital at the end
        equity_curve: Optional curve for drawdown

    Returns:
        BacktestSummary
    """
    profits = [t.profit for t in trades]
    wins = [p for p in profits if p > 0]
    losses = [p for p in profits if p <= 0]

    pnl = final_capital - initial_capital

    return BacktestSummary(
        initial_capital=initial_capital,
        final_capital=final_capital,
        pnl=pnl,
        returns=pnl / initial_capital if initial_capital else 0.0,
        win_rate=len(wins) / len(profits) if profits else 0.0,
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
        trades=len(profits),
        winning_trades=len(wins),
        losing_trades=len(losses),
        max_drawdown=max_drawdown(
            [p.equity for p in equity_curve], initial_capital
        ) if equity_curve else 0.0,
    )


def trades_frame(trades: Sequence[BacktestTrade]) -> pd.DataFrame:
    """Trade log as a DataFrame with the artifact columns"""
    return pd.DataFrame(
        [t.to_row() for t in trades],
        columns=["entryTime", "exitTime", "entryPrice", "exitPrice", "profit"]
    )


def equity_frame(equity_curve: Sequence[EquityPoint]) -> pd.DataFrame:
    """Equity curve as a DataFrame with the artifact columns"""
    return pd.DataFrame([p.to_row() for p in equity_curve], columns=["time", "equity"])


def write_artifacts(result: "BacktestResult", output_dir: Union[str, Path]) -> Dict[str, Path]:
    """
    Write trades, equity curve and summary into ``output_dir``.

    Args:
        result: Finished backtest
        output_dir: Target directory (created if missing)

    Returns:
        Mapping of artifact name to written path
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = {
        "trades": out / TRADES_FILE,
        "equity_curve": out / EQUITY_FILE,
        "summary": out / SUMMARY_FILE,
    }

    trades_frame(result.trades).to_csv(paths["trades"], index=False)
    equity_frame(result.equity_curve).to_csv(paths["equity_curve"], index=False)
    paths["summary"].write_text(json.dumps(result.summary.to_dict(), indent=2))

    logger.info("Artifacts written", output_dir=str(out), trades=len(result.trades))
    return paths


def print_results(result: "BacktestResult"):
    """Print formatted backtest results"""
    s = result.summary
    print("\n" + "=" * 60)
    print("BACKTEST RESULTS")
    print("=" * 60)

    print("\nPERFORMANCE SUMMARY")
    print(f"  Initial Capital:    ${s.initial_capital:,.2f}")
    print(f"  Final Capital:      ${s.final_capital:,.2f}")
    print(f"  Net Profit:         ${s.pnl:,.2f} ({s.returns * 100:+.2f}%)")
    print(f"  Max Drawdown:       {s.max_drawdown * 100:.2f}%")

    print("\nTRADE STATISTICS")
    print(f"  Total Trades:       {s.trades}")
    print(f"  Winning Trades:     {s.winning_trades} ({s.win_rate * 100:.1f}%)")
    print(f"  Losing Trades:      {s.losing_trades}")
    print(f"  Avg Win:            ${s.avg_win:,.2f}")
    print(f"  Avg Loss:           ${s.avg_loss:,.2f}")

    if result.open_position is not None:
        pos = result.open_position
        print("\nOPEN POSITION (unrealized)")
        print(f"  Opened At:          {pos.opened_at}")
        print(f"  Entry:              {pos.entry_price:,.4f}")
        print(f"  Size:               {pos.size:,.6f}")

    print("\n" + "=" * 60)
