"""
Backtesting Module

Bar-by-bar simulation of a single-position strategy.

Components:
- BacktestEngine: Deterministic FLAT / IN_POSITION state machine
- summarize / write_artifacts: Summary statistics and output files
- run_backtest: Load, simulate and write in one call

Usage:
    from tradesim.backtesting import run_backtest
    results = run_backtest("bars.csv", "artifacts")
"""

from tradesim.backtesting.engine import (
    BacktestEngine,
    BacktestConfig,
    BacktestResult,
    EngineState,
)

from tradesim.backtesting.models import (
    BacktestTrade,
    EquityPoint,
)

from tradesim.backtesting.report import (
    BacktestSummary,
    max_drawdown,
    summarize,
    write_artifacts,
    print_results,
)

from tradesim.backtesting.run_backtest import run_backtest

__all__ = [
    # Engine
    'BacktestEngine',
    'BacktestConfig',
    'BacktestResult',
    'EngineState',
    # Records
    'BacktestTrade',
    'EquityPoint',
    # Report
    'BacktestSummary',
    'max_drawdown',
    'summarize',
    'write_artifacts',
    'print_results',
    # Runner
    'run_backtest',
]
