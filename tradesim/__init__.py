"""
Strategy Backtesting System
===========================

Bar-by-bar simulation of a Donchian breakdown strategy with stop-loss,
take-profit and time-based exits, plus a CBBI regime-weight overlay.

Modules:
    - core: Configuration, logging, and exceptions
    - data: Bar, price history and confidence index loaders
    - strategies: Indicators and signal evaluation
    - risk: Exit rules and position sizing
    - backtesting: Simulator, summary and artifacts
    - regime: Confidence regime mapping, daily backtest and rebalance planner
"""

__version__ = "1.0.0"
__author__ = "tradesim"
