"""
Backtest Runner

Loads bars from a CSV file, drives the engine bar by bar and writes the
trade log, equity curve and summary to an output directory.
"""

from pathlib import Path
from typing import Optional, Union

import structlog
from tqdm import tqdm

from tradesim.backtesting.engine import BacktestConfig, BacktestEngine, BacktestResult
from tradesim.backtesting.report import write_artifacts
from tradesim.core.config import Settings, get_settings
from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.data.historical_loader import HistoricalDataLoader

logger = Loggers.backtest()


def run_backtest(
    file_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    settings: Optional[Settings] = None,
    strict: bool = False,
    show_progress: bool = False
) -> BacktestResult:
    """
    Run a complete backtest.

    Args:
        file_path: Bar CSV (time, open, high, low, close)
        output_dir: Where to write artifacts (default: settings.output_dir)
        settings: Application settings (default: cached settings)
        strict: Reject malformed bar rows at load time
        show_progress: Display a progress bar while processing

    Returns:
        BacktestResult
    """
    settings = settings or get_settings()
    output_dir = Path(output_dir or settings.output_dir)

    with structlog.contextvars.bound_contextvars(input_file=str(file_path)):
        bars = HistoricalDataLoader(strict=strict).load_bars(file_path)

        config = BacktestConfig.from_settings(settings)
        engine = BacktestEngine(config)

        logger.info(
            LogMessages.BACKTEST_STARTED,
            bars=len(bars),
            **engine.sizer.get_risk_stats(config.initial_capital)
        )

        with tqdm(total=len(bars), desc="Processing", unit="bars", disable=not show_progress) as pbar:
            for bar in bars:
                engine.process_bar(bar)
                pbar.update(1)
                if engine.trades and pbar.n % 500 == 0:
                    pbar.set_postfix({
                        "trades": len(engine.trades),
                        "capital": f"${engine.capital:,.0f}"
                    })

        results = engine.get_results()
        write_artifacts(results, output_dir)

        logger.info(
            LogMessages.BACKTEST_COMPLETED,
            output_dir=str(output_dir),
            signals=results.signals_fired,
            trades=results.summary.trades,
            pnl=results.summary.pnl,
            win_rate=results.summary.win_rate,
            open_position=results.open_position is not None
        )

    return results
