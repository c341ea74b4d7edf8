import json

import pandas as pd
import pytest

from tradesim.backtesting.engine import BacktestConfig, BacktestEngine
from tradesim.backtesting.models import BacktestTrade, EquityPoint
from tradesim.backtesting.report import max_drawdown, summarize, write_artifacts
from tradesim.risk.exit_rules import ExitReason

from conftest import ScriptedStrategy, make_bars, short_signal


def _trade(profit):
    return BacktestTrade(
        entry_time=0,
        exit_time=1,
        entry_price=100.0,
        exit_price=100.0,
        profit=profit,
        exit_reason=ExitReason.TAKE_PROFIT if profit > 0 else ExitReason.STOP_LOSS
    )


def test_zero_trade_fallbacks():
    summary = summarize([], 10_000, 10_000)

    assert summary.trades == 0
    assert summary.win_rate == 0
    assert summary.avg_win == 0
    assert summary.avg_loss == 0
    assert summary.pnl == 0
    assert summary.returns == 0


def test_summary_statistics():
    trades = [_trade(100.0), _trade(-50.0), _trade(200.0), _trade(0.0)]
    summary = summarize(trades, 10_000, 10_250)

    assert summary.pnl == pytest.approx(250.0)
    assert summary.returns == pytest.approx(0.025)
    assert summary.win_rate == pytest.approx(0.5)
    assert summary.avg_win == pytest.approx(150.0)
    # Breakeven counts as a loss
    assert summary.avg_loss == pytest.approx(-25.0)
    assert summary.winning_trades == 2
    assert summary.losing_trades == 2


def test_summary_keys():
    keys = summarize([], 10_000, 10_000).to_dict().keys()
    assert {"pnl", "returns", "winRate", "avgWin", "avgLoss", "trades"} <= set(keys)


def test_trade_requires_exit_reason():
    with pytest.raises(TypeError):
        BacktestTrade(entry_time=0, exit_time=1, entry_price=100.0, exit_price=99.0, profit=-1.0)


def test_max_drawdown():
    assert max_drawdown([100, 120, 90, 130, 117]) == pytest.approx(0.25)
    assert max_drawdown([100, 110, 120]) == 0.0
    assert max_drawdown([]) == 0.0


def test_max_drawdown_seeded_peak():
    assert max_drawdown([90, 95], starting_peak=100) == pytest.approx(0.10)


def test_summary_drawdown_from_equity_curve():
    curve = [EquityPoint(1, 10_000), EquityPoint(2, 9_000), EquityPoint(3, 9_500)]
    summary = summarize([], 10_000, 9_500, curve)
    assert summary.max_drawdown == pytest.approx(0.10)


def test_write_artifacts(tmp_path):
    engine = BacktestEngine(
        BacktestConfig(),
        strategy=ScriptedStrategy({0: short_signal(stop_loss=110.0, take_profit=95.0)})
    )
    result = engine.run(make_bars([100.0, 98.0, 95.0, 96.0]))

    paths = write_artifacts(result, tmp_path / "out")

    trades = pd.read_csv(paths["trades"])
    assert list(trades.columns) == ["entryTime", "exitTime", "entryPrice", "exitPrice", "profit"]
    assert len(trades) == 1
    assert trades.loc[0, "profit"] == pytest.approx(50.0)

    equity = pd.read_csv(paths["equity_curve"])
    assert list(equity.columns) == ["time", "equity"]
    assert len(equity) == 4

    summary = json.loads(paths["summary"].read_text())
    assert summary["trades"] == 1
    assert summary["winRate"] == 1.0
    assert summary["pnl"] == pytest.approx(50.0)


def test_write_artifacts_without_trades(tmp_path):
    result = BacktestEngine().run(make_bars([100.0] * 3))
    paths = write_artifacts(result, tmp_path)

    assert pd.read_csv(paths["trades"]).empty
    assert json.loads(paths["summary"].read_text())["trades"] == 0
