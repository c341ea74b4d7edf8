from typing import Dict, List, Sequence

import pytest

from tradesim.core.config import Settings
from tradesim.data.models import Bar
from tradesim.strategies.base_strategy import BaseStrategy, Direction, SignalResult


def make_bars(closes: Sequence[float], spread: float = 0.0, start: int = 1_700_000_000, step: int = 900) -> List[Bar]:
    """Bars at fixed spacing with high/low ``spread`` either side of the close."""
    return [
        Bar(time=start + i * step, open=c, high=c + spread, low=c - spread, close=c)
        for i, c in enumerate(closes)
    ]


def declining_closes(n: int, start: float = 200.0, step: float = 0.5) -> List[float]:
    return [start - i * step for i in range(n)]


class ScriptedStrategy(BaseStrategy):
    """Returns a preset signal for given bar indices and no entry otherwise."""

    def __init__(self, signals: Dict[int, SignalResult], direction: Direction = Direction.SHORT):
        self.signals = signals
        self.direction = direction
        self.seen_lengths: List[int] = []

    def evaluate(self, bars):
        self.seen_lengths.append(len(bars))
        idx = len(bars) - 1
        close = bars[-1].close
        return self.signals.get(
            idx,
            SignalResult(entry=False, stop_loss=close, take_profit=close, direction=self.direction)
        )


def short_signal(stop_loss: float, take_profit: float) -> SignalResult:
    return SignalResult(entry=True, stop_loss=stop_loss, take_profit=take_profit)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, output_dir=str(tmp_path / "artifacts"))


@pytest.fixture
def write_bar_csv(tmp_path):
    def _write(rows, name="bars.csv", header="time,open,high,low,close"):
        path = tmp_path / name
        lines = [header] + [",".join(str(v) for v in row) for row in rows]
        path.write_text("\n".join(lines) + "\n")
        return path
    return _write
