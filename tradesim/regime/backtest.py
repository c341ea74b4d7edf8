"""
Regime Backtest

Daily compounding simulation of the CBBI regime allocation. Each day the
confidence score picks a regime, the regime picks target weights and the
weighted leveraged return of the underlying is applied to equity.
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from tradesim.backtesting.report import max_drawdown
from tradesim.core.config import Settings, get_settings
from tradesim.core.exceptions import InsufficientDataError
from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.data.confidence_feed import load_confidence_history
from tradesim.data.models import ConfidencePoint, PricePoint
from tradesim.data.price_history import load_price_history
from tradesim.regime.cbbi import Regime, RegimeModel, TargetWeights, TUNED_MODEL, get_model

logger = Loggers.regime()

DEFAULT_INITIAL_EQUITY = 10000.0
DAYS_PER_YEAR = 365.25

CSV_COLUMNS = [
    "date", "btcPrice", "cbbiConfidence", "regime", "dailyReturn",
    "portfolioReturn", "equity", "bull2x", "bull3x", "bear1x", "usdc", "spot",
]


@dataclass(frozen=True)
class AlignedPoint:
    """A day present in both the price and confidence series."""
    date: str
    price: float
    confidence: float


@dataclass(frozen=True)
class RegimeRow:
    """One simulated day."""
    date: str
    price: float
    confidence: float
    regime: Regime
    weights: TargetWeights
    daily_return: float
    portfolio_return: float
    equity: float


@dataclass
class RegimeSummary:
    """Aggregate statistics of a regime backtest."""
    start_date: Optional[str]
    end_date: Optional[str]
    start_equity: float
    final_equity: float
    total_return: float
    cagr: float
    max_drawdown: float
    regime_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "startDate": self.start_date,
            "endDate": self.end_date,
            "startEquity": self.start_equity,
            "finalEquity": self.final_equity,
            "totalReturn": self.total_return,
            "cagr": self.cagr,
            "maxDrawdown": self.max_drawdown,
            "regimeCounts": dict(self.regime_counts),
        }


def align_series(
    confidence_points: Sequence[ConfidencePoint],
    price_points: Sequence[PricePoint]
) -> List[AlignedPoint]:
    """
    Inner join on exact date key, in price series order.

    Days missing from either side are skipped. A date repeated in the
    confidence series keeps its last value.
    """
    confidence_by_date = {p.date: p.confidence for p in confidence_points}
    return [
        AlignedPoint(date=p.date, price=p.price, confidence=confidence_by_date[p.date])
        for p in price_points
        if p.date in confidence_by_date
    ]


def simulate(
    aligned: Sequence[AlignedPoint],
    initial_equity: float = DEFAULT_INITIAL_EQUITY,
    model: RegimeModel = TUNED_MODEL
) -> List[RegimeRow]:
    """
    Compound the regime-weighted return day by day.

    The first aligned day only seeds the previous price; each later day
    uses its own confidence to select weights.

    Raises:
        InsufficientDataError: If fewer than two aligned points
    """
    if len(aligned) < 2:
        raise InsufficientDataError(
            "Not enough overlapping data between prices and confidence history",
            available=len(aligned),
            required=2
        )

    rows: List[RegimeRow] = []
    equity = initial_equity
    for prev, curr in zip(aligned, aligned[1:]):
        daily_return = (curr.price - prev.price) / prev.price
        regime = model.get_regime(curr.confidence)
        weights = model.get_target_weights(regime)
        portfolio_return = weights.portfolio_return(daily_return)
        equity *= 1 + portfolio_return

        rows.append(RegimeRow(
            date=curr.date,
            price=curr.price,
            confidence=curr.confidence,
            regime=regime,
            weights=weights,
            daily_return=daily_return,
            portfolio_return=portfolio_return,
            equity=equity
        ))

    return rows


def summarise(rows: Sequence[RegimeRow], initial_equity: float = DEFAULT_INITIAL_EQUITY) -> RegimeSummary:
    """
    Summary of a simulated run.

    Max drawdown is the most negative (equity - peak) / peak with the
    running peak seeded at ``initial_equity``. CAGR is 0 when the run
    spans no time.
    """
    regime_counts = {r.value: 0 for r in Regime}
    for row in rows:
        regime_counts[row.regime.value] += 1

    if not rows:
        return RegimeSummary(
            start_date=None,
            end_date=None,
            start_equity=initial_equity,
            final_equity=0.0,
            total_return=0.0,
            cagr=0.0,
            max_drawdown=0.0,
            regime_counts=regime_counts
        )

    start_date, end_date = rows[0].date, rows[-1].date
    final_equity = rows[-1].equity
    total_return = (final_equity - initial_equity) / initial_equity if initial_equity > 0 else 0.0

    span_days = (date.fromisoformat(end_date) - date.fromisoformat(start_date)).days
    years = span_days / DAYS_PER_YEAR
    cagr = (final_equity / initial_equity) ** (1 / years) - 1 if years > 0 else 0.0

    drawdown = max_drawdown([row.equity for row in rows], starting_peak=initial_equity)

    return RegimeSummary(
        start_date=start_date,
        end_date=end_date,
        start_equity=initial_equity,
        final_equity=final_equity,
        total_return=total_return,
        cagr=cagr,
        max_drawdown=-drawdown if drawdown else 0.0,
        regime_counts=regime_counts
    )


def rows_frame(rows: Sequence[RegimeRow]) -> pd.DataFrame:
    """Rows as a frame with fixed decimal formatting per column."""
    records = [
        {
            "date": row.date,
            "btcPrice": f"{row.price:.2f}",
            "cbbiConfidence": f"{row.confidence:.4f}",
            "regime": row.regime.value,
            "dailyReturn": f"{row.daily_return:.6f}",
            "portfolioReturn": f"{row.portfolio_return:.6f}",
            "equity": f"{row.equity:.2f}",
            **{asset: f"{weight:.3f}" for asset, weight in row.weights.as_dict().items()},
        }
        for row in rows
    ]
    return pd.DataFrame(records, columns=CSV_COLUMNS)


def write_csv(rows: Sequence[RegimeRow], output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows_frame(rows).to_csv(path, index=False)
    return path


@dataclass
class RegimeBacktestResult:
    rows: List[RegimeRow]
    summary: RegimeSummary
    output_path: Optional[Path] = None


def run_regime_backtest(
    confidence_file: Union[str, Path],
    price_file: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    settings: Optional[Settings] = None
) -> RegimeBacktestResult:
    """
    Load both series, align, simulate and optionally write the CSV.

    Args:
        confidence_file: Saved confidence index document
        price_file: Daily price CSV
        output_path: CSV destination, skipped when None
        settings: Supplies threshold preset and initial equity

    Returns:
        RegimeBacktestResult
    """
    settings = settings or get_settings()
    model = get_model(settings.regime_thresholds)
    initial_equity = settings.regime_initial_equity

    aligned = align_series(
        load_confidence_history(confidence_file),
        load_price_history(price_file)
    )
    logger.info("Series aligned", points=len(aligned))

    rows = simulate(aligned, initial_equity, model)
    summary = summarise(rows, initial_equity)

    written = write_csv(rows, output_path) if output_path else None

    logger.info(
        LogMessages.REGIME_BACKTEST_COMPLETED,
        thresholds=settings.regime_thresholds.value,
        output=str(written) if written else None,
        **summary.to_dict()
    )
    return RegimeBacktestResult(rows=rows, summary=summary, output_path=written)
