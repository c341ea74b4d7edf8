"""
Regime Module

CBBI confidence regimes, the daily regime-weight backtest and the dry-run
rebalance planner.
"""

from tradesim.regime.cbbi import (
    Regime,
    RegimeModel,
    RegimeThresholds,
    TargetWeights,
    TUNED_MODEL,
    LEGACY_MODEL,
    get_model,
    get_regime,
    get_target_weights,
)
from tradesim.regime.backtest import (
    AlignedPoint,
    RegimeRow,
    RegimeSummary,
    RegimeBacktestResult,
    align_series,
    simulate,
    summarise,
    write_csv,
    run_regime_backtest,
)
from tradesim.regime.rebalancer import RebalancePlan, RegimeRebalancer, WeightAdjustment

__all__ = [
    'Regime',
    'RegimeModel',
    'RegimeThresholds',
    'TargetWeights',
    'TUNED_MODEL',
    'LEGACY_MODEL',
    'get_model',
    'get_regime',
    'get_target_weights',
    'AlignedPoint',
    'RegimeRow',
    'RegimeSummary',
    'RegimeBacktestResult',
    'align_series',
    'simulate',
    'summarise',
    'write_csv',
    'run_regime_backtest',
    'RebalancePlan',
    'RegimeRebalancer',
    'WeightAdjustment',
]
