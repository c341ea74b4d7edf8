"""
CBBI Regime Mapping

Maps a confidence score to one of five market regimes and each regime to a
static target allocation across bull-leveraged, bear-leveraged, stable and
spot buckets.

Two historical parameter sets exist for this strategy:
- TUNED: thresholds 0.25 / 0.55 / 0.72 / 0.82, stepping risk down earlier
  as confidence rises toward cycle tops. This is the default.
- LEGACY: thresholds 0.20 / 0.60 / 0.80 / 0.90 with heavier leverage in
  the NORMAL and AGGRESSIVE bands.

Each set is used whole; thresholds and weight tables are never mixed
across sets.
"""

import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Mapping

from tradesim.core.config import ThresholdPreset
from tradesim.core.exceptions import ConfigurationError, InvalidWeightsError

WEIGHT_TOLERANCE = 1e-9

ASSETS = ("bull2x", "bull3x", "bear1x", "usdc", "spot")

# Return multiplier per bucket against the underlying's daily return
EXPOSURE_MULTIPLIERS: Dict[str, float] = {
    "bull2x": 2.0,
    "bull3x": 3.0,
    "bear1x": -1.0,
    "usdc": 0.0,
    "spot": 1.0,
}


class Regime(str, Enum):
    """Market regime derived from confidence, lowest band first."""
    ACCUMULATION = "ACCUMULATION"
    NORMAL = "NORMAL"
    AGGRESSIVE = "AGGRESSIVE"
    CASH = "CASH"
    BEAR = "BEAR"


@dataclass(frozen=True)
class RegimeThresholds:
    """
    Upper bounds of the first four bands. Bands are half-open: a score
    equal to a bound belongs to the band above it.
    """
    accumulation: float
    normal: float
    aggressive: float
    cash: float

    def __post_init__(self):
        bounds = [self.accumulation, self.normal, self.aggressive, self.cash]
        if bounds != sorted(bounds) or len(set(bounds)) != len(bounds):
            raise ConfigurationError(
                "Regime thresholds must be strictly increasing",
                {"thresholds": bounds}
            )


@dataclass(frozen=True)
class TargetWeights:
    """Allocation fraction per bucket."""
    bull2x: float
    bull3x: float
    bear1x: float
    usdc: float
    spot: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    @property
    def total(self) -> float:
        return math.fsum(self.as_dict().values())

    def portfolio_return(self, daily_return: float) -> float:
        """Weighted return given the underlying's daily return."""
        return sum(
            weight * EXPOSURE_MULTIPLIERS[asset] * daily_return
            for asset, weight in self.as_dict().items()
        )


class RegimeModel:
    """
    A threshold set paired with its weight table.

    Weight tables are validated on construction: every regime must be
    present, weights non-negative and summing to 1 within 1e-9.
    """

    def __init__(self, thresholds: RegimeThresholds, weights: Mapping[Regime, TargetWeights]):
        self.thresholds = thresholds
        self.weights = dict(weights)
        self._validate_weights()

    def _validate_weights(self):
        missing = [r.value for r in Regime if r not in self.weights]
        if missing:
            raise ConfigurationError("Weight table is missing regimes", {"missing": missing})

        for regime, weights in self.weights.items():
            if any(w < 0 for w in weights.as_dict().values()):
                raise InvalidWeightsError(regime.value, weights.total)
            if abs(weights.total - 1.0) > WEIGHT_TOLERANCE:
                raise InvalidWeightsError(regime.value, weights.total)

    def get_regime(self, confidence: float) -> Regime:
        t = self.thresholds
        if confidence < t.accumulation:
            return Regime.ACCUMULATION
        if confidence < t.normal:
            return Regime.NORMAL
        if confidence < t.aggressive:
            return Regime.AGGRESSIVE
        if confidence < t.cash:
            return Regime.CASH
        return Regime.BEAR

    def get_target_weights(self, regime: Regime) -> TargetWeights:
        return self.weights[regime]


TUNED_MODEL = RegimeModel(
    RegimeThresholds(accumulation=0.25, normal=0.55, aggressive=0.72, cash=0.82),
    {
        Regime.ACCUMULATION: TargetWeights(bull2x=0.0, bull3x=0.0, bear1x=0.0, usdc=0.30, spot=0.70),
        Regime.NORMAL: TargetWeights(bull2x=0.25, bull3x=0.15, bear1x=0.0, usdc=0.35, spot=0.25),
        Regime.AGGRESSIVE: TargetWeights(bull2x=0.35, bull3x=0.45, bear1x=0.0, usdc=0.10, spot=0.10),
        Regime.CASH: TargetWeights(bull2x=0.0, bull3x=0.0, bear1x=0.0, usdc=0.90, spot=0.10),
        Regime.BEAR: TargetWeights(bull2x=0.0, bull3x=0.0, bear1x=0.60, usdc=0.35, spot=0.05),
    }
)

LEGACY_MODEL = RegimeModel(
    RegimeThresholds(accumulation=0.20, normal=0.60, aggressive=0.80, cash=0.90),
    {
        Regime.ACCUMULATION: TargetWeights(bull2x=0.0, bull3x=0.0, bear1x=0.0, usdc=0.4, spot=0.6),
        Regime.NORMAL: TargetWeights(bull2x=0.4, bull3x=0.2, bear1x=0.0, usdc=0.4, spot=0.0),
        Regime.AGGRESSIVE: TargetWeights(bull2x=0.4, bull3x=0.6, bear1x=0.0, usdc=0.0, spot=0.0),
        Regime.CASH: TargetWeights(bull2x=0.0, bull3x=0.0, bear1x=0.0, usdc=1.0, spot=0.0),
        Regime.BEAR: TargetWeights(bull2x=0.0, bull3x=0.0, bear1x=0.5, usdc=0.5, spot=0.0),
    }
)

MODELS: Dict[ThresholdPreset, RegimeModel] = {
    ThresholdPreset.TUNED: TUNED_MODEL,
    ThresholdPreset.LEGACY: LEGACY_MODEL,
}


def get_model(preset: ThresholdPreset = ThresholdPreset.TUNED) -> RegimeModel:
    """Regime model for a named preset."""
    return MODELS[ThresholdPreset(preset)]


def get_regime(confidence: float, model: RegimeModel = TUNED_MODEL) -> Regime:
    """Regime for a confidence score under ``model``."""
    return model.get_regime(confidence)


def get_target_weights(regime: Regime, model: RegimeModel = TUNED_MODEL) -> TargetWeights:
    """Target allocation for ``regime`` under ``model``."""
    return model.get_target_weights(regime)
