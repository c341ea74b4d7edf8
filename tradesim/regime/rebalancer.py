"""
Regime Rebalancer

One-shot dry-run planner: fetch the live confidence score, derive the regime
and its target weights, and diff them against current holdings. Nothing is
executed; the plan is logged and returned.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from tradesim.core.config import Settings, VaultSettings
from tradesim.core.exceptions import RebalanceInProgressError
from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.data.confidence_feed import ConfidenceIndexClient
from tradesim.regime.cbbi import ASSETS, Regime, RegimeModel, TargetWeights, get_model

logger = Loggers.regime()


@dataclass(frozen=True)
class WeightAdjustment:
    """Change required for one bucket."""
    asset: str
    current: float
    target: float
    token: Optional[str] = None

    @property
    def delta(self) -> float:
        return self.target - self.current

    @property
    def action(self) -> str:
        return "buy" if self.delta > 0 else "sell"


@dataclass
class RebalancePlan:
    """Result of a planning pass."""
    confidence: float
    regime: Regime
    target: TargetWeights
    adjustments: List[WeightAdjustment] = field(default_factory=list)
    slippage_bps: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_balanced(self) -> bool:
        return not self.adjustments

    def to_dict(self) -> dict:
        return {
            "confidence": self.confidence,
            "regime": self.regime.value,
            "target": self.target.as_dict(),
            "adjustments": [
                {
                    "asset": a.asset,
                    "action": a.action,
                    "current": a.current,
                    "target": a.target,
                    "delta": a.delta,
                    "token": a.token,
                }
                for a in self.adjustments
            ],
            "slippage_bps": self.slippage_bps,
            "created_at": self.created_at.isoformat(),
        }


class RegimeRebalancer:
    """
    Plans allocation changes for the current regime.

    Only one plan may run at a time per instance. A second call made while
    one is in flight fails immediately with RebalanceInProgressError rather
    than queueing.
    """

    def __init__(
        self,
        client: ConfidenceIndexClient,
        model: RegimeModel,
        tolerance: float = 0.01,
        vault: Optional[VaultSettings] = None
    ):
        """
        Initialize rebalancer.

        Args:
            client: Confidence index client
            model: Regime thresholds and weight table
            tolerance: Minimum absolute weight change worth acting on
            vault: Token addresses and slippage for the plan, optional
        """
        self.client = client
        self.model = model
        self.tolerance = tolerance
        self.vault = vault
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[ConfidenceIndexClient] = None,
        vault: Optional[VaultSettings] = None
    ) -> "RegimeRebalancer":
        return cls(
            client=client or ConfidenceIndexClient.from_settings(settings),
            model=get_model(settings.regime_thresholds),
            tolerance=settings.rebalance_tolerance,
            vault=vault
        )

    def plan(self, current_weights: Optional[Mapping[str, float]] = None) -> RebalancePlan:
        """
        Build a rebalance plan.

        Args:
            current_weights: Bucket to weight mapping. Missing buckets count
                as zero; None means the vault is entirely unallocated.

        Returns:
            RebalancePlan with adjustments above tolerance

        Raises:
            RebalanceInProgressError: If another plan is running
        """
        if not self._lock.acquire(blocking=False):
            raise RebalanceInProgressError()

        try:
            return self._plan(dict(current_weights or {}))
        finally:
            self._lock.release()

    def _plan(self, current_weights: Dict[str, float]) -> RebalancePlan:
        confidence = self.client.fetch_latest()
        regime = self.model.get_regime(confidence)
        target = self.model.get_target_weights(regime)

        tokens = self.vault.token_addresses() if self.vault else {}
        target_weights = target.as_dict()

        adjustments = []
        for asset in ASSETS:
            current = current_weights.get(asset, 0.0)
            goal = target_weights[asset]
            if abs(goal - current) > self.tolerance:
                adjustments.append(WeightAdjustment(
                    asset=asset,
                    current=current,
                    target=goal,
                    token=tokens.get(asset)
                ))

        plan = RebalancePlan(
            confidence=confidence,
            regime=regime,
            target=target,
            adjustments=adjustments,
            slippage_bps=self.vault.slippage_bps if self.vault else None
        )

        logger.info(
            LogMessages.REBALANCE_PLANNED,
            confidence=round(confidence, 4),
            regime=regime.value,
            adjustments=len(adjustments),
            dry_run=True
        )
        for adj in adjustments:
            logger.info(
                "Planned adjustment",
                asset=adj.asset,
                action=adj.action,
                delta=round(adj.delta, 4),
                contract=adj.token
            )

        return plan
