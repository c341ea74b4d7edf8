import threading

import pytest

from tradesim.core.config import VaultSettings
from tradesim.core.exceptions import RebalanceInProgressError
from tradesim.regime.cbbi import LEGACY_MODEL, TUNED_MODEL, Regime
from tradesim.regime.rebalancer import RegimeRebalancer

PRIVATE_KEY = "ab" * 32


class StubClient:
    def __init__(self, confidence):
        self.confidence = confidence
        self.calls = 0

    def fetch_latest(self):
        self.calls += 1
        return self.confidence

    def close(self):
        pass


class BlockingClient(StubClient):
    def __init__(self, confidence):
        super().__init__(confidence)
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_latest(self):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().fetch_latest()


@pytest.fixture
def vault():
    return VaultSettings(
        _env_file=None,
        rpc_url_arbitrum="https://arb.example.test",
        wallet_private_key=PRIVATE_KEY,
        dhh_vault_id="vault-1",
        dhh_manager_id="manager-1",
        bull2x_token="0xbull2",
        bull3x_token="0xbull3",
        bear1x_token="0xbear1",
        usdc_token="0xusdc",
    )


def test_plan_from_empty_holdings():
    plan = RegimeRebalancer(StubClient(0.6), TUNED_MODEL).plan()

    assert plan.regime is Regime.AGGRESSIVE
    assert {a.asset for a in plan.adjustments} == {"bull2x", "bull3x", "usdc", "spot"}
    assert all(a.action == "buy" for a in plan.adjustments)


def test_plan_skips_changes_within_tolerance():
    current = {"bull2x": 0.0, "bull3x": 0.0, "bear1x": 0.0, "usdc": 0.995, "spot": 0.005}
    plan = RegimeRebalancer(StubClient(0.95), LEGACY_MODEL, tolerance=0.01).plan(current)

    assert plan.regime is Regime.BEAR
    assert [(a.asset, a.action) for a in plan.adjustments] == [("bear1x", "buy"), ("usdc", "sell")]


def test_balanced_plan():
    current = {"usdc": 0.9, "spot": 0.1}
    plan = RegimeRebalancer(StubClient(0.75), TUNED_MODEL).plan(current)

    assert plan.regime is Regime.CASH
    assert plan.is_balanced


def test_plan_carries_vault_tokens(vault):
    plan = RegimeRebalancer(StubClient(0.3), TUNED_MODEL, vault=vault).plan()
    tokens = {a.asset: a.token for a in plan.adjustments}

    assert tokens["bull2x"] == "0xbull2"
    assert tokens["spot"] is None
    assert plan.slippage_bps == 50
    assert plan.to_dict()["regime"] == "NORMAL"


def test_overlapping_plans_are_rejected():
    client = BlockingClient(0.3)
    rebalancer = RegimeRebalancer(client, TUNED_MODEL)
    results = []

    worker = threading.Thread(target=lambda: results.append(rebalancer.plan()))
    worker.start()
    assert client.entered.wait(timeout=5)

    try:
        with pytest.raises(RebalanceInProgressError):
            rebalancer.plan()
    finally:
        client.release.set()
        worker.join(timeout=5)

    assert len(results) == 1
    assert client.calls == 1


def test_lock_released_after_failure():
    class FailingClient(StubClient):
        def fetch_latest(self):
            raise RuntimeError("feed down")

    rebalancer = RegimeRebalancer(FailingClient(0.0), TUNED_MODEL)
    with pytest.raises(RuntimeError):
        rebalancer.plan()

    rebalancer.client = StubClient(0.1)
    assert rebalancer.plan().regime is Regime.ACCUMULATION


def test_from_settings_uses_preset(settings):
    from tradesim.core.config import ThresholdPreset

    legacy = settings.model_copy(update={"regime_thresholds": ThresholdPreset.LEGACY})
    rebalancer = RegimeRebalancer.from_settings(legacy, client=StubClient(0.19))

    assert rebalancer.model is LEGACY_MODEL
    assert rebalancer.plan().regime is Regime.ACCUMULATION
