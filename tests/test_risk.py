import pytest

from tradesim.risk.exit_rules import (
    ExitReason,
    Position,
    check_stop_loss,
    check_take_profit,
    check_time_exit,
)
from tradesim.risk.position_sizer import PositionSizer
from tradesim.strategies.base_strategy import Direction


@pytest.fixture
def short_position():
    return Position(entry_price=100.0, size=10.0, stop_loss=102.0, take_profit=97.0, opened_at=0)


@pytest.fixture
def long_position():
    return Position(
        entry_price=100.0, size=10.0, stop_loss=98.0, take_profit=103.0,
        opened_at=0, direction=Direction.LONG
    )


def test_short_stop_loss(short_position):
    assert check_stop_loss(short_position, 102.0) is True
    assert check_stop_loss(short_position, 103.0) is True
    assert check_stop_loss(short_position, 101.99) is False


def test_short_take_profit(short_position):
    assert check_take_profit(short_position, 97.0) is True
    assert check_take_profit(short_position, 96.0) is True
    assert check_take_profit(short_position, 97.01) is False


def test_long_exits_are_mirrored(long_position):
    assert check_stop_loss(long_position, 98.0) is True
    assert check_stop_loss(long_position, 99.0) is False
    assert check_take_profit(long_position, 103.0) is True
    assert check_take_profit(long_position, 102.0) is False


def test_time_exit_threshold():
    assert check_time_exit(5) is False
    assert check_time_exit(6) is True
    assert check_time_exit(7) is True
    assert check_time_exit(2, threshold=2) is True


def test_position_pnl(short_position, long_position):
    assert short_position.pnl_at(95.0) == pytest.approx(50.0)
    assert long_position.pnl_at(95.0) == pytest.approx(-50.0)


def test_exit_reason_values():
    assert {r.value for r in ExitReason} == {"stop_loss", "take_profit", "time_exit"}


class TestPositionSizer:

    def test_risk_limited_size(self):
        sizer = PositionSizer()
        # risk 100 over a 50 point stop; notional cap 3000 / 10 = 300
        result = sizer.calculate(10_000, 10.0, 60.0)
        assert result.size == pytest.approx(2.0)
        assert result.capped_by_notional is False

    def test_notional_cap_binds_on_tight_stop(self):
        sizer = PositionSizer()
        result = sizer.calculate(10_000, 100.0, 100.5)
        assert result.risk_limited_size == pytest.approx(200.0)
        assert result.size == pytest.approx(30.0)
        assert result.capped_by_notional is True

    def test_zero_stop_distance_gives_zero(self):
        assert PositionSizer().calculate_size(10_000, 100.0, 100.0) == 0.0

    def test_stop_on_wrong_side_gives_zero(self):
        assert PositionSizer().calculate_size(10_000, 100.0, 99.0) == 0.0
        assert PositionSizer().calculate_size(10_000, 100.0, 101.0, Direction.LONG) == 0.0

    def test_non_positive_entry_gives_zero(self):
        assert PositionSizer().calculate_size(10_000, 0.0, 5.0) == 0.0

    def test_long_distance_measured_below_entry(self):
        assert PositionSizer().calculate_size(10_000, 100.0, 90.0, Direction.LONG) == pytest.approx(10.0)

    def test_risk_stats(self):
        stats = PositionSizer(risk_per_trade=0.02).get_risk_stats(5_000)
        assert stats["risk_amount_per_trade"] == pytest.approx(100.0)
        assert stats["max_notional"] == pytest.approx(1_500.0)
