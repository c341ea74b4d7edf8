import math

import pytest

from tradesim.strategies.indicators import IndicatorCalculator, atr, donchian_high, donchian_low, ema, rsi


def test_ema_of_constant_series_is_constant():
    assert ema([5.0] * 30, 20) == pytest.approx(5.0)


def test_ema_seeded_with_first_element():
    # k = 2 / 3 for period 2
    assert ema([10.0, 13.0], 2) == pytest.approx(12.0)


def test_ema_single_point():
    assert ema([7.5], 50) == 7.5


def test_ema_converges_toward_new_level():
    series = [100.0] * 10 + [110.0] * 200
    assert ema(series, 20) == pytest.approx(110.0, abs=1e-6)


def test_ema_empty_series_raises():
    with pytest.raises(ValueError):
        ema([], 20)


def test_rsi_stays_in_range():
    series = [100, 101, 99, 102, 98, 103, 97, 104, 96, 105, 95, 106, 94, 107, 93]
    value = rsi(series, 14)
    assert 0 <= value <= 100


def test_rsi_is_100_without_losses():
    assert rsi([float(i) for i in range(30)], 14) == 100.0


def test_rsi_flat_series_is_100():
    assert rsi([50.0] * 20, 14) == 100.0


def test_rsi_is_0_without_gains():
    assert rsi([float(30 - i) for i in range(30)], 14) == 0.0


def test_rsi_uses_only_last_period_differences():
    # Early gains fall outside the window of the last 3 differences
    series = [1, 50, 100, 99, 98, 97]
    assert rsi(series, 3) == 0.0


def test_rsi_equal_gains_and_losses():
    assert rsi([10, 11, 10, 11, 10], 4) == pytest.approx(50.0)


def test_rsi_nan_input_propagates():
    assert math.isnan(rsi([1.0, float("nan"), 2.0], 14))


def test_atr_constant_true_range():
    highs = [11.0] * 20
    lows = [9.0] * 20
    closes = [10.0] * 20
    assert atr(highs, lows, closes, 14) == pytest.approx(2.0)


def test_atr_uses_gap_from_previous_close():
    highs = [10.0, 15.0]
    lows = [9.0, 14.0]
    closes = [10.0, 14.5]
    # TR = max(1, 5, 4) = 5, divided by the full period
    assert atr(highs, lows, closes, 1) == pytest.approx(5.0)
    assert atr(highs, lows, closes, 5) == pytest.approx(1.0)


def test_atr_single_bar_is_zero():
    assert atr([10.0], [9.0], [9.5], 14) == 0.0


def test_donchian_low_excludes_last_point():
    assert donchian_low([5, 3, 4, 2], 2) == 3


def test_donchian_low_short_history_uses_what_exists():
    assert donchian_low([5, 3, 4, 2], 20) == 3


def test_donchian_low_single_point():
    assert donchian_low([7.0], 20) == 7.0


def test_donchian_low_empty_is_zero():
    assert donchian_low([], 20) == 0.0


def test_donchian_high_mirrors_low():
    assert donchian_high([5, 8, 6, 9], 2) == 8


def test_calculator_aliases():
    assert ema is IndicatorCalculator.calculate_ema
    assert donchian_low is IndicatorCalculator.calculate_donchian_low


def test_ema_approaches_last_price_as_period_shrinks():
    series = [100.0 + i * 1.5 for i in range(40)]
    gaps = [series[-1] - ema(series, p) for p in (50, 20, 10, 5, 2, 1)]

    assert gaps == sorted(gaps, reverse=True)
    assert gaps[-1] == pytest.approx(0.0)
