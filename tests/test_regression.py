"""Tests for lib.regression: least-squares fit and goodness of fit."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from lib.errors import DegenerateInputError, InputValidationError
from lib.regression import (
    fit_linear_model,
    fit_model_from_records,
    observations_from_records,
    r_squared,
)
from lib.types import DailyRecord, DateRange, LinearModel


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_records(start: date, usages: list[float], temps: list[float]) -> list[DailyRecord]:
    return [
        DailyRecord(date=start + timedelta(days=i), usage_amount=u, mean_temperature=t)
        for i, (u, t) in enumerate(zip(usages, temps))
    ]


# ---------------------------------------------------------------------------
# fit_linear_model
# ---------------------------------------------------------------------------


def test_fit_recovers_exact_line():
    # usage = 10 - 0.5 * temp
    obs = [(t, 10 - 0.5 * t) for t in (0.0, 10.0, 20.0, 30.0, 40.0, 50.0)]
    model = fit_linear_model(obs)
    assert model.intercept == pytest.approx(10.0)
    assert model.slope == pytest.approx(-0.5)


def test_fit_is_order_independent():
    obs = [(30.0, 24.0), (45.0, 11.0), (38.0, 17.5), (25.0, 29.0)]
    forward = fit_linear_model(obs)
    backward = fit_linear_model(list(reversed(obs)))
    assert forward.slope == pytest.approx(backward.slope)
    assert forward.intercept == pytest.approx(backward.intercept)


def test_fit_two_points_passes_through_both():
    model = fit_linear_model([(20.0, 30.0), (40.0, 10.0)])
    assert model.slope == pytest.approx(-1.0)
    assert model.intercept == pytest.approx(50.0)


def test_fit_noisy_data_matches_hand_calculation():
    obs = [(1.0, 2.0), (2.0, 4.1), (3.0, 5.9), (4.0, 8.2)]
    # n=4, Σx=10, Σy=20.2, Σxy=2+8.2+17.7+32.8=60.7, Σx²=30
    expected_slope = (4 * 60.7 - 10 * 20.2) / (4 * 30 - 10 ** 2)
    expected_intercept = (20.2 - expected_slope * 10) / 4
    model = fit_linear_model(obs)
    assert model.slope == pytest.approx(expected_slope)
    assert model.intercept == pytest.approx(expected_intercept)
    assert model.slope == pytest.approx(2.04)
    assert model.intercept == pytest.approx(-0.05)


def test_fit_identical_temperatures_is_degenerate():
    with pytest.raises(DegenerateInputError):
        fit_linear_model([(40.0, 5.0), (40.0, 8.0)])


def test_fit_single_observation_is_degenerate():
    with pytest.raises(DegenerateInputError) as info:
        fit_linear_model([(40.0, 5.0)])
    assert info.value.observations == 1


def test_fit_no_observations_is_degenerate():
    with pytest.raises(DegenerateInputError):
        fit_linear_model([])


def test_fit_rejects_non_finite_values():
    with pytest.raises(InputValidationError, match="temperature"):
        fit_linear_model([(float("nan"), 1.0), (2.0, 3.0)])


def test_fit_returns_linear_model_value():
    model = fit_linear_model([(0.0, 1.0), (1.0, 2.0)])
    assert isinstance(model, LinearModel)
    assert model == LinearModel(intercept=1.0, slope=1.0)


# ---------------------------------------------------------------------------
# r_squared
# ---------------------------------------------------------------------------


def test_r_squared_perfect_fit_is_one():
    obs = [(t, 3 + 2 * t) for t in range(5)]
    assert r_squared(fit_linear_model(obs), obs) == pytest.approx(1.0)


def test_r_squared_between_zero_and_one_for_noisy_fit():
    obs = [(1.0, 2.0), (2.0, 4.1), (3.0, 5.9), (4.0, 8.2), (5.0, 9.7)]
    value = r_squared(fit_linear_model(obs), obs)
    assert 0.9 < value < 1.0


def test_r_squared_constant_usage_is_undefined():
    obs = [(1.0, 5.0), (2.0, 5.0)]
    assert r_squared(LinearModel(5.0, 0.0), obs) is None


def test_r_squared_no_observations():
    assert r_squared(LinearModel(1.0, 1.0), []) is None


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def test_fit_model_from_records_uses_only_window():
    records = make_records(
        date(2026, 1, 1),
        usages=[99.0, 30.0, 20.0, 10.0, 99.0],
        temps=[0.0, 20.0, 30.0, 40.0, 80.0],
    )
    window = DateRange(date(2026, 1, 2), date(2026, 1, 4))
    model = fit_model_from_records(records, window)
    assert model.slope == pytest.approx(-1.0)
    assert model.intercept == pytest.approx(50.0)


def test_observations_from_records_are_temperature_usage_pairs():
    records = make_records(date(2026, 1, 1), usages=[12.0], temps=[31.0])
    assert observations_from_records(records) == [(31.0, 12.0)]
