"""Tests for lib.aggregate: period splits and their totals."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from lib.aggregate import calculate_period_split, resolve_occupancy
from lib.errors import InputValidationError, InvalidRangeError, RangeTooLargeError
from lib.types import (
    BaselineBounds,
    BillingConfig,
    DailyRecord,
    LinearModel,
    ModelAssignment,
    OccupancyAssignment,
)

RATE = 0.2061
CONFIG = BillingConfig(unit_rate=RATE)


def make_records(start: date, usages, temps) -> list[DailyRecord]:
    return [
        DailyRecord(date=start + timedelta(days=i), usage_amount=u, mean_temperature=t)
        for i, (u, t) in enumerate(zip(usages, temps))
    ]


@pytest.fixture
def january_records() -> list[DailyRecord]:
    usages = [51.0, 15.0, 40.0, 22.0, 60.0, 30.0, 18.0]
    temps = [30.0, 30.0, 20.0, 35.0, 10.0, 28.0, 45.0]
    return make_records(date(2026, 1, 1), usages, temps)


# ---------------------------------------------------------------------------
# Ordering and filtering
# ---------------------------------------------------------------------------


def test_results_in_ascending_date_order(january_model, january_records):
    shuffled = list(reversed(january_records))
    result = calculate_period_split(shuffled, date(2026, 1, 1), date(2026, 1, 7), january_model, config=CONFIG)
    days = [d.date for d in result.daily_results]
    assert days == sorted(days)
    assert len(days) == 7


def test_days_outside_range_excluded(january_model, january_records):
    result = calculate_period_split(january_records, date(2026, 1, 3), date(2026, 1, 5), january_model, config=CONFIG)
    assert [d.date for d in result.daily_results] == [date(2026, 1, 3), date(2026, 1, 4), date(2026, 1, 5)]
    assert result.totals.day_count == 3


def test_single_day_range(january_model, january_records):
    result = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 1), january_model, config=CONFIG)
    assert result.totals.day_count == 1
    assert result.totals.occupant_b_share == pytest.approx(8.0266, abs=1e-3)


def test_empty_range_gives_zero_totals(january_model, january_records):
    result = calculate_period_split(january_records, date(2026, 3, 1), date(2026, 3, 31), january_model, config=CONFIG)
    assert result.daily_results == ()
    assert result.totals.day_count == 0
    assert result.totals.average_temperature == 0.0
    assert result.totals.actual_cost == 0.0
    assert result.totals.occupant_a_share == 0.0
    assert result.totals.occupant_b_share == 0.0


def test_duplicate_dates_rejected(january_model):
    records = make_records(date(2026, 1, 1), [10.0, 12.0], [30.0, 31.0])
    records.append(DailyRecord(date=date(2026, 1, 2), usage_amount=20.0, mean_temperature=29.0))
    with pytest.raises(InputValidationError, match="date"):
        calculate_period_split(records, date(2026, 1, 1), date(2026, 1, 5), january_model, config=CONFIG)


# ---------------------------------------------------------------------------
# Range validation
# ---------------------------------------------------------------------------


def test_inverted_range_rejected(january_model, january_records):
    with pytest.raises(InvalidRangeError):
        calculate_period_split(january_records, date(2026, 2, 1), date(2026, 1, 1), january_model, config=CONFIG)


def test_range_over_maximum_rejected(january_model, january_records):
    start = date(2025, 1, 1)
    with pytest.raises(RangeTooLargeError) as info:
        calculate_period_split(january_records, start, start + timedelta(days=400), january_model, config=CONFIG)
    assert info.value.span_days == 400
    assert info.value.max_span_days == 365


def test_range_at_maximum_accepted(january_model, january_records):
    start = date(2025, 1, 8)
    result = calculate_period_split(january_records, start, start + timedelta(days=365), january_model, config=CONFIG)
    assert result.totals.day_count == 7


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


def test_totals_are_sums_of_days(january_model, january_records):
    result = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 7), january_model, config=CONFIG)
    totals = result.totals
    days = result.daily_results
    assert totals.actual_usage == pytest.approx(sum(d.actual_usage for d in days))
    assert totals.baseline_usage == pytest.approx(sum(d.baseline_usage for d in days))
    assert totals.excess_cost == pytest.approx(sum(d.excess_cost for d in days))
    assert totals.occupant_a_share == pytest.approx(sum(d.occupant_a_share for d in days))
    assert totals.occupant_b_share == pytest.approx(sum(d.occupant_b_share for d in days))
    assert totals.average_temperature == pytest.approx(sum(d.temperature for d in days) / 7)


def test_shares_sum_to_actual_cost_with_default_occupancy(january_model, january_records):
    result = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 7), january_model, config=CONFIG)
    totals = result.totals
    assert totals.occupant_a_share + totals.occupant_b_share == pytest.approx(totals.actual_cost)
    assert totals.actual_cost == pytest.approx(sum(r.usage_amount for r in january_records) * RATE)
    assert totals.unallocated_cost == 0.0


def test_recomputation_is_idempotent(january_model, january_records):
    first = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 7), january_model, config=CONFIG)
    second = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 7), january_model, config=CONFIG)
    assert first == second


# ---------------------------------------------------------------------------
# Occupancy assignments
# ---------------------------------------------------------------------------


def test_default_assignment_is_both_present_b_controls(january_model, january_records):
    result = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 1), january_model, config=CONFIG)
    day = result.daily_results[0]
    assert day.occupancy_status == "both"
    assert day.controller == "B"


def test_assignment_applies_only_inside_its_range(january_model, january_records):
    a_only = OccupancyAssignment(1, 0, "B", date(2026, 1, 5), date(2026, 1, 7))
    result = calculate_period_split(
        january_records, date(2026, 1, 1), date(2026, 1, 7), january_model, assignments=[a_only], config=CONFIG
    )
    statuses = [d.occupancy_status for d in result.daily_results]
    assert statuses == ["both"] * 4 + ["a_only"] * 3


def test_first_matching_assignment_wins(january_model, january_records):
    first = OccupancyAssignment(1, 1, "A", date(2026, 1, 1), date(2026, 1, 7))
    second = OccupancyAssignment(0, 1, "B", date(2026, 1, 1), date(2026, 1, 7))
    result = calculate_period_split(
        january_records, date(2026, 1, 1), date(2026, 1, 1), january_model, assignments=[first, second], config=CONFIG
    )
    day = result.daily_results[0]
    assert day.controller == "A"
    assert day.occupant_a_share == pytest.approx(day.baseline_cost / 2 + day.excess_cost)


def test_resolve_occupancy_falls_back_to_default():
    default = OccupancyAssignment(1, 1, "B")
    ranged = OccupancyAssignment(0, 1, "B", date(2026, 1, 10), date(2026, 1, 12))
    assert resolve_occupancy(date(2026, 1, 9), [ranged], default) is default
    assert resolve_occupancy(date(2026, 1, 10), [ranged], default) is ranged
    assert resolve_occupancy(date(2026, 1, 12), [ranged], default) is ranged


def test_vacant_days_surface_warnings(january_model, january_records):
    away = OccupancyAssignment(0, 0, "B", date(2026, 1, 1), date(2026, 1, 1))
    result = calculate_period_split(
        january_records, date(2026, 1, 1), date(2026, 1, 2), january_model, assignments=[away], config=CONFIG
    )
    assert [w.code for w in result.warnings] == ["vacant_excess"]
    assert result.warnings[0].day == date(2026, 1, 1)
    totals = result.totals
    assert totals.unallocated_cost == pytest.approx(result.daily_results[0].excess_cost)
    assert totals.occupant_a_share + totals.occupant_b_share + totals.unallocated_cost == pytest.approx(
        totals.actual_cost
    )


# ---------------------------------------------------------------------------
# Model assignments
# ---------------------------------------------------------------------------


def test_split_evenly_rule_applies_to_its_days(january_model, january_records):
    rule = ModelAssignment(date(2026, 1, 1), date(2026, 1, 1), split_evenly=True)
    result = calculate_period_split(
        january_records, date(2026, 1, 1), date(2026, 1, 2), january_model, model_assignments=[rule], config=CONFIG
    )
    first, second = result.daily_results
    assert first.split_evenly
    assert first.occupant_a_share == first.occupant_b_share
    assert not second.split_evenly


def test_model_rule_overrides_baseline_model(january_model, january_records):
    flat = LinearModel(intercept=20.0, slope=0.0)
    rule = ModelAssignment(date(2026, 1, 2), date(2026, 1, 2), model=flat)
    result = calculate_period_split(
        january_records, date(2026, 1, 1), date(2026, 1, 2), january_model, model_assignments=[rule], config=CONFIG
    )
    first, second = result.daily_results
    assert first.baseline_usage == pytest.approx(24.11)
    assert second.baseline_usage == pytest.approx(20.0)


def test_config_bounds_are_used(january_model, january_records):
    config = BillingConfig(unit_rate=RATE, bounds=BaselineBounds(min_usage=30.0, max_usage=40.0))
    result = calculate_period_split(january_records, date(2026, 1, 1), date(2026, 1, 1), january_model, config=config)
    assert result.daily_results[0].baseline_usage == 30.0
