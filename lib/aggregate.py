from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from lib.errors import InputValidationError
from lib.split import calculate_daily_split
from lib.time_util import validate_range
from lib.types import (
    BillingConfig,
    DailyRecord,
    DailySplitResult,
    LinearModel,
    ModelAssignment,
    OccupancyAssignment,
    PeriodSplit,
    PeriodTotals,
)


def resolve_occupancy(
    day: date,
    assignments: Sequence[OccupancyAssignment],
    default: OccupancyAssignment,
) -> OccupancyAssignment:
    """Return the first assignment covering *day*, else *default*.

    Overlapping assignments are not rejected: list order decides.
    """
    for assignment in assignments:
        if assignment.covers(day):
            return assignment
    return default


def resolve_model_assignment(
    day: date,
    model_assignments: Sequence[ModelAssignment],
) -> Optional[ModelAssignment]:
    for rule in model_assignments:
        if rule.covers(day):
            return rule
    return None


def calculate_period_split(
    records: Sequence[DailyRecord],
    start_date: date,
    end_date: date,
    model: LinearModel,
    assignments: Sequence[OccupancyAssignment] = (),
    model_assignments: Sequence[ModelAssignment] = (),
    config: BillingConfig | None = None,
) -> PeriodSplit:
    """Split every recorded day in ``[start_date, end_date]`` and total them.

    Daily results come back in ascending date order.  An empty window is not
    an error; it yields zero totals with ``day_count == 0``.

    Raises:
        InvalidRangeError: ``start_date > end_date``.
        RangeTooLargeError: the range spans more than
            ``config.max_range_span_days``.
        InputValidationError: two records share a date.
    """
    config = config or BillingConfig()
    window = validate_range(start_date, end_date, config.max_range_span_days)

    in_window = sorted((r for r in records if r.date in window), key=lambda r: r.date)
    for prev, cur in zip(in_window, in_window[1:]):
        if prev.date == cur.date:
            raise InputValidationError("date", cur.date.isoformat(), "must be unique within the record set")

    daily_results: list[DailySplitResult] = []
    for record in in_window:
        occupancy = resolve_occupancy(record.date, assignments, config.default_assignment)
        rule = resolve_model_assignment(record.date, model_assignments)
        daily_results.append(
            calculate_daily_split(
                actual_usage=record.usage_amount,
                temperature=record.mean_temperature,
                occupancy=occupancy,
                model=rule.model if rule is not None and rule.model is not None else model,
                unit_rate=config.unit_rate,
                bounds=config.bounds,
                day=record.date,
                split_evenly=rule.split_evenly if rule is not None else False,
            )
        )

    return PeriodSplit(
        daily_results=tuple(daily_results),
        totals=_totals(start_date, end_date, daily_results),
        warnings=tuple(w for d in daily_results for w in d.warnings),
    )


def _totals(start_date: date, end_date: date, days: Sequence[DailySplitResult]) -> PeriodTotals:
    count = len(days)
    return PeriodTotals(
        start_date=start_date,
        end_date=end_date,
        day_count=count,
        average_temperature=sum(d.temperature for d in days) / count if count else 0.0,
        actual_usage=sum(d.actual_usage for d in days),
        baseline_usage=sum(d.baseline_usage for d in days),
        excess_usage=sum(d.excess_usage for d in days),
        actual_cost=sum(d.actual_cost for d in days),
        baseline_cost=sum(d.baseline_cost for d in days),
        excess_cost=sum(d.excess_cost for d in days),
        occupant_a_share=sum(d.occupant_a_share for d in days),
        occupant_b_share=sum(d.occupant_b_share for d in days),
        unallocated_cost=sum(d.unallocated_cost for d in days),
    )
