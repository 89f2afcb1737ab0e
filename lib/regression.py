"""Ordinary least-squares fit of daily usage against outdoor temperature.

The baseline model is a straight line

    usage = intercept + slope * temperature

fitted over a reference window of days when the thermostat sat at the legal
minimum.  Everything here is pure Python over plain sequences.
"""

from __future__ import annotations

from typing import Sequence

from lib.errors import DegenerateInputError
from lib.types import DailyRecord, DateRange, LinearModel, require_finite

# (temperature, usage)
Observation = tuple[float, float]


def fit_linear_model(observations: Sequence[Observation]) -> LinearModel:
    """Fit ``usage = intercept + slope * temperature`` by least squares.

    Raises:
        DegenerateInputError: if there are no observations or every
            temperature is identical (the slope is undefined).  A single
            observation always lands here.
        InputValidationError: if any value is not a finite number.
    """
    n = len(observations)
    if n == 0:
        raise DegenerateInputError("cannot fit a model to zero observations", observations=0)

    xs = [require_finite("temperature", x) for x, _ in observations]
    ys = [require_finite("usage", y) for _, y in observations]

    if min(xs) == max(xs):
        raise DegenerateInputError(
            f"all {n} observation(s) share temperature {xs[0]!r}; slope is undefined",
            observations=n,
        )

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)

    den = n * sum_x2 - sum_x ** 2
    if den <= 0.0:
        raise DegenerateInputError("temperature variance is zero; slope is undefined", observations=n)

    slope = (n * sum_xy - sum_x * sum_y) / den
    intercept = (sum_y - slope * sum_x) / n
    return LinearModel(intercept=intercept, slope=slope)


def r_squared(model: LinearModel, observations: Sequence[Observation]) -> float | None:
    """Coefficient of determination of *model* over *observations*.

    Returns ``None`` when usage has zero variance (R² is undefined).
    """
    if not observations:
        return None

    mean_y = sum(y for _, y in observations) / len(observations)
    ss_tot = sum((y - mean_y) ** 2 for _, y in observations)
    if ss_tot == 0.0:
        return None

    ss_res = sum((y - model.evaluate(x)) ** 2 for x, y in observations)
    return 1.0 - ss_res / ss_tot


def observations_from_records(records: Sequence[DailyRecord], window: DateRange | None = None) -> list[Observation]:
    return [
        (r.mean_temperature, r.usage_amount)
        for r in records
        if window is None or r.date in window
    ]


def fit_model_from_records(records: Sequence[DailyRecord], window: DateRange | None = None) -> LinearModel:
    """Fit the baseline model over the records falling inside *window*."""
    return fit_linear_model(observations_from_records(records, window))
