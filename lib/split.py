"""Fair split of one day's electricity cost between two occupants.

Rules, in the order they are applied:

1. Baseline usage comes from the temperature model (clamped).
2. Excess = actual - baseline.  It may be negative.
3. Negative excess (an efficient day) is a shared saving: the day's whole
   actual cost is split 50/50 whatever the occupancy.
4. Otherwise the baseline cost is always split 50/50, and the excess cost is
   allocated by occupancy:

   - both present  -> all to the day's thermostat controller
   - one present   -> all to whoever was present (controller ignored)
   - none present  -> nobody; reported as ``unallocated_cost`` together with
     a ``vacant_excess`` data-quality warning when the excess is positive.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from functools import lru_cache
from typing import Optional

from lib.baseline import predict_baseline
from lib.errors import InputValidationError, MissingTemperatureError
from lib.types import (
    BaselineBounds,
    DailySplitResult,
    DataQualityWarning,
    LinearModel,
    Occupant,
    OccupancyAssignment,
    require_finite,
)

_CACHE_SIZE = 4096


def calculate_daily_split(
    actual_usage: float,
    temperature: Optional[float],
    occupancy: OccupancyAssignment,
    model: LinearModel,
    unit_rate: float,
    bounds: BaselineBounds | None = None,
    day: date | None = None,
    split_evenly: bool = False,
) -> DailySplitResult:
    """Split one day's cost.

    Args:
        actual_usage: Metered usage for the day (>= 0).
        temperature: Mean outdoor temperature.  ``None`` is rejected; the
            engine never estimates a missing temperature.
        occupancy: The assignment resolved for the day (or the default).
        model: Baseline model.
        unit_rate: Price per usage unit (> 0).
        bounds: Baseline clamp bounds; the configured defaults when omitted.
        day: Calendar date stamped on the result and its warnings.
        split_evenly: Share the whole actual cost 50/50 regardless of excess.

    Raises:
        MissingTemperatureError: temperature is ``None``.
        InputValidationError: any other value out of its domain.
    """
    if temperature is None:
        raise MissingTemperatureError(day)
    temperature = require_finite("temperature", temperature)
    actual_usage = require_finite("actual_usage", actual_usage)
    if actual_usage < 0:
        raise InputValidationError("actual_usage", actual_usage, "must be >= 0")
    if require_finite("unit_rate", unit_rate) <= 0:
        raise InputValidationError("unit_rate", unit_rate, "must be > 0")

    result = _split(
        actual_usage,
        temperature,
        occupancy.occupant_a_present,
        occupancy.occupant_b_present,
        occupancy.controller,
        model,
        bounds or BaselineBounds(),
        float(unit_rate),
        bool(split_evenly),
    )
    if day is None:
        return result
    return replace(
        result,
        date=day,
        warnings=tuple(replace(w, day=day) for w in result.warnings),
    )


def clear_split_cache() -> None:
    _split.cache_clear()


@lru_cache(maxsize=_CACHE_SIZE)
def _split(
    actual_usage: float,
    temperature: float,
    a_present: int,
    b_present: int,
    controller: Occupant,
    model: LinearModel,
    bounds: BaselineBounds,
    unit_rate: float,
    split_evenly: bool,
) -> DailySplitResult:
    baseline_usage = predict_baseline(model, temperature, bounds)
    baseline_cost = baseline_usage * unit_rate
    actual_cost = actual_usage * unit_rate
    excess_usage = actual_usage - baseline_usage
    excess_cost = excess_usage * unit_rate

    unallocated_cost = 0.0
    warnings: tuple[DataQualityWarning, ...] = ()

    if split_evenly or excess_usage < 0:
        a_share = actual_cost / 2
        b_share = actual_cost / 2
    else:
        a_share = baseline_cost / 2
        b_share = baseline_cost / 2

        if a_present and b_present:
            excess_to = controller
        elif a_present:
            excess_to = "A"
        elif b_present:
            excess_to = "B"
        else:
            excess_to = None

        if excess_to == "A":
            a_share += excess_cost
        elif excess_to == "B":
            b_share += excess_cost
        else:
            unallocated_cost = excess_cost
            if excess_usage > 0:
                warnings = (
                    DataQualityWarning(
                        code="vacant_excess",
                        message=(
                            f"{excess_usage:.2f} units above baseline with nobody present; "
                            f"{excess_cost:.2f} left unallocated"
                        ),
                    ),
                )

    return DailySplitResult(
        date=None,
        temperature=temperature,
        baseline_usage=baseline_usage,
        baseline_cost=baseline_cost,
        actual_usage=actual_usage,
        actual_cost=actual_cost,
        excess_usage=excess_usage,
        excess_cost=excess_cost,
        occupant_a_share=a_share,
        occupant_b_share=b_share,
        occupancy_status=OccupancyAssignment(a_present, b_present, controller).status,
        controller=controller,
        unallocated_cost=unallocated_cost,
        split_evenly=split_evenly,
        warnings=warnings,
    )

