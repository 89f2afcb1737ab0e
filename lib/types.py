from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, Optional

from lib.constants import (
    DEFAULT_CONTROLLER,
    MAX_BASELINE_USAGE,
    MAX_RANGE_SPAN_DAYS,
    MIN_BASELINE_USAGE,
    UNIT_RATE,
)
from lib.errors import InputValidationError, InvalidRangeError, MissingTemperatureError


Occupant = Literal["A", "B"]
OccupancyStatus = Literal["both", "a_only", "b_only", "none"]
WarningCode = Literal["vacant_excess", "implausible_temperature", "duplicate_date", "invalid_row"]

OCCUPANTS: tuple[str, ...] = ("A", "B")


def require_finite(field_name: str, value: Any) -> float:
    """Return *value* as a float, raising if it is not a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputValidationError(field_name, value, "must be a number")
    if not math.isfinite(value):
        raise InputValidationError(field_name, value, "must be finite")
    return float(value)


def _require_flag(field_name: str, value: Any) -> int:
    if value not in (0, 1):
        raise InputValidationError(field_name, value, "must be 0 or 1")
    return int(value)


# ---------------------------------------------------------------------------
# Input data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRange:
    """Closed interval ``[start, end]`` of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidRangeError(self.start, self.end)

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def span_days(self) -> int:
        """``end - start`` in days (0 for a single-day range)."""
        return (self.end - self.start).days

    @property
    def day_count(self) -> int:
        return self.span_days + 1


@dataclass(frozen=True)
class DailyRecord:
    """One calendar day of metered usage with its outdoor temperature."""

    date: date
    usage_amount: float
    mean_temperature: Optional[float]
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    cost_amount: Optional[float] = None

    def __post_init__(self) -> None:
        if self.mean_temperature is None:
            raise MissingTemperatureError(self.date)
        require_finite("mean_temperature", self.mean_temperature)
        usage = require_finite("usage_amount", self.usage_amount)
        if usage < 0:
            raise InputValidationError("usage_amount", usage, "must be >= 0")
        for name in ("min_temperature", "max_temperature", "cost_amount"):
            value = getattr(self, name)
            if value is not None:
                require_finite(name, value)

    def cost(self, unit_rate: float) -> float:
        """Billed cost for the day, derived from the unit rate when not recorded."""
        if self.cost_amount is not None:
            return self.cost_amount
        return self.usage_amount * unit_rate


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinearModel:
    """``usage = intercept + slope * temperature``."""

    intercept: float
    slope: float

    def __post_init__(self) -> None:
        require_finite("intercept", self.intercept)
        require_finite("slope", self.slope)

    def evaluate(self, temperature: float) -> float:
        """Unclamped model output at *temperature*."""
        return self.intercept + self.slope * temperature


@dataclass(frozen=True)
class BaselineBounds:
    min_usage: float = MIN_BASELINE_USAGE
    max_usage: float = MAX_BASELINE_USAGE

    def __post_init__(self) -> None:
        low = require_finite("min_usage", self.min_usage)
        high = require_finite("max_usage", self.max_usage)
        if low > high:
            raise InputValidationError("min_usage", low, f"must not exceed max_usage ({high})")

    def clamp(self, value: float) -> float:
        return max(self.min_usage, min(self.max_usage, value))


# ---------------------------------------------------------------------------
# Occupancy & per-period rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OccupancyAssignment:
    """Who was home and who controls the heating for ``[start_date, end_date]``.

    Leaving both dates unset makes the assignment unbounded, which is how the
    default assignment is expressed.
    """

    occupant_a_present: int
    occupant_b_present: int
    controller: Occupant = DEFAULT_CONTROLLER
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "occupant_a_present", _require_flag("occupant_a_present", self.occupant_a_present))
        object.__setattr__(self, "occupant_b_present", _require_flag("occupant_b_present", self.occupant_b_present))
        if self.controller not in OCCUPANTS:
            raise InputValidationError("controller", self.controller, "must be 'A' or 'B'")
        if self.start_date is not None and self.end_date is not None and self.start_date > self.end_date:
            raise InvalidRangeError(self.start_date, self.end_date)

    def covers(self, day: date) -> bool:
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True

    @property
    def status(self) -> OccupancyStatus:
        if self.occupant_a_present and self.occupant_b_present:
            return "both"
        if self.occupant_a_present:
            return "a_only"
        if self.occupant_b_present:
            return "b_only"
        return "none"


@dataclass(frozen=True)
class ModelAssignment:
    """Per-period override of the baseline model and/or split rule.

    ``model`` replaces the period's baseline model on matching days when set;
    ``split_evenly`` shares each matching day's whole cost 50/50 (used for
    days before any baseline was established).
    """

    start_date: date
    end_date: date
    model: Optional[LinearModel] = None
    split_evenly: bool = False

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise InvalidRangeError(self.start_date, self.end_date)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class BillingConfig:
    """Environment-supplied constants the engine needs for every computation."""

    unit_rate: float = UNIT_RATE
    bounds: BaselineBounds = field(default_factory=BaselineBounds)
    max_range_span_days: int = MAX_RANGE_SPAN_DAYS
    default_assignment: OccupancyAssignment = field(
        default_factory=lambda: OccupancyAssignment(occupant_a_present=1, occupant_b_present=1)
    )

    def __post_init__(self) -> None:
        if require_finite("unit_rate", self.unit_rate) <= 0:
            raise InputValidationError("unit_rate", self.unit_rate, "must be > 0")
        if self.max_range_span_days < 0:
            raise InputValidationError("max_range_span_days", self.max_range_span_days, "must be >= 0")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DataQualityWarning:
    code: WarningCode
    message: str
    day: Optional[date] = None


@dataclass(frozen=True)
class DailySplitResult:
    date: Optional[date]
    temperature: float
    baseline_usage: float
    baseline_cost: float
    actual_usage: float
    actual_cost: float
    excess_usage: float
    excess_cost: float
    occupant_a_share: float
    occupant_b_share: float
    occupancy_status: OccupancyStatus
    controller: Occupant
    unallocated_cost: float = 0.0
    split_evenly: bool = False
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class PeriodTotals:
    start_date: date
    end_date: date
    day_count: int
    average_temperature: float
    actual_usage: float
    baseline_usage: float
    excess_usage: float
    actual_cost: float
    baseline_cost: float
    excess_cost: float
    occupant_a_share: float
    occupant_b_share: float
    unallocated_cost: float


@dataclass(frozen=True)
class PeriodSplit:
    daily_results: tuple[DailySplitResult, ...]
    totals: PeriodTotals
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class PredictedCost:
    temperature: float
    baseline_usage: float
    baseline_cost: float
    share_each: float
