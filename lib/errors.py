from __future__ import annotations

from datetime import date
from typing import Any


class BillSplitError(Exception):
    """Base class for every error raised by the calculation engine."""


class InputValidationError(BillSplitError, ValueError):
    """Raised when an input value violates a constraint.

    Carries the offending ``field``, its ``value`` and the ``constraint`` it
    broke so the caller can point the user at the exact problem.
    """

    def __init__(self, field: str, value: Any, constraint: str) -> None:
        self.field = field
        self.value = value
        self.constraint = constraint
        super().__init__(f"Invalid {field}={value!r}: {constraint}")


class MissingTemperatureError(InputValidationError):

    def __init__(self, day: date | None = None) -> None:
        self.day = day
        where = f" for {day.isoformat()}" if day is not None else ""
        super().__init__(
            "mean_temperature",
            None,
            f"a mean temperature is required{where}; it is never inferred",
        )


class InvalidRangeError(InputValidationError):

    def __init__(self, start_date: date, end_date: date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            "start_date",
            start_date.isoformat(),
            f"must not be after end_date ({end_date.isoformat()})",
        )


class RangeTooLargeError(InputValidationError):

    def __init__(self, start_date: date, end_date: date, span_days: int, max_span_days: int) -> None:
        self.start_date = start_date
        self.end_date = end_date
        self.span_days = span_days
        self.max_span_days = max_span_days
        super().__init__(
            "end_date",
            end_date.isoformat(),
            f"range spans {span_days} days, more than the maximum of {max_span_days}",
        )


class DegenerateInputError(BillSplitError, ValueError):
    """Raised when a regression cannot be fitted (no temperature variance)."""

    def __init__(self, message: str, observations: int = 0) -> None:
        self.observations = observations
        super().__init__(message)
