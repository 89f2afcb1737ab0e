from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional, Sequence

from api.config import settings
from api.db.client import RecordStore
from api.services.importer import ImportResult, export_usage_csv, parse_usage_csv
from lib.aggregate import calculate_period_split
from lib.baseline import predict_daily_cost
from lib.errors import DegenerateInputError
from lib.regression import fit_linear_model, observations_from_records, r_squared
from lib.split import calculate_daily_split
from lib.time_util import validate_range
from lib.types import (
    BillingConfig,
    DailySplitResult,
    DateRange,
    LinearModel,
    ModelAssignment,
    OccupancyAssignment,
    PeriodSplit,
    PredictedCost,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FittedModel:
    model: LinearModel
    source: Literal["fitted", "fallback"]
    window: DateRange
    observations: int
    r_squared: Optional[float] = None
    reason: Optional[str] = None


class BillingService:

    def __init__(
        self,
        store: RecordStore | None = None,
        config: BillingConfig | None = None,
        fallback_model: LinearModel | None = None,
        reference_window: DateRange | None = None,
    ) -> None:
        self._store = store or RecordStore()
        self.config = config or settings.billing_config()
        self.fallback_model = fallback_model or settings.fallback_model()
        self.reference_window = reference_window or settings.reference_window()

    @property
    def store(self) -> RecordStore:
        return self._store

    # ------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------

    def reference_model(self) -> FittedModel:
        """Fit the baseline model over the reference window.

        Falls back to the configured fixed model when the window holds no
        usable data (no records, or no temperature variance).
        """
        window = self.reference_window
        records = self._store.get_records(window.start, window.end)
        observations = observations_from_records(records)

        try:
            model = fit_linear_model(observations)
        except DegenerateInputError as exc:
            log.warning(
                "Cannot fit reference model over %s..%s (%s); using fallback %s.",
                window.start,
                window.end,
                exc,
                self.fallback_model,
            )
            return FittedModel(
                model=self.fallback_model,
                source="fallback",
                window=window,
                observations=len(observations),
                reason=str(exc),
            )

        fit_r2 = r_squared(model, observations)
        log.info(
            "Fitted reference model over %d day(s): intercept=%.3f slope=%.4f r2=%s",
            len(observations),
            model.intercept,
            model.slope,
            f"{fit_r2:.4f}" if fit_r2 is not None else "n/a",
        )
        return FittedModel(
            model=model,
            source="fitted",
            window=window,
            observations=len(observations),
            r_squared=fit_r2,
        )

    # ------------------------------------------------------------------
    # Calculations
    # ------------------------------------------------------------------

    def split_day(
        self,
        actual_usage: float,
        temperature: float,
        occupancy: OccupancyAssignment | None = None,
        model: LinearModel | None = None,
        day: date | None = None,
    ) -> DailySplitResult:
        return calculate_daily_split(
            actual_usage=actual_usage,
            temperature=temperature,
            occupancy=occupancy or self.config.default_assignment,
            model=model or self.reference_model().model,
            unit_rate=self.config.unit_rate,
            bounds=self.config.bounds,
            day=day,
        )

    def split_period(
        self,
        start: date,
        end: date,
        assignments: Sequence[OccupancyAssignment] = (),
        model_assignments: Sequence[ModelAssignment] = (),
        model: LinearModel | None = None,
    ) -> PeriodSplit:
        validate_range(start, end, self.config.max_range_span_days)
        records = self._store.get_records(start, end)
        result = calculate_period_split(
            records,
            start,
            end,
            model=model or self.reference_model().model,
            assignments=assignments,
            model_assignments=model_assignments,
            config=self.config,
        )
        for warning in result.warnings:
            log.warning("%s: %s", warning.day, warning.message)
        log.info(
            "Split %s..%s over %d day(s): A=%.2f B=%.2f unallocated=%.2f",
            start,
            end,
            result.totals.day_count,
            result.totals.occupant_a_share,
            result.totals.occupant_b_share,
            result.totals.unallocated_cost,
        )
        return result

    def predict(self, temperature: float, model: LinearModel | None = None) -> PredictedCost:
        return predict_daily_cost(
            temperature,
            model or self.reference_model().model,
            self.config.unit_rate,
            self.config.bounds,
        )

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def import_csv(self, text: str) -> ImportResult:
        """Parse *text* and merge the valid records into the store."""
        result = parse_usage_csv(text, unit_rate=self.config.unit_rate)
        for warning in result.warnings:
            log.warning("Import: %s", warning.message)

        if not result.success:
            log.error("Import produced no valid records: %s", "; ".join(result.errors))
            return result

        written = self._store.upsert_records(result.records)
        log.info(
            "Imported %d record(s) (%s..%s) into dataset %r; %d row(s) rejected.",
            written,
            result.start,
            result.end,
            self._store.dataset,
            result.invalid_rows,
        )
        return result

    def export_csv(self, start: date | None = None, end: date | None = None) -> str:
        return export_usage_csv(self._store.get_records(start, end), unit_rate=self.config.unit_rate)
