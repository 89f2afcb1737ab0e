from dataclasses import asdict
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from api.services.billing import BillingService
from lib.errors import BillSplitError, InputValidationError
from lib.types import (
    DailySplitResult,
    DataQualityWarning,
    LinearModel,
    ModelAssignment,
    OccupancyAssignment,
)

router = APIRouter()

_billing_service: Optional[BillingService] = None


def get_billing_service() -> BillingService:
    global _billing_service
    if _billing_service is None:
        _billing_service = BillingService()
    return _billing_service


def _unprocessable(exc: BillSplitError) -> HTTPException:
    detail: dict = {"message": str(exc), "error": type(exc).__name__}
    if isinstance(exc, InputValidationError):
        detail.update(field=exc.field, value=None if exc.value is None else str(exc.value), constraint=exc.constraint)
    return HTTPException(status_code=422, detail=detail)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class LinearModelBody(BaseModel):
    intercept: float
    slope: float

    def to_model(self) -> LinearModel:
        return LinearModel(intercept=self.intercept, slope=self.slope)


class OccupancyBody(BaseModel):
    """Fields left out take their value from the configured default assignment."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    occupant_a_present: Optional[Literal[0, 1]] = None
    occupant_b_present: Optional[Literal[0, 1]] = None
    controller: Optional[Literal["A", "B"]] = None

    def to_assignment(self, default: OccupancyAssignment) -> OccupancyAssignment:
        return OccupancyAssignment(
            occupant_a_present=(
                default.occupant_a_present if self.occupant_a_present is None else self.occupant_a_present
            ),
            occupant_b_present=(
                default.occupant_b_present if self.occupant_b_present is None else self.occupant_b_present
            ),
            controller=default.controller if self.controller is None else self.controller,
            start_date=self.start_date,
            end_date=self.end_date,
        )


class ModelAssignmentBody(BaseModel):
    start_date: date
    end_date: date
    model: Optional[LinearModelBody] = None
    split_evenly: bool = False

    def to_assignment(self) -> ModelAssignment:
        return ModelAssignment(
            start_date=self.start_date,
            end_date=self.end_date,
            model=self.model.to_model() if self.model else None,
            split_evenly=self.split_evenly,
        )


class DailySplitRequest(BaseModel):
    actual_usage: float = Field(ge=0)
    temperature: float
    occupancy: Optional[OccupancyBody] = None
    model: Optional[LinearModelBody] = None


class PeriodSplitRequest(BaseModel):
    start_date: date
    end_date: date
    assignments: List[OccupancyBody] = []
    model_assignments: List[ModelAssignmentBody] = []
    model: Optional[LinearModelBody] = None


class ImportRequest(BaseModel):
    csv_text: str


class WarningResponse(BaseModel):
    code: str
    message: str
    day: Optional[date]


class RecordResponse(BaseModel):
    date: date
    usage_kwh: float
    temp_mean_f: float
    temp_min_f: Optional[float]
    temp_max_f: Optional[float]
    cost_dollars: Optional[float]


class ImportResponse(BaseModel):
    imported: int
    start: Optional[date]
    end: Optional[date]
    total_rows: int
    invalid_rows: int
    errors: List[str]
    warnings: List[WarningResponse]


class ModelResponse(BaseModel):
    intercept: float
    slope: float
    source: str
    window_start: date
    window_end: date
    observations: int
    r_squared: Optional[float]
    reason: Optional[str]


class PredictionResponse(BaseModel):
    temperature: float
    baseline_usage: float
    baseline_cost: float
    share_each: float


class DailySplitResponse(BaseModel):
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
    unallocated_cost: float
    occupancy_status: str
    controller: str
    split_evenly: bool
    warnings: List[WarningResponse]


class PeriodTotalsResponse(BaseModel):
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


class PeriodSplitResponse(BaseModel):
    daily_results: List[DailySplitResponse]
    totals: PeriodTotalsResponse
    warnings: List[WarningResponse]


def _warning(w: DataQualityWarning) -> WarningResponse:
    return WarningResponse(code=w.code, message=w.message, day=w.day)


def _daily(result: DailySplitResult) -> DailySplitResponse:
    fields = asdict(result)
    fields["warnings"] = [_warning(w) for w in result.warnings]
    return DailySplitResponse(**fields)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@router.get("/records", response_model=List[RecordResponse])
def list_records(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    service: BillingService = Depends(get_billing_service),
):
    """Return stored daily records, ordered by date."""
    return [
        RecordResponse(
            date=r.date,
            usage_kwh=r.usage_amount,
            temp_mean_f=r.mean_temperature,
            temp_min_f=r.min_temperature,
            temp_max_f=r.max_temperature,
            cost_dollars=r.cost_amount,
        )
        for r in service.store.get_records(start, end)
    ]


@router.post("/records/import", response_model=ImportResponse)
def import_records(body: ImportRequest, service: BillingService = Depends(get_billing_service)):
    """Parse a usage CSV and merge it into the store (later dates win)."""
    result = service.import_csv(body.csv_text)
    if not result.success:
        raise HTTPException(
            status_code=422,
            detail={"errors": result.errors, "warnings": [w.message for w in result.warnings]},
        )
    return ImportResponse(
        imported=len(result.records),
        start=result.start,
        end=result.end,
        total_rows=result.total_rows,
        invalid_rows=result.invalid_rows,
        errors=result.errors,
        warnings=[_warning(w) for w in result.warnings],
    )


@router.get("/records/export", response_class=PlainTextResponse)
def export_records(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    service: BillingService = Depends(get_billing_service),
):
    return PlainTextResponse(service.export_csv(start, end), media_type="text/csv")


@router.delete("/records")
def clear_records(service: BillingService = Depends(get_billing_service)):
    return {"deleted": service.store.clear()}


# ---------------------------------------------------------------------------
# Model & calculations
# ---------------------------------------------------------------------------


@router.get("/model", response_model=ModelResponse)
def reference_model(service: BillingService = Depends(get_billing_service)):
    """Return the baseline model fitted over the reference window (or the fallback)."""
    fitted = service.reference_model()
    return ModelResponse(
        intercept=fitted.model.intercept,
        slope=fitted.model.slope,
        source=fitted.source,
        window_start=fitted.window.start,
        window_end=fitted.window.end,
        observations=fitted.observations,
        r_squared=fitted.r_squared,
        reason=fitted.reason,
    )


@router.get("/predict", response_model=PredictionResponse)
def predict(temperature: float = Query(...), service: BillingService = Depends(get_billing_service)):
    try:
        prediction = service.predict(temperature)
    except BillSplitError as exc:
        raise _unprocessable(exc) from exc
    return PredictionResponse(**asdict(prediction))


@router.post("/split/day", response_model=DailySplitResponse)
def split_day(body: DailySplitRequest, service: BillingService = Depends(get_billing_service)):
    try:
        result = service.split_day(
            actual_usage=body.actual_usage,
            temperature=body.temperature,
            occupancy=body.occupancy.to_assignment(service.config.default_assignment) if body.occupancy else None,
            model=body.model.to_model() if body.model else None,
        )
    except BillSplitError as exc:
        raise _unprocessable(exc) from exc
    return _daily(result)


@router.post("/split/period", response_model=PeriodSplitResponse)
def split_period(body: PeriodSplitRequest, service: BillingService = Depends(get_billing_service)):
    """Split every stored day in the range; daily results are in date order."""
    try:
        result = service.split_period(
            body.start_date,
            body.end_date,
            assignments=[a.to_assignment(service.config.default_assignment) for a in body.assignments],
            model_assignments=[m.to_assignment() for m in body.model_assignments],
            model=body.model.to_model() if body.model else None,
        )
    except BillSplitError as exc:
        raise _unprocessable(exc) from exc
    return PeriodSplitResponse(
        daily_results=[_daily(d) for d in result.daily_results],
        totals=PeriodTotalsResponse(**asdict(result.totals)),
        warnings=[_warning(w) for w in result.warnings],
    )
