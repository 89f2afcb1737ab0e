"""CSV import/export of daily usage records.

Expected columns (header names are trimmed, lower-cased and spaces turned
into underscores before matching)::

    date, usage_kwh, temp_mean_f[, temp_min_f, temp_max_f, cost_dollars]

Rows are validated one by one.  A bad row is rejected with its file row
number and the import carries on; only missing required columns fail the
whole file.
"""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from lib.constants import MAX_PLAUSIBLE_TEMP, MIN_PLAUSIBLE_TEMP, UNIT_RATE
from lib.time_util import parse_date
from lib.types import DailyRecord, DataQualityWarning

REQUIRED_COLUMNS: tuple[str, ...] = ("date", "usage_kwh", "temp_mean_f")
EXPORT_COLUMNS: tuple[str, ...] = (
    "date",
    "usage_kwh",
    "cost_dollars",
    "temp_mean_f",
    "temp_min_f",
    "temp_max_f",
)

_MAX_LISTED_DUPLICATES = 5


@dataclass
class ImportResult:
    records: list[DailyRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[DataQualityWarning] = field(default_factory=list)
    total_rows: int = 0
    invalid_rows: int = 0

    @property
    def success(self) -> bool:
        return bool(self.records)

    @property
    def start(self) -> Optional[date]:
        return self.records[0].date if self.records else None

    @property
    def end(self) -> Optional[date]:
        return self.records[-1].date if self.records else None


class _RowError(Exception):
    pass


def _normalise_header(name: str) -> str:
    return "_".join(name.strip().lower().split())


def _to_float(raw: Optional[str]) -> Optional[float]:
    """Parse a numeric cell; ``None`` for a blank cell, ValueError if not a finite number."""
    if raw is None or not raw.strip():
        return None
    value = float(raw.strip())
    if not math.isfinite(value):
        raise ValueError(f"{raw!r} is not finite")
    return value


def _optional_float(raw: Optional[str]) -> Optional[float]:
    try:
        return _to_float(raw)
    except ValueError:
        return None


def _parse_row(values: dict[str, str], unit_rate: float) -> DailyRecord:
    day = parse_date(values.get("date") or "")
    if day is None:
        raise _RowError(f"Invalid date format {values.get('date')!r}")

    try:
        usage = _to_float(values.get("usage_kwh"))
    except ValueError:
        usage = None
    if usage is None or usage < 0:
        raise _RowError(f"Invalid usage value {values.get('usage_kwh')!r}")

    try:
        temp = _to_float(values.get("temp_mean_f"))
    except ValueError:
        raise _RowError(f"Invalid mean temperature {values.get('temp_mean_f')!r}") from None
    if temp is None:
        raise _RowError("Missing mean temperature")

    temp_min = _optional_float(values.get("temp_min_f"))
    temp_max = _optional_float(values.get("temp_max_f"))
    cost = _optional_float(values.get("cost_dollars"))

    return DailyRecord(
        date=day,
        usage_amount=usage,
        mean_temperature=temp,
        min_temperature=temp if temp_min is None else temp_min,
        max_temperature=temp if temp_max is None else temp_max,
        cost_amount=usage * unit_rate if cost is None else cost,
    )


def parse_usage_csv(text: str, unit_rate: float = UNIT_RATE) -> ImportResult:
    """Parse and validate a usage export.

    Temperatures outside the plausible range are kept but flagged; on
    duplicate dates the later row wins.  Records come back sorted by date.
    """
    result = ImportResult()

    # Excel exports prefix the header with a UTF-8 byte-order mark
    text = text.removeprefix("\ufeff")
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if not rows:
        result.errors.append("CSV contains no rows")
        return result

    header = [_normalise_header(h) for h in rows[0]]
    missing = [col for col in REQUIRED_COLUMNS if col not in header]
    if missing:
        result.errors.append(f"Missing required columns: {', '.join(missing)}")
        return result

    by_date: dict[date, DailyRecord] = {}
    duplicates: list[date] = []

    for row_number, row in enumerate(rows[1:], start=2):
        result.total_rows += 1
        values = dict(zip(header, row))
        try:
            record = _parse_row(values, unit_rate)
        except _RowError as exc:
            result.invalid_rows += 1
            result.errors.append(f"Row {row_number}: {exc}")
            continue

        if not MIN_PLAUSIBLE_TEMP <= record.mean_temperature <= MAX_PLAUSIBLE_TEMP:
            result.warnings.append(
                DataQualityWarning(
                    code="implausible_temperature",
                    message=f"Row {row_number}: unusual temperature ({record.mean_temperature}°F) - please verify",
                    day=record.date,
                )
            )

        if record.date in by_date:
            duplicates.append(record.date)
        by_date[record.date] = record

    if result.invalid_rows:
        result.warnings.append(
            DataQualityWarning(
                code="invalid_row",
                message=f"{result.invalid_rows} invalid record(s) skipped. First error: {result.errors[0]}",
            )
        )

    if duplicates:
        listed = ", ".join(d.isoformat() for d in duplicates[:_MAX_LISTED_DUPLICATES])
        more = "..." if len(duplicates) > _MAX_LISTED_DUPLICATES else ""
        result.warnings.append(
            DataQualityWarning(
                code="duplicate_date",
                message=f"Found duplicate dates: {listed}{more}. Keeping latest entries.",
                day=duplicates[0],
            )
        )

    result.records = [by_date[d] for d in sorted(by_date)]
    return result


def export_usage_csv(records: Iterable[DailyRecord], unit_rate: float | None = None) -> str:
    """Render *records* as CSV, one row per date ascending.

    Usage and temperatures are written with 2 decimals, cost with 4.  A record
    without a cost gets one derived from *unit_rate*, or an empty cell when no
    rate is given.
    """
    ordered: Sequence[DailyRecord] = sorted(records, key=lambda r: r.date)
    if not ordered:
        return ""

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for r in ordered:
        cost = r.cost_amount
        if cost is None and unit_rate is not None:
            cost = r.cost(unit_rate)
        temp_min = r.mean_temperature if r.min_temperature is None else r.min_temperature
        temp_max = r.mean_temperature if r.max_temperature is None else r.max_temperature
        writer.writerow(
            [
                r.date.isoformat(),
                f"{r.usage_amount:.2f}",
                "" if cost is None else f"{cost:.4f}",
                f"{r.mean_temperature:.2f}",
                f"{temp_min:.2f}",
                f"{temp_max:.2f}",
            ]
        )
    return buf.getvalue()
