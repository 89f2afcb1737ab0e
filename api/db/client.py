from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from api.config import settings
from api.db.models import DailyUsage
from api.db.session import get_session
from lib.types import DailyRecord

_TABLE = DailyUsage.__table__
_VALUE_COLUMNS = ("usage_kwh", "temp_mean_f", "temp_min_f", "temp_max_f", "cost_dollars")


def _to_row(dataset: str, record: DailyRecord) -> dict:
    return {
        "dataset": dataset,
        "date": record.date,
        "usage_kwh": record.usage_amount,
        "temp_mean_f": record.mean_temperature,
        "temp_min_f": record.min_temperature,
        "temp_max_f": record.max_temperature,
        "cost_dollars": record.cost_amount,
    }


def _to_record(row: DailyUsage) -> DailyRecord:
    return DailyRecord(
        date=row.day,
        usage_amount=row.usage_kwh,
        mean_temperature=row.temp_mean_f,
        min_temperature=row.temp_min_f,
        max_temperature=row.temp_max_f,
        cost_amount=row.cost_dollars,
    )


class RecordStore:
    """Typed interface for reading and merging daily usage records.

    Every method opens and closes its own session through
    :func:`~api.db.session.get_session`, so callers never manage sessions.
    Records are scoped to one ``dataset`` (the storage identifier).
    """

    def __init__(
        self,
        dataset: str | None = None,
        session_factory: sessionmaker[Session] | None = None,
    ) -> None:
        self.dataset = dataset or settings.DATASET
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_records(self, records: Iterable[DailyRecord]) -> int:
        """Merge *records* into the store, last write wins per date.

        Returns the number of distinct dates written.
        """
        by_date: dict[date, dict] = {}
        for record in records:
            by_date[record.date] = _to_row(self.dataset, record)
        if not by_date:
            return 0

        rows = [by_date[d] for d in sorted(by_date)]
        stmt = sqlite_insert(_TABLE)
        stmt = stmt.on_conflict_do_update(
            index_elements=["dataset", "date"],
            set_={col: getattr(stmt.excluded, col) for col in _VALUE_COLUMNS},
        )
        with get_session(self._session_factory) as db:
            db.execute(stmt, rows)
        return len(rows)

    def clear(self) -> int:
        with get_session(self._session_factory) as db:
            result = db.execute(delete(_TABLE).where(_TABLE.c.dataset == self.dataset))
            return result.rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_records(self, start: date | None = None, end: date | None = None) -> list[DailyRecord]:
        """Records of this dataset in ``[start, end]`` (either bound optional), by date."""
        query = select(DailyUsage).where(DailyUsage.dataset == self.dataset)
        if start is not None:
            query = query.where(DailyUsage.day >= start)
        if end is not None:
            query = query.where(DailyUsage.day <= end)

        with get_session(self._session_factory) as db:
            rows = db.execute(query.order_by(DailyUsage.day)).scalars().all()
            return [_to_record(row) for row in rows]

    def date_bounds(self) -> tuple[date, date] | None:
        with get_session(self._session_factory) as db:
            first, last = db.execute(
                select(func.min(DailyUsage.day), func.max(DailyUsage.day))
                .where(DailyUsage.dataset == self.dataset)
            ).one()
        if first is None:
            return None
        return first, last

    def count(self) -> int:
        with get_session(self._session_factory) as db:
            return db.execute(
                select(func.count()).select_from(DailyUsage).where(DailyUsage.dataset == self.dataset)
            ).scalar_one()
