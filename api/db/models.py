from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Daily usage
# ---------------------------------------------------------------------------


class DailyUsage(Base):
    """One day of metered usage and outdoor temperature.

    ``dataset`` is the storage identifier, so several independent record sets
    (e.g. one per flat) can share a database.  A later import of the same
    ``(dataset, day)`` replaces the earlier row.

    Columns
    -------
    usage_kwh:
        Energy consumed that day.
    temp_mean_f / temp_min_f / temp_max_f:
        Outdoor temperature in °F.  The mean is mandatory; min and max
        default to it on import.
    cost_dollars:
        Billed cost, when known.  Otherwise derived from the unit rate.
    """

    __tablename__ = "daily_usage"

    dataset: Mapped[str] = mapped_column(String(64), primary_key=True)
    day: Mapped[date] = mapped_column("date", Date, primary_key=True)
    usage_kwh: Mapped[float] = mapped_column(Float, nullable=False)
    temp_mean_f: Mapped[float] = mapped_column(Float, nullable=False)
    temp_min_f: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temp_max_f: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost_dollars: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<DailyUsage dataset={self.dataset!r} date={self.day}"
            f" usage={self.usage_kwh} temp={self.temp_mean_f}>"
        )
