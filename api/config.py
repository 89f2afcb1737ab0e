import os
from datetime import date

from dotenv import load_dotenv

from lib import constants
from lib.types import BaselineBounds, BillingConfig, DateRange, LinearModel, OccupancyAssignment

load_dotenv()


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///bill_split_dev.db")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    DATASET: str = os.getenv("DATASET", "default")

    UNIT_RATE: float = float(os.getenv("UNIT_RATE", str(constants.UNIT_RATE)))
    MIN_BASELINE_USAGE: float = float(os.getenv("MIN_BASELINE_USAGE", str(constants.MIN_BASELINE_USAGE)))
    MAX_BASELINE_USAGE: float = float(os.getenv("MAX_BASELINE_USAGE", str(constants.MAX_BASELINE_USAGE)))
    MAX_RANGE_SPAN_DAYS: int = int(os.getenv("MAX_RANGE_SPAN_DAYS", str(constants.MAX_RANGE_SPAN_DAYS)))

    MODEL_INTERCEPT: float = float(os.getenv("MODEL_INTERCEPT", str(constants.MODEL_INTERCEPT)))
    MODEL_SLOPE: float = float(os.getenv("MODEL_SLOPE", str(constants.MODEL_SLOPE)))
    REFERENCE_WINDOW_START: str = os.getenv("REFERENCE_WINDOW_START", "2026-01-02")
    REFERENCE_WINDOW_END: str = os.getenv("REFERENCE_WINDOW_END", "2026-01-10")

    DEFAULT_OCCUPANT_A_PRESENT: int = int(os.getenv("DEFAULT_OCCUPANT_A_PRESENT", "1"))
    DEFAULT_OCCUPANT_B_PRESENT: int = int(os.getenv("DEFAULT_OCCUPANT_B_PRESENT", "1"))
    DEFAULT_CONTROLLER: str = os.getenv("DEFAULT_CONTROLLER", constants.DEFAULT_CONTROLLER).upper()

    OCCUPANT_A_NAME: str = os.getenv("OCCUPANT_A_NAME", "Occupant A")
    OCCUPANT_B_NAME: str = os.getenv("OCCUPANT_B_NAME", "Occupant B")

    def billing_config(self) -> BillingConfig:
        return BillingConfig(
            unit_rate=self.UNIT_RATE,
            bounds=BaselineBounds(self.MIN_BASELINE_USAGE, self.MAX_BASELINE_USAGE),
            max_range_span_days=self.MAX_RANGE_SPAN_DAYS,
            default_assignment=OccupancyAssignment(
                occupant_a_present=self.DEFAULT_OCCUPANT_A_PRESENT,
                occupant_b_present=self.DEFAULT_OCCUPANT_B_PRESENT,
                controller=self.DEFAULT_CONTROLLER,
            ),
        )

    def fallback_model(self) -> LinearModel:
        return LinearModel(intercept=self.MODEL_INTERCEPT, slope=self.MODEL_SLOPE)

    def reference_window(self) -> DateRange:
        return DateRange(
            date.fromisoformat(self.REFERENCE_WINDOW_START),
            date.fromisoformat(self.REFERENCE_WINDOW_END),
        )


settings = Settings()
