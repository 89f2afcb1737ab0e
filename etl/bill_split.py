"""Print the fair split of a billing period.

Both home until Dec 18, then only A until the end of the bill::

    python -m etl.bill_split --start 2025-11-21 --end 2025-12-29 \\
        --assignment 2025-11-21 2025-12-18 1 1 B \\
        --assignment 2025-12-19 2025-12-29 1 0 A \\
        --split-evenly 2025-11-21 2025-12-02
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Sequence

from api.config import settings
from api.db.client import RecordStore
from api.services.billing import BillingService
from lib.time_util import format_period
from lib.types import ModelAssignment, OccupancyAssignment, PeriodSplit

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("etl.bill_split")

_STATUS_LABELS = {"both": "both", "a_only": "A only", "b_only": "B only", "none": "none"}


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_report(result: PeriodSplit, name_a: str = "A", name_b: str = "B") -> str:
    totals = result.totals
    lines = [
        f"Bill split {format_period(totals.start_date, totals.end_date)} ({totals.day_count} day(s))",
        "",
        f"{'Date':<11} {'Temp':>6} {'kWh':>7} {'Base':>7} {'Cost':>8} {name_a[:10]:>10} {name_b[:10]:>10}  Occupancy",
        "-" * 78,
    ]
    for d in result.daily_results:
        lines.append(
            f"{d.date.isoformat():<11} {d.temperature:>6.1f} {d.actual_usage:>7.2f} {d.baseline_usage:>7.2f}"
            f" {d.actual_cost:>8.2f} {d.occupant_a_share:>10.2f} {d.occupant_b_share:>10.2f}"
            f"  {_STATUS_LABELS[d.occupancy_status]}{' (even)' if d.split_evenly else ''}"
        )
    lines += [
        "-" * 78,
        f"{'Total':<11} {totals.average_temperature:>6.1f} {totals.actual_usage:>7.2f} {totals.baseline_usage:>7.2f}"
        f" {totals.actual_cost:>8.2f} {totals.occupant_a_share:>10.2f} {totals.occupant_b_share:>10.2f}",
    ]
    if totals.unallocated_cost:
        lines.append(f"Unallocated (nobody home): {totals.unallocated_cost:.2f}")
    for w in result.warnings:
        lines.append(f"WARNING {w.day}: {w.message}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def run(
    start: date,
    end: date,
    assignments: Sequence[OccupancyAssignment] = (),
    model_assignments: Sequence[ModelAssignment] = (),
    dataset: str | None = None,
) -> PeriodSplit:
    service = BillingService(store=RecordStore(dataset=dataset))
    fitted = service.reference_model()
    log.info(
        "Baseline model (%s): usage = %.2f + (%.3f × temp)",
        fitted.source,
        fitted.model.intercept,
        fitted.model.slope,
    )

    result = service.split_period(
        start,
        end,
        assignments=assignments,
        model_assignments=model_assignments,
        model=fitted.model,
    )
    print(format_report(result, settings.OCCUPANT_A_NAME, settings.OCCUPANT_B_NAME))
    return result


def _parse_assignment(values: list[str]) -> OccupancyAssignment:
    start, end, a, b, controller = values
    return OccupancyAssignment(
        occupant_a_present=int(a),
        occupant_b_present=int(b),
        controller=controller.upper(),
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
    )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Split a period's electricity cost between two occupants.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--start", metavar="YYYY-MM-DD", required=True)
    parser.add_argument("--end", metavar="YYYY-MM-DD", required=True)
    parser.add_argument(
        "--assignment",
        nargs=5,
        action="append",
        default=[],
        metavar=("START", "END", "A", "B", "CONTROLLER"),
        help="Occupancy for a date range; first match wins. Repeatable.",
    )
    parser.add_argument(
        "--split-evenly",
        nargs=2,
        action="append",
        default=[],
        metavar=("START", "END"),
        help="Share every day's full cost 50/50 in this range. Repeatable.",
    )
    parser.add_argument("--dataset", default=None)
    args = parser.parse_args()

    try:
        start_date = date.fromisoformat(args.start)
        end_date = date.fromisoformat(args.end)
        occupancy = [_parse_assignment(v) for v in args.assignment]
        rules = [
            ModelAssignment(date.fromisoformat(s), date.fromisoformat(e), split_evenly=True)
            for s, e in args.split_evenly
        ]
    except ValueError as exc:
        print(f"Invalid argument: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        run(start_date, end_date, occupancy, rules, dataset=args.dataset)
    except Exception as exc:
        log.exception("Bill split failed: %s", exc)
        sys.exit(1)
