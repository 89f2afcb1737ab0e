"""Import a daily usage CSV into the record store.

Existing dates are overwritten by the imported rows; other dates are kept.
Run from the repository root::

    python -m etl.import_usage data/usage.csv [--dataset flat-102]
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from api.db.client import RecordStore
from api.db.init_db import init_db
from api.services.billing import BillingService

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("etl.import_usage")


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def run(path: Path, dataset: str | None = None) -> int:
    """Import *path*; returns the number of records merged."""
    log.info("Importing %s", path)
    init_db()

    service = BillingService(store=RecordStore(dataset=dataset))
    result = service.import_csv(path.read_text(encoding="utf-8-sig"))

    for error in result.errors:
        log.warning("  %s", error)

    if not result.success:
        raise ValueError(f"No valid records in {path}")

    log.info(
        "Import complete: %d record(s) from %d row(s), %d rejected. Store now holds %d day(s).",
        len(result.records),
        result.total_rows,
        result.invalid_rows,
        service.store.count(),
    )
    return len(result.records)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Import a daily usage CSV into the record store.")
    parser.add_argument("path", type=Path, help="CSV file with date, usage_kwh, temp_mean_f columns")
    parser.add_argument("--dataset", default=None, help="Storage identifier (default: $DATASET)")
    args = parser.parse_args()

    if not args.path.is_file():
        print(f"No such file: {args.path}", file=sys.stderr)
        sys.exit(1)

    try:
        run(args.path, dataset=args.dataset)
    except Exception as exc:
        log.exception("Import failed: %s", exc)
        sys.exit(1)
