from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path

from api.db.client import RecordStore
from api.services.billing import BillingService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("etl.export_usage")


def run(
    output: Path | None = None,
    start: date | None = None,
    end: date | None = None,
    dataset: str | None = None,
) -> str:
    service = BillingService(store=RecordStore(dataset=dataset))
    text = service.export_csv(start, end)

    if output is None:
        sys.stdout.write(text)
    else:
        output.write_text(text, encoding="utf-8")
        log.info("Wrote %d row(s) to %s", max(text.count("\n") - 1, 0), output)
    return text


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Export stored daily usage records as CSV.")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")
    parser.add_argument("--start", metavar="YYYY-MM-DD", default=None)
    parser.add_argument("--end", metavar="YYYY-MM-DD", default=None)
    parser.add_argument("--dataset", default=None)
    args = parser.parse_args()

    try:
        start = date.fromisoformat(args.start) if args.start else None
        end = date.fromisoformat(args.end) if args.end else None
    except ValueError as exc:
        print(f"Invalid date: {exc}. Expected YYYY-MM-DD.", file=sys.stderr)
        sys.exit(1)

    try:
        run(args.output, start=start, end=end, dataset=args.dataset)
    except Exception as exc:
        log.exception("Export failed: %s", exc)
        sys.exit(1)
