#!/usr/bin/env python
"""Create (or recreate) the record store tables.

Run from the repository root::

    python -m api.db.init_db [--drop]
"""

from __future__ import annotations

import argparse
import logging

from sqlalchemy import Engine

from api.db.models import Base
from api.db.session import engine as default_engine

log = logging.getLogger("api.db.init_db")


def init_db(drop: bool = False, bind: Engine | None = None) -> list[str]:
    """Create every table on *bind*; returns the table names now present."""
    bind = bind or default_engine

    if drop:
        log.info("Dropping all existing tables …")
        Base.metadata.drop_all(bind=bind)

    log.info("Creating tables in: %s", bind.url)
    Base.metadata.create_all(bind=bind)

    table_names = sorted(Base.metadata.tables.keys())
    log.info("%d table(s) ready: %s", len(table_names), ", ".join(table_names))
    return table_names


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Initialise the bill-split database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        default=False,
        help="Drop all existing tables before creating them (DESTRUCTIVE).",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = _parse_args()
    init_db(drop=args.drop)
