"""Shared fixtures.

``DATABASE_URL`` is pointed at in-memory SQLite before any ``api`` module is
imported so the default engine never touches a file.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest  # noqa: E402

from api.db.client import RecordStore  # noqa: E402
from api.db.models import Base  # noqa: E402
from api.db.session import create_db_engine, make_session_factory  # noqa: E402
from lib.split import clear_split_cache  # noqa: E402
from lib.types import LinearModel  # noqa: E402


@pytest.fixture
def january_model() -> LinearModel:
    return LinearModel(intercept=50.75, slope=-0.888)


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> RecordStore:
    return RecordStore(dataset="test", session_factory=session_factory)


@pytest.fixture(autouse=True)
def _fresh_split_cache():
    clear_split_cache()
    yield
    clear_split_cache()

