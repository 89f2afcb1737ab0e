from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.config import settings


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for *url*.

    ``check_same_thread=False`` is required for SQLite when the same
    connection is used across FastAPI worker threads.  In-memory SQLite gets a
    single shared connection so every session sees the same database.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(url, connect_args={"check_same_thread": False}, echo=echo)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False)


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal: sessionmaker[Session] = make_session_factory(engine)


@contextmanager
def get_session(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
