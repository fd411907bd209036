"""Database factory - SQLAlchemy engine and session handling."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import normalize_database_url
from app.domain.models import Base, Category
from app.domain.value_objects import DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)


def create_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """Build an engine for PostgreSQL (psycopg) or SQLite."""
    url = normalize_database_url(database_url)
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        logger.info("Using SQLite database")
        return create_engine(url, echo=echo, **kwargs)

    logger.info("Using PostgreSQL database")
    return create_engine(url, echo=echo, pool_pre_ping=True, pool_size=10, max_overflow=20)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create tables that do not exist yet (local runs and tests).

    Production schemas are managed by Alembic.
    """
    Base.metadata.create_all(engine)


def seed_categories(session: Session) -> int:
    """Insert the default categories when the table is empty."""
    existing = session.scalar(select(Category.id).limit(1))
    if existing is not None:
        return 0
    session.add_all(Category(name=name) for name in DEFAULT_CATEGORIES)
    session.commit()
    logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} categories")
    return len(DEFAULT_CATEGORIES)
