"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from facilityhub.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    # Fail fast when the pool is exhausted instead of queueing requests
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
    "pool_use_lifo": True,
}


def build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the configured backend."""
    if db_url.startswith("sqlite"):
        # Sessions are handed to worker threads by the routes
        return {"connect_args": {"check_same_thread": False}}
    return dict(_DEFAULT_POOL_KWARGS)


engine: Engine = create_engine(settings.database_url, **build_engine_kwargs(settings.database_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables. Local development and tests only; deployments run alembic."""
    import facilityhub.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine_kwargs",
    "engine",
    "get_db",
    "init_db",
]
