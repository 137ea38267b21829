"""Engine and session management for the CRM database."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
FALLBACK_SQLITE_URL = "sqlite:///./ridgeline.db"

DATABASE_URL: str = config.DATABASE_URL
engine: Engine
SessionLocal: sessionmaker


def _scheme(database_url: str) -> str:
    return database_url.split("://", 1)[0]


def _build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # Request handlers and the seed script share one file across threads.
        return create_engine(database_url, echo=config.DEBUG, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        echo=config.DEBUG,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=5,
        max_overflow=10,
    )


def reset_engine(database_url: str | None = None) -> None:
    """Bind the module engine and session factory to ``database_url``."""
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url or DATABASE_URL
    engine = _build_engine(DATABASE_URL)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


reset_engine(DATABASE_URL)


def get_engine() -> Engine:
    return engine


def get_active_database_url() -> str:
    """URL currently bound, which differs from config after a sqlite fallback."""
    return DATABASE_URL


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; callers own commit and rollback."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session for scripts: commit on success, roll back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _ping(target: Engine) -> None:
    with target.connect() as conn:
        conn.execute(text("SELECT 1"))


def verify_database_connection() -> bool:
    """Check connectivity, falling back to sqlite when the database is optional."""
    try:
        _ping(engine)
        return True
    except SQLAlchemyError as exc:
        if config.DB_CONNECTIVITY_REQUIRED or DATABASE_URL.startswith("sqlite"):
            logger.error(
                "database.connection_failed",
                extra={"event": "database.connection_failed", "scheme": _scheme(DATABASE_URL), "error": str(exc)},
            )
            return False
        return _fallback_to_sqlite(exc)


def _fallback_to_sqlite(original_exc: Exception) -> bool:
    original_url = DATABASE_URL
    reset_engine(FALLBACK_SQLITE_URL)
    try:
        _ping(engine)
    except SQLAlchemyError as fallback_exc:
        reset_engine(original_url)
        logger.error(
            "database.connection_fallback.failed",
            extra={
                "event": "database.connection_fallback.failed",
                "error": str(original_exc),
                "fallback_error": str(fallback_exc),
            },
        )
        return False

    logger.warning(
        "database.connection_fallback.sqlite",
        extra={
            "event": "database.connection_fallback.sqlite",
            "from_scheme": _scheme(original_url),
            "error": str(original_exc),
        },
    )
    return True
