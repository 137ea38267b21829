"""Bring the CRM schema up to the latest migration."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext

import app.database.db as db_module
from app.core.startup import bootstrap

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def current_revision() -> str | None:
    with db_module.get_engine().connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def init_db() -> None:
    """Validate startup config, then run pending migrations on the active database."""
    bootstrap()
    active_url = db_module.get_active_database_url()
    before = current_revision()
    command.upgrade(build_alembic_config(active_url), "head")
    logger.info(
        "database.migrated",
        extra={
            "event": "database.migrated",
            "scheme": active_url.split("://", 1)[0],
            "from_revision": before,
            "to_revision": current_revision(),
        },
    )


if __name__ == "__main__":
    init_db()
