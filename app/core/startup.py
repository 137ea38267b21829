"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from app.core.config import get_config
from app.core.logging_config import configure_logging
from app.database.db import get_active_database_url, verify_database_connection
from app.models import Deal
from app.orchestration.status_catalog import CATALOG

logger = logging.getLogger(__name__)


def validate_status_catalog() -> None:
    """Every catalog milestone must map to a deal column."""
    missing = [name for name in CATALOG.milestone_fields if not hasattr(Deal, name)]
    if missing:
        raise RuntimeError(f"Deal table is missing milestone columns: {', '.join(missing)}")


def validate_startup_config() -> None:
    """Fail fast on connectivity; warn on risky production settings."""
    config = get_config()
    validate_status_catalog()

    database_ok = verify_database_connection()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    active_database_url = get_active_database_url()
    if config.is_production and active_database_url.startswith("sqlite"):
        logger.warning("startup.production.sqlite_detected", extra={"event": "startup.production.sqlite_detected"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "sales_tax_rate": str(config.SALES_TAX_RATE),
            "default_commission_percent": str(config.DEFAULT_COMMISSION_PERCENT),
            "statuses": len(CATALOG.statuses),
        },
    )


def bootstrap() -> None:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    validate_startup_config()
