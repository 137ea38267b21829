"""Configuration module for the Ridgeline CRM backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from app.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ConfigurationError(f"{name} must be a decimal number.") from exc


def _as_tier_map(name: str, default: str) -> dict[str, Decimal]:
    """Parse ``level:percent`` pairs such as ``junior:5,senior:10``."""
    tiers: dict[str, Decimal] = {}
    for item in os.getenv(name, default).split(","):
        if not item.strip():
            continue
        level, _, percent = item.partition(":")
        try:
            tiers[level.strip().lower()] = Decimal(percent.strip())
        except InvalidOperation as exc:
            raise ConfigurationError(f"{name} has a non-numeric percent for '{level.strip()}'.") from exc
    return tiers


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    JWT_PERMISSIONS_VERSION: int
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str
    SALES_TAX_RATE: Decimal
    DEFAULT_COMMISSION_PERCENT: Decimal
    COMMISSION_TIER_PERCENTS: dict[str, Decimal]

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=False)

    config = Config(
        APP_NAME="Ridgeline CRM",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./ridgeline.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"),
            default=(resolved_env == "production"),
        ),
        JWT_SECRET=os.getenv("JWT_SECRET", "change_me_jwt_secret"),
        JWT_ACCESS_TTL_MINUTES=int(os.getenv("JWT_ACCESS_TTL_MINUTES", "60")),
        JWT_PERMISSIONS_VERSION=int(os.getenv("JWT_PERMISSIONS_VERSION", "1")),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        SALES_TAX_RATE=_as_decimal("SALES_TAX_RATE", "0.0825"),
        DEFAULT_COMMISSION_PERCENT=_as_decimal("DEFAULT_COMMISSION_PERCENT", "10"),
        COMMISSION_TIER_PERCENTS=_as_tier_map("COMMISSION_TIER_PERCENTS", "junior:5,senior:10,manager:13"),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.JWT_ACCESS_TTL_MINUTES < 1:
        raise ConfigurationError("JWT_ACCESS_TTL_MINUTES must be >= 1.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if not Decimal("0") <= config.SALES_TAX_RATE < Decimal("1"):
        raise ConfigurationError("SALES_TAX_RATE must be >= 0 and < 1.")
    if not Decimal("0") <= config.DEFAULT_COMMISSION_PERCENT <= Decimal("100"):
        raise ConfigurationError("DEFAULT_COMMISSION_PERCENT must be between 0 and 100.")
    for level, percent in config.COMMISSION_TIER_PERCENTS.items():
        if not Decimal("0") <= percent <= Decimal("100"):
            raise ConfigurationError(f"Commission tier '{level}' must be between 0 and 100.")
    if config.is_production and "change_me" in config.JWT_SECRET.lower():
        raise ConfigurationError("Production JWT_SECRET uses a placeholder value.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
