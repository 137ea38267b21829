"""Dependency providers for API handlers and scripts."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.auth.jwt import decode_access_token
from app.core.config import Config, get_config
from app.core.exceptions import AuthenticationError
from app.database.db import get_db
from app.models.enums import UserRole
from app.orchestration.workflow import Actor, WorkflowOrchestrator
from app.services.deal_store import SqlDealStore


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: str
    permissions_version: int
    claims: dict[str, Any]
    rep_id: str | None = None

    @property
    def actor(self) -> Actor:
        """Workflow actor; reps are scoped to the deals and pins they hold."""
        return Actor(role=UserRole(self.role), rep_id=self.rep_id)


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_current_user(token: str | None = None, settings: Config | None = None) -> CurrentUser:
    """Resolve current user from bearer token.

    If token is omitted, returns a bootstrap local-admin context for script mode.
    """
    cfg = settings or get_settings()
    if token is None:
        claims = {
            "sub": "local-admin",
            "role": "admin",
            "permissions_version": cfg.JWT_PERMISSIONS_VERSION,
        }
    else:
        claims = decode_access_token(token, secret=cfg.JWT_SECRET)

    try:
        role = str(claims["role"]).lower()
        rep_id = claims.get("rep_id") or (claims["sub"] if role == UserRole.REP.value else None)
        user = CurrentUser(
            user_id=str(claims["sub"]),
            role=role,
            permissions_version=int(claims.get("permissions_version", 1)),
            claims=claims,
            rep_id=str(rep_id) if rep_id is not None else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid auth claims.") from exc
    # Bumping JWT_PERMISSIONS_VERSION revokes every token minted before it.
    if user.permissions_version < cfg.JWT_PERMISSIONS_VERSION:
        raise AuthenticationError("Token permissions are out of date.")
    return user


def get_workflow(db: Session) -> WorkflowOrchestrator:
    """Create a workflow orchestrator bound to the request session."""
    return WorkflowOrchestrator(SqlDealStore(db=db))
