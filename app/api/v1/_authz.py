"""Shared authorization and error mapping helpers for API v1 route modules."""

from __future__ import annotations

from fastapi import HTTPException

from app.auth.rbac import require_scopes
from app.core.config import get_config
from app.core.dependencies import CurrentUser, get_current_user
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.orchestration.rejections import WorkflowRejection
from app.schemas.common import ErrorEnvelope

REJECTION_STATUS_CODES: dict[str, int] = {
    "not_found": 404,
    "role_not_permitted": 403,
    "backward_transition_rejected": 409,
    "financials_locked": 409,
    "payout_not_allowed": 409,
    "pin_already_converted": 409,
    "missing_required_field": 422,
    "incomplete_approval_snapshot": 422,
    "invalid_override": 422,
    "invalid_update": 422,
    "unknown_status": 422,
    "persistence_failed": 503,
}


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def authorize(authorization: str | None, scopes: list[str]) -> CurrentUser:
    token = _extract_bearer_token(authorization)
    user = get_current_user(token=token, settings=get_config())
    require_scopes(user.role, scopes)
    return user


def map_auth_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, AuthenticationError):
        return 401, str(exc)
    if isinstance(exc, AuthorizationError):
        return 403, str(exc)
    return 401, "Unauthorized."


def authorize_or_raise(authorization: str | None, scopes: list[str]) -> CurrentUser:
    try:
        return authorize(authorization=authorization, scopes=scopes)
    except (AuthenticationError, AuthorizationError) as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc


def rejection_to_http(rejection: WorkflowRejection) -> HTTPException:
    envelope = ErrorEnvelope(
        error_code=rejection.code,
        detail=rejection.message,
        context=rejection.details,
    )
    return HTTPException(
        status_code=REJECTION_STATUS_CODES.get(rejection.code, 400),
        detail=envelope.model_dump(mode="json"),
    )
