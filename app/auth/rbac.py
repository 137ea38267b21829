"""Role-based authorization helpers."""

from __future__ import annotations

from app.core.exceptions import AuthorizationError
from app.models.enums import UserRole

# Field-level and status-level role rules live in the workflow; scopes only gate endpoints.
ROLE_SCOPES: dict[str, set[str]] = {
    UserRole.ADMIN.value: {"*"},
    UserRole.REP.value: {
        "deals.read",
        "deals.write",
        "commissions.read",
        "pins.read",
        "pins.write",
        "pins.convert",
    },
    UserRole.CREW.value: {
        "deals.read",
        "deals.write",
    },
}


def get_scopes_for_role(role: UserRole | str) -> set[str]:
    """Return scopes granted to a role; unknown roles get none."""
    return ROLE_SCOPES.get(str(getattr(role, "value", role)).lower(), set())


def has_scopes(role: UserRole | str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> bool:
    granted = get_scopes_for_role(role)
    if "*" in granted:
        return True
    return set(required_scopes).issubset(granted)


def require_scopes(role: UserRole | str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> None:
    """Raise when a role lacks required scopes."""
    if has_scopes(role, required_scopes):
        return
    missing = sorted(set(required_scopes) - get_scopes_for_role(role))
    raise AuthorizationError(f"Missing required scopes: {', '.join(missing)}")
