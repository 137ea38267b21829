"""HS256 access tokens carrying the caller's CRM role."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from app.core.exceptions import AuthenticationError
from app.models.enums import UserRole

ACCESS_TOKEN_USE = "access"
_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(f"{data}{padding}".encode("ascii"))


def _segment(payload: dict[str, Any]) -> str:
    return _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _sign(signing_input: str, secret: str) -> str:
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")
    digest = hmac.new(secret.encode("utf-8"), signing_input.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def encode_jwt(payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
    """Sign ``payload``; iat, exp and jti are filled in unless provided."""
    now = datetime.now(timezone.utc)
    body = dict(payload)
    body.setdefault("iat", int(now.timestamp()))
    body.setdefault("exp", int((now + ttl).timestamp()))
    body.setdefault("jti", str(uuid.uuid4()))

    signing_input = f"{_segment(_HEADER)}.{_segment(body)}"
    return f"{signing_input}.{_sign(signing_input, secret)}"


def decode_jwt(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Verify signature and expiry, returning the claims."""
    parts = token.split(".")
    if len(parts) != 3:
        raise AuthenticationError("Invalid token format.")
    header_segment, payload_segment, signature = parts

    if not hmac.compare_digest(_sign(f"{header_segment}.{payload_segment}", secret), signature):
        raise AuthenticationError("Invalid token signature.")
    try:
        claims = json.loads(_b64url_decode(payload_segment).decode("utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise AuthenticationError("Invalid token payload.") from exc

    if verify_exp:
        if "exp" not in claims:
            raise AuthenticationError("Token is missing exp claim.")
        if int(claims["exp"]) < int(datetime.now(timezone.utc).timestamp()):
            raise AuthenticationError("Token has expired.")
    return claims


def _resolve_role(role: UserRole | str) -> UserRole:
    try:
        return UserRole(str(getattr(role, "value", role)).lower())
    except ValueError as exc:
        raise AuthenticationError(f"Unknown role '{role}'.") from exc


def create_access_token(
    user_id: str,
    role: UserRole | str,
    secret: str,
    permissions_version: int = 1,
    ttl_minutes: int = 60,
    rep_id: str | None = None,
) -> str:
    """Create an access token for an admin, rep or crew member.

    ``rep_id`` links the user to a sales rep record; rep tokens without it
    fall back to ``user_id``.
    """
    payload = {
        "sub": str(user_id),
        "role": _resolve_role(role).value,
        "permissions_version": permissions_version,
        "token_use": ACCESS_TOKEN_USE,
    }
    if rep_id is not None:
        payload["rep_id"] = str(rep_id)
    return encode_jwt(payload=payload, secret=secret, ttl=timedelta(minutes=ttl_minutes))


def decode_access_token(token: str, secret: str) -> dict[str, Any]:
    """Decode a token that may call the API; refresh or foreign tokens are refused."""
    claims = decode_jwt(token, secret=secret)
    if claims.get("token_use", ACCESS_TOKEN_USE) != ACCESS_TOKEN_USE:
        raise AuthenticationError("Only access tokens may call the API.")
    claims["role"] = _resolve_role(claims.get("role", "")).value
    return claims
