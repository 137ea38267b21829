"""Deterministic sanitizers for free text and asset references."""

from __future__ import annotations

from urllib.parse import urlparse

MAX_REASON_LENGTH = 2000
MAX_URL_LENGTH = 1024
ALLOWED_URL_SCHEMES = ("https", "http", "s3")


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def sanitize_reason(value: str | None) -> str:
    """Audit reasons are stored trimmed and bounded."""
    return sanitize_text(value, max_len=MAX_REASON_LENGTH)


def is_valid_asset_url(value: str | None) -> bool:
    """Asset references must be absolute http(s) or s3 locations without whitespace."""
    text = sanitize_text(value, max_len=MAX_URL_LENGTH + 1)
    if not text or len(text) > MAX_URL_LENGTH:
        return False
    if any(char.isspace() for char in text):
        return False
    parsed = urlparse(text)
    return parsed.scheme in ALLOWED_URL_SCHEMES and bool(parsed.netloc)
