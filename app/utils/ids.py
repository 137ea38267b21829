"""Identifier generation helpers."""

from __future__ import annotations

import uuid


def new_record_id() -> str:
    """Create a UUID4-based record identifier."""
    return str(uuid.uuid4())
