"""Status catalog endpoint for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Header

from app.api.v1._authz import authorize_or_raise
from app.orchestration.status_catalog import BUCKETS, CATALOG

router = APIRouter(tags=["catalog"])


@router.get("/catalog/statuses")
def list_statuses(authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    authorize_or_raise(authorization, ["deals.read"])
    return {
        "statuses": CATALOG.display(),
        "buckets": [{"key": bucket.key, "label": bucket.label} for bucket in BUCKETS],
    }
