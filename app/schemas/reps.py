"""Rep snapshot schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class RepRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    full_name: str
    email: str | None = None
    commission_level: str | None = None
    default_commission_percent: Decimal | None = None
