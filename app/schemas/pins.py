"""Map pin snapshot schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import PinStatus


class PinRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    rep_id: str | None = None
    assigned_closer_id: str | None = None
    homeowner_name: str | None = None
    homeowner_phone: str | None = None
    homeowner_email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    status: str
    notes: str | None = None
    inspection_images: list[str] = Field(default_factory=list)
    appointment_date: datetime | None = None
    deal_id: str | None = None

    @field_validator("inspection_images", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class PinCreate(BaseModel):
    """A door knocked on the map; reps always drop pins under their own id."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    rep_id: str | None = Field(default=None, max_length=36)
    assigned_closer_id: str | None = Field(default=None, max_length=36)
    homeowner_name: str | None = Field(default=None, max_length=255)
    homeowner_phone: str | None = Field(default=None, max_length=40)
    homeowner_email: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=40)
    zip_code: str | None = Field(default=None, max_length=20)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    status: PinStatus = PinStatus.LEAD
    notes: str | None = Field(default=None, max_length=10000)
    appointment_date: datetime | None = None
