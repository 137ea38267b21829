"""Map pin model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base
from app.models.enums import PinStatus


class Pin(Base, AuditMixin):
    __tablename__ = "rep_pins"
    __table_args__ = (
        Index("idx_rep_pins_deal", "deal_id"),
        Index("idx_rep_pins_rep_status", "rep_id", "status"),
        Index("idx_rep_pins_assigned_closer", "assigned_closer_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    rep_id: Mapped[str | None] = mapped_column(ForeignKey("reps.id", ondelete="SET NULL"))
    assigned_closer_id: Mapped[str | None] = mapped_column(
        ForeignKey("reps.id", name="fk_rep_pins_assigned_closer", ondelete="SET NULL")
    )
    homeowner_name: Mapped[str | None] = mapped_column(String(255))
    homeowner_phone: Mapped[str | None] = mapped_column(String(40))
    homeowner_email: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(40))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(20), default=PinStatus.LEAD.value, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    inspection_images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    appointment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    deal_id: Mapped[str | None] = mapped_column(ForeignKey("deals.id", ondelete="SET NULL"))

    rep = relationship("Rep", back_populates="pins", foreign_keys=[rep_id])
    deal = relationship("Deal", back_populates="pins")
