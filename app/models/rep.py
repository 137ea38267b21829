"""Rep model module."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base
from app.models.enums import CommissionLevel


class Rep(Base, AuditMixin):
    __tablename__ = "reps"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    commission_level: Mapped[str] = mapped_column(
        String(20), default=CommissionLevel.JUNIOR.value, nullable=False
    )
    default_commission_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    deals = relationship("Deal", back_populates="rep")
    pins = relationship("Pin", back_populates="rep", foreign_keys="Pin.rep_id")
