"""Per-deal commission record model module."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base
from app.models.enums import CommissionType


class DealCommission(Base, AuditMixin):
    __tablename__ = "deal_commissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    deal_id: Mapped[str] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    rep_id: Mapped[str | None] = mapped_column(ForeignKey("reps.id", ondelete="SET NULL"))
    commission_type: Mapped[str] = mapped_column(
        String(20), default=CommissionType.SELF_GEN.value, nullable=False
    )
    commission_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    commission_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    deal = relationship("Deal", back_populates="commission")
