"""Deal model module."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base
from app.models.enums import DealStatus


def _milestone() -> Mapped[datetime | None]:
    return mapped_column(DateTime(timezone=True), nullable=True)


class Deal(Base, AuditMixin):
    __tablename__ = "deals"
    __table_args__ = (
        Index("idx_deals_status", "status"),
        Index("idx_deals_rep", "rep_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    homeowner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    homeowner_phone: Mapped[str | None] = mapped_column(String(40))
    homeowner_email: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(40))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    notes: Mapped[str | None] = mapped_column(Text)

    insurance_company: Mapped[str | None] = mapped_column(String(255))
    policy_number: Mapped[str | None] = mapped_column(String(120))
    claim_number: Mapped[str | None] = mapped_column(String(120))
    date_of_loss: Mapped[date | None] = mapped_column(Date)
    adjuster_name: Mapped[str | None] = mapped_column(String(255))
    adjuster_phone: Mapped[str | None] = mapped_column(String(40))
    adjuster_meeting_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Stored as plain text so rows written by older clients can be translated on read.
    status: Mapped[str] = mapped_column(String(40), default=DealStatus.LEAD.value, nullable=False)
    approval_type: Mapped[str | None] = mapped_column(String(40))
    approved_date: Mapped[datetime | None] = _milestone()

    rcv: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    acv: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    deductible: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    depreciation: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    sales_tax: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    commission_override_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    commission_override_reason: Mapped[str | None] = mapped_column(Text)
    commission_override_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    commission_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    commission_paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    financials_unlocked_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    financials_unlock_reason: Mapped[str | None] = mapped_column(Text)

    payment_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_request_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    contract_signed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    signature_url: Mapped[str | None] = mapped_column(String(1024))
    signature_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    acv_check_collected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    depreciation_check_collected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    depreciation_check_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    material_category: Mapped[str | None] = mapped_column(String(120))
    material_color: Mapped[str | None] = mapped_column(String(120))
    install_date: Mapped[date | None] = mapped_column(Date)
    install_time: Mapped[str | None] = mapped_column(String(20))
    crew_assignment: Mapped[str | None] = mapped_column(String(255))
    completion_date: Mapped[date | None] = mapped_column(Date)
    invoice_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    rep_id: Mapped[str | None] = mapped_column(ForeignKey("reps.id", ondelete="SET NULL"))
    rep_name: Mapped[str | None] = mapped_column(String(255))

    inspection_images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    install_images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    completion_images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    permit_file_url: Mapped[str | None] = mapped_column(String(1024))
    invoice_url: Mapped[str | None] = mapped_column(String(1024))
    lost_statement_url: Mapped[str | None] = mapped_column(String(1024))
    agreement_url: Mapped[str | None] = mapped_column(String(1024))
    completion_form_url: Mapped[str | None] = mapped_column(String(1024))

    lead_date: Mapped[datetime | None] = _milestone()
    inspection_scheduled_date: Mapped[datetime | None] = _milestone()
    claim_filed_date: Mapped[datetime | None] = _milestone()
    signed_date: Mapped[datetime | None] = _milestone()
    adjuster_met_date: Mapped[datetime | None] = _milestone()
    awaiting_approval_date: Mapped[datetime | None] = _milestone()
    acv_collected_date: Mapped[datetime | None] = _milestone()
    deductible_collected_date: Mapped[datetime | None] = _milestone()
    materials_selected_date: Mapped[datetime | None] = _milestone()
    install_scheduled_date: Mapped[datetime | None] = _milestone()
    installed_date: Mapped[datetime | None] = _milestone()
    completion_signed_date: Mapped[datetime | None] = _milestone()
    invoice_sent_date: Mapped[datetime | None] = _milestone()
    depreciation_collected_date: Mapped[datetime | None] = _milestone()
    complete_date: Mapped[datetime | None] = _milestone()
    paid_date: Mapped[datetime | None] = _milestone()

    rep = relationship("Rep", back_populates="deals")
    commission = relationship(
        "DealCommission",
        back_populates="deal",
        uselist=False,
        cascade="all, delete-orphan",
    )
    pins = relationship("Pin", back_populates="deal")
