"""Deal snapshot and request schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.enums import ApprovalType, AssetKind

MILESTONE_FIELDS = (
    "lead_date",
    "inspection_scheduled_date",
    "claim_filed_date",
    "signed_date",
    "adjuster_met_date",
    "awaiting_approval_date",
    "approved_date",
    "acv_collected_date",
    "deductible_collected_date",
    "materials_selected_date",
    "install_scheduled_date",
    "installed_date",
    "completion_signed_date",
    "invoice_sent_date",
    "depreciation_collected_date",
    "complete_date",
    "paid_date",
)

_NON_NULLABLE_UPDATE_FIELDS = (
    "homeowner_name",
    "status",
    "acv_check_collected",
    "depreciation_check_collected",
)


class DealCommissionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    deal_id: str
    rep_id: str | None = None
    commission_type: str = "self_gen"
    commission_percent: Decimal | None = None
    commission_amount: Decimal | None = None
    paid: bool = False


class SignatureInfo(BaseModel):
    """Contract signature state; either unsigned or signed with a url."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    signed: bool = False
    url: str | None = Field(default=None, max_length=1024)
    signed_at: datetime | None = None

    @model_validator(mode="after")
    def _all_or_nothing(self) -> "SignatureInfo":
        if self.signed and not (self.url and self.url.strip()):
            raise ValueError("A signed contract requires a signature url.")
        if not self.signed and (self.url is not None or self.signed_at is not None):
            raise ValueError("An unsigned contract cannot carry signature details.")
        return self

    @classmethod
    def unsigned(cls) -> "SignatureInfo":
        return cls()

    def to_fields(self) -> dict[str, Any]:
        return {
            "contract_signed": self.signed,
            "signature_url": self.url,
            "signature_date": self.signed_at,
        }


class DealRecord(BaseModel):
    """Immutable snapshot of a deal as read from the store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    homeowner_name: str
    homeowner_phone: str | None = None
    homeowner_email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    notes: str | None = None

    insurance_company: str | None = None
    policy_number: str | None = None
    claim_number: str | None = None
    date_of_loss: date | None = None
    adjuster_name: str | None = None
    adjuster_phone: str | None = None
    adjuster_meeting_date: datetime | None = None

    status: str
    approval_type: str | None = None
    approved_date: datetime | None = None

    rcv: Decimal | None = None
    acv: Decimal | None = None
    deductible: Decimal | None = None
    depreciation: Decimal | None = None
    sales_tax: Decimal | None = None
    commission_override_amount: Decimal | None = None
    commission_override_reason: str | None = None
    commission_override_date: datetime | None = None
    commission_paid: bool = False
    commission_paid_date: datetime | None = None
    financials_unlocked_date: datetime | None = None
    financials_unlock_reason: str | None = None

    payment_requested: bool = False
    payment_request_date: datetime | None = None
    contract_signed: bool = False
    signature_url: str | None = None
    signature_date: datetime | None = None

    acv_check_collected: bool = False
    depreciation_check_collected: bool = False
    depreciation_check_amount: Decimal | None = None
    material_category: str | None = None
    material_color: str | None = None
    install_date: date | None = None
    install_time: str | None = None
    crew_assignment: str | None = None
    completion_date: date | None = None
    invoice_amount: Decimal | None = None

    rep_id: str | None = None
    rep_name: str | None = None
    commission: DealCommissionRecord | None = None

    inspection_images: list[str] = Field(default_factory=list)
    install_images: list[str] = Field(default_factory=list)
    completion_images: list[str] = Field(default_factory=list)
    permit_file_url: str | None = None
    invoice_url: str | None = None
    lost_statement_url: str | None = None
    agreement_url: str | None = None
    completion_form_url: str | None = None

    lead_date: datetime | None = None
    inspection_scheduled_date: datetime | None = None
    claim_filed_date: datetime | None = None
    signed_date: datetime | None = None
    adjuster_met_date: datetime | None = None
    awaiting_approval_date: datetime | None = None
    acv_collected_date: datetime | None = None
    deductible_collected_date: datetime | None = None
    materials_selected_date: datetime | None = None
    install_scheduled_date: datetime | None = None
    installed_date: datetime | None = None
    completion_signed_date: datetime | None = None
    invoice_sent_date: datetime | None = None
    depreciation_collected_date: datetime | None = None
    complete_date: datetime | None = None
    paid_date: datetime | None = None

    @field_validator("inspection_images", "install_images", "completion_images", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def merged(self, fields: dict[str, Any]) -> "DealRecord":
        """Return a candidate snapshot with ``fields`` laid over this one."""
        return self.model_copy(update=fields)

    @property
    def signature(self) -> SignatureInfo:
        if not self.contract_signed:
            return SignatureInfo.unsigned()
        # Rows written before the signature sub-record existed may lack a url.
        return SignatureInfo.model_construct(
            signed=True, url=self.signature_url, signed_at=self.signature_date
        )


class DealUpdate(BaseModel):
    """Fields a caller may change through the normal update path.

    Assets, signature, override, payout and unlock fields have their own
    operations and are rejected here.
    """

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    homeowner_name: str | None = Field(default=None, max_length=255)
    homeowner_phone: str | None = Field(default=None, max_length=40)
    homeowner_email: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=40)
    zip_code: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=10000)

    insurance_company: str | None = Field(default=None, max_length=255)
    policy_number: str | None = Field(default=None, max_length=120)
    claim_number: str | None = Field(default=None, max_length=120)
    date_of_loss: date | None = None
    adjuster_name: str | None = Field(default=None, max_length=255)
    adjuster_phone: str | None = Field(default=None, max_length=40)
    adjuster_meeting_date: datetime | None = None

    status: str | None = Field(default=None, max_length=40)
    approval_type: ApprovalType | None = None
    approved_date: datetime | None = None

    rcv: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    acv: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    deductible: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    depreciation: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    sales_tax: Decimal | None = Field(default=None, ge=0, decimal_places=2)

    acv_check_collected: bool | None = None
    depreciation_check_collected: bool | None = None
    depreciation_check_amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    material_category: str | None = Field(default=None, max_length=120)
    material_color: str | None = Field(default=None, max_length=120)
    install_date: date | None = None
    install_time: str | None = Field(default=None, max_length=20)
    crew_assignment: str | None = Field(default=None, max_length=255)
    completion_date: date | None = None
    invoice_amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)

    rep_id: str | None = Field(default=None, max_length=36)
    rep_name: str | None = Field(default=None, max_length=255)

    @field_validator(*_NON_NULLABLE_UPDATE_FIELDS)
    @classmethod
    def _not_cleared(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("This field cannot be cleared.")
        if isinstance(value, str) and not value.strip():
            raise ValueError("This field cannot be blank.")
        return value

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class DealCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    homeowner_name: str = Field(min_length=1, max_length=255)
    homeowner_phone: str | None = Field(default=None, max_length=40)
    homeowner_email: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=40)
    zip_code: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=10000)
    insurance_company: str | None = Field(default=None, max_length=255)
    policy_number: str | None = Field(default=None, max_length=120)
    claim_number: str | None = Field(default=None, max_length=120)
    date_of_loss: date | None = None
    rcv: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    acv: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    deductible: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    depreciation: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    rep_id: str | None = Field(default=None, max_length=36)

    @field_validator("homeowner_name")
    @classmethod
    def _homeowner_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Homeowner name is required.")
        return value.strip()


class PinConversion(BaseModel):
    """Optional values that take precedence over the pin's own data."""

    model_config = ConfigDict(extra="forbid")

    homeowner_name: str | None = Field(default=None, max_length=255)
    homeowner_phone: str | None = Field(default=None, max_length=40)
    homeowner_email: str | None = Field(default=None, max_length=255)
    insurance_company: str | None = Field(default=None, max_length=255)
    claim_number: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=10000)


class AssetRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: AssetKind
    url: str = Field(min_length=1, max_length=1024)


class DealUpdateRequest(BaseModel):
    updates: DealUpdate = Field(default_factory=DealUpdate)
    confirm_backward: bool = False
    milestone_date: datetime | None = None
    append_assets: list[AssetRef] = Field(default_factory=list)
    signature: SignatureInfo | None = None


class CommissionOverrideRequest(BaseModel):
    amount: Decimal = Field(decimal_places=2)
    reason: str = Field(max_length=2000)


class CommissionPayRequest(BaseModel):
    advance_status: bool = True


class FinancialUnlockRequest(BaseModel):
    reason: str = Field(max_length=2000)
