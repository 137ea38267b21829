"""Canonical enum values for the deal workflow schema."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    REP = "rep"
    CREW = "crew"


class DealStatus(str, enum.Enum):
    """Canonical deal statuses in progression order."""

    LEAD = "lead"
    INSPECTION_SCHEDULED = "inspection_scheduled"
    CLAIM_FILED = "claim_filed"
    SIGNED = "signed"
    ADJUSTER_MET = "adjuster_met"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVED = "approved"
    ACV_COLLECTED = "acv_collected"
    DEDUCTIBLE_COLLECTED = "deductible_collected"
    MATERIALS_SELECTED = "materials_selected"
    INSTALL_SCHEDULED = "install_scheduled"
    INSTALLED = "installed"
    COMPLETION_SIGNED = "completion_signed"
    INVOICE_SENT = "invoice_sent"
    DEPRECIATION_COLLECTED = "depreciation_collected"
    COMPLETE = "complete"
    PAID = "paid"


class Phase(str, enum.Enum):
    SIGN = "sign"
    BUILD = "build"
    FINALIZING = "finalizing"
    COMPLETE = "complete"


class ApprovalType(str, enum.Enum):
    FULL = "full"
    PARTIAL = "partial"
    SUPPLEMENT_NEEDED = "supplement_needed"
    SALE = "sale"


class PinStatus(str, enum.Enum):
    LEAD = "lead"
    FOLLOWUP = "followup"
    APPOINTMENT = "appointment"
    INSTALLED = "installed"
    RENTER = "renter"
    NOT_INTERESTED = "not_interested"


class CommissionLevel(str, enum.Enum):
    JUNIOR = "junior"
    SENIOR = "senior"
    MANAGER = "manager"


class CommissionType(str, enum.Enum):
    SELF_GEN = "self_gen"
    CLOSER = "closer"


class CommissionSource(str, enum.Enum):
    OVERRIDE = "override"
    RECORDED = "recorded"
    COMPUTED = "computed"


class AssetKind(str, enum.Enum):
    """Deal-owned document and photo references."""

    INSPECTION_IMAGES = "inspection_images"
    INSTALL_IMAGES = "install_images"
    COMPLETION_IMAGES = "completion_images"
    PERMIT = "permit_file_url"
    INVOICE = "invoice_url"
    LOST_STATEMENT = "lost_statement_url"
    AGREEMENT = "agreement_url"
    COMPLETION_FORM = "completion_form_url"

    @property
    def is_collection(self) -> bool:
        return self in {
            AssetKind.INSPECTION_IMAGES,
            AssetKind.INSTALL_IMAGES,
            AssetKind.COMPLETION_IMAGES,
        }
