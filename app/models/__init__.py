"""SQLAlchemy model package for the deal workflow schema."""

from app.models.base import Base
from app.models.deal import Deal
from app.models.deal_commission import DealCommission
from app.models.enums import (
    ApprovalType,
    AssetKind,
    CommissionLevel,
    CommissionSource,
    CommissionType,
    DealStatus,
    Phase,
    PinStatus,
    UserRole,
)
from app.models.pin import Pin
from app.models.rep import Rep

__all__ = [
    "ApprovalType",
    "AssetKind",
    "Base",
    "CommissionLevel",
    "CommissionSource",
    "CommissionType",
    "Deal",
    "DealCommission",
    "DealStatus",
    "Phase",
    "Pin",
    "PinStatus",
    "Rep",
    "UserRole",
]
