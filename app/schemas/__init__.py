"""Pydantic schema package for deal snapshots and API contracts."""

from app.schemas.common import ErrorEnvelope
from app.schemas.deals import (
    AssetRef,
    CommissionOverrideRequest,
    CommissionPayRequest,
    DealCommissionRecord,
    DealCreate,
    DealRecord,
    DealUpdate,
    DealUpdateRequest,
    FinancialUnlockRequest,
    PinConversion,
    SignatureInfo,
)
from app.schemas.pins import PinCreate, PinRecord
from app.schemas.reps import RepRecord

__all__ = [
    "AssetRef",
    "CommissionOverrideRequest",
    "CommissionPayRequest",
    "DealCommissionRecord",
    "DealCreate",
    "DealRecord",
    "DealUpdate",
    "DealUpdateRequest",
    "ErrorEnvelope",
    "FinancialUnlockRequest",
    "PinConversion",
    "PinCreate",
    "PinRecord",
    "RepRecord",
    "SignatureInfo",
]
