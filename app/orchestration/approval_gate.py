"""Financial approval gate.

Once a deal records an approval type together with an approval date its
insurance figures are frozen until an admin explicitly unlocks them.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.core.logging import LogContext, build_log_event
from app.models.enums import UserRole
from app.orchestration.rejections import (
    FinancialsLocked,
    IncompleteApprovalSnapshot,
    InvalidUpdate,
    RoleNotPermitted,
)

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("rcv", "acv", "deductible", "depreciation")
APPROVAL_FIELDS = ("approval_type", "approved_date")
GATED_FIELDS = FINANCIAL_FIELDS + APPROVAL_FIELDS


class GateState(str, enum.Enum):
    OPEN = "open"
    PENDING = "pending"


def gate_state(deal: Any) -> GateState:
    return GateState.PENDING if deal.approval_type else GateState.OPEN


def is_locked(deal: Any) -> bool:
    return bool(deal.approval_type) and deal.approved_date is not None


def touches_gate(updates: dict[str, Any]) -> bool:
    return any(name in updates for name in GATED_FIELDS)


def _differs(old: Any, new: Any) -> bool:
    if old is None or new is None:
        return old is not new
    if isinstance(old, (int, float, Decimal)) and isinstance(new, (int, float, Decimal)):
        return Decimal(str(old)) != Decimal(str(new))
    return old != new


class FinancialApprovalGate:
    """Guards writes to rcv, acv, deductible and depreciation."""

    def check(self, deal: Any, updates: dict[str, Any]) -> None:
        """Raise when ``updates`` would break the lock or record a partial approval."""
        if is_locked(deal):
            changed = [
                name
                for name in FINANCIAL_FIELDS
                if name in updates and _differs(getattr(deal, name), updates[name])
            ]
            changed += [
                name for name in APPROVAL_FIELDS if name in updates and updates[name] is None
            ]
            if changed:
                raise FinancialsLocked(changed)
            return

        if not deal.approval_type and updates.get("approval_type"):
            missing = [name for name in FINANCIAL_FIELDS if updates.get(name) is None]
            if missing:
                raise IncompleteApprovalSnapshot(missing)

    def apply_financial_update(
        self, deal: Any, updates: dict[str, Any], now: datetime
    ) -> dict[str, Any]:
        """Validate and return the accepted fields, stamping the approval date."""
        self.check(deal, updates)
        accepted = dict(updates)
        if not deal.approval_type and accepted.get("approval_type"):
            if accepted.get("approved_date") is None:
                accepted["approved_date"] = deal.approved_date or now
        return accepted

    def unlock(
        self,
        deal: Any,
        reason: str | None,
        actor: UserRole | str,
        now: datetime,
    ) -> dict[str, Any]:
        """Fields that reopen the gate; admin only and always audited.

        Only the approval type is cleared. ``approved_date`` doubles as the
        milestone timestamp for the approved status and is kept.
        """
        role = UserRole(actor)
        if role != UserRole.ADMIN:
            raise RoleNotPermitted(role.value, "unlock approved financials")
        if reason is None or not reason.strip():
            raise InvalidUpdate("An unlock reason is required.", field="reason")

        logger.info(
            "deal.financials.unlocked",
            extra=build_log_event(
                "deal.financials.unlocked",
                LogContext(deal_id=deal.id, actor_role=role.value),
                previous_approval_type=deal.approval_type,
                reason=reason.strip(),
            ),
        )
        return {
            "approval_type": None,
            "financials_unlocked_date": now,
            "financials_unlock_reason": reason.strip(),
        }
