"""Typed rejection reasons returned by the deal workflow."""

from __future__ import annotations

from typing import Any

from app.core.exceptions import ServiceError


class WorkflowRejection(ServiceError):
    """Base rejection; carries a stable code plus structured details."""

    code = "workflow_rejected"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class UnknownStatus(WorkflowRejection):
    code = "unknown_status"

    def __init__(self, status: Any) -> None:
        super().__init__(f"'{status}' is not a recognised deal status.", status=str(status))
        self.status = status


class BackwardTransitionRejected(WorkflowRejection):
    code = "backward_transition_rejected"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move a deal back from '{current}' to '{target}' without admin confirmation.",
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class MissingRequiredField(WorkflowRejection):
    code = "missing_required_field"

    def __init__(self, field: str, target: str | None = None, label: str | None = None) -> None:
        readable = label or field.replace("_", " ")
        suffix = f" before moving to '{target}'" if target else ""
        super().__init__(f"{readable.capitalize()} is required{suffix}.", field=field, target=target)
        self.field = field
        self.target = target


class RoleNotPermitted(WorkflowRejection):
    code = "role_not_permitted"

    def __init__(self, role: str, action: str, target: str | None = None) -> None:
        super().__init__(
            f"Role '{role}' is not permitted to {action}.",
            role=role,
            action=action,
            target=target,
        )
        self.role = role
        self.target = target


class FinancialsLocked(WorkflowRejection):
    code = "financials_locked"

    def __init__(self, fields: list[str]) -> None:
        super().__init__(
            "Financials are locked after approval; unlock them before changing "
            + ", ".join(fields)
            + ".",
            fields=list(fields),
        )
        self.fields = list(fields)


class IncompleteApprovalSnapshot(WorkflowRejection):
    code = "incomplete_approval_snapshot"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Recording an approval requires rcv, acv, deductible and depreciation; missing "
            + ", ".join(missing)
            + ".",
            missing=list(missing),
        )
        self.missing = list(missing)


class InvalidOverride(WorkflowRejection):
    code = "invalid_override"


class PayoutNotAllowed(WorkflowRejection):
    code = "payout_not_allowed"

    def __init__(self, status: str, required: str) -> None:
        super().__init__(
            f"Commission cannot be paid while the deal is '{status}'; it must reach '{required}' first.",
            status=status,
            required=required,
        )


class InvalidUpdate(WorkflowRejection):
    code = "invalid_update"


class RecordNotFound(WorkflowRejection):
    code = "not_found"

    def __init__(self, entity: str, record_id: str) -> None:
        super().__init__(f"{entity.capitalize()} '{record_id}' was not found.", entity=entity, id=record_id)


class PinAlreadyConverted(WorkflowRejection):
    code = "pin_already_converted"

    def __init__(self, pin_id: str, deal_id: str) -> None:
        super().__init__(
            f"Pin '{pin_id}' is already linked to deal '{deal_id}'.",
            pin_id=pin_id,
            deal_id=deal_id,
        )


class PersistenceFailed(WorkflowRejection):
    code = "persistence_failed"
