"""Canonical deal status catalog.

Every consumer (validation, display, progress buckets, next-step prompts)
derives from the single ordered table defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from app.models.enums import ApprovalType, DealStatus, Phase, UserRole
from app.orchestration.rejections import UnknownStatus


def is_present(value: Any) -> bool:
    """Presence test used by transition requirements."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


@dataclass(frozen=True)
class Requirement:
    """A field that must be present on the candidate deal.

    ``applies`` limits the requirement to some snapshots; ``accept``
    replaces the default presence test.
    """

    field: str
    label: str
    applies: Callable[[Any], bool] | None = None
    accept: Callable[[Any], bool] | None = None

    def is_met(self, snapshot: Any) -> bool:
        if self.applies is not None and not self.applies(snapshot):
            return True
        value = getattr(snapshot, self.field, None)
        if self.accept is not None:
            return self.accept(value)
        return is_present(value)


@dataclass(frozen=True)
class StatusDefinition:
    status: DealStatus
    label: str
    phase: Phase
    color: str
    timestamp_field: str
    action_label: str | None = None
    admin_only: bool = False
    requirements: tuple[Requirement, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Bucket:
    key: str
    label: str


@dataclass(frozen=True)
class NextAction:
    label: str
    target_status: DealStatus
    awaiting_admin: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "target_status": self.target_status.value,
            "awaiting_admin": self.awaiting_admin,
        }


_COUNTS_AS_APPROVAL = {ApprovalType.FULL.value, ApprovalType.PARTIAL.value, ApprovalType.SALE.value}


def _approval_recorded(value: Any) -> bool:
    return getattr(value, "value", value) in _COUNTS_AS_APPROVAL


def _full_approval(snapshot: Any) -> bool:
    value = getattr(snapshot, "approval_type", None)
    return getattr(value, "value", value) == ApprovalType.FULL.value


STATUS_DEFINITIONS: tuple[StatusDefinition, ...] = (
    StatusDefinition(DealStatus.LEAD, "Lead", Phase.SIGN, "#64748B", "lead_date"),
    StatusDefinition(
        DealStatus.INSPECTION_SCHEDULED,
        "Inspected",
        Phase.SIGN,
        "#3B82F6",
        "inspection_scheduled_date",
        action_label="Schedule Inspection",
    ),
    StatusDefinition(
        DealStatus.CLAIM_FILED,
        "Claim Filed",
        Phase.SIGN,
        "#8B5CF6",
        "claim_filed_date",
        action_label="File Claim",
        requirements=(
            Requirement("claim_number", "Claim number"),
            Requirement("insurance_company", "Insurance company"),
        ),
    ),
    StatusDefinition(
        DealStatus.SIGNED,
        "Signed",
        Phase.SIGN,
        "#22C55E",
        "signed_date",
        action_label="Sign Contract",
        requirements=(Requirement("contract_signed", "Signed contract"),),
    ),
    StatusDefinition(
        DealStatus.ADJUSTER_MET,
        "Adjuster Met",
        Phase.SIGN,
        "#EC4899",
        "adjuster_met_date",
        action_label="Meet Adjuster",
    ),
    StatusDefinition(
        DealStatus.AWAITING_APPROVAL,
        "Awaiting Approval",
        Phase.SIGN,
        "#F59E0B",
        "awaiting_approval_date",
        action_label="Submit for Approval",
    ),
    StatusDefinition(
        DealStatus.APPROVED,
        "Approved",
        Phase.BUILD,
        "#14B8A6",
        "approved_date",
        action_label="Approve Financials",
        admin_only=True,
        requirements=(
            Requirement("approval_type", "Approval type", accept=_approval_recorded),
            Requirement("lost_statement_url", "Lost statement", applies=_full_approval),
        ),
    ),
    StatusDefinition(
        DealStatus.ACV_COLLECTED,
        "ACV Collected",
        Phase.BUILD,
        "#F97316",
        "acv_collected_date",
        action_label="Collect ACV",
        requirements=(Requirement("acv", "ACV amount"),),
    ),
    StatusDefinition(
        DealStatus.DEDUCTIBLE_COLLECTED,
        "Ded. Collected",
        Phase.BUILD,
        "#F59E0B",
        "deductible_collected_date",
        action_label="Collect Deductible",
        requirements=(Requirement("deductible", "Deductible amount"),),
    ),
    StatusDefinition(
        DealStatus.MATERIALS_SELECTED,
        "Materials Selected",
        Phase.BUILD,
        "#8B5CF6",
        "materials_selected_date",
        action_label="Select Materials",
        requirements=(
            Requirement("material_category", "Material category"),
            Requirement("material_color", "Material color"),
        ),
    ),
    StatusDefinition(
        DealStatus.INSTALL_SCHEDULED,
        "Install Scheduled",
        Phase.BUILD,
        "#06B6D4",
        "install_scheduled_date",
        action_label="Schedule Install",
        admin_only=True,
        requirements=(Requirement("install_date", "Install date"),),
    ),
    StatusDefinition(
        DealStatus.INSTALLED,
        "Installed",
        Phase.BUILD,
        "#14B8A6",
        "installed_date",
        action_label="Mark Installed",
        requirements=(Requirement("install_images", "Install photo"),),
    ),
    StatusDefinition(
        DealStatus.COMPLETION_SIGNED,
        "Completion Signed",
        Phase.FINALIZING,
        "#06B6D4",
        "completion_signed_date",
        action_label="Get Completion Form Signed",
        requirements=(Requirement("completion_form_url", "Completion form"),),
    ),
    StatusDefinition(
        DealStatus.INVOICE_SENT,
        "RCV Sent",
        Phase.FINALIZING,
        "#6366F1",
        "invoice_sent_date",
        action_label="Generate & Send Invoice",
        admin_only=True,
        requirements=(Requirement("invoice_url", "Invoice"),),
    ),
    StatusDefinition(
        DealStatus.DEPRECIATION_COLLECTED,
        "Depreciation Collected",
        Phase.FINALIZING,
        "#8B5CF6",
        "depreciation_collected_date",
        action_label="Collect Depreciation",
        requirements=(
            Requirement("depreciation_check_collected", "Depreciation check"),
            Requirement("depreciation_check_amount", "Depreciation check amount"),
        ),
    ),
    StatusDefinition(
        DealStatus.COMPLETE,
        "Complete",
        Phase.COMPLETE,
        "#10B981",
        "complete_date",
        action_label="Complete Deal",
        admin_only=True,
        requirements=(Requirement("completion_images", "Completion photo"),),
    ),
    StatusDefinition(
        DealStatus.PAID,
        "Paid",
        Phase.COMPLETE,
        "#059669",
        "paid_date",
        action_label="Pay Commission",
        admin_only=True,
    ),
)

BUCKETS: tuple[Bucket, ...] = (
    Bucket("lead", "Lead"),
    Bucket("signed", "Signed"),
    Bucket("permit", "Permit"),
    Bucket("scheduled", "Scheduled"),
    Bucket("installed", "Installed"),
    Bucket("complete", "Complete"),
    Bucket("payment_pending", "Payment Pending"),
    Bucket("paid", "Paid"),
)

_STATUS_BUCKETS: dict[DealStatus, str] = {
    DealStatus.LEAD: "lead",
    DealStatus.INSPECTION_SCHEDULED: "lead",
    DealStatus.CLAIM_FILED: "lead",
    DealStatus.SIGNED: "signed",
    DealStatus.ADJUSTER_MET: "signed",
    DealStatus.AWAITING_APPROVAL: "signed",
    DealStatus.APPROVED: "signed",
    DealStatus.ACV_COLLECTED: "signed",
    DealStatus.DEDUCTIBLE_COLLECTED: "signed",
    DealStatus.MATERIALS_SELECTED: "permit",
    DealStatus.INSTALL_SCHEDULED: "scheduled",
    DealStatus.INSTALLED: "installed",
    DealStatus.COMPLETION_SIGNED: "installed",
    DealStatus.INVOICE_SENT: "installed",
    DealStatus.DEPRECIATION_COLLECTED: "installed",
    DealStatus.COMPLETE: "complete",
    DealStatus.PAID: "paid",
}

# Older clients wrote a shorter vocabulary; these are read-side translations only.
LEGACY_STATUSES: dict[str, DealStatus] = {
    "collect_acv": DealStatus.ACV_COLLECTED,
    "collect_deductible": DealStatus.DEDUCTIBLE_COLLECTED,
    "materials_ordered": DealStatus.MATERIALS_SELECTED,
    "materials_delivered": DealStatus.MATERIALS_SELECTED,
    "permit": DealStatus.MATERIALS_SELECTED,
    "adjuster_scheduled": DealStatus.CLAIM_FILED,
    "scheduled": DealStatus.INSTALL_SCHEDULED,
    "pending": DealStatus.COMPLETE,
}


class StatusCatalog:
    """Ordered lookup over the status definitions."""

    def __init__(self, definitions: tuple[StatusDefinition, ...] = STATUS_DEFINITIONS) -> None:
        self._definitions = definitions
        self._by_status = {item.status: item for item in definitions}
        self._index = {item.status: position for position, item in enumerate(definitions)}

    @property
    def statuses(self) -> tuple[DealStatus, ...]:
        return tuple(item.status for item in self._definitions)

    @property
    def milestone_fields(self) -> tuple[str, ...]:
        return tuple(item.timestamp_field for item in self._definitions)

    @property
    def terminal_status(self) -> DealStatus:
        return self._definitions[-1].status

    @property
    def terminal_phase_entry(self) -> DealStatus:
        """First status of the last phase."""
        last_phase = self._definitions[-1].phase
        return next(item.status for item in self._definitions if item.phase == last_phase)

    def normalize(self, value: Any) -> DealStatus:
        """Resolve a raw or legacy status value, raising ``UnknownStatus``."""
        if isinstance(value, DealStatus):
            return value
        raw = str(value or "").strip().lower()
        try:
            return DealStatus(raw)
        except ValueError:
            pass
        if raw in LEGACY_STATUSES:
            return LEGACY_STATUSES[raw]
        raise UnknownStatus(value)

    def definition(self, status: Any) -> StatusDefinition:
        return self._by_status[self.normalize(status)]

    def index_of(self, status: Any) -> int:
        return self._index[self.normalize(status)]

    def phase_of(self, status: Any) -> Phase:
        return self.definition(status).phase

    def label_of(self, status: Any) -> str:
        return self.definition(status).label

    def is_terminal(self, status: Any) -> bool:
        return self.normalize(status) == self.terminal_status

    def next_status(self, status: Any) -> DealStatus | None:
        position = self.index_of(status)
        if position + 1 >= len(self._definitions):
            return None
        return self._definitions[position + 1].status

    def between(self, current: Any, target: Any) -> tuple[StatusDefinition, ...]:
        """Definitions after ``current`` up to and including ``target``."""
        start = self.index_of(current)
        end = self.index_of(target)
        return self._definitions[start + 1 : end + 1]

    def bucket_of(self, status: Any, payment_requested: bool = False) -> str:
        """Short progress-bar bucket; display only."""
        resolved = self.normalize(status)
        if resolved == DealStatus.COMPLETE and payment_requested:
            return "payment_pending"
        return _STATUS_BUCKETS[resolved]

    def next_required_action(self, status: Any, role: UserRole | str) -> NextAction | None:
        """Single next step for a UI button, or None once the deal is paid."""
        upcoming = self.next_status(status)
        if upcoming is None:
            return None
        definition = self._by_status[upcoming]
        is_admin = UserRole(role) == UserRole.ADMIN
        label = definition.action_label or definition.label
        if definition.admin_only and not is_admin:
            return NextAction(label=f"Awaiting admin: {label}", target_status=upcoming, awaiting_admin=True)
        return NextAction(label=label, target_status=upcoming)

    def display(self) -> list[dict[str, Any]]:
        """Labels, colors, phases and buckets for rendering."""
        rows = []
        for position, item in enumerate(self._definitions):
            rows.append(
                {
                    "status": item.status.value,
                    "index": position,
                    "label": item.label,
                    "phase": item.phase.value,
                    "color": item.color,
                    "bucket": _STATUS_BUCKETS[item.status],
                    "admin_only": item.admin_only,
                    "timestamp_field": item.timestamp_field,
                    "requires": [requirement.field for requirement in item.requirements],
                }
            )
        return rows


CATALOG = StatusCatalog()


def index_of(status: Any) -> int:
    return CATALOG.index_of(status)


def phase_of(status: Any) -> Phase:
    return CATALOG.phase_of(status)


def is_terminal(status: Any) -> bool:
    return CATALOG.is_terminal(status)


def bucket_of(status: Any, payment_requested: bool = False) -> str:
    return CATALOG.bucket_of(status, payment_requested=payment_requested)


def next_required_action(status: Any, role: UserRole | str) -> NextAction | None:
    return CATALOG.next_required_action(status, role)
