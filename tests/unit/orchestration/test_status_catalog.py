from __future__ import annotations

import pytest

from app.models import Deal, DealStatus, Phase
from app.orchestration.rejections import UnknownStatus
from app.orchestration.status_catalog import BUCKETS, CATALOG, bucket_of, next_required_action
from app.schemas.deals import MILESTONE_FIELDS


def test_catalog_orders_all_statuses_from_lead_to_paid():
    assert len(CATALOG.statuses) == 17
    assert CATALOG.statuses[0] == DealStatus.LEAD
    assert CATALOG.terminal_status == DealStatus.PAID
    assert CATALOG.index_of("signed") < CATALOG.index_of("approved") < CATALOG.index_of("installed")
    assert CATALOG.next_status("paid") is None


def test_every_status_has_a_milestone_column():
    assert CATALOG.milestone_fields == MILESTONE_FIELDS
    for field in CATALOG.milestone_fields:
        assert hasattr(Deal, field)


def test_phases_follow_catalog_order():
    assert CATALOG.phase_of("awaiting_approval") == Phase.SIGN
    assert CATALOG.phase_of("approved") == Phase.BUILD
    assert CATALOG.phase_of("installed") == Phase.BUILD
    assert CATALOG.phase_of("completion_signed") == Phase.FINALIZING
    assert CATALOG.phase_of("complete") == Phase.COMPLETE
    assert CATALOG.terminal_phase_entry == DealStatus.COMPLETE


def test_legacy_statuses_translate_to_canonical_values():
    assert CATALOG.normalize("collect_acv") == DealStatus.ACV_COLLECTED
    assert CATALOG.normalize(" Scheduled ") == DealStatus.INSTALL_SCHEDULED
    assert CATALOG.normalize("pending") == DealStatus.COMPLETE
    assert CATALOG.normalize("materials_delivered") == DealStatus.MATERIALS_SELECTED


def test_unknown_status_is_rejected():
    with pytest.raises(UnknownStatus) as exc:
        CATALOG.normalize("cancelled")
    assert exc.value.code == "unknown_status"


def test_buckets_cover_every_status():
    keys = {bucket.key for bucket in BUCKETS}
    for status in CATALOG.statuses:
        assert bucket_of(status) in keys


def test_complete_with_payment_request_is_payment_pending():
    assert bucket_of("complete") == "complete"
    assert bucket_of("complete", payment_requested=True) == "payment_pending"
    assert bucket_of("paid", payment_requested=True) == "paid"
    assert bucket_of("materials_selected") == "permit"


def test_next_action_for_rep_waits_on_admin_only_steps():
    action = next_required_action("awaiting_approval", "rep")
    assert action.awaiting_admin is True
    assert action.target_status == DealStatus.APPROVED
    assert action.label == "Awaiting admin: Approve Financials"

    admin_action = next_required_action("awaiting_approval", "admin")
    assert admin_action.awaiting_admin is False
    assert admin_action.label == "Approve Financials"


def test_next_action_is_none_once_paid():
    assert next_required_action("lead", "crew").label == "Schedule Inspection"
    assert next_required_action("paid", "admin") is None


def test_display_rows_are_indexed_in_order():
    rows = CATALOG.display()
    assert [row["index"] for row in rows] == list(range(17))
    approved = rows[CATALOG.index_of("approved")]
    assert approved["admin_only"] is True
    assert approved["requires"] == ["approval_type", "lost_statement_url"]
