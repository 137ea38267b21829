from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.orchestration.rejections import (
    BackwardTransitionRejected,
    MissingRequiredField,
    RoleNotPermitted,
    UnknownStatus,
)
from app.orchestration.state_machine import TransitionValidator
from app.orchestration.status_catalog import CATALOG
from app.schemas.deals import DealRecord


def _deal(status: str, **fields) -> DealRecord:
    return DealRecord(id="deal-1", homeowner_name="Pat Homeowner", status=status, **fields)


def test_forward_move_without_requirements_is_allowed():
    validator = TransitionValidator()
    assert validator.can_transition(_deal("lead"), "inspection_scheduled", "rep") is None
    validator.assert_transition(_deal("lead"), "inspection_scheduled", "crew")


def _fully_documented(status: str) -> DealRecord:
    return _deal(
        status,
        claim_number="CLM-100",
        insurance_company="State Farm",
        contract_signed=True,
        approval_type="full",
        lost_statement_url="https://files.example.com/lost-statement.pdf",
        acv=Decimal("7000"),
        deductible=Decimal("1000"),
        material_category="Shingle",
        material_color="Slate",
        install_date=date(2026, 3, 1),
        install_images=["https://files.example.com/install-1.jpg"],
        completion_form_url="https://files.example.com/completion.pdf",
        invoice_url="s3://invoices/1.pdf",
        depreciation_check_collected=True,
        depreciation_check_amount=Decimal("5000"),
        completion_images=["https://files.example.com/done-1.jpg"],
    )


def test_admin_moves_forward_between_every_pair_when_documented():
    validator = TransitionValidator()
    statuses = CATALOG.statuses
    for low in range(len(statuses)):
        for high in range(low + 1, len(statuses)):
            deal = _fully_documented(statuses[low].value)
            assert validator.can_transition(deal, statuses[high], "admin") is None, (
                statuses[low].value,
                statuses[high].value,
            )


def test_same_status_is_a_no_op():
    validator = TransitionValidator()
    assert validator.can_transition(_deal("installed"), "installed", "crew") is None


def test_backward_moves_need_admin_confirmation():
    validator = TransitionValidator()
    statuses = CATALOG.statuses
    for high in range(1, len(statuses)):
        for low in range(high):
            deal = _deal(statuses[high].value)
            for role in ("rep", "crew", "admin"):
                rejection = validator.can_transition(deal, statuses[low], role)
                assert isinstance(rejection, BackwardTransitionRejected)
            assert validator.can_transition(deal, statuses[low], "admin", confirm_backward=True) is None


def test_confirm_flag_does_not_help_non_admins():
    validator = TransitionValidator()
    rejection = validator.can_transition(_deal("signed"), "lead", "rep", confirm_backward=True)
    assert rejection.code == "backward_transition_rejected"


def test_required_fields_come_from_the_merged_snapshot():
    validator = TransitionValidator()
    rejection = validator.can_transition(_deal("lead"), "claim_filed", "rep")
    assert isinstance(rejection, MissingRequiredField)
    assert rejection.field == "claim_number"

    updates = {"claim_number": "CLM-100", "insurance_company": "State Farm"}
    assert validator.can_transition(_deal("lead"), "claim_filed", "rep", updates=updates) is None


def test_non_admin_cannot_cross_an_admin_only_status():
    validator = TransitionValidator()
    with pytest.raises(RoleNotPermitted) as exc:
        validator.assert_transition(_deal("awaiting_approval"), "acv_collected", "rep", updates={"acv": 5000})
    assert exc.value.target == "approved"


def test_install_scheduled_requires_install_date():
    validator = TransitionValidator()
    deal = _deal("materials_selected", material_category="Shingle", material_color="Charcoal")
    rejection = validator.can_transition(deal, "install_scheduled", "admin")
    assert rejection.field == "install_date"

    updates = {"install_date": date(2026, 4, 1)}
    assert validator.can_transition(deal, "install_scheduled", "admin", updates=updates) is None
    assert isinstance(validator.can_transition(deal, "install_scheduled", "crew", updates=updates), RoleNotPermitted)


def test_approval_requires_a_counting_approval_type():
    validator = TransitionValidator()
    deal = _deal("awaiting_approval")

    rejection = validator.can_transition(deal, "approved", "admin", updates={"approval_type": "supplement_needed"})
    assert rejection.field == "approval_type"

    rejection = validator.can_transition(deal, "approved", "admin", updates={"approval_type": "full"})
    assert rejection.field == "lost_statement_url"

    assert validator.can_transition(deal, "approved", "admin", updates={"approval_type": "partial"}) is None


def test_unknown_target_is_rejected():
    rejection = TransitionValidator().can_transition(_deal("lead"), "cancelled", "admin")
    assert isinstance(rejection, UnknownStatus)
