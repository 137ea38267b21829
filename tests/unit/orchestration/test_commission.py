from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.models import CommissionSource
from app.orchestration.commission import (
    CommissionCalculator,
    build_override,
    build_payout,
    compute_commission,
    reconstruct_rcv,
)
from app.orchestration.rejections import InvalidOverride, PayoutNotAllowed
from app.schemas.deals import DealCommissionRecord, DealRecord
from app.schemas.reps import RepRecord

NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


def _deal(**fields) -> DealRecord:
    fields.setdefault("status", "complete")
    return DealRecord(id="deal-1", homeowner_name="Pat Homeowner", **fields)


def _rep(**fields) -> RepRecord:
    fields.setdefault("full_name", "Dana Whitfield")
    return RepRecord(id="rep-1", **fields)


def test_sales_tax_comes_off_rcv_before_percent():
    breakdown = CommissionCalculator().compute(_deal(rcv=Decimal("10000")), _rep(commission_level="senior"))
    assert breakdown.rcv == Decimal("10000")
    assert breakdown.sales_tax == Decimal("825.00")
    assert breakdown.base_amount == Decimal("9175.00")
    assert breakdown.percent == Decimal("10")
    assert breakdown.amount == Decimal("917.50")
    assert breakdown.source == CommissionSource.COMPUTED


def test_rcv_is_rebuilt_from_acv_and_depreciation():
    assert reconstruct_rcv(_deal(acv=Decimal("1500"), depreciation=Decimal("500"))) == Decimal("2000")
    assert reconstruct_rcv(_deal(rcv=Decimal("0"), acv=Decimal("1500"))) == Decimal("1500")
    assert reconstruct_rcv(_deal()) == Decimal("0")


def test_explicit_rcv_wins_over_its_components():
    rebuilt = _deal(rcv=Decimal("0"), acv=Decimal("1000"), depreciation=Decimal("500"))
    explicit = _deal(rcv=Decimal("2000"), acv=Decimal("1000"), depreciation=Decimal("500"))
    assert reconstruct_rcv(rebuilt) == Decimal("1500")
    assert reconstruct_rcv(explicit) == Decimal("2000")
    assert CommissionCalculator().compute(rebuilt, None).rcv == Decimal("1500")


def test_override_beats_recorded_and_computed_amounts():
    commission = DealCommissionRecord(id="c-1", deal_id="deal-1", commission_amount=Decimal("400"))
    deal = _deal(rcv=Decimal("10000"), commission=commission, commission_override_amount=Decimal("999"))
    breakdown = CommissionCalculator().compute(deal, _rep())
    assert breakdown.amount == Decimal("999")
    assert breakdown.source == CommissionSource.OVERRIDE

    zero_override = _deal(rcv=Decimal("10000"), commission_override_amount=Decimal("0"))
    assert CommissionCalculator().compute(zero_override, _rep()).amount == Decimal("0")


def test_recorded_amount_only_counts_when_positive():
    recorded = DealCommissionRecord(id="c-1", deal_id="deal-1", commission_amount=Decimal("400"))
    assert CommissionCalculator().compute(_deal(rcv=Decimal("10000"), commission=recorded), None).source == (
        CommissionSource.RECORDED
    )

    empty = DealCommissionRecord(id="c-1", deal_id="deal-1", commission_amount=Decimal("0"))
    breakdown = CommissionCalculator().compute(_deal(rcv=Decimal("10000"), commission=empty), None)
    assert breakdown.source == CommissionSource.COMPUTED
    assert breakdown.amount == Decimal("917.50")


def test_percent_resolution_order():
    calculator = CommissionCalculator()
    record = DealCommissionRecord(id="c-1", deal_id="deal-1", commission_percent=Decimal("12"))
    assert calculator.resolve_percent(_deal(commission=record), _rep(default_commission_percent=Decimal("7.5"))) == (
        Decimal("12")
    )
    assert calculator.resolve_percent(_deal(), _rep(default_commission_percent=Decimal("7.5"))) == Decimal("7.5")
    assert calculator.resolve_percent(_deal(), _rep(commission_level="junior")) == Decimal("5")
    assert calculator.resolve_percent(_deal(), _rep(commission_level="manager")) == Decimal("13")
    assert calculator.resolve_percent(_deal(), _rep(commission_level="trainee")) == Decimal("10")
    assert calculator.resolve_percent(_deal(), None) == Decimal("10")


def test_commission_ignores_rep_display_fields():
    deal = _deal(rcv=Decimal("18450.75"))
    calculator = CommissionCalculator(sales_tax_rate=Decimal("0.0825"), default_percent=Decimal("10"))
    first = compute_commission(deal, _rep(full_name="Dana Whitfield", commission_level="manager"), calculator)
    second = compute_commission(deal, _rep(full_name="Dana W.", commission_level="manager"), calculator)
    assert first == second
    assert first.amount == first.amount.quantize(Decimal("0.01"))


def test_build_override_validates_amount_and_reason():
    with pytest.raises(InvalidOverride):
        build_override(Decimal("100"), "  ", NOW)
    with pytest.raises(InvalidOverride):
        build_override(None, "Manager approved", NOW)
    with pytest.raises(InvalidOverride):
        build_override("lots", "Manager approved", NOW)
    with pytest.raises(InvalidOverride):
        build_override(Decimal("-1"), "Manager approved", NOW)
    for not_finite in ("NaN", "Infinity", "-Infinity", Decimal("sNaN")):
        with pytest.raises(InvalidOverride):
            build_override(not_finite, "Manager approved", NOW)
    with pytest.raises(InvalidOverride):
        build_override("1E+30", "Manager approved", NOW)

    fields = build_override("999", " Manager approved ", NOW)
    assert fields == {
        "commission_override_amount": Decimal("999.00"),
        "commission_override_reason": "Manager approved",
        "commission_override_date": NOW,
    }


def test_payout_requires_the_final_phase():
    with pytest.raises(PayoutNotAllowed):
        build_payout(_deal(status="depreciation_collected"), NOW)

    assert build_payout(_deal(status="complete"), NOW) == {"commission_paid": True, "commission_paid_date": NOW}
