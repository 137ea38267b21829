from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.api.v1 import catalog, deals, health, pins
from app.auth.jwt import create_access_token
from app.core.config import get_config
from app.schemas.deals import (
    CommissionPayRequest,
    DealCreate,
    DealUpdateRequest,
    PinConversion,
)
from app.schemas.pins import PinCreate


def _bearer(role: str, user_id: str = "user-1", rep_id: str | None = None) -> str:
    token = create_access_token(user_id=user_id, role=role, secret=get_config().JWT_SECRET, rep_id=rep_id)
    return f"Bearer {token}"


def test_health_reports_service_name():
    response = health.health()
    assert response["status"] == "ok"
    assert response["service"] == get_config().APP_NAME


def test_catalog_lists_statuses_and_buckets():
    response = catalog.list_statuses(authorization=_bearer("crew"))
    assert len(response["statuses"]) == 17
    assert response["buckets"][-1] == {"key": "paid", "label": "Paid"}


def test_requests_without_token_are_unauthorized(session):
    with pytest.raises(HTTPException) as exc:
        deals.create_deal(DealCreate(homeowner_name="Pat Homeowner"), authorization=None, db=session)
    assert exc.value.status_code == 401


def test_create_then_advance_deal(session, make_rep):
    rep = make_rep()
    created = deals.create_deal(
        DealCreate(homeowner_name="Pat Homeowner"),
        authorization=_bearer("rep", user_id=rep.id),
        db=session,
    )
    deal_id = created["deal"]["id"]
    assert created["deal"]["status"] == "lead"
    assert created["deal"]["rep_id"] == rep.id
    assert created["phase"] == "sign"
    assert created["bucket"] == "lead"
    assert created["next_action"]["label"] == "Schedule Inspection"

    moved = deals.update_deal(
        deal_id,
        DealUpdateRequest(updates={"status": "inspection_scheduled"}),
        authorization=_bearer("rep", user_id=rep.id),
        db=session,
    )
    assert moved["deal"]["status"] == "inspection_scheduled"
    assert moved["warnings"] == []


def test_backward_move_maps_to_conflict(session, make_rep, make_deal):
    rep = make_rep()
    deal = make_deal(status="signed", contract_signed=True, rep_id=rep.id)
    with pytest.raises(HTTPException) as exc:
        deals.update_deal(
            deal.id,
            DealUpdateRequest(updates={"status": "lead"}),
            authorization=_bearer("rep", user_id=rep.id),
            db=session,
        )
    assert exc.value.status_code == 409
    assert exc.value.detail["error_code"] == "backward_transition_rejected"
    assert exc.value.detail["context"] == {"current": "signed", "target": "lead"}


def test_missing_field_maps_to_unprocessable(session, make_deal):
    deal = make_deal(status="materials_selected", material_category="Shingle", material_color="Slate")
    with pytest.raises(HTTPException) as exc:
        deals.update_deal(
            deal.id,
            DealUpdateRequest(updates={"status": "install_scheduled"}),
            authorization=_bearer("admin"),
            db=session,
        )
    assert exc.value.status_code == 422
    assert exc.value.detail["context"]["field"] == "install_date"


def test_unknown_deal_is_not_found(session):
    with pytest.raises(HTTPException) as exc:
        deals.get_deal("missing", authorization=_bearer("crew"), db=session)
    assert exc.value.status_code == 404


def test_next_action_for_rep_waits_on_admin(session, make_rep, make_deal):
    rep = make_rep()
    deal = make_deal(status="awaiting_approval", rep_id=rep.id)
    response = deals.next_action(deal.id, authorization=_bearer("rep", user_id=rep.id), db=session)
    assert response["next_action"]["awaiting_admin"] is True


def test_commission_read_requires_scope(session, make_rep, make_deal):
    rep = make_rep(commission_level="senior")
    deal = make_deal(status="complete", rcv=Decimal("10000"), rep_id=rep.id)
    with pytest.raises(HTTPException) as exc:
        deals.get_commission(deal.id, authorization=_bearer("crew"), db=session)
    assert exc.value.status_code == 403

    response = deals.get_commission(deal.id, authorization=_bearer("rep", user_id=rep.id), db=session)
    assert response["commission"]["amount"] == "917.50"
    assert response["commission"]["source"] == "computed"


def test_only_admin_pays_commission(session, make_deal):
    deal = make_deal(status="complete", rcv=Decimal("10000"))
    with pytest.raises(HTTPException) as exc:
        deals.pay_commission(deal.id, CommissionPayRequest(), authorization=_bearer("rep"), db=session)
    assert exc.value.status_code == 403

    response = deals.pay_commission(deal.id, CommissionPayRequest(), authorization=_bearer("admin"), db=session)
    assert response["deal"]["status"] == "paid"
    assert response["bucket"] == "paid"
    assert response["next_action"] is None


def test_convert_pin_endpoint(session, make_rep, make_pin):
    rep = make_rep()
    pin = make_pin(rep_id=rep.id, homeowner_name="Jordan Lee", address="12 Elm St")
    response = pins.convert_pin(pin.id, PinConversion(), authorization=_bearer("rep", user_id=rep.id), db=session)
    assert response["pin_id"] == pin.id
    assert response["deal"]["homeowner_name"] == "Jordan Lee"

    with pytest.raises(HTTPException) as exc:
        pins.convert_pin(pin.id, PinConversion(), authorization=_bearer("rep", user_id=rep.id), db=session)
    assert exc.value.status_code == 409


def test_rep_cannot_reach_another_reps_deal(session, make_rep, make_deal):
    owner = make_rep(full_name="Luis Ortega")
    other = make_rep(full_name="Priya Shah")
    deal = make_deal(status="lead", rep_id=owner.id)

    with pytest.raises(HTTPException) as exc:
        deals.get_deal(deal.id, authorization=_bearer("rep", user_id=other.id), db=session)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        deals.update_deal(
            deal.id,
            DealUpdateRequest(updates={"rep_id": other.id}),
            authorization=_bearer("rep", user_id=other.id),
            db=session,
        )
    assert exc.value.status_code == 403

    response = deals.get_deal(deal.id, authorization=_bearer("rep", user_id=owner.id), db=session)
    assert response["deal"]["rep_id"] == owner.id


def test_list_deals_is_filtered_for_reps(session, make_rep, make_deal):
    mine = make_rep(full_name="Luis Ortega")
    theirs = make_rep(full_name="Priya Shah")
    owned = make_deal(status="lead", rep_id=mine.id)
    make_deal(status="lead", rep_id=theirs.id)
    make_deal(status="complete", rep_id=mine.id)

    response = deals.list_deals(status_filter="lead", authorization=_bearer("rep", user_id=mine.id), db=session)
    assert response["count"] == 1
    assert response["deals"][0]["deal"]["id"] == owned.id

    everything = deals.list_deals(status_filter=None, authorization=_bearer("admin"), db=session)
    assert everything["count"] == 3

    with pytest.raises(HTTPException) as exc:
        deals.list_deals(status_filter="cancelled", authorization=_bearer("admin"), db=session)
    assert exc.value.status_code == 422


def test_rep_token_can_name_its_rep_record(session, make_rep, make_deal):
    rep = make_rep()
    deal = make_deal(status="lead", rep_id=rep.id)
    response = deals.get_deal(deal.id, authorization=_bearer("rep", user_id="auth0|77", rep_id=rep.id), db=session)
    assert response["deal"]["id"] == deal.id


def test_pins_are_created_and_listed_per_rep(session, make_rep):
    mine = make_rep(full_name="Luis Ortega")
    theirs = make_rep(full_name="Priya Shah")

    created = pins.create_pin(
        PinCreate(homeowner_name="Jordan Lee", address="12 Elm St", latitude=36.15, longitude=-95.99),
        authorization=_bearer("rep", user_id=mine.id),
        db=session,
    )
    assert created["pin"]["rep_id"] == mine.id
    assert created["pin"]["status"] == "lead"

    with pytest.raises(HTTPException) as exc:
        pins.create_pin(PinCreate(rep_id=theirs.id), authorization=_bearer("rep", user_id=mine.id), db=session)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        pins.create_pin(PinCreate(), authorization=_bearer("crew"), db=session)
    assert exc.value.status_code == 403

    pins.create_pin(PinCreate(rep_id=theirs.id), authorization=_bearer("admin"), db=session)

    listed = pins.list_pins(status_filter=None, authorization=_bearer("rep", user_id=mine.id), db=session)
    assert [pin["id"] for pin in listed["pins"]] == [created["pin"]["id"]]
    assert pins.list_pins(status_filter=None, authorization=_bearer("admin"), db=session)["count"] == 2


def test_only_the_pins_rep_or_closer_converts_it(session, make_rep, make_pin):
    setter = make_rep(full_name="Luis Ortega")
    closer = make_rep(full_name="Dana Whitfield")
    stranger = make_rep(full_name="Priya Shah")
    pin = make_pin(rep_id=setter.id, assigned_closer_id=closer.id, homeowner_name="Jordan Lee")

    with pytest.raises(HTTPException) as exc:
        pins.convert_pin(pin.id, PinConversion(), authorization=_bearer("rep", user_id=stranger.id), db=session)
    assert exc.value.status_code == 403

    response = pins.convert_pin(pin.id, PinConversion(), authorization=_bearer("rep", user_id=closer.id), db=session)
    assert response["deal"]["rep_id"] == setter.id
