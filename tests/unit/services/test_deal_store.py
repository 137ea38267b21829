from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import DatabaseError
from app.models import Base, Deal, Pin, Rep
from app.services.deal_store import SqlDealStore


def _build_session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    return TestingSessionLocal()


def _seed_rep(session):
    rep = Rep(id="rep-1", full_name="Luis Ortega", email="luis@example.com", commission_level="senior")
    session.add(rep)
    session.commit()
    return rep


def test_create_deal_with_commission_record():
    session = _build_session()
    _seed_rep(session)
    store = SqlDealStore(db=session)

    deal = store.create_deal(
        {"homeowner_name": "Pat Homeowner", "status": "lead", "rep_id": "rep-1", "rep_name": "Luis Ortega"},
        {"rep_id": "rep-1", "commission_type": "self_gen"},
    )
    loaded = store.load_deal(deal.id)
    assert loaded.status == "lead"
    assert loaded.commission is not None
    assert loaded.commission.rep_id == "rep-1"
    assert loaded.commission.commission_percent is None
    assert loaded.inspection_images == []

    session.close()


def test_legacy_status_is_translated_on_read():
    session = _build_session()
    session.add(Deal(id="deal-legacy", homeowner_name="Pat Homeowner", status="collect_acv"))
    session.commit()

    loaded = SqlDealStore(db=session).load_deal("deal-legacy")
    assert loaded.status == "acv_collected"

    session.close()


def test_save_deal_rejects_unknown_fields():
    session = _build_session()
    store = SqlDealStore(db=session)
    deal = store.create_deal({"homeowner_name": "Pat Homeowner", "status": "lead"})

    with pytest.raises(DatabaseError):
        store.save_deal(deal.id, {"favourite_colour": "teal"})

    saved = store.save_deal(deal.id, {"rcv": Decimal("12000.50"), "install_images": ["https://x.example/1.jpg"]})
    assert saved.rcv == Decimal("12000.50")
    assert saved.install_images == ["https://x.example/1.jpg"]

    session.close()


def test_save_commission_creates_missing_record():
    session = _build_session()
    store = SqlDealStore(db=session)
    deal = store.create_deal({"homeowner_name": "Pat Homeowner", "status": "complete"})

    record = store.save_commission(deal.id, {"commission_amount": Decimal("917.50"), "paid": True})
    assert record.deal_id == deal.id
    assert record.paid is True
    assert store.load_deal(deal.id).commission.commission_amount == Decimal("917.50")

    session.close()


def test_convert_pin_links_pin_to_new_deal():
    session = _build_session()
    _seed_rep(session)
    session.add(Pin(id="pin-1", rep_id="rep-1", homeowner_name="Pat Homeowner", status="appointment"))
    session.add(Pin(id="pin-2", rep_id="rep-1", status="lead"))
    session.commit()
    store = SqlDealStore(db=session)

    deal, pin = store.convert_pin("pin-1", {"homeowner_name": "Pat Homeowner", "status": "lead"})
    assert pin.deal_id == deal.id
    assert pin.status == "appointment"
    assert [item.id for item in store.list_pins_for_deal(deal.id)] == ["pin-1"]

    with pytest.raises(DatabaseError):
        store.convert_pin("missing-pin", {"homeowner_name": "Nobody", "status": "lead"})

    session.close()


def test_missing_records_load_as_none():
    session = _build_session()
    store = SqlDealStore(db=session)
    assert store.load_deal("nope") is None
    assert store.load_rep("nope") is None
    assert store.load_pin("nope") is None
    session.close()


def _failing(statement: str):
    def _raise(*args, **kwargs):
        raise OperationalError(statement, {}, Exception("server closed the connection unexpectedly"))

    return _raise


def test_read_failures_surface_as_database_errors(monkeypatch):
    session = _build_session()
    store = SqlDealStore(db=session)
    deal = store.create_deal({"homeowner_name": "Pat Homeowner", "status": "lead"})

    monkeypatch.setattr(session, "query", _failing("SELECT"))
    for call in (
        lambda: store.load_deal(deal.id),
        lambda: store.load_rep("rep-1"),
        lambda: store.load_pin("pin-1"),
        lambda: store.list_pins_for_deal(deal.id),
        lambda: store.list_deals(rep_id="rep-1"),
        lambda: store.save_deal(deal.id, {"notes": "x"}),
    ):
        with pytest.raises(DatabaseError):
            call()

    session.close()


def test_deal_and_commission_write_is_all_or_nothing(monkeypatch):
    session = _build_session()
    store = SqlDealStore(db=session)
    deal = store.create_deal({"homeowner_name": "Pat Homeowner", "status": "complete"})

    with monkeypatch.context() as patch:
        patch.setattr(session, "commit", _failing("COMMIT"))
        with pytest.raises(DatabaseError):
            store.save_deal_and_commission(
                deal.id,
                {"status": "paid", "commission_paid": True},
                {"commission_amount": Decimal("917.50"), "paid": True},
            )

    reloaded = store.load_deal(deal.id)
    assert reloaded.status == "complete"
    assert reloaded.commission_paid is False
    assert reloaded.commission is None

    saved = store.save_deal_and_commission(
        deal.id,
        {"status": "paid", "commission_paid": True},
        {"commission_amount": Decimal("917.50"), "paid": True},
    )
    assert saved.status == "paid"
    assert saved.commission.commission_amount == Decimal("917.50")

    session.close()


def test_list_deals_scopes_to_owner_or_commission_holder():
    session = _build_session()
    _seed_rep(session)
    session.add(Rep(id="rep-2", full_name="Mara Quist", commission_level="junior"))
    session.commit()
    store = SqlDealStore(db=session)

    owned = store.create_deal({"homeowner_name": "Owned", "status": "lead", "rep_id": "rep-1"})
    shared = store.create_deal(
        {"homeowner_name": "Shared", "status": "signed", "rep_id": "rep-2"},
        {"rep_id": "rep-1"},
    )
    store.create_deal({"homeowner_name": "Elsewhere", "status": "lead", "rep_id": "rep-2"})
    session.add(Deal(id="deal-legacy", homeowner_name="Legacy", status="pending", rep_id="rep-1"))
    session.commit()

    assert {deal.id for deal in store.list_deals(rep_id="rep-1")} == {owned.id, shared.id, "deal-legacy"}
    assert len(store.list_deals()) == 4
    assert [deal.id for deal in store.list_deals(rep_id="rep-1", status="complete")] == ["deal-legacy"]

    session.close()


def test_create_and_list_pins_by_rep_or_closer():
    session = _build_session()
    _seed_rep(session)
    session.add(Rep(id="rep-2", full_name="Mara Quist", commission_level="junior"))
    session.commit()
    store = SqlDealStore(db=session)

    dropped = store.create_pin({"rep_id": "rep-1", "status": "lead", "address": "12 Elm St"})
    closing = store.create_pin({"rep_id": "rep-2", "assigned_closer_id": "rep-1", "status": "appointment"})
    store.create_pin({"rep_id": "rep-2", "status": "lead"})

    assert dropped.inspection_images == []
    assert {pin.id for pin in store.list_pins(rep_id="rep-1")} == {dropped.id, closing.id}
    assert [pin.id for pin in store.list_pins(rep_id="rep-1", status="appointment")] == [closing.id]

    with pytest.raises(DatabaseError):
        store.create_pin({"status": "lead", "favourite_colour": "teal"})

    session.close()
