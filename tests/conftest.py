from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Deal, Pin, Rep
from app.orchestration.commission import CommissionCalculator
from app.orchestration.workflow import WorkflowOrchestrator
from app.services.deal_store import SqlDealStore
from app.utils.ids import new_record_id

FIXED_NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workflow(session, clock):
    return WorkflowOrchestrator(
        SqlDealStore(db=session),
        calculator=CommissionCalculator(),
        clock=clock,
    )


@pytest.fixture
def make_rep(session):
    def _make_rep(**fields) -> Rep:
        fields.setdefault("full_name", "Dana Whitfield")
        fields.setdefault("commission_level", "senior")
        rep = Rep(id=new_record_id(), **fields)
        session.add(rep)
        session.commit()
        session.refresh(rep)
        return rep

    return _make_rep


@pytest.fixture
def make_deal(session):
    def _make_deal(**fields) -> Deal:
        fields.setdefault("homeowner_name", "Pat Homeowner")
        fields.setdefault("status", "lead")
        deal = Deal(id=new_record_id(), **fields)
        session.add(deal)
        session.commit()
        session.refresh(deal)
        return deal

    return _make_deal


@pytest.fixture
def make_pin(session):
    def _make_pin(**fields) -> Pin:
        fields.setdefault("status", "lead")
        pin = Pin(id=new_record_id(), **fields)
        session.add(pin)
        session.commit()
        session.refresh(pin)
        return pin

    return _make_pin
