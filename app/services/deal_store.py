"""SQLAlchemy implementation of the deal workflow store."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DatabaseError
from app.models import Deal, DealCommission, Pin, Rep
from app.orchestration.status_catalog import LEGACY_STATUSES
from app.schemas.deals import DealCommissionRecord, DealRecord
from app.schemas.pins import PinRecord
from app.schemas.reps import RepRecord
from app.utils.ids import new_record_id

logger = logging.getLogger(__name__)


def _translate_status(raw: str | None) -> str | None:
    if raw is None:
        return None
    legacy = LEGACY_STATUSES.get(raw.strip().lower())
    return legacy.value if legacy is not None else raw


def _stored_names(status: str) -> list[str]:
    """The canonical value plus every legacy value that reads back as it."""
    return [status, *(name for name, canonical in LEGACY_STATUSES.items() if canonical.value == status)]


def _apply_fields(row: Any, fields: dict[str, Any], entity: str) -> None:
    for name, value in fields.items():
        if name == "id" or not hasattr(type(row), name):
            raise DatabaseError(f"Unknown {entity} field '{name}'.")
        if isinstance(value, list):
            value = list(value)
        setattr(row, name, value)


class SqlDealStore:
    """Deal, pin, rep and commission records over one SQLAlchemy session.

    The session is owned by the caller; every write commits its own unit of
    work and rolls back on failure. Driver and ORM errors never leave the
    store as anything other than ``DatabaseError``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    @contextmanager
    def _guard(self, action: str, entity_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except DatabaseError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "deal_store.call_failed",
                extra={
                    "event": "deal_store.call_failed",
                    "action": action,
                    "entity_id": entity_id,
                    "error": str(exc),
                },
            )
            raise DatabaseError(f"Could not {action}.") from exc

    def _deal_record(self, deal: Deal) -> DealRecord:
        record = DealRecord.model_validate(deal)
        translated = _translate_status(record.status)
        if translated != record.status:
            record = record.model_copy(update={"status": translated})
        return record

    def _get_deal(self, deal_id: str) -> Deal | None:
        return self.db.query(Deal).filter(Deal.id == deal_id).first()

    def _get_pin(self, pin_id: str) -> Pin | None:
        return self.db.query(Pin).filter(Pin.id == pin_id).first()

    def _require_deal(self, deal_id: str) -> Deal:
        deal = self._get_deal(deal_id)
        if deal is None:
            raise DatabaseError(f"Deal '{deal_id}' no longer exists.")
        return deal

    def _require_pin(self, pin_id: str) -> Pin:
        pin = self._get_pin(pin_id)
        if pin is None:
            raise DatabaseError(f"Pin '{pin_id}' no longer exists.")
        return pin

    def _stage_commission(self, deal_id: str, fields: dict[str, Any]) -> DealCommission:
        commission = self.db.query(DealCommission).filter(DealCommission.deal_id == deal_id).first()
        if commission is None:
            commission = DealCommission(id=new_record_id(), deal_id=deal_id)
            self.db.add(commission)
        _apply_fields(commission, fields, "commission")
        return commission

    def _add_deal(self, fields: dict[str, Any], commission: dict[str, Any] | None) -> Deal:
        deal = Deal(id=new_record_id())
        _apply_fields(deal, fields, "deal")
        self.db.add(deal)
        if commission is not None:
            record = DealCommission(id=new_record_id(), deal_id=deal.id)
            _apply_fields(record, commission, "commission")
            self.db.add(record)
        return deal

    # -- reads --------------------------------------------------------------

    def load_deal(self, deal_id: str) -> DealRecord | None:
        with self._guard("load deal", deal_id):
            # Drop cached state so the caller validates against the latest committed row.
            self.db.expire_all()
            deal = self._get_deal(deal_id)
            return self._deal_record(deal) if deal is not None else None

    def load_rep(self, rep_id: str) -> RepRecord | None:
        with self._guard("load rep", rep_id):
            rep = self.db.query(Rep).filter(Rep.id == rep_id).first()
            return RepRecord.model_validate(rep) if rep is not None else None

    def load_pin(self, pin_id: str) -> PinRecord | None:
        with self._guard("load pin", pin_id):
            pin = self._get_pin(pin_id)
            return PinRecord.model_validate(pin) if pin is not None else None

    def list_pins_for_deal(self, deal_id: str) -> list[PinRecord]:
        with self._guard("list pins", deal_id):
            pins = self.db.query(Pin).filter(Pin.deal_id == deal_id).order_by(Pin.created_at).all()
            return [PinRecord.model_validate(pin) for pin in pins]

    def list_deals(self, rep_id: str | None = None, status: str | None = None) -> list[DealRecord]:
        """Newest first; ``rep_id`` keeps deals the rep owns or holds commission on."""
        with self._guard("list deals", rep_id):
            query = self.db.query(Deal)
            if rep_id is not None:
                query = query.filter(
                    or_(Deal.rep_id == rep_id, Deal.commission.has(DealCommission.rep_id == rep_id))
                )
            if status is not None:
                query = query.filter(Deal.status.in_(_stored_names(status)))
            return [self._deal_record(deal) for deal in query.order_by(Deal.created_at.desc()).all()]

    def list_pins(self, rep_id: str | None = None, status: str | None = None) -> list[PinRecord]:
        """Newest first; ``rep_id`` keeps pins the rep dropped or closes."""
        with self._guard("list pins", rep_id):
            query = self.db.query(Pin)
            if rep_id is not None:
                query = query.filter(or_(Pin.rep_id == rep_id, Pin.assigned_closer_id == rep_id))
            if status is not None:
                query = query.filter(Pin.status == status)
            return [PinRecord.model_validate(pin) for pin in query.order_by(Pin.created_at.desc()).all()]

    # -- writes -------------------------------------------------------------

    def save_deal(self, deal_id: str, fields: dict[str, Any]) -> DealRecord:
        with self._guard("save deal", deal_id):
            deal = self._require_deal(deal_id)
            _apply_fields(deal, fields, "deal")
            self.db.commit()
            self.db.refresh(deal)
            return self._deal_record(deal)

    def save_pin(self, pin_id: str, fields: dict[str, Any]) -> PinRecord:
        with self._guard("save pin", pin_id):
            pin = self._require_pin(pin_id)
            _apply_fields(pin, fields, "pin")
            self.db.commit()
            self.db.refresh(pin)
            return PinRecord.model_validate(pin)

    def save_commission(self, deal_id: str, fields: dict[str, Any]) -> DealCommissionRecord:
        with self._guard("save commission", deal_id):
            commission = self._stage_commission(deal_id, fields)
            self.db.commit()
            self.db.refresh(commission)
            return DealCommissionRecord.model_validate(commission)

    def save_deal_and_commission(
        self, deal_id: str, fields: dict[str, Any], commission: dict[str, Any]
    ) -> DealRecord:
        """Write deal fields and its commission record in one transaction."""
        with self._guard("save deal and commission", deal_id):
            deal = self._require_deal(deal_id)
            _apply_fields(deal, fields, "deal")
            self._stage_commission(deal_id, commission)
            self.db.commit()
            self.db.refresh(deal)
            return self._deal_record(deal)

    def create_deal(
        self, fields: dict[str, Any], commission: dict[str, Any] | None = None
    ) -> DealRecord:
        with self._guard("create deal"):
            deal = self._add_deal(fields, commission)
            self.db.commit()
            self.db.refresh(deal)
            return self._deal_record(deal)

    def create_pin(self, fields: dict[str, Any]) -> PinRecord:
        with self._guard("create pin"):
            pin = Pin(id=new_record_id())
            _apply_fields(pin, fields, "pin")
            self.db.add(pin)
            self.db.commit()
            self.db.refresh(pin)
            return PinRecord.model_validate(pin)

    def convert_pin(
        self,
        pin_id: str,
        fields: dict[str, Any],
        commission: dict[str, Any] | None = None,
    ) -> tuple[DealRecord, PinRecord]:
        """Create the deal and link the pin in one transaction."""
        with self._guard("convert pin", pin_id):
            pin = self._require_pin(pin_id)
            deal = self._add_deal(fields, commission)
            pin.deal_id = deal.id
            self.db.commit()
            self.db.refresh(deal)
            self.db.refresh(pin)
            return self._deal_record(deal), PinRecord.model_validate(pin)
