"""Effects triggered by a deal status change."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from app.models.enums import DealStatus, PinStatus
from app.orchestration.status_catalog import CATALOG, StatusCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetDealField:
    field: str
    value: Any


@dataclass(frozen=True)
class SetPinStatus:
    pin_id: str
    status: PinStatus


@dataclass(frozen=True)
class SideEffectPartialFailure:
    """Pins that could not be synced; the deal update still stands."""

    pin_ids: tuple[str, ...]
    errors: dict[str, str] = field(default_factory=dict)
    code = "side_effect_partial_failure"

    @property
    def message(self) -> str:
        if not self.pin_ids:
            return "Linked pins could not be loaded for syncing."
        return f"{len(self.pin_ids)} linked pin(s) could not be synced."

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "pin_ids": list(self.pin_ids),
            "errors": dict(self.errors),
        }


class SideEffectSynchronizer:
    """Plans and applies the secondary writes of a status change."""

    def __init__(self, catalog: StatusCatalog | None = None) -> None:
        self.catalog = catalog or CATALOG

    def on_status_changed(
        self,
        deal: Any,
        from_status: Any,
        to_status: Any,
        *,
        pins: Iterable[Any] = (),
        now: datetime,
        milestone_date: datetime | None = None,
    ) -> list[SetDealField | SetPinStatus]:
        source = self.catalog.normalize(from_status)
        target = self.catalog.normalize(to_status)
        if source == target:
            return []

        effects: list[SetDealField | SetPinStatus] = []
        timestamp_field = self.catalog.definition(target).timestamp_field
        if getattr(deal, timestamp_field, None) is None:
            effects.append(SetDealField(timestamp_field, milestone_date or now))

        if target == DealStatus.INSTALLED:
            if getattr(deal, "completion_date", None) is None:
                effects.append(SetDealField("completion_date", (milestone_date or now).date()))
            for pin in pins:
                if pin.deal_id == deal.id:
                    effects.append(SetPinStatus(pin.id, PinStatus.INSTALLED))

        if target == DealStatus.PAID and getattr(deal, "payment_requested", False):
            effects.append(SetDealField("payment_requested", False))

        return effects

    @staticmethod
    def deal_fields(effects: Iterable[SetDealField | SetPinStatus]) -> dict[str, Any]:
        return {effect.field: effect.value for effect in effects if isinstance(effect, SetDealField)}

    @staticmethod
    def pin_effects(effects: Iterable[SetDealField | SetPinStatus]) -> list[SetPinStatus]:
        return [effect for effect in effects if isinstance(effect, SetPinStatus)]

    def apply_pin_effects(
        self, deal_id: str, effects: Iterable[SetPinStatus], store: Any
    ) -> SideEffectPartialFailure | None:
        """Write pin statuses one by one; failures are collected, never raised."""
        failed: list[str] = []
        errors: dict[str, str] = {}
        for effect in effects:
            try:
                store.save_pin(effect.pin_id, {"status": effect.status.value})
            except Exception as exc:
                failed.append(effect.pin_id)
                errors[effect.pin_id] = str(exc)
                logger.warning(
                    "deal.side_effect.pin_sync_failed",
                    extra={
                        "event": "deal.side_effect.pin_sync_failed",
                        "deal_id": deal_id,
                        "pin_id": effect.pin_id,
                        "error": str(exc),
                    },
                )
        if not failed:
            return None
        return SideEffectPartialFailure(pin_ids=tuple(failed), errors=errors)
