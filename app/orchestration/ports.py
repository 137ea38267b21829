"""Store contract consumed by the deal workflow."""

from __future__ import annotations

from typing import Any, Protocol

from app.schemas.deals import DealCommissionRecord, DealRecord
from app.schemas.pins import PinRecord
from app.schemas.reps import RepRecord


class DealStore(Protocol):
    """Structured records keyed by opaque ids.

    Implementations raise ``app.core.exceptions.DatabaseError`` when a call
    cannot be completed; each call is one atomic unit of work.
    """

    def load_deal(self, deal_id: str) -> DealRecord | None: ...

    def load_rep(self, rep_id: str) -> RepRecord | None: ...

    def load_pin(self, pin_id: str) -> PinRecord | None: ...

    def list_pins_for_deal(self, deal_id: str) -> list[PinRecord]: ...

    def list_deals(self, rep_id: str | None = None, status: str | None = None) -> list[DealRecord]: ...

    def list_pins(self, rep_id: str | None = None, status: str | None = None) -> list[PinRecord]: ...

    def save_deal(self, deal_id: str, fields: dict[str, Any]) -> DealRecord: ...

    def save_pin(self, pin_id: str, fields: dict[str, Any]) -> PinRecord: ...

    def save_commission(self, deal_id: str, fields: dict[str, Any]) -> DealCommissionRecord: ...

    def save_deal_and_commission(
        self, deal_id: str, fields: dict[str, Any], commission: dict[str, Any]
    ) -> DealRecord: ...

    def create_deal(
        self, fields: dict[str, Any], commission: dict[str, Any] | None = None
    ) -> DealRecord: ...

    def create_pin(self, fields: dict[str, Any]) -> PinRecord: ...

    def convert_pin(
        self,
        pin_id: str,
        fields: dict[str, Any],
        commission: dict[str, Any] | None = None,
    ) -> tuple[DealRecord, PinRecord]: ...
