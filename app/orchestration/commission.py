"""Commission calculation for deals.

Rules:
- RCV falls back to ACV + depreciation when it is not stored.
- Percent comes from the deal's commission record, then the rep's own
  default, then the rep's tier, then a flat default.
- Sales tax is taken off RCV before the percent is applied.
- An admin override beats everything; a recorded amount beats a fresh
  computation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.core.config import Config, get_config
from app.models.enums import CommissionLevel, CommissionSource
from app.orchestration.rejections import InvalidOverride, PayoutNotAllowed
from app.orchestration.status_catalog import CATALOG, StatusCatalog

CENT = Decimal("0.01")
ZERO = Decimal("0")
# Money columns are Numeric(12, 2).
MAX_MONEY = Decimal("10000000000")
TIER_PERCENTS: dict[str, Decimal] = {
    CommissionLevel.JUNIOR.value: Decimal("5"),
    CommissionLevel.SENIOR.value: Decimal("10"),
    CommissionLevel.MANAGER.value: Decimal("13"),
}
DEFAULT_COMMISSION_PERCENT = Decimal("10")
DEFAULT_SALES_TAX_RATE = Decimal("0.0825")


def _money(value: Any) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value))


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CommissionBreakdown:
    rcv: Decimal
    percent: Decimal
    sales_tax: Decimal
    base_amount: Decimal
    amount: Decimal
    source: CommissionSource

    def to_dict(self) -> dict[str, Any]:
        return {
            "rcv": str(self.rcv),
            "percent": str(self.percent),
            "sales_tax": str(self.sales_tax),
            "base_amount": str(self.base_amount),
            "amount": str(self.amount),
            "source": self.source.value,
        }


def reconstruct_rcv(deal: Any) -> Decimal:
    """Stored RCV when positive, otherwise ACV plus depreciation."""
    rcv = _money(deal.rcv)
    if rcv > ZERO:
        return rcv
    return _money(deal.acv) + _money(deal.depreciation)


class CommissionCalculator:
    """Pure commission math with configurable rates."""

    def __init__(
        self,
        sales_tax_rate: Decimal = DEFAULT_SALES_TAX_RATE,
        default_percent: Decimal = DEFAULT_COMMISSION_PERCENT,
        tier_percents: dict[str, Decimal] | None = None,
    ) -> None:
        self.sales_tax_rate = Decimal(str(sales_tax_rate))
        self.default_percent = Decimal(str(default_percent))
        self.tier_percents = dict(tier_percents or TIER_PERCENTS)

    @classmethod
    def from_config(cls, config: Config | None = None) -> "CommissionCalculator":
        cfg = config or get_config()
        return cls(
            sales_tax_rate=cfg.SALES_TAX_RATE,
            default_percent=cfg.DEFAULT_COMMISSION_PERCENT,
            tier_percents=cfg.COMMISSION_TIER_PERCENTS,
        )

    def resolve_percent(self, deal: Any, rep: Any | None) -> Decimal:
        record = getattr(deal, "commission", None)
        if record is not None and _money(record.commission_percent) > ZERO:
            return _money(record.commission_percent)
        if rep is not None:
            if _money(rep.default_commission_percent) > ZERO:
                return _money(rep.default_commission_percent)
            level = getattr(rep.commission_level, "value", rep.commission_level)
            if level in self.tier_percents:
                return self.tier_percents[level]
        return self.default_percent

    def compute(self, deal: Any, rep: Any | None) -> CommissionBreakdown:
        rcv = reconstruct_rcv(deal)
        percent = self.resolve_percent(deal, rep)
        sales_tax = _cents(rcv * self.sales_tax_rate)
        base_amount = rcv - sales_tax

        record = getattr(deal, "commission", None)
        if deal.commission_override_amount is not None:
            amount = _money(deal.commission_override_amount)
            source = CommissionSource.OVERRIDE
        elif record is not None and _money(record.commission_amount) > ZERO:
            amount = _money(record.commission_amount)
            source = CommissionSource.RECORDED
        else:
            amount = _cents(base_amount * percent / Decimal("100"))
            source = CommissionSource.COMPUTED

        return CommissionBreakdown(
            rcv=rcv,
            percent=percent,
            sales_tax=sales_tax,
            base_amount=base_amount,
            amount=amount,
            source=source,
        )


def compute_commission(
    deal: Any, rep: Any | None, calculator: CommissionCalculator | None = None
) -> CommissionBreakdown:
    """Commission for ``deal`` assigned to ``rep`` using configured rates."""
    return (calculator or CommissionCalculator.from_config()).compute(deal, rep)


def build_override(amount: Any, reason: str | None, now: datetime) -> dict[str, Any]:
    """Fields for an admin override; amount and reason always travel together."""
    if reason is None or not reason.strip():
        raise InvalidOverride("An override reason is required.", field="commission_override_reason")
    if amount is None:
        raise InvalidOverride("An override amount is required.", field="commission_override_amount")
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise InvalidOverride("Override amount must be a number.", field="commission_override_amount") from exc
    if not value.is_finite():
        raise InvalidOverride("Override amount must be a finite number.", field="commission_override_amount")
    if value < ZERO:
        raise InvalidOverride("Override amount cannot be negative.", field="commission_override_amount")
    if value >= MAX_MONEY:
        raise InvalidOverride("Override amount is too large.", field="commission_override_amount")
    return {
        "commission_override_amount": _cents(value),
        "commission_override_reason": reason.strip(),
        "commission_override_date": now,
    }


def clear_override() -> dict[str, Any]:
    return {
        "commission_override_amount": None,
        "commission_override_reason": None,
        "commission_override_date": None,
    }


def build_payout(deal: Any, now: datetime, catalog: StatusCatalog | None = None) -> dict[str, Any]:
    """Fields marking the commission paid; the deal must have reached the final phase."""
    catalog = catalog or CATALOG
    entry = catalog.terminal_phase_entry
    if catalog.index_of(deal.status) < catalog.index_of(entry):
        raise PayoutNotAllowed(catalog.normalize(deal.status).value, entry.value)
    return {"commission_paid": True, "commission_paid_date": deal.commission_paid_date or now}
