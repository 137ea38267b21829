"""Workflow orchestrator: the single write path for deals.

Every operation re-reads the deal from the store, validates against that
fresh snapshot, writes once, then runs best-effort side effects. Results
are returned as ``WorkflowResult``; rejections never escape as exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import DatabaseError
from app.core.logging import LogContext, build_log_event
from app.models.base import utcnow
from app.models.enums import AssetKind, CommissionType, DealStatus, PinStatus, UserRole
from app.orchestration.approval_gate import FinancialApprovalGate, touches_gate
from app.orchestration.commission import (
    CommissionBreakdown,
    CommissionCalculator,
    build_override,
    build_payout,
    clear_override,
)
from app.orchestration.ports import DealStore
from app.orchestration.rejections import (
    InvalidUpdate,
    MissingRequiredField,
    PayoutNotAllowed,
    PersistenceFailed,
    PinAlreadyConverted,
    RecordNotFound,
    RoleNotPermitted,
    WorkflowRejection,
)
from app.orchestration.side_effects import SideEffectPartialFailure, SideEffectSynchronizer
from app.orchestration.state_machine import TransitionValidator
from app.orchestration.status_catalog import CATALOG, StatusCatalog, is_present
from app.schemas.deals import AssetRef, DealCreate, DealRecord, DealUpdate, PinConversion, SignatureInfo
from app.schemas.pins import PinCreate, PinRecord
from app.schemas.reps import RepRecord
from app.utils.validators import is_valid_asset_url, sanitize_reason, sanitize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who is acting. A rep with a ``rep_id`` only reaches deals and pins they hold."""

    role: UserRole
    rep_id: str | None = None

    @property
    def scoped_rep_id(self) -> str | None:
        return self.rep_id if self.role == UserRole.REP else None


ActorLike = Actor | UserRole | str


@dataclass(frozen=True)
class ApplyOptions:
    actor: ActorLike
    confirm_backward: bool = False
    milestone_date: datetime | None = None


@dataclass(frozen=True)
class WorkflowResult:
    deal: DealRecord | None = None
    rejection: WorkflowRejection | None = None
    warnings: tuple[SideEffectPartialFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True)
class CommissionResult:
    breakdown: CommissionBreakdown | None = None
    rejection: WorkflowRejection | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True)
class PinResult:
    pin: PinRecord | None = None
    rejection: WorkflowRejection | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True)
class ListResult:
    items: tuple[Any, ...] = ()
    rejection: WorkflowRejection | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


def _validation_errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]


def _actor(actor: ActorLike) -> Actor:
    if isinstance(actor, Actor):
        return actor
    try:
        return Actor(role=UserRole(actor))
    except ValueError as exc:
        raise RoleNotPermitted(str(actor), "change deals") from exc


def _role(actor: ActorLike) -> UserRole:
    return _actor(actor).role


def _holds_deal(actor: Actor, deal: DealRecord) -> bool:
    rep_id = actor.scoped_rep_id
    if rep_id is None:
        return True
    commission_rep = deal.commission.rep_id if deal.commission is not None else None
    return rep_id in (deal.rep_id, commission_rep)


def _holds_pin(actor: Actor, pin: PinRecord) -> bool:
    rep_id = actor.scoped_rep_id
    return rep_id is None or rep_id in (pin.rep_id, pin.assigned_closer_id)


def _require_admin(role: UserRole, action: str) -> None:
    if role != UserRole.ADMIN:
        raise RoleNotPermitted(role.value, action)


class WorkflowOrchestrator:
    """Facade used by API handlers and scripts to mutate deals."""

    def __init__(
        self,
        store: DealStore,
        *,
        catalog: StatusCatalog | None = None,
        validator: TransitionValidator | None = None,
        gate: FinancialApprovalGate | None = None,
        calculator: CommissionCalculator | None = None,
        synchronizer: SideEffectSynchronizer | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.catalog = catalog or CATALOG
        self.validator = validator or TransitionValidator(self.catalog)
        self.gate = gate or FinancialApprovalGate()
        self.calculator = calculator or CommissionCalculator.from_config()
        self.synchronizer = synchronizer or SideEffectSynchronizer(self.catalog)
        self.clock = clock or utcnow

    # -- plumbing -----------------------------------------------------------

    def _run(
        self,
        operation: str,
        subject_id: str | None,
        action: Callable[[], Any],
        result_type: type = WorkflowResult,
    ) -> Any:
        try:
            return action()
        except WorkflowRejection as exc:
            logger.info(
                "deal.workflow.rejected",
                extra={
                    "event": "deal.workflow.rejected",
                    "operation": operation,
                    "subject_id": subject_id,
                    "code": exc.code,
                },
            )
            return result_type(rejection=exc)
        except DatabaseError as exc:
            logger.error(
                "deal.workflow.store_failed",
                extra={
                    "event": "deal.workflow.store_failed",
                    "operation": operation,
                    "subject_id": subject_id,
                    "error": str(exc),
                },
            )
            return result_type(rejection=PersistenceFailed(str(exc), operation=operation))

    def _load(self, deal_id: str) -> DealRecord:
        deal = self.store.load_deal(deal_id)
        if deal is None:
            raise RecordNotFound("deal", deal_id)
        return deal

    def _load_for(self, deal_id: str, actor: Actor) -> DealRecord:
        deal = self._load(deal_id)
        if not _holds_deal(actor, deal):
            raise RoleNotPermitted(actor.role.value, "access this deal")
        return deal

    def _load_rep(self, rep_id: str | None) -> RepRecord | None:
        if not rep_id:
            return None
        rep = self.store.load_rep(rep_id)
        if rep is None:
            raise RecordNotFound("rep", rep_id)
        return rep

    def _parse_updates(self, updates: DealUpdate | dict[str, Any] | None) -> dict[str, Any]:
        if updates is None:
            return {}
        if isinstance(updates, DealUpdate):
            return updates.changes()
        try:
            return DealUpdate.model_validate(updates).changes()
        except PydanticValidationError as exc:
            raise InvalidUpdate("The update contains invalid fields.", errors=_validation_errors(exc)) from exc

    def _asset_fields(
        self,
        deal: DealRecord,
        kind: AssetKind | str,
        url: str,
        *,
        remove: bool = False,
    ) -> dict[str, Any]:
        try:
            resolved = AssetKind(kind)
        except ValueError as exc:
            raise InvalidUpdate(f"'{kind}' is not a known asset kind.", kind=str(kind)) from exc
        reference = sanitize_text(url)
        if not is_valid_asset_url(reference):
            raise InvalidUpdate("Asset references must be absolute http(s) or s3 urls.", kind=resolved.value)

        current = getattr(deal, resolved.value)
        if resolved.is_collection:
            items = list(current or [])
            if remove:
                if reference not in items:
                    raise InvalidUpdate("That asset is not attached to this deal.", kind=resolved.value)
                items.remove(reference)
            elif reference not in items:
                items.append(reference)
            return {resolved.value: items}

        if remove:
            if current != reference:
                raise InvalidUpdate("That asset is not attached to this deal.", kind=resolved.value)
            return {resolved.value: None}
        return {resolved.value: reference}

    def _signature_fields(
        self,
        deal: DealRecord,
        signature: SignatureInfo | dict[str, Any],
        role: UserRole,
        now: datetime,
    ) -> dict[str, Any]:
        if not isinstance(signature, SignatureInfo):
            try:
                signature = SignatureInfo.model_validate(signature)
            except PydanticValidationError as exc:
                raise InvalidUpdate("Invalid signature details.", errors=_validation_errors(exc)) from exc
        if not signature.signed:
            if deal.contract_signed:
                _require_admin(role, "clear a contract signature")
            return SignatureInfo.unsigned().to_fields()
        if signature.signed_at is None:
            signature = signature.model_copy(update={"signed_at": now})
        return signature.to_fields()

    def _audit(self, event: str, deal_id: str, role: UserRole, **fields: Any) -> None:
        logger.info(event, extra=build_log_event(event, LogContext(deal_id=deal_id, actor_role=role.value), **fields))

    def _sync_pins(self, deal_id: str, effects: Iterable[Any], warnings: list[SideEffectPartialFailure]) -> None:
        pin_effects = self.synchronizer.pin_effects(effects)
        if not pin_effects:
            return
        failure = self.synchronizer.apply_pin_effects(deal_id, pin_effects, self.store)
        if failure is not None:
            warnings.append(failure)

    def _pins_for(self, deal_id: str, warnings: list[SideEffectPartialFailure]) -> list[Any]:
        try:
            return self.store.list_pins_for_deal(deal_id)
        except DatabaseError as exc:
            logger.warning(
                "deal.side_effect.pin_list_failed",
                extra={"event": "deal.side_effect.pin_list_failed", "deal_id": deal_id, "error": str(exc)},
            )
            warnings.append(SideEffectPartialFailure(pin_ids=(), errors={"*": str(exc)}))
            return []

    def _status_effects(
        self,
        deal: DealRecord,
        fields: dict[str, Any],
        target: DealStatus,
        now: datetime,
        milestone_date: datetime | None,
        warnings: list[SideEffectPartialFailure],
    ) -> list[Any]:
        current = self.catalog.normalize(deal.status)
        if target == current:
            return []
        pins = self._pins_for(deal.id, warnings) if target == DealStatus.INSTALLED else []
        effects = self.synchronizer.on_status_changed(
            deal.merged(fields),
            current,
            target,
            pins=pins,
            now=now,
            milestone_date=milestone_date,
        )
        fields.update(self.synchronizer.deal_fields(effects))
        return effects

    # -- reads ----------------------------------------------------------------

    def get_deal(self, deal_id: str, actor: ActorLike) -> WorkflowResult:
        """Fresh snapshot of one deal the actor may see."""
        return self._run("get_deal", deal_id, lambda: WorkflowResult(deal=self._load_for(deal_id, _actor(actor))))

    def list_deals(self, actor: ActorLike, status: str | None = None) -> ListResult:
        """Admins and crews see every deal; a rep sees the deals they hold."""

        def _action() -> ListResult:
            resolved = _actor(actor)
            status_value = self.catalog.normalize(status).value if status else None
            deals = self.store.list_deals(rep_id=resolved.scoped_rep_id, status=status_value)
            return ListResult(items=tuple(deals))

        return self._run("list_deals", None, _action, ListResult)

    # -- deal updates -------------------------------------------------------

    def apply(
        self,
        deal_id: str,
        updates: DealUpdate | dict[str, Any] | None,
        options: ApplyOptions,
        *,
        append_assets: Iterable[AssetRef | dict[str, Any]] | None = None,
        signature: SignatureInfo | dict[str, Any] | None = None,
    ) -> WorkflowResult:
        """Apply field updates and an optional status move to a deal."""
        return self._run("apply", deal_id, lambda: self._apply(deal_id, updates, options, append_assets, signature))

    def _apply(
        self,
        deal_id: str,
        updates: DealUpdate | dict[str, Any] | None,
        options: ApplyOptions,
        append_assets: Iterable[AssetRef | dict[str, Any]] | None,
        signature: SignatureInfo | dict[str, Any] | None,
    ) -> WorkflowResult:
        actor = _actor(options.actor)
        role = actor.role
        deal = self._load_for(deal_id, actor)
        changes = self._parse_updates(updates)
        now = self.clock()

        target: DealStatus | None = None
        if "status" in changes:
            target = self.catalog.normalize(changes["status"])
            changes["status"] = target.value

        fields = dict(changes)
        for asset in append_assets or ():
            if not isinstance(asset, AssetRef):
                try:
                    asset = AssetRef.model_validate(asset)
                except PydanticValidationError as exc:
                    raise InvalidUpdate("Invalid asset reference.", errors=_validation_errors(exc)) from exc
            fields.update(self._asset_fields(deal.merged(fields), asset.kind, asset.url))
        if signature is not None:
            fields.update(self._signature_fields(deal, signature, role, now))

        rep_changed = "rep_id" in changes and changes["rep_id"] != deal.rep_id
        if rep_changed or ("rep_name" in changes and changes["rep_name"] != deal.rep_name):
            _require_admin(role, "reassign a deal")
        if rep_changed:
            rep = self._load_rep(changes["rep_id"])
            if "rep_name" not in changes:
                fields["rep_name"] = rep.full_name if rep is not None else None

        if target is not None:
            self.validator.assert_transition(
                deal,
                target,
                role,
                updates=fields,
                confirm_backward=options.confirm_backward,
            )
        if touches_gate(changes):
            fields = self.gate.apply_financial_update(deal, fields, now)

        warnings: list[SideEffectPartialFailure] = []
        effects: list[Any] = []
        if target is not None:
            effects = self._status_effects(deal, fields, target, now, options.milestone_date, warnings)

        if not fields:
            return WorkflowResult(deal=deal)

        if rep_changed and (deal.commission is not None or changes["rep_id"]):
            saved = self.store.save_deal_and_commission(deal.id, fields, {"rep_id": changes["rep_id"]})
        else:
            saved = self.store.save_deal(deal.id, fields)

        if target is not None and target != self.catalog.normalize(deal.status):
            self._audit(
                "deal.status.changed",
                deal.id,
                role,
                from_status=self.catalog.normalize(deal.status).value,
                to_status=target.value,
                backward=self.catalog.index_of(target) < self.catalog.index_of(deal.status),
            )

        self._sync_pins(deal.id, effects, warnings)
        return WorkflowResult(deal=saved, warnings=tuple(warnings))

    def set_signature(
        self,
        deal_id: str,
        signature: SignatureInfo | dict[str, Any],
        actor: ActorLike,
    ) -> WorkflowResult:
        def _action() -> WorkflowResult:
            resolved = _actor(actor)
            deal = self._load_for(deal_id, resolved)
            fields = self._signature_fields(deal, signature, resolved.role, self.clock())
            return WorkflowResult(deal=self.store.save_deal(deal.id, fields))

        return self._run("set_signature", deal_id, _action)

    def add_asset(self, deal_id: str, kind: AssetKind | str, url: str, actor: ActorLike) -> WorkflowResult:
        def _action() -> WorkflowResult:
            deal = self._load_for(deal_id, _actor(actor))
            return WorkflowResult(deal=self.store.save_deal(deal.id, self._asset_fields(deal, kind, url)))

        return self._run("add_asset", deal_id, _action)

    def remove_asset(self, deal_id: str, kind: AssetKind | str, url: str, actor: ActorLike) -> WorkflowResult:
        def _action() -> WorkflowResult:
            deal = self._load_for(deal_id, _actor(actor))
            fields = self._asset_fields(deal, kind, url, remove=True)
            return WorkflowResult(deal=self.store.save_deal(deal.id, fields))

        return self._run("remove_asset", deal_id, _action)

    def unlock_financials(self, deal_id: str, reason: str | None, actor: ActorLike) -> WorkflowResult:
        def _action() -> WorkflowResult:
            role = _role(actor)
            deal = self._load(deal_id)
            fields = self.gate.unlock(deal, sanitize_reason(reason), role, self.clock())
            return WorkflowResult(deal=self.store.save_deal(deal.id, fields))

        return self._run("unlock_financials", deal_id, _action)

    def request_payment(self, deal_id: str, actor: ActorLike) -> WorkflowResult:
        def _action() -> WorkflowResult:
            resolved = _actor(actor)
            if resolved.role == UserRole.CREW:
                raise RoleNotPermitted(resolved.role.value, "request commission payment")
            deal = self._load_for(deal_id, resolved)
            threshold = DealStatus.DEPRECIATION_COLLECTED
            if self.catalog.index_of(deal.status) < self.catalog.index_of(threshold):
                raise PayoutNotAllowed(self.catalog.normalize(deal.status).value, threshold.value)
            if deal.commission_paid:
                raise InvalidUpdate("Commission for this deal has already been paid.")
            fields = {"payment_requested": True, "payment_request_date": deal.payment_request_date or self.clock()}
            return WorkflowResult(deal=self.store.save_deal(deal.id, fields))

        return self._run("request_payment", deal_id, _action)

    def decline_payment_request(self, deal_id: str, actor: ActorLike) -> WorkflowResult:
        def _action() -> WorkflowResult:
            role = _role(actor)
            _require_admin(role, "decline a payment request")
            deal = self._load(deal_id)
            if not deal.payment_requested:
                raise InvalidUpdate("There is no open payment request for this deal.")
            return WorkflowResult(deal=self.store.save_deal(deal.id, {"payment_requested": False}))

        return self._run("decline_payment_request", deal_id, _action)

    # -- creation -----------------------------------------------------------

    def create_deal(self, fields: DealCreate | dict[str, Any], actor: ActorLike) -> WorkflowResult:
        """Create a deal at the first status with its milestone stamped."""

        def _action() -> WorkflowResult:
            resolved = _actor(actor)
            if isinstance(fields, DealCreate):
                payload = fields
            else:
                if not is_present(fields.get("homeowner_name")):
                    raise MissingRequiredField("homeowner_name", label="Homeowner name")
                try:
                    payload = DealCreate.model_validate(fields)
                except PydanticValidationError as exc:
                    raise InvalidUpdate("The deal contains invalid fields.", errors=_validation_errors(exc)) from exc

            data = payload.model_dump(exclude_none=True)
            own = resolved.scoped_rep_id
            if own is not None:
                if data.setdefault("rep_id", own) != own:
                    raise RoleNotPermitted(resolved.role.value, "create deals for another rep")
            rep = self._load_rep(data.get("rep_id"))
            deal = self.store.create_deal(*self._new_deal_fields(data, rep))
            self._audit("deal.created", deal.id, resolved.role, rep_id=deal.rep_id)
            return WorkflowResult(deal=deal)

        return self._run("create_deal", None, _action)

    def convert_pin(
        self,
        pin_id: str,
        actor: ActorLike,
        fields: PinConversion | dict[str, Any] | None = None,
    ) -> WorkflowResult:
        """Turn a map pin into a deal; the pin keeps its identity and gains a link."""

        def _action() -> WorkflowResult:
            resolved = _actor(actor)
            if isinstance(fields, PinConversion):
                overrides = fields
            else:
                try:
                    overrides = PinConversion.model_validate(fields or {})
                except PydanticValidationError as exc:
                    raise InvalidUpdate("The conversion contains invalid fields.", errors=_validation_errors(exc)) from exc

            pin = self.store.load_pin(pin_id)
            if pin is None:
                raise RecordNotFound("pin", pin_id)
            if not _holds_pin(resolved, pin):
                raise RoleNotPermitted(resolved.role.value, "convert this pin")
            if pin.deal_id:
                raise PinAlreadyConverted(pin.id, pin.deal_id)

            homeowner_name = overrides.homeowner_name or pin.homeowner_name
            if not is_present(homeowner_name):
                raise MissingRequiredField("homeowner_name", label="Homeowner name")

            data: dict[str, Any] = {
                "homeowner_name": homeowner_name.strip(),
                "homeowner_phone": overrides.homeowner_phone or pin.homeowner_phone,
                "homeowner_email": overrides.homeowner_email or pin.homeowner_email,
                "address": pin.address,
                "city": pin.city,
                "state": pin.state,
                "zip_code": pin.zip_code,
                "notes": overrides.notes or pin.notes,
                "insurance_company": overrides.insurance_company,
                "claim_number": overrides.claim_number,
                "inspection_images": list(pin.inspection_images),
                "rep_id": pin.rep_id,
            }
            data = {name: value for name, value in data.items() if value is not None}
            rep = self.store.load_rep(pin.rep_id) if pin.rep_id else None
            if rep is None:
                data.pop("rep_id", None)
            deal_fields, commission = self._new_deal_fields(data, rep)
            deal, _ = self.store.convert_pin(pin.id, deal_fields, commission)
            self._audit("deal.converted_from_pin", deal.id, resolved.role, pin_id=pin.id)
            return WorkflowResult(deal=deal)

        return self._run("convert_pin", pin_id, _action)

    def _new_deal_fields(
        self, data: dict[str, Any], rep: RepRecord | None
    ) -> tuple[dict[str, Any], dict[str, Any] | None]:
        first = self.catalog.statuses[0]
        data["status"] = first.value
        data[self.catalog.definition(first).timestamp_field] = self.clock()
        commission = None
        if rep is not None:
            data["rep_id"] = rep.id
            data["rep_name"] = rep.full_name
            commission = {"rep_id": rep.id, "commission_type": CommissionType.SELF_GEN.value}
        return data, commission

    # -- map pins -----------------------------------------------------------

    def create_pin(self, fields: PinCreate | dict[str, Any], actor: ActorLike) -> PinResult:
        """Drop a pin on the map; a rep's pins are always their own."""

        def _action() -> PinResult:
            resolved = _actor(actor)
            if resolved.role == UserRole.CREW:
                raise RoleNotPermitted(resolved.role.value, "drop map pins")
            if isinstance(fields, PinCreate):
                payload = fields
            else:
                try:
                    payload = PinCreate.model_validate(fields)
                except PydanticValidationError as exc:
                    raise InvalidUpdate("The pin contains invalid fields.", errors=_validation_errors(exc)) from exc

            data = payload.model_dump(exclude_none=True)
            data["status"] = PinStatus(data.get("status", PinStatus.LEAD)).value
            own = resolved.scoped_rep_id
            if own is not None:
                if data.setdefault("rep_id", own) != own:
                    raise RoleNotPermitted(resolved.role.value, "drop pins for another rep")
            self._load_rep(data.get("rep_id"))
            self._load_rep(data.get("assigned_closer_id"))

            pin = self.store.create_pin(data)
            logger.info(
                "pin.created",
                extra={"event": "pin.created", "pin_id": pin.id, "rep_id": pin.rep_id, "actor_role": resolved.role.value},
            )
            return PinResult(pin=pin)

        return self._run("create_pin", None, _action, PinResult)

    def list_pins(self, actor: ActorLike, status: str | None = None) -> ListResult:
        """A rep sees pins they dropped or are closing; admins see every pin."""

        def _action() -> ListResult:
            resolved = _actor(actor)
            status_value = None
            if status:
                try:
                    status_value = PinStatus(status.strip().lower()).value
                except ValueError as exc:
                    raise InvalidUpdate(f"'{status}' is not a known pin status.", status=status) from exc
            pins = self.store.list_pins(rep_id=resolved.scoped_rep_id, status=status_value)
            return ListResult(items=tuple(pins))

        return self._run("list_pins", None, _action, ListResult)

    # -- commission ---------------------------------------------------------

    def commission_for(self, deal_id: str, actor: ActorLike | None = None) -> CommissionResult:
        """Commission computed on read from the current deal and rep."""

        def _action() -> CommissionResult:
            deal = self._load_for(deal_id, _actor(actor)) if actor is not None else self._load(deal_id)
            rep = self.store.load_rep(deal.rep_id) if deal.rep_id else None
            return CommissionResult(breakdown=self.calculator.compute(deal, rep))

        return self._run("commission_for", deal_id, _action, CommissionResult)

    def set_commission_override(
        self, deal_id: str, amount: Any, reason: str | None, actor: ActorLike
    ) -> WorkflowResult:
        def _action() -> WorkflowResult:
            role = _role(actor)
            _require_admin(role, "override commission")
            deal = self._load(deal_id)
            fields = build_override(amount, sanitize_reason(reason), self.clock())
            saved = self.store.save_deal(deal.id, fields)
            self._audit(
                "deal.commission.override_set",
                deal.id,
                role,
                amount=str(fields["commission_override_amount"]),
                reason=fields["commission_override_reason"],
            )
            return WorkflowResult(deal=saved)

        return self._run("set_commission_override", deal_id, _action)

    def clear_commission_override(self, deal_id: str, actor: ActorLike) -> WorkflowResult:
        def _action() -> WorkflowResult:
            role = _role(actor)
            _require_admin(role, "clear a commission override")
            deal = self._load(deal_id)
            saved = self.store.save_deal(deal.id, clear_override())
            self._audit("deal.commission.override_cleared", deal.id, role)
            return WorkflowResult(deal=saved)

        return self._run("clear_commission_override", deal_id, _action)

    def mark_paid(self, deal_id: str, actor: ActorLike, advance_status: bool = True) -> WorkflowResult:
        """Pay the commission and, by default, move the deal to its final status."""

        def _action() -> WorkflowResult:
            role = _role(actor)
            _require_admin(role, "pay commission")
            deal = self._load(deal_id)
            now = self.clock()
            fields = build_payout(deal, now, self.catalog)
            rep = self.store.load_rep(deal.rep_id) if deal.rep_id else None
            breakdown = self.calculator.compute(deal, rep)

            terminal = self.catalog.terminal_status
            effects: list[Any] = []
            warnings: list[SideEffectPartialFailure] = []
            if advance_status and not self.catalog.is_terminal(deal.status):
                self.validator.assert_transition(deal, terminal, role, updates=fields)
                fields["status"] = terminal.value
                effects = self._status_effects(deal, fields, terminal, now, None, warnings)

            # The paid flag and the frozen amount land together or not at all.
            saved = self.store.save_deal_and_commission(
                deal.id,
                fields,
                {
                    "rep_id": deal.rep_id,
                    "commission_percent": breakdown.percent,
                    "commission_amount": breakdown.amount,
                    "paid": True,
                },
            )
            self._audit(
                "deal.commission.paid",
                deal.id,
                role,
                amount=str(breakdown.amount),
                source=breakdown.source.value,
                advanced_status=bool(fields.get("status")),
            )
            self._sync_pins(deal.id, effects, warnings)
            return WorkflowResult(deal=saved, warnings=tuple(warnings))

        return self._run("mark_paid", deal_id, _action)
