"""Deal workflow endpoints for API v1."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from app.api.v1._authz import authorize_or_raise, rejection_to_http
from app.core.dependencies import get_db_session, get_workflow
from app.orchestration.status_catalog import CATALOG
from app.orchestration.workflow import ApplyOptions, WorkflowResult
from app.schemas.deals import (
    AssetRef,
    CommissionOverrideRequest,
    CommissionPayRequest,
    DealCreate,
    DealRecord,
    DealUpdateRequest,
    FinancialUnlockRequest,
    SignatureInfo,
)

router = APIRouter(tags=["deals"])


def deal_payload(deal: DealRecord, role: str, warnings: tuple = ()) -> dict[str, Any]:
    next_action = CATALOG.next_required_action(deal.status, role)
    return {
        "deal": deal.model_dump(mode="json"),
        "phase": CATALOG.phase_of(deal.status).value,
        "bucket": CATALOG.bucket_of(deal.status, payment_requested=deal.payment_requested),
        "next_action": next_action.to_dict() if next_action else None,
        "warnings": [warning.to_dict() for warning in warnings],
    }


def _unwrap(result: WorkflowResult, role: str) -> dict[str, Any]:
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    return deal_payload(result.deal, role, result.warnings)


@router.post("/deals", status_code=status.HTTP_201_CREATED)
def create_deal(
    payload: DealCreate,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.write"])
    return _unwrap(get_workflow(db).create_deal(payload, user.actor), user.role)


@router.get("/deals")
def list_deals(
    status_filter: str | None = Query(default=None, alias="status"),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.read"])
    result = get_workflow(db).list_deals(user.actor, status=status_filter)
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    return {"deals": [deal_payload(deal, user.role) for deal in result.items], "count": len(result.items)}


@router.get("/deals/{deal_id}")
def get_deal(
    deal_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.read"])
    return _unwrap(get_workflow(db).get_deal(deal_id, user.actor), user.role)


@router.patch("/deals/{deal_id}")
def update_deal(
    deal_id: str,
    payload: DealUpdateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.write"])
    result = get_workflow(db).apply(
        deal_id,
        payload.updates,
        ApplyOptions(
            actor=user.actor,
            confirm_backward=payload.confirm_backward,
            milestone_date=payload.milestone_date,
        ),
        append_assets=payload.append_assets,
        signature=payload.signature,
    )
    return _unwrap(result, user.role)


@router.put("/deals/{deal_id}/signature")
def set_signature(
    deal_id: str,
    payload: SignatureInfo,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.write"])
    return _unwrap(get_workflow(db).set_signature(deal_id, payload, user.actor), user.role)


@router.post("/deals/{deal_id}/assets", status_code=status.HTTP_201_CREATED)
def add_asset(
    deal_id: str,
    payload: AssetRef,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.write"])
    return _unwrap(get_workflow(db).add_asset(deal_id, payload.kind, payload.url, user.actor), user.role)


@router.delete("/deals/{deal_id}/assets")
def remove_asset(
    deal_id: str,
    payload: AssetRef,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.write"])
    return _unwrap(get_workflow(db).remove_asset(deal_id, payload.kind, payload.url, user.actor), user.role)


@router.post("/deals/{deal_id}/payment-request")
def request_payment(
    deal_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.write"])
    return _unwrap(get_workflow(db).request_payment(deal_id, user.actor), user.role)


@router.delete("/deals/{deal_id}/payment-request")
def decline_payment_request(
    deal_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["commissions.manage"])
    return _unwrap(get_workflow(db).decline_payment_request(deal_id, user.actor), user.role)


@router.post("/deals/{deal_id}/financials/unlock")
def unlock_financials(
    deal_id: str,
    payload: FinancialUnlockRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.admin"])
    return _unwrap(get_workflow(db).unlock_financials(deal_id, payload.reason, user.actor), user.role)


@router.get("/deals/{deal_id}/next-action")
def next_action(
    deal_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["deals.read"])
    result = get_workflow(db).get_deal(deal_id, user.actor)
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    deal = result.deal
    action = CATALOG.next_required_action(deal.status, user.role)
    return {"deal_id": deal.id, "status": deal.status, "next_action": action.to_dict() if action else None}


@router.get("/deals/{deal_id}/commission")
def get_commission(
    deal_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["commissions.read"])
    result = get_workflow(db).commission_for(deal_id, user.actor)
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    return {"deal_id": deal_id, "commission": result.breakdown.to_dict()}


@router.put("/deals/{deal_id}/commission/override")
def set_commission_override(
    deal_id: str,
    payload: CommissionOverrideRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["commissions.manage"])
    result = get_workflow(db).set_commission_override(deal_id, payload.amount, payload.reason, user.actor)
    return _unwrap(result, user.role)


@router.delete("/deals/{deal_id}/commission/override")
def clear_commission_override(
    deal_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["commissions.manage"])
    return _unwrap(get_workflow(db).clear_commission_override(deal_id, user.actor), user.role)


@router.post("/deals/{deal_id}/commission/pay")
def pay_commission(
    deal_id: str,
    payload: CommissionPayRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["commissions.manage"])
    result = get_workflow(db).mark_paid(deal_id, user.actor, advance_status=payload.advance_status)
    return _unwrap(result, user.role)
