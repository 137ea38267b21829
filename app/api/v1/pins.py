"""Map pin endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from app.api.v1._authz import authorize_or_raise, rejection_to_http
from app.api.v1.deals import deal_payload
from app.core.dependencies import get_db_session, get_workflow
from app.schemas.deals import PinConversion
from app.schemas.pins import PinCreate

router = APIRouter(tags=["pins"])


@router.post("/pins", status_code=status.HTTP_201_CREATED)
def create_pin(
    payload: PinCreate,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["pins.write"])
    result = get_workflow(db).create_pin(payload, user.actor)
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    return {"pin": result.pin.model_dump(mode="json")}


@router.get("/pins")
def list_pins(
    status_filter: str | None = Query(default=None, alias="status"),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["pins.read"])
    result = get_workflow(db).list_pins(user.actor, status=status_filter)
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    return {"pins": [pin.model_dump(mode="json") for pin in result.items], "count": len(result.items)}


@router.post("/pins/{pin_id}/convert", status_code=status.HTTP_201_CREATED)
def convert_pin(
    pin_id: str,
    payload: PinConversion,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    user = authorize_or_raise(authorization, ["pins.convert"])
    result = get_workflow(db).convert_pin(pin_id, user.actor, payload)
    if result.rejection is not None:
        raise rejection_to_http(result.rejection)
    return {"pin_id": pin_id, **deal_payload(result.deal, user.role)}
