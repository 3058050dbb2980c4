# courier_bridge/api/v1/routers/calls.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Header
import structlog

from courier_bridge.api.v1.dependencies import auth_service, call_initiator
from courier_bridge.schemas.call import CallInitiateIn, CallInitiateOut, ErrorOut
from courier_bridge.services.auth_service import AuthService
from courier_bridge.services.call_initiator import CallInitiator

router = APIRouter(prefix="/call", tags=["calls"])

log = structlog.get_logger(__name__)


def bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


ERROR_RESPONSES = {code: {"model": ErrorOut} for code in (400, 401, 403, 404, 500)}


@router.post("/initiate", response_model=CallInitiateOut, response_model_by_alias=True, responses=ERROR_RESPONSES)
async def initiate_call(
    payload: CallInitiateIn,
    authorization: str | None = Header(default=None),
    initiator: CallInitiator = Depends(call_initiator),
    auth: AuthService = Depends(auth_service),
):
    """Ring the authenticated courier, then bridge to the customer behind the business number."""
    log.info("call initiation requested", customer_id=payload.customer_id, has_token=bool(payload.access_token))
    initiator.check_configuration()
    user = await auth.authenticate(payload.access_token or bearer_token(authorization))
    call = await initiator.initiate(user["id"], payload.customer_id)
    return CallInitiateOut(call_sid=call.call_sid)
