# courier_bridge/api/v1/routers/call_webhooks.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
import structlog

from courier_bridge.api.v1.dependencies import get_settings, incoming_responder, settings_repo, status_reconciler
from courier_bridge.core.config import Settings
from courier_bridge.services.connect_responder import apology_response, build_connect_response, resolve_business_phone
from courier_bridge.services.incoming_responder import IncomingCallResponder, build_incoming_response
from courier_bridge.services.phone import mask_phone
from courier_bridge.services.settings_repo import SettingsRepo
from courier_bridge.services.status_reconciler import StatusReconciler
from courier_bridge.services.webhook_auth import validate_request

router = APIRouter(prefix="/call", tags=["call-webhooks"])

log = structlog.get_logger(__name__)

TWIML_MEDIA_TYPE = "text/xml"


def twiml(xml: str) -> Response:
    return Response(content=xml, status_code=200, media_type=TWIML_MEDIA_TYPE)


@router.api_route("/connect", methods=["GET", "POST"])
async def connect_call(
    request: Request,
    cfg: Settings = Depends(get_settings),
    settings_store: SettingsRepo = Depends(settings_repo),
):
    """
    Fetched by Twilio when the courier answers. Not signature-checked: the URL
    is single-use and built by /call/initiate moments earlier.
    """
    params = request.query_params
    customer_phone = params.get("customerPhone")
    log.info(
        "connect callback",
        customer_id=params.get("customerId"),
        courier_id=params.get("courierId"),
        customer_phone=mask_phone(customer_phone),
    )
    try:
        business_phone = await resolve_business_phone(settings_store, cfg)
        return twiml(build_connect_response(customer_phone, business_phone, cfg.dial_timeout_seconds))
    except Exception as e:
        log.exception("connect callback failed", error=str(e))
        return twiml(apology_response())


@router.post("/status")
async def call_status(
    request: Request,
    cfg: Settings = Depends(get_settings),
    reconciler: StatusReconciler = Depends(status_reconciler),
):
    # read once; the same mapping feeds the signature check and the update
    form = dict(await request.form())
    if cfg.enforce_webhook_signature and not validate_request(request, form, cfg):
        log.error("status callback rejected: invalid signature")
        return PlainTextResponse("Unauthorized", status_code=401)

    call_sid = form.get("CallSid")
    log.info("status callback", call_sid=call_sid, call_status=form.get("CallStatus"), duration=form.get("CallDuration"))
    if not call_sid:
        return PlainTextResponse("Missing CallSid", status_code=400)
    if not form.get("CallStatus"):
        return PlainTextResponse("Missing CallStatus", status_code=400)

    try:
        await reconciler.handle_provider_event(form)
    except Exception as e:
        log.exception("status callback failed", call_sid=call_sid, error=str(e))
        return PlainTextResponse("Internal Server Error", status_code=500)
    return PlainTextResponse("OK", status_code=200)


@router.post("/incoming")
async def incoming_call(
    request: Request,
    cfg: Settings = Depends(get_settings),
    responder: IncomingCallResponder = Depends(incoming_responder),
):
    try:
        form = dict(await request.form())
        if cfg.enforce_webhook_signature and not validate_request(request, form, cfg):
            log.error("incoming callback rejected: invalid signature")
            return PlainTextResponse("Unauthorized", status_code=401)
        xml = await responder.handle(form.get("From"), form.get("To"), form.get("CallSid"))
        return twiml(xml)
    except Exception as e:
        log.exception("incoming callback failed", error=str(e))
        return twiml(build_incoming_response())
