# courier_bridge/services/connect_responder.py
from __future__ import annotations
from typing import Optional
import structlog
from twilio.twiml.voice_response import VoiceResponse
from courier_bridge.core.config import Settings
from courier_bridge.services.phone import is_wire_format, mask_phone
from courier_bridge.services.settings_repo import BUSINESS_PHONE, SettingsRepo

log = structlog.get_logger(__name__)

SAY_VOICE = "alice"
SAY_LANGUAGE = "en-US"
APOLOGY_MESSAGE = "We are sorry, this call cannot be connected right now. Please try again later."


def apology_response(message: str = APOLOGY_MESSAGE) -> str:
    vr = VoiceResponse()
    vr.say(message, voice=SAY_VOICE, language=SAY_LANGUAGE)
    vr.hangup()
    return str(vr)


def build_connect_response(customer_phone: Optional[str], business_phone: Optional[str], timeout_seconds: int = 30) -> str:
    """
    TwiML played on the courier leg once it answers: dial the customer with
    the business number as caller ID. Bad input yields an apology, never an error.
    """
    if not is_wire_format(customer_phone):
        log.warning("connect rejected: customer phone invalid", customer_phone=mask_phone(customer_phone))
        return apology_response()
    if not is_wire_format(business_phone):
        log.error("connect rejected: business phone invalid", business_phone=mask_phone(business_phone))
        return apology_response()

    vr = VoiceResponse()
    dial = vr.dial(caller_id=business_phone, timeout=timeout_seconds, record="do-not-record")
    dial.number(customer_phone)
    return str(vr)


async def resolve_business_phone(settings_repo: SettingsRepo, settings: Settings) -> Optional[str]:
    """Stored setting first, environment default second."""
    try:
        stored = await settings_repo.get_value(BUSINESS_PHONE)
    except Exception as e:
        log.warning("business phone setting unavailable, using environment", error=str(e))
        stored = None
    return stored or settings.twilio_phone_number or None
