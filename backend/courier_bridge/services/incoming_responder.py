# courier_bridge/services/incoming_responder.py
from __future__ import annotations
import datetime as dt
from typing import Optional
import structlog
from twilio.twiml.voice_response import VoiceResponse
from courier_bridge.domain.status import CallStatus
from courier_bridge.services.calllog_repo import CallLogRepo
from courier_bridge.services.connect_responder import SAY_LANGUAGE, SAY_VOICE
from courier_bridge.services.phone import mask_phone
from courier_bridge.services.settings_repo import INCOMING_CALL_MESSAGE, SettingsRepo

log = structlog.get_logger(__name__)

DEFAULT_INCOMING_MESSAGE = "This number is for outbound calls only. Please wait for our agent to call you."
INCOMING_LOG_NOTE = "Incoming call - message played"


def build_incoming_response(message: Optional[str] = None) -> str:
    vr = VoiceResponse()
    vr.say(message or DEFAULT_INCOMING_MESSAGE, voice=SAY_VOICE, language=SAY_LANGUAGE)
    vr.hangup()
    return str(vr)


class IncomingCallResponder:
    def __init__(self, settings_repo: SettingsRepo, calllog_repo: CallLogRepo):
        self.settings_repo = settings_repo
        self.calllog_repo = calllog_repo

    async def _message(self) -> str:
        try:
            return await self.settings_repo.get_value(INCOMING_CALL_MESSAGE) or DEFAULT_INCOMING_MESSAGE
        except Exception as e:
            log.warning("incoming message setting unavailable, using default", error=str(e))
            return DEFAULT_INCOMING_MESSAGE

    async def _log_blocked(self, caller: Optional[str], call_sid: Optional[str]) -> None:
        row = {
            "call_status": CallStatus.INCOMING_BLOCKED.value,
            "customer_phone_masked": mask_phone(caller),
            "call_timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
            "error_message": INCOMING_LOG_NOTE,
        }
        try:
            if call_sid:
                await self.calllog_repo.upsert_by_sid(call_sid, row)
            else:
                await self.calllog_repo.insert(row)
        except Exception as e:
            log.error("failed to log incoming call", call_sid=call_sid, error=str(e))

    async def handle(self, caller: Optional[str], called: Optional[str], call_sid: Optional[str]) -> str:
        log.info("incoming call blocked", call_sid=call_sid, caller=mask_phone(caller), called=mask_phone(called))
        message = await self._message()
        await self._log_blocked(caller, call_sid)
        return build_incoming_response(message)
