# courier_bridge/services/status_reconciler.py
from __future__ import annotations
import datetime as dt
from typing import Any, Dict, Optional
import structlog
from courier_bridge.domain.status import CallStatus, PROVIDER_STATUS_MAP, map_provider_status
from courier_bridge.services.calllog_repo import CallLogRepo

log = structlog.get_logger(__name__)

DEFAULT_FAILURE_MESSAGE = "Call failed"


def _parse_duration(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        log.warning("unparseable call duration", raw=str(raw))
        return None


class StatusReconciler:
    """
    Applies provider status events to call_logs. Last received event wins:
    a late "ringing" after "completed" is stored as "ringing".
    """

    def __init__(self, repo: CallLogRepo):
        self.repo = repo

    async def apply_status(
        self,
        call_sid: str,
        new_status: str,
        duration_seconds: Optional[int] = None,
        error_text: Optional[str] = None,
    ) -> Dict[str, Any]:
        completed = new_status == CallStatus.COMPLETED.value
        failed = new_status == CallStatus.FAILED.value
        # status, duration and error are always written together so that
        # redelivery of the same event converges on the same row
        patch = {
            "call_status": new_status,
            "call_duration": duration_seconds if completed else None,
            "error_message": (error_text or DEFAULT_FAILURE_MESSAGE) if failed else None,
            "updated_at": dt.datetime.now(dt.timezone.utc).isoformat(),
        }
        row = await self.repo.upsert_by_sid(call_sid, patch)
        log.info(
            "call status applied",
            call_sid=call_sid,
            call_status=new_status,
            call_duration=patch["call_duration"],
        )
        return row

    async def handle_provider_event(self, form: Dict[str, Any]) -> Dict[str, Any]:
        """Map a raw status callback form (CallSid, CallStatus, ...) and apply it."""
        provider_status = (form.get("CallStatus") or "").strip()
        new_status = map_provider_status(provider_status)
        if provider_status.lower() not in PROVIDER_STATUS_MAP:
            log.warning("unrecognized provider status stored verbatim", call_status=provider_status)
        return await self.apply_status(
            form["CallSid"],
            new_status,
            duration_seconds=_parse_duration(form.get("CallDuration")),
            error_text=form.get("ErrorMessage"),
        )
