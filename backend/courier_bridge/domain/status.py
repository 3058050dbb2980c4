from __future__ import annotations
from enum import Enum


class CallStatus(str, Enum):
    ATTEMPTED = "attempted"
    RINGING = "ringing"
    CONNECTED = "connected"
    COMPLETED = "completed"
    FAILED = "failed"
    NO_ANSWER = "no-answer"
    BUSY = "busy"
    INCOMING_BLOCKED = "incoming_blocked"


# Twilio CallStatus -> call_logs.call_status
PROVIDER_STATUS_MAP: dict[str, CallStatus] = {
    "queued": CallStatus.ATTEMPTED,
    "ringing": CallStatus.RINGING,
    "in-progress": CallStatus.CONNECTED,
    "completed": CallStatus.COMPLETED,
    "busy": CallStatus.BUSY,
    "no-answer": CallStatus.NO_ANSWER,
    "failed": CallStatus.FAILED,
    "canceled": CallStatus.FAILED,
}

# Events the status callback subscribes to when a call is placed.
STATUS_CALLBACK_EVENTS = [
    "initiated", "ringing", "answered", "completed",
    "busy", "no-answer", "failed", "canceled",
]


def map_provider_status(provider_status: str) -> str:
    """Unknown provider statuses are stored verbatim."""
    mapped = PROVIDER_STATUS_MAP.get((provider_status or "").strip().lower())
    return mapped.value if mapped else provider_status
