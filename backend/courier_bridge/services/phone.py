# courier_bridge/services/phone.py
from __future__ import annotations
import re

COUNTRY_CODE = "+972"
TRUNK_PREFIX = "0"

SEPARATORS_RE = re.compile(r"[\s\-.()]")
WIRE_RE = re.compile(r"^\+[1-9]\d{0,14}$")
STRICT_WIRE_RE = re.compile(r"^\+[1-9]\d{1,14}$")
LOCAL_RE = re.compile(r"^0\d{8,9}$")
NATIONAL_RE = re.compile(r"^\d{9}$")


def _clean(phone: str | None) -> str:
    return SEPARATORS_RE.sub("", (phone or "").strip())


def to_display(phone: str | None) -> str:
    """+972501234567 -> 050-123-4567; numbers outside the home country pass through."""
    if not phone:
        return ""
    if not phone.startswith(COUNTRY_CODE):
        return phone
    national = phone[len(COUNTRY_CODE):]
    if len(national) == 9:
        return f"{TRUNK_PREFIX}{national[:2]}-{national[2:5]}-{national[5:]}"
    return TRUNK_PREFIX + national


def to_wire_format(phone: str | None) -> str:
    """
    Canonical leading-"+" form used by the provider and storage.
    Accepts 050-123-4567, 0501234567, 501234567 and +972501234567.
    Anything already starting with "+" is kept as-is.
    """
    cleaned = _clean(phone)
    if not cleaned:
        return ""
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith(TRUNK_PREFIX):
        return COUNTRY_CODE + cleaned[len(TRUNK_PREFIX):]
    if NATIONAL_RE.match(cleaned):
        return COUNTRY_CODE + cleaned
    return "+" + cleaned


def is_valid_format(phone: str | None) -> bool:
    cleaned = _clean(phone)
    if not cleaned:
        return False
    return bool(WIRE_RE.match(cleaned) or LOCAL_RE.match(cleaned) or NATIONAL_RE.match(cleaned))


def is_wire_format(phone: str | None) -> bool:
    """Strict check used right before handing a number to the provider."""
    return bool(phone and STRICT_WIRE_RE.match(phone))


def mask_phone(phone: str | None) -> str:
    if not phone or len(phone) < 4:
        return "****"
    return "****" + phone[-4:]
