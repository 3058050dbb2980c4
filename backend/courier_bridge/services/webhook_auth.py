# courier_bridge/services/webhook_auth.py
from __future__ import annotations
from typing import Mapping
from urllib.parse import urlsplit, urlunsplit
import structlog
from starlette.requests import Request
from twilio.request_validator import RequestValidator
from courier_bridge.core.config import Settings

SIGNATURE_HEADER = "X-Twilio-Signature"

log = structlog.get_logger(__name__)


def _strip_query(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def validate(method: str, full_url: str, params: Mapping[str, str] | None, signature: str | None, secret: str | None) -> bool:
    """
    Recompute the provider's HMAC over URL + sorted params and compare.
    POST signs the URL without its query string plus the form body;
    GET signs the full URL including the query string.
    """
    if not signature:
        log.warning("webhook signature header missing")
        return False
    if not secret:
        log.error("webhook secret not configured")
        return False

    validator = RequestValidator(secret)
    if method.upper() == "POST":
        ok = validator.validate(_strip_query(full_url), dict(params or {}), signature)
    else:
        # Twilio signs GET requests over the full URL, query included, with no params
        ok = validator.validate(full_url, {}, signature)
    if not ok:
        log.warning("webhook signature mismatch", method=method.upper(), url=_strip_query(full_url))
    return ok


def signed_url(request: Request, settings: Settings) -> str:
    """The URL the provider called, as it knows it (public base, not the proxy-facing one)."""
    url = settings.public_url(request.url.path)
    if request.url.query:
        url += "?" + request.url.query
    return url


def validate_request(request: Request, params: Mapping[str, str] | None, settings: Settings) -> bool:
    """`params` must be the form already read by the handler; the body stream is consumed once."""
    return validate(
        request.method,
        signed_url(request, settings),
        params,
        request.headers.get(SIGNATURE_HEADER),
        settings.twilio_auth_token,
    )
