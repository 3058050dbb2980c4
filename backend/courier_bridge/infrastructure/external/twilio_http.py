from __future__ import annotations
import httpx
import structlog
from typing import Any, Sequence
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_incrementing
from courier_bridge.core.config import Settings, settings as default_settings
from courier_bridge.core.errors import ProviderError

log = structlog.get_logger(__name__)


class TwilioAPIError(Exception):
    def __init__(self, status_code: int, message: str, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


def is_transient(exc: BaseException) -> bool:
    """Network failures, throttling and 5xx are retried; other 4xx fail fast."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, TwilioAPIError):
        return exc.status_code == 429 or exc.status_code >= 500
    return False


class TwilioHTTPClient:
    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings or default_settings
        self.account_sid = self.settings.twilio_account_sid
        self.auth = (self.settings.twilio_account_sid, self.settings.twilio_auth_token)
        self.base_url = f"{self.settings.twilio_base_url.rstrip('/')}/2010-04-01"
        self.transport = transport

    def _retrying(self) -> AsyncRetrying:
        step = self.settings.provider_retry_delay_seconds
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.provider_retry_attempts),
            wait=wait_incrementing(start=step, increment=step),
            retry=retry_if_exception(is_transient),
            reraise=True,
        )

    async def _request(self, method: str, path: str, data: Any = None) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url, auth=self.auth, timeout=20, transport=self.transport
        ) as client:
            r = await client.request(method, path, data=data, headers={"Accept": "application/json"})
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            raise TwilioAPIError(
                r.status_code,
                body.get("message") or r.text or f"HTTP {r.status_code}",
                str(body["code"]) if body.get("code") is not None else None,
            )
        return r.json()

    async def create_call(self, *, to:str, from_:str, url:str, status_callback:str, status_callback_events:Sequence[str]) -> dict:
        payload = {
            "To": to,
            "From": from_,
            "Url": url,
            "Method": "POST",
            "StatusCallback": status_callback,
            "StatusCallbackMethod": "POST",
            "StatusCallbackEvent": list(status_callback_events),
        }
        try:
            async for attempt in self._retrying():
                with attempt:
                    n = attempt.retry_state.attempt_number
                    if n > 1:
                        log.warning("twilio create_call retry", attempt=n)
                    return await self._request("POST", f"/Accounts/{self.account_sid}/Calls.json", data=payload)
        except TwilioAPIError as e:
            raise ProviderError(e.message, code=e.code, http_status=e.status_code) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{type(e).__name__}: {e}") from e
        raise ProviderError("Call creation failed")

    async def fetch_account(self) -> dict:
        try:
            return await self._request("GET", f"/Accounts/{self.account_sid}.json")
        except TwilioAPIError as e:
            raise ProviderError(e.message, code=e.code, http_status=e.status_code) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{type(e).__name__}: {e}") from e
