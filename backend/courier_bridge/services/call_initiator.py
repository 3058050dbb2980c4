# courier_bridge/services/call_initiator.py
from __future__ import annotations
import datetime as dt
from dataclasses import dataclass
from typing import Any, Awaitable, Dict
from urllib.parse import urlencode, urlsplit
import structlog
from courier_bridge.core.config import Settings
from courier_bridge.core.errors import (
    AuthzError,
    ConfigurationError,
    InactiveCustomerError,
    InsecureWebhookError,
    InvalidPhoneFormatError,
    MissingPhoneError,
    NotFoundError,
    ProviderError,
    UnreachableWebhookError,
)
from courier_bridge.domain.interfaces.voice_provider import VoiceProvider
from courier_bridge.domain.status import STATUS_CALLBACK_EVENTS, CallStatus
from courier_bridge.services.calllog_repo import CallLogRepo
from courier_bridge.services.customers_repo import CustomersRepo
from courier_bridge.services.phone import is_wire_format, mask_phone
from courier_bridge.services.profiles_repo import ProfilesRepo

log = structlog.get_logger(__name__)

COURIER_ROLE = "courier"
CONNECT_PATH = "/call/connect"
STATUS_PATH = "/call/status"
LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}


@dataclass(frozen=True)
class InitiatedCall:
    call_sid: str
    status: str


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def agent_name_for(profile: Dict[str, Any]) -> str:
    return profile.get("email") or f"Courier {str(profile['id'])[:8]}"


def is_public_host(url: str) -> bool:
    host = (urlsplit(url).hostname or "").lower()
    if not host or host in LOOPBACK_HOSTS or host.endswith(".localhost"):
        return False
    return not host.startswith("127.")


class CallInitiator:
    """
    Places a masked call: the provider rings the courier first and only
    dials the customer (via the connect callback) once the courier answers.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        profiles: ProfilesRepo,
        customers: CustomersRepo,
        calllogs: CallLogRepo,
        provider: VoiceProvider,
    ):
        self.settings = settings
        self.profiles = profiles
        self.customers = customers
        self.calllogs = calllogs
        self.provider = provider

    def check_configuration(self) -> None:
        if not self.settings.twilio_configured:
            raise ConfigurationError("Twilio configuration is missing. Please check environment variables.")

    async def _courier(self, courier_id: str) -> Dict[str, Any]:
        profile = await self.profiles.get(courier_id)
        if not profile:
            raise AuthzError("User profile not found")
        if profile.get("role") != COURIER_ROLE:
            log.warning("call initiation by non-courier", user_id=courier_id, role=profile.get("role"))
            raise AuthzError("Only couriers can initiate calls")
        return profile

    def _courier_phone(self, profile: Dict[str, Any]) -> str:
        phone = profile.get("phone_number") or self.settings.courier_phone_number
        if not phone:
            raise MissingPhoneError("Courier phone number not configured")
        if not is_wire_format(phone):
            raise InvalidPhoneFormatError("Courier phone number must be in E.164 format (e.g., +1234567890)")
        return phone

    async def _customer(self, customer_id: str) -> Dict[str, Any]:
        customer = await self.customers.get(customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        phone = customer.get("phone_number")
        if phone and not is_wire_format(phone):
            raise InvalidPhoneFormatError("Customer phone number is not in valid E.164 format")
        if not customer.get("is_active"):
            raise InactiveCustomerError("Customer is inactive")
        return customer

    def _callback_urls(self, customer: Dict[str, Any], courier_id: str) -> tuple[str, str]:
        query = {"customerId": customer["id"], "courierId": courier_id}
        if customer.get("phone_number"):
            query = {"customerPhone": customer["phone_number"], **query}
        connect_url = self.settings.public_url(CONNECT_PATH) + "?" + urlencode(query)
        status_url = self.settings.public_url(STATUS_PATH)

        if not is_public_host(connect_url):
            raise UnreachableWebhookError(
                "Twilio webhook URL must be publicly accessible. For local development, use ngrok or deploy to a public URL.",
                details=f"Current base URL: {self.settings.app_url}",
            )
        if self.settings.is_production and urlsplit(connect_url).scheme != "https":
            raise InsecureWebhookError("Webhook URL must use HTTPS in production")
        return connect_url, status_url

    async def _record(self, write: Awaitable[Any], call_status: str) -> None:
        # the call outcome is already decided; a failed log write is only reported
        try:
            await write
        except Exception as e:
            log.error("call log write failed", call_status=call_status, error=str(e))

    async def initiate(self, courier_id: str, customer_id: str) -> InitiatedCall:
        self.check_configuration()
        profile = await self._courier(courier_id)
        courier_phone = self._courier_phone(profile)
        customer = await self._customer(customer_id)
        connect_url, status_url = self._callback_urls(customer, courier_id)

        base_row = {
            "customer_id": customer["id"],
            "customer_name": customer.get("name"),
            "customer_phone_masked": mask_phone(customer.get("phone_number")),
            "courier_id": courier_id,
            "agent_name": agent_name_for(profile),
        }

        log.info(
            "initiating call",
            courier_id=courier_id,
            customer_id=customer["id"],
            to=mask_phone(courier_phone),
        )
        try:
            call = await self.provider.create_call(
                to=courier_phone,
                from_=self.settings.twilio_phone_number,
                url=connect_url,
                status_callback=status_url,
                status_callback_events=STATUS_CALLBACK_EVENTS,
            )
        except ProviderError as e:
            log.error("call initiation failed", customer_id=customer["id"], error=e.message, code=e.code)
            await self._record(self.calllogs.insert({
                **base_row,
                "call_status": CallStatus.FAILED.value,
                "call_timestamp": _now_iso(),
                "error_message": e.message,
            }), CallStatus.FAILED.value)
            raise ProviderError(
                user_message(e), code=e.code, http_status=e.http_status, details=e.message
            ) from e

        call_sid = call["sid"]
        # call_status is left to the column default ("attempted") so that a
        # status callback that already landed for this sid is not overwritten
        await self._record(self.calllogs.upsert_by_sid(call_sid, {
            **base_row,
            "call_timestamp": _now_iso(),
        }), CallStatus.ATTEMPTED.value)
        log.info("call initiated", call_sid=call_sid, provider_status=call.get("status"))
        return InitiatedCall(call_sid=call_sid, status=CallStatus.ATTEMPTED.value)


def user_message(e: ProviderError) -> str:
    msg = e.message or "Unknown error"
    if "ConnectError" in msg or "getaddrinfo" in msg:
        return "Network error: Unable to connect to Twilio. Please check your internet connection and try again."
    if "Timeout" in msg or "timeout" in msg:
        return "Connection timeout: Twilio service is not responding. Please try again."
    if e.http_status == 401:
        return "Authentication failed: Invalid Twilio credentials. Please check your environment variables."
    if e.http_status == 400:
        return f"Invalid request: {msg}"
    return f"Failed to initiate call: {msg}"
