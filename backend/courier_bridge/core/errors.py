from __future__ import annotations
from typing import Any


class CallBridgeError(Exception):
    """Base class for errors surfaced to API callers as `{error, details?}`."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ConfigurationError(CallBridgeError):
    status_code = 400


class AuthnError(CallBridgeError):
    status_code = 401


class AuthzError(CallBridgeError):
    status_code = 403


class ValidationError(CallBridgeError):
    status_code = 400


class MissingPhoneError(ValidationError):
    pass


class InvalidPhoneFormatError(ValidationError):
    pass


class NotFoundError(CallBridgeError):
    status_code = 404


class InactiveResourceError(CallBridgeError):
    status_code = 400


class InactiveCustomerError(InactiveResourceError):
    pass


class UnreachableWebhookError(CallBridgeError):
    status_code = 400


class InsecureWebhookError(CallBridgeError):
    status_code = 400


class ProviderError(CallBridgeError):
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, http_status: int | None = None, details: Any = None):
        super().__init__(message, details)
        self.code = code
        self.http_status = http_status


class PersistenceError(CallBridgeError):
    status_code = 500
