from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class CallInitiateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(..., alias="customerId", min_length=1)
    access_token: str | None = Field(default=None, alias="accessToken")


class CallInitiateOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    call_sid: str = Field(..., alias="callSid")
    message: str = "Call initiated successfully"


class ErrorOut(BaseModel):
    error: str
    details: Any = None


class HealthOut(BaseModel):
    twilio_configured: bool
    twilio_connected: bool
    database_connected: bool
    timestamp: str
