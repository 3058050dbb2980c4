from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class AdminTokenIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str | None = Field(default=None, alias="accessToken")


class DeleteCourierIn(AdminTokenIn):
    courier_id: str = Field(..., alias="courierId", min_length=1)


class ResetOut(BaseModel):
    success: bool = True
    message: str = "Daily reset completed successfully"
    archived_calls: int
    reset_date: str


class NextResetOut(BaseModel):
    next_reset: datetime
    timezone: str


class SettingIn(BaseModel):
    value: str


class SettingOut(BaseModel):
    key: str
    value: str
    description: str | None = None
    updated_at: datetime | None = None


class CallLogOut(BaseModel):
    id: str
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone_masked: str | None = None
    courier_id: str | None = None
    agent_name: str | None = None
    call_status: str
    call_timestamp: datetime | None = None
    call_duration: int | None = None
    twilio_call_sid: str | None = None
    error_message: str | None = None
