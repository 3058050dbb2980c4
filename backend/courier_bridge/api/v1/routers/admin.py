# courier_bridge/api/v1/routers/admin.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request
import structlog

from courier_bridge.api.v1.dependencies import (
    auth_service,
    calllog_repo,
    get_settings,
    profiles_repo,
    reset_service,
    settings_repo,
    supabase,
)
from courier_bridge.api.v1.routers.calls import bearer_token
from courier_bridge.core.config import Settings
from courier_bridge.core.errors import AuthzError, InvalidPhoneFormatError, NotFoundError
from courier_bridge.schemas.admin import (
    CallLogOut,
    DeleteCourierIn,
    NextResetOut,
    ResetOut,
    SettingIn,
    SettingOut,
)
from courier_bridge.services.auth_service import AuthService, is_cron_request
from courier_bridge.services.calllog_repo import CallLogRepo
from courier_bridge.services.phone import is_valid_format, is_wire_format, to_wire_format
from courier_bridge.services.profiles_repo import ProfilesRepo
from courier_bridge.services.reset_service import ResetService
from courier_bridge.services.settings_repo import BUSINESS_PHONE, SettingsRepo
from courier_bridge.services.supabase import SupabaseClient

router = APIRouter(prefix="/admin", tags=["admin"])

log = structlog.get_logger(__name__)


async def _body_token(request: Request) -> str | None:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body.get("accessToken") if isinstance(body, dict) else None


async def require_admin(
    authorization: str | None = Header(default=None),
    auth: AuthService = Depends(auth_service),
) -> dict:
    return await auth.require_admin(bearer_token(authorization))


@router.post("/reset", response_model=ResetOut)
async def reset(
    request: Request,
    authorization: str | None = Header(default=None),
    x_cron_secret: str | None = Header(default=None),
    cfg: Settings = Depends(get_settings),
    auth: AuthService = Depends(auth_service),
    service: ResetService = Depends(reset_service),
):
    """Archive and clear today's call logs and deactivate customers. Admin session or cron secret."""
    if is_cron_request(x_cron_secret, cfg.cron_secret):
        log.info("reset requested by cron")
    else:
        token = await _body_token(request) or bearer_token(authorization)
        profile = await auth.require_admin(token)
        log.info("reset requested by admin", user_id=profile["id"])
    result = await service.archive_and_reset()
    return ResetOut(archived_calls=result.archived_calls, reset_date=result.reset_date)


@router.get("/reset/next", response_model=NextResetOut)
async def next_reset(_: dict = Depends(require_admin), service: ResetService = Depends(reset_service)):
    when, timezone = await service.next_reset()
    return NextResetOut(next_reset=when, timezone=timezone)


@router.get("/call-logs", response_model=list[CallLogOut])
async def call_logs(
    limit: int = Query(100, ge=1, le=1000),
    _: dict = Depends(require_admin),
    repo: CallLogRepo = Depends(calllog_repo),
):
    return await repo.list_recent(limit=limit)


@router.get("/call-logs/{call_sid}", response_model=CallLogOut)
async def call_log(
    call_sid: str,
    _: dict = Depends(require_admin),
    repo: CallLogRepo = Depends(calllog_repo),
):
    row = await repo.get_by_sid(call_sid)
    if not row:
        raise NotFoundError("Call log not found")
    return row


@router.get("/settings", response_model=list[SettingOut])
async def list_settings(_: dict = Depends(require_admin), store: SettingsRepo = Depends(settings_repo)):
    return await store.list()


@router.put("/settings/{key}", response_model=SettingOut)
async def update_setting(
    key: str,
    payload: SettingIn,
    admin: dict = Depends(require_admin),
    store: SettingsRepo = Depends(settings_repo),
):
    value = payload.value.strip()
    if key == BUSINESS_PHONE and value:
        wire = to_wire_format(value)
        if not is_valid_format(value) or not is_wire_format(wire):
            raise InvalidPhoneFormatError("Business phone number must be in E.164 format (e.g., +1234567890)")
        value = wire
    row = await store.set_value(key, value, updated_by=admin["id"])
    log.info("setting updated", key=key, user_id=admin["id"])
    return row


@router.post("/delete-courier")
async def delete_courier(
    payload: DeleteCourierIn,
    authorization: str | None = Header(default=None),
    auth: AuthService = Depends(auth_service),
    profiles: ProfilesRepo = Depends(profiles_repo),
    db: SupabaseClient = Depends(supabase),
):
    admin = await auth.require_admin(payload.access_token or bearer_token(authorization))
    if str(admin["id"]) == payload.courier_id:
        raise AuthzError("You cannot delete your own account")

    if not await profiles.delete(payload.courier_id):
        raise NotFoundError("Courier not found")
    try:
        if not await db.delete_auth_user(payload.courier_id):
            log.warning("auth user not deleted", courier_id=payload.courier_id)
    except Exception as e:
        log.warning("auth user deletion failed", courier_id=payload.courier_id, error=str(e))
    log.info("courier deleted", courier_id=payload.courier_id, by=admin["id"])
    return {"success": True, "message": "Courier deleted successfully"}
