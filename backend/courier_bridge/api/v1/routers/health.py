# courier_bridge/api/v1/routers/health.py
from __future__ import annotations
import datetime as dt

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from courier_bridge.api.v1.dependencies import get_settings, settings_repo, voice_provider
from courier_bridge.core.config import Settings
from courier_bridge.domain.interfaces.voice_provider import VoiceProvider
from courier_bridge.schemas.call import HealthOut
from courier_bridge.services.settings_repo import SettingsRepo

router = APIRouter(tags=["health"])

log = structlog.get_logger(__name__)


@router.get("/health", response_model=HealthOut, responses={503: {"model": HealthOut}})
async def health(
    cfg: Settings = Depends(get_settings),
    provider: VoiceProvider = Depends(voice_provider),
    settings_store: SettingsRepo = Depends(settings_repo),
):
    checks = HealthOut(
        twilio_configured=cfg.twilio_configured,
        twilio_connected=False,
        database_connected=False,
        timestamp=dt.datetime.now(dt.timezone.utc).isoformat(),
    )

    if checks.twilio_configured:
        try:
            await provider.fetch_account()
            checks.twilio_connected = True
        except Exception as e:
            log.warning("health: twilio unreachable", error=str(e))

    try:
        checks.database_connected = await settings_store.ping()
    except Exception as e:
        log.warning("health: database unreachable", error=str(e))

    healthy = checks.twilio_configured and checks.twilio_connected and checks.database_connected
    return JSONResponse(checks.model_dump(), status_code=200 if healthy else 503)
