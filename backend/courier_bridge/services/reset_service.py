# courier_bridge/services/reset_service.py
from __future__ import annotations
import datetime as dt
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import structlog
from courier_bridge.services.archive_repo import ArchiveRepo, to_archive_row
from courier_bridge.services.calllog_repo import CallLogRepo
from courier_bridge.services.customers_repo import CustomersRepo
from courier_bridge.services.settings_repo import (
    DAILY_RESET_TIME,
    DAILY_RESET_TIMEZONE,
    LAST_RESET_DATE,
    SettingsRepo,
)

log = structlog.get_logger(__name__)

DEFAULT_RESET_TIME = "00:00"
DEFAULT_RESET_TIMEZONE = "Asia/Jerusalem"


@dataclass(frozen=True)
class ResetResult:
    archived_calls: int
    deactivated_customers: int
    reset_date: str


def next_reset_time(reset_time: Optional[str], timezone: Optional[str], now: dt.datetime) -> dt.datetime:
    """Next occurrence of HH:MM in `timezone` strictly after `now` (aware)."""
    try:
        tz = ZoneInfo(timezone or DEFAULT_RESET_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("unknown reset timezone, using default", timezone=timezone)
        tz = ZoneInfo(DEFAULT_RESET_TIMEZONE)
    try:
        hours, minutes = (int(p) for p in (reset_time or DEFAULT_RESET_TIME).split(":", 1))
        candidate_time = dt.time(hours, minutes)
    except ValueError:
        log.warning("bad reset time, using default", reset_time=reset_time)
        candidate_time = dt.time(0, 0)

    local_now = now.astimezone(tz)
    candidate = dt.datetime.combine(local_now.date(), candidate_time, tzinfo=tz)
    if candidate <= local_now:
        candidate = dt.datetime.combine(local_now.date() + dt.timedelta(days=1), candidate_time, tzinfo=tz)
    return candidate


class ResetService:
    def __init__(self, calllogs: CallLogRepo, archive: ArchiveRepo, customers: CustomersRepo, settings_repo: SettingsRepo):
        self.calllogs = calllogs
        self.archive = archive
        self.customers = customers
        self.settings_repo = settings_repo

    async def archive_and_reset(self, today: Optional[dt.date] = None) -> ResetResult:
        """
        Copy every live call log into archived_calls, then delete exactly the
        rows that were copied and deactivate customers. Nothing is deleted
        unless the copy succeeded; rows written during the reset stay live.
        """
        archive_date = (today or dt.datetime.now(dt.timezone.utc).date()).isoformat()
        logs = await self.calllogs.fetch_all()
        archived = await self.archive.insert_many([to_archive_row(row, archive_date) for row in logs])
        log.info("call logs archived", count=archived, archive_date=archive_date)

        try:
            await self.calllogs.delete_by_ids([row["id"] for row in logs if row.get("id")])
        except Exception as e:
            log.error("clearing call logs failed", error=str(e))

        deactivated = 0
        try:
            deactivated = await self.customers.deactivate_all()
        except Exception as e:
            log.error("deactivating customers failed", error=str(e))

        try:
            await self.settings_repo.set_value(LAST_RESET_DATE, archive_date)
        except Exception as e:
            log.error("storing last reset date failed", error=str(e))

        log.info("daily reset completed", archived=archived, deactivated=deactivated)
        return ResetResult(archived_calls=archived, deactivated_customers=deactivated, reset_date=archive_date)

    async def next_reset(self, now: Optional[dt.datetime] = None) -> tuple[dt.datetime, str]:
        reset_time = await self.settings_repo.get_value(DAILY_RESET_TIME)
        timezone = await self.settings_repo.get_value(DAILY_RESET_TIMEZONE) or DEFAULT_RESET_TIMEZONE
        when = next_reset_time(reset_time, timezone, now or dt.datetime.now(dt.timezone.utc))
        return when, timezone
