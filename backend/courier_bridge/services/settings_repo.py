# courier_bridge/services/settings_repo.py
from __future__ import annotations
import datetime as dt
from typing import Any, Dict, List, Optional
from courier_bridge.services.calllog_repo import raise_for_store
from courier_bridge.services.supabase import SupabaseClient

SETTINGS_PATH = "/settings"

BUSINESS_PHONE = "business_phone"
INCOMING_CALL_MESSAGE = "incoming_call_message"
DAILY_RESET_TIME = "daily_reset_time"
DAILY_RESET_TIMEZONE = "daily_reset_timezone"
LAST_RESET_DATE = "last_reset_date"


class SettingsRepo:
    """Runtime key/value settings; read on every request, never cached."""

    def __init__(self, db: SupabaseClient | None = None):
        self.db = db or SupabaseClient()

    async def get_value(self, key: str) -> Optional[str]:
        async with self.db.client() as c:
            r = await c.get(SETTINGS_PATH, params={"select": "value", "key": f"eq.{key}", "limit": "1"})
        raise_for_store(r, f"settings read {key}")
        rows = r.json() or []
        value = rows[0].get("value") if rows else None
        return value or None

    async def list(self) -> List[Dict[str, Any]]:
        async with self.db.client() as c:
            r = await c.get(SETTINGS_PATH, params={"select": "key,value,description,updated_at", "order": "key.asc"})
        raise_for_store(r, "settings list")
        return r.json() or []

    async def set_value(self, key: str, value: str, updated_by: str | None = None) -> Dict[str, Any]:
        row = {
            "key": key,
            "value": value,
            "updated_at": dt.datetime.now(dt.timezone.utc).isoformat(),
            "updated_by": updated_by,
        }
        async with self.db.client() as c:
            r = await c.post(
                SETTINGS_PATH,
                params={"on_conflict": "key"},
                headers={"Prefer": "resolution=merge-duplicates,return=representation"},
                json=[row],
            )
        raise_for_store(r, f"settings write {key}")
        rows = r.json() or []
        return rows[0] if rows else row

    async def ping(self) -> bool:
        async with self.db.client() as c:
            r = await c.get(SETTINGS_PATH, params={"select": "key", "limit": "1"})
        return r.status_code < 400
