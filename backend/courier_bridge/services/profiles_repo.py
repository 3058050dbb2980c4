# courier_bridge/services/profiles_repo.py
from __future__ import annotations
from typing import Any, Dict, Optional
from courier_bridge.services.calllog_repo import raise_for_store
from courier_bridge.services.supabase import SupabaseClient

PROFILES_PATH = "/profiles"


class ProfilesRepo:
    def __init__(self, db: SupabaseClient | None = None):
        self.db = db or SupabaseClient()

    async def get(self, profile_id: str) -> Optional[Dict[str, Any]]:
        async with self.db.client() as c:
            r = await c.get(
                PROFILES_PATH,
                params={"select": "id,role,email,phone_number", "id": f"eq.{profile_id}", "limit": "1"},
            )
        raise_for_store(r, "profiles lookup")
        rows = r.json() or []
        return rows[0] if rows else None

    async def delete(self, profile_id: str) -> bool:
        """Return False when no profile matched."""
        async with self.db.client() as c:
            r = await c.delete(PROFILES_PATH, params={"id": f"eq.{profile_id}"})
        raise_for_store(r, "profiles delete")
        return bool(r.json() or [])
