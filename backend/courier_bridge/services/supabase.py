# courier_bridge/services/supabase.py
from __future__ import annotations
import httpx
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
from courier_bridge.core.config import Settings, settings as default_settings


class SupabaseClient:
    """Thin PostgREST/GoTrue client using the service-role key."""

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings or default_settings
        self.root_url = self.settings.supabase_url.rstrip("/")
        self.base_url = self.root_url + "/rest/v1"
        self.transport = transport
        self.headers = {
            "apikey": self.settings.supabase_service_key,
            "Authorization": f"Bearer {self.settings.supabase_service_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Prefer": "return=representation",
        }

    @asynccontextmanager
    async def client(self):
        async with httpx.AsyncClient(
            base_url=self.base_url, headers=self.headers, timeout=30.0, transport=self.transport
        ) as c:
            yield c

    async def get_auth_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Resolve a session access token to its auth user, or None if the token is not accepted."""
        headers = {
            "apikey": self.settings.supabase_anon_key or self.settings.supabase_service_key,
            "Authorization": f"Bearer {access_token}",
        }
        async with httpx.AsyncClient(
            base_url=self.root_url, headers=headers, timeout=15.0, transport=self.transport
        ) as c:
            r = await c.get("/auth/v1/user")
        if r.status_code >= 400:
            return None
        user = r.json() or {}
        return user if user.get("id") else None

    async def delete_auth_user(self, user_id: str) -> bool:
        async with httpx.AsyncClient(
            base_url=self.root_url, headers=self.headers, timeout=15.0, transport=self.transport
        ) as c:
            r = await c.delete(f"/auth/v1/admin/users/{user_id}")
        return r.status_code < 400
