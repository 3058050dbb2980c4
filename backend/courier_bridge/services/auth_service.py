# courier_bridge/services/auth_service.py
from __future__ import annotations
from typing import Any, Dict, Optional
import hmac
import structlog
from courier_bridge.core.errors import AuthnError, AuthzError
from courier_bridge.services.profiles_repo import ProfilesRepo
from courier_bridge.services.supabase import SupabaseClient

log = structlog.get_logger(__name__)

ADMIN_ROLE = "admin"


class AuthService:
    """Session tokens are issued by Supabase auth; roles live in `profiles`."""

    def __init__(self, db: SupabaseClient, profiles: ProfilesRepo):
        self.db = db
        self.profiles = profiles

    async def authenticate(self, access_token: Optional[str]) -> Dict[str, Any]:
        if not access_token:
            raise AuthnError("Unauthorized - Please log in", details="Session not found")
        user = await self.db.get_auth_user(access_token)
        if not user:
            raise AuthnError("Unauthorized - Please log in", details="Invalid or expired session")
        return user

    async def require_admin(self, access_token: Optional[str]) -> Dict[str, Any]:
        user = await self.authenticate(access_token)
        profile = await self.profiles.get(user["id"])
        if not profile or profile.get("role") != ADMIN_ROLE:
            log.warning("admin action refused", user_id=user["id"], role=(profile or {}).get("role"))
            raise AuthzError("Forbidden - Admin access required")
        return profile


def is_cron_request(header_value: Optional[str], cron_secret: str) -> bool:
    if not cron_secret or not header_value:
        return False
    return hmac.compare_digest(header_value, cron_secret)
