# courier_bridge/services/customers_repo.py
from __future__ import annotations
from typing import Any, Dict, Optional
from courier_bridge.services.calllog_repo import raise_for_store
from courier_bridge.services.supabase import SupabaseClient

CUSTOMERS_PATH = "/customers"


class CustomersRepo:
    def __init__(self, db: SupabaseClient | None = None):
        self.db = db or SupabaseClient()

    async def get(self, customer_id: str) -> Optional[Dict[str, Any]]:
        async with self.db.client() as c:
            r = await c.get(
                CUSTOMERS_PATH,
                params={"select": "id,name,phone_number,is_active", "id": f"eq.{customer_id}", "limit": "1"},
            )
        raise_for_store(r, "customers lookup")
        rows = r.json() or []
        return rows[0] if rows else None

    async def deactivate_all(self) -> int:
        async with self.db.client() as c:
            r = await c.patch(CUSTOMERS_PATH, params={"is_active": "eq.true"}, json={"is_active": False})
        raise_for_store(r, "customers deactivate")
        return len(r.json() or [])
