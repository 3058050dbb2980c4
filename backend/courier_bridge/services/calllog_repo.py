from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
import httpx
from courier_bridge.core.errors import PersistenceError
from courier_bridge.services.supabase import SupabaseClient

CALL_LOGS_PATH = "/call_logs"
UPSERT_PREFER = "resolution=merge-duplicates,return=representation"
DELETE_BATCH = 200


def raise_for_store(r: httpx.Response, action: str) -> None:
    if r.status_code >= 400:
        raise PersistenceError(f"{action} failed", details={"status": r.status_code, "body": r.text})


class CallLogRepo:
    def __init__(self, db: SupabaseClient | None = None):
        self.db = db or SupabaseClient()

    async def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        async with self.db.client() as c:
            r = await c.post(CALL_LOGS_PATH, json=[row])
        raise_for_store(r, "call_logs insert")
        rows = r.json() or []
        return rows[0] if rows else row

    async def upsert_by_sid(self, call_sid: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Single-statement insert-or-update keyed on the unique twilio_call_sid
        column, so concurrent redeliveries for one call never create two rows.
        """
        row = {**fields, "twilio_call_sid": call_sid}
        async with self.db.client() as c:
            r = await c.post(
                CALL_LOGS_PATH,
                params={"on_conflict": "twilio_call_sid"},
                headers={"Prefer": UPSERT_PREFER},
                json=[row],
            )
        raise_for_store(r, "call_logs upsert")
        rows = r.json() or []
        return rows[0] if rows else row

    async def get_by_sid(self, call_sid: str) -> Optional[Dict[str, Any]]:
        async with self.db.client() as c:
            r = await c.get(CALL_LOGS_PATH, params={"twilio_call_sid": f"eq.{call_sid}", "limit": "1"})
        raise_for_store(r, "call_logs lookup")
        rows = r.json() or []
        return rows[0] if rows else None

    async def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        async with self.db.client() as c:
            r = await c.get(
                CALL_LOGS_PATH,
                params={"select": "*", "order": "call_timestamp.desc", "limit": str(limit)},
            )
        raise_for_store(r, "call_logs list")
        return r.json() or []

    async def fetch_all(self) -> List[Dict[str, Any]]:
        async with self.db.client() as c:
            r = await c.get(CALL_LOGS_PATH, params={"select": "*"})
        raise_for_store(r, "call_logs fetch")
        return r.json() or []

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        """Delete exactly the given rows; rows written meanwhile are left alone."""
        ids = [str(i) for i in ids]
        async with self.db.client() as c:
            for start in range(0, len(ids), DELETE_BATCH):
                batch = ids[start:start + DELETE_BATCH]
                r = await c.delete(CALL_LOGS_PATH, params={"id": f"in.({','.join(batch)})"})
                raise_for_store(r, "call_logs clear")
