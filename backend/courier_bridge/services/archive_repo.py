# courier_bridge/services/archive_repo.py
from __future__ import annotations
from typing import Any, Dict, List
from courier_bridge.services.calllog_repo import raise_for_store
from courier_bridge.services.supabase import SupabaseClient

ARCHIVE_PATH = "/archived_calls"

ARCHIVED_FIELDS = (
    "customer_id", "customer_name", "customer_phone_masked", "courier_id",
    "call_status", "call_timestamp", "call_duration", "twilio_call_sid",
    "agent_name", "error_message",
)


def to_archive_row(log: Dict[str, Any], archive_date: str) -> Dict[str, Any]:
    row = {k: log.get(k) for k in ARCHIVED_FIELDS}
    row["original_call_log_id"] = log.get("id")
    row["archive_date"] = archive_date
    return row


class ArchiveRepo:
    def __init__(self, db: SupabaseClient | None = None):
        self.db = db or SupabaseClient()

    async def insert_many(self, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        async with self.db.client() as c:
            r = await c.post(ARCHIVE_PATH, json=rows, headers={"Prefer": "return=minimal"})
        raise_for_store(r, "archived_calls insert")
        return len(rows)
