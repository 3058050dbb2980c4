"""
Shared fixtures: in-memory stand-ins for the Supabase repositories and the
Twilio client, plus a Settings factory with a public https base URL.
"""
from __future__ import annotations

import copy
import datetime as dt
import itertools
from typing import Any

import pytest

from courier_bridge.core.config import Settings
from courier_bridge.core.errors import PersistenceError, ProviderError

BUSINESS_NUMBER = "+15550000000"
COURIER_PHONE = "+15550000001"
CUSTOMER_PHONE = "+15550000002"


@pytest.fixture
def make_settings():
    def _make(**overrides: Any) -> Settings:
        values = dict(
            environment="test",
            app_url="https://calls.example.com",
            twilio_account_sid="AC_TEST",
            twilio_auth_token="test_auth_token",
            twilio_phone_number=BUSINESS_NUMBER,
            courier_phone_number="",
            supabase_url="https://db.example.com",
            supabase_service_key="service-key",
            supabase_anon_key="anon-key",
            cron_secret="cron-secret",
            provider_retry_attempts=3,
            provider_retry_delay_seconds=0,
        )
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def test_settings(make_settings) -> Settings:
    return make_settings()


class FakeCallLogRepo:
    """Mirrors call_logs semantics: unique twilio_call_sid, call_status defaults to 'attempted'."""

    def __init__(self):
        self.rows: list[dict] = []
        self._ids = itertools.count(1)
        self.fail_writes = False

    def _check(self):
        if self.fail_writes:
            raise PersistenceError("call_logs write failed")

    def _new_row(self, fields: dict) -> dict:
        row = {
            "id": f"log-{next(self._ids)}",
            "call_status": "attempted",
            "call_timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
            "call_duration": None,
            "error_message": None,
            "twilio_call_sid": None,
        }
        row.update(fields)
        self.rows.append(row)
        return row

    async def insert(self, row: dict) -> dict:
        self._check()
        sid = row.get("twilio_call_sid")
        if sid and any(r["twilio_call_sid"] == sid for r in self.rows):
            raise PersistenceError("duplicate twilio_call_sid")
        return copy.deepcopy(self._new_row(dict(row)))

    async def upsert_by_sid(self, call_sid: str, fields: dict) -> dict:
        self._check()
        for row in self.rows:
            if row["twilio_call_sid"] == call_sid:
                row.update(fields)
                return copy.deepcopy(row)
        return copy.deepcopy(self._new_row({**fields, "twilio_call_sid": call_sid}))

    async def get_by_sid(self, call_sid: str):
        for row in self.rows:
            if row["twilio_call_sid"] == call_sid:
                return copy.deepcopy(row)
        return None

    async def list_recent(self, limit: int = 100):
        return copy.deepcopy(list(reversed(self.rows))[:limit])

    async def fetch_all(self):
        return copy.deepcopy(self.rows)

    async def delete_by_ids(self, ids):
        self._check()
        doomed = set(ids)
        self.rows[:] = [r for r in self.rows if r["id"] not in doomed]


class FakeProfilesRepo:
    def __init__(self, profiles: dict[str, dict] | None = None):
        self.profiles = profiles or {}
        self.deleted: list[str] = []

    async def get(self, profile_id: str):
        return copy.deepcopy(self.profiles.get(profile_id))

    async def delete(self, profile_id: str) -> bool:
        self.deleted.append(profile_id)
        return self.profiles.pop(profile_id, None) is not None


class FakeCustomersRepo:
    def __init__(self, customers: dict[str, dict] | None = None):
        self.customers = customers or {}

    async def get(self, customer_id: str):
        return copy.deepcopy(self.customers.get(customer_id))

    async def deactivate_all(self) -> int:
        active = [c for c in self.customers.values() if c.get("is_active")]
        for c in active:
            c["is_active"] = False
        return len(active)


class FakeSettingsRepo:
    def __init__(self, values: dict[str, str] | None = None, fail: bool = False):
        self.values = dict(values or {})
        self.fail = fail

    async def get_value(self, key: str):
        if self.fail:
            raise PersistenceError("settings unavailable")
        return self.values.get(key) or None

    async def list(self):
        return [{"key": k, "value": v} for k, v in sorted(self.values.items())]

    async def set_value(self, key: str, value: str, updated_by: str | None = None):
        self.values[key] = value
        return {"key": key, "value": value}

    async def ping(self) -> bool:
        return not self.fail


class FakeArchiveRepo:
    def __init__(self, fail: bool = False):
        self.rows: list[dict] = []
        self.fail = fail

    async def insert_many(self, rows: list[dict]) -> int:
        if self.fail:
            raise PersistenceError("archived_calls insert failed")
        self.rows.extend(rows)
        return len(rows)


class FakeProvider:
    def __init__(self, sid: str = "CA_TEST_SID", error: ProviderError | None = None):
        self.sid = sid
        self.error = error
        self.calls: list[dict] = []
        self.account_error: Exception | None = None

    async def create_call(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return {"sid": self.sid, "status": "queued"}

    async def fetch_account(self):
        if self.account_error:
            raise self.account_error
        return {"sid": "AC_TEST", "status": "active"}


@pytest.fixture
def calllogs() -> FakeCallLogRepo:
    return FakeCallLogRepo()


@pytest.fixture
def profiles() -> FakeProfilesRepo:
    return FakeProfilesRepo({
        "courier-1": {"id": "courier-1", "role": "courier", "email": "c@example.com", "phone_number": COURIER_PHONE},
        "admin-1": {"id": "admin-1", "role": "admin", "email": "a@example.com", "phone_number": None},
    })


@pytest.fixture
def customers() -> FakeCustomersRepo:
    return FakeCustomersRepo({
        "cust-1": {"id": "cust-1", "name": "Dana", "phone_number": CUSTOMER_PHONE, "is_active": True},
        "cust-off": {"id": "cust-off", "name": "Idle", "phone_number": CUSTOMER_PHONE, "is_active": False},
    })


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings_store() -> FakeSettingsRepo:
    return FakeSettingsRepo({
        "business_phone": "",
        "incoming_call_message": "",
        "daily_reset_time": "00:00",
        "daily_reset_timezone": "Asia/Jerusalem",
    })


@pytest.fixture
def archive() -> FakeArchiveRepo:
    return FakeArchiveRepo()
