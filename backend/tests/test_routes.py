import pytest
from fastapi.testclient import TestClient
from twilio.request_validator import RequestValidator

from courier_bridge.api.v1 import dependencies as deps
from courier_bridge.core.errors import ProviderError
from courier_bridge.main import app
from courier_bridge.services.auth_service import AuthService
from courier_bridge.services.call_initiator import CallInitiator
from courier_bridge.services.incoming_responder import IncomingCallResponder
from courier_bridge.services.reset_service import ResetService
from courier_bridge.services.status_reconciler import StatusReconciler

SESSIONS = {
    "courier-token": {"id": "courier-1", "email": "c@example.com"},
    "admin-token": {"id": "admin-1", "email": "a@example.com"},
}


class FakeSupabase:
    def __init__(self):
        self.deleted_users = []

    async def get_auth_user(self, access_token):
        return SESSIONS.get(access_token)

    async def delete_auth_user(self, user_id):
        self.deleted_users.append(user_id)
        return True


@pytest.fixture
def wire(test_settings, profiles, customers, calllogs, settings_store, archive, provider):
    """Point every route dependency at the in-memory fakes; returns a settings swapper."""
    db = FakeSupabase()
    current = {"cfg": test_settings}

    def cfg():
        return current["cfg"]

    overrides = {
        deps.get_settings: cfg,
        deps.supabase: lambda: db,
        deps.voice_provider: lambda: provider,
        deps.calllog_repo: lambda: calllogs,
        deps.profiles_repo: lambda: profiles,
        deps.customers_repo: lambda: customers,
        deps.settings_repo: lambda: settings_store,
        deps.archive_repo: lambda: archive,
        deps.auth_service: lambda: AuthService(db, profiles),
        deps.call_initiator: lambda: CallInitiator(
            settings=cfg(), profiles=profiles, customers=customers, calllogs=calllogs, provider=provider
        ),
        deps.status_reconciler: lambda: StatusReconciler(calllogs),
        deps.incoming_responder: lambda: IncomingCallResponder(settings_store, calllogs),
        deps.reset_service: lambda: ResetService(calllogs, archive, customers, settings_store),
    }
    app.dependency_overrides.update(overrides)

    def use(settings):
        current["cfg"] = settings

    use.db = db
    yield use
    app.dependency_overrides.clear()


@pytest.fixture
def client(wire):
    return TestClient(app)


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


# /call/initiate

def test_initiate_success(client, provider, calllogs):
    r = client.post("/call/initiate", json={"customerId": "cust-1"}, headers=_bearer("courier-token"))

    assert r.status_code == 200
    assert r.json() == {"success": True, "callSid": "CA_TEST_SID", "message": "Call initiated successfully"}
    assert provider.calls[0]["to"] == "+15550000001"
    assert calllogs.rows[0]["call_status"] == "attempted"


def test_initiate_accepts_token_in_body(client):
    r = client.post("/call/initiate", json={"customerId": "cust-1", "accessToken": "courier-token"})
    assert r.status_code == 200


def test_initiate_missing_customer_id(client):
    r = client.post("/call/initiate", json={}, headers=_bearer("courier-token"))
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required parameter: customerId"


def test_initiate_requires_session(client, provider):
    r = client.post("/call/initiate", json={"customerId": "cust-1"})
    assert r.status_code == 401
    assert r.json()["error"] == "Unauthorized - Please log in"

    r = client.post("/call/initiate", json={"customerId": "cust-1"}, headers=_bearer("expired"))
    assert r.status_code == 401
    assert provider.calls == []


def test_initiate_by_admin_is_forbidden(client):
    r = client.post("/call/initiate", json={"customerId": "cust-1"}, headers=_bearer("admin-token"))
    assert r.status_code == 403


def test_initiate_inactive_or_unknown_customer(client, provider):
    r = client.post("/call/initiate", json={"customerId": "cust-off"}, headers=_bearer("courier-token"))
    assert r.status_code == 400
    assert r.json()["error"] == "Customer is inactive"

    r = client.post("/call/initiate", json={"customerId": "nope"}, headers=_bearer("courier-token"))
    assert r.status_code == 404
    assert provider.calls == []


def test_initiate_without_twilio_configuration(client, wire, make_settings):
    wire(make_settings(twilio_account_sid=""))
    r = client.post("/call/initiate", json={"customerId": "cust-1"}, headers=_bearer("courier-token"))
    assert r.status_code == 400
    assert "Twilio configuration is missing" in r.json()["error"]


def test_initiate_provider_failure(client, provider, calllogs):
    provider.error = ProviderError("Invalid 'To' Phone Number", code="21211", http_status=400)

    r = client.post("/call/initiate", json={"customerId": "cust-1"}, headers=_bearer("courier-token"))

    assert r.status_code == 500
    assert r.json() == {
        "error": "Invalid request: Invalid 'To' Phone Number",
        "details": "Invalid 'To' Phone Number",
    }
    assert calllogs.rows[0]["call_status"] == "failed"



def test_initiate_documents_error_shape(client):
    responses = client.get("/openapi.json").json()["paths"]["/call/initiate"]["post"]["responses"]
    for code in ("400", "401", "403", "404", "500"):
        assert responses[code]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorOut")

# /call/status

def test_status_requires_call_sid_and_status(client):
    r = client.post("/call/status", data={"CallStatus": "ringing"})
    assert r.status_code == 400
    assert r.text == "Missing CallSid"

    r = client.post("/call/status", data={"CallSid": "CA1"})
    assert r.status_code == 400
    assert r.text == "Missing CallStatus"


def test_status_updates_call_log(client, calllogs):
    r = client.post("/call/status", data={"CallSid": "CA1", "CallStatus": "completed", "CallDuration": "42"})

    assert r.status_code == 200
    assert r.text == "OK"
    assert calllogs.rows[0]["call_status"] == "completed"
    assert calllogs.rows[0]["call_duration"] == 42


def test_status_store_failure_is_500(client, calllogs):
    calllogs.fail_writes = True
    r = client.post("/call/status", data={"CallSid": "CA1", "CallStatus": "ringing"})
    assert r.status_code == 500


def test_status_signature_enforced_outside_dev(client, wire, make_settings, calllogs):
    wire(make_settings(environment="staging"))
    form = {"CallSid": "CA1", "CallStatus": "busy"}

    r = client.post("/call/status", data=form)
    assert r.status_code == 401
    assert calllogs.rows == []

    r = client.post("/call/status", data=form, headers={"X-Twilio-Signature": "bogus"})
    assert r.status_code == 401

    signature = RequestValidator("test_auth_token").compute_signature("https://calls.example.com/call/status", form)
    r = client.post("/call/status", data=form, headers={"X-Twilio-Signature": signature})
    assert r.status_code == 200
    assert calllogs.rows[0]["call_status"] == "busy"


# /call/connect

def test_connect_returns_dial(client):
    r = client.get("/call/connect", params={"customerPhone": "+15550000002", "customerId": "cust-1"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/xml")
    assert "<Dial" in r.text
    assert 'callerId="+15550000000"' in r.text
    assert "<Number>+15550000002</Number>" in r.text


def test_connect_post_is_accepted(client):
    r = client.post("/call/connect?customerPhone=%2B15550000002")
    assert r.status_code == 200
    assert "<Dial" in r.text


def test_connect_bad_input_still_200(client):
    r = client.get("/call/connect")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/xml")
    assert "<Say" in r.text and "<Hangup" in r.text
    assert "<Dial" not in r.text


def test_connect_uses_stored_business_phone(client, settings_store):
    settings_store.values["business_phone"] = "+15551112222"
    r = client.get("/call/connect", params={"customerPhone": "+15550000002"})
    assert 'callerId="+15551112222"' in r.text


# /call/incoming

def test_incoming_plays_message_and_logs(client, calllogs):
    r = client.post("/call/incoming", data={"CallSid": "CA_IN", "From": "+972501234567", "To": "+15550000000"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/xml")
    assert "outbound calls only" in r.text
    assert calllogs.rows[0]["call_status"] == "incoming_blocked"
    assert calllogs.rows[0]["customer_phone_masked"] == "****4567"



def test_incoming_signature_enforced_outside_dev(client, wire, make_settings, calllogs):
    wire(make_settings(environment="staging"))
    form = {"CallSid": "CA_IN", "From": "+972501234567", "To": "+15550000000"}

    r = client.post("/call/incoming", data=form)
    assert r.status_code == 401
    assert calllogs.rows == []

    r = client.post("/call/incoming", data=form, headers={"X-Twilio-Signature": "bogus"})
    assert r.status_code == 401
    assert calllogs.rows == []

    signature = RequestValidator("test_auth_token").compute_signature("https://calls.example.com/call/incoming", form)
    r = client.post("/call/incoming", data=form, headers={"X-Twilio-Signature": signature})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/xml")
    assert "<Hangup" in r.text
    assert calllogs.rows[0]["call_status"] == "incoming_blocked"

# /health

def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["twilio_configured"] and body["twilio_connected"] and body["database_connected"]
    assert "X-Request-ID" in r.headers


def test_health_degraded(client, provider):
    provider.account_error = ProviderError("Authenticate", http_status=401)
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["twilio_connected"] is False


def test_health_unconfigured(client, wire, make_settings):
    wire(make_settings(twilio_phone_number=""))
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["twilio_configured"] is False


# /admin

def test_reset_with_cron_secret(client, calllogs, archive):
    calllogs.rows.append({"id": "log-1", "call_status": "completed", "twilio_call_sid": "CA1"})

    r = client.post("/admin/reset", headers={"X-Cron-Secret": "cron-secret"})

    assert r.status_code == 200
    assert r.json()["archived_calls"] == 1
    assert calllogs.rows == []
    assert archive.rows[0]["original_call_log_id"] == "log-1"


def test_reset_requires_admin(client):
    assert client.post("/admin/reset").status_code == 401
    assert client.post("/admin/reset", headers={"X-Cron-Secret": "wrong"}).status_code == 401
    assert client.post("/admin/reset", headers=_bearer("courier-token")).status_code == 403
    assert client.post("/admin/reset", json={"accessToken": "admin-token"}).status_code == 200


def test_next_reset(client):
    r = client.get("/admin/reset/next", headers=_bearer("admin-token"))
    assert r.status_code == 200
    assert r.json()["timezone"] == "Asia/Jerusalem"


def test_call_logs_listing(client, calllogs):
    calllogs.rows.append({"id": "log-1", "call_status": "ringing", "twilio_call_sid": "CA1"})
    assert client.get("/admin/call-logs", headers=_bearer("courier-token")).status_code == 403

    r = client.get("/admin/call-logs", headers=_bearer("admin-token"))
    assert r.status_code == 200
    assert r.json()[0]["twilio_call_sid"] == "CA1"


def test_business_phone_setting_is_normalized(client, settings_store):
    r = client.put("/admin/settings/business_phone", json={"value": "050-123-4567"}, headers=_bearer("admin-token"))
    assert r.status_code == 200
    assert settings_store.values["business_phone"] == "+972501234567"

    r = client.put("/admin/settings/business_phone", json={"value": "+0abc"}, headers=_bearer("admin-token"))
    assert r.status_code == 400

    r = client.put("/admin/settings/business_phone", json={"value": "12345"}, headers=_bearer("admin-token"))
    assert r.status_code == 400
    assert settings_store.values["business_phone"] == "+972501234567"


def test_call_log_lookup_by_sid(client, calllogs):
    calllogs.rows.append({"id": "log-1", "call_status": "completed", "call_duration": 42, "twilio_call_sid": "CA1"})

    r = client.get("/admin/call-logs/CA1", headers=_bearer("admin-token"))
    assert r.status_code == 200
    assert r.json()["call_duration"] == 42

    r = client.get("/admin/call-logs/CA404", headers=_bearer("admin-token"))
    assert r.status_code == 404
    assert r.json() == {"error": "Call log not found"}


def test_list_settings(client):
    r = client.get("/admin/settings", headers=_bearer("admin-token"))
    assert r.status_code == 200
    assert "daily_reset_time" in {s["key"] for s in r.json()}


def test_delete_courier(client, wire, profiles):
    r = client.post("/admin/delete-courier", json={"courierId": "admin-1"}, headers=_bearer("admin-token"))
    assert r.status_code == 403

    r = client.post("/admin/delete-courier", json={"courierId": "ghost"}, headers=_bearer("admin-token"))
    assert r.status_code == 404

    r = client.post("/admin/delete-courier", json={"courierId": "courier-1", "accessToken": "admin-token"})
    assert r.status_code == 200
    assert "courier-1" not in profiles.profiles
    assert wire.db.deleted_users == ["courier-1"]
