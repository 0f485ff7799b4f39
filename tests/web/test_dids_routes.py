# tests/web/test_dids_routes.py
import pytest
from fastapi.testclient import TestClient

from provider_gateway.auth.tokens import TokenService
from provider_gateway.config import AppSettings
from provider_gateway.voip.automation import StepOutcome
from provider_gateway.web import deps
from provider_gateway.web.server import app

client = TestClient(app)

TOKENS = TokenService(AppSettings(secret="dids-test-secret-0123456789abcdef", issuer="gw", audience="dash"))
AUTH = {"Authorization": f"Bearer {TOKENS.create_token(4242)}"}


class FakeAutomation:
    def __init__(self, outcome: StepOutcome):
        self.outcome = outcome
        self.calls = []

    async def activate_did(self, area_code, did_group_name, webhook_url, mobile_number):
        self.calls.append(("activate", area_code, did_group_name, webhook_url, mobile_number))
        return self.outcome

    async def deactivate_did(self, did_number):
        self.calls.append(("deactivate", did_number))
        return self.outcome


@pytest.fixture()
def automation():
    def _install(outcome: StepOutcome) -> FakeAutomation:
        fake = FakeAutomation(outcome)
        app.dependency_overrides[deps.get_automation_service] = lambda: fake
        return fake

    app.dependency_overrides[deps.get_token_service] = lambda: TOKENS
    yield _install
    app.dependency_overrides.clear()


ACTIVATE = {
    "areaCode": "212",
    "didGroupName": "SalesGroup",
    "webhookUrl": "https://hook",
    "mobileNumber": "2125551234",
}


def test_activate_success(automation):
    fake = automation(StepOutcome(True, "DID Activation successful for TN 2125551234"))
    r = client.post("/api/dids/activate", json=ACTIVATE, headers=AUTH)

    assert r.status_code == 200
    assert r.json()["message"] == "DID Activation successful for TN 2125551234"
    assert fake.calls == [("activate", "212", "SalesGroup", "https://hook", "2125551234")]


def test_activate_step_failure_is_bad_gateway(automation):
    automation(StepOutcome(False, "No DIDs found for area code 212"))
    r = client.post("/api/dids/activate", json=ACTIVATE, headers=AUTH)

    assert r.status_code == 502
    body = r.json()
    assert body["isValid"] is False
    assert body["message"] == "No DIDs found for area code 212"


def test_activate_missing_fields_is_400(automation):
    fake = automation(StepOutcome(True, "unused"))
    r = client.post("/api/dids/activate", json={"areaCode": "212"}, headers=AUTH)

    assert r.status_code == 400
    assert "mobileNumber" in r.json()["errors"]
    assert fake.calls == []


def test_deactivate(automation):
    fake = automation(StepOutcome(True, "DID Deactivation successful for TN 2125551234"))
    r = client.post("/api/dids/deactivate", json={"didNumber": "2125551234"}, headers=AUTH)

    assert r.status_code == 200
    assert fake.calls == [("deactivate", "2125551234")]


@pytest.mark.parametrize(
    "path, payload",
    [("/api/dids/activate", ACTIVATE), ("/api/dids/deactivate", {"didNumber": "2125551234"})],
)
def test_did_routes_require_bearer_token(automation, path, payload):
    fake = automation(StepOutcome(True, "unused"))
    r = client.post(path, json=payload)

    assert r.status_code == 401
    assert r.json()["isValid"] is False
    assert fake.calls == []


def test_did_routes_reject_foreign_token(automation):
    fake = automation(StepOutcome(True, "unused"))
    other = TokenService(AppSettings(secret="some-other-secret-0123456789abcdef", issuer="gw", audience="dash"))
    r = client.post(
        "/api/dids/deactivate",
        json={"didNumber": "2125551234"},
        headers={"Authorization": f"Bearer {other.create_token(1)}"},
    )

    assert r.status_code == 401
    assert fake.calls == []
