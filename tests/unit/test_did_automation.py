# tests/unit/test_did_automation.py
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from provider_gateway.common.result import ApiResponse
from provider_gateway.voip.automation import DIDAutomationService, StepOutcome
from provider_gateway.voip.models import DIDResponse, IntlResponse, SMS10DLCResponse

OK = DIDResponse.model_validate({"responseCode": "100"})


def _group(group_id: int) -> DIDResponse:
    return DIDResponse.model_validate({"DIDGroups": {"DIDGroup": {"ID": str(group_id), "Name": "SalesGroup"}}})


def _search(*tns: str) -> IntlResponse:
    return IntlResponse.model_validate({"DIDs": {"DID": [{"tn": tn} for tn in tns]}} if tns else {})


def _campaigns(*ids: str) -> SMS10DLCResponse:
    return SMS10DLCResponse.model_validate(
        {"Campaigns": {"SMSCampaign": [{"CampaignId": i} for i in ids]}} if ids else {}
    )


class FakeVoipApi:
    """Records every facade call and answers from a per-operation script."""

    def __init__(self, **overrides: ApiResponse):
        self.settings = SimpleNamespace(default_campaign_id="CMP-2")
        self.calls: List[tuple] = []
        self.responses: Dict[str, ApiResponse] = {
            "create_did_group": ApiResponse.success(_group(77)),
            "global_did_search": ApiResponse.success(_search("2125550001", "2125550002")),
            "reserve_did": ApiResponse.success(OK),
            "assign_did": ApiResponse.success(OK),
            "set_did_group": ApiResponse.success(OK),
            "config_did": ApiResponse.success(OK),
            "get_sms_campaigns": ApiResponse.success(_campaigns("CMP-1", "CMP-2")),
            "assign_to_sms_campaign": ApiResponse.success(OK),
            "remove_did_group": ApiResponse.success(OK),
            "release_did": ApiResponse.success(OK),
        }
        self.responses.update(overrides)

    def _answer(self, name: str, *args: Any) -> ApiResponse:
        self.calls.append((name, args))
        return self.responses[name]

    def called(self, name: str) -> List[tuple]:
        return [args for n, args in self.calls if n == name]

    @property
    def order(self) -> List[str]:
        return [n for n, _ in self.calls]

    async def create_did_group(self, name, *, cancel=None):
        return self._answer("create_did_group", name)

    async def global_did_search(self, area_code, *, cancel=None):
        return self._answer("global_did_search", area_code)

    async def reserve_did(self, did_params, *, cancel=None):
        return self._answer("reserve_did", did_params)

    async def assign_did(self, did_params, *, cancel=None):
        return self._answer("assign_did", did_params)

    async def set_did_group(self, tn, group_id, *, cancel=None):
        return self._answer("set_did_group", tn, group_id)

    async def config_did(self, did_params, *, cancel=None):
        return self._answer("config_did", did_params)

    async def get_sms_campaigns(self, *, cancel=None):
        return self._answer("get_sms_campaigns")

    async def assign_to_sms_campaign(self, tns, campaign_id, *, cancel=None):
        return self._answer("assign_to_sms_campaign", tns, campaign_id)

    async def remove_did_group(self, tn, *, cancel=None):
        return self._answer("remove_did_group", tn)

    async def release_did(self, did_params, *, cancel=None):
        return self._answer("release_did", did_params)


async def _activate(api: FakeVoipApi, area_code: str = "212", resolver=None) -> StepOutcome:
    service = DIDAutomationService(api, area_code_resolver=resolver)
    return await service.activate_did(area_code, "SalesGroup", "https://hook", "2125551234")


# ---- activation ----------------------------------------------------------------

@pytest.mark.asyncio
async def test_activation_runs_every_step_in_order():
    api = FakeVoipApi()
    outcome = await _activate(api)

    assert outcome == StepOutcome(True, "DID Activation successful for TN 2125551234")
    assert api.order == [
        "create_did_group",
        "global_did_search",
        "reserve_did",
        "assign_did",
        "set_did_group",
        "config_did",
        "get_sms_campaigns",
        "assign_to_sms_campaign",
    ]
    assert api.called("global_did_search") == [("212",)]
    assert api.called("reserve_did")[0][0][0].tn == "2125550001"
    assert api.called("set_did_group") == [("2125551234", 77)]
    configured = api.called("config_did")[0][0][0]
    assert configured.tn == "2125550001"
    assert configured.webhook_url == "https://hook"
    assert api.called("assign_to_sms_campaign") == [(["2125551234"], "CMP-2")]


@pytest.mark.asyncio
async def test_create_group_fault_stops_before_search():
    api = FakeVoipApi(create_did_group=ApiResponse.error(-3, "Communication error"))
    outcome = await _activate(api)

    assert outcome == StepOutcome(False, "Failed to create DID group: Communication error")
    assert api.order == ["create_did_group"]


@pytest.mark.asyncio
async def test_group_without_id_is_a_fault():
    api = FakeVoipApi(create_did_group=ApiResponse.success(OK))
    outcome = await _activate(api)

    assert outcome == StepOutcome(False, "DID Group creation did not return a DID Group ID")
    assert api.order == ["create_did_group"]


@pytest.mark.asyncio
async def test_empty_search_results():
    api = FakeVoipApi(global_did_search=ApiResponse.success(_search()))
    outcome = await _activate(api)

    assert outcome == StepOutcome(False, "No DIDs found for area code 212")
    assert "reserve_did" not in api.order


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "step, message",
    [
        ("global_did_search", "DID Search failed"),
        ("reserve_did", "Failed to reserve DID"),
        ("assign_did", "Failed to assign DID to group"),
        ("set_did_group", "Failed to set DID group"),
        ("config_did", "Failed to config DID"),
        ("get_sms_campaigns", "Failed to get SMS Campaigns"),
        ("assign_to_sms_campaign", "Failed to assign DID to SMS campaign"),
    ],
)
async def test_each_step_fault_is_reported_verbatim(step, message):
    api = FakeVoipApi(**{step: ApiResponse.error(-1, "SOAP fault: soap:Server - Boom - Detail: x")})
    outcome = await _activate(api)

    assert outcome.success is False
    assert outcome.message == f"{message}: SOAP fault: soap:Server - Boom - Detail: x"
    assert api.order[-1] == step


@pytest.mark.asyncio
async def test_no_campaigns_is_a_fault():
    api = FakeVoipApi(get_sms_campaigns=ApiResponse.success(_campaigns()))
    outcome = await _activate(api)

    assert outcome == StepOutcome(False, "No SMS Campaigns found.")
    assert "assign_to_sms_campaign" not in api.order


@pytest.mark.asyncio
async def test_first_campaign_used_when_default_missing():
    api = FakeVoipApi(get_sms_campaigns=ApiResponse.success(_campaigns("CMP-9", "CMP-8")))
    await _activate(api)
    assert api.called("assign_to_sms_campaign") == [(["2125551234"], "CMP-9")]


@pytest.mark.asyncio
async def test_unresolvable_area_code_stops_before_search():
    api = FakeVoipApi()
    outcome = await _activate(api, area_code="21a")

    assert outcome.success is False
    assert "21a" in outcome.message
    assert "global_did_search" not in api.order


@pytest.mark.asyncio
async def test_custom_area_code_resolver():
    class FromMobile:
        def resolve(self, area_code: Optional[str], mobile_number: str) -> Optional[str]:
            return mobile_number[:3]

    api = FakeVoipApi()
    await _activate(api, area_code="", resolver=FromMobile())
    assert api.called("global_did_search") == [("212",)]


@pytest.mark.asyncio
async def test_resolver_exception_becomes_failed_outcome(caplog):
    class Broken:
        def resolve(self, area_code: Optional[str], mobile_number: str) -> Optional[str]:
            raise LookupError("organisation record missing")

    api = FakeVoipApi()
    with caplog.at_level("WARNING", logger="gateway.automation"):
        outcome = await _activate(api, resolver=Broken())

    assert outcome == StepOutcome(False, "Exception during DID activation: organisation record missing")
    assert "global_did_search" not in api.order
    assert any("stopped after CreateGroup" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_partial_activation_is_logged(caplog):
    api = FakeVoipApi(config_did=ApiResponse.error(-2, "Request timed out"))
    with caplog.at_level("WARNING", logger="gateway.automation"):
        await _activate(api)

    assert any("CreateGroup -> ReserveNumber -> AssignToGroup -> SetGroupOnNumber" in r.getMessage() for r in caplog.records)


# ---- deactivation --------------------------------------------------------------

@pytest.mark.asyncio
async def test_deactivation_removes_group_then_releases():
    api = FakeVoipApi()
    outcome = await DIDAutomationService(api).deactivate_did("2125551234")

    assert outcome == StepOutcome(True, "DID Deactivation successful for TN 2125551234")
    assert api.order == ["remove_did_group", "release_did"]
    assert api.called("remove_did_group") == [("2125551234",)]
    assert api.called("release_did")[0][0][0].tn == "2125551234"


@pytest.mark.asyncio
async def test_deactivation_stops_when_group_removal_fails():
    api = FakeVoipApi(remove_did_group=ApiResponse.error(-6, "Phone number must contain only digits: 212-555"))
    outcome = await DIDAutomationService(api).deactivate_did("212-555")

    assert outcome == StepOutcome(False, "Failed to remove DID group: Phone number must contain only digits: 212-555")
    assert api.order == ["remove_did_group"]


@pytest.mark.asyncio
async def test_deactivation_release_failure():
    api = FakeVoipApi(release_did=ApiResponse.error(-3, "Communication error"))
    outcome = await DIDAutomationService(api).deactivate_did("2125551234")
    assert outcome == StepOutcome(False, "Failed to release DID: Communication error")
