# provider_gateway/voip/automation.py
"""
DID activation / deactivation workflows
----------------------------------------------------------
Sequential, fail-fast chains of VoipApiService calls:

  activate:   CreateGroup -> ResolveAreaCode -> SearchNumber -> ReserveNumber
              -> AssignToGroup -> SetGroupOnNumber -> ConfigureNumber
              -> ResolveCampaign -> AssignToCampaign -> Done
  deactivate: RemoveGroup -> ReleaseNumber

A step runs only after the previous step's envelope reported success. The
first fault ends the workflow with (False, "<step failure>: <provider message>").
Nothing already provisioned is rolled back; a partial activation is logged
with the steps that completed so an operator can clean it up.
"""
from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional, Protocol

from provider_gateway.common.result import ApiResponse
from provider_gateway.voip.api_service import VoipApiService
from provider_gateway.voip.models import DIDParam

log = logging.getLogger("gateway.automation")


class StepOutcome(NamedTuple):
    success: bool
    message: str


class AreaCodeResolver(Protocol):
    def resolve(self, area_code: Optional[str], mobile_number: str) -> Optional[str]:
        """Return the NPA to search in, or None when it cannot be determined."""
        ...


class CallerAreaCodeResolver:
    """Use the area code the caller supplied, as long as it is all digits."""

    def resolve(self, area_code: Optional[str], mobile_number: str) -> Optional[str]:
        code = (area_code or "").strip()
        if not code or not (code.isascii() and code.isdigit()):
            return None
        return code


class DIDAutomationService:
    def __init__(
        self,
        api: VoipApiService,
        *,
        default_campaign_id: Optional[str] = None,
        area_code_resolver: Optional[AreaCodeResolver] = None,
    ):
        self.api = api
        self.default_campaign_id = default_campaign_id or api.settings.default_campaign_id
        self.area_code_resolver = area_code_resolver or CallerAreaCodeResolver()

    # ------------------------------------------------------------------
    @staticmethod
    def _step_failed(failure: str, response: ApiResponse) -> StepOutcome:
        log.error("%s: %s", failure, response.message)
        return StepOutcome(False, f"{failure}: {response.message}")

    @staticmethod
    def _stop(message: str) -> StepOutcome:
        log.warning(message)
        return StepOutcome(False, message)

    # ------------------------------------------------------------------
    async def activate_did(
        self,
        area_code: str,
        did_group_name: str,
        webhook_url: str,
        mobile_number: str,
    ) -> StepOutcome:
        completed: List[str] = []
        try:
            outcome = await self._activate(area_code, did_group_name, webhook_url, mobile_number, completed)
        except Exception as exc:
            log.exception("Exception during DID activation")
            outcome = StepOutcome(False, f"Exception during DID activation: {exc}")

        if not outcome.success and completed:
            log.warning(
                "DID activation for TN %s stopped after %s; provisioned resources were left in place",
                mobile_number, " -> ".join(completed),
            )
        return outcome

    async def _activate(
        self,
        area_code: str,
        did_group_name: str,
        webhook_url: str,
        mobile_number: str,
        completed: List[str],
    ) -> StepOutcome:
        # 1. Create DID group
        created = await self.api.create_did_group(did_group_name)
        if created.is_fault:
            return self._step_failed("Failed to create DID group", created)
        if not created.value.did_groups:
            return self._stop("DID Group creation did not return a DID Group ID")
        group_id = created.value.did_groups[0].id
        completed.append("CreateGroup")

        # 2. Resolve area code
        npa = self.area_code_resolver.resolve(area_code, mobile_number)
        if npa is None:
            return self._stop(f"Could not resolve an area code from '{area_code}'")

        # 3. Search
        search = await self.api.global_did_search(npa)
        if search.is_fault:
            return self._step_failed("DID Search failed", search)
        if not search.value.dids:
            return self._stop(f"No DIDs found for area code {npa}")
        tn = search.value.dids[0].tn
        did_params = [DIDParam(tn=tn)]

        # 4. Reserve
        reserved = await self.api.reserve_did(did_params)
        if reserved.is_fault:
            return self._step_failed("Failed to reserve DID", reserved)
        completed.append("ReserveNumber")

        # 5. Assign DID to the account
        assigned = await self.api.assign_did(did_params)
        if assigned.is_fault:
            return self._step_failed("Failed to assign DID to group", assigned)
        completed.append("AssignToGroup")

        # 6. Put the mobile number in the new group
        grouped = await self.api.set_did_group(mobile_number, group_id)
        if grouped.is_fault:
            return self._step_failed("Failed to set DID group", grouped)
        completed.append("SetGroupOnNumber")

        # 7. Configure the DID (messaging webhook)
        configured = await self.api.config_did([DIDParam(tn=tn, webhook_url=webhook_url or None)])
        if configured.is_fault:
            return self._step_failed("Failed to config DID", configured)
        completed.append("ConfigureNumber")

        # 8. Resolve campaign
        campaigns = await self.api.get_sms_campaigns()
        if campaigns.is_fault:
            return self._step_failed("Failed to get SMS Campaigns", campaigns)
        if not campaigns.value.campaigns:
            return self._stop("No SMS Campaigns found.")
        campaign_id = next(
            (c.campaign_id for c in campaigns.value.campaigns if c.campaign_id == self.default_campaign_id),
            campaigns.value.campaigns[0].campaign_id,
        )

        # 9. Assign to campaign
        enrolled = await self.api.assign_to_sms_campaign([mobile_number], campaign_id)
        if enrolled.is_fault:
            return self._step_failed("Failed to assign DID to SMS campaign", enrolled)

        log.info("DID Activation successful for TN %s", mobile_number)
        return StepOutcome(True, f"DID Activation successful for TN {mobile_number}")

    async def deactivate_did(self, did_number: str) -> StepOutcome:
        try:
            removed = await self.api.remove_did_group(did_number)
            if removed.is_fault:
                return self._step_failed("Failed to remove DID group", removed)
            released = await self.api.release_did([DIDParam(tn=did_number)])
            if released.is_fault:
                return self._step_failed("Failed to release DID", released)
        except Exception as exc:
            log.exception("Exception during DID deactivation")
            return StepOutcome(False, f"Exception during DID deactivation: {exc}")

        log.info("DID Deactivation successful for TN %s", did_number)
        return StepOutcome(True, f"DID Deactivation successful for TN {did_number}")
