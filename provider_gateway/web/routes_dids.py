# provider_gateway/web/routes_dids.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from provider_gateway.common.responses import RequestResponse
from provider_gateway.voip.automation import DIDAutomationService, StepOutcome
from provider_gateway.web.deps import current_business_id, get_automation_service
from provider_gateway.web.schemas import ActivateDIDRequest, DeactivateDIDRequest

log = logging.getLogger("gateway.web.dids")

# Every DID route needs the same bearer JWT as /api/appointments/list
router = APIRouter(prefix="/api/dids", tags=["dids"], dependencies=[Depends(current_business_id)])


def _to_response(outcome: StepOutcome) -> JSONResponse:
    if outcome.success:
        body = RequestResponse(message=outcome.message)
    else:
        # Step failures are provider-side problems, not bad input
        body = RequestResponse.fail(outcome.message, status_code=502)
    return JSONResponse(body.to_wire(), status_code=body.status_code)


@router.post("/activate")
async def activate_did(
    body: ActivateDIDRequest,
    service: DIDAutomationService = Depends(get_automation_service),
):
    log.info("Activating DID for TN %s in area code %s", body.mobile_number, body.area_code)
    outcome = await service.activate_did(
        body.area_code, body.did_group_name, body.webhook_url, body.mobile_number
    )
    return _to_response(outcome)


@router.post("/deactivate")
async def deactivate_did(
    body: DeactivateDIDRequest,
    service: DIDAutomationService = Depends(get_automation_service),
):
    log.info("Deactivating DID %s", body.did_number)
    return _to_response(await service.deactivate_did(body.did_number))
