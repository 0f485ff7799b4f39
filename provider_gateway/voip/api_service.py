# provider_gateway/voip/api_service.py
"""
VoIP Innovations provider facade
-------------------------------------------
One coroutine per provisioning capability. Each validates its arguments,
then hands a SOAP call plus a result projection to the executor. All of them
return an ApiResponse; argument problems come back as code -6 before any
network traffic.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from provider_gateway.common.result import ApiResponse
from provider_gateway.common.validation import (
    require_text,
    validate_email,
    validate_phone_numbers,
    validate_phone_sequence,
)
from provider_gateway.config import VoipApiSettings
from provider_gateway.resilience.circuit_breaker import CircuitBreaker
from provider_gateway.resilience.errors import InvalidArgumentError
from provider_gateway.resilience.executor import ResilientCallExecutor
from provider_gateway.resilience.retry_policies import retry_policy_for
from provider_gateway.voip.models import (
    DIDParam,
    DIDResponse,
    IntlResponse,
    SMS10DLCResponse,
    SMSResponse,
)
from provider_gateway.voip.soap_client import VoipClientFactory, VoipSoapClient

log = logging.getLogger("gateway.voip")

M = TypeVar("M", bound=BaseModel)


def _project(model: Type[M]) -> Callable[[Any], Optional[M]]:
    """Projection from the raw `<Operation>Result` tree onto a response model."""

    def selector(raw: Any) -> Optional[M]:
        if not isinstance(raw, dict):
            return None
        try:
            return model.model_validate(raw)
        except ValidationError:
            log.warning("Unexpected %s payload shape: %s", model.__name__, raw)
            return None

    return selector


def _invalid(exc: InvalidArgumentError) -> ApiResponse:
    log.error("Invalid argument provided to SOAP call: %s", exc.detail)
    return ApiResponse.error(exc.code, exc.response_message)


class VoipApiService:
    def __init__(
        self,
        settings: VoipApiSettings,
        *,
        executor: Optional[ResilientCallExecutor[VoipSoapClient]] = None,
        client_factory: Optional[VoipClientFactory] = None,
    ):
        self.settings = settings
        if executor is None:
            factory = client_factory or VoipClientFactory(
                login=settings.login,
                secret=settings.secret,
                endpoint_url=settings.endpoint_url,
                namespace=settings.namespace,
                timeout_seconds=settings.request_timeout_seconds,
                breaker=CircuitBreaker(
                    name="voip-soap",
                    failure_threshold=settings.circuit_failure_threshold,
                    recovery_timeout=settings.circuit_recovery_seconds,
                ),
            )
            executor = ResilientCallExecutor(
                factory,
                provider="voip",
                timeout_seconds=settings.request_timeout_seconds,
                retry_policy=retry_policy_for(settings.max_retry_attempts),
            )
        self.executor = executor

    # ---- helpers -------------------------------------------------------------
    async def _soap(
        self,
        operation: str,
        model: Type[M],
        params: dict,
        *,
        phone_number: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[M]:
        return await self.executor.execute(
            lambda client: client.invoke(operation, **params),
            _project(model),
            operation=operation,
            phone_number=phone_number,
            cancel=cancel,
        )

    @staticmethod
    def _did_params(did_params: Optional[Sequence[DIDParam]]) -> list:
        items = list(did_params or [])
        if not items:
            raise InvalidArgumentError("At least one DID parameter is required")
        validate_phone_sequence([p.tn for p in items])
        return items

    # ---- operations ----------------------------------------------------------
    async def create_did_group(self, name: str, *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        try:
            require_text(name, "name")
        except InvalidArgumentError as exc:
            return _invalid(exc)
        return await self._soap("CreateDIDGroup", DIDResponse, {"name": name}, cancel=cancel)

    async def global_did_search(self, area_code: str, *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[IntlResponse]:
        try:
            require_text(area_code, "area_code")
        except InvalidArgumentError as exc:
            return _invalid(exc)
        params = {
            "countryCode": "",
            "state": "",
            "npa": area_code,
            "tollFree": False,
            "t38": False,
        }
        return await self._soap("GlobalDIDSearch", IntlResponse, params, cancel=cancel)

    async def reserve_did(self, did_params: Sequence[DIDParam], *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        return await self._did_operation("reserveDID", did_params, cancel)

    async def assign_did(self, did_params: Sequence[DIDParam], *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        return await self._did_operation("assignDID", did_params, cancel)

    async def config_did(self, did_params: Sequence[DIDParam], *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        return await self._did_operation("configDID", did_params, cancel)

    async def release_did(self, did_params: Sequence[DIDParam], *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        return await self._did_operation("releaseDID", did_params, cancel)

    async def _did_operation(self, operation: str, did_params, cancel) -> ApiResponse[DIDResponse]:
        try:
            items = self._did_params(did_params)
        except InvalidArgumentError as exc:
            return _invalid(exc)
        return await self._soap(
            operation,
            DIDResponse,
            {"didParams": items},
            phone_number=items[0].tn,
            cancel=cancel,
        )

    async def config_sms(
        self,
        tn: str,
        enable: bool,
        forward_email: str,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[SMSResponse]:
        try:
            validate_phone_numbers(tn)
            validate_email(forward_email)
        except InvalidArgumentError as exc:
            return _invalid(exc)
        params = {"tn": tn, "enable": bool(enable), "forwardEmail": forward_email}
        return await self._soap("ConfigSMS", SMSResponse, params, phone_number=tn, cancel=cancel)

    async def set_did_group(self, tn: str, group_id: int, *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        try:
            validate_phone_numbers(tn)
            if not isinstance(group_id, int) or isinstance(group_id, bool) or group_id <= 0:
                raise InvalidArgumentError("Group ID must be greater than 0")
        except InvalidArgumentError as exc:
            return _invalid(exc)
        params = {"tn": tn, "groupId": group_id}
        return await self._soap("SetDIDGroup", DIDResponse, params, phone_number=tn, cancel=cancel)

    async def get_sms_campaigns(self, *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[SMS10DLCResponse]:
        return await self._soap("GetSMSCampaigns", SMS10DLCResponse, {}, cancel=cancel)

    async def assign_to_sms_campaign(
        self,
        tns: Sequence[str],
        campaign_id: str,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[SMS10DLCResponse]:
        try:
            items = validate_phone_sequence(tns)
            require_text(campaign_id, "campaign_id")
        except InvalidArgumentError as exc:
            return _invalid(exc)
        params = {"tns": items, "campaignId": campaign_id}
        return await self._soap(
            "AssignToSMSCampaign", SMS10DLCResponse, params, phone_number=items[0], cancel=cancel
        )

    async def remove_did_group(self, tn: str, *, cancel: Optional[asyncio.Event] = None) -> ApiResponse[DIDResponse]:
        try:
            validate_phone_numbers(tn)
        except InvalidArgumentError as exc:
            return _invalid(exc)
        return await self._soap("RemoveDIDGroup", DIDResponse, {"tn": tn}, phone_number=tn, cancel=cancel)
