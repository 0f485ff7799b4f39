# provider_gateway/booking/service.py
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import ValidationError

from provider_gateway.auth.tokens import TokenService
from provider_gateway.booking import endpoints
from provider_gateway.booking.http_client import HttpRequestService
from provider_gateway.booking.models import BusinessResponse
from provider_gateway.common.responses import RequestResponse
from provider_gateway.config import AppSettings

log = logging.getLogger("gateway.booking")


def _business_response(raw: Any) -> Optional[BusinessResponse]:
    if not isinstance(raw, dict):
        return None
    try:
        return BusinessResponse.model_validate(raw)
    except ValidationError:
        log.warning("Unexpected Booksy businesses payload: %s", raw)
        return None


class BookingService:
    def __init__(self, http: HttpRequestService, tokens: TokenService, settings: AppSettings):
        self.http = http
        self.tokens = tokens
        self.settings = settings

    async def get_business_data(self) -> RequestResponse:
        """Look up the API account's business and issue dashboard tokens for it."""
        response = await self.http.get(
            endpoints.GET_BUSINESS_DATA, _business_response, operation="get_business_data"
        )
        if response.is_fault:
            return RequestResponse.from_fault(response)

        if not response.value.businesses:
            log.warning("Booksy returned no businesses for this API account")
            return RequestResponse.fail("No businesses found.", status_code=404)

        business = response.value.businesses[0]
        refresh_token = self.tokens.issue_refresh_token(business.id)
        access_token = self.tokens.create_token(business.id)
        expiration = datetime.now(timezone.utc) + timedelta(days=self.settings.refresh_token_validity_in_days)

        log.info("Issued dashboard tokens for business %s", business.id)
        return RequestResponse.ok(
            {
                "accessToken": access_token,
                "refreshToken": refresh_token,
                "expiration": expiration.isoformat(),
            }
        )

    async def get_appointments(
        self,
        business_id: int,
        start_date: date,
        end_date: date,
        customer_name: Optional[str] = None,
    ) -> RequestResponse:
        path = endpoints.get_appointments(business_id, start_date, end_date, customer_name)
        response = await self.http.get(path, lambda raw: raw, operation="get_appointments")

        if response.code == -5:
            return RequestResponse.fail("No appointments found.", status_code=404)
        if response.is_fault:
            return RequestResponse.from_fault(response)
        return RequestResponse.ok(response.value)
