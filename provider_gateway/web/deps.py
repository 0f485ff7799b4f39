# provider_gateway/web/deps.py
"""
FastAPI dependencies. Services are process-wide singletons so the circuit
breakers and the refresh-token store are shared between requests; tests swap
them through `app.dependency_overrides`.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from provider_gateway.auth.tokens import TokenService
from provider_gateway.booking.http_client import HttpRequestService
from provider_gateway.booking.service import BookingService
from provider_gateway.config import get_settings
from provider_gateway.voip.api_service import VoipApiService
from provider_gateway.voip.automation import DIDAutomationService

log = logging.getLogger("gateway.web")

_bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(get_settings().app)


@lru_cache
def get_booking_service() -> BookingService:
    settings = get_settings()
    return BookingService(HttpRequestService(settings.booksy), get_token_service(), settings.app)


@lru_cache
def get_voip_service() -> VoipApiService:
    return VoipApiService(get_settings().voip)


@lru_cache
def get_automation_service() -> DIDAutomationService:
    return DIDAutomationService(get_voip_service())


def current_business_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> int:
    """Business id from the bearer JWT; 401 on a missing or invalid token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        claims = tokens.decode_token(credentials.credentials)
        return tokens.business_id_from(claims)
    except JWTError as exc:
        log.warning("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
