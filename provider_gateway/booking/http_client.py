# provider_gateway/booking/http_client.py
"""
Booksy REST transport
-------------------------------------------
`BooksyHttpClient` is the per-attempt client the executor acquires for
Booksy calls; `HttpRequestService` is the thin GET facade the booking
service talks to. Non-2xx responses surface as `httpx.HTTPStatusError` so
the executor can classify them (5xx/429/408 are retried, the rest are not).
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx

from provider_gateway.common.result import ApiResponse
from provider_gateway.config import BooksySettings
from provider_gateway.resilience.circuit_breaker import CircuitBreaker
from provider_gateway.resilience.errors import ConfigurationError
from provider_gateway.resilience.executor import ResilientCallExecutor
from provider_gateway.resilience.retry_policies import retry_policy_for

log = logging.getLogger("gateway.booking.http")

T = TypeVar("T")

USER_AGENT = "SecureApiClient/1.0"


class BooksyHttpClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        access_token: str,
        timeout_seconds: float,
        breaker: CircuitBreaker,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._access_token = access_token
        self._breaker = breaker
        self._aborted = False
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds, transport=transport)

    async def __aenter__(self) -> "BooksyHttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()

    def abort(self) -> None:
        self._aborted = True

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": USER_AGENT,
            "X-Request-ID": str(uuid.uuid4()),
            "Accept": "application/json",
        }
        if self._api_key:
            headers["x-api-key"] = self._api_key
        if self._access_token:
            headers["x-access-token"] = self._access_token
        return headers

    async def get_json(self, path: str) -> Optional[Any]:
        self._breaker.ensure_closed()
        try:
            response = await self._http.get(path, headers=self._headers())
        except asyncio.CancelledError:
            if self._aborted:
                self._breaker.record_failure()
            else:
                self._breaker.release()
            raise
        except httpx.TransportError:
            self._breaker.record_failure()
            raise

        if response.status_code >= 500:
            self._breaker.record_failure()
        else:
            self._breaker.record_success()
        response.raise_for_status()

        if not response.content or not response.content.strip():
            return None
        return response.json()


class BooksyClientFactory:
    def __init__(
        self,
        settings: BooksySettings,
        *,
        breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.breaker = breaker or CircuitBreaker(
            name="booksy-http",
            failure_threshold=settings.circuit_failure_threshold,
            recovery_timeout=settings.circuit_recovery_seconds,
        )
        self._transport = transport

    def __call__(self) -> BooksyHttpClient:
        if not self.settings.base_url:
            raise ConfigurationError("BooksySettings: BaseUrl is required")
        return BooksyHttpClient(
            base_url=self.settings.base_url,
            api_key=self.settings.api_key,
            access_token=self.settings.access_token,
            timeout_seconds=self.settings.request_timeout_seconds,
            breaker=self.breaker,
            transport=self._transport,
        )


class HttpRequestService:
    def __init__(
        self,
        settings: BooksySettings,
        *,
        executor: Optional[ResilientCallExecutor[BooksyHttpClient]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.executor = executor or ResilientCallExecutor(
            BooksyClientFactory(settings, transport=transport),
            provider="booksy",
            timeout_seconds=settings.request_timeout_seconds,
            retry_policy=retry_policy_for(settings.max_retry_attempts),
        )

    async def get(
        self,
        path: str,
        selector: Callable[[Any], Optional[T]],
        *,
        operation: str = "get",
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[T]:
        return await self.executor.execute(
            lambda client: client.get_json(path),
            selector,
            operation=operation,
            cancel=cancel,
        )
