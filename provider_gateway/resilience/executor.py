# provider_gateway/resilience/executor.py
"""
Resilient Call Executor
-------------------------------------------
Wraps one outbound provider call (SOAP or REST) with:

- phone-number pre-validation (no network call on bad input)
- a per-attempt deadline raced against the call and the caller's cancel event
- retry with exponential back-off on transient failures only
- translation of every failure into an ApiResponse fault code

Every attempt acquires a fresh client from `client_factory` (an async context
manager) and releases it on every exit path. When the deadline wins the race
the client is aborted and the call task is cancelled without being awaited,
so a call that ignores cancellation cannot hold the caller hostage.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncContextManager, Awaitable, Callable, Generic, Optional, TypeVar

from provider_gateway.common.result import ApiResponse
from provider_gateway.common.tracing import tracer
from provider_gateway.common.validation import validate_phone_numbers
from provider_gateway.resilience.errors import (
    CallCancelledError,
    GatewayError,
    RequestTimeoutError,
    UnexpectedError,
    classify_exception,
)
from provider_gateway.resilience.retry_policies import RetryPolicy
from provider_gateway.web import metrics

log = logging.getLogger("gateway.executor")

C = TypeVar("C")
R = TypeVar("R")
T = TypeVar("T")

ClientFactory = Callable[[], AsyncContextManager[Any]]
SleepFn = Callable[[float], Awaitable[Any]]

_OUTCOMES = {
    0: "success",
    -1: "fault",
    -2: "timeout",
    -3: "transport",
    -4: "configuration",
    -5: "empty",
    -6: "invalid_argument",
    -7: "cancelled",
}


class ResilientCallExecutor(Generic[C]):
    def __init__(
        self,
        client_factory: ClientFactory,
        *,
        provider: str,
        timeout_seconds: float,
        retry_policy: RetryPolicy,
        sleep: SleepFn = asyncio.sleep,
    ):
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._client_factory = client_factory
        self.provider = provider
        self.timeout_seconds = float(timeout_seconds)
        self.retry_policy = retry_policy
        self._sleep = sleep

    async def execute(
        self,
        call: Callable[[C], Awaitable[Optional[R]]],
        selector: Callable[[R], Optional[T]],
        *,
        operation: str = "call",
        phone_number: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[T]:
        """
        Run `call` against a freshly acquired client and project its raw
        result through `selector`. Never raises for provider, network,
        validation or cancellation failures; those come back as fault
        envelopes.
        """
        with tracer.start_as_current_span(f"{self.provider}.{operation}") as span:
            span.set_attribute("provider", self.provider)
            span.set_attribute("operation", operation)
            try:
                if phone_number is not None:
                    validate_phone_numbers(phone_number)
                    span.set_attribute("phoneNumber", phone_number)
                response = await self._run_with_retry(call, selector, operation, cancel)
            except GatewayError as exc:
                log.error(
                    "%s %s failed with %s: %s",
                    self.provider, operation, type(exc).__name__, exc.response_message,
                    exc_info=exc if isinstance(exc, UnexpectedError) else None,
                )
                response = ApiResponse.error(exc.code, exc.response_message)
            except Exception as exc:  # noqa: BLE001
                log.exception("Unexpected error during %s %s", self.provider, operation)
                response = ApiResponse.error(-1, f"Unexpected error: {exc}")

            span.set_attribute("result.code", response.code)
            metrics.PROVIDER_CALLS.labels(
                provider=self.provider,
                operation=operation,
                outcome=_OUTCOMES.get(response.code, "fault"),
            ).inc()
            return response

    # ------------------------------------------------------------------
    # Retry loop
    # ------------------------------------------------------------------
    async def _run_with_retry(self, call, selector, operation: str, cancel: Optional[asyncio.Event]):
        retries = 0
        while True:
            try:
                return await self._attempt(call, selector, operation, cancel)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                err = classify_exception(exc)
                if not self.retry_policy.should_retry(retries, err):
                    if err is exc:
                        raise
                    raise err from exc

                retries += 1
                delay = self.retry_policy.delay_for(retries)
                log.warning(
                    "Retrying %s %s after %.0fms due to %s: %s (Attempt %d)",
                    self.provider, operation, delay * 1000, type(err).__name__, err.detail, retries,
                )
                metrics.PROVIDER_RETRIES.labels(provider=self.provider, operation=operation).inc()
                await self._wait_before_retry(delay, cancel)

    async def _wait_before_retry(self, delay: float, cancel: Optional[asyncio.Event]) -> None:
        if cancel is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        if cancel.is_set():
            raise CallCancelledError()

    # ------------------------------------------------------------------
    # Single attempt: call vs deadline vs caller cancellation
    # ------------------------------------------------------------------
    async def _attempt(self, call, selector, operation: str, cancel: Optional[asyncio.Event]):
        if cancel is not None and cancel.is_set():
            raise CallCancelledError()

        async with self._client_factory() as client:
            call_task = asyncio.ensure_future(call(client))
            timer = asyncio.ensure_future(asyncio.sleep(self.timeout_seconds))
            cancel_waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None

            waiters = {call_task, timer}
            if cancel_waiter is not None:
                waiters.add(cancel_waiter)

            try:
                done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (timer, cancel_waiter):
                    if task is not None and not task.done():
                        task.cancel()
                if not call_task.done():
                    self._abandon(client, call_task)

            if call_task in done:
                raw = call_task.result()
            elif cancel_waiter is not None and cancel_waiter in done:
                log.warning("%s %s was cancelled by the caller", self.provider, operation)
                raise CallCancelledError()
            else:
                log.error("%s %s timed out after %ss", self.provider, operation, self.timeout_seconds)
                raise RequestTimeoutError(f"no response within {self.timeout_seconds}s")

        return self._project(raw, selector, operation)

    def _abandon(self, client: Any, call_task: "asyncio.Future[Any]") -> None:
        abort = getattr(client, "abort", None)
        if callable(abort):
            try:
                abort()
            except Exception:  # noqa: BLE001
                log.debug("abort() failed on %s client", self.provider, exc_info=True)
        call_task.cancel()
        call_task.add_done_callback(_drain)

    def _project(self, raw: Any, selector, operation: str) -> ApiResponse:
        if raw is None or (isinstance(raw, (str, bytes)) and not raw):
            log.error("%s %s returned a null response", self.provider, operation)
            return ApiResponse.error(-5, f"Unexpected null response from {self.provider} API")

        value = selector(raw)
        if value is None:
            log.error("Failed to process %s %s response - result selector returned null", self.provider, operation)
            return ApiResponse.error(-1, f"Failed to process {self.provider} response")

        return ApiResponse.success(value)


def _drain(task: "asyncio.Future[Any]") -> None:
    """Mark an abandoned call's outcome as retrieved."""
    if not task.cancelled():
        task.exception()
