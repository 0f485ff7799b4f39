# provider_gateway/resilience/errors.py
from __future__ import annotations

import asyncio
from typing import Optional

import httpx

# ---- Canonical error classes ------------------------------------------------
# `code` is the caller-visible ApiResponse code; `retryable` drives the
# executor's retry policy.

class GatewayError(Exception):
    code: int = -1
    retryable: bool = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.detail = message

    @property
    def response_message(self) -> str:
        """Text placed in the fault envelope."""
        return self.detail or self.__class__.__name__


class InvalidArgumentError(GatewayError):
    code, retryable = -6, False


class ConfigurationError(GatewayError):
    code, retryable = -4, False

    @property
    def response_message(self) -> str:
        return f"Configuration error: {self.detail}"


class TransientNetworkError(GatewayError):
    code, retryable = -3, True

    @property
    def response_message(self) -> str:
        return "Communication error"


class CircuitOpenError(TransientNetworkError):
    """Breaker is open; never retried."""
    retryable = False

    def __init__(self, message: str = "Circuit breaker is open"):
        super().__init__(message)


class RequestTimeoutError(GatewayError):
    code, retryable = -2, True

    @property
    def response_message(self) -> str:
        return "Request timed out"


class CallCancelledError(GatewayError):
    code, retryable = -7, False

    @property
    def response_message(self) -> str:
        return "Operation cancelled by the caller"


class UnexpectedError(GatewayError):
    code, retryable = -1, False

    @property
    def response_message(self) -> str:
        return f"Unexpected error: {self.detail}"


class ProtocolFault(GatewayError):
    """Provider-reported fault (SOAP Fault, non-transient HTTP status)."""
    code, retryable = -1, False

    def __init__(
        self,
        fault_code: str,
        reason: str,
        detail: Optional[str] = None,
        *,
        kind: str = "SOAP",
    ):
        super().__init__(f"{fault_code} - {reason}")
        self.fault_code = fault_code
        self.reason = reason
        self.fault_detail = detail
        self.kind = kind

    @property
    def response_message(self) -> str:
        detail = self.fault_detail or "No detail provided"
        return f"{self.kind} fault: {self.fault_code} - {self.reason} - Detail: {detail}"


# ---- Helpers used by the executor -------------------------------------------

_TRANSIENT_STATUS = {408, 429, 500, 502, 503, 504}


def classify_exception(exc: BaseException) -> GatewayError:
    """
    Map any exception raised by a provider call onto the gateway taxonomy.
    GatewayError instances pass through untouched.
    """
    if isinstance(exc, GatewayError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError(str(exc) or "provider timeout")
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code if exc.response is not None else 0
        if status in _TRANSIENT_STATUS:
            return TransientNetworkError(f"HTTP {status}")
        reason = exc.response.reason_phrase if exc.response is not None else str(exc)
        return ProtocolFault(str(status), reason, _response_text(exc.response), kind="HTTP")
    if isinstance(exc, httpx.TransportError):
        return TransientNetworkError(f"{type(exc).__name__}: {exc}")
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return RequestTimeoutError(str(exc) or "timeout")
    if isinstance(exc, (ConnectionError, OSError)):
        return TransientNetworkError(f"{type(exc).__name__}: {exc}")

    return UnexpectedError(str(exc) or type(exc).__name__)


def _response_text(response: Optional[httpx.Response]) -> Optional[str]:
    if response is None:
        return None
    try:
        text = response.text
    except httpx.ResponseNotRead:
        return None
    return text[:500] if text else None
