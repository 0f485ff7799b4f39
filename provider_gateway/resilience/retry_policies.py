# provider_gateway/resilience/retry_policies.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, Optional

from provider_gateway.resilience.errors import GatewayError, classify_exception

# -----------------------------------------------------------------------------
# Error types that must NEVER retry (matched by class name so callers can
# extend the list without importing the classes)
# -----------------------------------------------------------------------------
_NON_RETRYABLE_TYPES = frozenset({
    "InvalidArgumentError",
    "ConfigurationError",
    "CallCancelledError",
    "CircuitOpenError",
    "ProtocolFault",
    "UnexpectedError",
})


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential back-off: retry N waits `backoff_coefficient ** N` seconds
    (N = 1..max_retry_attempts), capped at `maximum_interval`.

    Example:
        policy = RetryPolicy(max_retry_attempts=3)
        list(policy.delays())  # [2.0, 4.0, 8.0]
    """

    max_retry_attempts: int = 3
    backoff_coefficient: float = 2.0
    maximum_interval: Optional[float] = None
    non_retryable_error_types: FrozenSet[str] = field(default=_NON_RETRYABLE_TYPES)

    def __post_init__(self) -> None:
        if self.max_retry_attempts < 1:
            raise ValueError("max_retry_attempts must be >= 1")
        if self.backoff_coefficient <= 0:
            raise ValueError("backoff_coefficient must be > 0")

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        delay = float(self.backoff_coefficient ** attempt)
        if self.maximum_interval is not None:
            delay = min(delay, self.maximum_interval)
        return delay

    def delays(self) -> Iterator[float]:
        for attempt in range(1, self.max_retry_attempts + 1):
            yield self.delay_for(attempt)

    def should_retry(self, attempt: int, exc: BaseException) -> bool:
        """`attempt` counts retries already performed."""
        if attempt >= self.max_retry_attempts:
            return False
        err: GatewayError = classify_exception(exc)
        if type(err).__name__ in self.non_retryable_error_types:
            return False
        return err.retryable


def retry_policy_for(max_retry_attempts: int) -> RetryPolicy:
    """Provider policy used by the SOAP and REST executors."""
    return RetryPolicy(max_retry_attempts=max_retry_attempts)
