# tests/conftest.py
import os

# --- Settings are validated on import of the web app; give tests a complete env
os.environ.setdefault("VOIP_LOGIN", "test-login")
os.environ.setdefault("VOIP_SECRET", "test-secret")
os.environ.setdefault("VOIP_DEFAULT_CAMPAIGN_ID", "CMP-DEFAULT")
os.environ.setdefault("BOOKSY_API_KEY", "test-api-key")
os.environ.setdefault("BOOKSY_ACCESS_TOKEN", "test-access-token")
os.environ.setdefault("APP_SECRET", "unit-test-signing-secret-0123456789abcdef")
os.environ.setdefault("APP_ISSUER", "provider-gateway-tests")
os.environ.setdefault("APP_AUDIENCE", "provider-gateway-dashboard")

import asyncio
import contextlib
from typing import Any, Callable, Dict, List, Optional

import pytest

from provider_gateway.resilience import executor as executor_mod
from provider_gateway.resilience.executor import ResilientCallExecutor
from provider_gateway.resilience.retry_policies import RetryPolicy


# --------------------------------------------------------------------------------------
# Fake time
# --------------------------------------------------------------------------------------
class FakeSleep:
    """Records requested back-off delays and returns immediately."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def fake_sleep():
    return FakeSleep()


@pytest.fixture()
def fake_clock():
    return FakeClock()


# --------------------------------------------------------------------------------------
# Dummy provider clients
# --------------------------------------------------------------------------------------
class DummyClient:
    def __init__(self):
        self.closed = False
        self.aborted = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    def abort(self):
        self.aborted = True


class DummyClientFactory:
    """Hands out a fresh DummyClient per attempt and remembers all of them."""

    def __init__(self, error: Optional[BaseException] = None):
        self.clients: List[DummyClient] = []
        self._error = error

    def __call__(self) -> DummyClient:
        if self._error is not None:
            raise self._error
        client = DummyClient()
        self.clients.append(client)
        return client

    @property
    def created(self) -> int:
        return len(self.clients)


class ScriptedCall:
    """
    A provider call that plays back `outcomes` in order: exceptions are
    raised, anything else is returned. The last outcome repeats.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self, client) -> Any:
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome()
        return outcome


@pytest.fixture()
def client_factory():
    return DummyClientFactory()


@pytest.fixture()
def make_executor(fake_sleep):
    def _make(
        factory: Optional[Callable[[], Any]] = None,
        *,
        max_retry_attempts: int = 3,
        timeout_seconds: float = 5.0,
        provider: str = "voip",
    ) -> ResilientCallExecutor:
        return ResilientCallExecutor(
            factory or DummyClientFactory(),
            provider=provider,
            timeout_seconds=timeout_seconds,
            retry_policy=RetryPolicy(max_retry_attempts=max_retry_attempts),
            sleep=fake_sleep,
        )

    return _make


# --------------------------------------------------------------------------------------
# Span capture
# --------------------------------------------------------------------------------------
class RecordingSpan:
    def __init__(self, name: str):
        self.name = name
        self.attributes: Dict[str, Any] = {}

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value


class RecordingTracer:
    def __init__(self):
        self.spans: List[RecordingSpan] = []

    @contextlib.contextmanager
    def start_as_current_span(self, name: str, **_kwargs):
        span = RecordingSpan(name)
        self.spans.append(span)
        yield span


@pytest.fixture()
def recording_tracer(monkeypatch):
    tracer = RecordingTracer()
    monkeypatch.setattr(executor_mod, "tracer", tracer, raising=True)
    return tracer
