# provider_gateway/common/tracing.py
from __future__ import annotations
import logging, uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Callable, Iterator, Optional

from opentelemetry import trace

_TRACE_ID: ContextVar[Optional[str]] = ContextVar("_TRACE_ID", default=None)
_FACTORY_INSTALLED = False

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [trace=%(trace_id)s]: %(message)s"

# No-op until the hosting process installs an OpenTelemetry SDK provider.
tracer = trace.get_tracer("provider_gateway")


def new_trace_id() -> str:
    return str(uuid.uuid4())


def get_trace_id() -> Optional[str]:
    """Request id of the current task, else the active span's trace id."""
    value = _TRACE_ID.get()
    if value:
        return value
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return None


def set_trace_id(value: Optional[str]) -> Token:
    return _TRACE_ID.set(value)


@contextmanager
def trace_scope(value: Optional[str] = None) -> Iterator[str]:
    """Bind a trace id for the duration of the block (one inbound request)."""
    trace_id = value or new_trace_id()
    token = _TRACE_ID.set(trace_id)
    try:
        yield trace_id
    finally:
        _TRACE_ID.reset(token)


def _install_logrecord_factory() -> None:
    """Ensure every LogRecord has .trace_id (even for 3rd-party loggers)."""
    global _FACTORY_INSTALLED
    if _FACTORY_INSTALLED:
        return
    old_factory: Callable[..., logging.LogRecord] = logging.getLogRecordFactory()  # type: ignore

    def record_factory(*args, **kwargs) -> logging.LogRecord:  # type: ignore
        record = old_factory(*args, **kwargs)
        if not hasattr(record, "trace_id"):
            record.trace_id = get_trace_id() or "-"
        return record

    logging.setLogRecordFactory(record_factory)
    _FACTORY_INSTALLED = True


def setup_logging(level: int | str = logging.INFO) -> None:
    """Install the trace-id factory, the shared format and the gateway log level."""
    _install_logrecord_factory()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("gateway").setLevel(level)
    # request lines from httpx duplicate the executor's own logging
    logging.getLogger("httpx").setLevel(logging.WARNING)
