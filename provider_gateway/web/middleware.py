# provider_gateway/web/middleware.py
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from provider_gateway.common.tracing import trace_scope
from provider_gateway.web import metrics as metrics_mod


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        with trace_scope(request.headers.get("X-Request-ID")) as request_id:
            request.state.request_id = request_id
            response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        start = time.time()

        # Count every request
        metrics_mod.HTTP_TOTAL.labels(method=request.method, path=request.url.path).inc()

        response = await call_next(request)

        metrics_mod.HTTP_LATENCY.observe(time.time() - start)

        status = response.status_code
        if 200 <= status < 300:
            metrics_mod.HTTP_2XX.inc()
        elif 400 <= status < 500:
            metrics_mod.HTTP_4XX.inc()
        elif status >= 500:
            metrics_mod.HTTP_5XX.inc()

        return response


def setup_middleware(app: FastAPI, cors_origins=()):
    """Attach CORS, request-id and metrics middleware to the app."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(MetricsMiddleware)
