# provider_gateway/web/server.py
# ---------------------------------------------------------------------------
# Provider Gateway Web Server Entrypoint
# ---------------------------------------------------------------------------
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from provider_gateway.common.responses import RequestResponse
from provider_gateway.common.tracing import setup_logging
from provider_gateway.config import Settings, get_settings
from provider_gateway.web import metrics
from provider_gateway.web.middleware import setup_middleware
from provider_gateway.web.routes_appointments import router as appointments_router
from provider_gateway.web.routes_dids import router as dids_router

log = logging.getLogger("gateway.web")


def _validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        message = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        errors.setdefault(field, []).append(message)
    return errors


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI app; settings are validated here so bad config fails at startup."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.app.log_level)
        log.info("Provider gateway started (voip endpoint=%s)", settings.voip.endpoint_url)
        yield

    app = FastAPI(title="Provider Gateway API", lifespan=lifespan)
    app.state.settings = settings

    setup_middleware(app, cors_origins=settings.app.cors_origins)

    app.include_router(appointments_router)
    app.include_router(dids_router)
    app.include_router(metrics.router)

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        body = RequestResponse.fail("Validation failed", errors=_validation_errors(exc), status_code=400)
        return JSONResponse(body.to_wire(), status_code=400)

    @app.exception_handler(HTTPException)
    async def on_http_error(request: Request, exc: HTTPException):
        body = RequestResponse.fail(str(exc.detail), status_code=exc.status_code)
        return JSONResponse(body.to_wire(), status_code=exc.status_code, headers=exc.headers)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


# ---------------------------------------------------------------------------
# App Export for Uvicorn and Tests
# ---------------------------------------------------------------------------
app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("provider_gateway.web.server:app", host="0.0.0.0", port=port)
