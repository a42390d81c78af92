"""FastAPI application factory.

State
-----
``app.state.policy`` holds the process-wide :class:`SecurityPolicy`, built once
from settings at app creation and shared read-only by every request.
``app.state.transport`` optionally overrides the outbound httpx transport.

Routers
-------
All endpoint groups are mounted under ``/api``:

    /api/fetch-url  : guarded job posting fetch & extraction
    /api/health     : liveness probe
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hirescore import __version__
from hirescore.config import settings
from hirescore.scraper.errors import FetchError
from hirescore.scraper.models import SecurityPolicy

from hirescore.api.routers import fetch as fetch_router
from hirescore.api.routers import health as health_router

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}


async def _fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "URL is required and must be a string"},
    )


def create_app(
    policy: Optional[SecurityPolicy] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="HireScore Fetch API",
        description=(
            "Fetches job posting URLs behind an SSRF guard and extracts a "
            "normalised plain-text job description."
        ),
        version=__version__,
    )
    app.state.policy = policy or settings.security_policy()
    app.state.transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):  # type: ignore[no-untyped-def]
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers[name] = value
        return response

    app.add_exception_handler(FetchError, _fetch_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]

    app.include_router(fetch_router.router, prefix="/api", tags=["fetch"])
    app.include_router(health_router.router, prefix="/api", tags=["health"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn hirescore.api.app:app --reload
app = create_app()
