# src/irlnearby/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance, configures CORS and maps failures raised outside
a route's own error handling (session, directory loading) to the API error envelope.
Business logic lives in `irlnearby.api.routes` and `irlnearby.proximity`.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from irlnearby.core.logging import configure_logging
from irlnearby.domain.models import ApiEnvelope
from irlnearby.errors import AuthenticationRequired, UpstreamUnavailable

from .routes import router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="IRL Nearby API", version="0.1.0")

# CORS for the component front end. Configure via env:
# - IRLNEARBY_CORS_ORIGINS="http://localhost:5173,http://127.0.0.1:5173"
# - IRLNEARBY_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("IRLNEARBY_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("IRLNEARBY_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

app.include_router(router)


@app.exception_handler(AuthenticationRequired)
def authentication_required(request: Request, exc: AuthenticationRequired) -> JSONResponse:
    return JSONResponse(status_code=401, content=ApiEnvelope(success=False, error=str(exc)).to_payload())


@app.exception_handler(UpstreamUnavailable)
def upstream_unavailable(request: Request, exc: UpstreamUnavailable) -> JSONResponse:
    logger.error("Directory unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=ApiEnvelope(success=False, error="Internal server error").to_payload())


@app.exception_handler(Exception)
def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    # Failures outside a route's own try (e.g. session resolution) still get the envelope.
    logger.exception("Unhandled error during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=ApiEnvelope(success=False, error="Internal server error").to_payload())
