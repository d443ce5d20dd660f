"""
FastAPI application setup.

This module depends on:
- youthlink.config.get_settings for configuration
- youthlink.db.session.Base and engine for DB initialization
- youthlink.api.api_router for route registration
- youthlink.core.exceptions for translating service errors into responses
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from youthlink.api import api_router
from youthlink.config import configure_logging, get_settings
from youthlink.core.exceptions import ServiceError
from youthlink.db.session import Base, engine
from youthlink.services.statsig_client import shutdown_statsig

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
)


# ---- CORS ----

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o).rstrip("/") for o in settings.allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Routes ----

app.include_router(api_router, prefix="/api")


# ---- Errors ----


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning(
        "%s %s -> %d: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---- Lifecycle ----


@app.on_event("startup")
def on_startup() -> None:
    """
    Configure logging and initialize the database schema on startup.

    Deployments with schema history should run migrations instead of
    `create_all`, but this keeps the system runnable out of the box.
    """
    configure_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("%s started (%s)", settings.app_name, settings.environment)


@app.on_event("shutdown")
def on_shutdown() -> None:
    shutdown_statsig()


# ---- Healthcheck ----


@app.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}
