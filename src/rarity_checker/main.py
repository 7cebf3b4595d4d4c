# src/rarity_checker/main.py
"""Main entry point for the Rarity Checker application."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from rarity_checker.api.v1 import (
    auth_router,
    leaderboard_router,
    rarity_router,
    staking_router,
    users_router,
)
from rarity_checker.core.errors import RarityCheckerError
from rarity_checker.core.logging import configure_logging
from rarity_checker.core.settings import settings
from rarity_checker.db.session import create_tables
from rarity_checker.schemas.common import ErrorResponse
from rarity_checker.services.container import Services, build_services

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="NFT rarity ranking and staking rewards API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Error envelope documented on every versioned route
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status_code: {"model": ErrorResponse} for status_code in (400, 401, 403, 404, 409, 502, 503)
}

# Include API routers
app.include_router(auth_router, prefix="/api/v1", responses=ERROR_RESPONSES)
app.include_router(users_router, prefix="/api/v1", responses=ERROR_RESPONSES)
app.include_router(staking_router, prefix="/api/v1", responses=ERROR_RESPONSES)
app.include_router(rarity_router, prefix="/api/v1", responses=ERROR_RESPONSES)
app.include_router(leaderboard_router, prefix="/api/v1", responses=ERROR_RESPONSES)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


@app.exception_handler(RarityCheckerError)
async def handle_domain_error(request: Request, exc: RarityCheckerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    )
    return _error_response(400, "validation_error", details or "Invalid request.")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    services: Services | None = getattr(app.state, "services", None)
    if services is None:
        create_tables()
        services = build_services(settings)
        app.state.services = services
    services.ranking.load()
    await services.accrual_worker.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    services: Services | None = getattr(app.state, "services", None)
    if services:
        await services.accrual_worker.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "NFT rarity ranking and staking rewards API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rarity_checker.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
