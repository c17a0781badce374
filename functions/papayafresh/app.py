"""
FastAPI application entry point for the PapayaFresh API.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from papayafresh.config import get_settings
from papayafresh.dependencies import init_backends, shutdown_backends
from papayafresh.errors import (
    IdentityProviderError,
    StoreError,
    UserNotFoundError,
)
from papayafresh.routes import available_endpoints, router
from papayafresh.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def _error(status_code: int, **fields) -> JSONResponse:
    body = ErrorResponse(**fields).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    try:
        init_backends()
    except Exception:
        logger.exception("Backend initialization failed")
        raise
    logger.info("Serving %s", ", ".join(available_endpoints(get_settings().api_prefix)))
    try:
        yield
    finally:
        shutdown_backends()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title=settings.server_name,
        version=settings.server_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(
            "%s %s %s",
            datetime.now(timezone.utc).isoformat(),
            request.method,
            request.url.path,
        )
        return await call_next(request)

    @app.exception_handler(UserNotFoundError)
    async def user_not_found(_request: Request, exc: UserNotFoundError):
        return _error(404, error=str(exc))

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        logger.error("Store error on %s: %s", request.url.path, exc)
        return _error(500, error=str(exc))

    @app.exception_handler(IdentityProviderError)
    async def identity_error(request: Request, exc: IdentityProviderError):
        logger.error("Identity provider error on %s: %s", request.url.path, exc)
        return _error(500, error=str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException):
        # A known path with the wrong method is unmatched too.
        if exc.status_code in (404, 405):
            return _error(
                404,
                error="Endpoint not found",
                availableEndpoints=available_endpoints(settings.api_prefix),
            )
        return _error(exc.status_code, error=str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return _error(500, error="Internal server error", message=str(exc))

    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
