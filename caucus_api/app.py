"""
FastAPI application entry point for the caucus site API.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from caucus_api.auth_routes import router as auth_router
from caucus_api.config import Settings, get_settings
from caucus_api.db import DbClient
from caucus_api.dependencies import build_db_client, build_security_context
from caucus_api.errors import CaucusError, ConfigurationMissing
from caucus_api.rate_limit import Clock, wall_clock_ms
from caucus_api.routes import router
from caucus_api.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    level = settings.log_level or ("INFO" if settings.is_production else "DEBUG")
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CaucusError)
    async def handle_caucus_error(request: Request, exc: CaucusError):
        if isinstance(exc, ConfigurationMissing):
            logger.error("%s; rejecting %s %s", exc, request.method, request.url.path)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()))
            message = f"Invalid request: {location} {errors[0].get('msg', '')}".strip()
        return _error_response(400, message)


def create_app(
    settings: Optional[Settings] = None,
    *,
    db: Optional[DbClient] = None,
    clock: Clock = wall_clock_ms,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    for problem in settings.configuration_errors():
        logger.warning("Configuration problem: %s", problem)

    security = build_security_context(settings, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        security.sweeper.start()
        try:
            yield
        finally:
            security.sweeper.stop()

    app = FastAPI(title="Caucus Site API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db if db is not None else build_db_client(settings)
    app.state.security = security

    _register_exception_handlers(app)
    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    level = settings.log_level or ("info" if settings.is_production else "debug")
    uvicorn.run(
        "caucus_api.app:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=not settings.is_production,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
