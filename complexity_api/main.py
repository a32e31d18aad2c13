"""
FastAPI application for the Complexity Analyzer API.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from complexity_api import __version__
from complexity_api.analysis_service import AnalysisService
from complexity_api.config import Settings, get_settings, logger
from complexity_api.errors import ErrorKind
from complexity_api.gemini_model import GeminiModel
from complexity_api.middleware import request_size_middleware, security_headers_middleware
from complexity_api.ratelimit import MemoryWindowCounter, RateLimiter, RedisWindowCounter
from complexity_api.routes import analysis_router, dev_router, error_response


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem as plain text, without echoing request values."""
    errors = exc.errors()
    if not errors:
        return "Invalid request format"
    first = errors[0]
    cause = (first.get("ctx") or {}).get("error")
    if cause is not None:
        return str(cause)
    field = first.get("loc", ["body"])[-1]
    return f"{field}: {first.get('msg', 'invalid value')}"


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[AnalysisService] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        settings: Settings to use, defaults to the environment
        service: Analysis service to mount, defaults to one backed by Gemini
    """
    settings = settings or get_settings()
    if service is None:
        service = AnalysisService(
            GeminiModel.from_settings(settings),
            retry_after=settings.RATE_LIMIT_RETRY_AFTER,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Complexity Analyzer v%s starting (%s)", __version__, settings.ENVIRONMENT)
        logger.info("Model: %s", settings.GEMINI_MODEL)
        logger.info("Rate limit: %s", settings.rate_limit_description)

        if not service.available:
            logger.error("Gemini provider not available - check GEMINI_API_KEY")

        if settings.REDIS_URL:
            app.state.rate_limit_counter = await RedisWindowCounter.connect(settings.REDIS_URL)

        yield

        logger.info("Shutting down")
        await app.state.rate_limit_counter.close()

    app = FastAPI(
        title="Complexity Analyzer API",
        description="AI-powered code complexity analysis using Gemini",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.state.settings = settings
    app.state.analysis_service = service
    app.state.rate_limit_counter = MemoryWindowCounter(settings.RATE_LIMIT_WINDOW_SECONDS)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Log field names and error types only, never values
        details = [
            {"field": err.get("loc", ["unknown"])[-1], "type": err.get("type")}
            for err in exc.errors()[:5]
        ]
        logger.warning("Validation error on %s %s: %s", request.method, request.url.path, details)
        return error_response(ErrorKind.BAD_INPUT, message=_validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Endpoint not found",
                    "message": "The requested resource does not exist",
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s: %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            str(exc)[:200],
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "Something went wrong" if settings.is_production else str(exc),
            },
        )

    # Last registered runs first: the rate limiter sees every request
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_size_middleware)
    app.middleware("http")(RateLimiter(settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS))

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.cors_origin_regex,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "Complexity Analyzer API",
            "model": settings.GEMINI_MODEL,
        }

    app.include_router(analysis_router, prefix="/api", tags=["analysis"])
    app.include_router(analysis_router, tags=["analysis-compat"])
    if not settings.is_production:
        app.include_router(dev_router, tags=["development"])

    return app


app = create_app()
