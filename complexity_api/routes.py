"""
Analysis routes.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from complexity_api import __version__
from complexity_api.analysis_service import AnalysisService
from complexity_api.config import SUPPORTED_LANGUAGES, logger
from complexity_api.errors import ERROR_RESPONSES, ClassifiedError, ErrorKind
from complexity_api.models import (
    AnalysisMetadata,
    AnalyzeData,
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    ServiceLimits,
    StatusResponse,
)


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service


def error_response(
    kind: ErrorKind,
    message: Optional[str] = None,
    retry_after: Optional[int] = None,
) -> JSONResponse:
    """Build the JSON error envelope for a failure kind."""
    spec = ERROR_RESPONSES.get(kind, ERROR_RESPONSES[ErrorKind.INTERNAL])
    body = ErrorResponse(
        error=spec.error,
        message=message or spec.message,
        code=spec.code,
        retryAfter=retry_after,
    )
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=spec.status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


analysis_router = APIRouter()


@analysis_router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def analyze_code(
    payload: AnalyzeRequest,
    request: Request,
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Analyze code complexity.

    Returns time and space complexity, detected algorithm and data
    structures, suggestions and alternative approaches.
    """
    max_length = request.app.state.settings.MAX_CODE_LENGTH
    if payload.raw_code_length > max_length:
        return error_response(
            ErrorKind.BAD_INPUT,
            message=f"Code is too long. Maximum {max_length:,} characters allowed.",
        )

    logger.info("Analyzing %d chars of %s code", len(payload.code), payload.language)

    try:
        analysis = await service.analyze(
            code=payload.code,
            language=payload.language,
            problem_title=payload.problemTitle,
        )
    except ClassifiedError as exc:
        logger.error("Analysis error (%s): %s", exc.kind.value, exc.message)
        return error_response(exc.kind, retry_after=exc.retry_after)

    return AnalyzeResponse(
        success=True,
        data=AnalyzeData(
            analysis=analysis,
            metadata=AnalysisMetadata(
                language=payload.language,
                problemTitle=payload.problemTitle or None,
                codeLength=len(payload.code),
                analyzedAt=datetime.now(timezone.utc).isoformat(),
            ),
        ),
    )


@analysis_router.get("/status", response_model=StatusResponse)
async def service_status(request: Request):
    """Static service metadata."""
    settings = request.app.state.settings
    return StatusResponse(
        service="Code Complexity Analyzer",
        status="active",
        version=__version__,
        supportedLanguages=list(SUPPORTED_LANGUAGES),
        limits=ServiceLimits(
            maxCodeLength=settings.MAX_CODE_LENGTH,
            rateLimit=settings.rate_limit_description,
        ),
    )


# Mounted only in development
dev_router = APIRouter()


@dev_router.post("/test-rate-limit")
async def simulate_rate_limit(request: Request):
    """Return the upstream rate-limit response without calling Gemini."""
    return error_response(
        ErrorKind.RATE_LIMITED,
        retry_after=request.app.state.settings.RATE_LIMIT_RETRY_AFTER,
    )
