"""
Error taxonomy for the analysis pipeline.

Failures from the Gemini client are opaque: the SDK reports them as
exceptions whose message and status code vary between versions. They are
mapped onto a small set of kinds by an ordered rule table, and each kind
has a fixed HTTP response.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import httpx


DEFAULT_RETRY_AFTER = 60


class ErrorKind(str, Enum):
    BAD_INPUT = "BadInput"
    CONFIG_MISSING = "ConfigMissing"
    RATE_LIMITED = "RateLimited"
    TIMEOUT = "Timeout"
    UPSTREAM = "Upstream"
    INTERNAL = "Internal"


class ClassifiedError(Exception):
    """Failure of an analysis request, tagged with the kind used to pick a response."""

    def __init__(self, kind: ErrorKind, message: str, retry_after: Optional[int] = None):
        self.kind = kind
        self.message = message
        self.retry_after = retry_after
        super().__init__(message)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def status_of(exc: BaseException) -> Optional[int]:
    """Numeric HTTP-like status carried by an exception, if any."""
    for attr in ("code", "status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _mentions(*phrases: str) -> Callable[[BaseException], bool]:
    def predicate(exc: BaseException) -> bool:
        message = str(exc).lower()
        return any(phrase in message for phrase in phrases)
    return predicate


def _credential_problem(exc: BaseException) -> bool:
    return _mentions("api key", "api_key")(exc)


def _rate_limited(exc: BaseException) -> bool:
    return status_of(exc) == 429 or _mentions(
        "quota", "rate limit", "rate_limit_exceeded", "resource_exhausted", "429"
    )(exc)


def _timed_out(exc: BaseException) -> bool:
    return (
        isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException))
        or status_of(exc) in (408, 504)
        or _mentions("timeout", "timed out", "deadline exceeded")(exc)
    )


def _upstream_failure(exc: BaseException) -> bool:
    status = status_of(exc)
    return (status is not None and status >= 500) or _mentions("server error", "unavailable")(exc)


@dataclass(frozen=True)
class ClassificationRule:
    kind: ErrorKind
    matches: Callable[[BaseException], bool]
    message: str


# Evaluated in order; the first match wins.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(ErrorKind.CONFIG_MISSING, _credential_problem, "Invalid or missing Gemini API key"),
    ClassificationRule(ErrorKind.RATE_LIMITED, _rate_limited, "Gemini API rate limit exceeded"),
    ClassificationRule(ErrorKind.TIMEOUT, _timed_out, "Gemini API request timeout"),
    ClassificationRule(ErrorKind.UPSTREAM, _upstream_failure, "Gemini API server error"),
)


def classify_exception(exc: BaseException, retry_after: int = DEFAULT_RETRY_AFTER) -> ClassifiedError:
    """
    Map an exception raised by the model call onto a ClassifiedError.

    ``retry_after`` is attached only when the failure is a rate limit.
    """
    if isinstance(exc, ClassifiedError):
        return exc

    for rule in CLASSIFICATION_RULES:
        if rule.matches(exc):
            hint = retry_after if rule.kind is ErrorKind.RATE_LIMITED else None
            return ClassifiedError(rule.kind, rule.message, retry_after=hint)

    return ClassifiedError(ErrorKind.INTERNAL, f"Analysis failed: {type(exc).__name__}")


# ---------------------------------------------------------------------------
# HTTP mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErrorResponseSpec:
    status_code: int
    error: str
    message: str
    code: str


ERROR_RESPONSES: dict[ErrorKind, ErrorResponseSpec] = {
    ErrorKind.BAD_INPUT: ErrorResponseSpec(
        400, "Invalid input", "The request payload is invalid.", "INVALID_INPUT"
    ),
    ErrorKind.RATE_LIMITED: ErrorResponseSpec(
        429, "Rate Limit Exceeded",
        "Gemini API rate limit exceeded. Please try again later.", "RATE_LIMIT_EXCEEDED",
    ),
    ErrorKind.CONFIG_MISSING: ErrorResponseSpec(
        500, "Configuration Error", "API service is not properly configured", "CONFIG_ERROR"
    ),
    ErrorKind.TIMEOUT: ErrorResponseSpec(
        504, "Gateway Timeout",
        "Analysis took too long. Please try with shorter code.", "TIMEOUT",
    ),
    ErrorKind.UPSTREAM: ErrorResponseSpec(
        502, "Service Unavailable",
        "Gemini API is temporarily unavailable. Please try again later.", "UPSTREAM_ERROR",
    ),
    ErrorKind.INTERNAL: ErrorResponseSpec(
        500, "Analysis Failed", "Unable to analyze the code. Please try again.", "INTERNAL_ERROR"
    ),
}
