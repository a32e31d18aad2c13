"""Tests for error classification."""
import asyncio

import httpx
import pytest

from complexity_api.errors import (
    CLASSIFICATION_RULES,
    ERROR_RESPONSES,
    ClassifiedError,
    ErrorKind,
    classify_exception,
    status_of,
)

from fakes import UpstreamError


class TestClassificationRules:
    """Each rule's predicate, checked in isolation."""

    def _rule(self, kind):
        return next(rule for rule in CLASSIFICATION_RULES if rule.kind is kind)

    def test_rule_order(self):
        assert [rule.kind for rule in CLASSIFICATION_RULES] == [
            ErrorKind.CONFIG_MISSING,
            ErrorKind.RATE_LIMITED,
            ErrorKind.TIMEOUT,
            ErrorKind.UPSTREAM,
        ]

    @pytest.mark.parametrize("message", ["API key not valid", "missing API_KEY", "Invalid api key supplied"])
    def test_credential_rule(self, message):
        assert self._rule(ErrorKind.CONFIG_MISSING).matches(Exception(message))

    @pytest.mark.parametrize(
        "exc",
        [
            Exception("Quota exceeded for this project"),
            Exception("rate limit reached"),
            Exception("429 RESOURCE_EXHAUSTED"),
            UpstreamError("Too many requests", code=429),
        ],
    )
    def test_rate_limit_rule(self, exc):
        assert self._rule(ErrorKind.RATE_LIMITED).matches(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            TimeoutError(),
            asyncio.TimeoutError(),
            httpx.ReadTimeout("read"),
            Exception("Request timeout"),
            Exception("504 DEADLINE_EXCEEDED: Deadline exceeded"),
            UpstreamError("gateway", code=504),
        ],
    )
    def test_timeout_rule(self, exc):
        assert self._rule(ErrorKind.TIMEOUT).matches(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            UpstreamError("500 INTERNAL", code=500),
            UpstreamError("Bad gateway", code=502),
            Exception("Internal server error"),
            Exception("503 UNAVAILABLE: The model is overloaded"),
        ],
    )
    def test_upstream_rule(self, exc):
        assert self._rule(ErrorKind.UPSTREAM).matches(exc)

    def test_plain_error_matches_no_rule(self):
        exc = ValueError("unexpected token")
        assert not any(rule.matches(exc) for rule in CLASSIFICATION_RULES)


class TestClassifyException:
    """Test suite for classify_exception."""

    def test_rate_limit_wins_over_server_status(self):
        error = classify_exception(UpstreamError("quota exceeded", code=503))

        assert error.kind is ErrorKind.RATE_LIMITED
        assert error.retry_after == 60

    def test_credential_wins_over_rate_limit(self):
        error = classify_exception(UpstreamError("API key quota", code=429))
        assert error.kind is ErrorKind.CONFIG_MISSING

    def test_unmatched_is_internal_without_raw_text(self):
        error = classify_exception(ValueError("secret internals"))

        assert error.kind is ErrorKind.INTERNAL
        assert "secret internals" not in error.message
        assert error.retry_after is None

    def test_classified_error_passes_through(self):
        original = ClassifiedError(ErrorKind.TIMEOUT, "already classified")
        assert classify_exception(original) is original

    def test_status_of_reads_known_attributes(self):
        class WithStatusCode(Exception):
            status_code = 502

        class WithStringStatus(Exception):
            status = "RESOURCE_EXHAUSTED"

        assert status_of(WithStatusCode()) == 502
        assert status_of(WithStringStatus()) is None
        assert status_of(Exception()) is None


class TestErrorResponses:
    """Test suite for the kind to HTTP mapping."""

    @pytest.mark.parametrize(
        "kind,status,code",
        [
            (ErrorKind.BAD_INPUT, 400, "INVALID_INPUT"),
            (ErrorKind.RATE_LIMITED, 429, "RATE_LIMIT_EXCEEDED"),
            (ErrorKind.CONFIG_MISSING, 500, "CONFIG_ERROR"),
            (ErrorKind.TIMEOUT, 504, "TIMEOUT"),
            (ErrorKind.UPSTREAM, 502, "UPSTREAM_ERROR"),
            (ErrorKind.INTERNAL, 500, "INTERNAL_ERROR"),
        ],
    )
    def test_mapping(self, kind, status, code):
        spec = ERROR_RESPONSES[kind]
        assert spec.status_code == status
        assert spec.code == code

    def test_every_kind_is_mapped(self):
        assert set(ERROR_RESPONSES) == set(ErrorKind)
