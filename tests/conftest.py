"""Pytest configuration and fixtures."""
import json

import pytest
from fastapi.testclient import TestClient

from complexity_api.analysis_service import AnalysisService
from complexity_api.config import Settings
from complexity_api.main import create_app

from fakes import SAMPLE_ANALYSIS


@pytest.fixture
def sample_analysis():
    """Fresh copy of a well-formed model reply."""
    return json.loads(json.dumps(SAMPLE_ANALYSIS))


@pytest.fixture
def app_settings():
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="",
        ENVIRONMENT="development",
        RATE_LIMIT_MAX_REQUESTS=100,
        RATE_LIMIT_WINDOW_SECONDS=900,
    )


@pytest.fixture
def make_client(app_settings):
    """Build a TestClient around an app wired to the given fake model."""

    def _make(model=None, settings=None):
        app = create_app(settings=settings or app_settings, service=AnalysisService(model))
        return TestClient(app)

    return _make
