"""
Configuration for the Complexity Analyzer API.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_LANGUAGES = (
    "javascript", "python", "java", "cpp", "c", "csharp",
    "go", "rust", "typescript", "php", "ruby", "swift", "kotlin",
)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=10000)
    ENVIRONMENT: Literal["development", "production"] = Field(default="development")
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    # Gemini
    GEMINI_API_KEY: str = Field(default="")
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash-lite")
    TEMPERATURE: float = Field(default=0.1)  # Low randomness keeps the JSON shape stable
    TOP_K: int = Field(default=1)
    TOP_P: float = Field(default=0.8)
    MAX_OUTPUT_TOKENS: int = Field(default=2048)
    GEMINI_TIMEOUT_SECONDS: Optional[float] = Field(default=None)

    # Request limits
    MAX_CODE_LENGTH: int = Field(default=50_000)
    MAX_REQUEST_SIZE: int = Field(default=10 * 1_048_576)  # 10 MB

    # Rate limiting
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=15 * 60)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100)
    RATE_LIMIT_RETRY_AFTER: int = Field(default=60)
    TRUST_PROXY_HEADERS: bool = Field(default=False)  # Only behind a proxy that sets X-Forwarded-For
    REDIS_URL: Optional[str] = Field(default=None)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origin_regex(self) -> str:
        patterns = [r"chrome-extension://.*", r"moz-extension://.*"]
        if not self.is_production:
            patterns.append(r"https?://localhost(:\d+)?")
        return "^(" + "|".join(patterns) + ")$"

    @property
    def rate_limit_description(self) -> str:
        minutes = self.RATE_LIMIT_WINDOW_SECONDS // 60
        if minutes and self.RATE_LIMIT_WINDOW_SECONDS % 60 == 0:
            return f"{self.RATE_LIMIT_MAX_REQUESTS} requests per {minutes} minutes"
        return f"{self.RATE_LIMIT_MAX_REQUESTS} requests per {self.RATE_LIMIT_WINDOW_SECONDS} seconds"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


# Logging setup
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("google").setLevel(logging.WARNING)

logger = logging.getLogger("complexity-analyzer")
