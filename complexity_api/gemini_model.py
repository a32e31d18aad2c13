"""
Gemini client wrapper used by the analysis service.
"""
from __future__ import annotations

import asyncio
from typing import Optional

import httpx
from google import genai
from google.genai import types
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from complexity_api.config import Settings, logger


class GeminiModel:
    """
    Thin async wrapper around the Gemini content generation API.

    Holds the long-lived client and a fixed generation config. Only
    transient network failures are retried; everything else propagates
    to the caller unchanged for classification.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str,
        temperature: float = 0.1,
        top_k: int = 1,
        top_p: float = 0.8,
        max_output_tokens: int = 2048,
        timeout: Optional[float] = None,
    ):
        self._client = genai.Client(api_key=api_key)
        self._model = model_name
        self._timeout = timeout
        self._config = types.GenerateContentConfig(
            temperature=temperature,
            top_k=top_k,
            top_p=top_p,
            max_output_tokens=max_output_tokens,
        )
        logger.info("Gemini client initialized (model=%s)", model_name)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["GeminiModel"]:
        """Build a model from settings, or None when no API key is configured."""
        if not settings.GEMINI_API_KEY:
            logger.warning("GEMINI_API_KEY not configured")
            return None
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL,
            temperature=settings.TEMPERATURE,
            top_k=settings.TOP_K,
            top_p=settings.TOP_P,
            max_output_tokens=settings.MAX_OUTPUT_TOKENS,
            timeout=settings.GEMINI_TIMEOUT_SECONDS,
        )

    @property
    def model_name(self) -> str:
        return self._model

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type((ConnectionError, httpx.NetworkError)),
        reraise=True,
    )
    async def generate_text(self, prompt: str) -> str:
        """
        Send a single-turn prompt and return the response text.

        Args:
            prompt: Full prompt text

        Returns:
            Response text, empty string when the model returned no text
        """
        request = self._client.aio.models.generate_content(
            model=self._model,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=self._config,
        )

        if self._timeout:
            try:
                response = await asyncio.wait_for(request, timeout=self._timeout)
            except asyncio.TimeoutError as exc:
                raise TimeoutError(f"Gemini request timed out after {self._timeout}s") from exc
        else:
            response = await request

        if not response.text and response.candidates:
            logger.warning("Empty response from Gemini. Finish reason: %s", response.candidates[0].finish_reason)

        return response.text or ""
