"""
Analysis service: prompt, model call, normalization and error classification.
"""
from __future__ import annotations

from typing import Any, Optional

from complexity_api.config import logger
from complexity_api.errors import DEFAULT_RETRY_AFTER, ClassifiedError, ErrorKind, classify_exception
from complexity_api.models import AnalysisResult
from complexity_api.normalizer import normalize_analysis
from complexity_api.prompts import build_analysis_prompt


class AnalysisService:
    """
    Runs one complexity analysis per call against an injected text model.

    ``model`` is any object exposing ``async generate_text(prompt) -> str``,
    normally a GeminiModel. ``None`` means no credential is configured.
    ``retry_after`` is the hint, in seconds, attached to upstream rate limits.
    """

    def __init__(self, model: Optional[Any], retry_after: int = DEFAULT_RETRY_AFTER):
        self._model = model
        self.retry_after = retry_after

    @property
    def available(self) -> bool:
        return self._model is not None

    async def analyze(
        self,
        code: str,
        language: str = "unknown",
        problem_title: str = "",
    ) -> AnalysisResult:
        """
        Analyze code complexity.

        Args:
            code: Source code to analyze
            language: Lowercase language name or "unknown"
            problem_title: Optional problem the code solves

        Returns:
            Normalized AnalysisResult; unparsable model output yields a placeholder

        Raises:
            ClassifiedError: If the model is not configured or the call fails
        """
        if self._model is None:
            raise ClassifiedError(ErrorKind.CONFIG_MISSING, "GEMINI_API_KEY is not configured")

        prompt = build_analysis_prompt(code, language, problem_title)

        try:
            response_text = await self._model.generate_text(prompt)
        except Exception as exc:
            error = classify_exception(exc, retry_after=self.retry_after)
            logger.error(
                "Gemini API error classified as %s: %s: %s",
                error.kind.value,
                type(exc).__name__,
                str(exc)[:200],
            )
            raise error from exc

        if not response_text or not response_text.strip():
            raise ClassifiedError(ErrorKind.INTERNAL, "Empty response from Gemini API")

        logger.debug("Raw Gemini response: %s...", response_text[:500])
        return normalize_analysis(response_text)
