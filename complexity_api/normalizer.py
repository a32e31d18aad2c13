"""
Decoding of free-text Gemini output into an AnalysisResult.

The model is asked for bare JSON but frequently wraps it in a markdown
fence. Anything that cannot be decoded degrades to a placeholder result
instead of failing the request.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from complexity_api.config import logger
from complexity_api.models import AnalysisResult


REQUIRED_FIELDS = ("timeComplexity", "spaceComplexity", "algorithmType")

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*")
_CLOSING_FENCE = re.compile(r"\s*```$")

_PARSE_FAILURE = "The analysis could not be completed due to parsing issues."


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding model output: exactly one of the fields is set."""
    analysis: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None


def strip_fences(text: str) -> str:
    """Remove a markdown fence at the very start and very end of the text."""
    text = text.strip()
    if text.startswith("```"):
        text = _OPENING_FENCE.sub("", text, count=1)
        text = _CLOSING_FENCE.sub("", text, count=1)
    return text


def decode_analysis(raw_text: str) -> DecodeResult:
    """Decode model output, reporting why it failed instead of raising."""
    text = strip_fences(raw_text or "")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return DecodeResult(error=f"Invalid JSON: {exc.msg}")
    except RecursionError:
        return DecodeResult(error="Invalid JSON: nesting too deep")

    if not isinstance(data, dict):
        return DecodeResult(error=f"Expected a JSON object, got {type(data).__name__}")

    for field in REQUIRED_FIELDS:
        if not data.get(field):
            return DecodeResult(error=f"Missing required field: {field}")

    try:
        return DecodeResult(analysis=AnalysisResult.model_validate(data))
    except ValidationError as exc:
        return DecodeResult(error=f"Schema mismatch ({exc.error_count()} errors)")


def placeholder_analysis() -> AnalysisResult:
    """Result returned when the model output could not be decoded."""
    return AnalysisResult.model_validate({
        "timeComplexity": {"bigO": "Unable to analyze", "explanation": _PARSE_FAILURE},
        "spaceComplexity": {"bigO": "Unable to analyze", "explanation": _PARSE_FAILURE},
        "algorithmType": "Unknown",
        "optimizationLevel": "Unknown",
        "suggestions": [{
            "type": "general",
            "description": "Manual review recommended - automated analysis failed",
            "impact": "Unknown",
        }],
        "weaknesses": ["Automated analysis failed"],
        "scalability": {"rating": "Unknown", "analysis": "Could not be analyzed"},
        "codeQuality": {
            "readability": "Unknown",
            "maintainability": "Unknown",
            "comments": "Could not be assessed",
        },
    })


def normalize_analysis(raw_text: str) -> AnalysisResult:
    """Turn raw model output into an AnalysisResult. Never raises."""
    result = decode_analysis(raw_text)
    if result.ok:
        return result.analysis

    logger.warning("Failed to parse Gemini response: %s", result.error)
    return placeholder_analysis()
