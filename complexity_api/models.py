"""
Pydantic models for the Complexity Analyzer API.
"""
from __future__ import annotations

from typing import Any, Literal, Optional, get_origin

from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from complexity_api.config import SUPPORTED_LANGUAGES


OptimizationLevel = Literal["Poor", "Fair", "Good", "Excellent", "Unknown"]
OPTIMIZATION_LEVELS = ("Poor", "Fair", "Good", "Excellent", "Unknown")


def _loosen(value: Any, annotation: Any) -> Any:
    """Nudge a near-miss value toward the field type: numbers to text, a bare item to a list."""
    if annotation is str and isinstance(value, (int, float)):
        return str(value)
    if get_origin(annotation) is list and isinstance(value, (str, dict)):
        return [value]
    return value


class _ModelOutput(BaseModel):
    """
    Base for blocks parsed from model output.

    A null or malformed optional field falls back to its default instead of
    rejecting the whole block. Required fields still fail validation.
    """

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("*", mode="wrap")
    @classmethod
    def fall_back_per_field(cls, value: Any, handler, info: ValidationInfo) -> Any:
        field = cls.model_fields[info.field_name]
        try:
            return handler(value)
        except ValidationError:
            loosened = _loosen(value, field.annotation)
            if loosened is not value:
                try:
                    return handler(loosened)
                except ValidationError:
                    pass
            if field.is_required():
                raise
            return field.get_default(call_default_factory=True)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    """Request payload for code analysis."""
    code: str = Field(default="", validate_default=True, description="Source code to analyze")
    language: str = Field(default="unknown", description="Programming language of the code")
    problemTitle: str = Field(default="", description="Optional problem the code solves")

    # Length of ``code`` as submitted, before trimming; the limit applies to it
    _raw_code_length: int = PrivateAttr(default=0)

    @model_validator(mode="wrap")
    @classmethod
    def remember_raw_length(cls, data: Any, handler) -> "AnalyzeRequest":
        request = handler(data)
        raw = data.get("code") if isinstance(data, dict) else None
        request._raw_code_length = len(raw) if isinstance(raw, str) else len(request.code)
        return request

    @property
    def raw_code_length(self) -> int:
        return self._raw_code_length

    @field_validator("code", mode="before")
    @classmethod
    def validate_code(cls, v: Any) -> str:
        if not v or not isinstance(v, str):
            raise ValueError("Code is required and must be a string")
        if not v.strip():
            raise ValueError("Code cannot be empty")
        return v.strip()

    @field_validator("language", mode="before")
    @classmethod
    def validate_language(cls, v: Any) -> str:
        if v is None or v == "":
            return "unknown"
        if not isinstance(v, str):
            raise ValueError("Language must be a string")
        if v.lower() not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Language '{v}' is not supported. "
                f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        return v.lower()

    @field_validator("problemTitle", mode="before")
    @classmethod
    def validate_problem_title(cls, v: Any) -> str:
        if v is None:
            return ""
        if not isinstance(v, str):
            raise ValueError("Problem title must be a string")
        return v.strip()


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------


class TimeComplexity(_ModelOutput):
    """Time complexity with optional per-case breakdown."""
    bigO: str = Field(..., description="Big-O notation")
    explanation: str = Field(..., description="Reasoning behind the bound")
    bestCase: str = Field(default="Unknown")
    averageCase: str = Field(default="Unknown")
    worstCase: str = Field(default="Unknown")


class SpaceComplexity(_ModelOutput):
    bigO: str = Field(..., description="Big-O notation")
    explanation: str = Field(..., description="Reasoning behind the bound")
    auxiliary: str = Field(default="Unknown")
    total: str = Field(default="Unknown")


class Suggestion(_ModelOutput):
    type: str = Field(default="general", description="performance, readability or memory")
    description: str = Field(default="")
    impact: str = Field(default="Unknown")


class AlternativeApproach(_ModelOutput):
    approach: str = Field(default="Unknown")
    timeComplexity: str = Field(default="Unknown")
    spaceComplexity: str = Field(default="Unknown")
    tradeoffs: str = Field(default="")


class Scalability(_ModelOutput):
    rating: str = Field(default="Unknown")
    analysis: str = Field(default="Not analyzed")


class CodeQuality(_ModelOutput):
    readability: str = Field(default="Unknown")
    maintainability: str = Field(default="Unknown")
    comments: str = Field(default="Not assessed")


class AnalysisResult(_ModelOutput):
    """Complete complexity analysis as returned to clients."""
    timeComplexity: TimeComplexity
    spaceComplexity: SpaceComplexity
    algorithmType: str = Field(..., description="Algorithm family, e.g. Two Pointers")
    dataStructures: list[str] = Field(default_factory=list)
    optimizationLevel: OptimizationLevel = Field(default="Unknown")
    suggestions: list[Suggestion] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    alternativeApproaches: list[AlternativeApproach] = Field(default_factory=list)
    scalability: Scalability = Field(default_factory=Scalability)
    codeQuality: CodeQuality = Field(default_factory=CodeQuality)

    @field_validator("optimizationLevel", mode="before")
    @classmethod
    def coerce_optimization_level(cls, v: Any) -> str:
        # Ensure level is one of the allowed values
        if isinstance(v, str):
            for level in OPTIMIZATION_LEVELS:
                if v.strip().lower() == level.lower():
                    return level
        return "Unknown"


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------


class AnalysisMetadata(BaseModel):
    language: str
    problemTitle: Optional[str] = None
    codeLength: int
    analyzedAt: str


class AnalyzeData(BaseModel):
    analysis: AnalysisResult
    metadata: AnalysisMetadata


class AnalyzeResponse(BaseModel):
    """API response wrapper."""
    success: bool = True
    data: AnalyzeData


class ErrorResponse(BaseModel):
    """Error response."""
    error: str = Field(..., description="Short error title")
    message: str = Field(..., description="Human readable explanation")
    code: Optional[str] = Field(default=None, description="Stable machine readable code")
    retryAfter: Optional[int] = Field(default=None, description="Seconds to wait before retrying")


class ServiceLimits(BaseModel):
    maxCodeLength: int
    rateLimit: str


class StatusResponse(BaseModel):
    service: str
    status: str
    version: str
    supportedLanguages: list[str]
    limits: ServiceLimits
