"""Strict model of the response-analysis service output."""

from typing import Any, List, Optional

from pydantic import Field, field_validator

from .base import FrozenModel


def _coerce_feedback_item(item: Any) -> str:
    """Normalise one strength/improvement entry to a plain string.

    The analysis prompt asks for objects such as ``{"point", "explanation"}`` or
    ``{"issue", "suggestion", "priority"}``; plain strings are accepted as-is.
    """
    if isinstance(item, str):
        text = item.strip()
        if text:
            return text
        raise ValueError("feedback entries must not be blank")
    if isinstance(item, dict):
        head = item.get("point") or item.get("issue") or item.get("area") or item.get("strength")
        if not isinstance(head, str) or not head.strip():
            raise ValueError(f"unrecognised feedback entry: {item!r}")
        tail = item.get("explanation") or item.get("suggestion")
        if isinstance(tail, str) and tail.strip():
            return f"{head.strip()}: {tail.strip()}"
        return head.strip()
    raise ValueError(f"unsupported feedback entry type: {type(item).__name__}")


class AnalysisResult(FrozenModel):
    """Scores and qualitative feedback for a single answer."""

    score: int = Field(..., ge=0, le=100, description="Overall quality of the answer")
    communication_score: int = Field(..., ge=0, le=100, description="Clarity and professionalism")
    content_score: int = Field(..., ge=0, le=100, description="Relevance, depth and accuracy")
    structure_score: int = Field(..., ge=0, le=100, description="Organization and logical flow")
    strengths: List[str] = Field(default_factory=list, description="Strengths identified")
    improvements: List[str] = Field(default_factory=list, description="Areas to improve")
    suggested_answer: str = Field(..., description="Example answer demonstrating best practice")
    key_points_covered: List[str] = Field(default_factory=list, description="Key points the answer covered")
    key_points_missed: List[str] = Field(default_factory=list, description="Key points the answer missed")
    overall_feedback: Optional[str] = Field(None, description="Short summary of the answer quality")

    class Config:
        """Pydantic configuration."""
        frozen = True
        extra = "ignore"

    @field_validator("score", "communication_score", "content_score", "structure_score", mode="before")
    @classmethod
    def validate_score(cls, v):
        """Accept whole-valued floats but reject booleans and fractional scores."""
        if isinstance(v, bool):
            raise ValueError("scores must be numbers")
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError("scores must be whole numbers")
            return int(v)
        return v

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def validate_feedback_items(cls, v):
        if not isinstance(v, list):
            raise ValueError("must be a list")
        return [_coerce_feedback_item(item) for item in v]

    @field_validator("key_points_covered", "key_points_missed", mode="before")
    @classmethod
    def validate_key_points(cls, v):
        if v is None:
            return []
        if not isinstance(v, list) or not all(isinstance(item, str) for item in v):
            raise ValueError("key points must be a list of strings")
        return v
