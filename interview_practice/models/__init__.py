"""Data models for the Interview Practice Engine."""

from .base import BaseModel
from .enums import (
    DifficultyTier,
    QuestionCategory,
    ReadinessLevel,
    SessionStatus,
)
from .question import QuestionTemplate
from .analysis import AnalysisResult
from .session import (
    Feedback,
    ResponseRecord,
    Session,
    SessionSummary,
)

__all__ = [
    "BaseModel",
    "DifficultyTier",
    "QuestionCategory",
    "ReadinessLevel",
    "SessionStatus",
    "QuestionTemplate",
    "AnalysisResult",
    "Feedback",
    "ResponseRecord",
    "Session",
    "SessionSummary",
]
