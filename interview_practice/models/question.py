"""Question template models for the Interview Practice Engine."""

from typing import Tuple

from pydantic import Field

from .base import FrozenModel
from .enums import QuestionCategory


class QuestionTemplate(FrozenModel):
    """An immutable interview question with answering tips."""

    text: str = Field(..., min_length=1, description="Question text")
    category: QuestionCategory = Field(..., description="Question category")
    tips: Tuple[str, ...] = Field(default_factory=tuple, description="Ordered answering tips")
