"""Practice session models for the Interview Practice Engine."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, computed_field

from .analysis import AnalysisResult
from .base import BaseModel, IdentifiableModel, TimestampedModel
from .enums import DifficultyTier, QuestionCategory, ReadinessLevel, SessionStatus
from .question import QuestionTemplate


class Session(IdentifiableModel, TimestampedModel):
    """One mock-interview attempt with a fixed, ordered question list."""

    owner_id: str = Field(..., min_length=1, description="Owner identifier")
    position: str = Field(..., min_length=1, description="Position being practiced for")
    industry: str = Field(..., min_length=1, description="Industry context")
    difficulty_tier: DifficultyTier = Field(..., description="Experience tier")
    question_sequence: List[QuestionTemplate] = Field(default_factory=list, description="Ordered questions")
    question_bank_version: str = Field(default="", description="Version of the catalog the questions came from")
    status: SessionStatus = Field(default=SessionStatus.IN_PROGRESS, description="Session status")
    current_question_index: int = Field(default=0, ge=0, description="Index of the next question to answer")
    overall_score: Optional[int] = Field(None, ge=0, le=100, description="Final score, set on completion")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")

    @computed_field
    @property
    def total_questions(self) -> int:
        """Effective number of questions in this session."""
        return len(self.question_sequence)

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def has_remaining_questions(self) -> bool:
        """Check if there is still a question waiting for an answer."""
        return self.current_question_index < self.total_questions

    def current_question(self) -> Optional[QuestionTemplate]:
        """Get the question at the cursor, if any."""
        if not self.has_remaining_questions():
            return None
        return self.question_sequence[self.current_question_index]

    def to_summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            position=self.position,
            industry=self.industry,
            difficulty_tier=self.difficulty_tier,
            status=self.status,
            current_question_index=self.current_question_index,
            total_questions=self.total_questions,
            overall_score=self.overall_score,
            created_at=self.created_at,
            completed_at=self.completed_at,
        )


class SessionSummary(BaseModel):
    """Listing view of a session."""

    id: str
    position: str
    industry: str
    difficulty_tier: DifficultyTier
    status: SessionStatus
    current_question_index: int
    total_questions: int
    overall_score: Optional[int] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class ResponseRecord(IdentifiableModel):
    """One scored answer to one question within a session."""

    session_id: str = Field(..., description="Owning session identifier")
    question_number: int = Field(..., ge=0, description="Index of the question answered")
    question_text: str = Field(..., description="Question text at the time of answering")
    question_category: QuestionCategory = Field(..., description="Question category")
    response_text: str = Field(..., description="Candidate's answer")

    score: int = Field(..., ge=0, le=100, description="Overall answer score")
    communication_score: int = Field(..., ge=0, le=100, description="Communication score")
    content_score: int = Field(..., ge=0, le=100, description="Content score")
    structure_score: int = Field(..., ge=0, le=100, description="Structure score")
    strengths: List[str] = Field(default_factory=list, description="Strengths identified")
    improvements: List[str] = Field(default_factory=list, description="Areas to improve")
    suggested_answer: str = Field(..., description="Example answer")
    key_points_covered: List[str] = Field(default_factory=list, description="Key points covered")
    key_points_missed: List[str] = Field(default_factory=list, description="Key points missed")
    overall_feedback: Optional[str] = Field(None, description="Short summary from the analysis")

    ai_model_used: Optional[str] = Field(None, description="Model that produced the analysis")
    processing_time_ms: Optional[int] = Field(None, ge=0, description="Analysis latency in milliseconds")
    created_at: datetime = Field(default_factory=datetime.now, description="Submission timestamp")

    class Config:
        """Records are immutable once scored."""
        frozen = True
        use_enum_values = False

    @classmethod
    def from_analysis(cls, session: Session, question: QuestionTemplate, response_text: str,
                      analysis: AnalysisResult, ai_model_used: Optional[str] = None,
                      processing_time_ms: Optional[int] = None) -> "ResponseRecord":
        """Build a record for the question at the session cursor."""
        return cls(
            session_id=session.id,
            question_number=session.current_question_index,
            question_text=question.text,
            question_category=question.category,
            response_text=response_text,
            score=analysis.score,
            communication_score=analysis.communication_score,
            content_score=analysis.content_score,
            structure_score=analysis.structure_score,
            strengths=list(analysis.strengths),
            improvements=list(analysis.improvements),
            suggested_answer=analysis.suggested_answer,
            key_points_covered=list(analysis.key_points_covered),
            key_points_missed=list(analysis.key_points_missed),
            overall_feedback=analysis.overall_feedback,
            ai_model_used=ai_model_used,
            processing_time_ms=processing_time_ms,
        )


class Feedback(BaseModel):
    """Session-level rollup verdict produced once all questions are answered."""

    session_id: str = Field(..., description="Session identifier")
    overall_score: int = Field(..., ge=0, le=100, description="Rounded mean of the answer scores")
    readiness_level: ReadinessLevel = Field(..., description="Readiness verdict")
    aggregated_strengths: List[str] = Field(default_factory=list, description="De-duplicated strengths")
    aggregated_improvements: List[str] = Field(default_factory=list, description="De-duplicated improvements")
    communication_avg: int = Field(..., ge=0, le=100, description="Mean communication score")
    content_avg: int = Field(..., ge=0, le=100, description="Mean content score")
    structure_avg: int = Field(..., ge=0, le=100, description="Mean structure score")
    question_count: int = Field(..., ge=0, description="Number of answers aggregated")
    completion_time_seconds: Optional[int] = Field(None, ge=0, description="Seconds from start to completion")
    generated_at: datetime = Field(default_factory=datetime.now, description="Generation timestamp")

    class Config:
        """Feedback is read-only once generated."""
        frozen = True
        use_enum_values = False
