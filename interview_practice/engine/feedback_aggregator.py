"""Feedback Aggregator for rolling per-question results into a session verdict."""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Union

from ..models.enums import ReadinessLevel
from ..models.session import Feedback, ResponseRecord, Session
from ..services.configuration_manager import ReadinessConfig
from ..services.storage_manager import StorageManager
from ..utils.exceptions import (
    IncompleteSessionError,
    NoResponsesToAggregateError,
    SessionNotFoundError,
)
from .base_component import BaseComponent
from .session_state import SessionStateMachine


def round_half_up(value: Union[Decimal, float]) -> int:
    """Round to the nearest integer, with halves rounding up (80.5 -> 81)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean_score(values: Sequence[int]) -> int:
    """Round-half-up mean of integer scores."""
    return round_half_up(Decimal(sum(values)) / Decimal(len(values)))


def unique_in_order(groups: Iterable[Iterable[str]]) -> List[str]:
    """Union of several lists, de-duplicated by exact text, first-seen order."""
    seen = set()
    merged = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.add(item)
                merged.append(item)
    return merged


class FeedbackAggregator(BaseComponent):
    """Computes and stores the session-level readiness verdict."""

    def __init__(self, storage_manager: StorageManager, readiness: Optional[ReadinessConfig] = None):
        """Initialize the FeedbackAggregator.

        Args:
            storage_manager: Store holding responses and feedback.
            readiness: Score thresholds for the verdict; defaults to 85/70/50.
        """
        super().__init__("FeedbackAggregator")
        self.storage_manager = storage_manager
        self.readiness = readiness or ReadinessConfig()
        self.readiness.validate()

    def classify(self, overall_score: int) -> ReadinessLevel:
        """Map a score to a readiness level; thresholds are checked high to low."""
        for level, threshold in self.readiness.ordered_thresholds().items():
            if overall_score >= threshold:
                return level
        return ReadinessLevel.NEEDS_WORK

    def build_feedback(self, session: Session, responses: Sequence[ResponseRecord],
                       generated_at: datetime) -> Feedback:
        """Aggregate scored responses into a Feedback value without persisting it."""
        ordered = sorted(responses, key=lambda r: r.question_number)
        overall_score = mean_score([r.score for r in ordered])

        return Feedback(
            session_id=session.id,
            overall_score=overall_score,
            readiness_level=self.classify(overall_score),
            aggregated_strengths=unique_in_order(r.strengths for r in ordered),
            aggregated_improvements=unique_in_order(r.improvements for r in ordered),
            communication_avg=mean_score([r.communication_score for r in ordered]),
            content_avg=mean_score([r.content_score for r in ordered]),
            structure_avg=mean_score([r.structure_score for r in ordered]),
            question_count=len(ordered),
            completion_time_seconds=max(0, int((generated_at - session.created_at).total_seconds())),
            generated_at=generated_at,
        )

    def _check_complete(self, session: Session, responses: Sequence[ResponseRecord]) -> None:
        expected = session.total_questions
        numbers = sorted(r.question_number for r in responses)

        if len(responses) != expected or numbers != list(range(expected)) \
                or session.current_question_index != expected:
            error = IncompleteSessionError(
                f"Session {session.id} has {len(responses)} of {expected} responses scored",
                session_id=session.id,
                answered=len(responses),
                expected=expected,
            )
            self.log_error(error, {"session_id": session.id})
            raise error

        if not responses:
            error = NoResponsesToAggregateError(
                f"Session {session.id} has no responses to aggregate",
                session_id=session.id,
            )
            self.log_error(error, {"session_id": session.id})
            raise error

    async def generate(self, session: Session) -> Feedback:
        """Generate, or return the already stored, feedback for a session.

        Feedback, the final score and the completed status are persisted in a
        single write. Calling again after success returns the stored feedback
        unchanged.

        Raises:
            SessionNotFoundError: If the session no longer exists.
            IncompleteSessionError: If any question is not yet answered.
            NoResponsesToAggregateError: If the session has no questions at all.
        """
        existing = await self.storage_manager.load_feedback(session.id)
        if existing is not None:
            self.logger.debug(f"Returning stored feedback for session {session.id}")
            return existing

        current = await self.storage_manager.load_session(session.id)
        if current is None:
            raise SessionNotFoundError(f"Session {session.id} not found", session_id=session.id)

        responses = await self.storage_manager.list_responses(current.id)
        self._check_complete(current, responses)

        generated_at = datetime.now()
        feedback = self.build_feedback(current, responses, generated_at)
        completed = SessionStateMachine.complete(current, feedback.overall_score, completed_at=generated_at)

        stored = await self.storage_manager.commit_feedback(feedback, completed)

        self.log_operation("Feedback generated", {
            "session_id": current.id,
            "overall_score": stored.overall_score,
            "readiness_level": stored.readiness_level.value,
        })
        return stored
