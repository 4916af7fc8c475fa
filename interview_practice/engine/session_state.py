"""Transition rules for practice sessions.

A session is created ``in_progress`` with its cursor at 0. Each accepted
answer moves the cursor forward by exactly one. Once the cursor reaches the
end of the question sequence and feedback has been generated, the session
becomes ``completed``, which is terminal. There are no other states; an
interrupted session stays ``in_progress`` and resumes from its cursor.

The rules here never mutate their input; they return updated copies so a
caller can persist the new state and the previous one stays intact if that
write fails.
"""

from datetime import datetime
from typing import Optional

from ..models.enums import SessionStatus
from ..models.session import Session
from ..utils.exceptions import IncompleteSessionError, SessionAlreadyCompleteError


class SessionStateMachine:
    """Guards and transitions for :class:`Session`."""

    @staticmethod
    def ensure_accepting_responses(session: Session) -> None:
        """Raise unless the session is waiting for an answer.

        Raises:
            SessionAlreadyCompleteError: If the session is completed or every
                question has already been answered.
        """
        if session.is_completed:
            raise SessionAlreadyCompleteError(
                f"Session {session.id} is already completed",
                session_id=session.id,
                question_index=session.current_question_index,
            )
        if not session.has_remaining_questions():
            raise SessionAlreadyCompleteError(
                f"Session {session.id} has no unanswered questions "
                f"({session.current_question_index}/{session.total_questions})",
                session_id=session.id,
                question_index=session.current_question_index,
            )

    @staticmethod
    def is_ready_for_feedback(session: Session) -> bool:
        """Check if every question has been answered but the verdict is pending."""
        return (
            session.status == SessionStatus.IN_PROGRESS
            and session.current_question_index == session.total_questions
        )

    @classmethod
    def advance(cls, session: Session) -> Session:
        """Return a copy of the session with the cursor moved forward by one."""
        cls.ensure_accepting_responses(session)
        advanced = session.model_copy(deep=True)
        advanced.current_question_index = session.current_question_index + 1
        advanced.update_timestamp()
        return advanced

    @classmethod
    def complete(cls, session: Session, overall_score: int,
                 completed_at: Optional[datetime] = None) -> Session:
        """Return a completed copy of the session carrying its final score.

        Raises:
            SessionAlreadyCompleteError: If the session is already terminal.
            IncompleteSessionError: If questions remain unanswered.
        """
        if session.is_completed or session.overall_score is not None:
            raise SessionAlreadyCompleteError(
                f"Session {session.id} already has a final score",
                session_id=session.id,
                question_index=session.current_question_index,
            )
        if session.current_question_index != session.total_questions:
            raise IncompleteSessionError(
                f"Session {session.id} cannot complete with "
                f"{session.current_question_index}/{session.total_questions} questions answered",
                session_id=session.id,
                answered=session.current_question_index,
                expected=session.total_questions,
            )

        completed = session.model_copy(deep=True)
        completed.overall_score = overall_score
        completed.status = SessionStatus.COMPLETED
        completed.completed_at = completed_at or datetime.now()
        completed.updated_at = completed.completed_at
        return completed
