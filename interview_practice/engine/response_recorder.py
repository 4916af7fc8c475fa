"""Response Recorder for scoring and storing answers one question at a time."""

import asyncio
import time
from typing import Any

from pydantic import ValidationError

from ..models.analysis import AnalysisResult
from ..models.session import ResponseRecord, Session
from ..services.analysis_service import AnalysisService
from ..services.storage_manager import StorageManager
from ..utils.exceptions import (
    AnalysisUnavailableError,
    InvalidResponseError,
    PracticeEngineError,
)
from .base_component import BaseComponent
from .feedback_aggregator import FeedbackAggregator
from .session_state import SessionStateMachine


class ResponseRecorder(BaseComponent):
    """Records one scored answer per question and advances the session cursor.

    A submission either stores the record and advances the cursor together, or
    changes nothing, so a failed submission can be re-issued as-is.
    """

    def __init__(self, storage_manager: StorageManager, analysis_service: AnalysisService,
                 feedback_aggregator: FeedbackAggregator, analysis_timeout: float = 30.0,
                 max_response_length: int = 10000):
        """Initialize the ResponseRecorder.

        Args:
            storage_manager: Store for records and session state.
            analysis_service: Collaborator that scores answers.
            feedback_aggregator: Produces the verdict after the last answer.
            analysis_timeout: Upper bound in seconds for one analysis call.
            max_response_length: Longest accepted answer, in characters.
        """
        super().__init__("ResponseRecorder")
        self.storage_manager = storage_manager
        self.analysis_service = analysis_service
        self.feedback_aggregator = feedback_aggregator
        self.analysis_timeout = analysis_timeout
        self.max_response_length = max_response_length

    def _validate_text(self, session: Session, response_text: Any) -> str:
        text = response_text.strip() if isinstance(response_text, str) else ""
        if not text:
            self.log_rejection("empty response", {"session_id": session.id})
            raise InvalidResponseError(
                "Response text must not be empty",
                session_id=session.id,
                question_index=session.current_question_index,
            )
        if len(text) > self.max_response_length:
            self.log_rejection("response too long", {"session_id": session.id, "length": len(text)})
            raise InvalidResponseError(
                f"Response text exceeds {self.max_response_length} characters",
                session_id=session.id,
                question_index=session.current_question_index,
            )
        return text

    async def _analyze(self, session: Session, response_text: str) -> AnalysisResult:
        """Call the analysis service once, bounded by the timeout."""
        index = session.current_question_index
        question = session.current_question()

        try:
            result = await asyncio.wait_for(
                self.analysis_service.analyze(
                    question.text,
                    question.category,
                    response_text,
                    session.position,
                    session.industry,
                    session.difficulty_tier,
                ),
                timeout=self.analysis_timeout,
            )
        except asyncio.TimeoutError as e:
            raise AnalysisUnavailableError(
                f"Analysis timed out after {self.analysis_timeout}s",
                session_id=session.id, question_index=index,
                provider_name=self.analysis_service.provider_name,
            ) from e
        except AnalysisUnavailableError as e:
            raise AnalysisUnavailableError(
                e.message, session_id=session.id, question_index=index,
                provider_name=e.provider_name, details=e.details,
            ) from e
        except Exception as e:
            raise AnalysisUnavailableError(
                f"Analysis failed: {e}", session_id=session.id, question_index=index,
                provider_name=self.analysis_service.provider_name,
            ) from e

        if isinstance(result, AnalysisResult):
            return result
        try:
            return AnalysisResult.model_validate(result)
        except ValidationError as e:
            raise AnalysisUnavailableError(
                f"Analysis result did not match schema: {e}",
                session_id=session.id, question_index=index,
                provider_name=self.analysis_service.provider_name,
            ) from e

    async def submit(self, session: Session, response_text: str) -> ResponseRecord:
        """Score and store an answer to the question at the session cursor.

        When the answer is the last one, feedback is generated as part of the
        same call. If that fails the answer stays recorded and the session
        stays in progress until feedback is retried.

        Raises:
            SessionAlreadyCompleteError: If no question is waiting for an answer.
            InvalidResponseError: If the answer is blank or too long.
            AnalysisUnavailableError: If scoring failed; nothing was changed.
            ConcurrentModificationError: If another submission moved the cursor.
        """
        SessionStateMachine.ensure_accepting_responses(session)
        text = self._validate_text(session, response_text)
        index = session.current_question_index
        question = session.current_question()

        start = time.monotonic()
        try:
            analysis = await self._analyze(session, text)
        except AnalysisUnavailableError as e:
            self.log_error(e, {"session_id": session.id, "question_index": index})
            raise
        processing_time_ms = int((time.monotonic() - start) * 1000)

        record = ResponseRecord.from_analysis(
            session, question, text, analysis,
            ai_model_used=self.analysis_service.model_name,
            processing_time_ms=processing_time_ms,
        )
        advanced = SessionStateMachine.advance(session)
        committed = await self.storage_manager.commit_response(record, advanced, expected_index=index)

        self.log_operation("Response recorded", {
            "session_id": session.id,
            "question_index": index,
            "score": record.score,
        })

        if SessionStateMachine.is_ready_for_feedback(committed):
            try:
                await self.feedback_aggregator.generate(committed)
            except PracticeEngineError as e:
                self.log_error(e, {"session_id": session.id, "stage": "feedback"})

        return record
