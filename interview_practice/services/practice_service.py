"""Practice session service exposing the engine to callers by session id."""

from pathlib import Path
from typing import List, Optional, Union

from ..engine import (
    FeedbackAggregator,
    QuestionBank,
    ResponseRecorder,
    SessionBuilder,
)
from ..engine.base_component import BaseComponent
from ..models.enums import DifficultyTier
from ..models.session import Feedback, ResponseRecord, Session, SessionSummary
from ..utils.exceptions import AuthorizationError, SessionNotFoundError
from ..utils.logging import set_correlation_id
from .analysis_service import AnalysisService, GroqAnalysisService
from .configuration_manager import ConfigurationManager, ReadinessConfig
from .storage_manager import StorageManager


class PracticeSessionService(BaseComponent):
    """Entry point for creating, answering, reviewing and deleting sessions.

    Every operation names its session explicitly; there is no notion of a
    current session held between calls.
    """

    def __init__(self, storage_manager: StorageManager, analysis_service: AnalysisService,
                 question_bank: Optional[QuestionBank] = None,
                 readiness: Optional[ReadinessConfig] = None,
                 default_length: int = 6,
                 analysis_timeout: float = 30.0,
                 max_response_length: int = 10000):
        super().__init__("PracticeSessionService")
        self.storage_manager = storage_manager
        self.analysis_service = analysis_service
        self.question_bank = question_bank or QuestionBank()

        self.builder = SessionBuilder(self.question_bank, storage_manager, default_length=default_length)
        self.aggregator = FeedbackAggregator(storage_manager, readiness)
        self.recorder = ResponseRecorder(
            storage_manager,
            analysis_service,
            self.aggregator,
            analysis_timeout=analysis_timeout,
            max_response_length=max_response_length,
        )

    @classmethod
    def from_config(cls, config_manager: ConfigurationManager,
                    analysis_service: Optional[AnalysisService] = None) -> "PracticeSessionService":
        """Build the service and its collaborators from loaded configuration."""
        config = config_manager.get_config()

        storage_config = config_manager.get_storage_config()
        if storage_config["backend"] == "file":
            storage_manager = StorageManager("file", base_path=storage_config["base_path"])
        else:
            storage_manager = StorageManager("memory")
        storage_manager.initialize()

        if config.session.question_bank_path:
            question_bank = QuestionBank.from_yaml(Path(config.session.question_bank_path))
        else:
            question_bank = QuestionBank()

        return cls(
            storage_manager,
            analysis_service or GroqAnalysisService(config_manager.get_analysis_config()),
            question_bank=question_bank,
            readiness=config.readiness,
            default_length=config.session.questions_per_session,
            analysis_timeout=config.session.analysis_timeout_seconds,
            max_response_length=config.session.max_response_length,
        )

    async def create_session(self, owner_id: str, position: str, industry: str,
                             difficulty_tier: Union[DifficultyTier, str],
                             length: Optional[int] = None) -> Session:
        """Create a new in-progress session."""
        session = await self.builder.create(owner_id, position, industry, difficulty_tier, length)
        set_correlation_id(session.id)
        return session

    async def get_session(self, session_id: str) -> Session:
        """Load a session.

        Raises:
            SessionNotFoundError: If no such session exists.
        """
        set_correlation_id(session_id)
        session = await self.storage_manager.load_session(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found", session_id=session_id)
        return session

    async def submit_response(self, session_id: str, response_text: str) -> ResponseRecord:
        """Answer the current question of a session."""
        session = await self.get_session(session_id)
        return await self.recorder.submit(session, response_text)

    async def list_responses(self, session_id: str) -> List[ResponseRecord]:
        """Scored answers of a session, in question order."""
        set_correlation_id(session_id)
        return await self.storage_manager.list_responses(session_id)

    async def get_feedback(self, session_id: str, requester_id: Optional[str] = None) -> Optional[Feedback]:
        """Stored feedback for a session, or ``None`` if there is none (yet).

        When ``requester_id`` is given, feedback of an existing session is only
        returned to its owner.

        Raises:
            AuthorizationError: If the requester does not own the session.
        """
        set_correlation_id(session_id)
        if requester_id is not None:
            session = await self.storage_manager.load_session(session_id)
            if session is None:
                return None
            self._check_owner(session, requester_id, "feedback read")
        return await self.storage_manager.load_feedback(session_id)

    async def retry_feedback(self, session_id: str) -> Feedback:
        """Generate feedback for a fully answered session whose aggregation failed."""
        session = await self.get_session(session_id)
        return await self.aggregator.generate(session)

    async def list_sessions(self, owner_id: str) -> List[SessionSummary]:
        """Summaries of an owner's sessions, newest first."""
        sessions = await self.storage_manager.list_sessions(owner_id)
        return [session.to_summary() for session in sessions]

    async def delete_session(self, session_id: str, requester_id: str) -> None:
        """Delete a session together with its responses and feedback.

        Raises:
            SessionNotFoundError: If no such session exists.
            AuthorizationError: If the requester does not own the session.
        """
        session = await self.get_session(session_id)
        self._check_owner(session, requester_id, "delete")

        if not await self.storage_manager.delete_session(session_id):
            raise SessionNotFoundError(f"Session {session_id} not found", session_id=session_id)
        self.log_operation("Session deleted", {"session_id": session_id})

    def _check_owner(self, session: Session, requester_id: str, action: str) -> None:
        if session.owner_id != requester_id:
            self.log_rejection(f"{action} by non-owner", {"session_id": session.id})
            raise AuthorizationError(
                f"Session {session.id} is not owned by the requester",
                session_id=session.id,
                requester_id=requester_id,
            )

    async def cleanup(self) -> None:
        """Release collaborator resources."""
        await self.analysis_service.cleanup()
