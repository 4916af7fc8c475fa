"""End-to-end tests for the practice session service."""

import pytest

from conftest import FakeAnalysisService, make_analysis
from interview_practice.engine.feedback_aggregator import FeedbackAggregator
from interview_practice.models.enums import QuestionCategory, ReadinessLevel, SessionStatus
from interview_practice.services.configuration_manager import ConfigurationManager
from interview_practice.services.practice_service import PracticeSessionService
from interview_practice.utils.exceptions import (
    AuthorizationError,
    IncompleteSessionError,
    NoResponsesToAggregateError,
    SessionNotFoundError,
    StorageError,
)
from interview_practice.utils.logging import get_correlation_id


class TestPracticeFlow:

    async def test_three_question_session(self, service, fake_analysis):
        fake_analysis.results = [make_analysis(score) for score in (90, 70, 65)]

        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 3)
        assert [q.category for q in session.question_sequence] == [
            QuestionCategory.BEHAVIORAL, QuestionCategory.TECHNICAL, QuestionCategory.SITUATIONAL,
        ]

        for text in ("First answer", "Second answer", "Third answer"):
            await service.submit_response(session.id, text)

        feedback = await service.get_feedback(session.id)
        completed = await service.get_session(session.id)
        assert feedback.overall_score == 75
        assert feedback.readiness_level == ReadinessLevel.READY
        assert completed.status == SessionStatus.COMPLETED
        assert completed.overall_score == 75
        assert completed.completed_at is not None

    async def test_feedback_absent_until_complete(self, service):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 2)
        await service.submit_response(session.id, "First answer")

        assert await service.get_feedback(session.id) is None
        assert len(await service.list_responses(session.id)) == 1

    async def test_correlation_id_follows_session(self, service):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 1)
        await service.get_session(session.id)
        assert get_correlation_id() == session.id

    async def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            await service.submit_response("no-such-session", "Answer")
        assert await service.get_feedback("no-such-session") is None

    async def test_list_sessions(self, service):
        first = await service.create_session("user-1", "Nurse", "Healthcare", "entry", 2)
        await service.create_session("user-2", "Teacher", "Education", "entry", 2)

        summaries = await service.list_sessions("user-1")

        assert [s.id for s in summaries] == [first.id]
        assert summaries[0].total_questions == 2
        assert summaries[0].status == SessionStatus.IN_PROGRESS


class TestRetryFeedback:

    async def test_failed_aggregation_can_be_retried(self, service, monkeypatch):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 1)
        real_generate = service.aggregator.generate

        async def failing_generate(current):
            raise StorageError("disk full", session_id=current.id)

        monkeypatch.setattr(service.aggregator, "generate", failing_generate)
        record = await service.submit_response(session.id, "Only answer")

        stored = await service.get_session(session.id)
        assert record.question_number == 0
        assert stored.status == SessionStatus.IN_PROGRESS
        assert stored.current_question_index == 1
        assert await service.get_feedback(session.id) is None

        monkeypatch.setattr(service.aggregator, "generate", real_generate)
        feedback = await service.retry_feedback(session.id)

        assert feedback == await service.get_feedback(session.id)
        assert (await service.get_session(session.id)).status == SessionStatus.COMPLETED

    async def test_retry_on_unfinished_session(self, service):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 2)
        with pytest.raises(IncompleteSessionError):
            await service.retry_feedback(session.id)

    async def test_retry_on_empty_session(self, service):
        session = await service.create_session("user-1", "Astronaut", "Technology", "entry")
        with pytest.raises(NoResponsesToAggregateError):
            await service.retry_feedback(session.id)


class TestDeleteSession:

    async def test_cascade_delete(self, service):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 1)
        await service.submit_response(session.id, "Only answer")
        assert await service.get_feedback(session.id) is not None

        await service.delete_session(session.id, "user-1")

        assert await service.list_sessions("user-1") == []
        assert await service.get_feedback(session.id) is None
        assert await service.list_responses(session.id) == []

    async def test_only_owner_may_delete(self, service):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 1)

        with pytest.raises(AuthorizationError):
            await service.delete_session(session.id, "user-2")
        assert await service.get_session(session.id) == session

    async def test_feedback_read_by_owner_only(self, service):
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry", 1)
        await service.submit_response(session.id, "Only answer")

        assert (await service.get_feedback(session.id, "user-1")).question_count == 1
        with pytest.raises(AuthorizationError):
            await service.get_feedback(session.id, "user-2")
        assert await service.get_feedback("no-such-session", "user-1") is None

    async def test_delete_unknown(self, service):
        with pytest.raises(SessionNotFoundError):
            await service.delete_session("no-such-session", "user-1")


class TestFromConfig:

    async def test_builds_from_configuration(self, tmp_path, monkeypatch):
        for name in ("ENVIRONMENT", "GROQ_API_KEY", "LOG_LEVEL"):
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        (tmp_path / "config.yaml").write_text(
            "storage:\n  backend: memory\n"
            "session:\n  questions_per_session: 2\n  max_response_length: 50\n"
            "readiness:\n  well_prepared: 95\n",
            encoding="utf-8",
        )
        manager = ConfigurationManager(str(tmp_path), env_file=str(tmp_path / ".env"))
        manager.initialize()
        analysis = FakeAnalysisService(scores=[88, 88])

        service = PracticeSessionService.from_config(manager, analysis_service=analysis)
        session = await service.create_session("user-1", "Software Developer", "Technology", "entry")
        await service.submit_response(session.id, "First")
        await service.submit_response(session.id, "Second")

        feedback = await service.get_feedback(session.id)
        assert session.total_questions == 2
        assert service.recorder.max_response_length == 50
        assert isinstance(service.aggregator, FeedbackAggregator)
        assert feedback.readiness_level == ReadinessLevel.READY

        await service.cleanup()
        assert analysis.cleaned_up
