"""Tests for session-level feedback aggregation."""

import pytest

from conftest import make_analysis
from interview_practice.engine.feedback_aggregator import FeedbackAggregator, mean_score, round_half_up, unique_in_order
from interview_practice.models.enums import ReadinessLevel, SessionStatus
from interview_practice.services.configuration_manager import ReadinessConfig
from interview_practice.utils.exceptions import (
    ConfigurationError,
    IncompleteSessionError,
    NoResponsesToAggregateError,
)


async def answer_all(recorder, storage, session_id, count):
    for i in range(count):
        await recorder.submit(await storage.load_session(session_id), f"Answer {i}")


class TestRounding:

    def test_mean_rounds_half_up(self):
        assert mean_score([80, 81]) == 81
        assert mean_score([80, 70, 90, 100, 60, 85]) == 81
        assert mean_score([90, 70, 65]) == 75

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestClassify:

    @pytest.mark.parametrize("score, level", [
        (100, ReadinessLevel.WELL_PREPARED),
        (85, ReadinessLevel.WELL_PREPARED),
        (84, ReadinessLevel.READY),
        (70, ReadinessLevel.READY),
        (69, ReadinessLevel.DEVELOPING),
        (50, ReadinessLevel.DEVELOPING),
        (49, ReadinessLevel.NEEDS_WORK),
        (0, ReadinessLevel.NEEDS_WORK),
    ])
    def test_default_thresholds(self, aggregator, score, level):
        assert aggregator.classify(score) == level

    def test_custom_thresholds(self, storage):
        aggregator = FeedbackAggregator(storage, ReadinessConfig(well_prepared=90, ready=75, developing=60))
        assert aggregator.classify(85) == ReadinessLevel.READY
        assert aggregator.classify(59) == ReadinessLevel.NEEDS_WORK

    def test_thresholds_must_decrease(self, storage):
        with pytest.raises(ConfigurationError):
            FeedbackAggregator(storage, ReadinessConfig(well_prepared=70, ready=70, developing=50))


class TestUniqueInOrder:

    def test_first_seen_order(self):
        assert unique_in_order([["a", "b"], ["b", "c"], ["a", "d"]]) == ["a", "b", "c", "d"]

    def test_exact_text_match(self):
        assert unique_in_order([["Clear"], ["clear"]]) == ["Clear", "clear"]


class TestGenerate:

    async def test_six_question_rounding(self, builder, recorder, storage, fake_analysis):
        session = await builder.create("user-1", "Software Developer", "Technology", "entry", 6)
        fake_analysis.results = [make_analysis(s) for s in [80, 70, 90, 100, 60, 85]]

        await answer_all(recorder, storage, session.id, 6)

        feedback = await storage.load_feedback(session.id)
        assert feedback.overall_score == 81
        assert feedback.readiness_level == ReadinessLevel.READY
        assert feedback.question_count == 6

    async def test_aggregated_lists_and_averages(self, builder, recorder, storage, fake_analysis):
        session = await builder.create("user-1", "Software Developer", "Technology", "entry", 3)
        fake_analysis.results = [
            make_analysis(80, strengths=["Clear", "Concise"], improvements=["Use STAR"]),
            make_analysis(70, strengths=["Concise"], improvements=["Use STAR", "Add metrics"]),
            make_analysis(61, strengths=["Honest"], improvements=[]),
        ]

        await answer_all(recorder, storage, session.id, 3)

        feedback = await storage.load_feedback(session.id)
        assert feedback.aggregated_strengths == ["Clear", "Concise", "Honest"]
        assert feedback.aggregated_improvements == ["Use STAR", "Add metrics"]
        assert feedback.communication_avg == 70
        assert feedback.content_avg == 70
        assert feedback.structure_avg == 70
        assert feedback.completion_time_seconds >= 0

    async def test_completes_session(self, builder, recorder, storage):
        session = await builder.create("user-1", "Software Developer", "Technology", "entry", 2)
        await answer_all(recorder, storage, session.id, 2)

        stored = await storage.load_session(session.id)
        feedback = await storage.load_feedback(session.id)
        assert stored.status == SessionStatus.COMPLETED
        assert stored.overall_score == feedback.overall_score
        assert stored.completed_at == feedback.generated_at

    async def test_idempotent(self, builder, recorder, aggregator, storage):
        session = await builder.create("user-1", "Software Developer", "Technology", "entry", 2)
        await answer_all(recorder, storage, session.id, 2)
        completed = await storage.load_session(session.id)

        first = await aggregator.generate(completed)
        second = await aggregator.generate(completed)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()
        assert (await storage.load_session(session.id)) == completed

    async def test_incomplete_session(self, builder, recorder, aggregator, storage):
        session = await builder.create("user-1", "Software Developer", "Technology", "entry", 3)
        await answer_all(recorder, storage, session.id, 1)

        with pytest.raises(IncompleteSessionError) as exc_info:
            await aggregator.generate(session)
        assert exc_info.value.details["answered"] == 1
        assert exc_info.value.details["expected"] == 3
        assert exc_info.value.question_index is None
        assert await storage.load_feedback(session.id) is None

    async def test_empty_session(self, builder, aggregator):
        session = await builder.create("user-1", "Astronaut", "Technology", "entry")

        with pytest.raises(NoResponsesToAggregateError):
            await aggregator.generate(session)
