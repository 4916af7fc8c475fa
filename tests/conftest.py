"""Shared fixtures for the Interview Practice Engine tests."""

import asyncio
from typing import List, Optional

import pytest

from interview_practice.engine import FeedbackAggregator, QuestionBank, ResponseRecorder, SessionBuilder
from interview_practice.models.analysis import AnalysisResult
from interview_practice.services.analysis_service import AnalysisService
from interview_practice.services.practice_service import PracticeSessionService
from interview_practice.services.storage_manager import StorageManager
from interview_practice.utils.exceptions import AnalysisUnavailableError


def make_analysis(score: int, strengths: Optional[List[str]] = None,
                  improvements: Optional[List[str]] = None) -> AnalysisResult:
    """Build an analysis whose sub-scores equal the overall score."""
    return AnalysisResult(
        score=score,
        communication_score=score,
        content_score=score,
        structure_score=score,
        strengths=strengths if strengths is not None else [f"Strength at {score}"],
        improvements=improvements if improvements is not None else ["Add measurable results"],
        suggested_answer="A structured answer using the STAR method.",
        key_points_covered=["context"],
        key_points_missed=["outcome"],
        overall_feedback=f"Scored {score}.",
    )


class FakeAnalysisService(AnalysisService):
    """Scripted analysis service.

    Each call consumes the next scripted score. ``fail_next`` makes that many
    upcoming calls raise, ``delay`` makes every call sleep first, and ``gate``
    (an ``asyncio.Event``) holds every call until it is set.
    """

    provider_name = "fake"

    def __init__(self, scores: Optional[List[int]] = None, results: Optional[List[AnalysisResult]] = None):
        self.results = list(results) if results is not None else [make_analysis(s) for s in (scores or [])]
        self.calls = []
        self.fail_next = 0
        self.failure: Exception = AnalysisUnavailableError("scripted failure", provider_name="fake")
        self.delay = 0.0
        self.gate: Optional[asyncio.Event] = None
        self.cleaned_up = False

    @property
    def model_name(self) -> Optional[str]:
        return "fake-model"

    async def analyze(self, question, category, response_text, position, industry, difficulty_tier):
        self.calls.append({
            "question": question,
            "category": category,
            "response_text": response_text,
            "position": position,
            "industry": industry,
            "difficulty_tier": difficulty_tier,
        })
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_next:
            self.fail_next -= 1
            raise self.failure
        if not self.results:
            return make_analysis(75)
        return self.results.pop(0)

    async def cleanup(self) -> None:
        self.cleaned_up = True


@pytest.fixture
def storage():
    """In-memory storage manager."""
    manager = StorageManager("memory")
    manager.initialize()
    return manager


@pytest.fixture
def file_storage(tmp_path):
    """File-backed storage manager rooted in a temporary directory."""
    manager = StorageManager("file", base_path=str(tmp_path / "data"))
    manager.initialize()
    return manager


@pytest.fixture
def question_bank():
    return QuestionBank()


@pytest.fixture
def builder(question_bank, storage):
    return SessionBuilder(question_bank, storage)


@pytest.fixture
def fake_analysis():
    return FakeAnalysisService()


@pytest.fixture
def aggregator(storage):
    return FeedbackAggregator(storage)


@pytest.fixture
def recorder(storage, fake_analysis, aggregator):
    return ResponseRecorder(storage, fake_analysis, aggregator, analysis_timeout=1.0, max_response_length=500)


@pytest.fixture
def service(storage, fake_analysis):
    return PracticeSessionService(storage, fake_analysis, analysis_timeout=1.0)
