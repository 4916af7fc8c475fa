"""Tests for analysis prompt building, output parsing and the HTTP provider."""

import asyncio
import json

import aiohttp
import pytest

from interview_practice.models.analysis import AnalysisResult
from interview_practice.models.enums import DifficultyTier, QuestionCategory
from interview_practice.services.analysis_service import (
    GroqAnalysisService,
    build_analysis_prompt,
    parse_analysis_content,
)
from interview_practice.utils.exceptions import AnalysisUnavailableError

VALID_ANALYSIS = {
    "score": 78,
    "communication_score": 80,
    "content_score": 75,
    "structure_score": 70,
    "strengths": [{"point": "Clear example", "explanation": "Concrete situation described"}],
    "improvements": [{"issue": "No result", "suggestion": "State the measurable outcome", "priority": "high"}],
    "suggested_answer": "In my last role I...",
    "key_points_covered": ["situation"],
    "key_points_missed": ["result"],
    "overall_feedback": "Solid answer that needs a stronger ending.",
}


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status=200, payload=None, body=None, error=None):
        self.status = status
        self.payload = payload
        self.body = body
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def json(self, content_type="application/json"):
        if self.body is not None:
            return json.loads(self.body)
        return self.payload

    async def text(self):
        return self.body if self.body is not None else json.dumps(self.payload)


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []
        self.closed = False

    def post(self, url, json=None):
        self.requests.append({"url": url, "json": json})
        return self.response

    async def close(self):
        self.closed = True


def completion(content, total_tokens=321):
    return {"choices": [{"message": {"content": content}}], "usage": {"total_tokens": total_tokens}}


def make_service(response, **config):
    service = GroqAnalysisService({"api_key": "test-key", **config})
    fake_session = FakeSession(response)
    service._get_session = lambda: fake_session
    return service, fake_session


async def run_analysis(service):
    return await service.analyze(
        "Tell me about yourself.",
        QuestionCategory.BEHAVIORAL,
        "I am a developer.",
        "Software Developer",
        "Technology",
        DifficultyTier.ENTRY,
    )


class TestPrompt:

    def test_contains_context_and_guidance(self):
        prompt = build_analysis_prompt(
            "Tell me about yourself.", QuestionCategory.BEHAVIORAL, "I am a developer.",
            "Software Developer", "Technology", DifficultyTier.SENIOR,
        )
        assert "Position: Software Developer" in prompt
        assert "Industry: Technology" in prompt
        assert "I am a developer." in prompt
        assert "STAR method" in prompt
        assert "strategic thinking" in prompt


class TestParseAnalysisContent:

    def test_plain_json(self):
        result = parse_analysis_content(json.dumps(VALID_ANALYSIS))
        assert result.score == 78
        assert result.strengths == ["Clear example: Concrete situation described"]
        assert result.improvements == ["No result: State the measurable outcome"]

    def test_fenced_json(self):
        result = parse_analysis_content("```json\n" + json.dumps(VALID_ANALYSIS) + "\n```")
        assert result.structure_score == 70

    def test_string_feedback_items(self):
        payload = dict(VALID_ANALYSIS, strengths=["Clear"], improvements=["Shorter"])
        result = parse_analysis_content(json.dumps(payload))
        assert result.strengths == ["Clear"]

    def test_whole_float_scores_accepted(self):
        result = parse_analysis_content(json.dumps(dict(VALID_ANALYSIS, score=78.0)))
        assert result.score == 78

    @pytest.mark.parametrize("content", [
        "",
        "not json",
        "[1, 2, 3]",
        json.dumps(dict(VALID_ANALYSIS, score=101)),
        json.dumps(dict(VALID_ANALYSIS, score=77.5)),
        json.dumps(dict(VALID_ANALYSIS, score=True)),
        json.dumps(dict(VALID_ANALYSIS, strengths="Clear")),
        json.dumps(dict(VALID_ANALYSIS, strengths=[42])),
        json.dumps({k: v for k, v in VALID_ANALYSIS.items() if k != "suggested_answer"}),
    ])
    def test_rejects_malformed(self, content):
        with pytest.raises(ValueError):
            parse_analysis_content(content)


class TestGroqAnalysisService:

    async def test_success(self):
        service, session = make_service(FakeResponse(payload=completion(json.dumps(VALID_ANALYSIS))),
                                         model="test-model")

        result = await run_analysis(service)

        assert isinstance(result, AnalysisResult)
        assert result.overall_feedback.startswith("Solid answer")
        request = session.requests[0]
        assert request["url"] == "https://api.groq.com/openai/v1/chat/completions"
        assert request["json"]["model"] == "test-model"
        assert request["json"]["messages"][0]["role"] == "system"

    async def test_missing_api_key(self):
        service = GroqAnalysisService({})
        with pytest.raises(AnalysisUnavailableError):
            await run_analysis(service)

    @pytest.mark.parametrize("response", [
        FakeResponse(status=429, payload={}),
        FakeResponse(status=401, payload={}),
        FakeResponse(status=500, body="internal error"),
        FakeResponse(body="<html>not json</html>"),
        FakeResponse(payload={"choices": []}),
        FakeResponse(payload=completion("I think the answer was fine.")),
        FakeResponse(error=aiohttp.ClientConnectionError("connection refused")),
        FakeResponse(error=asyncio.TimeoutError()),
    ])
    async def test_failures_surface_as_unavailable(self, response):
        service, _ = make_service(response)

        with pytest.raises(AnalysisUnavailableError) as exc_info:
            await run_analysis(service)
        assert exc_info.value.provider_name == "groq"

    async def test_cleanup_closes_session(self):
        service = GroqAnalysisService({"api_key": "test-key"})
        fake_session = FakeSession(None)
        service._session = fake_session

        await service.cleanup()

        assert fake_session.closed
        assert service._session is None
