"""Response analysis service for scoring individual interview answers."""

import asyncio
import json
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from ..models.analysis import AnalysisResult
from ..models.enums import DifficultyTier, QuestionCategory
from ..utils.exceptions import AnalysisUnavailableError
from ..utils.logging import get_logger, log_performance

_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)

SYSTEM_PROMPT = (
    "You are an expert interview coach providing detailed, constructive feedback on "
    "interview responses. Always respond with valid JSON only."
)

CATEGORY_GUIDANCE = {
    QuestionCategory.BEHAVIORAL: [
        "Evaluate use of STAR method (Situation, Task, Action, Result)",
        "Check for specific examples and measurable outcomes",
        "Assess storytelling and impact demonstration",
    ],
    QuestionCategory.TECHNICAL: [
        "Evaluate technical accuracy and depth",
        "Check for clear explanation and problem-solving approach",
        "Assess practical knowledge and real-world application",
    ],
    QuestionCategory.SITUATIONAL: [
        "Evaluate problem-solving approach and decision-making",
        "Check for understanding of priorities and stakeholder management",
        "Assess judgment and professional maturity",
    ],
}

TIER_GUIDANCE = {
    DifficultyTier.ENTRY: [
        "Expect foundational knowledge and enthusiasm",
        "Look for learning agility and potential",
        "Assess cultural fit and communication skills",
    ],
    DifficultyTier.INTERMEDIATE: [
        "Expect solid technical/functional knowledge",
        "Look for collaboration and growth mindset",
        "Assess ability to handle complexity",
    ],
    DifficultyTier.SENIOR: [
        "Expect strategic thinking and leadership examples",
        "Look for team management and mentoring capabilities",
        "Assess business impact and scalability mindset",
    ],
}

RESPONSE_FORMAT = """{
  "score": <number 0-100 representing overall quality>,
  "communication_score": <number 0-100 for clarity, articulation, and professionalism>,
  "content_score": <number 0-100 for relevance, depth, and accuracy>,
  "structure_score": <number 0-100 for organization and logical flow>,
  "strengths": [{"point": "specific strength identified", "explanation": "why this is a strength"}],
  "improvements": [{"issue": "area needing improvement", "suggestion": "specific actionable advice", "priority": "high|medium|low"}],
  "suggested_answer": "A well-crafted example answer that demonstrates best practices for this question",
  "key_points_covered": ["point1", "point2"],
  "key_points_missed": ["point1", "point2"],
  "overall_feedback": "Comprehensive 2-3 sentence summary of the response quality"
}"""


def build_analysis_prompt(question: str, category: QuestionCategory, response_text: str,
                          position: str, industry: str, difficulty_tier: DifficultyTier) -> str:
    """Build the user prompt asking for a JSON analysis of one answer."""
    guidance = CATEGORY_GUIDANCE[category] + TIER_GUIDANCE[difficulty_tier]
    guidance_lines = "\n".join(f"- {line}" for line in guidance)
    return f"""Analyze the following interview response and provide detailed, constructive feedback.

**Interview Context:**
- Position: {position}
- Industry: {industry}
- Experience Level: {difficulty_tier.value}
- Question Type: {category.value}

**Question:**
{question}

**Candidate's Response:**
{response_text}

Provide a comprehensive analysis in the following JSON format:
{RESPONSE_FORMAT}

**Analysis Guidelines:**
{guidance_lines}

Return ONLY the JSON object, no additional text."""


def parse_analysis_content(content: str) -> AnalysisResult:
    """Parse model output into a validated :class:`AnalysisResult`.

    Markdown code fences around the JSON are tolerated.

    Raises:
        ValueError: If the content is not JSON or does not match the schema.
    """
    text = (content or "").strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    if not text:
        raise ValueError("empty analysis content")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"analysis is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("analysis must be a JSON object")

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as e:
        raise ValueError(f"analysis does not match schema: {e}") from e


class AnalysisService(ABC):
    """Scores a single free-text answer.

    Implementations are called at most once per submission attempt and must
    not retry internally.
    """

    provider_name: str = "unknown"

    @property
    def model_name(self) -> Optional[str]:
        """Name of the model producing analyses, if known."""
        return None

    @abstractmethod
    async def analyze(self, question: str, category: QuestionCategory, response_text: str,
                      position: str, industry: str, difficulty_tier: DifficultyTier) -> AnalysisResult:
        """Analyze an answer.

        Raises:
            AnalysisUnavailableError: If the analysis cannot be produced.
        """

    async def cleanup(self) -> None:
        """Release provider resources."""


class GroqAnalysisService(AnalysisService):
    """Analysis through an OpenAI-compatible chat-completions endpoint (Groq by default)."""

    provider_name = "groq"

    def __init__(self, config: Dict[str, Any]):
        """Initialize the provider.

        Args:
            config: Provider settings: ``api_key``, ``base_url``, ``model``,
                ``timeout``, ``temperature`` and ``max_tokens``.
        """
        self.api_key = config.get("api_key", "")
        self.base_url = (config.get("base_url") or "https://api.groq.com/openai/v1").rstrip("/")
        self.model = config.get("model", "llama-3.3-70b-versatile")
        self.timeout = config.get("timeout", 30)
        self.temperature = config.get("temperature", 0.5)
        self.max_tokens = config.get("max_tokens", 2000)
        self.provider_name = config.get("name", self.provider_name)
        self.logger = get_logger(f"analysis.provider.{self.provider_name}")
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def model_name(self) -> Optional[str]:
        return self.model

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "User-Agent": "InterviewPractice/1.0.0",
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    def _build_messages(self, prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def _unavailable(self, message: str, **details) -> AnalysisUnavailableError:
        return AnalysisUnavailableError(message, provider_name=self.provider_name, details=details)

    async def analyze(self, question: str, category: QuestionCategory, response_text: str,
                      position: str, industry: str, difficulty_tier: DifficultyTier) -> AnalysisResult:
        if not self.api_key:
            raise self._unavailable("Analysis provider has no API key configured")

        prompt = build_analysis_prompt(question, category, response_text, position, industry, difficulty_tier)
        payload = {
            "model": self.model,
            "messages": self._build_messages(prompt),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        url = f"{self.base_url}/chat/completions"

        start = time.monotonic()
        try:
            async with self._get_session().post(url, json=payload) as response:
                if response.status == 429:
                    raise self._unavailable("Analysis provider rate limit exceeded", status=response.status)
                if response.status in (401, 403):
                    raise self._unavailable("Analysis provider rejected the API key", status=response.status)
                if response.status != 200:
                    body = await response.text()
                    raise self._unavailable(
                        f"Analysis provider returned status {response.status}",
                        status=response.status, body=body[:500],
                    )
                data = await response.json(content_type=None)
        except AnalysisUnavailableError:
            raise
        except aiohttp.ClientError as e:
            raise self._unavailable(f"Analysis request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise self._unavailable(f"Analysis request timed out after {self.timeout}s") from e
        except json.JSONDecodeError as e:
            raise self._unavailable(f"Analysis provider returned invalid JSON: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._unavailable("Analysis provider response had no message content") from e

        try:
            result = parse_analysis_content(content)
        except ValueError as e:
            self.logger.warning(f"Rejected analysis output: {e}")
            raise self._unavailable(f"Analysis output rejected: {e}") from e

        log_performance("analysis", time.monotonic() - start, {
            "provider": self.provider_name,
            "model": self.model,
            "tokens_used": (data.get("usage") or {}).get("total_tokens", 0),
        })
        return result

    async def cleanup(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
