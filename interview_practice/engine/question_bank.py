"""Static, versioned catalog of interview question templates."""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import ValidationError

from ..models.enums import DifficultyTier, QuestionCategory
from ..models.question import QuestionTemplate
from ..utils.exceptions import ConfigurationError
from ..utils.logging import get_logger

QUESTION_BANK_VERSION = "2024.1"

CATEGORY_ORDER: Tuple[QuestionCategory, ...] = (
    QuestionCategory.BEHAVIORAL,
    QuestionCategory.TECHNICAL,
    QuestionCategory.SITUATIONAL,
)

INDUSTRY_POSITIONS: Dict[str, List[str]] = {
    "Technology": ["Software Developer", "Data Analyst", "Product Manager", "UX Designer", "DevOps Engineer"],
    "Healthcare": ["Nurse", "Medical Assistant", "Health Administrator", "Lab Technician"],
    "Education": ["Teacher", "Education Coordinator", "Curriculum Developer", "Academic Advisor"],
    "Finance": ["Financial Analyst", "Accountant", "Bank Teller", "Investment Advisor"],
    "Business": ["Marketing Coordinator", "Sales Representative", "HR Assistant", "Operations Manager"],
}

_QUESTIONS: Dict[str, Dict[str, List[Tuple[str, Tuple[str, ...]]]]] = {
    "entry": {
        "behavioral": [
            ("Tell me about yourself and why you're interested in this position.",
             ("Keep it concise (2-3 minutes)", "Focus on relevant experiences", "Connect to the role")),
            ("What are your greatest strengths?",
             ("Choose strengths relevant to the job", "Provide specific examples", "Show impact")),
            ("Where do you see yourself in 5 years?",
             ("Show ambition but be realistic", "Align with company growth", "Demonstrate commitment")),
        ],
        "technical": [
            ("How would you approach learning a new technology or skill required for this role?",
             ("Show learning methodology", "Mention resources you use", "Give examples from past experience")),
            ("Describe a challenging project you worked on. How did you overcome obstacles?",
             ("Use STAR method", "Focus on your contribution", "Highlight problem-solving skills")),
        ],
        "situational": [
            ("How would you handle a disagreement with a team member?",
             ("Show conflict resolution skills", "Emphasize communication", "Focus on finding solutions")),
            ("What would you do if you missed an important deadline?",
             ("Take responsibility", "Show proactive communication", "Demonstrate learning")),
        ],
    },
    "intermediate": {
        "behavioral": [
            ("Describe a time when you led a team through a difficult project.",
             ("Highlight leadership skills", "Show team management", "Discuss outcomes")),
            ("Tell me about a time you had to adapt to significant change at work.",
             ("Show flexibility", "Demonstrate resilience", "Highlight positive outcomes")),
        ],
        "technical": [
            ("How do you stay current with industry trends and technologies?",
             ("Mention specific resources", "Show continuous learning", "Discuss application")),
            ("Describe your approach to mentoring junior team members.",
             ("Show teaching ability", "Demonstrate patience", "Highlight development success")),
        ],
        "situational": [
            ("How would you handle competing priorities from different stakeholders?",
             ("Show prioritization skills", "Demonstrate communication", "Focus on business value")),
        ],
    },
    "senior": {
        "behavioral": [
            ("Describe your leadership philosophy and how it has evolved.",
             ("Show self-awareness", "Demonstrate growth", "Give concrete examples")),
            ("Tell me about a strategic decision you made that had significant impact.",
             ("Show strategic thinking", "Demonstrate impact", "Discuss lessons learned")),
        ],
        "technical": [
            ("How do you approach building and scaling high-performing teams?",
             ("Show team building skills", "Demonstrate scalability thinking", "Highlight results")),
        ],
        "situational": [
            ("How would you handle a situation where your team is consistently missing targets?",
             ("Show analytical thinking", "Demonstrate leadership", "Focus on solutions")),
        ],
    },
}

CategoryPools = Dict[QuestionCategory, Tuple[QuestionTemplate, ...]]


def _empty_pools() -> CategoryPools:
    return {category: () for category in CATEGORY_ORDER}


class QuestionBank:
    """Read-only catalog of question templates grouped by tier and category.

    Pools keep their declared order so identical parameters always yield the
    same questions.
    """

    def __init__(self, questions: Optional[Mapping[str, Mapping[str, Sequence[Any]]]] = None,
                 industry_positions: Optional[Mapping[str, Sequence[str]]] = None,
                 version: str = QUESTION_BANK_VERSION):
        """Initialize the question bank.

        Args:
            questions: ``{tier: {category: [(text, tips) | {"text", "tips"}]}}``;
                defaults to the built-in catalog.
            industry_positions: ``{industry: [position, ...]}``; defaults to the
                built-in catalog.
            version: Catalog version recorded on every session.
        """
        self.version = version
        self.logger = get_logger("engine.QuestionBank")
        self._industry_positions: Dict[str, Tuple[str, ...]] = {
            industry: tuple(positions)
            for industry, positions in (industry_positions or INDUSTRY_POSITIONS).items()
        }
        self._pools: Dict[DifficultyTier, CategoryPools] = self._build_pools(questions or _QUESTIONS)

    @classmethod
    def from_yaml(cls, file_path: Union[str, Path]) -> "QuestionBank":
        """Load a question bank from a YAML document.

        The document holds ``version``, ``industries`` and ``questions`` keys
        shaped like the constructor arguments.

        Raises:
            ConfigurationError: If the file is missing or malformed.
        """
        path = Path(file_path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load question bank {path}: {e}", config_key="question_bank.path")

        if not isinstance(data, dict) or "questions" not in data:
            raise ConfigurationError(f"Question bank {path} has no 'questions' section",
                                     config_key="question_bank.path")

        return cls(
            questions=data["questions"],
            industry_positions=data.get("industries"),
            version=str(data.get("version", QUESTION_BANK_VERSION)),
        )

    def _build_pools(self, questions: Mapping[str, Mapping[str, Sequence[Any]]]) -> Dict[DifficultyTier, CategoryPools]:
        pools: Dict[DifficultyTier, CategoryPools] = {}
        for tier_name, categories in questions.items():
            try:
                tier = DifficultyTier(tier_name)
            except ValueError:
                raise ConfigurationError(f"Unknown difficulty tier in question bank: {tier_name!r}",
                                         config_key="question_bank")
            tier_pools = _empty_pools()
            for category_name, entries in categories.items():
                try:
                    category = QuestionCategory(category_name)
                except ValueError:
                    raise ConfigurationError(f"Unknown question category in question bank: {category_name!r}",
                                             config_key="question_bank")
                tier_pools[category] = tuple(self._to_template(entry, category) for entry in entries)
            pools[tier] = tier_pools
        return pools

    @staticmethod
    def _to_template(entry: Any, category: QuestionCategory) -> QuestionTemplate:
        try:
            if isinstance(entry, QuestionTemplate):
                return entry
            if isinstance(entry, dict):
                return QuestionTemplate(text=entry["text"], category=category, tips=tuple(entry.get("tips", ())))
            text, tips = entry
            return QuestionTemplate(text=text, category=category, tips=tuple(tips))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise ConfigurationError(f"Invalid question entry {entry!r}: {e}", config_key="question_bank")

    def industries(self) -> List[str]:
        """List the industries the catalog supports."""
        return list(self._industry_positions)

    def positions_for(self, industry: str) -> List[str]:
        """List the positions offered for an industry (empty if unknown)."""
        key = self._match(industry, self._industry_positions)
        return list(self._industry_positions[key]) if key else []

    def supports(self, industry: str, position: str) -> bool:
        """Check whether an industry/position pair is in the catalog."""
        return any(p.casefold() == position.strip().casefold() for p in self.positions_for(industry))

    def templates_for(self, industry: str, position: str,
                      difficulty_tier: Union[DifficultyTier, str]) -> CategoryPools:
        """Get the ordered question pools for a session context.

        Unknown combinations return an empty pool for every category.
        """
        try:
            tier = DifficultyTier(difficulty_tier)
        except ValueError:
            tier = None
        if tier not in self._pools or not self.supports(industry, position):
            self.logger.debug("No questions for combination", extra={
                "industry": industry, "position": position, "difficulty_tier": str(difficulty_tier)
            })
            return _empty_pools()
        return dict(self._pools[tier])

    @staticmethod
    def _match(name: str, mapping: Mapping[str, Any]) -> Optional[str]:
        wanted = (name or "").strip().casefold()
        for key in mapping:
            if key.casefold() == wanted:
                return key
        return None
