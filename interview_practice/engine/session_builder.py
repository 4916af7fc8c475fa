"""Session Builder for creating practice sessions from the question bank."""

from typing import List, Optional, Union

from ..models.enums import DifficultyTier
from ..models.question import QuestionTemplate
from ..models.session import Session
from ..services.storage_manager import StorageManager
from ..utils.exceptions import InvalidConfigurationError
from .base_component import BaseComponent
from .question_bank import CATEGORY_ORDER, CategoryPools, QuestionBank

DEFAULT_SESSION_LENGTH = 6


class SessionBuilder(BaseComponent):
    """Selects and orders a fixed-length question sequence for new sessions."""

    def __init__(self, question_bank: QuestionBank, storage_manager: StorageManager,
                 default_length: int = DEFAULT_SESSION_LENGTH):
        """Initialize the SessionBuilder.

        Args:
            question_bank: Catalog to draw questions from.
            storage_manager: Store that persists the new session.
            default_length: Number of questions when the caller gives none.
        """
        super().__init__("SessionBuilder")
        self.question_bank = question_bank
        self.storage_manager = storage_manager
        self.default_length = default_length

    @staticmethod
    def select_questions(pools: CategoryPools, length: int) -> List[QuestionTemplate]:
        """Draw questions round-robin across categories.

        Categories are visited behavioral, technical, situational, repeating,
        until ``length`` questions are collected or every pool is exhausted.
        """
        cursors = {category: 0 for category in CATEGORY_ORDER}
        selected: List[QuestionTemplate] = []

        while len(selected) < length:
            drew_any = False
            for category in CATEGORY_ORDER:
                if len(selected) >= length:
                    break
                pool = pools.get(category, ())
                if cursors[category] < len(pool):
                    selected.append(pool[cursors[category]])
                    cursors[category] += 1
                    drew_any = True
            if not drew_any:
                break

        return selected

    def _validate(self, owner_id: str, position: str, industry: str,
                  difficulty_tier: Union[DifficultyTier, str], length: int) -> DifficultyTier:
        for field_name, value in (("owner_id", owner_id), ("position", position), ("industry", industry)):
            if not isinstance(value, str) or not value.strip():
                raise InvalidConfigurationError(f"{field_name} must be a non-empty string, got {value!r}",
                                                field_name=field_name)
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise InvalidConfigurationError(f"Session length must be a positive integer, got {length!r}",
                                            field_name="length")
        try:
            return DifficultyTier(difficulty_tier)
        except ValueError:
            raise InvalidConfigurationError(f"Unknown difficulty tier: {difficulty_tier!r}",
                                            field_name="difficulty_tier")

    async def create(self, owner_id: str, position: str, industry: str,
                     difficulty_tier: Union[DifficultyTier, str], length: Optional[int] = None) -> Session:
        """Create and persist a new in-progress session.

        If the pools run out before ``length`` questions are drawn, the session
        is created with fewer questions and that count becomes its length.

        Raises:
            InvalidConfigurationError: If position or industry is empty, the tier
                is unknown, or length is not positive.
        """
        if length is None:
            length = self.default_length
        tier = self._validate(owner_id, position, industry, difficulty_tier, length)
        position = position.strip()
        industry = industry.strip()

        pools = self.question_bank.templates_for(industry, position, tier)
        questions = self.select_questions(pools, length)
        if len(questions) < length:
            self.logger.warning(
                f"Question pools exhausted: built {len(questions)} of {length} questions",
                extra={"industry": industry, "position": position, "difficulty_tier": tier.value}
            )

        session = Session(
            owner_id=owner_id.strip(),
            position=position,
            industry=industry,
            difficulty_tier=tier,
            question_sequence=questions,
            question_bank_version=self.question_bank.version,
        )
        await self.storage_manager.create_session(session)

        self.log_operation("Session created", {
            "session_id": session.id,
            "total_questions": session.total_questions,
            "difficulty_tier": tier.value,
        })
        return session
