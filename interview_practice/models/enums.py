"""Enumeration types for the Interview Practice Engine."""

from enum import Enum


class _LookupEnum(str, Enum):
    """String enum that also resolves member names during deserialization."""

    @classmethod
    def _missing_(cls, value):
        """Handle "Class.NAME", "NAME" and differently-cased values."""
        if isinstance(value, str):
            if value.startswith(f"{cls.__name__}."):
                value = value.split(".", 1)[1]
            try:
                return cls[value.upper()]
            except KeyError:
                pass
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


class QuestionCategory(_LookupEnum):
    """Interview question categories."""

    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    SITUATIONAL = "situational"


class DifficultyTier(_LookupEnum):
    """Experience tiers a question set is aimed at."""

    ENTRY = "entry"
    INTERMEDIATE = "intermediate"
    SENIOR = "senior"

    @property
    def label(self) -> str:
        """Get a human-readable label for this tier."""
        return {
            DifficultyTier.ENTRY: "Entry Level (0-2 years)",
            DifficultyTier.INTERMEDIATE: "Intermediate (2-5 years)",
            DifficultyTier.SENIOR: "Senior (5+ years)",
        }[self]


class SessionStatus(_LookupEnum):
    """Practice session status."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReadinessLevel(_LookupEnum):
    """Qualitative readiness verdict derived from the overall score."""

    WELL_PREPARED = "well_prepared"
    READY = "ready"
    DEVELOPING = "developing"
    NEEDS_WORK = "needs_work"

    @property
    def description(self) -> str:
        """Get a short description of the verdict."""
        return {
            ReadinessLevel.WELL_PREPARED: "Well prepared for real interviews",
            ReadinessLevel.READY: "Ready, with a few areas to polish",
            ReadinessLevel.DEVELOPING: "Developing; keep practicing",
            ReadinessLevel.NEEDS_WORK: "Needs focused work before interviewing",
        }[self]
