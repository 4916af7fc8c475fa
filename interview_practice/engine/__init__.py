"""Core components of the Interview Practice Engine."""

from .base_component import BaseComponent
from .question_bank import QuestionBank, QUESTION_BANK_VERSION
from .session_state import SessionStateMachine
from .session_builder import SessionBuilder
from .feedback_aggregator import FeedbackAggregator
from .response_recorder import ResponseRecorder

__all__ = [
    "BaseComponent",
    "QuestionBank",
    "QUESTION_BANK_VERSION",
    "SessionStateMachine",
    "SessionBuilder",
    "FeedbackAggregator",
    "ResponseRecorder",
]
