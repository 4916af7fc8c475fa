"""Utility modules for the Interview Practice Engine."""

from .logging import (
    setup_logging,
    get_logger,
    set_correlation_id,
    get_correlation_id,
    log_performance,
    log_error,
)
from .exceptions import (
    PracticeEngineError,
    ConfigurationError,
    InvalidConfigurationError,
    InvalidResponseError,
    SessionAlreadyCompleteError,
    AnalysisUnavailableError,
    IncompleteSessionError,
    NoResponsesToAggregateError,
    ConcurrentModificationError,
    SessionNotFoundError,
    AuthorizationError,
    StorageError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "log_performance",
    "log_error",
    "PracticeEngineError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "InvalidResponseError",
    "SessionAlreadyCompleteError",
    "AnalysisUnavailableError",
    "IncompleteSessionError",
    "NoResponsesToAggregateError",
    "ConcurrentModificationError",
    "SessionNotFoundError",
    "AuthorizationError",
    "StorageError",
]
