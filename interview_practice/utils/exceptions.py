"""Custom exceptions for the Interview Practice Engine."""

from typing import Optional, Any, Dict


class PracticeEngineError(Exception):
    """Base exception for all Interview Practice Engine errors."""

    retryable: bool = False

    def __init__(self, message: str, error_code: Optional[str] = None,
                 session_id: Optional[str] = None, question_index: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        """Initialize the exception.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            session_id: Optional session the failure belongs to
            question_index: Optional question index the failure belongs to
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.session_id = session_id
        self.question_index = question_index
        self.details = dict(details or {})
        if session_id is not None:
            self.details.setdefault("session_id", session_id)
        if question_index is not None:
            self.details.setdefault("question_index", question_index)

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(PracticeEngineError):
    """Exception raised for application configuration errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the configuration error.

        Args:
            message: Error message
            config_key: Optional configuration key that caused the error
            details: Optional additional error details
        """
        super().__init__(message, "CONFIG_ERROR", details=details)
        self.config_key = config_key


class InvalidConfigurationError(PracticeEngineError):
    """Exception raised for bad session-creation parameters."""

    def __init__(self, message: str, field_name: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the invalid configuration error.

        Args:
            message: Error message
            field_name: Optional parameter that failed validation
            details: Optional additional error details
        """
        super().__init__(message, "INVALID_CONFIGURATION", details=details)
        self.field_name = field_name


class InvalidResponseError(PracticeEngineError):
    """Exception raised when a submitted answer is rejected before analysis."""

    def __init__(self, message: str, session_id: Optional[str] = None,
                 question_index: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_RESPONSE", session_id, question_index, details)


class SessionAlreadyCompleteError(PracticeEngineError):
    """Exception raised when submitting to a session with no questions left."""

    def __init__(self, message: str, session_id: Optional[str] = None,
                 question_index: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SESSION_ALREADY_COMPLETE", session_id, question_index, details)


class AnalysisUnavailableError(PracticeEngineError):
    """Exception raised when the response-analysis service fails or times out.

    Submissions are atomic, so re-issuing the same submit call is safe.
    """

    retryable = True

    def __init__(self, message: str, session_id: Optional[str] = None,
                 question_index: Optional[int] = None, provider_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        """Initialize the analysis unavailable error.

        Args:
            message: Error message
            session_id: Optional session the submission belonged to
            question_index: Optional question index being answered
            provider_name: Optional name of the analysis provider
            details: Optional additional error details
        """
        super().__init__(message, "ANALYSIS_UNAVAILABLE", session_id, question_index, details)
        self.provider_name = provider_name


class IncompleteSessionError(PracticeEngineError):
    """Exception raised when feedback is requested before every question is scored."""

    def __init__(self, message: str, session_id: Optional[str] = None,
                 answered: Optional[int] = None, expected: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.update({"answered": answered, "expected": expected})
        super().__init__(message, "INCOMPLETE_SESSION", session_id, details=details)
        self.answered = answered
        self.expected = expected


class NoResponsesToAggregateError(PracticeEngineError):
    """Exception raised when aggregating a session that has no responses."""

    def __init__(self, message: str, session_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NO_RESPONSES_TO_AGGREGATE", session_id, details=details)


class ConcurrentModificationError(PracticeEngineError):
    """Exception raised when a submission races another on the same question index.

    Callers should re-fetch the session and submit again with the fresh index.
    """

    retryable = True

    def __init__(self, message: str, session_id: Optional[str] = None,
                 expected_index: Optional[int] = None, actual_index: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        """Initialize the concurrent modification error.

        Args:
            message: Error message
            session_id: Session whose cursor moved
            expected_index: Index the submission was based on
            actual_index: Index currently stored
            details: Optional additional error details
        """
        super().__init__(message, "CONCURRENT_MODIFICATION", session_id, expected_index, details)
        self.expected_index = expected_index
        self.actual_index = actual_index
        self.details.setdefault("actual_index", actual_index)


class SessionNotFoundError(PracticeEngineError):
    """Exception raised when a session id does not resolve to a stored session."""

    def __init__(self, message: str, session_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SESSION_NOT_FOUND", session_id, details=details)


class AuthorizationError(PracticeEngineError):
    """Exception raised when a requester acts on a session they do not own."""

    def __init__(self, message: str, session_id: Optional[str] = None,
                 requester_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the authorization error.

        Args:
            message: Error message
            session_id: Session that was accessed
            requester_id: Identity of the requester
            details: Optional additional error details
        """
        super().__init__(message, "AUTHORIZATION_ERROR", session_id, details=details)
        self.requester_id = requester_id


class StorageError(PracticeEngineError):
    """Exception raised for storage-related errors."""

    def __init__(self, message: str, session_id: Optional[str] = None,
                 file_path: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the storage error.

        Args:
            message: Error message
            session_id: Optional session being read or written
            file_path: Optional file path that caused the error
            details: Optional additional error details
        """
        super().__init__(message, "STORAGE_ERROR", session_id, details=details)
        self.file_path = file_path
