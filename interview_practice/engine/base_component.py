"""Base component interface for the Interview Practice Engine."""

from typing import Any, Dict, Optional

from ..utils.logging import get_logger, log_error


class BaseComponent:
    """Shared logging behaviour for engine components.

    Records are tagged with the component name; the session id is added by
    the logging filter from the current context.
    """

    def __init__(self, component_name: str):
        """Initialize the base component.

        Args:
            component_name: Name used for the logger and the ``component`` field.
        """
        self.component_name = component_name
        self.logger = get_logger(f"engine.{component_name}")

    def _extra(self, details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        extra = {"component": self.component_name}
        if details:
            extra.update(details)
        return extra

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log a completed state change."""
        self.logger.info(f"Operation: {operation}", extra=self._extra(details))

    def log_rejection(self, reason: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log a request refused because a precondition did not hold."""
        self.logger.warning(f"Rejected: {reason}", extra=self._extra(details))

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """Log a failure with the error's details and this component's context."""
        log_error(error, self._extra(context))
