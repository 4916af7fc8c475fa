"""Service modules for the Interview Practice Engine."""

from .storage_manager import StorageManager
from .analysis_service import AnalysisService, GroqAnalysisService
from .configuration_manager import ConfigurationManager

__all__ = [
    "StorageManager",
    "AnalysisService",
    "GroqAnalysisService",
    "ConfigurationManager",
]
