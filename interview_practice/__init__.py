"""Interview Practice Engine - AI-scored mock interview sessions."""

__version__ = "0.1.0"
