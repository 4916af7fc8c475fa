"""Configuration Manager for handling application configuration and settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..models.enums import ReadinessLevel
from ..utils.exceptions import ConfigurationError
from ..utils.logging import get_logger


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "text"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class StorageConfig:
    """Storage configuration settings."""

    backend: str = "file"
    base_path: str = "data"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageConfig":
        """Create StorageConfig from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class SessionConfig:
    """Practice session settings."""

    questions_per_session: int = 6
    analysis_timeout_seconds: float = 30.0
    max_response_length: int = 10000
    question_bank_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """Create SessionConfig from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class ReadinessConfig:
    """Score thresholds for the readiness verdict, evaluated high to low."""

    well_prepared: int = 85
    ready: int = 70
    developing: int = 50

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReadinessConfig":
        """Create ReadinessConfig from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def ordered_thresholds(self) -> Dict[ReadinessLevel, int]:
        """Thresholds from highest to lowest; scores below all of them need work."""
        return {
            ReadinessLevel.WELL_PREPARED: self.well_prepared,
            ReadinessLevel.READY: self.ready,
            ReadinessLevel.DEVELOPING: self.developing,
        }

    def validate(self) -> None:
        """Raise ConfigurationError unless thresholds are strictly decreasing within 0..100."""
        values = [self.well_prepared, self.ready, self.developing]
        if any(isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= 100 for v in values):
            raise ConfigurationError(f"Readiness thresholds must be integers in 0..100, got {values}",
                                     config_key="readiness")
        if not self.well_prepared > self.ready > self.developing:
            raise ConfigurationError(f"Readiness thresholds must be strictly decreasing, got {values}",
                                     config_key="readiness")


class AnalysisProviderConfig(BaseModel):
    """Analysis provider configuration model."""

    name: str = Field(default="groq", description="Provider name")
    api_key: str = Field(default="", description="API key for the provider")
    base_url: Optional[str] = Field(default="https://api.groq.com/openai/v1", description="Base URL for API calls")
    model: str = Field(default="llama-3.3-70b-versatile", description="Model name to use")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_tokens: int = Field(default=2000, description="Maximum tokens for responses")
    temperature: float = Field(default=0.5, description="Temperature for generation")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v):
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v < 1:
            raise ValueError("Timeout must be at least 1 second")
        return v


class AppConfig(BaseModel):
    """Main application configuration model."""

    app_name: str = Field(default="Interview Practice", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment")

    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging settings")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage settings")
    session: SessionConfig = Field(default_factory=SessionConfig, description="Session settings")
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig, description="Readiness thresholds")
    analysis: AnalysisProviderConfig = Field(default_factory=AnalysisProviderConfig,
                                             description="Analysis provider settings")

    class Config:
        validate_assignment = True


class ConfigurationManager:
    """Manages application configuration and settings."""

    def __init__(self, config_path: str = "config", env_file: str = ".env"):
        """Initialize the configuration manager.

        Args:
            config_path: Path to configuration directory.
            env_file: Path to environment file.
        """
        self.config_path = Path(config_path)
        self.env_file = Path(env_file)
        self.config: Optional[AppConfig] = None
        self.logger = get_logger("configuration_manager")

    def initialize(self) -> None:
        """Load environment, configuration files and validate the result.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self._load_environment_variables()
        self._load_configuration_files()
        self._validate_configuration()
        self.logger.info("ConfigurationManager initialized successfully")

    def _load_environment_variables(self) -> None:
        """Load environment variables from .env file."""
        if self.env_file.exists():
            load_dotenv(self.env_file)
            self.logger.info(f"Loaded environment variables from {self.env_file}")

        os.environ.setdefault("ENVIRONMENT", "development")

    def _load_configuration_files(self) -> None:
        """Load configuration from YAML files over the defaults."""
        config_data: Dict[str, Any] = {}

        main_config_file = self.config_path / "config.yaml"
        if main_config_file.exists():
            config_data = self._merge(config_data, self._load_yaml_file(main_config_file))
            self.logger.info(f"Loaded main configuration from {main_config_file}")
        else:
            self.logger.warning(f"Configuration file not found, using defaults: {main_config_file}")

        environment = os.getenv("ENVIRONMENT", "development")
        env_config_file = self.config_path / f"config.{environment}.yaml"
        if env_config_file.exists():
            config_data = self._merge(config_data, self._load_yaml_file(env_config_file))
            self.logger.info(f"Loaded environment configuration from {env_config_file}")

        config_data.setdefault("environment", environment)
        self._apply_environment_overrides(config_data)

        try:
            self.config = AppConfig(
                app_name=config_data.get("app_name", "Interview Practice"),
                version=str(config_data.get("version", "1.0.0")),
                debug=config_data.get("debug", False),
                environment=config_data["environment"],
                logging=LoggingConfig.from_dict(config_data.get("logging") or {}),
                storage=StorageConfig.from_dict(config_data.get("storage") or {}),
                session=SessionConfig.from_dict(config_data.get("session") or {}),
                readiness=ReadinessConfig.from_dict(config_data.get("readiness") or {}),
                analysis=AnalysisProviderConfig.model_validate(config_data.get("analysis") or {}),
            )
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def _apply_environment_overrides(self, config_data: Dict[str, Any]) -> None:
        """Resolve ``${VAR}`` references and well-known environment variables."""
        analysis = config_data.setdefault("analysis", {})
        api_key = analysis.get("api_key", "")
        if isinstance(api_key, str) and api_key.startswith("${") and api_key.endswith("}"):
            env_var_name = api_key[2:-1]
            analysis["api_key"] = os.getenv(env_var_name, "")
            if not analysis["api_key"]:
                self.logger.warning(f"Environment variable {env_var_name} not set for analysis provider")
        elif not api_key and os.getenv("GROQ_API_KEY"):
            analysis["api_key"] = os.getenv("GROQ_API_KEY")

        if os.getenv("LOG_LEVEL"):
            config_data.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL")

    @staticmethod
    def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two configuration dictionaries."""
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigurationManager._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML file content.

        Raises:
            ConfigurationError: If the file cannot be read or parsed.
        """
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load YAML file {file_path}: {e}")
            raise ConfigurationError(f"Failed to load {file_path}: {e}")

        if not isinstance(content, dict):
            raise ConfigurationError(f"Configuration file {file_path} must contain a mapping")
        return content

    def _validate_configuration(self) -> None:
        """Validate the loaded configuration."""
        if not self.config:
            raise ConfigurationError("Configuration not loaded")

        self.config.readiness.validate()

        session = self.config.session
        if isinstance(session.questions_per_session, bool) or not isinstance(session.questions_per_session, int) \
                or session.questions_per_session < 1:
            raise ConfigurationError("questions_per_session must be a positive integer",
                                     config_key="session.questions_per_session")
        if session.analysis_timeout_seconds <= 0:
            raise ConfigurationError("analysis_timeout_seconds must be positive",
                                     config_key="session.analysis_timeout_seconds")
        if session.max_response_length < 1:
            raise ConfigurationError("max_response_length must be positive",
                                     config_key="session.max_response_length")

        if self.config.storage.backend not in ("memory", "file"):
            raise ConfigurationError(f"Unsupported storage backend: {self.config.storage.backend}",
                                     config_key="storage.backend")

        if not self.config.analysis.api_key:
            self.logger.warning("No analysis API key configured - submissions will fail until one is set")

        self.logger.info("Configuration validation completed successfully")

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Raises:
            ConfigurationError: If configuration is not loaded.
        """
        if not self.config:
            raise ConfigurationError("Configuration not loaded")
        return self.config

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration as ``setup_logging`` keyword arguments."""
        logging_config = self.get_config().logging
        return {
            "level": logging_config.level,
            "log_file": logging_config.file_path,
            "enable_console": logging_config.console_output,
            "enable_file": logging_config.file_output or bool(logging_config.file_path),
            "structured": logging_config.format == "json",
            "max_file_size": logging_config.max_file_size,
            "backup_count": logging_config.backup_count,
        }

    def get_storage_config(self) -> Dict[str, Any]:
        """Get storage configuration."""
        storage = self.get_config().storage
        return {"backend": storage.backend, "base_path": storage.base_path}

    def get_analysis_config(self) -> Dict[str, Any]:
        """Get analysis provider configuration."""
        return self.get_config().analysis.model_dump()

    def get_environment(self) -> str:
        """Get current environment."""
        if not self.config:
            return "development"
        return self.config.environment
