"""
Configuration management for the epic router.

Environment-based configuration using Pydantic Settings. Values load from
environment variables or a .env file and are validated at startup with
clear error messages.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Priority: Environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ======================
    # Application Settings
    # ======================
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""
    environment: str = "development"
    """Application environment (development, staging, production)."""

    # ======================
    # Routing Data
    # ======================
    routing_tables_path: Optional[str] = None
    """YAML file overriding the built-in worker and success tables."""

    # ======================
    # Retention
    # ======================
    context_max_entries: Optional[int] = 10000
    """Maximum work items kept by the context store (None = unbounded)."""
    metric_history_limit: int = 1000
    """Observations kept per metric name by the performance monitor."""

    # ======================
    # Performance Thresholds
    # ======================
    nlp_accuracy_threshold: float = 0.95
    """Minimum acceptable interpretation accuracy (0.0-1.0)."""
    routing_success_threshold: float = 0.90
    """Minimum acceptable routing success rate (0.0-1.0)."""
    response_time_threshold_ms: float = 10000.0
    """Maximum acceptable reasoning response time in milliseconds."""

    # ======================
    # Validators
    # ======================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        return upper_v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = {"development", "staging", "production"}
        lower_v = v.lower()
        if lower_v not in valid_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(sorted(valid_envs))}"
            )
        return lower_v

    @field_validator("nlp_accuracy_threshold", "routing_success_threshold")
    @classmethod
    def validate_ratio_threshold(cls, v: float) -> float:
        """Ratio thresholds must lie between 0 and 1."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"threshold must be between 0.0 and 1.0, got {v}")
        return v

    @field_validator("response_time_threshold_ms")
    @classmethod
    def validate_response_time_threshold(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"response_time_threshold_ms must be positive, got {v}")
        return v

    @field_validator("context_max_entries")
    @classmethod
    def validate_context_max_entries(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"context_max_entries must be at least 1, got {v}")
        return v

    @field_validator("metric_history_limit")
    @classmethod
    def validate_metric_history_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"metric_history_limit must be at least 1, got {v}")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration."""
        logger.info(
            "configuration_summary",
            environment=self.environment,
            log_level=self.log_level,
            routing_tables_path=self.routing_tables_path,
            context_max_entries=self.context_max_entries,
            metric_history_limit=self.metric_history_limit,
            nlp_accuracy_threshold=self.nlp_accuracy_threshold,
            routing_success_threshold=self.routing_success_threshold,
            response_time_threshold_ms=self.response_time_threshold_ms,
        )


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get the global application settings (cached).

    Returns:
        AppSettings: The configured application settings.
    """
    return AppSettings()
