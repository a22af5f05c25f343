"""Configuration system for Budget Core.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the analysis engine.

Usage:
    from budget_core.config import EngineConfig

    # Load from environment variables and .env file
    config = EngineConfig()

    if config.case_insensitive_rules:
        print("Rules ignore case")
"""

import logging
from decimal import Decimal
from enum import Enum

import structlog
from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class MonthEndPolicy(str, Enum):
    """What to do when a due day does not exist in the target month.

    ROLL_FORWARD spills the extra days into the next month (Feb 31 -> Mar 3),
    the long-standing scheduling behavior. CLAMP uses the last
    day of the month instead (Feb 31 -> Feb 28).
    """

    ROLL_FORWARD = "roll_forward"
    CLAMP = "clamp"


class EngineConfig(BaseSettings):
    """Root configuration for Budget Core.

    Environment Variables:
        BUDGET_CORE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        BUDGET_CORE_CASE_INSENSITIVE_RULES: Match rule regexes ignoring case
        BUDGET_CORE_MONTH_END_POLICY: roll_forward or clamp
        BUDGET_CORE_FORECAST_THRESHOLD: On-track tolerance as a fraction (0.10 = 10%)
        BUDGET_CORE_INSIGHT_LIMIT: Maximum number of insights returned
        BUDGET_CORE_FDIC_LIMIT: Per-bank deposit insurance threshold
        BUDGET_CORE_HIGH_YIELD_APY: Reference APY for the low-yield savings insight
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_CORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Rules and scheduling
    case_insensitive_rules: bool = Field(
        default=False,
        description="Compile rule regexes with re.IGNORECASE",
    )
    month_end_policy: MonthEndPolicy = Field(
        default=MonthEndPolicy.ROLL_FORWARD,
        description="Handling of due days past the end of a month",
    )
    forecast_threshold: Decimal = Field(
        default=Decimal("0.10"),
        ge=Decimal("0"),
        le=Decimal("1"),
        description="Variance tolerated before a forecast is over/under",
    )

    # Insights
    insight_limit: int = Field(
        default=10,
        gt=0,
        le=50,
        description="Maximum number of insights returned",
    )
    fdic_limit: Decimal = Field(
        default=Decimal("250000"),
        gt=Decimal("0"),
        description="Per-bank FDIC insurance limit",
    )
    high_yield_apy: Decimal = Field(
        default=Decimal("4.5"),
        ge=Decimal("0"),
        le=Decimal("100"),
        description="APY a high-yield savings account would earn",
    )
    reward_insight_threshold: Decimal = Field(
        default=Decimal("240"),
        ge=Decimal("0"),
        description="Projected annual reward value that triggers the reward insight",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Upper-case the level; configure_logging looks it up on ``logging``."""
        level = v.upper().strip()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}; expected one of {', '.join(LOG_LEVELS)}")
        return level


def load_config(**overrides) -> EngineConfig:
    """Build an EngineConfig, reporting bad settings as ConfigurationError.

    Args:
        **overrides: Field values that take precedence over the environment.

    Raises:
        ConfigurationError: If any setting fails validation.
    """
    try:
        return EngineConfig(**overrides)
    except PydanticValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"]) or None
        raise ConfigurationError(
            f"Invalid engine configuration: {first['msg']}",
            config_key=key,
            expected=first["type"],
            actual=first.get("input"),
            details={"error_count": e.error_count()},
        ) from e


def configure_logging(config: EngineConfig) -> None:
    """Set the structlog filtering level from ``config.log_level``."""
    level = getattr(logging, config.log_level)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


__all__ = [
    "MonthEndPolicy",
    "EngineConfig",
    "load_config",
    "configure_logging",
]
