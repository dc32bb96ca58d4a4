"""Engine settings using Pydantic Settings.

Centralized configuration for the tax computation engine. Every value can be
overridden through environment variables prefixed with ``TAX_ENGINE_``,
e.g. ``TAX_ENGINE_LOG_LEVEL=DEBUG``.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

SUPPORTED_TAX_YEARS: List[int] = [2025]


class EngineSettings(BaseSettings):
    """Runtime configuration for the computation engine."""

    model_config = SettingsConfigDict(
        env_prefix="TAX_ENGINE_",
        extra="ignore",
    )

    default_tax_year: int = Field(default=2025, description="Tax year used when a return omits one")
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON formatted logs")
    trace_debug_logging: bool = Field(
        default=False,
        description="Log every traced node at DEBUG level as it is recorded",
    )

    @field_validator("default_tax_year")
    @classmethod
    def validate_tax_year(cls, v: int) -> int:
        if v not in SUPPORTED_TAX_YEARS:
            raise ValueError(
                f"Tax year {v} is not supported. Supported years: {SUPPORTED_TAX_YEARS}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


@lru_cache
def get_settings() -> EngineSettings:
    """
    Get cached engine settings instance.

    Returns:
        EngineSettings: Cached settings loaded from environment.
    """
    return EngineSettings()
