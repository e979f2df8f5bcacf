"""Configuration for the process engine CLI.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class EngineSettings(BaseSettings):
    """Settings for the engine.

    Environment variables:
    - LOG_LEVEL             (optional)
    - ENGINE_STATE_PATH     (optional)
    - ENGINE_STRICT_RESUME  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `EngineSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    state_path: Path = Field(
        default=Path("engine_state/process.json"),
        validation_alias="ENGINE_STATE_PATH",
        description="Path where a suspended process snapshot is persisted",
    )

    strict_resume: bool = Field(
        default=True,
        validation_alias="ENGINE_STRICT_RESUME",
        description=(
            "Fail when a snapshot names activities the definition does not have. "
            "When false those entries are skipped with a warning."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}")
        return level
