"""Settings for the workflow engine CLI and service.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Settings for the workflow engine.

    Environment variables:
    - LOG_LEVEL                        (optional)
    - WORKFLOW_STORE_PATH              (optional)
    - WORKFLOW_ACTION_TIMEOUT_SECONDS  (optional)
    - WORKFLOW_DEFAULT                 (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `EngineSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    store_path: Path = Field(
        default=Path("workflow_state/entities.json"),
        validation_alias="WORKFLOW_STORE_PATH",
        description="JSON file where entity state and versions are persisted",
    )

    action_timeout_seconds: float | None = Field(
        default=None,
        validation_alias="WORKFLOW_ACTION_TIMEOUT_SECONDS",
        description="Deadline applied to transition actions; unset means no deadline",
    )

    default_workflow: str = Field(
        default="task",
        validation_alias="WORKFLOW_DEFAULT",
        description="Workflow used by `create` and `describe` when none is given",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("action_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("WORKFLOW_ACTION_TIMEOUT_SECONDS must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {value!r}")
        return level
