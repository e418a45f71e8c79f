"""Configuration settings for loopforge."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or overrides."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, populate_by_name=True
    )

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    openai_model: str = Field(default="gpt-4.1-mini", validation_alias="OPENAI_MODEL")
    openai_timeout_seconds: int = Field(
        default=30, validation_alias="OPENAI_TIMEOUT_SECONDS"
    )
    openai_extra_headers: str | None = Field(
        default=None, validation_alias="OPENAI_EXTRA_HEADERS"
    )
    openai_disable_tool_choice: bool = Field(
        default=False, validation_alias="OPENAI_DISABLE_TOOL_CHOICE"
    )
    openai_temperature: float = Field(default=0.7, validation_alias="OPENAI_TEMPERATURE")
    openai_max_tokens: int = Field(default=4096, validation_alias="OPENAI_MAX_TOKENS")
    agent_type: Literal["tool_calling", "code"] = Field(
        default="tool_calling", validation_alias="AGENT_TYPE"
    )
    max_steps: int = Field(default=20, ge=1, validation_alias="MAX_STEPS")
    planning_interval: int | None = Field(
        default=None, ge=1, validation_alias="PLANNING_INTERVAL"
    )
    executor: Literal["local", "docker"] = Field(default="local", validation_alias="EXECUTOR")
    executor_timeout_seconds: float = Field(
        default=30, gt=0, validation_alias="EXECUTOR_TIMEOUT_SECONDS"
    )
    python_path: str | None = Field(default=None, validation_alias="PYTHON_PATH")
    docker_image: str = Field(default="python:3.11-slim", validation_alias="DOCKER_IMAGE")
    docker_memory: str = Field(default="256m", validation_alias="DOCKER_MEMORY")
    docker_cpus: float = Field(default=0.5, gt=0, validation_alias="DOCKER_CPUS")
    workspace_dir: str = Field(default=".loopforge", validation_alias="WORKSPACE_DIR")
