from __future__ import annotations

from typing import Self

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env once at import so every BaseSettings subclass sees its values
load_dotenv()

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class GatewaySettings(BaseSettings):
    """Gateway server settings. Env vars prefixed with GATEWAY_."""

    model_config = SettingsConfigDict(env_prefix="GATEWAY_")

    host: str = "127.0.0.1"
    port: int = Field(19790, gt=0, le=65535)


class SessionSettings(BaseSettings):
    """Session defaults settings. Env vars prefixed with SESSION_.

    defaults_enabled=False turns the whole session-defaults layer off:
    the store is never consulted and every field must be passed explicitly.
    """

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    defaults_enabled: bool = True


class ExecutorSettings(BaseSettings):
    """Command executor settings. Env vars prefixed with EXECUTOR_."""

    model_config = SettingsConfigDict(env_prefix="EXECUTOR_")

    timeout_s: float = 600.0
    shell: str = "/bin/sh"

    @field_validator("timeout_s")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"EXECUTOR_TIMEOUT_S must be > 0 (got {v})")
        return v


class WorkflowSettings(BaseSettings):
    """Which tool workflows are exposed. Env vars prefixed with WORKFLOWS_."""

    model_config = SettingsConfigDict(env_prefix="WORKFLOWS_")

    enabled: str = ""  # comma-separated; empty = all workflows

    def enabled_set(self) -> frozenset[str]:
        return frozenset(
            name.strip().lower() for name in self.enabled.split(",") if name.strip()
        )


class LoggingSettings(BaseSettings):
    """Logging settings. Env vars prefixed with LOG_."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    json_output: bool = False
    level: str = "INFO"

    @model_validator(mode="after")
    def _validate(self) -> Self:
        normalized = self.level.strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)} (got '{self.level}')"
            )
        self.level = normalized
        return self


class Settings(BaseSettings):
    """Root settings composing all sub-configurations."""

    model_config = SettingsConfigDict(extra="ignore")

    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    workflows: WorkflowSettings = Field(default_factory=WorkflowSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def get_settings() -> Settings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return Settings()
