# src/config/settings.py
"""Typed configuration loaded from the environment and .env via pydantic-settings.

Single source of truth for deployment-specific settings: where the worker
programs live, how long to wait for them, and how to log.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

START_SCRIPT_NAME = "job_start.py"
STATUS_SCRIPT_NAME = "job_status.py"


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


def _default_scripts_dir() -> Path:
    """Directory next to the running program holding the worker scripts."""
    return Path(sys.argv[0] or ".").resolve().parent / "scripts"


class WorkerConfig(BaseModel):
    """Resolved worker invocation settings, injected into every Job."""

    model_config = ConfigDict(frozen=True)

    start_command: Path
    status_command: Path
    start_timeout: float | None = 30.0
    status_timeout: float | None = 30.0


class Settings(BaseSettings):
    """Application settings loaded from RECONJOB_* variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="RECONJOB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Worker programs ===
    start_command: Path | None = None
    status_command: Path | None = None
    scripts_dir: Path = _default_scripts_dir()

    # === Timeouts (seconds) ===
    start_timeout: float = 30.0
    status_timeout: float = 30.0
    refresh_interval: float = 5.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("start_timeout", "status_timeout", "refresh_interval")
    @classmethod
    def validate_positive(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ConfigurationError(f"{info.field_name} must be > 0, got {v}")
        return v

    @field_validator("log_retention")
    @classmethod
    def validate_retention(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ConfigurationError("log_retention must be >= 0")
        return v

    # --- Helpers ---

    @property
    def resolved_start_command(self) -> Path:
        """Start program: explicit override, else the bundled script."""
        return self.start_command or self.scripts_dir / START_SCRIPT_NAME

    @property
    def resolved_status_command(self) -> Path:
        """Status program: explicit override, else the bundled script."""
        return self.status_command or self.scripts_dir / STATUS_SCRIPT_NAME

    def worker_config(self) -> WorkerConfig:
        """Resolve worker programs and timeouts once."""
        return WorkerConfig(
            start_command=self.resolved_start_command,
            status_command=self.resolved_status_command,
            start_timeout=self.start_timeout,
            status_timeout=self.status_timeout,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or the CLI).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If a value is out of range.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
