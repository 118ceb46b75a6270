"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time, timedelta
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.availability import EngineSettings
from .domain.models import SchedulingOptions, WorkingHours

ENV_PREFIX = "SLOTIFY_"


class SchedulingConfig(BaseModel):
    """Working hours, slot grid and validation limits."""
    work_start: time = time(7, 0)
    work_end: time = time(19, 0)
    short_meeting_threshold_minutes: int = 30
    short_meeting_step_minutes: int = 30
    long_meeting_step_minutes: int = 60
    min_required_participants: int = 1
    max_duration_minutes: Optional[int] = None
    max_buffer_minutes: int = 60
    buffer_minutes: int = 0

    @field_validator(
        "short_meeting_threshold_minutes",
        "short_meeting_step_minutes",
        "long_meeting_step_minutes",
        "min_required_participants",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts and grid steps are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("max_duration_minutes")
    @classmethod
    def validate_max_duration(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("max_duration_minutes must be greater than zero")
        return value

    @field_validator("buffer_minutes", "max_buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Buffer minutes cannot be negative, got {value}")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "SchedulingConfig":
        """Ensure the working window opens before it closes and the buffer fits the limit."""
        if self.work_end <= self.work_start:
            raise ValueError("work_end must be later than work_start")
        if self.buffer_minutes > self.max_buffer_minutes:
            raise ValueError("buffer_minutes cannot exceed max_buffer_minutes")
        return self

    def get_working_hours(self) -> WorkingHours:
        return WorkingHours(start_time=self.work_start, end_time=self.work_end)

    def get_default_options(self) -> SchedulingOptions:
        return SchedulingOptions.from_minutes(self.buffer_minutes)

    def to_engine_settings(self) -> EngineSettings:
        """Build the engine policy from this configuration."""
        max_duration = (
            timedelta(minutes=self.max_duration_minutes)
            if self.max_duration_minutes is not None
            else None
        )
        return EngineSettings(
            working_hours=self.get_working_hours(),
            short_meeting_threshold=timedelta(minutes=self.short_meeting_threshold_minutes),
            short_meeting_step=timedelta(minutes=self.short_meeting_step_minutes),
            long_meeting_step=timedelta(minutes=self.long_meeting_step_minutes),
            min_required_participants=self.min_required_participants,
            max_duration=max_duration,
            max_buffer=timedelta(minutes=self.max_buffer_minutes),
        )


class RedisConfig(BaseModel):
    """Redis connection; storage stays in memory while host is unset."""
    host: Optional[str] = None
    port: int = 6379
    db: int = 0
    key_prefix: str = "schedule:"

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"Port must be between 1 and 65535, got {value}")
        return value

    @field_validator("host")
    @classmethod
    def blank_host_means_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    def is_enabled(self) -> bool:
        return self.host is not None


class DataConfig(BaseModel):
    """Default locations of the CSV inputs."""
    calendar_path: Path = Path("calendar.csv")
    blackout_path: Path = Path("blackout.csv")


class AppConfig(BaseModel):
    """Application configuration."""
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    data: DataConfig = Field(default_factory=DataConfig)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """
        Load configuration from ``config_path`` (or the default location when
        it exists), then apply environment overrides.

        An explicit ``config_path`` must exist; the default one is optional.
        """
        if config_path is not None:
            config = cls.load_from_yaml(config_path)
        else:
            default_path = get_default_config_path()
            config = cls.load_from_yaml(default_path) if default_path.exists() else cls()

        return config.with_env_overrides(os.environ if environ is None else environ)

    def with_env_overrides(self, environ: Mapping[str, str]) -> "AppConfig":
        """Return a copy with SLOTIFY_* environment variables applied."""
        data = self.model_dump()

        host = environ.get(f"{ENV_PREFIX}REDIS_HOST")
        if host is not None:
            data["redis"]["host"] = host
        port = environ.get(f"{ENV_PREFIX}REDIS_PORT")
        if port:
            data["redis"]["port"] = port
        buffer_minutes = environ.get(f"{ENV_PREFIX}BUFFER_MINUTES")
        if buffer_minutes:
            data["scheduling"]["buffer_minutes"] = buffer_minutes

        return type(self).model_validate(data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
