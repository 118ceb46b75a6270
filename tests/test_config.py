"""
Tests for configuration loading.
"""

from datetime import time, timedelta
from pathlib import Path

import pytest

from slotify.config import AppConfig, SchedulingConfig


def write_config(tmp_path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestSchedulingConfig:
    """Tests for SchedulingConfig."""

    def test_defaults(self):
        config = SchedulingConfig()

        assert config.work_start == time(7, 0)
        assert config.work_end == time(19, 0)
        assert not config.get_default_options().has_buffer()

    def test_to_engine_settings(self):
        config = SchedulingConfig(
            work_start="09:00",
            work_end="17:00",
            long_meeting_step_minutes=15,
            max_duration_minutes=120,
        )

        settings = config.to_engine_settings()

        assert settings.working_hours.start_time == time(9, 0)
        assert settings.long_meeting_step == timedelta(minutes=15)
        assert settings.effective_max_duration() == timedelta(hours=2)

    def test_max_duration_defaults_to_window(self):
        settings = SchedulingConfig().to_engine_settings()

        assert settings.effective_max_duration() == timedelta(hours=12)

    def test_inverted_window_raises_error(self):
        with pytest.raises(ValueError, match="work_end must be later"):
            SchedulingConfig(work_start="18:00", work_end="08:00")

    def test_non_positive_step_raises_error(self):
        with pytest.raises(ValueError):
            SchedulingConfig(short_meeting_step_minutes=0)

    def test_negative_buffer_raises_error(self):
        with pytest.raises(ValueError):
            SchedulingConfig(buffer_minutes=-1)

    def test_buffer_above_limit_raises_error(self):
        with pytest.raises(ValueError, match="cannot exceed"):
            SchedulingConfig(buffer_minutes=30, max_buffer_minutes=15)


class TestAppConfig:
    """Tests for AppConfig loading."""

    def test_load_from_yaml(self, tmp_path):
        path = write_config(tmp_path, (
            "scheduling:\n"
            "  work_start: '08:00'\n"
            "  buffer_minutes: 10\n"
            "redis:\n"
            "  host: localhost\n"
            "data:\n"
            "  calendar_path: cal.csv\n"
        ))

        config = AppConfig.load_from_yaml(path)

        assert config.scheduling.work_start == time(8, 0)
        assert config.scheduling.get_default_options().buffer_between_meetings == timedelta(minutes=10)
        assert config.redis.is_enabled()
        assert config.redis.port == 6379
        assert config.data.calendar_path == Path("cal.csv")

    def test_missing_file_raises_error(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml_raises_error(self, tmp_path):
        path = write_config(tmp_path, "scheduling: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(path)

    def test_non_mapping_root_raises_error(self, tmp_path):
        path = write_config(tmp_path, "- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, ""))

        assert config == AppConfig()

    def test_blank_redis_host_disables_redis(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, "redis:\n  host: ''\n"))

        assert not config.redis.is_enabled()

    def test_env_overrides(self, tmp_path):
        path = write_config(tmp_path, "scheduling:\n  buffer_minutes: 5\n")

        config = AppConfig.load(path, environ={
            "SLOTIFY_REDIS_HOST": "redis.internal",
            "SLOTIFY_REDIS_PORT": "6380",
            "SLOTIFY_BUFFER_MINUTES": "15",
        })

        assert config.redis.host == "redis.internal"
        assert config.redis.port == 6380
        assert config.scheduling.buffer_minutes == 15

    def test_invalid_env_override_raises_error(self):
        with pytest.raises(ValueError):
            AppConfig().with_env_overrides({"SLOTIFY_REDIS_PORT": "not-a-port"})

    def test_load_without_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("slotify.config.get_default_config_path", lambda: tmp_path / "config.yaml")

        config = AppConfig.load(environ={})

        assert config == AppConfig()
