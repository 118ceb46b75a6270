"""
Application service for loading calendars and answering availability queries.

The service owns the schedule repository and the loaded blackout periods and
delegates the actual slot calculation to the domain-level
``AvailabilityEngine``. This keeps the CLI and HTTP layers thin.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..adapters.csv_parser import CsvCalendarParser
from ..adapters.memory_repository import InMemoryScheduleRepository
from ..adapters.redis_repository import RedisScheduleRepository
from ..config import AppConfig
from ..domain.availability import AvailabilityEngine, EngineSettings
from ..domain.exceptions import InvalidArgumentError, InvalidTimeRangeError
from ..domain.models import AvailableSlot, Schedule, SchedulingOptions, TimeSlot
from ..domain.repository import ScheduleRepository
from .locking import ReadWriteLock
from .schemas import AvailabilityRequest

logger = logging.getLogger(__name__)


class SchedulingService:
    """
    Orchestrates ingestion, storage and slot calculation.

    Replacing all schedules takes the write side of a readers-writer lock
    and queries take the read side, so queries run concurrently but never
    observe a half-loaded calendar.
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        parser: Optional[CsvCalendarParser] = None,
        settings: Optional[EngineSettings] = None,
        default_options: Optional[SchedulingOptions] = None,
        blackouts: Optional[Iterable[TimeSlot]] = None,
    ) -> None:
        self._repository = repository
        self._parser = parser or CsvCalendarParser()
        self._settings = settings or EngineSettings()
        self._default_options = default_options or SchedulingOptions.defaults()
        self._blackouts: Tuple[TimeSlot, ...] = tuple(blackouts or ())
        self._lock = ReadWriteLock()

    @classmethod
    def from_config(cls, config: AppConfig) -> "SchedulingService":
        """Build a service with Redis storage when configured, in-memory otherwise."""
        if config.redis.is_enabled():
            repository: ScheduleRepository = RedisScheduleRepository.connect(
                host=config.redis.host,
                port=config.redis.port,
                db=config.redis.db,
                key_prefix=config.redis.key_prefix,
            )
        else:
            repository = InMemoryScheduleRepository()

        return cls(
            repository=repository,
            settings=config.scheduling.to_engine_settings(),
            default_options=config.scheduling.get_default_options(),
        )

    @property
    def repository(self) -> ScheduleRepository:
        return self._repository

    @property
    def blackouts(self) -> Tuple[TimeSlot, ...]:
        return self._blackouts

    def load_calendar(self, csv_path: Path) -> Dict[str, Schedule]:
        """Parse a calendar file and replace all stored schedules with it."""
        schedules = self._parser.parse_schedules(csv_path)
        self._replace_schedules(schedules)
        logger.info("Loaded %d participants from %s", len(schedules), csv_path)
        return schedules

    def load_calendar_text(self, text: str) -> Dict[str, Schedule]:
        schedules = self._parser.parse_schedules_text(text)
        self._replace_schedules(schedules)
        logger.info("Loaded %d participants", len(schedules))
        return schedules

    def load_blackouts(self, blackout_path: Path) -> List[TimeSlot]:
        blackouts = self._parser.parse_blackouts(blackout_path)
        self._set_blackouts(blackouts)
        return blackouts

    def load_blackouts_text(self, text: str) -> List[TimeSlot]:
        blackouts = self._parser.parse_blackouts_text(text)
        self._set_blackouts(blackouts)
        return blackouts

    def participants(self) -> List[str]:
        return sorted(self._repository.list_participant_names())

    def busy_slots(self) -> Dict[str, Tuple[TimeSlot, ...]]:
        """Return the merged busy slots of every stored participant."""
        with self._lock.read():
            busy: Dict[str, Tuple[TimeSlot, ...]] = {}
            for name in sorted(self._repository.list_participant_names()):
                schedule = self._repository.find_by_participant(name)
                if schedule is not None:
                    busy[name] = schedule.busy_slots
            return busy

    def find_slots(self, request: AvailabilityRequest) -> List[AvailableSlot]:
        """
        Answer an availability query.

        Blackouts in the request apply to this query only, on top of the
        loaded ones. Minute counts are checked against the engine bounds
        before they become durations.
        """
        extra_blackouts = [slot.to_time_slot() for slot in request.blackouts]
        duration = self._duration_from_minutes(request.duration_minutes)
        options = self._options_from_minutes(request.buffer_minutes)

        with self._lock.read():
            engine = self.build_engine(extra_blackouts)
            return engine.find_available_slots(
                required=request.required_participants,
                optional=request.optional_participants,
                duration=duration,
                options=options,
            )

    def build_engine(self, extra_blackouts: Iterable[TimeSlot] = ()) -> AvailabilityEngine:
        return AvailabilityEngine(
            repository=self._repository,
            blackout_periods=[*self._blackouts, *extra_blackouts],
            options=self._default_options,
            settings=self._settings,
        )

    def _duration_from_minutes(self, minutes: int) -> timedelta:
        max_duration = self._settings.effective_max_duration()
        if minutes <= 0:
            raise InvalidArgumentError("Meeting duration must be positive")
        if minutes > max_duration // timedelta(minutes=1):
            raise InvalidArgumentError(
                f"Meeting duration of {minutes} minutes exceeds the maximum of {max_duration}"
            )
        return timedelta(minutes=minutes)

    def _options_from_minutes(self, minutes: Optional[int]) -> SchedulingOptions:
        if minutes is None:
            return self._default_options
        if minutes < 0:
            raise InvalidTimeRangeError("Buffer between meetings cannot be negative")
        max_buffer = self._settings.max_buffer
        if minutes > max_buffer // timedelta(minutes=1):
            raise InvalidArgumentError(
                f"Buffer must be between 0 and {max_buffer}, got {minutes} minutes"
            )
        return SchedulingOptions.from_minutes(minutes)

    def _replace_schedules(self, schedules: Dict[str, Schedule]) -> None:
        with self._lock.write():
            replace_all = getattr(self._repository, "replace_all", None)
            if replace_all is not None:
                replace_all(schedules.values())
                return

            self._repository.clear()
            for schedule in schedules.values():
                self._repository.save(schedule)

    def _set_blackouts(self, blackouts: List[TimeSlot]) -> None:
        with self._lock.write():
            self._blackouts = tuple(blackouts)
        logger.info("Using %d blackout periods", len(blackouts))
