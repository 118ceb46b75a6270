"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityEngine, EngineSettings
from .exceptions import (
    ErrorKind,
    InvalidArgumentError,
    InvalidTimeRangeError,
    ParseError,
    ParticipantNotFoundError,
    RepositoryError,
    SchedulerError,
)
from .merger import merge_slots
from .models import (
    AvailableSlot,
    CalendarEvent,
    Schedule,
    SchedulingOptions,
    TimeSlot,
    WorkingHours,
)
from .repository import ScheduleRepository

__all__ = [
    "AvailabilityEngine",
    "AvailableSlot",
    "CalendarEvent",
    "EngineSettings",
    "ErrorKind",
    "InvalidArgumentError",
    "InvalidTimeRangeError",
    "ParseError",
    "ParticipantNotFoundError",
    "RepositoryError",
    "Schedule",
    "ScheduleRepository",
    "SchedulerError",
    "SchedulingOptions",
    "TimeSlot",
    "WorkingHours",
    "merge_slots",
]
