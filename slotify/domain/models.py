"""
Domain models for time-of-day intervals, schedules and query results.
"""

from dataclasses import dataclass, field
from datetime import time, timedelta
from typing import Any, Dict, Iterable, Optional, Tuple

from .exceptions import InvalidArgumentError, InvalidTimeRangeError
from .merger import merge_slots

ONE_DAY = timedelta(days=1)


def time_to_offset(value: time) -> timedelta:
    """Return the distance of a time of day from midnight."""
    return timedelta(
        hours=value.hour,
        minutes=value.minute,
        seconds=value.second,
        microseconds=value.microsecond,
    )


def offset_to_time(offset: timedelta) -> time:
    """
    Convert a distance from midnight back into a time of day.

    Offsets outside the day saturate to ``time.min`` / ``time.max``.
    """
    if offset <= timedelta(0):
        return time.min
    if offset >= ONE_DAY:
        return time.max

    total_micros = offset // timedelta(microseconds=1)
    seconds, micros = divmod(total_micros, 1_000_000)
    minutes, second = divmod(seconds, 60)
    hour, minute = divmod(minutes, 60)
    return time(hour, minute, second, micros)


def format_time(value: time) -> str:
    """Format a time of day as HH:MM; the end of the day renders as 24:00."""
    if value == time.max:
        return "24:00"
    return value.strftime("%H:%M")


@dataclass(frozen=True)
class TimeSlot:
    """
    Half-open time-of-day interval ``[start, end)``.

    Invariant: end must be after start.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise InvalidTimeRangeError("Start and end times cannot be empty")
        if self.end <= self.start:
            raise InvalidTimeRangeError(
                f"End time {self.end} must be after start time {self.start}"
            )

    def duration(self) -> timedelta:
        return time_to_offset(self.end) - time_to_offset(self.start)

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps another. Touching slots do not overlap."""
        return self.start < other.end and other.start < self.end

    def intersect(self, other: "TimeSlot") -> Optional["TimeSlot"]:
        """
        Calculate the intersection of two slots.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None
        return TimeSlot(start=max(self.start, other.start), end=min(self.end, other.end))

    def expand_by(self, buffer: Optional[timedelta]) -> "TimeSlot":
        """
        Widen the slot by ``buffer`` on both sides.

        Each end is clamped to the day independently, so an over-sized
        buffer saturates at 00:00 / 24:00 instead of wrapping around.
        """
        if not buffer:
            return self
        # pendulum durations do not subtract from plain timedeltas
        buffer = timedelta(seconds=buffer.total_seconds())

        start = offset_to_time(time_to_offset(self.start) - buffer)
        end = offset_to_time(time_to_offset(self.end) + buffer)
        return TimeSlot(start=start, end=end)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSlot":
        return cls(start=time.fromisoformat(data["start"]), end=time.fromisoformat(data["end"]))

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"


@dataclass(frozen=True)
class CalendarEvent:
    """A single busy entry read from a calendar source."""
    participant_name: str
    subject: str
    time_slot: TimeSlot

    def __post_init__(self):
        if self.participant_name is None or not self.participant_name.strip():
            raise InvalidArgumentError("Participant name cannot be blank")
        if self.subject is None:
            raise InvalidArgumentError("Subject cannot be empty")
        if self.time_slot is None:
            raise InvalidArgumentError("Time slot cannot be empty")
        object.__setattr__(self, "participant_name", self.participant_name.strip())
        object.__setattr__(self, "subject", self.subject.strip())


@dataclass(frozen=True)
class Schedule:
    """
    Busy time of one participant.

    ``busy_slots`` is always sorted and fully merged: no two entries overlap
    or touch.
    """
    participant_name: str
    busy_slots: Tuple[TimeSlot, ...] = ()

    def __post_init__(self):
        if self.participant_name is None:
            raise InvalidArgumentError("Participant name cannot be empty")
        object.__setattr__(self, "busy_slots", tuple(merge_slots(self.busy_slots or ())))

    @classmethod
    def from_events(cls, participant_name: str, events: Iterable[CalendarEvent]) -> "Schedule":
        return cls(participant_name, tuple(event.time_slot for event in events))

    def is_busy_during(self, time_slot: TimeSlot) -> bool:
        return any(busy.overlaps(time_slot) for busy in self.busy_slots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participantName": self.participant_name,
            "busySlots": [slot.to_dict() for slot in self.busy_slots],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schedule":
        return cls(
            participant_name=data["participantName"],
            busy_slots=tuple(TimeSlot.from_dict(item) for item in data.get("busySlots") or ()),
        )


@dataclass(frozen=True)
class SchedulingOptions:
    """Per-query options. Only the buffer between meetings for now."""
    buffer_between_meetings: Optional[timedelta] = None

    def __post_init__(self):
        if self.buffer_between_meetings is not None and self.buffer_between_meetings < timedelta(0):
            raise InvalidTimeRangeError("Buffer between meetings cannot be negative")

    @classmethod
    def defaults(cls) -> "SchedulingOptions":
        return cls()

    @classmethod
    def with_buffer(cls, buffer: timedelta) -> "SchedulingOptions":
        if buffer is None:
            raise InvalidTimeRangeError("Buffer must be given when calling with_buffer")
        return cls(buffer_between_meetings=buffer)

    @classmethod
    def from_minutes(cls, minutes: int) -> "SchedulingOptions":
        """Build options from a buffer in minutes; zero means no buffer."""
        if minutes == 0:
            return cls.defaults()
        return cls.with_buffer(timedelta(minutes=minutes))

    def has_buffer(self) -> bool:
        return bool(self.buffer_between_meetings)


@dataclass(frozen=True)
class AvailableSlot:
    """
    A candidate meeting slot plus who of the optional participants can attend.

    The two name tuples are disjoint and together hold every optional
    participant of the query, in the order they were requested.
    """
    time_slot: TimeSlot
    available_optional_participants: Tuple[str, ...] = field(default_factory=tuple)
    unavailable_optional_participants: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(
            self, "available_optional_participants", tuple(self.available_optional_participants or ())
        )
        object.__setattr__(
            self, "unavailable_optional_participants", tuple(self.unavailable_optional_participants or ())
        )
        both = set(self.available_optional_participants) & set(self.unavailable_optional_participants)
        if both:
            raise InvalidArgumentError(
                f"Participants cannot be both available and unavailable: {sorted(both)}"
            )


@dataclass(frozen=True)
class WorkingHours:
    """
    The daily window in which meetings may be placed.
    """
    start_time: time = time(7, 0)
    end_time: time = time(19, 0)

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise InvalidTimeRangeError(
                f"Working hours end {self.end_time} must be after start {self.start_time}"
            )

    def as_slot(self) -> TimeSlot:
        return TimeSlot(start=self.start_time, end=self.end_time)

    def duration(self) -> timedelta:
        return self.as_slot().duration()
