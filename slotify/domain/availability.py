"""
Core business logic for calculating available meeting slots.

Pure domain logic: the only collaborator is a ``ScheduleRepository`` that is
consulted synchronously for each participant.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence

from .exceptions import InvalidArgumentError, ParticipantNotFoundError
from .merger import merge_slots
from .models import (
    AvailableSlot,
    Schedule,
    SchedulingOptions,
    TimeSlot,
    WorkingHours,
    offset_to_time,
    time_to_offset,
)
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """
    Policy knobs of the availability engine.

    Meetings up to ``short_meeting_threshold`` start on a ``short_meeting_step``
    grid, longer meetings on ``long_meeting_step``. ``max_duration`` defaults
    to the length of the working hours.
    """
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    short_meeting_threshold: timedelta = timedelta(minutes=30)
    short_meeting_step: timedelta = timedelta(minutes=30)
    long_meeting_step: timedelta = timedelta(hours=1)
    min_required_participants: int = 1
    max_duration: Optional[timedelta] = None
    max_buffer: timedelta = timedelta(minutes=60)

    def __post_init__(self):
        if self.short_meeting_step <= timedelta(0) or self.long_meeting_step <= timedelta(0):
            raise InvalidArgumentError("Grid steps must be positive")
        if self.min_required_participants < 1:
            raise InvalidArgumentError("At least one required participant must be demanded")
        if self.max_buffer < timedelta(0):
            raise InvalidArgumentError("max_buffer cannot be negative")

    def effective_max_duration(self) -> timedelta:
        if self.max_duration is not None:
            return self.max_duration
        return self.working_hours.duration()

    def grid_step_for(self, duration: timedelta) -> timedelta:
        if duration <= self.short_meeting_threshold:
            return self.short_meeting_step
        return self.long_meeting_step


class AvailabilityEngine:
    """
    Finds meeting slots every required participant can attend.

    Algorithm:
    1. Validate the query
    2. Collect busy time of required participants (buffer applied per slot)
       plus blackout periods, and merge it into one timeline
    3. Invert the timeline into free gaps inside working hours
    4. Cut aligned candidate slots of the requested duration from each gap
    5. Report which optional participants are free for each candidate

    The engine keeps no per-query state and can be shared between threads
    as long as the repository can.
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        blackout_periods: Optional[Iterable[TimeSlot]] = None,
        options: Optional[SchedulingOptions] = None,
        settings: Optional[EngineSettings] = None,
    ):
        if repository is None:
            raise InvalidArgumentError("repository cannot be empty")
        self.repository = repository
        self.blackout_periods = tuple(blackout_periods or ())
        self.options = options or SchedulingOptions.defaults()
        self.settings = settings or EngineSettings()
        self._validate_buffer(self.options)

    def find_available_time_slots(
        self,
        required: Sequence[str],
        duration: timedelta,
        options: Optional[SchedulingOptions] = None,
    ) -> List[TimeSlot]:
        """Find candidate slots for required participants only."""
        return [
            slot.time_slot
            for slot in self.find_available_slots(required, [], duration, options)
        ]

    def find_available_slots(
        self,
        required: Sequence[str],
        optional: Optional[Sequence[str]],
        duration: timedelta,
        options: Optional[SchedulingOptions] = None,
    ) -> List[AvailableSlot]:
        """
        Find candidate slots and partition optional participants for each.

        Args:
            required: Participants who must all be free
            optional: Participants reported per slot; unknown names count as free
            duration: Meeting length
            options: Overrides the engine's default options for this query

        Returns:
            AvailableSlot objects in ascending start order

        Raises:
            InvalidArgumentError: If the query is invalid (before any lookup)
            ParticipantNotFoundError: If a required participant is unknown
        """
        options = options or self.options
        self._validate_query(required, duration, options)
        optional_names = _unique(optional or ())

        busy = self._collect_busy_slots(required, options)
        gaps = self._find_gaps(busy)
        candidates = self._generate_aligned_slots(gaps, duration)

        optional_schedules = [
            self.repository.find_by_participant(name) or Schedule(name)
            for name in optional_names
        ]
        result = [
            self._build_available_slot(slot, optional_schedules, options)
            for slot in candidates
        ]

        logger.debug(
            "Query required=%s optional=%s duration=%s: %d busy, %d gaps, %d slots",
            list(required), optional_names, duration, len(busy), len(gaps), len(result),
        )
        return result

    def _validate_query(
        self,
        required: Sequence[str],
        duration: timedelta,
        options: SchedulingOptions,
    ) -> None:
        minimum = self.settings.min_required_participants
        if not required:
            raise InvalidArgumentError("At least one required participant is needed")
        if len(required) < minimum:
            raise InvalidArgumentError(
                f"At least {minimum} required participants are needed for a meeting"
            )
        if any(name is None or not str(name).strip() for name in required):
            raise InvalidArgumentError("Participant names cannot be blank")

        if duration is None or duration <= timedelta(0):
            raise InvalidArgumentError("Meeting duration must be positive")
        max_duration = self.settings.effective_max_duration()
        if duration > max_duration:
            raise InvalidArgumentError(
                f"Meeting duration {duration} exceeds the maximum of {max_duration}"
            )

        self._validate_buffer(options)

    def _validate_buffer(self, options: SchedulingOptions) -> None:
        if options.has_buffer() and options.buffer_between_meetings > self.settings.max_buffer:
            raise InvalidArgumentError(
                f"Buffer must be between 0 and {self.settings.max_buffer}, "
                f"got {options.buffer_between_meetings}"
            )

    def _collect_busy_slots(
        self,
        participants: Sequence[str],
        options: SchedulingOptions,
    ) -> List[TimeSlot]:
        """
        Gather busy time of all required participants plus blackouts.

        The buffer widens each busy slot before merging; blackout periods are
        taken as they are.
        """
        all_busy: List[TimeSlot] = []

        for name in participants:
            schedule = self.repository.find_by_participant(name)
            if schedule is None:
                raise ParticipantNotFoundError(name)
            all_busy.extend(
                self._apply_buffer(slot, options) for slot in schedule.busy_slots
            )

        all_busy.extend(self.blackout_periods)
        return merge_slots(all_busy)

    def _find_gaps(self, busy_slots: List[TimeSlot]) -> List[TimeSlot]:
        """
        Convert merged busy time to free gaps within working hours.

        Example:
        Working: 07:00 - 19:00
        Busy: [08:00-09:30, 13:00-14:00]
        Result: [07:00-08:00, 09:30-13:00, 14:00-19:00]
        """
        window = self.settings.working_hours.as_slot()
        gaps: List[TimeSlot] = []
        cursor = window.start

        for busy in busy_slots:
            clipped = busy.intersect(window)
            if clipped is None:
                continue

            if cursor < clipped.start:
                gaps.append(TimeSlot(start=cursor, end=clipped.start))

            cursor = max(cursor, clipped.end)

        if cursor < window.end:
            gaps.append(TimeSlot(start=cursor, end=window.end))

        return gaps

    def _generate_aligned_slots(
        self,
        gaps: List[TimeSlot],
        duration: timedelta,
    ) -> List[TimeSlot]:
        """
        Cut slots of exactly ``duration`` out of each gap on the alignment grid.
        """
        step = self.settings.grid_step_for(duration)
        slots: List[TimeSlot] = []

        for gap in gaps:
            gap_end = time_to_offset(gap.end)
            slot_start = _round_up(time_to_offset(gap.start), step)

            while slot_start + duration <= gap_end:
                slots.append(
                    TimeSlot(
                        start=offset_to_time(slot_start),
                        end=offset_to_time(slot_start + duration),
                    )
                )
                slot_start += step

        return slots

    def _build_available_slot(
        self,
        slot: TimeSlot,
        optional_schedules: List[Schedule],
        options: SchedulingOptions,
    ) -> AvailableSlot:
        effective_slot = self._apply_buffer(slot, options)

        available: List[str] = []
        unavailable: List[str] = []
        for schedule in optional_schedules:
            if schedule.is_busy_during(effective_slot):
                unavailable.append(schedule.participant_name)
            else:
                available.append(schedule.participant_name)

        return AvailableSlot(
            time_slot=slot,
            available_optional_participants=tuple(available),
            unavailable_optional_participants=tuple(unavailable),
        )

    @staticmethod
    def _apply_buffer(slot: TimeSlot, options: SchedulingOptions) -> TimeSlot:
        if options.has_buffer():
            return slot.expand_by(options.buffer_between_meetings)
        return slot


def _round_up(offset: timedelta, step: timedelta) -> timedelta:
    """Round an offset from midnight up to the next multiple of ``step``."""
    remainder = offset % step
    if not remainder:
        return offset
    return offset + (step - remainder)


def _unique(names: Iterable[str]) -> List[str]:
    # Preserve order while removing duplicates
    seen: set[str] = set()
    unique: List[str] = []
    for name in names:
        if name not in seen:
            unique.append(name)
            seen.add(name)
    return unique
