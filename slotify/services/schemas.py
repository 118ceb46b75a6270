"""
Request and response models of the availability query surface.
"""

from datetime import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..adapters.csv_parser import parse_time
from ..domain.exceptions import ParseError
from ..domain.models import AvailableSlot, TimeSlot, format_time


class SlotModel(BaseModel):
    """A time range written as ``H:mm`` strings."""
    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_clock_time(cls, value):
        if isinstance(value, str):
            try:
                return parse_time(value)
            except ParseError as exc:
                raise ValueError(exc.message) from exc
        return value

    def to_time_slot(self) -> TimeSlot:
        return TimeSlot(start=self.start, end=self.end)


class AvailabilityRequest(BaseModel):
    """
    Query for common free slots.

    Field names are accepted in camelCase (as sent by the web front end) or
    snake_case.

    Without ``bufferMinutes`` the configured default buffer applies; 0 means
    no buffer.
    """
    model_config = ConfigDict(populate_by_name=True)

    required_participants: List[str] = Field(alias="requiredParticipants")
    optional_participants: List[str] = Field(default_factory=list, alias="optionalParticipants")
    duration_minutes: int = Field(alias="durationMinutes")
    buffer_minutes: Optional[int] = Field(default=None, alias="bufferMinutes")
    blackouts: List[SlotModel] = Field(default_factory=list)


class AvailabilitySlotResponse(BaseModel):
    """One candidate slot in the query response."""
    model_config = ConfigDict(populate_by_name=True)

    slot_start: str = Field(alias="slotStart")
    slot_end: str = Field(alias="slotEnd")
    available_optional: List[str] = Field(default_factory=list, alias="availableOptional")
    unavailable_optional: List[str] = Field(default_factory=list, alias="unavailableOptional")

    @classmethod
    def from_available_slot(cls, slot: AvailableSlot) -> "AvailabilitySlotResponse":
        return cls(
            slot_start=format_time(slot.time_slot.start),
            slot_end=format_time(slot.time_slot.end),
            available_optional=list(slot.available_optional_participants),
            unavailable_optional=list(slot.unavailable_optional_participants),
        )
