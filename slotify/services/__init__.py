"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .scheduling_service import SchedulingService
from .schemas import AvailabilityRequest, AvailabilitySlotResponse, SlotModel

__all__ = ["AvailabilityRequest", "AvailabilitySlotResponse", "SchedulingService", "SlotModel"]
