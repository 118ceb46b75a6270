"""
Interval merging shared by schedules and the availability engine.
"""

from dataclasses import replace
from typing import TYPE_CHECKING, Iterable, List

if TYPE_CHECKING:
    from .models import TimeSlot


def merge_slots(slots: Iterable["TimeSlot"]) -> List["TimeSlot"]:
    """
    Merge overlapping or adjacent time slots.

    Unlike ``TimeSlot.overlaps``, touching slots are combined here.

    Example: [09:00-10:00, 10:00-11:00, 10:30-12:00] -> [09:00-12:00]
    """
    sorted_slots = sorted(slots, key=lambda slot: slot.start)
    if not sorted_slots:
        return []

    merged: List["TimeSlot"] = []
    current = sorted_slots[0]

    for candidate in sorted_slots[1:]:
        if candidate.start <= current.end:
            if candidate.end > current.end:
                current = replace(current, end=candidate.end)
        else:
            merged.append(current)
            current = candidate

    merged.append(current)
    return merged
