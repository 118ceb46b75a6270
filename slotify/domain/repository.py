"""
Storage contract the availability engine depends on.
"""

from typing import Optional, Protocol, Set

from .models import Schedule


class ScheduleRepository(Protocol):
    """
    Protocol describing schedule storage.

    Implementations must return a self-consistent ``Schedule`` from a single
    ``find_by_participant`` call; consistency across calls is left to the
    caller.
    """

    def save(self, schedule: Schedule) -> None:
        """Store a schedule, replacing any previous one for that participant."""

    def find_by_participant(self, name: str) -> Optional[Schedule]:
        """Return the schedule for ``name`` or None if unknown."""

    def list_participant_names(self) -> Set[str]:
        """Return every participant with a stored schedule."""

    def clear(self) -> None:
        """Remove all stored schedules."""
