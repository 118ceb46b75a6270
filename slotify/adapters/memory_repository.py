"""
In-process schedule storage.
"""

import threading
from typing import Dict, Iterable, Optional, Set

from ..domain.models import Schedule


class InMemoryScheduleRepository:
    """
    Dictionary-backed repository.

    Single reads and writes happen under a lock; ``replace_all`` swaps the
    whole mapping at once so readers see either the old or the new data.
    """

    def __init__(self, schedules: Optional[Iterable[Schedule]] = None):
        self._lock = threading.Lock()
        self._data: Dict[str, Schedule] = {
            schedule.participant_name: schedule for schedule in schedules or ()
        }

    def save(self, schedule: Schedule) -> None:
        with self._lock:
            self._data[schedule.participant_name] = schedule

    def find_by_participant(self, name: str) -> Optional[Schedule]:
        with self._lock:
            return self._data.get(name)

    def list_participant_names(self) -> Set[str]:
        with self._lock:
            return set(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data = {}

    def replace_all(self, schedules: Iterable[Schedule]) -> None:
        """Replace every stored schedule in one step."""
        replacement = {schedule.participant_name: schedule for schedule in schedules}
        with self._lock:
            self._data = replacement

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
