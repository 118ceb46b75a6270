"""
CSV ingestion of calendar events and blackout periods.
"""

import csv
import logging
from collections import defaultdict
from datetime import time
from pathlib import Path
from typing import Callable, Dict, List, TypeVar

import pendulum

from ..domain.exceptions import InvalidTimeRangeError, ParseError, RepositoryError
from ..domain.models import CalendarEvent, Schedule, TimeSlot

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIME_FORMAT = "H:mm"
# Times of day are parsed on a fixed date; only the clock part is kept
_ANCHOR_DATE = "2000-01-01"
MAX_LINES = 10_000
MAX_LINE_LENGTH = 2_000
MAX_NAME_LENGTH = 100
MAX_SUBJECT_LENGTH = 500


class CsvCalendarParser:
    """
    Reads busy calendars and blackout periods from CSV.

    Calendar rows: ``participant,subject,start,end``
    Blackout rows: ``start,end``

    Times use the ``H:mm`` format (``9:30``, ``14:00``). Blank lines are
    skipped. Any malformed row fails the whole file with a ``ParseError``
    naming its line number.
    """

    def parse_schedules(self, csv_path: Path) -> Dict[str, Schedule]:
        """
        Parse a calendar file into one merged schedule per participant.

        Raises:
            ParseError: If a row is malformed
            RepositoryError: If the file cannot be read
        """
        return self.parse_schedules_text(self._read(csv_path))

    def parse_schedules_text(self, text: str) -> Dict[str, Schedule]:
        events = self._parse_rows(text, 4, self._parse_event_row)

        events_by_participant: Dict[str, List[CalendarEvent]] = defaultdict(list)
        for event in events:
            events_by_participant[event.participant_name].append(event)

        schedules = {
            name: Schedule.from_events(name, participant_events)
            for name, participant_events in events_by_participant.items()
        }
        logger.info("Parsed %d events for %d participants", len(events), len(schedules))
        return schedules

    def parse_blackouts(self, blackout_path: Path) -> List[TimeSlot]:
        """
        Parse a blackout file. A missing file means no blackouts.
        """
        if not blackout_path.exists():
            logger.debug("No blackout file at %s", blackout_path)
            return []
        return self.parse_blackouts_text(self._read(blackout_path))

    def parse_blackouts_text(self, text: str) -> List[TimeSlot]:
        blackouts = self._parse_rows(text, 2, self._parse_blackout_row)
        logger.info("Parsed %d blackout periods", len(blackouts))
        return blackouts

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RepositoryError(f"Failed to read file: {path}") from exc

    def _parse_rows(
        self,
        text: str,
        expected_columns: int,
        row_parser: Callable[[List[str], int], T],
    ) -> List[T]:
        lines = text.splitlines()
        if len(lines) > MAX_LINES:
            raise ParseError(f"File has too many lines (max {MAX_LINES})")

        results: List[T] = []
        for line_number, line in enumerate(lines, 1):
            if len(line) > MAX_LINE_LENGTH:
                raise ParseError(
                    f"Line {line_number} is too long (max {MAX_LINE_LENGTH} characters)",
                    line_number,
                )
            line = line.strip()
            if not line:
                continue

            fields = next(csv.reader([line]))
            if len(fields) != expected_columns:
                raise ParseError(
                    f"Invalid format at line {line_number}: "
                    f"expected {expected_columns} columns, got {len(fields)}",
                    line_number,
                )
            results.append(row_parser(fields, line_number))

        return results

    def _parse_event_row(self, fields: List[str], line_number: int) -> CalendarEvent:
        participant = fields[0].strip()
        if not participant:
            raise ParseError(f"Empty participant name at line {line_number}", line_number)
        if len(participant) > MAX_NAME_LENGTH:
            raise ParseError(
                f"Participant name too long at line {line_number} "
                f"(max {MAX_NAME_LENGTH} characters)",
                line_number,
            )

        subject = fields[1].strip()
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise ParseError(
                f"Subject too long at line {line_number} (max {MAX_SUBJECT_LENGTH} characters)",
                line_number,
            )

        time_slot = self._parse_slot(fields[2], fields[3], line_number)
        return CalendarEvent(participant_name=participant, subject=subject, time_slot=time_slot)

    def _parse_blackout_row(self, fields: List[str], line_number: int) -> TimeSlot:
        return self._parse_slot(fields[0], fields[1], line_number)

    def _parse_slot(self, start_value: str, end_value: str, line_number: int) -> TimeSlot:
        start = parse_time(start_value, line_number)
        end = parse_time(end_value, line_number)
        try:
            return TimeSlot(start=start, end=end)
        except InvalidTimeRangeError as exc:
            raise ParseError(f"Invalid time range at line {line_number}: {exc}", line_number) from exc


def parse_time(value: str, line_number: int | None = None) -> time:
    """
    Parse an ``H:mm`` time of day.

    Raises:
        ParseError: If the value does not match the format
    """
    value = value.strip()
    try:
        return pendulum.from_format(f"{_ANCHOR_DATE} {value}", f"YYYY-MM-DD {TIME_FORMAT}").time()
    except ValueError as exc:
        location = f" at line {line_number}" if line_number is not None else ""
        raise ParseError(f"Invalid time format '{value}'{location}", line_number) from exc
