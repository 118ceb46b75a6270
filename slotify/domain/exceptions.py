"""
Domain-specific exception hierarchy for slotify.

Every error carries an ``ErrorKind`` so outer layers (CLI, HTTP) can map
failures to user-facing messages or status codes without string matching.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a scheduling failure."""
    INVALID_TIME_RANGE = "invalid_time_range"
    PARTICIPANT_NOT_FOUND = "participant_not_found"
    INVALID_ARGUMENT = "invalid_argument"
    PARSE_ERROR = "parse_error"
    REPOSITORY_ERROR = "repository_error"


class SchedulerError(Exception):
    """Base class for all application-level errors."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class InvalidTimeRangeError(SchedulerError):
    """Raised for an interval whose end is not after its start, or a negative buffer."""
    kind = ErrorKind.INVALID_TIME_RANGE


class ParticipantNotFoundError(SchedulerError):
    """Raised when a required participant has no stored schedule."""
    kind = ErrorKind.PARTICIPANT_NOT_FOUND

    def __init__(self, participant: str):
        super().__init__(f"Participant not found: {participant}")
        self.participant = participant


class InvalidArgumentError(SchedulerError):
    """Raised when query arguments fail validation."""
    kind = ErrorKind.INVALID_ARGUMENT


class ParseError(SchedulerError):
    """Raised when calendar or blackout data is malformed."""
    kind = ErrorKind.PARSE_ERROR

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.line_number = line_number


class RepositoryError(SchedulerError):
    """Raised when schedules cannot be read from or written to storage."""
    kind = ErrorKind.REPOSITORY_ERROR
