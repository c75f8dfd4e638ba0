"""
Domain models for availability slots and consultation bookings.
"""

from dataclasses import dataclass, field
from datetime import time
from typing import List, Optional, Tuple

import pendulum
from pendulum import Date, DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another (touching edges do not count)."""
        return self.start < other.end and self.end > other.start

    def in_timezone(self, timezone: str) -> "TimeRange":
        """Return the same instants expressed in another timezone."""
        return TimeRange(
            start=self.start.in_timezone(timezone),
            end=self.end.in_timezone(timezone),
        )

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class SlotCandidate:
    """A generated meeting slot and whether it is free of busy intervals."""
    time_range: TimeRange
    available: bool

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end


@dataclass
class WorkingHours:
    """
    Daily business hours, anchored in the business timezone.
    """
    start_time: time
    end_time: time
    timezone: str = "Asia/Kuala_Lumpur"

    def window_for_day(self, day: Date) -> TimeRange | None:
        """
        Get the working window for a calendar day.

        Returns None when the configured hours do not describe a
        non-empty window (start at or after end).
        """
        if self.start_time >= self.end_time:
            return None

        start = pendulum.datetime(
            day.year, day.month, day.day,
            self.start_time.hour, self.start_time.minute,
            tz=self.timezone,
        )
        end = pendulum.datetime(
            day.year, day.month, day.day,
            self.end_time.hour, self.end_time.minute,
            tz=self.timezone,
        )

        return TimeRange(start=start, end=end)


@dataclass(frozen=True)
class DayAvailability:
    """All candidate slots generated for one calendar day."""
    date: Date
    slots: Tuple[SlotCandidate, ...]

    def available_slots(self) -> List[SlotCandidate]:
        """Return only the candidates that are free."""
        return [slot for slot in self.slots if slot.available]


@dataclass(frozen=True)
class BookingRequest:
    """
    Booking input as received from the caller.

    Nothing here is trusted; the booking service validates the identity
    fields and the time range before any side effect happens.
    """
    name: str = ""
    email: str = ""
    company: str = ""
    website: str = ""
    timezone: str = ""
    focus_areas: Tuple[str, ...] = ()
    target_countries: Tuple[str, ...] = ()
    timeline: str = ""
    primary_challenge: str = ""
    start_iso: str = ""
    end_iso: str = ""


@dataclass(frozen=True)
class EventDraft:
    """Calendar event to be inserted for a booking."""
    title: str
    description: str
    start: DateTime
    end: DateTime
    attendee_emails: Tuple[str, ...]
    timezone: str
    request_conference_link: bool = True
    reminder_minutes: int = 24 * 60  # Graph events hold a single reminder


@dataclass(frozen=True)
class CreatedEvent:
    """What the remote calendar reports back after an insert."""
    event_id: str
    event_url: Optional[str] = None
    conference_link: Optional[str] = None


@dataclass(frozen=True)
class EmailAddress:
    email: str
    name: Optional[str] = None


@dataclass(frozen=True)
class EmailMessage:
    """
    A transactional email. At least one of the bodies must be set.
    """
    sender: EmailAddress
    to: Tuple[EmailAddress, ...]
    subject: str
    html_body: Optional[str] = None
    text_body: Optional[str] = None

    def __post_init__(self):
        if not self.to:
            raise ValueError("An email message needs at least one recipient")
        if not self.html_body and not self.text_body:
            raise ValueError("An email message needs an HTML or a text body")


@dataclass(frozen=True)
class BookingResult:
    """
    Outcome of a booking attempt, returned to the caller as-is.

    ``error_code`` is ``"invalid_request"`` for rejected input and
    ``"calendar_error"`` when the calendar event could not be created.
    """
    ok: bool
    meeting_link: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    event_url: Optional[str] = None

    @classmethod
    def success(cls, meeting_link: Optional[str], event_url: Optional[str] = None) -> "BookingResult":
        return cls(ok=True, meeting_link=meeting_link, event_url=event_url)

    @classmethod
    def failure(cls, error: str, error_code: str) -> "BookingResult":
        return cls(ok=False, error=error, error_code=error_code)


@dataclass
class BestEffortReport:
    """Per-task outcome of the best-effort booking phase, used for logging."""
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
