"""
Tests for domain models.
"""

from datetime import time

import pendulum
import pytest

from consultslot.domain.models import (
    BookingResult,
    DayAvailability,
    EmailAddress,
    EmailMessage,
    SlotCandidate,
    TimeRange,
    WorkingHours,
)

TZ = "Asia/Kuala_Lumpur"


def at(hour: int, minute: int = 0):
    return pendulum.datetime(2024, 11, 25, hour, minute, tz=TZ)


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        tr = TimeRange(start=at(9), end=at(9, 20))

        assert tr.start == at(9)
        assert tr.end == at(9, 20)
        assert tr.duration_minutes() == 20

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=at(17), end=at(9))

    def test_empty_time_range_raises_error(self):
        """A zero-length range violates the start < end invariant."""
        with pytest.raises(ValueError):
            TimeRange(start=at(9), end=at(9))

    def test_touching_ranges_do_not_overlap(self):
        """Half-open ranges sharing an edge are disjoint."""
        first = TimeRange(start=at(9), end=at(10))
        second = TimeRange(start=at(10), end=at(11))

        assert not first.overlaps(second)
        assert not second.overlaps(first)

    def test_overlaps_across_timezones(self):
        """Overlap is decided on instants, not on wall-clock values."""
        local = TimeRange(start=at(10), end=at(11))
        utc = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 2, 30, tz="UTC"),
            end=pendulum.datetime(2024, 11, 25, 3, 30, tz="UTC"),
        )

        assert local.overlaps(utc)

    def test_in_timezone_keeps_instants(self):
        tr = TimeRange(start=at(9), end=at(9, 20)).in_timezone("UTC")

        assert tr.start.hour == 1
        assert tr.start == at(9)


class TestWorkingHours:
    """Tests for WorkingHours model."""

    def test_window_for_day(self):
        working_hours = WorkingHours(start_time=time(9, 0), end_time=time(17, 0), timezone=TZ)

        window = working_hours.window_for_day(pendulum.date(2024, 11, 25))

        assert window is not None
        assert window.start == at(9)
        assert window.end == at(17)
        assert window.start.timezone_name == TZ

    def test_window_is_none_when_hours_collapse(self):
        working_hours = WorkingHours(start_time=time(9, 0), end_time=time(9, 0), timezone=TZ)

        assert working_hours.window_for_day(pendulum.date(2024, 11, 25)) is None


class TestResults:

    def test_day_availability_filters_busy_slots(self):
        free = SlotCandidate(time_range=TimeRange(start=at(9), end=at(9, 20)), available=True)
        taken = SlotCandidate(time_range=TimeRange(start=at(9, 30), end=at(9, 50)), available=False)

        day = DayAvailability(date=pendulum.date(2024, 11, 25), slots=(free, taken))

        assert day.available_slots() == [free]

    def test_booking_result_factories(self):
        ok = BookingResult.success(meeting_link="https://meet.example.com/x", event_url="https://cal/x")
        failed = BookingResult.failure("boom", error_code="calendar_error")

        assert ok.ok and ok.meeting_link == "https://meet.example.com/x" and ok.error is None
        assert not failed.ok and failed.error == "boom" and failed.meeting_link is None

    def test_email_message_requires_body(self):
        with pytest.raises(ValueError, match="body"):
            EmailMessage(
                sender=EmailAddress(email="from@example.com"),
                to=(EmailAddress(email="to@example.com"),),
                subject="Hello",
            )
