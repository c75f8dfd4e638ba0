"""
Core business logic for generating bookable consultation slots.

Pure domain logic without any external dependencies (no API calls, no I/O).
"""

from datetime import time, timedelta
from typing import Iterable, List

from pendulum import Date

from .models import SlotCandidate, TimeRange, WorkingHours

DEFAULT_SLOT_DURATION = timedelta(minutes=20)
DEFAULT_STEP_INTERVAL = timedelta(minutes=30)


class SlotGenerator:
    """
    Generates fixed-length candidate slots across a working day.

    Algorithm:
    1. Resolve the working window for the day in the business timezone
    2. Walk from the window start in ``step_interval`` strides
    3. Emit ``[t, t + slot_duration)`` while ``t`` is before closing time
    4. Mark a candidate unavailable if it overlaps any busy interval

    The step may be longer than the slot duration, which leaves buffer time
    between consecutive meetings. The last candidate may run past closing
    time as long as it starts before it.
    """

    def __init__(
        self,
        working_hours: WorkingHours,
        slot_duration: timedelta = DEFAULT_SLOT_DURATION,
        step_interval: timedelta = DEFAULT_STEP_INTERVAL,
    ):
        if slot_duration <= timedelta(0):
            raise ValueError(f"Slot duration must be positive, got {slot_duration}")
        if step_interval <= timedelta(0):
            raise ValueError(f"Step interval must be positive, got {step_interval}")

        self.working_hours = working_hours
        self.slot_duration = slot_duration
        self.step_interval = step_interval

    def generate_slots(self, day: Date, busy: Iterable[TimeRange]) -> List[SlotCandidate]:
        """
        Generate the candidate slots for a single day.

        Args:
            day: Calendar day, interpreted in the business timezone
            busy: Busy intervals in any order, possibly overlapping

        Returns:
            Candidates in chronological order
        """
        window = self.working_hours.window_for_day(day)

        if window is None:
            return []

        busy_ranges = list(busy)
        candidates: List[SlotCandidate] = []

        slot_start = window.start
        while slot_start < window.end:
            candidate = TimeRange(start=slot_start, end=slot_start + self.slot_duration)
            candidates.append(
                SlotCandidate(
                    time_range=candidate,
                    available=not self._is_busy(candidate, busy_ranges),
                )
            )
            slot_start = slot_start + self.step_interval

        return candidates

    @staticmethod
    def _is_busy(candidate: TimeRange, busy_ranges: List[TimeRange]) -> bool:
        # Overlap with any single entry is enough, so no merge is needed.
        return any(candidate.overlaps(busy) for busy in busy_ranges)


def generate_slots(
    window_start: Date,
    workday_start: time,
    workday_end: time,
    slot_duration: timedelta = DEFAULT_SLOT_DURATION,
    step_interval: timedelta = DEFAULT_STEP_INTERVAL,
    busy: Iterable[TimeRange] = (),
    timezone: str = "Asia/Kuala_Lumpur",
) -> List[SlotCandidate]:
    """Generate candidates for one day without building a ``SlotGenerator`` first."""
    generator = SlotGenerator(
        working_hours=WorkingHours(
            start_time=workday_start,
            end_time=workday_end,
            timezone=timezone,
        ),
        slot_duration=slot_duration,
        step_interval=step_interval,
    )
    return generator.generate_slots(window_start, busy)
