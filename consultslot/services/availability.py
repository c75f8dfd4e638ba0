"""
Application service answering "which consultation slots are free?".

The service fetches busy intervals through a calendar client adapter and
hands them to the domain-level ``SlotGenerator`` once per day. Keeping the
calendar behind a protocol lets tests run without network access.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable, List, Tuple

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import AvailabilityFetchError, ClientInputError, ConsultSlotError
from ..domain.models import DayAvailability, TimeRange
from ..domain.slot_generator import SlotGenerator
from ..domain.timezones import is_valid_timezone
from .protocols import CalendarClientProtocol

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Orchestrates busy-time retrieval and per-day slot generation.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        slot_generator: SlotGenerator,
        resource_id: str,
        max_range_days: int = 31,
        call_timeout: float = 30.0,
    ) -> None:
        self._calendar_client = calendar_client
        self._slot_generator = slot_generator
        self._resource_id = resource_id
        self._max_range_days = max_range_days
        self._call_timeout = call_timeout

    @property
    def business_timezone(self) -> str:
        return self._slot_generator.working_hours.timezone

    async def get_availability(
        self,
        *,
        start_date: str | date,
        end_date: str | date | None = None,
        timezone: str,
    ) -> List[DayAvailability]:
        """
        Compute the candidate slots for every day in ``[start_date, end_date]``.

        Raises:
            ClientInputError: If the dates or the timezone are malformed
            AvailabilityFetchError: If the busy intervals cannot be fetched
        """
        first_day, last_day = self._parse_range(start_date, end_date)

        if not is_valid_timezone(timezone):
            raise ClientInputError(f"Unknown timezone: '{timezone}'")

        busy = await self.fetch_busy_times(
            first_day=first_day,
            last_day=last_day,
            timezone=timezone,
        )

        return self.calculate_days(first_day=first_day, last_day=last_day, busy=busy)

    async def fetch_busy_times(
        self,
        *,
        first_day: Date,
        last_day: Date,
        timezone: str,
    ) -> List[TimeRange]:
        """Fetch busy intervals covering the whole range in one query."""
        time_min, time_max = self._query_window(first_day, last_day)

        try:
            busy = await asyncio.wait_for(
                self._calendar_client.query_busy(
                    resource_id=self._resource_id,
                    time_min=time_min,
                    time_max=time_max,
                    timezone=timezone,
                ),
                timeout=self._call_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Busy query timed out after %ss", self._call_timeout)
            raise AvailabilityFetchError("Failed to fetch availability") from exc
        except ConsultSlotError as exc:
            logger.error("Error fetching availability: %s", exc)
            raise AvailabilityFetchError("Failed to fetch availability") from exc
        except Exception as exc:
            logger.exception("Unexpected error fetching availability")
            raise AvailabilityFetchError("Failed to fetch availability") from exc

        logger.debug("Fetched %d busy interval(s) for %s - %s", len(busy), first_day, last_day)
        return list(busy)

    def calculate_days(
        self,
        *,
        first_day: Date,
        last_day: Date,
        busy: Iterable[TimeRange],
    ) -> List[DayAvailability]:
        """Generate the candidates for each day of the range, in order."""
        busy_ranges = list(busy)
        days: List[DayAvailability] = []

        current = first_day
        while current <= last_day:
            slots = self._slot_generator.generate_slots(current, busy_ranges)
            days.append(DayAvailability(date=current, slots=tuple(slots)))
            current = current.add(days=1)

        return days

    def _query_window(self, first_day: Date, last_day: Date) -> Tuple[DateTime, DateTime]:
        tz = self.business_timezone
        time_min = pendulum.datetime(first_day.year, first_day.month, first_day.day, tz=tz)
        time_max = pendulum.datetime(last_day.year, last_day.month, last_day.day, tz=tz).end_of("day")
        return time_min, time_max

    def _parse_range(
        self,
        start_date: str | date,
        end_date: str | date | None,
    ) -> Tuple[Date, Date]:
        first_day = _parse_day(start_date, "start")
        last_day = _parse_day(end_date, "end") if end_date else first_day

        if last_day < first_day:
            raise ClientInputError(f"End date {last_day} is before start date {first_day}")

        span = last_day.toordinal() - first_day.toordinal() + 1
        if span > self._max_range_days:
            raise ClientInputError(
                f"Date range spans {span} days; at most {self._max_range_days} are allowed"
            )

        return first_day, last_day


def _parse_day(value: str | date, label: str) -> Date:
    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
    except ValueError as exc:
        raise ClientInputError(f"Invalid {label} date '{value}', expected YYYY-MM-DD") from exc
