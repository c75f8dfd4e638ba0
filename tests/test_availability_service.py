"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
from datetime import time
from typing import Dict, List

import pendulum
import pytest

from consultslot.domain.exceptions import AvailabilityFetchError, CalendarAPIError, ClientInputError
from consultslot.domain.models import TimeRange, WorkingHours
from consultslot.domain.slot_generator import SlotGenerator
from consultslot.services.availability import AvailabilityService

TZ = "Asia/Kuala_Lumpur"


class StubCalendarClient:
    """Minimal stub matching CalendarClientProtocol."""

    def __init__(self, busy: List[TimeRange] | None = None, error: Exception | None = None, delay: float = 0):
        self._busy = busy or []
        self._error = error
        self._delay = delay
        self.calls: List[Dict[str, object]] = []

    async def query_busy(self, resource_id, time_min, time_max, timezone):
        self.calls.append(
            {
                "resource_id": resource_id,
                "time_min": time_min,
                "time_max": time_max,
                "timezone": timezone,
            }
        )
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error:
            raise self._error
        return self._busy

    async def create_event(self, resource_id, draft):
        raise AssertionError("availability must not create events")


def _build_service(client: StubCalendarClient, **kwargs) -> AvailabilityService:
    generator = SlotGenerator(
        working_hours=WorkingHours(start_time=time(9, 0), end_time=time(17, 0), timezone=TZ)
    )
    return AvailabilityService(
        calendar_client=client,
        slot_generator=generator,
        resource_id="owner@example.com",
        **kwargs,
    )


def test_returns_one_entry_per_day_in_order():
    client = StubCalendarClient()
    service = _build_service(client)

    days = asyncio.run(
        service.get_availability(start_date="2024-11-25", end_date="2024-11-27", timezone="Europe/Berlin")
    )

    assert [day.date.to_date_string() for day in days] == ["2024-11-25", "2024-11-26", "2024-11-27"]
    assert all(len(day.slots) == 16 for day in days)


def test_single_busy_query_covers_range_in_business_zone():
    client = StubCalendarClient()
    service = _build_service(client)

    asyncio.run(
        service.get_availability(start_date="2024-11-25", end_date="2024-11-26", timezone="Europe/Berlin")
    )

    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["resource_id"] == "owner@example.com"
    assert call["timezone"] == "Europe/Berlin"
    assert call["time_min"] == pendulum.datetime(2024, 11, 25, tz=TZ)
    assert call["time_max"] == pendulum.datetime(2024, 11, 26, tz=TZ).end_of("day")


def test_busy_intervals_mark_matching_day_only():
    busy = [
        TimeRange(
            start=pendulum.datetime(2024, 11, 26, 10, 0, tz=TZ),
            end=pendulum.datetime(2024, 11, 26, 10, 20, tz=TZ),
        )
    ]
    service = _build_service(StubCalendarClient(busy=busy))

    first, second = asyncio.run(
        service.get_availability(start_date="2024-11-25", end_date="2024-11-26", timezone=TZ)
    )

    assert len(first.available_slots()) == 16
    assert len(second.available_slots()) == 15


def test_end_date_defaults_to_start_date():
    service = _build_service(StubCalendarClient())

    days = asyncio.run(service.get_availability(start_date="2024-11-25", timezone=TZ))

    assert len(days) == 1


def test_calendar_failure_is_reported_without_partial_results():
    client = StubCalendarClient(error=CalendarAPIError("401 Unauthorized"))
    service = _build_service(client)

    with pytest.raises(AvailabilityFetchError):
        asyncio.run(service.get_availability(start_date="2024-11-25", timezone=TZ))


def test_calendar_timeout_is_a_fetch_failure():
    client = StubCalendarClient(delay=1)
    service = _build_service(client, call_timeout=0.01)

    with pytest.raises(AvailabilityFetchError):
        asyncio.run(service.get_availability(start_date="2024-11-25", timezone=TZ))


def test_unexpected_client_exception_is_a_fetch_failure():
    client = StubCalendarClient(error=TypeError("'NoneType' object is not subscriptable"))
    service = _build_service(client)

    with pytest.raises(AvailabilityFetchError, match="Failed to fetch availability"):
        asyncio.run(service.get_availability(start_date="2024-11-25", timezone=TZ))


@pytest.mark.parametrize(
    "start, end, timezone",
    [
        ("2024-11-27", "2024-11-25", TZ),
        ("25/11/2024", None, TZ),
        ("2024-11-25", "2025-01-31", TZ),
        ("2024-11-25", None, "Mars/Olympus_Mons"),
    ],
)
def test_invalid_input_rejected_before_calendar_call(start, end, timezone):
    client = StubCalendarClient()
    service = _build_service(client, max_range_days=31)

    with pytest.raises(ClientInputError):
        asyncio.run(service.get_availability(start_date=start, end_date=end, timezone=timezone))

    assert client.calls == []
