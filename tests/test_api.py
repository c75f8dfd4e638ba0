"""
Tests for the HTTP API.
"""

from datetime import time

import pendulum
import pytest
from fastapi.testclient import TestClient

from consultslot import __version__
from consultslot.api import create_app
from consultslot.bootstrap import Services
from consultslot.domain.exceptions import CalendarAPIError
from consultslot.domain.models import CreatedEvent, TimeRange, WorkingHours
from consultslot.domain.slot_generator import SlotGenerator
from consultslot.services.availability import AvailabilityService
from consultslot.services.booking import BookingService

TZ = "Asia/Kuala_Lumpur"


class StubCalendar:
    def __init__(self, busy=None, error=None):
        self.busy = busy or []
        self.error = error
        self.drafts = []

    async def query_busy(self, resource_id, time_min, time_max, timezone):
        if self.error:
            raise self.error
        return self.busy

    async def create_event(self, resource_id, draft):
        if self.error:
            raise self.error
        self.drafts.append(draft)
        return CreatedEvent(
            event_id="evt-1",
            event_url="https://outlook.example.com/event",
            conference_link="https://teams.example.com/meet/1",
        )


def make_client(calendar: StubCalendar) -> TestClient:
    generator = SlotGenerator(
        working_hours=WorkingHours(start_time=time(9, 0), end_time=time(17, 0), timezone=TZ)
    )
    services = Services(
        availability=AvailabilityService(
            calendar_client=calendar,
            slot_generator=generator,
            resource_id="owner@example.com",
        ),
        booking=BookingService(
            calendar_client=calendar,
            resource_id="owner@example.com",
            business_timezone=TZ,
        ),
    )
    return TestClient(create_app(services))


BOOKING = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "company": "Analytical Engines",
    "focusAreas": ["Technical SEO"],
    "targetCountries": ["Malaysia"],
    "primaryChallenge": "Low organic traffic",
    "startISO": "2024-11-25T01:00:00Z",
    "endISO": "2024-11-25T01:20:00Z",
}


class TestHealth:
    """Tests for GET /health."""

    def test_health(self):
        response = make_client(StubCalendar()).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}


class TestAvailabilityEndpoint:
    """Tests for GET /availability."""

    def test_lists_free_slots_in_utc(self):
        busy = [
            TimeRange(
                start=pendulum.datetime(2024, 11, 25, 10, 0, tz=TZ),
                end=pendulum.datetime(2024, 11, 25, 11, 0, tz=TZ),
            )
        ]
        client = make_client(StubCalendar(busy=busy))

        response = client.get("/availability", params={"start": "2024-11-25"})

        assert response.status_code == 200
        days = response.json()["days"]
        assert [day["date"] for day in days] == ["2024-11-25"]
        slots = days[0]["slots"]
        assert len(slots) == 14
        assert slots[0] == {"startISO": "2024-11-25T01:00:00Z", "endISO": "2024-11-25T01:20:00Z"}
        assert {"startISO": "2024-11-25T02:00:00Z", "endISO": "2024-11-25T02:20:00Z"} not in slots

    def test_range(self):
        client = make_client(StubCalendar())

        response = client.get(
            "/availability",
            params={"start": "2024-11-25", "end": "2024-11-27", "tz": "Europe/London"},
        )

        assert response.status_code == 200
        assert [day["date"] for day in response.json()["days"]] == ["2024-11-25", "2024-11-26", "2024-11-27"]

    @pytest.mark.parametrize(
        "params",
        [
            {"start": "25/11/2024"},
            {"start": "2024-11-27", "end": "2024-11-25"},
            {"start": "2024-11-25", "tz": "Nowhere/Special"},
            {},
        ],
    )
    def test_bad_input(self, params):
        response = make_client(StubCalendar()).get("/availability", params=params)

        assert response.status_code == 400
        assert "error" in response.json()

    def test_calendar_failure(self):
        client = make_client(StubCalendar(error=CalendarAPIError("503 Service Unavailable")))

        response = client.get("/availability", params={"start": "2024-11-25"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch availability"}

    def test_unexpected_calendar_exception(self):
        client = make_client(StubCalendar(error=AttributeError("'list' object has no attribute 'get'")))

        response = client.get("/availability", params={"start": "2024-11-25"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch availability"}


class TestBookEndpoint:
    """Tests for POST /book."""

    def test_success(self):
        calendar = StubCalendar()
        client = make_client(calendar)

        response = client.post("/book", json=BOOKING)

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "message": "Consultation booked successfully!",
            "meetLink": "https://teams.example.com/meet/1",
        }
        assert calendar.drafts[0].title == "Consultation: Analytical Engines"

    def test_missing_fields(self):
        calendar = StubCalendar()
        client = make_client(calendar)

        response = client.post("/book", json={"name": "Ada Lovelace"})

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert "email" in body["error"]
        assert calendar.drafts == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"focusAreas": None},
            {"targetCountries": "Malaysia"},
            {"name": {"first": "Ada"}},
        ],
    )
    def test_wrongly_typed_fields(self, overrides):
        calendar = StubCalendar()
        client = make_client(calendar)

        response = client.post("/book", json={**BOOKING, **overrides})

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["error"].startswith("Invalid request")
        assert calendar.drafts == []

    def test_non_json_body(self):
        response = make_client(StubCalendar()).post(
            "/book",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_calendar_failure(self):
        client = make_client(StubCalendar(error=CalendarAPIError("403 Forbidden")))

        response = client.post("/book", json=BOOKING)

        assert response.status_code == 500
        assert response.json()["ok"] is False

    def test_unexpected_calendar_exception(self):
        client = make_client(StubCalendar(error=RuntimeError("connection reset by peer")))

        response = client.post("/book", json=BOOKING)

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        body = response.json()
        assert body["ok"] is False
        assert "connection reset by peer" in body["error"]


class TestCors:
    """Cross-origin requests from the website."""

    def test_allows_any_origin(self):
        client = make_client(StubCalendar())

        response = client.options(
            "/book",
            headers={"Origin": "https://www.example.org", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] in ("*", "https://www.example.org")
