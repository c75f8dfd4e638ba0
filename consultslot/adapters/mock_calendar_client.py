"""
Mock calendar client for running without Microsoft Graph credentials.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import time
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.models import CreatedEvent, EventDraft, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Simulates a calendar with recurring daily busy blocks.

    Busy blocks are loaded from ``mock_calendar_data.json`` and repeat every
    day (or on the listed ``weekdays``, 0=Monday) in the business timezone.
    Created events are kept in memory only.
    """

    def __init__(self, timezone: str, data_file: Path | None = None):
        """
        Initialize the mock client.

        Args:
            timezone: Business timezone the daily blocks are expressed in
            data_file: Optional alternative JSON file
        """
        self.timezone = timezone
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.created_events: List[EventDraft] = []
        self._load_calendar_data()

    def _load_calendar_data(self) -> None:
        """Load mock busy blocks from the JSON file."""
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.daily_busy: List[Dict[str, Any]] = data.get("daily_busy", [])
        else:
            logger.warning("Mock calendar data file %s not found; calendar is empty", self.data_file)
            self.daily_busy = []

    async def query_busy(
        self,
        resource_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """Expand the daily blocks over the window and return those overlapping it."""
        window = TimeRange(start=time_min, end=time_max)
        busy: List[TimeRange] = []

        day = time_min.in_timezone(self.timezone).date()
        last_day = time_max.in_timezone(self.timezone).date()

        while day <= last_day:
            for block in self.daily_busy:
                weekdays = block.get("weekdays")
                if weekdays is not None and day.weekday() not in weekdays:
                    continue

                try:
                    block_range = self._block_on_day(block, day)
                except (KeyError, ValueError) as e:
                    logger.warning("Skipping invalid mock busy block %s: %s", block, e)
                    continue

                if block_range.overlaps(window):
                    busy.append(block_range)

            day = day.add(days=1)

        return busy

    async def create_event(self, resource_id: str, draft: EventDraft) -> CreatedEvent:
        """Record the draft and return fake links."""
        self.created_events.append(draft)
        event_id = f"mock-{uuid.uuid4().hex[:12]}"

        return CreatedEvent(
            event_id=event_id,
            event_url=f"https://calendar.example.com/event/{event_id}",
            conference_link=(
                f"https://meet.example.com/{event_id}" if draft.request_conference_link else None
            ),
        )

    def _block_on_day(self, block: Dict[str, Any], day) -> TimeRange:
        start = time.fromisoformat(block["start"])
        end = time.fromisoformat(block["end"])

        return TimeRange(
            start=pendulum.datetime(day.year, day.month, day.day, start.hour, start.minute, tz=self.timezone),
            end=pendulum.datetime(day.year, day.month, day.day, end.hour, end.minute, tz=self.timezone),
        )
