"""
Microsoft Graph API client for calendar free/busy data and event creation.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import CreatedEvent, EventDraft, TimeRange

logger = logging.getLogger(__name__)

GRAPH_DATETIME_FORMAT = "YYYY-MM-DDTHH:mm:ss"

# Graph returns seven fractional digits; keep at most microseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


class TokenProvider(Protocol):
    def get_access_token(self) -> str:
        """Return a bearer token for Microsoft Graph."""


class GraphCalendarClient:
    """
    Client for Microsoft Graph calendar operations on one mailbox.

    Uses ``/calendar/getSchedule`` for free/busy information and ``/events``
    to create Teams-enabled meetings. Requests are blocking; the async
    methods run them in a worker thread.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # Statuses that block a slot
    BUSY_STATUSES = {"busy", "tentative", "oof", "workingelsewhere"}

    def __init__(self, authenticator: TokenProvider, timeout: float = 30):
        """
        Initialize the Graph API client.

        Args:
            authenticator: Source of bearer tokens
            timeout: Per-request timeout in seconds
        """
        self.authenticator = authenticator
        self.timeout = timeout

    async def query_busy(
        self,
        resource_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        return await asyncio.to_thread(self.get_schedule, resource_id, time_min, time_max, timezone)

    async def create_event(self, resource_id: str, draft: EventDraft) -> CreatedEvent:
        return await asyncio.to_thread(self.insert_event, resource_id, draft)

    def get_schedule(
        self,
        resource_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """
        Get busy intervals for a mailbox.

        Args:
            resource_id: Mailbox address whose calendar is queried
            time_min: Start of the time window
            time_max: End of the time window
            timezone: IANA timezone used for the request and the response

        Returns:
            Busy TimeRange objects, in the order Graph reports them

        Raises:
            CalendarAPIError: If the API call fails
        """
        url = f"{self.GRAPH_API_ENDPOINT}/users/{quote(resource_id, safe='@')}/calendar/getSchedule"

        payload = {
            "schedules": [resource_id],
            "startTime": {
                "dateTime": time_min.in_timezone(timezone).format(GRAPH_DATETIME_FORMAT),
                "timeZone": timezone,
            },
            "endTime": {
                "dateTime": time_max.in_timezone(timezone).format(GRAPH_DATETIME_FORMAT),
                "timeZone": timezone,
            },
            "availabilityViewInterval": 15,
        }

        data = self._post(
            url,
            payload,
            extra_headers={"Prefer": f'outlook.timezone="{timezone}"'},
            action="fetch schedule",
        )

        return self._parse_schedule_response(data, resource_id, timezone)

    def insert_event(self, resource_id: str, draft: EventDraft) -> CreatedEvent:
        """
        Create a calendar event, optionally with a Teams meeting link.

        Raises:
            CalendarAPIError: If the API call fails
        """
        url = f"{self.GRAPH_API_ENDPOINT}/users/{quote(resource_id, safe='@')}/events"

        payload: Dict[str, Any] = {
            "subject": draft.title,
            "body": {"contentType": "text", "content": draft.description},
            "start": {
                "dateTime": draft.start.in_timezone(draft.timezone).format(GRAPH_DATETIME_FORMAT),
                "timeZone": draft.timezone,
            },
            "end": {
                "dateTime": draft.end.in_timezone(draft.timezone).format(GRAPH_DATETIME_FORMAT),
                "timeZone": draft.timezone,
            },
            "attendees": [
                {"emailAddress": {"address": email}, "type": "required"}
                for email in draft.attendee_emails
            ],
            "isReminderOn": True,
            "reminderMinutesBeforeStart": draft.reminder_minutes,
        }

        if draft.request_conference_link:
            payload["isOnlineMeeting"] = True
            payload["onlineMeetingProvider"] = "teamsForBusiness"

        data = self._post(url, payload, action="create event")

        online_meeting = data.get("onlineMeeting") or {}
        return CreatedEvent(
            event_id=data.get("id", ""),
            event_url=data.get("webLink"),
            conference_link=online_meeting.get("joinUrl"),
        )

    def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        *,
        action: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.authenticator.get_access_token()}",
            "Content-Type": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)

        try:
            response = requests.post(url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.HTTPError as e:
            detail = e.response.text[:500] if e.response is not None else ""
            raise CalendarAPIError(f"Failed to {action} in Microsoft Graph: {e} {detail}".strip()) from e

        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to {action} in Microsoft Graph: {e}") from e

        except ValueError as e:
            raise CalendarAPIError(f"Microsoft Graph returned invalid JSON while trying to {action}") from e

        if not isinstance(data, dict):
            raise CalendarAPIError(
                f"Microsoft Graph returned an unexpected {type(data).__name__} body while trying to {action}"
            )

        return data

    def _parse_schedule_response(
        self,
        response_data: Dict[str, Any],
        resource_id: str,
        timezone: str,
    ) -> List[TimeRange]:
        """
        Parse the getSchedule API response into busy ranges.

        Response format:
        {
            "value": [
                {
                    "scheduleId": "owner@example.com",
                    "scheduleItems": [
                        {
                            "status": "busy",
                            "start": {"dateTime": "...", "timeZone": "..."},
                            "end": {"dateTime": "...", "timeZone": "..."}
                        }
                    ],
                    "error": {"message": "..."}
                }
            ]
        }
        """
        busy_ranges: List[TimeRange] = []

        schedules = response_data.get("value") or []
        if not isinstance(schedules, list):
            raise CalendarAPIError("Unexpected getSchedule response: 'value' is not a list")

        for schedule in schedules:
            if not isinstance(schedule, dict):
                continue
            if str(schedule.get("scheduleId") or "").lower() != resource_id.lower():
                continue

            if schedule.get("error"):
                error = schedule["error"]
                message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
                raise CalendarAPIError(f"Schedule for {resource_id} unavailable: {message}")

            for item in schedule.get("scheduleItems") or []:
                try:
                    if str(item.get("status") or "").lower() not in self.BUSY_STATUSES:
                        continue

                    start = self._parse_datetime(item["start"]["dateTime"], timezone)
                    end = self._parse_datetime(item["end"]["dateTime"], timezone)
                    busy_ranges.append(TimeRange(start=start, end=end))

                except (KeyError, TypeError, AttributeError, ValueError) as e:
                    logger.warning("Could not parse schedule item: %s", e)
                    continue

        return busy_ranges

    def _parse_datetime(self, datetime_str: str, timezone: str) -> DateTime:
        """
        Parse a Graph datetime string; values without an offset are read in ``timezone``.
        """
        dt = pendulum.parse(_EXCESS_FRACTION.sub(r"\1", datetime_str), tz=timezone)

        if isinstance(dt, DateTime):
            return dt

        raise ValueError(f"Could not parse datetime: {datetime_str}")
