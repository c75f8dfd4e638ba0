"""
Booking orchestration for consultation requests.

A booking runs in two phases:

* critical phase - validate the request and create the calendar event.
  Any failure here ends the booking with ``ok=False``.
* best-effort phase - confirmation emails and the CRM submission run
  concurrently once the event exists. Each task is isolated; failures are
  logged and never change the result handed back to the caller.

Requests are not deduplicated: booking the same input twice creates two
calendar events.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Dict, Optional, Tuple

import pendulum
from pendulum import DateTime

from ..domain.crm_fields import build_crm_fields
from ..domain.exceptions import (
    BookingFatalError,
    ClientInputError,
    ConsultSlotError,
    NotificationError,
    SubmissionError,
)
from ..domain.models import (
    BestEffortReport,
    BookingRequest,
    BookingResult,
    CreatedEvent,
    EventDraft,
)
from .notifications import NotificationSettings, compose_confirmation, compose_operator_notice
from .protocols import CalendarClientProtocol, CrmClientProtocol, NotifierProtocol

logger = logging.getLogger(__name__)

INVALID_REQUEST = "invalid_request"
CALENDAR_ERROR = "calendar_error"

REQUIRED_FIELDS = ("name", "email", "start_iso", "end_iso")


class BookingService:
    """
    Books consultations against a remote calendar and fans out side effects.

    Collaborators are injected so the service can be exercised with stubs.
    ``notifier`` and ``crm_client`` are optional; a missing one skips its
    stage.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        resource_id: str,
        business_timezone: str,
        notifier: Optional[NotifierProtocol] = None,
        crm_client: Optional[CrmClientProtocol] = None,
        notification_settings: Optional[NotificationSettings] = None,
        call_timeout: float = 30.0,
    ) -> None:
        self._calendar_client = calendar_client
        self._resource_id = resource_id
        self._business_timezone = business_timezone
        self._notifier = notifier
        self._crm_client = crm_client
        self._notification_settings = notification_settings
        self._call_timeout = call_timeout

    async def book(self, request: BookingRequest) -> BookingResult:
        """
        Validate, create the calendar event, then run the best-effort tasks.

        Returns:
            ``BookingResult`` - ``ok`` is decided solely by validation and
            the calendar insert.
        """
        try:
            start, end = self.validate(request)
        except ClientInputError as exc:
            logger.warning("Rejected booking request: %s", exc)
            return BookingResult.failure(str(exc), error_code=INVALID_REQUEST)

        try:
            created = await self.create_event(request, start, end)
        except BookingFatalError as exc:
            logger.error("Error creating calendar event: %s", exc)
            return BookingResult.failure(str(exc), error_code=CALENDAR_ERROR)

        if not created.conference_link:
            logger.warning("Event %s was created without a conference link", created.event_id)

        report = await self.run_best_effort(request, start, created)
        if report.failed:
            logger.warning(
                "Booking %s confirmed; best-effort task(s) failed: %s",
                created.event_id,
                ", ".join(report.failed),
            )

        return BookingResult.success(
            meeting_link=created.conference_link,
            event_url=created.event_url,
        )

    def validate(self, request: BookingRequest) -> Tuple[DateTime, DateTime]:
        """
        Check the identity fields and parse the requested time range.

        Raises:
            ClientInputError: If a required field is blank or the range is invalid
        """
        missing = [
            name for name in REQUIRED_FIELDS
            if not (getattr(request, name) or "").strip()
        ]
        if missing:
            raise ClientInputError(f"Missing required field(s): {', '.join(missing)}")

        start = self._parse_timestamp(request.start_iso, "start")
        end = self._parse_timestamp(request.end_iso, "end")

        if start >= end:
            raise ClientInputError(
                f"Start time {request.start_iso} must be before end time {request.end_iso}"
            )

        return start, end

    def build_event_draft(self, request: BookingRequest, start: DateTime, end: DateTime) -> EventDraft:
        """Describe the calendar event for a validated request."""
        subject = request.company.strip() or request.name.strip()

        return EventDraft(
            title=f"Consultation: {subject}",
            description=(
                f"Booked by: {request.name} ({request.email})\n"
                f"Primary Challenge: {request.primary_challenge}"
            ),
            start=start.in_timezone(self._business_timezone),
            end=end.in_timezone(self._business_timezone),
            attendee_emails=(request.email.strip(),),
            timezone=self._business_timezone,
            request_conference_link=True,
        )

    async def create_event(self, request: BookingRequest, start: DateTime, end: DateTime) -> CreatedEvent:
        """
        Insert the calendar event. This is the only fatal side effect.

        Raises:
            BookingFatalError: If the calendar rejects the insert or times out
        """
        draft = self.build_event_draft(request, start, end)

        try:
            created = await asyncio.wait_for(
                self._calendar_client.create_event(self._resource_id, draft),
                timeout=self._call_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise BookingFatalError(
                f"Calendar did not respond within {self._call_timeout} seconds"
            ) from exc
        except ConsultSlotError as exc:
            raise BookingFatalError(str(exc)) from exc
        except Exception as exc:
            logger.exception("Unexpected error from calendar client")
            raise BookingFatalError(f"Unexpected calendar error: {exc}") from exc

        logger.info("Event created: %s", created.event_url or created.event_id)
        return created

    async def run_best_effort(
        self,
        request: BookingRequest,
        start: DateTime,
        created: CreatedEvent,
    ) -> BestEffortReport:
        """Run notification and CRM submission concurrently, isolating failures."""
        report = BestEffortReport()
        tasks: Dict[str, Awaitable[None]] = {}

        if self._notifier is not None and self._notification_settings is not None:
            settings = self._notification_settings
            tasks["requester_confirmation"] = self._send_confirmation(request, start, created, settings)
            if settings.operator_email:
                tasks["operator_notice"] = self._send_operator_notice(request, start, settings)
            else:
                report.skipped.append("operator_notice")
        else:
            logger.info("Notification sender not configured, skipping email notification.")
            report.skipped.append("notification")

        if self._crm_client is not None:
            tasks["crm_submission"] = self._submit_to_crm(request)
        else:
            logger.info("CRM client not configured, skipping submission.")
            report.skipped.append("crm_submission")

        labels = list(tasks)
        outcomes = await asyncio.gather(
            *(self._isolate(label, tasks[label]) for label in labels)
        )

        for label, succeeded in zip(labels, outcomes):
            (report.succeeded if succeeded else report.failed).append(label)

        return report

    async def _send_confirmation(
        self,
        request: BookingRequest,
        start: DateTime,
        created: CreatedEvent,
        settings: NotificationSettings,
    ) -> None:
        message = compose_confirmation(
            request,
            start,
            created.conference_link or created.event_url,
            settings,
        )
        await self._notifier.send(message)
        logger.info("Confirmation email sent to %s", request.email)

    async def _send_operator_notice(
        self,
        request: BookingRequest,
        start: DateTime,
        settings: NotificationSettings,
    ) -> None:
        message = compose_operator_notice(request, start, settings)
        await self._notifier.send(message)
        logger.info("Operator notification sent to %s", settings.operator_email)

    async def _submit_to_crm(self, request: BookingRequest) -> None:
        await self._crm_client.submit(build_crm_fields(request))
        logger.info("Successfully submitted booking to CRM.")

    async def _isolate(self, label: str, task: Awaitable[None]) -> bool:
        try:
            await asyncio.wait_for(task, timeout=self._call_timeout)
        except asyncio.TimeoutError:
            logger.error("Best-effort task %s timed out after %ss", label, self._call_timeout)
            return False
        except (NotificationError, SubmissionError) as exc:
            logger.error("Best-effort task %s failed: %s", label, exc)
            return False
        except Exception:
            logger.exception("Unexpected error in best-effort task %s", label)
            return False
        return True

    def _parse_timestamp(self, value: str, label: str) -> DateTime:
        try:
            parsed = pendulum.parse(value.strip(), tz=self._business_timezone)
        except ValueError as exc:
            raise ClientInputError(f"Invalid {label} timestamp '{value}'") from exc

        if not isinstance(parsed, DateTime):
            raise ClientInputError(f"Invalid {label} timestamp '{value}'")

        return parsed
