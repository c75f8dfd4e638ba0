"""
Collaborator contracts consumed by the application services.

Adapters in ``consultslot.adapters`` implement these; tests use stubs.
"""

from __future__ import annotations

from typing import Dict, List, Protocol

from pendulum import DateTime

from ..domain.models import CreatedEvent, EmailMessage, EventDraft, TimeRange


class CalendarClientProtocol(Protocol):
    """Remote calendar operations needed for availability and booking."""

    async def query_busy(
        self,
        resource_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """Return busy intervals of the resource within the window."""

    async def create_event(self, resource_id: str, draft: EventDraft) -> CreatedEvent:
        """Insert an event and return its link and conference link."""


class NotifierProtocol(Protocol):
    """Transactional email sender."""

    async def send(self, message: EmailMessage) -> None:
        """Deliver a single message."""


class CrmClientProtocol(Protocol):
    """CRM form submission."""

    async def submit(self, fields: Dict[int, str]) -> None:
        """Submit a mapping of form field index to value."""
