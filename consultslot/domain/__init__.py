"""
Domain layer - Pure business logic without external dependencies.
"""

from .crm_fields import build_crm_fields, to_form_payload
from .models import (
    BookingRequest,
    BookingResult,
    CreatedEvent,
    DayAvailability,
    EmailAddress,
    EmailMessage,
    EventDraft,
    SlotCandidate,
    TimeRange,
    WorkingHours,
)
from .slot_generator import SlotGenerator, generate_slots

__all__ = [
    "BookingRequest",
    "BookingResult",
    "CreatedEvent",
    "DayAvailability",
    "EmailAddress",
    "EmailMessage",
    "EventDraft",
    "SlotCandidate",
    "SlotGenerator",
    "TimeRange",
    "WorkingHours",
    "build_crm_fields",
    "generate_slots",
    "to_form_payload",
]
