"""
Domain-specific exception hierarchy for the consultation booking service.
"""


class ConsultSlotError(Exception):
    """Base class for all application-level errors."""


class ClientInputError(ConsultSlotError):
    """Raised when caller-supplied input is missing or malformed."""


class CalendarAPIError(ConsultSlotError):
    """Raised when calendar data cannot be fetched, written or parsed."""


class AuthenticationError(CalendarAPIError):
    """Raised when authentication or token handling fails."""


class AvailabilityFetchError(ConsultSlotError):
    """Raised when busy intervals cannot be retrieved for an availability query."""


class BookingFatalError(ConsultSlotError):
    """Raised when the calendar event for a booking could not be created."""


class NotificationError(ConsultSlotError):
    """Raised when a notification email could not be delivered."""


class SubmissionError(ConsultSlotError):
    """Raised when a CRM form submission fails."""
