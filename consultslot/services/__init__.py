"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService
from .booking import BookingService
from .notifications import NotificationSettings
from .protocols import CalendarClientProtocol, CrmClientProtocol, NotifierProtocol

__all__ = [
    "AvailabilityService",
    "BookingService",
    "CalendarClientProtocol",
    "CrmClientProtocol",
    "NotificationSettings",
    "NotifierProtocol",
]
