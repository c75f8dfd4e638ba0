"""
Wiring of adapters and services from the application configuration.
"""

import logging
from dataclasses import dataclass

from .adapters.brevo_notifier import BrevoNotifier
from .adapters.graph_authenticator import GraphAuthenticator
from .adapters.graph_client import GraphCalendarClient
from .adapters.jotform_client import JotformClient
from .adapters.mock_calendar_client import MockCalendarClient
from .config import AppConfig
from .domain.slot_generator import SlotGenerator
from .services.availability import AvailabilityService
from .services.booking import BookingService
from .services.notifications import NotificationSettings

logger = logging.getLogger(__name__)

MOCK_RESOURCE_ID = "mock-calendar"


@dataclass
class Services:
    availability: AvailabilityService
    booking: BookingService


def build_services(config: AppConfig, mock: bool = False) -> Services:
    """
    Build the availability and booking services for a configuration.

    In mock mode the calendar is simulated and no email or CRM submission
    is attempted.

    Raises:
        ValueError: If the calendar credentials are incomplete outside mock mode
    """
    business = config.business
    timeout = config.booking.call_timeout_seconds

    if mock:
        calendar_client = MockCalendarClient(timezone=business.timezone)
        resource_id = config.calendar.resource_id or MOCK_RESOURCE_ID
    else:
        if not config.calendar.is_configured():
            raise ValueError(
                "Calendar credentials incomplete: client_id, tenant_id, client_secret "
                "and resource_id are required (or use --mock)."
            )
        authenticator = GraphAuthenticator(
            client_id=config.calendar.client_id,
            tenant_id=config.calendar.tenant_id,
            client_secret=config.calendar.client_secret,
            authority_url=config.calendar.get_authority_url(),
        )
        calendar_client = GraphCalendarClient(authenticator=authenticator, timeout=timeout)
        resource_id = config.calendar.resource_id

    slot_generator = SlotGenerator(
        working_hours=business.get_working_hours(),
        slot_duration=business.get_slot_duration(),
        step_interval=business.get_step_interval(),
    )

    availability = AvailabilityService(
        calendar_client=calendar_client,
        slot_generator=slot_generator,
        resource_id=resource_id,
        max_range_days=business.max_range_days,
        call_timeout=timeout,
    )

    notifier = None
    notification_settings = None
    notifications = config.notifications
    if not mock and notifications.is_configured():
        notifier = BrevoNotifier(api_key=notifications.brevo_api_key, timeout=timeout)
        notification_settings = NotificationSettings(
            sender_email=notifications.sender_email,
            operator_email=notifications.operator_email,
            sender_name=notifications.sender_name,
            system_sender_name=notifications.system_sender_name,
            brand_name=notifications.brand_name,
            logo_url=notifications.logo_url,
            fallback_timezone=business.timezone,
        )
    elif not mock:
        logger.info("Brevo API key or sender not configured; email notifications disabled.")

    crm_client = None
    if not mock and config.crm.is_configured():
        crm_client = JotformClient(
            api_key=config.crm.jotform_api_key,
            form_id=config.crm.form_id,
            timeout=timeout,
            base_url=config.crm.base_url,
        )
    elif not mock:
        logger.info("Jotform credentials not configured; CRM submission disabled.")

    booking = BookingService(
        calendar_client=calendar_client,
        resource_id=resource_id,
        business_timezone=business.timezone,
        notifier=notifier,
        crm_client=crm_client,
        notification_settings=notification_settings,
        call_timeout=timeout,
    )

    return Services(availability=availability, booking=booking)
