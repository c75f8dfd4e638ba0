"""
Composition of the booking confirmation emails.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional

from pendulum import DateTime

from ..domain.models import BookingRequest, EmailAddress, EmailMessage
from ..domain.timezones import resolve_timezone

DATETIME_FORMAT = "dddd, D MMMM YYYY [at] h:mm A (z)"


@dataclass(frozen=True)
class NotificationSettings:
    """Sender identities and branding used in outgoing emails."""
    sender_email: str
    operator_email: Optional[str] = None
    sender_name: str = "SEO-ku Consulting"
    system_sender_name: str = "SEO-ku Booking System"
    brand_name: str = "SEO-ku"
    logo_url: Optional[str] = None
    fallback_timezone: str = "Asia/Kuala_Lumpur"


def format_meeting_time(start: DateTime, timezone: str | None, fallback: str) -> str:
    """Format the meeting start for humans in the requester's timezone."""
    tz = resolve_timezone(timezone, fallback)
    return start.in_timezone(tz).format(DATETIME_FORMAT)


def compose_confirmation(
    request: BookingRequest,
    start: DateTime,
    meeting_link: Optional[str],
    settings: NotificationSettings,
) -> EmailMessage:
    """Build the HTML confirmation sent to the person who booked."""
    when = format_meeting_time(start, request.timezone, settings.fallback_timezone)
    link = escape(meeting_link or "", quote=True)

    logo = ""
    if settings.logo_url:
        logo = (
            f'<img src="{escape(settings.logo_url, quote=True)}" alt="{escape(settings.brand_name)} Logo" '
            'style="width: 150px; margin-bottom: 20px;">'
        )

    link_line = f'<a href="{link}">{link}</a>' if meeting_link else "To follow in your calendar invitation"

    html_body = f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
      {logo}
      <h3>Hi {escape(request.name)},</h3>
      <p>Thank you for booking a consultation. Your meeting is confirmed!</p>
      <div style="background-color: #f4f4f4; padding: 15px; border-radius: 5px;">
        <strong>Topic:</strong> Consultation for {escape(request.company)}<br>
        <strong>Date & Time:</strong> {escape(when)}<br>
        <strong>Meeting Link:</strong> {link_line}
      </div>
      <p>An official invitation has been sent to your calendar separately. We look forward to speaking with you.</p>
      <br/>
      <p>Best regards,</p>
      <p><strong>The {escape(settings.brand_name)} Team</strong></p>
    </div>
    """

    return EmailMessage(
        sender=EmailAddress(email=settings.sender_email, name=settings.sender_name),
        to=(EmailAddress(email=request.email, name=request.name),),
        subject=f"Your Consultation is Confirmed: {request.company}",
        html_body=html_body,
    )


def compose_operator_notice(
    request: BookingRequest,
    start: DateTime,
    settings: NotificationSettings,
) -> EmailMessage:
    """Build the plain-text notice sent to the operator mailbox."""
    if not settings.operator_email:
        raise ValueError("No operator email configured")

    when = format_meeting_time(start, request.timezone, settings.fallback_timezone)

    return EmailMessage(
        sender=EmailAddress(email=settings.sender_email, name=settings.system_sender_name),
        to=(EmailAddress(email=settings.operator_email),),
        subject=f"New Booking: {request.company}",
        text_body=(
            f"A new consultation has been booked with {request.name} ({request.email}) "
            f"for {when}. The event has been added to the calendar."
        ),
    )
