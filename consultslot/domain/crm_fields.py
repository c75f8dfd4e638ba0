"""
Mapping of booking requests onto the CRM form's numbered fields.

The indices belong to the external form definition and must not change.
"""

from typing import Dict

from .models import BookingRequest

NAME_FIELD = 6
EMAIL_FIELD = 7
COMPANY_FIELD = 8
WEBSITE_FIELD = 9
TIMEZONE_FIELD = 10
FOCUS_AREAS_FIELD = 11
TARGET_COUNTRIES_FIELD = 12
TIMELINE_FIELD = 13
PRIMARY_CHALLENGE_FIELD = 15
SCHEDULE_FIELD = 16


def build_crm_fields(request: BookingRequest) -> Dict[int, str]:
    """Map a booking request to ``{field index: value}``."""
    return {
        NAME_FIELD: request.name,
        EMAIL_FIELD: request.email,
        COMPANY_FIELD: request.company,
        WEBSITE_FIELD: request.website,
        TIMEZONE_FIELD: request.timezone,
        FOCUS_AREAS_FIELD: "\n".join(request.focus_areas),
        TARGET_COUNTRIES_FIELD: ", ".join(request.target_countries),
        TIMELINE_FIELD: request.timeline,
        PRIMARY_CHALLENGE_FIELD: request.primary_challenge,
        SCHEDULE_FIELD: f"From: {request.start_iso}\nTo: {request.end_iso}",
    }


def to_form_payload(fields: Dict[int, str]) -> Dict[str, str]:
    """Render field indices as ``submission[<index>]`` form keys."""
    return {f"submission[{index}]": value for index, value in sorted(fields.items())}
