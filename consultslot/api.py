"""
HTTP API exposing availability lookup and consultation booking.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .bootstrap import Services
from .domain.exceptions import AvailabilityFetchError, ClientInputError
from .domain.models import BookingRequest, DayAvailability, SlotCandidate
from .services.booking import INVALID_REQUEST

logger = logging.getLogger(__name__)


class BookingPayload(BaseModel):
    """
    Booking form as posted by the website.

    Every field is optional here; the booking service decides what is
    missing so that the caller gets a single, consistent error shape.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    timezone: Optional[str] = None
    focus_areas: List[str] = Field(default_factory=list, alias="focusAreas")
    target_countries: List[str] = Field(default_factory=list, alias="targetCountries")
    timeline: Optional[str] = None
    primary_challenge: Optional[str] = Field(default=None, alias="primaryChallenge")
    start_iso: Optional[str] = Field(default=None, alias="startISO")
    end_iso: Optional[str] = Field(default=None, alias="endISO")

    def to_request(self) -> BookingRequest:
        return BookingRequest(
            name=self.name or "",
            email=self.email or "",
            company=self.company or "",
            website=self.website or "",
            timezone=self.timezone or "",
            focus_areas=tuple(self.focus_areas),
            target_countries=tuple(self.target_countries),
            timeline=self.timeline or "",
            primary_challenge=self.primary_challenge or "",
            start_iso=self.start_iso or "",
            end_iso=self.end_iso or "",
        )


def serialize_slot(slot: SlotCandidate) -> dict:
    return {
        "startISO": slot.start.in_timezone("UTC").to_iso8601_string(),
        "endISO": slot.end.in_timezone("UTC").to_iso8601_string(),
    }


def serialize_day(day: DayAvailability) -> dict:
    return {
        "date": day.date.to_date_string(),
        "slots": [serialize_slot(slot) for slot in day.available_slots()],
    }


def describe_validation_error(exc: RequestValidationError) -> str:
    """Summarize FastAPI validation errors as one line naming the offending fields."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query"))
        problems.append(f"{location or 'request'}: {error.get('msg', 'invalid value')}")
    return "Invalid request: " + "; ".join(problems)


def create_app(services: Services) -> FastAPI:
    """Create the FastAPI application around already-built services."""
    app = FastAPI(
        title="Consultation Booking API",
        description="Availability lookup and consultation booking",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = services

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = describe_validation_error(exc)
        logger.warning("Rejected request to %s: %s", request.url.path, message)
        if request.url.path == "/book":
            return JSONResponse(status_code=400, content={"ok": False, "error": message})
        return JSONResponse(status_code=400, content={"error": message})

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": __version__}

    @app.get("/availability")
    async def availability(start: str, end: Optional[str] = None, tz: Optional[str] = None):
        """Available slots per day for ``start``..``end`` (YYYY-MM-DD)."""
        timezone = tz or services.availability.business_timezone
        try:
            days = await services.availability.get_availability(
                start_date=start,
                end_date=end,
                timezone=timezone,
            )
        except ClientInputError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except AvailabilityFetchError:
            return JSONResponse(status_code=500, content={"error": "Failed to fetch availability"})

        return {"days": [serialize_day(day) for day in days]}

    @app.post("/book")
    async def book(payload: BookingPayload):
        """Book a consultation and trigger the confirmation side effects."""
        logger.info("Received booking request for %s", payload.email)

        result = await services.booking.book(payload.to_request())

        if not result.ok:
            status_code = 400 if result.error_code == INVALID_REQUEST else 500
            return JSONResponse(status_code=status_code, content={"ok": False, "error": result.error})

        return {
            "ok": True,
            "message": "Consultation booked successfully!",
            "meetLink": result.meeting_link,
        }

    return app
