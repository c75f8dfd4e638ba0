"""
Transactional email delivery through the Brevo REST API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

import requests

from ..domain.exceptions import NotificationError
from ..domain.models import EmailAddress, EmailMessage

logger = logging.getLogger(__name__)


class BrevoNotifier:
    """Sends ``EmailMessage`` objects via Brevo's ``/smtp/email`` endpoint."""

    API_ENDPOINT = "https://api.brevo.com/v3/smtp/email"

    def __init__(self, api_key: str, timeout: float = 30, endpoint: str | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.endpoint = endpoint or self.API_ENDPOINT

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self.send_sync, message)

    def send_sync(self, message: EmailMessage) -> None:
        """
        Deliver a message.

        Raises:
            NotificationError: If Brevo rejects the message or is unreachable
        """
        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }

        try:
            response = requests.post(
                self.endpoint,
                headers=headers,
                json=self.build_payload(message),
                timeout=self.timeout,
            )
            response.raise_for_status()

        except requests.exceptions.HTTPError as e:
            detail = e.response.text[:500] if e.response is not None else ""
            raise NotificationError(f"Brevo rejected email '{message.subject}': {e} {detail}".strip()) from e

        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Error sending email via Brevo: {e}") from e

        logger.debug("Brevo accepted email '%s'", message.subject)

    @staticmethod
    def build_payload(message: EmailMessage) -> Dict[str, Any]:
        """Translate a message into Brevo's JSON shape."""
        payload: Dict[str, Any] = {
            "sender": _address(message.sender),
            "to": [_address(recipient) for recipient in message.to],
            "subject": message.subject,
        }
        if message.html_body:
            payload["htmlContent"] = message.html_body
        if message.text_body:
            payload["textContent"] = message.text_body
        return payload


def _address(address: EmailAddress) -> Dict[str, str]:
    entry = {"email": address.email}
    if address.name:
        entry["name"] = address.name
    return entry
