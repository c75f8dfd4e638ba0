"""
CRM submission through the Jotform form submissions API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict

import requests

from ..domain.crm_fields import to_form_payload
from ..domain.exceptions import SubmissionError

logger = logging.getLogger(__name__)


class JotformClient:
    """Posts booking fields as a new submission of a Jotform form."""

    API_ENDPOINT = "https://api.jotform.com"

    def __init__(self, api_key: str, form_id: str, timeout: float = 30, base_url: str | None = None):
        self.api_key = api_key
        self.form_id = form_id
        self.timeout = timeout
        self.base_url = (base_url or self.API_ENDPOINT).rstrip("/")

    async def submit(self, fields: Dict[int, str]) -> None:
        await asyncio.to_thread(self.submit_sync, fields)

    def submit_sync(self, fields: Dict[int, str]) -> None:
        """
        Submit the fields form-encoded as ``submission[<index>]``.

        Raises:
            SubmissionError: If Jotform rejects the submission or is unreachable
        """
        url = f"{self.base_url}/form/{self.form_id}/submissions"

        try:
            response = requests.post(
                url,
                params={"apiKey": self.api_key},
                data=to_form_payload(fields),
                timeout=self.timeout,
            )
            response.raise_for_status()

        except requests.exceptions.HTTPError as e:
            detail = e.response.text[:500] if e.response is not None else ""
            raise SubmissionError(f"Error submitting to Jotform: {e} {detail}".strip()) from e

        except requests.exceptions.RequestException as e:
            raise SubmissionError(f"Error submitting to Jotform: {e}") from e

        logger.debug("Jotform accepted submission for form %s", self.form_id)
