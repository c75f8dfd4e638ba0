"""
Microsoft Graph API authentication using MSAL (client credentials flow).
"""

from __future__ import annotations

import logging

import msal

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class GraphAuthenticator:
    """
    Acquires application tokens for Microsoft Graph.

    The booking service runs unattended, so it authenticates as the app
    registration itself rather than through an interactive sign-in. MSAL
    keeps the token in its in-memory cache and renews it when it expires.
    """

    SCOPES = ["https://graph.microsoft.com/.default"]

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        client_secret: str,
        authority_url: str | None = None,
    ):
        """
        Initialize the authenticator.

        Args:
            client_id: Azure AD application (client) ID
            tenant_id: Azure AD tenant ID
            client_secret: Client secret of the application
            authority_url: Optional custom authority URL
        """
        self.client_id = client_id
        self.tenant_id = tenant_id

        if authority_url:
            self.authority = authority_url
        else:
            self.authority = f"https://login.microsoftonline.com/{tenant_id}"

        self.app = msal.ConfidentialClientApplication(
            client_id=self.client_id,
            authority=self.authority,
            client_credential=client_secret,
        )

    def get_access_token(self) -> str:
        """
        Get a valid access token, served from the MSAL cache when possible.

        Returns:
            Access token string

        Raises:
            AuthenticationError: If the token request fails
        """
        try:
            result = self.app.acquire_token_for_client(scopes=self.SCOPES)
        except Exception as exc:  # pragma: no cover - MSAL internal failure
            raise AuthenticationError(f"Token request failed: {exc}") from exc

        if not result or "access_token" not in result:
            error = (result or {}).get("error_description", "Unknown error")
            logger.error("Graph authentication failed: %s", error)
            raise AuthenticationError(f"Authentication failed: {error}")

        return result["access_token"]
