"""
Adapters layer - External integrations (Microsoft Graph, Brevo, Jotform).
"""

from .brevo_notifier import BrevoNotifier
from .graph_authenticator import GraphAuthenticator
from .graph_client import GraphCalendarClient
from .jotform_client import JotformClient
from .mock_calendar_client import MockCalendarClient

__all__ = [
    "BrevoNotifier",
    "GraphAuthenticator",
    "GraphCalendarClient",
    "JotformClient",
    "MockCalendarClient",
]
