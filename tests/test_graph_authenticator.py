"""
Tests for MSAL token acquisition.
"""

import pytest

from consultslot.adapters import graph_authenticator
from consultslot.adapters.graph_authenticator import GraphAuthenticator
from consultslot.domain.exceptions import AuthenticationError


class FakeConfidentialClient:
    result = {"access_token": "token-abc", "expires_in": 3600}

    def __init__(self, client_id, authority, client_credential):
        self.client_id = client_id
        self.authority = authority
        self.client_credential = client_credential
        self.scopes = []

    def acquire_token_for_client(self, scopes):
        self.scopes.append(scopes)
        return self.result


@pytest.fixture(autouse=True)
def fake_msal(monkeypatch):
    monkeypatch.setattr(graph_authenticator.msal, "ConfidentialClientApplication", FakeConfidentialClient)


def test_token_from_client_credentials():
    auth = GraphAuthenticator(client_id="client", tenant_id="tenant", client_secret="secret")

    assert auth.get_access_token() == "token-abc"
    assert auth.app.authority == "https://login.microsoftonline.com/tenant"
    assert auth.app.client_credential == "secret"
    assert auth.app.scopes == [["https://graph.microsoft.com/.default"]]


def test_custom_authority():
    auth = GraphAuthenticator(
        client_id="client",
        tenant_id="tenant",
        client_secret="secret",
        authority_url="https://login.microsoftonline.us/tenant",
    )

    assert auth.app.authority == "https://login.microsoftonline.us/tenant"


def test_failed_token_request(monkeypatch):
    monkeypatch.setattr(
        FakeConfidentialClient,
        "result",
        {"error": "invalid_client", "error_description": "AADSTS7000215: Invalid client secret"},
    )
    auth = GraphAuthenticator(client_id="client", tenant_id="tenant", client_secret="wrong")

    with pytest.raises(AuthenticationError, match="Invalid client secret"):
        auth.get_access_token()
