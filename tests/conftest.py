"""Shared test fixtures for mailsift."""

from datetime import datetime

import pytest
from google.oauth2.credentials import Credentials

from mailsift.clients.gmail import GmailClient
from mailsift.core.config import MailsiftSettings

GMAIL_MESSAGES_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages"


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Run every test in an empty cwd with a blank config.yaml and clean env.

    Removes real CLIENT_* / MAILSIFT_* variables from the host environment and
    moves into tmp_path so no real .env, token.json or output/ is touched.
    Tests that need custom config values write their own YAML and point
    MAILSIFT_CONFIG at it.
    """
    for var in [
        "CLIENT_ID",
        "CLIENT_SECRET",
        "REDIRECT_URI",
        "MAILSIFT_CLIENT_ID",
        "MAILSIFT_CLIENT_SECRET",
        "MAILSIFT_REDIRECT_URI",
        "MAILSIFT_CONFIG",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    config = tmp_path / "config.yaml"
    config.write_text("")  # empty = all defaults
    monkeypatch.setenv("MAILSIFT_CONFIG", str(config))


@pytest.fixture
def mock_settings(monkeypatch):
    """MailsiftSettings with OAuth client env vars set."""
    monkeypatch.setenv("CLIENT_ID", "client-123.apps.googleusercontent.com")
    monkeypatch.setenv("CLIENT_SECRET", "s3cret")
    return MailsiftSettings()


@pytest.fixture
def credentials() -> Credentials:
    """Credentials with a non-expiring access token (no refresh needed)."""
    return Credentials(token="ya29.test-access-token")


@pytest.fixture
def gmail(credentials) -> GmailClient:
    client = GmailClient(credentials)
    yield client
    client.close()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 10, 14, 5, 9)


class FakeGmail:
    """In-memory stand-in for GmailClient used by workflow tests.

    ``messages`` maps message id -> raw metadata resource, or an exception
    instance to raise for that id.
    """

    def __init__(self, listing: dict | None = None, messages: dict | None = None) -> None:
        self.listing = listing if listing is not None else {"resultSizeEstimate": 0}
        self.messages = messages or {}
        self.list_calls: list[tuple[str, int]] = []
        self.get_calls: list[str] = []

    def list_messages(self, query: str, max_results: int = 500) -> dict:
        self.list_calls.append((query, max_results))
        if isinstance(self.listing, Exception):
            raise self.listing
        return self.listing

    def get_message_metadata(self, message_id: str, headers) -> dict:
        self.get_calls.append(message_id)
        result = self.messages[message_id]
        if isinstance(result, Exception):
            raise result
        return result


def metadata_message(message_id: str, headers: dict | list | None = None, internal_date="1710072000000") -> dict:
    """Build a Gmail metadata-format message resource."""
    if isinstance(headers, dict):
        headers = [{"name": k, "value": v} for k, v in headers.items()]
    message = {
        "id": message_id,
        "threadId": f"t-{message_id}",
        "payload": {"headers": headers or []},
    }
    if internal_date is not None:
        message["internalDate"] = internal_date
    return message
