"""Gmail REST client: message search and header-only message fetch."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

import httpx
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

GMAIL_API_URL = "https://gmail.googleapis.com/gmail/v1"


class GmailClient:
    """Thin Gmail API client over httpx for the calls mailsift needs.

    The bearer token comes from google-auth ``Credentials``. An expired token
    is refreshed before the next request when a refresh token is available,
    and ``on_refresh`` is called with the refreshed credentials so they can be
    cached again. Safe to share between extraction threads.

    Usage:
        client = GmailClient(credentials)
        page = client.list_messages("label:CVS after:2024/03/04", max_results=500)
        msg = client.get_message_metadata(page["messages"][0]["id"], ["To", "Date"])
    """

    def __init__(
        self,
        credentials: Credentials,
        user_id: str = "me",
        timeout: float = 30.0,
        on_refresh: Callable[[Credentials], None] | None = None,
        base_url: str = GMAIL_API_URL,
    ) -> None:
        self._credentials = credentials
        self._on_refresh = on_refresh
        self._refresh_lock = threading.Lock()
        self._http = httpx.Client(
            base_url=f"{base_url}/users/{user_id}",
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> GmailClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _authorization(self) -> str:
        """Return the Authorization header value, refreshing the token if due."""
        with self._refresh_lock:
            creds = self._credentials
            if not creds.valid and creds.refresh_token:
                creds.refresh(Request())
                if self._on_refresh is not None:
                    self._on_refresh(creds)
            return f"Bearer {creds.token}"

    def _get(self, path: str, params: dict | None = None) -> dict:
        resp = self._http.get(
            path, params=params, headers={"Authorization": self._authorization()}
        )
        resp.raise_for_status()
        return resp.json()

    def list_messages(self, query: str, max_results: int = 500) -> dict:
        """Run one messages.list search.

        Args:
            query: Gmail search query (``label:X subject:Y after:YYYY/MM/DD``).
            max_results: Page size cap; Gmail never returns more than 500.

        Returns:
            The raw response: ``messages`` (absent when nothing matched),
            ``nextPageToken`` when more results exist, ``resultSizeEstimate``.

        Raises:
            httpx.HTTPStatusError: On 4xx/5xx from Gmail (e.g. 401 revoked token).
            httpx.TransportError: On network failure or timeout.
            google.auth.exceptions.GoogleAuthError: When an expired token
                cannot be refreshed.
        """
        return self._get("/messages", params={"q": query, "maxResults": max_results})

    def get_message_metadata(self, message_id: str, headers: Sequence[str]) -> dict:
        """Fetch one message in ``metadata`` format, restricted to ``headers``.

        Returns:
            The raw message resource: ``id``, ``internalDate`` (epoch ms as a
            string) and ``payload.headers`` as ``[{"name", "value"}, ...]``.

        Raises:
            httpx.HTTPStatusError: On 4xx/5xx from Gmail.
            httpx.TransportError: On network failure or timeout.
        """
        return self._get(
            f"/messages/{message_id}",
            params={"format": "metadata", "metadataHeaders": list(headers)},
        )
