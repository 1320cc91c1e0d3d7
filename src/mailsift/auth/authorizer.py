"""OAuth2 authorization-code flow producing an authenticated GmailClient."""

from __future__ import annotations

import json
import webbrowser
from collections.abc import Sequence
from urllib.parse import urlsplit

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from mailsift.auth.acquirers import CodeAcquirer, LocalCallbackCodeAcquirer, ManualCodeAcquirer
from mailsift.auth.token_store import TokenStore
from mailsift.clients.gmail import GmailClient
from mailsift.core.config import MailsiftSettings
from mailsift.core.errors import AuthError
from mailsift.core.logging import get_logger
from mailsift.core.models import ClientCredentials

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


def validate_credentials(credentials: ClientCredentials) -> None:
    """Raise AuthError when the client credentials cannot possibly work."""
    missing = [
        name
        for name, value in (
            ("CLIENT_ID", credentials.client_id),
            ("CLIENT_SECRET", credentials.client_secret),
        )
        if not value
    ]
    if missing:
        raise AuthError(f"Missing OAuth client credentials: {', '.join(missing)}")
    redirect = urlsplit(credentials.redirect_uri)
    if redirect.scheme not in ("http", "https") or not redirect.netloc:
        raise AuthError(f"Invalid redirect URI: {credentials.redirect_uri!r}")


def build_code_acquirer(settings: MailsiftSettings) -> CodeAcquirer:
    """Pick the configured authorization-code strategy.

    The local listener binds the port and path of the redirect URI, so an
    explicit REDIRECT_URI and the listener can never disagree.
    """
    if settings.auth.strategy == "manual":
        return ManualCodeAcquirer()
    redirect = urlsplit(settings.redirect_uri)
    return LocalCallbackCodeAcquirer(
        port=redirect.port or settings.auth.callback_port,
        path=redirect.path or settings.auth.callback_path,
        host=redirect.hostname or "localhost",
        open_browser=webbrowser.open if settings.auth.open_browser else None,
        timeout=settings.auth.timeout_seconds,
    )


class Authorizer:
    """Turns client credentials into an authenticated GmailClient.

    A cached token is used as-is, without a validity check; the client
    refreshes it on demand. Without a cached token, one authorization attempt
    is made: build the consent URL, obtain the code through ``acquirer``,
    exchange it, and cache the resulting token.
    """

    def __init__(
        self,
        store: TokenStore,
        acquirer: CodeAcquirer,
        scopes: Sequence[str] = SCOPES,
        request_timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._acquirer = acquirer
        self._scopes = list(scopes)
        self._request_timeout = request_timeout
        self._log = get_logger("authorizer")

    def authenticate(self, credentials: ClientCredentials) -> GmailClient:
        validate_credentials(credentials)

        creds = self._load_cached()
        if creds is not None:
            self._log.info("using_cached_token")
        else:
            creds = self.authorize(credentials)

        return GmailClient(
            creds,
            timeout=self._request_timeout,
            on_refresh=self._save,
        )

    def authorize(self, credentials: ClientCredentials) -> Credentials:
        """Run one authorization-code exchange and cache the token."""
        flow = self._build_flow(credentials)
        auth_url, state = flow.authorization_url(
            access_type="offline",
            prompt="consent",
        )
        self._log.info("authorization_started", redirect_uri=credentials.redirect_uri)

        code = self._acquirer.obtain_code(auth_url, state)

        try:
            flow.fetch_token(code=code)
        except Exception as exc:
            raise AuthError(f"Token exchange failed: {exc}") from exc

        creds = flow.credentials
        try:
            self._save(creds)
        except OSError as exc:
            raise AuthError(f"Cannot cache token: {exc}") from exc
        self._log.info("authorization_completed", has_refresh_token=bool(creds.refresh_token))
        return creds

    def _build_flow(self, credentials: ClientCredentials) -> Flow:
        client_config = {
            "installed": {
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [credentials.redirect_uri],
            }
        }
        try:
            return Flow.from_client_config(
                client_config,
                scopes=self._scopes,
                redirect_uri=credentials.redirect_uri,
            )
        except ValueError as exc:
            raise AuthError(f"Invalid OAuth client configuration: {exc}") from exc

    def _load_cached(self) -> Credentials | None:
        info = self._store.load()
        if info is None:
            return None
        try:
            return Credentials.from_authorized_user_info(info, self._scopes)
        except ValueError as exc:
            self._log.warning("cached_token_unusable", error=str(exc))
            return None

    def _save(self, creds: Credentials) -> None:
        self._store.save(json.loads(creds.to_json()))
