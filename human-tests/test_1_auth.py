"""Human test 1: OAuth authorization + token cache (read-only, safe).

Runs the configured authorization strategy against your Google OAuth client
(CLIENT_ID / CLIENT_SECRET in human-tests/.env) and lists one page of
message IDs to prove the token works. Delete token.json first to exercise
the full consent flow; re-run to confirm the cached token is reused.
"""

import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

from mailsift.__main__ import build_authorizer
from mailsift.core.config import MailsiftSettings
from mailsift.core.errors import AuthError

settings = MailsiftSettings()
token_path = settings.auth.token_path
print(f"Token cache: {token_path.resolve()} ({'present' if token_path.exists() else 'absent'})")
print(f"Strategy: {settings.auth.strategy}, redirect URI: {settings.redirect_uri}")

try:
    client = build_authorizer(settings).authenticate(settings.client_credentials)
except AuthError as e:
    print(f"\n--- FAIL ---\n{e}")
    sys.exit(1)

with client:
    page = client.list_messages("in:inbox", max_results=5)

print(f"\nToken works: {len(page.get('messages') or [])} inbox message IDs listed")
print(f"Refresh token cached: {bool(client.credentials.refresh_token)}")
print("\n--- PASS ---")
