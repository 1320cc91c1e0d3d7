"""Message Lister: one capped messages.list call."""

from __future__ import annotations

import httpx
from google.auth.exceptions import GoogleAuthError

from mailsift.clients.gmail import GmailClient
from mailsift.core.errors import FetchError
from mailsift.core.logging import get_logger
from mailsift.core.models import MessageListing, MessageRef

DEFAULT_CAP = 500


def list_messages(client: GmailClient, query: str, cap: int = DEFAULT_CAP) -> MessageListing:
    """List message refs matching ``query``, at most ``cap`` of them.

    No pagination: anything past the cap is left out and the listing is
    marked ``truncated`` instead.

    Raises:
        FetchError: On any transport or API failure (including a failed token
            refresh or a failed save of the refreshed token), or a malformed
            response.
    """
    log = get_logger("lister")
    try:
        data = client.list_messages(query, max_results=cap)
        raw = data.get("messages") or []
        refs = [MessageRef(id=m["id"], thread_id=m.get("threadId")) for m in raw]
    except (httpx.HTTPError, GoogleAuthError, OSError) as exc:
        raise FetchError(f"Listing messages failed for query {query!r}: {exc}") from exc
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise FetchError(f"Malformed messages.list response: {exc!r}") from exc

    truncated = bool(data.get("nextPageToken")) or len(refs) > cap
    listing = MessageListing(refs=tuple(refs[:cap]), cap=cap, truncated=truncated)

    log.info("messages_listed", query=query, count=len(listing), cap=cap)
    if listing.truncated:
        log.warning(
            "listing_truncated",
            cap=cap,
            result_size_estimate=data.get("resultSizeEstimate"),
        )
    return listing
