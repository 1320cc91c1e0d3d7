"""Metadata Extractor: To/Date headers and internal timestamp per message."""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from mailsift.clients.gmail import GmailClient
from mailsift.core.errors import ExtractionError
from mailsift.core.logging import get_logger
from mailsift.core.models import EmailRecord, MessageRef

METADATA_HEADERS = ("To", "Date")


def header_value(headers: list[dict], name: str) -> str | None:
    """Return the first header called exactly ``name`` (case-sensitive)."""
    for header in headers:
        if header.get("name") == name:
            return header.get("value")
    return None


def parse_internal_date(value: object) -> int | None:
    """Parse Gmail's ``internalDate`` (epoch ms as a string); None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract(client: GmailClient, ref: MessageRef) -> EmailRecord:
    """Build the EmailRecord for one message. Never raises.

    Any failure (HTTP error, timeout, malformed payload) is caught here and
    returned as a record carrying ``error`` with every data field None.
    """
    try:
        message = client.get_message_metadata(ref.id, METADATA_HEADERS)
        payload = message.get("payload")
        if not isinstance(payload, dict):
            raise ExtractionError(f"Message {ref.id} has no header payload")
        headers = payload.get("headers") or []
        return EmailRecord(
            id=ref.id,
            to=header_value(headers, "To"),
            date=header_value(headers, "Date"),
            timestamp=parse_internal_date(message.get("internalDate")),
        )
    except Exception as exc:
        get_logger("extractor").warning(
            "extraction_failed", message_id=ref.id, error=str(exc)
        )
        return EmailRecord.failed(ref.id, str(exc) or type(exc).__name__)


def extract_all(
    client: GmailClient,
    refs: Sequence[MessageRef],
    max_in_flight: int | None = None,
) -> list[EmailRecord]:
    """Extract every ref concurrently and return records in listing order.

    Args:
        client: Authenticated Gmail client, shared by all workers.
        refs: Refs from the lister; their count bounds the fan-out.
        max_in_flight: Worker ceiling. None means one worker per ref.

    Returns:
        One record per ref, after all extractions have settled.
    """
    if not refs:
        return []

    log = get_logger("extractor")
    workers = min(max_in_flight or len(refs), len(refs))
    log.info("extraction_started", messages=len(refs), workers=workers)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="extract") as pool:
        records = list(pool.map(lambda ref: extract(client, ref), refs))

    failed = sum(1 for r in records if r.error is not None)
    log.info("extraction_completed", messages=len(records), failed=failed)
    return records
