"""HarvestWorkflow: one run of query -> list -> extract -> persist."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import click

from mailsift.clients.gmail import GmailClient
from mailsift.core.config import MailsiftSettings
from mailsift.core.logging import get_logger
from mailsift.core.models import EmailRecord
from mailsift.workflows.extraction import extract_all
from mailsift.workflows.listing import list_messages
from mailsift.workflows.persistence import persist
from mailsift.workflows.query import build_query


@dataclass(frozen=True)
class HarvestResult:
    """What one run produced."""

    query: str
    records: list[EmailRecord] = field(default_factory=list)
    phone_numbers: list[str] = field(default_factory=list)
    truncated: bool = False


class HarvestWorkflow:
    """Orchestrates the harvest pipeline against an authenticated client.

    Contains sequencing only; each stage lives in its own module:
    1. Build the search query from ``settings.query``
    2. List matching message refs (single capped page)
    3. Extract header metadata for every ref concurrently
    4. Save the records and cross-reference recipients with the phone mapping

    When nothing matches, nothing is written.
    """

    def __init__(self, gmail: GmailClient, settings: MailsiftSettings) -> None:
        self._gmail = gmail
        self._settings = settings
        self._log = get_logger("harvest")

    def run(self, now: datetime | None = None) -> HarvestResult:
        now = now or datetime.now()
        q = self._settings.query

        query = build_query(q.label, q.subject, q.lookback_days, now)
        click.echo(f"Fetching emails with query: {query}")

        listing = list_messages(self._gmail, query, cap=q.max_results)
        click.echo(f"Found {len(listing)} emails matching the criteria")
        if listing.truncated:
            click.echo(
                f"Note: more than {listing.cap} emails matched; only the first "
                f"{listing.cap} were processed."
            )
        if not listing.refs:
            return HarvestResult(query=query, truncated=listing.truncated)

        records = extract_all(
            self._gmail,
            listing.refs,
            max_in_flight=self._settings.extraction.max_in_flight,
        )
        click.echo(f"Completed processing {len(records)} emails")

        out = self._settings.output
        phone_numbers = persist(records, out.mapping_path, out.directory, now)

        self._log.info(
            "harvest_complete",
            listed=len(listing),
            failed=sum(1 for r in records if r.error is not None),
            phone_matches=len(phone_numbers),
            truncated=listing.truncated,
        )
        return HarvestResult(
            query=query,
            records=records,
            phone_numbers=phone_numbers,
            truncated=listing.truncated,
        )
