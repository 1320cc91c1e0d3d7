"""Mailsift batch entry point.

One invocation runs the whole pipeline and exits:
- Authenticate (cached token, or one OAuth authorization)
- Search the configured label/subject/lookback window (single capped page)
- Extract To/Date/internal timestamp for every match, concurrently
- Save the records to output/emails_<timestamp>.json and match phone numbers
- Print a summary

Any fatal error is logged with context and exits with status 1.
Per-message extraction failures are not fatal; they are recorded inline.
"""

import sys

import click

from mailsift.auth.authorizer import Authorizer, build_code_acquirer
from mailsift.auth.token_store import FileTokenStore
from mailsift.core.config import MailsiftSettings
from mailsift.core.logging import configure_logging, get_logger
from mailsift.reporting.summary import summarize
from mailsift.workflows.harvest import HarvestWorkflow


def build_authorizer(settings: MailsiftSettings) -> Authorizer:
    """Wire the token store and code acquirer selected by config."""
    return Authorizer(
        store=FileTokenStore(settings.auth.token_path),
        acquirer=build_code_acquirer(settings),
        request_timeout=settings.extraction.request_timeout,
    )


def main() -> None:
    """Run the full harvest pipeline once."""
    settings = MailsiftSettings()
    configure_logging(settings.log_level)
    log = get_logger("main")

    try:
        click.echo("Starting Gmail processing...")
        click.echo("Authenticating with Gmail API...")
        with build_authorizer(settings).authenticate(settings.client_credentials) as gmail:
            result = HarvestWorkflow(gmail, settings).run()
    except Exception:
        log.error("run_failed", exc_info=True)
        sys.exit(1)

    if result.records:
        summarize(
            result.records,
            result.phone_numbers,
            detailed=settings.output.detailed_summary,
        )
    else:
        click.echo("No emails found matching the criteria.")

    click.echo("\nGmail processing completed successfully.")


def authorize_only() -> None:
    """Run the OAuth flow (if no token is cached) and exit."""
    settings = MailsiftSettings()
    configure_logging(settings.log_level)
    log = get_logger("main")

    try:
        build_authorizer(settings).authenticate(settings.client_credentials).close()
    except Exception:
        log.error("authorization_failed", exc_info=True)
        sys.exit(1)

    click.echo(f"Token stored at: {settings.auth.token_path}")


if __name__ == "__main__":
    from mailsift.cli import cli

    cli()
