"""Click CLI entry point for Mailsift.

Provides `run` and `auth` subcommands. When invoked without a subcommand
(e.g. `python -m mailsift`), runs the full pipeline.
"""

import click


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Mailsift: pull labelled Gmail messages and match recipients to phone numbers."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
def run() -> None:
    """Authenticate, fetch, extract, save and summarize."""
    from mailsift.__main__ import main

    main()


@cli.command()
def auth() -> None:
    """Only authorize with Google and cache the token."""
    from mailsift.__main__ import authorize_only

    authorize_only()
