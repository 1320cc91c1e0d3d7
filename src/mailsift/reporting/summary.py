"""Operator-facing summary of a harvest run."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence

import click

from mailsift.core.models import EmailRecord

# ANSI color codes
_GREEN = "\033[32m"
_RED = "\033[31m"
_DIM = "\033[2m"
_RESET = "\033[0m"
_CYAN = "\033[36m"


def _use_color() -> bool:
    """Return True if ANSI color should be used."""
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color(text: str, code: str) -> str:
    if not _use_color():
        return text
    return f"{code}{text}{_RESET}"


def _record_lines(index: int, record: EmailRecord) -> list[str]:
    lines = [
        "",
        _color(f"--- Email {index} ---", _CYAN),
        f"To: {record.to or 'N/A'}",
        f"Date: {record.date or 'N/A'}",
    ]
    if record.error:
        lines.append(_color(f"Error: {record.error}", _RED))
    return lines


def summarize(
    records: Sequence[EmailRecord],
    phone_numbers: Sequence[str] = (),
    detailed: bool = False,
    echo: Callable[[str], None] = click.echo,
) -> None:
    """Print the total count, optionally one block per record, and phone matches."""
    echo("")
    echo(_color("===== Email Summary =====", _GREEN))
    echo(f"Total emails: {len(records)}")

    failed = sum(1 for r in records if r.error is not None)
    if failed:
        echo(_color(f"Failed to extract: {failed}", _RED))

    if detailed:
        for index, record in enumerate(records, start=1):
            for line in _record_lines(index, record):
                echo(line)

    if phone_numbers:
        echo("")
        echo(f"Matched phone numbers: {len(phone_numbers)}")
        for phone in phone_numbers:
            echo(f"  {phone}")
    elif records:
        echo(_color("No recipients matched the phone mapping.", _DIM))
