"""Gmail search query construction."""

from __future__ import annotations

from datetime import date, datetime, timedelta


def format_query_date(day: date) -> str:
    """Format a date the way Gmail's ``after:``/``before:`` operators expect."""
    return day.strftime("%Y/%m/%d")


def lookback_start(lookback_days: int, now: datetime | None = None) -> date:
    """Return the local calendar date ``lookback_days`` days before ``now``.

    An aware ``now`` is converted to local time first, so the bound follows
    the operator's calendar rather than UTC.
    """
    if now is None:
        now = datetime.now()
    elif now.tzinfo is not None:
        now = now.astimezone()
    return now.date() - timedelta(days=lookback_days)


def build_query(
    label: str,
    subject_filter: str,
    lookback_days: int,
    now: datetime | None = None,
) -> str:
    """Compose ``label:<label> subject:<subject> after:<YYYY/MM/DD>``.

    Clauses are space-separated, which Gmail reads as an implicit AND.
    """
    after = format_query_date(lookback_start(lookback_days, now))
    return f"label:{label} subject:{subject_filter} after:{after}"
