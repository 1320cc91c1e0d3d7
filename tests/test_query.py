"""Tests for Gmail query construction."""

from datetime import date, datetime, timedelta, timezone

import pytest

from mailsift.workflows.query import build_query, format_query_date, lookback_start


class TestLookbackStart:
    """The lower bound is computed in local calendar days."""

    def test_six_days_back(self):
        assert lookback_start(6, datetime(2024, 3, 10)) == date(2024, 3, 4)

    def test_time_of_day_is_ignored(self):
        """23:59 and 00:00 on the same day give the same bound."""
        early = lookback_start(6, datetime(2024, 3, 10, 0, 0, 1))
        late = lookback_start(6, datetime(2024, 3, 10, 23, 59, 59))

        assert early == late == date(2024, 3, 4)

    def test_crosses_month_and_leap_day(self):
        assert lookback_start(6, datetime(2024, 3, 3)) == date(2024, 2, 26)
        assert lookback_start(1, datetime(2024, 3, 1)) == date(2024, 2, 29)

    def test_crosses_year(self):
        assert lookback_start(6, datetime(2024, 1, 2)) == date(2023, 12, 27)

    def test_zero_lookback_is_today(self):
        assert lookback_start(0, datetime(2024, 3, 10, 8)) == date(2024, 3, 10)

    def test_aware_now_uses_local_calendar(self):
        """An aware datetime is converted to local time before taking the date."""
        aware = datetime(2024, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-9)))

        expected = aware.astimezone().date() - timedelta(days=6)

        assert lookback_start(6, aware) == expected

    def test_defaults_to_now(self):
        assert lookback_start(0) == datetime.now().date()


class TestBuildQuery:
    """Query string composition."""

    def test_example_from_original_tool(self):
        query = build_query("CVS", "$4 Coupon!", 6, datetime(2024, 3, 10))

        assert query == "label:CVS subject:$4 Coupon! after:2024/03/04"

    @pytest.mark.parametrize(
        "now, lookback, expected",
        [
            (datetime(2024, 3, 10), 6, "after:2024/03/04"),
            (datetime(2024, 12, 31, 23, 59), 30, "after:2024/12/01"),
            (datetime(2025, 1, 5), 10, "after:2024/12/26"),
        ],
    )
    def test_after_clause(self, now, lookback, expected):
        assert build_query("L", "S", lookback, now).endswith(expected)

    def test_clause_order(self):
        query = build_query("Receipts", "invoice", 1, datetime(2024, 3, 10))

        assert query.split(" ") == ["label:Receipts", "subject:invoice", "after:2024/03/09"]


def test_format_query_date_zero_pads():
    assert format_query_date(date(2024, 1, 5)) == "2024/01/05"
