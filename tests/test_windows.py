from datetime import datetime, timedelta, timezone

import pytest

from backend.campus_analytics.windows import coerce_timezone, parse_timestamp, resolve_range


@pytest.mark.parametrize("token,days", [("7d", 7), ("30d", 30), ("90d", 90), ("1y", 365)])
def test_resolve_range_maps_tokens_to_exact_day_counts(now, token, days):
    windows = resolve_range(token, now)

    assert windows.days == days
    assert windows.cutoff == now - timedelta(days=days)
    assert windows.previous_window.start == now - timedelta(days=2 * days)
    assert windows.previous_window.end == windows.cutoff


def test_resolve_range_all_has_no_cutoff_or_previous_window(now):
    windows = resolve_range("all", now)

    assert windows.cutoff is None
    assert windows.previous_window is None


def test_resolve_range_unknown_token_falls_back_to_thirty_days(now):
    windows = resolve_range("fortnight", now)

    assert windows.days == 30
    assert windows.range_token == "30d"
    assert windows.cutoff == now - timedelta(days=30)


def test_resolve_range_treats_naive_now_as_filter_timezone():
    windows = resolve_range("7d", datetime(2024, 6, 15, 12, 0))

    assert windows.cutoff == datetime(2024, 6, 8, 12, 0, tzinfo=timezone.utc)


def test_parse_timestamp_handles_iso_variants():
    assert parse_timestamp("2024-03-10T08:30:00Z") == datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-03-10T14:00:00+05:30") == datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-03-10") == datetime(2024, 3, 10, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "   ", "yesterday", "2024-13-40", 1710000000, ["2024-01-01"]])
def test_parse_timestamp_returns_none_for_unusable_values(value):
    assert parse_timestamp(value) is None


def test_coerce_timezone_falls_back_to_utc_for_unknown_names():
    assert coerce_timezone("Mars/Olympus_Mons") is timezone.utc
    assert coerce_timezone(None) is timezone.utc


def test_coerce_timezone_falls_back_to_utc_for_zone_directories():
    # "America" names a directory in the tz database, not a zone.
    assert coerce_timezone("America") is timezone.utc
