from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import TimeWindow

RANGE_DAYS: Dict[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
ALL_TIME = "all"
DEFAULT_RANGE_DAYS = 30


def coerce_timezone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() in {"UTC", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return timezone.utc


def normalize_datetime(dt: datetime, tz: tzinfo) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def parse_timestamp(value: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """
    Parse an ISO-8601 value into an aware datetime, or return ``None``.

    Naive and date-only values are read in ``tz``. Anything that cannot be
    parsed (including non-strings) yields ``None`` instead of raising.
    """

    if isinstance(value, datetime):
        return normalize_datetime(value, tz)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=tz)
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return normalize_datetime(parsed, tz)


@dataclass(frozen=True)
class ResolvedWindows:
    range_token: str
    days: Optional[int]
    cutoff: Optional[datetime]
    previous_window: Optional[TimeWindow]


def range_days(token: str) -> Optional[int]:
    if token == ALL_TIME:
        return None
    return RANGE_DAYS.get(token, DEFAULT_RANGE_DAYS)


def resolve_range(token: str, now: datetime, tz: tzinfo = timezone.utc) -> ResolvedWindows:
    """
    Map a range token to the current cutoff and the equal-length window right
    before it.

    ``all`` has neither; unknown tokens behave like ``30d``.
    """

    days = range_days(token)
    if days is None:
        return ResolvedWindows(range_token=ALL_TIME, days=None, cutoff=None, previous_window=None)

    now = normalize_datetime(now, tz)
    span = timedelta(days=days)
    cutoff = now - span
    return ResolvedWindows(
        range_token=token if token in RANGE_DAYS else f"{DEFAULT_RANGE_DAYS}d",
        days=days,
        cutoff=cutoff,
        previous_window=TimeWindow(start=now - 2 * span, end=cutoff),
    )
