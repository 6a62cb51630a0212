from __future__ import annotations

import math
from collections import Counter, defaultdict
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    DepartmentRow,
    EventRecord,
    FestRecord,
    FestRow,
    KpiSummary,
    OrganiserRow,
    RegistrationRecord,
    SliceRow,
    TimelinePoint,
    TopEventRow,
    UserRecord,
)
from .windows import normalize_datetime, parse_timestamp

ELLIPSIS = "…"
UNKNOWN_DEPARTMENT = "Unknown"

DEPARTMENT_NAME_LIMIT = 18
EVENT_TITLE_LIMIT = 28
FEST_TITLE_LIMIT = 22
ORGANISER_EMAIL_LIMIT = 25

TOP_EVENTS_CHART_SIZE = 8
TOP_ORGANISERS_SIZE = 6


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def as_number(value: Any) -> float:
    """Numeric value of an optional counter/fee; anything unusable is 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return value


def total_registrations(registrations: Sequence[RegistrationRecord]) -> int:
    return len(registrations)


def total_participants(registrations: Iterable[RegistrationRecord]) -> int:
    total = 0
    for registration in registrations:
        if registration.registration_type == "team":
            teammates = registration.teammates
            total += 1 + (len(teammates) if isinstance(teammates, (list, tuple)) else 0)
        else:
            total += 1
    return total


def avg_registrations_per_event(registration_count: int, event_count: int) -> str:
    if event_count == 0:
        return "0"
    return f"{registration_count / event_count:.1f}"


def estimated_revenue(events: Iterable[EventRecord]) -> float:
    # Uses the event's aggregate counter, so it does not follow the date filter
    # applied to registrations.
    return float(
        sum(as_number(event.registration_fee) * as_number(event.registration_count) for event in events)
    )


def active_events(events: Iterable[EventRecord], now: datetime, tz: tzinfo = timezone.utc) -> int:
    now = normalize_datetime(now, tz)
    count = 0
    for event in events:
        event_date = parse_timestamp(event.event_date, tz)
        if event_date is not None and event_date >= now:
            count += 1
    return count


def is_free(event: EventRecord) -> bool:
    return as_number(event.registration_fee) <= 0


def department_breakdown(events: Iterable[EventRecord]) -> List[DepartmentRow]:
    """
    Events and summed registrations per organising department, busiest first.

    The full list is the table; callers slice it for the chart.
    """

    totals: Dict[str, Dict[str, float]] = defaultdict(lambda: {"events": 0, "registrations": 0})
    for event in events:
        department = event.organizing_dept or UNKNOWN_DEPARTMENT
        totals[department]["events"] += 1
        totals[department]["registrations"] += as_number(event.registration_count)

    rows = [
        DepartmentRow(
            name=truncate(department, DEPARTMENT_NAME_LIMIT),
            full_name=department,
            events=int(values["events"]),
            registrations=int(values["registrations"]),
        )
        for department, values in totals.items()
    ]
    return sorted(rows, key=lambda row: row.events, reverse=True)


def top_events(events: Iterable[EventRecord]) -> List[TopEventRow]:
    ranked = sorted(
        (event for event in events if as_number(event.registration_count) > 0),
        key=lambda event: as_number(event.registration_count),
        reverse=True,
    )
    return [
        TopEventRow(
            name=truncate(event.title or "", EVENT_TITLE_LIMIT),
            full_name=event.title or "",
            registrations=int(as_number(event.registration_count)),
        )
        for event in ranked
    ]


def _non_empty(slices: Sequence[Tuple[str, int]]) -> List[SliceRow]:
    return [SliceRow(name=name, value=value) for name, value in slices if value > 0]


def registration_type_split(registrations: Sequence[RegistrationRecord]) -> List[SliceRow]:
    types = Counter(registration.registration_type for registration in registrations)
    return _non_empty([("Individual", types["individual"]), ("Team", types["team"])])


def free_vs_paid(events: Sequence[EventRecord]) -> List[SliceRow]:
    free = sum(1 for event in events if is_free(event))
    return _non_empty([("Free", free), ("Paid", len(events) - free)])


def user_role_split(users: Sequence[UserRecord]) -> List[SliceRow]:
    regular = sum(1 for user in users if not (user.is_organiser or user.is_support or user.is_masteradmin))
    return _non_empty(
        [
            ("Regular", regular),
            ("Organisers", sum(1 for user in users if user.is_organiser)),
            ("Support", sum(1 for user in users if user.is_support)),
            ("Admins", sum(1 for user in users if user.is_masteradmin)),
        ]
    )


def _month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def monthly_timeline(records: Iterable[Any], tz: tzinfo = timezone.utc, field: str = "created_at") -> List[TimelinePoint]:
    """
    Count records per calendar month of ``field``.

    Every month between the first and last populated month is present, with 0
    for months without activity. Records without a usable timestamp are left
    out.
    """

    monthly: Counter = Counter()
    for record in records:
        stamp = parse_timestamp(getattr(record, field, None), tz)
        if stamp is None:
            continue
        monthly[(stamp.year, stamp.month)] += 1

    if not monthly:
        return []

    (year, month), last = min(monthly), max(monthly)
    points: List[TimelinePoint] = []
    while (year, month) <= last:
        points.append(
            TimelinePoint(
                month=_month_key(year, month),
                label=date(year, month, 1).strftime("%b %y"),
                value=monthly[(year, month)],
            )
        )
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return points


def top_organisers(events: Iterable[EventRecord], limit: int = TOP_ORGANISERS_SIZE) -> List[OrganiserRow]:
    counts: Dict[str, int] = {}
    for event in events:
        if event.created_by:
            counts[event.created_by] = counts.get(event.created_by, 0) + 1
    rows = [
        OrganiserRow(name=truncate(email, ORGANISER_EMAIL_LIMIT), full_name=email, events=count)
        for email, count in counts.items()
    ]
    return sorted(rows, key=lambda row: row.events, reverse=True)[:limit]


def fest_registrations(fests: Iterable[FestRecord]) -> List[FestRow]:
    rows = [
        FestRow(
            name=truncate(fest.fest_title or "", FEST_TITLE_LIMIT),
            registration_count=int(as_number(fest.registration_count)),
        )
        for fest in fests
    ]
    return sorted(rows, key=lambda row: row.registration_count, reverse=True)


def kpi_summary(
    users: Sequence[UserRecord],
    events: Sequence[EventRecord],
    fests: Sequence[FestRecord],
    registrations: Sequence[RegistrationRecord],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> KpiSummary:
    registration_total = total_registrations(registrations)
    return KpiSummary(
        total_users=len(users),
        organiser_count=sum(1 for user in users if user.is_organiser),
        total_events=len(events),
        free_event_count=sum(1 for event in events if is_free(event)),
        total_fests=len(fests),
        total_registrations=registration_total,
        total_participants=total_participants(registrations),
        avg_registrations_per_event=avg_registrations_per_event(registration_total, len(events)),
        estimated_revenue=estimated_revenue(events),
        active_events=active_events(events, now, tz or timezone.utc),
    )
