from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set, TypeVar

from .models import EventRecord, FestRecord, RegistrationRecord, TimeWindow, UserRecord
from .windows import normalize_datetime, parse_timestamp

T = TypeVar("T")

USER_ROLE_FLAGS = {
    "organiser": "is_organiser",
    "support": "is_support",
    "masteradmin": "is_masteradmin",
}


def normalize_query(query: Optional[str]) -> str:
    if not isinstance(query, str):
        return ""
    return query.strip().lower()


def filter_by_date(
    records: Iterable[T],
    cutoff: Optional[datetime],
    field: str = "created_at",
    tz: tzinfo = timezone.utc,
) -> List[T]:
    """
    Keep records whose ``field`` is on or after ``cutoff``.

    A ``None`` cutoff keeps everything. With a concrete cutoff, records whose
    timestamp is missing or unparseable are dropped.
    """

    if cutoff is None:
        return list(records)
    cutoff = normalize_datetime(cutoff, tz)
    kept: List[T] = []
    for record in records:
        stamp = parse_timestamp(getattr(record, field, None), tz)
        if stamp is not None and stamp >= cutoff:
            kept.append(record)
    return kept


def filter_by_prior_window(
    records: Iterable[T],
    window: Optional[TimeWindow],
    field: str = "created_at",
    tz: tzinfo = timezone.utc,
) -> List[T]:
    if window is None:
        return []
    start, end = normalize_datetime(window.start, tz), normalize_datetime(window.end, tz)
    kept: List[T] = []
    for record in records:
        stamp = parse_timestamp(getattr(record, field, None), tz)
        if stamp is not None and start <= stamp < end:
            kept.append(record)
    return kept


def filter_by_search(
    records: Iterable[T],
    query: Optional[str],
    fields_extractor: Callable[[T], Iterable[Any]],
) -> List[T]:
    needle = normalize_query(query)
    if not needle:
        return list(records)
    kept: List[T] = []
    for record in records:
        for value in fields_extractor(record):
            if isinstance(value, str) and needle in value.lower():
                kept.append(record)
                break
    return kept


def event_search_fields(event: EventRecord) -> Sequence[Any]:
    return (event.title, event.organizing_dept, event.created_by)


def fest_search_fields(fest: FestRecord) -> Sequence[Any]:
    return (fest.fest_title, fest.organizing_dept, fest.created_by)


def user_search_fields(user: UserRecord) -> Sequence[Any]:
    return (user.email, user.name)


def filter_users_by_role(users: Iterable[UserRecord], role: Optional[str]) -> List[UserRecord]:
    flag = USER_ROLE_FLAGS.get(role or "all")
    if flag is None:
        return list(users)
    return [user for user in users if getattr(user, flag, False)]


def filter_registrations(
    registrations: Iterable[RegistrationRecord],
    cutoff: Optional[datetime],
    query: Optional[str],
    event_ids: Set[str],
    tz: tzinfo = timezone.utc,
) -> List[RegistrationRecord]:
    """
    Date-filter registrations, then restrict them to ``event_ids`` while a
    search is active. Registrations are never matched against the query
    directly.
    """

    return restrict_to_events(filter_by_date(registrations, cutoff, tz=tz), query, event_ids)


def restrict_to_events(
    registrations: Iterable[RegistrationRecord],
    query: Optional[str],
    event_ids: Set[str],
) -> List[RegistrationRecord]:
    if not normalize_query(query):
        return list(registrations)
    return [registration for registration in registrations if registration.event_id in event_ids]
