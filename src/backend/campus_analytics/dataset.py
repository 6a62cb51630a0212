from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Set

from .filters import (
    event_search_fields,
    fest_search_fields,
    filter_by_date,
    filter_by_prior_window,
    filter_by_search,
    filter_registrations,
    filter_users_by_role,
    restrict_to_events,
    user_search_fields,
)
from .models import AnalyticsFilters, EventRecord, FestRecord, RegistrationRecord, UserRecord
from .windows import ResolvedWindows, coerce_timezone


@dataclass(frozen=True)
class DatasetSnapshot:
    """The four collections after date/search/role filtering."""

    users: Sequence[UserRecord]
    events: Sequence[EventRecord]
    fests: Sequence[FestRecord]
    registrations: Sequence[RegistrationRecord]


@dataclass
class AnalyticsDataset:
    users: Sequence[UserRecord]
    events: Sequence[EventRecord]
    fests: Sequence[FestRecord]
    registrations: Sequence[RegistrationRecord]

    def __post_init__(self) -> None:
        self.users = tuple(self.users)
        self.events = tuple(self.events)
        self.fests = tuple(self.fests)
        self.registrations = tuple(self.registrations)

    def current(self, filters: AnalyticsFilters, windows: ResolvedWindows) -> DatasetSnapshot:
        """
        Records inside the active range that match the search and role filters.

        Registrations follow the search through their event: only registrations
        for events matching the query survive while a query is set.
        """

        tz = coerce_timezone(filters.timezone)
        users, events, fests = self._search(filters)
        return DatasetSnapshot(
            users=filter_by_date(users, windows.cutoff, tz=tz),
            events=filter_by_date(events, windows.cutoff, tz=tz),
            fests=filter_by_date(fests, windows.cutoff, tz=tz),
            registrations=filter_registrations(
                self.registrations,
                windows.cutoff,
                filters.search_query,
                _event_ids(events),
                tz=tz,
            ),
        )

    def previous(self, filters: AnalyticsFilters, windows: ResolvedWindows) -> DatasetSnapshot:
        """
        Same filters as :meth:`current`, applied to the comparison window.

        Empty when the range is ``all``.
        """

        tz = coerce_timezone(filters.timezone)
        window = windows.previous_window
        users, events, fests = self._search(filters)
        registrations = filter_by_prior_window(self.registrations, window, tz=tz)
        return DatasetSnapshot(
            users=filter_by_prior_window(users, window, tz=tz),
            events=filter_by_prior_window(events, window, tz=tz),
            fests=filter_by_prior_window(fests, window, tz=tz),
            registrations=restrict_to_events(registrations, filters.search_query, _event_ids(events)),
        )

    def _search(self, filters: AnalyticsFilters):
        query = filters.search_query
        users = filter_users_by_role(filter_by_search(self.users, query, user_search_fields), filters.user_role)
        events = filter_by_search(self.events, query, event_search_fields)
        fests = filter_by_search(self.fests, query, fest_search_fields)
        return users, events, fests


def _event_ids(events: Sequence[EventRecord]) -> Set[str]:
    return {event.event_id for event in events}
