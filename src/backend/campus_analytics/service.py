from __future__ import annotations

import hashlib
import json
import logging
from collections import OrderedDict
from dataclasses import asdict
from datetime import datetime
from typing import Hashable, Optional, Sequence, Tuple

from .dataset import AnalyticsDataset, DatasetSnapshot
from .growth import growth
from .metrics import (
    TOP_EVENTS_CHART_SIZE,
    department_breakdown,
    fest_registrations,
    free_vs_paid,
    kpi_summary,
    monthly_timeline,
    registration_type_split,
    top_events,
    top_organisers,
    total_participants,
    user_role_split,
)
from .models import (
    AnalyticsFilters,
    AnalyticsResult,
    EventRecord,
    FestRecord,
    GrowthSummary,
    RegistrationRecord,
    UserRecord,
)
from .windows import ResolvedWindows, coerce_timezone, normalize_datetime, resolve_range

logger = logging.getLogger(__name__)


def collections_fingerprint(
    users: Sequence[UserRecord],
    events: Sequence[EventRecord],
    fests: Sequence[FestRecord],
    registrations: Sequence[RegistrationRecord],
) -> str:
    """Content hash of the four collections; equal data gives an equal fingerprint."""
    payload = {
        "users": [asdict(user) for user in users],
        "events": [asdict(event) for event in events],
        "fests": [asdict(fest) for fest in fests],
        "registrations": [asdict(registration) for registration in registrations],
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class AnalyticsService:
    """
    Builds the admin analytics dashboard from already-fetched collections.

    ``build`` is a pure function of the collections, the filters and ``now``.
    Results are memoised in a small LRU keyed by those inputs plus a content
    fingerprint of the collections; ``cache_size=0`` disables it.
    """

    def __init__(
        self,
        users: Sequence[UserRecord],
        events: Sequence[EventRecord],
        fests: Sequence[FestRecord],
        registrations: Sequence[RegistrationRecord],
        cache_size: int = 32,
        fingerprint: Optional[str] = None,
    ) -> None:
        self.dataset = AnalyticsDataset(users=users, events=events, fests=fests, registrations=registrations)
        self.cache_size = max(0, cache_size)
        self._cache: "OrderedDict[Hashable, AnalyticsResult]" = OrderedDict()
        self._fingerprint: Optional[str] = fingerprint

    @property
    def fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = collections_fingerprint(
                self.dataset.users, self.dataset.events, self.dataset.fests, self.dataset.registrations
            )
        return self._fingerprint

    def build(self, filters: AnalyticsFilters, now: datetime) -> AnalyticsResult:
        tz = coerce_timezone(filters.timezone)
        now = normalize_datetime(now, tz)
        if not self.cache_size:
            return self._compute(filters, now)

        key = (filters, now, self.fingerprint)
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            logger.debug("Analytics cache hit for %s", filters)
            return cached

        result = self._compute(filters, now)
        self._cache[key] = result
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return result

    def _compute(self, filters: AnalyticsFilters, now: datetime) -> AnalyticsResult:
        tz = coerce_timezone(filters.timezone)
        windows = resolve_range(filters.date_range, now, tz)
        current = self.dataset.current(filters, windows)
        logger.debug(
            "Analytics snapshot range=%s users=%d events=%d fests=%d registrations=%d",
            windows.range_token,
            len(current.users),
            len(current.events),
            len(current.fests),
            len(current.registrations),
        )

        departments = tuple(department_breakdown(current.events))
        ranked_events = tuple(top_events(current.events))
        return AnalyticsResult(
            date_range=windows.range_token,
            cutoff=windows.cutoff,
            previous_window=windows.previous_window,
            kpis=kpi_summary(current.users, current.events, current.fests, current.registrations, now, tz),
            growth=self._build_growth(filters, windows, current),
            departments_chart=departments[: max(0, filters.top_n)],
            departments_table=departments,
            top_events_chart=ranked_events[:TOP_EVENTS_CHART_SIZE],
            top_events_table=ranked_events,
            registration_types=tuple(registration_type_split(current.registrations)),
            free_vs_paid=tuple(free_vs_paid(current.events)),
            user_roles=tuple(user_role_split(current.users)),
            registration_timeline=tuple(monthly_timeline(current.registrations, tz)),
            events_timeline=tuple(monthly_timeline(current.events, tz)),
            top_organisers=tuple(top_organisers(current.events)),
            fest_registrations=tuple(fest_registrations(current.fests)),
        )

    def _build_growth(
        self,
        filters: AnalyticsFilters,
        windows: ResolvedWindows,
        current: DatasetSnapshot,
    ) -> Optional[GrowthSummary]:
        if windows.previous_window is None:
            return None
        previous = self.dataset.previous(filters, windows)
        pairs: Tuple[Tuple[int, int], ...] = (
            (len(current.users), len(previous.users)),
            (len(current.events), len(previous.events)),
            (len(current.registrations), len(previous.registrations)),
            (total_participants(current.registrations), total_participants(previous.registrations)),
        )
        users, events, registrations, participants = (growth(value, baseline) for value, baseline in pairs)
        return GrowthSummary(users=users, events=events, registrations=registrations, participants=participants)
