from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence


@dataclass(frozen=True)
class UserRecord:
    """
    Account row as returned by the users table.

    Role flags are independent booleans; a user can be organiser and support at
    the same time.
    """

    id: str
    email: str
    name: Optional[str] = None
    is_organiser: bool = False
    is_support: bool = False
    is_masteradmin: bool = False
    created_at: Optional[str] = None


@dataclass(frozen=True)
class EventRecord:
    """
    Event row. ``registration_count`` is the aggregate counter kept on the
    event itself, not derived from the registrations collection.
    """

    event_id: str
    title: str
    organizing_dept: Optional[str] = None
    event_date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    registration_fee: Optional[float] = None
    registration_count: Optional[int] = 0


@dataclass(frozen=True)
class FestRecord:
    fest_id: str
    fest_title: str
    organizing_dept: Optional[str] = None
    opening_date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    registration_count: Optional[int] = 0


@dataclass(frozen=True)
class RegistrationRecord:
    registration_id: str
    event_id: str
    registration_type: str = "individual"
    created_at: Optional[str] = None
    teammates: Sequence[Any] = field(default_factory=tuple)


@dataclass(frozen=True)
class AnalyticsFilters:
    """
    Parameters shared by every dashboard widget.

    ``date_range`` is one of ``7d``/``30d``/``90d``/``1y``/``all``. ``top_n``
    caps the department chart only. Naive and date-only timestamps are read in
    ``timezone``, which also decides month boundaries for the timelines.
    """

    date_range: str = "30d"
    search_query: str = ""
    top_n: int = 10
    user_role: str = "all"
    timezone: str = "UTC"


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class KpiSummary:
    total_users: int = 0
    organiser_count: int = 0
    total_events: int = 0
    free_event_count: int = 0
    total_fests: int = 0
    total_registrations: int = 0
    total_participants: int = 0
    avg_registrations_per_event: str = "0"
    estimated_revenue: float = 0.0
    active_events: int = 0


@dataclass(frozen=True)
class GrowthIndicator:
    pct: str
    up: bool
    neutral: bool


@dataclass(frozen=True)
class GrowthSummary:
    users: GrowthIndicator
    events: GrowthIndicator
    registrations: GrowthIndicator
    participants: GrowthIndicator


@dataclass(frozen=True)
class DepartmentRow:
    name: str
    full_name: str
    events: int
    registrations: int


@dataclass(frozen=True)
class TopEventRow:
    name: str
    full_name: str
    registrations: int


@dataclass(frozen=True)
class SliceRow:
    name: str
    value: int


@dataclass(frozen=True)
class TimelinePoint:
    month: str
    label: str
    value: int


@dataclass(frozen=True)
class OrganiserRow:
    name: str
    full_name: str
    events: int


@dataclass(frozen=True)
class FestRow:
    name: str
    registration_count: int


@dataclass(frozen=True)
class AnalyticsResult:
    date_range: str
    cutoff: Optional[datetime]
    previous_window: Optional[TimeWindow]
    kpis: KpiSummary
    growth: Optional[GrowthSummary]
    departments_chart: Sequence[DepartmentRow]
    departments_table: Sequence[DepartmentRow]
    top_events_chart: Sequence[TopEventRow]
    top_events_table: Sequence[TopEventRow]
    registration_types: Sequence[SliceRow]
    free_vs_paid: Sequence[SliceRow]
    user_roles: Sequence[SliceRow]
    registration_timeline: Sequence[TimelinePoint]
    events_timeline: Sequence[TimelinePoint]
    top_organisers: Sequence[OrganiserRow]
    fest_registrations: Sequence[FestRow]

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the nested dataclasses into a JSON-serialisable structure.

        Keys follow the chart props the dashboard frontend already binds to
        (``Events``/``Registrations``/``fullName``).
        """

        def _serialize(obj: Any) -> Any:
            if isinstance(obj, AnalyticsResult):
                return {
                    "dateRange": obj.date_range,
                    "cutoff": _serialize(obj.cutoff),
                    "previousWindow": _serialize(obj.previous_window),
                    "kpis": _serialize(obj.kpis),
                    "growth": _serialize(obj.growth),
                    "departments": {
                        "chart": _serialize(obj.departments_chart),
                        "table": _serialize(obj.departments_table),
                    },
                    "topEvents": {
                        "chart": _serialize(obj.top_events_chart),
                        "table": _serialize(obj.top_events_table),
                    },
                    "registrationTypes": _serialize(obj.registration_types),
                    "freeVsPaid": _serialize(obj.free_vs_paid),
                    "userRoles": _serialize(obj.user_roles),
                    "registrationTimeline": _serialize(obj.registration_timeline),
                    "eventsTimeline": _serialize(obj.events_timeline),
                    "topOrganisers": _serialize(obj.top_organisers),
                    "festRegistrations": _serialize(obj.fest_registrations),
                }
            if isinstance(obj, KpiSummary):
                return {
                    "totalUsers": obj.total_users,
                    "organiserCount": obj.organiser_count,
                    "totalEvents": obj.total_events,
                    "freeEventCount": obj.free_event_count,
                    "totalFests": obj.total_fests,
                    "totalRegistrations": obj.total_registrations,
                    "totalParticipants": obj.total_participants,
                    "avgRegPerEvent": obj.avg_registrations_per_event,
                    "estimatedRevenue": obj.estimated_revenue,
                    "activeEvents": obj.active_events,
                }
            if isinstance(obj, GrowthSummary):
                return {
                    "users": _serialize(obj.users),
                    "events": _serialize(obj.events),
                    "registrations": _serialize(obj.registrations),
                    "participants": _serialize(obj.participants),
                }
            if isinstance(obj, GrowthIndicator):
                return {"pct": obj.pct, "up": obj.up, "neutral": obj.neutral}
            if isinstance(obj, TimeWindow):
                return {"start": obj.start.isoformat(), "end": obj.end.isoformat()}
            if isinstance(obj, DepartmentRow):
                return {
                    "name": obj.name,
                    "fullName": obj.full_name,
                    "Events": obj.events,
                    "Registrations": obj.registrations,
                }
            if isinstance(obj, TopEventRow):
                return {"name": obj.name, "fullName": obj.full_name, "Registrations": obj.registrations}
            if isinstance(obj, SliceRow):
                return {"name": obj.name, "value": obj.value}
            if isinstance(obj, TimelinePoint):
                return {"month": obj.month, "label": obj.label, "value": obj.value}
            if isinstance(obj, OrganiserRow):
                return {"name": obj.name, "fullName": obj.full_name, "Events": obj.events}
            if isinstance(obj, FestRow):
                return {"name": obj.name, "registrationCount": obj.registration_count}
            if isinstance(obj, datetime):
                return obj.isoformat()
            if isinstance(obj, Iterable) and not isinstance(obj, (str, bytes)):
                return [_serialize(item) for item in obj]
            return obj

        return _serialize(self)
