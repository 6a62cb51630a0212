"""
Campus events analytics.

Turns the users/events/fests/registrations collections of the campus events
platform into the aggregates shown on the admin analytics dashboard: KPI
cards, department and organiser breakdowns, gap-filled monthly timelines and
period-over-period growth.
"""

from .growth import growth  # noqa: F401
from .models import (  # noqa: F401
    AnalyticsFilters,
    AnalyticsResult,
    DepartmentRow,
    EventRecord,
    FestRecord,
    FestRow,
    GrowthIndicator,
    GrowthSummary,
    KpiSummary,
    OrganiserRow,
    RegistrationRecord,
    SliceRow,
    TimelinePoint,
    TimeWindow,
    TopEventRow,
    UserRecord,
)
from .repository import (  # noqa: F401
    AnalyticsCollections,
    AnalyticsDataRepository,
    SQLAnalyticsRepository,
    build_repository_from_env,
)
from .service import AnalyticsService, collections_fingerprint  # noqa: F401
from .windows import ResolvedWindows, parse_timestamp, resolve_range  # noqa: F401
