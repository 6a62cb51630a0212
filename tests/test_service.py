from datetime import datetime, timezone

import pytest

from backend.campus_analytics.models import AnalyticsFilters, EventRecord, GrowthIndicator, SliceRow
from backend.campus_analytics.service import AnalyticsService, collections_fingerprint


@pytest.fixture()
def service(users, events, fests, registrations):
    return AnalyticsService(users=users, events=events, fests=fests, registrations=registrations)


def test_end_to_end_all_time_scenario(now):
    events = [
        EventRecord(
            event_id="e1",
            title="Jan Meetup",
            organizing_dept="CS",
            created_at="2024-01-10T00:00:00Z",
            registration_fee=0,
            registration_count=5,
        ),
        EventRecord(
            event_id="e2",
            title="Feb Workshop",
            organizing_dept="CS",
            created_at="2024-02-10T00:00:00Z",
            registration_fee=100,
            registration_count=0,
        ),
        EventRecord(
            event_id="e3",
            title="Mar Summit",
            organizing_dept="EE",
            created_at="2024-03-10T00:00:00Z",
            registration_fee=50,
            registration_count=10,
        ),
    ]
    service = AnalyticsService(users=[], events=events, fests=[], registrations=[])

    result = service.build(AnalyticsFilters(date_range="all"), now)

    assert result.kpis.total_events == 3
    assert result.free_vs_paid == (SliceRow("Free", 1), SliceRow("Paid", 2))
    assert result.kpis.estimated_revenue == 500
    assert result.growth is None
    assert result.cutoff is None
    assert [point.value for point in result.events_timeline] == [1, 1, 1]
    assert result.registration_timeline == ()


def test_thirty_day_range_with_growth(service, now):
    result = service.build(AnalyticsFilters(date_range="30d"), now)

    assert result.kpis.total_users == 1
    assert result.kpis.total_events == 3
    assert result.kpis.total_fests == 1
    assert result.kpis.total_registrations == 2
    assert result.kpis.total_participants == 4
    assert result.kpis.avg_registrations_per_event == "0.7"
    assert result.kpis.estimated_revenue == 1800.0
    assert result.kpis.active_events == 1

    assert result.growth.users == GrowthIndicator("+0.0%", False, True)
    assert result.growth.events == GrowthIndicator("+100%", True, False)
    assert result.growth.registrations == GrowthIndicator("+100.0%", True, False)
    assert result.growth.participants == GrowthIndicator("+300.0%", True, False)


def test_search_filters_every_collection_and_propagates_to_registrations(service, now):
    result = service.build(AnalyticsFilters(date_range="all", search_query="RAVI"), now)

    assert result.kpis.total_users == 1
    assert result.kpis.total_events == 2
    assert result.kpis.total_fests == 1
    assert result.kpis.total_registrations == 2
    assert [row.full_name for row in result.top_organisers] == ["ravi@campus.edu"]


def test_role_filter_restricts_users_only(service, now):
    result = service.build(AnalyticsFilters(date_range="all", user_role="organiser"), now)

    assert result.kpis.total_users == 2
    assert result.kpis.total_events == 3


def test_top_n_caps_department_chart_but_not_table(now):
    events = [
        EventRecord(event_id=str(index), title=f"Event {index}", organizing_dept=f"Dept {index}")
        for index in range(7)
    ]
    service = AnalyticsService(users=[], events=events, fests=[], registrations=[])

    result = service.build(AnalyticsFilters(date_range="all", top_n=5), now)

    assert len(result.departments_chart) == 5
    assert len(result.departments_table) == 7


def test_build_is_idempotent(users, events, fests, registrations, now):
    filters = AnalyticsFilters(date_range="90d", search_query="campus", top_n=20)
    first = AnalyticsService(users, events, fests, registrations, cache_size=0).build(filters, now)
    second = AnalyticsService(users, events, fests, registrations, cache_size=0).build(filters, now)

    assert first == second
    assert first.as_dict() == second.as_dict()


def test_results_are_memoised_per_filters_and_clock(service, now):
    filters = AnalyticsFilters(date_range="7d")

    first = service.build(filters, now)

    assert service.build(filters, now) is first
    assert service.build(AnalyticsFilters(date_range="90d"), now) is not first
    assert service.build(filters, datetime(2024, 6, 16, tzinfo=timezone.utc)) is not first


def test_cache_is_bounded(service, now):
    service.cache_size = 2
    for token in ("7d", "30d", "90d", "1y"):
        service.build(AnalyticsFilters(date_range=token), now)

    assert len(service._cache) == 2


def test_fingerprint_changes_with_content(users, events, fests, registrations):
    base = AnalyticsService(users, events, fests, registrations)
    fewer = AnalyticsService(users, events[:1], fests, registrations)

    assert base.fingerprint == AnalyticsService(users, events, fests, registrations).fingerprint
    assert base.fingerprint != fewer.fingerprint


def test_empty_collections_render_empty_state(now):
    result = AnalyticsService([], [], [], []).build(AnalyticsFilters(date_range="7d"), now)

    assert result.kpis.total_registrations == 0
    assert result.kpis.avg_registrations_per_event == "0"
    assert result.departments_chart == ()
    assert result.registration_timeline == ()
    assert result.growth.registrations == GrowthIndicator("0%", False, True)


def test_as_dict_uses_chart_keys(service, now):
    data = service.build(AnalyticsFilters(date_range="all"), now).as_dict()

    assert data["dateRange"] == "all"
    assert data["growth"] is None
    assert data["previousWindow"] is None
    assert set(data["departments"]["table"][0]) == {"name", "fullName", "Events", "Registrations"}
    assert set(data["festRegistrations"][0]) == {"name", "registrationCount"}
    assert data["kpis"]["avgRegPerEvent"] == "1.3"


def test_memoised_results_hold_immutable_sequences(service, now):
    result = service.build(AnalyticsFilters(date_range="all"), now)

    for name in (
        "departments_chart",
        "departments_table",
        "top_events_chart",
        "top_events_table",
        "registration_types",
        "free_vs_paid",
        "user_roles",
        "registration_timeline",
        "events_timeline",
        "top_organisers",
        "fest_registrations",
    ):
        assert isinstance(getattr(result, name), tuple), name
    assert service.build(AnalyticsFilters(date_range="all"), now).departments_table == result.departments_table


def test_precomputed_fingerprint_is_used(users, events, fests, registrations):
    service = AnalyticsService(users, events, fests, registrations, fingerprint="abc")

    assert service.fingerprint == "abc"
    assert collections_fingerprint(users, events, fests, registrations) == (
        AnalyticsService(users, events, fests, registrations).fingerprint
    )
