from datetime import datetime, timezone

import pytest

from backend.campus_analytics.models import EventRecord, FestRecord, RegistrationRecord, UserRecord


@pytest.fixture()
def now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def users():
    return [
        UserRecord(id="u1", email="asha@campus.edu", name="Asha", created_at="2024-06-10T09:00:00Z"),
        UserRecord(
            id="u2",
            email="ravi@campus.edu",
            name="Ravi",
            is_organiser=True,
            created_at="2024-05-01T09:00:00Z",
        ),
        UserRecord(
            id="u3",
            email="meera@campus.edu",
            name="Meera",
            is_organiser=True,
            is_masteradmin=True,
            created_at="2024-01-20T09:00:00Z",
        ),
        UserRecord(id="u4", email="help@campus.edu", name="Helpdesk", is_support=True, created_at="not a date"),
    ]


@pytest.fixture()
def events():
    return [
        EventRecord(
            event_id="e1",
            title="Intro to Machine Learning Workshop Series",
            organizing_dept="Computer Science and Engineering",
            event_date="2024-07-01",
            created_by="ravi@campus.edu",
            created_at="2024-06-05T10:00:00Z",
            registration_fee=0,
            registration_count=40,
        ),
        EventRecord(
            event_id="e2",
            title="Circuit Design Hackathon",
            organizing_dept="EE",
            event_date="2024-05-01",
            created_by="meera@campus.edu",
            created_at="2024-05-20T10:00:00Z",
            registration_fee=150.0,
            registration_count=12,
        ),
        EventRecord(
            event_id="e3",
            title="Robotics Expo",
            organizing_dept=None,
            event_date=None,
            created_by="ravi@campus.edu",
            created_at="2024-06-12T08:00:00Z",
            registration_fee=None,
            registration_count=None,
        ),
    ]


@pytest.fixture()
def fests():
    return [
        FestRecord(
            fest_id="f1",
            fest_title="Annual Techno Cultural Festival",
            organizing_dept="Student Council",
            created_by="meera@campus.edu",
            created_at="2024-06-01T00:00:00Z",
            registration_count=300,
        ),
        FestRecord(
            fest_id="f2",
            fest_title="Spring Fest",
            created_by="ravi@campus.edu",
            created_at="2024-03-01T00:00:00Z",
            registration_count=120,
        ),
    ]


@pytest.fixture()
def registrations():
    return [
        RegistrationRecord(registration_id="r1", event_id="e1", created_at="2024-06-06T10:00:00Z"),
        RegistrationRecord(
            registration_id="r2",
            event_id="e1",
            registration_type="team",
            created_at="2024-06-07T10:00:00Z",
            teammates=("a@campus.edu", "b@campus.edu"),
        ),
        RegistrationRecord(registration_id="r3", event_id="e2", created_at="2024-05-10T10:00:00Z"),
        RegistrationRecord(registration_id="r4", event_id="e2", created_at=None),
    ]
