from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, Row

from .configuration import AnalyticsConfig, load_analytics_config
from .models import EventRecord, FestRecord, RegistrationRecord, UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsCollections:
    users: Sequence[UserRecord]
    events: Sequence[EventRecord]
    fests: Sequence[FestRecord]
    registrations: Sequence[RegistrationRecord]


class AnalyticsDataRepository:
    """
    Interface for loading the dashboard collections.

    Implementations return every row: date and search filtering happen in the
    analytics service so that the prior-period comparison can see older data.
    """

    def load(self) -> AnalyticsCollections:
        raise NotImplementedError


class SQLAnalyticsRepository(AnalyticsDataRepository):
    """
    Load the four collections from the campus events schema.

    Expected tables:
      - users(id, email, name, is_organiser, is_support, is_masteradmin, created_at)
      - events(event_id, title, organizing_dept, event_date, created_by, created_at,
               registration_fee, registration_count)
      - fests(fest_id, fest_title, organizing_dept, opening_date, created_by, created_at,
              registration_count)
      - registrations(registration_id, event_id, registration_type, created_at, teammates)
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def load(self) -> AnalyticsCollections:
        with self.engine.connect() as connection:
            users = connection.execute(
                text(
                    """
                    SELECT id, email, name, is_organiser, is_support, is_masteradmin, created_at
                    FROM users
                    """
                )
            ).fetchall()
            events = connection.execute(
                text(
                    """
                    SELECT event_id, title, organizing_dept, event_date, created_by, created_at,
                           registration_fee, COALESCE(registration_count, 0) AS registration_count
                    FROM events
                    """
                )
            ).fetchall()
            fests = connection.execute(
                text(
                    """
                    SELECT fest_id, fest_title, organizing_dept, opening_date, created_by, created_at,
                           COALESCE(registration_count, 0) AS registration_count
                    FROM fests
                    """
                )
            ).fetchall()
            registrations = connection.execute(
                text(
                    """
                    SELECT registration_id, event_id, registration_type, created_at, teammates
                    FROM registrations
                    """
                )
            ).fetchall()

        return AnalyticsCollections(
            users=tuple(self._row_to_user(row) for row in users),
            events=tuple(self._row_to_event(row) for row in events),
            fests=tuple(self._row_to_fest(row) for row in fests),
            registrations=tuple(self._row_to_registration(row) for row in registrations),
        )

    @staticmethod
    def _row_to_user(row: Row) -> UserRecord:
        return UserRecord(
            id=str(row.id),
            email=str(row.email or ""),
            name=row.name,
            is_organiser=bool(row.is_organiser),
            is_support=bool(row.is_support),
            is_masteradmin=bool(row.is_masteradmin),
            created_at=_as_timestamp_text(row.created_at),
        )

    @staticmethod
    def _row_to_event(row: Row) -> EventRecord:
        return EventRecord(
            event_id=str(row.event_id),
            title=str(row.title or ""),
            organizing_dept=row.organizing_dept,
            event_date=_as_timestamp_text(row.event_date),
            created_by=row.created_by,
            created_at=_as_timestamp_text(row.created_at),
            registration_fee=None if row.registration_fee is None else float(row.registration_fee),
            registration_count=int(row.registration_count or 0),
        )

    @staticmethod
    def _row_to_fest(row: Row) -> FestRecord:
        return FestRecord(
            fest_id=str(row.fest_id),
            fest_title=str(row.fest_title or ""),
            organizing_dept=row.organizing_dept,
            opening_date=_as_timestamp_text(row.opening_date),
            created_by=row.created_by,
            created_at=_as_timestamp_text(row.created_at),
            registration_count=int(row.registration_count or 0),
        )

    @staticmethod
    def _row_to_registration(row: Row) -> RegistrationRecord:
        teammates = row.teammates
        if isinstance(teammates, str):
            try:
                teammates = json.loads(teammates)
            except json.JSONDecodeError:
                logger.debug("Ignoring malformed teammates for registration %s", row.registration_id)
                teammates = []
        if not isinstance(teammates, list):
            teammates = []
        return RegistrationRecord(
            registration_id=str(row.registration_id),
            event_id=str(row.event_id),
            registration_type=str(row.registration_type or "individual"),
            created_at=_as_timestamp_text(row.created_at),
            teammates=tuple(teammates),
        )


def _as_timestamp_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def build_repository_from_env(config: Optional[AnalyticsConfig] = None) -> Optional[AnalyticsDataRepository]:
    cfg = config or load_analytics_config()
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLAnalyticsRepository(engine)
    return None
