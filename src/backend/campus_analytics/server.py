"""FastAPI server that exposes the campus analytics dashboard."""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from .configuration import load_analytics_config
from .models import AnalyticsFilters, EventRecord, FestRecord, RegistrationRecord, UserRecord
from .repository import AnalyticsCollections, AnalyticsDataRepository, build_repository_from_env
from .service import AnalyticsService, collections_fingerprint

load_dotenv()

logger = logging.getLogger(__name__)

config = load_analytics_config()
app = FastAPI(title="Campus Events Analytics API", version="0.1.0")
repository: Optional[AnalyticsDataRepository] = build_repository_from_env(config)

# One service per collections fingerprint, least recently used evicted first.
SERVICE_POOL_SIZE = 4
_services: "OrderedDict[str, AnalyticsService]" = OrderedDict()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class UserPayload(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    is_organiser: bool = False
    is_support: bool = False
    is_masteradmin: bool = False
    created_at: Optional[str] = None


class EventPayload(BaseModel):
    event_id: str
    title: str
    organizing_dept: Optional[str] = None
    event_date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    registration_fee: Optional[float] = None
    registration_count: Optional[int] = 0


class FestPayload(BaseModel):
    fest_id: str
    fest_title: str
    organizing_dept: Optional[str] = None
    opening_date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    registration_count: Optional[int] = 0


class RegistrationPayload(BaseModel):
    registration_id: str
    event_id: str
    registration_type: str = "individual"
    created_at: Optional[str] = None
    teammates: Optional[List[Any]] = None


class AnalyticsRequest(BaseModel):
    date_range: Optional[Literal["7d", "30d", "90d", "1y", "all"]] = None
    search_query: str = ""
    top_n: Optional[Literal[5, 10, 20, 50]] = None
    user_role: Literal["all", "organiser", "support", "masteradmin"] = "all"
    timezone: Optional[str] = None
    now: Optional[datetime] = Field(default=None, description="Reference time; defaults to the server clock")
    users: Optional[List[UserPayload]] = None
    events: Optional[List[EventPayload]] = None
    fests: Optional[List[FestPayload]] = None
    registrations: Optional[List[RegistrationPayload]] = None


class AnalyticsResponse(BaseModel):
    data: Dict[str, Any]
    source: str


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/analytics", response_model=AnalyticsResponse)
async def analytics_endpoint(request: AnalyticsRequest) -> AnalyticsResponse:
    filters = AnalyticsFilters(
        date_range=request.date_range or config.default_date_range,
        search_query=request.search_query,
        top_n=request.top_n or config.default_top_n,
        user_role=request.user_role,
        timezone=request.timezone or config.timezone,
    )
    now = request.now or datetime.now(timezone.utc)

    collections, source = _load_collections(request)
    service = _service_for(collections)
    result = service.build(filters, now)
    return AnalyticsResponse(data=result.as_dict(), source=source)


def _service_for(collections: AnalyticsCollections) -> AnalyticsService:
    fingerprint = collections_fingerprint(
        collections.users, collections.events, collections.fests, collections.registrations
    )
    service = _services.get(fingerprint)
    if service is not None:
        _services.move_to_end(fingerprint)
        return service

    service = AnalyticsService(
        users=collections.users,
        events=collections.events,
        fests=collections.fests,
        registrations=collections.registrations,
        cache_size=config.cache_size,
        fingerprint=fingerprint,
    )
    _services[fingerprint] = service
    if len(_services) > SERVICE_POOL_SIZE:
        _services.popitem(last=False)
    return service


def _load_collections(request: AnalyticsRequest) -> Tuple[AnalyticsCollections, str]:
    if repository is not None:
        try:
            return repository.load(), "database"
        except SQLAlchemyError as exc:
            logger.warning("Failed to load analytics collections: %s", exc)
            raise HTTPException(status_code=503, detail="Analytics data source is unavailable.") from exc

    inline: Sequence[Optional[list]] = (request.users, request.events, request.fests, request.registrations)
    if any(collection is None for collection in inline):
        raise HTTPException(
            status_code=500,
            detail=(
                "ANALYTICS_DATABASE_URL is not configured; "
                "supply users+events+fests+registrations in the request body."
            ),
        )

    collections = AnalyticsCollections(
        users=tuple(_convert_user_payload(payload) for payload in request.users),
        events=tuple(_convert_event_payload(payload) for payload in request.events),
        fests=tuple(_convert_fest_payload(payload) for payload in request.fests),
        registrations=tuple(_convert_registration_payload(payload) for payload in request.registrations),
    )
    return collections, "inline"


def _convert_user_payload(payload: UserPayload) -> UserRecord:
    return UserRecord(
        id=payload.id,
        email=payload.email,
        name=payload.name,
        is_organiser=payload.is_organiser,
        is_support=payload.is_support,
        is_masteradmin=payload.is_masteradmin,
        created_at=payload.created_at,
    )


def _convert_event_payload(payload: EventPayload) -> EventRecord:
    return EventRecord(
        event_id=payload.event_id,
        title=payload.title,
        organizing_dept=payload.organizing_dept,
        event_date=payload.event_date,
        created_by=payload.created_by,
        created_at=payload.created_at,
        registration_fee=payload.registration_fee,
        registration_count=payload.registration_count,
    )


def _convert_fest_payload(payload: FestPayload) -> FestRecord:
    return FestRecord(
        fest_id=payload.fest_id,
        fest_title=payload.fest_title,
        organizing_dept=payload.organizing_dept,
        opening_date=payload.opening_date,
        created_by=payload.created_by,
        created_at=payload.created_at,
        registration_count=payload.registration_count,
    )


def _convert_registration_payload(payload: RegistrationPayload) -> RegistrationRecord:
    return RegistrationRecord(
        registration_id=payload.registration_id,
        event_id=payload.event_id,
        registration_type=payload.registration_type,
        created_at=payload.created_at,
        teammates=tuple(payload.teammates or ()),
    )
