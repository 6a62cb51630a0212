"""
Runtime configuration for the analytics API.
"""

from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field

from .windows import ALL_TIME, RANGE_DAYS

TOP_N_CHOICES = (5, 10, 20, 50)


class AnalyticsConfig(BaseModel):
    database_url: Optional[str] = None
    """SQLAlchemy URL for the users/events/fests/registrations tables; unset means inline payloads only"""

    default_date_range: str = "30d"
    default_top_n: int = 10
    timezone: str = "UTC"

    cache_size: int = 32
    """Memoised results kept per service instance; 0 disables memoisation"""

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or default


def load_analytics_config() -> AnalyticsConfig:
    cfg = AnalyticsConfig()

    default_range = os.getenv("ANALYTICS_DEFAULT_RANGE", cfg.default_date_range)
    if default_range != ALL_TIME and default_range not in RANGE_DAYS:
        default_range = cfg.default_date_range

    default_top_n = _env_int("ANALYTICS_DEFAULT_TOP_N", cfg.default_top_n)
    if default_top_n not in TOP_N_CHOICES:
        default_top_n = cfg.default_top_n

    return AnalyticsConfig(
        database_url=os.getenv("ANALYTICS_DATABASE_URL") or None,
        default_date_range=default_range,
        default_top_n=default_top_n,
        timezone=os.getenv("ANALYTICS_TIMEZONE", cfg.timezone),
        cache_size=max(0, _env_int("ANALYTICS_CACHE_SIZE", cfg.cache_size)),
        cors_origins=_env_list("ANALYTICS_CORS_ORIGINS", cfg.cors_origins),
    )
