"""
Runtime configuration for the analytics service.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import BaseModel

from .periods import TimeRange


class AnalyticsConfig(BaseModel):
    database_url: Optional[str] = None
    """SQLAlchemy URL of the operational database; inline payloads only when unset"""

    default_time_range: str = TimeRange.THIRTY_DAYS.value
    """Range used when a request does not name one"""

    parallel: bool = True
    """Run the metric calculators on a thread pool"""

    max_workers: int = 6
    """Thread pool size, one worker per calculator by default"""

    top_cities: int = 10
    """How many cities the geographic rollup reports"""

    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_config() -> AnalyticsConfig:
    defaults = AnalyticsConfig()
    return AnalyticsConfig(
        database_url=os.getenv("RENTAL_ANALYTICS_DATABASE_URL", defaults.database_url),
        default_time_range=TimeRange.parse(
            os.getenv("RENTAL_ANALYTICS_DEFAULT_TIME_RANGE", defaults.default_time_range)
        ).value,
        parallel=_env_bool("RENTAL_ANALYTICS_PARALLEL", defaults.parallel),
        max_workers=max(1, _env_int("RENTAL_ANALYTICS_MAX_WORKERS", defaults.max_workers)),
        top_cities=max(1, _env_int("RENTAL_ANALYTICS_TOP_CITIES", defaults.top_cities)),
        log_level=os.getenv("RENTAL_ANALYTICS_LOG_LEVEL", defaults.log_level).upper(),
    )


def configure_logging(config: Optional[AnalyticsConfig] = None) -> None:
    cfg = config or load_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
