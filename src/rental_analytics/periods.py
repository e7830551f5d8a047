from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class TimeRange(str, Enum):
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ONE_YEAR = "1y"

    @property
    def days(self) -> int:
        return _RANGE_DAYS[self]

    @property
    def span(self) -> timedelta:
        return timedelta(days=self.days)

    @classmethod
    def parse(cls, token: Optional[str]) -> "TimeRange":
        """
        Map a selector token onto a range; anything unrecognised means 30 days.
        """

        if isinstance(token, cls):
            return token
        try:
            return cls(token)
        except ValueError:
            logger.debug("Unrecognised time range %r, using %s", token, cls.THIRTY_DAYS.value)
            return cls.THIRTY_DAYS


_RANGE_DAYS = {
    TimeRange.SEVEN_DAYS: 7,
    TimeRange.THIRTY_DAYS: 30,
    TimeRange.NINETY_DAYS: 90,
    TimeRange.ONE_YEAR: 365,
}


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Window:
    """Half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= ensure_utc(moment) < self.end

    @property
    def length(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class PeriodWindows:
    time_range: TimeRange
    current: Window
    previous: Window


def resolve_period(token: Optional[str], now: datetime) -> PeriodWindows:
    """
    Resolve a range token into the current window and the equal-length window
    immediately before it.

    ``now`` is always supplied by the caller so repeated calls with the same
    inputs resolve to the same windows.
    """

    time_range = TimeRange.parse(token)
    end = ensure_utc(now)
    current_start = end - time_range.span
    previous_start = current_start - time_range.span
    return PeriodWindows(
        time_range=time_range,
        current=Window(start=current_start, end=end),
        previous=Window(start=previous_start, end=current_start),
    )
