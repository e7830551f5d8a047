"""
Metric reducers for the system analytics summary.

Every function here is pure: it receives already partitioned, immutable
collections and returns a frozen summary record. None of them perform I/O and
none of them raise on empty input; zero denominators produce ``0``.
"""

from __future__ import annotations

import logging
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Sequence

from .dataset import Partition
from .models import (
    CityRevenue,
    GeographicSummary,
    MaintenanceRecord,
    MaintenanceStatus,
    MaintenanceSummary,
    PaymentRecord,
    PaymentStatus,
    PaymentSummary,
    PropertyRecord,
    PropertyStatus,
    PropertySummary,
    RevenueSummary,
    RoleBreakdown,
    TenancyRecord,
    TenancyStatus,
    UserRecord,
    UserRole,
    UserSummary,
)
from .periods import ensure_utc

logger = logging.getLogger(__name__)

UNKNOWN_CITY = "Unknown"
TOP_CITIES_LIMIT = 10
SECONDS_PER_DAY = 60 * 60 * 24

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def growth_percent(current: float, previous: float) -> float:
    """
    Percentage change from ``previous`` to ``current``.

    Without a prior baseline (``previous == 0``) growth is reported as 0 even
    when ``current`` is positive.
    """

    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return min(max(part / whole * 100, 0.0), 100.0)


def trend_for(growth: float) -> str:
    if growth > 0:
        return TREND_UP
    if growth < 0:
        return TREND_DOWN
    return TREND_STABLE


def realized_revenue(payments: Iterable[PaymentRecord]) -> float:
    return sum(payment.amount for payment in payments if payment.is_realized)


def calculate_revenue(payments: Partition[PaymentRecord]) -> RevenueSummary:
    current = realized_revenue(payments.current)
    previous = realized_revenue(payments.previous)
    growth = round_half_up(growth_percent(current, previous))
    return RevenueSummary(
        total=round_half_up(realized_revenue(payments.all_time)),
        monthly=round_half_up(current),
        growth=growth,
        trend=trend_for(growth),
    )


def calculate_users(users: Partition[UserRecord]) -> UserSummary:
    roles = Counter(user.role for user in users.all_time)
    new_current = len(users.current)
    new_previous = len(users.previous)
    return UserSummary(
        total=len(users.all_time),
        active=sum(1 for user in users.all_time if user.is_active),
        new_this_month=new_current,
        growth=round_half_up(growth_percent(new_current, new_previous)),
        breakdown=RoleBreakdown(
            owners=roles[UserRole.OWNER],
            tenants=roles[UserRole.TENANT],
            admins=roles[UserRole.ADMIN],
        ),
    )


def calculate_properties(
    properties: Partition[PropertyRecord],
    tenancies: Sequence[TenancyRecord],
) -> PropertySummary:
    """
    Property headline numbers.

    Occupancy counts one active tenancy as one occupied property; unit-level
    occupancy is reported by the breakdowns instead.
    """

    total = len(properties.all_time)
    occupied = sum(1 for tenancy in tenancies if tenancy.status is TenancyStatus.ACTIVE)
    average_rent = (
        sum(prop.monthly_rent or 0.0 for prop in properties.all_time) / total if total else 0.0
    )
    return PropertySummary(
        total=total,
        active=sum(1 for prop in properties.all_time if prop.status is PropertyStatus.ACTIVE),
        occupancy_rate=round_half_up(percentage(occupied, total)),
        average_rent=round_half_up(average_rent),
        growth=round_half_up(growth_percent(len(properties.current), len(properties.previous))),
    )


def calculate_payments(payments: Sequence[PaymentRecord]) -> PaymentSummary:
    statuses = Counter(payment.status for payment in payments)
    successful = statuses[PaymentStatus.PAID]
    average_amount = realized_revenue(payments) / successful if successful else 0.0
    return PaymentSummary(
        total=len(payments),
        successful=successful,
        failed=statuses[PaymentStatus.FAILED],
        pending=statuses[PaymentStatus.PENDING],
        success_rate=round_half_up(percentage(successful, len(payments))),
        average_amount=round_half_up(average_amount),
    )


def calculate_maintenance(tickets: Sequence[MaintenanceRecord]) -> MaintenanceSummary:
    completed = [ticket for ticket in tickets if ticket.status is MaintenanceStatus.COMPLETED]
    open_count = sum(
        1
        for ticket in tickets
        if ticket.status in (MaintenanceStatus.PENDING, MaintenanceStatus.IN_PROGRESS)
    )
    # Tickets without any cost figure are left out rather than counted as 0.
    total_cost = sum(ticket.cost for ticket in tickets if ticket.cost is not None)

    resolution_days: List[float] = [
        (ensure_utc(ticket.updated_at) - ensure_utc(ticket.created_at)).total_seconds() / SECONDS_PER_DAY
        for ticket in completed
    ]
    average_resolution = sum(resolution_days) / len(resolution_days) if resolution_days else 0.0
    return MaintenanceSummary(
        total=len(tickets),
        completed=len(completed),
        pending=open_count,
        average_resolution_time=round_half_up(average_resolution, places=1),
        total_cost=round_half_up(total_cost),
    )


def _city_key(prop: PropertyRecord) -> str:
    city = (prop.city or "").strip()
    return city or UNKNOWN_CITY


def calculate_geography(
    properties: Sequence[PropertyRecord],
    current_payments: Sequence[PaymentRecord],
    limit: int = TOP_CITIES_LIMIT,
) -> GeographicSummary:
    """
    Attribute current-window revenue to cities.

    There is no property-to-payment join in this view, so revenue is split
    evenly across every property and summed per city. Cities keep the order
    they were first seen in when their revenue ties.
    """

    city_counts: Dict[str, int] = {}
    for prop in properties:
        key = _city_key(prop)
        city_counts[key] = city_counts.get(key, 0) + 1

    total_properties = len(properties)
    revenue_per_property = (
        realized_revenue(current_payments) / total_properties if total_properties else 0.0
    )
    rows = [
        CityRevenue(city=city, properties=count, revenue=revenue_per_property * count)
        for city, count in city_counts.items()
    ]
    top = sorted(rows, key=lambda row: row.revenue, reverse=True)[:limit]
    logger.debug("Attributed %.2f per property across %d cities", revenue_per_property, len(rows))
    return GeographicSummary(top_cities=tuple(top))
