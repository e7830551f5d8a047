from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from .calculators import percentage, realized_revenue, round_half_up
from .dataset import AnalyticsSnapshot
from .models import (
    AmountBucket,
    AnalyticsBreakdown,
    AnalyticsOverview,
    CategoryCost,
    CountBucket,
    MaintenanceRecord,
    MaintenanceStatus,
    MaintenanceTrendPoint,
    MonthlyRevenuePoint,
    PaymentRecord,
    PaymentStatus,
    PropertyPerformance,
    PropertyRecord,
    PropertyTypeBucket,
    TenancyRecord,
    TenancyStatus,
    TenantRetention,
)
from .periods import ensure_utc

UNSPECIFIED = "unspecified"
TOP_PROPERTIES_LIMIT = 5


def _month_key(moment: datetime) -> str:
    return ensure_utc(moment).strftime("%Y-%m")


def _label(value: Optional[object]) -> str:
    if value is None:
        return UNSPECIFIED
    return str(getattr(value, "value", value)) or UNSPECIFIED


def _count_by(labels: Iterable[str]) -> List[CountBucket]:
    counts: Dict[str, int] = defaultdict(int)
    for label in labels:
        counts[label] += 1
    return [CountBucket(label=label, count=count) for label, count in counts.items()]


def _average(total: float, count: int) -> float:
    return round_half_up(total / count) if count else 0.0


def overview(snapshot: AnalyticsSnapshot) -> AnalyticsOverview:
    """
    Headline card for an owner or admin dashboard.

    Unlike the system summary, occupancy here is unit based and average rent
    is taken from active tenancies.
    """

    active_tenancies = [t for t in snapshot.tenancies if t.status is TenancyStatus.ACTIVE]
    rents = [t.monthly_rent for t in active_tenancies if t.monthly_rent is not None]
    total_units = sum(prop.total_units for prop in snapshot.properties)
    occupied_units = sum(prop.occupied_units for prop in snapshot.properties)
    pending_amount = sum(p.amount for p in snapshot.payments if p.status is PaymentStatus.PENDING)
    return AnalyticsOverview(
        total_properties=len(snapshot.properties),
        total_tenants=len(active_tenancies),
        total_revenue=round_half_up(realized_revenue(snapshot.payments)),
        total_maintenance_requests=len(snapshot.maintenance),
        occupancy_rate=round_half_up(percentage(occupied_units, total_units)),
        average_rent=_average(sum(rents), len(rents)),
        pending_payments=round_half_up(pending_amount),
        completed_maintenance=sum(
            1 for ticket in snapshot.maintenance if ticket.status is MaintenanceStatus.COMPLETED
        ),
    )


def monthly_revenue(payments: Sequence[PaymentRecord]) -> List[MonthlyRevenuePoint]:
    """Collected revenue per calendar month of ``paid_at``, oldest month first."""

    revenue: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for payment in payments:
        if not payment.is_realized or payment.paid_at is None:
            continue
        month = _month_key(payment.paid_at)
        revenue[month] += payment.amount
        counts[month] += 1
    return [
        MonthlyRevenuePoint(month=month, revenue=round_half_up(revenue[month]), payments=counts[month])
        for month in sorted(revenue)
    ]


def _amount_buckets(payments: Sequence[PaymentRecord], key) -> List[AmountBucket]:
    amounts: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for payment in payments:
        label = key(payment)
        amounts[label] += payment.amount
        counts[label] += 1
    return [
        AmountBucket(label=label, amount=round_half_up(amount), count=counts[label])
        for label, amount in amounts.items()
    ]


def payment_types(payments: Sequence[PaymentRecord]) -> List[AmountBucket]:
    return _amount_buckets(payments, lambda payment: _label(payment.payment_type))


def payment_statuses(payments: Sequence[PaymentRecord]) -> List[AmountBucket]:
    return _amount_buckets(payments, lambda payment: _label(payment.status))


def properties_by_status(properties: Sequence[PropertyRecord]) -> List[CountBucket]:
    return _count_by(_label(prop.status) for prop in properties)


def properties_by_type(properties: Sequence[PropertyRecord]) -> List[PropertyTypeBucket]:
    stats: Dict[str, Dict[str, int]] = defaultdict(lambda: {"count": 0, "total": 0, "occupied": 0})
    for prop in properties:
        bucket = stats[_label(prop.property_type)]
        bucket["count"] += 1
        bucket["total"] += prop.total_units
        bucket["occupied"] += prop.occupied_units
    return [
        PropertyTypeBucket(
            property_type=label,
            count=values["count"],
            occupancy=round_half_up(percentage(values["occupied"], values["total"])),
        )
        for label, values in stats.items()
    ]


def top_performing_properties(
    snapshot: AnalyticsSnapshot, limit: int = TOP_PROPERTIES_LIMIT
) -> List[PropertyPerformance]:
    """
    Properties ranked by collected revenue, highest first.

    Revenue and tenant counts are joined on ``property_id``; a property with no
    paid payments still ranks, with zero revenue. Ties keep input order.
    """

    revenue: Dict[str, float] = defaultdict(float)
    for payment in snapshot.payments:
        if payment.is_realized and payment.property_id is not None:
            revenue[payment.property_id] += payment.amount
    tenants: Dict[str, int] = defaultdict(int)
    for tenancy in snapshot.tenancies:
        if tenancy.status is TenancyStatus.ACTIVE and tenancy.property_id is not None:
            tenants[tenancy.property_id] += 1

    ranked = [
        PropertyPerformance(
            property_id=prop.id,
            property_name=prop.name,
            revenue=round_half_up(revenue.get(prop.id, 0.0)),
            occupancy=round_half_up(percentage(prop.occupied_units, prop.total_units)),
            tenant_count=tenants.get(prop.id, 0),
        )
        for prop in snapshot.properties
    ]
    ranked.sort(key=lambda item: item.revenue, reverse=True)
    return ranked[:limit]


def maintenance_by_status(tickets: Sequence[MaintenanceRecord]) -> List[CountBucket]:
    return _count_by(_label(ticket.status) for ticket in tickets)


def maintenance_by_priority(tickets: Sequence[MaintenanceRecord]) -> List[CountBucket]:
    return _count_by(_label(ticket.priority) for ticket in tickets)


def maintenance_by_category(tickets: Sequence[MaintenanceRecord]) -> List[CategoryCost]:
    stats: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "cost": 0.0, "costed": 0})
    for ticket in tickets:
        bucket = stats[_label(ticket.category)]
        bucket["count"] += 1
        if ticket.cost is not None:
            bucket["cost"] += ticket.cost
            bucket["costed"] += 1
    return [
        CategoryCost(
            category=label,
            count=int(values["count"]),
            avg_cost=_average(values["cost"], int(values["costed"])),
        )
        for label, values in stats.items()
    ]


def maintenance_trends(tickets: Sequence[MaintenanceRecord]) -> List[MaintenanceTrendPoint]:
    stats: Dict[str, Dict[str, float]] = defaultdict(
        lambda: {"requests": 0, "completed": 0, "cost": 0.0, "costed": 0}
    )
    for ticket in tickets:
        bucket = stats[_month_key(ticket.created_at)]
        bucket["requests"] += 1
        if ticket.status is MaintenanceStatus.COMPLETED:
            bucket["completed"] += 1
        if ticket.cost is not None:
            bucket["cost"] += ticket.cost
            bucket["costed"] += 1
    return [
        MaintenanceTrendPoint(
            month=month,
            requests=int(stats[month]["requests"]),
            completed=int(stats[month]["completed"]),
            avg_cost=_average(stats[month]["cost"], int(stats[month]["costed"])),
        )
        for month in sorted(stats)
    ]


def tenants_by_status(tenancies: Sequence[TenancyRecord]) -> List[CountBucket]:
    return _count_by(_label(tenancy.status) for tenancy in tenancies)


def tenant_retention(tenancies: Sequence[TenancyRecord]) -> TenantRetention:
    active = sum(1 for tenancy in tenancies if tenancy.status is TenancyStatus.ACTIVE)
    return TenantRetention(
        total_tenants=len(tenancies),
        active_tenants=active,
        retention_rate=round_half_up(percentage(active, len(tenancies))),
    )


def build_breakdown(snapshot: AnalyticsSnapshot) -> AnalyticsBreakdown:
    return AnalyticsBreakdown(
        overview=overview(snapshot),
        monthly_revenue=monthly_revenue(snapshot.payments),
        payment_types=payment_types(snapshot.payments),
        payment_statuses=payment_statuses(snapshot.payments),
        properties_by_type=properties_by_type(snapshot.properties),
        properties_by_status=properties_by_status(snapshot.properties),
        top_performing_properties=top_performing_properties(snapshot),
        maintenance_by_category=maintenance_by_category(snapshot.maintenance),
        maintenance_by_status=maintenance_by_status(snapshot.maintenance),
        maintenance_by_priority=maintenance_by_priority(snapshot.maintenance),
        maintenance_trends=maintenance_trends(snapshot.maintenance),
        tenants_by_status=tenants_by_status(snapshot.tenancies),
        tenant_retention=tenant_retention(snapshot.tenancies),
    )
