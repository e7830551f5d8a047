"""
Shared fixtures and record factories for the analytics tests.

Every test pins ``NOW`` so window resolution is deterministic.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from rental_analytics.dataset import AnalyticsSnapshot
from rental_analytics.models import (
    MaintenanceRecord,
    MaintenanceStatus,
    PaymentRecord,
    PaymentStatus,
    PropertyRecord,
    PropertyStatus,
    TenancyRecord,
    TenancyStatus,
    UserRecord,
    UserRole,
)

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_user(role: UserRole = UserRole.TENANT, age_days: float = 1, is_active: bool = True) -> UserRecord:
    return UserRecord(role=role, is_active=is_active, created_at=days_ago(age_days))


def make_property(
    city: Optional[str] = "Manila",
    status: PropertyStatus = PropertyStatus.ACTIVE,
    rent: float = 1000.0,
    age_days: float = 100,
    **extra,
) -> PropertyRecord:
    return PropertyRecord(
        status=status,
        monthly_rent=rent,
        city=city,
        province="Metro Manila",
        created_at=days_ago(age_days),
        **extra,
    )


def make_tenancy(status: TenancyStatus = TenancyStatus.ACTIVE, age_days: float = 10, **extra) -> TenancyRecord:
    return TenancyRecord(status=status, created_at=days_ago(age_days), **extra)


def make_payment(
    amount: float,
    status: PaymentStatus = PaymentStatus.PAID,
    age_days: float = 1,
    payment_type: Optional[str] = "rent",
    **extra,
) -> PaymentRecord:
    return PaymentRecord(
        status=status,
        amount=amount,
        method="gcash",
        payment_type=payment_type,
        created_at=days_ago(age_days),
        **extra,
    )


def make_ticket(
    status: MaintenanceStatus = MaintenanceStatus.PENDING,
    age_days: float = 10,
    resolved_after_days: float = 0,
    estimated_cost: Optional[float] = None,
    actual_cost: Optional[float] = None,
    **extra,
) -> MaintenanceRecord:
    created = days_ago(age_days)
    return MaintenanceRecord(
        status=status,
        priority="medium",
        created_at=created,
        updated_at=created + timedelta(days=resolved_after_days),
        estimated_cost=estimated_cost,
        actual_cost=actual_cost,
        **extra,
    )


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def snapshot() -> AnalyticsSnapshot:
    """A small but complete portfolio touching every calculator."""
    return AnalyticsSnapshot(
        users=[
            make_user(UserRole.OWNER, age_days=5),
            make_user(UserRole.TENANT, age_days=10),
            make_user(UserRole.TENANT, age_days=40, is_active=False),
            make_user(UserRole.ADMIN, age_days=400),
        ],
        properties=[
            make_property("Manila", rent=1000, age_days=5, id="p1", total_units=4, occupied_units=3),
            make_property("Cebu", rent=2000, age_days=45, id="p2", total_units=2, occupied_units=1),
            make_property("Manila", status=PropertyStatus.INACTIVE, rent=3000, age_days=200, id="p3"),
        ],
        tenancies=[
            make_tenancy(property_id="p1", monthly_rent=1000),
            make_tenancy(property_id="p2", monthly_rent=2000),
            make_tenancy(TenancyStatus.TERMINATED, property_id="p3"),
        ],
        payments=[
            make_payment(1000, age_days=2, property_id="p1"),
            make_payment(500, PaymentStatus.PENDING, age_days=3, property_id="p1"),
            make_payment(2000, age_days=4, property_id="p2"),
            make_payment(1000, age_days=35, property_id="p1"),
            make_payment(300, PaymentStatus.FAILED, age_days=36, property_id="p2"),
        ],
        maintenance=[
            make_ticket(MaintenanceStatus.COMPLETED, resolved_after_days=2, actual_cost=100, property_id="p1"),
            make_ticket(MaintenanceStatus.IN_PROGRESS, estimated_cost=50, property_id="p2"),
            make_ticket(MaintenanceStatus.CANCELLED, property_id="p3"),
        ],
    )
