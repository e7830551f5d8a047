from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence


class UserRole(str, Enum):
    OWNER = "owner"
    TENANT = "tenant"
    ADMIN = "admin"


class PropertyStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


class TenancyStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    TERMINATED = "terminated"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"


class MaintenanceStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class UserRecord:
    role: UserRole
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class PropertyRecord:
    """
    Snapshot of a listed property.

    ``total_units``/``occupied_units`` and ``property_type`` only feed the
    breakdown reports; the system summary counts properties, not units.
    """

    status: PropertyStatus
    monthly_rent: float
    city: Optional[str]
    province: Optional[str]
    created_at: datetime
    id: Optional[str] = None
    property_type: Optional[str] = None
    total_units: int = 0
    occupied_units: int = 0
    name: Optional[str] = None


@dataclass(frozen=True)
class TenancyRecord:
    status: TenancyStatus
    created_at: datetime
    property_id: Optional[str] = None
    monthly_rent: Optional[float] = None


@dataclass(frozen=True)
class PaymentRecord:
    """
    A single payment row.

    ``paid_at`` is only set once money was collected and drives the monthly
    revenue series; ``created_at`` is what the period windows key on.
    """

    status: PaymentStatus
    amount: float
    method: Optional[str]
    payment_type: Optional[str]
    created_at: datetime
    property_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    @property
    def is_realized(self) -> bool:
        return self.status is PaymentStatus.PAID


@dataclass(frozen=True)
class MaintenanceRecord:
    status: MaintenanceStatus
    priority: Optional[str]
    created_at: datetime
    updated_at: datetime
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    category: Optional[str] = None
    property_id: Optional[str] = None

    @property
    def cost(self) -> Optional[float]:
        """Actual cost when recorded, otherwise the estimate, otherwise ``None``."""
        if self.actual_cost is not None:
            return self.actual_cost
        return self.estimated_cost


@dataclass(frozen=True)
class RevenueSummary:
    total: float
    monthly: float
    growth: float
    trend: str


@dataclass(frozen=True)
class RoleBreakdown:
    owners: int
    tenants: int
    admins: int


@dataclass(frozen=True)
class UserSummary:
    total: int
    active: int
    new_this_month: int
    growth: float
    breakdown: RoleBreakdown


@dataclass(frozen=True)
class PropertySummary:
    total: int
    active: int
    occupancy_rate: float
    average_rent: float
    growth: float


@dataclass(frozen=True)
class PaymentSummary:
    total: int
    successful: int
    failed: int
    pending: int
    success_rate: float
    average_amount: float


@dataclass(frozen=True)
class MaintenanceSummary:
    total: int
    completed: int
    pending: int
    average_resolution_time: float
    total_cost: float


@dataclass(frozen=True)
class CityRevenue:
    city: str
    properties: int
    revenue: float


@dataclass(frozen=True)
class GeographicSummary:
    top_cities: Sequence[CityRevenue] = field(default_factory=tuple)


@dataclass(frozen=True)
class SystemAnalytics:
    revenue: RevenueSummary
    users: UserSummary
    properties: PropertySummary
    payments: PaymentSummary
    maintenance: MaintenanceSummary
    geographic: GeographicSummary

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the summary into the camelCase structure the dashboards read.
        """

        return {
            "revenue": {
                "total": self.revenue.total,
                "monthly": self.revenue.monthly,
                "growth": self.revenue.growth,
                "trend": self.revenue.trend,
            },
            "users": {
                "total": self.users.total,
                "active": self.users.active,
                "newThisMonth": self.users.new_this_month,
                "growth": self.users.growth,
                "breakdown": {
                    "owners": self.users.breakdown.owners,
                    "tenants": self.users.breakdown.tenants,
                    "admins": self.users.breakdown.admins,
                },
            },
            "properties": {
                "total": self.properties.total,
                "active": self.properties.active,
                "occupancyRate": self.properties.occupancy_rate,
                "averageRent": self.properties.average_rent,
                "growth": self.properties.growth,
            },
            "payments": {
                "total": self.payments.total,
                "successful": self.payments.successful,
                "failed": self.payments.failed,
                "pending": self.payments.pending,
                "successRate": self.payments.success_rate,
                "averageAmount": self.payments.average_amount,
            },
            "maintenance": {
                "total": self.maintenance.total,
                "completed": self.maintenance.completed,
                "pending": self.maintenance.pending,
                "averageResolutionTime": self.maintenance.average_resolution_time,
                "totalCost": self.maintenance.total_cost,
            },
            "geographic": {
                "topCities": [
                    {"city": city.city, "properties": city.properties, "revenue": city.revenue}
                    for city in self.geographic.top_cities
                ],
            },
        }


@dataclass(frozen=True)
class AnalyticsResult:
    """
    Envelope returned to callers: either a full summary or a failure message.
    """

    success: bool
    data: Optional[SystemAnalytics] = None
    message: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": None if self.data is None else self.data.as_dict(),
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# Breakdown report types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalyticsOverview:
    total_properties: int
    total_tenants: int
    total_revenue: float
    total_maintenance_requests: int
    occupancy_rate: float
    average_rent: float
    pending_payments: float
    completed_maintenance: int


@dataclass(frozen=True)
class MonthlyRevenuePoint:
    month: str
    revenue: float
    payments: int


@dataclass(frozen=True)
class AmountBucket:
    label: str
    amount: float
    count: int


@dataclass(frozen=True)
class CountBucket:
    label: str
    count: int


@dataclass(frozen=True)
class PropertyTypeBucket:
    property_type: str
    count: int
    occupancy: float


@dataclass(frozen=True)
class PropertyPerformance:
    property_id: Optional[str]
    property_name: Optional[str]
    revenue: float
    occupancy: float
    tenant_count: int


@dataclass(frozen=True)
class CategoryCost:
    category: str
    count: int
    avg_cost: float


@dataclass(frozen=True)
class MaintenanceTrendPoint:
    month: str
    requests: int
    completed: int
    avg_cost: float


@dataclass(frozen=True)
class TenantRetention:
    total_tenants: int
    active_tenants: int
    retention_rate: float


@dataclass(frozen=True)
class AnalyticsBreakdown:
    overview: AnalyticsOverview
    monthly_revenue: Sequence[MonthlyRevenuePoint]
    payment_types: Sequence[AmountBucket]
    payment_statuses: Sequence[AmountBucket]
    properties_by_type: Sequence[PropertyTypeBucket]
    properties_by_status: Sequence[CountBucket]
    top_performing_properties: Sequence[PropertyPerformance]
    maintenance_by_category: Sequence[CategoryCost]
    maintenance_by_status: Sequence[CountBucket]
    maintenance_by_priority: Sequence[CountBucket]
    maintenance_trends: Sequence[MaintenanceTrendPoint]
    tenants_by_status: Sequence[CountBucket]
    tenant_retention: TenantRetention

    def as_dict(self) -> Dict[str, Any]:
        def _counts(buckets: Iterable[CountBucket], key: str) -> list:
            return [{key: bucket.label, "count": bucket.count} for bucket in buckets]

        def _amounts(buckets: Iterable[AmountBucket], key: str) -> list:
            return [{key: bucket.label, "amount": bucket.amount, "count": bucket.count} for bucket in buckets]

        overview = self.overview
        return {
            "overview": {
                "totalProperties": overview.total_properties,
                "totalTenants": overview.total_tenants,
                "totalRevenue": overview.total_revenue,
                "totalMaintenanceRequests": overview.total_maintenance_requests,
                "occupancyRate": overview.occupancy_rate,
                "averageRent": overview.average_rent,
                "pendingPayments": overview.pending_payments,
                "completedMaintenance": overview.completed_maintenance,
            },
            "revenue": {
                "monthlyRevenue": [
                    {"month": point.month, "revenue": point.revenue, "payments": point.payments}
                    for point in self.monthly_revenue
                ],
                "paymentTypes": _amounts(self.payment_types, "type"),
                "paymentStatus": _amounts(self.payment_statuses, "status"),
            },
            "properties": {
                "propertiesByType": [
                    {"type": bucket.property_type, "count": bucket.count, "occupancy": bucket.occupancy}
                    for bucket in self.properties_by_type
                ],
                "propertiesByStatus": _counts(self.properties_by_status, "status"),
                "topPerformingProperties": [
                    {
                        "propertyId": item.property_id,
                        "propertyName": item.property_name,
                        "revenue": item.revenue,
                        "occupancy": item.occupancy,
                        "tenantCount": item.tenant_count,
                    }
                    for item in self.top_performing_properties
                ],
            },
            "maintenance": {
                "maintenanceByCategory": [
                    {"category": item.category, "count": item.count, "avgCost": item.avg_cost}
                    for item in self.maintenance_by_category
                ],
                "maintenanceByStatus": _counts(self.maintenance_by_status, "status"),
                "maintenanceByPriority": _counts(self.maintenance_by_priority, "priority"),
                "maintenanceTrends": [
                    {
                        "month": point.month,
                        "requests": point.requests,
                        "completed": point.completed,
                        "avgCost": point.avg_cost,
                    }
                    for point in self.maintenance_trends
                ],
            },
            "tenants": {
                "tenantsByStatus": _counts(self.tenants_by_status, "status"),
                "tenantRetention": {
                    "totalTenants": self.tenant_retention.total_tenants,
                    "activeTenants": self.tenant_retention.active_tenants,
                    "retentionRate": self.tenant_retention.retention_rate,
                },
            },
        }
