"""
Rental platform analytics.

Turns raw operational rows (users, properties, tenancies, payments and
maintenance tickets) into the period-over-period statistics shown on the
admin and owner dashboards.
"""

from .breakdowns import build_breakdown  # noqa: F401
from .config import AnalyticsConfig, configure_logging, load_config  # noqa: F401
from .dataset import AnalyticsSnapshot, Partition, partition_records  # noqa: F401
from .models import (  # noqa: F401
    AnalyticsBreakdown,
    AnalyticsResult,
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
    SystemAnalytics,
    TenancyRecord,
    TenancyStatus,
    UserRecord,
    UserRole,
    UserSummary,
)
from .periods import PeriodWindows, TimeRange, Window, resolve_period  # noqa: F401
from .repository import (  # noqa: F401
    AnalyticsError,
    AnalyticsRepository,
    DataFetchError,
    InMemoryAnalyticsRepository,
    RepositoryConfig,
    SQLAnalyticsRepository,
    build_repository_from_env,
)
from .service import AnalyticsService, assemble_summary, get_system_analytics  # noqa: F401
