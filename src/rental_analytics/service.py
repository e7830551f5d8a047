from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Sequence

from .breakdowns import build_breakdown
from .calculators import (
    TOP_CITIES_LIMIT,
    calculate_geography,
    calculate_maintenance,
    calculate_payments,
    calculate_properties,
    calculate_revenue,
    calculate_users,
)
from .config import AnalyticsConfig
from .dataset import AnalyticsSnapshot
from .models import (
    AnalyticsBreakdown,
    AnalyticsResult,
    GeographicSummary,
    MaintenanceSummary,
    PaymentSummary,
    PropertySummary,
    RevenueSummary,
    SystemAnalytics,
    UserSummary,
)
from .periods import PeriodWindows, resolve_period, utc_now
from .repository import AnalyticsRepository, DataFetchError

logger = logging.getLogger(__name__)


def assemble_summary(
    revenue: RevenueSummary,
    users: UserSummary,
    properties: PropertySummary,
    payments: PaymentSummary,
    maintenance: MaintenanceSummary,
    geographic: GeographicSummary,
) -> SystemAnalytics:
    return SystemAnalytics(
        revenue=revenue,
        users=users,
        properties=properties,
        payments=payments,
        maintenance=maintenance,
        geographic=geographic,
    )


class AnalyticsService:
    """
    Computes the system analytics summary for one snapshot.

    The service holds no state between calls; ``build`` is a function of the
    snapshot, the range token and ``now``.
    """

    def __init__(
        self,
        snapshot: AnalyticsSnapshot,
        parallel: bool = True,
        max_workers: Optional[int] = None,
        top_cities: int = TOP_CITIES_LIMIT,
    ) -> None:
        if not isinstance(snapshot, AnalyticsSnapshot):
            raise TypeError(f"expected AnalyticsSnapshot, got {type(snapshot).__name__}")
        self.snapshot = snapshot
        self.parallel = parallel
        self.max_workers = max_workers
        self.top_cities = top_cities

    @classmethod
    def from_config(cls, snapshot: AnalyticsSnapshot, config: AnalyticsConfig) -> "AnalyticsService":
        return cls(
            snapshot,
            parallel=config.parallel,
            max_workers=config.max_workers,
            top_cities=config.top_cities,
        )

    def build(self, time_range: Optional[str] = None, now: Optional[datetime] = None) -> SystemAnalytics:
        windows = resolve_period(time_range, now or utc_now())
        tasks = self._calculator_tasks(windows)
        if self.parallel:
            results = self._run_parallel(tasks)
        else:
            results = {name: task() for name, task in tasks.items()}
        logger.debug(
            "Built analytics for %s window starting %s",
            windows.time_range.value,
            windows.current.start.isoformat(),
        )
        return assemble_summary(**results)

    def build_breakdowns(self) -> AnalyticsBreakdown:
        return build_breakdown(self.snapshot)

    def _calculator_tasks(self, windows: PeriodWindows) -> Dict[str, Callable[[], Any]]:
        snapshot = self.snapshot
        users = snapshot.partition_users(windows)
        properties = snapshot.partition_properties(windows)
        payments = snapshot.partition_payments(windows)
        return {
            "revenue": lambda: calculate_revenue(payments),
            "users": lambda: calculate_users(users),
            "properties": lambda: calculate_properties(properties, snapshot.tenancies),
            "payments": lambda: calculate_payments(payments.all_time),
            "maintenance": lambda: calculate_maintenance(snapshot.maintenance),
            "geographic": lambda: calculate_geography(
                properties.all_time, payments.current, limit=self.top_cities
            ),
        }

    def _run_parallel(self, tasks: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        workers = self.max_workers or len(tasks)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {name: executor.submit(task) for name, task in tasks.items()}
            return {name: future.result() for name, future in futures.items()}


def get_system_analytics(
    repository: AnalyticsRepository,
    time_range: Optional[str] = None,
    now: Optional[datetime] = None,
    config: Optional[AnalyticsConfig] = None,
    property_ids: Optional[Sequence[str]] = None,
) -> AnalyticsResult:
    """
    Fetch a snapshot once and compute the summary.

    A failed fetch becomes an unsuccessful result carrying a readable message
    and no data. Errors raised by the computation itself are not caught.
    """

    cfg = config or AnalyticsConfig()
    try:
        snapshot = repository.load(property_ids=property_ids)
    except DataFetchError as exc:
        logger.warning("Failed to fetch analytics data: %s", exc)
        return AnalyticsResult(success=False, message=str(exc) or "Failed to fetch analytics")

    service = AnalyticsService.from_config(snapshot, cfg)
    summary = service.build(time_range or cfg.default_time_range, now=now)
    return AnalyticsResult(success=True, data=summary)
