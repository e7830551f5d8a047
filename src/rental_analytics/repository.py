from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from .config import AnalyticsConfig, load_config
from .dataset import AnalyticsSnapshot
from .models import (
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

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class AnalyticsError(Exception):
    """Base class for analytics failures."""


class DataFetchError(AnalyticsError):
    """One of the source collections could not be retrieved or parsed."""


class AnalyticsRepository:
    """
    Interface for loading the analytics snapshot.

    ``property_ids`` restricts properties, tenancies, payments and maintenance
    tickets to a set of properties (an owner's portfolio). Users are never
    scoped. Implementations raise :class:`DataFetchError` on failure and never
    return a partially loaded snapshot.
    """

    def load(self, property_ids: Optional[Sequence[str]] = None) -> AnalyticsSnapshot:
        raise NotImplementedError


class InMemoryAnalyticsRepository(AnalyticsRepository):
    def __init__(self, snapshot: AnalyticsSnapshot):
        self.snapshot = snapshot

    def load(self, property_ids: Optional[Sequence[str]] = None) -> AnalyticsSnapshot:
        if property_ids is None:
            return self.snapshot
        scope = {str(pid) for pid in property_ids}
        return AnalyticsSnapshot(
            users=self.snapshot.users,
            properties=[prop for prop in self.snapshot.properties if prop.id in scope],
            tenancies=[t for t in self.snapshot.tenancies if t.property_id in scope],
            payments=[p for p in self.snapshot.payments if p.property_id in scope],
            maintenance=[m for m in self.snapshot.maintenance if m.property_id in scope],
        )


def _coerce_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        return datetime.fromisoformat(raw)
    raise ValueError(f"expected a timestamp, got {value!r}")


def _optional_datetime(value: object) -> Optional[datetime]:
    return None if value is None else _coerce_datetime(value)


def _optional_float(value: object) -> Optional[float]:
    return None if value is None else float(value)


def _optional_str(value: object) -> Optional[str]:
    return None if value is None else str(value)


class SQLAnalyticsRepository(AnalyticsRepository):
    """
    Load the five source tables through SQLAlchemy Core.

    Expected tables:
      - users(role, is_active, created_at)
      - properties(id, status, monthly_rent, city, province, type, total_units, occupied_units, created_at)
      - tenants(property_id, status, monthly_rent, created_at)
      - payments(property_id, payment_status, amount, payment_method, payment_type, paid_date, created_at)
      - maintenance_requests(property_id, status, priority, category, estimated_cost, actual_cost,
        created_at, updated_at)
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def load(self, property_ids: Optional[Sequence[str]] = None) -> AnalyticsSnapshot:
        scope = None if property_ids is None else [str(pid) for pid in property_ids]
        return AnalyticsSnapshot(
            users=self._load_users(),
            properties=self._load_properties(scope),
            tenancies=self._load_tenancies(scope),
            payments=self._load_payments(scope),
            maintenance=self._load_maintenance(scope),
        )

    def _fetch(
        self,
        table: str,
        sql: str,
        scope_column: Optional[str],
        scope: Optional[Sequence[str]],
        convert: Callable[[Row], RecordT],
    ) -> Tuple[RecordT, ...]:
        params = {}
        if scope is not None and scope_column is not None:
            sql = f"{sql} WHERE {scope_column} IN :ids"
            query = text(sql).bindparams(bindparam("ids", expanding=True))
            params["ids"] = list(scope)
        else:
            query = text(sql)
        try:
            with self.engine.connect() as connection:
                rows = connection.execute(query, params).fetchall()
            records = tuple(convert(row) for row in rows)
        except (SQLAlchemyError, ValueError, TypeError) as exc:
            raise DataFetchError(f"Failed to load {table}: {exc}") from exc
        logger.debug("Loaded %d rows from %s", len(records), table)
        return records

    def _load_users(self) -> Tuple[UserRecord, ...]:
        return self._fetch(
            "users",
            "SELECT role, is_active, created_at FROM users",
            None,
            None,
            self._row_to_user,
        )

    def _load_properties(self, scope: Optional[Sequence[str]]) -> Tuple[PropertyRecord, ...]:
        return self._fetch(
            "properties",
            """
            SELECT id, name, status, monthly_rent, city, province, type, total_units, occupied_units, created_at
            FROM properties
            """,
            "id",
            scope,
            self._row_to_property,
        )

    def _load_tenancies(self, scope: Optional[Sequence[str]]) -> Tuple[TenancyRecord, ...]:
        return self._fetch(
            "tenants",
            "SELECT property_id, status, monthly_rent, created_at FROM tenants",
            "property_id",
            scope,
            self._row_to_tenancy,
        )

    def _load_payments(self, scope: Optional[Sequence[str]]) -> Tuple[PaymentRecord, ...]:
        return self._fetch(
            "payments",
            """
            SELECT property_id, payment_status, amount, payment_method, payment_type, paid_date, created_at
            FROM payments
            """,
            "property_id",
            scope,
            self._row_to_payment,
        )

    def _load_maintenance(self, scope: Optional[Sequence[str]]) -> Tuple[MaintenanceRecord, ...]:
        return self._fetch(
            "maintenance_requests",
            """
            SELECT property_id, status, priority, category, estimated_cost, actual_cost, created_at, updated_at
            FROM maintenance_requests
            """,
            "property_id",
            scope,
            self._row_to_maintenance,
        )

    @staticmethod
    def _row_to_user(row: Row) -> UserRecord:
        return UserRecord(
            role=UserRole(row.role),
            is_active=bool(row.is_active),
            created_at=_coerce_datetime(row.created_at),
        )

    @staticmethod
    def _row_to_property(row: Row) -> PropertyRecord:
        return PropertyRecord(
            id=_optional_str(row.id),
            name=row.name,
            status=PropertyStatus(row.status),
            monthly_rent=float(row.monthly_rent or 0),
            city=row.city,
            province=row.province,
            property_type=row.type,
            total_units=int(row.total_units or 0),
            occupied_units=int(row.occupied_units or 0),
            created_at=_coerce_datetime(row.created_at),
        )

    @staticmethod
    def _row_to_tenancy(row: Row) -> TenancyRecord:
        return TenancyRecord(
            status=TenancyStatus(row.status),
            created_at=_coerce_datetime(row.created_at),
            property_id=_optional_str(row.property_id),
            monthly_rent=_optional_float(row.monthly_rent),
        )

    @staticmethod
    def _row_to_payment(row: Row) -> PaymentRecord:
        return PaymentRecord(
            status=PaymentStatus(row.payment_status),
            amount=float(row.amount or 0),
            method=row.payment_method,
            payment_type=row.payment_type,
            created_at=_coerce_datetime(row.created_at),
            property_id=_optional_str(row.property_id),
            paid_at=_optional_datetime(row.paid_date),
        )

    @staticmethod
    def _row_to_maintenance(row: Row) -> MaintenanceRecord:
        return MaintenanceRecord(
            status=MaintenanceStatus(row.status),
            priority=row.priority,
            category=row.category,
            estimated_cost=_optional_float(row.estimated_cost),
            actual_cost=_optional_float(row.actual_cost),
            created_at=_coerce_datetime(row.created_at),
            updated_at=_coerce_datetime(row.updated_at),
            property_id=_optional_str(row.property_id),
        )


@dataclass(frozen=True)
class RepositoryConfig:
    database_url: Optional[str] = None

    @classmethod
    def from_config(cls, config: Optional[AnalyticsConfig] = None) -> "RepositoryConfig":
        cfg = config or load_config()
        return cls(database_url=cfg.database_url)


def build_repository_from_env(config: Optional[RepositoryConfig] = None) -> Optional[AnalyticsRepository]:
    cfg = config or RepositoryConfig.from_config()
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLAnalyticsRepository(engine)
    return None
